"""Scripted angle sequences for checking the counter without a camera.

Each scenario replays elbow angles through
:meth:`PushupCounter.process_simulated_angle` with synthetic timestamps spaced
``frame_delay_ms`` apart, so results do not depend on wall-clock timing.
"""

from dataclasses import dataclass
from typing import List, Optional

from .rep_counter import PushupCounter, RepState


@dataclass(frozen=True)
class ScriptFrame:
    angle: float
    label: str = ""


@dataclass(frozen=True)
class Scenario:
    name: str
    frames: List[ScriptFrame]
    expected_reps: int
    frame_delay_ms: float = 150.0


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    expected: int
    actual: int
    final_state: RepState

    @property
    def passed(self) -> bool:
        return self.expected == self.actual


def _hold(angle: float, n: int, label: str) -> List[ScriptFrame]:
    return [ScriptFrame(angle, label) for _ in range(n)]


def single_rep() -> Scenario:
    frames = _hold(160, 3, "init up")
    frames += [ScriptFrame(a, "going down") for a in (140, 120, 100)]
    frames += _hold(80, 4, "holding down")
    frames += [ScriptFrame(a, "going up") for a in (110, 130)]
    frames += _hold(165, 4, "holding up")
    return Scenario("Single Rep", frames, expected_reps=1, frame_delay_ms=150)


def five_reps() -> Scenario:
    frames = _hold(160, 3, "init up")
    for rep in range(1, 6):
        frames += [ScriptFrame(a, f"rep {rep}: going down") for a in (140, 120, 100)]
        frames += _hold(85, 4, f"rep {rep}: down hold")
        frames += [ScriptFrame(a, f"rep {rep}: going up") for a in (110, 130)]
        frames += _hold(160, 4, f"rep {rep}: up hold")
    return Scenario("5 Reps", frames, expected_reps=5, frame_delay_ms=150)


def double_count() -> Scenario:
    """Bouncing at the bottom must not add reps."""
    frames = _hold(160, 3, "init up")
    frames += _hold(85, 4, "down")
    frames += [ScriptFrame(a, "bounce") for a in (100, 85, 105, 80, 95, 85)]
    frames += _hold(160, 4, "going up")
    frames += _hold(160, 3, "holding up")
    return Scenario("Double-Count Prevention", frames, expected_reps=1, frame_delay_ms=100)


BUILTIN_SCENARIOS = (single_rep, five_reps, double_count)


def run_scenario(scenario: Scenario, counter: Optional[PushupCounter] = None,
                 on_frame=None) -> ScenarioResult:
    """
    Replay a scenario on a freshly reset counter.
    on_frame(index, frame, result) is called after every frame if given.
    """
    counter = counter if counter is not None else PushupCounter()
    counter.reset()

    for i, frame in enumerate(scenario.frames):
        timestamp = i * scenario.frame_delay_ms / 1000.0
        result = counter.process_simulated_angle(frame.angle, timestamp=timestamp)
        if on_frame is not None:
            on_frame(i, frame, result)

    return ScenarioResult(
        name=scenario.name,
        expected=scenario.expected_reps,
        actual=counter.count,
        final_state=counter.state,
    )


def parse_angles(text: str) -> List[ScriptFrame]:
    """Parse "160, 140, 120" into script frames."""
    frames = []
    for token in text.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            frames.append(ScriptFrame(float(token)))
        except ValueError:
            raise ValueError(f"Not an angle: {token!r}") from None
    return frames
