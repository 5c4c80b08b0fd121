import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import CounterConfig
from .pose import joint_sample
from .smoothing import MovingAverage


class RepState(Enum):
    UNKNOWN = "UNKNOWN"
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class RepQuality:
    """Depth verdict recorded on every DOWN -> UP transition."""

    met_depth_requirement: bool
    depth_achieved_px: float


@dataclass(frozen=True)
class FrameResult:
    count: int
    state: RepState
    in_position: bool
    angle: Optional[float]
    last_quality: Optional[RepQuality] = None


@dataclass(frozen=True)
class ThresholdInfo:
    """Effective (post-hysteresis) thresholds and timing."""

    down_threshold: float
    up_threshold: float
    min_cooldown_ms: float
    min_frames_in_state: int


_LIVE = "live"
_SIMULATED = "simulated"


class PushupCounter:
    """
    Push-up FSM driven by the elbow angle, with shoulder drop as a depth check.

    UP -> DOWN when the smoothed angle stays below (down - hysteresis),
    DOWN -> UP when it stays above (up + hysteresis). Each transition needs
    `min_frames_in_state` consecutive frames past the threshold and more than
    `min_cooldown_ms` since the previous transition. A rep is counted on
    DOWN -> UP only if the shoulders dropped at least `min_depth_px` below
    the baseline while DOWN.

    Frames come in through either process_keypoints (live) or
    process_simulated_angle (scripted); call reset() before switching.
    Not thread-safe; callers serialize access.
    """

    def __init__(self, config=None, clock=time.monotonic):
        self.config = config if config is not None else CounterConfig()
        self._clock = clock
        self._angle_smoother = MovingAverage(self.config.smoothing_window)
        self._shoulder_smoother = MovingAverage(self.config.smoothing_window)
        self.reset()

    def reset(self):
        self._count = 0
        self._state = RepState.UNKNOWN
        self._in_position = False
        self._angle = None
        self._angle_smoother.clear()
        self._shoulder_smoother.clear()
        self._frames_in_state = 0
        self._valid_frames = 0
        self._last_change_time = None
        self._baseline_shoulder_y = None
        self._max_shoulder_drop = 0.0
        self._last_quality = None
        self._mode = None

    # --- read-only views ---

    @property
    def count(self):
        return self._count

    @property
    def state(self):
        return self._state

    @property
    def in_position(self):
        return self._in_position

    @property
    def current_angle(self):
        return self._angle

    @property
    def smoothed_shoulder_y(self):
        return self._shoulder_smoother.value

    @property
    def baseline_shoulder_y(self):
        return self._baseline_shoulder_y

    @property
    def last_quality(self):
        return self._last_quality

    def get_test_info(self):
        return ThresholdInfo(
            down_threshold=self.config.effective_down_threshold,
            up_threshold=self.config.effective_up_threshold,
            min_cooldown_ms=self.config.min_cooldown_ms,
            min_frames_in_state=self.config.min_frames_in_state,
        )

    # --- frame entry points ---

    def process_keypoints(self, kp_dict, timestamp=None):
        """
        Feed one frame of keypoints ({name: (x, y, conf)}).
        Frames without a usable arm or outside the position band are skipped.
        """
        self._enter_mode(_LIVE)
        cfg = self.config

        sample = joint_sample(kp_dict, cfg.min_confidence)
        if sample is None:
            self._valid_frames = 0
            self._in_position = False
            return self._result()

        self._valid_frames += 1
        self._in_position = (
            cfg.position_min_angle <= sample.angle <= cfg.position_max_angle
            and sample.confidence >= cfg.min_confidence
        )
        if not self._in_position:
            self._valid_frames = 0
            return self._result()

        # Detector warm-up / recovering from occlusion.
        if self._valid_frames < cfg.min_valid_frames:
            return self._result()

        shoulder_y = sample.shoulder_y
        if self._baseline_shoulder_y is None:
            self._baseline_shoulder_y = shoulder_y

        self._angle = self._angle_smoother.push(sample.angle)
        self._shoulder_smoother.push(shoulder_y)

        drop = shoulder_y - self._baseline_shoulder_y
        if drop > self._max_shoulder_drop:
            self._max_shoulder_drop = drop

        self._step(self._angle, self._now(timestamp), require_depth=True)
        return self._result()

    def process_simulated_angle(self, angle, timestamp=None):
        """
        Feed a raw elbow angle directly, skipping pose geometry, the
        position gate and the depth check.
        """
        self._enter_mode(_SIMULATED)
        self._in_position = True
        self._valid_frames = self.config.min_valid_frames + 1
        self._angle = self._angle_smoother.push(float(angle))
        self._step(self._angle, self._now(timestamp), require_depth=False)
        return self._result()

    # --- internals ---

    def _enter_mode(self, mode):
        if self._mode is None:
            self._mode = mode
        elif self._mode != mode:
            raise RuntimeError(
                f"counter is in {self._mode} mode; call reset() before feeding {mode} frames"
            )

    def _now(self, timestamp):
        return self._clock() if timestamp is None else timestamp

    def _step(self, angle, now, require_depth):
        cfg = self.config

        if self._state is RepState.UNKNOWN:
            self._state = RepState.UP if angle > cfg.up_threshold else RepState.DOWN
            self._last_change_time = now
            self._frames_in_state = 0
            return

        if self._state is RepState.UP:
            past_threshold = angle < cfg.effective_down_threshold
        else:
            past_threshold = angle > cfg.effective_up_threshold

        if not past_threshold:
            self._frames_in_state = 0
            return

        self._frames_in_state += 1
        elapsed_ms = (now - self._last_change_time) * 1000.0
        if self._frames_in_state < cfg.min_frames_in_state or elapsed_ms <= cfg.min_cooldown_ms:
            return

        if self._state is RepState.UP:
            self._state = RepState.DOWN
            self._max_shoulder_drop = 0.0
        else:
            if require_depth:
                deep_enough = self._max_shoulder_drop >= cfg.min_depth_px
                self._last_quality = RepQuality(deep_enough, self._max_shoulder_drop)
                if deep_enough:
                    self._count += 1
            else:
                self._count += 1
            self._state = RepState.UP
            self._max_shoulder_drop = 0.0

        self._last_change_time = now
        self._frames_in_state = 0

    def _result(self):
        return FrameResult(
            count=self._count,
            state=self._state,
            in_position=self._in_position,
            angle=self._angle,
            last_quality=self._last_quality,
        )
