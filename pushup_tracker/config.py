from dataclasses import dataclass
from pathlib import Path

# ===============================
# CONFIG / TUNING PARAMETERS
# ===============================

# --- Model download/cache ---
MODEL_DIR = Path("models")
DEFAULT_MODEL_NAME = "yolov8n-pose.pt"
DEFAULT_MODEL_URL = (
    "https://github.com/ultralytics/assets/releases/download/v0.0.0/yolov8n-pose.pt"
)
DEFAULT_MODEL_PATH = MODEL_DIR / DEFAULT_MODEL_NAME

# --- Pose & detection ---
MIN_KEYPOINT_CONFIDENCE = 0.5   # TUNE_ME: raise if jittery/missing keypoints

# --- Smoothing ---
SMOOTHING_WINDOW = 3            # TUNE_ME: frames in the moving average; higher = smoother but more lag

# --- Push-up thresholds (elbow angle in degrees) ---
# Arms locked out at the top ~160-180, chest near the floor ~70-100.
UP_ANGLE_THRESHOLD = 140.0      # TUNE_ME: angle at/near lockout
DOWN_ANGLE_THRESHOLD = 110.0    # TUNE_ME: angle at the bottom
ANGLE_HYSTERESIS = 8.0          # extra margin past each threshold

# --- Counting position band ---
POSITION_MIN_ANGLE = 50.0
POSITION_MAX_ANGLE = 175.0
MIN_VALID_FRAMES = 5            # TUNE_ME: warm-up frames before counting starts

# --- Rep debounce ---
MIN_FRAMES_IN_STATE = 3         # TUNE_ME: consecutive frames past a threshold
MIN_COOLDOWN_MS = 400           # TUNE_ME: ms between state changes

# --- Depth check (shoulder drop in image pixels, y grows downward) ---
MIN_SHOULDER_DROP_PX = 40.0     # TUNE_ME: depends on camera distance


class ConfigError(ValueError):
    """Raised when counter thresholds are inconsistent."""


@dataclass(frozen=True)
class CounterConfig:
    """Tuning for :class:`pushup_tracker.rep_counter.PushupCounter`.

    Defaults come from the module constants above. Validation runs on
    construction so a bad combination fails loudly instead of miscounting.
    """

    up_threshold: float = UP_ANGLE_THRESHOLD
    down_threshold: float = DOWN_ANGLE_THRESHOLD
    hysteresis: float = ANGLE_HYSTERESIS
    min_confidence: float = MIN_KEYPOINT_CONFIDENCE
    position_min_angle: float = POSITION_MIN_ANGLE
    position_max_angle: float = POSITION_MAX_ANGLE
    min_valid_frames: int = MIN_VALID_FRAMES
    smoothing_window: int = SMOOTHING_WINDOW
    min_frames_in_state: int = MIN_FRAMES_IN_STATE
    min_cooldown_ms: float = MIN_COOLDOWN_MS
    min_depth_px: float = MIN_SHOULDER_DROP_PX

    def __post_init__(self) -> None:
        if self.down_threshold >= self.up_threshold:
            raise ConfigError(
                f"down_threshold ({self.down_threshold}) must be below "
                f"up_threshold ({self.up_threshold})"
            )
        if self.hysteresis < 0:
            raise ConfigError("hysteresis must be non-negative")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ConfigError("min_confidence must be in [0, 1]")
        if not 0.0 <= self.position_min_angle < self.position_max_angle <= 180.0:
            raise ConfigError(
                "position band must satisfy 0 <= min < max <= 180, got "
                f"[{self.position_min_angle}, {self.position_max_angle}]"
            )
        for name in ("min_valid_frames", "smoothing_window", "min_frames_in_state"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1")
        if self.min_cooldown_ms < 0:
            raise ConfigError("min_cooldown_ms must be non-negative")
        if self.min_depth_px < 0:
            raise ConfigError("min_depth_px must be non-negative")

    @property
    def effective_down_threshold(self) -> float:
        return self.down_threshold - self.hysteresis

    @property
    def effective_up_threshold(self) -> float:
        return self.up_threshold + self.hysteresis
