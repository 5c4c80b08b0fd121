import math
from dataclasses import dataclass
from pathlib import Path
from urllib.error import URLError
from urllib.request import urlretrieve

import numpy as np

from .config import (
    DEFAULT_MODEL_NAME,
    DEFAULT_MODEL_PATH,
    DEFAULT_MODEL_URL,
    MIN_KEYPOINT_CONFIDENCE,
)

# ===============================
# KEYPOINT INDEX MAP (COCO order)
# ===============================

KEYPOINT_NAMES = [
    "nose",            # 0
    "left_eye",        # 1
    "right_eye",       # 2
    "left_ear",        # 3
    "right_ear",       # 4
    "left_shoulder",   # 5
    "right_shoulder",  # 6
    "left_elbow",      # 7
    "right_elbow",     # 8
    "left_wrist",      # 9
    "right_wrist",     # 10
    "left_hip",        # 11
    "right_hip",       # 12
    "left_knee",       # 13
    "right_knee",      # 14
    "left_ankle",      # 15
    "right_ankle"      # 16
]

ARM_JOINTS = ("shoulder", "elbow", "wrist")


@dataclass(frozen=True)
class JointSample:
    """Elbow angle plus supporting Y coordinates for one frame."""

    angle: float
    confidence: float
    wrist_y: float
    shoulder_y: float
    elbow_y: float


def get_keypoints_dict(result):
    """
    Convert YOLO keypoints for the most confident person into
    {name: (x, y, conf)} dict.

    Returns None if no people detected.
    """
    if result.keypoints is None or len(result.keypoints) == 0:
        return None

    # Take the first detected person
    kpts = result.keypoints.data[0].cpu().numpy()  # shape: (17, 3) -> x, y, conf

    kp_dict = {}
    for idx, name in enumerate(KEYPOINT_NAMES):
        x, y, c = kpts[idx]
        kp_dict[name] = (float(x), float(y), float(c))

    return kp_dict


def elbow_angle(shoulder, elbow, wrist):
    """
    Interior angle at the elbow in degrees, in [0, 180].
    Points are (x, y) pairs. Returns None if a limb has zero length.
    """
    ex, ey = elbow[0], elbow[1]
    v1 = np.array([shoulder[0] - ex, shoulder[1] - ey], dtype=float)
    v2 = np.array([wrist[0] - ex, wrist[1] - ey], dtype=float)

    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    if norm1 == 0 or norm2 == 0:
        return None

    cos_theta = np.dot(v1, v2) / (norm1 * norm2)
    cos_theta = max(-1.0, min(1.0, float(cos_theta)))  # clamp
    return math.degrees(math.acos(cos_theta))


def arm_sample(kp_dict, side, min_confidence=MIN_KEYPOINT_CONFIDENCE):
    """
    Build a JointSample for one arm ("left" or "right").
    Returns None if any joint is missing or below min_confidence.
    """
    if not kp_dict:
        return None

    S, E, W = (kp_dict.get(f"{side}_{joint}") for joint in ARM_JOINTS)
    # A missing landmark never qualifies, whatever the floor is.
    if S is None or E is None or W is None:
        return None

    confs = [float(S[2]), float(E[2]), float(W[2])]
    # NaN confidences fail this check.
    if not all(c >= min_confidence for c in confs):
        return None
    conf = min(confs)

    angle = elbow_angle(S, E, W)
    if angle is None:
        return None

    return JointSample(
        angle=angle,
        confidence=conf,
        wrist_y=float(W[1]),
        shoulder_y=float(S[1]),
        elbow_y=float(E[1]),
    )


def joint_sample(kp_dict, min_confidence=MIN_KEYPOINT_CONFIDENCE):
    """
    Combine both arms into one JointSample for the frame.

    Both arms qualify -> componentwise average; one arm -> that arm;
    neither -> None.
    """
    left = arm_sample(kp_dict, "left", min_confidence)
    right = arm_sample(kp_dict, "right", min_confidence)

    if left is not None and right is not None:
        return JointSample(
            angle=(left.angle + right.angle) / 2,
            confidence=(left.confidence + right.confidence) / 2,
            wrist_y=(left.wrist_y + right.wrist_y) / 2,
            shoulder_y=(left.shoulder_y + right.shoulder_y) / 2,
            elbow_y=(left.elbow_y + right.elbow_y) / 2,
        )
    if left is not None:
        return left
    return right


def ensure_model_path(model_arg):
    model_path = DEFAULT_MODEL_PATH if model_arg is None else model_arg
    if not hasattr(model_path, "is_file"):
        model_path = Path(model_path)

    if model_path.is_file():
        return model_path

    if model_path.name == DEFAULT_MODEL_NAME:
        target = model_path
        if model_path.parent == Path("."):
            target = DEFAULT_MODEL_PATH

        target.parent.mkdir(parents=True, exist_ok=True)
        if not target.exists():
            print(f"Downloading {DEFAULT_MODEL_NAME} to {target}...")
            try:
                urlretrieve(DEFAULT_MODEL_URL, target)
            except URLError as exc:
                raise RuntimeError(
                    f"Failed to download model from {DEFAULT_MODEL_URL}: {exc}"
                ) from exc
        return target

    return model_path
