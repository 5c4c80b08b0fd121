import math


def arm_keypoints(angle, shoulder_y=200.0, conf=0.9, sides=("left", "right")):
    """Keypoint dict whose arms bend at `angle` degrees with shoulders at `shoulder_y`."""
    rad = math.radians(angle)
    kp_dict = {}
    for i, side in enumerate(sides):
        x = 100.0 + 300.0 * i
        elbow_y = shoulder_y + 100.0
        kp_dict[f"{side}_shoulder"] = (x, shoulder_y, conf)
        kp_dict[f"{side}_elbow"] = (x, elbow_y, conf)
        kp_dict[f"{side}_wrist"] = (x + 100.0 * math.sin(rad), elbow_y - 100.0 * math.cos(rad), conf)
    return kp_dict


class FakeClock:
    """Monotonic clock advanced by hand, in seconds."""

    def __init__(self, start=0.0):
        self.now = start

    def advance_ms(self, ms):
        self.now += ms / 1000.0

    def __call__(self):
        return self.now
