import cv2

from .config import MIN_KEYPOINT_CONFIDENCE
from .pose import ARM_JOINTS

SIDE_COLORS = {
    "left": (255, 255, 0),    # cyan (BGR)
    "right": (255, 0, 255),   # magenta
}
JOINT_COLOR = (0, 255, 0)


def draw_overlay(frame, result, debug=False):
    """
    Draw counter status on frame.
    result: FrameResult from the push-up counter.
    """
    h, w = frame.shape[:2]

    # translucent top bar
    overlay = frame.copy()
    cv2.rectangle(overlay, (0, 0), (w, 140), (0, 0, 0), -1)
    frame = cv2.addWeighted(overlay, 0.4, frame, 0.6, 0)

    text_reps = f"Push-ups: {result.count}"
    text_state = f"State: {result.state.value}"

    cv2.putText(frame, text_reps, (10, 55), cv2.FONT_HERSHEY_SIMPLEX, 1.6, (0, 255, 0), 4)
    cv2.putText(frame, text_state, (10, 110), cv2.FONT_HERSHEY_SIMPLEX, 1.3, (255, 255, 255), 3)

    if result.in_position and result.angle is not None:
        status, color = f"Ready! Angle: {int(result.angle)} deg", (0, 255, 0)
    else:
        status, color = "Get into push-up position", (0, 170, 255)
    cv2.putText(frame, status, (10, h - 30), cv2.FONT_HERSHEY_SIMPLEX, 1.2, color, 3)

    quality = result.last_quality
    if quality is not None:
        if quality.met_depth_requirement:
            t, color = f"GOOD DEPTH ({quality.depth_achieved_px:.0f}px)", (0, 255, 0)
        else:
            t, color = f"TOO SHALLOW ({quality.depth_achieved_px:.0f}px)", (0, 0, 255)
        cv2.putText(frame, t, (10, 180), cv2.FONT_HERSHEY_SIMPLEX, 1.1, color, 3)

    if debug and result.angle is not None:
        t = f"Smoothed elbow angle: {result.angle:.1f} deg"
        cv2.putText(frame, t, (10, 220), cv2.FONT_HERSHEY_SIMPLEX, 0.9, (255, 200, 0), 2)

    return frame


def draw_arms(frame, kp_dict, min_confidence=MIN_KEYPOINT_CONFIDENCE):
    """Draw shoulder-elbow-wrist for both arms, skipping low-confidence joints."""
    if not kp_dict:
        return frame

    for side, color in SIDE_COLORS.items():
        points = []
        for joint in ARM_JOINTS:
            kp = kp_dict.get(f"{side}_{joint}")
            if kp is None or kp[2] < min_confidence:
                points.append(None)
            else:
                points.append((int(kp[0]), int(kp[1])))

        for a, b in zip(points, points[1:]):
            if a is not None and b is not None:
                cv2.line(frame, a, b, color, 6)
        for p in points:
            if p is not None:
                cv2.circle(frame, p, 8, JOINT_COLOR, -1)

    return frame


def draw_paused_label(frame):
    h, _ = frame.shape[:2]
    cv2.putText(frame, "PAUSED", (10, h - 80),
                cv2.FONT_HERSHEY_SIMPLEX, 1.6, (0, 0, 255), 4)


def draw_pause_button(frame, paused):
    """Draw the pause/play button and return its rectangle."""
    frame_h, frame_w = frame.shape[:2]
    btn_w, btn_h = 180, 60
    margin = 10
    x2 = frame_w - margin
    y1 = margin
    x1 = x2 - btn_w
    y2 = y1 + btn_h
    cv2.rectangle(frame, (x1, y1), (x2, y2), (30, 30, 30), -1)
    label = "PLAY" if paused else "PAUSE"
    cv2.putText(frame, label, (x1 + 18, y1 + 40),
                cv2.FONT_HERSHEY_SIMPLEX, 1.2, (255, 255, 255), 3)
    return (x1, y1, x2, y2)
