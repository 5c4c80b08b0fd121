import argparse
import sys
import time
from pathlib import Path

import cv2
import numpy as np

from . import overlay
from .config import DEFAULT_MODEL_PATH, ConfigError, CounterConfig
from .rep_counter import PushupCounter
from .scenarios import BUILTIN_SCENARIOS, Scenario, parse_angles, run_scenario


def build_parser():
    defaults = CounterConfig()
    parser = argparse.ArgumentParser(description="YOLO-based push-up counter (elbow angle + shoulder depth).")
    parser.add_argument("--model", type=str, default=str(DEFAULT_MODEL_PATH),
                        help="Path to YOLO pose model (e.g., yolov8n-pose.pt)")
    parser.add_argument("--video", type=str, default=None,
                        help="Path to video file. If not set, use webcam 0.")
    parser.add_argument("--camera", type=int, default=0,
                        help="Camera index (webcam mode only).")
    parser.add_argument("--backend", type=str, default=None,
                        choices=["avfoundation", "any", "default"],
                        help="OpenCV backend: avfoundation, any, or default.")
    parser.add_argument("--min-confidence", type=float, default=defaults.min_confidence,
                        help="Minimum keypoint confidence for an arm to count.")
    parser.add_argument("--up-threshold", type=float, default=defaults.up_threshold,
                        help="Elbow angle (deg) for the top position.")
    parser.add_argument("--down-threshold", type=float, default=defaults.down_threshold,
                        help="Elbow angle (deg) for the bottom position.")
    parser.add_argument("--min-depth", type=float, default=defaults.min_depth_px,
                        help="Minimum shoulder drop in pixels for a rep to count.")
    parser.add_argument("--simulate", type=str, default=None,
                        help="Comma-separated elbow angles to replay instead of using a camera.")
    parser.add_argument("--frame-delay-ms", type=float, default=150.0,
                        help="Time between simulated frames.")
    parser.add_argument("--self-test", action="store_true",
                        help="Run the built-in scripted scenarios and exit.")
    parser.add_argument("--test-info", action="store_true",
                        help="Print effective thresholds and timing and exit.")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug overlay/logs.")
    return parser


def build_config(args, parser):
    try:
        return CounterConfig(
            up_threshold=args.up_threshold,
            down_threshold=args.down_threshold,
            min_confidence=args.min_confidence,
            min_depth_px=args.min_depth,
        )
    except ConfigError as exc:
        parser.error(str(exc))


def print_result_line(i, frame, result):
    label = f" | {frame.label}" if frame.label else ""
    print(f"[{i:3d}] angle={frame.angle:6.1f} smoothed={result.angle:6.1f} "
          f"state={result.state.value:<7} count={result.count}{label}")


def run_self_test(counter, verbose=False):
    failed = 0
    for make in BUILTIN_SCENARIOS:
        scenario = make()
        print(f"Running {scenario.name} test...")
        result = run_scenario(scenario, counter, on_frame=print_result_line if verbose else None)
        if result.passed:
            print(f"PASSED {result.name}: got {result.actual}")
        else:
            failed += 1
            print(f"FAILED {result.name}: expected {result.expected}, got {result.actual}")
    return 1 if failed else 0


def run_simulation(counter, angles_text, frame_delay_ms, parser):
    try:
        frames = parse_angles(angles_text)
    except ValueError as exc:
        parser.error(str(exc))
    scenario = Scenario("simulate", frames, expected_reps=0, frame_delay_ms=frame_delay_ms)
    result = run_scenario(scenario, counter, on_frame=print_result_line)
    print(f"Final count: {result.actual} (state={result.final_state.value})")
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()

    counter = PushupCounter(build_config(args, parser))

    if args.test_info:
        info = counter.get_test_info()
        print(f"down threshold: < {info.down_threshold:.1f} deg")
        print(f"up threshold:   > {info.up_threshold:.1f} deg")
        print(f"cooldown:       {info.min_cooldown_ms:.0f} ms")
        print(f"frames/state:   {info.min_frames_in_state}")
        return 0
    if args.self_test:
        return run_self_test(counter, verbose=args.debug)
    if args.simulate is not None:
        return run_simulation(counter, args.simulate, args.frame_delay_ms, parser)

    return run_live(args, counter)


def run_live(args, counter):
    from ultralytics import YOLO

    from .pose import ensure_model_path, get_keypoints_dict

    window_name = "Push-up Counter"
    paused = False
    button_rect = (0, 0, 0, 0)

    def on_mouse(event, x, y, flags, userdata):
        nonlocal paused
        if event == cv2.EVENT_LBUTTONDOWN:
            x1, y1, x2, y2 = button_rect
            if x1 <= x <= x2 and y1 <= y <= y2:
                paused = not paused

    model_path = ensure_model_path(Path(args.model))
    print(f"Loading model: {model_path}")
    model = YOLO(str(model_path))

    def open_camera(camera_index, backend_choice):
        if backend_choice == "avfoundation" and sys.platform == "darwin":
            print(f"Opening camera index {camera_index} with backend=avfoundation")
            return cv2.VideoCapture(camera_index, cv2.CAP_AVFOUNDATION)
        print(f"Opening camera index {camera_index} with backend={backend_choice}")
        return cv2.VideoCapture(camera_index)

    backend_choice = "avfoundation" if sys.platform == "darwin" else "default"
    if args.backend is not None:
        backend_choice = args.backend
    if args.video is None:
        cap = open_camera(args.camera, backend_choice)
        if not cap.isOpened() and backend_choice == "avfoundation":
            print("AVFoundation open failed, retrying with default backend...")
            cap = open_camera(args.camera, "default")
    else:
        cap = cv2.VideoCapture(args.video)

    if not cap.isOpened():
        print("Error: Could not open video source.")
        return 1
    width = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
    height = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
    fps = cap.get(cv2.CAP_PROP_FPS)
    print(f"cap.isOpened()={cap.isOpened()} size={int(width)}x{int(height)} fps={fps:.1f}")

    cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
    cv2.setMouseCallback(window_name, on_mouse)
    print("Press 'q' to quit, 'r' to reset, space to pause.")

    last_frame = None
    last_kp_dict = None
    last_result = None
    consecutive_failures = 0
    last_fail_log = 0.0

    try:
        while True:
            if not paused:
                ret, frame = cap.read()
                if not ret or frame is None:
                    if args.video is not None:
                        break
                    consecutive_failures += 1
                    now = time.time()
                    if (now - last_fail_log) > 1.0:
                        print("cap.read() failed; keeping window open; press q to quit")
                        last_fail_log = now
                    if consecutive_failures > 30:
                        print("Reopening camera after 30 consecutive failures...")
                        cap.release()
                        cap = open_camera(args.camera, backend_choice)
                        consecutive_failures = 0
                    last_frame = None
                    last_kp_dict = None
                else:
                    consecutive_failures = 0
                    last_frame = frame.copy()

                    results = model(frame, verbose=False)
                    kp_dict = get_keypoints_dict(results[0])
                    last_kp_dict = kp_dict

                    prev_quality = counter.last_quality
                    last_result = counter.process_keypoints(kp_dict)
                    quality = last_result.last_quality
                    if quality is not None and quality is not prev_quality:
                        if quality.met_depth_requirement:
                            print(f"Rep {last_result.count} (depth {quality.depth_achieved_px:.0f}px)")
                        elif args.debug:
                            print(f"Shallow rep ignored (depth {quality.depth_achieved_px:.0f}px)")

            if last_frame is None:
                frame = np.zeros((480, 640, 3), dtype=np.uint8)
                cv2.putText(frame, "NO FRAME", (10, 200),
                            cv2.FONT_HERSHEY_SIMPLEX, 1.4, (0, 0, 255), 3)
            else:
                frame = last_frame.copy()
                overlay.draw_arms(frame, last_kp_dict, counter.config.min_confidence)

            if last_result is not None:
                frame = overlay.draw_overlay(frame, last_result, debug=args.debug)

            if paused:
                overlay.draw_paused_label(frame)

            button_rect = overlay.draw_pause_button(frame, paused)

            cv2.imshow(window_name, frame)
            key = cv2.waitKey(1) & 0xFF
            if key == 32:
                paused = not paused
            elif key == ord("r"):
                counter.reset()
                last_result = None
                print("Counter reset.")
            elif key == ord("q"):
                break
    finally:
        cap.release()
        cv2.destroyAllWindows()
        print(f"Finished. Total push-ups: {counter.count}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
