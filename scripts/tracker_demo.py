from __future__ import annotations

import argparse
import logging
import os
import platform
import sys

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from musicmotion_controls.detector import GestureDetector  # noqa: E402
from musicmotion_controls.drawing import draw_circle, draw_point, draw_text  # noqa: E402
from musicmotion_controls.signal_buffer import ExtrapolationPolicy  # noqa: E402
from musicmotion_controls.tracker import DualHandTracker  # noqa: E402
from musicmotion_controls.types import Hand  # noqa: E402
from musicmotion_controls.utils import now_ms  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Raw vs. extrapolated palm position, both policies side by side.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument("--model", default="models/gesture_recognizer.task", help="Gesture recognizer model path")
    ap.add_argument("--buffer", type=int, default=3, help="Observations kept per hand")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if platform.system() == "Darwin":
        cap = cv2.VideoCapture(args.camera, cv2.CAP_AVFOUNDATION)
    else:
        cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        raise RuntimeError(
            f"Could not open camera index {args.camera}. "
            "On macOS: System Settings -> Privacy & Security -> Camera -> allow your terminal/Cursor."
        )

    cap.set(cv2.CAP_PROP_FRAME_WIDTH, args.width)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, args.height)

    trackers = {
        ExtrapolationPolicy.QUADRATIC: (DualHandTracker(args.buffer, ExtrapolationPolicy.QUADRATIC), (0, 200, 255)),
        ExtrapolationPolicy.EMA: (DualHandTracker(args.buffer, ExtrapolationPolicy.EMA), (255, 120, 40)),
    }

    with GestureDetector(model_path=args.model) as detector:
        while True:
            ok, frame = cap.read()
            if not ok:
                break

            ts = now_ms()
            result = detector.recognize(frame, ts)
            for tracker, _ in trackers.values():
                tracker.ingest(result, ts)

            frame = cv2.flip(frame, 1)
            fh, fw = frame.shape[:2]
            now = now_ms()

            raw_tracker = trackers[ExtrapolationPolicy.QUADRATIC][0]
            for hand in (Hand.LEFT, Hand.RIGHT):
                latest = raw_tracker.buffer(hand).latest()
                if latest is not None and latest.position is not None:
                    x, y = latest.position
                    draw_point(frame, ((1.0 - x) * fw, y * fh), (255, 255, 255), 6)

            for tracker, color in trackers.values():
                state = tracker.get_two_hands_state(now).to_screen(fw, fh, mirror=True)
                for hs in (state.left, state.right):
                    if hs.position is not None:
                        draw_circle(frame, hs.position, 14, color, 2)

            draw_text(frame, "white: raw | orange: quadratic | blue: ema | q to quit", (12, 28))
            cv2.imshow("musicmotion - tracker", frame)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break

    cap.release()
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
