from __future__ import annotations

import argparse
import contextlib
import dataclasses
import logging
import os
import platform
import sys
import time

import cv2

# Allow running without installing the package (repo-local usage).
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(REPO_ROOT, "src")
if SRC_ROOT not in sys.path:
    sys.path.insert(0, SRC_ROOT)

from musicmotion_controls.arbiter import FIST_GESTURE  # noqa: E402
from musicmotion_controls.controls import Button, Slider, Wheel  # noqa: E402
from musicmotion_controls.detector import GestureDetector  # noqa: E402
from musicmotion_controls.drawing import draw_text  # noqa: E402
from musicmotion_controls.mixing import Mixer  # noqa: E402
from musicmotion_controls.panel import ControlPanel  # noqa: E402
from musicmotion_controls.signal_buffer import ExtrapolationPolicy  # noqa: E402
from musicmotion_controls.tracker import DualHandTracker  # noqa: E402
from musicmotion_controls.types import HandState  # noqa: E402
from musicmotion_controls.utils import now_ms  # noqa: E402
from musicmotion_controls.worker import PerceptionWorker  # noqa: E402


logger = logging.getLogger("mixer_demo")

WINDOW_NAME = "musicmotion - mixer"
EFFECTS = ("reverb", "delay", "filter")


class MouseHand:
    """Mouse stand-in for one hand: position follows the pointer, a held button is a fist."""

    def __init__(self) -> None:
        self.position = None
        self.pressed = False

    def on_mouse(self, event, x, y, flags, param) -> None:
        self.position = (float(x), float(y))
        if event == cv2.EVENT_LBUTTONDOWN:
            self.pressed = True
        elif event == cv2.EVENT_LBUTTONUP:
            self.pressed = False

    def hand_state(self) -> HandState:
        return HandState(position=self.position, gesture=FIST_GESTURE if self.pressed else "")


def build_panel(width: int, height: int, mixer: Mixer) -> ControlPanel:
    """Loop faders top-left, sample pads bottom-left, effect wheels in a right-hand column."""
    pad = int(0.08 * min(width, height))
    split_x = int(width * 0.68)
    split_y = int(height * 0.62)
    panel = ControlPanel()

    n = mixer.num_loops
    for i in range(n):
        x = pad + (i + 1) * (split_x - pad) / (n + 1)
        panel.add(
            Slider(
                (x, split_y - pad / 2),
                (x, pad),
                fill=0.5 if i == 1 else 0.0,
                knob_radius=0.045 * height,
                on_change=lambda v, i=i: mixer.set_loop_volume(i, v),
            )
        )

    m = mixer.num_samples
    for i in range(m):
        panel.add(
            Button(
                (pad + (i + 1) * (split_x - pad) / (m + 1), (split_y + height - pad) / 2),
                radius=0.05 * height,
                on_toggle=lambda toggled, i=i: mixer.trigger_sample(i),
            )
        )

    for i, name in enumerate(EFFECTS):
        panel.add(
            Wheel(
                ((split_x + width - pad) / 2, pad + (i + 0.5) * (height - 2 * pad) / len(EFFECTS)),
                inner_radius=0.06 * height,
                outer_radius=0.11 * height,
                fill=0.5 if name == "filter" else 0.0,
                rest_fill=0.5 if name == "filter" else None,
                on_change=lambda v, name=name: mixer.set_effect(name, v),
            )
        )
    return panel


def main() -> int:
    ap = argparse.ArgumentParser(description="Hand-gesture mixer: grab sliders, pads and wheels with a fist.")
    ap.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    ap.add_argument("--width", type=int, default=1280, help="Capture width (best effort)")
    ap.add_argument("--height", type=int, default=720, help="Capture height (best effort)")
    ap.add_argument(
        "--no-mirror",
        action="store_true",
        help="Disable horizontal mirroring (default is mirrored/selfie mode)",
    )
    ap.add_argument(
        "--model",
        default="models/gesture_recognizer.task",
        help="Path to MediaPipe gesture recognizer model (auto-downloaded if missing)",
    )
    ap.add_argument(
        "--policy",
        choices=[p.value for p in ExtrapolationPolicy],
        default=ExtrapolationPolicy.QUADRATIC.value,
        help="Hand position extrapolation policy",
    )
    ap.add_argument("--buffer", type=int, default=3, help="Observations kept per hand")
    ap.add_argument("--mouse", action="store_true", help="Let the mouse drive the right-hand slot")
    ap.add_argument("--no-audio", action="store_true", help="Run without opening an audio stream")
    ap.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

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

    mirror = not args.no_mirror
    tracker = DualHandTracker(capacity=args.buffer, policy=args.policy)
    mixer = Mixer()
    panel = None

    mouse = MouseHand() if args.mouse else None
    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    if mouse is not None:
        cv2.setMouseCallback(WINDOW_NAME, mouse.on_mouse)

    # sounddevice is only imported when audio is enabled.
    if args.no_audio:
        output = contextlib.nullcontext()
    else:
        from musicmotion_controls.audio import MixerOutput

        output = MixerOutput(mixer)

    last_t = time.time()
    fps = 0.0
    recognize_ms = 0.0

    with GestureDetector(model_path=args.model) as detector, PerceptionWorker(detector) as worker, output:
        while True:
            ok, frame = cap.read()
            if not ok:
                logger.warning("camera returned no frame; stopping")
                break

            # Detect on the raw (unmirrored) frame so handedness labels remain correct.
            worker.submit(frame, now_ms())
            for res in worker.drain():
                tracker.ingest(res.frame, res.timestamp_ms)
                recognize_ms = res.recognize_ms

            display = cv2.flip(frame, 1) if mirror else frame.copy()
            fh, fw = display.shape[:2]
            if panel is None:
                panel = build_panel(fw, fh, mixer)

            state = tracker.get_two_hands_state(now_ms()).to_screen(fw, fh, mirror=mirror)
            if mouse is not None:
                state = dataclasses.replace(state, right=mouse.hand_state())

            panel.evaluate(state)
            panel.draw(display, state)

            # FPS (simple exponential smoothing)
            now = time.time()
            inst = 1.0 / max(1e-6, now - last_t)
            fps = 0.85 * fps + 0.15 * inst if fps > 0 else inst
            last_t = now

            hands = sum(1 for hs in (state.left, state.right) if hs.position is not None)
            draw_text(
                display,
                f"hands: {hands} | fps: {fps:0.1f} | recognize: {recognize_ms:0.1f} ms | q/esc quit",
                (12, 28),
            )

            cv2.imshow(WINDOW_NAME, display)
            key = cv2.waitKey(1) & 0xFF
            if key in (ord("q"), 27):
                break

    cap.release()
    cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
