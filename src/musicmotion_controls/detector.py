from __future__ import annotations

import logging
from dataclasses import dataclass

import cv2

from .model_assets import ensure_gesture_recognizer_task
from .tracker import frame_from_recognizer_result
from .types import FrameResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TasksBackend:
    mp: object
    recognizer: object


def _create_tasks_backend(
    model_path: str,
    num_hands: int,
    min_detection_confidence: float,
    min_presence_confidence: float,
    min_tracking_confidence: float,
) -> _TasksBackend:
    import mediapipe as mp  # type: ignore

    # Import locations can differ slightly across builds.
    try:
        from mediapipe.tasks.python import BaseOptions  # type: ignore
        from mediapipe.tasks.python.vision import (  # type: ignore
            GestureRecognizer,
            GestureRecognizerOptions,
            RunningMode,
        )
    except ImportError:  # pragma: no cover
        from mediapipe.tasks import python as mp_python  # type: ignore

        BaseOptions = mp_python.BaseOptions
        vision = mp_python.vision
        GestureRecognizer = vision.GestureRecognizer
        GestureRecognizerOptions = vision.GestureRecognizerOptions
        RunningMode = vision.RunningMode

    model_path = ensure_gesture_recognizer_task(model_path)

    options = GestureRecognizerOptions(
        base_options=BaseOptions(model_asset_path=model_path),
        running_mode=RunningMode.VIDEO,
        num_hands=num_hands,
        min_hand_detection_confidence=min_detection_confidence,
        min_hand_presence_confidence=min_presence_confidence,
        min_tracking_confidence=min_tracking_confidence,
    )
    recognizer = GestureRecognizer.create_from_options(options)
    return _TasksBackend(mp=mp, recognizer=recognizer)


class GestureDetector:
    """
    Hand landmarks + gesture labels from the MediaPipe Tasks GestureRecognizer.

    Input frames are expected as **BGR** images (OpenCV default). Results come back as
    FrameResult with landmarks in normalized image coordinates.
    """

    def __init__(
        self,
        num_hands: int = 2,
        min_detection_confidence: float = 0.5,
        min_presence_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_path: str = "models/gesture_recognizer.task",
    ) -> None:
        try:
            self._tasks = _create_tasks_backend(
                model_path=model_path,
                num_hands=num_hands,
                min_detection_confidence=min_detection_confidence,
                min_presence_confidence=min_presence_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
        except RuntimeError:
            raise
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "Could not initialize the MediaPipe GestureRecognizer.\n"
                "Check that `mediapipe` is installed and exposes the Tasks vision API:\n"
                "  python3 -c \"import mediapipe as mp; print(mp.__version__)\""
            ) from e
        self._last_timestamp_ms = -1
        logger.info("gesture recognizer ready (num_hands=%d)", num_hands)

    def close(self) -> None:
        self._tasks.recognizer.close()

    def __enter__(self) -> "GestureDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def recognize(self, frame_bgr, timestamp_ms: float) -> FrameResult:
        mp = self._tasks.mp
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)

        # VIDEO mode rejects timestamps that do not strictly increase.
        ts = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = ts

        result = self._tasks.recognizer.recognize_for_video(mp_image, ts)
        return frame_from_recognizer_result(result)
