from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

from .types import FrameResult
from .utils import now_ms


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerceptionResult:
    frame: FrameResult
    timestamp_ms: float  # capture time of the camera frame
    recognize_ms: float


class PerceptionWorker:
    """
    Runs the recognizer on its own thread.

    Frames go in through `submit()`, results come back through `drain()`. Only the newest
    pending frame is kept; the thread never touches tracker or control state.
    """

    def __init__(self, detector, clock: Callable[[], float] = now_ms) -> None:
        self._detector = detector
        self._clock = clock
        self._inbox: "queue.Queue[Tuple[object, float]]" = queue.Queue(maxsize=1)
        self._outbox: "queue.SimpleQueue[PerceptionResult]" = queue.SimpleQueue()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.dropped_frames = 0
        self.failed_frames = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="perception", daemon=True)
        self._thread.start()
        logger.info("perception worker started")

    def stop(self, timeout_s: float = 1.0) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout_s)
        self._thread = None
        logger.info(
            "perception worker stopped (dropped=%d, failed=%d)", self.dropped_frames, self.failed_frames
        )

    def __enter__(self) -> "PerceptionWorker":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def submit(self, frame, timestamp_ms: float) -> None:
        item = (frame, timestamp_ms)
        try:
            self._inbox.put_nowait(item)
            return
        except queue.Full:
            pass
        try:
            self._inbox.get_nowait()
            self.dropped_frames += 1
        except queue.Empty:
            pass
        try:
            self._inbox.put_nowait(item)
        except queue.Full:
            self.dropped_frames += 1

    def drain(self) -> Iterator[PerceptionResult]:
        while True:
            try:
                yield self._outbox.get_nowait()
            except queue.Empty:
                return

    def process(self, frame, timestamp_ms: float) -> Optional[PerceptionResult]:
        """Recognize one frame synchronously; returns None when the recognizer fails."""
        t0 = self._clock()
        try:
            result = self._detector.recognize(frame, timestamp_ms)
        except Exception:
            self.failed_frames += 1
            logger.warning("recognizer failed on frame at %.1f ms", timestamp_ms, exc_info=True)
            return None
        return PerceptionResult(result, timestamp_ms, self._clock() - t0)

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                frame, ts = self._inbox.get(timeout=0.05)
            except queue.Empty:
                continue
            out = self.process(frame, ts)
            if out is not None:
                self._outbox.put(out)
