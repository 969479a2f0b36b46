from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from .signal_buffer import BUFFER_CAPACITY, ExtrapolationPolicy, HandSignalBuffer
from .types import FrameResult, Hand, HandDetection, HandState, Observation, TwoHandsState, Vec2
from .utils import now_ms


logger = logging.getLogger(__name__)


# Wrist, thumb CMC and the four finger MCPs; fingertips never enter the centroid.
PALM_LANDMARKS = (0, 1, 5, 9, 13, 17)


def palm_centroid(landmarks: Sequence[Vec2]) -> Optional[Vec2]:
    """Mean of the palm landmarks, or None when the list is too short to contain them."""
    if len(landmarks) <= max(PALM_LANDMARKS):
        return None
    xs = [landmarks[i][0] for i in PALM_LANDMARKS]
    ys = [landmarks[i][1] for i in PALM_LANDMARKS]
    n = len(PALM_LANDMARKS)
    return (sum(xs) / n, sum(ys) / n)


def frame_from_recognizer_result(result) -> FrameResult:
    """
    Convert a MediaPipe Tasks `GestureRecognizerResult` into a FrameResult.

    Missing attributes read as empty; a partially filled
    result should degrade to fewer detections rather than raise.
    """

    hand_landmarks_list = getattr(result, "hand_landmarks", None) or []
    handedness_list = getattr(result, "handedness", None) or []
    gestures_list = getattr(result, "gestures", None) or []

    detections: List[HandDetection] = []
    for i, landmarks in enumerate(hand_landmarks_list):
        label = ""
        if i < len(handedness_list) and handedness_list[i]:
            cat0 = handedness_list[i][0]
            label = getattr(cat0, "category_name", None) or getattr(cat0, "display_name", None) or ""

        gestures: List[str] = []
        if i < len(gestures_list) and gestures_list[i]:
            gestures = [getattr(c, "category_name", "") or "" for c in gestures_list[i]]

        points = [(float(lm.x), float(lm.y)) for lm in landmarks]
        detections.append(HandDetection(handedness=label, landmarks=points, gestures=gestures))

    return FrameResult(detections=detections)


class DualHandTracker:
    """
    Splits each recognizer frame into a left and a right HandSignalBuffer.

    A hand that is missing from a frame (or reported with too few landmarks) has its
    buffer cleared, so losing tracking shows up as "no position" instead of a frozen one.
    """

    def __init__(
        self,
        capacity: int = BUFFER_CAPACITY,
        policy: Union[ExtrapolationPolicy, str] = ExtrapolationPolicy.QUADRATIC,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self._clock = clock
        self._buffers: Dict[Hand, HandSignalBuffer] = {
            Hand.LEFT: HandSignalBuffer(capacity=capacity, policy=policy),
            Hand.RIGHT: HandSignalBuffer(capacity=capacity, policy=policy),
        }

    @property
    def left(self) -> HandSignalBuffer:
        return self._buffers[Hand.LEFT]

    @property
    def right(self) -> HandSignalBuffer:
        return self._buffers[Hand.RIGHT]

    def buffer(self, hand: Hand) -> HandSignalBuffer:
        return self._buffers[hand]

    def ingest(self, frame: FrameResult, timestamp_ms: Optional[float] = None) -> None:
        ts = self._clock() if timestamp_ms is None else float(timestamp_ms)

        firsts: Dict[Hand, HandDetection] = {}
        for det in frame.detections:
            hand = _hand_from_label(det.handedness)
            if hand is None:
                continue
            if hand in firsts:
                logger.debug("duplicate %s detection ignored", hand.value)
                continue
            firsts[hand] = det

        # Build both observations before mutating anything.
        updates: Dict[Hand, Optional[Observation]] = {}
        for hand in (Hand.LEFT, Hand.RIGHT):
            det = firsts.get(hand)
            pos = palm_centroid(det.landmarks) if det is not None else None
            updates[hand] = None if pos is None else Observation(pos, det.top_gesture, ts)

        for hand, obs in updates.items():
            if obs is None:
                self._buffers[hand].clear()
            else:
                self._buffers[hand].append(obs)

    def hand_state(self, hand: Hand, now_ms: Optional[float] = None) -> HandState:
        now = self._clock() if now_ms is None else now_ms
        buf = self._buffers[hand]
        latest = buf.latest()
        return HandState(
            position=buf.extrapolate(now),
            gesture=latest.gesture if latest is not None else "",
        )

    def get_two_hands_state(self, now_ms: Optional[float] = None) -> TwoHandsState:
        now = self._clock() if now_ms is None else now_ms
        return TwoHandsState(
            left=self.hand_state(Hand.LEFT, now),
            right=self.hand_state(Hand.RIGHT, now),
        )


def _hand_from_label(label: str) -> Optional[Hand]:
    label = (label or "").strip().lower()
    if label == "left":
        return Hand.LEFT
    if label == "right":
        return Hand.RIGHT
    return None
