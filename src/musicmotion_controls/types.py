from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


Vec2 = Tuple[float, float]


class Hand(Enum):
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


@dataclass(frozen=True)
class Observation:
    """One sample of a tracked hand: normalized position, gesture label, monotonic time."""

    position: Optional[Vec2]
    gesture: str
    timestamp_ms: float


@dataclass(frozen=True)
class HandDetection:
    """A single hand as reported by the recognizer for one frame."""

    handedness: str  # "Left" / "Right" as reported; compared case-insensitively
    landmarks: List[Vec2]  # normalized image coordinates, usually 21 points
    gestures: List[str] = field(default_factory=list)  # ranked category names

    @property
    def top_gesture(self) -> str:
        return self.gestures[0] if self.gestures else ""


@dataclass(frozen=True)
class FrameResult:
    detections: List[HandDetection] = field(default_factory=list)


@dataclass(frozen=True)
class HandState:
    position: Optional[Vec2] = None
    gesture: str = ""


@dataclass(frozen=True)
class TwoHandsState:
    """Extrapolated position + latest gesture for both hands."""

    left: HandState = field(default_factory=HandState)
    right: HandState = field(default_factory=HandState)

    def hand(self, which: Hand) -> HandState:
        if which is Hand.LEFT:
            return self.left
        if which is Hand.RIGHT:
            return self.right
        return HandState()

    def to_screen(self, width: float, height: float, mirror: bool = True) -> "TwoHandsState":
        """
        Map both positions from normalized [0,1]² to screen pixels.

        With `mirror=True` x is flipped so the overlay matches a selfie-view display.
        Handedness labels are kept as reported.
        """

        def _map(state: HandState) -> HandState:
            if state.position is None:
                return state
            x, y = state.position
            if mirror:
                x = 1.0 - x
            return HandState(position=(x * width, y * height), gesture=state.gesture)

        return TwoHandsState(left=_map(self.left), right=_map(self.right))
