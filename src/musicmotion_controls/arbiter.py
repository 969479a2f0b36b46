from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .types import Hand, TwoHandsState, Vec2


logger = logging.getLogger(__name__)


FIST_GESTURE = "Closed_Fist"


class GrabEvent(Enum):
    IDLE = "idle"
    GRAB = "grab"
    HOLD = "hold"
    RELEASE = "release"


@dataclass(frozen=True)
class GrabUpdate:
    event: GrabEvent
    hand: Hand
    position: Optional[Vec2]  # owner's position for GRAB/HOLD
    hovering: bool


class GrabArbiter:
    """
    Decides which hand (if any) owns a control.

    - Free control: the left hand is checked first, then the right; the first hand that
      shows the fist gesture over the hot zone takes ownership.
    - Owned control: only the owner drives it; the other hand can hover but never steal it.
    - The owner releases as soon as it stops making a fist or loses tracking.
    """

    def __init__(self, fist_gesture: str = FIST_GESTURE) -> None:
        self.fist_gesture = fist_gesture
        self.owner: Hand = Hand.NONE

    @property
    def grabbed(self) -> bool:
        return self.owner is not Hand.NONE

    def reset(self) -> None:
        self.owner = Hand.NONE

    def resolve(self, state: TwoHandsState, overlaps: Callable[[Vec2], bool]) -> GrabUpdate:
        over = {}
        for hand in (Hand.LEFT, Hand.RIGHT):
            pos = state.hand(hand).position
            over[hand] = pos is not None and overlaps(pos)
        hovering = over[Hand.LEFT] or over[Hand.RIGHT]

        if self.owner is Hand.NONE:
            for hand in (Hand.LEFT, Hand.RIGHT):
                hs = state.hand(hand)
                if over[hand] and hs.gesture == self.fist_gesture:
                    self.owner = hand
                    logger.debug("grabbed by %s hand", hand.value)
                    return GrabUpdate(GrabEvent.GRAB, hand, hs.position, hovering)
            return GrabUpdate(GrabEvent.IDLE, Hand.NONE, None, hovering)

        owner = self.owner
        hs = state.hand(owner)
        if hs.position is None or hs.gesture != self.fist_gesture:
            self.owner = Hand.NONE
            logger.debug("released by %s hand", owner.value)
            return GrabUpdate(GrabEvent.RELEASE, owner, None, hovering)
        return GrabUpdate(GrabEvent.HOLD, owner, hs.position, hovering)
