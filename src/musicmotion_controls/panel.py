from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .controls import Control
from .types import Hand, TwoHandsState


HAND_COLORS = {
    Hand.LEFT: (255, 120, 40),
    Hand.RIGHT: (0, 0, 255),
}


class ControlPanel:
    """Holds the UI's controls and feeds every one of them the same two-hand state each tick."""

    def __init__(self, controls: Optional[Iterable[Control]] = None) -> None:
        self.controls: List[Control] = list(controls or [])
        self.last_state = TwoHandsState()

    def add(self, control: Control) -> Control:
        self.controls.append(control)
        return control

    def __iter__(self) -> Iterator[Control]:
        return iter(self.controls)

    def __len__(self) -> int:
        return len(self.controls)

    def evaluate(self, state: TwoHandsState) -> None:
        self.last_state = state
        for control in self.controls:
            control.evaluate(state)

    def grabbed_by(self, hand: Hand) -> List[Control]:
        return [c for c in self.controls if c.active_hand is hand]

    def hovered(self) -> List[Control]:
        return [c for c in self.controls if c.hovering]

    def draw(self, frame_bgr, state: Optional[TwoHandsState] = None):
        from .drawing import draw_crosshair, draw_text

        for control in self.controls:
            control.draw(frame_bgr)

        state = self.last_state if state is None else state
        for hand in (Hand.LEFT, Hand.RIGHT):
            hs = state.hand(hand)
            if hs.position is None:
                continue
            draw_crosshair(frame_bgr, hs.position, HAND_COLORS[hand], radius=6)
            if hs.gesture:
                x, y = hs.position
                draw_text(frame_bgr, hs.gesture, (int(x) + 10, int(y) - 10), HAND_COLORS[hand], 0.5, 1)
        return frame_bgr
