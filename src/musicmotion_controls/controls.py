from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

from .arbiter import FIST_GESTURE, GrabArbiter, GrabEvent
from .geometry import Capsule, Circle, Ring
from .types import Hand, TwoHandsState, Vec2
from .utils import TAU, clamp, dist, lerp, lerp_scalar, wrap_angle


logger = logging.getLogger(__name__)


DEFAULT_DRAG = 0.1

HotZone = Union[Circle, Ring, Capsule]


class Control(ABC):
    """
    An interactive widget driven by two tracked hands.

    Subclasses define the hot zone and what grabbing/dragging/releasing does to their value;
    ownership between the two hands is resolved by a GrabArbiter.
    """

    def __init__(self, fist_gesture: str = FIST_GESTURE) -> None:
        self.hovering = False
        self._arbiter = GrabArbiter(fist_gesture)

    @property
    def active_hand(self) -> Hand:
        return self._arbiter.owner

    @property
    def grabbed(self) -> bool:
        return self._arbiter.grabbed

    @abstractmethod
    def hot_zone(self) -> HotZone:
        """Screen-space region used for the overlap test."""

    def overlaps(self, point: Vec2) -> bool:
        return self.hot_zone().contains(point)

    def evaluate(self, state: TwoHandsState) -> None:
        update = self._arbiter.resolve(state, self.overlaps)
        self.hovering = update.hovering

        if update.event is GrabEvent.GRAB:
            assert update.position is not None
            self._on_grab(update.position)
            self._on_drag(update.position)
        elif update.event is GrabEvent.HOLD:
            assert update.position is not None
            self._on_drag(update.position)
        elif update.event is GrabEvent.RELEASE:
            self._on_release()

        self._notify()

    def _on_grab(self, hand_pos: Vec2) -> None:
        pass

    def _on_drag(self, hand_pos: Vec2) -> None:
        pass

    def _on_release(self) -> None:
        pass

    def _notify(self) -> None:
        pass

    @abstractmethod
    def draw(self, frame_bgr) -> None:
        ...


class DraggablePoint(Control):
    """Free point that follows the owning hand; optionally springs back to `home` on release."""

    def __init__(
        self,
        position: Vec2,
        radius: float,
        drag: float = DEFAULT_DRAG,
        home: Optional[Vec2] = None,
        on_change: Optional[Callable[[Vec2], None]] = None,
        fist_gesture: str = FIST_GESTURE,
    ) -> None:
        super().__init__(fist_gesture)
        self.position = position
        self.radius = radius
        self.drag = drag
        self.home = home
        self.on_change = on_change

    @property
    def value(self) -> Vec2:
        return self.position

    def hot_zone(self) -> Circle:
        return Circle(self.position, self.radius)

    def _on_drag(self, hand_pos: Vec2) -> None:
        self.position = lerp(self.position, hand_pos, self.drag)

    def _on_release(self) -> None:
        if self.home is not None:
            self.position = self.home

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.position)

    def draw(self, frame_bgr) -> None:
        from .drawing import draw_circle, state_color

        draw_circle(frame_bgr, self.position, self.radius, state_color(self.hovering, self.grabbed), 2)


class Slider(Control):
    """
    Linear fader between p1 (fill 0) and p2 (fill 1).

    The owning hand is projected onto the p1-p2 segment and the fill eases toward the
    clamped projection, so it always stays within [0, 1].
    """

    def __init__(
        self,
        p1: Vec2,
        p2: Vec2,
        fill: float = 0.5,
        knob_radius: float = 20.0,
        knob_length: float = 0.0,
        drag: float = DEFAULT_DRAG,
        on_change: Optional[Callable[[float], None]] = None,
        fist_gesture: str = FIST_GESTURE,
    ) -> None:
        super().__init__(fist_gesture)
        self.p1 = p1
        self.p2 = p2
        self.fill = clamp(fill, 0.0, 1.0)
        self.knob_radius = knob_radius
        self.knob_length = knob_length
        self.drag = drag
        self.on_change = on_change

    @property
    def value(self) -> float:
        return self.fill

    def knob_pos(self) -> Vec2:
        return lerp(self.p1, self.p2, self.fill)

    def hot_zone(self) -> Capsule:
        knob = self.knob_pos()
        length = dist(self.p1, self.p2)
        if length <= 0.0 or self.knob_length <= 0.0:
            return Capsule(knob, knob, self.knob_radius)
        half = 0.5 * self.knob_length / length
        dx = (self.p2[0] - self.p1[0]) * half
        dy = (self.p2[1] - self.p1[1]) * half
        return Capsule((knob[0] - dx, knob[1] - dy), (knob[0] + dx, knob[1] + dy), self.knob_radius)

    def project(self, point: Vec2) -> Optional[float]:
        """Unclamped segment parameter of `point`, or None for a zero-length slider."""
        ax = self.p2[0] - self.p1[0]
        ay = self.p2[1] - self.p1[1]
        len_sq = ax * ax + ay * ay
        if len_sq <= 0.0:
            return None
        return ((point[0] - self.p1[0]) * ax + (point[1] - self.p1[1]) * ay) / len_sq

    def _on_drag(self, hand_pos: Vec2) -> None:
        t = self.project(hand_pos)
        if t is None:
            return
        target = clamp(t, 0.0, 1.0)
        self.fill = clamp(lerp_scalar(self.fill, target, self.drag), 0.0, 1.0)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.fill)

    def draw(self, frame_bgr) -> None:
        from .drawing import draw_circle, draw_line, state_color

        draw_line(frame_bgr, self.p1, self.p2, (160, 160, 160), 2)
        draw_line(frame_bgr, self.p1, self.knob_pos(), (40, 255, 120), 4)
        draw_circle(frame_bgr, self.knob_pos(), self.knob_radius, state_color(self.hovering, self.grabbed), 2)


class Button(Control):
    """Toggle button: flips once per grab and reports the new state through `on_toggle`."""

    def __init__(
        self,
        position: Vec2,
        radius: float,
        toggled: bool = False,
        on_toggle: Optional[Callable[[bool], None]] = None,
        fist_gesture: str = FIST_GESTURE,
    ) -> None:
        super().__init__(fist_gesture)
        self.position = position
        self.radius = radius
        self.toggled = toggled
        self.on_toggle = on_toggle

    @property
    def value(self) -> bool:
        return self.toggled

    def hot_zone(self) -> Circle:
        return Circle(self.position, self.radius)

    def _on_grab(self, hand_pos: Vec2) -> None:
        # Ownership is the latch: it only clears on release, so holding never re-fires.
        self.toggled = not self.toggled
        logger.debug("button at %s toggled -> %s", self.position, self.toggled)
        if self.on_toggle is not None:
            self.on_toggle(self.toggled)

    def draw(self, frame_bgr) -> None:
        from .drawing import OFF_COLOR, ON_COLOR, draw_circle, state_color

        draw_circle(frame_bgr, self.position, self.radius, ON_COLOR if self.toggled else OFF_COLOR, -1)
        draw_circle(frame_bgr, self.position, self.radius, state_color(self.hovering, self.grabbed), 2)


class Wheel(Control):
    """
    Rotary dial on a ring between `inner_radius` and `outer_radius`.

    Angles are measured clockwise from 12 o'clock. Per-frame angle changes are wrapped to
    (-pi, pi] and accumulated, so several turns in one grab map onto the fill continuously;
    one full `end - start` sweep covers the whole [0, 1] range.
    """

    def __init__(
        self,
        center: Vec2,
        inner_radius: float,
        outer_radius: float,
        fill: float = 0.5,
        start: float = 0.0,
        end: float = TAU,
        drag: float = DEFAULT_DRAG,
        rest_fill: Optional[float] = None,
        on_change: Optional[Callable[[float], None]] = None,
        fist_gesture: str = FIST_GESTURE,
    ) -> None:
        super().__init__(fist_gesture)
        self.center = center
        self.inner_radius = inner_radius
        self.outer_radius = outer_radius
        self.fill = clamp(fill, 0.0, 1.0)
        self.start = start
        self.end = end
        self.drag = drag
        self.rest_fill = rest_fill
        self.on_change = on_change

        self.rotation = 0.0
        self._last_angle: Optional[float] = None
        self._grab_fill = self.fill

    @property
    def value(self) -> float:
        return self.fill

    def hot_zone(self) -> Ring:
        return Ring(self.center, self.inner_radius, self.outer_radius)

    def angle_of(self, point: Vec2) -> Optional[float]:
        dx = point[0] - self.center[0]
        dy = point[1] - self.center[1]
        if dx == 0.0 and dy == 0.0:
            return None
        a = math.atan2(dx, -dy)
        if a < 0.0:
            a += TAU
        return a

    def _on_grab(self, hand_pos: Vec2) -> None:
        self._last_angle = self.angle_of(hand_pos)
        self._grab_fill = self.fill
        self.rotation = 0.0

    def _on_drag(self, hand_pos: Vec2) -> None:
        span = self.end - self.start
        angle = self.angle_of(hand_pos)
        if span == 0.0 or angle is None:
            return
        if self._last_angle is None:
            self._last_angle = angle
            return

        self.rotation += wrap_angle(angle - self._last_angle)
        self._last_angle = angle

        target = clamp(self._grab_fill + self.rotation / span, 0.0, 1.0)
        self.fill = lerp_scalar(self.fill, target, self.drag)

    def _on_release(self) -> None:
        self._last_angle = None
        if self.rest_fill is not None:
            self.fill = clamp(self.rest_fill, 0.0, 1.0)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.fill)

    def knob_pos(self) -> Vec2:
        angle = self.start + self.fill * (self.end - self.start)
        r = (self.inner_radius + self.outer_radius) / 2.0
        return (self.center[0] + math.sin(angle) * r, self.center[1] - math.cos(angle) * r)

    def draw(self, frame_bgr) -> None:
        from .drawing import draw_circle, state_color

        mid = (self.inner_radius + self.outer_radius) / 2.0
        width = max(1, int(round(self.outer_radius - self.inner_radius)))
        draw_circle(frame_bgr, self.center, mid, (90, 90, 90), width)
        knob_r = (self.outer_radius - self.inner_radius) / 2.0
        draw_circle(frame_bgr, self.knob_pos(), knob_r, (150, 150, 150), -1)
        draw_circle(
            frame_bgr,
            self.knob_pos(),
            knob_r,
            state_color(self.hovering, self.grabbed),
            3 if self.hovering else 1,
        )
