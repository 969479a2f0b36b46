"""
Hot-zone shapes used for hand/control overlap tests.

All shapes live in the same screen space as the controls. They are exposed so
that other input sources (e.g. a mouse fallback) can run the exact test a hand does.
"""

from __future__ import annotations

from dataclasses import dataclass

from .types import Vec2
from .utils import clamp, dist


@dataclass(frozen=True)
class Circle:
    center: Vec2
    radius: float

    def contains(self, point: Vec2) -> bool:
        return dist(self.center, point) <= self.radius


@dataclass(frozen=True)
class Ring:
    center: Vec2
    inner_radius: float
    outer_radius: float

    def contains(self, point: Vec2) -> bool:
        d = dist(self.center, point)
        return self.inner_radius <= d <= self.outer_radius


@dataclass(frozen=True)
class Capsule:
    """Segment a-b swept by a circle of `radius`. With a == b this is a circle."""

    a: Vec2
    b: Vec2
    radius: float

    def closest_point(self, point: Vec2) -> Vec2:
        abx = self.b[0] - self.a[0]
        aby = self.b[1] - self.a[1]
        len_sq = abx * abx + aby * aby
        if len_sq <= 0.0:
            return self.a
        t = ((point[0] - self.a[0]) * abx + (point[1] - self.a[1]) * aby) / len_sq
        t = clamp(t, 0.0, 1.0)
        return (self.a[0] + abx * t, self.a[1] + aby * t)

    def contains(self, point: Vec2) -> bool:
        return dist(self.closest_point(point), point) <= self.radius
