from __future__ import annotations

import math
import time

from .types import Vec2


TAU = 2.0 * math.pi


def now_ms() -> float:
    """Monotonic clock in milliseconds; shared by observation timestamps and extrapolation."""
    return time.monotonic() * 1000.0


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def lerp_scalar(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def lerp(a: Vec2, b: Vec2, t: float) -> Vec2:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def dist(a: Vec2, b: Vec2) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def wrap_angle(delta: float) -> float:
    """Wrap an angular difference to (-pi, pi]."""
    delta = math.fmod(delta + math.pi, TAU)
    if delta <= 0.0:
        delta += TAU
    return delta - math.pi
