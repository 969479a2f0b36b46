from __future__ import annotations

import logging
import math
from collections import deque
from enum import Enum
from typing import Deque, Iterator, Optional, Union

from .types import Observation, Vec2
from .utils import lerp


logger = logging.getLogger(__name__)


# --- Tuning knobs ---
BUFFER_CAPACITY = 3
# Acceleration ceiling in normalized units per ms^2.
# 3e-6 keeps the quadratic term under ~0.0014 over a 30 ms horizon.
MAX_ACCELERATION = 3e-6
EMA_ALPHA = 0.3


class ExtrapolationPolicy(Enum):
    QUADRATIC = "quadratic"
    EMA = "ema"


class HandSignalBuffer:
    """
    Bounded history of observations for one hand, plus latency-compensating extrapolation.

    Observations are kept oldest-first and evicted FIFO past `capacity`.
    `extrapolate(now_ms)` predicts where the hand is at `now_ms`:

    - QUADRATIC: 1 sample -> as-is, 2 samples -> linear, 3+ -> quadratic with a clamped acceleration.
    - EMA: exponential moving averages of position and velocity, extrapolated linearly.

    Both policies return None on an empty buffer and the raw position for a single sample.
    """

    def __init__(
        self,
        capacity: int = BUFFER_CAPACITY,
        policy: Union[ExtrapolationPolicy, str] = ExtrapolationPolicy.QUADRATIC,
        ema_alpha: float = EMA_ALPHA,
        max_acceleration: float = MAX_ACCELERATION,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if not (0.0 < ema_alpha <= 1.0):
            raise ValueError(f"ema_alpha must be in (0, 1], got {ema_alpha}")
        if max_acceleration < 0.0:
            raise ValueError(f"max_acceleration must be >= 0, got {max_acceleration}")

        self.capacity = capacity
        self.policy = ExtrapolationPolicy(policy)
        self.ema_alpha = ema_alpha
        self.max_acceleration = max_acceleration

        self._samples: Deque[Observation] = deque(maxlen=capacity)
        self._ema_pos: Optional[Vec2] = None
        self._ema_vel: Optional[Vec2] = None

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self._samples)

    def append(self, observation: Observation) -> None:
        prev = self._samples[-1] if self._samples else None
        self._samples.append(observation)
        self._update_ema(prev, observation)

    def clear(self) -> None:
        if self._samples:
            logger.debug("hand buffer cleared (%d samples dropped)", len(self._samples))
        self._samples.clear()
        self._ema_pos = None
        self._ema_vel = None

    def latest(self) -> Optional[Observation]:
        return self._samples[-1] if self._samples else None

    def extrapolate(self, now_ms: float) -> Optional[Vec2]:
        if not self._samples:
            return None
        latest = self._samples[-1]
        if latest.position is None:
            return None
        if len(self._samples) == 1:
            return latest.position

        horizon = max(0.0, now_ms - latest.timestamp_ms)
        if self.policy is ExtrapolationPolicy.EMA:
            return self._extrapolate_ema(latest, horizon)
        if len(self._samples) == 2:
            return self._extrapolate_linear(horizon)
        return self._extrapolate_quadratic(horizon)

    def _extrapolate_linear(self, horizon: float) -> Vec2:
        p0, p1 = self._samples[-2], self._samples[-1]
        assert p1.position is not None
        if p0.position is None:
            return p1.position
        dt = p1.timestamp_ms - p0.timestamp_ms
        if dt <= 0:
            return p1.position

        vx = (p1.position[0] - p0.position[0]) / dt
        vy = (p1.position[1] - p0.position[1]) / dt
        return (p1.position[0] + vx * horizon, p1.position[1] + vy * horizon)

    def _extrapolate_quadratic(self, horizon: float) -> Vec2:
        s0, s1, s2 = self._samples[-3], self._samples[-2], self._samples[-1]
        p2 = s2.position
        assert p2 is not None
        p0, p1 = s0.position, s1.position
        if p0 is None or p1 is None:
            return p2

        dt1 = s1.timestamp_ms - s0.timestamp_ms
        dt2 = s2.timestamp_ms - s1.timestamp_ms
        if dt1 <= 0 or dt2 <= 0:
            return p2

        v1x = (p1[0] - p0[0]) / dt1
        v1y = (p1[1] - p0[1]) / dt1
        v2x = (p2[0] - p1[0]) / dt2
        v2y = (p2[1] - p1[1]) / dt2

        mean_dt = (dt1 + dt2) / 2.0
        ax = (v2x - v1x) / mean_dt
        ay = (v2y - v1y) / mean_dt

        # Acceleration magnitude is capped at max_acceleration.
        mag = math.hypot(ax, ay)
        if mag > self.max_acceleration:
            scale = self.max_acceleration / mag
            ax *= scale
            ay *= scale

        h2 = horizon * horizon
        return (
            p2[0] + v2x * horizon + 0.5 * ax * h2,
            p2[1] + v2y * horizon + 0.5 * ay * h2,
        )

    def _extrapolate_ema(self, latest: Observation, horizon: float) -> Vec2:
        assert latest.position is not None
        if self._ema_pos is None or self._ema_vel is None or not self._is_monotonic():
            return latest.position
        return (
            self._ema_pos[0] + self._ema_vel[0] * horizon,
            self._ema_pos[1] + self._ema_vel[1] * horizon,
        )

    def _is_monotonic(self) -> bool:
        samples = list(self._samples)
        return all(b.timestamp_ms > a.timestamp_ms for a, b in zip(samples, samples[1:]))

    def _update_ema(self, prev: Optional[Observation], obs: Observation) -> None:
        if obs.position is None:
            self._ema_pos = None
            self._ema_vel = None
            return
        if prev is None or prev.position is None or self._ema_pos is None:
            self._ema_pos = obs.position
            self._ema_vel = None
            return

        a = self.ema_alpha
        dt = obs.timestamp_ms - prev.timestamp_ms
        if dt > 0:
            inst = (
                (obs.position[0] - prev.position[0]) / dt,
                (obs.position[1] - prev.position[1]) / dt,
            )
            self._ema_vel = inst if self._ema_vel is None else lerp(self._ema_vel, inst, a)
        self._ema_pos = lerp(self._ema_pos, obs.position, a)
