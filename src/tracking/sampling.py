"""Adaptive sampling: which position samples trigger a full re-evaluation.

Admission rules (any one suffices):
    - nothing has been evaluated yet in this session,
    - at least `interval_s` seconds have passed since the last evaluation,
    - the traveler moved at least `movement_trigger_km` from the last
      evaluated point.

After each evaluation the interval is recomputed from the fresh ETA:
    - far away (eta > factor * alert_time): eta in seconds / factor,
    - close: previous interval / factor,
and never drops below `min_interval_s`.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from .geo import distance_km
from .models import Coordinate, PositionSample

LOG = logging.getLogger("tracking.sampling")


class AdaptiveSampler:
    def __init__(
        self,
        min_interval_s: int = 30,
        movement_trigger_km: float = 0.05,
        factor: int = 3,
    ) -> None:
        if min_interval_s <= 0:
            raise ValueError(f"min_interval_s must be positive, got {min_interval_s}")
        if factor <= 1:
            raise ValueError(f"factor must be > 1, got {factor}")
        self.min_interval_s = int(min_interval_s)
        self.movement_trigger_km = float(movement_trigger_km)
        self.factor = int(factor)
        self.interval_s: int = self.min_interval_s
        self.last_eval_ts_ns: Optional[int] = None
        self.last_eval_location: Optional[Coordinate] = None

    def reset(self, interval_s: Optional[int] = None) -> None:
        """Forget the last evaluation; the next sample will be admitted."""
        self.last_eval_ts_ns = None
        self.last_eval_location = None
        if interval_s is not None:
            self.interval_s = max(int(interval_s), self.min_interval_s)

    def should_admit(self, sample: PositionSample) -> bool:
        if self.last_eval_ts_ns is None:
            return True

        elapsed_s = (sample.ts_ns - self.last_eval_ts_ns) / 1e9
        if elapsed_s >= self.interval_s:
            return True

        if self.last_eval_location is None:
            return True
        moved_km = distance_km(self.last_eval_location, sample)
        if moved_km >= self.movement_trigger_km:
            LOG.debug("movement trigger: moved %.3f km after %.1f s", moved_km, elapsed_s)
            return True
        return False

    def elapsed_s(self, ts_ns: int) -> Optional[float]:
        """Seconds since the last evaluation, or None before the first one."""
        if self.last_eval_ts_ns is None:
            return None
        return (ts_ns - self.last_eval_ts_ns) / 1e9

    def mark_evaluated(self, location: Coordinate, ts_ns: int) -> None:
        self.last_eval_location = location
        self.last_eval_ts_ns = ts_ns

    def compute_interval(self, eta_min: float, alert_time_min: float, previous_s: int) -> int:
        """Interval (seconds) until the next mandatory evaluation."""
        if eta_min > self.factor * alert_time_min:
            # Tolerate float noise from the haversine (119.99999 min -> 2400 s).
            interval = math.floor(eta_min * 60.0 / self.factor + 1e-6)
        else:
            interval = previous_s // self.factor
        return max(int(interval), self.min_interval_s)

    def next_interval(self, eta_min: float, alert_time_min: float) -> int:
        """Recompute and store the interval after an evaluation."""
        self.interval_s = self.compute_interval(eta_min, alert_time_min, self.interval_s)
        return self.interval_s


__all__ = ["AdaptiveSampler"]
