"""Exponentially-weighted speed estimate in km/min.

Device-reported speed is used as the instantaneous sample when present;
otherwise the sample is the distance closed toward the destination divided
by the time since the previous evaluation. The first evaluation of a session
has neither, so the seeded speed is kept.
"""

from __future__ import annotations

import math
from typing import Optional


class SpeedEstimator:
    def __init__(self, initial_km_min: float, alpha: float = 0.5, negligible_km_min: float = 1e-3) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.initial_km_min: float = float(initial_km_min)
        self.alpha: float = float(alpha)
        self.negligible_km_min: float = float(negligible_km_min)
        self.value: float = self.initial_km_min

    def reset(self) -> None:
        self.value = self.initial_km_min

    @staticmethod
    def instantaneous(
        distance_km: float,
        prev_distance_km: Optional[float],
        elapsed_s: Optional[float],
        device_km_min: Optional[float] = None,
    ) -> Optional[float]:
        """Instantaneous speed sample in km/min, or None if it is undefined."""
        if device_km_min is not None and math.isfinite(device_km_min) and device_km_min >= 0.0:
            return device_km_min
        if prev_distance_km is None or elapsed_s is None or elapsed_s <= 0.0:
            return None
        return abs(prev_distance_km - distance_km) / (elapsed_s / 60.0)

    def update(
        self,
        distance_km: float,
        prev_distance_km: Optional[float],
        elapsed_s: Optional[float],
        device_km_min: Optional[float] = None,
    ) -> float:
        """Blend a new sample into the estimate and return it."""
        sample = self.instantaneous(distance_km, prev_distance_km, elapsed_s, device_km_min)
        if sample is None:
            return self.value

        blended = self.alpha * sample + (1.0 - self.alpha) * self.value
        if blended < self.negligible_km_min:
            blended = 0.0
        self.value = blended
        return blended


__all__ = ["SpeedEstimator"]
