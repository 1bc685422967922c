"""Accelerometer-based "is the traveler moving" signal.

Magnitude is taken from linear acceleration (gravity removed) when the
device reports it; otherwise from acceleration including gravity, minus a
rough 1 g. Anything above `threshold_mps2` counts as moving.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

Vector = Sequence[Optional[float]]


def _complete(v: Optional[Vector]) -> bool:
    if v is None or len(v) != 3:
        return False
    return all(x is not None and math.isfinite(float(x)) for x in v)


def acceleration_magnitude(
    accel_incl_gravity: Optional[Vector],
    linear_accel: Optional[Vector] = None,
    gravity_mps2: float = 9.8,
) -> Optional[float]:
    """Magnitude in m/s^2, or None when neither vector is usable."""
    if _complete(linear_accel):
        return float(np.linalg.norm(np.asarray(linear_accel, dtype=np.float64)))
    if _complete(accel_incl_gravity):
        raw = float(np.linalg.norm(np.asarray(accel_incl_gravity, dtype=np.float64)))
        return abs(raw - gravity_mps2)
    return None


class MotionDetector:
    def __init__(self, threshold_mps2: float = 1.5, gravity_mps2: float = 9.8) -> None:
        self.threshold_mps2 = float(threshold_mps2)
        self.gravity_mps2 = float(gravity_mps2)
        self.is_moving: bool = False
        self.last_magnitude: Optional[float] = None

    def update(self, accel_incl_gravity: Optional[Vector], linear_accel: Optional[Vector] = None) -> bool:
        """Feed one reading and return the current moving flag.

        Readings with missing axes leave the previous state untouched.
        """
        mag = acceleration_magnitude(accel_incl_gravity, linear_accel, self.gravity_mps2)
        if mag is None:
            return self.is_moving
        self.last_magnitude = mag
        self.is_moving = mag > self.threshold_mps2
        return self.is_moving


__all__ = ["acceleration_magnitude", "MotionDetector"]
