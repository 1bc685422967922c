from __future__ import annotations


def eta_minutes(
    distance_km: float,
    speed_km_min: float,
    fallback_km_min: float,
    epsilon: float = 1e-3,
) -> float:
    """Minutes to cover `distance_km`.

    A stationary traveler is treated as if they started walking now, so the
    fallback speed is used whenever the estimate is at or below `epsilon`.
    """
    speed = speed_km_min if speed_km_min > epsilon else fallback_km_min
    return max(0.0, distance_km) / speed


def tick_eta(eta: float, seconds: float = 1.0) -> float:
    """Count the displayed ETA down between evaluations, floored at 0."""
    return max(0.0, eta - seconds / 60.0)


__all__ = ["eta_minutes", "tick_eta"]
