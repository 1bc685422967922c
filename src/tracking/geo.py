"""Great-circle distance on a spherical Earth (R = 6371 km)."""

from __future__ import annotations

from math import asin, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two lat/lng points using haversine.

    Args:
        lat1, lng1: Latitude and longitude of the first point in degrees.
        lat2, lng2: Latitude and longitude of the second point in degrees.

    Returns:
        Distance in kilometers.
    """
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    a = sin(dlat / 2.0) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2.0) ** 2
    # Rounding can push `a` a hair past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    return 2.0 * EARTH_RADIUS_KM * asin(sqrt(a))


def distance_km(a, b) -> float:
    """Distance between two objects exposing `.lat` and `.lng`."""
    return haversine_km(float(a.lat), float(a.lng), float(b.lat), float(b.lng))


__all__ = ["EARTH_RADIUS_KM", "haversine_km", "distance_km"]
