"""Value types shared by the tracking engine."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidInput

# 1 m/s = 0.06 km/min
MPS_TO_KM_MIN = 0.06

MIN_ALERT_TIME_MIN = 1
MAX_ALERT_TIME_MIN = 30


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True)
class Destination:
    lat: float
    lng: float
    name: str = ""


@dataclass(frozen=True)
class PositionSample:
    """A single fix from the location provider.

    Attributes:
        lat: Latitude in decimal degrees.
        lng: Longitude in decimal degrees.
        ts_ns: Fix time, integer nanoseconds.
        speed_mps: Device-reported ground speed in m/s, or None when the
            provider does not report one.
    """

    lat: float
    lng: float
    ts_ns: int
    speed_mps: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lng)

    @property
    def speed_km_min(self) -> Optional[float]:
        """Device speed in km/min, or None when it is missing, negative or NaN."""
        if self.speed_mps is None:
            return None
        v = float(self.speed_mps)
        if not math.isfinite(v) or v < 0.0:
            return None
        return v * MPS_TO_KM_MIN


@dataclass
class EngineConfig:
    """Tunables for the estimation engine. Speeds are in km/min."""

    walking_speed_km_min: float = 5.0 / 60.0
    ema_alpha: float = 0.5
    moving_threshold_km_min: float = 0.05
    negligible_speed_km_min: float = 1e-3
    min_interval_s: int = 30
    movement_trigger_km: float = 0.05
    interval_factor: int = 3
    eager_on_motion_start: bool = False

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "EngineConfig":
        """Build from the ``engine`` section of the YAML config."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {k: v for k, v in section.items() if k in known}
        if "walking_speed_kmh" in section:
            kwargs["walking_speed_km_min"] = float(section["walking_speed_kmh"]) / 60.0
        return cls(**kwargs)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for the presentation layer."""

    current_location: Optional[Coordinate]
    destination: Optional[Destination]
    is_tracking: bool
    alert_time: int
    current_distance: float
    eta_minutes: float
    effective_speed: float
    next_sample_interval_s: int
    is_moving: bool
    has_alerted: bool
    last_evaluation_ts_ns: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_coordinate(lat: Any, lng: Any) -> Coordinate:
    """Return a Coordinate or raise InvalidInput for NaN/out-of-range values."""
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise InvalidInput("coordinates must be numeric, not bool")
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"coordinates must be numeric: lat={lat!r} lng={lng!r}") from e
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise InvalidInput(f"coordinates must be finite: lat={lat_f} lng={lng_f}")
    if not -90.0 <= lat_f <= 90.0:
        raise InvalidInput(f"latitude out of range: {lat_f}")
    if not -180.0 <= lng_f <= 180.0:
        raise InvalidInput(f"longitude out of range: {lng_f}")
    return Coordinate(lat_f, lng_f)


def validate_sample(sample: PositionSample) -> PositionSample:
    """Normalize a sample's numeric types; raise InvalidInput when malformed."""
    coord = validate_coordinate(sample.lat, sample.lng)
    if isinstance(sample.ts_ns, bool) or not isinstance(sample.ts_ns, int):
        raise InvalidInput(f"ts_ns must be an integer, got {sample.ts_ns!r}")
    speed = sample.speed_mps
    if speed is not None:
        try:
            speed = float(speed)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"speed_mps must be numeric or None, got {speed!r}") from e
    return PositionSample(coord.lat, coord.lng, sample.ts_ns, speed)


def validate_alert_time(minutes: Any) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidInput(f"alert time must be an integer number of minutes, got {minutes!r}")
    if not MIN_ALERT_TIME_MIN <= minutes <= MAX_ALERT_TIME_MIN:
        raise InvalidInput(
            f"alert time must be within {MIN_ALERT_TIME_MIN}..{MAX_ALERT_TIME_MIN} minutes, got {minutes}"
        )
    return minutes


__all__ = [
    "MPS_TO_KM_MIN",
    "Coordinate",
    "Destination",
    "PositionSample",
    "EngineConfig",
    "SessionSnapshot",
    "validate_coordinate",
    "validate_sample",
    "validate_alert_time",
]
