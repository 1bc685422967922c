from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from src.tracking.models import PositionSample, validate_coordinate

# -----------------------------------------------------------------------------
# Track files: one JSON object per line.
#   {"ts_ns": int | "timestamp_ms": int,
#    "lat": float, "lng" | "lon": float,
#    "speed_mps" | "speed": float | null,
#    "moving"?: bool,
#    "accel"?: [x, y, z], "linear_accel"?: [x, y, z]}
# Malformed lines are skipped; each kind of problem is warned about once.
# -----------------------------------------------------------------------------

LOG = logging.getLogger("sensors.track_io")

_WARNED_TEXTS: set[str] = set()


def _warn_once(msg: str) -> None:
    if msg not in _WARNED_TEXTS:
        _WARNED_TEXTS.add(msg)
        LOG.warning(msg)


Vec3 = Tuple[Optional[float], Optional[float], Optional[float]]


@dataclass(frozen=True)
class TrackRecord:
    sample: PositionSample
    moving: Optional[bool] = None
    accel: Optional[Vec3] = None
    linear_accel: Optional[Vec3] = None


def _vec3(raw: Any) -> Optional[Vec3]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        raw = [raw.get("x"), raw.get("y"), raw.get("z")]
    if not isinstance(raw, (list, tuple)) or len(raw) != 3:
        raise ValueError("accelerometer vector must have 3 components")
    return tuple(None if v is None else float(v) for v in raw)  # type: ignore[return-value]


def normalize_record(raw: Dict[str, Any]) -> TrackRecord:
    """Normalize one decoded JSON object; raises ValueError/KeyError/TypeError when malformed."""
    if "ts_ns" in raw:
        ts_ns = int(raw["ts_ns"])
    elif "timestamp_ms" in raw:
        ts_ns = int(raw["timestamp_ms"]) * 1_000_000
    else:
        raise KeyError("ts_ns")

    coord = validate_coordinate(raw["lat"], raw["lng"] if "lng" in raw else raw["lon"])

    speed_raw = raw.get("speed_mps", raw.get("speed"))
    speed = None if speed_raw is None else float(speed_raw)

    moving = raw.get("moving")
    if moving is not None and not isinstance(moving, bool):
        raise TypeError("moving must be a boolean")

    return TrackRecord(
        sample=PositionSample(lat=coord.lat, lng=coord.lng, ts_ns=ts_ns, speed_mps=speed),
        moving=moving,
        accel=_vec3(raw.get("accel")),
        linear_accel=_vec3(raw.get("linear_accel")),
    )


def iter_track(lines: Iterable[str]) -> Iterator[TrackRecord]:
    for lineno, line in enumerate(lines, start=1):
        s = line.strip()
        if not s:
            continue
        try:
            obj = json.loads(s)
        except json.JSONDecodeError:
            _warn_once("Skipping malformed JSON line in track")
            LOG.debug("bad JSON at line %d", lineno)
            continue
        if not isinstance(obj, dict):
            _warn_once("Skipping non-object line in track")
            continue
        try:
            yield normalize_record(obj)
        except (KeyError, TypeError, ValueError) as e:
            _warn_once(f"Skipping invalid track record: {e!r}")
            continue


def read_track(path: Path) -> List[TrackRecord]:
    """Load a JSONL track, ordered by timestamp."""
    with Path(path).open("r", encoding="utf-8") as f:
        records = list(iter_track(f))
    records.sort(key=lambda r: r.sample.ts_ns)
    return records


def record_to_dict(rec: TrackRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "ts_ns": rec.sample.ts_ns,
        "lat": rec.sample.lat,
        "lng": rec.sample.lng,
        "speed_mps": rec.sample.speed_mps,
    }
    if rec.moving is not None:
        out["moving"] = rec.moving
    if rec.accel is not None:
        out["accel"] = list(rec.accel)
    if rec.linear_accel is not None:
        out["linear_accel"] = list(rec.linear_accel)
    return out


def write_track(records: Iterable[TrackRecord], path: Path) -> int:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    with p.open("w", encoding="utf-8") as f:
        for rec in records:
            f.write(json.dumps(record_to_dict(rec)) + "\n")
            n += 1
    return n


__all__ = ["TrackRecord", "normalize_record", "iter_track", "read_track", "record_to_dict", "write_track"]
