"""Synthetic journey generator for replaying the tracking engine.

A journey is a straight great-circle-ish line from an origin to a destination
at constant speed, sampled every `interval_s` seconds, with Gaussian GPS
jitter, random device-speed dropouts and accelerometer readings that report
motion while the traveler is under way.
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np

from src.infra import paths
from src.sensors.track_io import TrackRecord, write_track
from src.tracking.geo import haversine_km
from src.tracking.models import PositionSample

LOG = logging.getLogger("synth")

KM_PER_DEG_LAT = 111.195


@dataclass
class JourneySpec:
    origin_lat: float
    origin_lng: float
    dest_lat: float
    dest_lng: float
    speed_kmh: float = 30.0
    interval_s: float = 5.0
    jitter_m: float = 5.0
    speed_dropout: float = 0.3
    dwell_s: float = 0.0
    start_ts_ns: int = 1_700_000_000_000_000_000
    seed: Optional[int] = 0


def synthesize_journey(spec: JourneySpec) -> List[TrackRecord]:
    """Generate samples from origin to destination (inclusive)."""
    if spec.speed_kmh <= 0 or spec.interval_s <= 0:
        raise ValueError("speed_kmh and interval_s must be positive")
    rng = np.random.default_rng(spec.seed)

    total_km = haversine_km(spec.origin_lat, spec.origin_lng, spec.dest_lat, spec.dest_lng)
    travel_s = total_km / spec.speed_kmh * 3600.0
    n_dwell = int(spec.dwell_s // spec.interval_s)
    n_travel = max(1, int(np.ceil(travel_s / spec.interval_s)))

    # Fraction of the way along the line for each sample; dwell samples sit at the origin.
    frac = np.concatenate([np.zeros(n_dwell), np.linspace(0.0, 1.0, n_travel + 1)])
    lats = spec.origin_lat + frac * (spec.dest_lat - spec.origin_lat)
    lngs = spec.origin_lng + frac * (spec.dest_lng - spec.origin_lng)

    # Jitter in meters -> degrees at the local latitude.
    km_per_deg_lng = KM_PER_DEG_LAT * np.cos(np.radians(lats))
    noise = rng.normal(0.0, spec.jitter_m / 1000.0, size=(len(frac), 2))
    lats = lats + noise[:, 0] / KM_PER_DEG_LAT
    lngs = lngs + noise[:, 1] / np.maximum(km_per_deg_lng, 1e-6)

    moving = np.concatenate([np.zeros(n_dwell, dtype=bool), np.ones(n_travel + 1, dtype=bool)])
    moving[-1] = False
    speed_mps = spec.speed_kmh / 3.6
    dropouts = rng.random(len(frac)) < spec.speed_dropout

    records: List[TrackRecord] = []
    for i in range(len(frac)):
        ts_ns = spec.start_ts_ns + int(round(i * spec.interval_s * 1e9))
        if dropouts[i]:
            dev_speed = None
        else:
            dev_speed = float(max(0.0, rng.normal(speed_mps, 0.1 * speed_mps))) if moving[i] else 0.0
        # Linear acceleration: vibration-level noise, larger while under way.
        sigma = 2.0 if moving[i] else 0.2
        lin = rng.normal(0.0, sigma, size=3)
        records.append(
            TrackRecord(
                sample=PositionSample(lat=float(lats[i]), lng=float(lngs[i]), ts_ns=ts_ns, speed_mps=dev_speed),
                moving=bool(moving[i]),
                linear_accel=(float(lin[0]), float(lin[1]), float(lin[2])),
            )
        )
    LOG.info("synthesized %d samples over %.2f km (%.0f s)", len(records), total_km, travel_s + spec.dwell_s)
    return records


def destination_north_of(lat: float, lng: float, distance_km: float) -> tuple[float, float]:
    """Point `distance_km` due north of (lat, lng)."""
    return lat + distance_km / KM_PER_DEG_LAT, lng


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Synthesize a journey track (JSONL)")
    p.add_argument("--origin", type=float, nargs=2, metavar=("LAT", "LNG"), default=(52.5200, 13.4050))
    p.add_argument("--dest", type=float, nargs=2, metavar=("LAT", "LNG"), default=None,
                   help="Destination; default is --distance-km due north of origin")
    p.add_argument("--distance-km", type=float, default=10.0)
    p.add_argument("--speed-kmh", type=float, default=30.0)
    p.add_argument("--interval", type=float, default=5.0, help="Seconds between samples")
    p.add_argument("--jitter-m", type=float, default=5.0)
    p.add_argument("--speed-dropout", type=float, default=0.3, help="Probability that device speed is null")
    p.add_argument("--dwell", type=float, default=0.0, help="Seconds stationary at origin before departing")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--out", type=str, default=str(paths.DEMO_TRACK))
    p.add_argument("--log-level", type=str, default="INFO")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    olat, olng = args.origin
    dlat, dlng = args.dest if args.dest is not None else destination_north_of(olat, olng, args.distance_km)
    spec = JourneySpec(
        origin_lat=olat, origin_lng=olng, dest_lat=dlat, dest_lng=dlng,
        speed_kmh=args.speed_kmh, interval_s=args.interval, jitter_m=args.jitter_m,
        speed_dropout=args.speed_dropout, dwell_s=args.dwell, seed=args.seed,
    )
    try:
        records = synthesize_journey(spec)
    except ValueError as e:
        LOG.error("synthesize failed: %s", e)
        return 2
    n = write_track(records, Path(args.out))
    LOG.info("wrote %d samples to %s (destination %.6f, %.6f)", n, args.out, dlat, dlng)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
