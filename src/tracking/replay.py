from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import IO, List, Optional

from src.alerts.sink import LogAlertSink, ToneAlertSink
from src.infra import paths
from src.infra.config import load_config
from src.sensors.motion import MotionDetector
from src.sensors.track_io import TrackRecord, read_track
from src.utils.metrics import Metrics, measure

from .errors import WakeStopError
from .models import EngineConfig
from .session import Session

# -----------------------------------------------------------------------------
# replay: drive a tracking Session from a recorded or synthetic track.
#  - first sample only provides the starting location, then tracking starts
#  - optional 1 Hz ticks fill the gaps between samples (display countdown)
#  - motion comes from the record's `moving` flag or its accelerometer vector
#  - one snapshot per sample appended to the monitor JSONL
# -----------------------------------------------------------------------------

LOG = logging.getLogger("tracking.replay")

NS_PER_S = 1_000_000_000


def _motion_flag(rec: TrackRecord, detector: MotionDetector) -> Optional[bool]:
    if rec.moving is not None:
        return rec.moving
    if rec.accel is None and rec.linear_accel is None:
        return None
    return detector.update(rec.accel, rec.linear_accel)


def _append_jsonl(fp: IO[str], obj: dict) -> None:
    fp.write(json.dumps(obj) + "\n")
    fp.flush()


def replay(
    session: Session,
    records: List[TrackRecord],
    alert_time_min: int,
    monitor_fp: Optional[IO[str]] = None,
    metrics: Optional[Metrics] = None,
    detector: Optional[MotionDetector] = None,
    ticks: bool = False,
) -> dict:
    """Run `records` through `session` and return a summary.

    The destination must already be set on the session.
    """
    detector = detector or MotionDetector()
    summary = {"samples": 0, "admitted": 0, "ticks": 0, "alarm_ts_ns": None, "alarm_eta_min": None}
    if not records:
        return summary

    # Seed the location, then start the session.
    session.feed_position(records[0].sample)
    session.start(alert_time_min)

    prev_ts: Optional[int] = None
    for rec in records:
        ts = rec.sample.ts_ns
        if ticks and prev_ts is not None:
            # Whole seconds elapsed since the previous sample.
            for _ in range(max(0, (ts - prev_ts) // NS_PER_S)):
                session.tick(1.0)
                summary["ticks"] += 1
        prev_ts = ts

        session.feed_motion(_motion_flag(rec, detector))

        already = session.has_alerted
        admitted, ms = measure(session.feed_position, rec.sample)
        summary["samples"] += 1
        summary["admitted"] += int(admitted)
        if metrics is not None:
            metrics.record_sample(ms, admitted)

        if session.has_alerted and not already:
            summary["alarm_ts_ns"] = ts
            summary["alarm_eta_min"] = session.eta_minutes
            if metrics is not None:
                metrics.record_alarm()

        if monitor_fp is not None:
            snap = session.snapshot().to_dict()
            _append_jsonl(monitor_fp, {"t_ns": ts, "admitted": admitted, **snap})

    return summary


# ------------------------------- CLI -----------------------------------------

def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Replay a position track through the arrival alarm engine")
    p.add_argument("--track", type=str, default=str(paths.DEMO_TRACK), help="Path to track JSONL")
    p.add_argument("--dest", type=float, nargs=2, metavar=("LAT", "LNG"), required=True, help="Destination")
    p.add_argument("--dest-name", type=str, default="", help="Destination display name")
    p.add_argument("--alert-min", type=int, default=None, help="Minutes before arrival to alert (1-30)")
    p.add_argument("--config", type=str, default=None, help="YAML config (default: config.yaml)")
    p.add_argument("--out", type=str, default=str(paths.MONITOR), help="Monitor JSONL output")
    p.add_argument("--metrics", type=str, default=str(paths.METRICS), help="Metrics JSON output")
    p.add_argument("--truncate", action="store_true", help="Truncate monitor output on start (do not append)")
    p.add_argument("--ticks", action="store_true", help="Emit 1 Hz ETA ticks between samples")
    p.add_argument("--sound", action="store_true", help="Render the alarm tone to a WAV file when it fires")
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level (e.g., INFO, DEBUG)")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    try:
        cfg = load_config(Path(args.config) if args.config else None)
    except (OSError, ValueError) as e:
        LOG.error("cannot load config: %s", e)
        return 2

    alert_cfg = cfg["alert"]
    if args.sound:
        sink = ToneAlertSink(
            wav_path=Path(alert_cfg["wav_path"]),
            cooldown_s=float(alert_cfg["cooldown_s"]),
            sample_rate=int(alert_cfg["sample_rate"]),
        )
    else:
        sink = LogAlertSink()

    session = Session(sink, EngineConfig.from_mapping(cfg["engine"]))
    detector = MotionDetector(
        threshold_mps2=float(cfg["motion"]["threshold_mps2"]),
        gravity_mps2=float(cfg["motion"]["gravity_mps2"]),
    )
    alert_min = args.alert_min if args.alert_min is not None else int(cfg["session"]["alert_time_min"])

    try:
        records = read_track(Path(args.track))
    except OSError as e:
        LOG.error("cannot read track %s: %s", args.track, e)
        return 2
    if not records:
        LOG.error("track %s has no usable samples", args.track)
        return 2

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        session.set_destination(args.dest[0], args.dest[1], args.dest_name)
        with out_path.open("w" if args.truncate else "a", encoding="utf-8") as out_fp:
            summary = replay(
                session, records, alert_min,
                monitor_fp=out_fp, metrics=Metrics(Path(args.metrics)), detector=detector, ticks=bool(args.ticks),
            )
    except WakeStopError as e:
        LOG.error("replay failed: %s", e)
        return 2

    LOG.info(
        "replayed %d samples (%d admitted); alarm %s",
        summary["samples"], summary["admitted"],
        "not fired" if summary["alarm_ts_ns"] is None else f"fired at eta {summary['alarm_eta_min']:.1f} min",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
