import io
import json
from pathlib import Path

from src.alerts.sink import LogAlertSink
from src.sensors.track_io import write_track
from src.synth.synthesize import JourneySpec, destination_north_of, synthesize_journey
from src.tracking.replay import main, replay
from src.tracking.session import Session
from src.utils.metrics import Metrics

ORIGIN = (52.52, 13.405)


def _journey(km=5.0, speed_kmh=30.0, seed=1):
    dlat, dlng = destination_north_of(*ORIGIN, km)
    recs = synthesize_journey(JourneySpec(*ORIGIN, dlat, dlng, speed_kmh=speed_kmh, seed=seed))
    return (dlat, dlng), recs


def test_journey_fires_alarm_exactly_once(tmp_path: Path):
    dest, recs = _journey()
    sink = LogAlertSink()
    sess = Session(sink)
    sess.set_destination(*dest, "Demo stop")
    monitor = io.StringIO()
    metrics = Metrics(tmp_path / "metrics.json")

    summary = replay(sess, recs, alert_time_min=5, monitor_fp=monitor, metrics=metrics)

    assert sink.fired == 1
    assert summary["samples"] == len(recs)
    assert 0 < summary["admitted"] < len(recs)
    assert summary["alarm_ts_ns"] is not None
    assert summary["alarm_eta_min"] <= 5.0

    lines = [json.loads(s) for s in monitor.getvalue().splitlines()]
    assert len(lines) == len(recs)
    assert all(d["next_sample_interval_s"] >= 30 for d in lines)
    assert all(d["is_tracking"] for d in lines)
    assert lines[-1]["has_alerted"] is True

    m = json.loads((tmp_path / "metrics.json").read_text())
    assert m["alarms"] == 1
    assert m["admitted"] == summary["admitted"]
    assert m["admitted"] + m["rejected"] == len(recs)


def test_ticks_between_samples():
    dest, recs = _journey(km=1.0)
    sess = Session(LogAlertSink())
    sess.set_destination(*dest)
    summary = replay(sess, recs, alert_time_min=1, ticks=True)
    # 5 s between samples
    assert summary["ticks"] == 5 * (len(recs) - 1)


def test_empty_track_does_not_start():
    sess = Session(LogAlertSink())
    sess.set_destination(*ORIGIN)
    summary = replay(sess, [], alert_time_min=10)
    assert summary["samples"] == 0
    assert not sess.is_tracking


def test_cli_end_to_end(tmp_path: Path):
    dest, recs = _journey(km=3.0)
    track = tmp_path / "track.jsonl"
    write_track(recs, track)
    out = tmp_path / "monitor.jsonl"
    metrics = tmp_path / "metrics.json"
    argv = [
        "--track", str(track),
        "--dest", str(dest[0]), str(dest[1]),
        "--dest-name", "Stop",
        "--alert-min", "3",
        "--config", str(tmp_path / "missing.yaml"),
        "--out", str(out),
        "--metrics", str(metrics),
        "--truncate",
        "--log-level", "WARNING",
    ]
    assert main(argv) == 0
    assert len(out.read_text().splitlines()) == len(recs)
    assert json.loads(metrics.read_text())["alarms"] == 1

    # --truncate rewrites instead of appending
    assert main(argv) == 0
    assert len(out.read_text().splitlines()) == len(recs)


def test_cli_rejects_bad_inputs(tmp_path: Path):
    empty = tmp_path / "empty.jsonl"
    empty.write_text("not json\n", encoding="utf-8")
    base = ["--dest", "52.0", "13.0", "--out", str(tmp_path / "m.jsonl"), "--metrics", str(tmp_path / "x.json"),
            "--config", str(tmp_path / "missing.yaml")]
    assert main(["--track", str(empty)] + base) == 2
    assert main(["--track", str(tmp_path / "absent.jsonl")] + base) == 2

    recs = _journey(km=1.0)[1]
    track = tmp_path / "t.jsonl"
    write_track(recs, track)
    assert main(["--track", str(track), "--alert-min", "45"] + base) == 2

    bad_cfg = tmp_path / "bad.yaml"
    bad_cfg.write_text("- 1\n", encoding="utf-8")
    assert main(["--track", str(track), "--dest", "52.0", "13.0", "--config", str(bad_cfg),
                 "--out", str(tmp_path / "m.jsonl")]) == 2


def test_cli_skips_out_of_range_record(tmp_path: Path):
    dest, recs = _journey(km=1.0)
    track = tmp_path / "track.jsonl"
    write_track(recs, track)
    lines = track.read_text().splitlines()
    bad = json.loads(lines[1])
    bad["lat"] = 95.0
    lines.insert(2, json.dumps(bad))
    track.write_text("\n".join(lines) + "\n", encoding="utf-8")

    out = tmp_path / "monitor.jsonl"
    argv = [
        "--track", str(track),
        "--dest", str(dest[0]), str(dest[1]),
        "--config", str(tmp_path / "missing.yaml"),
        "--out", str(out),
        "--metrics", str(tmp_path / "metrics.json"),
        "--log-level", "WARNING",
    ]
    assert main(argv) == 0
    assert len(out.read_text().splitlines()) == len(recs)
