import json
from pathlib import Path

from src.sensors.track_io import TrackRecord, iter_track, read_track, write_track
from src.tracking.models import PositionSample


def test_reads_aliases_and_skips_malformed(tmp_path: Path):
    path = tmp_path / "track.jsonl"
    lines = [
        {"ts_ns": 2_000_000_000, "lat": 52.0, "lng": 13.0, "speed_mps": 4.2, "moving": True},
        {"timestamp_ms": 1000, "lat": 51.9, "lon": 13.1, "speed": None},
        {"ts_ns": 3_000_000_000, "lat": 52.1},                  # no longitude
        {"ts_ns": 4_000_000_000, "lat": "x", "lng": 13.0},       # bad latitude
        {"ts_ns": 5_000_000_000, "lat": 52.2, "lng": 13.2, "accel": {"x": 0.1, "y": 0.2, "z": 9.9}},
    ]
    with path.open("w", encoding="utf-8") as f:
        for d in lines:
            f.write(json.dumps(d) + "\n")
        f.write("{ this is not json\n")
        f.write("[1, 2, 3]\n")
        f.write("\n")

    recs = read_track(path)
    assert [r.sample.ts_ns for r in recs] == [1_000_000_000, 2_000_000_000, 5_000_000_000]

    first = recs[0]
    assert (first.sample.lat, first.sample.lng) == (51.9, 13.1)
    assert first.sample.speed_mps is None
    assert first.moving is None

    assert recs[1].moving is True
    assert recs[1].sample.speed_mps == 4.2
    assert recs[2].accel == (0.1, 0.2, 9.9)


def test_write_then_read(tmp_path: Path):
    recs = [
        TrackRecord(PositionSample(1.0, 2.0, 10, None), moving=False),
        TrackRecord(PositionSample(1.5, 2.5, 20, 3.0), linear_accel=(0.0, 1.0, 0.0)),
    ]
    path = tmp_path / "out" / "t.jsonl"
    assert write_track(recs, path) == 2
    assert read_track(path) == recs


def test_iter_track_on_plain_lines():
    out = list(iter_track(['{"ts_ns": 1, "lat": 0, "lng": 0, "moving": "yes"}', '{"ts_ns": 2, "lat": 0, "lng": 0}']))
    assert len(out) == 1
    assert out[0].sample.ts_ns == 2


def test_out_of_range_coordinates_are_skipped():
    lines = [
        '{"ts_ns": 1, "lat": 52.0, "lng": 13.0}',
        '{"ts_ns": 2, "lat": 95.0, "lng": 13.0}',
        '{"ts_ns": 3, "lat": 52.0, "lon": -200.0}',
        '{"ts_ns": 4, "lat": 52.01, "lng": 13.0}',
    ]
    assert [r.sample.ts_ns for r in iter_track(lines)] == [1, 4]
