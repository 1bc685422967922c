from pathlib import Path

# Repo root (two levels above src/infra)
ROOT = Path(__file__).resolve().parents[2]

CONFIG = ROOT / "config.yaml"

# Common output locations
OUT = ROOT / "out"
MONITOR = OUT / "monitor.jsonl"
METRICS = OUT / "metrics.json"
TRACKS_DIR = OUT / "tracks"
DEMO_TRACK = TRACKS_DIR / "demo_track.jsonl"
ALARM_WAV = OUT / "alarm.wav"
