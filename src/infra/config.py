"""Configuration loading for the engine, sensors, geocoder and alert sink.

`config.yaml` is optional. Each top-level section is shallow-merged over the
defaults below, so a file that only sets ``session.alert_time_min`` keeps every
other value.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.infra import paths

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "engine": {
        "walking_speed_kmh": 5.0,
        "ema_alpha": 0.5,
        "moving_threshold_km_min": 0.05,
        "negligible_speed_km_min": 1e-3,
        "min_interval_s": 30,
        "movement_trigger_km": 0.05,
        "interval_factor": 3,
        "eager_on_motion_start": False,
    },
    "session": {
        "alert_time_min": 10,
    },
    "motion": {
        "threshold_mps2": 1.5,
        "gravity_mps2": 9.8,
    },
    "geocode": {
        "base_url": "https://nominatim.openstreetmap.org/search",
        "user_agent": "wakestop/0.1.0 (destination search; please set your own UA)",
        "limit": 5,
        "timeout_s": 10.0,
    },
    "alert": {
        "wav_path": str(paths.ALARM_WAV),
        "cooldown_s": 1.5,
        "sample_rate": 22050,
    },
}


def load_config(path: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Return the merged configuration.

    Args:
        path: YAML file to read. Defaults to ``config.yaml`` at the repo root.

    Raises:
        ValueError: the file exists but its top level (or a section) is not a mapping.
    """
    cfg = copy.deepcopy(DEFAULTS)
    cfg_path = Path(path) if path is not None else paths.CONFIG
    if not cfg_path.exists():
        return cfg

    loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{cfg_path}: top level must be a mapping")

    for section, values in loaded.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ValueError(f"{cfg_path}: section '{section}' must be a mapping")
        # Shallow-merge
        cfg.setdefault(section, {}).update(values)
    return cfg


__all__ = ["DEFAULTS", "load_config"]
