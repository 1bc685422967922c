from __future__ import annotations
import json, time
from pathlib import Path
from collections import deque
from typing import Deque, Optional

from src.infra import paths

_METRICS_PATH = paths.METRICS


class RollingStats:
    """Rolling window for simple p50/p95."""
    def __init__(self, maxlen: int = 500):
        self.values: Deque[float] = deque(maxlen=maxlen)

    def add(self, v: float) -> None:
        self.values.append(float(v))

    def _pick(self, q: float) -> Optional[float]:
        if not self.values:
            return None
        arr = sorted(self.values)
        idx = int(q * (len(arr) - 1))
        return arr[idx]

    def p50(self) -> Optional[float]:
        return self._pick(0.50)

    def p95(self) -> Optional[float]:
        return self._pick(0.95)


class Metrics:
    """Sample handling latency and admission counts, persisted to out/metrics.json."""
    def __init__(self, path: Path = _METRICS_PATH, window: int = 500, autoflush: bool = True):
        self.path = path
        self.autoflush = autoflush
        self._sample = RollingStats(window)
        self.admitted = 0
        self.rejected = 0
        self.alarms = 0

    def record_sample(self, ms: float, admitted: bool) -> None:
        self._sample.add(ms)
        if admitted:
            self.admitted += 1
        else:
            self.rejected += 1
        if self.autoflush:
            self.flush()

    def record_alarm(self) -> None:
        self.alarms += 1
        if self.autoflush:
            self.flush()

    def as_dict(self) -> dict:
        total = self.admitted + self.rejected
        return {
            "updated_ns": time.time_ns(),
            "sample_latency": {
                "p50_ms": self._sample.p50(),
                "p95_ms": self._sample.p95(),
                "n": len(self._sample.values),
            },
            "admitted": self.admitted,
            "rejected": self.rejected,
            "admission_ratio": (self.admitted / total) if total else None,
            "alarms": self.alarms,
        }

    def flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self.as_dict(), indent=2), encoding="utf-8")


def measure(fn, *args, **kwargs):
    """Wrap callable and return (result, elapsed_ms)."""
    t0 = time.perf_counter()
    out = fn(*args, **kwargs)
    ms = (time.perf_counter() - t0) * 1000.0
    return out, ms
