"""Alert sinks: what happens when the engine says "fire now".

The engine only ever calls `fire()`. Anything stateful about playback (the
"already playing" flag, the rendered tone) belongs to the sink instance.
"""

from __future__ import annotations

import io
import logging
import time
import wave
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from src.infra import paths

LOG = logging.getLogger("alerts.sink")

# (frequency Hz, duration s, start offset s)
TONE_PATTERN: Tuple[Tuple[float, float, float], ...] = (
    (800.0, 0.2, 0.0),
    (1000.0, 0.2, 0.25),
    (800.0, 0.2, 0.5),
    (1000.0, 0.4, 0.75),
)
# on/off milliseconds, vibration API convention
VIBRATION_PATTERN_MS: Tuple[int, ...] = (200, 100, 200, 100, 400)
PEAK_GAIN = 0.3
ATTACK_S = 0.1
ALERT_MESSAGE = "Wake up! You're approaching your stop!"


class AlertSink(Protocol):
    def fire(self) -> None: ...


def render_alarm_tone(
    sample_rate: int = 22050,
    pattern: Sequence[Tuple[float, float, float]] = TONE_PATTERN,
) -> np.ndarray:
    """Render the alarm pattern as mono float32 samples in [-1, 1].

    Each tone is a sine with a linear gain ramp 0 -> PEAK_GAIN over ATTACK_S,
    then back to 0 at the end of the tone.
    """
    total_s = max(start + dur for _, dur, start in pattern)
    out = np.zeros(int(round(total_s * sample_rate)) + 1, dtype=np.float32)
    for freq, dur, start in pattern:
        n = int(round(dur * sample_rate))
        if n <= 0:
            continue
        t = np.arange(n, dtype=np.float64) / sample_rate
        attack = min(ATTACK_S, dur)
        gain = np.interp(t, [0.0, attack, dur], [0.0, PEAK_GAIN, 0.0])
        tone = gain * np.sin(2.0 * np.pi * freq * t)
        i0 = int(round(start * sample_rate))
        out[i0:i0 + n] += tone[: len(out) - i0].astype(np.float32)
    return np.clip(out, -1.0, 1.0)


def tone_wav_bytes(sample_rate: int = 22050) -> bytes:
    """The alarm tone as a 16-bit PCM WAV file in memory."""
    pcm = (render_alarm_tone(sample_rate) * 32767.0).astype("<i2")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(sample_rate)
        w.writeframes(pcm.tobytes())
    return buf.getvalue()


class LogAlertSink:
    """Logs the alert; useful for headless replays."""

    def __init__(self) -> None:
        self.fired = 0

    def fire(self) -> None:
        self.fired += 1
        LOG.warning("%s (vibration pattern %s ms)", ALERT_MESSAGE, list(VIBRATION_PATTERN_MS))


class ToneAlertSink:
    """Renders the alarm tone to a WAV file and hands it to a player.

    Re-entrant calls within `cooldown_s` of the previous one are dropped, the
    same way a tone that is still sounding is not restarted.
    """

    def __init__(
        self,
        wav_path: Path = paths.ALARM_WAV,
        player: Optional[Callable[[Path], None]] = None,
        cooldown_s: float = 1.5,
        sample_rate: int = 22050,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.wav_path = Path(wav_path)
        self.player = player
        self.cooldown_s = float(cooldown_s)
        self.sample_rate = int(sample_rate)
        self._clock = clock
        self._playing_until: Optional[float] = None
        self.history: List[float] = []

    @property
    def is_playing(self) -> bool:
        return self._playing_until is not None and self._clock() < self._playing_until

    def _ensure_wav(self) -> Path:
        if not self.wav_path.exists():
            self.wav_path.parent.mkdir(parents=True, exist_ok=True)
            self.wav_path.write_bytes(tone_wav_bytes(self.sample_rate))
        return self.wav_path

    def fire(self) -> None:
        if self.is_playing:
            LOG.debug("alarm tone already playing; ignoring fire()")
            return
        now = self._clock()
        self._playing_until = now + self.cooldown_s
        self.history.append(now)
        path = self._ensure_wav()
        LOG.warning("%s tone=%s vibration=%s ms", ALERT_MESSAGE, path, list(VIBRATION_PATTERN_MS))
        if self.player is not None:
            self.player(path)

    def stop(self) -> None:
        self._playing_until = None


__all__ = [
    "TONE_PATTERN",
    "VIBRATION_PATTERN_MS",
    "ALERT_MESSAGE",
    "AlertSink",
    "render_alarm_tone",
    "tone_wav_bytes",
    "LogAlertSink",
    "ToneAlertSink",
]
