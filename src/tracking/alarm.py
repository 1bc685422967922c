from __future__ import annotations

import logging
from enum import Enum

from src.alerts.sink import AlertSink

LOG = logging.getLogger("tracking.alarm")


class AlarmState(str, Enum):
    ARMED = "ARMED"
    FIRED = "FIRED"


class AlarmTrigger:
    """One-shot alarm gate.

    Fires the sink once when the ETA is within the alert time and the
    traveler is actually moving. Only `reset()` (session start/stop) re-arms.
    """

    def __init__(self, sink: AlertSink, moving_threshold_km_min: float = 0.05) -> None:
        self.sink = sink
        self.moving_threshold_km_min = float(moving_threshold_km_min)
        self.state = AlarmState.ARMED

    @property
    def has_alerted(self) -> bool:
        return self.state is AlarmState.FIRED

    def reset(self) -> None:
        self.state = AlarmState.ARMED

    def trip(self, eta_min: float, alert_time_min: float, speed_km_min: float) -> bool:
        """Move ARMED -> FIRED when the gate opens, without calling the sink.

        Returns True on the transition; the caller then calls `notify()`.
        """
        if self.state is not AlarmState.ARMED:
            return False
        if eta_min > alert_time_min:
            return False
        if speed_km_min <= self.moving_threshold_km_min:
            LOG.debug(
                "eta %.1f min within %s min but speed %.4f km/min below moving threshold",
                eta_min, alert_time_min, speed_km_min,
            )
            return False

        self.state = AlarmState.FIRED
        LOG.info("alarm fired: eta=%.1f min alert_time=%s min speed=%.3f km/min", eta_min, alert_time_min, speed_km_min)
        return True

    def notify(self) -> None:
        try:
            self.sink.fire()
        except Exception:
            # The alarm stays FIRED.
            LOG.exception("alert sink failed")

    def check(self, eta_min: float, alert_time_min: float, speed_km_min: float) -> bool:
        """Evaluate the gate and fire the sink; return True if the alarm fired on this call."""
        if not self.trip(eta_min, alert_time_min, speed_km_min):
            return False
        self.notify()
        return True


__all__ = ["AlarmState", "AlarmTrigger"]
