"""Tracking session: the public face of the arrival estimation engine.

Two push-style event sources drive a session:
    - position samples via `feed_position` (admission -> speed -> ETA -> alarm),
    - a 1 Hz `tick` that only counts the displayed ETA down.
Motion signals (`feed_motion`) are advisory.

All public operations take the same re-entrant lock, so a session may be
driven from several threads without exposing half-applied evaluations.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from src.alerts.sink import AlertSink

from .alarm import AlarmTrigger
from .errors import PreconditionError
from .eta import eta_minutes, tick_eta
from .geo import distance_km
from .models import (
    Coordinate,
    Destination,
    EngineConfig,
    PositionSample,
    SessionSnapshot,
    validate_alert_time,
    validate_coordinate,
    validate_sample,
)
from .sampling import AdaptiveSampler
from .speed import SpeedEstimator

LOG = logging.getLogger("tracking.session")

DEFAULT_ALERT_TIME_MIN = 10


class Session:
    def __init__(self, alert_sink: AlertSink, config: Optional[EngineConfig] = None) -> None:
        self.config = config if config is not None else EngineConfig()
        if self.config.walking_speed_km_min <= 0.0:
            raise ValueError("walking speed must be positive")

        self._lock = threading.RLock()
        self._speed = SpeedEstimator(
            self.config.walking_speed_km_min,
            alpha=self.config.ema_alpha,
            negligible_km_min=self.config.negligible_speed_km_min,
        )
        self._sampler = AdaptiveSampler(
            min_interval_s=self.config.min_interval_s,
            movement_trigger_km=self.config.movement_trigger_km,
            factor=self.config.interval_factor,
        )
        self._alarm = AlarmTrigger(alert_sink, self.config.moving_threshold_km_min)

        self.destination: Optional[Destination] = None
        self.current_location: Optional[Coordinate] = None
        self.alert_time: int = DEFAULT_ALERT_TIME_MIN
        self.current_distance: float = 0.0
        self.eta_minutes: float = 0.0
        self.is_tracking: bool = False
        self.is_moving: bool = False
        self._force_admit: bool = False

    # --- read-only views ---
    @property
    def effective_speed(self) -> float:
        return self._speed.value

    @property
    def next_sample_interval_s(self) -> int:
        return self._sampler.interval_s

    @property
    def last_evaluation_ts_ns(self) -> Optional[int]:
        return self._sampler.last_eval_ts_ns

    @property
    def last_evaluated_location(self) -> Optional[Coordinate]:
        return self._sampler.last_eval_location

    @property
    def has_alerted(self) -> bool:
        return self._alarm.has_alerted

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                current_location=self.current_location,
                destination=self.destination,
                is_tracking=self.is_tracking,
                alert_time=self.alert_time,
                current_distance=self.current_distance,
                eta_minutes=self.eta_minutes,
                effective_speed=self.effective_speed,
                next_sample_interval_s=self.next_sample_interval_s,
                is_moving=self.is_moving,
                has_alerted=self.has_alerted,
                last_evaluation_ts_ns=self.last_evaluation_ts_ns,
            )

    # --- operations ---
    def set_destination(self, lat: float, lng: float, name: str = "") -> Destination:
        coord = validate_coordinate(lat, lng)
        dest = Destination(coord.lat, coord.lng, str(name))
        with self._lock:
            self.destination = dest
            if self.is_tracking:
                # Distance deltas against the old destination are meaningless.
                self._sampler.reset()
                LOG.info("destination changed while tracking: %s", dest.name or (dest.lat, dest.lng))
            else:
                LOG.info("destination set: %s", dest.name or (dest.lat, dest.lng))
        return dest

    def start(self, alert_time_minutes: int) -> SessionSnapshot:
        minutes = validate_alert_time(alert_time_minutes)
        with self._lock:
            if self.destination is None:
                raise PreconditionError("set a destination first")
            if self.current_location is None:
                raise PreconditionError("acquiring location")

            self.alert_time = minutes
            self._alarm.reset()
            self._speed.reset()
            self._force_admit = False

            distance = distance_km(self.current_location, self.destination)
            eta = eta_minutes(
                distance,
                self._speed.value,
                self.config.walking_speed_km_min,
                self.config.negligible_speed_km_min,
            )
            # The interval rule first applies at the first admitted evaluation.
            self._sampler.reset(minutes * 60)
            interval = self._sampler.interval_s
            self.current_distance = distance
            self.eta_minutes = eta
            self.is_tracking = True
            LOG.info(
                "tracking started: alert %d min before arrival, distance=%.2f km eta=%.1f min interval=%d s",
                minutes, distance, eta, interval,
            )
            return self.snapshot()

    def stop(self) -> None:
        with self._lock:
            if self.is_tracking:
                LOG.info("tracking stopped")
            self.is_tracking = False
            self._alarm.reset()
            self._force_admit = False

    def feed_position(self, sample: PositionSample) -> bool:
        """Consume one position fix; return True if it triggered an evaluation."""
        sample = validate_sample(sample)
        with self._lock:
            self.current_location = sample.coordinate
            dest = self.destination
            if not self.is_tracking or dest is None:
                return False

            forced = self._force_admit
            if not forced and not self._sampler.should_admit(sample):
                LOG.debug(
                    "sample at %d not admitted (interval %d s)", sample.ts_ns, self._sampler.interval_s
                )
                return False

            self._force_admit = False
            fired = self._evaluate(sample, dest)

        # Sink is called outside the lock.
        if fired:
            self._alarm.notify()
        return True

    def feed_motion(self, is_moving: Optional[bool]) -> bool:
        """Store the motion flag.

        Returns True when the traveler just started moving during a tracked
        session, i.e. when the caller should request a fresh position fix.
        """
        if is_moving is None:
            return False
        moving = bool(is_moving)
        with self._lock:
            started = moving and not self.is_moving
            self.is_moving = moving
            if not (started and self.is_tracking):
                return False
            if self.config.eager_on_motion_start:
                self._force_admit = True
            LOG.debug("motion started; requesting position fix")
            return True

    def tick(self, seconds: float = 1.0) -> float:
        with self._lock:
            if self.is_tracking:
                self.eta_minutes = tick_eta(self.eta_minutes, seconds)
            return self.eta_minutes

    # --- internals ---
    def _evaluate(self, sample: PositionSample, dest: Destination) -> bool:
        """Run one admitted evaluation; return True if the alarm tripped."""
        first = self._sampler.last_eval_ts_ns is None
        elapsed_s = self._sampler.elapsed_s(sample.ts_ns)
        prev_distance = None if first else self.current_distance

        distance = distance_km(sample, dest)
        speed = self._speed.update(distance, prev_distance, elapsed_s, sample.speed_km_min)
        eta = eta_minutes(
            distance,
            speed,
            self.config.walking_speed_km_min,
            self.config.negligible_speed_km_min,
        )

        self.current_distance = distance
        self.eta_minutes = eta
        self._sampler.mark_evaluated(sample.coordinate, sample.ts_ns)

        fired = self._alarm.trip(eta, self.alert_time, speed)
        interval = self._sampler.next_interval(eta, self.alert_time)
        LOG.debug(
            "evaluated: distance=%.3f km speed=%.4f km/min eta=%.1f min next interval=%d s",
            distance, speed, eta, interval,
        )
        return fired


__all__ = ["Session", "DEFAULT_ALERT_TIME_MIN"]
