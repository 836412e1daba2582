"""
Alert Dispatch Module
Turns state changes into driver alerts and throttled event records
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from drowsiness_monitor.alerter import AlertKind, AlertSink, Severity
from drowsiness_monitor.config import (
    DROWSY_NOTICE,
    EVENT_CONFIDENCE,
    PERSIST_THROTTLE_SECONDS,
    SLEEPING_NOTICE,
)
from drowsiness_monitor.state_classifier import DetectionState, StateChangeEvent

logger = logging.getLogger(__name__)

SEVERITY_BY_STATE = {
    DetectionState.AWAKE: Severity.NONE,
    DetectionState.DROWSY: Severity.MODERATE,
    DetectionState.SLEEPING: Severity.SEVERE,
}

ALERTS_BY_STATE = {
    DetectionState.DROWSY: (AlertKind.DROWSY, DROWSY_NOTICE),
    DetectionState.SLEEPING: (AlertKind.SLEEPING, SLEEPING_NOTICE),
}


@dataclass
class AlertThrottleState:
    last_emit_timestamp: Optional[float] = None

    def reset(self):
        self.last_emit_timestamp = None


class AlertDispatcher:
    """
    Reacts to a StateChangeEvent.

    - Driver alert (tone + notice) on every transition into DROWSY or
      SLEEPING, never throttled.
    - Event record for DROWSY/SLEEPING, at most one per throttle window.
    """

    def __init__(
        self,
        vehicle_id: str,
        alert_sink: AlertSink,
        event_logger,
        clock: Callable[[], float] = time.monotonic,
        throttle_seconds: float = PERSIST_THROTTLE_SECONDS,
    ):
        """
        Args:
            vehicle_id: Vehicle stamped on every stored event
            alert_sink: Receives play_alert / notify calls
            event_logger: Object with log_drowsiness_event(dict), fire-and-forget
            clock: Monotonic clock in seconds
            throttle_seconds: Minimum spacing between stored events
        """
        self.vehicle_id = vehicle_id
        self.alert_sink = alert_sink
        self.event_logger = event_logger
        self.clock = clock
        self.throttle_seconds = throttle_seconds
        self.throttle = AlertThrottleState()

    def reset(self):
        self.throttle.reset()

    def build_event_record(self, event: StateChangeEvent) -> dict:
        severity = SEVERITY_BY_STATE[event.new_state]
        return {
            "vehicle_id": self.vehicle_id,
            "drowsiness_level": severity.value,
            "confidence": EVENT_CONFIDENCE,
            "eye_aspect_ratio": event.ear,
            "alert_triggered": event.new_state != DetectionState.DROWSY,
        }

    def _throttled(self, now: float) -> bool:
        last = self.throttle.last_emit_timestamp
        return last is not None and now - last < self.throttle_seconds

    def _persist(self, event: StateChangeEvent):
        if SEVERITY_BY_STATE[event.new_state] is Severity.NONE:
            return

        now = self.clock()
        if self._throttled(now):
            logger.debug(
                "Event record skipped (%.2fs since last)",
                now - self.throttle.last_emit_timestamp,
            )
            return

        record = self.build_event_record(event)
        self.throttle.last_emit_timestamp = now
        try:
            self.event_logger.log_drowsiness_event(record)
        except Exception as e:
            logger.error("Error handing off drowsiness event: %s", e)

    def _alert(self, event: StateChangeEvent):
        if event.new_state not in ALERTS_BY_STATE:
            return

        kind, notice = ALERTS_BY_STATE[event.new_state]
        try:
            self.alert_sink.play_alert(kind)
        except Exception as e:
            logger.error("Audio alert error: %s", e)
        try:
            self.alert_sink.notify(notice, SEVERITY_BY_STATE[event.new_state])
        except Exception as e:
            logger.error("Notification error: %s", e)

    def dispatch(self, event: StateChangeEvent):
        """
        Handle one state change.

        Args:
            event: The transition produced by the classifier
        """
        logger.info(
            "State change %s -> %s (EAR %.3f)",
            event.previous_state.value,
            event.new_state.value,
            event.ear,
        )
        self._persist(event)
        self._alert(event)
