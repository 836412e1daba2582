"""
Detection Session Module
Owns the per-session classifier and throttle state and runs each frame
through EAR -> classifier -> dispatcher
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Protocol, Sequence, Tuple

from drowsiness_monitor.dispatcher import AlertDispatcher
from drowsiness_monitor.ear_detector import calculate_ear
from drowsiness_monitor.state_classifier import (
    ClassifierState,
    DetectionState,
    HysteresisClassifier,
)

logger = logging.getLogger(__name__)

LandmarkFrame = Sequence[Tuple[float, float]]


class LandmarkSource(Protocol):
    """
    Produces one item per processed camera frame: a LandmarkFrame, or None
    when no face was found. Finite per session; frames() may be called
    again for a new session.
    """

    def frames(self) -> Iterator[Optional[LandmarkFrame]]:
        ...


@dataclass(frozen=True)
class SessionStatus:
    active: bool
    face_found: bool
    state: DetectionState
    ear: float


class DetectionSession:
    """
    One detection session for a vehicle.

    process_landmarks() is the per-frame callback; it runs to completion
    under a lock, so state changes reach on_detection in frame order.
    """

    def __init__(
        self,
        vehicle_id: str,
        alert_sink,
        event_logger,
        on_detection: Optional[Callable[[DetectionState, float], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        classifier: Optional[HysteresisClassifier] = None,
    ):
        self.vehicle_id = vehicle_id
        self.on_detection = on_detection
        self.classifier = classifier or HysteresisClassifier(clock=clock)
        self.dispatcher = AlertDispatcher(vehicle_id, alert_sink, event_logger, clock=clock)
        self.state = ClassifierState()

        self.active = False
        self.face_found = False
        self.last_ear = 0.0
        # re-entrant: on_detection and the alert sink may call status() or stop()
        self._lock = threading.RLock()

    def start(self):
        with self._lock:
            self.state = ClassifierState()
            self.dispatcher.reset()
            self.face_found = False
            self.last_ear = 0.0
            self.active = True
        logger.info("Detection session started for vehicle %s", self.vehicle_id)

    def stop(self):
        with self._lock:
            self.state.reset()
            self.dispatcher.reset()
            self.face_found = False
            self.active = False
        logger.info("Detection session stopped for vehicle %s", self.vehicle_id)

    def process_landmarks(self, frame: Optional[LandmarkFrame]) -> DetectionState:
        """
        Process one landmark frame.

        Args:
            frame: Normalized landmark points, or None when no face was found

        Returns:
            Current DetectionState
        """
        with self._lock:
            if not self.active:
                logger.debug("Frame received while session inactive, ignored")
                return self.state.current_state

            self.face_found = frame is not None
            if frame is None:
                return self.state.current_state

            ear = calculate_ear(frame)
            self.last_ear = ear
            _, event = self.classifier.classify(ear, self.state)

            if event is not None:
                self.dispatcher.dispatch(event)
                if self.on_detection is not None:
                    try:
                        self.on_detection(event.new_state, event.ear)
                    except Exception:
                        logger.exception("on_detection callback failed")

            return self.state.current_state

    def run(self, source: LandmarkSource):
        """Feed every frame of the source through the session until it ends."""
        for frame in source.frames():
            if not self.active:
                break
            self.process_landmarks(frame)

    def status(self) -> SessionStatus:
        with self._lock:
            return SessionStatus(
                active=self.active,
                face_found=self.face_found,
                state=self.state.current_state,
                ear=self.last_ear,
            )
