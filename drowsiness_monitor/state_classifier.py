"""
Driver State Classifier Module
Frame-count hysteresis over EAR samples: AWAKE / DROWSY / SLEEPING
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from drowsiness_monitor.config import (
    DROWSY_CONSEC_FRAMES,
    EAR_CLOSED_THRESHOLD,
    EAR_DROWSY_THRESHOLD,
    SLEEPING_CONSEC_FRAMES,
)


class DetectionState(str, Enum):
    AWAKE = "awake"
    DROWSY = "drowsy"
    SLEEPING = "sleeping"


@dataclass
class ClassifierState:
    """Per-session counters; at most one of the two counts is non-zero."""
    closed_frame_count: int = 0
    drowsy_frame_count: int = 0
    current_state: DetectionState = DetectionState.AWAKE

    def reset(self):
        self.closed_frame_count = 0
        self.drowsy_frame_count = 0
        self.current_state = DetectionState.AWAKE


@dataclass(frozen=True)
class StateChangeEvent:
    previous_state: DetectionState
    new_state: DetectionState
    ear: float
    timestamp: float


class HysteresisClassifier:
    """
    Classifies one EAR sample per frame.

    Counting rules:
    - EAR < closed threshold: closed run grows, drowsy run resets
    - closed <= EAR < drowsy threshold: drowsy run grows, closed run resets
    - otherwise: both runs reset

    The candidate state is SLEEPING once the closed run reaches
    sleeping_frames, else DROWSY once the drowsy run reaches drowsy_frames,
    else AWAKE. An event is produced only when the candidate differs from
    the current state.
    """

    def __init__(
        self,
        closed_threshold: float = EAR_CLOSED_THRESHOLD,
        drowsy_threshold: float = EAR_DROWSY_THRESHOLD,
        sleeping_frames: int = SLEEPING_CONSEC_FRAMES,
        drowsy_frames: int = DROWSY_CONSEC_FRAMES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.closed_threshold = closed_threshold
        self.drowsy_threshold = drowsy_threshold
        self.sleeping_frames = sleeping_frames
        self.drowsy_frames = drowsy_frames
        self.clock = clock

    def _update_counters(self, ear: float, state: ClassifierState):
        if ear < self.closed_threshold:
            state.closed_frame_count += 1
            state.drowsy_frame_count = 0
        elif ear < self.drowsy_threshold:
            state.drowsy_frame_count += 1
            state.closed_frame_count = 0
        else:
            state.closed_frame_count = 0
            state.drowsy_frame_count = 0

    def _candidate(self, state: ClassifierState) -> DetectionState:
        if state.closed_frame_count >= self.sleeping_frames:
            return DetectionState.SLEEPING
        if state.drowsy_frame_count >= self.drowsy_frames:
            return DetectionState.DROWSY
        return DetectionState.AWAKE

    def classify(
        self, ear: float, state: ClassifierState
    ) -> Tuple[DetectionState, Optional[StateChangeEvent]]:
        """
        Advance the counters with one EAR sample.

        Args:
            ear: Eye Aspect Ratio for the current frame
            state: Session-owned ClassifierState, mutated in place

        Returns:
            (current state, StateChangeEvent or None)
        """
        self._update_counters(ear, state)
        candidate = self._candidate(state)

        if candidate == state.current_state:
            return state.current_state, None

        event = StateChangeEvent(
            previous_state=state.current_state,
            new_state=candidate,
            ear=ear,
            timestamp=self.clock(),
        )
        state.current_state = candidate
        return candidate, event
