import os
import sys

# Add project root to sys.path so tests can import the package without installing it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest  # noqa: E402
from hypothesis import settings  # noqa: E402

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=100)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


class FakeClock:
    """Monotonic clock driven by the test."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingAlertSink:
    def __init__(self):
        self.alerts = []
        self.notices = []

    def play_alert(self, kind):
        self.alerts.append(kind)

    def notify(self, message, severity):
        self.notices.append((message, severity))


class RecordingEventLogger:
    def __init__(self):
        self.events = []

    def log_drowsiness_event(self, event_data):
        self.events.append(event_data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alert_sink():
    return RecordingAlertSink()


@pytest.fixture
def event_logger():
    return RecordingEventLogger()


def make_landmark_frame(ear, n_points=478):
    """
    Build a Face Mesh sized frame whose eyes both have the given EAR.

    Each eye is 0.1 wide, so both vertical pairs are ear * 0.1 apart.
    """
    from drowsiness_monitor.ear_detector import LEFT_EYE, RIGHT_EYE

    frame = [(0.5, 0.5)] * n_points
    width = 0.1
    gap = ear * width
    for eye, x0 in ((LEFT_EYE, 0.3), (RIGHT_EYE, 0.6)):
        inner, outer = eye.corners
        frame[inner] = (x0, 0.4)
        frame[outer] = (x0 + width, 0.4)
        for i, (top, bottom) in enumerate(eye.vertical):
            x = x0 + 0.04 + 0.02 * i
            frame[top] = (x, 0.4 - gap / 2)
            frame[bottom] = (x, 0.4 + gap / 2)
    return frame
