"""
Driver Alert Module
Audible alert patterns and driver-facing notices

Drowsy: three short 500 Hz pulses, 200 ms apart, decaying envelope
Sleeping: one sustained 1000 Hz tone
"""

import logging
from enum import Enum
from typing import Protocol

import numpy as np
import pygame

from drowsiness_monitor.config import (
    AUDIO_SAMPLE_RATE,
    DROWSY_TONE_PULSES,
    SLEEPING_TONE_PULSES,
    TONE_DECAY_FLOOR,
)

logger = logging.getLogger(__name__)


class AlertKind(str, Enum):
    DROWSY = "drowsy"
    SLEEPING = "sleeping"


class Severity(str, Enum):
    NONE = "none"
    MODERATE = "moderate"
    SEVERE = "severe"


TONE_PATTERNS = {
    AlertKind.DROWSY: DROWSY_TONE_PULSES,
    AlertKind.SLEEPING: SLEEPING_TONE_PULSES,
}


class AlertSink(Protocol):
    """Where driver-facing alerts go (speaker, notification area, ...)."""

    def play_alert(self, kind: AlertKind) -> None:
        ...

    def notify(self, message: str, severity: Severity) -> None:
        ...


def synthesize_pattern(pulses, sample_rate=AUDIO_SAMPLE_RATE):
    """
    Render a pulse pattern into a mono 16-bit sample buffer.

    Args:
        pulses: Iterable of (offset_s, frequency_hz, duration_s, volume, decay)
        sample_rate: Samples per second

    Returns:
        np.ndarray of int16 samples covering the whole pattern
    """
    total_s = max(offset + duration for offset, _, duration, _, _ in pulses)
    out = np.zeros(int(round(total_s * sample_rate)), dtype=np.float64)

    for offset, frequency_hz, duration_s, volume, decay in pulses:
        n_samples = int(round(duration_s * sample_rate))
        t = np.arange(n_samples) / sample_rate
        if decay:
            # exponential ramp from volume down to the floor
            envelope = volume * (TONE_DECAY_FLOOR / volume) ** (t / duration_s)
        else:
            envelope = np.full(n_samples, volume)
        start = int(round(offset * sample_rate))
        end = min(start + n_samples, len(out))
        out[start:end] += (envelope * np.sin(2 * np.pi * frequency_hz * t))[: end - start]

    return (np.clip(out, -1.0, 1.0) * 32767).astype(np.int16)


class PygameAlertSink:
    """
    Plays alert tones through the pygame mixer and reports notices.

    Playback is non-blocking: pygame mixes the sound on its own thread.
    """

    def __init__(self, audio_enabled=True):
        self.audio_enabled = False
        self.sample_rate = AUDIO_SAMPLE_RATE
        self.channels = 1
        self._sounds = {}

        if not audio_enabled:
            return

        try:
            pygame.mixer.init(frequency=AUDIO_SAMPLE_RATE, size=-16, channels=1)
            self.sample_rate, _, self.channels = pygame.mixer.get_init()
            self.audio_enabled = True
        except pygame.error as e:
            logger.warning("Audio alerts disabled (pygame mixer not available): %s", e)

    def _sound_for(self, kind):
        if kind not in self._sounds:
            samples = synthesize_pattern(TONE_PATTERNS[kind], self.sample_rate)
            if self.channels > 1:
                samples = np.repeat(samples[:, np.newaxis], self.channels, axis=1)
            self._sounds[kind] = pygame.sndarray.make_sound(np.ascontiguousarray(samples))
        return self._sounds[kind]

    def play_alert(self, kind):
        kind = AlertKind(kind)
        if not self.audio_enabled:
            logger.debug("Audio disabled, skipping %s tone", kind.value)
            return
        try:
            self._sound_for(kind).play()
        except pygame.error as e:
            logger.error("Audio alert error: %s", e)

    def notify(self, message, severity):
        severity = Severity(severity)
        if severity is Severity.SEVERE:
            logger.critical(message)
            print(f"[SEVERE] {message}")
        else:
            logger.warning(message)
            print(f"[WARNING] {message}")

    def close(self):
        if self.audio_enabled:
            pygame.mixer.quit()
            self.audio_enabled = False
