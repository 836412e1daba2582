"""
Driver Drowsiness Monitor

This package contains all modules for driver alertness classification:
- EAR detection
- Hysteresis state classification (awake / drowsy / sleeping)
- Alert dispatch (tones, notices, throttled event records)
- Detection session lifecycle
- MediaPipe landmark source and camera handling
"""

__version__ = "1.0.0"
