"""
Configuration file for drowsiness classification thresholds and settings
"""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env file if it exists

# Eye Aspect Ratio (EAR) thresholds
# Typical EAR(open) ~ 0.25–0.35, EAR(closed) < 0.15 (varies per camera/face).
# - EAR_CLOSED_THRESHOLD: below this the frame counts toward SLEEPING
# - EAR_DROWSY_THRESHOLD: below this (and above closed) counts toward DROWSY
EAR_CLOSED_THRESHOLD = 0.15
EAR_DROWSY_THRESHOLD = 0.20

# Returned when a landmark frame cannot produce an EAR ("eyes open")
DEFAULT_EAR = 0.25

# Consecutive-frame thresholds (calibrated for a ~30 fps landmark source)
SLEEPING_CONSEC_FRAMES = 22           # ~0.7s continuous closure => sleeping
DROWSY_CONSEC_FRAMES = 30             # ~1s partial closure => drowsy

# MediaPipe Face Mesh landmark indices used for EAR
# Corners: (inner, outer); vertical pairs: (top, bottom)
LEFT_EYE_CORNERS = (33, 133)
LEFT_EYE_VERTICAL = ((159, 145), (158, 153))
RIGHT_EYE_CORNERS = (362, 263)
RIGHT_EYE_VERTICAL = ((386, 374), (387, 373))

# Full eye contours (16 points each), for hosts that draw the eyes
LEFT_EYE_POINTS = (
    33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246,
)
RIGHT_EYE_POINTS = (
    362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398,
)

# Persistence throttle: at most one stored event per window (seconds)
PERSIST_THROTTLE_SECONDS = 5.0
EVENT_CONFIDENCE = 0.9

# Alert tones
# Each pulse: (offset_s, frequency_hz, duration_s, volume, decay)
# decay=True ramps the volume exponentially down to TONE_DECAY_FLOOR
AUDIO_SAMPLE_RATE = 22050
TONE_DECAY_FLOOR = 0.001
DROWSY_TONE_PULSES = (
    (0.0, 500, 0.1, 0.3, True),
    (0.2, 500, 0.1, 0.3, True),
    (0.4, 500, 0.1, 0.3, True),
)
SLEEPING_TONE_PULSES = (
    (0.0, 1000, 1.5, 0.5, False),
)

# Driver-facing notices
DROWSY_NOTICE = "DROWSINESS DETECTED: Stay alert while driving."
SLEEPING_NOTICE = "SLEEPING DETECTED: WAKE UP! Pull over now!"

# Camera settings
CAMERA_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
TARGET_FPS = 30

# Camera backend (AUTO tries the platform capture APIs, then the default)
# Options: "AUTO", "DEFAULT", "DSHOW", "MSMF", "V4L2", "AVFOUNDATION"
CAMERA_BACKEND = "AUTO"

# How many camera indices to scan if CAMERA_INDEX fails (0..N-1)
CAMERA_SCAN_COUNT = 4

# Reads allowed for a freshly opened camera to deliver its first frame
CAMERA_WARMUP_READS = 10

# Face Mesh settings
FACE_MIN_DETECTION_CONFIDENCE = 0.7
FACE_MIN_TRACKING_CONFIDENCE = 0.5

# Supabase Cloud Integration Configuration
# Set these via environment variables: SUPABASE_URL and SUPABASE_KEY
# Or pass them when initializing SupabaseLogger
SUPABASE_ENABLED = os.getenv("SUPABASE_ENABLED", "true").lower() not in ("0", "false", "no")
SUPABASE_EVENTS_TABLE = "drowsiness_events"

# Vehicle this monitor is installed in
VEHICLE_ID = os.getenv("VEHICLE_ID", "unassigned")

# Console status line interval (frames)
STATUS_INTERVAL_FRAMES = 30
