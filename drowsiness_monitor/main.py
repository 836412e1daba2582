"""
Main Entry Point for the Driver Drowsiness Monitor

Pipeline per camera frame:
- face_detector.py: MediaPipe Face Mesh -> normalized landmarks (or no face)
- ear_detector.py: landmarks -> Eye Aspect Ratio
- state_classifier.py: EAR -> AWAKE / DROWSY / SLEEPING with hysteresis
- dispatcher.py: state change -> alert tone, notice, throttled Supabase record

Run with: python -m drowsiness_monitor.main --vehicle-id <id>
Stop with Ctrl+C.
"""

import argparse
import logging
import sys
import time

from drowsiness_monitor.alerter import PygameAlertSink
from drowsiness_monitor.config import (
    CAMERA_BACKEND,
    CAMERA_INDEX,
    CAMERA_SCAN_COUNT,
    STATUS_INTERVAL_FRAMES,
    SUPABASE_ENABLED,
    VEHICLE_ID,
)
from drowsiness_monitor.face_detector import CAMERA_BACKENDS, FaceMeshLandmarkSource
from drowsiness_monitor.session import DetectionSession
from drowsiness_monitor.supabase_logger import SupabaseLogger

logger = logging.getLogger(__name__)


class _NullEventLogger:
    """Event logger used when cloud logging is turned off."""

    def log_drowsiness_event(self, event_data):
        logger.debug("Cloud logging disabled, event not stored: %s", event_data)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Driver drowsiness monitor")
    parser.add_argument("--vehicle-id", default=VEHICLE_ID, help="Vehicle id stored with each event")
    parser.add_argument("--camera", type=int, default=CAMERA_INDEX, help="Preferred camera index")
    parser.add_argument(
        "--camera-backend",
        type=str.upper,
        default=CAMERA_BACKEND,
        choices=CAMERA_BACKENDS,
        help="OpenCV capture backend",
    )
    parser.add_argument(
        "--camera-scan-count",
        type=int,
        default=CAMERA_SCAN_COUNT,
        help="Also try camera indices 0..N-1 if the preferred one fails",
    )
    parser.add_argument("--no-audio", action="store_true", help="Disable alert tones")
    parser.add_argument("--no-cloud", action="store_true", help="Disable Supabase event logging")
    parser.add_argument(
        "--status-interval",
        type=int,
        default=STATUS_INTERVAL_FRAMES,
        help="Print a status line every N frames (0 disables)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


def print_detection(state, ear):
    print(f"[STATE] {state.value.upper()} (EAR {ear:.3f})")


def main(argv=None):
    """Main detection loop."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("Starting Driver Drowsiness Monitor...")
    print("=" * 70)
    print(f"  Vehicle: {args.vehicle_id}")
    print("=" * 70)

    alert_sink = PygameAlertSink(audio_enabled=not args.no_audio)
    if SUPABASE_ENABLED and not args.no_cloud:
        event_logger = SupabaseLogger()
    else:
        event_logger = _NullEventLogger()

    session = DetectionSession(
        args.vehicle_id,
        alert_sink,
        event_logger,
        on_detection=print_detection,
    )
    source = FaceMeshLandmarkSource(
        camera_index=args.camera,
        camera_backend=args.camera_backend,
        scan_count=args.camera_scan_count,
    )

    frame_count = 0
    start_time = time.time()
    session.start()
    try:
        for frame in source.frames():
            session.process_landmarks(frame)

            frame_count += 1
            if args.status_interval and frame_count % args.status_interval == 0:
                elapsed = time.time() - start_time
                fps = frame_count / elapsed if elapsed > 0 else 0
                status = session.status()
                if status.face_found:
                    print(
                        f"FPS: {fps:.1f} | State: {status.state.value.upper()} | "
                        f"EAR: {status.ear:.4f}"
                    )
                else:
                    print(f"FPS: {fps:.1f} | No face detected")
    except RuntimeError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        pass
    finally:
        source.stop()
        session.stop()
        alert_sink.close()
        print("Shutdown complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
