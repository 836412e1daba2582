"""
Face Detection Module
MediaPipe Face Mesh landmark source for a detection session
"""

import logging
import time

import cv2
import mediapipe as mp

from drowsiness_monitor.config import (
    CAMERA_BACKEND,
    CAMERA_INDEX,
    CAMERA_SCAN_COUNT,
    CAMERA_WARMUP_READS,
    FACE_MIN_DETECTION_CONFIDENCE,
    FACE_MIN_TRACKING_CONFIDENCE,
    FRAME_HEIGHT,
    FRAME_WIDTH,
    TARGET_FPS,
)

logger = logging.getLogger(__name__)

CAMERA_BACKENDS = ("AUTO", "DEFAULT", "DSHOW", "MSMF", "V4L2", "AVFOUNDATION")


def backend_candidates(backend):
    """
    Resolve a backend name into the OpenCV API preferences to try, in order.

    AUTO tries the platform capture APIs this OpenCV build has, then the
    default. A named backend missing from the build falls back to the default.
    None stands for the default backend.
    """
    backend = str(backend).upper()
    if backend == "AUTO":
        names = ("DSHOW", "MSMF", "V4L2", "AVFOUNDATION")
    elif backend == "DEFAULT":
        names = ()
    else:
        names = (backend,)

    candidates = [getattr(cv2, f"CAP_{name}") for name in names if hasattr(cv2, f"CAP_{name}")]
    candidates.append(None)
    return candidates


def to_landmark_frame(face_landmarks):
    """
    Convert a MediaPipe face landmark list into normalized (x, y) points.

    Args:
        face_landmarks: MediaPipe NormalizedLandmarkList

    Returns:
        List of (x, y) tuples in [0, 1] image coordinates
    """
    return [(lm.x, lm.y) for lm in face_landmarks.landmark]


class FaceMeshLandmarkSource:
    """
    Camera + MediaPipe Face Mesh.

    frames() yields a landmark frame for the first detected face, or None
    when no face is found. It ends when stop() is called or the camera
    cannot be recovered.
    """

    def __init__(
        self,
        camera_index=CAMERA_INDEX,
        camera_backend=CAMERA_BACKEND,
        scan_count=CAMERA_SCAN_COUNT,
        max_frames=None,
    ):
        """
        Args:
            camera_index: Preferred camera index, tried first
            camera_backend: One of CAMERA_BACKENDS
            scan_count: Other indices 0..scan_count-1 tried if the preferred one fails
            max_frames: Stop after this many camera frames (None = unbounded)
        """
        self.camera_index = camera_index
        self.camera_backend = camera_backend
        self.scan_count = scan_count
        self.max_frames = max_frames
        self.cap = None
        self.face_mesh = None
        self.last_image = None
        self._stopped = False

    def _camera_indices(self):
        return [self.camera_index] + [
            i for i in range(self.scan_count) if i != self.camera_index
        ]

    def _try_capture(self, index, api):
        """Open one (index, backend) pair; return the capture once it delivers a frame."""
        cap = cv2.VideoCapture(index) if api is None else cv2.VideoCapture(index, api)
        if not cap.isOpened():
            cap.release()
            return None

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, FRAME_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, FRAME_HEIGHT)
        cap.set(cv2.CAP_PROP_FPS, TARGET_FPS)

        for _ in range(CAMERA_WARMUP_READS):
            ok, _image = cap.read()
            if ok:
                return cap
            time.sleep(0.05)

        cap.release()
        return None

    def _open_camera(self):
        """
        Try backends and camera indices until one delivers frames.

        Raises:
            RuntimeError: If no combination works
        """
        tried = []
        for api in backend_candidates(self.camera_backend):
            for index in self._camera_indices():
                tried.append((index, "DEFAULT" if api is None else api))
                try:
                    cap = self._try_capture(index, api)
                except cv2.error as e:
                    logger.debug("Camera %s (backend %s) failed: %s", index, api, e)
                    continue
                if cap is not None:
                    logger.info("Camera opened: index=%s, backend=%s", *tried[-1])
                    return cap

        raise RuntimeError(
            f"Could not read frames from any camera (backend {self.camera_backend}). "
            f"Tried (index, backend): {tried}. Close other apps using the camera, "
            f"or pass a different --camera / --camera-backend."
        )

    def _open(self):
        self.cap = self._open_camera()
        self.face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=FACE_MIN_DETECTION_CONFIDENCE,
            min_tracking_confidence=FACE_MIN_TRACKING_CONFIDENCE,
        )

    def detect(self, frame):
        """
        Detect face landmarks from a BGR frame.

        Returns:
            Landmark frame of the first face or None if no face detected
        """
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(rgb)

        if not results.multi_face_landmarks:
            return None

        return to_landmark_frame(results.multi_face_landmarks[0])

    def _read(self, consecutive_failures):
        """Read one frame, reopening the camera if it appears stuck."""
        ret, frame = self.cap.read()
        if ret and frame is not None and frame.size > 0:
            return frame, 0

        consecutive_failures += 1
        # Few transient failures: silently retry (common camera glitches)
        if consecutive_failures <= 5:
            time.sleep(0.01)
        elif consecutive_failures <= 20:
            logger.warning("Camera glitch detected (%d failures), retrying...", consecutive_failures)
            time.sleep(0.05)
        else:
            logger.error("Camera appears stuck, attempting to re-open...")
            self.cap.release()
            time.sleep(0.5)
            self.cap = self._open_camera()
            consecutive_failures = 0
        return None, consecutive_failures

    def frames(self):
        self._stopped = False
        self._open()
        count = 0
        failures = 0
        try:
            while not self._stopped:
                if self.max_frames is not None and count >= self.max_frames:
                    break
                try:
                    image, failures = self._read(failures)
                except RuntimeError as e:
                    logger.error("Failed to re-open camera: %s", e)
                    break
                if image is None:
                    continue

                count += 1
                self.last_image = image
                yield self.detect(image)
        finally:
            self.close()

    def stop(self):
        self._stopped = True

    def close(self):
        """Release the camera and the face mesh graph."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        if self.face_mesh is not None:
            self.face_mesh.close()
            self.face_mesh = None
