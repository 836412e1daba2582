"""Tests for the MediaPipe landmark source (camera and Face Mesh mocked)."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from drowsiness_monitor import face_detector
from drowsiness_monitor.face_detector import FaceMeshLandmarkSource, to_landmark_frame

IMAGE = np.zeros((48, 64, 3), dtype=np.uint8)


def _face(n=478):
    return SimpleNamespace(
        landmark=[SimpleNamespace(x=i / n, y=1 - i / n, z=0.0) for i in range(n)]
    )


def test_to_landmark_frame_keeps_order_and_drops_z():
    frame = to_landmark_frame(_face(3))
    assert frame == [(0.0, 1.0), (1 / 3, 1 - 1 / 3), (2 / 3, 1 - 2 / 3)]


@pytest.fixture
def camera():
    cap = MagicMock()
    cap.read.return_value = (True, IMAGE)
    with patch.object(FaceMeshLandmarkSource, "_open_camera", return_value=cap):
        yield cap


@pytest.fixture
def mesh():
    mp = MagicMock()
    with patch.object(face_detector, "mp", mp):
        yield mp.solutions.face_mesh.FaceMesh.return_value


def test_frames_yield_landmarks_or_none(camera, mesh):
    face = _face()
    mesh.process.side_effect = [
        SimpleNamespace(multi_face_landmarks=[face]),
        SimpleNamespace(multi_face_landmarks=None),
        SimpleNamespace(multi_face_landmarks=[face, _face()]),
    ]
    source = FaceMeshLandmarkSource(max_frames=3)

    frames = list(source.frames())

    assert frames[0] == to_landmark_frame(face)
    assert frames[1] is None
    assert frames[2] == to_landmark_frame(face)
    camera.release.assert_called_once()
    mesh.close.assert_called_once()


def test_face_mesh_options(camera):
    mp = MagicMock()
    with patch.object(face_detector, "mp", mp):
        source = FaceMeshLandmarkSource(max_frames=0)
        list(source.frames())

    mp.solutions.face_mesh.FaceMesh.assert_called_once_with(
        static_image_mode=False,
        max_num_faces=1,
        refine_landmarks=True,
        min_detection_confidence=0.7,
        min_tracking_confidence=0.5,
    )


def test_failed_reads_are_skipped(camera, mesh):
    camera.read.side_effect = [(False, None), (True, IMAGE)]
    mesh.process.return_value = SimpleNamespace(multi_face_landmarks=None)
    source = FaceMeshLandmarkSource(max_frames=1)

    with patch.object(face_detector.time, "sleep"):
        frames = list(source.frames())

    assert frames == [None]
    assert camera.read.call_count == 2


def test_stop_ends_stream(camera, mesh):
    mesh.process.return_value = SimpleNamespace(multi_face_landmarks=None)
    source = FaceMeshLandmarkSource()

    seen = 0
    for _ in source.frames():
        seen += 1
        source.stop()

    assert seen == 1
    camera.release.assert_called_once()


def test_unrecoverable_camera_ends_stream(mesh):
    cap = MagicMock()
    cap.read.return_value = (False, None)
    with patch.object(
        FaceMeshLandmarkSource, "_open_camera", side_effect=[cap, RuntimeError("gone")]
    ), \
            patch.object(face_detector.time, "sleep"):
        frames = list(FaceMeshLandmarkSource().frames())

    assert frames == []
    assert cap.read.call_count == 21


def _fake_cv2(**apis):
    """cv2 stand-in exposing only the given CAP_* backends."""
    return SimpleNamespace(
        VideoCapture=MagicMock(),
        CAP_PROP_FRAME_WIDTH=3,
        CAP_PROP_FRAME_HEIGHT=4,
        CAP_PROP_FPS=5,
        error=face_detector.cv2.error,
        **apis,
    )


def _capture(opened=True, reads=((True, IMAGE),)):
    cap = MagicMock()
    cap.isOpened.return_value = opened
    cap.read.side_effect = list(reads)
    return cap


class TestBackendCandidates:
    @pytest.fixture(autouse=True)
    def cv2_stub(self):
        with patch.object(face_detector, "cv2", _fake_cv2(CAP_DSHOW=700, CAP_V4L2=200)):
            yield

    def test_auto_tries_available_apis_then_default(self):
        assert face_detector.backend_candidates("AUTO") == [700, 200, None]

    def test_default_only(self):
        assert face_detector.backend_candidates("default") == [None]

    def test_named_backend(self):
        assert face_detector.backend_candidates("dshow") == [700, None]

    def test_missing_backend_falls_back_to_default(self):
        assert face_detector.backend_candidates("MSMF") == [None]


class TestOpenCamera:
    def test_preferred_index_first_then_scan(self):
        cv2_stub = _fake_cv2()
        closed, working = _capture(opened=False), _capture()
        cv2_stub.VideoCapture.side_effect = [closed, working]
        source = FaceMeshLandmarkSource(camera_index=2, camera_backend="DEFAULT", scan_count=3)

        with patch.object(face_detector, "cv2", cv2_stub):
            cap = source._open_camera()

        assert cap is working
        assert [c.args for c in cv2_stub.VideoCapture.call_args_list] == [(2,), (0,)]
        closed.release.assert_called_once()
        working.set.assert_any_call(3, 640)
        working.set.assert_any_call(5, 30)

    def test_named_backend_passed_to_capture(self):
        cv2_stub = _fake_cv2(CAP_V4L2=200)
        cv2_stub.VideoCapture.return_value = _capture()
        source = FaceMeshLandmarkSource(camera_index=1, camera_backend="V4L2")

        with patch.object(face_detector, "cv2", cv2_stub):
            source._open_camera()

        cv2_stub.VideoCapture.assert_called_once_with(1, 200)

    def test_camera_without_frames_is_skipped(self):
        cv2_stub = _fake_cv2()
        silent = _capture(reads=[(False, None)] * 10)
        cv2_stub.VideoCapture.side_effect = [silent, _capture()]
        source = FaceMeshLandmarkSource(camera_index=0, camera_backend="DEFAULT", scan_count=2)

        with patch.object(face_detector, "cv2", cv2_stub), \
                patch.object(face_detector.time, "sleep"):
            source._open_camera()

        assert silent.read.call_count == 10
        silent.release.assert_called_once()

    def test_capture_error_is_skipped(self):
        cv2_stub = _fake_cv2()
        working = _capture()
        cv2_stub.VideoCapture.side_effect = [face_detector.cv2.error("busy"), working]
        source = FaceMeshLandmarkSource(camera_index=0, camera_backend="DEFAULT", scan_count=2)

        with patch.object(face_detector, "cv2", cv2_stub):
            assert source._open_camera() is working

    def test_no_camera_raises(self):
        cv2_stub = _fake_cv2(CAP_DSHOW=700)
        cv2_stub.VideoCapture.side_effect = lambda *a: _capture(opened=False)
        source = FaceMeshLandmarkSource(camera_index=0, camera_backend="AUTO", scan_count=2)

        with patch.object(face_detector, "cv2", cv2_stub):
            with pytest.raises(RuntimeError, match="backend AUTO"):
                source._open_camera()

        # two indices on DSHOW, then on the default backend
        assert cv2_stub.VideoCapture.call_count == 4
