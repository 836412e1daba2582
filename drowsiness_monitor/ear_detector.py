"""
EAR (Eye Aspect Ratio) Detection Module
Calculates the average EAR of both eyes from a normalized landmark frame
"""

from collections import namedtuple

import numpy as np

from drowsiness_monitor.config import (
    DEFAULT_EAR,
    LEFT_EYE_CORNERS,
    LEFT_EYE_VERTICAL,
    RIGHT_EYE_CORNERS,
    RIGHT_EYE_VERTICAL,
)

EyeGeometry = namedtuple("EyeGeometry", ["corners", "vertical"])

LEFT_EYE = EyeGeometry(corners=LEFT_EYE_CORNERS, vertical=LEFT_EYE_VERTICAL)
RIGHT_EYE = EyeGeometry(corners=RIGHT_EYE_CORNERS, vertical=RIGHT_EYE_VERTICAL)


def _as_points(frame):
    """Return the frame as an (N, 2) float array, or None if malformed."""
    try:
        pts = np.asarray(frame, dtype=np.float64)
    except (TypeError, ValueError):
        return None

    if pts.ndim != 2 or pts.shape[1] < 2:
        return None
    return pts[:, :2]


def calculate_eye_ear(points, eye):
    """
    Calculate EAR for a single eye.

    Args:
        points: (N, 2) array of normalized landmark coordinates
        eye: EyeGeometry with the corner pair and two vertical pairs

    Returns:
        EAR value (float) or None if the eye has zero width
    """
    inner, outer = eye.corners
    (top1, bottom1), (top2, bottom2) = eye.vertical

    h = np.linalg.norm(points[inner] - points[outer])
    if h == 0:
        return None

    v1 = np.linalg.norm(points[top1] - points[bottom1])
    v2 = np.linalg.norm(points[top2] - points[bottom2])
    return ((v1 + v2) / 2.0) / h


def calculate_ear(frame):
    """
    Calculate the average EAR of both eyes.

    A frame that is missing a referenced landmark, is not a sequence of
    2D points, or yields a degenerate eye falls back to DEFAULT_EAR
    (treated as eyes open).

    Args:
        frame: Sequence of (x, y) normalized landmark points

    Returns:
        Average EAR value (float)
    """
    pts = _as_points(frame)
    if pts is None:
        return DEFAULT_EAR

    try:
        le = calculate_eye_ear(pts, LEFT_EYE)
        re = calculate_eye_ear(pts, RIGHT_EYE)
    except IndexError:
        return DEFAULT_EAR

    if le is None or re is None:
        return DEFAULT_EAR

    ear = (le + re) / 2.0
    if not np.isfinite(ear):
        return DEFAULT_EAR
    return float(ear)
