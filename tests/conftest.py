from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
import pytest

from makeup_backend import regions as R

CANVAS = 256
NUM_LANDMARKS = 478


def _unique(indices: Sequence[int]) -> list:
    seen = []
    for idx in indices:
        if idx not in seen:
            seen.append(idx)
    return seen


def _place_ring(pts: np.ndarray, indices: Sequence[int], center: Tuple[float, float], axes: Tuple[float, float], start: float = math.pi) -> None:
    """Spread a closed region's points evenly around an ellipse."""
    ring = _unique(indices)
    n = len(ring)
    for k, idx in enumerate(ring):
        theta = start - 2.0 * math.pi * k / n
        pts[idx] = (center[0] + axes[0] * math.cos(theta), center[1] + axes[1] * math.sin(theta))


def _place_arc(pts: np.ndarray, indices: Sequence[int], center: Tuple[float, float], axes: Tuple[float, float], upper: bool) -> None:
    """Half ellipse from the left corner (theta = pi) to the right corner (theta = 0)."""
    n = len(indices)
    sign = -1.0 if upper else 1.0
    for k, idx in enumerate(indices):
        theta = math.pi - math.pi * k / (n - 1)
        pts[idx] = (center[0] + axes[0] * math.cos(theta), center[1] + sign * axes[1] * math.sin(theta))


def _place_line(pts: np.ndarray, indices: Sequence[int], start: Tuple[float, float], end: Tuple[float, float]) -> None:
    n = len(indices)
    for k, idx in enumerate(indices):
        t = k / (n - 1)
        pts[idx] = (start[0] + (end[0] - start[0]) * t, start[1] + (end[1] - start[1]) * t)


def _mirror(pts: np.ndarray, left: Sequence[int], right: Sequence[int]) -> None:
    for l_idx, r_idx in zip(left, right):
        pts[r_idx] = (CANVAS - pts[l_idx][0], pts[l_idx][1])


def build_synthetic_face() -> np.ndarray:
    """Symmetric 478-point face on a 256x256 canvas (eyes and lips as regular shapes)."""
    pts = np.full((NUM_LANDMARKS, 2), CANVAS / 2.0, dtype=np.float32)

    _place_ring(pts, R.FACE_OVAL, (128, 128), (100, 120), start=-math.pi / 2)
    _place_ring(pts, R.FOREHEAD, (128, 45), (50, 15))
    _place_ring(pts, R.LEFT_TEMPLE, (45, 75), (10, 15))
    _mirror(pts, _unique(R.LEFT_TEMPLE), _unique(R.RIGHT_TEMPLE))
    _place_ring(pts, R.LEFT_CHEEK_HOLLOW, (55, 165), (12, 18))
    _mirror(pts, _unique(R.LEFT_CHEEK_HOLLOW), _unique(R.RIGHT_CHEEK_HOLLOW))
    _place_ring(pts, R.LEFT_CHEEKBONE, (80, 126), (16, 6))
    _mirror(pts, _unique(R.LEFT_CHEEKBONE), _unique(R.RIGHT_CHEEKBONE))
    _place_ring(pts, R.LEFT_CHEEK, (80, 148), (20, 14))
    _mirror(pts, _unique(R.LEFT_CHEEK), _unique(R.RIGHT_CHEEK))

    _place_line(pts, R.NOSE_BRIDGE, (128, 100), (128, 148))
    _place_ring(pts, R.NOSE_TIP, (128, 150), (6, 4))
    _place_ring(pts, R.NOSE, (128, 128), (14, 28), start=-math.pi / 2)
    _place_line(pts, R.NOSE_RIDGE, (128, 104), (128, 140))
    pts[R.NOSE_TIP_INDEX] = (128, 150)

    _place_line(pts, R.LEFT_EYEBROW[:5], (68, 76), (108, 76))
    _place_line(pts, R.LEFT_EYEBROW[5:], (108, 80), (68, 80))
    _mirror(pts, R.LEFT_EYEBROW, R.RIGHT_EYEBROW)

    _place_ring(pts, R.LEFT_EYE, (88, 100), (14, 6))
    _mirror(pts, _unique(R.LEFT_EYE), _unique(R.RIGHT_EYE))
    _place_ring(pts, R.LEFT_IRIS, (88, 100), (3, 3))
    _mirror(pts, _unique(R.LEFT_IRIS), _unique(R.RIGHT_IRIS))

    _place_arc(pts, R.UPPER_LIP_OUTER, (128, 180), (30, 12), upper=True)
    _place_arc(pts, R.LOWER_LIP_OUTER, (128, 180), (30, 12), upper=False)
    _place_arc(pts, R.UPPER_LIP_INNER, (128, 180), (20, 3), upper=True)
    _place_arc(pts, R.LOWER_LIP_INNER, (128, 180), (20, 3), upper=False)
    return pts


@pytest.fixture
def face_landmarks() -> np.ndarray:
    return build_synthetic_face()


@pytest.fixture
def base_image() -> np.ndarray:
    return np.full((CANVAS, CANVAS, 3), 200, dtype=np.uint8)


@pytest.fixture
def textured_image() -> np.ndarray:
    rng = np.random.default_rng(7)
    noise = rng.integers(-30, 31, size=(CANVAS, CANVAS, 3))
    return np.clip(170 + noise, 0, 255).astype(np.uint8)
