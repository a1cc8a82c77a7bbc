"""Procedural gradient alpha ramps, in the spirit of canvas linear/radial gradients."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

ColorStop = Tuple[float, float]  # (offset in [0, 1], alpha in [0, 1])


def _stops_to_arrays(stops: Sequence[ColorStop]) -> Tuple[np.ndarray, np.ndarray]:
    ordered = sorted(stops, key=lambda stop: stop[0])
    offsets = np.array([float(np.clip(o, 0.0, 1.0)) for o, _ in ordered], dtype=np.float32)
    alphas = np.array([float(np.clip(a, 0.0, 1.0)) for _, a in ordered], dtype=np.float32)
    return offsets, alphas


def _to_uint8(alpha: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(alpha * 255.0), 0, 255).astype(np.uint8)


def linear_gradient_alpha(
    shape: Tuple[int, int],
    start: Sequence[float],
    end: Sequence[float],
    stops: Sequence[ColorStop],
) -> np.ndarray:
    """Alpha ramp along the ``start`` -> ``end`` axis, padded beyond both ends."""
    h, w = shape[:2]
    offsets, alphas = _stops_to_arrays(stops)
    sx, sy = float(start[0]), float(start[1])
    dx, dy = float(end[0]) - sx, float(end[1]) - sy
    length_sq = dx * dx + dy * dy
    if length_sq < 1e-6:
        return np.full((h, w), _to_uint8(np.array(alphas[-1])), dtype=np.uint8)
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    t = ((xs - sx) * dx + (ys - sy) * dy) / length_sq
    t = np.clip(t, 0.0, 1.0)
    return _to_uint8(np.interp(t, offsets, alphas))


def radial_gradient_alpha(
    shape: Tuple[int, int],
    center: Sequence[float],
    radius: float,
    stops: Sequence[ColorStop],
) -> np.ndarray:
    """Alpha ramp by distance from ``center``; offset 1 sits at ``radius``."""
    h, w = shape[:2]
    offsets, alphas = _stops_to_arrays(stops)
    if radius <= 0:
        return np.zeros((h, w), dtype=np.uint8)
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float32)
    dist = np.sqrt((xs - float(center[0])) ** 2 + (ys - float(center[1])) ** 2)
    t = np.clip(dist / float(radius), 0.0, 1.0)
    return _to_uint8(np.interp(t, offsets, alphas))
