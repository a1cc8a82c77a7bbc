from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .regions import MIN_REGION_POINTS, ScaledRegionPath

PathLike = Union[ScaledRegionPath, np.ndarray, Sequence[Sequence[float]]]

DEFAULT_STROKE_WIDTH = 3


def blank_mask(shape: Tuple[int, int]) -> np.ndarray:
    h, w = shape[:2]
    return np.zeros((h, w), dtype=np.uint8)


def _path_points(path: PathLike, closed: Optional[bool]) -> Tuple[np.ndarray, bool]:
    if isinstance(path, ScaledRegionPath):
        pts = path.points
        is_closed = path.closed if closed is None else closed
    else:
        pts = np.asarray(path, dtype=np.float32).reshape(-1, 2)
        if closed is None:
            is_closed = len(pts) > 1 and bool(np.allclose(pts[0], pts[-1]))
        else:
            is_closed = closed
    return pts, is_closed


def rasterize_path(
    mask: np.ndarray,
    path: PathLike,
    stroke_width: int = DEFAULT_STROKE_WIDTH,
    closed: Optional[bool] = None,
) -> bool:
    """Draw a path into ``mask`` in place: fill closed outlines, stroke open lines."""
    pts, is_closed = _path_points(path, closed)
    if len(pts) < MIN_REGION_POINTS:
        return False
    poly = np.round(pts).astype(np.int32).reshape(-1, 1, 2)
    if is_closed:
        cv2.fillPoly(mask, [poly], 255)
    else:
        cv2.polylines(mask, [poly], False, 255, thickness=max(1, int(round(stroke_width))))
    return True


def feather_mask(mask: np.ndarray, radius: float) -> np.ndarray:
    if radius <= 0 or not np.any(mask):
        return mask
    return cv2.GaussianBlur(mask, (0, 0), sigmaX=float(radius))


def build_mask(
    path: PathLike,
    surface_size: Tuple[int, int],
    feather_radius: float = 3.0,
    stroke_width: int = DEFAULT_STROKE_WIDTH,
    closed: Optional[bool] = None,
) -> np.ndarray:
    """Coverage mask (uint8, 0-255) of one path with a feathered edge."""
    mask = blank_mask(surface_size)
    if not rasterize_path(mask, path, stroke_width, closed):
        return mask
    return feather_mask(mask, feather_radius)


def build_combined_mask(
    paths: Iterable[PathLike],
    surface_size: Tuple[int, int],
    feather_radius: float = 3.0,
    stroke_width: int = DEFAULT_STROKE_WIDTH,
) -> np.ndarray:
    """Union of several paths rasterised into one buffer, then blurred once.

    Blurring after the union keeps the seam between adjacent regions invisible,
    which a union of already-feathered masks does not.
    """
    mask = blank_mask(surface_size)
    drawn = False
    for path in paths:
        drawn = rasterize_path(mask, path, stroke_width) or drawn
    if not drawn:
        return mask
    return feather_mask(mask, feather_radius)


def keep_only_where(alpha: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Destination-in: keep ``alpha`` only where ``mask`` has coverage."""
    return cv2.multiply(alpha, mask, scale=1.0 / 255.0)


def remove_coverage(mask: np.ndarray, exclusion: np.ndarray) -> np.ndarray:
    """Destination-out: remove ``exclusion`` coverage from ``mask``."""
    return cv2.multiply(mask, cv2.bitwise_not(exclusion), scale=1.0 / 255.0)


def union_masks(*masks: np.ndarray) -> np.ndarray:
    result = masks[0].copy()
    for mask in masks[1:]:
        result = cv2.max(result, mask)
    return result


def mask_bounds(
    mask: np.ndarray,
    padding: int,
    shape: Tuple[int, int],
) -> Optional[Tuple[int, int, int, int]]:
    if mask is None or not np.any(mask):
        return None
    h, w = shape[:2]
    ys, xs = np.nonzero(mask > 0)
    if xs.size == 0 or ys.size == 0:
        return None
    pad = max(0, padding)
    x0 = max(int(xs.min()) - pad, 0)
    y0 = max(int(ys.min()) - pad, 0)
    x1 = min(int(xs.max()) + pad + 1, w)
    y1 = min(int(ys.max()) + pad + 1, h)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1
