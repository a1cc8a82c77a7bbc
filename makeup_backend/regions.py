"""Canonical facial region table for the MediaPipe FaceMesh topology (468/478 points).

Regions are ordered index lists. A region whose first and last index coincide is
a closed outline (filled when rasterised); every other region is an open line.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

MIN_REGION_POINTS = 3
NOSE_TIP_INDEX = 1

# Lips
UPPER_LIP_OUTER: List[int] = [61, 185, 40, 39, 37, 0, 267, 269, 270, 409, 291]
UPPER_LIP_INNER: List[int] = [78, 191, 80, 81, 82, 13, 312, 311, 310, 415, 308]
LOWER_LIP_OUTER: List[int] = [61, 146, 91, 181, 84, 17, 314, 405, 321, 375, 291]
LOWER_LIP_INNER: List[int] = [78, 95, 88, 178, 87, 14, 317, 402, 318, 324, 308]
UPPER_LIP: List[int] = UPPER_LIP_OUTER + UPPER_LIP_INNER[::-1] + [61]
LOWER_LIP: List[int] = LOWER_LIP_OUTER + LOWER_LIP_INNER[::-1] + [61]
LIPS_OUTER: List[int] = LOWER_LIP_OUTER + UPPER_LIP_OUTER[::-1][1:]

# Eyes
LEFT_EYE: List[int] = [
    33, 7, 163, 144, 145, 153, 154, 155, 133,
    173, 157, 158, 159, 160, 161, 246, 33,
]
RIGHT_EYE: List[int] = [
    362, 382, 381, 380, 374, 373, 390, 249, 263,
    466, 388, 387, 386, 385, 384, 398, 362,
]
LEFT_EYE_UPPER: List[int] = [33, 246, 161, 160, 159, 158, 157, 173, 133]
LEFT_EYE_LOWER: List[int] = [33, 7, 163, 144, 145, 153, 154, 155, 133]
RIGHT_EYE_UPPER: List[int] = [362, 398, 384, 385, 386, 387, 388, 466, 263]
RIGHT_EYE_LOWER: List[int] = [362, 382, 381, 380, 374, 373, 390, 249, 263]
LEFT_IRIS: List[int] = [469, 470, 471, 472, 469]
RIGHT_IRIS: List[int] = [474, 475, 476, 477, 474]

# Eyebrows (upper edge then lower edge)
LEFT_EYEBROW: List[int] = [70, 63, 105, 66, 107, 55, 65, 52, 53, 46]
RIGHT_EYEBROW: List[int] = [300, 293, 334, 296, 336, 285, 295, 282, 283, 276]

# Cheeks
LEFT_CHEEK: List[int] = [
    117, 118, 119, 120, 121, 128, 217,
    126, 142, 36, 205, 187, 123, 116, 117,
]
RIGHT_CHEEK: List[int] = [
    346, 347, 348, 349, 350, 357, 437,
    355, 371, 266, 425, 411, 352, 345, 346,
]
LEFT_CHEEKBONE: List[int] = [117, 118, 119, 47, 126, 117]
RIGHT_CHEEKBONE: List[int] = [346, 347, 348, 277, 355, 346]
LEFT_CHEEK_HOLLOW: List[int] = [227, 137, 177, 215, 213, 192, 147, 123, 116, 227]
RIGHT_CHEEK_HOLLOW: List[int] = [447, 366, 401, 435, 433, 416, 376, 352, 345, 447]

# Temples
LEFT_TEMPLE: List[int] = [54, 21, 162, 127, 139, 71, 54]
RIGHT_TEMPLE: List[int] = [284, 251, 389, 356, 368, 301, 284]

# Nose
NOSE_BRIDGE: List[int] = [168, 6, 197, 195, 5, 4]
NOSE_RIDGE: List[int] = [168, 6, 197, 195, 5]
NOSE_TIP: List[int] = [1, 2, 98, 327, 326, 97, 1]
LEFT_NOSE_SIDE: List[int] = [122, 196, 3, 51, 48]
RIGHT_NOSE_SIDE: List[int] = [351, 419, 248, 281, 278]
NOSE: List[int] = [
    168, 122, 196, 3, 51, 48, 64, 98, 97, 2,
    326, 327, 294, 278, 281, 248, 419, 351, 168,
]

# Upper face
FOREHEAD: List[int] = [
    54, 103, 67, 109, 10, 338, 297, 332, 284,
    298, 333, 299, 337, 151, 108, 69, 104, 68, 54,
]
FACE_OVAL: List[int] = [
    10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288,
    397, 365, 379, 378, 400, 377, 152, 148, 176, 149, 150, 136,
    172, 58, 132, 93, 234, 127, 162, 21, 54, 103, 67, 109, 10,
]
LOWER_JAW: List[int] = [397, 365, 379, 378, 400, 377, 152, 148, 176, 149, 150, 136, 172]


@dataclass(frozen=True)
class RegionDefinition:
    name: str
    indices: Tuple[int, ...]

    @property
    def closed(self) -> bool:
        return len(self.indices) > 1 and self.indices[0] == self.indices[-1]


@dataclass(frozen=True)
class ScaledRegionPath:
    name: str
    points: np.ndarray  # shape: (K, 2), destination pixels
    closed: bool

    def __len__(self) -> int:
        return int(self.points.shape[0])

    @property
    def is_drawable(self) -> bool:
        return len(self) >= MIN_REGION_POINTS


def _define(table: Dict[str, Sequence[int]]) -> Dict[str, RegionDefinition]:
    return {name: RegionDefinition(name, tuple(indices)) for name, indices in table.items()}


REGIONS: Dict[str, RegionDefinition] = _define(
    {
        "upper_lip": UPPER_LIP,
        "lower_lip": LOWER_LIP,
        "upper_lip_outer": UPPER_LIP_OUTER,
        "upper_lip_inner": UPPER_LIP_INNER,
        "lower_lip_outer": LOWER_LIP_OUTER,
        "lower_lip_inner": LOWER_LIP_INNER,
        "lips_outer": LIPS_OUTER,
        "left_eye": LEFT_EYE,
        "right_eye": RIGHT_EYE,
        "left_eye_upper": LEFT_EYE_UPPER,
        "left_eye_lower": LEFT_EYE_LOWER,
        "right_eye_upper": RIGHT_EYE_UPPER,
        "right_eye_lower": RIGHT_EYE_LOWER,
        "left_iris": LEFT_IRIS,
        "right_iris": RIGHT_IRIS,
        "left_eyebrow": LEFT_EYEBROW,
        "right_eyebrow": RIGHT_EYEBROW,
        "left_cheek": LEFT_CHEEK,
        "right_cheek": RIGHT_CHEEK,
        "left_cheekbone": LEFT_CHEEKBONE,
        "right_cheekbone": RIGHT_CHEEKBONE,
        "left_cheek_hollow": LEFT_CHEEK_HOLLOW,
        "right_cheek_hollow": RIGHT_CHEEK_HOLLOW,
        "left_temple": LEFT_TEMPLE,
        "right_temple": RIGHT_TEMPLE,
        "nose": NOSE,
        "nose_bridge": NOSE_BRIDGE,
        "nose_ridge": NOSE_RIDGE,
        "nose_tip": NOSE_TIP,
        "left_nose_side": LEFT_NOSE_SIDE,
        "right_nose_side": RIGHT_NOSE_SIDE,
        "forehead": FOREHEAD,
        "face_oval": FACE_OVAL,
        "lower_jaw": LOWER_JAW,
    }
)


def _point_xy(item: Any) -> Tuple[float, float]:
    if item is None:
        return float("nan"), float("nan")
    if isinstance(item, dict):
        return float(item["x"]), float(item["y"])
    if hasattr(item, "x") and hasattr(item, "y"):
        return float(item.x), float(item.y)
    return float(item[0]), float(item[1])


def as_landmark_array(landmarks: Any) -> Optional[np.ndarray]:
    """Normalise a landmark set to an ``(N, 2)`` float32 array.

    Accepts numpy arrays of shape ``(N, 2)`` or ``(N, 3)`` and sequences of
    points given as objects with ``x``/``y`` attributes, mappings or tuples.
    Absent entries (``None``) become NaN rows so indices stay stable.
    """
    if landmarks is None:
        return None
    if isinstance(landmarks, np.ndarray):
        if landmarks.ndim != 2 or landmarks.shape[1] < 2:
            raise ValueError(f"Landmark array must be (N, 2|3), got {landmarks.shape}")
        if landmarks.dtype == np.float32 and landmarks.shape[1] == 2:
            return landmarks
        return np.ascontiguousarray(landmarks[:, :2], dtype=np.float32)
    pts = [_point_xy(item) for item in landmarks]
    if not pts:
        return np.empty((0, 2), dtype=np.float32)
    return np.array(pts, dtype=np.float32)


def has_landmarks(landmarks: Optional[np.ndarray]) -> bool:
    return landmarks is not None and len(landmarks) > 0


def region_path(landmarks: Any, region_name: str, scale: float = 1.0) -> ScaledRegionPath:
    """Resolve a named region against a landmark set in destination pixels."""
    region = REGIONS.get(region_name)
    if region is None:
        logger.warning(f"Unknown region: {region_name}")
        return ScaledRegionPath(region_name, np.empty((0, 2), dtype=np.float32), False)

    pts = as_landmark_array(landmarks)
    if not has_landmarks(pts):
        return ScaledRegionPath(region_name, np.empty((0, 2), dtype=np.float32), region.closed)

    valid = [i for i in region.indices if 0 <= i < len(pts)]
    resolved = pts[valid] if valid else np.empty((0, 2), dtype=np.float32)
    resolved = resolved[np.all(np.isfinite(resolved), axis=1)]
    return ScaledRegionPath(
        region_name,
        (resolved * float(scale)).astype(np.float32),
        region.closed,
    )


def region_paths(
    landmarks: Any, region_names: Iterable[str], scale: float = 1.0
) -> Dict[str, ScaledRegionPath]:
    pts = as_landmark_array(landmarks)
    return {name: region_path(pts, name, scale) for name in region_names}


def landmark_point(landmarks: Any, index: int, scale: float = 1.0) -> Optional[np.ndarray]:
    pts = as_landmark_array(landmarks)
    if not has_landmarks(pts) or not 0 <= index < len(pts):
        return None
    point = pts[index]
    if not np.all(np.isfinite(point)):
        return None
    return point * float(scale)


def available_regions() -> List[str]:
    return list(REGIONS.keys())
