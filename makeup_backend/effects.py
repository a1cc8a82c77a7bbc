"""Effect renderers.

Every renderer has the signature ``(surface, landmarks, scale, settings) -> bool``
and composites onto ``surface.image`` in place. ``landmarks`` is the normalised
``(N, 2)`` array from :func:`regions.as_landmark_array`. The return value tells
whether anything was drawn; disabled effects, absent landmarks and regions with
fewer than three points are skipped without raising.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .colors import adjust_color_intensity, hex_to_bgr
from .compositor import RenderSurface, composite_color, composite_layer, require_surface
from .gradients import ColorStop, linear_gradient_alpha, radial_gradient_alpha
from .masks import (
    blank_mask,
    build_combined_mask,
    build_mask,
    feather_mask,
    keep_only_where,
    rasterize_path,
    remove_coverage,
    union_masks,
)
from .models import (
    BlushSettings,
    ContourSettings,
    EffectSettings,
    EyelinerSettings,
    EyeshadowSettings,
    HighlightSettings,
    LipstickSettings,
    SkinSmoothingSettings,
)
from .regions import NOSE_TIP_INDEX, ScaledRegionPath, has_landmarks, landmark_point, region_path

logger = logging.getLogger(__name__)

WHITE_BGR = (255, 255, 255)

LIP_REGIONS = ("upper_lip", "lower_lip")
CHEEK_REGIONS = ("left_cheek", "right_cheek")
EYESHADOW_REGIONS = (("left_eye_upper", "left_eyebrow"), ("right_eye_upper", "right_eyebrow"))
EYELINER_REGIONS = ("left_eye_upper", "right_eye_upper")
CONTOUR_FILL_REGIONS = (
    ("left_cheek_hollow", 1.0),
    ("right_cheek_hollow", 1.0),
    ("left_temple", 0.6),
    ("right_temple", 0.6),
)
CONTOUR_LINE_REGIONS = ("left_nose_side", "right_nose_side")
HIGHLIGHT_REGIONS = (("left_cheekbone", 1.0), ("right_cheekbone", 1.0), ("nose_ridge", 0.7))
SKIN_REGIONS = ("left_cheek", "right_cheek", "forehead", "nose")
SKIN_EXCLUDED_REGIONS = ("left_eye", "right_eye", "upper_lip", "lower_lip")

EYELINER_STYLES = ["classic", "thin", "thick", "winged"]
EYELINER_STYLE_SCALE = {"thin": 0.6, "thick": 1.8}
EYELINER_WING_RATIO = 4.0
EYELINER_WING_LIFT = 0.6
EYELINER_CURVE_STEPS = 8

EYESHADOW_STOPS: List[ColorStop] = [(0.0, 1.0), (0.5, 0x88 / 255.0), (1.0, 0.0)]
CONTOUR_STOPS: List[ColorStop] = [(0.0, 0.0), (0.5, 0.25), (1.0, 1.0)]
HIGHLIGHT_STOPS: List[ColorStop] = [(0.0, 1.0), (0.5, 0.5), (1.0, 0.0)]
SHIMMER_STOPS: List[ColorStop] = [(0.0, 0.4), (1.0, 0.0)]

CONTOUR_LINE_WIDTH = 3
CONTOUR_LINE_OPACITY = 0.4
SKIN_REGION_FEATHER = 10.0
SKIN_EXCLUSION_FEATHER = 5.0


def _should_render(settings: EffectSettings, landmarks: Optional[np.ndarray]) -> bool:
    if not settings.enabled:
        return False
    if not has_landmarks(landmarks):
        logger.debug(f"Skipping {settings.effect}: no landmarks")
        return False
    return True


def _drawable_paths(landmarks: np.ndarray, names: Sequence[str], scale: float) -> List[ScaledRegionPath]:
    paths = []
    for name in names:
        path = region_path(landmarks, name, scale)
        if path.is_drawable:
            paths.append(path)
        else:
            logger.debug(f"Region {name} has only {len(path)} points, skipped")
    return paths


def _bbox_center_radius(points: np.ndarray) -> Tuple[float, float, float]:
    min_x, min_y = points.min(axis=0)
    max_x, max_y = points.max(axis=0)
    radius = max(max_x - min_x, max_y - min_y) / 2.0
    return float(min_x + max_x) / 2.0, float(min_y + max_y) / 2.0, float(radius)


# ---------------------------------------------------------------------------
# Lipstick / blush
# ---------------------------------------------------------------------------


def render_lipstick(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: LipstickSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    paths = _drawable_paths(landmarks, LIP_REGIONS, scale)
    if not paths:
        return False
    mask = build_combined_mask(paths, surface.size, settings.featherRadius)
    color = adjust_color_intensity(settings.color, settings.intensity)
    return composite_color(surface, mask, hex_to_bgr(color), settings.opacity, settings.blendMode)


def render_blush(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: BlushSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    paths = _drawable_paths(landmarks, CHEEK_REGIONS, scale)
    if not paths:
        return False
    mask = build_combined_mask(paths, surface.size, settings.featherRadius)
    opacity = settings.opacity * settings.intensity
    return composite_color(surface, mask, hex_to_bgr(settings.color), opacity, settings.blendMode)


# ---------------------------------------------------------------------------
# Eyeshadow
# ---------------------------------------------------------------------------


def eyeshadow_shape(lid: np.ndarray, shadow_height: float) -> np.ndarray:
    """Closed dome over the lid: points lifted by ``sin(t * pi) * shadow_height``, back along the lid."""
    lid = np.asarray(lid, dtype=np.float32)
    t = np.linspace(0.0, 1.0, len(lid), dtype=np.float32)
    dome = lid.copy()
    dome[:, 1] -= np.sin(t * np.pi) * float(shadow_height)
    return np.vstack([dome, lid[::-1]])


def _render_eye_shadow(
    surface: RenderSurface,
    lid: ScaledRegionPath,
    brow: ScaledRegionPath,
    settings: EyeshadowSettings,
) -> bool:
    eye_top = float(lid.points[:, 1].min())
    brow_y = float(brow.points[:, 1].mean())
    shadow_height = (eye_top - brow_y) * settings.spread
    if shadow_height <= 0:
        logger.debug(f"Eyeshadow skipped for {lid.name}: brow is not above the lid")
        return False

    min_x = float(lid.points[:, 0].min())
    max_x = float(lid.points[:, 0].max())
    center_x = (min_x + max_x) / 2.0

    shape = build_mask(eyeshadow_shape(lid.points, shadow_height), surface.size, settings.featherRadius, closed=True)
    ramp = linear_gradient_alpha(
        surface.size, (center_x, eye_top), (center_x, eye_top - shadow_height), EYESHADOW_STOPS
    )
    drawn = composite_layer(
        surface,
        hex_to_bgr(settings.color),
        keep_only_where(ramp, shape),
        settings.opacity * settings.intensity,
        settings.blendMode,
    )

    if settings.shimmer:
        glow = radial_gradient_alpha(
            surface.size,
            (center_x, eye_top - shadow_height * 0.3),
            (max_x - min_x) * 0.5,
            SHIMMER_STOPS,
        )
        drawn = composite_layer(surface, WHITE_BGR, glow, settings.opacity * 0.3, "screen") or drawn
    return drawn


def render_eyeshadow(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: EyeshadowSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    drawn = False
    for lid_name, brow_name in EYESHADOW_REGIONS:
        lid = region_path(landmarks, lid_name, scale)
        brow = region_path(landmarks, brow_name, scale)
        if not (lid.is_drawable and brow.is_drawable):
            logger.debug(f"Eyeshadow skipped for {lid_name}: incomplete lid or brow")
            continue
        drawn = _render_eye_shadow(surface, lid, brow, settings) or drawn
    return drawn


# ---------------------------------------------------------------------------
# Eyeliner
# ---------------------------------------------------------------------------


def face_center_x(landmarks: np.ndarray, scale: float) -> float:
    tip = landmark_point(landmarks, NOSE_TIP_INDEX, scale)
    if tip is not None:
        return float(tip[0])
    return float(np.nanmean(landmarks[:, 0])) * float(scale)


def orient_inner_to_outer(points: np.ndarray, center_x: float) -> np.ndarray:
    """Order lid points so the last one is the corner farther from the face center."""
    if abs(float(points[0, 0]) - center_x) > abs(float(points[-1, 0]) - center_x):
        return points[::-1].copy()
    return points


def smooth_curve(points: np.ndarray, steps: int = EYELINER_CURVE_STEPS) -> np.ndarray:
    """Quadratic curve through successive midpoints, using each interior point as control."""
    pts = np.asarray(points, dtype=np.float32)
    if len(pts) < 3:
        return pts.copy()
    ts = np.linspace(0.0, 1.0, steps + 1, dtype=np.float32)[1:, None]
    curve = [pts[:1]]
    start = pts[0]
    for i in range(1, len(pts) - 1):
        control = pts[i]
        end = (pts[i] + pts[i + 1]) / 2.0
        curve.append((1 - ts) ** 2 * start + 2 * (1 - ts) * ts * control + ts**2 * end)
        start = end
    curve.append(pts[-1:])
    return np.vstack(curve).astype(np.float32)


def eyeliner_width(settings: EyelinerSettings) -> float:
    return settings.thickness * EYELINER_STYLE_SCALE.get(settings.style, 1.0)


def wing_segment(outer: np.ndarray, center_x: float, width: float) -> Tuple[np.ndarray, np.ndarray]:
    """Straight flick from the outer corner, away from the face center and upward."""
    lateral = 1.0 if float(outer[0]) >= center_x else -1.0
    direction = np.array([lateral, -EYELINER_WING_LIFT], dtype=np.float32)
    direction /= np.linalg.norm(direction)
    start = np.asarray(outer, dtype=np.float32)
    return start, start + direction * (EYELINER_WING_RATIO * float(width))


def _to_int_point(point: np.ndarray) -> Tuple[int, int]:
    return int(round(float(point[0]))), int(round(float(point[1])))


def render_eyeliner(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: EyelinerSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    paths = _drawable_paths(landmarks, EYELINER_REGIONS, scale)
    if not paths:
        return False

    center_x = face_center_x(landmarks, scale)
    width = eyeliner_width(settings)
    line_width = max(1, int(round(width)))
    mask = blank_mask(surface.size)
    for path in paths:
        lid = orient_inner_to_outer(path.points, center_x)
        curve = np.round(smooth_curve(lid)).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(mask, [curve], False, 255, thickness=line_width, lineType=cv2.LINE_AA)
        if settings.style == "winged":
            start, end = wing_segment(lid[-1], center_x, width)
            cv2.line(mask, _to_int_point(start), _to_int_point(end), 255, line_width, cv2.LINE_AA)

    if settings.smudge > 0:
        halo = cv2.GaussianBlur(mask, (0, 0), sigmaX=1.5 * settings.smudge)
        mask = cv2.max(mask, halo)
    return composite_color(surface, mask, hex_to_bgr(settings.color), settings.opacity, "normal")


# ---------------------------------------------------------------------------
# Contour / highlight
# ---------------------------------------------------------------------------


def render_contour(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: ContourSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    color = hex_to_bgr(settings.color)
    opacity = settings.opacity * settings.intensity
    drawn = False

    for name, weight in CONTOUR_FILL_REGIONS:
        path = region_path(landmarks, name, scale)
        if not path.is_drawable:
            continue
        cx, cy, radius = _bbox_center_radius(path.points)
        ramp = radial_gradient_alpha(surface.size, (cx, cy), radius, CONTOUR_STOPS)
        shape = build_mask(path, surface.size, settings.featherRadius * 0.5)
        alpha = keep_only_where(ramp, shape)
        drawn = composite_layer(surface, color, alpha, opacity * weight, settings.blendMode) or drawn

    lines = blank_mask(surface.size)
    stroked = False
    for path in _drawable_paths(landmarks, CONTOUR_LINE_REGIONS, scale):
        stroked = rasterize_path(lines, path, CONTOUR_LINE_WIDTH, closed=False) or stroked
    if stroked:
        lines = feather_mask(lines, settings.featherRadius / 2.0)
        drawn = composite_color(
            surface, lines, color, opacity * CONTOUR_LINE_OPACITY, settings.blendMode
        ) or drawn
    return drawn


def render_highlight(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: HighlightSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    color = hex_to_bgr(settings.color)
    opacity = settings.opacity * settings.intensity
    drawn = False

    for name, weight in HIGHLIGHT_REGIONS:
        path = region_path(landmarks, name, scale)
        if not path.is_drawable:
            continue
        cx, cy, radius = _bbox_center_radius(path.points)
        radius += settings.featherRadius
        glow = radial_gradient_alpha(surface.size, (cx, cy), radius, HIGHLIGHT_STOPS)
        drawn = composite_layer(surface, color, glow, opacity * weight, settings.blendMode) or drawn

        if settings.shimmer:
            sparkle = radial_gradient_alpha(surface.size, (cx, cy - radius * 0.2), radius * 0.6, SHIMMER_STOPS)
            drawn = composite_layer(surface, WHITE_BGR, sparkle, opacity * weight * 0.5, "screen") or drawn
    return drawn


# ---------------------------------------------------------------------------
# Skin smoothing
# ---------------------------------------------------------------------------


def build_skin_mask(
    landmarks: np.ndarray, scale: float, surface_size: Tuple[int, int], blur_radius: float
) -> np.ndarray:
    """Cheeks, forehead and nose minus eyes and lips, each part feathered on its own."""
    skin = [
        build_mask(region_path(landmarks, name, scale), surface_size, SKIN_REGION_FEATHER)
        for name in SKIN_REGIONS
    ]
    excluded = [
        build_mask(region_path(landmarks, name, scale), surface_size, SKIN_EXCLUSION_FEATHER)
        for name in SKIN_EXCLUDED_REGIONS
    ]
    mask = remove_coverage(union_masks(*skin), union_masks(*excluded))
    return feather_mask(mask, blur_radius / 2.0)


def smooth_skin(
    image: np.ndarray,
    mask: np.ndarray,
    strength: float,
    preserve_texture: float,
    blur_radius: float,
) -> np.ndarray:
    """High-pass preserving blur, blended in by ``mask * strength``."""
    strength = float(np.clip(strength, 0.0, 1.0))
    if strength <= 0 or blur_radius <= 0 or not np.any(mask):
        return image.copy()
    original = image.astype(np.float32)
    smoothed = cv2.GaussianBlur(original, (0, 0), sigmaX=float(blur_radius))
    recombined = smoothed + (original - smoothed) * float(np.clip(preserve_texture, 0.0, 1.0))
    weight = (mask.astype(np.float32) / 255.0 * strength)[..., None]
    out = original + (recombined - original) * weight
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def render_skin_smoothing(
    surface: RenderSurface, landmarks: np.ndarray, scale: float, settings: SkinSmoothingSettings
) -> bool:
    if not _should_render(settings, landmarks):
        return False
    image = require_surface(surface)
    if settings.strength <= 0 or settings.blurRadius <= 0:
        return False
    mask = build_skin_mask(landmarks, scale, surface.size, settings.blurRadius)
    if not np.any(mask):
        logger.debug("Skin smoothing skipped: empty skin mask")
        return False
    np.copyto(image, smooth_skin(image, mask, settings.strength, settings.preserveTexture, settings.blurRadius))
    return True
