from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from .masks import keep_only_where, mask_bounds

logger = logging.getLogger(__name__)

ColorLike = Union[Tuple[int, int, int], Sequence[int], np.ndarray]
BlendFn = Callable[[np.ndarray, np.ndarray], np.ndarray]

# Rec. 601 luma weights in BGR channel order.
_LUM_WEIGHTS = np.array([0.11, 0.59, 0.30], dtype=np.float32)


class SurfaceUnavailableError(RuntimeError):
    """Destination surface is missing, empty or not a BGR uint8 raster."""


@dataclass
class RenderSurface:
    image: np.ndarray  # uint8 BGR (H, W, 3), owned by the caller
    scale: float = 1.0

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.height, self.width


def require_surface(surface: Optional[RenderSurface]) -> np.ndarray:
    if surface is None or surface.image is None:
        raise SurfaceUnavailableError("No render surface supplied")
    image = surface.image
    if not isinstance(image, np.ndarray) or image.ndim != 3 or image.shape[2] != 3:
        raise SurfaceUnavailableError("Render surface must be an (H, W, 3) array")
    if image.dtype != np.uint8:
        raise SurfaceUnavailableError(f"Render surface must be uint8, got {image.dtype}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise SurfaceUnavailableError("Render surface has zero size")
    return image


def _blend_normal(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    return np.broadcast_to(src, dst.shape)


def _blend_multiply(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    return dst * src


def _blend_screen(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    return dst + src - dst * src


def _blend_hard_light(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    return np.where(
        src <= 0.5,
        2.0 * dst * src,
        1.0 - 2.0 * (1.0 - dst) * (1.0 - src),
    )


def _blend_overlay(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    return _blend_hard_light(src, dst)


def _blend_soft_light(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    d = np.where(dst <= 0.25, ((16.0 * dst - 12.0) * dst + 4.0) * dst, np.sqrt(dst))
    return np.where(
        src <= 0.5,
        dst - (1.0 - 2.0 * src) * dst * (1.0 - dst),
        dst + (2.0 * src - 1.0) * (d - dst),
    )


def _lum(color: np.ndarray) -> np.ndarray:
    return color @ _LUM_WEIGHTS


def _clip_color(color: np.ndarray) -> np.ndarray:
    lum = _lum(color)[..., None]
    lo = color.min(axis=-1, keepdims=True)
    hi = color.max(axis=-1, keepdims=True)
    color = np.where(lo < 0.0, lum + (color - lum) * lum / np.maximum(lum - lo, 1e-6), color)
    color = np.where(hi > 1.0, lum + (color - lum) * (1.0 - lum) / np.maximum(hi - lum, 1e-6), color)
    return color


def _blend_color(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    src = np.broadcast_to(src, dst.shape)
    delta = (_lum(dst) - _lum(src))[..., None]
    return _clip_color(src + delta)


BLEND_MODES: Dict[str, BlendFn] = {
    "normal": _blend_normal,
    "multiply": _blend_multiply,
    "screen": _blend_screen,
    "overlay": _blend_overlay,
    "soft-light": _blend_soft_light,
    "hard-light": _blend_hard_light,
    "color": _blend_color,
}


def resolve_blend_mode(name: str) -> Optional[BlendFn]:
    blend_fn = BLEND_MODES.get(str(name).strip().lower())
    if blend_fn is None:
        logger.warning(f"Unknown blend mode: {name}")
    return blend_fn


def composite_layer(
    surface: RenderSurface,
    color: ColorLike,
    alpha: np.ndarray,
    opacity: float,
    blend_mode: str,
) -> bool:
    """Merge a flat BGR color with per-pixel ``alpha`` onto the surface in place.

    Only pixels with non-zero ``opacity * alpha`` weight are touched.
    """
    image = require_surface(surface)
    blend_fn = resolve_blend_mode(blend_mode)
    if blend_fn is None:
        return False
    opacity = float(np.clip(opacity, 0.0, 1.0))
    if opacity <= 0:
        return False
    bounds = mask_bounds(alpha, 0, image.shape[:2])
    if bounds is None:
        return False
    x0, y0, x1, y1 = bounds

    dst = image[y0:y1, x0:x1].astype(np.float32) / 255.0
    src = np.broadcast_to(np.asarray(color, dtype=np.float32).reshape(1, 1, 3) / 255.0, dst.shape)
    weight = (alpha[y0:y1, x0:x1].astype(np.float32) / 255.0 * opacity)[..., None]

    blended = np.clip(blend_fn(dst, src), 0.0, 1.0)
    out = dst * (1.0 - weight) + blended * weight
    image[y0:y1, x0:x1] = np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8)
    return True


def composite_color(
    surface: RenderSurface,
    mask: np.ndarray,
    color: ColorLike,
    opacity: float,
    blend_mode: str,
) -> bool:
    """Apply a flat color through a coverage mask with the named blend function."""
    image = require_surface(surface)
    if mask.shape[:2] != image.shape[:2]:
        raise ValueError(f"Mask shape {mask.shape[:2]} does not match surface {image.shape[:2]}")
    layer_alpha = np.full(mask.shape[:2], 255, dtype=np.uint8)
    layer_alpha = keep_only_where(layer_alpha, mask)
    return composite_layer(surface, color, layer_alpha, opacity, blend_mode)
