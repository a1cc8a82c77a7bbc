from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

import cv2
import numpy as np

from .colors import hex_to_bgr
from .compositor import RenderSurface, SurfaceUnavailableError, require_surface
from .effects import (
    render_blush,
    render_contour,
    render_eyeliner,
    render_eyeshadow,
    render_highlight,
    render_lipstick,
    render_skin_smoothing,
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
from .presets import apply_preset
from .regions import REGIONS, as_landmark_array, has_landmarks

logger = logging.getLogger(__name__)

Renderer = Callable[[RenderSurface, np.ndarray, float, Any], bool]

# Back to front. Skin smoothing samples the surface, so it runs right after the base image.
EFFECT_ORDER: List[str] = [
    "skinSmoothing",
    "contour",
    "highlight",
    "blush",
    "eyeshadow",
    "eyeliner",
    "lipstick",
]

DEBUG_REGION_COLORS: Dict[str, str] = {
    "lips_outer": "#FF4466",
    "upper_lip_inner": "#FF4466",
    "lower_lip_inner": "#FF4466",
    "left_eye": "#44AAFF",
    "right_eye": "#44AAFF",
    "left_eyebrow": "#FFAA44",
    "right_eyebrow": "#FFAA44",
    "left_iris": "#00FFAA",
    "right_iris": "#00FFAA",
    "face_oval": "#AAFFAA",
    "nose": "#FFFF66",
}
DEBUG_OTHER_COLOR = "#888888"


class EffectState(str, enum.Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    DRAWN = "drawn"


@dataclass(frozen=True)
class RenderOptions:
    debug_landmarks: bool = False
    debug_point_radius: int = 2


class MakeupEffect:
    """One effect: its current settings record, renderer and draw state."""

    def __init__(self, name: str, settings_model: Type[EffectSettings], renderer: Renderer) -> None:
        self.name = name
        self.settings_model = settings_model
        self.renderer = renderer
        self._settings: EffectSettings = settings_model()
        self.state = EffectState.IDLE

    @property
    def settings(self) -> EffectSettings:
        return self._settings

    def get_settings(self) -> Dict[str, Any]:
        return self._settings.model_dump()

    def update(self, partial: Mapping[str, Any]) -> None:
        self._settings = self._settings.with_update(partial)
        self.state = EffectState.DIRTY

    def reset(self) -> None:
        self._settings = self.settings_model()
        self.state = EffectState.DIRTY

    def apply(self, surface: RenderSurface, landmarks: Optional[np.ndarray], scale: float) -> bool:
        drawn = bool(self.renderer(surface, landmarks, scale, self._settings))
        self.state = EffectState.DRAWN if drawn else EffectState.IDLE
        return drawn


def _build_effects() -> Dict[str, MakeupEffect]:
    specs = {
        "skinSmoothing": (SkinSmoothingSettings, render_skin_smoothing),
        "contour": (ContourSettings, render_contour),
        "highlight": (HighlightSettings, render_highlight),
        "blush": (BlushSettings, render_blush),
        "eyeshadow": (EyeshadowSettings, render_eyeshadow),
        "eyeliner": (EyelinerSettings, render_eyeliner),
        "lipstick": (LipstickSettings, render_lipstick),
    }
    return {name: MakeupEffect(name, *specs[name]) for name in EFFECT_ORDER}


def _debug_color(index: int, lookup: Dict[int, str]) -> tuple:
    return hex_to_bgr(lookup.get(index, DEBUG_OTHER_COLOR))


def draw_debug_landmarks(
    surface: RenderSurface, landmarks: Any, scale: float, options: RenderOptions
) -> bool:
    """Overlay color-coded landmark dots and the outlines of the main regions."""
    image = require_surface(surface)
    pts = as_landmark_array(landmarks)
    if not has_landmarks(pts):
        return False
    lookup: Dict[int, str] = {}
    for name, color in DEBUG_REGION_COLORS.items():
        for index in REGIONS[name].indices:
            lookup.setdefault(index, color)

    radius = max(1, int(options.debug_point_radius))
    scaled = pts * float(scale)
    for index, (x, y) in enumerate(scaled):
        if not (np.isfinite(x) and np.isfinite(y)):
            continue
        cv2.circle(image, (int(round(x)), int(round(y))), radius, _debug_color(index, lookup), -1, cv2.LINE_AA)

    for name in ("face_oval", "left_eye", "right_eye", "lips_outer"):
        region = REGIONS[name]
        valid = [i for i in region.indices if i < len(scaled) and np.all(np.isfinite(scaled[i]))]
        if len(valid) < 2:
            continue
        poly = np.round(scaled[valid]).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(image, [poly], region.closed, hex_to_bgr(DEBUG_REGION_COLORS[name]), 1, cv2.LINE_AA)
    return True


class MakeupPipeline:
    """Holds every effect's settings and draws them in the fixed order.

    Settings changes never redraw by themselves. Each effect composites straight
    onto the surface, so after any change the host resets the surface to the
    base image and calls :meth:`apply_all` again (or uses :meth:`redraw`).
    """

    def __init__(self) -> None:
        self.effects = _build_effects()

    def _effect(self, name: str) -> Optional[MakeupEffect]:
        effect = self.effects.get(name)
        if effect is None:
            logger.warning(f"Unknown effect: {name}")
        return effect

    def update(self, effect_name: str, partial: Mapping[str, Any]) -> bool:
        effect = self._effect(effect_name)
        if effect is None:
            return False
        effect.update(partial)
        return True

    def get_settings(self, effect_name: str) -> Optional[Dict[str, Any]]:
        effect = self._effect(effect_name)
        return effect.get_settings() if effect else None

    def get_all_settings(self) -> Dict[str, Dict[str, Any]]:
        return {name: self.effects[name].get_settings() for name in EFFECT_ORDER}

    def get_state(self, effect_name: str) -> Optional[EffectState]:
        effect = self._effect(effect_name)
        return effect.state if effect else None

    @property
    def needs_redraw(self) -> bool:
        return any(effect.state is EffectState.DIRTY for effect in self.effects.values())

    def reset(self) -> None:
        for effect in self.effects.values():
            effect.reset()

    def apply_preset(self, name: str) -> bool:
        return apply_preset(self, name)

    def _run(self, effect: MakeupEffect, surface: RenderSurface, landmarks: Optional[np.ndarray], scale: float) -> bool:
        try:
            return effect.apply(surface, landmarks, scale)
        except SurfaceUnavailableError:
            raise
        except Exception:
            logger.exception(f"Effect {effect.name} failed; continuing with the remaining effects")
            effect.state = EffectState.IDLE
            return False

    def apply_all(
        self,
        surface: RenderSurface,
        landmarks: Any,
        scale: Optional[float] = None,
        options: Optional[RenderOptions] = None,
    ) -> List[str]:
        """Draw every enabled effect onto ``surface`` in the fixed order.

        Returns the names of the effects that drew something.
        """
        require_surface(surface)
        scale = self._resolve_scale(surface, scale)
        options = options or RenderOptions()
        pts = as_landmark_array(landmarks)

        drawn = []
        for name in EFFECT_ORDER:
            if self._run(self.effects[name], surface, pts, scale):
                drawn.append(name)
        if options.debug_landmarks:
            draw_debug_landmarks(surface, pts, scale, options)
        logger.debug(f"Rendered effects: {drawn}")
        return drawn

    def apply_one(
        self,
        effect_name: str,
        surface: RenderSurface,
        landmarks: Any,
        scale: Optional[float] = None,
    ) -> bool:
        """Draw a single effect; the host has already reset the surface as needed."""
        effect = self._effect(effect_name)
        if effect is None:
            return False
        require_surface(surface)
        scale = self._resolve_scale(surface, scale)
        return self._run(effect, surface, as_landmark_array(landmarks), scale)

    def redraw(
        self,
        surface: RenderSurface,
        base_image: np.ndarray,
        landmarks: Any,
        scale: Optional[float] = None,
        options: Optional[RenderOptions] = None,
    ) -> List[str]:
        """Reset the surface to ``base_image`` and apply every effect again."""
        image = require_surface(surface)
        if base_image is None or base_image.shape != image.shape:
            raise SurfaceUnavailableError(
                f"Base image shape {getattr(base_image, 'shape', None)} does not match surface {image.shape}"
            )
        np.copyto(image, base_image)
        return self.apply_all(surface, landmarks, scale, options)

    def _resolve_scale(self, surface: RenderSurface, scale: Optional[float]) -> float:
        return float(surface.scale if scale is None else scale)
