from __future__ import annotations

import logging
import math
from typing import Any, ClassVar, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .colors import normalize_hex

logger = logging.getLogger(__name__)

Bounds = Dict[str, Tuple[float, float]]


def _clamp(value: float, lo: float, hi: float) -> float:
    if math.isnan(value):
        return lo
    return min(max(float(value), lo), hi)


class EffectSettings(BaseModel):
    """Immutable settings record shared by every effect."""

    model_config = ConfigDict(frozen=True)

    effect: ClassVar[str] = ""
    range_bounds: ClassVar[Bounds] = {}

    enabled: bool = False

    @model_validator(mode="before")
    @classmethod
    def _saturate_huge_ints(cls, data: Any) -> Any:
        # Integers beyond float range cannot be coerced; pin them to the bound they overshoot.
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for name, (lo, hi) in cls.range_bounds.items():
            value = data.get(name)
            if isinstance(value, bool) or not isinstance(value, int):
                continue
            try:
                float(value)
            except OverflowError:
                data[name] = hi if value > 0 else lo
        return data

    @field_validator("*", mode="after")
    @classmethod
    def _clamp_ranges(cls, value: Any, info: ValidationInfo) -> Any:
        bounds = cls.range_bounds.get(info.field_name)
        if bounds is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            return value
        return _clamp(value, *bounds)

    def with_update(self, partial: Mapping[str, Any]) -> "EffectSettings":
        """Return a new record with the explicitly-present fields of ``partial`` merged in."""
        if isinstance(partial, BaseModel):
            partial = partial.model_dump(exclude_unset=True)
        fields = type(self).model_fields
        unknown = sorted(k for k in partial if k not in fields)
        if unknown:
            logger.warning(f"Ignoring unknown {self.effect} settings: {', '.join(unknown)}")
        merged = self.model_dump()
        merged.update({k: v for k, v in partial.items() if k in fields and v is not None})
        return type(self).model_validate(merged)


class ColorEffectSettings(EffectSettings):
    range_bounds: ClassVar[Bounds] = {"opacity": (0.0, 1.0)}

    color: str = "#000000"
    opacity: float = 0.5

    @field_validator("color", mode="before")
    @classmethod
    def _normalize_color(cls, value: Any) -> str:
        return normalize_hex(value)

    # Names are resolved at render time; unknown ones are logged and skipped there.
    @field_validator("blendMode", "style", mode="before", check_fields=False)
    @classmethod
    def _normalize_name(cls, value: Any) -> str:
        return str(value).strip().lower()


class LipstickSettings(ColorEffectSettings):
    effect: ClassVar[str] = "lipstick"
    range_bounds: ClassVar[Bounds] = {
        **ColorEffectSettings.range_bounds,
        "intensity": (0.0, 1.0),
        "featherRadius": (0.0, 50.0),
    }

    enabled: bool = True
    color: str = "#CC3366"
    opacity: float = 0.5
    intensity: float = 1.0
    blendMode: str = "multiply"
    featherRadius: float = 2.0


class BlushSettings(ColorEffectSettings):
    effect: ClassVar[str] = "blush"
    range_bounds: ClassVar[Bounds] = {
        **ColorEffectSettings.range_bounds,
        "intensity": (0.0, 1.0),
        "featherRadius": (0.0, 50.0),
    }

    color: str = "#E8A0A0"
    opacity: float = 0.25
    intensity: float = 0.8
    featherRadius: float = 15.0
    blendMode: str = "multiply"


class EyeshadowSettings(ColorEffectSettings):
    effect: ClassVar[str] = "eyeshadow"
    range_bounds: ClassVar[Bounds] = {
        **ColorEffectSettings.range_bounds,
        "spread": (0.3, 2.0),
        "intensity": (0.0, 1.0),
        "featherRadius": (0.0, 50.0),
    }

    color: str = "#8B4B8B"
    opacity: float = 0.35
    spread: float = 1.0
    intensity: float = 0.8
    blendMode: str = "multiply"
    shimmer: bool = False
    featherRadius: float = 2.0


class EyelinerSettings(ColorEffectSettings):
    effect: ClassVar[str] = "eyeliner"
    range_bounds: ClassVar[Bounds] = {
        **ColorEffectSettings.range_bounds,
        "thickness": (1.0, 10.0),
        "smudge": (0.0, 1.0),
    }

    enabled: bool = True
    color: str = "#1A1A1A"
    thickness: float = 2.0
    opacity: float = 0.85
    style: str = "classic"
    smudge: float = 0.5


class ContourSettings(ColorEffectSettings):
    effect: ClassVar[str] = "contour"
    range_bounds: ClassVar[Bounds] = {
        **ColorEffectSettings.range_bounds,
        "intensity": (0.0, 1.0),
        "featherRadius": (0.0, 50.0),
    }

    color: str = "#8B6B5B"
    opacity: float = 0.2
    intensity: float = 0.7
    featherRadius: float = 10.0
    blendMode: str = "multiply"


class HighlightSettings(ColorEffectSettings):
    effect: ClassVar[str] = "highlight"
    range_bounds: ClassVar[Bounds] = {
        **ColorEffectSettings.range_bounds,
        "intensity": (0.0, 1.0),
        "featherRadius": (0.0, 50.0),
    }

    color: str = "#FFFFFF"
    opacity: float = 0.15
    intensity: float = 0.6
    featherRadius: float = 8.0
    shimmer: bool = True
    blendMode: str = "overlay"


class SkinSmoothingSettings(EffectSettings):
    effect: ClassVar[str] = "skinSmoothing"
    range_bounds: ClassVar[Bounds] = {
        "strength": (0.0, 1.0),
        "preserveTexture": (0.0, 1.0),
        "blurRadius": (0.0, 50.0),
    }

    strength: float = 0.3
    preserveTexture: float = 0.5
    blurRadius: float = 8.0


class MakeupConfig(BaseModel):
    preset: Optional[str] = None
    effects: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    debugLandmarks: bool = False


class FaceLandmark(BaseModel):
    x: float
    y: float
    z: Optional[float] = None


class FaceMeta(BaseModel):
    bbox: Optional[List[int]] = None  # [x, y, w, h]
    confidence: Optional[float] = None
    landmarks: Optional[List[Optional[FaceLandmark]]] = None  # None marks an absent point


class MakeupResponse(BaseModel):
    image: str
    faceMeta: Optional[FaceMeta] = None
    drawnEffects: List[str] = Field(default_factory=list)


class FaceAnalysisResponse(BaseModel):
    faceMeta: Optional[FaceMeta] = None


class PresetInfo(BaseModel):
    value: str
    label: str
    description: str


class PresetListResponse(BaseModel):
    presets: List[PresetInfo]


class OptionInfo(BaseModel):
    value: str
    label: str


class EyelinerStyleInfo(OptionInfo):
    value: Literal["classic", "thin", "thick", "winged"]


class ColorSwatch(BaseModel):
    name: str
    color: str


class EffectDefaultsResponse(BaseModel):
    order: List[str]
    effects: Dict[str, Dict[str, Any]]
    blendModes: List[OptionInfo]
    eyelinerStyles: List[EyelinerStyleInfo]
    swatches: Dict[str, List[ColorSwatch]] = Field(default_factory=dict)
