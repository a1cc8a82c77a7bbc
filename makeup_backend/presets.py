"""Predefined looks: each one is a mapping of effect name to partial settings."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

PRESETS: Dict[str, Dict[str, Any]] = {
    "natural": {
        "name": "Natural",
        "description": "Subtle everyday look",
        "settings": {
            "lipstick": {"enabled": True, "color": "#C4837A", "opacity": 0.35, "intensity": 0.8},
            "eyeliner": {"enabled": True, "style": "thin", "thickness": 1, "opacity": 0.6},
            "eyeshadow": {"enabled": False},
            "blush": {"enabled": True, "color": "#E8A0A0", "opacity": 0.15},
            "contour": {"enabled": False},
            "highlight": {"enabled": True, "opacity": 0.1},
            "skinSmoothing": {"enabled": True, "strength": 0.2},
        },
    },
    "glam": {
        "name": "Glam",
        "description": "Bold glamorous look",
        "settings": {
            "lipstick": {"enabled": True, "color": "#CC2233", "opacity": 0.7, "intensity": 1.0},
            "eyeliner": {"enabled": True, "style": "winged", "thickness": 3, "opacity": 0.9},
            "eyeshadow": {"enabled": True, "color": "#6B4B6B", "opacity": 0.5},
            "blush": {"enabled": True, "color": "#E8887A", "opacity": 0.3},
            "contour": {"enabled": True, "opacity": 0.25},
            "highlight": {"enabled": True, "opacity": 0.25},
            "skinSmoothing": {"enabled": True, "strength": 0.4},
        },
    },
    "bridal": {
        "name": "Bridal",
        "description": "Elegant wedding look",
        "settings": {
            "lipstick": {"enabled": True, "color": "#C87A8A", "opacity": 0.5, "intensity": 0.9},
            "eyeliner": {"enabled": True, "style": "classic", "thickness": 2, "opacity": 0.75},
            "eyeshadow": {"enabled": True, "color": "#A08090", "opacity": 0.35},
            "blush": {"enabled": True, "color": "#FFAA88", "opacity": 0.2},
            "contour": {"enabled": True, "opacity": 0.15},
            "highlight": {"enabled": True, "opacity": 0.3},
            "skinSmoothing": {"enabled": True, "strength": 0.35},
        },
    },
    "party": {
        "name": "Party",
        "description": "Fun night out look",
        "settings": {
            "lipstick": {"enabled": True, "color": "#E84420", "opacity": 0.75, "intensity": 1.0},
            "eyeliner": {"enabled": True, "style": "winged", "thickness": 4, "opacity": 1.0},
            "eyeshadow": {"enabled": True, "color": "#4B3B6B", "opacity": 0.6},
            "blush": {"enabled": True, "color": "#C87A8A", "opacity": 0.35},
            "contour": {"enabled": True, "opacity": 0.3},
            "highlight": {"enabled": True, "opacity": 0.35},
            "skinSmoothing": {"enabled": True, "strength": 0.5},
        },
    },
    "none": {
        "name": "None",
        "description": "No makeup",
        "settings": {
            "lipstick": {"enabled": False},
            "eyeliner": {"enabled": False},
            "eyeshadow": {"enabled": False},
            "blush": {"enabled": False},
            "contour": {"enabled": False},
            "highlight": {"enabled": False},
            "skinSmoothing": {"enabled": False},
        },
    },
}

# Per-effect color swatches offered to the picker; (label, hex)
COLOR_SWATCHES: Dict[str, List[Tuple[str, str]]] = {
    "lipstick": [
        ("Classic Red", "#CC2233"),
        ("Deep Rose", "#CC3366"),
        ("Coral", "#E86850"),
        ("Berry", "#8B2252"),
        ("Nude Pink", "#C4837A"),
        ("Mauve", "#915F6D"),
        ("Wine", "#722F37"),
        ("Plum", "#6B3A5B"),
        ("Orange Red", "#E84420"),
        ("Hot Pink", "#E8447A"),
    ],
    "blush": [
        ("Rose", "#E8A0A0"),
        ("Peach", "#FFAA88"),
        ("Coral", "#E8887A"),
        ("Berry", "#C87A8A"),
        ("Mauve", "#C89898"),
        ("Bronze", "#C8A080"),
        ("Plum", "#A87888"),
        ("Apricot", "#F0B090"),
    ],
    "eyeshadow": [
        ("Nude", "#C4A484"),
        ("Rose Gold", "#B76E79"),
        ("Mauve", "#8B4B8B"),
        ("Bronze", "#CD7F32"),
        ("Smoky Gray", "#5A5A5A"),
        ("Navy", "#2A3A5A"),
        ("Forest", "#3A5A3A"),
        ("Burgundy", "#6A2A3A"),
        ("Copper", "#B87333"),
        ("Champagne", "#D4AF8A"),
    ],
    "eyeliner": [
        ("Black", "#1A1A1A"),
        ("Dark Brown", "#3D2314"),
        ("Navy", "#1A1A3A"),
        ("Charcoal", "#36454F"),
        ("Purple", "#301934"),
        ("Forest Green", "#1A3A1A"),
    ],
    "contour": [
        ("Warm Brown", "#8B6B5B"),
        ("Cool Taupe", "#7A6B6B"),
        ("Bronze", "#9B7B5B"),
        ("Deep Brown", "#5B4B3B"),
        ("Gray Brown", "#6B6060"),
    ],
    "highlight": [
        ("Pearl", "#FFFFFF"),
        ("Champagne", "#F8E8D8"),
        ("Rose Gold", "#F0D8D0"),
        ("Gold", "#F8E8C8"),
        ("Silver", "#E8E8F0"),
        ("Bronze", "#E8D8C0"),
    ],
}

BLEND_MODE_LABELS: Dict[str, str] = {
    "normal": "Normal",
    "multiply": "Multiply (Natural)",
    "screen": "Screen (Glow)",
    "overlay": "Overlay (Vibrant)",
    "soft-light": "Soft Light (Subtle)",
    "color": "Color (True Color)",
    "hard-light": "Hard Light (Bold)",
}

EYELINER_STYLE_LABELS: Dict[str, str] = {
    "classic": "Classic",
    "thin": "Thin Line",
    "thick": "Thick/Bold",
    "winged": "Winged",
}


def list_presets() -> List[Dict[str, str]]:
    return [
        {"value": key, "label": preset["name"], "description": preset["description"]}
        for key, preset in PRESETS.items()
    ]


def list_swatches() -> Dict[str, List[Dict[str, str]]]:
    return {
        effect: [{"name": name, "color": color} for name, color in swatches]
        for effect, swatches in COLOR_SWATCHES.items()
    }


def labelled_options(values: Iterable[str], labels: Mapping[str, str]) -> List[Dict[str, str]]:
    """Pair option values with display labels; unlabelled values fall back to their own name."""
    return [{"value": value, "label": labels.get(value, value)} for value in values]


def get_preset(name: str) -> Optional[Dict[str, Any]]:
    return PRESETS.get(name)


def apply_preset(pipeline: Any, name: str) -> bool:
    """Push every effect's partial settings of a preset into ``pipeline``.

    The pipeline only marks the effects dirty; the caller redraws afterwards.
    """
    if pipeline is None:
        logger.warning(f"No pipeline to apply preset {name} to")
        return False
    preset = get_preset(name)
    if preset is None:
        logger.warning(f"Unknown preset: {name}")
        return False
    for effect_name, partial in preset["settings"].items():
        pipeline.update(effect_name, partial)
    logger.info(f"Applied preset {name}")
    return True
