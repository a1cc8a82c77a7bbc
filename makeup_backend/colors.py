from __future__ import annotations

import re
from typing import Tuple

import cv2
import numpy as np

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def normalize_hex(value: str) -> str:
    """Return ``#RRGGBB`` (upper case) for ``#RGB``/``#RRGGBB`` input."""
    match = _HEX_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid hex color: {value!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits.upper()}"


def hex_to_rgb(value: str) -> Tuple[int, int, int]:
    digits = normalize_hex(value)[1:]
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def hex_to_bgr(value: str) -> Tuple[int, int, int]:
    r, g, b = hex_to_rgb(value)
    return b, g, r


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    r, g, b = (int(np.clip(round(c), 0, 255)) for c in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_hls(value: str) -> Tuple[float, float, float]:
    """Hue in degrees, lightness and saturation in [0, 1]."""
    bgr = np.array([[hex_to_bgr(value)]], dtype=np.float32) / 255.0
    h, l, s = cv2.cvtColor(bgr, cv2.COLOR_BGR2HLS)[0, 0]
    return float(h), float(l), float(s)


def hls_to_hex(hue: float, lightness: float, saturation: float) -> str:
    hls = np.array([[[hue, lightness, saturation]]], dtype=np.float32)
    b, g, r = cv2.cvtColor(hls, cv2.COLOR_HLS2BGR)[0, 0] * 255.0
    return rgb_to_hex((r, g, b))


def adjust_color_intensity(value: str, intensity: float) -> str:
    """Scale the HSL saturation of a hex color by ``intensity`` (clamped to [0, 1])."""
    intensity = float(np.clip(intensity, 0.0, 1.0))
    hue, lightness, saturation = hex_to_hls(value)
    return hls_to_hex(hue, lightness, min(1.0, saturation * intensity))
