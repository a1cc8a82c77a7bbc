from __future__ import annotations

import pytest

from makeup_backend.colors import (
    adjust_color_intensity,
    hex_to_bgr,
    hex_to_hls,
    hex_to_rgb,
    normalize_hex,
    rgb_to_hex,
)


def test_normalize_hex():
    assert normalize_hex("#abc") == "#AABBCC"
    assert normalize_hex("cc3366") == "#CC3366"
    for bad in ("#12345", "red", "", None, "#GGGGGG"):
        with pytest.raises(ValueError):
            normalize_hex(bad)


def test_channel_order():
    assert hex_to_rgb("#CC3366") == (0xCC, 0x33, 0x66)
    assert hex_to_bgr("#CC3366") == (0x66, 0x33, 0xCC)
    assert rgb_to_hex((0xCC, 0x33, 0x66)) == "#CC3366"


@pytest.mark.parametrize("color", ["#FF0000", "#00FF00", "#0000FF", "#FF00FF", "#CC3366", "#1A1A1A"])
def test_full_intensity_round_trips(color):
    adjusted = hex_to_rgb(adjust_color_intensity(color, 1.0))
    for got, want in zip(adjusted, hex_to_rgb(color)):
        assert abs(got - want) <= 1


def test_zero_intensity_is_gray():
    r, g, b = hex_to_rgb(adjust_color_intensity("#CC3366", 0.0))
    assert abs(r - g) <= 1 and abs(g - b) <= 1


def test_intensity_is_clamped():
    assert adjust_color_intensity("#CC3366", 5.0) == adjust_color_intensity("#CC3366", 1.0)
    _, _, saturation = hex_to_hls(adjust_color_intensity("#FF0000", 0.5))
    assert saturation == pytest.approx(0.5, abs=0.01)
