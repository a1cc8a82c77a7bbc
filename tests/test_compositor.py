from __future__ import annotations

import logging

import numpy as np
import pytest

from makeup_backend.compositor import (
    BLEND_MODES,
    RenderSurface,
    SurfaceUnavailableError,
    composite_color,
    composite_layer,
    require_surface,
)


def _px(*values):
    return np.array(values, dtype=np.float32).reshape(1, 1, 3)


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("normal", 0.25),
        ("multiply", 0.125),
        ("screen", 0.625),
        ("hard-light", 0.25),
        ("overlay", 0.25),
        ("soft-light", 0.375),
    ],
)
def test_separable_blend_math(mode, expected):
    out = BLEND_MODES[mode](_px(0.5, 0.5, 0.5), _px(0.25, 0.25, 0.25))
    np.testing.assert_allclose(out, expected, atol=1e-6)


def test_overlay_and_hard_light_are_mirrored():
    dst, src = _px(0.8, 0.2, 0.6), _px(0.3, 0.9, 0.5)
    np.testing.assert_allclose(BLEND_MODES["overlay"](dst, src), BLEND_MODES["hard-light"](src, dst))


def test_color_blend_keeps_destination_luminosity():
    weights = np.array([0.11, 0.59, 0.30], dtype=np.float32)
    dst, src = _px(0.5, 0.5, 0.5), _px(0.6, 0.4, 0.5)
    out = BLEND_MODES["color"](dst, src)
    assert float(out[0, 0] @ weights) == pytest.approx(0.5, abs=1e-5)
    assert not np.allclose(out[0, 0, 0], out[0, 0, 1])


def test_composite_multiply_full_coverage():
    image = np.full((4, 4, 3), 200, dtype=np.uint8)
    mask = np.full((4, 4), 255, dtype=np.uint8)
    assert composite_color(RenderSurface(image), mask, (102, 51, 204), 1.0, "multiply")
    expected = np.rint(200.0 * np.array([102, 51, 204]) / 255.0)
    np.testing.assert_array_equal(image[0, 0], expected.astype(np.uint8))


def test_uncovered_pixels_are_untouched():
    image = np.full((10, 10, 3), 120, dtype=np.uint8)
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[2:5, 2:5] = 255
    composite_color(RenderSurface(image), mask, (0, 0, 0), 0.5, "multiply")
    assert np.all(image[mask == 0] == 120)
    assert np.all(image[mask == 255] == 60)


def test_empty_mask_and_zero_opacity_are_noops():
    image = np.full((6, 6, 3), 90, dtype=np.uint8)
    surface = RenderSurface(image)
    assert not composite_color(surface, np.zeros((6, 6), dtype=np.uint8), (0, 0, 0), 1.0, "normal")
    assert not composite_color(surface, np.full((6, 6), 255, dtype=np.uint8), (0, 0, 0), 0.0, "normal")
    assert np.all(image == 90)


def test_unknown_blend_mode_is_logged_noop(caplog):
    image = np.full((6, 6, 3), 90, dtype=np.uint8)
    with caplog.at_level(logging.WARNING):
        drawn = composite_color(RenderSurface(image), np.full((6, 6), 255, dtype=np.uint8), (0, 0, 0), 1.0, "dodge")
    assert drawn is False
    assert np.all(image == 90)
    assert "Unknown blend mode" in caplog.text


def test_layer_alpha_scales_weight():
    image = np.full((2, 2, 3), 100, dtype=np.uint8)
    alpha = np.array([[0, 255], [128, 255]], dtype=np.uint8)
    assert composite_layer(RenderSurface(image), (255, 255, 255), alpha, 1.0, "normal")
    assert image[0, 0, 0] == 100
    assert image[0, 1, 0] == 255
    assert 100 < image[1, 0, 0] < 255


def test_layer_color_is_a_flat_bgr_triple():
    image = np.full((3, 3, 3), 100, dtype=np.uint8)
    alpha = np.zeros((3, 3), dtype=np.uint8)
    alpha[1, 1] = 255
    assert composite_layer(RenderSurface(image), np.array([10, 20, 30], dtype=np.uint8), alpha, 1.0, "normal")
    assert image[1, 1].tolist() == [10, 20, 30]
    assert image[0, 0].tolist() == [100, 100, 100]


def test_mask_shape_mismatch_raises():
    image = np.zeros((4, 4, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        composite_color(RenderSurface(image), np.zeros((5, 5), dtype=np.uint8), (0, 0, 0), 1.0, "normal")


@pytest.mark.parametrize(
    "image",
    [
        None,
        np.zeros((0, 0, 3), dtype=np.uint8),
        np.zeros((4, 4), dtype=np.uint8),
        np.zeros((4, 4, 3), dtype=np.float32),
    ],
)
def test_unusable_surface_raises(image):
    with pytest.raises(SurfaceUnavailableError):
        require_surface(RenderSurface(image))
    with pytest.raises(SurfaceUnavailableError):
        require_surface(None)
