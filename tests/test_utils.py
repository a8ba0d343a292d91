"""
Tests for the image helpers.
"""

import numpy as np
import pytest

from ImageAlignment.algorithms import AlignBase
from ImageAlignment.core.structures import TranslationWarp, EuclideanWarp
from ImageAlignment.utils import (
    image_gradients,
    image_size,
    pixel_grid,
    points_in_image,
    sample_bilinear,
    to_single_channel,
    warp_image
)


def test_to_single_channel():
    image = np.zeros((5, 7, 1), np.uint8)
    out = to_single_channel(image)
    assert out.shape == (5, 7)
    assert out.dtype == np.float32

    with pytest.raises(ValueError):
        to_single_channel(np.zeros((5, 7, 3), np.uint8))


def test_image_size():
    assert image_size(np.zeros((30, 40))) == (40, 30)


def test_pixel_grid_centres():
    grid = pixel_grid((2, 3))
    np.testing.assert_allclose(grid, [[0.5, 0.5], [1.5, 0.5], [2.5, 0.5],
                                      [0.5, 1.5], [1.5, 1.5], [2.5, 1.5]])


def test_points_in_image_matches_scalar_rule():
    rng = np.random.default_rng(3)
    points = rng.uniform(-2.0, 14.0, size=(500, 2))

    for border in (0, 1, 3):
        mask = points_in_image(points, (12, 10), border)
        expected = [AlignBase.is_in_image(p, (12, 10), border) for p in points]
        np.testing.assert_array_equal(mask, expected)


def test_points_in_image_non_finite():
    points = np.array([[np.nan, 3.0], [np.inf, 3.0], [3.0, 3.0]])
    np.testing.assert_array_equal(points_in_image(points, (10, 10), 0), [False, False, True])


def test_sample_bilinear_at_pixel_centres(smooth_target):
    points = np.array([[0.5, 0.5], [10.5, 20.5], [127.5, 127.5]])
    values = sample_bilinear(smooth_target, points)
    np.testing.assert_allclose(values, [smooth_target[0, 0], smooth_target[20, 10],
                                        smooth_target[127, 127]], rtol=1e-5)


def test_sample_bilinear_interpolates():
    image = np.array([[0.0, 10.0], [20.0, 30.0]], np.float32)
    values = sample_bilinear(image, np.array([[1.0, 0.5], [1.0, 1.0]]))
    np.testing.assert_allclose(values, [5.0, 15.0], atol=1e-2)


def test_sample_bilinear_empty():
    assert sample_bilinear(np.zeros((4, 4), np.float32), np.zeros((0, 2))).shape == (0,)


def test_gradients_of_ramp():
    xs = np.tile(np.arange(20, dtype=np.float32), (15, 1))
    gx, gy = image_gradients(2.0 * xs + 3.0)

    np.testing.assert_allclose(gx[1:-1, 1:-1], 2.0, atol=1e-5)
    np.testing.assert_allclose(gy[1:-1, 1:-1], 0.0, atol=1e-5)


def test_warp_image_identity(smooth_target):
    out = warp_image(smooth_target, TranslationWarp(), (128, 128))
    np.testing.assert_allclose(out, smooth_target, atol=1e-3)


def test_warp_image_translation(smooth_target):
    """dst(x) = image(x + t)"""
    out = warp_image(smooth_target, TranslationWarp([2.0, 3.0]), (64, 64))
    np.testing.assert_allclose(out, smooth_target[3:67, 2:66], atol=1e-3)


def test_warp_image_matches_sampling(smooth_target):
    warp = EuclideanWarp([0.1, 30.0, 20.0])
    out = warp_image(smooth_target, warp, (32, 32))

    points = pixel_grid(out.shape)
    expected = sample_bilinear(smooth_target, warp.warp_points(points)).reshape(out.shape)
    np.testing.assert_allclose(out, expected, atol=2.0)
