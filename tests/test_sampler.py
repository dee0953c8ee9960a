import numpy as np
import pytest

from X_Ray_Analysis.config import WHOLE_IMAGE, RegionSpec, ScanLine
from X_Ray_Analysis.raster import RasterImage
from X_Ray_Analysis.sampler import (density, edge_complexity, entropy, region_bounds,
                                    sample_features, segment_count)


def column_stripes(period, low, high, size=100):
    """Vertical stripes `period` pixels wide alternating between two levels."""
    cols = np.arange(size)
    row = np.where((cols // period) % 2 == 0, low, high).astype(np.uint8)
    return RasterImage(np.tile(row, (size, 1)))


EMPTY = RegionSpec("empty", 0.5, 0.5, 0.0, 0.0)


def test_region_bounds_are_clipped():
    image = RasterImage(np.zeros((50, 100), dtype=np.uint8))
    assert region_bounds(image, RegionSpec("r", 0.8, 0.5, 0.5, 0.9)) == (80, 25, 100, 50)


def test_density_of_uniform_image(gray_image, config):
    assert density(gray_image, WHOLE_IMAGE, config) == pytest.approx(128 / 255)


def test_density_averages_colour_channels(config):
    pixels = np.zeros((40, 40, 3), dtype=np.uint8)
    pixels[..., 0] = 255
    image = RasterImage(pixels)
    assert density(image, WHOLE_IMAGE, config) == pytest.approx(85 / 255)


def test_zero_area_region_yields_zero(gray_image, config):
    assert density(gray_image, EMPTY, config) == 0.0
    assert edge_complexity(gray_image, EMPTY, config) == 0.0
    assert entropy(gray_image, EMPTY, config) == 0.0
    assert segment_count(gray_image, ScanLine("none", 0.5, 0.2, 0.0), config) == 0


def test_edge_complexity_of_flat_image_is_zero(gray_image, config):
    assert edge_complexity(gray_image, WHOLE_IMAGE, config) == 0.0


def test_edge_complexity_counts_strong_discontinuities(config):
    # Every sample's right neighbour (4px away) sits on the other stripe
    image = column_stripes(4, 0, 200)
    assert edge_complexity(image, WHOLE_IMAGE, config) == pytest.approx(2.0)


def test_edge_complexity_ignores_noise(config):
    image = column_stripes(4, 100, 115)
    assert edge_complexity(image, WHOLE_IMAGE, config) == 0.0


def test_entropy_is_fraction_of_changed_pairs(config):
    # Horizontal pairs (3px apart) always differ, vertical pairs never do
    image = column_stripes(3, 0, 200)
    assert entropy(image, WHOLE_IMAGE, config) == pytest.approx(0.5)


def test_segment_count_discards_narrow_runs(config):
    img = np.zeros((100, 200), dtype=np.uint8)
    for x in (20, 80, 140):
        img[:, x:x + 15] = 220
    img[:, 180] = 220  # one pixel wide: noise
    image = RasterImage(img)
    assert segment_count(image, ScanLine("mid", 0.5), config) == 3


def test_sample_features_for_hand(hand_image, config):
    features = sample_features(hand_image, config)
    assert features.aspect_ratio == pytest.approx(1.0)
    assert features.segment_count == 5


def test_sample_features_for_leg(leg_image, config):
    features = sample_features(leg_image, config)
    assert features.aspect_ratio == pytest.approx(0.5)
    assert features.segment_count == 1
    assert features.corner_entropy == 0.0
    assert features.v_mass > 0.45


def test_statistics_do_not_modify_the_image(chest_image, config):
    before = chest_image.pixels.copy()
    sample_features(chest_image, config)
    assert np.array_equal(before, chest_image.pixels)
    assert not chest_image.pixels.flags.writeable
