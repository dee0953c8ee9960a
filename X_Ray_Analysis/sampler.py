"""
Region sampler: scalar brightness statistics over relative sub-regions.

All statistics are stride sampled (never a full-resolution pass) and read the
image's brightness plane only, so they can run concurrently on one image.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .config import DEFAULT_CONFIG
from .models import FeatureVector

logger = logging.getLogger(__name__)


def region_bounds(image, region):
    """Pixel bounds (x0, y0, x1, y1) of a relative region, clipped to the image."""
    x0 = int(image.width * region.x)
    y0 = int(image.height * region.y)
    x1 = min(x0 + int(image.width * region.w), image.width)
    y1 = min(y0 + int(image.height * region.h), image.height)
    return x0, y0, max(x0, x1), max(y0, y1)


def _neighbour_grid(image, region, stride, offset):
    """Sample points whose right and down neighbours (at `offset`) stay inside the region."""
    x0, y0, x1, y1 = region_bounds(image, region)
    xs = np.arange(x0, x1 - offset, stride)
    ys = np.arange(y0, y1 - offset, stride)
    if xs.size == 0 or ys.size == 0:
        return None

    b = image.brightness
    base = b[np.ix_(ys, xs)]
    diff_x = np.abs(base - b[np.ix_(ys, xs + offset)])
    diff_y = np.abs(base - b[np.ix_(ys + offset, xs)])
    return diff_x, diff_y


def density(image, region, config=DEFAULT_CONFIG):
    """Mean normalized brightness of the region, in [0, 1]."""
    x0, y0, x1, y1 = region_bounds(image, region)
    step = config.density_stride
    samples = image.brightness[y0:y1:step, x0:x1:step]
    if samples.size == 0:
        return 0.0
    return float(samples.mean()) / 255.0


def edge_complexity(image, region, config=DEFAULT_CONFIG):
    """
    Magnitude of horizontal + vertical brightness discontinuities.

    Differences at or below the noise threshold are ignored; the sum is
    averaged over sample points and rescaled.
    """
    grid = _neighbour_grid(image, region, config.edge_stride, config.edge_offset)
    if grid is None:
        return 0.0
    diff_x, diff_y = grid
    threshold = config.edge_noise_threshold
    total = int(diff_x[diff_x > threshold].sum()) + int(diff_y[diff_y > threshold].sum())
    return total / diff_x.size / config.edge_scale


def entropy(image, region, config=DEFAULT_CONFIG):
    """Fraction of sampled neighbour pairs whose brightness differs beyond the threshold."""
    grid = _neighbour_grid(image, region, config.entropy_stride, config.entropy_offset)
    if grid is None:
        return 0.0
    diff_x, diff_y = grid
    threshold = config.entropy_threshold
    changed = int((diff_x > threshold).sum()) + int((diff_y > threshold).sum())
    return changed / (diff_x.size + diff_y.size)


def segment_count(image, line, config=DEFAULT_CONFIG):
    """Number of bright runs along a horizontal scan line, ignoring narrow runs."""
    if image.height == 0 or image.width == 0:
        return 0
    row = min(int(image.height * line.y), image.height - 1)
    x0 = int(image.width * line.x)
    x1 = min(x0 + int(image.width * line.w), image.width)
    if x1 <= x0:
        return 0

    values = image.brightness[row, x0:x1]
    bright = (values > config.segment_brightness_threshold * 255).astype(np.int8)
    edges = np.diff(np.concatenate(([0], bright, [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)

    min_width = max(2, int(image.width * config.segment_min_width))
    return int(((ends - starts) >= min_width).sum())


def sample_features(image, config=DEFAULT_CONFIG):
    """Compute the FeatureVector the anatomy classifier works from."""
    with ThreadPoolExecutor(max_workers=config.sampler_workers) as pool:
        jobs = {
            "ul_density": pool.submit(density, image, config.upper_left, config),
            "ur_density": pool.submit(density, image, config.upper_right, config),
            "ul_entropy": pool.submit(entropy, image, config.upper_left, config),
            "ur_entropy": pool.submit(entropy, image, config.upper_right, config),
            "center": pool.submit(density, image, config.center, config),
            "v_mass": pool.submit(density, image, config.vertical_strip, config),
            "segments": pool.submit(segment_count, image, config.digit_line, config),
        }
        stats = {name: job.result() for name, job in jobs.items()}

    features = FeatureVector(
        aspect_ratio=image.aspect_ratio,
        corner_density=(stats["ul_density"] + stats["ur_density"]) / 2.0,
        corner_entropy=(stats["ul_entropy"] + stats["ur_entropy"]) / 2.0,
        center_density=stats["center"],
        v_mass=stats["v_mass"],
        segment_count=stats["segments"],
    )
    logger.debug("Sampled features for %r: %s", image, features)
    return features
