import logging

from .config import DEFAULT_CONFIG, WHOLE_IMAGE
from .models import QualityRejection
from .sampler import density, edge_complexity

logger = logging.getLogger(__name__)

TOO_DARK = "Too Dark"
WASHED_OUT = "Washed Out"
LOW_CONTRAST = "Low Contrast"


def _quality_rules(config):
    # (reason, predicate on (density, edges)); first match wins
    return [
        (TOO_DARK, lambda d, e: d < config.dark_floor),
        (WASHED_OUT, lambda d, e: d > config.bright_ceiling),
        (LOW_CONTRAST, lambda d, e: e < config.flatness_floor),
    ]


def check_quality(image, config=DEFAULT_CONFIG):
    """Return a QualityRejection for an unusable exposure, or None when it passes."""
    mean_density = density(image, WHOLE_IMAGE, config)
    edges = edge_complexity(image, WHOLE_IMAGE, config)

    for reason, rejects in _quality_rules(config):
        if rejects(mean_density, edges):
            logger.warning("Quality gate rejected %r: %s (density=%.3f, edges=%.3f)",
                           image, reason, mean_density, edges)
            return QualityRejection(reason=reason, density=mean_density, edge_complexity=edges)

    return None
