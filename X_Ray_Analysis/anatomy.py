"""
Anatomy classification from sampled region statistics.

Aspect ratio on its own is a weak discriminator (square extremity crops are
common), so each branch combines several features. Branches are tried in
order; the first one whose guard holds and whose confidence reaches the floor
wins. When none does, the estimate is Unknown rather than a forced guess.
"""

import logging

from .config import DEFAULT_CONFIG
from .models import AnatomyEstimate, BodyPart
from .sampler import sample_features

logger = logging.getLogger(__name__)


def _clamp(value):
    return max(0.0, min(1.0, value))


def _above(value, threshold, span):
    return _clamp((value - threshold) / span)


def _below(value, threshold, span):
    return _clamp((threshold - value) / span)


def _confidence(margins, config):
    return config.confidence_base + config.confidence_gain * (sum(margins) / len(margins))


# ---------------------------- GUARDS ---------------------------- #
# Each guard returns a confidence when its conditions hold, otherwise None.

def _chest(f, config):
    # Wide film with dense soft tissue in the upper corners and quiet periphery
    if not (f.aspect_ratio > config.chest_ratio_min
            and f.corner_density > config.chest_corner_density_min
            and f.corner_entropy < config.chest_corner_entropy_max):
        return None
    span = config.margin_span
    return _confidence([
        _above(f.aspect_ratio, config.chest_ratio_min, span),
        _above(f.corner_density, config.chest_corner_density_min, span),
        _below(f.corner_entropy, config.chest_corner_entropy_max, span),
    ], config)


def _hand_many_digits(f, config):
    if f.segment_count < config.hand_segments_high:
        return None
    return _confidence([
        _clamp((f.segment_count - config.hand_segments_high + 1) / config.segment_span),
    ], config)


def _hand_splayed(f, config):
    # Fewer visible digits, but the periphery is busy (splayed fingers reach the corners)
    if not (f.segment_count >= config.hand_segments_moderate
            and f.corner_entropy > config.hand_corner_entropy_min):
        return None
    return _confidence([
        _clamp((f.segment_count - config.hand_segments_moderate + 1) / config.segment_span),
        _above(f.corner_entropy, config.hand_corner_entropy_min, config.margin_span),
    ], config)


def _leg(f, config):
    # A single dense long-bone column on a quiet background
    if not (f.segment_count <= config.leg_segments_max
            and f.v_mass > config.leg_v_mass_min
            and f.corner_entropy < config.leg_corner_entropy_max):
        return None
    span = config.margin_span
    return _confidence([
        _clamp((config.leg_segments_max - f.segment_count + 1) / (config.leg_segments_max + 1)),
        _above(f.v_mass, config.leg_v_mass_min, span),
        _below(f.corner_entropy, config.leg_corner_entropy_max, span),
        _above(f.center_density, config.leg_center_density_min, span),
    ], config)


ANATOMY_GUARDS = [
    (BodyPart.CHEST, _chest),
    (BodyPart.HAND, _hand_many_digits),
    (BodyPart.HAND, _hand_splayed),
    (BodyPart.LEG, _leg),
]


def classify_anatomy(features, config=DEFAULT_CONFIG):
    """Map a FeatureVector onto an AnatomyEstimate."""
    best_rejected = 0.0
    for label, guard in ANATOMY_GUARDS:
        confidence = guard(features, config)
        if confidence is None:
            continue
        confidence = round(min(confidence, 1.0), 4)
        if confidence >= config.anatomy_confidence_floor:
            logger.info("Anatomy classified as %s (confidence=%.2f)", label.value, confidence)
            return AnatomyEstimate(label=label, confidence=confidence)
        logger.debug("%s guard held but confidence %.2f is below the floor", label.value, confidence)
        best_rejected = max(best_rejected, confidence)

    logger.info("Anatomy could not be determined (features=%s)", features)
    return AnatomyEstimate(label=BodyPart.UNKNOWN, confidence=best_rejected)


def estimate_anatomy(image, config=DEFAULT_CONFIG):
    return classify_anatomy(sample_features(image, config), config)
