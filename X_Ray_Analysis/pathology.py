import logging

from .config import DEFAULT_CONFIG
from .models import BodyPart, Finding, Severity
from .sampler import density, edge_complexity

logger = logging.getLogger(__name__)

HEALTHY_LABEL = "Healthy (No Issues)"
UNKNOWN_LABEL = "Anatomy Unclear - Re-upload Required"


def _banded(score, offset, ceiling):
    # Never report full certainty
    return min(score + offset, ceiling)


def _score_chest(image, config):
    cloudiness = density(image, config.lung_field, config)
    logger.debug("Lung field cloudiness: %.3f", cloudiness)

    if cloudiness > config.chest_critical:
        return [Finding("Pulmonary Opacity", cloudiness, Severity.CRITICAL, BodyPart.CHEST)]
    if cloudiness > config.chest_moderate:
        return [Finding("Mild Haziness", cloudiness, Severity.MODERATE, BodyPart.CHEST)]
    return []


def _score_limb(anatomy, image, config):
    bone_edges = edge_complexity(image, config.limb_region, config)
    # Legs carry denser cortical bone, so edges are weighted up
    sensitivity = config.leg_sensitivity if anatomy == BodyPart.LEG else config.hand_sensitivity
    adjusted = bone_edges * sensitivity
    logger.debug("%s bone edge score: %.3f (raw %.3f)", anatomy.value, adjusted, bone_edges)

    if adjusted > config.limb_critical:
        probability = _banded(adjusted, config.critical_band_offset, config.critical_band_ceiling)
        return [Finding("Big Fracture Detected", probability, Severity.CRITICAL, anatomy)]
    if adjusted > config.limb_moderate:
        probability = _banded(adjusted, config.moderate_band_offset, config.moderate_band_ceiling)
        return [Finding("Minor Bone Crack", probability, Severity.MODERATE, anatomy)]
    return []


def rank_findings(findings):
    """Most severe first, then most probable."""
    return sorted(findings, key=lambda f: (f.severity.rank, f.probability), reverse=True)


def score_pathology(estimate, image, config=DEFAULT_CONFIG):
    """Score abnormalities for the estimated anatomy. The result is never empty."""
    anatomy = estimate.label

    if anatomy == BodyPart.UNKNOWN:
        return [Finding(UNKNOWN_LABEL, config.unknown_probability, Severity.MODERATE, BodyPart.UNKNOWN)]

    if anatomy == BodyPart.CHEST:
        findings = _score_chest(image, config)
    else:
        findings = _score_limb(anatomy, image, config)

    if not findings:
        findings = [Finding(HEALTHY_LABEL, config.healthy_probability, Severity.NORMAL, anatomy)]

    return rank_findings(findings)
