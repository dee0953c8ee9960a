"""
Safety gate cross-checking the clinician's body-part selection against the
anatomy seen in the image.

Portrait-shaped images get no waiver: a Chest/limb conflict is a mismatch
whatever the aspect ratio.
"""

import logging

from .models import BodyPart, MismatchVerdict

logger = logging.getLogger(__name__)

LIMBS = {BodyPart.HAND, BodyPart.LEG}

# (description, predicate on (declared, detected, trusted)); first match wins
MISMATCH_RULES = [
    ("no body part declared",
     lambda declared, detected, trusted: declared == BodyPart.UNKNOWN),
    ("anatomy undetermined",
     lambda declared, detected, trusted: detected == BodyPart.UNKNOWN and not trusted),
    ("chest declared, extremity detected",
     lambda declared, detected, trusted: declared == BodyPart.CHEST and detected in LIMBS),
    ("extremity declared, chest detected",
     lambda declared, detected, trusted: declared in LIMBS and detected == BodyPart.CHEST),
    ("cross-extremity",
     lambda declared, detected, trusted: declared in LIMBS and detected in LIMBS and declared != detected),
]


def check_mismatch(declared, top_finding):
    """Compare the declared body part with the top finding's anatomy."""
    declared = BodyPart.parse(declared)
    detected = top_finding.anatomy

    for description, conflicts in MISMATCH_RULES:
        if conflicts(declared, detected, top_finding.trusted):
            logger.warning("Anatomical mismatch (%s): declared=%s detected=%s",
                           description, declared.value, detected.value)
            return MismatchVerdict(is_mismatch=True, declared=declared, detected=detected)

    return MismatchVerdict(is_mismatch=False, declared=declared, detected=detected)
