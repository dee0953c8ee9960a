"""
Deterministic diagnosis rule table.

Once the mismatch gate clears, the declared body part is authoritative. The
table below, not the pathology scorer, decides the persisted label, severity
and recommendation; the scorer only contributes the abnormal flag and, for
limbs, the top finding's label.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import DEFAULT_CONFIG
from .models import BodyPart, DiagnosisRecord, MismatchOutcome, Severity

logger = logging.getLogger(__name__)

MISMATCH_LABEL = "ANATOMICAL MISMATCH DETECTED"
GENERIC_FRACTURE = "Potential Fracture"
GENERIC_HEALTHY = "Healthy (No Issues)"
ROUTINE_FOLLOW_UP = "Routine follow-up prescribed."


@dataclass(frozen=True)
class DiagnosisRule:
    name: str
    limb: bool
    abnormal: bool
    severity: Severity
    result_label: Callable
    recommendation: str
    comment: str

    def matches(self, declared, abnormal):
        # Anything that is not a limb falls through to the chest rules
        return declared.is_limb == self.limb and bool(abnormal) == self.abnormal


def _limb_abnormal_label(top_finding):
    if top_finding is not None and top_finding.is_abnormal and top_finding.anatomy.is_limb:
        return top_finding.label
    return GENERIC_FRACTURE


def _limb_normal_label(top_finding):
    if top_finding is not None and not top_finding.is_abnormal and top_finding.anatomy.is_limb:
        return top_finding.label
    return GENERIC_HEALTHY


DIAGNOSIS_RULES = [
    DiagnosisRule(
        name="limb-abnormal",
        limb=True,
        abnormal=True,
        severity=Severity.CRITICAL,
        result_label=_limb_abnormal_label,
        recommendation="IMMEDIATE ORTHOPEDIC REVIEW: Suspected cortical interruption. "
                       "Immobilize joint and consult surgeon.",
        comment="Findings suggest acute skeletal structural instability in the {declared}.",
    ),
    DiagnosisRule(
        name="limb-normal",
        limb=True,
        abnormal=False,
        severity=Severity.NORMAL,
        result_label=_limb_normal_label,
        recommendation=ROUTINE_FOLLOW_UP,
        comment="No visible fracture or joint displacement detected in the {declared}.",
    ),
    DiagnosisRule(
        name="chest-abnormal",
        limb=False,
        abnormal=True,
        severity=Severity.CRITICAL,
        result_label=lambda top_finding: "Pulmonary Infection",
        recommendation="IMMEDIATE RADIOLOGY VERIFICATION: Findings suggest extensive pulmonary "
                       "consolidation. Possible pneumonia.",
        comment="Increased lung opacity suggests high-density fluid accumulation.",
    ),
    DiagnosisRule(
        name="chest-normal",
        limb=False,
        abnormal=False,
        severity=Severity.NORMAL,
        result_label=lambda top_finding: "Normal",
        recommendation=ROUTINE_FOLLOW_UP,
        comment="Chest cavity appears clear with no significant focal opacities.",
    ),
]


def is_abnormal(findings):
    return any(f.is_abnormal for f in findings)


def _context_comment(declared, detected):
    return f"Visual Verification: {detected.value}. Clinical Context: {declared.value} focus. "


def apply_rules(declared, detected, abnormal, top_finding=None, config=DEFAULT_CONFIG,
                scan_id: Optional[str] = None):
    """Build the DiagnosisRecord for a scan whose anatomy check has cleared."""
    declared = BodyPart.parse(declared)
    detected = BodyPart.parse(detected)
    rule = next(r for r in DIAGNOSIS_RULES if r.matches(declared, abnormal))

    result_label = rule.result_label(top_finding)
    confidence = config.abnormal_confidence if abnormal else config.normal_confidence
    comments = _context_comment(declared, detected) + rule.comment.format(
        declared=declared.value, detected=detected.value, result=result_label)

    logger.info("Rule %s applied: %s (%s, %d%%)", rule.name, result_label,
                rule.severity.value, confidence)
    return DiagnosisRecord(
        result_label=result_label,
        severity=rule.severity,
        recommendation=rule.recommendation,
        doctor_comments=comments,
        confidence=confidence,
        scan_id=scan_id,
    )


def build_mismatch_outcome(verdict):
    declared, detected = verdict.declared.value, verdict.detected.value
    return MismatchOutcome(
        verdict=verdict,
        result_label=MISMATCH_LABEL,
        recommendation=(f"RE-UPLOAD SCAN: The uploaded image visual profile (likely {detected}) "
                        f"does not match the selected focus ({declared}). Analysis halted for safety."),
        doctor_comments=(_context_comment(verdict.declared, verdict.detected)
                         + f"SAFETY ALERT: Visual profile mismatch. System refused to apply "
                           f"{declared} rules to a scan appearing as {detected}."),
    )
