"""Result types shared by every stage of the analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BodyPart(str, Enum):
    CHEST = "Chest"
    HAND = "Hand"
    LEG = "Leg"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value) -> "BodyPart":
        """Case-insensitive lookup; raises ValueError for anything unrecognised."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for part in cls:
            if part.value.lower() == text:
                return part
        raise ValueError(f"Unsupported body part: {value!r}")

    @property
    def is_limb(self) -> bool:
        return self in (BodyPart.HAND, BodyPart.LEG)


class Severity(str, Enum):
    NORMAL = "Normal"
    MODERATE = "Moderate"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return {"Normal": 0, "Moderate": 1, "Critical": 2}[self.value]


class FindingSource(str, Enum):
    HEURISTIC = "heuristic"
    REFERENCE = "reference"
    ERROR = "error"


@dataclass(frozen=True)
class FeatureVector:
    aspect_ratio: float
    corner_density: float
    corner_entropy: float
    center_density: float
    v_mass: float
    segment_count: int

    def to_dict(self):
        return {
            "aspect_ratio": self.aspect_ratio,
            "corner_density": self.corner_density,
            "corner_entropy": self.corner_entropy,
            "center_density": self.center_density,
            "v_mass": self.v_mass,
            "segment_count": self.segment_count,
        }


@dataclass(frozen=True)
class AnatomyEstimate:
    label: BodyPart
    confidence: float


@dataclass(frozen=True)
class Finding:
    label: str
    probability: float
    severity: Severity
    anatomy: BodyPart
    source: FindingSource = FindingSource.HEURISTIC

    @property
    def is_abnormal(self) -> bool:
        return self.severity in (Severity.MODERATE, Severity.CRITICAL)

    @property
    def trusted(self) -> bool:
        return self.source == FindingSource.REFERENCE

    def to_dict(self):
        return {
            "label": self.label,
            "probability": round(float(self.probability), 4),
            "severity": self.severity.value,
            "anatomy": self.anatomy.value,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class MismatchVerdict:
    is_mismatch: bool
    declared: BodyPart
    detected: BodyPart


@dataclass(frozen=True)
class DiagnosisRecord:
    """Persisted report for one scan. Only created once the mismatch gate clears."""
    result_label: str
    severity: Severity
    recommendation: str
    doctor_comments: str
    confidence: int
    scan_id: Optional[str] = None

    outcome = "diagnosis"

    def to_dict(self):
        return {
            "outcome": self.outcome,
            "result_label": self.result_label,
            "severity": self.severity.value,
            "recommendation": self.recommendation,
            "doctor_comments": self.doctor_comments,
            "confidence": self.confidence,
            "scan_id": self.scan_id,
        }


@dataclass(frozen=True)
class MismatchOutcome:
    verdict: MismatchVerdict
    result_label: str
    recommendation: str
    doctor_comments: str

    outcome = "mismatch"

    def to_dict(self):
        return {
            "outcome": self.outcome,
            "is_mismatch": self.verdict.is_mismatch,
            "declared": self.verdict.declared.value,
            "detected": self.verdict.detected.value,
            "result_label": self.result_label,
            "recommendation": self.recommendation,
            "doctor_comments": self.doctor_comments,
        }


@dataclass(frozen=True)
class QualityRejection:
    reason: str
    density: float
    edge_complexity: float

    outcome = "quality_rejection"

    @property
    def instruction(self) -> str:
        return f"RE-UPLOAD SCAN: Image rejected ({self.reason}). Acquire a new exposure and upload again."

    def to_dict(self):
        return {
            "outcome": self.outcome,
            "reason": self.reason,
            "density": round(float(self.density), 4),
            "edge_complexity": round(float(self.edge_complexity), 4),
            "instruction": self.instruction,
        }
