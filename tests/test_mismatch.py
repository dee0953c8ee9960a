import pytest

from X_Ray_Analysis.mismatch import check_mismatch
from X_Ray_Analysis.models import BodyPart, Finding, FindingSource, Severity


def finding(anatomy, source=FindingSource.HEURISTIC):
    return Finding("x", 0.9, Severity.NORMAL, anatomy, source)


@pytest.mark.parametrize("declared, detected", [
    ("Chest", BodyPart.HAND),
    ("Chest", BodyPart.LEG),
    ("Hand", BodyPart.CHEST),
    ("Leg", BodyPart.CHEST),
    ("Hand", BodyPart.LEG),
    ("Leg", BodyPart.HAND),
    ("Chest", BodyPart.UNKNOWN),
    ("Hand", BodyPart.UNKNOWN),
])
def test_conflicts_are_mismatches(declared, detected):
    verdict = check_mismatch(declared, finding(detected))
    assert verdict.is_mismatch
    assert verdict.declared == BodyPart.parse(declared)
    assert verdict.detected == detected


@pytest.mark.parametrize("part", [BodyPart.CHEST, BodyPart.HAND, BodyPart.LEG])
def test_agreement_is_never_a_mismatch(part):
    assert not check_mismatch(part, finding(part)).is_mismatch


def test_declared_part_is_case_insensitive():
    assert not check_mismatch("chest", finding(BodyPart.CHEST)).is_mismatch


def test_undeclared_body_part_blocks_diagnosis():
    assert check_mismatch(BodyPart.UNKNOWN, finding(BodyPart.CHEST)).is_mismatch


def test_trusted_reference_label_is_not_treated_as_undetermined():
    verdict = check_mismatch("Hand", finding(BodyPart.UNKNOWN, FindingSource.REFERENCE))
    assert not verdict.is_mismatch


def test_trusted_reference_still_conflicts_across_parts():
    verdict = check_mismatch("Leg", finding(BodyPart.HAND, FindingSource.REFERENCE))
    assert verdict.is_mismatch


def test_unsupported_declared_part_raises():
    with pytest.raises(ValueError):
        check_mismatch("Skull", finding(BodyPart.CHEST))
