"""
Confidence scoring.

Confidence measures how much of the decision-relevant evidence was
explicitly answered, not how likely the tier is to be "right":

    INSUFFICIENT_INFO                 0.0
    NOT_RESEARCH, NOT_HUMAN_SUBJECTS  0.95  (one answer decides)
    EXEMPT, EXPEDITED, FULL_BOARD     0.35 + 0.60 * coverage

Coverage is answered / relevant over a fixed field set plus conditional
fields that only become relevant once their parent is answered YES.
Answering a parent YES adds one to both sides of the ratio, so coverage
never drops as answers accumulate.
"""
from __future__ import annotations

from ..models.enums import ReviewType
from ..models.snapshot import AnswerSnapshot
from .determination_rules import risk_level

CONFIDENCE_FLOOR = 0.35
CONFIDENCE_SPAN = 0.60
GATE_CONFIDENCE = 0.95

RELEVANT_FIELDS: tuple[tuple[str, str], ...] = (
    ("prescreening", "isResearch"),
    ("prescreening", "involvesHumanSubjects"),
    ("subjects", "includesMinors"),
    ("subjects", "includesPrisoners"),
    ("subjects", "includesPregnantWomen"),
    ("subjects", "includesCognitivelyImpaired"),
    ("procedures", "methodTypes"),
    ("procedures", "involvesDeception"),
    ("procedures", "involvesRecording"),
    ("procedures", "involvesBloodDraw"),
    ("procedures", "involvesOtherBiospecimen"),
    ("procedures", "usesExistingData"),
    ("risks", "riskLevel"),
    ("data", "collectsIdentifiers"),
)

# (parent, child): child is relevant once parent is answered YES
CONDITIONAL_FIELDS: tuple[tuple[tuple[str, str], tuple[str, str]], ...] = (
    (("procedures", "involvesDeception"), ("procedures", "deceptionDebriefing")),
    (("procedures", "usesExistingData"), ("procedures", "existingDataIdentifiable")),
    (("procedures", "involvesBloodDraw"), ("procedures", "bloodDrawAmount")),
)

_GATE_TIERS = frozenset({ReviewType.NOT_RESEARCH, ReviewType.NOT_HUMAN_SUBJECTS})


def _answered(snapshot: AnswerSnapshot, section: str, field: str) -> bool:
    if (section, field) == ("procedures", "bloodDrawAmount"):
        return snapshot.number(section, field) is not None
    if (section, field) == ("risks", "riskLevel"):
        return risk_level(snapshot) is not None
    if (section, field) == ("procedures", "methodTypes"):
        return len(snapshot.tokens(section, field)) > 0
    return snapshot.answer(section, field).is_known


def relevant_fields(snapshot: AnswerSnapshot) -> list[tuple[str, str]]:
    """Decision-relevant fields for this snapshot, fixed ones first."""
    fields = list(RELEVANT_FIELDS)
    for (parent_section, parent_field), child in CONDITIONAL_FIELDS:
        if snapshot.answer(parent_section, parent_field).is_yes:
            fields.append(child)
    return fields


def coverage(snapshot: AnswerSnapshot) -> float:
    """Fraction of decision-relevant fields explicitly answered."""
    fields = relevant_fields(snapshot)
    answered = sum(1 for section, field in fields if _answered(snapshot, section, field))
    return answered / len(fields)


def score(review_type: ReviewType, snapshot: AnswerSnapshot) -> float:
    """
    Confidence for a tier chosen on this snapshot.

    Args:
        review_type: Winning tier
        snapshot: The snapshot it was chosen on

    Returns:
        Float in [0, 0.95], rounded to two decimals
    """
    if review_type == ReviewType.INSUFFICIENT_INFO:
        return 0.0
    if review_type in _GATE_TIERS:
        return GATE_CONFIDENCE
    return round(CONFIDENCE_FLOOR + CONFIDENCE_SPAN * coverage(snapshot), 2)
