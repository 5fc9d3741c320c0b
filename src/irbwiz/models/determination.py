"""
IRB Wizard Determination Models

Output of the classifier: a review-tier verdict with its justification.

Key components:
- Flag: A reviewer-attention note that does not change the tier
- Recommendation: An advisory, non-blocking suggestion
- DeterminationResult: The full verdict for one snapshot
- ReviewTypeInfo: Canonical presentation metadata for each tier

Results are derived values: recomputed on every snapshot, never stored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .enums import FlagSeverity, Priority, RecommendationType, ReviewType


# =============================================================================
# Flags and Recommendations
# =============================================================================

@dataclass(frozen=True)
class Flag:
    """
    A secondary concern surfaced alongside the tier.

    Attributes:
        severity: How much reviewer attention the concern deserves
        message: Human-readable explanation
    """
    severity: FlagSeverity
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"severity": self.severity.value, "message": self.message}


@dataclass(frozen=True)
class Recommendation:
    """
    An advisory suggestion for the investigator.

    Priority orders recommendations for display; it never feeds back
    into the classification.
    """
    type: RecommendationType
    priority: Priority
    title: str
    body: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "body": self.body,
        }


# =============================================================================
# Determination Result
# =============================================================================

@dataclass(frozen=True)
class DeterminationResult:
    """
    The classifier's verdict for one snapshot.

    Attributes:
        type: Winning review tier
        category: Regulatory sub-category number (exempt or expedited), if any
        category_label: Display label for the category
        reasons: Justifications of the winning tier, in evaluation order
        confidence: Float in [0, 1]; 0 for INSUFFICIENT_INFO
        recommendations: Advisory suggestions
        flags: Reviewer-attention notes
        rule_ids: Ids of the rules that fired for the winning tier
        classifier_version: Version of the rule catalog that produced this
    """
    type: ReviewType
    category: Optional[int] = None
    category_label: Optional[str] = None
    reasons: tuple[str, ...] = ()
    confidence: float = 0.0
    recommendations: tuple[Recommendation, ...] = ()
    flags: tuple[Flag, ...] = ()
    rule_ids: tuple[str, ...] = ()
    classifier_version: str = ""

    @property
    def info(self) -> ReviewTypeInfo:
        return review_type_info(self.type)

    @property
    def requires_irb_review(self) -> bool:
        return self.type.is_substantive

    def sorted_recommendations(self) -> list[Recommendation]:
        """Recommendations ordered by priority, stable within a priority."""
        return sorted(self.recommendations, key=lambda rec: rec.priority.order)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize to the camelCase shape consumed by the presentation
        layer and passed to the narrative reviewer as ``rulesBased``.
        """
        return {
            "type": self.type.value,
            "category": self.category,
            "categoryLabel": self.category_label,
            "reasons": list(self.reasons),
            "confidence": self.confidence,
            "recommendations": [rec.to_dict() for rec in self.recommendations],
            "flags": [flag.to_dict() for flag in self.flags],
            "ruleIds": list(self.rule_ids),
            "classifierVersion": self.classifier_version,
        }


# =============================================================================
# Review Type Metadata
# =============================================================================

@dataclass(frozen=True)
class ReviewTypeInfo:
    """Presentation metadata for a review tier."""
    type: ReviewType
    label: str
    short_label: str
    description: str
    requires_irb_review: bool
    citation: Optional[str] = None

    @property
    def oversight_rank(self) -> int:
        return self.type.oversight_rank

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "label": self.label,
            "shortLabel": self.short_label,
            "description": self.description,
            "requiresIrbReview": self.requires_irb_review,
            "oversightRank": self.oversight_rank,
            "citation": self.citation,
        }


REVIEW_TYPE_INFO: dict[ReviewType, ReviewTypeInfo] = {
    ReviewType.NOT_RESEARCH: ReviewTypeInfo(
        type=ReviewType.NOT_RESEARCH,
        label="Not Research",
        short_label="Not Research",
        description="The activity does not meet the federal definition of research.",
        requires_irb_review=False,
        citation="45 CFR 46.102(l)",
    ),
    ReviewType.NOT_HUMAN_SUBJECTS: ReviewTypeInfo(
        type=ReviewType.NOT_HUMAN_SUBJECTS,
        label="Not Human Subjects Research",
        short_label="Not HSR",
        description="The research does not involve human subjects.",
        requires_irb_review=False,
        citation="45 CFR 46.102(e)",
    ),
    ReviewType.EXEMPT: ReviewTypeInfo(
        type=ReviewType.EXEMPT,
        label="Exempt Review",
        short_label="Exempt",
        description="Minimal-risk research in an exempt category; reviewed by IRB staff.",
        requires_irb_review=True,
        citation="45 CFR 46.104(d)",
    ),
    ReviewType.EXPEDITED: ReviewTypeInfo(
        type=ReviewType.EXPEDITED,
        label="Expedited Review",
        short_label="Expedited",
        description="Minimal-risk research in an expedited category; reviewed by a designated IRB member.",
        requires_irb_review=True,
        citation="45 CFR 46.110",
    ),
    ReviewType.FULL_BOARD: ReviewTypeInfo(
        type=ReviewType.FULL_BOARD,
        label="Full Board Review",
        short_label="Full Board",
        description="Reviewed at a convened meeting of the full IRB.",
        requires_irb_review=True,
        citation="45 CFR 46.108",
    ),
    ReviewType.INSUFFICIENT_INFO: ReviewTypeInfo(
        type=ReviewType.INSUFFICIENT_INFO,
        label="Insufficient Information",
        short_label="Incomplete",
        description="Not enough answers to determine the review type yet.",
        requires_irb_review=False,
    ),
}


def review_type_info(value: Union[ReviewType, str, None]) -> ReviewTypeInfo:
    """
    Look up presentation metadata for a tier.

    Unknown values resolve to the INSUFFICIENT_INFO entry, so a caller
    holding a stale or unexpected tier string always gets something to
    render.
    """
    if isinstance(value, ReviewType):
        return REVIEW_TYPE_INFO[value]
    try:
        return REVIEW_TYPE_INFO[ReviewType(value)]
    except ValueError:
        return REVIEW_TYPE_INFO[ReviewType.INSUFFICIENT_INFO]


__all__ = [
    "Flag",
    "Recommendation",
    "DeterminationResult",
    "ReviewTypeInfo",
    "REVIEW_TYPE_INFO",
    "review_type_info",
]
