"""
IRB Wizard Enumerations

All enumeration types used by the determination engine.

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Review Tiers
# =============================================================================

class ReviewType(str, Enum):
    """
    Regulatory review tier returned by the classifier.

    Closed set: exactly one is returned per snapshot.
    """
    NOT_RESEARCH = "NOT_RESEARCH"
    NOT_HUMAN_SUBJECTS = "NOT_HUMAN_SUBJECTS"
    EXEMPT = "EXEMPT"
    EXPEDITED = "EXPEDITED"
    FULL_BOARD = "FULL_BOARD"
    INSUFFICIENT_INFO = "INSUFFICIENT_INFO"

    @property
    def is_substantive(self) -> bool:
        """True for the three tiers that require IRB review."""
        return self in _SUBSTANTIVE

    @property
    def oversight_rank(self) -> int:
        """Ordering of oversight burden; higher means more oversight."""
        return _OVERSIGHT_RANK[self]


_SUBSTANTIVE = frozenset({ReviewType.EXEMPT, ReviewType.EXPEDITED, ReviewType.FULL_BOARD})

_OVERSIGHT_RANK = {
    ReviewType.NOT_RESEARCH: 0,
    ReviewType.NOT_HUMAN_SUBJECTS: 0,
    ReviewType.INSUFFICIENT_INFO: 0,
    ReviewType.EXEMPT: 1,
    ReviewType.EXPEDITED: 2,
    ReviewType.FULL_BOARD: 3,
}


class RiskLevel(str, Enum):
    """Investigator's own risk assessment (risks.riskLevel)."""
    NONE = "none"
    MINIMAL = "minimal"
    GREATER = "greater"


# =============================================================================
# Severities and Priorities
# =============================================================================

class IssueSeverity(str, Enum):
    """Severity of a consistency issue."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"                      # Reserved, not emitted yet


class FlagSeverity(str, Enum):
    """Severity of a reviewer-attention flag on a determination."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Priority(str, Enum):
    """Display priority of a recommendation. Never affects the tier."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def order(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]


class RecommendationType(str, Enum):
    """What a recommendation is about."""
    EXPEDITE = "expedite"              # Ways to reach a lighter tier
    COMPLIANCE = "compliance"          # Regulatory or institutional requirement
    PROTECTION = "protection"          # Additional subject protections
    CONSISTENCY = "consistency"        # Keep the protocol internally consistent
