"""
IRB Wizard Models

All value types consumed and produced by the determination engine:

    from irbwiz.models import (
        # Enums
        ReviewType, RiskLevel, IssueSeverity, FlagSeverity,
        # Answers
        Answer, AnswerSnapshot,
        # Results
        DeterminationResult, Flag, Recommendation, ConsistencyIssue,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    FlagSeverity,
    IssueSeverity,
    Priority,
    RecommendationType,
    ReviewType,
    RiskLevel,
)

# =============================================================================
# Answers
# =============================================================================
from .answer import Answer
from .snapshot import (
    CHOICE_FIELDS,
    DATE_FIELDS,
    NUMBER_FIELDS,
    SECTIONS,
    SNAPSHOT_DEFAULTS,
    AnswerSnapshot,
    field_kind,
)

# =============================================================================
# Results
# =============================================================================
from .determination import (
    REVIEW_TYPE_INFO,
    DeterminationResult,
    Flag,
    Recommendation,
    ReviewTypeInfo,
    review_type_info,
)
from .issues import ConsistencyIssue, issue_count, issues_by_section

__all__ = [
    # Enums
    "FlagSeverity",
    "IssueSeverity",
    "Priority",
    "RecommendationType",
    "ReviewType",
    "RiskLevel",
    # Answers
    "Answer",
    "AnswerSnapshot",
    "SNAPSHOT_DEFAULTS",
    "SECTIONS",
    "NUMBER_FIELDS",
    "DATE_FIELDS",
    "CHOICE_FIELDS",
    "field_kind",
    # Results
    "DeterminationResult",
    "Flag",
    "Recommendation",
    "ReviewTypeInfo",
    "REVIEW_TYPE_INFO",
    "review_type_info",
    "ConsistencyIssue",
    "issue_count",
    "issues_by_section",
]
