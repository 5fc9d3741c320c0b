"""
IRB Wizard - Rules-Based IRB Review Determination

Classifies a research protocol questionnaire into the regulatory review
tier it requires and checks the answers for internal contradictions.
It produces GUIDANCE, not approvals; the IRB office decides.

Key Features:
- Review-tier determination (Not Research, Not Human Subjects, Exempt,
  Expedited, Full Board, Insufficient Info) with reasons and confidence
- Exempt (45 CFR 46.104(d)) and expedited (45 CFR 46.110) categories
- Consistency checks with per-field issues
- Step-gating completeness helper for the wizard
- Study files in YAML/JSON, bundled sample studies
- CITI certificate date extraction

Quick Start:
    from irbwiz import AnswerSnapshot, classify, check

    snapshot = AnswerSnapshot.from_dict({
        "prescreening": {"isResearch": True, "involvesHumanSubjects": True},
        "subjects": {"includesMinors": False, "includesPrisoners": False},
        "procedures": {"involvesDeception": False, "methodTypes": ["survey"]},
        "risks": {"riskLevel": "minimal"},
        "data": {"collectsIdentifiers": False},
    })

    result = classify(snapshot)
    print(result.type, result.category, result.confidence)

    for issue in check(snapshot):
        print(issue.severity, issue.title)

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    Answer,
    AnswerSnapshot,
    ConsistencyIssue,
    DeterminationResult,
    Flag,
    FlagSeverity,
    IssueSeverity,
    Priority,
    Recommendation,
    RecommendationType,
    ReviewType,
    ReviewTypeInfo,
    RiskLevel,
    review_type_info,
)

# =============================================================================
# Engine
# =============================================================================
from .engine import (
    CLASSIFIER_VERSION,
    STEPS,
    check,
    classify,
    missing_fields,
    step_complete,
)

# =============================================================================
# Study Files
# =============================================================================
from .snapshots import (
    Study,
    list_sample_studies,
    load_sample_study,
    load_snapshot,
    load_study,
    load_study_from_string,
)

from .citi import CitiCertificateDates, extract_citi_dates, parse_citi_certificate
from .config import Settings, configure_logging, get_settings, load_settings

# =============================================================================
# Exceptions
# =============================================================================
from .exceptions import (
    CertificateParseError,
    ConfigurationError,
    IrbWizError,
    SampleStudyNotFoundError,
    SnapshotLoadError,
    SnapshotValidationError,
)

__all__ = [
    "__version__",
    # Models
    "Answer",
    "AnswerSnapshot",
    "ConsistencyIssue",
    "DeterminationResult",
    "Flag",
    "FlagSeverity",
    "IssueSeverity",
    "Priority",
    "Recommendation",
    "RecommendationType",
    "ReviewType",
    "ReviewTypeInfo",
    "RiskLevel",
    "review_type_info",
    # Engine
    "CLASSIFIER_VERSION",
    "STEPS",
    "check",
    "classify",
    "missing_fields",
    "step_complete",
    # Study files
    "Study",
    "list_sample_studies",
    "load_sample_study",
    "load_snapshot",
    "load_study",
    "load_study_from_string",
    # CITI certificates
    "CitiCertificateDates",
    "extract_citi_dates",
    "parse_citi_certificate",
    # Configuration
    "Settings",
    "configure_logging",
    "get_settings",
    "load_settings",
    # Exceptions
    "CertificateParseError",
    "ConfigurationError",
    "IrbWizError",
    "SampleStudyNotFoundError",
    "SnapshotLoadError",
    "SnapshotValidationError",
]
