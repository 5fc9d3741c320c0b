"""
IRB Wizard Engine

Stateless components over an AnswerSnapshot:
- classify: review-tier determination
- check: consistency issues
- missing_fields: step-gating completeness helper
"""
from __future__ import annotations

from .catalog import (
    CHECK_CATALOG,
    RULE_CATALOG,
    CheckDefinition,
    EvaluationContext,
    Finding,
    RuleDefinition,
    RuleHit,
    get_checks,
    get_rules,
)
from .classifier import CLASSIFIER_VERSION, CORE_FIELDS, classify
from .confidence import coverage, relevant_fields
from .consistency import check
from .steps import STEP_KEYS, STEPS, MissingField, Step, get_step, missing_fields, step_complete

__all__ = [
    "classify",
    "check",
    "missing_fields",
    "step_complete",
    "get_step",
    "Step",
    "STEPS",
    "STEP_KEYS",
    "MissingField",
    "CLASSIFIER_VERSION",
    "CORE_FIELDS",
    "coverage",
    "relevant_fields",
    "EvaluationContext",
    "RuleDefinition",
    "RuleHit",
    "RULE_CATALOG",
    "CheckDefinition",
    "Finding",
    "CHECK_CATALOG",
    "get_rules",
    "get_checks",
]
