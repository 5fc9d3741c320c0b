"""
Rule registries with @register_rule / @register_check decorators.

Both catalogs are filled once, at import time, by the rule modules and
only read afterwards. Declaration order is evaluation order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from ..config import Settings, get_settings
from ..models.determination import Flag
from ..models.enums import IssueSeverity, ReviewType
from ..models.snapshot import AnswerSnapshot


@dataclass(frozen=True)
class EvaluationContext:
    """Inputs a rule may read besides the snapshot."""
    institution: str = "UB"
    today: date = field(default_factory=date.today)

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        today: Optional[date] = None,
    ) -> EvaluationContext:
        settings = settings or get_settings()
        return cls(
            institution=settings.institution,
            today=today or settings.reference_date(),
        )


# =============================================================================
# Determination Rules
# =============================================================================

@dataclass(frozen=True)
class RuleHit:
    """
    Effect of a determination rule that fired.

    Attributes:
        reasons: Justification lines contributed to the winning tier
        flags: Reviewer-attention flags
        category: Regulatory category number, if the rule names one
        category_label: Display label for that category
    """
    reasons: tuple[str, ...] = ()
    flags: tuple[Flag, ...] = ()
    category: Optional[int] = None
    category_label: Optional[str] = None


RuleFn = Callable[[AnswerSnapshot, EvaluationContext], Optional[RuleHit]]


@dataclass(frozen=True)
class RuleDefinition:
    """
    A registered determination rule.

    ``tier`` is the review tier the rule selects when it fires, or None
    for advisory rules that only contribute flags.
    """
    id: str
    tier: Optional[ReviewType]
    description: str
    fn: RuleFn

    @property
    def is_advisory(self) -> bool:
        return self.tier is None


RULE_CATALOG: dict[str, RuleDefinition] = {}


def register_rule(
    id: str,
    tier: Optional[ReviewType],
    description: str,
) -> Callable:
    """Decorator that registers a determination rule in the global catalog."""

    def decorator(fn: RuleFn) -> RuleFn:
        if id in RULE_CATALOG:
            raise ValueError(f"Duplicate determination rule id: {id}")
        RULE_CATALOG[id] = RuleDefinition(
            id=id,
            tier=tier,
            description=description,
            fn=fn,
        )
        return fn

    return decorator


def get_rules(tier: Optional[ReviewType] = None) -> list[RuleDefinition]:
    """Registered rules in declaration order, optionally for one tier."""
    rules = list(RULE_CATALOG.values())
    if tier is None:
        return rules
    return [rule for rule in rules if rule.tier == tier]


def get_advisory_rules() -> list[RuleDefinition]:
    return [rule for rule in RULE_CATALOG.values() if rule.is_advisory]


# =============================================================================
# Consistency Checks
# =============================================================================

@dataclass(frozen=True)
class Finding:
    """
    What a consistency check reports when it fires.

    ``severity`` overrides the registered default for checks whose
    severity depends on the data.
    """
    message: str
    severity: Optional[IssueSeverity] = None


CheckFn = Callable[[AnswerSnapshot, EvaluationContext], Optional[Finding]]


@dataclass(frozen=True)
class CheckDefinition:
    id: str
    severity: IssueSeverity
    section: str
    field: str
    title: str
    fn: CheckFn


CHECK_CATALOG: dict[str, CheckDefinition] = {}


def register_check(
    id: str,
    severity: IssueSeverity,
    section: str,
    field: str,
    title: str,
) -> Callable:
    """Decorator that registers a consistency check in the global catalog."""

    def decorator(fn: CheckFn) -> CheckFn:
        if id in CHECK_CATALOG:
            raise ValueError(f"Duplicate consistency check id: {id}")
        CHECK_CATALOG[id] = CheckDefinition(
            id=id,
            severity=severity,
            section=section,
            field=field,
            title=title,
            fn=fn,
        )
        return fn

    return decorator


def get_checks() -> list[CheckDefinition]:
    """Registered consistency checks in declaration order."""
    return list(CHECK_CATALOG.values())
