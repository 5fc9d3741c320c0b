"""
Determination Classifier

Maps an answer snapshot to a review tier with confidence, reasons,
recommendations and flags.

Evaluation order:
1. Gates: isResearch = NO -> NOT_RESEARCH; involvesHumanSubjects = NO ->
   NOT_HUMAN_SUBJECTS. Nothing else is consulted.
2. Every rule in the catalog runs. A rule that raises is logged and
   skipped for this pass only.
3. Any Full Board trigger wins outright, even when gate or core answers
   are still missing.
4. Missing gate or core answers -> INSUFFICIENT_INFO, confidence 0.
5. Otherwise the highest-oversight tier any rule selected wins. With no
   matching category, minimal-risk research settles at EXPEDITED.

``classify`` is total: no snapshot makes it raise.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from ..config import Settings
from ..models.determination import DeterminationResult
from ..models.enums import ReviewType
from ..models.snapshot import AnswerSnapshot
from . import confidence
from . import determination_rules
from .catalog import EvaluationContext, RuleDefinition, RuleHit, get_rules
from .recommendations import build_recommendations, gate_recommendations

logger = logging.getLogger(__name__)

CLASSIFIER_VERSION = "2025.1"

# Answers without which no substantive tier is chosen; an unrecognised
# riskLevel counts as missing
CORE_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("subjects", "includesMinors", "whether minors are included"),
    ("subjects", "includesPrisoners", "whether prisoners are included"),
    ("procedures", "involvesDeception", "whether the study involves deception"),
    ("risks", "riskLevel", "the risk level assessment"),
)

# Substantive tiers, highest oversight first
_TIER_PRECEDENCE = (ReviewType.FULL_BOARD, ReviewType.EXPEDITED, ReviewType.EXEMPT)

_GATE_REASONS = {
    ReviewType.NOT_RESEARCH: (
        "Activity does not meet the federal definition of research (systematic investigation "
        "designed to develop or contribute to generalizable knowledge).",
        "IRB review is not required. However, consult your IRB office if uncertain.",
    ),
    ReviewType.NOT_HUMAN_SUBJECTS: (
        "Research does not involve human subjects as defined by 45 CFR 46.102(e).",
        "IRB review is not required for this activity.",
    ),
}

SnapshotLike = Union[AnswerSnapshot, Mapping[str, Any], None]


def _as_snapshot(snapshot: SnapshotLike) -> AnswerSnapshot:
    if isinstance(snapshot, AnswerSnapshot):
        return snapshot
    if isinstance(snapshot, Mapping):
        return AnswerSnapshot.from_dict(snapshot)
    return AnswerSnapshot.empty()


def _evaluate(
    snapshot: AnswerSnapshot,
    ctx: EvaluationContext,
) -> list[tuple[RuleDefinition, RuleHit]]:
    """Run every rule; return (rule, hit) for those that fired, in order."""
    fired: list[tuple[RuleDefinition, RuleHit]] = []
    for rule in get_rules():
        try:
            hit = rule.fn(snapshot, ctx)
        except Exception as exc:
            logger.warning(
                f"Determination rule {rule.id} raised and was skipped: {exc}",
                extra={"rule_id": rule.id},
            )
            continue
        if hit is not None:
            fired.append((rule, hit))
    return fired


def _missing_core(snapshot: AnswerSnapshot) -> list[str]:
    missing = []
    for section, field, description in CORE_FIELDS:
        if section == "risks":
            answered = determination_rules.risk_level(snapshot) is not None
        else:
            answered = snapshot.answer(section, field).is_known
        if not answered:
            missing.append(description)
    return missing


def _insufficient(reasons: tuple[str, ...]) -> DeterminationResult:
    return DeterminationResult(
        type=ReviewType.INSUFFICIENT_INFO,
        reasons=reasons,
        confidence=0.0,
        classifier_version=CLASSIFIER_VERSION,
    )


def _gate(review_type: ReviewType) -> DeterminationResult:
    return DeterminationResult(
        type=review_type,
        reasons=_GATE_REASONS[review_type],
        confidence=confidence.GATE_CONFIDENCE,
        recommendations=tuple(gate_recommendations(review_type)),
        rule_ids=(f"GATE-{review_type.value}",),
        classifier_version=CLASSIFIER_VERSION,
    )


def classify(
    snapshot: SnapshotLike,
    settings: Optional[Settings] = None,
) -> DeterminationResult:
    """
    Determine the required review tier for a snapshot.

    Args:
        snapshot: AnswerSnapshot, or raw (possibly partial) form data
        settings: Settings override; defaults to the process settings

    Returns:
        DeterminationResult
    """
    snapshot = _as_snapshot(snapshot)
    ctx = EvaluationContext.from_settings(settings)

    # Gatekeeping
    research = snapshot.answer("prescreening", "isResearch")
    human = snapshot.answer("prescreening", "involvesHumanSubjects")
    if research.is_no:
        return _log_result(_gate(ReviewType.NOT_RESEARCH), snapshot)
    if human.is_no:
        return _log_result(_gate(ReviewType.NOT_HUMAN_SUBJECTS), snapshot)

    fired = _evaluate(snapshot, ctx)
    selected = {rule.tier for rule, _ in fired if rule.tier is not None}

    if ReviewType.FULL_BOARD not in selected:
        if not (research.is_known and human.is_known):
            return _log_result(
                _insufficient(("Complete the Pre-Screening section to determine review type.",)),
                snapshot,
            )
        missing = _missing_core(snapshot)
        if missing:
            reasons = ["Answer the remaining core questions to determine review type."]
            reasons.extend(f"Missing: {item}." for item in missing)
            return _log_result(_insufficient(tuple(reasons)), snapshot)

    winner: Optional[ReviewType] = None
    for tier in _TIER_PRECEDENCE:
        if tier in selected:
            winner = tier
            break

    winning = [(rule, hit) for rule, hit in fired if rule.tier == winner] if winner else []
    advisory = [hit for rule, hit in fired if rule.is_advisory]

    if winner is None:
        # Minimal-risk research with no matching category. Must stay at or
        # below every expedited category so adding a trigger never lowers it.
        winner = ReviewType.EXPEDITED
        reasons: list[str] = [
            "Research appears to involve no more than minimal risk but does not match a specific "
            "exempt or expedited category.",
            "Expedited review is the most likely pathway; confirm the applicable category with your IRB office.",
        ]
        category = None
        category_label = None
    else:
        reasons = [reason for _, hit in winning for reason in hit.reasons]
        category = None
        category_label = None
        for _, hit in winning:
            if hit.category is not None:
                category = hit.category
                category_label = hit.category_label
                break

    flags = [flag for _, hit in winning for flag in hit.flags]
    flags.extend(flag for hit in advisory for flag in hit.flags)

    result = DeterminationResult(
        type=winner,
        category=category,
        category_label=category_label,
        reasons=tuple(reasons),
        confidence=confidence.score(winner, snapshot),
        recommendations=tuple(build_recommendations(
            snapshot, winner, ctx, category_identified=bool(winning),
        )),
        flags=tuple(flags),
        rule_ids=tuple(rule.id for rule, _ in winning),
        classifier_version=CLASSIFIER_VERSION,
    )
    return _log_result(result, snapshot)


def _log_result(result: DeterminationResult, snapshot: AnswerSnapshot) -> DeterminationResult:
    if logger.isEnabledFor(logging.DEBUG):
        snapshot_hash = snapshot.content_hash()[:12]
        logger.debug(
            f"Classified snapshot {snapshot_hash} as {result.type.value} "
            f"(confidence={result.confidence}, rules={list(result.rule_ids)})",
            extra={"review_type": result.type.value, "snapshot_hash": snapshot_hash},
        )
    return result
