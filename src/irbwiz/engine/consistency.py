"""
Consistency Checker

Scans a snapshot for contradictions, missing dependent fields and
regulatory threshold violations.

Every check is an independent predicate registered with
``@register_check``; all of them run on every call and the result keeps
declaration order. An unanswered or unparsable value never produces an
error, except in checks that target completeness (C20, C21).
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional, Union

from ..canon import parse_number
from ..config import Settings
from ..models.enums import IssueSeverity, RiskLevel
from ..models.issues import ConsistencyIssue
from ..models.snapshot import AnswerSnapshot
from .catalog import EvaluationContext, Finding, get_checks, register_check
from .determination_rules import ADULT_AGE, BLOOD_DRAW_LIMIT_ML, risk_level

logger = logging.getLogger(__name__)

# Children this age and older are generally capable of assent
ASSENT_AGE = 7

MIN_COMPENSATION_DETAIL_LENGTH = 20


def _fmt(number: float) -> str:
    return f"{number:g}"


# =============================================================================
# Subjects
# =============================================================================

@register_check(
    id="C01",
    severity=IssueSeverity.ERROR,
    section="subjects",
    field="minAge",
    title="Age Range Conflict",
)
def check_age_range(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    low = snapshot.number("subjects", "minAge")
    high = snapshot.number("subjects", "maxAge")
    if low is None or high is None or low <= high:
        return None
    return Finding(
        f"Minimum age ({_fmt(low)}) is greater than maximum age ({_fmt(high)}). Correct the age range."
    )


@register_check(
    id="C02",
    severity=IssueSeverity.ERROR,
    section="subjects",
    field="includesMinors",
    title="Minor Age Conflict",
)
def check_minor_age_conflict(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    low = snapshot.number("subjects", "minAge")
    if low is None or low >= ADULT_AGE:
        return None
    if not snapshot.answer("subjects", "includesMinors").is_no:
        return None
    return Finding(
        f"Minimum age is {_fmt(low)} but you indicated no minors will be included. "
        "Reconcile or set minimum age to 18."
    )


@register_check(
    id="C03",
    severity=IssueSeverity.ERROR,
    section="subjects",
    field="includesMinors",
    title="Minor Inclusion Mismatch",
)
def check_minor_inclusion(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    low = snapshot.number("subjects", "minAge")
    if low is None or low < ADULT_AGE:
        return None
    if not snapshot.answer("subjects", "includesMinors").is_yes:
        return None
    # Exactly 18 may mean "18 at enrollment", so only suggestive
    severity = IssueSeverity.WARNING if low == ADULT_AGE else IssueSeverity.ERROR
    return Finding(
        f"You indicated minors will participate but minimum age is {_fmt(low)} (18+). Verify your age range.",
        severity=severity,
    )


# =============================================================================
# Procedures
# =============================================================================

@register_check(
    id="C04",
    severity=IssueSeverity.ERROR,
    section="procedures",
    field="bloodDrawAmount",
    title="Blood Draw Volume Exceeds Federal Limit",
)
def check_blood_volume(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("procedures", "involvesBloodDraw").is_yes:
        return None
    amount = snapshot.number("procedures", "bloodDrawAmount")
    if amount is None or amount <= BLOOD_DRAW_LIMIT_ML:
        return None
    return Finding(
        f"{_fmt(amount)} mL exceeds the federal guideline of 550 mL per 8-week period for minimal-risk "
        "research. Revise or plan for full board review."
    )


@register_check(
    id="C05",
    severity=IssueSeverity.WARNING,
    section="procedures",
    field="bloodDrawAmount",
    title="Blood Draw Details Incomplete",
)
def check_blood_details(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("procedures", "involvesBloodDraw").is_yes:
        return None
    amount = snapshot.number("procedures", "bloodDrawAmount")
    frequency = snapshot.text("procedures", "bloodDrawFrequency").strip()
    if amount is not None and frequency:
        return None
    return Finding("Specify the amount (mL) and frequency of blood draws; both are required for IRB review.")


@register_check(
    id="C06",
    severity=IssueSeverity.WARNING,
    section="consent",
    field="consentProcess",
    title="Recording Not Addressed in Consent",
)
def check_recording_consent(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("procedures", "involvesRecording").is_yes:
        return None
    if snapshot.answer("consent", "consentRequired").is_no:
        return None
    if "record" in snapshot.text("consent", "consentProcess").lower():
        return None
    return Finding(
        "You indicated recordings will be made, but the consent process description does not mention "
        "recordings. Add a recording-specific consent section."
    )


@register_check(
    id="C07",
    severity=IssueSeverity.ERROR,
    section="procedures",
    field="deceptionDebriefing",
    title="Deception Without Debriefing",
)
def check_deception_debriefing(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    deception = snapshot.answer("procedures", "involvesDeception")
    debriefing = snapshot.answer("procedures", "deceptionDebriefing")
    if not (deception & ~debriefing).is_yes:
        return None
    return Finding(
        "Research involving deception requires a debriefing plan unless the IRB waives this requirement. "
        "Describe your debriefing procedure."
    )


@register_check(
    id="C08",
    severity=IssueSeverity.WARNING,
    section="procedures",
    field="deceptionDescription",
    title="Deception Not Described",
)
def check_deception_description(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("procedures", "involvesDeception").is_yes:
        return None
    if snapshot.is_filled("procedures", "deceptionDescription"):
        return None
    return Finding(
        "You indicated the study involves deception but did not describe it. Explain what participants "
        "will not be told and why the research cannot be done without deception."
    )


# =============================================================================
# Consent for minors
# =============================================================================

def _minor_age_lower_bound(snapshot: AnswerSnapshot) -> Optional[float]:
    """Lower bound of a "7-12" style age range, or None."""
    text = snapshot.text("subjects", "minorAgeRange").strip()
    if not text:
        return None
    return parse_number(text.split("-")[0])


@register_check(
    id="C09",
    severity=IssueSeverity.WARNING,
    section="consent",
    field="assentRequired",
    title="Child Assent May Be Required",
)
def check_child_assent(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("subjects", "includesMinors").is_yes:
        return None
    if not snapshot.answer("consent", "assentRequired").is_no:
        return None
    lower = _minor_age_lower_bound(snapshot)
    if lower is None or lower < ASSENT_AGE:
        return None
    return Finding(
        "Children ages 7 and older are generally capable of providing assent. Verify that assent is not "
        "required or document your justification."
    )


@register_check(
    id="C10",
    severity=IssueSeverity.ERROR,
    section="consent",
    field="parentPermissionRequired",
    title="Parental Permission Required for Minors",
)
def check_parental_permission(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    minors = snapshot.answer("subjects", "includesMinors")
    permission = snapshot.answer("consent", "parentPermissionRequired")
    if not (minors & ~permission).is_yes:
        return None
    return Finding(
        "Research involving minors requires parental or guardian permission unless the IRB grants a "
        "specific waiver (rare for non-emergency research)."
    )


# =============================================================================
# Data
# =============================================================================

@register_check(
    id="C11",
    severity=IssueSeverity.ERROR,
    section="data",
    field="dataEncrypted",
    title="Identifiable Data Not Encrypted",
)
def check_encryption(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    identifiers = snapshot.answer("data", "collectsIdentifiers")
    encrypted = snapshot.answer("data", "dataEncrypted")
    if not (identifiers & ~encrypted).is_yes:
        return None
    return Finding(
        f"{ctx.institution} IRB requires electronic files linking participant identity to research data "
        "to be encrypted. Describe your encryption method (e.g., BitLocker, FileVault 2)."
    )


@register_check(
    id="C12",
    severity=IssueSeverity.ERROR,
    section="data",
    field="anonymousData",
    title="Anonymous vs. Identifiable Contradiction",
)
def check_anonymous_identifiable(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    anonymous = snapshot.answer("data", "anonymousData")
    identifiers = snapshot.answer("data", "collectsIdentifiers")
    if not (anonymous & identifiers).is_yes:
        return None
    return Finding(
        "You indicated data is anonymous but also that identifiers will be collected. These are "
        "contradictory: data cannot be both fully anonymous and identifiable. Correct one of these answers."
    )


# =============================================================================
# Pre-screening
# =============================================================================

@register_check(
    id="C13",
    severity=IssueSeverity.ERROR,
    section="prescreening",
    field="citiExpiryDate",
    title="CITI Training Will Be Expired at Study Start",
)
def check_citi_expired(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    expiry = snapshot.date("prescreening", "citiExpiryDate")
    if expiry is None:
        return None
    if snapshot.is_filled("study", "startDate"):
        reference = snapshot.date("study", "startDate")
        if reference is None:
            return None
    else:
        reference = ctx.today
    if expiry >= reference:
        return None
    return Finding(
        f"Your CITI training expires on {expiry.isoformat()}, before your proposed start date. "
        "Renew training before submitting."
    )


@register_check(
    id="C14",
    severity=IssueSeverity.WARNING,
    section="prescreening",
    field="citiExpiryDate",
    title="CITI Expiration Date Missing",
)
def check_citi_expiry_missing(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("prescreening", "hasCITITraining").is_yes:
        return None
    if snapshot.is_filled("prescreening", "citiExpiryDate"):
        return None
    return Finding(
        "You indicated current CITI training but did not give its expiration date. Upload your "
        "certificate or enter the date so training status can be verified."
    )


@register_check(
    id="C15",
    severity=IssueSeverity.ERROR,
    section="prescreening",
    field="hasFacultyAdvisor",
    title="Faculty Advisor Required for Student Research",
)
def check_faculty_advisor(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    student = snapshot.answer("prescreening", "isStudentResearcher")
    advisor = snapshot.answer("prescreening", "hasFacultyAdvisor")
    if not (student & ~advisor).is_yes:
        return None
    return Finding(
        f"{ctx.institution} IRB requires student researchers to have a faculty advisor who is responsible "
        "for human subject protection. You must identify a faculty advisor before submitting."
    )


# =============================================================================
# Risks
# =============================================================================

@register_check(
    id="C16",
    severity=IssueSeverity.WARNING,
    section="risks",
    field="riskMinimization",
    title="Risk Minimization Not Described",
)
def check_risk_minimization(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    level = snapshot.choice("risks", "riskLevel")
    if level is None or level == RiskLevel.NONE.value:
        return None
    if snapshot.is_filled("risks", "riskMinimization"):
        return None
    return Finding(
        "You identified risks to participants but did not describe how risks will be minimized. "
        "IRB reviewers require this information."
    )


@register_check(
    id="C17",
    severity=IssueSeverity.WARNING,
    section="risks",
    field="adverseEventPlan",
    title="Adverse Event Plan Needed",
)
def check_adverse_event_plan(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if risk_level(snapshot) != RiskLevel.GREATER:
        return None
    if snapshot.is_filled("risks", "adverseEventPlan"):
        return None
    return Finding(
        "Greater-than-minimal-risk research requires a plan for monitoring, reporting, and managing "
        "adverse events."
    )


# =============================================================================
# Study dates
# =============================================================================

@register_check(
    id="C18",
    severity=IssueSeverity.ERROR,
    section="study",
    field="endDate",
    title="Study End Date Before Start Date",
)
def check_study_dates(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    start = snapshot.date("study", "startDate")
    end = snapshot.date("study", "endDate")
    if start is None or end is None or end > start:
        return None
    return Finding("End date must be after the start date.")


@register_check(
    id="C19",
    severity=IssueSeverity.WARNING,
    section="study",
    field="startDate",
    title="Start Date in the Past",
)
def check_start_in_past(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    start = snapshot.date("study", "startDate")
    if start is None or start >= ctx.today:
        return None
    return Finding(
        "Research cannot begin before receiving IRB approval. Set a start date that allows time for IRB review."
    )


# =============================================================================
# Consent waivers
# =============================================================================

@register_check(
    id="C20",
    severity=IssueSeverity.ERROR,
    section="consent",
    field="waiverBasis",
    title="Waiver of Consent Justification Missing",
)
def check_waiver_basis(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("consent", "waiverOfConsent").is_yes:
        return None
    if snapshot.is_filled("consent", "waiverBasis"):
        return None
    return Finding(
        "If requesting a waiver of informed consent, you must provide the regulatory basis and justification."
    )


@register_check(
    id="C21",
    severity=IssueSeverity.ERROR,
    section="consent",
    field="waiverDocBasis",
    title="Waiver of Documentation Justification Missing",
)
def check_waiver_doc_basis(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("consent", "waiverOfDocumentation").is_yes:
        return None
    if snapshot.is_filled("consent", "waiverDocBasis"):
        return None
    return Finding(
        "If requesting a waiver of signed consent documentation, you must state which regulatory "
        "condition applies (45 CFR 46.117(c))."
    )


# =============================================================================
# Protected populations and completion quality
# =============================================================================

@register_check(
    id="C22",
    severity=IssueSeverity.WARNING,
    section="subjects",
    field="includesPrisoners",
    title="Subpart C Prisoner Protections Required",
)
def check_prisoner_protections(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("subjects", "includesPrisoners").is_yes:
        return None
    return Finding(
        "45 CFR 46 Subpart C requires that prisoner research demonstrate subjects are not being coerced, "
        "adequate monitoring is in place, and the research offers only minimal risk or direct benefit. "
        "Address these in your protocol."
    )


@register_check(
    id="C23",
    severity=IssueSeverity.WARNING,
    section="subjects",
    field="compensationDetails",
    title="Compensation Details Incomplete",
)
def check_compensation_details(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("subjects", "compensationOffered").is_yes:
        return None
    if len(snapshot.text("subjects", "compensationDetails").strip()) >= MIN_COMPENSATION_DETAIL_LENGTH:
        return None
    return Finding(
        "Describe the compensation amount, schedule, and how it will be prorated for early withdrawal. "
        "IRB reviewers will look for this."
    )


@register_check(
    id="C24",
    severity=IssueSeverity.WARNING,
    section="data",
    field="codingKeyDescription",
    title="Coding Key Not Described",
)
def check_coding_key(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("data", "codedData").is_yes:
        return None
    if snapshot.is_filled("data", "codingKeyDescription"):
        return None
    return Finding(
        "Coded data requires a description of the coding key: where it is stored, who can access it, "
        "and when it will be destroyed."
    )


@register_check(
    id="C25",
    severity=IssueSeverity.WARNING,
    section="data",
    field="dataSharingDetails",
    title="Data Sharing Not Described",
)
def check_data_sharing(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[Finding]:
    if not snapshot.answer("data", "dataShared").is_yes:
        return None
    if snapshot.is_filled("data", "dataSharingDetails"):
        return None
    return Finding(
        "Describe with whom data will be shared, in what form (identifiable, coded, or de-identified), "
        "and under what agreement."
    )


# =============================================================================
# Runner
# =============================================================================

SnapshotLike = Union[AnswerSnapshot, Mapping[str, Any], None]


def check(
    snapshot: SnapshotLike,
    today: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> list[ConsistencyIssue]:
    """
    Run every consistency check against a snapshot.

    Args:
        snapshot: AnswerSnapshot, or raw (possibly partial) form data
        today: Reference date for temporal checks (defaults to the
            configured IRBWIZ_TODAY, then the current date)
        settings: Settings override; defaults to the process settings

    Returns:
        Issues in check declaration order
    """
    if isinstance(snapshot, AnswerSnapshot):
        snap = snapshot
    elif isinstance(snapshot, Mapping):
        snap = AnswerSnapshot.from_dict(snapshot)
    else:
        snap = AnswerSnapshot.empty()
    ctx = EvaluationContext.from_settings(settings, today=today)

    issues: list[ConsistencyIssue] = []
    for definition in get_checks():
        try:
            finding = definition.fn(snap, ctx)
        except Exception as exc:
            logger.warning(
                f"Consistency check {definition.id} raised and was skipped: {exc}",
                extra={"check_id": definition.id},
            )
            continue
        if finding is None:
            continue
        issues.append(ConsistencyIssue(
            severity=finding.severity or definition.severity,
            section=definition.section,
            field=definition.field,
            title=definition.title,
            message=finding.message,
            check_id=definition.id,
        ))

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Consistency check produced {len(issues)} issue(s)",
            extra={"snapshot_hash": snap.content_hash()[:12]},
        )
    return issues
