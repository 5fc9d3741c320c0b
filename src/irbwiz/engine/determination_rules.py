"""
Determination rule catalog.

Each rule is an independent predicate over the snapshot. A rule that
fires selects its tier and contributes reasons and flags; the classifier
picks the highest-oversight tier any rule selected.

Tiers:
    FULL_BOARD   Hard triggers (vulnerable populations, greater risk, ...)
    EXPEDITED    45 CFR 46.110 categories
    EXEMPT       45 CFR 46.104(d) categories
    advisory     Flags only, never change the tier
"""
from __future__ import annotations

import re
from typing import Optional

from ..models.answer import Answer
from ..models.determination import Flag
from ..models.enums import FlagSeverity, ReviewType, RiskLevel
from ..models.snapshot import AnswerSnapshot
from .catalog import EvaluationContext, RuleHit, register_rule

# Federal guideline: 550 mL per 8-week period for minimal-risk collection
BLOOD_DRAW_LIMIT_ML = 550.0

ADULT_AGE = 18

SENSITIVE_TOPICS_RE = re.compile(
    r"sexual|drug|illegal|abuse|criminal|immigration|mental health|financial distress",
    re.IGNORECASE,
)

CRITICAL_IDENTIFIERS = frozenset({"name", "ssn", "id_number"})

NONINVASIVE_METHODS = frozenset({"survey", "interview", "observation_public", "cognitive_test"})
SURVEY_METHODS = frozenset({"survey", "interview", "observation_public"})


# =============================================================================
# Shared predicates
# =============================================================================

def risk_level(snapshot: AnswerSnapshot) -> Optional[RiskLevel]:
    """Parsed risks.riskLevel, or None when unanswered or unrecognised."""
    value = snapshot.choice("risks", "riskLevel")
    if value is None:
        return None
    try:
        return RiskLevel(value)
    except ValueError:
        return None


def is_low_risk(snapshot: AnswerSnapshot) -> bool:
    """No more than minimal risk, explicitly answered."""
    return risk_level(snapshot) in (RiskLevel.NONE, RiskLevel.MINIMAL)


def methods(snapshot: AnswerSnapshot) -> frozenset[str]:
    return frozenset(snapshot.tokens("procedures", "methodTypes"))


def min_age(snapshot: AnswerSnapshot) -> Optional[float]:
    return snapshot.number("subjects", "minAge")


def is_adult_only(snapshot: AnswerSnapshot) -> bool:
    age = min_age(snapshot)
    return age is not None and age >= ADULT_AGE


def sensitive_topics(snapshot: AnswerSnapshot) -> list[str]:
    """Distinct sensitive terms found in the survey and interview topics."""
    text = " ".join([
        snapshot.text("procedures", "surveyTopics"),
        snapshot.text("procedures", "interviewTopics"),
    ])
    found: list[str] = []
    for match in SENSITIVE_TOPICS_RE.finditer(text):
        term = match.group(0).lower()
        if term not in found:
            found.append(term)
    return found


def collects_critical_identifiers(snapshot: AnswerSnapshot) -> bool:
    if not snapshot.answer("data", "collectsIdentifiers").is_yes:
        return False
    return bool(CRITICAL_IDENTIFIERS & set(snapshot.tokens("data", "identifierTypes")))


def blood_draw_amount(snapshot: AnswerSnapshot) -> Optional[float]:
    """Planned blood volume in mL, only when a blood draw is planned."""
    if not snapshot.answer("procedures", "involvesBloodDraw").is_yes:
        return None
    return snapshot.number("procedures", "bloodDrawAmount")


def _hit(
    *reasons: str,
    flags: tuple[Flag, ...] = (),
    category: Optional[int] = None,
    label: Optional[str] = None,
) -> RuleHit:
    return RuleHit(reasons=reasons, flags=flags, category=category, category_label=label)


# =============================================================================
# Full Board triggers
# =============================================================================

@register_rule(
    id="FB-PRISONERS",
    tier=ReviewType.FULL_BOARD,
    description="Prisoners are included as subjects",
)
def prisoners(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("subjects", "includesPrisoners").is_yes:
        return None
    return _hit(
        "Research involves prisoners as subjects (45 CFR 46 Subpart C requires Full Board review).",
        flags=(Flag(FlagSeverity.HIGH, "Prisoner research requires Full Board review and specific protections under Subpart C."),),
    )


@register_rule(
    id="FB-MINORS",
    tier=ReviewType.FULL_BOARD,
    description="Minors are included as subjects",
)
def minors(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("subjects", "includesMinors").is_yes:
        return None
    return _hit(
        "Research involves minors, a vulnerable population (45 CFR 46 Subpart D).",
        flags=(Flag(FlagSeverity.HIGH, "Children require parental permission and child assent."),),
    )


@register_rule(
    id="FB-PREGNANT",
    tier=ReviewType.FULL_BOARD,
    description="Pregnant women are included as subjects",
)
def pregnant_women(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("subjects", "includesPregnantWomen").is_yes:
        return None
    return _hit(
        "Research involves pregnant women, a vulnerable population (45 CFR 46 Subpart B).",
        flags=(Flag(FlagSeverity.HIGH, "Pregnant women require additional consent disclosures about fetal risk."),),
    )


@register_rule(
    id="FB-COGNITIVE",
    tier=ReviewType.FULL_BOARD,
    description="Cognitively impaired adults are included as subjects",
)
def cognitively_impaired(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("subjects", "includesCognitivelyImpaired").is_yes:
        return None
    return _hit(
        "Research involves cognitively impaired subjects, a vulnerable population.",
        flags=(Flag(FlagSeverity.HIGH, "Consent must come from a Legally Authorized Representative or follow a capacity assessment."),),
    )


@register_rule(
    id="FB-GREATER-RISK",
    tier=ReviewType.FULL_BOARD,
    description="Greater than minimal risk",
)
def greater_risk(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if risk_level(snapshot) != RiskLevel.GREATER:
        return None
    return _hit(
        "Research involves greater than minimal risk to participants.",
        flags=(Flag(FlagSeverity.HIGH, "Greater-than-minimal-risk research requires Full Board review."),),
    )


@register_rule(
    id="FB-DECEPTION-NO-DEBRIEF",
    tier=ReviewType.FULL_BOARD,
    description="Deception without planned debriefing",
)
def deception_without_debriefing(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    deception = snapshot.answer("procedures", "involvesDeception")
    debriefing = snapshot.answer("procedures", "deceptionDebriefing")
    if not (deception & ~debriefing).is_yes:
        return None
    return _hit(
        "Research involves deception without planned debriefing.",
        flags=(Flag(FlagSeverity.HIGH, "Deception studies without debriefing require Full Board review."),),
    )


@register_rule(
    id="FB-BLOOD-VOLUME",
    tier=ReviewType.FULL_BOARD,
    description="Blood draw volume above the minimal-risk limit",
)
def blood_volume(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    amount = blood_draw_amount(snapshot)
    if amount is None or amount <= BLOOD_DRAW_LIMIT_ML:
        return None
    return _hit(
        f"Planned blood draw of {amount:g} mL exceeds the 550 mL per 8-week limit for minimal-risk collection.",
        flags=(Flag(FlagSeverity.HIGH, "Blood collection above federal limits is not eligible for Expedited review."),),
    )


# =============================================================================
# Expedited categories (45 CFR 46.110)
# =============================================================================

@register_rule(
    id="EXP-2-BLOOD",
    tier=ReviewType.EXPEDITED,
    description="Blood collection from healthy adults",
)
def expedited_blood(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("procedures", "involvesBloodDraw").is_yes:
        return None
    if not (is_adult_only(snapshot) and is_low_risk(snapshot)):
        return None
    return _hit(
        "Research involves blood samples by finger stick, heel stick, or venipuncture from healthy adults.",
        "45 CFR 46.110(b)(1), Category 2",
        flags=(Flag(FlagSeverity.LOW, "Specify the amount and frequency of blood draws in your protocol. Limits: 550 mL or less in 8 weeks."),),
        category=2,
        label="Category 2: Blood Collection (Venipuncture)",
    )


@register_rule(
    id="EXP-3-BIOSPECIMEN",
    tier=ReviewType.EXPEDITED,
    description="Noninvasive biospecimen collection",
)
def expedited_biospecimen(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("procedures", "involvesOtherBiospecimen").is_yes:
        return None
    return _hit(
        "Research involves prospective collection of biological specimens by noninvasive means.",
        "45 CFR 46.110(b)(1), Category 3",
        flags=(Flag(FlagSeverity.LOW, "Describe how specimens will be collected, stored, and destroyed."),),
        category=3,
        label="Category 3: Noninvasive Biospecimens",
    )


@register_rule(
    id="EXP-4-CLINICAL",
    tier=ReviewType.EXPEDITED,
    description="Noninvasive clinical procedures",
)
def expedited_clinical(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("procedures", "involvesPhysicalProcedure").is_yes:
        return None
    return _hit(
        "Research involves data collection through noninvasive procedures routinely employed in clinical practice.",
        "45 CFR 46.110(b)(1), Category 4",
        category=4,
        label="Category 4: Noninvasive Clinical Procedures",
    )


@register_rule(
    id="EXP-4-IDENTIFIABLE",
    tier=ReviewType.EXPEDITED,
    description="Noninvasive data collection with identifiers",
)
def expedited_noninvasive(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not (methods(snapshot) & NONINVASIVE_METHODS):
        return None
    if not snapshot.answer("data", "collectsIdentifiers").is_yes or not is_low_risk(snapshot):
        return None
    return _hit(
        "Research involves noninvasive data collection with identifiable information.",
        "Qualifies for Expedited review as minimal risk research.",
        "45 CFR 46.110(b)(1), Category 4",
        category=4,
        label="Category 4: Noninvasive Procedures (Identifiable)",
    )


@register_rule(
    id="EXP-5-RECORDS",
    tier=ReviewType.EXPEDITED,
    description="Identifiable existing records",
)
def expedited_records(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    uses = snapshot.answer("procedures", "usesExistingData")
    identifiable = snapshot.answer("procedures", "existingDataIdentifiable")
    if not (uses & identifiable).is_yes:
        return None
    return _hit(
        "Research involves collection/study of data from materials already collected for non-research purposes.",
        "Identifiable data requires Expedited review.",
        "45 CFR 46.110(b)(1), Category 5",
        flags=(Flag(FlagSeverity.MEDIUM, "Describe how you will access and protect identifiable existing records."),),
        category=5,
        label="Category 5: Existing Records (Identifiable)",
    )


@register_rule(
    id="EXP-6-RECORDING",
    tier=ReviewType.EXPEDITED,
    description="Voice, video, digital or image recordings",
)
def expedited_recording(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("procedures", "involvesRecording").is_yes or not is_low_risk(snapshot):
        return None
    return _hit(
        "Research involves collection of data from voice, video, digital, or image recordings.",
        "45 CFR 46.110(b)(1), Category 6",
        flags=(Flag(FlagSeverity.LOW, "Your consent form must disclose recording and describe how recordings will be stored, used, and destroyed."),),
        category=6,
        label="Category 6: Voice / Video / Image Recordings",
    )


@register_rule(
    id="EXP-7-IDENTIFIABLE-SURVEY",
    tier=ReviewType.EXPEDITED,
    description="Surveys or interviews with identifiable data",
)
def expedited_identifiable_survey(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not (methods(snapshot) & {"survey", "interview"}):
        return None
    if not snapshot.answer("data", "collectsIdentifiers").is_yes or not is_low_risk(snapshot):
        return None
    return _hit(
        "Research on individual or group characteristics, behavior, or factors affecting health using surveys or interviews with identifiable data.",
        "45 CFR 46.110(b)(1), Category 7",
        flags=(
            Flag(FlagSeverity.MEDIUM, "Ensure strong data security procedures given identifiable data collection."),
            Flag(FlagSeverity.LOW, "Consider whether de-identification is feasible to potentially qualify for Exempt status."),
        ),
        category=7,
        label="Category 7: Research on Individual Characteristics or Behavior",
    )


@register_rule(
    id="EXP-7-DECEPTION",
    tier=ReviewType.EXPEDITED,
    description="Deception with debriefing precludes exemption",
)
def expedited_deception(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("procedures", "involvesDeception").is_yes:
        return None
    if snapshot.answer("procedures", "deceptionDebriefing").is_no:
        return None
    return _hit(
        "Research involves deception of participants, which precludes exemption.",
        "45 CFR 46.110(b)(1), Category 7",
        flags=(Flag(FlagSeverity.MEDIUM, "Submit the debriefing script and justify why the research cannot be conducted without deception."),),
        category=7,
        label="Category 7: Research on Individual Characteristics or Behavior",
    )


# =============================================================================
# Exempt categories (45 CFR 46.104(d))
# =============================================================================

@register_rule(
    id="EX-1-EDUCATIONAL",
    tier=ReviewType.EXEMPT,
    description="Normal educational practices",
)
def exempt_educational(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if "educational_assessment" not in methods(snapshot) or not is_low_risk(snapshot):
        return None
    return _hit(
        "Research involves normal educational practices, instructional strategies, or curricula in established educational settings.",
        "45 CFR 46.104(d)(1)",
        category=1,
        label="Category 1: Normal Educational Practices",
    )


@register_rule(
    id="EX-2-SURVEY",
    tier=ReviewType.EXEMPT,
    description="Surveys, interviews or observation of public behavior",
)
def exempt_survey(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not (methods(snapshot) & SURVEY_METHODS):
        return None
    if not snapshot.answer("data", "collectsIdentifiers").is_known:
        return None
    if collects_critical_identifiers(snapshot) or sensitive_topics(snapshot):
        return None
    return _hit(
        "Research involves educational tests, surveys, interviews, or observation of public behavior.",
        "Disclosure of responses would not reasonably place subjects at risk of harm.",
        "45 CFR 46.104(d)(2)",
        flags=(Flag(FlagSeverity.LOW, "Ensure no sensitive topics (sexual behavior, drug use, illegal activity, etc.) are covered that could expose participants to harm."),),
        category=2,
        label="Category 2: Surveys / Interviews / Observation",
    )


@register_rule(
    id="EX-3-BENIGN-INTERVENTION",
    tier=ReviewType.EXEMPT,
    description="Benign behavioral interventions with adults",
)
def exempt_benign_intervention(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if "behavioral_intervention" not in methods(snapshot) or not is_adult_only(snapshot):
        return None
    if not snapshot.answer("data", "collectsIdentifiers").is_no:
        return None
    return _hit(
        "Research involves only benign behavioral interventions with adult subjects.",
        "No identifiable information will be retained or recorded.",
        "45 CFR 46.104(d)(3)",
        category=3,
        label="Category 3: Benign Behavioral Interventions",
    )


@register_rule(
    id="EX-4-PUBLIC",
    tier=ReviewType.EXEMPT,
    description="Secondary research on publicly available data",
)
def exempt_public_data(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    uses = snapshot.answer("procedures", "usesExistingData")
    public = snapshot.answer("procedures", "dataSourcePubliclyAvailable")
    if not (uses & public).is_yes:
        return None
    return _hit(
        "Research uses existing data, documents, or specimens that are publicly available.",
        "45 CFR 46.104(d)(4)(i)",
        category=4,
        label="Category 4: Secondary Research (Publicly Available Data)",
    )


@register_rule(
    id="EX-4-DEIDENTIFIED",
    tier=ReviewType.EXEMPT,
    description="Secondary research on de-identified data",
)
def exempt_deidentified_data(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    uses = snapshot.answer("procedures", "usesExistingData")
    identifiable = snapshot.answer("procedures", "existingDataIdentifiable")
    if not (uses & ~identifiable).is_yes:
        return None
    return _hit(
        "Research uses existing data/biospecimens that cannot be linked to identifiable individuals.",
        "Data is recorded such that subjects cannot be identified.",
        "45 CFR 46.104(d)(4)(ii)",
        flags=(Flag(FlagSeverity.LOW, "Confirm that no code exists linking the data to individuals, or that you cannot access the key."),),
        category=4,
        label="Category 4: Secondary Research (De-identified Data)",
    )


@register_rule(
    id="EX-6-TASTE",
    tier=ReviewType.EXEMPT,
    description="Taste and food quality evaluation",
)
def exempt_taste(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if "taste_food" not in methods(snapshot) or risk_level(snapshot) != RiskLevel.MINIMAL:
        return None
    return _hit(
        "Research involves taste and food quality evaluation with wholesome foods, not a controlled substance.",
        "45 CFR 46.104(d)(6)",
        category=6,
        label="Category 6: Taste and Food Quality Evaluation",
    )


# =============================================================================
# Advisory flags
# =============================================================================

@register_rule(
    id="ADV-SENSITIVE-TOPICS",
    tier=None,
    description="Sensitive survey or interview topics",
)
def advisory_sensitive_topics(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    topics = sensitive_topics(snapshot)
    if not topics:
        return None
    return _hit(flags=(Flag(
        FlagSeverity.MEDIUM,
        f"Topics include sensitive subject matter ({', '.join(topics)}). "
        "Disclosure of responses could place participants at risk; this precludes Exempt Category 2.",
    ),))


@register_rule(
    id="ADV-UNENCRYPTED-IDENTIFIERS",
    tier=None,
    description="Identifiers collected without encryption",
)
def advisory_unencrypted(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    identifiers = snapshot.answer("data", "collectsIdentifiers")
    encrypted = snapshot.answer("data", "dataEncrypted")
    if not (identifiers & ~encrypted).is_yes:
        return None
    return _hit(flags=(Flag(
        FlagSeverity.HIGH,
        f"{ctx.institution} IRB requires electronic files linking participant identity to research data to be encrypted.",
    ),))


@register_rule(
    id="ADV-STUDENT-SUBJECTS",
    tier=None,
    description="Institution's own students recruited",
)
def advisory_students(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("subjects", "includesUBStudents").is_yes:
        return None
    return _hit(flags=(Flag(
        FlagSeverity.MEDIUM,
        f"Research with {ctx.institution} students requires extra care to ensure voluntariness; "
        "power dynamics between instructor and students may affect free consent.",
    ),))


@register_rule(
    id="ADV-DEBRIEFING-UNSPECIFIED",
    tier=None,
    description="Deception planned but debriefing not yet answered",
)
def advisory_debriefing(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    if not snapshot.answer("procedures", "involvesDeception").is_yes:
        return None
    if snapshot.answer("procedures", "deceptionDebriefing") != Answer.UNANSWERED:
        return None
    return _hit(flags=(Flag(
        FlagSeverity.MEDIUM,
        "Deception is planned but debriefing is not specified. Deception without debriefing requires Full Board review.",
    ),))


@register_rule(
    id="ADV-PRESCREENING-INCOMPLETE",
    tier=None,
    description="Pre-screening gate questions unanswered",
)
def advisory_prescreening(snapshot: AnswerSnapshot, ctx: EvaluationContext) -> Optional[RuleHit]:
    research = snapshot.answer("prescreening", "isResearch")
    human = snapshot.answer("prescreening", "involvesHumanSubjects")
    if research.is_known and human.is_known:
        return None
    return _hit(flags=(Flag(
        FlagSeverity.MEDIUM,
        "Pre-Screening is incomplete. Confirm the activity is human subjects research; "
        "this determination applies only if it is.",
    ),))
