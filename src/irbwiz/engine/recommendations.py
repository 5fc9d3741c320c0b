"""
Recommendation generation.

Recommendations are advisory and never feed back into the tier. They are
emitted in a fixed order; ``DeterminationResult.sorted_recommendations``
orders them by priority for display.
"""
from __future__ import annotations

from ..models.determination import Recommendation
from ..models.enums import Priority, RecommendationType, ReviewType
from ..models.snapshot import AnswerSnapshot
from .catalog import EvaluationContext


def _rec(type: RecommendationType, priority: Priority, title: str, body: str) -> Recommendation:
    return Recommendation(type=type, priority=priority, title=title, body=body)


def gate_recommendations(review_type: ReviewType) -> list[Recommendation]:
    """Follow-up advice when a gate question ended the determination."""
    if review_type == ReviewType.NOT_RESEARCH:
        return [
            _rec(
                RecommendationType.COMPLIANCE, Priority.MEDIUM,
                "Confirm Non-Research Status",
                "Confirm with your IRB administrator that your activity qualifies as non-research "
                "(e.g., quality improvement, program evaluation, classroom exercise).",
            ),
            _rec(
                RecommendationType.COMPLIANCE, Priority.LOW,
                "Publication Plans",
                "If you plan to publish or present findings, IRB review may be needed.",
            ),
        ]
    if review_type == ReviewType.NOT_HUMAN_SUBJECTS:
        return [
            _rec(
                RecommendationType.COMPLIANCE, Priority.MEDIUM,
                "Confirm No Human Subjects",
                "Verify that no living individuals are involved through intervention, interaction, "
                "or collection of identifiable information.",
            ),
            _rec(
                RecommendationType.COMPLIANCE, Priority.LOW,
                "Consult the IRB Office",
                "Consult your IRB administrator if you are uncertain.",
            ),
        ]
    return []


def build_recommendations(
    snapshot: AnswerSnapshot,
    review_type: ReviewType,
    ctx: EvaluationContext,
    category_identified: bool = True,
) -> list[Recommendation]:
    """
    Advisory recommendations for a substantive tier.

    Args:
        snapshot: Answers the tier was chosen on
        review_type: Winning tier
        ctx: Evaluation context (institution name)
        category_identified: False when the tier fell back to Expedited
            without a matching category

    Returns:
        Recommendations in emission order
    """
    institution = ctx.institution
    recs: list[Recommendation] = []

    minors = snapshot.answer("subjects", "includesMinors").is_yes
    prisoners = snapshot.answer("subjects", "includesPrisoners").is_yes

    if review_type == ReviewType.FULL_BOARD:
        recs.append(_rec(
            RecommendationType.EXPEDITE, Priority.HIGH,
            "Consider De-identification",
            "If you collect no identifiable information, you may qualify for Exempt or Expedited review. "
            "Evaluate whether your research question can be answered without linking data to individuals.",
        ))
        if not prisoners and not minors:
            recs.append(_rec(
                RecommendationType.EXPEDITE, Priority.MEDIUM,
                "Review Exempt Categories",
                "Full Board may not be required. Work with your Faculty Advisor to review whether your "
                "methodology qualifies for Exempt Category 2 (surveys/interviews of public behavior) "
                "or Expedited Category 7.",
            ))

    if review_type == ReviewType.EXPEDITED and not category_identified:
        recs.append(_rec(
            RecommendationType.EXPEDITE, Priority.HIGH,
            "Identify the Expedited Category",
            "No specific exempt or expedited category matched your answers. Review the 45 CFR 46.110 "
            "expedited categories with your IRB office and describe which one applies to your procedures.",
        ))

    recs.append(_rec(
        RecommendationType.COMPLIANCE, Priority.HIGH,
        "CITI Training",
        "Ensure all investigators and research staff have current CITI training (valid for 3 years). "
        "For student research, both PI and Faculty Advisor must have active certifications.",
    ))

    if minors:
        recs.append(_rec(
            RecommendationType.PROTECTION, Priority.HIGH,
            "Parental Permission & Child Assent",
            "Research involving minors requires both written parental permission AND age-appropriate "
            "child assent (if child is capable of providing it). Prepare separate assent and permission forms.",
        ))
    if snapshot.answer("subjects", "includesPregnantWomen").is_yes:
        recs.append(_rec(
            RecommendationType.PROTECTION, Priority.HIGH,
            "Pregnant Women Disclosure",
            "45 CFR 46 Subpart B applies. Your consent form must disclose known/unknown risks to the fetus "
            "and pregnancy. If risk to fetus is unknown, include standard OHRP language.",
        ))
    if snapshot.answer("subjects", "includesCognitivelyImpaired").is_yes:
        recs.append(_rec(
            RecommendationType.PROTECTION, Priority.HIGH,
            "LAR / Capacity Assessment",
            "Research with cognitively impaired subjects requires Legally Authorized Representative (LAR) "
            "consent and/or assessment of the subject's decision-making capacity. Describe your capacity "
            "assessment process.",
        ))
    if snapshot.answer("subjects", "includesUBStudents").is_yes:
        recs.append(_rec(
            RecommendationType.PROTECTION, Priority.MEDIUM,
            "Student Coercion Prevention",
            f"When recruiting {institution} students, explicitly state in the consent form that participation "
            "will not affect grades, standing, or any other academic benefits. For extra credit, provide an "
            "equivalent alternative activity.",
        ))

    if (
        snapshot.answer("data", "collectsIdentifiers").is_yes
        and not snapshot.answer("data", "dataEncrypted").is_yes
    ):
        recs.append(_rec(
            RecommendationType.COMPLIANCE, Priority.HIGH,
            "Encrypt Identifiable Data",
            f"{institution} IRB requires that all electronic files linking participant identity to data be "
            "encrypted. Use BitLocker (Windows) or FileVault 2 (Mac), or store on secure institutional "
            "network drives.",
        ))

    total = snapshot.number("subjects", "totalParticipants")
    if total is not None and total > 0:
        recs.append(_rec(
            RecommendationType.CONSISTENCY, Priority.LOW,
            "Verify Participant Count Consistency",
            f"You've indicated {total:g} total participants. Ensure this number is used consistently "
            "throughout your protocol description, consent form, and any recruitment materials.",
        ))

    if snapshot.answer("consent", "waiverOfDocumentation").is_yes:
        recs.append(_rec(
            RecommendationType.COMPLIANCE, Priority.MEDIUM,
            "Waiver of Documentation Requirements",
            "A waiver of signed consent documentation requires the IRB to determine that: (1) the only link "
            "between subject and research is the consent form and the principal risk is breach of "
            "confidentiality, OR (2) research involves minimal risk with no non-research written consent "
            "requirement.",
        ))

    if snapshot.answer("procedures", "involvesDeception").is_yes:
        recs.append(_rec(
            RecommendationType.COMPLIANCE, Priority.HIGH,
            "Deception Protocol Requirements",
            "Deception studies require: (1) a debriefing plan with specific script, (2) justification that "
            "research cannot be conducted without deception, and (3) IRB-approved debriefing materials. "
            "Include all three in your submission.",
        ))

    if snapshot.answer("procedures", "involvesRecording").is_yes:
        recs.append(_rec(
            RecommendationType.COMPLIANCE, Priority.MEDIUM,
            "Recording Consent Language",
            "Your consent form must include a separate recording section with checkboxes allowing "
            "participants to consent or decline recording while still participating in the study "
            "(if applicable).",
        ))

    return recs
