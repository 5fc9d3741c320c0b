"""
Wizard steps and step-gating.

``missing_fields`` lists the required-but-unfilled fields of a step so a
caller can warn before the user moves on. It is a completeness check only
and has no bearing on classification.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..models.snapshot import AnswerSnapshot


@dataclass(frozen=True)
class Step:
    id: int
    key: str
    title: str
    short: str


STEPS: tuple[Step, ...] = (
    Step(1, "prescreening", "Pre-Screening", "Screening"),
    Step(2, "researcher", "Researcher Info", "Researcher"),
    Step(3, "study", "Study Overview", "Overview"),
    Step(4, "subjects", "Research Subjects", "Subjects"),
    Step(5, "procedures", "Procedures", "Procedures"),
    Step(6, "risks", "Risk & Safety", "Risks"),
    Step(7, "data", "Data & Privacy", "Data"),
    Step(8, "consent", "Informed Consent", "Consent"),
    Step(9, "review", "Review Determination", "Review"),
    Step(10, "documents", "Documents", "Docs"),
)

STEP_KEYS: frozenset[str] = frozenset(step.key for step in STEPS)


def get_step(step_id: int) -> Optional[Step]:
    for step in STEPS:
        if step.id == step_id:
            return step
    return None


@dataclass(frozen=True)
class MissingField:
    """A required field that is not filled yet."""
    section: str
    field: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"section": self.section, "field": self.field, "label": self.label}


# (field, label, only-if) per step; only-if gates conditional requirements
_Requirement = tuple[str, str, Optional[Callable[[AnswerSnapshot], bool]]]

_REQUIREMENTS: dict[int, tuple[str, tuple[_Requirement, ...]]] = {
    1: ("prescreening", (
        ("isResearch", "Answer whether this activity is research", None),
        ("involvesHumanSubjects", "Answer whether human subjects are involved",
         lambda s: s.answer("prescreening", "isResearch").is_yes),
        ("hasCITITraining", "Confirm CITI training status", None),
        ("citiExpiryDate", "CITI training expiration date",
         lambda s: s.answer("prescreening", "hasCITITraining").is_yes),
    )),
    2: ("researcher", (
        ("piFirstName", "PI first name", None),
        ("piLastName", "PI last name", None),
        ("piEmail", "PI email address", None),
        ("piDepartment", "PI department", None),
        ("advisorEmail", "Faculty advisor email",
         lambda s: s.answer("prescreening", "isStudentResearcher").is_yes),
    )),
    3: ("study", (
        ("title", "Study title", None),
        ("studyPurpose", "Study purpose / specific aims", None),
    )),
    4: ("subjects", (
        ("subjectPopulation", "Target population description", None),
        ("totalParticipants", "Estimated number of subjects", None),
    )),
    5: ("procedures", (
        ("methodTypes", "At least one data collection method", None),
    )),
    6: ("risks", (
        ("riskLevel", "Risk level assessment", None),
    )),
    7: ("data", (
        ("collectsIdentifiers", "Answer whether identifiers are collected", None),
        ("dataStorageLocation", "Data storage location", None),
    )),
    8: ("consent", (
        ("consentProcess", "Consent process description", None),
    )),
}


def missing_fields(step_number: int, snapshot: AnswerSnapshot) -> list[MissingField]:
    """
    Required fields of a step that are not filled yet.

    Args:
        step_number: 1-indexed step id
        snapshot: Current answers

    Returns:
        Missing fields in display order; empty when the step is complete,
        has no gated fields (review, documents) or is unknown
    """
    entry = _REQUIREMENTS.get(step_number)
    if entry is None:
        return []
    section, requirements = entry
    missing = []
    for field, label, only_if in requirements:
        if only_if is not None and not only_if(snapshot):
            continue
        if not snapshot.is_filled(section, field):
            missing.append(MissingField(section=section, field=field, label=label))
    return missing


def step_complete(step_number: int, snapshot: AnswerSnapshot) -> bool:
    return not missing_fields(step_number, snapshot)
