"""
Answer Snapshot

The single input of the determination engine: every answer in the wizard,
section by section, always fully shaped.

``SNAPSHOT_DEFAULTS`` is the canonical shape. A snapshot built from
partial data is merged over it, so a missing section or field reads
exactly like an unanswered one.
"""
from __future__ import annotations

import copy
from datetime import date
from typing import Any, Mapping, Optional

from ..canon import content_hash, parse_date, parse_number
from .answer import Answer


# =============================================================================
# Canonical Shape
# =============================================================================

SNAPSHOT_DEFAULTS: dict[str, dict[str, Any]] = {
    "prescreening": {
        "isResearch": None,
        "involvesHumanSubjects": None,
        "isStudentResearcher": None,
        "hasFacultyAdvisor": None,
        "hasCITITraining": None,
        "citiCompletionDate": "",
        "citiExpiryDate": "",
        "citiCertFileName": "",
        "isNewProtocol": True,
    },
    "researcher": {
        "piFirstName": "",
        "piLastName": "",
        "piEmail": "",
        "piPhone": "",
        "piDepartment": "",
        "piDegree": "",
        "advisorFirstName": "",
        "advisorLastName": "",
        "advisorEmail": "",
        "advisorDepartment": "",
        "coInvestigators": [],
        "researchAssociates": [],
    },
    "study": {
        "title": "",
        "shortTitle": "",
        "startDate": "",
        "endDate": "",
        "projectType": "",
        "fundingSource": "",
        "grantNumber": "",
        "studyPurpose": "",
        "scientificBackground": "",
        "researchQuestions": "",
        "methodology": "",
        "studySites": "",
        "isMultiSite": None,
        "externalIRB": None,
    },
    "subjects": {
        "totalParticipants": "",
        "minAge": "",
        "maxAge": "",
        "includesMinors": None,
        "minorAgeRange": "",
        "includesPrisoners": None,
        "includesPregnantWomen": None,
        "includesCognitivelyImpaired": None,
        "includesUBStudents": None,
        "includesUBEmployees": None,
        "includesEconomicallyDisadvantaged": None,
        "subjectPopulation": "",
        "recruitmentMethod": [],
        "inclusionCriteria": "",
        "exclusionCriteria": "",
        "compensationOffered": None,
        "compensationDetails": "",
        "extraCreditOffered": None,
    },
    "procedures": {
        "methodTypes": [],
        "surveyTopics": "",
        "interviewTopics": "",
        "observationContext": "",
        "involvesDeception": None,
        "deceptionDescription": "",
        "deceptionDebriefing": None,
        "involvesRecording": None,
        "recordingTypes": [],
        "involvesBloodDraw": None,
        "bloodDrawAmount": "",
        "bloodDrawFrequency": "",
        "involvesOtherBiospecimen": None,
        "biospecimenDescription": "",
        "involvesPhysicalProcedure": None,
        "physicalProcedureDescription": "",
        "involvesRandomization": None,
        "randomizationDescription": "",
        "participationDuration": "",
        "participationDurationUnit": "minutes",
        "totalStudyDuration": "",
        "usesExistingData": None,
        "existingDataDescription": "",
        "existingDataIdentifiable": None,
        "dataSourcePubliclyAvailable": None,
    },
    "risks": {
        "riskLevel": None,
        "physicalRisks": "",
        "psychologicalRisks": "",
        "privacyRisks": "",
        "socialRisks": "",
        "legalRisks": "",
        "economicRisks": "",
        "otherRisks": "",
        "riskMinimization": "",
        "directBenefits": None,
        "directBenefitDescription": "",
        "societalBenefits": "",
        "adverseEventPlan": "",
        "hasDataSafetyMonitoring": None,
    },
    "data": {
        "collectsIdentifiers": None,
        "identifierTypes": [],
        "dataCollectionMethod": [],
        "dataStorageLocation": [],
        "dataEncrypted": None,
        "dataAccessList": "",
        "retentionPeriod": "",
        "retentionUnit": "years",
        "dataDestroyedAfterStudy": None,
        "destructionMethod": "",
        "dataShared": None,
        "dataSharingDetails": "",
        "hipaaApplicable": None,
        "certificateOfConfidentiality": None,
        "anonymousData": None,
        "codedData": None,
        "codingKeyDescription": "",
    },
    "consent": {
        "consentRequired": None,
        "waiverOfConsent": None,
        "waiverBasis": "",
        "documentedConsent": None,
        "waiverOfDocumentation": None,
        "waiverDocBasis": "",
        "consentLanguage": "",
        "translationNeeded": None,
        "translationLanguage": "",
        "assentRequired": None,
        "parentPermissionRequired": None,
        "onlineConsent": None,
        "consentProcess": "",
        "keyRisksForConsent": "",
        "keyBenefitsForConsent": "",
    },
}

SECTIONS: tuple[str, ...] = tuple(SNAPSHOT_DEFAULTS)

# Fields stored as strings but read as numbers
NUMBER_FIELDS: frozenset[tuple[str, str]] = frozenset({
    ("subjects", "totalParticipants"),
    ("subjects", "minAge"),
    ("subjects", "maxAge"),
    ("procedures", "bloodDrawAmount"),
    ("procedures", "participationDuration"),
    ("data", "retentionPeriod"),
})

# Single-choice fields that start out as None
CHOICE_FIELDS: frozenset[tuple[str, str]] = frozenset({
    ("risks", "riskLevel"),
})

# Fields stored as ISO date strings
DATE_FIELDS: frozenset[tuple[str, str]] = frozenset({
    ("prescreening", "citiCompletionDate"),
    ("prescreening", "citiExpiryDate"),
    ("study", "startDate"),
    ("study", "endDate"),
})


def field_kind(section: str, field: str) -> Optional[str]:
    """
    Declared kind of a field: "answer", "choice", "text", "number", "date",
    "tokens" or None for an unknown field.
    """
    defaults = SNAPSHOT_DEFAULTS.get(section)
    if defaults is None or field not in defaults:
        return None
    if (section, field) in CHOICE_FIELDS:
        return "choice"
    if (section, field) in NUMBER_FIELDS:
        return "number"
    if (section, field) in DATE_FIELDS:
        return "date"
    default = defaults[field]
    if default is None or isinstance(default, bool):
        return "answer"
    if isinstance(default, list):
        return "tokens"
    return "text"


# =============================================================================
# Snapshot
# =============================================================================

class AnswerSnapshot:
    """
    Immutable, fully shaped view of all wizard answers.

    Readers go through the typed accessors, which never raise:

        snapshot.answer("subjects", "includesMinors")   -> Answer
        snapshot.number("subjects", "minAge")           -> float | None
        snapshot.date("study", "startDate")             -> date | None
        snapshot.text("consent", "consentProcess")      -> str
        snapshot.tokens("procedures", "methodTypes")    -> tuple[str, ...]

    Sections and fields outside the canonical shape are kept (so a
    snapshot round-trips) but no rule reads them.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        merged: dict[str, dict[str, Any]] = copy.deepcopy(SNAPSHOT_DEFAULTS)
        for section, values in (data or {}).items():
            if not isinstance(values, Mapping):
                continue
            merged.setdefault(section, {})
            for field, value in values.items():
                merged[section][field] = copy.deepcopy(value)
        object.__setattr__(self, "_data", merged)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("AnswerSnapshot is immutable; use with_answer()")

    @classmethod
    def empty(cls) -> AnswerSnapshot:
        """Snapshot with every field at its default (unanswered) value."""
        return cls()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> AnswerSnapshot:
        """Merge (possibly partial) form data over the canonical shape."""
        return cls(data)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Deep copy of the full snapshot."""
        return copy.deepcopy(self._data)

    def with_answer(self, section: str, field: str, value: Any) -> AnswerSnapshot:
        """Return a new snapshot with a single field replaced."""
        data = self.to_dict()
        data.setdefault(section, {})[field] = value
        return AnswerSnapshot(data)

    def with_section(self, section: str, values: Mapping[str, Any]) -> AnswerSnapshot:
        """Return a new snapshot with several fields of one section replaced."""
        data = self.to_dict()
        data.setdefault(section, {}).update(copy.deepcopy(dict(values)))
        return AnswerSnapshot(data)

    # -------------------------------------------------------------------------
    # Typed accessors
    # -------------------------------------------------------------------------

    def raw(self, section: str, field: str) -> Any:
        """Raw stored value, or None when the section/field is absent."""
        values = self._data.get(section)
        if not isinstance(values, dict):
            return None
        return values.get(field)

    def answer(self, section: str, field: str) -> Answer:
        return Answer.from_value(self.raw(section, field))

    def text(self, section: str, field: str) -> str:
        """String value, or "" for anything that is not a string."""
        value = self.raw(section, field)
        return value if isinstance(value, str) else ""

    def number(self, section: str, field: str) -> Optional[float]:
        return parse_number(self.raw(section, field))

    def date(self, section: str, field: str) -> Optional[date]:
        return parse_date(self.raw(section, field))

    def tokens(self, section: str, field: str) -> tuple[str, ...]:
        """Multi-select values; non-string entries are dropped."""
        value = self.raw(section, field)
        if not isinstance(value, (list, tuple)):
            return ()
        return tuple(item for item in value if isinstance(item, str))

    def choice(self, section: str, field: str) -> Optional[str]:
        """Single-choice string value, or None when blank."""
        value = self.text(section, field).strip()
        return value or None

    def is_filled(self, section: str, field: str) -> bool:
        """
        Whether a field has been filled in.

        None, blank strings and empty lists are unfilled; False is a
        valid answer and counts as filled.
        """
        value = self.raw(section, field)
        if value is None:
            return False
        if isinstance(value, str):
            return value.strip() != ""
        if isinstance(value, (list, tuple)):
            return len(value) > 0
        return True

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def content_hash(self) -> str:
        """SHA-256 of the canonical JSON form; usable as a memo key."""
        return content_hash(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnswerSnapshot):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self.content_hash())

    def __repr__(self) -> str:
        return f"AnswerSnapshot({self.content_hash()[:12]})"


__all__ = [
    "SNAPSHOT_DEFAULTS",
    "SECTIONS",
    "NUMBER_FIELDS",
    "DATE_FIELDS",
    "CHOICE_FIELDS",
    "field_kind",
    "AnswerSnapshot",
]
