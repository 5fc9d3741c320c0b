"""
Pytest configuration and fixtures for IRB Wizard tests.

Provides snapshot factories built on the canonical answer shape.
"""
import copy
from datetime import date

import pytest

from irbwiz.config import Settings
from irbwiz.models import AnswerSnapshot


# Fixed reference date so temporal checks and relative dates are stable
TODAY = date(2025, 6, 1)


# =============================================================================
# Factory Helpers
# =============================================================================

# Every decision-relevant field answered: adult, minimal-risk, anonymous survey
MINIMAL_RISK_SURVEY = {
    "prescreening": {
        "isResearch": True,
        "involvesHumanSubjects": True,
    },
    "subjects": {
        "minAge": "18",
        "maxAge": "65",
        "includesMinors": False,
        "includesPrisoners": False,
        "includesPregnantWomen": False,
        "includesCognitivelyImpaired": False,
    },
    "procedures": {
        "methodTypes": ["survey"],
        "surveyTopics": "Study habits and preferred learning formats",
        "involvesDeception": False,
        "involvesRecording": False,
        "involvesBloodDraw": False,
        "involvesOtherBiospecimen": False,
        "usesExistingData": False,
    },
    "risks": {
        "riskLevel": "minimal",
        "riskMinimization": "Anonymous survey; participants may skip any question.",
    },
    "data": {
        "collectsIdentifiers": False,
    },
}


def _merge(base: dict, overrides: dict) -> dict:
    data = copy.deepcopy(base)
    for section, values in overrides.items():
        data.setdefault(section, {}).update(values)
    return data


def make_snapshot(**sections) -> AnswerSnapshot:
    """Snapshot with only the given sections filled, e.g. subjects={...}."""
    return AnswerSnapshot.from_dict(sections)


def minimal_risk_survey(**overrides) -> AnswerSnapshot:
    """The fully answered minimal-risk survey, with per-section overrides."""
    return AnswerSnapshot.from_dict(_merge(MINIMAL_RISK_SURVEY, overrides))


def make_settings(**kwargs) -> Settings:
    kwargs.setdefault("today", TODAY)
    return Settings(**kwargs)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def empty_snapshot() -> AnswerSnapshot:
    return AnswerSnapshot.empty()


@pytest.fixture
def survey_snapshot() -> AnswerSnapshot:
    return minimal_risk_survey()
