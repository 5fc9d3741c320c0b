"""
Tests for wizard steps and step-gating.
"""
import pytest

from irbwiz.engine import STEP_KEYS, STEPS, get_step, missing_fields, step_complete
from irbwiz.models import SECTIONS
from irbwiz.snapshots import load_sample_study

from tests.conftest import TODAY, make_snapshot


def _fields(step_number, snapshot):
    return [item.field for item in missing_fields(step_number, snapshot)]


class TestSteps:

    def test_ten_steps_in_order(self):
        assert [step.id for step in STEPS] == list(range(1, 11))

    def test_question_steps_match_sections(self):
        assert [step.key for step in STEPS[:8]] == list(SECTIONS)
        assert {"review", "documents"} <= STEP_KEYS

    def test_get_step(self):
        assert get_step(3).title == "Study Overview"
        assert get_step(11) is None


class TestMissingFields:

    def test_prescreening_on_empty_snapshot(self, empty_snapshot):
        assert _fields(1, empty_snapshot) == ["isResearch", "hasCITITraining"]

    def test_prescreening_conditional_fields(self):
        snap = make_snapshot(prescreening={"isResearch": True, "hasCITITraining": True})
        assert _fields(1, snap) == ["involvesHumanSubjects", "citiExpiryDate"]

    def test_false_is_a_complete_answer(self):
        snap = make_snapshot(prescreening={"isResearch": False, "hasCITITraining": False})
        assert step_complete(1, snap)

    def test_advisor_email_only_for_students(self):
        snap = make_snapshot(researcher={
            "piFirstName": "Ada",
            "piLastName": "King",
            "piEmail": "ada@example.edu",
            "piDepartment": "Psychology",
        })
        assert step_complete(2, snap)
        student = snap.with_answer("prescreening", "isStudentResearcher", True)
        missing = missing_fields(2, student)
        assert [(item.section, item.field) for item in missing] == [("researcher", "advisorEmail")]
        assert missing[0].to_dict() == {
            "section": "researcher",
            "field": "advisorEmail",
            "label": "Faculty advisor email",
        }

    def test_method_types_need_at_least_one_entry(self):
        assert _fields(5, make_snapshot(procedures={"methodTypes": []})) == ["methodTypes"]
        assert _fields(5, make_snapshot(procedures={"methodTypes": ["survey"]})) == []

    def test_blank_text_is_missing(self):
        assert _fields(8, make_snapshot(consent={"consentProcess": "   "})) == ["consentProcess"]

    @pytest.mark.parametrize("step_number", [9, 10, 0, 42])
    def test_steps_without_requirements(self, step_number, empty_snapshot):
        assert missing_fields(step_number, empty_snapshot) == []

    def test_sample_study_is_complete(self):
        snapshot = load_sample_study("exempt-cat2-survey", today=TODAY).snapshot
        assert all(step_complete(step.id, snapshot) for step in STEPS)
