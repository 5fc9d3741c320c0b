"""
Tests for study file loading and the bundled sample studies.

Tests cover:
- Every sample classifying as documented, with no consistency errors
- Relative date resolution
- Schema validation failures surfacing as SnapshotValidationError
- Read/parse failures surfacing as SnapshotLoadError
"""
import json
from datetime import date

import pytest

from irbwiz.engine import check, classify
from irbwiz.exceptions import SampleStudyNotFoundError, SnapshotLoadError, SnapshotValidationError
from irbwiz.models import ReviewType
from irbwiz.snapshots import (
    SAMPLES_DIR,
    add_months,
    list_sample_studies,
    load_sample_study,
    load_snapshot,
    load_study,
    load_study_from_string,
    resolve_relative_date,
    sample_study_ids,
    snapshot_from_answers,
)

from tests.conftest import TODAY, make_settings

SAMPLE_IDS = [
    "exempt-cat2-survey",
    "exempt-cat4-secondary",
    "expedited-cat4-interviews",
    "expedited-cat6-recording",
    "full-board-minors-rct",
    "full-board-burnout-longitudinal",
]

MINIMAL_FILE = """
schema_version: "1.0.0"
id: tiny
answers:
  prescreening:
    isResearch: true
  subjects:
    minAge: 18
"""


# =============================================================================
# Samples
# =============================================================================

class TestSamples:

    def test_bundled_samples(self):
        assert SAMPLES_DIR.is_dir()
        assert [study.id for study in list_sample_studies(today=TODAY)] == SAMPLE_IDS
        assert sample_study_ids() == SAMPLE_IDS

    @pytest.mark.parametrize("study_id", SAMPLE_IDS)
    def test_sample_classifies_as_documented(self, study_id):
        study = load_sample_study(study_id, today=TODAY)
        result = classify(study.snapshot, settings=make_settings())
        assert result.type is study.expected_review_type
        assert result.category == study.expected_category

    @pytest.mark.parametrize("study_id", SAMPLE_IDS)
    def test_sample_has_no_consistency_errors(self, study_id):
        study = load_sample_study(study_id, today=TODAY)
        issues = check(study.snapshot, today=TODAY, settings=make_settings())
        assert [issue.check_id for issue in issues if issue.is_error] == []

    def test_sample_metadata(self):
        study = load_sample_study("exempt-cat2-survey", today=TODAY)
        assert study.expected_review_type is ReviewType.EXEMPT
        assert study.expected_category == 2
        assert study.title.startswith("Digital Learning Preferences")
        assert study.key_factors
        assert study.source.endswith("01-exempt-cat2-survey.yaml")

    def test_relative_dates_resolve_against_today(self):
        snap = load_sample_study("exempt-cat2-survey", today=TODAY).snapshot
        assert snap.raw("study", "startDate") == "2025-07-01"
        assert snap.raw("prescreening", "citiExpiryDate") == "2026-12-01"
        assert snap.raw("prescreening", "citiCompletionDate") == "2023-12-01"

    def test_numbers_are_stored_as_strings(self):
        snap = load_sample_study("exempt-cat2-survey", today=TODAY).snapshot
        assert snap.raw("subjects", "minAge") == "18"
        assert snap.number("subjects", "totalParticipants") == 250.0

    def test_unknown_sample(self):
        with pytest.raises(SampleStudyNotFoundError) as excinfo:
            load_sample_study("nope", today=TODAY)
        assert excinfo.value.code == "IW_SAMPLE_NOT_FOUND"
        assert "exempt-cat2-survey" in excinfo.value.details["available"]


# =============================================================================
# Relative Dates
# =============================================================================

class TestRelativeDates:

    @pytest.mark.parametrize("token,expected", [
        ("today", date(2025, 6, 1)),
        ("today+3d", date(2025, 6, 4)),
        ("today-3d", date(2025, 5, 29)),
        ("today+1m", date(2025, 7, 1)),
        ("today - 18m", date(2023, 12, 1)),
        ("TODAY+2Y", date(2027, 6, 1)),
    ])
    def test_tokens(self, token, expected):
        assert resolve_relative_date(token, TODAY) == expected

    @pytest.mark.parametrize("token", ["tomorrow", "today+5w", "today+", "2025-01-01"])
    def test_non_tokens(self, token):
        assert resolve_relative_date(token, TODAY) is None

    def test_add_months_clamps_to_month_end(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 3, 15), -3) == date(2024, 12, 15)


# =============================================================================
# Loading
# =============================================================================

class TestLoadStudy:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "tiny.yaml"
        path.write_text(MINIMAL_FILE, encoding="utf-8")
        study = load_study(path, today=TODAY)
        assert study.id == "tiny"
        assert study.snapshot.raw("prescreening", "isResearch") is True
        assert study.snapshot.raw("subjects", "minAge") == "18"
        assert study.snapshot.raw("subjects", "includesMinors") is None

    def test_json_file_uses_stem_as_id(self, tmp_path):
        path = tmp_path / "my-study.json"
        path.write_text(json.dumps({"answers": {"risks": {"riskLevel": "minimal"}}}), encoding="utf-8")
        study = load_study(path, today=TODAY)
        assert study.id == "my-study"
        assert load_snapshot(path, today=TODAY).choice("risks", "riskLevel") == "minimal"

    def test_from_string(self):
        study = load_study_from_string(MINIMAL_FILE, today=TODAY)
        assert study.id == "tiny"
        assert study.source is None
        json_study = load_study_from_string('{"answers": {}}', format="json", today=TODAY)
        assert json_study.snapshot.answer("prescreening", "isResearch").is_unanswered

    def test_snapshot_from_answers(self):
        snap = snapshot_from_answers({"study": {"startDate": "today+1y"}}, today=TODAY)
        assert snap.raw("study", "startDate") == "2026-06-01"

    def test_float_numbers(self):
        snap = snapshot_from_answers({"procedures": {"bloodDrawAmount": 12.5}}, today=TODAY)
        assert snap.raw("procedures", "bloodDrawAmount") == "12.5"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotLoadError) as excinfo:
            load_study(tmp_path / "missing.yaml")
        assert excinfo.value.code == "IW_SNAPSHOT_LOAD_ERROR"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("answers: [unclosed", encoding="utf-8")
        with pytest.raises(SnapshotLoadError):
            load_study(path)

    def test_malformed_json_string(self):
        with pytest.raises(SnapshotLoadError):
            load_study_from_string("{", format="json")


class TestValidation:

    @pytest.mark.parametrize("answers", [
        {"subjects": {"includesMinors": "yes"}},
        {"subjects": {"includesMinors": 1}},
        {"subjects": {"favoriteColor": "blue"}},
        {"unknownSection": {}},
        {"risks": {"riskLevel": "moderate"}},
        {"study": {"startDate": "next fall"}},
        {"study": {"startDate": "today+5w"}},
        {"subjects": {"minAge": True}},
        {"procedures": {"methodTypes": "survey"}},
        {"researcher": {"coInvestigators": [{"email": "no-name@example.edu"}]}},
    ])
    def test_invalid_answers(self, answers):
        with pytest.raises(SnapshotValidationError) as excinfo:
            snapshot_from_answers(answers, today=TODAY)
        assert excinfo.value.code == "IW_SNAPSHOT_VALIDATION_ERROR"
        assert excinfo.value.details["errors"]

    def test_unknown_top_level_key(self):
        with pytest.raises(SnapshotValidationError):
            load_study_from_string("answers: {}\nsurprise: 1\n", today=TODAY)

    def test_top_level_must_be_mapping(self):
        with pytest.raises(SnapshotValidationError):
            load_study_from_string("- 1\n- 2\n", today=TODAY)

    def test_schema_major_version_must_match(self):
        with pytest.raises(SnapshotValidationError) as excinfo:
            load_study_from_string('schema_version: "2.0.0"\nanswers: {}\n', today=TODAY)
        assert excinfo.value.details["expected_version"] == "1.0.0"

    def test_minor_version_difference_is_accepted(self):
        study = load_study_from_string('schema_version: "1.4.0"\nanswers: {}\n', today=TODAY)
        assert study.snapshot.answer("prescreening", "isResearch").is_unanswered

    def test_unknown_expected_review_type(self):
        with pytest.raises(SnapshotValidationError):
            load_study_from_string("expected_review_type: MAYBE\nanswers: {}\n", today=TODAY)
