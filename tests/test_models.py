"""
Tests for IRB Wizard result models and enums.
"""
from dataclasses import FrozenInstanceError

import pytest

from irbwiz.models import (
    REVIEW_TYPE_INFO,
    ConsistencyIssue,
    DeterminationResult,
    Flag,
    FlagSeverity,
    IssueSeverity,
    Priority,
    Recommendation,
    RecommendationType,
    ReviewType,
    issue_count,
    issues_by_section,
    review_type_info,
)


class TestReviewType:

    def test_substantive_tiers(self):
        substantive = {t for t in ReviewType if t.is_substantive}
        assert substantive == {ReviewType.EXEMPT, ReviewType.EXPEDITED, ReviewType.FULL_BOARD}

    def test_oversight_rank_orders_tiers(self):
        assert ReviewType.EXEMPT.oversight_rank < ReviewType.EXPEDITED.oversight_rank
        assert ReviewType.EXPEDITED.oversight_rank < ReviewType.FULL_BOARD.oversight_rank
        assert ReviewType.INSUFFICIENT_INFO.oversight_rank == 0

    def test_str_enum_serializes_as_value(self):
        assert ReviewType("FULL_BOARD") is ReviewType.FULL_BOARD
        assert ReviewType.EXEMPT == "EXEMPT"


class TestReviewTypeInfo:

    def test_every_tier_has_metadata(self):
        assert set(REVIEW_TYPE_INFO) == set(ReviewType)
        for review_type, info in REVIEW_TYPE_INFO.items():
            assert info.type is review_type
            assert info.requires_irb_review == review_type.is_substantive

    def test_lookup_by_string(self):
        assert review_type_info("EXPEDITED").label == "Expedited Review"

    @pytest.mark.parametrize("value", ["BOGUS", "", None, "exempt"])
    def test_unknown_falls_back_to_insufficient_info(self, value):
        assert review_type_info(value).type is ReviewType.INSUFFICIENT_INFO

    def test_to_dict(self):
        data = review_type_info(ReviewType.FULL_BOARD).to_dict()
        assert data["shortLabel"] == "Full Board"
        assert data["requiresIrbReview"] is True
        assert data["oversightRank"] == 3


class TestDeterminationResult:

    def _result(self):
        return DeterminationResult(
            type=ReviewType.EXEMPT,
            category=2,
            category_label="Category 2: Surveys / Interviews / Observation",
            reasons=("a", "b"),
            confidence=0.95,
            recommendations=(
                Recommendation(RecommendationType.CONSISTENCY, Priority.LOW, "Low", "x"),
                Recommendation(RecommendationType.COMPLIANCE, Priority.HIGH, "High", "y"),
                Recommendation(RecommendationType.PROTECTION, Priority.MEDIUM, "Medium", "z"),
                Recommendation(RecommendationType.COMPLIANCE, Priority.HIGH, "High 2", "w"),
            ),
            flags=(Flag(FlagSeverity.LOW, "note"),),
            rule_ids=("EX-2-SURVEY",),
            classifier_version="test",
        )

    def test_to_dict_uses_camel_case(self):
        data = self._result().to_dict()
        assert data["type"] == "EXEMPT"
        assert data["categoryLabel"].startswith("Category 2")
        assert data["reasons"] == ["a", "b"]
        assert data["flags"] == [{"severity": "low", "message": "note"}]
        assert data["ruleIds"] == ["EX-2-SURVEY"]
        assert data["classifierVersion"] == "test"
        assert data["recommendations"][0]["type"] == "consistency"

    def test_sorted_recommendations_is_stable_by_priority(self):
        titles = [rec.title for rec in self._result().sorted_recommendations()]
        assert titles == ["High", "High 2", "Medium", "Low"]

    def test_info_and_requires_review(self):
        result = self._result()
        assert result.info.short_label == "Exempt"
        assert result.requires_irb_review is True

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            self._result().confidence = 0.1


class TestIssueHelpers:

    def _issues(self):
        return [
            ConsistencyIssue(IssueSeverity.ERROR, "subjects", "minAge", "A", "a", "C01"),
            ConsistencyIssue(IssueSeverity.WARNING, "consent", "consentProcess", "B", "b", "C06"),
            ConsistencyIssue(IssueSeverity.WARNING, "subjects", "includesPrisoners", "C", "c", "C22"),
        ]

    def test_issue_count(self):
        issues = self._issues()
        assert issue_count(issues) == 3
        assert issue_count(issues, IssueSeverity.ERROR) == 1
        assert issue_count(issues, "warning") == 2

    def test_issues_by_section_keeps_first_seen_order(self):
        grouped = issues_by_section(self._issues())
        assert list(grouped) == ["subjects", "consent"]
        assert [i.check_id for i in grouped["subjects"]] == ["C01", "C22"]

    def test_issue_to_dict(self):
        issue = self._issues()[0]
        assert issue.is_error
        assert issue.to_dict() == {
            "severity": "error",
            "section": "subjects",
            "field": "minAge",
            "title": "A",
            "message": "a",
            "checkId": "C01",
        }
