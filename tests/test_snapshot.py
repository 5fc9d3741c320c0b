"""
Tests for AnswerSnapshot

Tests cover:
- Merging partial data over the canonical shape
- Immutability and copy-on-write updates
- Typed accessors on malformed values
- Content hashing and equality
"""
from datetime import date

import pytest

from irbwiz.models import (
    SECTIONS,
    SNAPSHOT_DEFAULTS,
    Answer,
    AnswerSnapshot,
    field_kind,
)

from tests.conftest import make_snapshot


class TestShape:

    def test_empty_has_every_section_and_field(self, empty_snapshot):
        data = empty_snapshot.to_dict()
        assert tuple(data) == SECTIONS
        for section, defaults in SNAPSHOT_DEFAULTS.items():
            assert set(data[section]) == set(defaults)

    def test_partial_data_merges_over_defaults(self):
        snap = make_snapshot(subjects={"includesMinors": True})
        assert snap.answer("subjects", "includesMinors") is Answer.YES
        assert snap.answer("subjects", "includesPrisoners") is Answer.UNANSWERED
        assert snap.raw("procedures", "participationDurationUnit") == "minutes"

    def test_non_mapping_section_is_ignored(self):
        snap = AnswerSnapshot.from_dict({"subjects": "oops"})
        assert snap.raw("subjects", "includesMinors") is None
        assert snap.is_filled("subjects", "minAge") is False

    def test_unknown_section_is_kept(self):
        snap = AnswerSnapshot.from_dict({"extra": {"note": "kept"}})
        assert snap.raw("extra", "note") == "kept"

    def test_missing_section_reads_unanswered(self):
        snap = AnswerSnapshot.empty()
        assert snap.raw("nope", "field") is None
        assert snap.answer("nope", "field") is Answer.UNANSWERED


class TestImmutability:

    def test_setattr_raises(self, empty_snapshot):
        with pytest.raises(AttributeError):
            empty_snapshot.foo = 1

    def test_input_is_copied(self):
        source = {"procedures": {"methodTypes": ["survey"]}}
        snap = AnswerSnapshot.from_dict(source)
        source["procedures"]["methodTypes"].append("interview")
        assert snap.tokens("procedures", "methodTypes") == ("survey",)

    def test_to_dict_is_a_copy(self, empty_snapshot):
        data = empty_snapshot.to_dict()
        data["subjects"]["includesMinors"] = True
        assert empty_snapshot.answer("subjects", "includesMinors") is Answer.UNANSWERED

    def test_with_answer_returns_new_snapshot(self, empty_snapshot):
        updated = empty_snapshot.with_answer("subjects", "includesMinors", True)
        assert updated.answer("subjects", "includesMinors") is Answer.YES
        assert empty_snapshot.answer("subjects", "includesMinors") is Answer.UNANSWERED

    def test_with_section(self, empty_snapshot):
        updated = empty_snapshot.with_section("risks", {"riskLevel": "minimal", "riskMinimization": "x"})
        assert updated.choice("risks", "riskLevel") == "minimal"
        assert updated.text("risks", "riskMinimization") == "x"


class TestAccessors:

    def test_number(self):
        snap = make_snapshot(subjects={"minAge": " 21 ", "maxAge": "sixty"})
        assert snap.number("subjects", "minAge") == 21.0
        assert snap.number("subjects", "maxAge") is None

    def test_date(self):
        snap = make_snapshot(study={"startDate": "2025-09-01", "endDate": "next fall"})
        assert snap.date("study", "startDate") == date(2025, 9, 1)
        assert snap.date("study", "endDate") is None

    def test_text_of_non_string_is_empty(self):
        snap = make_snapshot(consent={"consentProcess": 42})
        assert snap.text("consent", "consentProcess") == ""

    def test_tokens_drop_non_strings(self):
        snap = make_snapshot(procedures={"methodTypes": ["survey", 3, None, "interview"]})
        assert snap.tokens("procedures", "methodTypes") == ("survey", "interview")

    def test_tokens_of_scalar_is_empty(self):
        snap = make_snapshot(procedures={"methodTypes": "survey"})
        assert snap.tokens("procedures", "methodTypes") == ()

    def test_choice_blank_is_none(self):
        assert make_snapshot(risks={"riskLevel": "  "}).choice("risks", "riskLevel") is None
        assert make_snapshot(risks={"riskLevel": " minimal "}).choice("risks", "riskLevel") == "minimal"

    @pytest.mark.parametrize("value,filled", [
        (None, False),
        ("", False),
        ("   ", False),
        ([], False),
        (False, True),
        (True, True),
        ("x", True),
        (["survey"], True),
    ])
    def test_is_filled(self, value, filled):
        snap = make_snapshot(data={"collectsIdentifiers": value})
        assert snap.is_filled("data", "collectsIdentifiers") is filled


class TestIdentity:

    def test_equal_content_equal_hash(self):
        a = make_snapshot(subjects={"includesMinors": True})
        b = AnswerSnapshot.empty().with_answer("subjects", "includesMinors", True)
        assert a == b
        assert hash(a) == hash(b)
        assert a.content_hash() == b.content_hash()

    def test_different_content_different_hash(self):
        a = make_snapshot(subjects={"includesMinors": True})
        b = make_snapshot(subjects={"includesMinors": False})
        assert a != b
        assert a.content_hash() != b.content_hash()

    def test_repr_shows_short_hash(self, empty_snapshot):
        assert repr(empty_snapshot) == f"AnswerSnapshot({empty_snapshot.content_hash()[:12]})"


class TestFieldKind:

    @pytest.mark.parametrize("section,field,kind", [
        ("subjects", "includesMinors", "answer"),
        ("subjects", "minAge", "number"),
        ("study", "startDate", "date"),
        ("procedures", "methodTypes", "tokens"),
        ("consent", "consentProcess", "text"),
        ("risks", "riskLevel", "choice"),
        ("prescreening", "isNewProtocol", "answer"),
        ("subjects", "nope", None),
        ("nope", "minAge", None),
    ])
    def test_kinds(self, section, field, kind):
        assert field_kind(section, field) == kind
