"""
Tests for canonical JSON, hashing and the lenient parsers.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from irbwiz.canon import (
    canonical_json,
    content_hash,
    content_hash_short,
    normalize_date_text,
    parse_date,
    parse_number,
)
from irbwiz.models import ReviewType


class TestCanonicalJson:

    def test_sorted_keys_no_whitespace(self):
        assert canonical_json({"b": 1, "a": [2, 3]}) == '{"a":[2,3],"b":1}'

    def test_special_types(self):
        payload = {
            "d": date(2025, 1, 2),
            "dec": Decimal("1.10"),
            "tier": ReviewType.EXEMPT,
            "tags": {"b", "a"},
        }
        assert canonical_json(payload) == '{"d":"2025-01-02","dec":"1.10","tags":["a","b"],"tier":"EXEMPT"}'

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            canonical_json({"x": object()})

    def test_hash_ignores_key_order(self):
        assert content_hash({"a": 1, "b": 2}) == content_hash({"b": 2, "a": 1})
        assert len(content_hash({})) == 64
        assert content_hash_short({"a": 1}) == content_hash({"a": 1})[:12]


class TestParseNumber:

    @pytest.mark.parametrize("value,expected", [
        ("450", 450.0),
        (" 12.5 ", 12.5),
        (18, 18.0),
        (2.5, 2.5),
        ("-3", -3.0),
    ])
    def test_valid(self, value, expected):
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", [
        None, "", "   ", "about 5", "5 mL", True, False, "nan", "inf", [], {},
        10**400, -(10**400), Decimal("sNaN"), Decimal("Infinity"),
    ])
    def test_invalid_is_none(self, value):
        assert parse_number(value) is None


class TestParseDate:

    def test_iso(self):
        assert parse_date("2025-03-04") == date(2025, 3, 4)

    def test_iso_with_time(self):
        assert parse_date("2025-03-04T10:00:00Z") == date(2025, 3, 4)

    def test_date_objects(self):
        assert parse_date(date(2025, 3, 4)) == date(2025, 3, 4)
        assert parse_date(datetime(2025, 3, 4, 9, 30)) == date(2025, 3, 4)

    @pytest.mark.parametrize("value", ["", "03/04/2025", "2025-02-30", "soon", None, 20250304])
    def test_invalid_is_none(self, value):
        assert parse_date(value) is None


class TestNormalizeDateText:

    @pytest.mark.parametrize("raw,expected", [
        ("01/15/2024", "2024-01-15"),
        ("1/5/2024", "2024-01-05"),
        ("2024-01-15", "2024-01-15"),
        ("January 5, 2024", "2024-01-05"),
        ("Jan 5 2024", "2024-01-05"),
        ("Sept. 3, 2024", "2024-09-03"),
        ("5 January 2024", "2024-01-05"),
    ])
    def test_recognised_formats(self, raw, expected):
        assert normalize_date_text(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "2/30/2024", "Smarch 5, 2024", "next year"])
    def test_unrecognised_is_empty(self, raw):
        assert normalize_date_text(raw) == ""
