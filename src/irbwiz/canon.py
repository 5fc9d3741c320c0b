"""
Canonical Forms

Deterministic JSON serialization for hashing, plus the lenient parsers
that turn questionnaire strings into numbers and dates.

Canonical JSON follows RFC 8785 (JSON Canonicalization Scheme) principles:
- Sorted keys (lexicographic)
- No whitespace
- UTF-8 encoding

The parsers never raise. Anything that cannot be read as the requested
type comes back as ``None`` so the calling rule can treat the field as
"not yet evaluable".
"""
from __future__ import annotations

import hashlib
import json
import math
import re
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


def _default_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for non-standard types.

    Handles:
    - datetime/date: ISO 8601 format
    - Decimal: string (preserves precision)
    - Enum: value
    - dataclass: dict
    - set/frozenset/tuple: list
    """
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        default=_default_serializer,
        ensure_ascii=False,
    )


def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize object to canonical JSON as UTF-8 bytes."""
    return canonical_json(obj).encode("utf-8")


def content_hash(obj: Any) -> str:
    """
    Compute SHA-256 hash of canonical JSON representation.

    Returns:
        Hex-encoded SHA-256 hash string (64 characters)
    """
    return hashlib.sha256(canonical_json_bytes(obj)).hexdigest()


def content_hash_short(obj: Any, length: int = 12) -> str:
    """Compute truncated content hash for logs and display."""
    return content_hash(obj)[:length]


# =============================================================================
# Lenient Parsers
# =============================================================================

def parse_number(value: Any) -> Optional[float]:
    """
    Parse a number-as-string questionnaire field.

    Empty strings, booleans, non-numeric text, NaN, infinities and
    integers too large for a float all return None.

    Example:
        >>> parse_number(" 450 ")
        450.0
        >>> parse_number("about 5") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            number = float(stripped)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_date(value: Any) -> Optional[date]:
    """
    Parse an ISO date field ("YYYY-MM-DD", optionally with a time part).

    Returns None for anything else, including impossible dates such as
    "2025-02-30".
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped:
        return None
    try:
        return date.fromisoformat(stripped[:10])
    except ValueError:
        return None


MONTH_NAMES = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7,
    "aug": 8, "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_MONTH_FIRST = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$")
_DAY_FIRST = re.compile(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s+(\d{4})$")


def normalize_date_text(raw: Optional[str]) -> str:
    """
    Normalize a human-written date to "YYYY-MM-DD", or "" if unrecognised.

    Accepts MM/DD/YYYY, YYYY-MM-DD, "Month D, YYYY" and "D Month YYYY".

    Example:
        >>> normalize_date_text("January 5, 2024")
        '2024-01-05'
    """
    if not raw:
        return ""
    text = raw.strip()

    year = month = day = None
    us = _US_DATE.match(text)
    iso = _ISO_DATE.match(text)
    month_first = _MONTH_FIRST.match(text)
    day_first = _DAY_FIRST.match(text)

    if us:
        month, day, year = int(us.group(1)), int(us.group(2)), int(us.group(3))
    elif iso:
        year, month, day = int(iso.group(1)), int(iso.group(2)), int(iso.group(3))
    elif month_first:
        month = MONTH_NAMES.get(month_first.group(1).lower())
        day, year = int(month_first.group(2)), int(month_first.group(3))
    elif day_first:
        month = MONTH_NAMES.get(day_first.group(2).lower())
        day, year = int(day_first.group(1)), int(day_first.group(3))

    if year is None or month is None:
        return ""
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return ""
