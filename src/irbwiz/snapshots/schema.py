"""
IRB Wizard Study File Schemas

Pydantic models for validating study files (YAML/JSON): a snapshot of
wizard answers plus optional descriptive metadata.

Section models are generated from the canonical snapshot shape so the
file format and ``SNAPSHOT_DEFAULTS`` cannot drift apart. Every section
rejects unknown fields.

Value rules:
- yes/no fields take true, false or null (strings such as "yes" are rejected)
- number fields take numbers or strings and are stored as strings
- date fields take ISO dates or relative tokens ("today+18m", "today-3d")
"""
from __future__ import annotations

import calendar
import re
from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    StrictBool,
    StrictStr,
    ValidationInfo,
    create_model,
)

from ..models.enums import ReviewType
from ..models.snapshot import SECTIONS, SNAPSHOT_DEFAULTS, field_kind


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Value Coercion
# =============================================================================

_RELATIVE_DATE = re.compile(r"^today\s*(?:([+-])\s*(\d+)\s*([dmy]))?$", re.IGNORECASE)


def add_months(base: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the month."""
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def resolve_relative_date(token: str, today: date) -> Optional[date]:
    """
    Resolve "today", "today+18m", "today-3d" or "today+1y".

    Returns None when the token is not a relative date.
    """
    match = _RELATIVE_DATE.match(token.strip())
    if not match:
        return None
    sign, amount, unit = match.groups()
    if sign is None:
        return today
    offset = int(amount) * (1 if sign == "+" else -1)
    unit = unit.lower()
    if unit == "d":
        return date.fromordinal(today.toordinal() + offset)
    if unit == "m":
        return add_months(today, offset)
    return add_months(today, 12 * offset)


def _date_text(value: Any, info: ValidationInfo) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValueError("expected an ISO date or a relative date such as 'today+18m'")
    text = value.strip()
    if not text:
        return ""
    if text.lower().startswith("today"):
        today = (info.context or {}).get("today") or date.today()
        resolved = resolve_relative_date(text, today)
        if resolved is None:
            raise ValueError(f"malformed relative date: {value!r}")
        return resolved.isoformat()
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        raise ValueError(f"not an ISO date: {value!r}")


def _number_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        raise ValueError("expected a number, got a boolean")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format(value, "g")
    return value


DateText = Annotated[str, BeforeValidator(_date_text)]
NumberText = Annotated[StrictStr, BeforeValidator(_number_text)]
RiskLevelValue = Optional[Literal["none", "minimal", "greater"]]


class PersonSchema(BaseModel):
    """Co-investigator or research associate."""
    name: str
    email: Optional[str] = None
    department: Optional[str] = None
    role: Optional[str] = None

    model_config = {"extra": "forbid"}


# =============================================================================
# Section Schemas
# =============================================================================

_PERSON_LISTS = {("researcher", "coInvestigators"), ("researcher", "researchAssociates")}


def _field_spec(section: str, field: str, default: Any) -> tuple[Any, Any]:
    if (section, field) in _PERSON_LISTS:
        return (list[PersonSchema], Field(default_factory=list))
    kind = field_kind(section, field)
    if kind == "choice":
        return (RiskLevelValue, None)
    if kind == "answer":
        return (Optional[StrictBool], default)
    if kind == "number":
        return (NumberText, "")
    if kind == "date":
        return (DateText, "")
    if kind == "tokens":
        return (list[StrictStr], Field(default_factory=list))
    return (StrictStr, default)


def _section_model(section: str) -> type[BaseModel]:
    fields = {
        name: _field_spec(section, name, default)
        for name, default in SNAPSHOT_DEFAULTS[section].items()
    }
    return create_model(
        f"{section.capitalize()}Schema",
        __config__={"extra": "forbid"},
        **fields,
    )


SECTION_SCHEMAS: dict[str, type[BaseModel]] = {
    section: _section_model(section) for section in SECTIONS
}

AnswersSchema = create_model(
    "AnswersSchema",
    __config__={"extra": "forbid"},
    **{
        section: (model, Field(default_factory=model))
        for section, model in SECTION_SCHEMAS.items()
    },
)


# =============================================================================
# Study File
# =============================================================================

class StudyFileSchema(BaseModel):
    """
    Top-level schema for a study file.

    Only ``answers`` is required; the metadata describes sample studies.
    """
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    id: Optional[str] = Field(None, description="Unique identifier (e.g., 'exempt-cat2-survey')")
    short_title: Optional[str] = None
    description: Optional[str] = None
    methodology: Optional[str] = None
    discipline: Optional[str] = None
    expected_review_type: Optional[ReviewType] = Field(
        None, description="Tier the study is expected to classify as"
    )
    expected_category: Optional[int] = None
    key_factors: list[str] = Field(default_factory=list)
    review_rationale: Optional[str] = None

    answers: AnswersSchema = Field(default_factory=AnswersSchema)  # type: ignore[valid-type]

    model_config = {
        "extra": "forbid",
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_study_file(data: dict[str, Any], today: Optional[date] = None) -> StudyFileSchema:
    """
    Validate a study file dictionary against the schema.

    Args:
        data: Dictionary loaded from YAML/JSON
        today: Date relative date tokens resolve against

    Returns:
        Validated StudyFileSchema

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return StudyFileSchema.model_validate(data, context={"today": today})


def check_schema_version(data: dict[str, Any]) -> bool:
    """Major version of the file must match SCHEMA_VERSION."""
    file_version = str(data.get("schema_version", SCHEMA_VERSION))
    return file_version.split(".")[0] == SCHEMA_VERSION.split(".")[0]
