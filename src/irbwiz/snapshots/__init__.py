"""
IRB Wizard Study Files

YAML/JSON study files and the sample studies bundled with the package.
"""
from __future__ import annotations

from .loader import (
    SAMPLES_DIR,
    Study,
    list_sample_studies,
    load_sample_study,
    load_snapshot,
    load_study,
    load_study_from_string,
    sample_study_ids,
    snapshot_from_answers,
)
from .schema import (
    SCHEMA_VERSION,
    SECTION_SCHEMAS,
    StudyFileSchema,
    add_months,
    resolve_relative_date,
    validate_study_file,
)

__all__ = [
    "SAMPLES_DIR",
    "SCHEMA_VERSION",
    "SECTION_SCHEMAS",
    "Study",
    "StudyFileSchema",
    "add_months",
    "list_sample_studies",
    "load_sample_study",
    "load_snapshot",
    "load_study",
    "load_study_from_string",
    "resolve_relative_date",
    "sample_study_ids",
    "snapshot_from_answers",
    "validate_study_file",
]
