"""
IRB Wizard Study Loader

Loads and validates study files from YAML or JSON and converts them into
AnswerSnapshot values. Also exposes the sample studies bundled with the
package.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import get_settings
from ..exceptions import SampleStudyNotFoundError, SnapshotLoadError, SnapshotValidationError
from ..models.enums import ReviewType
from ..models.snapshot import AnswerSnapshot
from .schema import SCHEMA_VERSION, StudyFileSchema, check_schema_version, validate_study_file

logger = logging.getLogger(__name__)

SAMPLES_DIR = Path(__file__).resolve().parent.parent / "samples"

_STUDY_SUFFIXES = {".yaml", ".yml", ".json"}


@dataclass(frozen=True)
class Study:
    """
    A validated study file.

    Attributes:
        snapshot: The answers, fully shaped
        id: Identifier from the file, or the file stem
        expected_review_type: Tier the study is documented to classify as
        expected_category: Category the study is documented to fall under
        source: Path the study was loaded from, if any
    """
    snapshot: AnswerSnapshot
    id: str = ""
    short_title: str = ""
    description: str = ""
    methodology: str = ""
    discipline: str = ""
    expected_review_type: Optional[ReviewType] = None
    expected_category: Optional[int] = None
    key_factors: tuple[str, ...] = field(default_factory=tuple)
    review_rationale: str = ""
    source: Optional[str] = None

    @property
    def title(self) -> str:
        return self.snapshot.text("study", "title") or self.short_title or self.id


def _convert_study(schema: StudyFileSchema, default_id: str, source: Optional[str]) -> Study:
    answers = schema.answers.model_dump()
    return Study(
        snapshot=AnswerSnapshot.from_dict(answers),
        id=schema.id or default_id,
        short_title=schema.short_title or "",
        description=schema.description or "",
        methodology=schema.methodology or "",
        discipline=schema.discipline or "",
        expected_review_type=schema.expected_review_type,
        expected_category=schema.expected_category,
        key_factors=tuple(schema.key_factors),
        review_rationale=schema.review_rationale or "",
        source=source,
    )


def _validate(data: Any, today: Optional[date], source: Optional[str]) -> StudyFileSchema:
    if not isinstance(data, dict):
        raise SnapshotValidationError(
            message="Study file must contain a mapping at the top level",
            details={"type": type(data).__name__},
            source=source,
        )
    if not check_schema_version(data):
        raise SnapshotValidationError(
            message=(
                f"Schema version mismatch: file has {data.get('schema_version')}, "
                f"expected {SCHEMA_VERSION}"
            ),
            details={"file_version": data.get("schema_version"), "expected_version": SCHEMA_VERSION},
            source=source,
        )
    if today is None:
        today = get_settings().reference_date()
    try:
        return validate_study_file(data, today=today)
    except ValidationError as e:
        raise SnapshotValidationError(
            message=f"Study file validation failed: {e.error_count()} errors",
            details={"errors": e.errors(include_url=False, include_context=False)},
            source=source,
        )


def _load_file(path: Path) -> Any:
    """Load data from YAML or JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


# =============================================================================
# Public API
# =============================================================================

def load_study(path: Union[str, Path], today: Optional[date] = None) -> Study:
    """
    Load a study file.

    Args:
        path: Path to YAML or JSON file
        today: Date relative date tokens resolve against (defaults to the
            configured reference date)

    Returns:
        Study

    Raises:
        SnapshotLoadError: If the file cannot be read or parsed
        SnapshotValidationError: If the content fails validation
    """
    path = Path(path)
    try:
        data = _load_file(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise SnapshotLoadError(
            message=f"Failed to load study file: {e}",
            details={"error": str(e)},
            source=str(path),
        )

    schema = _validate(data, today, str(path))
    study = _convert_study(schema, default_id=path.stem, source=str(path))
    logger.debug(f"Loaded study {study.id} from {path}")
    return study


def load_snapshot(path: Union[str, Path], today: Optional[date] = None) -> AnswerSnapshot:
    """Load a study file and return only its answers."""
    return load_study(path, today=today).snapshot


def load_study_from_string(
    content: str,
    format: str = "yaml",
    today: Optional[date] = None,
) -> Study:
    """
    Load a study from a string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"
        today: Date relative date tokens resolve against

    Returns:
        Study
    """
    try:
        if format.lower() == "json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise SnapshotLoadError(
            message=f"Failed to parse study content: {e}",
            details={"format": format},
        )
    schema = _validate(data, today, None)
    return _convert_study(schema, default_id="", source=None)


def snapshot_from_answers(answers: dict[str, Any], today: Optional[date] = None) -> AnswerSnapshot:
    """Validate a bare answers mapping (sections only) into a snapshot."""
    return _convert_study(_validate({"answers": answers}, today, None), "", None).snapshot


# =============================================================================
# Bundled Samples
# =============================================================================

def _sample_paths() -> list[Path]:
    if not SAMPLES_DIR.is_dir():
        return []
    return sorted(p for p in SAMPLES_DIR.iterdir() if p.suffix.lower() in _STUDY_SUFFIXES)


def list_sample_studies(today: Optional[date] = None) -> list[Study]:
    """All bundled sample studies, ordered by file name."""
    return [load_study(path, today=today) for path in _sample_paths()]


def sample_study_ids() -> list[str]:
    return [study.id for study in list_sample_studies()]


def load_sample_study(study_id: str, today: Optional[date] = None) -> Study:
    """
    Load one bundled sample study by id.

    Raises:
        SampleStudyNotFoundError: If no bundled study has that id
    """
    studies = list_sample_studies(today=today)
    for study in studies:
        if study.id == study_id:
            return study
    raise SampleStudyNotFoundError(
        message=f"No sample study with id {study_id!r}",
        details={"available": [study.id for study in studies]},
    )
