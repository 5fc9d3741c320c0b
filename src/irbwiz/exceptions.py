"""
IRB Wizard Exception Hierarchy

Errors raised at the edges of the engine: loading study files, reading
configuration and parsing certificates. The determination classifier and
the consistency checker never raise; they absorb bad input per rule.

Exception codes follow the pattern: IW_<CATEGORY>_<SPECIFIC>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class IrbWizError(Exception):
    """
    Base exception for all IRB Wizard errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (IW_*)
        details: Additional context about the error
        source: File or setting the error relates to, if any
    """
    message: str
    code: str = "IW_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.source:
            parts.append(f"(source: {self.source})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/CLI output."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.source:
            result["source"] = self.source
        return result


# =============================================================================
# Study File Errors
# =============================================================================

@dataclass
class SnapshotLoadError(IrbWizError):
    """Study file could not be read or parsed."""
    code: str = "IW_SNAPSHOT_LOAD_ERROR"


@dataclass
class SnapshotValidationError(IrbWizError):
    """Study file failed schema validation."""
    code: str = "IW_SNAPSHOT_VALIDATION_ERROR"


@dataclass
class SampleStudyNotFoundError(IrbWizError):
    """Requested sample study is not bundled with the package."""
    code: str = "IW_SAMPLE_NOT_FOUND"


# =============================================================================
# Certificate Errors
# =============================================================================

@dataclass
class CertificateParseError(IrbWizError):
    """CITI certificate could not be opened or its text extracted."""
    code: str = "IW_CERTIFICATE_PARSE_ERROR"


# =============================================================================
# Configuration Errors
# =============================================================================

@dataclass
class ConfigurationError(IrbWizError):
    """An environment setting has an invalid value."""
    code: str = "IW_CONFIGURATION_ERROR"


__all__ = [
    "IrbWizError",
    "SnapshotLoadError",
    "SnapshotValidationError",
    "SampleStudyNotFoundError",
    "CertificateParseError",
    "ConfigurationError",
]
