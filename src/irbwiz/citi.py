"""
CITI Certificate Parsing

Reads the completion and expiration dates off a CITI training
certificate so the pre-screening answers can be prefilled.

The parser never decides anything about training status; it only
proposes ``citiCompletionDate`` / ``citiExpiryDate`` values. Confidence is
"full" when both dates were found, "partial" for one and "none" otherwise.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from pypdf import PdfReader

from .canon import normalize_date_text
from .exceptions import CertificateParseError

logger = logging.getLogger(__name__)

# MM/DD/YYYY, YYYY-MM-DD, "Month D, YYYY" or "D Month YYYY"
_DATE = (
    r"(\d{1,2}/\d{1,2}/\d{4}"
    r"|\d{4}-\d{2}-\d{2}"
    r"|[A-Za-z]+\.? \d{1,2},? \d{4}"
    r"|\d{1,2} [A-Za-z]+ \d{4})"
)
_SEPARATOR = r"\s*[:\-–]?\s*"

COMPLETION_RE = re.compile(
    r"(?:Completion Date|Date Completed|Course Completed|Completed on|Completed)" + _SEPARATOR + _DATE,
    re.IGNORECASE,
)
EXPIRY_RE = re.compile(
    r"(?:Expiration Date|Expiry Date|Expires on|Expires?|Valid Through|Valid Until|Renewal Due|Renew By)"
    + _SEPARATOR + _DATE,
    re.IGNORECASE,
)


@dataclass(frozen=True)
class CitiCertificateDates:
    """Dates found on a certificate, as ISO strings ("" when not found)."""
    completion_date: str = ""
    expiry_date: str = ""
    confidence: str = "none"

    def to_dict(self) -> dict[str, Any]:
        return {
            "completionDate": self.completion_date,
            "expiryDate": self.expiry_date,
            "confidence": self.confidence,
        }

    def as_prescreening(self) -> dict[str, str]:
        """Non-empty dates keyed by their pre-screening field names."""
        values = {}
        if self.completion_date:
            values["citiCompletionDate"] = self.completion_date
        if self.expiry_date:
            values["citiExpiryDate"] = self.expiry_date
        return values


def _confidence(completion: str, expiry: str) -> str:
    if completion and expiry:
        return "full"
    if completion or expiry:
        return "partial"
    return "none"


def extract_citi_dates(text: str) -> CitiCertificateDates:
    """
    Find labelled completion and expiration dates in certificate text.

    Args:
        text: Text extracted from the certificate

    Returns:
        CitiCertificateDates with normalized ISO dates
    """
    flat = re.sub(r"\s+", " ", text or "")

    completion_match = COMPLETION_RE.search(flat)
    expiry_match = EXPIRY_RE.search(flat)

    completion = normalize_date_text(completion_match.group(1)) if completion_match else ""
    expiry = normalize_date_text(expiry_match.group(1)) if expiry_match else ""

    return CitiCertificateDates(
        completion_date=completion,
        expiry_date=expiry,
        confidence=_confidence(completion, expiry),
    )


def read_pdf_text(path: Union[str, Path]) -> str:
    """
    Extract the text layer of every page of a PDF.

    Raises:
        CertificateParseError: If the file cannot be opened or read as a PDF
    """
    try:
        reader = PdfReader(str(path))
        text_parts = []
        for page in reader.pages:
            text_parts.append(page.extract_text() or "")
    except Exception as e:
        raise CertificateParseError(
            message=f"Failed to read PDF: {e}",
            details={"error": str(e)},
            source=str(path),
        )
    return "\n".join(text_parts)


def parse_citi_certificate(path: Union[str, Path]) -> CitiCertificateDates:
    """
    Parse a CITI certificate PDF.

    A file that cannot be read yields confidence "none" rather than an
    error, so the caller can fall back to manual entry.
    """
    try:
        text = read_pdf_text(path)
    except CertificateParseError as e:
        logger.warning(f"CITI certificate parse failed: {e.message}", extra={"source": str(path)})
        return CitiCertificateDates()

    dates = extract_citi_dates(text)
    logger.info(
        f"Parsed CITI certificate (confidence={dates.confidence})",
        extra={"source": str(path)},
    )
    return dates


__all__ = [
    "CitiCertificateDates",
    "extract_citi_dates",
    "read_pdf_text",
    "parse_citi_certificate",
]
