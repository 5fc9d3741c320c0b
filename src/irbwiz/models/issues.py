"""
Consistency issue model and small aggregation helpers.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from .enums import IssueSeverity


@dataclass(frozen=True)
class ConsistencyIssue:
    """
    One detected contradiction or incompleteness.

    Attributes:
        severity: error or warning
        section: Wizard step key the user is sent back to
        field: Offending field name within the section
        title: Short label
        message: Full explanation
        check_id: Id of the consistency rule that produced the issue
    """
    severity: IssueSeverity
    section: str
    field: str
    title: str
    message: str
    check_id: str = ""

    @property
    def is_error(self) -> bool:
        return self.severity == IssueSeverity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "section": self.section,
            "field": self.field,
            "title": self.title,
            "message": self.message,
            "checkId": self.check_id,
        }


def issue_count(
    issues: Iterable[ConsistencyIssue],
    severity: Optional[Union[IssueSeverity, str]] = None,
) -> int:
    """Count issues, optionally only those of one severity."""
    if severity is None:
        return sum(1 for _ in issues)
    wanted = IssueSeverity(severity)
    return sum(1 for issue in issues if issue.severity == wanted)


def issues_by_section(
    issues: Iterable[ConsistencyIssue],
) -> "OrderedDict[str, list[ConsistencyIssue]]":
    """Group issues by section, keeping first-seen section order."""
    grouped: OrderedDict[str, list[ConsistencyIssue]] = OrderedDict()
    for issue in issues:
        grouped.setdefault(issue.section, []).append(issue)
    return grouped


__all__ = ["ConsistencyIssue", "issue_count", "issues_by_section"]
