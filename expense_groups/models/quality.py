"""
Data-Quality Models

The grouping engine never rejects input. Conditions that look wrong
(duplicate installment numbers, members disagreeing on the count, ...)
are reported as issues for the caller to surface or ignore.

DESIGN DECISION: Issues are advisory. A report full of warnings is still
a successful check.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IssueType(str, Enum):
    """Kinds of data-quality findings on a group."""
    DUPLICATE_INDEX = "duplicate_index"
    OVERSIZED_GROUP = "oversized_group"      # more items than total_count
    PARTIAL_GROUP = "partial_group"          # still accumulating installments
    TOTAL_MISMATCH = "total_mismatch"        # members disagree on N
    CURRENCY_MISMATCH = "currency_mismatch"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    MISSING_START_KEY = "missing_start_key"


class IssueSeverity(str, Enum):
    """Severity level for a finding."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DataQualityIssue(BaseModel):
    """A single finding about one group."""

    group_key: str = Field(
        ...,
        description="Key of the group the finding is about"
    )
    issue_type: IssueType
    message: str = Field(
        ...,
        description="Human-readable description of the finding"
    )
    severity: IssueSeverity = IssueSeverity.WARNING
    record_ids: list[str] = Field(
        default_factory=list,
        description="Identifiers of the members involved, when known"
    )

    def to_log_dict(self) -> dict:
        return {
            "group_key": self.group_key,
            "issue_type": self.issue_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "record_ids": self.record_ids,
        }


class DataQualityReport(BaseModel):
    """Result of checking every group of one index."""

    checked_at: datetime = Field(default_factory=datetime.now)
    group_count: int = Field(default=0, ge=0)
    issues: list[DataQualityIssue] = Field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    @property
    def has_warnings(self) -> bool:
        """Any finding above info level."""
        return any(issue.severity != IssueSeverity.INFO for issue in self.issues)

    def issues_for(self, group_key: str) -> list[DataQualityIssue]:
        return [issue for issue in self.issues if issue.group_key == group_key]

    def of_type(self, issue_type: IssueType) -> list[DataQualityIssue]:
        return [issue for issue in self.issues if issue.issue_type == issue_type]

    def worst_severity(self) -> Optional[IssueSeverity]:
        order = [IssueSeverity.INFO, IssueSeverity.WARNING, IssueSeverity.ERROR]
        if not self.issues:
            return None
        return max((issue.severity for issue in self.issues), key=order.index)
