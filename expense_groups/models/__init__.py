"""
Data Models Package

This package contains all Pydantic models used by the installment engine.
All data flowing through the system must conform to these schemas.
"""

from expense_groups.models.expense import (
    DEFAULT_CURRENCY,
    ExpenseRecord,
    GroupIndex,
    GroupSummary,
    InstallmentGroup,
    InstallmentItem,
    InstallmentMeta,
)
from expense_groups.models.quality import (
    DataQualityIssue,
    DataQualityReport,
    IssueSeverity,
    IssueType,
)

__all__ = [
    # Expense models
    "DEFAULT_CURRENCY",
    "ExpenseRecord",
    "GroupIndex",
    "GroupSummary",
    "InstallmentGroup",
    "InstallmentItem",
    "InstallmentMeta",
    # Quality models
    "DataQualityIssue",
    "DataQualityReport",
    "IssueSeverity",
    "IssueType",
]
