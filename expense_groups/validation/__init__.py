"""Data-quality validation package."""

from expense_groups.validation.quality import GroupQualityChecker

__all__ = ["GroupQualityChecker"]
