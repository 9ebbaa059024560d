"""
Installment Engine Package

Extraction, group building, resolution, planning and progress for
installment purchases.
"""

from expense_groups.installments.builder import (
    build_groups,
    explicit_group_key,
    natural_key,
    virtual_group_key,
)
from expense_groups.installments.extractor import (
    augment,
    extract_item,
    extract_meta,
    is_installment,
    is_subscription,
    start_key,
)
from expense_groups.installments.planner import (
    InstallmentPlanRequest,
    ReplanOperations,
    new_group_id,
    plan_installments,
    reconcile_replan,
    replan_request_from_group,
    split_installment_amounts,
)
from expense_groups.installments.progress import (
    list_group_summaries,
    summarize_group,
)
from expense_groups.installments.resolver import (
    ResolutionPath,
    resolve_group,
    resolve_group_with_path,
)

__all__ = [
    # Extraction
    "augment",
    "extract_item",
    "extract_meta",
    "is_installment",
    "is_subscription",
    "start_key",
    # Grouping
    "build_groups",
    "explicit_group_key",
    "natural_key",
    "virtual_group_key",
    # Resolution
    "ResolutionPath",
    "resolve_group",
    "resolve_group_with_path",
    # Planning
    "InstallmentPlanRequest",
    "ReplanOperations",
    "new_group_id",
    "plan_installments",
    "reconcile_replan",
    "replan_request_from_group",
    "split_installment_amounts",
    # Progress
    "list_group_summaries",
    "summarize_group",
]
