"""
Group progress for the installment listing.

A charge dated before the reference day counts as paid. Everything else,
including undated charges, is still owed.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from expense_groups.models.expense import (
    GroupIndex,
    GroupSummary,
    InstallmentGroup,
)


def summarize_group(group: InstallmentGroup, today: Optional[date] = None) -> GroupSummary:
    """Paid count, remaining amount and next charge of one group."""
    today = today or date.today()

    paid_count = 0
    remaining_total = Decimal("0")
    upcoming: list[date] = []

    for item in group.items:
        if item.date is not None and item.date < today:
            paid_count += 1
            continue
        remaining_total += item.amount
        if item.date is not None:
            upcoming.append(item.date)

    return GroupSummary(
        key=group.key,
        title=group.title,
        total_count=max(group.total_count or 0, group.member_count),
        paid_count=paid_count,
        remaining_total=remaining_total,
        currency=group.currency,
        next_date=min(upcoming) if upcoming else None,
        items=list(group.items),
    )


def list_group_summaries(
    index: GroupIndex,
    today: Optional[date] = None,
    include_finished: bool = True,
) -> list[GroupSummary]:
    """
    Summaries of every group, in the index's listing order.

    Args:
        index: A built GroupIndex.
        today: Reference day (defaults to the current date).
        include_finished: Keep groups with no charge left.
    """
    today = today or date.today()
    summaries = [summarize_group(group, today) for group in index.list_groups()]
    if include_finished:
        return summaries
    return [summary for summary in summaries if summary.next_date is not None]
