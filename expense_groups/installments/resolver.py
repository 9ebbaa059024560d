"""
Installment Group Resolution

Answers "which payments belong to the same purchase as this one?".

Resolution order for a target record:
1. Not an installment            -> []
2. Has a group_id                -> the explicit group from the index
3. Has an id                     -> whatever group the index assigned it
4. Neither (unsaved record)      -> on-the-fly natural-key match

The fallback (4) returns every candidate sharing the natural key. It does
not run the positional-slot split, so it is only exact when at most one
matching purchase is in flight.
"""

from enum import Enum
from typing import Optional, Sequence

from expense_groups.audit.logger import get_logger
from expense_groups.installments.builder import (
    build_groups,
    explicit_group_key,
    member_order,
)
from expense_groups.installments.extractor import augment, extract_meta, start_key
from expense_groups.models.expense import (
    DEFAULT_CURRENCY,
    ExpenseRecord,
    GroupIndex,
    InstallmentItem,
)


logger = get_logger(__name__)


class ResolutionPath(str, Enum):
    """Which branch answered a resolve call."""
    NOT_INSTALLMENT = "not_installment"
    EXPLICIT_GROUP = "explicit_group"
    RECORD_ID = "record_id"
    NATURAL_KEY = "natural_key"


def resolve_group_with_path(
    target: ExpenseRecord,
    records: Sequence[ExpenseRecord],
    index: Optional[GroupIndex] = None,
    base_currency: str = DEFAULT_CURRENCY,
) -> tuple[ResolutionPath, list[InstallmentItem]]:
    """
    Resolve the sibling installments of a target and report the branch used.

    The index is built from ``records`` only when a branch needs it and
    none was supplied.
    """
    meta = extract_meta(target)
    if meta is None:
        return ResolutionPath.NOT_INSTALLMENT, []

    if target.group_id:
        index = index if index is not None else build_groups(records, base_currency)
        group = index.get(explicit_group_key(target.group_id))
        return ResolutionPath.EXPLICIT_GROUP, list(group.items) if group else []

    if target.id:
        index = index if index is not None else build_groups(records, base_currency)
        group = index.group_for(target.id)
        return ResolutionPath.RECORD_ID, list(group.items) if group else []

    target_start = start_key(target, meta)
    if target_start is None:
        return ResolutionPath.NATURAL_KEY, []
    target_currency = target.effective_currency(base_currency)

    matches: list[InstallmentItem] = []
    for record in records:
        candidate = extract_meta(record)
        if candidate is None:
            continue
        if (
            candidate.base == meta.base
            and candidate.total == meta.total
            and record.effective_currency(base_currency) == target_currency
            and start_key(record, candidate) == target_start
        ):
            matches.append(augment(record, candidate))

    return ResolutionPath.NATURAL_KEY, sorted(matches, key=member_order)


def resolve_group(
    target: ExpenseRecord,
    records: Sequence[ExpenseRecord],
    index: Optional[GroupIndex] = None,
    base_currency: str = DEFAULT_CURRENCY,
) -> list[InstallmentItem]:
    """
    Sibling installments of ``target``, ordered by installment index.

    Never raises; "no group" is an empty list.

    Args:
        target: The record the user drilled into.
        records: The full expense snapshot.
        index: A prebuilt GroupIndex for the same snapshot, if cached.
        base_currency: Currency assumed for records without one.
    """
    path, items = resolve_group_with_path(target, records, index, base_currency)
    logger.debug(
        "group_resolved",
        path=path.value,
        record_id=target.id,
        group_id=target.group_id,
        item_count=len(items),
    )
    return items
