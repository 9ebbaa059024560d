"""
Installment Group Builder

Partitions a flat expense collection into purchase groups.

Two paths:
1. EXPLICIT - records carrying a group_id are grouped by it, no questions
   asked. Key: "group:<group_id>".
2. HEURISTIC - the rest are bucketed by their natural key
   (base description, N, currency, start day). A bucket may hold several
   unrelated purchases that happen to look the same, so candidates are
   split per installment index, ranked by (date, id), and the k-th ranked
   record of every index is paired into slot k.
   Key: "virtual:<base>|<N>|<currency>|<start>:<slot>".

LIMITATION: two purchases that also match in per-index timing (identical
dates for every installment) are indistinguishable; pairing between them
is arbitrary but deterministic.

Explicit and heuristic groups are never merged, even when they describe the
same real purchase.
"""

from collections import defaultdict
from typing import Iterable, Optional

from expense_groups.audit.logger import get_logger
from expense_groups.installments.extractor import augment, extract_meta
from expense_groups.models.expense import (
    DEFAULT_CURRENCY,
    ExpenseRecord,
    GroupIndex,
    InstallmentGroup,
    InstallmentItem,
)


logger = get_logger(__name__)

EXPLICIT_PREFIX = "group:"
VIRTUAL_PREFIX = "virtual:"


def explicit_group_key(group_id: str) -> str:
    return f"{EXPLICIT_PREFIX}{group_id}"


def natural_key(item: InstallmentItem, base_currency: str = DEFAULT_CURRENCY) -> str:
    """Composite (base, N, currency, start day) key of an item."""
    return "|".join([
        item.installment_base,
        str(item.installment_total),
        item.effective_currency(base_currency),
        item.installment_start_key or "",
    ])


def virtual_group_key(natural: str, slot: int) -> str:
    return f"{VIRTUAL_PREFIX}{natural}:{slot}"


def _rank_key(item: InstallmentItem) -> tuple:
    # Undated items rank last; ids compare as text.
    return (item.date is None, item.date or "", item.id or "")


def member_order(item: InstallmentItem) -> tuple:
    """Sort key for group members: index, then date, then id."""
    return (item.installment_index,) + _rank_key(item)


def _assign_slots(candidates: list[InstallmentItem]) -> list[list[InstallmentItem]]:
    """
    Split one natural-key bucket into positional slots.

    Slot k receives the k-th ranked candidate of every installment index
    that has at least k+1 candidates. Slots may therefore be partial.
    """
    by_index: dict[int, list[InstallmentItem]] = defaultdict(list)
    for item in candidates:
        by_index[item.installment_index].append(item)

    slot_count = max((len(group) for group in by_index.values()), default=0)
    slots: list[list[InstallmentItem]] = [[] for _ in range(slot_count)]

    for index in sorted(by_index):
        ranked = sorted(by_index[index], key=_rank_key)
        for position, item in enumerate(ranked):
            slots[position].append(item)

    return slots


def _make_group(
    key: str,
    group_id: Optional[str],
    first: InstallmentItem,
    members: list[InstallmentItem],
) -> InstallmentGroup:
    return InstallmentGroup(
        key=key,
        group_id=group_id,
        title=first.installment_base,
        total_count=first.installment_total,
        start_key=first.installment_start_key,
        items=sorted(members, key=member_order),
    )


def build_groups(
    records: Iterable[ExpenseRecord],
    base_currency: str = DEFAULT_CURRENCY,
) -> GroupIndex:
    """
    Build the group index for a full expense collection.

    Records that are not installments are ignored. Heuristic candidates
    without a start day (missing date) cannot be placed and are dropped.

    Args:
        records: Every expense of the snapshot, in any order.
        base_currency: Currency assumed for records without one.

    Returns:
        GroupIndex with groups keyed by group key and the reverse
        record-id lookup.
    """
    explicit: dict[str, list[InstallmentItem]] = {}
    buckets: dict[str, list[InstallmentItem]] = defaultdict(list)
    skipped_undated = 0

    for record in records:
        meta = extract_meta(record)
        if meta is None:
            continue
        item = augment(record, meta)

        if item.group_id:
            explicit.setdefault(explicit_group_key(item.group_id), []).append(item)
            continue

        if item.installment_start_key is None:
            skipped_undated += 1
            continue
        buckets[natural_key(item, base_currency)].append(item)

    groups_by_key: dict[str, InstallmentGroup] = {}

    for key, members in explicit.items():
        # Summary fields come from the first member seen.
        groups_by_key[key] = _make_group(key, members[0].group_id, members[0], members)

    for natural in sorted(buckets):
        for slot, members in enumerate(_assign_slots(buckets[natural])):
            if not members:
                continue
            key = virtual_group_key(natural, slot)
            groups_by_key[key] = _make_group(key, None, members[0], members)

    group_key_by_record_id = {
        item.id: key
        for key, group in groups_by_key.items()
        for item in group.items
        if item.id
    }

    logger.debug(
        "groups_built",
        explicit_groups=len(explicit),
        virtual_groups=len(groups_by_key) - len(explicit),
        skipped_undated=skipped_undated,
    )

    return GroupIndex(
        groups_by_key=groups_by_key,
        group_key_by_record_id=group_key_by_record_id,
    )
