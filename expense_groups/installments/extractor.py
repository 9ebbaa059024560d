"""
Installment Metadata Extraction

Parses one expense description for a trailing "(i/N)" marker and derives
the day installment #1 would have been charged. Pure functions, no logging:
they run once per record per build.
"""

import re
from typing import Optional

from dateutil.relativedelta import relativedelta

from expense_groups.models.expense import (
    ExpenseRecord,
    InstallmentItem,
    InstallmentMeta,
)


# Positions are capped at nine digits; longer numbers are not a marker.
_MARKER_RE = re.compile(r"\((\d{1,9})/(\d{1,9})\)$", re.ASCII)
_MARKER_SUFFIX_RE = re.compile(r"\s*\(\d{1,9}/\d{1,9}\)$", re.ASCII)

SUBSCRIPTION_MARKER = "(Subscription)"


def extract_meta(record: ExpenseRecord) -> Optional[InstallmentMeta]:
    """
    Parse the installment marker of a record.

    Returns None when the description does not end in "(i/N)", when
    either number is zero, or when either has more than nine digits.
    """
    description = (record.description or "").strip()
    match = _MARKER_RE.search(description)
    if not match:
        return None

    index = int(match.group(1))
    total = int(match.group(2))
    if index < 1 or total < 1:
        return None

    base = _MARKER_SUFFIX_RE.sub("", description).strip()
    return InstallmentMeta(index=index, total=total, base=base)


def is_installment(record: ExpenseRecord) -> bool:
    return extract_meta(record) is not None


def is_subscription(record: ExpenseRecord) -> bool:
    """Subscription charges are tagged in their description."""
    return SUBSCRIPTION_MARKER in (record.description or "")


def start_key(
    record: ExpenseRecord,
    meta: Optional[InstallmentMeta],
) -> Optional[str]:
    """
    ISO day of installment #1, rolled back from this record's date.

    Whole calendar months are subtracted; a day that does not exist in
    the target month is clamped to that month's last day.
    A roll-back that leaves the supported calendar yields None.
    """
    if record.date is None or meta is None:
        return None
    try:
        start = record.date - relativedelta(months=meta.index - 1)
    except (OverflowError, ValueError):
        return None
    return start.isoformat()


def augment(record: ExpenseRecord, meta: InstallmentMeta) -> InstallmentItem:
    """Attach installment position fields to a copy of the record."""
    data = record.model_dump()
    data.update(
        installment_index=meta.index,
        installment_total=meta.total,
        installment_base=meta.base,
        installment_start_key=start_key(record, meta),
    )
    return InstallmentItem(**data)


def extract_item(record: ExpenseRecord) -> Optional[InstallmentItem]:
    """Augmented copy of the record, or None if it is not an installment."""
    meta = extract_meta(record)
    if meta is None:
        return None
    return augment(record, meta)
