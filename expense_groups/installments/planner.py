"""
Installment Planning

Turns "I bought X for T, paying in N monthly installments" into the N
expense records the persistence API should store, and back again when a
user edits an existing purchase.

DESIGN DECISION: Amounts are split in whole cents. The remainder cents go
to the first installments, so the parts always add up to the total exactly.

DESIGN DECISION: Every planned record carries the same group_id. Planned
purchases therefore always resolve through the explicit path, never through
the positional heuristic.
"""

import random
import string
import time
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from dateutil.relativedelta import relativedelta
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from expense_groups.audit.logger import get_logger
from expense_groups.config import get_settings
from expense_groups.installments.builder import member_order
from expense_groups.installments.extractor import extract_meta
from expense_groups.models.expense import (
    DEFAULT_CURRENCY,
    ExpenseRecord,
    InstallmentItem,
)


logger = get_logger(__name__)

CENTS = Decimal("0.01")
_BASE36 = string.digits + string.ascii_lowercase


class InstallmentPlanRequest(BaseModel):
    """
    A purchase to be split into monthly installments.

    Bounds on ``count`` come from GroupingSettings unless the request is
    validated with explicit ``min_count``/``max_count`` context.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Purchase description, without any (i/N) marker"
    )
    total_amount: Decimal = Field(
        ...,
        gt=0,
        description="Full purchase price"
    )
    count: int = Field(
        ...,
        description="Number of monthly installments"
    )
    start_date: date = Field(
        ...,
        description="Date of the first installment"
    )
    currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=3,
        max_length=3,
    )
    category: Optional[str] = None
    group_id: Optional[str] = Field(
        default=None,
        description="Existing group to keep when re-planning"
    )

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('description')
    @classmethod
    def reject_marker(cls, v: str) -> str:
        """A plan description must not already carry an installment marker."""
        candidate = ExpenseRecord(description=v)
        if extract_meta(candidate) is not None:
            raise ValueError("Description already ends with an installment marker")
        return v

    @field_validator('count')
    @classmethod
    def validate_count(cls, v: int, info: ValidationInfo) -> int:
        context = info.context or {}
        grouping = get_settings().grouping
        low = context.get("min_count", grouping.min_installments)
        high = context.get("max_count", grouping.max_installments)
        if v < low or v > high:
            raise ValueError(f"Installment count must be between {low} and {high}")
        return v


def split_installment_amounts(total: Decimal, count: int) -> list[Decimal]:
    """
    Split ``total`` into ``count`` cent-exact parts.

    >>> split_installment_amounts(Decimal("100"), 3)
    [Decimal('33.34'), Decimal('33.33'), Decimal('33.33')]
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    total_cents = int((Decimal(total) / CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    base_cents, remainder = divmod(total_cents, count)
    return [
        (Decimal(base_cents + (1 if position < remainder else 0)) * CENTS).quantize(CENTS)
        for position in range(count)
    ]


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_group_id(
    now: Optional[Callable[[], float]] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Fresh purchase-group identifier: "inst_<epoch ms base36>_<6 chars>".

    Args:
        now: Clock returning epoch seconds (defaults to time.time).
        rng: Random source for the suffix (defaults to the module RNG).
    """
    millis = int((now or time.time)() * 1000)
    chooser = rng or random
    suffix = "".join(chooser.choice(_BASE36) for _ in range(6))
    return f"inst_{_to_base36(millis)}_{suffix}"


def plan_installments(request: InstallmentPlanRequest) -> list[ExpenseRecord]:
    """
    Expand a plan request into one record per installment.

    Installment i is dated i-1 months after the start date (clamped to
    the end of shorter months) and described "<description> (i/N)".
    """
    group_id = request.group_id or new_group_id()
    amounts = split_installment_amounts(request.total_amount, request.count)

    return [
        ExpenseRecord(
            description=f"{request.description} ({position + 1}/{request.count})",
            amount=amount,
            currency=request.currency,
            date=request.start_date + relativedelta(months=position),
            category=request.category,
            group_id=group_id,
        )
        for position, amount in enumerate(amounts)
    ]


def replan_request_from_group(
    items: Sequence[InstallmentItem],
    default_currency: str = DEFAULT_CURRENCY,
    start_date: Optional[date] = None,
) -> Optional[InstallmentPlanRequest]:
    """
    Prefill a plan request from an existing group so it can be edited.

    - description: the shared base description
    - total_amount: sum of member amounts
    - count: max(advertised N, member count)
    - start_date: earliest member date (or ``start_date`` when given)
    - category: kept only when every member agrees
    - group_id: the first group id found among members, if any

    Returns None for an empty or untitled group, one with no usable
    amount or date, or one whose stored values fail request validation.
    """
    members = [item for item in items if item is not None]
    if not members:
        return None

    first = members[0]
    if not first.installment_base:
        return None
    total_amount = sum((item.amount for item in members), Decimal("0"))
    if total_amount <= 0:
        return None

    dated = [item.date for item in members if item.date is not None]
    first_date = start_date or (min(dated) if dated else None)
    if first_date is None:
        return None

    count = max(max(item.installment_total for item in members), len(members))
    categories = {item.category for item in members}
    existing_group_id = next((item.group_id for item in members if item.group_id), None)

    try:
        return InstallmentPlanRequest.model_validate(
            {
                "description": first.installment_base,
                "total_amount": total_amount,
                "count": count,
                "start_date": first_date,
                "currency": first.currency or default_currency,
                "category": first.category if len(categories) == 1 else None,
                "group_id": existing_group_id,
            },
            context={"min_count": 1, "max_count": max(count, 1)},
        )
    except ValidationError as e:
        # Stored data the plan form cannot express (nested marker, long title)
        logger.warning(
            "replan_prefill_rejected",
            group_id=existing_group_id,
            error_count=e.error_count(),
            fields=sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]}),
        )
        return None


class ReplanOperations(BaseModel):
    """
    Persistence calls that turn an existing group into an edited plan.

    ``updates`` carry the id of the record they overwrite; ``creates`` have
    no id yet.
    """
    model_config = ConfigDict(frozen=True)

    updates: list[ExpenseRecord] = Field(default_factory=list)
    creates: list[ExpenseRecord] = Field(default_factory=list)
    delete_ids: list[str] = Field(default_factory=list)

    @property
    def operation_count(self) -> int:
        return len(self.updates) + len(self.creates) + len(self.delete_ids)


def reconcile_replan(
    existing_items: Sequence[InstallmentItem],
    planned_records: Sequence[ExpenseRecord],
) -> ReplanOperations:
    """
    Pair the members of an existing group with freshly planned records.

    Members are taken in installment order and matched position by
    position with the plan:
    - a saved member (has an id) is updated with its planned record
    - an unsaved member's planned record is created instead
    - planned records beyond the member count are created
    - saved members beyond the plan length are deleted
    """
    ordered = sorted(existing_items, key=member_order)
    updates: list[ExpenseRecord] = []
    creates: list[ExpenseRecord] = []

    for item, planned in zip(ordered, planned_records):
        if item.id:
            updates.append(planned.model_copy(update={"id": item.id}))
        else:
            creates.append(planned)

    creates.extend(planned_records[len(ordered):])
    delete_ids = [item.id for item in ordered[len(planned_records):] if item.id]

    return ReplanOperations(updates=updates, creates=creates, delete_ids=delete_ids)
