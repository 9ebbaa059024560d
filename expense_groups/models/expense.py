"""
Core Data Models for Expense Groups

These models define the shapes flowing through the installment engine:
1. ExpenseRecord - what the persistence API hands us
2. InstallmentMeta - what we parse out of one description
3. InstallmentItem - a record augmented with its installment position
4. InstallmentGroup / GroupIndex - the derived purchase groups

DESIGN DECISION: Optional fields are explicit Optional[...] attributes rather
than keys that may or may not exist. The resolver branches on them directly.

DESIGN DECISION: ExpenseRecord is lenient about dates. A malformed date from
the API becomes None instead of failing the whole collection; the grouping
engine treats a missing date as "cannot join a heuristic group".
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


DEFAULT_CURRENCY = "EUR"


# =============================================================================
# SOURCE RECORD
# =============================================================================

class ExpenseRecord(BaseModel):
    """
    A single expense as returned by the persistence API.

    Immutable. Accepts both snake_case field names and the API's camelCase
    aliases (e.g. ``groupId``).
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: Optional[str] = Field(
        default=None,
        description="Server identifier; absent for records not yet synced"
    )
    description: str = Field(
        default="",
        description="Free text, may end with an '(i/N)' installment marker"
    )
    amount: Decimal = Field(
        default=Decimal("0"),
        description="Amount in the record's own currency"
    )
    currency: Optional[str] = Field(
        default=None,
        description="ISO currency code; base currency applies when absent"
    )
    date: Optional[dt.date] = Field(
        default=None,
        description="Calendar date of the charge"
    )
    group_id: Optional[str] = Field(
        default=None,
        alias="groupId",
        description="Explicit link to a purchase group"
    )
    category: Optional[str] = None

    @field_validator('id', 'group_id', mode='before')
    @classmethod
    def normalize_identifier(cls, v: Any) -> Optional[str]:
        """Identifiers may arrive as ints; blank ones count as absent."""
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator('description', mode='before')
    @classmethod
    def normalize_description(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        code = str(v).strip().upper()
        return code or None

    @field_validator('date', mode='before')
    @classmethod
    def lenient_date(cls, v: Any) -> Optional[dt.date]:
        """Parse dates, datetimes and ISO strings; anything else becomes None."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, dt.date):
            return v
        if isinstance(v, str):
            text = v.strip()
            if not text:
                return None
            try:
                return dt.date.fromisoformat(text[:10])
            except ValueError:
                return None
        return None

    def effective_currency(self, base_currency: str = DEFAULT_CURRENCY) -> str:
        """Currency of this record, falling back to the base currency."""
        return self.currency or base_currency


# =============================================================================
# DERIVED INSTALLMENT MODELS
# =============================================================================

class InstallmentMeta(BaseModel):
    """Installment marker parsed from a description ending in '(i/N)'."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1, description="Position of this payment (the i)")
    total: int = Field(..., ge=1, description="Number of payments (the N)")
    base: str = Field(..., description="Description without the marker")


class InstallmentItem(ExpenseRecord):
    """
    An ExpenseRecord augmented with its installment position.

    Carries every field of the source record, so UI code can keep treating
    it as an expense.
    """

    installment_index: int = Field(..., ge=1)
    installment_total: int = Field(..., ge=1)
    installment_base: str
    installment_start_key: Optional[str] = Field(
        default=None,
        description="ISO day on which installment #1 would have occurred"
    )

    def to_record(self) -> ExpenseRecord:
        """Strip the installment fields, returning the plain record."""
        data = self.model_dump(
            exclude={
                "installment_index",
                "installment_total",
                "installment_base",
                "installment_start_key",
            }
        )
        return ExpenseRecord(**data)


class InstallmentGroup(BaseModel):
    """
    One reconstructed purchase.

    ``items`` is sorted by installment index. ``title``, ``total_count`` and
    ``start_key`` come from the first member that populated the group and are
    advisory for explicit-id groups.
    """
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Unique within one build pass")
    group_id: Optional[str] = None
    title: Optional[str] = None
    total_count: Optional[int] = None
    start_key: Optional[str] = None
    items: list[InstallmentItem] = Field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.items)

    @property
    def currency(self) -> Optional[str]:
        """Currency of the first member, if any."""
        return self.items[0].currency if self.items else None

    @property
    def indices(self) -> list[int]:
        return [item.installment_index for item in self.items]

    @property
    def is_partial(self) -> bool:
        """Fewer members than advertised installments."""
        if self.total_count is None:
            return False
        return self.member_count < self.total_count

    @property
    def has_duplicate_indices(self) -> bool:
        indices = self.indices
        return len(indices) != len(set(indices))


class GroupIndex(BaseModel):
    """
    Result of one build pass.

    Maps group key -> group, and record identifier -> group key.
    """
    model_config = ConfigDict(frozen=True)

    groups_by_key: dict[str, InstallmentGroup] = Field(default_factory=dict)
    group_key_by_record_id: dict[str, str] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.groups_by_key)

    def get(self, key: Optional[str]) -> Optional[InstallmentGroup]:
        if key is None:
            return None
        return self.groups_by_key.get(key)

    def key_for(self, record_id: Optional[str]) -> Optional[str]:
        if record_id is None:
            return None
        return self.group_key_by_record_id.get(record_id)

    def group_for(self, record_id: Optional[str]) -> Optional[InstallmentGroup]:
        return self.get(self.key_for(record_id))

    def list_groups(self) -> list[InstallmentGroup]:
        """All groups in a deterministic order (start, title, key)."""
        return sorted(
            self.groups_by_key.values(),
            key=lambda g: (g.start_key or "", g.title or "", g.key),
        )


# =============================================================================
# LISTING VIEW
# =============================================================================

class GroupSummary(BaseModel):
    """
    A group as shown in the "all installment purchases" listing.

    ``next_date`` is the earliest charge on or after the reference day.
    """
    model_config = ConfigDict(frozen=True)

    key: str
    title: Optional[str] = None
    total_count: int = Field(..., ge=0)
    paid_count: int = Field(..., ge=0)
    remaining_total: Decimal = Field(default=Decimal("0"))
    currency: Optional[str] = None
    next_date: Optional[dt.date] = None
    items: list[InstallmentItem] = Field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.next_date is None and self.paid_count >= self.total_count
