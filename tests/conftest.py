"""
Shared test helpers.

No network, no real rate provider: everything runs on in-memory records.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from expense_groups.config import get_settings
from expense_groups.models.expense import ExpenseRecord


def make_expense(
    description: str,
    on: Optional[str] = None,
    id: Optional[str] = None,
    amount: str = "10.00",
    currency: Optional[str] = "EUR",
    group_id: Optional[str] = None,
    category: Optional[str] = None,
) -> ExpenseRecord:
    """Build an ExpenseRecord from compact arguments (``on`` is YYYY-MM-DD)."""
    return ExpenseRecord(
        id=id,
        description=description,
        amount=Decimal(amount),
        currency=currency,
        date=date.fromisoformat(on) if on else None,
        group_id=group_id,
        category=category,
    )


@pytest.fixture
def expense():
    """Factory fixture for ExpenseRecord."""
    return make_expense


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings read the environment; never leak them between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def tv_records(expense):
    """The three-installment TV purchase used across tests."""
    return [
        expense("TV (1/3)", "2026-01-10", id="1"),
        expense("TV (2/3)", "2026-02-10", id="2"),
        expense("TV (3/3)", "2026-03-10", id="3"),
    ]
