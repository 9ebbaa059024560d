"""
Installment Forecast

How much will installment purchases cost in each of the coming months?

DESIGN DECISION: The forecast is computed from the built group index,
not from raw records. Only records the engine recognises as installments
contribute, and the caller's cached index is reused.

All totals are in the converter's base currency. Converting to a display
currency is the caller's job (convert_from_base).
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field

from expense_groups.audit.logger import get_logger
from expense_groups.models.expense import GroupIndex
from expense_groups.services.currency import CurrencyConverterInterface


class ForecastMonth(BaseModel):
    """Installment charges falling in one calendar month."""

    month_key: str = Field(..., description="YYYY-MM")
    month_start: date
    installments_total: Decimal = Field(default=Decimal("0"))
    item_count: int = Field(default=0, ge=0)
    group_keys: list[str] = Field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.item_count > 0


class InstallmentForecaster:
    """
    Buckets installment charges by month and converts them to base currency.

    GUARANTEES:
    - One bucket per requested month, even when empty
    - Never raises for unknown currencies (the converter passes them through)
    """

    def __init__(self, converter: CurrencyConverterInterface):
        self._converter = converter
        self._logger = get_logger(__name__)

    def forecast(
        self,
        index: GroupIndex,
        today: Optional[date] = None,
        months: int = 3,
    ) -> list[ForecastMonth]:
        """
        Forecast the next ``months`` calendar months, starting with today's.

        Every installment dated inside a bucket's month counts toward it,
        including charges earlier in the current month.
        """
        if months < 1:
            raise ValueError("months must be at least 1")

        today = today or date.today()
        first_month = today.replace(day=1)
        starts = [first_month + relativedelta(months=offset) for offset in range(months)]
        wanted = {start.strftime("%Y-%m") for start in starts}

        totals: dict[str, Decimal] = defaultdict(Decimal)
        counts: dict[str, int] = defaultdict(int)
        keys: dict[str, list[str]] = defaultdict(list)

        for group in index.list_groups():
            for item in group.items:
                if item.date is None:
                    continue
                month_key = item.date.strftime("%Y-%m")
                if month_key not in wanted:
                    continue
                currency = item.effective_currency(self._converter.base_currency)
                totals[month_key] += self._converter.convert_to_base(item.amount, currency)
                counts[month_key] += 1
                if group.key not in keys[month_key]:
                    keys[month_key].append(group.key)

        result = [
            ForecastMonth(
                month_key=start.strftime("%Y-%m"),
                month_start=start,
                installments_total=totals.get(start.strftime("%Y-%m"), Decimal("0")),
                item_count=counts.get(start.strftime("%Y-%m"), 0),
                group_keys=keys.get(start.strftime("%Y-%m"), []),
            )
            for start in starts
        ]

        self._logger.debug(
            "forecast_computed",
            months=months,
            item_count=sum(month.item_count for month in result),
        )
        return result
