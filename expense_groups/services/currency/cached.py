"""
Cached Currency Converter

Time-boxed fetch-or-reuse policy:
1. Rates younger than the TTL are reused as-is
2. Stale or missing rates trigger a fetch from the injected source
3. A failed fetch falls back to the last rates that were fetched
   successfully (last-known-good), however old
4. With no rates at all, or no rate for a currency, amounts pass
   through unchanged and a warning is logged

The clock is injectable so expiry can be tested without sleeping.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional

from expense_groups.audit.logger import get_logger
from expense_groups.config import get_settings
from expense_groups.services.currency.interface import (
    CurrencyConverterInterface,
    ExchangeRateSource,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StaticRateSource(ExchangeRateSource):
    """Fixed rate table, for offline use and tests."""

    def __init__(self, rates: dict[str, object]):
        self._rates = {
            code.upper(): Decimal(str(rate))
            for code, rate in rates.items()
        }

    def fetch_rates(self) -> dict[str, Decimal]:
        return dict(self._rates)


class CachedCurrencyConverter(CurrencyConverterInterface):
    """
    Converter backed by a rate source with a validity window.

    Args:
        source: Where to fetch rates from.
        base_currency: Currency the rate table is quoted against.
            Defaults to INSTALLMENTS_BASE_CURRENCY.
        ttl: Validity window. Defaults to CURRENCY_CACHE_TTL_HOURS.
        clock: Returns the current aware datetime.
    """

    def __init__(
        self,
        source: ExchangeRateSource,
        base_currency: Optional[str] = None,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = get_settings()
        self._source = source
        self._base_currency = (base_currency or settings.grouping.base_currency).upper()
        self._ttl = ttl or timedelta(hours=settings.currency.cache_ttl_hours)
        self._clock = clock or _utc_now
        self._rates: Optional[dict[str, Decimal]] = None
        self._last_updated: Optional[datetime] = None
        self._logger = get_logger(__name__)

    @property
    def base_currency(self) -> str:
        return self._base_currency

    @property
    def last_updated(self) -> Optional[datetime]:
        """When rates were last fetched successfully."""
        return self._last_updated

    def is_cache_valid(self) -> bool:
        if self._rates is None or self._last_updated is None:
            return False
        return self._clock() - self._last_updated < self._ttl

    def _fetch(self) -> Optional[dict[str, Decimal]]:
        try:
            rates = self._source.fetch_rates()
        except Exception as e:
            # Keep serving whatever we had
            self._logger.warning(
                "rates_fetch_failed",
                error=str(e),
                error_type=type(e).__name__,
                has_fallback=self._rates is not None,
            )
            return self._rates

        if not rates:
            self._logger.warning("rates_fetch_empty", has_fallback=self._rates is not None)
            return self._rates

        self._rates = {code.upper(): Decimal(str(rate)) for code, rate in rates.items()}
        self._last_updated = self._clock()
        self._logger.info("rates_fetched", currency_count=len(self._rates))
        return self._rates

    def get_rates(self) -> Optional[dict[str, Decimal]]:
        """Current rate table, refetching when the cache has expired."""
        if self.is_cache_valid():
            return self._rates
        return self._fetch()

    def force_refresh(self) -> Optional[dict[str, Decimal]]:
        """Fetch regardless of cache age."""
        return self._fetch()

    def get_rate(self, currency: str) -> Optional[Decimal]:
        code = currency.upper()
        if code == self._base_currency:
            return Decimal("1")
        rates = self.get_rates()
        if not rates:
            return None
        rate = rates.get(code)
        if rate is None or rate <= 0:
            return None
        return rate

    def convert_from_base(self, amount: Decimal, to_currency: str) -> Decimal:
        amount = Decimal(amount)
        rate = self.get_rate(to_currency)
        if rate is None:
            self._logger.warning("rate_not_found", currency=to_currency, direction="from_base")
            return amount
        return amount * rate

    def convert_to_base(self, amount: Decimal, from_currency: str) -> Decimal:
        amount = Decimal(amount)
        rate = self.get_rate(from_currency)
        if rate is None:
            self._logger.warning("rate_not_found", currency=from_currency, direction="to_base")
            return amount
        return amount / rate

