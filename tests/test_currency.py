"""
Tests for the cached currency converter.

Time is injected; no test sleeps or touches the network.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from expense_groups.services.currency import (
    CachedCurrencyConverter,
    ExchangeRateSource,
    RateFetchError,
    StaticRateSource,
)


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class CountingSource(ExchangeRateSource):
    """Rate source that counts fetches and can be told to fail."""

    def __init__(self, rates):
        self.rates = rates
        self.calls = 0
        self.fail = False

    def fetch_rates(self):
        self.calls += 1
        if self.fail:
            raise RateFetchError("provider unavailable")
        return dict(self.rates)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return CountingSource({"USD": "1.10", "BRL": "5.5"})


@pytest.fixture
def converter(source, clock):
    return CachedCurrencyConverter(source, base_currency="EUR", ttl=timedelta(hours=24), clock=clock)


class TestConversion:
    def test_convert_to_and_from_base(self, converter):
        assert converter.convert_to_base(Decimal("11"), "USD") == Decimal("10")
        assert converter.convert_from_base(Decimal("10"), "usd") == Decimal("11.00")

    def test_base_currency_needs_no_fetch(self, converter, source):
        assert converter.convert_to_base(Decimal("7"), "EUR") == Decimal("7")
        assert source.calls == 0

    def test_unknown_currency_passes_through(self, converter):
        assert converter.convert_to_base(Decimal("7"), "JPY") == Decimal("7")
        assert converter.convert_from_base(Decimal("7"), "JPY") == Decimal("7")

    def test_static_source(self):
        converter = CachedCurrencyConverter(StaticRateSource({"usd": 2}), base_currency="eur")
        assert converter.base_currency == "EUR"
        assert converter.get_rate("USD") == Decimal("2")

    def test_base_currency_defaults_to_settings(self, monkeypatch):
        monkeypatch.setenv("INSTALLMENTS_BASE_CURRENCY", "brl")
        converter = CachedCurrencyConverter(StaticRateSource({}))
        assert converter.base_currency == "BRL"


class TestCachePolicy:
    """Tests for TTL reuse and last-known-good fallback."""

    def test_rates_are_reused_within_ttl(self, converter, source, clock):
        converter.get_rate("USD")
        clock.advance(hours=23)
        converter.get_rate("BRL")
        assert source.calls == 1
        assert converter.is_cache_valid() is True
        assert converter.last_updated == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_rates_are_refetched_after_ttl(self, converter, source, clock):
        converter.get_rate("USD")
        clock.advance(hours=24)
        assert converter.is_cache_valid() is False
        source.rates = {"USD": "1.20"}
        assert converter.get_rate("USD") == Decimal("1.20")
        assert source.calls == 2

    def test_force_refresh(self, converter, source):
        converter.get_rates()
        converter.force_refresh()
        assert source.calls == 2

    def test_failed_fetch_keeps_last_known_good(self, converter, source, clock):
        converter.get_rate("USD")
        clock.advance(days=3)
        source.fail = True

        assert converter.get_rate("USD") == Decimal("1.10")
        assert converter.last_updated == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_failed_first_fetch_passes_amounts_through(self, converter, source):
        source.fail = True
        assert converter.get_rates() is None
        assert converter.convert_to_base(Decimal("5"), "USD") == Decimal("5")

    def test_empty_fetch_keeps_previous_rates(self, converter, source, clock):
        converter.get_rates()
        clock.advance(days=2)
        source.rates = {}
        assert converter.get_rate("BRL") == Decimal("5.5")
