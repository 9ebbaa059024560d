"""Services package."""

from expense_groups.services.currency import (
    CachedCurrencyConverter,
    CurrencyConverterInterface,
    CurrencyError,
    ExchangeRateSource,
    RateFetchError,
    StaticRateSource,
)

__all__ = [
    "CachedCurrencyConverter",
    "CurrencyConverterInterface",
    "CurrencyError",
    "ExchangeRateSource",
    "RateFetchError",
    "StaticRateSource",
]
