"""
Currency Services Package

Provides the converter interface consumed by reports and a cached
implementation with a time-boxed rate cache.
"""

from expense_groups.services.currency.interface import (
    CurrencyConverterInterface,
    CurrencyError,
    ExchangeRateSource,
    RateFetchError,
)
from expense_groups.services.currency.cached import (
    CachedCurrencyConverter,
    StaticRateSource,
)

__all__ = [
    # Interfaces
    "CurrencyConverterInterface",
    "ExchangeRateSource",
    # Exceptions
    "CurrencyError",
    "RateFetchError",
    # Implementations
    "CachedCurrencyConverter",
    "StaticRateSource",
]
