"""
Abstract Currency Interfaces

DESIGN DECISION: Currency conversion is an injected dependency, never a
module-level singleton. Reports receive a converter; they never build one.

Rates are expressed the way most public rate APIs publish them: units of
the quoted currency per ONE unit of the base currency.
"""

from abc import ABC, abstractmethod
from decimal import Decimal


class ExchangeRateSource(ABC):
    """
    Where exchange rates come from.

    Any provider (HTTP API, file, fixed table) must implement this.
    """

    @abstractmethod
    def fetch_rates(self) -> dict[str, Decimal]:
        """
        Fetch the current rate table.

        Returns:
            Mapping of currency code -> units per one base-currency unit

        Raises:
            RateFetchError: If the provider cannot be reached or answers
                with something unusable
        """
        pass


class CurrencyConverterInterface(ABC):
    """
    Converts amounts between a base currency and others.

    Implementations must never raise for an unknown currency; they return
    the amount unchanged instead.
    """

    @property
    @abstractmethod
    def base_currency(self) -> str:
        pass

    @abstractmethod
    def convert_to_base(self, amount: Decimal, from_currency: str) -> Decimal:
        """
        Convert an amount expressed in ``from_currency`` to the base currency.
        """
        pass

    @abstractmethod
    def convert_from_base(self, amount: Decimal, to_currency: str) -> Decimal:
        """
        Convert an amount expressed in the base currency to ``to_currency``.
        """
        pass


class CurrencyError(Exception):
    """Base exception for currency operations."""
    pass


class RateFetchError(CurrencyError):
    """Exchange rates could not be fetched."""
    pass
