"""Configuration package."""

from expense_groups.config.settings import (
    CurrencySettings,
    GroupingSettings,
    LoggingSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "CurrencySettings",
    "GroupingSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
