"""
Configuration Management for Expense Groups

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The grouping engine itself is pure and takes plain arguments; only the
tracker facade, the currency converter and the logging setup read settings.
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GroupingSettings(BaseSettings):
    """Installment grouping and planning configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INSTALLMENTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_currency: str = Field(
        default="EUR",
        description="Currency assumed for records that carry none"
    )
    min_installments: int = Field(
        default=2,
        ge=2,
        description="Smallest number of installments a plan may have"
    )
    max_installments: int = Field(
        default=48,
        ge=2,
        le=120,
        description="Largest number of installments a plan may have"
    )

    @field_validator('base_currency')
    @classmethod
    def validate_base_currency(cls, v: str) -> str:
        """Currency codes are three letters, stored upper-case."""
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid currency code: {v}")
        return code

    @model_validator(mode='after')
    def validate_bounds(self) -> 'GroupingSettings':
        if self.max_installments < self.min_installments:
            raise ValueError("max_installments cannot be below min_installments")
        return self


class CurrencySettings(BaseSettings):
    """Exchange-rate cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CURRENCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    cache_ttl_hours: float = Field(
        default=24.0,
        gt=0,
        description="How long fetched rates are reused before refetching"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (console output otherwise)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def grouping(self) -> GroupingSettings:
        return GroupingSettings()

    @property
    def currency(self) -> CurrencySettings:
        return CurrencySettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for each section that failed.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("grouping", "currency", "logging"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
