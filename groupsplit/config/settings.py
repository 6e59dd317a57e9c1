"""
Configuration Management for Group Expense Splitting

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself takes its tolerance as a plain argument; these settings
are read by the flows that call it.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettlementSettings(BaseSettings):
    """Settlement calculator configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SETTLEMENT_",
        extra="ignore"
    )

    epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        le=1,
        description="Balances within +/- epsilon count as settled"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when describing transfers"
    )
    month_options: int = Field(
        default=12,
        ge=1,
        le=60,
        description="How many recent months the month picker offers"
    )


class StoreSettings(BaseSettings):
    """Retry policy for reading snapshots from the expense store."""

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        extra="ignore"
    )

    max_fetch_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts before a connection failure is raised"
    )
    retry_min_wait_seconds: float = Field(
        default=2.0,
        ge=0.0,
    )
    retry_max_wait_seconds: float = Field(
        default=10.0,
        ge=0.0,
    )

    @field_validator("retry_max_wait_seconds")
    @classmethod
    def validate_max_wait(cls, v: float, info: ValidationInfo) -> float:
        """Max wait must not undercut min wait."""
        min_wait = info.data.get("retry_min_wait_seconds")
        if min_wait is not None and v < min_wait:
            raise ValueError("retry_max_wait_seconds cannot be below retry_min_wait_seconds")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Ingestion thresholds
    max_expense_amount: Decimal = Field(
        default=Decimal("100000"),
        gt=0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future an expense date can be"
    )


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
    def settlement(self) -> SettlementSettings:
        return SettlementSettings()

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries describing any failure. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for name in ("settlement", "store", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
