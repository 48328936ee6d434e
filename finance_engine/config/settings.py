"""
Configuration Management for the Finance Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All tunable thresholds are centralized here. The pure
components take them as plain arguments; only the orchestrator reads
settings and passes the values in.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettlementSettings(BaseSettings):
    """Shared-bill settlement configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SETTLEMENT_",
        extra="ignore"
    )

    epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Balances and transfers at or below this are treated as zero"
    )
    split_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Allowed gap between the sum of shares and the bill total"
    )
    auto_correct_equal_splits: bool = Field(
        default=True,
        description="Re-derive equal-split shares that drifted from the total"
    )


class BudgetSettings(BaseSettings):
    """Budget bucket policy defaults."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_",
        extra="ignore"
    )

    needs_percent: Decimal = Field(default=Decimal("50"), ge=0, le=100)
    wants_percent: Decimal = Field(default=Decimal("30"), ge=0, le=100)
    savings_percent: Decimal = Field(default=Decimal("15"), ge=0, le=100)
    debt_percent: Decimal = Field(default=Decimal("5"), ge=0, le=100)

    near_limit_ratio: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        lt=1,
        description="spent/planned at which a bucket becomes NEAR_LIMIT"
    )
    daily_savings_rate: Decimal = Field(
        default=Decimal("0.20"),
        ge=0,
        le=1,
        description="Share of monthly income set aside before daily budgeting"
    )

    @model_validator(mode='after')
    def check_percentages(self) -> 'BudgetSettings':
        total = (
            self.needs_percent
            + self.wants_percent
            + self.savings_percent
            + self.debt_percent
        )
        if total != Decimal("100"):
            raise ValueError(f"Budget percentages must sum to 100, got {total}")
        return self


class AnalyticsSettings(BaseSettings):
    """Record floors and windows for the expense analytics."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        extra="ignore"
    )

    pattern_min_records: int = Field(default=10, ge=1)
    anomaly_min_records: int = Field(default=20, ge=1)
    anomaly_min_category_records: int = Field(default=5, ge=2)
    prediction_min_records: int = Field(default=30, ge=1)
    savings_min_records: int = Field(default=20, ge=1)
    cashflow_min_records: int = Field(default=30, ge=1)
    recurrence_min_records: int = Field(default=5, ge=2)

    lookback_days: int = Field(
        default=30,
        ge=1,
        description="Trailing window for anomalies and burn rate"
    )
    forecast_days: int = Field(
        default=30,
        ge=1,
        le=366,
        description="How far ahead the cashflow forecast runs"
    )
    subscription_categories: str = Field(
        default="Entertainment,Subscriptions,Software,Streaming",
        description="Comma-separated watch-list of subscription-prone categories"
    )

    @property
    def subscription_categories_list(self) -> list[str]:
        """Get the watch-list as a list."""
        return [c.strip() for c in self.subscription_categories.split(",") if c.strip()]


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
    reporting_currency: str = Field(
        default="USD",
        min_length=3,
        max_length=3,
        description="Currency all analytics report in"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    @field_validator('reporting_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
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
    def settlement(self) -> SettlementSettings:
        return SettlementSettings()

    @property
    def budget(self) -> BudgetSettings:
        return BudgetSettings()

    @property
    def analytics(self) -> AnalyticsSettings:
        return AnalyticsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("settlement", "budget", "analytics", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
