"""Configuration package."""

from finance_engine.config.settings import (
    AnalyticsSettings,
    AppSettings,
    BudgetSettings,
    Settings,
    SettlementSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AnalyticsSettings",
    "AppSettings",
    "BudgetSettings",
    "Settings",
    "SettlementSettings",
    "get_settings",
    "validate_all_settings",
]
