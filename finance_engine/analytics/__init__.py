"""
Expense Analytics Package

Pure functions over an expense snapshot. None of them depend on another's
output, so they can run independently or in parallel.
"""

from finance_engine.analytics.anomalies import detect_anomalies
from finance_engine.analytics.cashflow import (
    current_balance,
    expected_monthly_income,
    forecast_cashflow,
)
from finance_engine.analytics.patterns import detect_patterns
from finance_engine.analytics.prediction import predict_next_month
from finance_engine.analytics.recurrence import (
    detect_recurring_patterns,
    normalize_description,
)
from finance_engine.analytics.savings import find_savings_opportunities

__all__ = [
    "current_balance",
    "detect_anomalies",
    "detect_patterns",
    "detect_recurring_patterns",
    "expected_monthly_income",
    "find_savings_opportunities",
    "forecast_cashflow",
    "normalize_description",
    "predict_next_month",
]
