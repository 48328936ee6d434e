"""
Predictive Budgeter

Extrapolates next month's total spend from monthly totals.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from finance_engine.analytics.stats import (
    coefficient_of_variation,
    mean,
    monthly_totals,
    resolve_as_of,
)
from finance_engine.models.insights import PredictiveBudget, Trend
from finance_engine.models.records import ExpenseRecord


MIN_RECORDS = 30
MIN_MONTHS = 2
RECENT_MONTHS = 3
TREND_BAND = Decimal("0.1")


def next_month_key(as_of: date) -> str:
    if as_of.month == 12:
        return f"{as_of.year + 1:04d}-01"
    return f"{as_of.year:04d}-{as_of.month + 1:02d}"


def classify_trend(amounts: Sequence[Decimal]) -> Trend:
    """
    Compare the first and last thirds of the series.

    Needs at least three points; anything shorter is STABLE.
    """
    segment = len(amounts) // 3
    if segment == 0:
        return Trend.STABLE
    first = mean(amounts[:segment])
    last = mean(amounts[-segment:])
    if last > first * (1 + TREND_BAND):
        return Trend.INCREASING
    if last < first * (1 - TREND_BAND):
        return Trend.DECREASING
    return Trend.STABLE


def predict_next_month(
    expenses: Sequence[ExpenseRecord],
    as_of: Optional[date] = None,
    min_records: int = MIN_RECORDS,
) -> Optional[PredictiveBudget]:
    """
    Next month's predicted spend, or None without enough history.

    predicted  = mean of the last three monthly totals
    trend      = first third vs last third of all months, +/-10% band
    confidence = 1 - CV of all monthly totals, clamped to [0.5, 0.95]
    """
    expenses = list(expenses)
    if len(expenses) < min_records:
        return None

    months = monthly_totals(expenses)
    if len(months) < MIN_MONTHS:
        return None

    amounts = [amount for _, amount in months]
    predicted = mean(amounts[-RECENT_MONTHS:]).quantize(Decimal("0.01"))
    confidence = float(coefficient_of_variation(amounts))
    confidence = max(0.5, min(0.95, 1 - confidence))

    return PredictiveBudget(
        month=next_month_key(resolve_as_of(as_of)),
        predicted_amount=predicted,
        confidence=confidence,
        based_on_months=len(amounts),
        trend=classify_trend(amounts),
    )
