"""
Anomaly Detector

Flags recent expenses that sit far above their own category's history.
Categories with thin history are skipped entirely rather than judged on
too few points.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from finance_engine.analytics.stats import (
    group_by_category,
    mean,
    pstdev,
    resolve_as_of,
    trailing_window,
)
from finance_engine.models.insights import AnomalyDetection, Severity
from finance_engine.models.records import ExpenseRecord


MIN_RECORDS = 20
MIN_CATEGORY_RECORDS = 5
LOOKBACK_DAYS = 30


def detect_anomalies(
    expenses: Sequence[ExpenseRecord],
    as_of: Optional[date] = None,
    min_records: int = MIN_RECORDS,
    min_category_records: int = MIN_CATEGORY_RECORDS,
    lookback_days: int = LOOKBACK_DAYS,
) -> list[AnomalyDetection]:
    """
    Outliers among the last `lookback_days` of expenses.

    Mean and population stddev come from each category's full history.
    Above mean + 2 sigma is medium severity, above mean + 3 sigma is high.
    Results are ordered high before medium.
    """
    expenses = list(expenses)
    if len(expenses) < min_records:
        return []
    as_of = resolve_as_of(as_of)

    anomalies = []
    for category, history in group_by_category(expenses).items():
        if len(history) < min_category_records:
            continue

        amounts = [e.amount for e in history]
        average = mean(amounts)
        sigma = pstdev(amounts)
        medium_bar = average + 2 * sigma
        high_bar = average + 3 * sigma

        for expense in trailing_window(history, as_of, lookback_days):
            if expense.amount <= medium_bar:
                continue
            if average > 0:
                above = (expense.amount / average * 100 - 100).quantize(
                    Decimal("1"), rounding=ROUND_HALF_UP
                )
                reason = (
                    f"This {category} expense is {above}% higher than "
                    f"your typical {category} spending."
                )
            else:
                reason = f"This {category} expense is unusual for {category}."
            anomalies.append(AnomalyDetection(
                expense=expense,
                reason=reason,
                severity=Severity.HIGH if expense.amount > high_bar else Severity.MEDIUM,
                comparison_value=average,
            ))

    anomalies.sort(key=lambda a: a.severity.rank, reverse=True)
    return anomalies
