"""
Spending Pattern Detector

Finds behavioral skews in an expense history. Each check runs on its own
and any number of them may fire for the same history.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from finance_engine.analytics.stats import ZERO, mean, total, totals_by_category
from finance_engine.models.insights import PatternType, SpendingPattern
from finance_engine.models.records import ExpenseRecord


MIN_RECORDS = 10

SKEW_RATIO = Decimal("1.5")
CONCENTRATION_SHARE = Decimal("0.4")
FIRST_HALF_RATIO = Decimal("1.6")
LARGE_MULTIPLIER = Decimal("3")
LARGE_SHARE = Decimal("0.1")


def _whole(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def _weekday_weekend(expenses: Sequence[ExpenseRecord]) -> list[SpendingPattern]:
    weekday = [e.amount for e in expenses if e.expense_date.weekday() < 5]
    weekend = [e.amount for e in expenses if e.expense_date.weekday() >= 5]
    if not weekday or not weekend:
        return []

    avg_weekday = mean(weekday)
    avg_weekend = mean(weekend)
    data = {"weekday": avg_weekday, "weekend": avg_weekend}

    if avg_weekend > avg_weekday * SKEW_RATIO:
        if avg_weekday:
            excess = _whole(avg_weekend / avg_weekday * 100 - 100)
            lead = f"You spend {excess}% more on weekends."
        else:
            lead = "You spend far more on weekends."
        return [SpendingPattern(
            type=PatternType.WEEKEND,
            insight=f"{lead} Consider planning weekend activities on a budget.",
            confidence=0.85,
            data=data,
        )]
    if avg_weekday > avg_weekend * SKEW_RATIO:
        if avg_weekend:
            excess = _whole(avg_weekday / avg_weekend * 100 - 100)
            lead = f"You spend {excess}% more on weekdays."
        else:
            lead = "You spend far more on weekdays."
        return [SpendingPattern(
            type=PatternType.WEEKDAY,
            insight=f"{lead} Review your daily routine expenses.",
            confidence=0.85,
            data=data,
        )]
    return []


def _category_concentration(
    expenses: Sequence[ExpenseRecord],
    spent: Decimal,
) -> list[SpendingPattern]:
    by_category = totals_by_category(expenses)
    if not by_category or spent <= 0:
        return []
    category, amount = max(by_category.items(), key=lambda item: item[1])
    if amount <= spent * CONCENTRATION_SHARE:
        return []
    share = _whole(amount / spent * 100)
    return [SpendingPattern(
        type=PatternType.CATEGORY,
        insight=(
            f"{share}% of your spending is on {category}. "
            "Diversifying could improve your budget balance."
        ),
        confidence=0.9,
        data=by_category,
    )]


def _month_halves(expenses: Sequence[ExpenseRecord]) -> list[SpendingPattern]:
    first_half = total(e for e in expenses if e.expense_date.day <= 15)
    second_half = total(e for e in expenses if e.expense_date.day > 15)
    if first_half <= second_half * FIRST_HALF_RATIO:
        return []
    return [SpendingPattern(
        type=PatternType.TIME,
        insight=(
            "You spend significantly more in the first half of the month. "
            "Consider spreading expenses more evenly."
        ),
        confidence=0.8,
        data={"first_half": first_half, "second_half": second_half},
    )]


def _large_transactions(
    expenses: Sequence[ExpenseRecord],
    spent: Decimal,
) -> list[SpendingPattern]:
    threshold = spent / len(expenses) * LARGE_MULTIPLIER
    large = [e for e in expenses if e.amount > threshold]
    if len(large) <= len(expenses) * LARGE_SHARE:
        return []
    return [SpendingPattern(
        type=PatternType.AMOUNT,
        insight=(
            f"{len(large)} large transactions (>{_whole(threshold)}) detected. "
            "Planning these better could smooth your cashflow."
        ),
        confidence=0.75,
        data={"threshold": threshold, "count": Decimal(len(large))},
    )]


def detect_patterns(
    expenses: Sequence[ExpenseRecord],
    min_records: int = MIN_RECORDS,
) -> list[SpendingPattern]:
    """
    Run every pattern check over the history.

    Returns an empty list below min_records: not enough data yet is a
    normal outcome.
    """
    expenses = list(expenses)
    if len(expenses) < min_records:
        return []

    spent = total(expenses)
    patterns = []
    patterns.extend(_weekday_weekend(expenses))
    patterns.extend(_category_concentration(expenses, spent))
    patterns.extend(_month_halves(expenses))
    if spent > ZERO:
        patterns.extend(_large_transactions(expenses, spent))
    return patterns
