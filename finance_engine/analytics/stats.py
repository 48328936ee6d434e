"""
Shared statistics helpers for the analytics.

Everything stays in Decimal; standard deviations are population (divide
by n), matching how a fixed history is described rather than sampled.
"""

import statistics
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from finance_engine.models.records import ExpenseRecord, month_key


ZERO = Decimal("0")


def mean(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean; 0 for an empty sequence."""
    if not values:
        return ZERO
    return statistics.mean(values)


def pstdev(values: Sequence[Decimal]) -> Decimal:
    """Population standard deviation; 0 for fewer than two values."""
    if len(values) < 2:
        return ZERO
    return statistics.pstdev(values)


def coefficient_of_variation(values: Sequence[Decimal]) -> Decimal:
    """pstdev / mean, treated as 0 when the mean is 0."""
    average = mean(values)
    if average == 0:
        return ZERO
    return pstdev(values) / average


def total(expenses: Iterable[ExpenseRecord]) -> Decimal:
    return sum((e.amount for e in expenses), ZERO)


def totals_by_category(expenses: Iterable[ExpenseRecord]) -> dict[str, Decimal]:
    """Category totals in first-seen order."""
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
    return totals


def group_by_category(expenses: Iterable[ExpenseRecord]) -> dict[str, list[ExpenseRecord]]:
    groups: dict[str, list[ExpenseRecord]] = defaultdict(list)
    for expense in expenses:
        groups[expense.category].append(expense)
    return dict(groups)


def monthly_totals(expenses: Iterable[ExpenseRecord]) -> list[tuple[str, Decimal]]:
    """(YYYY-MM, total) pairs sorted by month."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        totals[month_key(expense.expense_date)] += expense.amount
    return sorted(totals.items())


def trailing_window(
    expenses: Iterable[ExpenseRecord],
    as_of: date,
    days: int = 30,
) -> list[ExpenseRecord]:
    """Expenses dated on or after as_of - days."""
    start = as_of - timedelta(days=days)
    return [e for e in expenses if e.expense_date >= start]


def resolve_as_of(as_of: Optional[date]) -> date:
    return as_of or date.today()
