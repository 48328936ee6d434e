"""
Recurring expense detection.

Groups expenses that look like the same charge (same normalized
description, category and currency) and checks whether they arrive on a
steady schedule with a steady amount.
"""

import calendar
import re
from collections import Counter
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from finance_engine.analytics.stats import mean, pstdev, resolve_as_of
from finance_engine.models.insights import Frequency, RecurringSuggestion
from finance_engine.models.records import ExpenseRecord


MIN_RECORDS = 5
MAX_AMOUNT_VARIANCE_PCT = Decimal("15")
MIN_CONFIDENCE = 0.5
INACTIVE_FACTOR = Decimal("2.5")

# Mean interval in days, inclusive bounds
FREQUENCY_RANGES = {
    Frequency.WEEKLY: (5, 9),
    Frequency.BIWEEKLY: (12, 17),
    Frequency.MONTHLY: (26, 35),
    Frequency.QUARTERLY: (80, 100),
    Frequency.YEARLY: (350, 400),
}

MIN_OCCURRENCES = {
    Frequency.WEEKLY: 4,
    Frequency.BIWEEKLY: 3,
    Frequency.MONTHLY: 3,
    Frequency.QUARTERLY: 2,
    Frequency.YEARLY: 2,
}

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_description(description: str) -> str:
    """lower-case, punctuation removed, whitespace collapsed, 50 chars max."""
    text = _PUNCTUATION.sub("", description.lower())
    return _WHITESPACE.sub(" ", text).strip()[:50]


def recurrence_key(expense: ExpenseRecord) -> str:
    return f"{normalize_description(expense.description)}|{expense.category}|{expense.currency}"


def classify_frequency(mean_interval: Decimal) -> Optional[Frequency]:
    for frequency, (low, high) in FREQUENCY_RANGES.items():
        if low <= mean_interval <= high:
            return frequency
    return None


def _add_months(start: date, months: int, day: Optional[int] = None) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day or start.day, last_day))


def next_expected_date(
    last: date,
    frequency: Frequency,
    day_of_month: Optional[int] = None,
) -> date:
    """Next occurrence after `last`; month arithmetic clamps to month end."""
    if frequency == Frequency.WEEKLY:
        return last + timedelta(days=7)
    if frequency == Frequency.BIWEEKLY:
        return last + timedelta(days=14)
    if frequency == Frequency.MONTHLY:
        return _add_months(last, 1, day_of_month)
    if frequency == Frequency.QUARTERLY:
        return _add_months(last, 3)
    return _add_months(last, 12)


def _analyze_group(
    key: str,
    group: list[ExpenseRecord],
    as_of: date,
) -> Optional[RecurringSuggestion]:
    group = sorted(group, key=lambda e: e.expense_date)
    if len(group) < 2:
        return None

    amounts = [e.amount for e in group]
    avg_amount = mean(amounts)
    variance_pct = pstdev(amounts) / avg_amount * 100 if avg_amount > 0 else Decimal("0")
    if variance_pct > MAX_AMOUNT_VARIANCE_PCT:
        return None

    intervals = [
        Decimal((later.expense_date - earlier.expense_date).days)
        for earlier, later in zip(group, group[1:])
    ]
    mean_interval = mean(intervals)
    frequency = classify_frequency(mean_interval)
    if frequency is None:
        return None
    min_occurrences = MIN_OCCURRENCES[frequency]
    if len(group) < min_occurrences:
        return None

    consistency = max(0.0, 1 - float(pstdev(intervals) / mean_interval))
    occurrence = min(1.0, len(group) / (min_occurrences * 2))
    amount_consistency = max(0.0, 1 - float(variance_pct) / 100)
    confidence = consistency * 0.5 + occurrence * 0.3 + amount_consistency * 0.2
    if confidence < MIN_CONFIDENCE:
        return None

    last = group[-1]
    days_since_last = abs((as_of - last.expense_date).days)
    if days_since_last > mean_interval * INACTIVE_FACTOR:
        return None

    day_of_month = None
    day_of_week = None
    if frequency == Frequency.MONTHLY:
        day_of_month = int(
            mean([Decimal(e.expense_date.day) for e in group]).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            )
        )
    elif frequency == Frequency.WEEKLY:
        day_of_week = Counter(e.expense_date.weekday() for e in group).most_common(1)[0][0]

    return RecurringSuggestion(
        normalized_key=key,
        description=last.description,
        category=last.category,
        currency=last.currency,
        avg_amount=avg_amount.quantize(Decimal("0.01")),
        min_amount=min(amounts),
        max_amount=max(amounts),
        frequency=frequency,
        occurrences=len(group),
        confidence=round(confidence, 2),
        last_date=last.expense_date,
        next_expected=next_expected_date(last.expense_date, frequency, day_of_month),
        day_of_month=day_of_month,
        day_of_week=day_of_week,
        amount_variance_pct=round(float(variance_pct), 1),
        matching_expense_ids=[e.id for e in group],
    )


def detect_recurring_patterns(
    expenses: Sequence[ExpenseRecord],
    as_of: Optional[date] = None,
    existing_keys: Iterable[str] = (),
    min_records: int = MIN_RECORDS,
) -> list[RecurringSuggestion]:
    """
    Suggest recurring charges hidden in the history, most confident first.

    Keys in existing_keys (already accepted suggestions) are skipped.
    """
    expenses = list(expenses)
    if len(expenses) < min_records:
        return []
    as_of = resolve_as_of(as_of)
    skip = set(existing_keys)

    groups: dict[str, list[ExpenseRecord]] = {}
    for expense in expenses:
        groups.setdefault(recurrence_key(expense), []).append(expense)

    suggestions = []
    for key, group in groups.items():
        if key in skip:
            continue
        suggestion = _analyze_group(key, group, as_of)
        if suggestion:
            suggestions.append(suggestion)

    suggestions.sort(key=lambda s: s.confidence, reverse=True)
    return suggestions
