"""
Savings Opportunity Finder

Ranks categories by how much could reasonably be cut.
"""

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from finance_engine.analytics.stats import total, totals_by_category
from finance_engine.models.insights import Priority, SavingsOpportunity
from finance_engine.models.records import ExpenseRecord


MIN_RECORDS = 20
TOP_CATEGORIES = 5
MAX_OPPORTUNITIES = 5

HIGH_SHARE = Decimal("0.2")
HIGH_CUT = Decimal("0.15")
FREQUENT_COUNT = 15
FREQUENT_CUT = Decimal("0.2")
SUBSCRIPTION_CUT = Decimal("0.25")

SUBSCRIPTION_CATEGORIES = ("Entertainment", "Subscriptions", "Software", "Streaming")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _whole(value: Decimal) -> Decimal:
    return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def find_savings_opportunities(
    expenses: Sequence[ExpenseRecord],
    min_records: int = MIN_RECORDS,
    subscription_categories: Iterable[str] = SUBSCRIPTION_CATEGORIES,
) -> list[SavingsOpportunity]:
    """
    Up to five opportunities, in the order they were found.

    Top five categories by spend:
    - more than 20% of all spend -> high priority, cut 15%
    - more than 15 transactions averaging below the overall average
      transaction -> medium priority, cut 20%
    Then every watch-listed subscription category with any spend ->
    medium priority, cut 25%.
    """
    expenses = list(expenses)
    if len(expenses) < min_records:
        return []

    by_category = totals_by_category(expenses)
    counts = Counter(e.category for e in expenses)
    spent = total(expenses)
    if spent <= 0:
        return []
    average_transaction = spent / len(expenses)

    opportunities = []
    ranked = sorted(by_category.items(), key=lambda item: item[1], reverse=True)
    for category, amount in ranked[:TOP_CATEGORIES]:
        share = amount / spent
        count = counts[category]

        if share > HIGH_SHARE:
            saving = amount * HIGH_CUT
            opportunities.append(SavingsOpportunity(
                category=category,
                current_spending=amount,
                potential_saving=_cents(saving),
                recommendation=(
                    f"{category} is {_whole(share * 100)}% of your spending. "
                    f"Try reducing by 15% for {_whole(saving)} in savings."
                ),
                priority=Priority.HIGH,
            ))

        if count > FREQUENT_COUNT and amount / count < average_transaction:
            saving = amount * FREQUENT_CUT
            opportunities.append(SavingsOpportunity(
                category=category,
                current_spending=amount,
                potential_saving=_cents(saving),
                recommendation=(
                    f"You have {count} {category} transactions. Consider consolidating "
                    f"or reviewing subscriptions to save {_whole(saving)}."
                ),
                priority=Priority.MEDIUM,
            ))

    for category in subscription_categories:
        amount = by_category.get(category, Decimal("0"))
        if amount <= 0:
            continue
        saving = amount * SUBSCRIPTION_CUT
        opportunities.append(SavingsOpportunity(
            category=category,
            current_spending=amount,
            potential_saving=_cents(saving),
            recommendation=(
                f"Review your {category} subscriptions. You might have duplicates "
                f"or unused services. Potential saving: {_whole(saving)}."
            ),
            priority=Priority.MEDIUM,
        ))

    return opportunities[:MAX_OPPORTUNITIES]
