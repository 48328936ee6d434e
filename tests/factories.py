"""
Record factories for tests.

Plain functions so tests can build records inline.
"""

from datetime import date, timedelta
from decimal import Decimal

from finance_engine.models.records import (
    ExpenseRecord,
    IncomeRecord,
    IncomeStatus,
    Recurrence,
)
from finance_engine.models.splits import Participant, SplitBill, SplitType


AS_OF = date(2024, 6, 20)


def expense(amount, category="Groceries", on=AS_OF, currency="USD", description="", recurring=False):
    return ExpenseRecord(
        amount=Decimal(str(amount)),
        currency=currency,
        category=category,
        expense_date=on,
        description=description,
        is_recurring=recurring,
    )


def income(amount, recurrence=Recurrence.MONTHLY, status=IncomeStatus.RECEIVED,
           on=AS_OF, currency="USD"):
    return IncomeRecord(
        amount=Decimal(str(amount)),
        currency=currency,
        recurrence=recurrence,
        status=status,
        income_date=on,
    )


def daily_expenses(count, amount=10, category="Groceries", end=AS_OF):
    """One expense per day for `count` days ending on `end`."""
    return [
        expense(amount, category=category, on=end - timedelta(days=offset))
        for offset in range(count)
    ]


def people(*ids):
    return [Participant(id=pid, name=pid.title()) for pid in ids]


def equal_bill(total, payer, participants, **kwargs):
    return SplitBill(
        description=kwargs.pop("description", "Dinner"),
        total_amount=Decimal(str(total)),
        payer_id=payer,
        participant_ids=tuple(participants),
        **kwargs,
    )


def custom_bill(total, payer, shares, **kwargs):
    return SplitBill(
        description=kwargs.pop("description", "Groceries"),
        total_amount=Decimal(str(total)),
        payer_id=payer,
        participant_ids=tuple(shares),
        split_type=SplitType.CUSTOM,
        custom_amounts={pid: Decimal(str(v)) for pid, v in shares.items()},
        **kwargs,
    )
