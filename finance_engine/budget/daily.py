"""
Daily discretionary budget.

What can be spent today once fixed costs and the savings target are
taken out of recurring income.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from finance_engine.currency.normalizer import quantize_money
from finance_engine.models.budget import DailyBudget
from finance_engine.models.records import (
    ExpenseRecord,
    IncomeRecord,
    IncomeStatus,
    Recurrence,
)


def calculate_daily_budget(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    on: Optional[date] = None,
    currency: str = "USD",
    savings_rate: Decimal = Decimal("0.20"),
) -> DailyBudget:
    """
    Daily budget for the day `on` (default today).

    Records must already be in `currency`.

    monthly income   = received, recurring incomes
    fixed costs      = recurring expenses
    discretionary    = income - fixed - income x savings_rate
    daily budget     = discretionary / days in month (0 if not positive)
    spent            = today's non-recurring expenses
    """
    on = on or date.today()
    expenses = list(expenses)
    days_in_month = calendar.monthrange(on.year, on.month)[1]

    monthly_income = sum(
        (
            i.amount for i in incomes
            if i.recurrence != Recurrence.ONE_TIME and i.status == IncomeStatus.RECEIVED
        ),
        Decimal("0"),
    )
    fixed_costs = sum((e.amount for e in expenses if e.is_recurring), Decimal("0"))
    savings_target = monthly_income * savings_rate

    discretionary = monthly_income - fixed_costs - savings_target
    daily_budget = discretionary / days_in_month if discretionary > 0 else Decimal("0")

    spent = sum(
        (e.amount for e in expenses if e.expense_date == on and not e.is_recurring),
        Decimal("0"),
    )

    percent_used = Decimal("0")
    if daily_budget > 0:
        percent_used = min(spent / daily_budget * 100, Decimal("100"))

    daily_budget = quantize_money(daily_budget, currency)
    return DailyBudget(
        on=on,
        currency=currency,
        daily_budget=daily_budget,
        spent=spent,
        remaining=daily_budget - spent,
        percent_used=percent_used.quantize(Decimal("0.01")),
    )
