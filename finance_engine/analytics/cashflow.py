"""
Cashflow Forecaster

Projects the running balance forward day by day from the recent burn
rate and expected monthly income. Also derives the two inputs it needs
(current balance and expected monthly income) from income records.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from finance_engine.analytics.stats import ZERO, resolve_as_of, total, trailing_window
from finance_engine.models.insights import CashflowForecast
from finance_engine.models.records import (
    ExpenseRecord,
    IncomeRecord,
    IncomeStatus,
    Money,
    Recurrence,
)


MIN_RECORDS = 30
LOOKBACK_DAYS = 30
FORECAST_DAYS = 30
RUNWAY_DAYS = 7

DEFICIT_WARNING = "⚠️ Predicted deficit - consider reducing spending"
LOW_BALANCE_WARNING = "⚡ Low balance warning - less than 1 week of expenses"

# Multiplier from one occurrence to a monthly equivalent
MONTHLY_FACTOR = {
    Recurrence.WEEKLY: Decimal(52) / Decimal(12),
    Recurrence.BIWEEKLY: Decimal(26) / Decimal(12),
    Recurrence.MONTHLY: Decimal(1),
    Recurrence.QUARTERLY: Decimal(1) / Decimal(3),
    Recurrence.YEARLY: Decimal(1) / Decimal(12),
}


def expected_monthly_income(incomes: Iterable[IncomeRecord]) -> Decimal:
    """Monthly equivalent of all recurring incomes; one-time income is ignored."""
    monthly = ZERO
    for income in incomes:
        factor = MONTHLY_FACTOR.get(income.recurrence)
        if factor is not None:
            monthly += income.amount * factor
    return monthly.quantize(Decimal("0.01"))


def current_balance(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
) -> Decimal:
    """Received income minus every recorded expense."""
    received = sum(
        (i.amount for i in incomes if i.status == IncomeStatus.RECEIVED), ZERO
    )
    return received - total(expenses)


def _amount(value: Union[Decimal, Money]) -> Decimal:
    return value.amount if isinstance(value, Money) else value


def forecast_cashflow(
    expenses: Sequence[ExpenseRecord],
    current: Union[Decimal, Money],
    expected_income: Union[Decimal, Money],
    as_of: Optional[date] = None,
    min_records: int = MIN_RECORDS,
    lookback_days: int = LOOKBACK_DAYS,
    forecast_days: int = FORECAST_DAYS,
) -> list[CashflowForecast]:
    """
    Daily balance for the days after as_of.

    Average daily spend is the trailing-window total divided by the window
    length. Income lands only on the first 1st-of-month in the forecast.
    A day below zero is flagged as a deficit; a day below a week of average
    spend is flagged as low balance. Both can apply to the same day.
    """
    expenses = list(expenses)
    if len(expenses) < min_records:
        return []
    as_of = resolve_as_of(as_of)
    income_amount = _amount(expected_income)

    daily_spend = total(trailing_window(expenses, as_of, lookback_days)) / lookback_days
    runway = daily_spend * RUNWAY_DAYS

    balance = _amount(current)
    income_paid = False
    forecast = []
    for offset in range(1, forecast_days + 1):
        day = as_of + timedelta(days=offset)
        income = ZERO
        if day.day == 1 and not income_paid:
            income = income_amount
            income_paid = True

        balance = balance + income - daily_spend

        warnings = []
        if balance < 0:
            warnings.append(DEFICIT_WARNING)
        if balance < runway:
            warnings.append(LOW_BALANCE_WARNING)

        forecast.append(CashflowForecast(
            forecast_date=day,
            predicted_balance=balance.quantize(Decimal("0.01")),
            income=income,
            expenses=daily_spend.quantize(Decimal("0.01")),
            warnings=warnings,
        ))

    return forecast
