"""
Budget Bucket Allocator

Splits a month's income into NEEDS / WANTS / SAVINGS / DEBT buckets and
tracks planned vs. spent as transactions are logged.

DESIGN DECISION: Functions here never mutate the plan they are given.
Each call returns an updated deep copy, so a plan held by a caller (or
a store) only changes when the caller saves the new one.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from finance_engine.currency.normalizer import quantize_money
from finance_engine.models.budget import (
    BucketStatus,
    BucketType,
    BudgetBucket,
    BudgetInsight,
    BudgetPolicy,
    CategoryBudget,
    InsightType,
    MonthlyBudgetPlan,
    TransactionResult,
)
from finance_engine.models.records import ExpenseRecord


DEFAULT_NEAR_LIMIT_RATIO = Decimal("0.8")


def classify_status(
    spent: Decimal,
    planned: Decimal,
    near_limit_ratio: Decimal = DEFAULT_NEAR_LIMIT_RATIO,
) -> BucketStatus:
    """
    Bucket health from spent / planned.

    UNDER below the near-limit ratio, NEAR_LIMIT up to 100%, OVER from 100%.
    With nothing planned, any spending at all is OVER.
    """
    if planned <= 0:
        return BucketStatus.OVER if spent > 0 else BucketStatus.UNDER
    ratio = spent / planned
    if ratio >= 1:
        return BucketStatus.OVER
    if ratio >= near_limit_ratio:
        return BucketStatus.NEAR_LIMIT
    return BucketStatus.UNDER


def allocate_budget(
    month: str,
    total_income: Decimal,
    policy: Optional[BudgetPolicy] = None,
    base_currency: str = "USD",
) -> MonthlyBudgetPlan:
    """
    Create a month plan: planned[bucket] = income x policy percent.

    Args:
        month: YYYY-MM
        total_income: Income already expressed in base_currency
        policy: Bucket percentages (default 50/30/15/5)
        base_currency: Currency the plan is kept in

    Raises:
        ValueError: On negative income or a malformed month
    """
    if total_income < 0:
        raise ValueError("Total income cannot be negative")
    policy = policy or BudgetPolicy()

    buckets = {}
    for bucket_type in BucketType:
        planned = quantize_money(
            total_income * policy.percent_for(bucket_type) / 100, base_currency
        )
        buckets[bucket_type] = BudgetBucket(
            type=bucket_type,
            planned=planned,
            remaining=planned,
        )

    return MonthlyBudgetPlan(
        month=month,
        base_currency=base_currency,
        total_income=total_income,
        policy=policy,
        buckets=buckets,
        insights=[
            BudgetInsight(
                type=InsightType.SUCCESS,
                message=f"Budget plan created for {month} ({policy.describe()})",
            )
        ],
    )


def set_category_plan(
    plan: MonthlyBudgetPlan,
    bucket: BucketType,
    category: str,
    planned: Decimal,
    near_limit_ratio: Decimal = DEFAULT_NEAR_LIMIT_RATIO,
) -> MonthlyBudgetPlan:
    """Set the planned amount of one sub-category; returns a new plan."""
    if planned < 0:
        raise ValueError("Planned amount cannot be negative")

    updated = plan.model_copy(deep=True)
    bucket_data = updated.bucket(bucket)
    entry = bucket_data.categories.get(category) or CategoryBudget(name=category)
    entry.planned = planned
    entry.status = classify_status(entry.spent, planned, near_limit_ratio)
    bucket_data.categories[category] = entry
    updated.updated_at = datetime.utcnow()
    return updated


def _bucket_insight(bucket: BudgetBucket, currency: str) -> Optional[BudgetInsight]:
    if bucket.status == BucketStatus.OVER:
        over_by = abs(bucket.remaining).quantize(Decimal("0.01"))
        return BudgetInsight(
            type=InsightType.ALERT,
            message=f"{bucket.type.value} bucket is over budget by {over_by} {currency}",
            bucket=bucket.type,
        )
    if bucket.status == BucketStatus.NEAR_LIMIT:
        percent = bucket.percent_used.quantize(Decimal("1"))
        return BudgetInsight(
            type=InsightType.WARNING,
            message=f"{bucket.type.value} bucket is at {percent}% - approaching limit",
            bucket=bucket.type,
        )
    return None


def _default_spend_date(month: str) -> date:
    """Today when it falls in the plan's month, else the month's first day."""
    today = date.today()
    if today.strftime("%Y-%m") == month:
        return today
    year, month_number = (int(part) for part in month.split("-"))
    return date(year, month_number, 1)


def log_transaction(
    plan: MonthlyBudgetPlan,
    bucket: BucketType,
    category: str,
    amount: Decimal,
    currency: str,
    description: Optional[str] = None,
    on: Optional[date] = None,
    near_limit_ratio: Decimal = DEFAULT_NEAR_LIMIT_RATIO,
) -> TransactionResult:
    """
    Record spending against a bucket and sub-category.

    The amount must already be in the plan's base currency. Unseen
    sub-categories are created with planned = 0. NEEDS and WANTS
    transactions also yield an ExpenseRecord for the expense ledger;
    SAVINGS and DEBT are transfers and are not mirrored. Without `on`, the
    mirrored expense is dated today if today is in the plan month, else on
    the first of that month.

    Raises:
        ValueError: On a negative amount or a currency other than the plan's
    """
    if amount < 0:
        raise ValueError("Transaction amount cannot be negative")
    if currency.upper() != plan.base_currency:
        raise ValueError(
            f"Transaction in {currency} must be converted to {plan.base_currency} first"
        )
    category = category.strip()
    if not category:
        raise ValueError("Category is required")

    updated = plan.model_copy(deep=True)
    bucket_data = updated.bucket(bucket)

    bucket_data.spent += amount
    bucket_data.remaining = bucket_data.planned - bucket_data.spent
    bucket_data.status = classify_status(
        bucket_data.spent, bucket_data.planned, near_limit_ratio
    )

    entry = bucket_data.categories.get(category) or CategoryBudget(name=category)
    entry.spent += amount
    entry.status = classify_status(entry.spent, entry.planned, near_limit_ratio)
    bucket_data.categories[category] = entry

    new_insights = []
    insight = _bucket_insight(bucket_data, updated.base_currency)
    if insight:
        new_insights.append(insight)
        updated.insights.append(insight)
    updated.updated_at = datetime.utcnow()

    mirrored = None
    if bucket.is_consumption:
        mirrored = ExpenseRecord(
            amount=amount,
            currency=updated.base_currency,
            category=category,
            expense_date=on or _default_spend_date(updated.month),
            description=description or f"{bucket.value} - {category}",
        )

    return TransactionResult(
        plan=updated,
        mirrored_expense=mirrored,
        new_insights=new_insights,
    )
