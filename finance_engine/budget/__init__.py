"""Budget planning package."""

from finance_engine.budget.allocator import (
    allocate_budget,
    classify_status,
    log_transaction,
    set_category_plan,
)
from finance_engine.budget.daily import calculate_daily_budget

__all__ = [
    "allocate_budget",
    "calculate_daily_budget",
    "classify_status",
    "log_transaction",
    "set_category_plan",
]
