"""
In-Memory Storage

Dict/list backed implementations of the storage interfaces. Used by the
tests and by hosts that keep their data elsewhere and only need the engine
for one session.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from finance_engine.models.audit import AuditEvent
from finance_engine.models.budget import MonthlyBudgetPlan
from finance_engine.models.records import ExpenseRecord, IncomeRecord
from finance_engine.services.storage.interface import (
    AuditStorageInterface,
    BudgetPlanStoreInterface,
    DuplicateError,
    ExpenseLedgerInterface,
    NotFoundError,
    PlanAlreadyExistsError,
)


class InMemoryExpenseLedger(ExpenseLedgerInterface):
    """Expense and income records held in insertion order."""

    def __init__(
        self,
        expenses: Optional[list[ExpenseRecord]] = None,
        incomes: Optional[list[IncomeRecord]] = None,
    ):
        self._expenses: dict[UUID, ExpenseRecord] = {
            expense.id: expense for expense in (expenses or [])
        }
        self._incomes: list[IncomeRecord] = list(incomes or [])

    async def add_expense(self, expense: ExpenseRecord) -> bool:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense {expense.id} already recorded")
        self._expenses[expense.id] = expense
        return True

    async def add_income(self, income: IncomeRecord) -> bool:
        self._incomes.append(income)
        return True

    async def list_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        result = []
        for expense in self._expenses.values():
            if date_from and expense.expense_date < date_from:
                continue
            if date_to and expense.expense_date > date_to:
                continue
            result.append(expense)
        return result

    async def list_incomes(self) -> list[IncomeRecord]:
        return list(self._incomes)


class InMemoryPlanStore(BudgetPlanStoreInterface):
    """Month plans keyed by YYYY-MM. Stored copies are isolated from callers."""

    def __init__(self):
        self._plans: dict[str, MonthlyBudgetPlan] = {}

    async def create_plan(self, plan: MonthlyBudgetPlan) -> bool:
        if plan.month in self._plans:
            raise PlanAlreadyExistsError(f"A plan for {plan.month} already exists")
        self._plans[plan.month] = plan.model_copy(deep=True)
        return True

    async def get_plan(self, month: str) -> Optional[MonthlyBudgetPlan]:
        plan = self._plans.get(month)
        return plan.model_copy(deep=True) if plan else None

    async def save_plan(self, plan: MonthlyBudgetPlan) -> bool:
        if plan.month not in self._plans:
            raise NotFoundError(f"No plan for {plan.month}")
        self._plans[plan.month] = plan.model_copy(deep=True)
        return True

    async def list_months(self) -> list[str]:
        return sorted(self._plans)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)
