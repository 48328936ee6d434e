"""
Abstract Storage Interface

DESIGN DECISION: The engine never owns persistence. The expense ledger, the
plan history and the audit log are external collaborators reached through
these interfaces. This allows us to:
1. Plug in whatever store the host application uses
2. Use in-memory storage for testing
3. Keep the computational core decoupled from storage

The interface is intentionally simple - just the operations the flows need.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from finance_engine.models.audit import AuditEvent
from finance_engine.models.budget import MonthlyBudgetPlan
from finance_engine.models.records import ExpenseRecord, IncomeRecord


class ExpenseLedgerInterface(ABC):
    """
    The general expense/income ledger.

    Budget transactions tagged NEEDS or WANTS are mirrored into it so the
    expense analytics see budget-sourced spending too.
    """

    @abstractmethod
    async def add_expense(self, expense: ExpenseRecord) -> bool:
        """
        Append an expense record.

        Raises:
            DuplicateError: If an expense with the same id exists
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        """
        List expenses, optionally restricted to a date range (inclusive).

        Returns a snapshot; later writes do not alter the returned list.
        """
        pass

    @abstractmethod
    async def list_incomes(self) -> list[IncomeRecord]:
        """List all income records."""
        pass


class BudgetPlanStoreInterface(ABC):
    """
    Month-keyed plan history.

    Plans are created once per month and never deleted.
    """

    @abstractmethod
    async def create_plan(self, plan: MonthlyBudgetPlan) -> bool:
        """
        Store a new month plan.

        Raises:
            PlanAlreadyExistsError: If the month already has a plan
        """
        pass

    @abstractmethod
    async def get_plan(self, month: str) -> Optional[MonthlyBudgetPlan]:
        """Get the plan for a month (YYYY-MM), or None."""
        pass

    @abstractmethod
    async def save_plan(self, plan: MonthlyBudgetPlan) -> bool:
        """
        Replace the stored plan for plan.month.

        Raises:
            NotFoundError: If the month has no plan yet
        """
        pass

    @abstractmethod
    async def list_months(self) -> list[str]:
        """All months with a plan, oldest first."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one settle-up run).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class PlanAlreadyExistsError(DuplicateError):
    """A budget plan already exists for the requested month."""
    pass
