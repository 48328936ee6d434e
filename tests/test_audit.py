"""
Tests for the audit logger and the in-memory stores.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finance_engine.audit import AuditLogger, create_correlation_id
from finance_engine.budget import allocate_budget
from finance_engine.models.audit import AuditEventBuilder, AuditEventType
from finance_engine.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryExpenseLedger,
    InMemoryPlanStore,
    NotFoundError,
    PlanAlreadyExistsError,
)

from factories import expense


class FailingAuditStorage(AuditStorageInterface):
    """Audit store whose writes always fail."""

    async def append_event(self, event):
        raise ConnectionError("audit store unavailable")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_events_are_persisted(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        asyncio.run(logger.log_settlements_resolved(
            bill_count=3,
            settlement_count=2,
            currency="USD",
            correlation_id=correlation_id,
        ))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert len(events) == 1
        assert events[0].event_type == AuditEventType.SETTLEMENTS_RESOLVED
        assert events[0].details["settlement_count"] == 2

    def test_storage_failure_does_not_raise(self):
        """A broken audit store never breaks the flow that is logging."""
        logger = AuditLogger(FailingAuditStorage())
        event = AuditEventBuilder.system_error("Boom", "something broke")
        assert asyncio.run(logger.log(event)) is False

    def test_without_storage_logs_locally(self):
        logger = AuditLogger()
        event = AuditEventBuilder.insufficient_data(
            expense_count=3, required=10, correlation_id=uuid4()
        )
        assert asyncio.run(logger.log(event)) is True

    def test_recent_events_newest_first(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        async def scenario():
            await logger.log_error("First", "one")
            await logger.log_error("Second", "two")
            return await storage.get_recent_events(limit=1)

        recent = asyncio.run(scenario())
        assert len(recent) == 1
        assert recent[0].error_message == "two"


class TestInMemoryExpenseLedger:
    """Tests for the in-memory ledger."""

    def test_date_filtering(self):
        ledger = InMemoryExpenseLedger([
            expense(1, on=date(2024, 6, 1)),
            expense(2, on=date(2024, 6, 15)),
            expense(3, on=date(2024, 6, 30)),
        ])
        found = asyncio.run(ledger.list_expenses(date_from=date(2024, 6, 10), date_to=date(2024, 6, 20)))
        assert [e.amount for e in found] == [Decimal("2")]

    def test_duplicate_expense(self):
        record = expense(5)
        ledger = InMemoryExpenseLedger([record])
        with pytest.raises(DuplicateError):
            asyncio.run(ledger.add_expense(record))


class TestInMemoryPlanStore:
    """Tests for the plan history store."""

    def test_one_plan_per_month(self):
        store = InMemoryPlanStore()
        plan = allocate_budget("2024-06", Decimal("1000"))

        async def scenario():
            await store.create_plan(plan)
            await store.create_plan(allocate_budget("2024-06", Decimal("2000")))

        with pytest.raises(PlanAlreadyExistsError):
            asyncio.run(scenario())

    def test_stored_plans_are_isolated(self):
        """Changing a returned plan doesn't change what's stored."""
        store = InMemoryPlanStore()

        async def scenario():
            await store.create_plan(allocate_budget("2024-06", Decimal("1000")))
            fetched = await store.get_plan("2024-06")
            fetched.insights.clear()
            return await store.get_plan("2024-06")

        assert len(asyncio.run(scenario()).insights) == 1

    def test_save_requires_existing_month(self):
        store = InMemoryPlanStore()
        with pytest.raises(NotFoundError):
            asyncio.run(store.save_plan(allocate_budget("2024-06", Decimal("1000"))))

    def test_missing_month(self):
        assert asyncio.run(InMemoryPlanStore().get_plan("2024-01")) is None

    def test_list_months_sorted(self):
        store = InMemoryPlanStore()

        async def scenario():
            for month in ("2024-03", "2024-01", "2024-02"):
                await store.create_plan(allocate_budget(month, Decimal("10")))
            return await store.list_months()

        assert asyncio.run(scenario()) == ["2024-01", "2024-02", "2024-03"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
