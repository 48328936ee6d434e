"""
Integration tests for the orchestrated flows.

Flows run against the in-memory stores and a static rate table.
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal

from finance_engine.audit import AuditLogger, create_correlation_id
from finance_engine.currency import CurrencyError, CurrencyNormalizer, RateLookupError, StaticRateTable
from finance_engine.models.audit import AuditEventType
from finance_engine.models.budget import BucketStatus, BucketType
from finance_engine.models.records import Money
from finance_engine.orchestrator import (
    BudgetFlow,
    InsightReportFlow,
    SettlementFlow,
    create_app_components,
)
from finance_engine.services.storage import (
    InMemoryAuditStorage,
    InMemoryExpenseLedger,
    InMemoryPlanStore,
    NotFoundError,
    PlanAlreadyExistsError,
)

from factories import AS_OF, custom_bill, daily_expenses, equal_bill, income, people


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def normalizer():
    return CurrencyNormalizer(StaticRateTable())


def event_types(storage):
    return [event.event_type for event in storage.events]


class TestSettlementFlow:
    """Tests for the settle-up flow."""

    def test_settle_up(self, audit_logger, audit_storage):
        """Rejected and settled bills are excluded, drifted ones corrected."""
        shared = equal_bill(90, "a", ["a", "b", "c"])
        bad_custom = custom_bill(100, "b", {"a": 40, "b": 40})
        drifted = equal_bill(60, "b", ["b", "c"],
                             custom_amounts={"b": Decimal("20"), "c": Decimal("20")})
        settled = equal_bill(500, "c", ["a", "c"], settled=True)

        flow = SettlementFlow(audit_logger=audit_logger)
        correlation_id = create_correlation_id()
        report = asyncio.run(flow.settle_up(
            [shared, bad_custom, drifted, settled],
            people("a", "b", "c"),
            correlation_id=correlation_id,
        ))

        assert report.currency == "USD"
        assert report.excluded_bill_ids == [bad_custom.id, settled.id]
        assert report.corrected_bill_ids == [drifted.id]
        assert [(s.from_participant, s.to_participant, s.amount) for s in report.settlements] == [
            ("c", "a", Decimal("60.00")),
        ]
        nets = {b.participant_id: b.net for b in report.balances}
        assert nets == {"a": Decimal("60.00"), "b": Decimal("0.00"), "c": Decimal("-60.00")}

        events = asyncio.run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [
            AuditEventType.BILL_REJECTED,
            AuditEventType.BILL_CORRECTED,
            AuditEventType.SETTLEMENTS_RESOLVED,
        ]
        assert events[-1].details["bill_count"] == 2

    def test_foreign_bills_are_converted(self, normalizer):
        flow = SettlementFlow(normalizer=normalizer)
        bill = equal_bill(85, "a", ["a", "b"], currency="EUR")
        report = asyncio.run(flow.settle_up([bill], people("a", "b")))
        assert [(s.from_participant, s.amount) for s in report.settlements] == [
            ("b", Decimal("50.00")),
        ]

    def test_converted_custom_split_stays_balanced(self):
        """Per-share rounding across ten shares never leaves money unsettled."""
        ids = [f"p{i}" for i in range(10)]
        bill = custom_bill(10, "p0", {pid: 1 for pid in ids}, currency="EUR")
        flow = SettlementFlow(
            normalizer=CurrencyNormalizer(StaticRateTable({"USD": "1.005", "EUR": "1"}))
        )

        report = asyncio.run(flow.settle_up([bill], people(*ids), currency="USD"))

        nets = {b.participant_id: b.net for b in report.balances}
        assert sum(nets.values()) == Decimal("0")
        assert nets["p0"] == Decimal("9.09")
        assert [(s.from_participant, s.amount) for s in report.settlements] == [
            (pid, Decimal("1.01")) for pid in ids[1:]
        ]

    def test_foreign_bill_without_rates(self):
        flow = SettlementFlow()
        bill = equal_bill(85, "a", ["a", "b"], currency="EUR")
        with pytest.raises(CurrencyError):
            asyncio.run(flow.settle_up([bill], people("a", "b")))

    def test_failed_rate_is_audited(self, normalizer, audit_logger, audit_storage):
        flow = SettlementFlow(normalizer=normalizer, audit_logger=audit_logger)
        bill = equal_bill(85, "a", ["a", "b"], currency="XYZ")
        with pytest.raises(RateLookupError):
            asyncio.run(flow.settle_up([bill], people("a", "b")))
        assert AuditEventType.RATE_LOOKUP_FAILED in event_types(audit_storage)

    def test_nothing_to_settle(self):
        report = asyncio.run(SettlementFlow().settle_up([], people("a", "b")))
        assert report.is_settled_up
        assert all(b.net == 0 for b in report.balances)


class TestBudgetFlow:
    """Tests for the monthly budget flow."""

    @pytest.fixture
    def ledger(self):
        return InMemoryExpenseLedger(incomes=[income(3000, on=date(2024, 6, 1))])

    @pytest.fixture
    def flow(self, ledger, normalizer, audit_logger):
        return BudgetFlow(
            plan_store=InMemoryPlanStore(),
            ledger=ledger,
            normalizer=normalizer,
            audit_logger=audit_logger,
        )

    def test_plan_created_once_per_month(self, flow):
        async def scenario():
            await flow.create_plan("2024-06", Money(amount=Decimal("5000")))
            await flow.create_plan("2024-06", Money(amount=Decimal("9000")))

        with pytest.raises(PlanAlreadyExistsError):
            asyncio.run(scenario())

    def test_income_is_converted(self, flow):
        plan = asyncio.run(flow.create_plan("2024-07", Money(amount=Decimal("850"), currency="EUR")))
        assert plan.base_currency == "USD"
        assert plan.total_income == Decimal("1000.00")
        assert plan.bucket(BucketType.NEEDS).planned == Decimal("500.00")

    def test_log_transaction_end_to_end(self, flow, ledger, audit_storage):
        """Spending updates the stored plan, lands in the ledger and is audited."""
        async def scenario():
            await flow.create_plan("2024-06", Money(amount=Decimal("5000")))
            result = await flow.log_transaction(
                "2024-06", BucketType.NEEDS, "Rent", Money(amount=Decimal("2600")),
                on=date(2024, 6, 2),
            )
            stored = await flow.get_plan("2024-06")
            expenses = await ledger.list_expenses()
            return result, stored, expenses

        result, stored, expenses = asyncio.run(scenario())

        assert stored.bucket(BucketType.NEEDS).status == BucketStatus.OVER
        assert stored.bucket(BucketType.NEEDS).spent == Decimal("2600")
        assert [e.id for e in expenses] == [result.mirrored_expense.id]
        assert expenses[0].description == "NEEDS - Rent"

        types = event_types(audit_storage)
        assert types == [
            AuditEventType.PLAN_CREATED,
            AuditEventType.EXPENSE_MIRRORED,
            AuditEventType.TRANSACTION_LOGGED,
            AuditEventType.BUDGET_ALERT_RAISED,
        ]

    def test_savings_are_not_mirrored(self, flow, ledger):
        async def scenario():
            await flow.create_plan("2024-06", Money(amount=Decimal("5000")))
            await flow.log_transaction(
                "2024-06", BucketType.SAVINGS, "Emergency fund", Money(amount=Decimal("300"))
            )
            return await ledger.list_expenses()

        assert asyncio.run(scenario()) == []

    def test_foreign_transaction_converted_to_plan_currency(self, flow):
        async def scenario():
            await flow.create_plan("2024-06", Money(amount=Decimal("5000")))
            return await flow.log_transaction(
                "2024-06", BucketType.WANTS, "Dining", Money(amount=Decimal("85"), currency="EUR")
            )

        result = asyncio.run(scenario())
        assert result.plan.bucket(BucketType.WANTS).spent == Decimal("100.00")

    def test_transaction_without_plan(self, flow):
        with pytest.raises(NotFoundError):
            asyncio.run(flow.log_transaction(
                "2024-01", BucketType.NEEDS, "Rent", Money(amount=Decimal("10"))
            ))

    def test_set_category_plan_is_saved(self, flow):
        async def scenario():
            await flow.create_plan("2024-06", Money(amount=Decimal("5000")))
            await flow.set_category_plan("2024-06", BucketType.WANTS, "Dining", Decimal("200"))
            return await flow.get_plan("2024-06")

        plan = asyncio.run(scenario())
        assert plan.bucket(BucketType.WANTS).categories["Dining"].planned == Decimal("200")

    def test_daily_budget_reads_the_ledger(self, flow):
        """(3000 - 20% savings) / 30 days with nothing fixed = 80 a day."""
        daily = asyncio.run(flow.daily_budget(on=date(2024, 6, 10)))
        assert daily.daily_budget == Decimal("80.00")
        assert daily.spent == 0


class TestInsightReportFlow:
    """Tests for the combined insight report."""

    def test_empty_ledger_is_not_an_error(self, audit_logger, audit_storage):
        """No data gives empty sections plus an insufficient-data audit event."""
        flow = InsightReportFlow(ledger=InMemoryExpenseLedger(), audit_logger=audit_logger)
        report = asyncio.run(flow.generate_report(as_of=AS_OF))

        assert not report.has_insights
        assert report.expense_count == 0
        assert event_types(audit_storage) == [
            AuditEventType.INSUFFICIENT_DATA,
            AuditEventType.INSIGHTS_GENERATED,
        ]

    def test_full_report(self, audit_logger, audit_storage):
        ledger = InMemoryExpenseLedger(
            expenses=daily_expenses(30, amount=10),
            incomes=[income(3000, on=date(2024, 6, 1))],
        )
        flow = InsightReportFlow(ledger=ledger, audit_logger=audit_logger)
        report = asyncio.run(flow.generate_report(as_of=AS_OF))

        assert report.expense_count == 30
        assert len(report.forecast) == 30
        assert report.forecast[0].predicted_balance == Decimal("2690.00")
        assert report.prediction is not None
        assert report.prediction.month == "2024-07"
        assert event_types(audit_storage) == [AuditEventType.INSIGHTS_GENERATED]
        assert audit_storage.events[0].details["forecast_days"] == 30

    def test_snapshot_can_be_passed_in(self, normalizer):
        """An explicit snapshot is normalized without touching a ledger."""
        flow = InsightReportFlow(normalizer=normalizer)
        expenses = daily_expenses(10, amount=Decimal("8.50"))
        expenses = [e.model_copy(update={"currency": "EUR"}) for e in expenses]

        report = asyncio.run(flow.generate_report(as_of=AS_OF, expenses=expenses, incomes=[]))
        assert report.currency == "USD"
        assert report.expense_count == 10
        assert report.patterns != []

    def test_no_ledger_and_no_snapshot(self):
        with pytest.raises(NotFoundError):
            asyncio.run(InsightReportFlow().generate_report(as_of=AS_OF))


class TestCreateAppComponents:
    def test_components_share_the_ledger(self):
        ledger = InMemoryExpenseLedger()
        settlement_flow, budget_flow, insight_flow, audit_logger = create_app_components(
            rate_lookup=StaticRateTable(), ledger=ledger
        )

        async def scenario():
            await budget_flow.create_plan("2024-06", Money(amount=Decimal("1000")))
            await budget_flow.log_transaction(
                "2024-06", BucketType.WANTS, "Games", Money(amount=Decimal("20")), on=AS_OF
            )
            return await insight_flow.generate_report(as_of=AS_OF)

        report = asyncio.run(scenario())
        assert report.expense_count == 1
        assert isinstance(audit_logger, AuditLogger)
        assert isinstance(settlement_flow, SettlementFlow)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
