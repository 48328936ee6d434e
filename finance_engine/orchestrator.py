"""
Main Orchestrator for the Finance Engine

This module ties together all the components and defines the
end-to-end flows for:
1. Settle up (bills -> validate -> normalize -> resolve)
2. Budget (create month plan -> log transactions -> mirror to ledger)
3. Insight report (snapshot -> normalize -> all analytics in parallel)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Bills are validated before the resolver sees them
- Everything is in one currency before any arithmetic
- Month plans are created once and never recomputed
- Every step is audited

The computational components stay pure; reading settings, talking to
collaborators and logging all happen here.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union
from uuid import UUID

from finance_engine.analytics import (
    current_balance,
    detect_anomalies,
    detect_patterns,
    detect_recurring_patterns,
    expected_monthly_income,
    find_savings_opportunities,
    forecast_cashflow,
    predict_next_month,
)
from finance_engine.audit import AuditLogger, configure_logging, create_correlation_id
from finance_engine.budget import (
    allocate_budget,
    calculate_daily_budget,
    log_transaction,
    set_category_plan,
)
from finance_engine.config import get_settings
from finance_engine.currency import (
    CurrencyError,
    CurrencyNormalizer,
    RateLookup,
    RateLookupError,
)
from finance_engine.models.budget import (
    BucketType,
    BudgetPolicy,
    DailyBudget,
    MonthlyBudgetPlan,
    TransactionResult,
)
from finance_engine.models.insights import InsightReport
from finance_engine.models.records import ExpenseRecord, IncomeRecord, Money
from finance_engine.models.splits import Participant, SettlementReport, SplitBill
from finance_engine.services.storage import (
    BudgetPlanStoreInterface,
    ExpenseLedgerInterface,
    InMemoryAuditStorage,
    InMemoryExpenseLedger,
    InMemoryPlanStore,
    NotFoundError,
    PlanAlreadyExistsError,
)
from finance_engine.settlement import compute_balances, resolve_settlements
from finance_engine.validation import SplitBillValidator


class _CurrencyStep:
    """Shared conversion step: converts when needed, audits failed lookups."""

    def __init__(
        self,
        normalizer: Optional[CurrencyNormalizer],
        audit_logger: Optional[AuditLogger],
    ):
        self._normalizer = normalizer
        self._audit_logger = audit_logger

    def _require(self, from_currency: str, to_currency: str) -> CurrencyNormalizer:
        if self._normalizer is None:
            raise CurrencyError(
                f"Cannot convert {from_currency} to {to_currency}: no rate lookup configured"
            )
        return self._normalizer

    async def _failed(
        self,
        error: RateLookupError,
        from_currency: str,
        to_currency: str,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_rate_lookup_failed(
                from_currency=from_currency,
                to_currency=to_currency,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def amount(
        self,
        money: Money,
        target: str,
        on: Optional[date],
        correlation_id: UUID,
    ) -> Decimal:
        if money.currency == target:
            return money.amount
        try:
            return self._require(money.currency, target).convert(
                money.amount, money.currency, target, on
            )
        except RateLookupError as e:
            await self._failed(e, money.currency, target, correlation_id)
            raise

    async def bill(self, bill: SplitBill, target: str, correlation_id: UUID) -> SplitBill:
        if bill.currency == target:
            return bill
        try:
            return self._require(bill.currency, target).normalize_bill(bill, target)
        except RateLookupError as e:
            await self._failed(e, bill.currency, target, correlation_id)
            raise

    async def snapshot(
        self,
        expenses: list[ExpenseRecord],
        incomes: list[IncomeRecord],
        target: str,
        correlation_id: UUID,
    ) -> tuple[list[ExpenseRecord], list[IncomeRecord]]:
        foreign = {r.currency for r in [*expenses, *incomes] if r.currency != target}
        if not foreign:
            return expenses, incomes
        normalizer = self._require(", ".join(sorted(foreign)), target)
        try:
            return (
                normalizer.normalize_expenses(expenses, target),
                normalizer.normalize_incomes(incomes, target),
            )
        except RateLookupError as e:
            await self._failed(e, ", ".join(sorted(foreign)), target, correlation_id)
            raise


class SettlementFlow:
    """
    Orchestrates a settle-up run.

    Flow:
    1. Skip settled bills
    2. Validate the rest (equal-split drift is corrected, bad custom splits rejected)
    3. Convert every usable bill into the settlement currency
    4. Compute balances and resolve settlements
    5. Audit

    Settlements are never stored; each run recomputes them from the bills.
    """

    def __init__(
        self,
        normalizer: Optional[CurrencyNormalizer] = None,
        validator: Optional[SplitBillValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = get_settings()
        self._settings = settings.settlement
        self._currency = settings.app.reporting_currency
        self._validator = validator or SplitBillValidator(
            tolerance=self._settings.split_tolerance,
            auto_correct_equal_splits=self._settings.auto_correct_equal_splits,
        )
        self._audit_logger = audit_logger
        self._convert = _CurrencyStep(normalizer, audit_logger)

    async def settle_up(
        self,
        bills: Iterable[SplitBill],
        participants: Sequence[Participant],
        currency: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementReport:
        """
        Resolve the group's active bills into payment instructions.

        Raises:
            CurrencyError: If a bill needs converting and no usable rate exists
        """
        correlation_id = correlation_id or create_correlation_id()
        currency = (currency or self._currency).upper()

        usable = []
        excluded = []
        corrected = []

        for bill in bills:
            if bill.settled:
                excluded.append(bill.id)
                continue

            result = self._validator.validate(bill, participants)
            if not result.can_settle:
                excluded.append(bill.id)
                if self._audit_logger:
                    await self._audit_logger.log_bill_rejected(
                        bill_id=bill.id,
                        issues=[issue.model_dump() for issue in result.issues],
                        correlation_id=correlation_id,
                    )
                continue

            if result.corrected_bill is not None:
                bill = result.corrected_bill
                corrected.append(bill.id)
                if self._audit_logger:
                    await self._audit_logger.log_bill_corrected(
                        bill_id=bill.id,
                        reason="; ".join(result.warnings),
                        correlation_id=correlation_id,
                    )

            usable.append(await self._convert.bill(bill, currency, correlation_id))

        report = SettlementReport(
            currency=currency,
            balances=compute_balances(usable, participants),
            settlements=resolve_settlements(
                usable, participants, epsilon=self._settings.epsilon
            ),
            excluded_bill_ids=excluded,
            corrected_bill_ids=corrected,
        )

        if self._audit_logger:
            await self._audit_logger.log_settlements_resolved(
                bill_count=len(usable),
                settlement_count=len(report.settlements),
                currency=currency,
                correlation_id=correlation_id,
            )

        return report


class BudgetFlow:
    """
    Orchestrates monthly budget plans.

    Plans are created on demand, once per month, and only ever accumulate
    that month's transactions. NEEDS/WANTS transactions are mirrored into
    the expense ledger so the analytics see them.
    """

    def __init__(
        self,
        plan_store: BudgetPlanStoreInterface,
        ledger: Optional[ExpenseLedgerInterface] = None,
        normalizer: Optional[CurrencyNormalizer] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = get_settings()
        self._settings = settings.budget
        self._currency = settings.app.reporting_currency
        self._plan_store = plan_store
        self._ledger = ledger
        self._audit_logger = audit_logger
        self._convert = _CurrencyStep(normalizer, audit_logger)

    @property
    def default_policy(self) -> BudgetPolicy:
        return BudgetPolicy(
            needs=self._settings.needs_percent,
            wants=self._settings.wants_percent,
            savings=self._settings.savings_percent,
            debt=self._settings.debt_percent,
        )

    async def _get_plan(self, month: str) -> MonthlyBudgetPlan:
        plan = await self._plan_store.get_plan(month)
        if plan is None:
            raise NotFoundError(f"No budget plan for {month}")
        return plan

    async def create_plan(
        self,
        month: str,
        income: Money,
        policy: Optional[BudgetPolicy] = None,
        base_currency: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> MonthlyBudgetPlan:
        """
        Create the plan for a month.

        Raises:
            PlanAlreadyExistsError: If the month already has a plan
        """
        correlation_id = correlation_id or create_correlation_id()
        base_currency = (base_currency or self._currency).upper()

        if await self._plan_store.get_plan(month) is not None:
            raise PlanAlreadyExistsError(f"A plan for {month} already exists")

        total_income = await self._convert.amount(income, base_currency, None, correlation_id)
        plan = allocate_budget(
            month=month,
            total_income=total_income,
            policy=policy or self.default_policy,
            base_currency=base_currency,
        )
        await self._plan_store.create_plan(plan)

        if self._audit_logger:
            await self._audit_logger.log_plan_created(
                plan_id=plan.id,
                month=month,
                total_income=str(total_income),
                policy=plan.policy.describe(),
                correlation_id=correlation_id,
            )

        return plan

    async def get_plan(self, month: str) -> Optional[MonthlyBudgetPlan]:
        return await self._plan_store.get_plan(month)

    async def log_transaction(
        self,
        month: str,
        bucket: BucketType,
        category: str,
        amount: Money,
        description: Optional[str] = None,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionResult:
        """
        Log spending against a month's bucket.

        Raises:
            NotFoundError: If the month has no plan
            CurrencyError: If the amount can't be converted to the plan currency
        """
        correlation_id = correlation_id or create_correlation_id()
        plan = await self._get_plan(month)

        converted = await self._convert.amount(amount, plan.base_currency, on, correlation_id)
        result = log_transaction(
            plan,
            bucket,
            category,
            converted,
            plan.base_currency,
            description=description,
            on=on,
            near_limit_ratio=self._settings.near_limit_ratio,
        )
        await self._plan_store.save_plan(result.plan)

        if result.mirrored_expense is not None and self._ledger is not None:
            await self._ledger.add_expense(result.mirrored_expense)
            if self._audit_logger:
                await self._audit_logger.log_expense_mirrored(
                    expense_id=result.mirrored_expense.id,
                    bucket=bucket.value,
                    amount=str(converted),
                    correlation_id=correlation_id,
                )

        if self._audit_logger:
            bucket_data = result.plan.bucket(bucket)
            await self._audit_logger.log_transaction_logged(
                plan_id=result.plan.id,
                bucket=bucket.value,
                category=category,
                amount=str(converted),
                status=bucket_data.status.value,
                correlation_id=correlation_id,
            )
            for insight in result.new_insights:
                await self._audit_logger.log_budget_alert(
                    plan_id=result.plan.id,
                    bucket=bucket.value,
                    message=insight.message,
                    insight_type=insight.type.value,
                    correlation_id=correlation_id,
                )

        return result

    async def set_category_plan(
        self,
        month: str,
        bucket: BucketType,
        category: str,
        planned: Decimal,
    ) -> MonthlyBudgetPlan:
        plan = await self._get_plan(month)
        updated = set_category_plan(
            plan, bucket, category, planned,
            near_limit_ratio=self._settings.near_limit_ratio,
        )
        await self._plan_store.save_plan(updated)
        return updated

    async def daily_budget(
        self,
        on: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DailyBudget:
        """Today's discretionary budget from the ledger's records."""
        if self._ledger is None:
            raise NotFoundError("No expense ledger configured")
        correlation_id = correlation_id or create_correlation_id()
        expenses, incomes = await self._convert.snapshot(
            await self._ledger.list_expenses(),
            await self._ledger.list_incomes(),
            self._currency,
            correlation_id,
        )
        return calculate_daily_budget(
            incomes,
            expenses,
            on=on,
            currency=self._currency,
            savings_rate=self._settings.daily_savings_rate,
        )


class InsightReportFlow:
    """
    Orchestrates the combined insight report.

    Flow:
    1. Take one snapshot of expenses and incomes
    2. Normalize it to the reporting currency
    3. Run every analysis against the same frozen snapshot, in parallel
    4. Audit the outcome

    Not enough data is reported as empty sections, never as an error.
    """

    def __init__(
        self,
        ledger: Optional[ExpenseLedgerInterface] = None,
        normalizer: Optional[CurrencyNormalizer] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        settings = get_settings()
        self._settings = settings.analytics
        self._currency = settings.app.reporting_currency
        self._ledger = ledger
        self._audit_logger = audit_logger
        self._convert = _CurrencyStep(normalizer, audit_logger)

    async def _load(
        self,
        expenses: Optional[Sequence[ExpenseRecord]],
        incomes: Optional[Sequence[IncomeRecord]],
    ) -> tuple[list[ExpenseRecord], list[IncomeRecord]]:
        if expenses is None or incomes is None:
            if self._ledger is None:
                raise NotFoundError("No expense ledger configured and no snapshot given")
            if expenses is None:
                expenses = await self._ledger.list_expenses()
            if incomes is None:
                incomes = await self._ledger.list_incomes()
        return list(expenses), list(incomes)

    async def generate_report(
        self,
        as_of: Optional[date] = None,
        expenses: Optional[Sequence[ExpenseRecord]] = None,
        incomes: Optional[Sequence[IncomeRecord]] = None,
        existing_recurring_keys: Iterable[str] = (),
        correlation_id: Optional[UUID] = None,
    ) -> InsightReport:
        """
        Build the full insight report for one snapshot.

        Args:
            as_of: Reference day for trailing windows (default today)
            expenses/incomes: Snapshot to analyze; read from the ledger if omitted
            existing_recurring_keys: Recurring suggestions already accepted
        """
        correlation_id = correlation_id or create_correlation_id()
        as_of = as_of or date.today()
        cfg = self._settings

        expenses, incomes = await self._load(expenses, incomes)
        expenses, incomes = await self._convert.snapshot(
            expenses, incomes, self._currency, correlation_id
        )

        balance = current_balance(incomes, expenses)
        monthly_income = expected_monthly_income(incomes)

        patterns, anomalies, prediction, opportunities, forecast, recurring = (
            await asyncio.gather(
                asyncio.to_thread(
                    detect_patterns, expenses, min_records=cfg.pattern_min_records
                ),
                asyncio.to_thread(
                    detect_anomalies, expenses,
                    as_of=as_of,
                    min_records=cfg.anomaly_min_records,
                    min_category_records=cfg.anomaly_min_category_records,
                    lookback_days=cfg.lookback_days,
                ),
                asyncio.to_thread(
                    predict_next_month, expenses,
                    as_of=as_of,
                    min_records=cfg.prediction_min_records,
                ),
                asyncio.to_thread(
                    find_savings_opportunities, expenses,
                    min_records=cfg.savings_min_records,
                    subscription_categories=cfg.subscription_categories_list,
                ),
                asyncio.to_thread(
                    forecast_cashflow, expenses, balance, monthly_income,
                    as_of=as_of,
                    min_records=cfg.cashflow_min_records,
                    lookback_days=cfg.lookback_days,
                    forecast_days=cfg.forecast_days,
                ),
                asyncio.to_thread(
                    detect_recurring_patterns, expenses,
                    as_of=as_of,
                    existing_keys=tuple(existing_recurring_keys),
                    min_records=cfg.recurrence_min_records,
                ),
            )
        )

        report = InsightReport(
            as_of=as_of,
            currency=self._currency,
            expense_count=len(expenses),
            patterns=patterns,
            anomalies=anomalies,
            prediction=prediction,
            opportunities=opportunities,
            forecast=forecast,
            recurring=recurring,
        )

        if self._audit_logger:
            if len(expenses) < cfg.pattern_min_records:
                await self._audit_logger.log_insufficient_data(
                    expense_count=len(expenses),
                    required=cfg.pattern_min_records,
                    correlation_id=correlation_id,
                )
            await self._audit_logger.log_insights_generated(
                summary=report.summary(),
                correlation_id=correlation_id,
            )

        return report


def create_app_components(
    rate_lookup: Optional[RateLookup] = None,
    fallback_factor: Optional[Union[Decimal, float]] = None,
    ledger: Optional[ExpenseLedgerInterface] = None,
    plan_store: Optional[BudgetPlanStoreInterface] = None,
) -> tuple[SettlementFlow, BudgetFlow, InsightReportFlow, AuditLogger]:
    """
    Factory function to create all engine components.

    Args:
        rate_lookup: rate(from, to, on) capability. Without it, only
                     single-currency data can be processed.
        fallback_factor: Used when the lookup fails.
        ledger / plan_store: Collaborators; in-memory ones are used if omitted.

    Returns:
        (settlement_flow, budget_flow, insight_flow, audit_logger)
    """
    configure_logging(get_settings().app.log_level)

    normalizer = (
        CurrencyNormalizer(rate_lookup, fallback_factor=fallback_factor)
        if rate_lookup is not None
        else None
    )
    ledger = ledger or InMemoryExpenseLedger()
    plan_store = plan_store or InMemoryPlanStore()
    audit_logger = AuditLogger(InMemoryAuditStorage())

    settlement_flow = SettlementFlow(
        normalizer=normalizer,
        audit_logger=audit_logger,
    )
    budget_flow = BudgetFlow(
        plan_store=plan_store,
        ledger=ledger,
        normalizer=normalizer,
        audit_logger=audit_logger,
    )
    insight_flow = InsightReportFlow(
        ledger=ledger,
        normalizer=normalizer,
        audit_logger=audit_logger,
    )

    return settlement_flow, budget_flow, insight_flow, audit_logger
