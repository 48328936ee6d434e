"""
Tests for the budget bucket allocator and the daily budget.
"""

import pytest
from datetime import date
from decimal import Decimal

from finance_engine.budget import (
    allocate_budget,
    calculate_daily_budget,
    classify_status,
    log_transaction,
    set_category_plan,
)
from finance_engine.models.budget import (
    BucketStatus,
    BucketType,
    BudgetPolicy,
    InsightType,
)
from finance_engine.models.records import IncomeStatus, Recurrence

from factories import expense, income


@pytest.fixture
def plan():
    return allocate_budget("2024-06", Decimal("5000"))


class TestAllocateBudget:
    """Tests for plan creation."""

    def test_default_policy_split(self, plan):
        """5000 splits 2500 / 1500 / 750 / 250."""
        assert plan.bucket(BucketType.NEEDS).planned == Decimal("2500")
        assert plan.bucket(BucketType.WANTS).planned == Decimal("1500")
        assert plan.bucket(BucketType.SAVINGS).planned == Decimal("750")
        assert plan.bucket(BucketType.DEBT).planned == Decimal("250")

    def test_new_buckets_are_untouched(self, plan):
        """Fresh buckets have nothing spent and are UNDER."""
        for bucket in plan.buckets.values():
            assert bucket.spent == 0
            assert bucket.remaining == bucket.planned
            assert bucket.status == BucketStatus.UNDER

    @pytest.mark.parametrize("income_amount", ["5000", "1234.57", "0.03", "999999.99"])
    def test_bucket_sum_matches_income(self, income_amount):
        """Planned amounts add up to the income within rounding."""
        plan = allocate_budget("2024-06", Decimal(income_amount))
        assert abs(plan.total_planned - Decimal(income_amount)) <= Decimal("0.02")

    def test_custom_policy(self):
        """A custom policy is applied as given."""
        policy = BudgetPolicy(needs=60, wants=20, savings=20, debt=0)
        plan = allocate_budget("2024-06", Decimal("1000"), policy)
        assert plan.bucket(BucketType.NEEDS).planned == Decimal("600")
        assert plan.bucket(BucketType.DEBT).planned == Decimal("0")

    def test_policy_must_sum_to_100(self):
        """A policy that doesn't add up to 100% is rejected."""
        with pytest.raises(ValueError, match="sum to 100"):
            BudgetPolicy(needs=50, wants=30, savings=15, debt=10)

    def test_creation_insight(self, plan):
        """Plan creation leaves a success insight naming the split."""
        assert plan.insights[0].type == InsightType.SUCCESS
        assert "50/30/15/5" in plan.insights[0].message

    def test_negative_income_rejected(self):
        with pytest.raises(ValueError):
            allocate_budget("2024-06", Decimal("-1"))


class TestClassifyStatus:
    """Tests for bucket health classification."""

    @pytest.mark.parametrize("spent,expected", [
        ("0", BucketStatus.UNDER),
        ("79.99", BucketStatus.UNDER),
        ("80", BucketStatus.NEAR_LIMIT),
        ("99.99", BucketStatus.NEAR_LIMIT),
        ("100", BucketStatus.OVER),
        ("250", BucketStatus.OVER),
    ])
    def test_thresholds(self, spent, expected):
        """UNDER below 80%, NEAR_LIMIT below 100%, OVER from 100%."""
        assert classify_status(Decimal(spent), Decimal("100")) == expected

    def test_nothing_planned(self):
        """With zero planned, zero spent is UNDER and any spend is OVER."""
        assert classify_status(Decimal("0"), Decimal("0")) == BucketStatus.UNDER
        assert classify_status(Decimal("1"), Decimal("0")) == BucketStatus.OVER

    def test_status_is_monotonic_in_spent(self):
        """As spent grows the status never steps back."""
        order = [BucketStatus.UNDER, BucketStatus.NEAR_LIMIT, BucketStatus.OVER]
        ranks = [
            order.index(classify_status(Decimal(spent), Decimal("500")))
            for spent in range(0, 700, 7)
        ]
        assert ranks == sorted(ranks)


class TestLogTransaction:
    """Tests for logging spending against a plan."""

    def test_overspending_needs(self, plan):
        """Logging 2600 to a 2500 NEEDS bucket leaves it OVER by 100."""
        result = log_transaction(plan, BucketType.NEEDS, "Rent", Decimal("2600"), "USD")
        needs = result.plan.bucket(BucketType.NEEDS)

        assert needs.spent == Decimal("2600")
        assert needs.remaining == Decimal("-100")
        assert needs.status == BucketStatus.OVER
        assert result.new_insights[0].type == InsightType.ALERT
        assert result.new_insights[0].message == "NEEDS bucket is over budget by 100.00 USD"

    def test_near_limit_warning(self, plan):
        """Crossing 80% raises a warning insight."""
        result = log_transaction(plan, BucketType.WANTS, "Dining", Decimal("1275"), "USD")
        assert result.plan.bucket(BucketType.WANTS).status == BucketStatus.NEAR_LIMIT
        assert result.new_insights[0].type == InsightType.WARNING
        assert result.new_insights[0].message == "WANTS bucket is at 85% - approaching limit"

    def test_input_plan_is_not_mutated(self, plan):
        """The plan passed in stays as it was."""
        log_transaction(plan, BucketType.NEEDS, "Rent", Decimal("100"), "USD")
        assert plan.bucket(BucketType.NEEDS).spent == 0
        assert plan.bucket(BucketType.NEEDS).categories == {}

    def test_new_category_starts_with_zero_planned(self, plan):
        """An unseen sub-category is created with planned = 0."""
        result = log_transaction(plan, BucketType.WANTS, "Games", Decimal("20"), "USD")
        games = result.plan.bucket(BucketType.WANTS).categories["Games"]
        assert games.planned == 0
        assert games.spent == Decimal("20")
        assert games.status == BucketStatus.OVER

    def test_transactions_accumulate(self, plan):
        """Spending in the same category adds up."""
        first = log_transaction(plan, BucketType.NEEDS, "Food", Decimal("10"), "USD")
        second = log_transaction(first.plan, BucketType.NEEDS, "Food", Decimal("15"), "USD")
        needs = second.plan.bucket(BucketType.NEEDS)
        assert needs.spent == Decimal("25")
        assert needs.categories["Food"].spent == Decimal("25")

    @pytest.mark.parametrize("bucket", [BucketType.NEEDS, BucketType.WANTS])
    def test_consumption_is_mirrored(self, plan, bucket):
        """NEEDS and WANTS yield an expense for the ledger."""
        result = log_transaction(
            plan, bucket, "Food", Decimal("42"), "USD",
            description="Market", on=date(2024, 6, 3),
        )
        mirrored = result.mirrored_expense
        assert mirrored is not None
        assert mirrored.amount == Decimal("42")
        assert mirrored.category == "Food"
        assert mirrored.description == "Market"
        assert mirrored.expense_date == date(2024, 6, 3)

    def test_undated_spending_lands_in_the_plan_month(self, plan):
        """A back-filled month's spending is dated inside that month."""
        result = log_transaction(plan, BucketType.NEEDS, "Food", Decimal("42"), "USD")
        assert result.mirrored_expense.expense_date == date(2024, 6, 1)

    @pytest.mark.parametrize("bucket", [BucketType.SAVINGS, BucketType.DEBT])
    def test_transfers_are_not_mirrored(self, plan, bucket):
        """SAVINGS and DEBT are transfers, not spending."""
        result = log_transaction(plan, bucket, "Transfer", Decimal("100"), "USD")
        assert result.mirrored_expense is None

    def test_foreign_currency_must_be_converted_first(self, plan):
        with pytest.raises(ValueError, match="converted"):
            log_transaction(plan, BucketType.NEEDS, "Rent", Decimal("10"), "EUR")

    def test_negative_amount_rejected(self, plan):
        with pytest.raises(ValueError):
            log_transaction(plan, BucketType.NEEDS, "Rent", Decimal("-10"), "USD")

    def test_set_category_plan(self, plan):
        """Planning a category updates its status against what's spent."""
        spent = log_transaction(plan, BucketType.NEEDS, "Food", Decimal("90"), "USD").plan
        updated = set_category_plan(spent, BucketType.NEEDS, "Food", Decimal("100"))
        food = updated.bucket(BucketType.NEEDS).categories["Food"]
        assert food.planned == Decimal("100")
        assert food.status == BucketStatus.NEAR_LIMIT
        assert food.remaining == Decimal("10")


class TestDailyBudget:
    """Tests for the daily discretionary budget."""

    def test_daily_budget(self):
        """(3000 - 900 fixed - 600 savings) / 30 days = 50 a day."""
        on = date(2024, 6, 10)
        result = calculate_daily_budget(
            incomes=[income(3000), income(500, recurrence=Recurrence.ONE_TIME)],
            expenses=[
                expense(900, category="Rent", on=date(2024, 6, 1), recurring=True),
                expense(20, on=on),
                expense(5, on=on),
                expense(100, on=date(2024, 6, 9)),
            ],
            on=on,
        )
        assert result.daily_budget == Decimal("50.00")
        assert result.spent == Decimal("25")
        assert result.remaining == Decimal("25.00")
        assert result.percent_used == Decimal("50.00")

    def test_scheduled_income_is_ignored(self):
        """Only received income counts."""
        result = calculate_daily_budget(
            incomes=[income(3000, status=IncomeStatus.SCHEDULED)],
            expenses=[],
            on=date(2024, 6, 10),
        )
        assert result.daily_budget == 0
        assert result.percent_used == 0

    def test_percent_used_is_capped(self):
        """Overspending the day reports 100%, not more."""
        on = date(2024, 6, 10)
        result = calculate_daily_budget([income(3000)], [expense(500, on=on)], on=on)
        assert result.percent_used == Decimal("100.00")
        assert result.remaining < 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
