"""
Budget Plan Models

A month's income is split into four buckets by policy percentages. Each
bucket tracks planned vs. spent, overall and per sub-category.

DESIGN DECISION: Sub-categories live in an explicit dict keyed by name, with
a fixed first-write rule: an unseen category is created with planned = 0.
No ad-hoc attribute assignment.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finance_engine.models.records import ExpenseRecord


class BucketType(str, Enum):
    """The four allocation buckets."""
    NEEDS = "NEEDS"
    WANTS = "WANTS"
    SAVINGS = "SAVINGS"
    DEBT = "DEBT"

    @property
    def is_consumption(self) -> bool:
        """NEEDS/WANTS are consumption; SAVINGS/DEBT are transfers."""
        return self in (BucketType.NEEDS, BucketType.WANTS)


class BucketStatus(str, Enum):
    """Health of a bucket, derived from spent / planned."""
    UNDER = "UNDER"
    NEAR_LIMIT = "NEAR_LIMIT"
    OVER = "OVER"


class InsightType(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"


class BudgetPolicy(BaseModel):
    """
    Bucket percentage map.

    Percentages must add up to exactly 100.
    """
    model_config = ConfigDict(frozen=True)

    needs: Decimal = Field(default=Decimal("50"), ge=0, le=100)
    wants: Decimal = Field(default=Decimal("30"), ge=0, le=100)
    savings: Decimal = Field(default=Decimal("15"), ge=0, le=100)
    debt: Decimal = Field(default=Decimal("5"), ge=0, le=100)

    @model_validator(mode='after')
    def check_total(self) -> 'BudgetPolicy':
        total = self.needs + self.wants + self.savings + self.debt
        if total != Decimal("100"):
            raise ValueError(f"Bucket percentages must sum to 100, got {total}")
        return self

    def percent_for(self, bucket: BucketType) -> Decimal:
        return {
            BucketType.NEEDS: self.needs,
            BucketType.WANTS: self.wants,
            BucketType.SAVINGS: self.savings,
            BucketType.DEBT: self.debt,
        }[bucket]

    def describe(self) -> str:
        return "/".join(
            f"{self.percent_for(bucket).normalize():f}" for bucket in BucketType
        )


class CategoryBudget(BaseModel):
    """Planned vs. spent for one sub-category inside a bucket."""

    name: str = Field(..., min_length=1, max_length=100)
    planned: Decimal = Field(default=Decimal("0"), ge=0)
    spent: Decimal = Field(default=Decimal("0"), ge=0)
    status: BucketStatus = Field(default=BucketStatus.UNDER)

    @property
    def remaining(self) -> Decimal:
        return self.planned - self.spent


class BudgetBucket(BaseModel):
    """One allocation bucket of a monthly plan."""

    type: BucketType
    planned: Decimal = Field(default=Decimal("0"), ge=0)
    spent: Decimal = Field(default=Decimal("0"), ge=0)
    remaining: Decimal = Field(default=Decimal("0"))
    status: BucketStatus = Field(default=BucketStatus.UNDER)
    categories: dict[str, CategoryBudget] = Field(default_factory=dict)

    @property
    def percent_used(self) -> Decimal:
        """spent / planned as a percentage; 0 when nothing is planned."""
        if self.planned == 0:
            return Decimal("0")
        return self.spent / self.planned * 100


class BudgetInsight(BaseModel):
    """A message raised while building or updating a plan."""

    id: UUID = Field(default_factory=uuid4)
    type: InsightType
    message: str = Field(..., max_length=500)
    bucket: Optional[BucketType] = None
    category: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class MonthlyBudgetPlan(BaseModel):
    """
    The budget for one calendar month.

    Keyed by month so history is preserved. A plan is created once per month
    and only ever accumulates transactions for that month.
    """

    id: UUID = Field(default_factory=uuid4)
    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    base_currency: str = Field(default="USD", min_length=3, max_length=3)
    total_income: Decimal = Field(..., ge=0)
    policy: BudgetPolicy = Field(default_factory=BudgetPolicy)
    buckets: dict[BucketType, BudgetBucket] = Field(default_factory=dict)
    insights: list[BudgetInsight] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('base_currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode='after')
    def check_buckets(self) -> 'MonthlyBudgetPlan':
        if self.buckets and set(self.buckets) != set(BucketType):
            raise ValueError("A plan must carry all four buckets")
        return self

    def bucket(self, bucket_type: BucketType) -> BudgetBucket:
        return self.buckets[bucket_type]

    @property
    def total_planned(self) -> Decimal:
        return sum((b.planned for b in self.buckets.values()), Decimal("0"))

    @property
    def total_spent(self) -> Decimal:
        return sum((b.spent for b in self.buckets.values()), Decimal("0"))


class TransactionResult(BaseModel):
    """
    Outcome of logging one transaction against a plan.

    mirrored_expense is set only for NEEDS/WANTS transactions, for the
    expense ledger to ingest.
    """

    plan: MonthlyBudgetPlan
    mirrored_expense: Optional[ExpenseRecord] = None
    new_insights: list[BudgetInsight] = Field(default_factory=list)


class DailyBudget(BaseModel):
    """How much can be spent today without eating into fixed costs or savings."""

    on: date
    currency: str = "USD"
    daily_budget: Decimal = Decimal("0")
    spent: Decimal = Decimal("0")
    remaining: Decimal = Decimal("0")
    percent_used: Decimal = Decimal("0")
