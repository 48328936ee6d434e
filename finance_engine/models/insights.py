"""
Insight Models

Results produced by the analytics over an expense snapshot. None of these
are persisted; they are recomputed on every analysis run.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_engine.models.records import ExpenseRecord


class PatternType(str, Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"
    CATEGORY = "category"
    TIME = "time"
    AMOUNT = "amount"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class SpendingPattern(BaseModel):
    """A recurring behavioral skew found in the expense history."""

    type: PatternType
    insight: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    data: dict[str, Decimal] = Field(default_factory=dict)


class AnomalyDetection(BaseModel):
    """An expense well above its category's usual amount."""

    expense: ExpenseRecord
    reason: str
    severity: Severity
    comparison_value: Decimal = Field(
        ...,
        description="The category's typical (mean) amount"
    )


class PredictiveBudget(BaseModel):
    """Next month's expected total spend."""

    month: str = Field(..., description="Predicted month (YYYY-MM)")
    predicted_amount: Decimal
    confidence: float = Field(..., ge=0.5, le=0.95)
    based_on_months: int = Field(..., ge=2)
    trend: Trend


class SavingsOpportunity(BaseModel):
    """A category where spend could reasonably come down."""

    category: str
    current_spending: Decimal
    potential_saving: Decimal
    recommendation: str
    priority: Priority


class CashflowForecast(BaseModel):
    """Projected balance at the end of one future day."""

    forecast_date: date
    predicted_balance: Decimal
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_warning(self) -> bool:
        return bool(self.warnings)


class RecurringSuggestion(BaseModel):
    """A group of expenses that look like a recurring charge."""

    normalized_key: str
    description: str
    category: str
    currency: str
    avg_amount: Decimal
    min_amount: Decimal
    max_amount: Decimal
    frequency: Frequency
    occurrences: int
    confidence: float = Field(..., ge=0.0, le=1.0)
    last_date: date
    next_expected: date
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = Field(
        default=None,
        description="0 = Monday ... 6 = Sunday"
    )
    amount_variance_pct: float
    matching_expense_ids: list[UUID] = Field(default_factory=list)


class InsightReport(BaseModel):
    """Combined output of all analytics for one snapshot."""

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    as_of: date
    currency: str = "USD"
    expense_count: int = 0
    patterns: list[SpendingPattern] = Field(default_factory=list)
    anomalies: list[AnomalyDetection] = Field(default_factory=list)
    prediction: Optional[PredictiveBudget] = None
    opportunities: list[SavingsOpportunity] = Field(default_factory=list)
    forecast: list[CashflowForecast] = Field(default_factory=list)
    recurring: list[RecurringSuggestion] = Field(default_factory=list)

    @property
    def has_insights(self) -> bool:
        return bool(
            self.patterns
            or self.anomalies
            or self.prediction
            or self.opportunities
            or self.forecast
            or self.recurring
        )

    def summary(self) -> dict[str, Any]:
        return {
            "as_of": self.as_of.isoformat(),
            "currency": self.currency,
            "expense_count": self.expense_count,
            "patterns": len(self.patterns),
            "anomalies": len(self.anomalies),
            "prediction": self.prediction is not None,
            "opportunities": len(self.opportunities),
            "forecast_days": len(self.forecast),
            "recurring": len(self.recurring),
        }
