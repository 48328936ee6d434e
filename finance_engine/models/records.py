"""
Core Ledger Records

These models define the raw transaction records every analysis runs over.
They are designed to:
1. Enforce type safety at runtime
2. Reject malformed amounts at the boundary
3. Stay immutable for the duration of an analysis pass

DESIGN DECISION: Records are frozen. Editing an expense produces a new record
via model_copy(), so a snapshot handed to the analytics never changes under it.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class IncomeStatus(str, Enum):
    """Whether an income event has already landed."""
    RECEIVED = "received"
    SCHEDULED = "scheduled"


class Recurrence(str, Enum):
    """How often an income event repeats."""
    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


def _normalize_currency_code(v: str) -> str:
    code = v.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Invalid currency code: {v!r}")
    return code


# =============================================================================
# MONEY
# =============================================================================

class Money(BaseModel):
    """An amount tagged with its currency."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        description="Amount in the given currency (may be negative for balances)"
    )
    currency: str = Field(
        default="USD",
        description="ISO 4217 currency code"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return _normalize_currency_code(v)


# =============================================================================
# EXPENSE / INCOME RECORDS
# =============================================================================

class ExpenseRecord(BaseModel):
    """
    A single logged expense.

    CRITICAL: Once handed to an analysis pass this record is treated as
    immutable. Updates create a new record for the next snapshot.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount spent (non-negative)"
    )
    currency: str = Field(
        default="USD",
        description="ISO 4217 currency code"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-form category label"
    )
    expense_date: date = Field(
        ...,
        description="Calendar date the expense happened"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the record was created"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the money was spent on"
    )
    is_recurring: bool = Field(
        default=False,
        description="Generated from a recurring template (fixed cost)"
    )

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return _normalize_currency_code(v)


class IncomeRecord(BaseModel):
    """A single income event, received or scheduled."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(..., ge=0)
    currency: str = Field(default="USD")
    category: str = Field(default="Salary", min_length=1, max_length=100)
    status: IncomeStatus = Field(default=IncomeStatus.RECEIVED)
    recurrence: Recurrence = Field(default=Recurrence.ONE_TIME)
    income_date: date = Field(..., description="Event date")

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        return _normalize_currency_code(v)


def month_key(d: date) -> str:
    """Year-month key (YYYY-MM) used to group records and plans."""
    return f"{d.year:04d}-{d.month:02d}"
