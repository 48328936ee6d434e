"""
Shared Bill Models

Participants, split bills, and the settlements derived from them.

DESIGN DECISION: Settlement is output-only. It is recomputed from the active
bills on every request and never stored, so bill edits can't leave stale
transfers behind.
"""

from datetime import date, datetime
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


CENT = Decimal("0.01")


def equal_shares(total: Decimal, participant_ids: tuple[str, ...]) -> dict[str, Decimal]:
    """
    Split a total into per-participant shares that sum exactly to the total.

    Each share is total / n rounded down to the cent; leftover cents go one
    at a time to participants in order.
    """
    if not participant_ids:
        return {}
    n = len(participant_ids)
    base = (total / n).quantize(CENT, rounding=ROUND_DOWN)
    leftover = int(((total - base * n) / CENT).to_integral_value())
    shares = {}
    for index, participant_id in enumerate(participant_ids):
        shares[participant_id] = base + (CENT if index < leftover else Decimal("0"))
    return shares


class SplitType(str, Enum):
    """How a bill's total is divided among its participants."""
    EQUAL = "equal"
    CUSTOM = "custom"


class Participant(BaseModel):
    """A person who can pay for or share a bill. Holds no money itself."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=100)


class SplitBill(BaseModel):
    """
    A bill paid by one participant and shared among several.

    For EQUAL splits the per-participant mapping is derived from the total
    when not supplied. For CUSTOM splits the mapping is REQUIRED; whether it
    sums to the total is checked by SplitBillValidator, not here, so that a
    mismatched bill can still be represented and reported.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    description: str = Field(..., min_length=1, max_length=200)
    total_amount: Decimal = Field(..., ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    payer_id: str = Field(..., min_length=1, description="Participant who paid")
    participant_ids: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Participants sharing the bill (payer may or may not be included)"
    )
    split_type: SplitType = Field(default=SplitType.EQUAL)
    custom_amounts: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Per-participant share of the total"
    )
    bill_date: date = Field(default_factory=date.today)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    settled: bool = Field(default=False)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator('participant_ids')
    @classmethod
    def dedupe_participants(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Keep first occurrence order, drop repeats."""
        return tuple(dict.fromkeys(v))

    @model_validator(mode='after')
    def check_split_mapping(self) -> 'SplitBill':
        if self.split_type == SplitType.CUSTOM and not self.custom_amounts:
            raise ValueError("Custom split requires a per-participant amount mapping")
        if any(amount < 0 for amount in self.custom_amounts.values()):
            raise ValueError("Split shares cannot be negative")
        return self

    def shares(self) -> dict[str, Decimal]:
        """Effective per-participant mapping (derived for equal splits without one)."""
        if self.split_type == SplitType.EQUAL and not self.custom_amounts:
            return equal_shares(self.total_amount, self.participant_ids)
        return dict(self.custom_amounts)

    def share_of(self, participant_id: str) -> Decimal:
        """Amount this participant owes towards the bill."""
        return self.shares().get(participant_id, Decimal("0"))

    @property
    def is_active(self) -> bool:
        return not self.settled and len(self.participant_ids) > 0


class Settlement(BaseModel):
    """A directed payment instruction: from_participant pays to_participant."""
    model_config = ConfigDict(frozen=True)

    from_participant: str
    to_participant: str
    amount: Decimal = Field(..., gt=0)


class ParticipantBalance(BaseModel):
    """Net position of one participant across the active bills."""

    participant_id: str
    paid: Decimal = Field(default=Decimal("0"), description="Totals of bills they paid")
    owed: Decimal = Field(default=Decimal("0"), description="Sum of their own shares")

    @property
    def net(self) -> Decimal:
        """Positive: others owe them. Negative: they owe others."""
        return self.paid - self.owed


class SettlementReport(BaseModel):
    """Everything a settle-up screen needs from one resolver run."""

    currency: str = "USD"
    balances: list[ParticipantBalance] = Field(default_factory=list)
    settlements: list[Settlement] = Field(default_factory=list)
    excluded_bill_ids: list[UUID] = Field(
        default_factory=list,
        description="Bills left out (settled, empty, or rejected by validation)"
    )
    corrected_bill_ids: list[UUID] = Field(
        default_factory=list,
        description="Equal-split bills whose shares were re-derived"
    )

    @property
    def is_settled_up(self) -> bool:
        return not self.settlements
