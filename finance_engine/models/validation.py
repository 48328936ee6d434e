"""
Validation Models

Results of boundary validation. Validation reports problems; it does not
raise mid-algorithm.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_engine.models.splits import SplitBill


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'share_mismatch', 'unknown_participant')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation of one split bill.

    Stage 1: Schema validation (participants, payer, amounts)
    Stage 2: Semantic validation (shares add up to the total)

    When the validator could repair the bill (equal-split drift), the
    repaired copy is carried in corrected_bill.
    """

    bill_id: UUID = Field(
        ...,
        description="ID of the bill being validated"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    can_settle: bool = Field(
        ...,
        description="May this bill (or its corrected copy) enter settlement?"
    )

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    corrected_bill: Optional[SplitBill] = None

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def was_corrected(self) -> bool:
        return self.corrected_bill is not None
