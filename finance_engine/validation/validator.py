"""
Two-Stage Validation for Split Bills

DESIGN DECISION: The settlement resolver assumes every bill's shares add up
to its total. That assumption is enforced here, at the boundary, before
settlement runs:

STAGE 1 - SCHEMA VALIDATION:
- Participants present
- Payer and share holders are known
- Custom mapping covers the participants

STAGE 2 - SEMANTIC VALIDATION:
- Shares sum to the total within tolerance
- Equal splits that drifted are re-derived (when auto-correct is on)
- Custom splits that don't add up are rejected

Stage 2 is skipped if stage 1 fails.

IMPORTANT: Only equal splits are ever corrected, because their shares are
fully determined by the total. A custom mapping is the user's intent and
is never silently rewritten.
"""

from decimal import Decimal
from typing import Iterable, Optional

from finance_engine.models.splits import (
    CENT,
    Participant,
    SplitBill,
    SplitType,
    equal_shares,
)
from finance_engine.models.validation import ValidationIssue, ValidationResult


class SplitBillValidator:
    """
    Validates split bills through a two-stage pipeline.

    Stage 1: Schema validation (structure and references)
    Stage 2: Semantic validation (share arithmetic)
    """

    def __init__(
        self,
        tolerance: Decimal = CENT,
        auto_correct_equal_splits: bool = True,
    ):
        """
        Args:
            tolerance: Allowed gap between sum of shares and the total.
            auto_correct_equal_splits: Re-derive drifted equal-split shares
                instead of rejecting the bill.
        """
        self._tolerance = tolerance
        self._auto_correct = auto_correct_equal_splits

    def _validate_schema(
        self,
        bill: SplitBill,
        known_ids: Optional[set[str]],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not bill.participant_ids:
            issues.append(ValidationIssue(
                field="participant_ids",
                issue_type="missing",
                message="A bill needs at least one participant to be split",
                severity="error",
                suggested_fix="Add the people sharing this bill",
            ))

        if bill.total_amount == 0:
            issues.append(ValidationIssue(
                field="total_amount",
                issue_type="suspicious_value",
                message="Bill total is zero, it will not move any balance",
                severity="warning",
            ))

        if known_ids is not None:
            if bill.payer_id not in known_ids:
                issues.append(ValidationIssue(
                    field="payer_id",
                    issue_type="unknown_participant",
                    message=f"Payer '{bill.payer_id}' is not in the group",
                    severity="warning",
                    suggested_fix="Add the payer to the group",
                ))
            unknown = [p for p in bill.participant_ids if p not in known_ids]
            if unknown:
                issues.append(ValidationIssue(
                    field="participant_ids",
                    issue_type="unknown_participant",
                    message=f"Participants not in the group: {', '.join(unknown)}",
                    severity="warning",
                    suggested_fix="Add them to the group",
                ))

        if bill.split_type == SplitType.CUSTOM:
            strangers = [p for p in bill.custom_amounts if p not in bill.participant_ids]
            if strangers:
                issues.append(ValidationIssue(
                    field="custom_amounts",
                    issue_type="unexpected_share",
                    message=f"Shares given for non-participants: {', '.join(strangers)}",
                    severity="error",
                    suggested_fix="Remove those shares or add them as participants",
                ))
            missing = [p for p in bill.participant_ids if p not in bill.custom_amounts]
            if missing:
                issues.append(ValidationIssue(
                    field="custom_amounts",
                    issue_type="missing_share",
                    message=f"No share given for: {', '.join(missing)} (treated as 0)",
                    severity="warning",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        bill: SplitBill,
    ) -> tuple[bool, list[ValidationIssue], Optional[SplitBill]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues, corrected_bill_or_None)
        """
        issues = []
        corrected = None

        shares = bill.shares()
        share_sum = sum(
            (shares.get(p, Decimal("0")) for p in bill.participant_ids),
            Decimal("0"),
        )
        gap = share_sum - bill.total_amount

        if abs(gap) > self._tolerance:
            message = (
                f"Shares add up to {share_sum} {bill.currency} but the bill "
                f"total is {bill.total_amount} {bill.currency}"
            )
            if bill.split_type == SplitType.EQUAL and self._auto_correct:
                corrected = bill.model_copy(update={
                    "custom_amounts": equal_shares(bill.total_amount, bill.participant_ids),
                })
                issues.append(ValidationIssue(
                    field="custom_amounts",
                    issue_type="share_mismatch",
                    message=message,
                    severity="warning",
                    suggested_fix="Equal shares were recalculated from the total",
                ))
            else:
                issues.append(ValidationIssue(
                    field="custom_amounts",
                    issue_type="share_mismatch",
                    message=message,
                    severity="error",
                    suggested_fix="Adjust the shares so they add up to the total",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues, corrected

    def validate(
        self,
        bill: SplitBill,
        participants: Optional[Iterable[Participant]] = None,
    ) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Args:
            bill: The bill to validate
            participants: The group; when given, unknown ids are reported

        Returns:
            ValidationResult with all issues found, and a corrected copy
            when equal shares were re-derived
        """
        known_ids = {p.id for p in participants} if participants is not None else None
        all_issues = []
        corrected = None

        schema_valid, schema_issues = self._validate_schema(bill, known_ids)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues, corrected = self._validate_semantic(bill)
            all_issues.extend(semantic_issues)

        if bill.settled:
            all_issues.append(ValidationIssue(
                field="settled",
                issue_type="settled",
                message="Bill is already settled and is left out of settlement",
                severity="info",
            ))

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]
        is_valid = schema_valid and semantic_valid

        return ValidationResult(
            bill_id=bill.id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=is_valid,
            can_settle=is_valid and not bill.settled,
            issues=all_issues,
            warnings=warnings,
            corrected_bill=corrected,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show on the settle-up screen.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! This bill is ready to settle."

        lines = []

        if result.has_errors:
            lines.append("❌ This bill can't be settled yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        if result.was_corrected:
            lines.append("")
            lines.append("Equal shares were recalculated so they add up to the total.")

        if not result.can_settle:
            lines.append("")
            lines.append("Please fix the issues above before settling up.")

        return "\n".join(lines).strip()
