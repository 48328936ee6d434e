"""
Audit trail events.

Budget changes, settle-up runs, alerts and collaborator failures each
produce one AuditEvent. Events are append-only; a correction is a new
event, never an edit.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class AuditEventType(str, Enum):
    """What happened."""
    # Budget plans
    PLAN_CREATED = "plan_created"
    TRANSACTION_LOGGED = "transaction_logged"
    BUDGET_ALERT_RAISED = "budget_alert_raised"
    EXPENSE_MIRRORED = "expense_mirrored"

    # Shared bills
    BILL_CORRECTED = "bill_corrected"
    BILL_REJECTED = "bill_rejected"
    SETTLEMENTS_RESOLVED = "settlements_resolved"

    # Analytics
    INSIGHTS_GENERATED = "insights_generated"
    INSUFFICIENT_DATA = "insufficient_data"

    # Collaborators
    RATE_LOOKUP_FAILED = "rate_lookup_failed"

    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    One entry in the engine's audit trail.

    `correlation_id` ties together every event emitted by a single flow
    run, e.g. one settle-up or one logged transaction.
    """

    model_config = ConfigDict(frozen=True)

    event_type: AuditEventType
    description: str = Field(..., max_length=500)
    severity: AuditSeverity = AuditSeverity.INFO

    # Which plan, bill or report the event is about
    entity_type: Optional[str] = None
    entity_id: Optional[UUID] = None

    correlation_id: Optional[UUID] = None
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    def to_log_dict(self) -> dict:
        """Flatten to JSON-safe values for structlog keyword arguments."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.plan_created(plan_id, "2024-05", "5000", correlation_id)
        event = AuditEventBuilder.bill_rejected(bill_id, issues, correlation_id)
    """

    @staticmethod
    def plan_created(
        plan_id: UUID,
        month: str,
        total_income: str,
        policy: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_CREATED,
            entity_type="plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"Budget plan created for {month} ({policy})",
            details={
                "month": month,
                "total_income": total_income,
                "policy": policy,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_logged(
        plan_id: UUID,
        bucket: str,
        category: str,
        amount: str,
        status: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_LOGGED,
            entity_type="plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"Logged {amount} to {bucket}/{category}",
            details={
                "bucket": bucket,
                "category": category,
                "amount": amount,
                "bucket_status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def budget_alert(
        plan_id: UUID,
        bucket: str,
        message: str,
        insight_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_ALERT_RAISED,
            severity=AuditSeverity.WARNING,
            entity_type="plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=message,
            details={
                "bucket": bucket,
                "insight_type": insight_type,
            },
        )

    @staticmethod
    def expense_mirrored(
        expense_id: UUID,
        bucket: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_MIRRORED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"{bucket} transaction mirrored into the expense ledger",
            details={
                "bucket": bucket,
                "amount": amount,
            },
        )

    @staticmethod
    def bill_corrected(
        bill_id: UUID,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_CORRECTED,
            severity=AuditSeverity.INFO,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description="Equal-split shares re-derived from the bill total",
            details={
                "reason": reason,
            },
        )

    @staticmethod
    def bill_rejected(
        bill_id: UUID,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Bill excluded from settlement with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def settlements_resolved(
        bill_count: int,
        settlement_count: int,
        currency: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENTS_RESOLVED,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=(
                f"Resolved {bill_count} active bills into "
                f"{settlement_count} settlements"
            ),
            details={
                "bill_count": bill_count,
                "settlement_count": settlement_count,
                "currency": currency,
            },
            is_user_action=True,
        )

    @staticmethod
    def insights_generated(
        summary: dict,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            entity_type="report",
            correlation_id=correlation_id,
            description=(
                f"Insight report generated from {summary.get('expense_count', 0)} expenses"
            ),
            details=summary,
        )

    @staticmethod
    def insufficient_data(
        expense_count: int,
        required: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSUFFICIENT_DATA,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            correlation_id=correlation_id,
            description=(
                f"Only {expense_count} expenses on record; "
                f"{required} needed for pattern insights"
            ),
            details={
                "expense_count": expense_count,
                "required": required,
            },
        )

    @staticmethod
    def rate_lookup_failed(
        from_currency: str,
        to_currency: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_LOOKUP_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"No usable rate for {from_currency} -> {to_currency}",
            error_message=error_message,
            details={
                "from_currency": from_currency,
                "to_currency": to_currency,
            },
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
