"""
Structured audit logging for the orchestrated flows.

Events always go to the local structlog stream. When an audit store is
configured they are appended there too; a failing store is reported
through the return value of `AuditLogger.log` and never interrupts the
flow that emitted the event.

The computational components never log; only the flows do.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_engine.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finance_engine.services.storage import AuditStorageInterface


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", key="logged_at"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

_LEVEL_FOR_SEVERITY = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


def configure_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging (and so structlog output) at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper()))
    logging.getLogger("finance_engine").setLevel(log_level.upper())


class AuditLogger:
    """
    Writes audit events to the log stream and, optionally, an audit store.

    One `log_*` helper exists per event the flows emit, so call sites
    pass plain values and never build AuditEvent objects themselves.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger("finance_engine.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Emit one event.

        Returns False only when the audit store rejected the write.
        """
        emit = getattr(self._logger, _LEVEL_FOR_SEVERITY[event.severity])
        emit("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
                event_type=event.event_type.value,
            )
            return False

    async def log_plan_created(
        self,
        plan_id: UUID,
        month: str,
        total_income: str,
        policy: str,
        correlation_id: UUID,
    ) -> None:
        """Log budget plan creation."""
        event = AuditEventBuilder.plan_created(
            plan_id=plan_id,
            month=month,
            total_income=total_income,
            policy=policy,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_logged(
        self,
        plan_id: UUID,
        bucket: str,
        category: str,
        amount: str,
        status: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.transaction_logged(
            plan_id=plan_id,
            bucket=bucket,
            category=category,
            amount=amount,
            status=status,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_alert(
        self,
        plan_id: UUID,
        bucket: str,
        message: str,
        insight_type: str,
        correlation_id: UUID,
    ) -> None:
        """Log a warning/alert raised on a bucket."""
        event = AuditEventBuilder.budget_alert(
            plan_id=plan_id,
            bucket=bucket,
            message=message,
            insight_type=insight_type,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_mirrored(
        self,
        expense_id: UUID,
        bucket: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.expense_mirrored(
            expense_id=expense_id,
            bucket=bucket,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_bill_corrected(
        self,
        bill_id: UUID,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.bill_corrected(
            bill_id=bill_id,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_bill_rejected(
        self,
        bill_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a bill excluded from settlement by validation."""
        event = AuditEventBuilder.bill_rejected(
            bill_id=bill_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_settlements_resolved(
        self,
        bill_count: int,
        settlement_count: int,
        currency: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.settlements_resolved(
            bill_count=bill_count,
            settlement_count=settlement_count,
            currency=currency,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_insights_generated(
        self,
        summary: dict,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.insights_generated(
            summary=summary,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_insufficient_data(
        self,
        expense_count: int,
        required: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.insufficient_data(
            expense_count=expense_count,
            required=required,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_rate_lookup_failed(
        self,
        from_currency: str,
        to_currency: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a currency rate that could not be resolved."""
        event = AuditEventBuilder.rate_lookup_failed(
            from_currency=from_currency,
            to_currency=to_currency,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a settle-up run).
    Pass it through all subsequent operations.
    """
    return uuid4()
