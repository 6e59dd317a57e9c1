"""
Audit Logger

DESIGN DECISION: Every expense change and every settlement computation
is logged. This provides:
1. Traceability of who changed what
2. A way to explain a surprising balance after the fact

The audit logger:
- Is async to match the store interfaces
- Gracefully handles storage failures (never crashes a flow over a log line)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from groupsplit.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from groupsplit.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("groupsplit.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_submitted(
        self,
        draft_id: UUID,
        submitted_by: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_submitted(
            draft_id=draft_id,
            submitted_by=submitted_by,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        draft_id: UUID,
        stage: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            draft_id=draft_id,
            stage=stage,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_expense_saved(
        self,
        expense_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_saved(
            expense_id=expense_id,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        expense_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_snapshot_loaded(
        self,
        expense_count: int,
        participant_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.snapshot_loaded(
            expense_count=expense_count,
            participant_count=participant_count,
            correlation_id=correlation_id,
        ))

    async def log_settlement_computed(
        self,
        period_label: str,
        member_count: int,
        transfer_count: int,
        total_spend: str,
        correlation_id: UUID,
    ) -> None:
        """Log a finished settlement calculation."""
        await self.log(AuditEventBuilder.settlement_computed(
            period_label=period_label,
            member_count=member_count,
            transfer_count=transfer_count,
            total_spend=total_spend,
            correlation_id=correlation_id,
        ))

    async def log_statistics_computed(
        self,
        time_range: str,
        expense_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.statistics_computed(
            time_range=time_range,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_profile_computed(
        self,
        member_id: str,
        expense_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.profile_computed(
            member_id=member_id,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_query_executed(
        self,
        query_id: UUID,
        result_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.query_executed(
            query_id=query_id,
            result_count=result_count,
            correlation_id=correlation_id,
        ))

    async def log_store_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an expense store failure."""
        await self.log(AuditEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., submitting an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
