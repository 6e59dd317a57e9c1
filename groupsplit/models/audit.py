"""
Audit Models for Group Expense Splitting

Every expense submission and every settlement computation is logged.
This provides:
1. Traceability of who changed which expense
2. Debugging information when balances look wrong
3. A record of which snapshot a settlement was computed from

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ingestion
    EXPENSE_SUBMITTED = "expense_submitted"
    EXPENSE_VALIDATION_FAILED = "expense_validation_failed"
    EXPENSE_SAVED = "expense_saved"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Computation
    SNAPSHOT_LOADED = "snapshot_loaded"
    SETTLEMENT_COMPUTED = "settlement_computed"
    STATISTICS_COMPUTED = "statistics_computed"
    PROFILE_COMPUTED = "profile_computed"
    QUERY_EXECUTED = "query_executed"

    # System events
    STORE_ERROR = "store_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'settlement', 'member')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one expense submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_saved(expense_id, amount, correlation_id)
        event = AuditEventBuilder.settlement_computed("2024-05", 4, 3, correlation_id)
    """

    @staticmethod
    def expense_submitted(
        draft_id: UUID,
        submitted_by: Optional[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SUBMITTED,
            entity_type="draft",
            entity_id=str(draft_id),
            correlation_id=correlation_id,
            description="Expense submitted for validation",
            details={"submitted_by": submitted_by},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        draft_id: UUID,
        stage: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            entity_id=str(draft_id),
            correlation_id=correlation_id,
            description=f"{stage.capitalize()} validation failed with {len(issues)} issues",
            details={
                "stage": stage,
                "issues": issues,
            },
        )

    @staticmethod
    def expense_saved(
        expense_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SAVED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense saved: {amount}",
            details={"amount": amount},
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense updated",
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense deleted",
            is_user_action=True,
        )

    @staticmethod
    def snapshot_loaded(
        expense_count: int,
        participant_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Loaded {expense_count} expenses and {participant_count} participants",
            details={
                "expense_count": expense_count,
                "participant_count": participant_count,
            },
        )

    @staticmethod
    def settlement_computed(
        period_label: str,
        member_count: int,
        transfer_count: int,
        total_spend: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPUTED,
            entity_type="settlement",
            entity_id=period_label,
            correlation_id=correlation_id,
            description=(
                f"Settlement for {period_label}: {transfer_count} transfers "
                f"across {member_count} members"
            ),
            details={
                "member_count": member_count,
                "transfer_count": transfer_count,
                "total_spend": total_spend,
            },
        )

    @staticmethod
    def statistics_computed(
        time_range: str,
        expense_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATISTICS_COMPUTED,
            entity_type="statistics",
            entity_id=time_range,
            correlation_id=correlation_id,
            description=f"Statistics for {time_range} over {expense_count} expenses",
            details={"expense_count": expense_count},
        )

    @staticmethod
    def profile_computed(
        member_id: str,
        expense_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_COMPUTED,
            entity_type="member",
            entity_id=member_id,
            correlation_id=correlation_id,
            description=f"Profile computed over {expense_count} expenses",
            details={"expense_count": expense_count},
        )

    @staticmethod
    def query_executed(
        query_id: UUID,
        result_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.QUERY_EXECUTED,
            entity_type="query",
            entity_id=str(query_id),
            correlation_id=correlation_id,
            description=f"Expense query returned {result_count} results",
            details={"result_count": result_count},
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Expense store error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
