"""
Audit Models for Kassa

Every save attempt and every history load is logged for audit purposes.
This provides:
1. Traceability of what the user tried to record and what happened to it
2. Debugging information when the backend misbehaves
3. A visible trail for failures that the UI shows only as a status

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the save flow has its own event type.
    """
    # Host / connection
    HOST_NOT_CONNECTED = "host_not_connected"
    HISTORY_FETCHED = "history_fetched"
    HISTORY_FAILED = "history_failed"

    # Save flow
    SAVE_REQUESTED = "save_requested"
    SAVE_REJECTED_BUSY = "save_rejected_busy"
    VALIDATION_FAILED = "validation_failed"
    ENTRY_PENDING = "entry_pending"
    SAVE_SUCCEEDED = "save_succeeded"
    SAVE_FAILED = "save_failed"
    REFRESH_FAILED = "refresh_failed"
    ENTRY_DISMISSED = "entry_dismissed"

    # System events
    SYSTEM_ERROR = "system_error"


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

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'history')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events of one save share an id
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
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
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entry_pending(local_id, "fx", "100", correlation_id)
        event = AuditEventBuilder.save_failed(local_id, "network", "timeout", correlation_id)
    """

    @staticmethod
    def host_not_connected() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HOST_NOT_CONNECTED,
            severity=AuditSeverity.WARNING,
            entity_type="history",
            description="No host identity: working offline",
        )

    @staticmethod
    def history_fetched(
        item_count: int,
        skipped: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_FETCHED,
            entity_type="history",
            correlation_id=correlation_id,
            description=f"History loaded: {item_count} transactions",
            details={
                "item_count": item_count,
                "skipped_items": skipped,
            },
        )

    @staticmethod
    def history_failed(
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="history",
            correlation_id=correlation_id,
            description=f"History unavailable: {error_kind}",
            error_code=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def save_requested(
        transaction_type: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_REQUESTED,
            entity_type="entry",
            correlation_id=correlation_id,
            description=f"Save requested for '{transaction_type}' transaction",
            details={"transaction_type": transaction_type},
            is_user_action=True,
        )

    @staticmethod
    def save_rejected_busy(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_REJECTED_BUSY,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            correlation_id=correlation_id,
            description="Save ignored: another save is in flight",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            correlation_id=correlation_id,
            description=f"Form validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def entry_pending(
        local_id: UUID,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_PENDING,
            entity_type="entry",
            entity_id=local_id,
            correlation_id=correlation_id,
            description=f"Pending entry added: {transaction_type} {amount}",
            details={
                "transaction_type": transaction_type,
                "amount": amount,
            },
        )

    @staticmethod
    def save_succeeded(
        local_id: UUID,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_SUCCEEDED,
            entity_type="entry",
            entity_id=local_id,
            correlation_id=correlation_id,
            description="Remote ledger accepted the transaction",
        )

    @staticmethod
    def save_failed(
        local_id: UUID,
        error_kind: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="entry",
            entity_id=local_id,
            correlation_id=correlation_id,
            description=f"Save failed: {error_kind}",
            error_code=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def refresh_failed(
        local_id: UUID,
        error_kind: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REFRESH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="entry",
            entity_id=local_id,
            correlation_id=correlation_id,
            description="Saved, but the history could not be reloaded",
            error_code=error_kind,
            error_message=error_message,
        )

    @staticmethod
    def entry_dismissed(local_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_DISMISSED,
            entity_type="entry",
            entity_id=local_id,
            description="Failed entry dismissed by user",
            is_user_action=True,
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
