"""
Audit Logger

DESIGN DECISION: Every save attempt and history load is logged.
This provides:
1. Traceability of each transaction from keystroke to remote ledger
2. Debugging capability when the backend rejects something
3. A record of failures that the UI only shows as a status line

The audit logger:
- Supports correlation IDs to trace all events of one save
- Keeps the most recent events in memory for a status/debug panel
"""

from collections import deque
from typing import Optional
from uuid import UUID, uuid4

import structlog

from kassa.models.audit import AuditEvent, AuditEventBuilder


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

    Logs events to the structured local log and keeps a bounded
    in-memory trail of recent events.
    """

    def __init__(self, keep_recent: int = 100):
        self._logger = structlog.get_logger("kassa.audit")
        self._recent: deque[AuditEvent] = deque(maxlen=keep_recent)

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Recent events, newest first."""
        return list(reversed(self._recent))

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        self._recent.append(event)
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_host_not_connected(self) -> None:
        self.log(AuditEventBuilder.host_not_connected())

    def log_history_fetched(
        self,
        item_count: int,
        skipped: int = 0,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful history load."""
        self.log(AuditEventBuilder.history_fetched(
            item_count=item_count,
            skipped=skipped,
            correlation_id=correlation_id,
        ))

    def log_history_failed(
        self,
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed history load."""
        self.log(AuditEventBuilder.history_failed(
            error_kind=error_kind,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_save_requested(
        self,
        transaction_type: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.save_requested(
            transaction_type=transaction_type,
            correlation_id=correlation_id,
        ))

    def log_save_rejected_busy(self, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.save_rejected_busy(correlation_id))

    def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log form validation failure."""
        self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_entry_pending(
        self,
        local_id: UUID,
        transaction_type: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.entry_pending(
            local_id=local_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_save_succeeded(
        self,
        local_id: UUID,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.save_succeeded(
            local_id=local_id,
            correlation_id=correlation_id,
        ))

    def log_save_failed(
        self,
        local_id: UUID,
        error_kind: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed submission."""
        self.log(AuditEventBuilder.save_failed(
            local_id=local_id,
            error_kind=error_kind,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_refresh_failed(
        self,
        local_id: UUID,
        error_kind: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.refresh_failed(
            local_id=local_id,
            error_kind=error_kind,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_entry_dismissed(self, local_id: UUID) -> None:
        self.log(AuditEventBuilder.entry_dismissed(local_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., pressing save).
    Pass it through all subsequent operations.
    """
    return uuid4()
