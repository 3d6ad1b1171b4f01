"""
Data Models Package

This package contains all Pydantic models used in Kassa.
All data flowing through the system must conform to these schemas.
"""

from kassa.models.transaction import (
    REQUIRED_FIELDS,
    ZERO_AMOUNT,
    CanonicalAmount,
    Currency,
    EntryStatus,
    ErrorKind,
    HistorySnapshot,
    LedgerEntry,
    PhotoAttachment,
    SubmitReceipt,
    TransactionDraft,
    TransactionRecord,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    format_date,
    parse_date,
)
from kassa.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "REQUIRED_FIELDS",
    "ZERO_AMOUNT",
    "CanonicalAmount",
    "Currency",
    "EntryStatus",
    "ErrorKind",
    "HistorySnapshot",
    "LedgerEntry",
    "PhotoAttachment",
    "SubmitReceipt",
    "TransactionDraft",
    "TransactionRecord",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "format_date",
    "parse_date",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
