"""
Ledger Sync Package

Provides the abstract interface to the remote ledger and the Apps Script
implementation. Designed to be swappable.
"""

from kassa.services.sync.interface import (
    AccessDeniedError,
    LedgerSyncInterface,
    NetworkError,
    RemoteValidationError,
    SetupRequiredError,
    SyncError,
)
from kassa.services.sync.apps_script import (
    AppsScriptSyncClient,
    build_history_payload,
    build_submit_payload,
    classify_remote_error,
)

__all__ = [
    # Interface
    "LedgerSyncInterface",
    # Exceptions
    "AccessDeniedError",
    "NetworkError",
    "RemoteValidationError",
    "SetupRequiredError",
    "SyncError",
    # Apps Script implementation
    "AppsScriptSyncClient",
    "build_history_payload",
    "build_submit_payload",
    "classify_remote_error",
]
