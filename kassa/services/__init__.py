"""
External Services Package

Wrappers around everything Kassa talks to: the remote ledger and the
host messaging platform.
"""

from kassa.services.host import HostIdentity, resolve_identity
from kassa.services.sync import (
    AccessDeniedError,
    AppsScriptSyncClient,
    LedgerSyncInterface,
    NetworkError,
    RemoteValidationError,
    SetupRequiredError,
    SyncError,
)

__all__ = [
    # Host
    "HostIdentity",
    "resolve_identity",
    # Sync
    "AccessDeniedError",
    "AppsScriptSyncClient",
    "LedgerSyncInterface",
    "NetworkError",
    "RemoteValidationError",
    "SetupRequiredError",
    "SyncError",
]
