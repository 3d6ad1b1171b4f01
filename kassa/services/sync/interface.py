"""
Abstract Ledger Sync Interface

DESIGN DECISION: We define an abstract interface for the remote ledger.
This allows us to:
1. Swap the Apps Script backend for a real API later
2. Use an in-memory fake for testing
3. Keep the form controller decoupled from transport details

The interface is intentionally narrow: fetch the history, submit one
transaction. Both calls are single-shot. There is no retry and no backoff;
a failure is raised once and the caller decides what to show.
"""

from abc import ABC, abstractmethod
from typing import Optional

from kassa.models.transaction import (
    ErrorKind,
    HistorySnapshot,
    PhotoAttachment,
    SubmitReceipt,
    TransactionRecord,
)


class LedgerSyncInterface(ABC):
    """
    Abstract interface for the remote transaction ledger.

    Any backend implementation must implement these methods.
    """

    @abstractmethod
    async def fetch_history(self, user_token: str) -> HistorySnapshot:
        """
        Fetch the authoritative transaction list for a user.

        Args:
            user_token: Opaque identity token from the host platform

        Returns:
            The current remote snapshot

        Raises:
            SyncError: Classified failure (network, access, setup, validation)
        """
        pass

    @abstractmethod
    async def submit(
        self,
        record: TransactionRecord,
        user_token: str,
        photo: Optional[PhotoAttachment] = None,
    ) -> SubmitReceipt:
        """
        Submit a new transaction.

        Args:
            record: The validated transaction
            user_token: Opaque identity token from the host platform
            photo: Optional photo sent inline with the transaction

        Returns:
            Acknowledgement from the backend

        Raises:
            SyncError: Classified failure (network, access, setup, validation)
        """
        pass

    async def aclose(self) -> None:
        """Release transport resources. Default: nothing to release."""
        return None


class SyncError(Exception):
    """Base exception for remote ledger operations."""

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(self, message: str = "", remote_error: Optional[str] = None):
        super().__init__(message or self.kind.value)
        self.remote_error = remote_error


class NetworkError(SyncError):
    """Transport failure, timeout, or a response body we could not parse."""
    kind = ErrorKind.NETWORK


class AccessDeniedError(SyncError):
    """The backend refused the caller."""
    kind = ErrorKind.ACCESS_DENIED


class SetupRequiredError(SyncError):
    """The backend knows the caller but onboarding is not finished."""
    kind = ErrorKind.SETUP_REQUIRED


class RemoteValidationError(SyncError):
    """The backend rejected the payload."""
    kind = ErrorKind.VALIDATION
