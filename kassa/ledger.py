"""
Optimistic Ledger

The in-memory transaction list the user sees. A new transaction appears
in the list the moment the user presses save, long before the backend
answers.

ENTRY LIFECYCLE (local entries only):

    PENDING --resolve_save--> COMMITTED --next snapshot--> (replaced)
       |
       +-----fail_save------> FAILED --dismiss--> (removed by the user)

COMMITTED and FAILED are terminal. A failed entry is never retried; saving
again creates a new PENDING entry.

DESIGN DECISION: Reconciliation is by identity (local_id), never by list
position. After a successful save the whole committed snapshot is
replaced by a fresh fetch instead of patching the new row in, so there is
nothing to merge with rows other clients added meanwhile.

Rendered order: local entries (newest first), then the last committed
snapshot in the order the backend sent it.
"""

from typing import Optional
from uuid import UUID

from kassa.models.transaction import (
    EntryStatus,
    ErrorKind,
    HistorySnapshot,
    LedgerEntry,
    TransactionRecord,
)


class LedgerStateError(Exception):
    """A transition was requested from a state that does not allow it."""
    pass


class OptimisticLedger:
    """
    Ordered transaction list with pending / committed / failed entries.

    All mutation goes through the transition methods below.
    """

    def __init__(self):
        self._local: list[LedgerEntry] = []
        self._committed: list[TransactionRecord] = []
        self._snapshot: Optional[HistorySnapshot] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[LedgerEntry]:
        """The rendered sequence."""
        committed = [
            LedgerEntry(record=record, status=EntryStatus.COMMITTED)
            for record in self._committed
        ]
        return list(self._local) + committed

    @property
    def pending(self) -> list[LedgerEntry]:
        return [e for e in self._local if e.status == EntryStatus.PENDING]

    @property
    def failed(self) -> list[LedgerEntry]:
        return [e for e in self._local if e.status == EntryStatus.FAILED]

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    @property
    def snapshot(self) -> Optional[HistorySnapshot]:
        return self._snapshot

    def get(self, local_id: UUID) -> LedgerEntry:
        """Find a local entry by identity. Raises KeyError if unknown."""
        for entry in self._local:
            if entry.local_id == local_id:
                return entry
        raise KeyError(local_id)

    def __len__(self) -> int:
        return len(self._local) + len(self._committed)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin_save(self, record: TransactionRecord) -> LedgerEntry:
        """Prepend a PENDING entry for a record that is about to be submitted."""
        entry = LedgerEntry.pending(record)
        self._local.insert(0, entry)
        return entry

    def resolve_save(
        self,
        local_id: UUID,
        snapshot: Optional[HistorySnapshot] = None,
    ) -> LedgerEntry:
        """
        The backend accepted the entry.

        With a fresh snapshot the entry is superseded immediately. Without
        one (the re-fetch failed) it stays visible as COMMITTED until the
        next snapshot arrives.
        """
        entry = self.get(local_id)
        if entry.status != EntryStatus.PENDING:
            raise LedgerStateError(
                f"Cannot commit entry {local_id} in state {entry.status.value}"
            )
        entry.status = EntryStatus.COMMITTED
        if snapshot is not None:
            self.replace_snapshot(snapshot)
        return entry

    def fail_save(
        self,
        local_id: UUID,
        error_kind: ErrorKind,
        error_message: Optional[str] = None,
    ) -> LedgerEntry:
        """Mark one PENDING entry FAILED in place. Other entries are untouched."""
        entry = self.get(local_id)
        if entry.status != EntryStatus.PENDING:
            raise LedgerStateError(
                f"Cannot fail entry {local_id} in state {entry.status.value}"
            )
        entry.status = EntryStatus.FAILED
        entry.error_kind = error_kind
        entry.error_message = error_message
        return entry

    def replace_snapshot(self, snapshot: HistorySnapshot) -> None:
        """
        Install a fresh authoritative history.

        COMMITTED local entries are now part of the remote list and go away.
        PENDING and FAILED entries stay on top.
        """
        self._snapshot = snapshot
        self._committed = list(snapshot.items)
        self._local = [e for e in self._local if e.status != EntryStatus.COMMITTED]

    def clear_snapshot(self) -> None:
        """Forget the committed history (it can no longer be trusted)."""
        self._snapshot = None
        self._committed = []

    def dismiss(self, local_id: UUID) -> LedgerEntry:
        """Remove a FAILED entry at the user's request."""
        entry = self.get(local_id)
        if entry.status != EntryStatus.FAILED:
            raise LedgerStateError(
                f"Only failed entries can be dismissed, {local_id} is {entry.status.value}"
            )
        self._local = [e for e in self._local if e.local_id != local_id]
        return entry
