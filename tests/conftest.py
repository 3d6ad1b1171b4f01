"""
Shared fixtures.

No test talks to a real backend: the controller gets an in-memory fake of
the sync interface, the Apps Script client gets an httpx.MockTransport.
"""

from typing import Optional

import pytest

from kassa.audit import AuditLogger
from kassa.config import AppSettings
from kassa.models.transaction import (
    HistorySnapshot,
    PhotoAttachment,
    SubmitReceipt,
    TransactionRecord,
)
from kassa.services.host import HostIdentity
from kassa.services.sync import LedgerSyncInterface


class FakeLedgerSync(LedgerSyncInterface):
    """
    In-memory remote ledger.

    Submitted records are appended to `rows` and show up in the next
    history fetch (newest first). Set `submit_error` / `fetch_error` to
    make the next calls fail.
    """

    def __init__(self, rows: Optional[list[TransactionRecord]] = None):
        self.rows: list[TransactionRecord] = list(rows or [])
        self.submit_calls: list[tuple[TransactionRecord, str, Optional[PhotoAttachment]]] = []
        self.fetch_calls: list[str] = []
        self.submit_error: Optional[Exception] = None
        self.fetch_error: Optional[Exception] = None

    async def fetch_history(self, user_token: str) -> HistorySnapshot:
        self.fetch_calls.append(user_token)
        if self.fetch_error is not None:
            raise self.fetch_error
        return HistorySnapshot(items=list(reversed(self.rows)))

    async def submit(
        self,
        record: TransactionRecord,
        user_token: str,
        photo: Optional[PhotoAttachment] = None,
    ) -> SubmitReceipt:
        self.submit_calls.append((record, user_token, photo))
        if self.submit_error is not None:
            raise self.submit_error
        self.rows.append(record)
        return SubmitReceipt()


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        home_currency="UZS",
        default_currency="UZS",
        default_fx_currency="USD",
        history_preview_size=3,
        max_upload_size_mb=1,
    )


@pytest.fixture
def fake_sync() -> FakeLedgerSync:
    return FakeLedgerSync()


@pytest.fixture
def identity() -> HostIdentity:
    return HostIdentity(user_token="query_id=AAE&user=%7B%22id%22%3A42%7D&hash=abc", user_id=42)


@pytest.fixture
def audit_logger() -> AuditLogger:
    return AuditLogger()


@pytest.fixture
def sample_record() -> TransactionRecord:
    return TransactionRecord(
        type="in",
        date="22.12.2025",
        amount="200",
        currency="UZS",
        counterparty="Азиз",
        comment="долг",
    )

