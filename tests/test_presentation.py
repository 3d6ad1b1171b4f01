"""Tests for transaction list rows."""

from kassa.models.transaction import (
    EntryStatus,
    LedgerEntry,
    TransactionRecord,
    TransactionType,
)
from kassa.presentation import build_rows, pager_label


def exchange(amount: str, currency: str, rate: str = "12800", fx_currency: str = "USD") -> TransactionRecord:
    return TransactionRecord(
        type="fx",
        date="22.12.2025",
        amount=amount,
        currency=currency,
        fx_rate=rate,
        fx_currency=fx_currency,
    )


class TestBuildRows:
    """Tests for build_rows()."""

    def test_inflow_row(self, sample_record):
        """Test title, sign and grouping of a cash row."""
        row = build_rows([LedgerEntry(record=sample_record)], "UZS")[0]
        assert row.title == "Получил"
        assert row.date == "22.12.2025"
        assert row.amount_main == "+ 200 UZS"
        assert row.amount_sub is None
        assert row.kind == TransactionType.INFLOW

    def test_exchange_from_home(self):
        """Test giving the home currency shows the foreign amount received."""
        row = build_rows([LedgerEntry(record=exchange("2000", "UZS"))], "UZS")[0]
        assert row.title == "Обмен"
        assert row.amount_main == "- 2 000 UZS"
        assert row.amount_sub == "+ 0,16 USD"

    def test_exchange_to_home(self):
        """Test giving a foreign currency shows the home amount received."""
        row = build_rows([LedgerEntry(record=exchange("100", "USD"))], "UZS")[0]
        assert row.amount_sub == "+ 1 280 000,00 UZS"

    def test_exchange_without_rate(self):
        """Test no sub-line when the rate is missing."""
        record = TransactionRecord(type="fx", date="22.12.2025", amount="1", currency="USD")
        row = build_rows([LedgerEntry(record=record)], "UZS")[0]
        assert row.amount_sub is None

    def test_status_is_carried(self, sample_record):
        """Test pending and failed entries are labelled."""
        pending = LedgerEntry.pending(sample_record)
        failed = LedgerEntry.pending(sample_record)
        failed.status = EntryStatus.FAILED
        rows = build_rows([pending, failed], "UZS")
        assert rows[0].status == EntryStatus.PENDING
        assert rows[0].local_id == str(pending.local_id)
        assert rows[1].status_label == "Не сохранено"

    def test_limit(self, sample_record):
        """Test only the first rows are built."""
        entries = [LedgerEntry(record=sample_record) for _ in range(5)]
        assert len(build_rows(entries, "UZS", limit=3)) == 3
        assert len(build_rows(entries, "UZS")) == 5


class TestPagerLabel:
    """Tests for pager_label()."""

    def test_label(self):
        assert pager_label(2, 3) == "2 / 3"
        assert pager_label(7, 3) == "3 / 3"
