"""
Transaction list rows.

Turns ledger entries into the text a transaction card shows: title, date,
signed main amount and, for exchanges, the received side underneath.

    Обмен        22.12.2025          - 2 000 UZS
                                      + 0,16 USD

Layout and styling belong to whatever renders these rows.
"""

from typing import Iterable, Optional

from pydantic import BaseModel

from kassa.models.transaction import (
    EntryStatus,
    LedgerEntry,
    TransactionRecord,
    TransactionType,
)
from kassa.money.fx import compute_receive


_STATUS_LABELS = {
    EntryStatus.PENDING: "Сохраняется…",
    EntryStatus.COMMITTED: "",
    EntryStatus.FAILED: "Не сохранено",
}

_ICONS = {
    TransactionType.INFLOW: "↙",
    TransactionType.OUTFLOW: "↗",
    TransactionType.EXCHANGE: "⇄",
}


class TransactionRow(BaseModel):
    """One card of the transaction list."""

    title: str
    date: str
    amount_main: str
    amount_sub: Optional[str] = None
    kind: TransactionType
    icon: str
    status: EntryStatus
    status_label: str = ""
    local_id: Optional[str] = None


def received_side(record: TransactionRecord, home_currency: str) -> Optional[str]:
    """'+ 0,16 USD' for an exchange with a usable rate, None otherwise."""
    if record.type != TransactionType.EXCHANGE or record.fx_rate is None:
        return None
    foreign = record.fx_currency.value if record.fx_currency else home_currency
    quote = compute_receive(
        give=record.amount.to_decimal(),
        rate=record.fx_rate.to_decimal(),
        give_currency=record.currency.value,
        home_currency=home_currency,
        foreign_currency=foreign,
    )
    if quote.is_zero:
        return None
    return quote.signed_display


def build_row(entry: LedgerEntry, home_currency: str) -> TransactionRow:
    record = entry.record
    return TransactionRow(
        title=record.type.title,
        date=record.date_text,
        amount_main=f"{record.type.sign} {record.amount.display} {record.currency.value}",
        amount_sub=received_side(record, home_currency),
        kind=record.type,
        icon=_ICONS[record.type],
        status=entry.status,
        status_label=_STATUS_LABELS[entry.status],
        local_id=str(entry.local_id) if entry.local_id else None,
    )


def build_rows(
    entries: Iterable[LedgerEntry],
    home_currency: str,
    limit: Optional[int] = None,
) -> list[TransactionRow]:
    """Rows for the first `limit` entries (all of them when limit is None)."""
    rows = []
    for entry in entries:
        if limit is not None and len(rows) >= limit:
            break
        rows.append(build_row(entry, home_currency))
    return rows


def pager_label(shown: int, page_size: int) -> str:
    """'2 / 3' style counter under the list."""
    return f"{min(shown, page_size)} / {page_size}"
