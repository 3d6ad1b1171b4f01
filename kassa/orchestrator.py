"""
Transaction Form Controller

This module ties together all the components and defines the
end-to-end flows for:
1. Entry (keystroke → normalize → format → FX preview → validate → save)
2. History (host identity → fetch → snapshot → rows)

DESIGN DECISION: The controller is the only owner of form state.
- Every mutation is a named transition (or an event dispatched into one)
- Nothing reaches the network without passing validation
- Every save attempt and history load is audited

SAVE FLOW:
    validate ──errors──> field errors, no entry, no request
       │
    saving? ──yes──> rejected, not queued
       │
    begin_save (PENDING, shown at once)
       │
    submit ──SyncError──> fail_save (FAILED, only this entry)
       │
    fetch_history (exactly once) ──> resolve_save (COMMITTED)
       │
    clear inputs
"""

from datetime import date
from enum import Enum
from typing import Literal, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field, ValidationError

from kassa.audit import AuditLogger, create_correlation_id
from kassa.config import AppSettings, get_settings
from kassa.ledger import OptimisticLedger
from kassa.models.transaction import (
    Currency,
    ErrorKind,
    LedgerEntry,
    PhotoAttachment,
    TransactionDraft,
    TransactionRecord,
    TransactionType,
    format_date,
)
from kassa.money.formatter import blur as blur_amount
from kassa.money.formatter import format_amount, reformat
from kassa.money.fx import FxQuote, compute_receive
from kassa.money.normalizer import normalize
from kassa.presentation import TransactionRow, build_rows, pager_label
from kassa.services.host import HostIdentity, resolve_identity
from kassa.services.sync import AppsScriptSyncClient, LedgerSyncInterface, SyncError
from kassa.validation import TransactionValidator


logger = structlog.get_logger(__name__)


AMOUNT_FIELDS = ("amount", "fx_rate")
TEXT_FIELDS = ("date", "counterparty", "comment")

# Button cycle order of the two currency selectors
MAIN_CURRENCIES = [Currency.UZS, Currency.USD, Currency.EUR, Currency.RUB, Currency.KZT]
FX_CURRENCIES = [Currency.USD, Currency.EUR, Currency.RUB, Currency.KZT, Currency.UZS]

MSG_SAVED = "Сохранено"
MSG_OFFLINE = "Нет связи"
MSG_BUSY = "Сохранение уже идёт"
MSG_REFRESH_FAILED = "Сохранено, но список не обновлён"
MSG_PHOTO_TOO_LARGE = "Файл слишком большой"

_FAILURE_MESSAGES = {
    ErrorKind.NETWORK: MSG_OFFLINE,
    ErrorKind.ACCESS_DENIED: "Нет доступа",
    ErrorKind.SETUP_REQUIRED: "Требуется настройка",
    ErrorKind.VALIDATION: "Сервер отклонил запись",
}


class HistoryStatus(str, Enum):
    """What the history block shows instead of (or above) the list."""
    IDLE_NOT_CONNECTED = "idle_not_connected"
    CONNECTED = "connected"
    NOT_CONNECTED = "not_connected"
    NO_ACCESS = "no_access"
    SETUP_REQUIRED = "setup_required"


_STATUS_BY_ERROR = {
    ErrorKind.NETWORK: HistoryStatus.NOT_CONNECTED,
    ErrorKind.ACCESS_DENIED: HistoryStatus.NO_ACCESS,
    ErrorKind.SETUP_REQUIRED: HistoryStatus.SETUP_REQUIRED,
    ErrorKind.VALIDATION: HistoryStatus.NOT_CONNECTED,
}


class FormState(BaseModel):
    """
    Everything the form shows.

    Amount fields hold canonical strings; the display text is derived.
    """

    type: TransactionType = TransactionType.EXCHANGE
    date: str = Field(default_factory=lambda: format_date(date.today()))
    amount: str = ""
    currency: Currency = Currency.UZS
    fx_rate: str = ""
    fx_currency: Currency = Currency.USD
    counterparty: str = ""
    comment: str = ""
    photo: Optional[PhotoAttachment] = None

    saving: bool = False
    field_errors: dict[str, str] = Field(default_factory=dict)
    history_status: HistoryStatus = HistoryStatus.IDLE_NOT_CONNECTED
    status_message: Optional[str] = None
    identity: Optional[HostIdentity] = None

    @property
    def shows_counterparty(self) -> bool:
        """The counterparty block is hidden for exchanges."""
        return self.type != TransactionType.EXCHANGE

    def display_of(self, field: str) -> str:
        if field in AMOUNT_FIELDS:
            return format_amount(getattr(self, field))
        return getattr(self, field)


class FieldUpdate(BaseModel):
    """New text and caret position for an input after an event."""

    display: str
    caret: int


# =============================================================================
# EVENTS
# =============================================================================

class InputChanged(BaseModel):
    field: str
    raw: str
    caret: int = 0


class FieldBlurred(BaseModel):
    field: str


class TypeSelected(BaseModel):
    type: TransactionType


class CurrencyCycled(BaseModel):
    which: Literal["main", "fx"] = "main"


class PhotoAttached(BaseModel):
    photo: Optional[PhotoAttachment] = None


class SaveRequested(BaseModel):
    pass


class HistoryRequested(BaseModel):
    pass


FormEvent = Union[
    InputChanged,
    FieldBlurred,
    TypeSelected,
    CurrencyCycled,
    PhotoAttached,
    SaveRequested,
    HistoryRequested,
]


class TransactionFormController:
    """
    Orchestrates the transaction form.

    Owns the form state and the optimistic ledger. The sync client and
    identity are optional: without them the form still works locally and
    the history shows the idle "not connected" status.
    """

    def __init__(
        self,
        sync: Optional[LedgerSyncInterface] = None,
        identity: Optional[HostIdentity] = None,
        settings: Optional[AppSettings] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        ledger: Optional[OptimisticLedger] = None,
    ):
        self._settings = settings or get_settings().app
        self._sync = sync
        self._validator = validator or TransactionValidator(self._settings)
        self._audit_logger = audit_logger or AuditLogger()
        self._ledger = ledger or OptimisticLedger()
        # History responses can arrive out of order; only the newest one counts
        self._fetches_issued = 0
        self._fetch_applied = 0
        self._state = FormState(
            currency=self._settings.default_currency,
            fx_currency=self._settings.default_fx_currency,
            identity=identity,
        )

    @property
    def state(self) -> FormState:
        return self._state

    @property
    def ledger(self) -> OptimisticLedger:
        return self._ledger

    @property
    def is_connected(self) -> bool:
        return self._sync is not None and self._state.identity is not None

    # ------------------------------------------------------------------
    # Input transitions
    # ------------------------------------------------------------------

    def apply_input(self, field: str, raw: str, caret: int = 0) -> FieldUpdate:
        """
        Handle one input event on a form field.

        Amount fields are normalized and regrouped with the caret kept on
        the same digit. Text fields are stored as typed.
        """
        if field in AMOUNT_FIELDS:
            display, new_caret = reformat(raw, caret)
            setattr(self._state, field, normalize(raw))
        elif field in TEXT_FIELDS:
            display, new_caret = raw, caret
            setattr(self._state, field, raw)
        else:
            raise ValueError(f"Unknown form field: {field}")

        self._state.field_errors.pop(field, None)
        return FieldUpdate(display=display, caret=new_caret)

    def blur(self, field: str) -> FieldUpdate:
        """Finalize a field when it loses focus."""
        if field in AMOUNT_FIELDS:
            display = blur_amount(self._state.display_of(field))
            setattr(self._state, field, normalize(display))
        elif field in TEXT_FIELDS:
            display = self._state.display_of(field)
        else:
            raise ValueError(f"Unknown form field: {field}")
        return FieldUpdate(display=display, caret=len(display))

    def select_type(self, transaction_type: TransactionType) -> None:
        self._state.type = transaction_type
        self._state.field_errors = {}

    def cycle_currency(self, which: str = "main") -> Currency:
        """Advance a currency selector to the next currency."""
        if which == "main":
            order, current = MAIN_CURRENCIES, self._state.currency
        elif which == "fx":
            order, current = FX_CURRENCIES, self._state.fx_currency
        else:
            raise ValueError(f"Unknown currency selector: {which}")

        index = order.index(current) if current in order else -1
        following = order[(index + 1) % len(order)]
        if which == "main":
            self._state.currency = following
        else:
            self._state.fx_currency = following
        return following

    def attach_photo(self, photo: Optional[PhotoAttachment]) -> bool:
        """
        Attach (or with None, detach) a photo.

        Returns False when the photo exceeds the upload limit; the previous
        attachment is kept in that case.
        """
        self._state.field_errors.pop("photo", None)
        if photo is not None and photo.size_bytes > self._settings.max_upload_size_bytes:
            self._state.field_errors["photo"] = MSG_PHOTO_TOO_LARGE
            return False
        self._state.photo = photo
        return True

    @property
    def fx_preview(self) -> FxQuote:
        """Received side of the exchange being typed (zero for other types)."""
        home = self._settings.home_currency
        if self._state.type != TransactionType.EXCHANGE:
            return compute_receive(None, None, self._state.currency.value, home, home)
        return compute_receive(
            give=self._state.amount,
            rate=self._state.fx_rate,
            give_currency=self._state.currency.value,
            home_currency=home,
            foreign_currency=self._state.fx_currency.value,
        )

    def draft(self) -> TransactionDraft:
        """Snapshot of the inputs for validation."""
        return TransactionDraft(
            type=self._state.type,
            date=self._state.date,
            amount=self._state.amount,
            currency=self._state.currency.value,
            counterparty=self._state.counterparty,
            comment=self._state.comment,
            fx_rate=self._state.fx_rate,
            fx_currency=self._state.fx_currency.value,
        )

    def dismiss(self, local_id: UUID) -> LedgerEntry:
        """Remove a failed entry from the list."""
        entry = self._ledger.dismiss(local_id)
        self._audit_logger.log_entry_dismissed(local_id)
        return entry

    # ------------------------------------------------------------------
    # Remote transitions
    # ------------------------------------------------------------------

    def _next_fetch(self) -> int:
        self._fetches_issued += 1
        return self._fetches_issued

    def _claim_fetch(self, generation: int) -> bool:
        """
        Accept the result of fetch number `generation`.

        Results older than the last applied one are stale and must not
        touch the ledger.
        """
        if generation < self._fetch_applied:
            logger.info(
                "stale_history_dropped",
                generation=generation,
                applied=self._fetch_applied,
            )
            return False
        self._fetch_applied = generation
        return True

    async def load_history(self) -> HistoryStatus:
        """
        Load the committed history.

        On any failure the committed snapshot is cleared so the list never
        shows data the backend could not confirm.
        A response older than one already applied is dropped.
        """
        if not self.is_connected:
            self._state.history_status = HistoryStatus.IDLE_NOT_CONNECTED
            self._audit_logger.log_host_not_connected()
            return self._state.history_status

        correlation_id = create_correlation_id()
        generation = self._next_fetch()
        try:
            snapshot = await self._sync.fetch_history(self._state.identity.user_token)
        except SyncError as e:
            if not self._claim_fetch(generation):
                return self._state.history_status
            self._ledger.clear_snapshot()
            self._state.history_status = _STATUS_BY_ERROR[e.kind]
            self._audit_logger.log_history_failed(
                error_kind=e.kind.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return self._state.history_status

        if not self._claim_fetch(generation):
            return self._state.history_status
        self._ledger.replace_snapshot(snapshot)
        self._state.history_status = HistoryStatus.CONNECTED
        self._audit_logger.log_history_fetched(
            item_count=len(snapshot.items),
            skipped=snapshot.skipped_items,
            correlation_id=correlation_id,
        )
        return self._state.history_status

    async def save(self) -> Optional[LedgerEntry]:
        """
        Validate and submit the form.

        Returns:
            The ledger entry created for this save (PENDING resolved to
            COMMITTED or FAILED), or None when nothing was submitted
        """
        correlation_id = create_correlation_id()

        if self._state.saving:
            self._state.status_message = MSG_BUSY
            self._audit_logger.log_save_rejected_busy(correlation_id)
            return None

        self._audit_logger.log_save_requested(
            transaction_type=self._state.type.value,
            correlation_id=correlation_id,
        )

        result = self._validator.validate(self.draft())
        if not result.is_valid:
            self._state.field_errors = result.field_errors
            self._state.status_message = self._validator.get_user_friendly_summary(result)
            self._audit_logger.log_validation_failed(
                issues=[
                    {"field": i.field, "type": i.issue_type, "message": i.message}
                    for i in result.issues
                    if i.severity == "error"
                ],
                correlation_id=correlation_id,
            )
            return None

        self._state.field_errors = {}

        if not self.is_connected:
            self._state.status_message = MSG_OFFLINE
            self._state.history_status = HistoryStatus.IDLE_NOT_CONNECTED
            self._audit_logger.log_host_not_connected()
            return None

        self._state.saving = True
        try:
            return await self._submit(result.record, correlation_id)
        finally:
            self._state.saving = False

    async def _submit(self, record: TransactionRecord, correlation_id: UUID) -> LedgerEntry:
        token = self._state.identity.user_token
        entry = self._ledger.begin_save(record)
        self._audit_logger.log_entry_pending(
            local_id=entry.local_id,
            transaction_type=record.type.value,
            amount=record.amount.canonical,
            correlation_id=correlation_id,
        )

        try:
            await self._sync.submit(record, token, photo=self._state.photo)
        except SyncError as e:
            self._ledger.fail_save(entry.local_id, e.kind, str(e))
            self._state.status_message = _FAILURE_MESSAGES[e.kind]
            self._audit_logger.log_save_failed(
                local_id=entry.local_id,
                error_kind=e.kind.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return entry
        except Exception as e:
            self._ledger.fail_save(entry.local_id, ErrorKind.NETWORK, str(e))
            self._state.status_message = MSG_OFFLINE
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"local_id": str(entry.local_id)},
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_save_succeeded(
            local_id=entry.local_id,
            correlation_id=correlation_id,
        )

        # One refresh, whatever it returns
        generation = self._next_fetch()
        try:
            snapshot = await self._sync.fetch_history(token)
        except SyncError as e:
            snapshot = None
            self._audit_logger.log_refresh_failed(
                local_id=entry.local_id,
                error_kind=e.kind.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            if self._claim_fetch(generation):
                self._ledger.clear_snapshot()
                self._state.history_status = _STATUS_BY_ERROR[e.kind]
            else:
                # A newer load already answered and it includes this save
                snapshot = self._ledger.snapshot
        else:
            self._audit_logger.log_history_fetched(
                item_count=len(snapshot.items),
                skipped=snapshot.skipped_items,
                correlation_id=correlation_id,
            )
            if self._claim_fetch(generation):
                self._state.history_status = HistoryStatus.CONNECTED
            else:
                snapshot = self._ledger.snapshot

        self._ledger.resolve_save(entry.local_id, snapshot)
        self._clear_inputs()
        self._state.status_message = MSG_SAVED if snapshot is not None else MSG_REFRESH_FAILED
        return entry

    def _clear_inputs(self) -> None:
        """Reset what was typed. Type, date and currencies stay."""
        self._state.amount = ""
        self._state.fx_rate = ""
        self._state.counterparty = ""
        self._state.comment = ""
        self._state.photo = None
        self._state.field_errors = {}

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, event: FormEvent):
        """Route a UI event to its transition and return its result."""
        if isinstance(event, InputChanged):
            return self.apply_input(event.field, event.raw, event.caret)
        if isinstance(event, FieldBlurred):
            return self.blur(event.field)
        if isinstance(event, TypeSelected):
            return self.select_type(event.type)
        if isinstance(event, CurrencyCycled):
            return self.cycle_currency(event.which)
        if isinstance(event, PhotoAttached):
            return self.attach_photo(event.photo)
        if isinstance(event, SaveRequested):
            return await self.save()
        if isinstance(event, HistoryRequested):
            return await self.load_history()
        raise TypeError(f"Unsupported event: {type(event).__name__}")

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def rows(self, limit: Optional[int] = None) -> list[TransactionRow]:
        """List rows, newest local entries first (preview size by default)."""
        if limit is None:
            limit = self._settings.history_preview_size
        return build_rows(self._ledger.entries, self._settings.home_currency, limit)

    def pager(self, limit: Optional[int] = None) -> str:
        if limit is None:
            limit = self._settings.history_preview_size
        return pager_label(len(self.rows(limit)), limit)


def create_app_components(
    init_data: Optional[str] = None,
    use_backend: bool = True,
) -> tuple[TransactionFormController, Optional[AppsScriptSyncClient]]:
    """
    Factory function to create all application components.

    Args:
        init_data: Host init data; falls back to KASSA_TELEGRAM_INIT_DATA
        use_backend: Whether to connect to the remote ledger.
                    Set to False for running the form locally.

    Returns:
        (controller, sync_client)
    """
    settings = get_settings()
    sync_client = None

    if use_backend:
        try:
            sync_client = AppsScriptSyncClient(settings.backend)
        except ValidationError as e:
            # Backend not configured - continue without it
            logger.warning("backend_not_configured", error=str(e))
            sync_client = None

    controller = TransactionFormController(
        sync=sync_client,
        identity=resolve_identity(init_data, settings.telegram),
        settings=settings.app,
        audit_logger=AuditLogger(),
    )

    return controller, sync_client
