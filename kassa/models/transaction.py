"""
Core Data Models for Kassa

These models define the schemas for all data flowing through the system.
They are designed to:
1. Keep money in exact decimal form from keystroke to wire
2. Accept the loose shapes the spreadsheet backend sends back
3. Be serializable for the request payload and for logging
4. Carry the lifecycle of locally created entries

DESIGN DECISION: TransactionRecord is structurally lenient.
Rows coming back from the remote ledger may lack optional fields.
Completeness for a NEW transaction is enforced by the validator,
which knows which fields each transaction type needs.
"""

import base64
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from kassa.money.formatter import format_amount, quantize_cents
from kassa.money.normalizer import (
    DECIMAL_SEPARATOR,
    finalize,
    normalize,
    split,
)


DATE_FORMAT = "%d.%m.%Y"

_PLAIN_NUMBER = re.compile(r"^-?[0-9]+\.[0-9]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_date(value: date) -> str:
    """Render a date the way the form and the backend expect it (DD.MM.YYYY)."""
    return value.strftime(DATE_FORMAT)


def parse_date(value: Any) -> date:
    """
    Parse a transaction date.

    Accepts DD.MM.YYYY (the form), ISO dates and ISO timestamps
    (the spreadsheet backend serializes date cells as timestamps).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValueError("Date is empty")
    try:
        return datetime.strptime(text, DATE_FORMAT).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValueError(f"Unrecognized date: {text}")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """
    Currencies the form can select.

    The order is the order the currency buttons cycle through.
    """
    UZS = "UZS"
    USD = "USD"
    EUR = "EUR"
    RUB = "RUB"
    KZT = "KZT"


class TransactionType(str, Enum):
    """
    Kind of transaction.

    Wire values are the short codes the backend stores.
    """
    INFLOW = "in"
    OUTFLOW = "out"
    EXCHANGE = "fx"

    @property
    def sign(self) -> str:
        """Direction of the main amount: money in is '+', everything else '-'."""
        return "+" if self is TransactionType.INFLOW else "-"

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    TransactionType.INFLOW: "Получил",
    TransactionType.OUTFLOW: "Отдал",
    TransactionType.EXCHANGE: "Обмен",
}


# Fields a NEW transaction must carry, per type.
# Exchanges hide the counterparty block and need the rate instead.
REQUIRED_FIELDS: dict[TransactionType, tuple[str, ...]] = {
    TransactionType.INFLOW: ("date", "amount", "currency", "counterparty", "comment"),
    TransactionType.OUTFLOW: ("date", "amount", "currency", "counterparty", "comment"),
    TransactionType.EXCHANGE: ("date", "amount", "currency", "fx_rate", "fx_currency"),
}


class EntryStatus(str, Enum):
    """
    Lifecycle of a ledger entry.

    PENDING and FAILED entries exist only locally.
    COMMITTED entries come from the remote history (or were just confirmed
    by it and are waiting for the next snapshot to replace them).
    """
    PENDING = "pending"
    COMMITTED = "committed"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Failure classes surfaced by the sync layer."""
    NETWORK = "network"
    ACCESS_DENIED = "access_denied"
    SETUP_REQUIRED = "setup_required"
    VALIDATION = "validation"


# =============================================================================
# CANONICAL AMOUNT
# =============================================================================

class CanonicalAmount(BaseModel):
    """
    Non-negative decimal amount as digit strings.

    integer_digits has no leading zeros unless it is exactly "0".
    fraction_digits holds 0-2 digits. No sign is stored.
    """
    model_config = ConfigDict(frozen=True)

    integer_digits: str = Field(
        default="0",
        pattern=r"^(0|[1-9][0-9]*)$",
    )
    fraction_digits: str = Field(
        default="",
        pattern=r"^[0-9]{0,2}$",
    )

    @classmethod
    def parse(cls, text: Optional[str]) -> "CanonicalAmount":
        """Build from any amount text (raw input, display string, canonical)."""
        canonical = finalize(normalize(text))
        if not canonical:
            return cls()
        integer_part, fraction_part = split(canonical)
        return cls(integer_digits=integer_part, fraction_digits=fraction_part)

    @classmethod
    def from_decimal(cls, value: Decimal) -> "CanonicalAmount":
        """
        Build from a Decimal, rounding half away from zero to cents.

        Trailing fraction zeros are dropped ("1200.50" -> "1200,5").
        """
        quantized = quantize_cents(abs(value))
        integer_part, _, fraction_part = f"{quantized:f}".partition(".")
        fraction_part = fraction_part.rstrip("0")
        return cls(integer_digits=integer_part, fraction_digits=fraction_part)

    @property
    def canonical(self) -> str:
        """Canonical string, e.g. '1200,5'. This is what goes on the wire."""
        if self.fraction_digits:
            return f"{self.integer_digits}{DECIMAL_SEPARATOR}{self.fraction_digits}"
        return self.integer_digits

    @property
    def display(self) -> str:
        return format_amount(self.canonical)

    @property
    def is_zero(self) -> bool:
        return self.to_decimal() == 0

    def to_decimal(self) -> Decimal:
        if self.fraction_digits:
            return Decimal(f"{self.integer_digits}.{self.fraction_digits}")
        return Decimal(self.integer_digits)

    def __str__(self) -> str:
        return self.canonical


ZERO_AMOUNT = CanonicalAmount()


def coerce_amount(value: Any) -> Any:
    """
    Turn loose amount values into a CanonicalAmount.

    Strings go through the normalizer; numbers are rounded to cents.
    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, CanonicalAmount):
        return value
    if isinstance(value, bool):
        raise ValueError("Amount cannot be a boolean")
    if isinstance(value, (int, float, Decimal)):
        try:
            return CanonicalAmount.from_decimal(Decimal(str(value)))
        except InvalidOperation:
            raise ValueError(f"Not a number: {value}")
    if isinstance(value, str):
        # Plain numbers serialized by the backend use a dot
        if _PLAIN_NUMBER.match(value.strip()):
            try:
                return CanonicalAmount.from_decimal(Decimal(value.strip()))
            except InvalidOperation:
                raise ValueError(f"Not a number: {value}")
        return CanonicalAmount.parse(value)
    return value


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class TransactionRecord(BaseModel):
    """
    A single cash or exchange transaction.

    Used both for what the form submits and for rows of the remote history.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    type: TransactionType
    date: date
    amount: CanonicalAmount = Field(
        validation_alias=AliasChoices("amount", "amountRaw"),
        description="Amount given/received, sign carried by type"
    )
    currency: Currency

    counterparty: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Who the money came from / went to"
    )
    comment: Optional[str] = Field(
        default=None,
        max_length=1000,
    )

    # Exchange only
    fx_rate: Optional[CanonicalAmount] = Field(
        default=None,
        validation_alias=AliasChoices("fx_rate", "fxRateRaw", "fxRate"),
        description="Home-currency units per foreign unit"
    )
    fx_currency: Optional[Currency] = Field(
        default=None,
        validation_alias=AliasChoices("fx_currency", "fxCurrency"),
    )

    # Reference to an uploaded photo on the remote side
    photo_ref: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("photo_ref", "photoUrl", "photoRef"),
    )
    # Row identifier assigned by the backend, if it sends one
    remote_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("remote_id", "id"),
    )

    @field_validator('date', mode='before')
    @classmethod
    def parse_date_formats(cls, v: Any) -> date:
        return parse_date(v)

    @field_validator('amount', 'fx_rate', mode='before')
    @classmethod
    def parse_amounts(cls, v: Any) -> Any:
        return coerce_amount(v)

    @field_validator('currency', 'fx_currency', mode='before')
    @classmethod
    def uppercase_currency(cls, v: Any) -> Any:
        if v is None or isinstance(v, Currency):
            return v
        text = str(v).strip().upper()
        return text or None

    @field_validator('counterparty', 'comment', 'photo_ref', 'remote_id', mode='before')
    @classmethod
    def empty_to_none(cls, v: Any) -> Any:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_serializer('date')
    def serialize_date(self, v: date) -> str:
        return format_date(v)

    @property
    def date_text(self) -> str:
        return format_date(self.date)


class TransactionDraft(BaseModel):
    """
    The form as typed, before validation.

    Amount fields hold canonical strings (possibly with a trailing
    separator while the user is typing). Nothing here is trusted yet.
    """

    type: TransactionType = TransactionType.EXCHANGE
    date: str = ""
    amount: str = ""
    currency: str = Currency.UZS.value
    counterparty: str = ""
    comment: str = ""
    fx_rate: str = ""
    fx_currency: str = Currency.USD.value

    def value_of(self, field: str) -> str:
        return str(getattr(self, field) or "").strip()


class LedgerEntry(BaseModel):
    """
    A transaction as shown in the list, with its lifecycle status.

    local_id is only meaningful for entries created on this device.
    """

    record: TransactionRecord
    status: EntryStatus = Field(
        default=EntryStatus.COMMITTED,
    )
    local_id: Optional[UUID] = Field(
        default=None,
        description="Identity of a locally created entry"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
    )

    # Failure information
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @classmethod
    def pending(cls, record: TransactionRecord) -> "LedgerEntry":
        return cls(record=record, status=EntryStatus.PENDING, local_id=uuid4())

    @property
    def is_local(self) -> bool:
        return self.local_id is not None


# =============================================================================
# PHOTO ATTACHMENT
# =============================================================================

class PhotoAttachment(BaseModel):
    """A photo picked in the form, sent inline with the transaction."""

    filename: str = Field(
        ...,
        min_length=1,
        max_length=255,
    )
    mime_type: str
    content: bytes = Field(
        ...,
        min_length=1,
        description="Raw image bytes"
    )

    @field_validator('mime_type')
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only allow image types."""
        allowed = {'image/jpeg', 'image/png', 'image/webp', 'image/heic'}
        if v.lower() not in allowed:
            raise ValueError(f"Unsupported image type: {v}. Allowed: {sorted(allowed)}")
        return v.lower()

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def size_kb(self) -> int:
        return round(self.size_bytes / 1024)

    def describe(self) -> str:
        """Short caption shown under the photo picker."""
        return f"Файл: {self.filename} ({self.size_kb} КБ)"

    def to_payload(self) -> dict[str, str]:
        return {
            "photoBase64": base64.b64encode(self.content).decode("ascii"),
            "photoFilename": self.filename,
            "photoMime": self.mime_type,
        }


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage form validation.

    Stage 1: Schema validation (required fields, formats)
    Stage 2: Semantic validation (suspicious but allowed values)
    """

    validated_at: datetime = Field(
        default_factory=utcnow
    )
    schema_valid: bool
    issues: list[ValidationIssue] = Field(
        default_factory=list,
    )
    # Only present when the form is complete
    record: Optional[TransactionRecord] = None

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def field_errors(self) -> dict[str, str]:
        """First error message per field, for highlighting inputs."""
        errors: dict[str, str] = {}
        for issue in self.issues:
            if issue.severity == "error" and issue.field not in errors:
                errors[issue.field] = issue.message
        return errors


# =============================================================================
# SYNC RESULTS
# =============================================================================

class HistorySnapshot(BaseModel):
    """Authoritative transaction list as returned by the remote ledger."""

    items: list[TransactionRecord] = Field(default_factory=list)
    user: Optional[dict[str, Any]] = None
    fetched_at: datetime = Field(
        default_factory=utcnow
    )
    skipped_items: int = Field(
        default=0,
        ge=0,
        description="Rows that could not be parsed"
    )


class SubmitReceipt(BaseModel):
    """Successful submission acknowledgement."""

    accepted_at: datetime = Field(
        default_factory=utcnow
    )
    user: Optional[dict[str, Any]] = None
    items: Optional[list[TransactionRecord]] = None
