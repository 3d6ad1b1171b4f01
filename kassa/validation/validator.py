"""
Two-Stage Form Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required fields for the selected transaction type
- Date format (DD.MM.YYYY) and that it is a real calendar date
- Amounts parse and are not zero
- Currencies are ones the form can select

STAGE 2 - SEMANTIC VALIDATION:
- Dates too far in the future
- Absurd amounts
- Exchanging a currency for itself
- Only warnings: the user knows their cash better than we do

IMPORTANT: Validation is synchronous and does no I/O. A draft with errors
never reaches the network and never creates a ledger entry.
Validation NEVER silently fixes issues. It reports them per field.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError

from kassa.config import AppSettings, get_settings
from kassa.models.transaction import (
    DATE_FORMAT,
    REQUIRED_FIELDS,
    CanonicalAmount,
    Currency,
    TransactionDraft,
    TransactionRecord,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from kassa.money.fx import compute_receive
from kassa.money.normalizer import to_decimal


_FIELD_LABELS = {
    "date": "Дата",
    "amount": "Сумма",
    "currency": "Валюта",
    "counterparty": "Контрагент",
    "comment": "Комментарий",
    "fx_rate": "Курс",
    "fx_currency": "Валюта обмена",
}

_CURRENCY_CODES = {c.value for c in Currency}


class TransactionValidator:
    """
    Validates a form draft through a two-stage pipeline.

    Stage 1: Schema validation (blocks saving)
    Stage 2: Semantic validation (warnings only)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _received_currency(self, draft: TransactionDraft) -> str:
        """Currency the exchange yields: the home currency unless it is given away."""
        return compute_receive(
            give=draft.amount,
            rate=draft.fx_rate,
            give_currency=draft.value_of("currency").upper(),
            home_currency=self._settings.home_currency,
            foreign_currency=draft.value_of("fx_currency").upper(),
        ).currency

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> list[ValidationIssue]:
        """
        Stage 1: Schema validation.

        Returns: list_of_issues
        """
        issues = []
        required = REQUIRED_FIELDS[draft.type]

        for field in required:
            if not draft.value_of(field):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{_FIELD_LABELS[field]}: обязательное поле",
                    severity="error",
                ))

        missing = {issue.field for issue in issues}

        # Date
        if "date" not in missing:
            try:
                datetime.strptime(draft.value_of("date"), DATE_FORMAT)
            except ValueError:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message="Дата должна быть в формате ДД.ММ.ГГГГ",
                    severity="error",
                ))

        # Amount
        if "amount" not in missing:
            amount = to_decimal(draft.amount)
            if amount is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="Сумма не похожа на число",
                    severity="error",
                ))
            elif amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Сумма должна быть больше нуля",
                    severity="error",
                ))

        # Currencies
        for field in ("currency", "fx_currency"):
            if field in required and field not in missing:
                if draft.value_of(field).upper() not in _CURRENCY_CODES:
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="invalid_value",
                        message=f"Неизвестная валюта: {draft.value_of(field)}",
                        severity="error",
                    ))

        # Exchange rate
        if "fx_rate" in required and "fx_rate" not in missing:
            rate = to_decimal(draft.fx_rate)
            if rate is None or rate <= 0:
                issues.append(ValidationIssue(
                    field="fx_rate",
                    issue_type="invalid_value",
                    message="Курс должен быть больше нуля",
                    severity="error",
                ))

        return issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Only runs on drafts that passed stage 1, so every value parses.
        """
        issues = []
        today = date.today()

        tx_date = datetime.strptime(draft.value_of("date"), DATE_FORMAT).date()
        max_future = today + timedelta(days=self._settings.future_date_tolerance_days)
        if tx_date > max_future:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Дата ({draft.value_of('date')}) в будущем",
                severity="warning",
            ))

        amount = to_decimal(draft.amount)
        max_amount = Decimal(str(self._settings.max_amount_warning))
        if amount is not None and amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Сумма подозрительно большая",
                severity="warning",
            ))

        if (
            draft.type == TransactionType.EXCHANGE
            and draft.value_of("currency").upper() == self._received_currency(draft)
        ):
            issues.append(ValidationIssue(
                field="fx_currency",
                issue_type="inconsistent",
                message="Обмен валюты на ту же валюту",
                severity="warning",
            ))

        return issues

    def _build_record(self, draft: TransactionDraft) -> TransactionRecord:
        """Turn a draft that passed stage 1 into a record."""
        is_exchange = draft.type == TransactionType.EXCHANGE
        return TransactionRecord(
            type=draft.type,
            date=draft.value_of("date"),
            amount=CanonicalAmount.parse(draft.amount),
            currency=draft.value_of("currency").upper(),
            counterparty=None if is_exchange else draft.value_of("counterparty") or None,
            comment=draft.value_of("comment") or None,
            fx_rate=CanonicalAmount.parse(draft.fx_rate) if is_exchange else None,
            fx_currency=self._received_currency(draft) if is_exchange else None,
        )

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Returns:
            ValidationResult; when it has no errors, `record` holds the
            transaction ready for submission
        """
        issues = self._validate_schema(draft)
        schema_valid = not any(issue.severity == "error" for issue in issues)

        record = None
        if schema_valid:
            issues.extend(self._validate_semantic(draft))
            try:
                record = self._build_record(draft)
            except ValidationError as e:
                # Length limits and the like
                for error in e.errors():
                    field = str(error["loc"][0]) if error["loc"] else "form"
                    issues.append(ValidationIssue(
                        field=field,
                        issue_type="invalid_value",
                        message=error["msg"],
                        severity="error",
                    ))
                schema_valid = False

        return ValidationResult(
            schema_valid=schema_valid,
            issues=issues,
            record=record,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """One status line for the toast under the save button."""
        if result.is_valid and not result.warnings:
            return "Всё заполнено"
        if result.has_errors:
            labels = [_FIELD_LABELS.get(f, f) for f in result.field_errors]
            return "Заполните: " + ", ".join(labels)
        return "Проверьте: " + "; ".join(result.warnings)
