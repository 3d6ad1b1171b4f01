"""Tests for two-stage form validation."""

from datetime import date, timedelta

import pytest

from kassa.models.transaction import Currency, TransactionDraft, TransactionType, format_date
from kassa.validation import TransactionValidator


@pytest.fixture
def validator(app_settings):
    return TransactionValidator(app_settings)


def fx_draft(**overrides) -> TransactionDraft:
    values = dict(
        type=TransactionType.EXCHANGE,
        date="22.12.2025",
        amount="2000",
        currency="UZS",
        fx_rate="12800",
        fx_currency="USD",
    )
    values.update(overrides)
    return TransactionDraft(**values)


def cash_draft(**overrides) -> TransactionDraft:
    values = dict(
        type=TransactionType.INFLOW,
        date="22.12.2025",
        amount="200",
        currency="UZS",
        counterparty="Азиз",
        comment="долг",
    )
    values.update(overrides)
    return TransactionDraft(**values)


class TestSchemaStage:
    """Tests for blocking errors."""

    def test_valid_exchange(self, validator):
        """Test a complete exchange passes and yields a record."""
        result = validator.validate(fx_draft())
        assert result.is_valid
        assert result.record.fx_rate.canonical == "12800"
        assert result.record.fx_currency == Currency.USD
        assert result.record.counterparty is None

    def test_exchange_records_received_currency(self, validator):
        """Test giving a foreign currency records the home currency as received."""
        result = validator.validate(fx_draft(currency="USD", amount="100", fx_currency="USD"))
        assert result.is_valid
        assert result.warnings == []
        assert result.record.currency == Currency.USD
        assert result.record.fx_currency == Currency.UZS

    def test_valid_inflow(self, validator):
        """Test a complete inflow has no exchange fields."""
        result = validator.validate(cash_draft())
        assert result.is_valid
        assert result.record.fx_rate is None
        assert result.record.counterparty == "Азиз"

    def test_missing_fields_per_type(self, validator):
        """Test required fields depend on the transaction type."""
        result = validator.validate(cash_draft(counterparty="", comment=" "))
        assert set(result.field_errors) == {"counterparty", "comment"}

        result = validator.validate(fx_draft(fx_rate=""))
        assert set(result.field_errors) == {"fx_rate"}

    def test_exchange_ignores_counterparty(self, validator):
        """Test the hidden counterparty block is not required for exchanges."""
        assert validator.validate(fx_draft(counterparty="")).is_valid

    def test_bad_date(self, validator):
        """Test impossible dates are rejected."""
        result = validator.validate(cash_draft(date="31.02.2025"))
        assert "date" in result.field_errors

    def test_zero_amount(self, validator):
        """Test a zero amount is rejected."""
        result = validator.validate(cash_draft(amount="0,00"))
        assert result.field_errors["amount"] == "Сумма должна быть больше нуля"

    def test_zero_rate(self, validator):
        """Test a zero rate is rejected."""
        result = validator.validate(fx_draft(fx_rate="0"))
        assert "fx_rate" in result.field_errors

    def test_unknown_currency(self, validator):
        """Test currencies outside the selectable set are rejected."""
        result = validator.validate(cash_draft(currency="GBP"))
        assert "currency" in result.field_errors
        assert result.record is None

    def test_too_long_comment(self, validator):
        """Test model limits surface as field errors."""
        result = validator.validate(cash_draft(comment="x" * 1001))
        assert "comment" in result.field_errors
        assert not result.is_valid


class TestSemanticStage:
    """Tests for warnings."""

    def test_future_date_warns(self, validator):
        """Test a date far in the future is a warning, not an error."""
        future = format_date(date.today() + timedelta(days=30))
        result = validator.validate(cash_draft(date=future))
        assert result.is_valid
        assert any(i.issue_type == "future_date" for i in result.issues)

    def test_same_currency_exchange_warns(self, validator):
        """Test exchanging a currency for itself is flagged."""
        result = validator.validate(fx_draft(fx_currency="UZS"))
        assert result.is_valid
        assert result.warnings == ["Обмен валюты на ту же валюту"]

    def test_foreign_for_home_exchange_is_not_flagged(self, validator):
        """Test USD given for UZS is a real exchange even with USD selected."""
        result = validator.validate(fx_draft(currency="USD", fx_currency="USD"))
        assert result.warnings == []


class TestSummary:
    """Tests for the status line."""

    def test_all_good(self, validator):
        result = validator.validate(cash_draft())
        assert validator.get_user_friendly_summary(result) == "Всё заполнено"

    def test_lists_missing_fields(self, validator):
        result = validator.validate(cash_draft(date="", amount=""))
        assert validator.get_user_friendly_summary(result) == "Заполните: Дата, Сумма"
