"""Tests for the exchange calculator."""

from decimal import Decimal

import pytest

from kassa.money.fx import compute_receive


class TestComputeReceive:
    """Tests for compute_receive()."""

    def test_foreign_to_home_multiplies(self):
        """Test giving a foreign currency yields home currency."""
        quote = compute_receive("100,00", "12 800,00", "USD", "UZS", "USD")
        assert quote.currency == "UZS"
        assert quote.amount == Decimal("1280000.00")
        assert quote.display == "1 280 000,00 UZS"

    def test_home_to_foreign_divides(self):
        """Test giving the home currency yields the selected foreign currency."""
        quote = compute_receive("1 280 000,00", "12 800,00", "UZS", "UZS", "USD")
        assert quote.display == "100,00 USD"

    def test_rounds_half_up_to_cents(self):
        """Test the result is rounded to two decimals."""
        quote = compute_receive("2000", "12800", "UZS", "UZS", "USD")
        assert quote.amount == Decimal("0.16")
        assert quote.signed_display == "+ 0,16 USD"

    @pytest.mark.parametrize("give, rate", [
        ("", "12800"),
        ("100", ""),
        ("100", "0"),
        ("0", "12800"),
        ("abc", "12800"),
        (None, None),
    ])
    def test_degenerate_inputs_give_zero(self, give, rate):
        """Test empty, zero or garbage input yields a zero quote."""
        quote = compute_receive(give, rate, "USD", "UZS", "USD")
        assert quote.is_zero
        assert quote.display == "0,00 UZS"

    def test_accepts_decimals(self):
        """Test Decimal inputs are used as-is."""
        quote = compute_receive(Decimal("10"), Decimal("0.5"), "EUR", "UZS", "EUR")
        assert quote.amount == Decimal("5.00")

    def test_huge_amounts_stay_exact(self):
        """Test long amounts are not truncated by decimal precision."""
        quote = compute_receive("123456789012345678901234567890", "1", "USD", "UZS", "USD")
        assert quote.amount == Decimal("123456789012345678901234567890.00")
        assert quote.display == "123 456 789 012 345 678 901 234 567 890,00 UZS"

    def test_huge_product_displays(self):
        """Test a product longer than 28 digits still renders."""
        quote = compute_receive("1" + "0" * 26, "12800", "USD", "UZS", "USD")
        assert quote.amount == Decimal("1280000000000000000000000000000")
        assert quote.display == "1 280 000 000 000 000 000 000 000 000 000,00 UZS"
