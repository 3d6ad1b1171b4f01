"""Tests for amount display formatting and caret handling."""

from decimal import Decimal

from kassa.money.formatter import (
    blur,
    count_significant,
    format_amount,
    format_fixed,
    group_digits,
    locate_caret,
    reformat,
)


class TestFormatAmount:
    """Tests for display formatting."""

    def test_grouping(self):
        """Test thousands are grouped with single spaces."""
        assert group_digits("1280000") == "1 280 000"
        assert group_digits("100") == "100"
        assert group_digits("1000") == "1 000"

    def test_fraction_as_typed(self):
        """Test the fraction is appended without padding."""
        assert format_amount("1280000,5") == "1 280 000,5"
        assert format_amount("12,") == "12,"
        assert format_amount("0,05") == "0,05"

    def test_empty(self):
        """Test an empty canonical string formats to empty."""
        assert format_amount("") == ""

    def test_format_fixed_two_decimals(self):
        """Test computed values always show two fraction digits."""
        assert format_fixed(Decimal("1280000")) == "1 280 000,00"
        assert format_fixed(Decimal("0.155")) == "0,16"
        assert format_fixed(Decimal("-12.5")) == "12,50"

    def test_format_fixed_beyond_default_precision(self):
        """Test values longer than the default decimal context keep every digit."""
        value = Decimal("123456789012345678901234567890.555")
        assert format_fixed(value) == "123 456 789 012 345 678 901 234 567 890,56"


class TestCaret:
    """Tests for caret preservation across a reformat."""

    def test_count_ignores_spaces(self):
        """Test grouping spaces do not count toward the caret anchor."""
        assert count_significant("1 234", 5) == 4
        assert count_significant("1 234", 2) == 1

    def test_locate_bounds(self):
        """Test the caret clamps to the start and the end."""
        assert locate_caret("1 234", 0) == 0
        assert locate_caret("1 234", 10) == 5

    def test_typing_at_end(self):
        """Test the caret follows the end when a group boundary appears."""
        assert reformat("1234", 4) == ("1 234", 5)

    def test_typing_in_the_middle(self):
        """Test the caret stays right after the inserted digit."""
        # "1 234" with 9 typed after the 2
        assert reformat("1 2934", 4) == ("12 934", 4)

    def test_deleting_a_digit(self):
        """Test the caret stays put when a group boundary disappears."""
        # "1 234" with the 2 deleted
        assert reformat("1 34", 2) == ("134", 1)

    def test_separator_counts(self):
        """Test the decimal separator is a caret anchor."""
        assert reformat("1234,5", 5) == ("1 234,5", 6)

    def test_blur_drops_trailing_separator(self):
        """Test blurring finalizes the display."""
        assert blur("1 234,") == "1 234"
        assert blur("1 234,5") == "1 234,5"
