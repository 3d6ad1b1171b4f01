"""
Display Formatter

Renders canonical amount strings for people: thousands grouped with a
single space, fraction appended as typed.

    "1280000,5"  ->  "1 280 000,5"

The caret helpers keep the cursor anchored to the same logical digit while
grouping spaces appear and disappear under it. Only digits and the decimal
separator are counted; spaces are ignored on both sides of the reformat.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext

from kassa.money.normalizer import (
    DECIMAL_SEPARATOR,
    GROUP_SEPARATOR,
    finalize,
    normalize,
    split,
)


CENTS = Decimal("0.01")


def quantize_cents(value: Decimal) -> Decimal:
    """
    Round to cents, half away from zero, at whatever precision the value needs.

    The default context keeps 28 digits; typed amounts can be longer.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _is_significant(ch: str) -> bool:
    return ch == DECIMAL_SEPARATOR or "0" <= ch <= "9"


def group_digits(integer_digits: str) -> str:
    """Group an integer digit string in threes from the right."""
    groups = []
    end = len(integer_digits)
    while end > 0:
        start = max(0, end - 3)
        groups.append(integer_digits[start:end])
        end = start
    return GROUP_SEPARATOR.join(reversed(groups))


def format_amount(canonical: str) -> str:
    """
    Format a canonical string for display.

    The fraction is appended as-is (zero, one or two digits) with no padding,
    so a value being typed is never rewritten under the user's fingers.
    """
    if not canonical:
        return ""
    integer_part, fraction_part = split(canonical)
    grouped = group_digits(integer_part)
    if DECIMAL_SEPARATOR in canonical:
        return f"{grouped}{DECIMAL_SEPARATOR}{fraction_part}"
    return grouped


def format_fixed(value: Decimal) -> str:
    """
    Format a computed, non-editable value with exactly two fraction digits.

    Negative values are rendered by magnitude; the sign belongs to the
    transaction type.
    """
    quantized = quantize_cents(abs(value))
    integer_part, _, fraction_part = f"{quantized:f}".partition(".")
    return f"{group_digits(integer_part)}{DECIMAL_SEPARATOR}{fraction_part}"


def count_significant(text: str, caret: int) -> int:
    """Count digit-or-separator characters left of the caret."""
    caret = max(0, min(caret, len(text)))
    return sum(1 for ch in text[:caret] if _is_significant(ch))


def locate_caret(display: str, count: int) -> int:
    """
    Index right after the count-th digit-or-separator character.

    Returns 0 for a zero count and the end of the string when the display
    holds fewer significant characters than requested.
    """
    if count <= 0:
        return 0
    seen = 0
    for index, ch in enumerate(display):
        if _is_significant(ch):
            seen += 1
            if seen == count:
                return index + 1
    return len(display)


def reformat(raw: str, caret: int) -> tuple[str, int]:
    """
    Handle one input event on an amount field.

    Args:
        raw: Field text after the keystroke (old display plus the edit)
        caret: Caret index inside raw

    Returns:
        (display, caret) for the re-rendered field
    """
    anchor = count_significant(raw, caret)
    display = format_amount(normalize(raw))
    return display, locate_caret(display, anchor)


def blur(display: str) -> str:
    """Finalize a field on exit: a bare trailing separator is dropped."""
    return format_amount(finalize(normalize(display)))
