"""
Input Normalizer

Turns whatever ends up in an amount field (pasted text, grouped display
strings, stray letters) into the canonical amount string:

    digits, at most one decimal separator, at most two fraction digits

The canonical string never contains grouping spaces. Grouping is a display
concern handled by the formatter.

DESIGN DECISION: Normalization is pure string work. It never goes through
float, so "0,1" stays exactly one tenth.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional


DECIMAL_SEPARATOR = ","
GROUP_SEPARATOR = " "
MAX_FRACTION_DIGITS = 2


def normalize(raw: Optional[str]) -> str:
    """
    Canonicalize raw keystroke text.

    Rules:
    1. Drop every character that is not a digit or the separator
    2. Keep the first separator, digits after later separators join the fraction
    3. Truncate the fraction to two digits
    4. A trailing bare separator survives so the user can keep typing

    Leading zeros are collapsed ("007" -> "7", ",5" -> "0,5").
    Empty input stays empty: an empty field is not the same as zero.
    """
    text = str(raw or "")

    integer_chars = []
    fraction_chars = []
    seen_separator = False
    for ch in text:
        if ch == DECIMAL_SEPARATOR:
            seen_separator = True
        elif "0" <= ch <= "9":
            if seen_separator:
                fraction_chars.append(ch)
            else:
                integer_chars.append(ch)

    integer_part = "".join(integer_chars).lstrip("0")
    if not integer_part and (integer_chars or seen_separator):
        integer_part = "0"

    if not seen_separator:
        return integer_part

    fraction_part = "".join(fraction_chars)[:MAX_FRACTION_DIGITS]
    return f"{integer_part}{DECIMAL_SEPARATOR}{fraction_part}"


def finalize(canonical: str) -> str:
    """
    Commit a canonical string on blur or save.

    Strips a trailing bare separator ("12," -> "12"). Never pads the fraction.
    """
    if canonical.endswith(DECIMAL_SEPARATOR):
        return canonical[:-1]
    return canonical


def split(canonical: str) -> tuple[str, str]:
    """Split a canonical string into (integer_digits, fraction_digits)."""
    integer_part, _, fraction_part = canonical.partition(DECIMAL_SEPARATOR)
    return integer_part, fraction_part


def to_decimal(text: Optional[str]) -> Optional[Decimal]:
    """
    Decimal value of any amount text, or None when it holds no digits.

    The text is normalized first, so display strings are accepted.
    """
    canonical = finalize(normalize(text))
    if not canonical:
        return None
    integer_part, fraction_part = split(canonical)
    try:
        if fraction_part:
            return Decimal(f"{integer_part}.{fraction_part}")
        return Decimal(integer_part)
    except InvalidOperation:
        return None
