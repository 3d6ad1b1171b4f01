"""
Money Input Package

Pure helpers for amount fields: normalization, display formatting with
caret preservation, and the exchange calculator. Nothing here does I/O.
"""

from kassa.money.normalizer import (
    DECIMAL_SEPARATOR,
    GROUP_SEPARATOR,
    finalize,
    normalize,
    to_decimal,
)
from kassa.money.formatter import (
    blur,
    count_significant,
    format_amount,
    format_fixed,
    locate_caret,
    quantize_cents,
    reformat,
)
from kassa.money.fx import FxQuote, compute_receive

__all__ = [
    "DECIMAL_SEPARATOR",
    "GROUP_SEPARATOR",
    "FxQuote",
    "blur",
    "compute_receive",
    "count_significant",
    "finalize",
    "format_amount",
    "format_fixed",
    "locate_caret",
    "normalize",
    "quantize_cents",
    "reformat",
    "to_decimal",
]
