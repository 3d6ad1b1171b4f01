"""
FX Calculator

Computes the "receive" side of an exchange from the "give" amount and a
user-supplied rate. There are no market rates here.

DIRECTION RULE (fixed, not configurable per transaction):
- giving the home currency   -> receive = give / rate, in the foreign currency
- giving any other currency  -> receive = give * rate, in the home currency

The rate is always quoted as "home currency units per one foreign unit"
(e.g. 12 800 UZS per USD), which is why the operation flips with direction.

GUARANTEES:
- Pure, no I/O: safe to call on every keystroke
- Never raises for bad input; zero/garbage in -> 0,00 out
- Rounded to cents, half away from zero
"""

from decimal import (
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from kassa.money.formatter import format_fixed, quantize_cents
from kassa.money.normalizer import to_decimal


ZERO = Decimal("0.00")

AmountInput = Union[str, Decimal, None]


class FxQuote(BaseModel):
    """Result of an exchange computation."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def display(self) -> str:
        """Two-decimal display, e.g. '1 280 000,00 UZS'."""
        return f"{format_fixed(self.amount)} {self.currency}"

    @property
    def signed_display(self) -> str:
        """Received side as shown in the totals line, e.g. '+ 100,00 USD'."""
        return f"+ {self.display}"


def _coerce(value: AmountInput) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    return to_decimal(value)


def compute_receive(
    give: AmountInput,
    rate: AmountInput,
    give_currency: str,
    home_currency: str,
    foreign_currency: str,
) -> FxQuote:
    """
    Compute the received amount and currency of an exchange.

    Args:
        give: Amount handed over (canonical or display string, or Decimal)
        rate: Home-currency units per foreign unit
        give_currency: Currency of the given amount
        home_currency: Designated pivot currency
        foreign_currency: Currency selected for the exchange side of the form

    Returns:
        FxQuote rounded to two decimals
    """
    giving_home = give_currency == home_currency
    currency = foreign_currency if giving_home else home_currency

    give_value = _coerce(give)
    rate_value = _coerce(rate)
    if give_value is None or rate_value is None:
        return FxQuote(amount=ZERO, currency=currency)
    if give_value <= 0 or rate_value <= 0:
        return FxQuote(amount=ZERO, currency=currency)

    with localcontext() as ctx:
        # Typed amounts can be arbitrarily long; keep enough digits for cents
        ctx.prec = 60
        try:
            if giving_home:
                raw = give_value / rate_value
            else:
                raw = give_value * rate_value
            amount = quantize_cents(raw)
        except (InvalidOperation, DivisionByZero, Overflow):
            return FxQuote(amount=ZERO, currency=currency)

    return FxQuote(amount=amount, currency=currency)
