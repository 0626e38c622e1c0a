from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# French standard VAT rate, used when a contract carries no rate of its own.
DEFAULT_TAX_RATE_PCT = Decimal("20")


def q_money(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_amount(value: Decimal | int | float | str | None) -> Decimal | None:
    """
    Lenient numeric parsing for values coming out of the contracts store.

    Returns None for missing, blank, non-numeric and non-finite values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        d = Decimal(str(value))
    else:
        s = str(value).strip()
        if not s:
            return None
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    if not d.is_finite():
        return None
    return d


def tax_multiplier(tax_rate_pct: Decimal) -> Decimal:
    """1 + rate/100, e.g. 20 -> 1.2."""
    return ONE + tax_rate_pct / HUNDRED


def non_negative(x: Decimal) -> Decimal:
    return x if x > 0 else ZERO
