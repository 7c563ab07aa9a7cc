# core/utils/money.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from core.exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def D(v) -> Decimal:
    """Lenient coercion for values read back from the database."""
    try:
        return Decimal(str(v)) if v not in (None, "") else Decimal("0")
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0")


def money(v) -> Decimal:
    return D(v).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value) -> Decimal:
    """
    Strict parsing for an incoming payment amount.

    Accepts Decimal, int, float or numeric strings. Rejects anything that is
    not a finite, positive amount of whole cents.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f"Invalid payment amount: {value!r}")
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid payment amount: {value!r}") from None

    if not amount.is_finite():
        raise InvalidAmount(f"Invalid payment amount: {value!r}")
    if amount <= 0:
        raise InvalidAmount(f"Payment amount must be positive, got {amount}")

    cents = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if cents != amount:
        raise InvalidAmount(f"Payment amount has sub-cent precision: {amount}")
    return cents
