from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_CEILING
from typing import Optional

TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")
ZERO = Decimal("0")
ONE = Decimal("1")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def d_or_none(val) -> Optional[Decimal]:
    """Like d(), but None/blank/non-numeric input becomes None instead of raising."""
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, str) and not val.strip():
        return None
    try:
        out = d(val)
    except (InvalidOperation, ValueError, TypeError):
        return None
    return out if out.is_finite() else None


def round_up_to_next_whole(amount: Decimal) -> Decimal:
    """Round a Decimal amount up to the next whole number."""
    return amount.to_integral_value(rounding=ROUND_CEILING)


def fmt_qty(value: Decimal) -> str:
    """Render a quantity without a trailing exponent or useless zeros (4.000 -> 4)."""
    normalized = value.normalize()
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(ONE))
    return format(normalized, "f")
