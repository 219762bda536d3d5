"""
Decimal coercion and the rounding policy.

All engine arithmetic runs on Decimal. Values are coerced through ``str()`` so
float inputs such as ``999.5`` keep the decimal digits the user typed instead
of their binary approximation.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from ..errors import ValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
RUPEE = Decimal("1")
PAISE = Decimal("0.01")


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """Coerce int/float/str/Decimal to Decimal. ``None`` and ``""`` become 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be numeric", details={"field": field, "value": value})
    if isinstance(value, str):
        cleaned = value.replace("₹", "").replace(",", "").strip()
        if not cleaned:
            return ZERO
        value = cleaned
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be numeric", details={"field": field, "value": value})
    if not result.is_finite():
        raise ValidationError(f"{field} must be finite", details={"field": field, "value": str(value)})
    return result


def round_half_away(value: Decimal, quantum: Decimal = RUPEE) -> Decimal:
    """
    Round half away from zero: 2.5 -> 3, -2.5 -> -3.

    Decimal's ROUND_HALF_UP is "away from zero" on ties, unlike the built-in
    ``round`` (banker's rounding).
    """
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def round_off(raw_total: Decimal):
    """Return ``(grand_total, round_off)`` with ``grand_total == raw_total + round_off``."""
    grand_total = round_half_away(raw_total)
    return grand_total, grand_total - raw_total


def money(value: Any) -> Decimal:
    """Two-decimal display value."""
    return round_half_away(to_decimal(value), PAISE)
