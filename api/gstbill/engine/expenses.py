from typing import Any, Dict

from ..errors import ValidationError
from .rounding import to_decimal
from .tax_split import percent_of


def compute_expense(amount: Any, gst_rate: Any = 0) -> Dict[str, float]:
    """GST on a single expense entry. Expenses carry no split, only the GST amount."""
    base = to_decimal(amount, "amount")
    rate = to_decimal(gst_rate, "gstRate")
    if base <= 0:
        raise ValidationError("Please enter valid amount", details={"field": "amount", "value": str(base)})
    if rate < 0:
        raise ValidationError("gstRate cannot be negative", details={"field": "gstRate", "value": str(rate)})
    gst_amount = percent_of(base, rate)
    return {
        "amount": float(base),
        "gstRate": float(rate),
        "gstAmount": float(gst_amount),
        "totalAmount": float(base + gst_amount),
    }
