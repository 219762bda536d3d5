"""
Display helpers: Indian digit grouping and amount in words.

Presentation only. The engine never formats numbers it computes with.
"""

from decimal import Decimal
from typing import Any

from num2words import num2words

from .engine.rounding import PAISE, round_half_away, to_decimal


def group_indian(digits: str) -> str:
    """'123456' -> '1,23,456' (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_inr(value: Any, symbol: str = "₹") -> str:
    """Format an amount the way Indian invoices print it: ₹1,23,456.78"""
    amount = round_half_away(to_decimal(value), PAISE)
    sign = "-" if amount < 0 else ""
    rupees, paise = f"{abs(amount):.2f}".split(".")
    return f"{sign}{symbol}{group_indian(rupees)}.{paise}"


def amount_in_words(amount: Any) -> str:
    """Convert amount to words (Indian numbering system)."""
    value = round_half_away(to_decimal(amount), PAISE)
    rupees = int(value)
    paise = int((value - Decimal(rupees)) * 100)

    words = num2words(rupees, lang="en_IN").replace(",", "")
    if paise > 0:
        paise_words = num2words(paise, lang="en_IN").replace(",", "")
        return f"Rupees {words.title()} and {paise_words.title()} Paise Only"
    return f"Rupees {words.title()} Only"
