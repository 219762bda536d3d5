"""
Rate & split resolver.

Turns a taxable value and its rates into CGST/SGST/IGST/CESS amounts for one
tax type. Pure arithmetic: any non-negative rate is accepted, slab checks
belong to callers.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from ..errors import ValidationError
from .enums import TaxType
from .rounding import HUNDRED, ZERO, to_decimal

GST_SLABS = (Decimal("0"), Decimal("5"), Decimal("12"), Decimal("18"), Decimal("28"))


@dataclass(frozen=True)
class TaxSplit:
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    cess: Decimal = ZERO

    @property
    def gst(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    @property
    def total(self) -> Decimal:
        return self.cgst + self.sgst + self.igst + self.cess

    def __add__(self, other: "TaxSplit") -> "TaxSplit":
        return TaxSplit(
            cgst=self.cgst + other.cgst,
            sgst=self.sgst + other.sgst,
            igst=self.igst + other.igst,
            cess=self.cess + other.cess,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "cgst": float(self.cgst),
            "sgst": float(self.sgst),
            "igst": float(self.igst),
            "cess": float(self.cess),
        }


def _non_negative(value: Any, field: str) -> Decimal:
    d = to_decimal(value, field)
    if d < 0:
        raise ValidationError(f"{field} cannot be negative", details={"field": field, "value": str(d)})
    return d


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    return amount * rate / HUNDRED


def resolve_split(
    taxable_value: Any,
    gst_rate: Any,
    cess_rate: Any,
    tax_type: Any,
    manual_cess_rate: Optional[Any] = None,
) -> TaxSplit:
    """
    Split tax on ``taxable_value`` according to ``tax_type``.

    Args:
        taxable_value: Amount after line discount (>= 0)
        gst_rate: GST percentage (>= 0)
        cess_rate: Per-line cess percentage, added on top of GST for
            CGST_SGST and IGST
        tax_type: TaxType or its string value
        manual_cess_rate: Document-level cess percentage, used only in CESS
            mode where it replaces both GST and the per-line cess

    Returns:
        TaxSplit whose components add up to the full tax amount.

    Raises:
        UnsupportedTaxTypeError: tax_type is not a TaxType
        ValidationError: any amount or rate is negative
    """
    mode = TaxType.coerce(tax_type)
    tv = _non_negative(taxable_value, "taxableValue")
    rate = _non_negative(gst_rate, "gstRate")
    cess = _non_negative(cess_rate, "cessRate")

    if mode is TaxType.CESS:
        manual = _non_negative(manual_cess_rate, "manualCessRate")
        return TaxSplit(cess=percent_of(tv, manual))

    gst_amount = percent_of(tv, rate)
    cess_amount = percent_of(tv, cess)
    if mode is TaxType.CGST_SGST:
        half = gst_amount / 2
        return TaxSplit(cgst=half, sgst=half, cess=cess_amount)
    return TaxSplit(igst=gst_amount, cess=cess_amount)


def is_standard_slab(gst_rate: Any) -> bool:
    return to_decimal(gst_rate, "gstRate") in GST_SLABS
