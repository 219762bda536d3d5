"""Line-item totals."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from ..errors import ValidationError
from .enums import TaxType
from .rounding import ZERO, to_decimal
from .tax_split import TaxSplit, resolve_split

logger = logging.getLogger(__name__)

# Lookup order when the caller does not name the price field
PRICE_KEYS = ("unitPrice", "sellingPrice", "purchasePrice", "price")


@dataclass(frozen=True)
class LineTotals:
    quantity: Decimal
    unit_price: Decimal
    gross_amount: Decimal
    discount: Decimal
    taxable_value: Decimal
    split: TaxSplit
    clamped: bool = False

    @property
    def cgst(self) -> Decimal:
        return self.split.cgst

    @property
    def sgst(self) -> Decimal:
        return self.split.sgst

    @property
    def igst(self) -> Decimal:
        return self.split.igst

    @property
    def cess(self) -> Decimal:
        return self.split.cess

    @property
    def tax_amount(self) -> Decimal:
        return self.split.total

    @property
    def total_amount(self) -> Decimal:
        return self.taxable_value + self.split.total

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "grossAmount": float(self.gross_amount),
            "discount": float(self.discount),
            "taxableValue": float(self.taxable_value),
            "taxAmount": float(self.tax_amount),
            "totalAmount": float(self.total_amount),
        }
        out.update(self.split.to_dict())
        return out


def unit_price_of(item: Dict[str, Any], price_key: Optional[str] = None) -> Decimal:
    if price_key and item.get(price_key) is not None:
        return to_decimal(item.get(price_key), price_key)
    for key in PRICE_KEYS:
        if item.get(key) is not None:
            return to_decimal(item.get(key), key)
    return ZERO


def compute_line(
    item: Dict[str, Any],
    tax_type: Any,
    price_key: Optional[str] = None,
) -> LineTotals:
    """
    Compute one line's taxable value, tax split and total.

    A discount larger than the gross amount is clamped so the taxable value
    never goes negative; the result is flagged with ``clamped=True``.
    In CESS mode the line carries no tax: the document-level cess is applied
    once on the subtotal by the aggregator.
    """
    mode = TaxType.coerce(tax_type)
    quantity = to_decimal(item.get("quantity"), "quantity")
    unit_price = unit_price_of(item, price_key)
    discount = to_decimal(item.get("discount"), "discount")

    if quantity <= 0:
        raise ValidationError(
            "quantity must be greater than zero",
            details={"field": "quantity", "value": str(quantity), "product": item.get("product")},
        )
    if unit_price < 0:
        raise ValidationError("unit price cannot be negative", details={"field": "unitPrice", "value": str(unit_price)})
    if discount < 0:
        raise ValidationError("discount cannot be negative", details={"field": "discount", "value": str(discount)})

    gross = quantity * unit_price
    taxable = gross - discount
    clamped = False
    if taxable < 0:
        logger.warning(
            "Line discount %s exceeds gross amount %s for product %s; taxable value clamped to 0",
            discount, gross, item.get("product"),
        )
        taxable = ZERO
        clamped = True

    if mode is TaxType.CESS:
        split = TaxSplit()
    else:
        split = resolve_split(taxable, item.get("gstRate"), item.get("cessRate"), mode)

    return LineTotals(
        quantity=quantity,
        unit_price=unit_price,
        gross_amount=gross,
        discount=discount,
        taxable_value=taxable,
        split=split,
        clamped=clamped,
    )
