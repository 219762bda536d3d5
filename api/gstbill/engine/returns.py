"""
Return processor for credit notes (sales returns) and debit notes (purchase
returns).

Return lines are priced from the original document's lines, never from
re-entered values, so the note's tax always mirrors the original sale or
purchase.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import EmptyDocumentError, ExceedsReturnableQuantityError, ValidationError
from .document import PRICE_KEY_BY_KIND, DocumentTotals, compute_document
from .enums import DocumentKind, TaxType
from .line_totals import unit_price_of
from .rounding import ZERO, to_decimal

logger = logging.getLogger(__name__)


def _ref_id(value: Any) -> Optional[str]:
    """Reference ids arrive either bare or as populated objects."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    return str(value) if value is not None else None


def line_identity(line: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """(product, batch) key used to match a return line to its original line."""
    batch = _ref_id(line.get("batch")) or (line.get("batchNo") or None)
    return _ref_id(line.get("product")), batch


@dataclass(frozen=True)
class ReturnLine:
    product: Optional[str]
    batch: Optional[str]
    quantity: Decimal
    original_quantity: Decimal
    returned_before: Decimal
    unit_price: Decimal
    gst_rate: Decimal
    cess_rate: Decimal
    discount: Decimal
    restock: bool

    @property
    def returnable(self) -> Decimal:
        return self.original_quantity - self.returned_before

    @property
    def returned_after(self) -> Decimal:
        return self.returned_before + self.quantity

    def as_item(self) -> Dict[str, Any]:
        return {
            "product": self.product,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "gstRate": self.gst_rate,
            "cessRate": self.cess_rate,
            "discount": self.discount,
        }


@dataclass(frozen=True)
class ReturnTotals:
    kind: DocumentKind
    original_kind: DocumentKind
    original_id: Optional[str]
    lines: List[ReturnLine]
    totals: DocumentTotals
    manual_cess_rate: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        totals = self.totals.to_dict()
        items = []
        for line, computed in zip(self.lines, totals.pop("items")):
            item = {
                "product": line.product,
                "batch": line.batch,
                "quantity": float(line.quantity),
                "unitPrice": float(line.unit_price),
                "gstRate": float(line.gst_rate),
                "cessRate": float(line.cess_rate),
                "returnedQuantityAfter": float(line.returned_after),
                "restock": line.restock,
            }
            item.update(computed)
            items.append(item)
        totals["items"] = items
        totals["kind"] = self.kind.value
        totals["originalDocument"] = self.original_id
        totals["originalKind"] = self.original_kind.value
        if self.manual_cess_rate is not None:
            totals["manualCessRate"] = self.manual_cess_rate
        return totals


def compute_return(
    original_document: Dict[str, Any],
    return_lines: Sequence[Dict[str, Any]],
    restock: bool = True,
) -> ReturnTotals:
    """
    Compute credit/debit note totals for ``return_lines`` against
    ``original_document``.

    Each return line names ``product`` (and ``batch`` or ``batchNo`` when the
    original line has one) and ``quantity``. Pricing fields on return lines
    are ignored.

    Raises:
        EmptyDocumentError: no return lines
        ValidationError: unknown or duplicate line, non-positive quantity
        ExceedsReturnableQuantityError: quantity above what remains returnable
    """
    if not return_lines:
        raise EmptyDocumentError("Return must contain at least one item")

    original_kind = DocumentKind.coerce(original_document.get("kind") or DocumentKind.INVOICE)
    note_kind = original_kind.return_kind
    tax_type = TaxType.coerce(original_document.get("taxType") or TaxType.CGST_SGST)
    price_key = PRICE_KEY_BY_KIND.get(original_kind)

    originals: Dict[Tuple[Optional[str], Optional[str]], Dict[str, Any]] = {}
    for line in original_document.get("items") or []:
        originals.setdefault(line_identity(line), line)

    seen = set()
    lines: List[ReturnLine] = []
    for req in return_lines:
        key = line_identity(req)
        original = originals.get(key)
        if original is None and key[1] is None:
            # Batch omitted on the request: accept when the product is unambiguous
            matches = [v for k, v in originals.items() if k[0] == key[0]]
            if len(matches) == 1:
                original = matches[0]
                key = line_identity(original)
        if original is None:
            raise ValidationError(
                "Return item does not match any line on the original document",
                details={"product": key[0], "batch": key[1]},
            )
        if key in seen:
            raise ValidationError("Item already added to return list", details={"product": key[0], "batch": key[1]})
        seen.add(key)

        qty = to_decimal(req.get("quantity"), "quantity")
        if qty <= 0:
            raise ValidationError("Return quantity must be greater than zero", details={"product": key[0], "quantity": str(qty)})

        orig_qty = to_decimal(original.get("quantity"), "quantity")
        returned = to_decimal(original.get("returnedQuantity"), "returnedQuantity")
        returnable = orig_qty - returned
        if qty > returnable:
            raise ExceedsReturnableQuantityError(
                f"Maximum returnable quantity is {returnable}",
                details={
                    "product": key[0],
                    "batch": key[1],
                    "requested": str(qty),
                    "returnable": str(returnable),
                },
            )

        orig_discount = to_decimal(original.get("discount") or original.get("discountAmount"), "discount")
        discount = orig_discount * qty / orig_qty if orig_qty else ZERO
        line_restock = bool(req.get("restock", restock))
        if original_kind is DocumentKind.INVOICE:
            line_restock = line_restock and key[1] is not None
        else:
            line_restock = False

        lines.append(ReturnLine(
            product=key[0],
            batch=key[1],
            quantity=qty,
            original_quantity=orig_qty,
            returned_before=returned,
            unit_price=unit_price_of(original, price_key),
            gst_rate=to_decimal(original.get("gstRate"), "gstRate"),
            cess_rate=to_decimal(original.get("cessRate"), "cessRate"),
            discount=discount,
            restock=line_restock,
        ))

    totals = compute_document(
        [line.as_item() for line in lines],
        tax_type,
        manual_cess_rate=original_document.get("manualCessRate"),
    )
    logger.info(
        "%s computed against %s: %d line(s), grand total %s",
        note_kind.value, _ref_id(original_document.get("id") or original_document.get("_id")),
        len(lines), totals.grand_total,
    )
    return ReturnTotals(
        kind=note_kind,
        original_kind=original_kind,
        original_id=_ref_id(original_document.get("id") or original_document.get("_id")),
        lines=lines,
        totals=totals,
        manual_cess_rate=original_document.get("manualCessRate"),
    )
