"""
Document aggregator.

Sums line totals into document totals for invoices, purchases and returns,
applies document-level discount and purchase charges, and rounds the grand
total to whole rupees.
"""

import copy
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..errors import EmptyDocumentError, ValidationError
from .enums import DocumentKind, TaxType
from .line_totals import LineTotals, compute_line
from .rounding import ZERO, round_off, to_decimal
from .tax_split import TaxSplit, percent_of

logger = logging.getLogger(__name__)

CHARGE_KEYS = ("freightCharges", "packagingCharges", "otherCharges")

PRICE_KEY_BY_KIND = {
    DocumentKind.INVOICE: "sellingPrice",
    DocumentKind.PURCHASE: "purchasePrice",
}


@dataclass(frozen=True)
class DocumentTotals:
    tax_type: TaxType
    lines: List[LineTotals]
    subtotal: Decimal
    taxes: TaxSplit
    discount: Decimal
    additional_charges: Decimal
    grand_total_raw: Decimal
    round_off: Decimal
    grand_total: Decimal
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_tax(self) -> Decimal:
        return self.taxes.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "taxType": self.tax_type.value,
            "subtotal": float(self.subtotal),
            "totalCGST": float(self.taxes.cgst),
            "totalSGST": float(self.taxes.sgst),
            "totalIGST": float(self.taxes.igst),
            "totalCess": float(self.taxes.cess),
            "totalTax": float(self.total_tax),
            "discount": float(self.discount),
            "additionalCharges": float(self.additional_charges),
            "grandTotalRaw": float(self.grand_total_raw),
            "roundOff": float(self.round_off),
            "grandTotal": float(self.grand_total),
            "items": [line.to_dict() for line in self.lines],
            "warnings": list(self.warnings),
        }


def compute_document(
    items: Sequence[Dict[str, Any]],
    tax_type: Any,
    discount: Any = 0,
    additional_charges: Any = 0,
    manual_cess_rate: Optional[Any] = None,
    price_key: Optional[str] = None,
) -> DocumentTotals:
    """
    Aggregate line items into document totals.

    Args:
        items: Line items (quantity, price, gstRate, cessRate, discount)
        tax_type: CGST_SGST, IGST or CESS
        discount: Document-level discount, subtracted after tax
        additional_charges: Freight + packaging + other (purchases)
        manual_cess_rate: Document-level cess percentage, required in CESS mode
        price_key: Item field holding the unit price (e.g. ``sellingPrice``)

    Returns:
        DocumentTotals with ``grand_total == grand_total_raw + round_off``.

    Raises:
        EmptyDocumentError: no items
        ValidationError: negative discount/charges, missing CESS rate, or a
            discount larger than the document value
    """
    mode = TaxType.coerce(tax_type)
    if not items:
        raise EmptyDocumentError("Document must contain at least one item")

    doc_discount = to_decimal(discount, "discount")
    charges = to_decimal(additional_charges, "additionalCharges")
    if doc_discount < 0:
        raise ValidationError("discount cannot be negative", details={"field": "discount"})
    if charges < 0:
        raise ValidationError("additional charges cannot be negative", details={"field": "additionalCharges"})

    warnings: List[Dict[str, Any]] = []
    lines: List[LineTotals] = []
    for idx, item in enumerate(items):
        line = compute_line(item, mode, price_key=price_key)
        if line.clamped:
            warnings.append({
                "code": "OVER_DISCOUNT",
                "level": "warning",
                "message": f"Item {idx + 1}: discount {line.discount} exceeds gross amount {line.gross_amount}",
                "meta": {"index": idx, "product": item.get("product")},
            })
        lines.append(line)

    subtotal = sum((line.taxable_value for line in lines), ZERO)
    taxes = TaxSplit()
    for line in lines:
        taxes = taxes + line.split

    if mode is TaxType.CESS:
        if manual_cess_rate is None or manual_cess_rate == "":
            raise ValidationError("manualCessRate is required when taxType is CESS", details={"field": "manualCessRate"})
        rate = to_decimal(manual_cess_rate, "manualCessRate")
        if rate < 0:
            raise ValidationError("manualCessRate cannot be negative", details={"field": "manualCessRate"})
        taxes = TaxSplit(cess=percent_of(subtotal, rate))

    raw = subtotal + taxes.total + charges - doc_discount
    if raw < 0:
        raise ValidationError(
            "Document discount exceeds document value",
            details={"field": "discount", "discount": str(doc_discount), "value": str(raw + doc_discount)},
        )
    grand_total, rounding = round_off(raw)

    return DocumentTotals(
        tax_type=mode,
        lines=lines,
        subtotal=subtotal,
        taxes=taxes,
        discount=doc_discount,
        additional_charges=charges,
        grand_total_raw=raw,
        round_off=rounding,
        grand_total=grand_total,
        warnings=warnings,
    )


def additional_charges_of(document: Dict[str, Any]) -> Decimal:
    if document.get("additionalCharges") is not None:
        return to_decimal(document.get("additionalCharges"), "additionalCharges")
    return sum((to_decimal(document.get(k), k) for k in CHARGE_KEYS), ZERO)


def totals_for(document: Dict[str, Any], kind: Any = None) -> DocumentTotals:
    """
    Compute totals straight from a document dict.

    Additional charges apply to purchases only; on other kinds they are ignored.
    """
    doc_kind = DocumentKind.coerce(kind or document.get("kind") or DocumentKind.INVOICE)
    charges = additional_charges_of(document) if doc_kind is DocumentKind.PURCHASE else ZERO
    return compute_document(
        document.get("items") or [],
        document.get("taxType") or TaxType.CGST_SGST,
        discount=document.get("discount"),
        additional_charges=charges,
        manual_cess_rate=document.get("manualCessRate"),
        price_key=PRICE_KEY_BY_KIND.get(doc_kind),
    )


def compute_document_payload(document: Dict[str, Any], kind: Any = None) -> Dict[str, Any]:
    """
    Return a copy of ``document`` with all engine-computed fields populated,
    ready to be persisted.
    """
    from ..formatting import amount_in_words

    doc_kind = DocumentKind.coerce(kind or document.get("kind") or DocumentKind.INVOICE)
    totals = totals_for(document, doc_kind)

    payload = copy.deepcopy(document)
    payload["kind"] = doc_kind.value
    payload["taxType"] = totals.tax_type.value
    items_out = []
    for item, line in zip(payload.get("items") or [], totals.lines):
        item = dict(item)
        item.update(line.to_dict())
        item.setdefault("returnedQuantity", 0)
        items_out.append(item)
    payload["items"] = items_out

    summary = totals.to_dict()
    summary.pop("items")
    warnings = summary.pop("warnings")
    payload.update(summary)
    payload["amountInWords"] = amount_in_words(totals.grand_total)
    if warnings:
        payload["warnings"] = warnings
        logger.warning("Document %s computed with %d warning(s)", document.get("invoiceNumber") or document.get("billNumber"), len(warnings))
    return payload
