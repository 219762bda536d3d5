"""
Document totals validator

Checks a computed document (or a persisted payload read back from the store)
for internal consistency. Returns structured issues with codes, levels and
metadata, the same shape the report exporters use.
"""

from decimal import Decimal
from typing import Any, Dict, List

from ..engine.document import DocumentTotals
from ..engine.enums import TaxType
from ..engine.rounding import ZERO, to_decimal
from ..engine.tax_split import is_standard_slab
from ..errors import ConsistencyError, GSTEngineError


def _d(x: Any) -> Decimal:
    """Safely convert value to Decimal."""
    try:
        return to_decimal(x)
    except GSTEngineError:
        return ZERO


def validate_document_totals(doc: Dict[str, Any], tolerance: float = 0.0) -> List[Dict[str, Any]]:
    """
    Validate an engine-computed document payload.

    Args:
        doc: Document with items and totals populated by compute_document_payload
        tolerance: Allowed absolute difference for numeric comparisons. The
            default of 0 demands exact agreement.

    Returns:
        List of validation issues, each with:
        {
            "code": "...",
            "level": "warning|error",
            "message": "...",
            "meta": {...}
        }
    """
    issues: List[Dict[str, Any]] = []
    tol = to_decimal(tolerance)
    items = doc.get("items") or []
    tax_type = str(doc.get("taxType") or TaxType.CGST_SGST.value).upper()

    subtotal_calc = ZERO
    cgst_calc = sgst_calc = igst_calc = cess_calc = ZERO

    for idx, item in enumerate(items):
        taxable = _d(item.get("taxableValue"))
        cg = _d(item.get("cgst"))
        sg = _d(item.get("sgst"))
        ig = _d(item.get("igst"))
        ce = _d(item.get("cess"))
        total = _d(item.get("totalAmount"))

        subtotal_calc += taxable
        cgst_calc += cg
        sgst_calc += sg
        igst_calc += ig
        cess_calc += ce

        expected_total = taxable + cg + sg + ig + ce
        if abs(total - expected_total) > tol:
            issues.append({
                "code": "ENTRY_TOTAL_MISMATCH",
                "level": "error",
                "message": f"Item {idx + 1} total {total} != taxable+tax {expected_total}",
                "meta": {"index": idx},
            })
        if tax_type == TaxType.CGST_SGST.value and cg != sg:
            issues.append({
                "code": "CGST_SGST_ASYMMETRY",
                "level": "error",
                "message": f"Item {idx + 1} CGST {cg} != SGST {sg}",
                "meta": {"index": idx},
            })
        if item.get("gstRate") is not None and not is_standard_slab(_d(item.get("gstRate"))):
            issues.append({
                "code": "NON_STANDARD_GST_RATE",
                "level": "warning",
                "message": f"Item {idx + 1} uses GST rate {item.get('gstRate')}%, not a standard slab",
                "meta": {"index": idx, "gstRate": item.get("gstRate")},
            })

    subtotal = _d(doc.get("subtotal"))
    if abs(subtotal - subtotal_calc) > tol:
        issues.append({
            "code": "SUBTOTAL_MISMATCH",
            "level": "error",
            "message": f"Document subtotal {subtotal} != sum of items {subtotal_calc}",
            "meta": {},
        })

    heads = {
        "totalCGST": cgst_calc,
        "totalSGST": sgst_calc,
        "totalIGST": igst_calc,
    }
    if tax_type != TaxType.CESS.value:
        heads["totalCess"] = cess_calc
    for key, calc in heads.items():
        canon = _d(doc.get(key))
        if abs(canon - calc) > tol:
            issues.append({
                "code": "TAX_TOTAL_MISMATCH",
                "level": "error",
                "message": f"Document {key} {canon} != sum of items {calc}",
                "meta": {"head": key},
            })

    grand = _d(doc.get("grandTotal"))
    raw = _d(doc.get("grandTotalRaw"))
    rounding = _d(doc.get("roundOff"))
    if abs(grand - (raw + rounding)) > tol:
        issues.append({
            "code": "ROUND_OFF_MISMATCH",
            "level": "error",
            "message": f"grandTotal {grand} != grandTotalRaw {raw} + roundOff {rounding}",
            "meta": {},
        })

    return issues


def assert_consistent(totals: DocumentTotals) -> None:
    """
    Raise ConsistencyError unless the totals reconstruct exactly.

    Holds for every DocumentTotals produced by compute_document; a failure
    here means the engine itself is broken.
    """
    if totals.grand_total != totals.grand_total_raw + totals.round_off:
        raise ConsistencyError(
            "grandTotal does not equal grandTotalRaw + roundOff",
            details={
                "grandTotal": str(totals.grand_total),
                "grandTotalRaw": str(totals.grand_total_raw),
                "roundOff": str(totals.round_off),
            },
        )
    if totals.grand_total != totals.grand_total.to_integral_value():
        raise ConsistencyError("grandTotal is not a whole rupee amount", details={"grandTotal": str(totals.grand_total)})

    subtotal = sum((line.taxable_value for line in totals.lines), ZERO)
    if subtotal != totals.subtotal:
        raise ConsistencyError(
            "Sum of line taxable values does not equal subtotal",
            details={"lines": str(subtotal), "subtotal": str(totals.subtotal)},
        )

    if totals.tax_type is not TaxType.CESS:
        for head in ("cgst", "sgst", "igst", "cess"):
            line_sum = sum((getattr(line.split, head) for line in totals.lines), ZERO)
            if line_sum != getattr(totals.taxes, head):
                raise ConsistencyError(
                    f"Sum of line {head} does not equal document {head}",
                    details={"head": head, "lines": str(line_sum), "document": str(getattr(totals.taxes, head))},
                )
