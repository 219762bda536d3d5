from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..engine.enums import DocumentKind
from ..engine.rounding import ZERO, money, to_decimal
from .common import TaxBucket, doc_ref, filter_in_range, iso, rate_key, report_lines
from .uqc import uqc_for_unit

NO_HSN = "N/A"


class _HSNRow(TaxBucket):
    def __init__(self, hsn_code: str, gst_rate: str, description: str, uqc: str):
        super().__init__()
        self.hsn_code = hsn_code
        self.gst_rate = gst_rate
        self.description = description
        self.uqc = uqc
        self.quantity = ZERO

    def row(self) -> Dict[str, Any]:
        return {
            "hsnCode": self.hsn_code,
            "description": self.description,
            "uqc": self.uqc,
            "totalQuantity": float(self.quantity),
            "gstRate": float(Decimal(self.gst_rate)),
            "taxableValue": float(money(self.taxable_value)),
            "cgst": float(money(self.cgst)),
            "sgst": float(money(self.sgst)),
            "igst": float(money(self.igst)),
            "cess": float(money(self.cess)),
            "totalTax": float(money(self.total_tax)),
            "totalValue": float(money(self.taxable_value + self.total_tax)),
        }


def _hsn_rows(documents: Sequence[Dict[str, Any]], uqc_map: Optional[Dict]) -> List[_HSNRow]:
    rows: Dict[Tuple[str, str], _HSNRow] = {}
    for idx, doc in enumerate(documents):
        _, lines = report_lines(doc, DocumentKind.INVOICE)
        for item, line, split in lines:
            hsn = str(item.get("hsnCode") or NO_HSN).strip()
            rate = rate_key(item.get("gstRate"))
            key = (hsn, rate)
            if key not in rows:
                rows[key] = _HSNRow(
                    hsn,
                    rate,
                    item.get("productName") or item.get("description") or "",
                    uqc_for_unit(item.get("unit"), uqc_map),
                )
            rows[key].add(line.taxable_value, split, doc_ref(doc, DocumentKind.INVOICE, idx))
            rows[key].quantity += to_decimal(item.get("quantity"), "quantity")
    # HSN codes ascending, then rate
    return [rows[k] for k in sorted(rows, key=lambda k: (k[0], Decimal(k[1])))]


def build_hsn_list(documents: Sequence[Dict[str, Any]], uqc_map: Optional[Dict] = None) -> List[Dict[str, Any]]:
    """HSN-wise rows for already-filtered invoices, one per (hsnCode, gstRate)."""
    return [r.row() for r in _hsn_rows(documents, uqc_map)]


def build_hsn_summary(invoices: Sequence[Dict[str, Any]], start, end, uqc_map: Optional[Dict] = None) -> Dict[str, Any]:
    active = filter_in_range(invoices, DocumentKind.INVOICE, start, end)
    rows = _hsn_rows(active, uqc_map)

    taxable = sum((r.taxable_value for r in rows), ZERO)
    tax = sum((r.total_tax for r in rows), ZERO)
    quantity = sum((r.quantity for r in rows), ZERO)
    return {
        "period": {"startDate": iso(start), "endDate": iso(end)},
        "hsnList": [r.row() for r in rows],
        "summary": {
            "totalHSNCodes": len({r.hsn_code for r in rows}),
            "totalQuantity": float(quantity),
            "totalTaxableValue": float(money(taxable)),
            "totalTax": float(money(tax)),
            "totalValue": float(money(taxable + tax)),
        },
    }
