"""
Shared pieces for the statutory report builders: date filtering, tax buckets
and per-line tax extraction.

Report builders never do their own tax arithmetic. They pull line totals from
the document aggregator so a report always agrees with the invoice it came
from.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..engine.document import totals_for
from ..engine.enums import DocumentKind, TaxType
from ..engine.line_totals import LineTotals
from ..engine.rounding import ZERO, money, to_decimal
from ..engine.tax_split import TaxSplit, percent_of
from ..errors import ValidationError

DATE_KEYS = {
    DocumentKind.INVOICE: ("invoiceDate", "date"),
    DocumentKind.PURCHASE: ("purchaseDate", "billDate", "date"),
    DocumentKind.SALES_RETURN: ("returnDate", "date"),
    DocumentKind.PURCHASE_RETURN: ("returnDate", "date"),
}

INACTIVE_STATUSES = {"CANCELLED", "VOID"}

DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d-%m-%Y", "%d/%m/%Y")


def parse_date(value: Any) -> Optional[date]:
    """Calendar date from a date, datetime or string. Time of day is dropped."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    raise ValidationError(f"Invalid date: {value!r}", details={"value": text})


def document_date(doc: Dict[str, Any], kind: DocumentKind) -> Optional[date]:
    for key in DATE_KEYS[kind]:
        if doc.get(key):
            return parse_date(doc.get(key))
    return None


def check_range(start_date: Any, end_date: Any) -> Tuple[date, date]:
    start = parse_date(start_date)
    end = parse_date(end_date)
    if start is None or end is None:
        raise ValidationError("Please select both start and end dates", details={"startDate": start_date, "endDate": end_date})
    if start > end:
        raise ValidationError("startDate must not be after endDate", details={"startDate": str(start), "endDate": str(end)})
    return start, end


def is_active(doc: Dict[str, Any]) -> bool:
    return str(doc.get("status") or "").upper() not in INACTIVE_STATUSES


def filter_in_range(
    documents: Optional[Iterable[Dict[str, Any]]],
    kind: DocumentKind,
    start: date,
    end: date,
    include_inactive: bool = False,
) -> List[Dict[str, Any]]:
    """Documents whose recorded date lies in [start, end], in date then number order."""
    selected = []
    for doc in documents or []:
        if not include_inactive and not is_active(doc):
            continue
        d = document_date(doc, kind)
        if d is not None and start <= d <= end:
            selected.append((d, document_number(doc), doc))
    selected.sort(key=lambda t: (t[0], t[1]))
    return [doc for _, _, doc in selected]


def document_number(doc: Dict[str, Any]) -> str:
    for key in ("invoiceNumber", "purchaseNumber", "billNumber", "creditNoteNumber", "debitNoteNumber", "id", "_id"):
        if doc.get(key):
            return str(doc.get(key))
    return ""


def rate_key(rate: Any) -> str:
    """18 / 18.0 / '18.00' -> '18'"""
    return format(to_decimal(rate, "gstRate").normalize(), "f")


def report_lines(doc: Dict[str, Any], kind: DocumentKind) -> Tuple[Decimal, List[Tuple[Dict[str, Any], LineTotals, TaxSplit]]]:
    """
    Grand total plus ``(item, line, split)`` for every line of ``doc``.

    In CESS mode the document-level cess is distributed to the lines by their
    taxable value, which sums back to the document cess exactly.
    """
    totals = totals_for(doc, kind)
    lines = []
    manual = to_decimal(doc.get("manualCessRate"), "manualCessRate")
    for item, line in zip(doc.get("items") or [], totals.lines):
        split = line.split
        if totals.tax_type is TaxType.CESS:
            split = TaxSplit(cess=percent_of(line.taxable_value, manual))
        lines.append((item, line, split))
    return totals.grand_total, lines


@dataclass
class TaxBucket:
    """Running sums for one report key."""

    taxable_value: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    cess: Decimal = ZERO
    documents: Set[str] = field(default_factory=set)

    def add(self, taxable: Decimal, split: TaxSplit, doc_ref: str = "", sign: int = 1) -> None:
        self.taxable_value += sign * taxable
        self.cgst += sign * split.cgst
        self.sgst += sign * split.sgst
        self.igst += sign * split.igst
        self.cess += sign * split.cess
        if doc_ref and sign > 0:
            self.documents.add(doc_ref)

    @property
    def count(self) -> int:
        return len(self.documents)

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst + self.cess

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "taxableValue": float(money(self.taxable_value)),
            "cgst": float(money(self.cgst)),
            "sgst": float(money(self.sgst)),
            "igst": float(money(self.igst)),
            "cess": float(money(self.cess)),
            "totalTax": float(money(self.total_tax)),
        }


def doc_ref(doc: Dict[str, Any], kind: DocumentKind, index: int) -> str:
    """Stable identity for counting distinct documents in a bucket."""
    return f"{kind.value}:{doc.get('id') or doc.get('_id') or document_number(doc) or index}"


def buckets_by_rate(
    documents: Sequence[Dict[str, Any]],
    kind: DocumentKind,
    sign: int = 1,
    into: Optional[Dict[str, TaxBucket]] = None,
) -> Dict[str, TaxBucket]:
    buckets: Dict[str, TaxBucket] = into if into is not None else {}
    for idx, doc in enumerate(documents):
        _, lines = report_lines(doc, kind)
        for item, line, split in lines:
            key = rate_key(item.get("gstRate"))
            buckets.setdefault(key, TaxBucket()).add(line.taxable_value, split, doc_ref(doc, kind, idx), sign)
    return buckets


def sorted_rate_dict(buckets: Dict[str, TaxBucket]) -> Dict[str, Dict[str, Any]]:
    return {k: buckets[k].to_dict() for k in sorted(buckets, key=lambda r: Decimal(r))}


def sum_buckets(buckets: Iterable[TaxBucket]) -> TaxBucket:
    total = TaxBucket()
    for b in buckets:
        total.taxable_value += b.taxable_value
        total.cgst += b.cgst
        total.sgst += b.sgst
        total.igst += b.igst
        total.cess += b.cess
        total.documents |= b.documents
    return total


def iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None
