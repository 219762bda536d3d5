"""
GSTR-1 (outward supplies) builder.

Classifies each invoice in the period as B2B, B2C-Large or B2C-Small and
produces the sections of the GSTR-1 filing layout: b2b, b2cl, b2cs, exempt
(nil-rated) supplies, HSN summaries for B2B and B2C, and the documents-issued
summary.
"""

import re
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..engine.enums import DocumentKind, TaxType, TransactionCategory
from ..engine.rounding import ZERO, money
from ..engine.tax_split import TaxSplit
from .common import (
    TaxBucket,
    buckets_by_rate,
    document_date,
    document_number,
    filter_in_range,
    iso,
    is_active,
    rate_key,
    report_lines,
    sorted_rate_dict,
    sum_buckets,
)
from .hsn_summary import build_hsn_list

# Statutory threshold for B2C-Large (Rs 2.5 lakh). Not configurable.
B2CL_THRESHOLD = Decimal("250000")

EXEMPT_ROWS = (
    ("Inter-State supplies to registered persons", True, True),
    ("Intra-State supplies to registered persons", False, True),
    ("Inter-State supplies to unregistered persons", True, False),
    ("Intra-State supplies to unregistered persons", False, False),
)


def customer_gstin(doc: Dict[str, Any]) -> Optional[str]:
    gstin = doc.get("customerGstin") or doc.get("gstin")
    customer = doc.get("customer")
    if not gstin and isinstance(customer, dict):
        gstin = customer.get("gstin")
    gstin = str(gstin).strip() if gstin else ""
    return gstin or None


def customer_name(doc: Dict[str, Any]) -> str:
    name = doc.get("customerName")
    customer = doc.get("customer")
    if not name and isinstance(customer, dict):
        name = customer.get("name")
    return name or ""


def classify(doc: Dict[str, Any], invoice_value: Decimal) -> TransactionCategory:
    if customer_gstin(doc):
        return TransactionCategory.B2B
    if invoice_value > B2CL_THRESHOLD:
        return TransactionCategory.B2C_LARGE
    return TransactionCategory.B2C_SMALL


def _invoice_row(doc: Dict[str, Any], invoice_value: Decimal, bucket: TaxBucket) -> Dict[str, Any]:
    row = {
        "invoiceNumber": document_number(doc),
        "invoiceDate": iso(document_date(doc, DocumentKind.INVOICE)),
        "customerName": customer_name(doc),
        "gstin": customer_gstin(doc),
        "placeOfSupply": doc.get("placeOfSupply") or "",
        "taxType": str(doc.get("taxType") or TaxType.CGST_SGST.value),
        "invoiceValue": float(money(invoice_value)),
    }
    row.update({k: v for k, v in bucket.to_dict().items() if k != "count"})
    row["rates"] = sorted_rate_dict(buckets_by_rate([doc], DocumentKind.INVOICE))
    return row


def serial_key(number: str) -> Tuple:
    """INV-9 sorts before INV-10."""
    # digit runs land on odd indexes, so ints only ever compare with ints
    return tuple(int(part) if i % 2 else part for i, part in enumerate(re.split(r"(\d+)", number)))


def _document_summary(all_invoices: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    numbers = sorted((document_number(d) for d in all_invoices if document_number(d)), key=serial_key)
    cancelled = sum(1 for d in all_invoices if not is_active(d))
    return {
        "natureOfDocument": "Invoices for outward supply",
        "fromNumber": numbers[0] if numbers else None,
        "toNumber": numbers[-1] if numbers else None,
        "totalNumber": len(all_invoices),
        "cancelled": cancelled,
        "netIssued": len(all_invoices) - cancelled,
    }


def build_gstr1(invoices: Sequence[Dict[str, Any]], start, end, uqc_map: Optional[Dict] = None) -> Dict[str, Any]:
    """
    Build the GSTR-1 payload for invoices dated within [start, end].

    Cancelled/void invoices are excluded from values but still counted in
    the documents-issued summary.
    """
    active = filter_in_range(invoices, DocumentKind.INVOICE, start, end)
    issued = filter_in_range(invoices, DocumentKind.INVOICE, start, end, include_inactive=True)

    b2b_rows: List[Dict[str, Any]] = []
    b2cl_rows: List[Dict[str, Any]] = []
    b2cs: Dict[Tuple[str, str], TaxBucket] = {}
    b2b_docs: List[Dict[str, Any]] = []
    b2c_docs: List[Dict[str, Any]] = []
    exempt = {label: ZERO for label, _, _ in EXEMPT_ROWS}
    counts = {c: 0 for c in TransactionCategory}
    totals = TaxBucket()
    total_value = ZERO

    for idx, doc in enumerate(active):
        invoice_value, lines = report_lines(doc, DocumentKind.INVOICE)
        category = classify(doc, invoice_value)
        counts[category] += 1
        total_value += invoice_value

        bucket = TaxBucket()
        for item, line, split in lines:
            bucket.add(line.taxable_value, split)
            if category is TransactionCategory.B2C_SMALL:
                key = (doc.get("placeOfSupply") or "", rate_key(item.get("gstRate")))
                b2cs.setdefault(key, TaxBucket()).add(line.taxable_value, split, f"{idx}")
            if rate_key(item.get("gstRate")) == "0" and split.gst == 0:
                inter = str(doc.get("taxType") or "").upper() == TaxType.IGST.value
                registered = category is TransactionCategory.B2B
                for label, is_inter, is_registered in EXEMPT_ROWS:
                    if is_inter == inter and is_registered == registered:
                        exempt[label] += line.taxable_value
        totals.add(bucket.taxable_value, TaxSplit(bucket.cgst, bucket.sgst, bucket.igst, bucket.cess), f"{idx}")

        if category is TransactionCategory.B2B:
            b2b_rows.append(_invoice_row(doc, invoice_value, bucket))
            b2b_docs.append(doc)
        else:
            b2c_docs.append(doc)
            if category is TransactionCategory.B2C_LARGE:
                b2cl_rows.append(_invoice_row(doc, invoice_value, bucket))

    b2cs_total = sum_buckets(b2cs.values())
    b2c_small_summary = b2cs_total.to_dict()
    b2c_small_summary["count"] = counts[TransactionCategory.B2C_SMALL]

    b2cs_rows = []
    for (pos, rate) in sorted(b2cs, key=lambda k: (k[0], Decimal(k[1]))):
        row = {"type": "OE", "placeOfSupply": pos, "gstRate": float(Decimal(rate))}
        row.update(b2cs[(pos, rate)].to_dict())
        b2cs_rows.append(row)

    return {
        "period": {"startDate": iso(start), "endDate": iso(end)},
        "summary": {
            "totalInvoices": len(active),
            "totalTaxableValue": float(money(totals.taxable_value)),
            "totalCGST": float(money(totals.cgst)),
            "totalSGST": float(money(totals.sgst)),
            "totalIGST": float(money(totals.igst)),
            "totalCess": float(money(totals.cess)),
            "totalTax": float(money(totals.total_tax)),
            "totalInvoiceValue": float(money(total_value)),
            "b2bCount": counts[TransactionCategory.B2B],
            "b2cLargeCount": counts[TransactionCategory.B2C_LARGE],
            "b2cSmallCount": counts[TransactionCategory.B2C_SMALL],
        },
        "b2bInvoices": b2b_rows,
        "b2cLargeInvoices": b2cl_rows,
        "b2cSmallSummary": b2c_small_summary,
        "b2cSmall": b2cs_rows,
        "gstRateTotals": sorted_rate_dict(buckets_by_rate(active, DocumentKind.INVOICE)),
        "exemptSupplies": [
            {"description": label, "nilRated": float(money(exempt[label])), "exempted": 0.0, "nonGst": 0.0}
            for label, _, _ in EXEMPT_ROWS
        ],
        "hsnSummary": {
            "b2b": build_hsn_list(b2b_docs, uqc_map),
            "b2c": build_hsn_list(b2c_docs, uqc_map),
        },
        "documentSummary": _document_summary(issued),
    }
