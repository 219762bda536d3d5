"""CSV exporters for report payloads"""
import csv
from io import StringIO
from typing import Any, Dict, List

from ..engine.enums import ReportKind

RATE_HEADERS = ["GST Rate", "Count", "Taxable Value", "CGST", "SGST", "IGST", "CESS", "Total Tax"]

HSN_HEADERS = [
    "HSN Code",
    "Description",
    "UQC",
    "Quantity",
    "GST Rate",
    "Taxable Value",
    "CGST",
    "SGST",
    "IGST",
    "CESS",
    "Total Tax",
    "Total Value",
]

B2B_HEADERS = [
    "Invoice Number",
    "Invoice Date",
    "Customer Name",
    "Customer GSTIN",
    "Place of Supply",
    "Taxable Value",
    "CGST",
    "SGST",
    "IGST",
    "CESS",
    "Invoice Value",
]


def _rate_rows(by_rate: Dict[str, Dict[str, Any]], label: str = "") -> List[List[Any]]:
    rows = []
    for rate, b in by_rate.items():
        row = [f"{rate}%", b.get("count", 0), b["taxableValue"], b["cgst"], b["sgst"], b["igst"], b["cess"], b["totalTax"]]
        rows.append([label] + row if label else row)
    return rows


def export_rate_summary_csv(by_rate: Dict[str, Dict[str, Any]]) -> str:
    """Export a rate-wise bucket map (gstRateTotals, salesTaxByRate, ...) to CSV."""
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(RATE_HEADERS)
    for row in _rate_rows(by_rate):
        writer.writerow(row)
    return buf.getvalue()


def export_hsn_csv(hsn_list: List[Dict[str, Any]]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(HSN_HEADERS)
    for h in hsn_list:
        writer.writerow([
            h.get("hsnCode", ""),
            h.get("description", ""),
            h.get("uqc", ""),
            h.get("totalQuantity", 0),
            h.get("gstRate", 0),
            h.get("taxableValue", 0),
            h.get("cgst", 0),
            h.get("sgst", 0),
            h.get("igst", 0),
            h.get("cess", 0),
            h.get("totalTax", 0),
            h.get("totalValue", 0),
        ])
    return buf.getvalue()


def export_b2b_csv(invoices: List[Dict[str, Any]]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(B2B_HEADERS)
    for inv in invoices:
        writer.writerow([
            inv.get("invoiceNumber") or "",
            inv.get("invoiceDate") or "",
            inv.get("customerName") or "",
            inv.get("gstin") or "",
            inv.get("placeOfSupply") or "",
            inv.get("taxableValue", 0),
            inv.get("cgst", 0),
            inv.get("sgst", 0),
            inv.get("igst", 0),
            inv.get("cess", 0),
            inv.get("invoiceValue", 0),
        ])
    return buf.getvalue()


def export_gstr3b_csv(data: Dict[str, Any]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Section", "Taxable Value", "CGST", "SGST", "IGST", "CESS", "Total"])
    for label, key in (("Outward Supplies", "outwardSupplies"), ("ITC Available", "itcAvailable")):
        s = data[key]
        writer.writerow([label, s["taxableValue"], s["cgst"], s["sgst"], s["igst"], s["cess"], s["total"]])
    net = data["netTaxLiability"]
    writer.writerow(["Net Tax Liability", "", net["cgst"], net["sgst"], net["igst"], net["cess"], net["total"]])
    return buf.getvalue()


def export_report_csv(report_kind: Any, data: Dict[str, Any]) -> str:
    """
    CSV for one report: B2B invoices for GSTR-1, the HSN list for the HSN
    summary, sales and purchase rate buckets for the tax summary and the
    section table for GSTR-3B.
    """
    kind = ReportKind.coerce(report_kind)
    if kind is ReportKind.GSTR1:
        return export_b2b_csv(data.get("b2bInvoices") or [])
    if kind is ReportKind.HSN_SUMMARY:
        return export_hsn_csv(data.get("hsnList") or [])
    if kind is ReportKind.GSTR3B:
        return export_gstr3b_csv(data)

    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Side"] + RATE_HEADERS)
    for row in _rate_rows(data.get("salesTaxByRate") or {}, "Sales"):
        writer.writerow(row)
    for row in _rate_rows(data.get("purchaseTaxByRate") or {}, "Purchase"):
        writer.writerow(row)
    return buf.getvalue()
