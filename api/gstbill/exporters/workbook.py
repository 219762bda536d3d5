"""
XLSX exporters for report payloads.

The GSTR-1 workbook follows the sheet names of the offline filing utility so
it can be pasted straight across; the other reports get a data sheet plus a
Summary sheet.
"""
import io
import logging
from typing import Any, Dict, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from ..engine.enums import ReportKind

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")
TITLE_FONT = Font(bold=True, size=14)

GSTR1_SHEETS = ("GSTR1 Report", "b2b,sez,de", "b2cl", "b2cs", "exemp", "hsn(b2b)", "hsn(b2c)", "itemSummary", "docs")

HSN_COLUMNS = [
    ("HSN", "hsnCode"),
    ("Description", "description"),
    ("UQC", "uqc"),
    ("Total Quantity", "totalQuantity"),
    ("Total Value", "totalValue"),
    ("Rate", "gstRate"),
    ("Taxable Value", "taxableValue"),
    ("Integrated Tax Amount", "igst"),
    ("Central Tax Amount", "cgst"),
    ("State/UT Tax Amount", "sgst"),
    ("Cess Amount", "cess"),
]


def _write_header(ws, row_idx: int, headers: Sequence[str]) -> None:
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=row_idx, column=col_idx, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _write_rows(ws, start_row: int, rows: Sequence[Sequence[Any]]) -> None:
    for row_idx, row_data in enumerate(rows, start=start_row):
        for col_idx, value in enumerate(row_data, start=1):
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if isinstance(value, float):
                cell.number_format = "#,##0.00"


def _autosize(ws) -> None:
    for col in ws.columns:
        width = max((len(str(c.value)) for c in col if c.value is not None), default=0)
        ws.column_dimensions[col[0].column_letter].width = min(width + 2, 50)


def _table_sheet(wb: Workbook, title: str, headers: Sequence[str], rows: Sequence[Sequence[Any]]):
    ws = wb.create_sheet(title)
    _write_header(ws, 1, headers)
    _write_rows(ws, 2, rows)
    _autosize(ws)
    return ws


def _summary_sheet(wb: Workbook, title: str, heading: str, period: Dict[str, Any], pairs: Sequence[Sequence[Any]]):
    ws = wb.create_sheet(title)
    ws.cell(row=1, column=1, value=heading).font = TITLE_FONT
    ws.cell(row=2, column=1, value="Period")
    ws.cell(row=2, column=2, value=f"{period.get('startDate')} to {period.get('endDate')}")
    ws.cell(row=4, column=1, value="Summary").font = Font(bold=True)
    _write_rows(ws, 5, pairs)
    _autosize(ws)
    return ws


def _rate_rows(by_rate: Dict[str, Dict[str, Any]]) -> List[List[Any]]:
    return [
        [f"{rate}%", b.get("count", 0), b["taxableValue"], b["cgst"], b["sgst"], b["igst"], b["cess"], b["totalTax"]]
        for rate, b in by_rate.items()
    ]


RATE_HEADERS = ["GST Rate", "Count", "Taxable Value", "CGST", "SGST", "IGST", "CESS", "Total Tax"]


def _hsn_rows(hsn_list: List[Dict[str, Any]]) -> List[List[Any]]:
    return [[h.get(key) for _, key in HSN_COLUMNS] for h in hsn_list]


def _invoice_rows(invoices: List[Dict[str, Any]], with_gstin: bool) -> List[List[Any]]:
    rows = []
    for inv in invoices:
        for rate, b in (inv.get("rates") or {"": inv}).items():
            row = [inv.get("invoiceNumber"), inv.get("invoiceDate"), inv.get("invoiceValue"), inv.get("placeOfSupply")]
            if with_gstin:
                row = [inv.get("gstin"), inv.get("customerName")] + row + ["N", "Regular B2B"]
            row += [float(rate) if rate else None, b.get("taxableValue"), b.get("cess")]
            rows.append(row)
    return rows


def _gstr1_sheets(wb: Workbook, data: Dict[str, Any], period: Dict[str, Any]) -> None:
    s = data.get("summary") or {}
    _summary_sheet(wb, "GSTR1 Report", "GSTR-1 Report", period, [
        ["Total Invoices", s.get("totalInvoices", 0)],
        ["Taxable Value", s.get("totalTaxableValue", 0.0)],
        ["Total Tax", s.get("totalTax", 0.0)],
        ["Invoice Value", s.get("totalInvoiceValue", 0.0)],
        ["B2B Count", s.get("b2bCount", 0)],
        ["B2C Large Count", s.get("b2cLargeCount", 0)],
        ["B2C Small Count", s.get("b2cSmallCount", 0)],
    ])
    _table_sheet(
        wb,
        "b2b,sez,de",
        ["GSTIN/UIN of Recipient", "Receiver Name", "Invoice Number", "Invoice date", "Invoice Value",
         "Place Of Supply", "Reverse Charge", "Invoice Type", "Rate", "Taxable Value", "Cess Amount"],
        _invoice_rows(data.get("b2bInvoices") or [], with_gstin=True),
    )
    _table_sheet(
        wb,
        "b2cl",
        ["Invoice Number", "Invoice date", "Invoice Value", "Place Of Supply", "Rate", "Taxable Value", "Cess Amount"],
        _invoice_rows(data.get("b2cLargeInvoices") or [], with_gstin=False),
    )
    _table_sheet(
        wb,
        "b2cs",
        ["Type", "Place Of Supply", "Rate", "Taxable Value", "Cess Amount"],
        [[r["type"], r["placeOfSupply"], r["gstRate"], r["taxableValue"], r["cess"]] for r in data.get("b2cSmall") or []],
    )
    _table_sheet(
        wb,
        "exemp",
        ["Description", "Nil Rated Supplies", "Exempted(other than nil rated/non GST supply)", "Non-GST Supplies"],
        [[r["description"], r["nilRated"], r["exempted"], r["nonGst"]] for r in data.get("exemptSupplies") or []],
    )
    hsn = data.get("hsnSummary") or {}
    _table_sheet(wb, "hsn(b2b)", [h for h, _ in HSN_COLUMNS], _hsn_rows(hsn.get("b2b") or []))
    _table_sheet(wb, "hsn(b2c)", [h for h, _ in HSN_COLUMNS], _hsn_rows(hsn.get("b2c") or []))
    _table_sheet(
        wb,
        "itemSummary",
        ["Description", "HSN", "Rate", "Quantity", "Taxable Value", "Total Tax", "Total Value"],
        [
            [h["description"], h["hsnCode"], h["gstRate"], h["totalQuantity"], h["taxableValue"], h["totalTax"], h["totalValue"]]
            for h in (hsn.get("b2b") or []) + (hsn.get("b2c") or [])
        ],
    )
    d = data.get("documentSummary") or {}
    _table_sheet(
        wb,
        "docs",
        ["Nature of Document", "Sr. No. From", "Sr. No. To", "Total Number", "Cancelled"],
        [[d.get("natureOfDocument"), d.get("fromNumber"), d.get("toNumber"), d.get("totalNumber", 0), d.get("cancelled", 0)]],
    )


def _gstr3b_sheets(wb: Workbook, data: Dict[str, Any], period: Dict[str, Any]) -> None:
    s = data.get("summary") or {}
    ws = _summary_sheet(wb, "GSTR-3B", "GSTR-3B Report", period, [
        ["Total Sales", s.get("totalSales", 0.0)],
        ["Total Purchases", s.get("totalPurchases", 0.0)],
        ["Output Tax", s.get("totalOutputTax", 0.0)],
        ["Input Tax", s.get("totalInputTax", 0.0)],
        ["Net Tax Payable", s.get("netTaxPayable", 0.0)],
    ])
    headers = ["Description", "Taxable Value", "CGST", "SGST", "IGST", "CESS"]
    row = 11
    for label, key, line in (
        ("Outward Supplies", "outwardSupplies", "Total Outward Supplies"),
        ("Inward Supplies (ITC)", "itcAvailable", "Total ITC Available"),
    ):
        sec = data.get(key) or {}
        ws.cell(row=row, column=1, value=label).font = Font(bold=True)
        _write_header(ws, row + 1, headers)
        _write_rows(ws, row + 2, [[line, sec.get("taxableValue"), sec.get("cgst"), sec.get("sgst"), sec.get("igst"), sec.get("cess")]])
        row += 4
    net = data.get("netTaxLiability") or {}
    ws.cell(row=row, column=1, value="Net Tax Liability").font = Font(bold=True)
    _write_header(ws, row + 1, ["CGST", "SGST", "IGST", "CESS", "Total"])
    _write_rows(ws, row + 2, [[net.get("cgst"), net.get("sgst"), net.get("igst"), net.get("cess"), net.get("total")]])


def _tax_summary_sheets(wb: Workbook, data: Dict[str, Any], period: Dict[str, Any]) -> None:
    _table_sheet(wb, "Sales Tax", RATE_HEADERS, _rate_rows(data.get("salesTaxByRate") or {}))
    _table_sheet(wb, "Purchase Tax", RATE_HEADERS, _rate_rows(data.get("purchaseTaxByRate") or {}))
    s = data.get("summary") or {}
    _summary_sheet(wb, "Summary", "Tax Summary Report", period, [
        ["Total Sales Tax", s.get("totalSalesTax", 0.0)],
        ["Total Purchase Tax", s.get("totalPurchaseTax", 0.0)],
        ["Net Tax Liability", s.get("netTaxLiability", 0.0)],
    ])


def _hsn_summary_sheets(wb: Workbook, data: Dict[str, Any], period: Dict[str, Any]) -> None:
    _table_sheet(wb, "HSN Summary", [h for h, _ in HSN_COLUMNS], _hsn_rows(data.get("hsnList") or []))
    s = data.get("summary") or {}
    _summary_sheet(wb, "Summary", "HSN Summary Report", period, [
        ["Total HSN Codes", s.get("totalHSNCodes", 0)],
        ["Total Quantity", s.get("totalQuantity", 0.0)],
        ["Total Taxable Value", s.get("totalTaxableValue", 0.0)],
        ["Total Tax", s.get("totalTax", 0.0)],
        ["Total Value", s.get("totalValue", 0.0)],
    ])


SHEET_WRITERS = {
    ReportKind.GSTR1: _gstr1_sheets,
    ReportKind.GSTR3B: _gstr3b_sheets,
    ReportKind.TAX_SUMMARY: _tax_summary_sheets,
    ReportKind.HSN_SUMMARY: _hsn_summary_sheets,
}


def build_workbook(report_kind: Any, data: Dict[str, Any], period: Dict[str, Any]) -> Workbook:
    kind = ReportKind.coerce(report_kind)
    wb = Workbook()
    # Drop the default empty sheet; writers create their own
    wb.remove(wb.active)
    SHEET_WRITERS[kind](wb, data, period)
    return wb


def export_report_xlsx(report_kind: Any, data: Dict[str, Any], period: Dict[str, Any]) -> bytes:
    """
    Export a report payload to XLSX.

    Returns:
        Excel file as bytes
    """
    wb = build_workbook(report_kind, data, period)
    output = io.BytesIO()
    wb.save(output)
    logger.debug("Exported %s workbook with sheets %s", report_kind, wb.sheetnames)
    return output.getvalue()
