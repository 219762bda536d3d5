import csv
import io
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from openpyxl import load_workbook

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gstbill.exporters import GSTR1_SHEETS, export_json, export_report_csv, export_report_xlsx, report_envelope
from gstbill.reports import build_report

START, END = "2025-04-01", "2025-04-30"


def _invoices():
    return [
        {
            "invoiceNumber": "INV-001",
            "invoiceDate": "2025-04-02",
            "customerName": "Acme Pharma",
            "customerGstin": "27ABCDE1234F1Z5",
            "taxType": "IGST",
            "items": [{"product": "p1", "hsnCode": "3004", "quantity": 2, "sellingPrice": 500, "gstRate": 12, "unit": "BOX"}],
        },
        {
            "invoiceNumber": "INV-002",
            "invoiceDate": "2025-04-09",
            "taxType": "CGST_SGST",
            "items": [{"product": "p2", "hsnCode": "3004", "quantity": 1, "sellingPrice": 100, "gstRate": 5}],
        },
    ]


def test_json_envelope():
    data = build_report("gstr1", _invoices(), START, END)
    env = report_envelope("gstr1", data, START, END, report_id="r1",
                          generated_at=datetime(2025, 5, 1, tzinfo=timezone.utc))
    parsed = json.loads(export_json(env))
    assert parsed["reportType"] == "GSTR-1"
    assert parsed["reportId"] == "r1"
    assert parsed["generatedAt"].startswith("2025-05-01T00:00:00")
    assert parsed["period"] == {"startDate": START, "endDate": END}
    assert parsed["data"]["summary"]["b2bCount"] == 1


def test_gstr1_csv_lists_b2b_invoices():
    data = build_report("gstr1", _invoices(), START, END)
    rows = list(csv.reader(io.StringIO(export_report_csv("gstr1", data))))
    assert rows[0][0] == "Invoice Number"
    assert len(rows) == 2
    assert rows[1][0] == "INV-001"
    assert rows[1][3] == "27ABCDE1234F1Z5"
    assert float(rows[1][-1]) == 1120.0


def test_tax_summary_csv_has_both_sides():
    data = build_report("tax-summary", _invoices(), START, END, purchases=[])
    rows = list(csv.reader(io.StringIO(export_report_csv("tax-summary", data))))
    assert rows[0][:2] == ["Side", "GST Rate"]
    assert [r[1] for r in rows[1:]] == ["5%", "12%"]


def test_gstr1_workbook_sheets():
    data = build_report("gstr1", _invoices(), START, END)
    content = export_report_xlsx("gstr1", data, {"startDate": START, "endDate": END})
    wb = load_workbook(io.BytesIO(content))
    assert wb.sheetnames == list(GSTR1_SHEETS)
    b2b = wb["b2b,sez,de"]
    assert b2b.cell(row=2, column=1).value == "27ABCDE1234F1Z5"
    hsn = wb["hsn(b2b)"]
    assert hsn.cell(row=2, column=3).value == "BOX-BOX"


def test_other_workbooks_have_summary_sheet():
    expected = {
        "gstr3b": ["GSTR-3B"],
        "tax-summary": ["Sales Tax", "Purchase Tax", "Summary"],
        "hsn-summary": ["HSN Summary", "Summary"],
    }
    for kind, sheets in expected.items():
        data = build_report(kind, _invoices(), START, END, purchases=[])
        wb = load_workbook(io.BytesIO(export_report_xlsx(kind, data, {"startDate": START, "endDate": END})))
        assert wb.sheetnames == sheets
