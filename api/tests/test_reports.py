import copy
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gstbill.engine import compute_return
from gstbill.errors import ConfigurationError, ValidationError
from gstbill.reports import B2CL_THRESHOLD, build_report

START, END = "2025-04-01", "2025-04-30"


def _invoice(number, date, items, **extra):
    doc = {"kind": "INVOICE", "invoiceNumber": number, "invoiceDate": date, "taxType": "CGST_SGST", "items": items}
    doc.update(extra)
    return doc


def _gstr1_invoices(invoice_item):
    return [
        _invoice("INV-001", "2025-04-02", [invoice_item(sellingPrice=1000)],
                 customerName="Acme Pharma", customerGstin="27ABCDE1234F1Z5", placeOfSupply="27-Maharashtra"),
        _invoice("INV-002", "2025-04-03", [invoice_item(product="p2", sellingPrice=250000, gstRate=0)],
                 customerName="Walk-in"),
        _invoice("INV-003", "2025-04-30T18:45:00", [invoice_item(product="p3", sellingPrice=250001, gstRate=0)],
                 customerName="Hospital"),
        _invoice("INV-004", "2025-04-10", [invoice_item(sellingPrice=999)], status="CANCELLED"),
        _invoice("INV-005", "2025-05-01", [invoice_item(sellingPrice=999)]),
    ]


def test_hsn_summary_merges_same_code(invoice_item):
    invoices = [
        _invoice("INV-1", "2025-04-05", [invoice_item(unit="PCS", sellingPrice=100)]),
        _invoice("INV-2", "2025-04-06", [invoice_item(unit="PCS", sellingPrice=200)]),
    ]
    data = build_report("hsn-summary", invoices, START, END)
    assert len(data["hsnList"]) == 1
    row = data["hsnList"][0]
    assert row["hsnCode"] == "3004"
    assert row["uqc"] == "PCS-PIECES"
    assert row["totalQuantity"] == 2.0
    assert row["taxableValue"] == 300.0
    assert row["cgst"] == 18.0
    assert row["sgst"] == 18.0
    assert row["totalTax"] == 36.0
    assert row["totalValue"] == 336.0
    assert data["summary"]["totalHSNCodes"] == 1


def test_hsn_rows_split_by_rate_and_sorted(invoice_item):
    invoices = [
        _invoice("INV-1", "2025-04-05", [
            invoice_item(hsnCode="9018", gstRate=12),
            invoice_item(product="p2", hsnCode="3004", gstRate=18),
            invoice_item(product="p3", hsnCode="3004", gstRate=5),
        ]),
    ]
    rows = build_report("hsn-summary", invoices, START, END)["hsnList"]
    assert [(r["hsnCode"], r["gstRate"]) for r in rows] == [("3004", 5.0), ("3004", 18.0), ("9018", 12.0)]


def test_gstr1_classification(invoice_item):
    data = build_report("gstr1", _gstr1_invoices(invoice_item), START, END)
    summary = data["summary"]
    assert summary["totalInvoices"] == 3
    assert (summary["b2bCount"], summary["b2cLargeCount"], summary["b2cSmallCount"]) == (1, 1, 1)
    assert summary["totalTaxableValue"] == 501001.0
    assert summary["totalTax"] == 120.0
    assert summary["totalInvoiceValue"] == 501121.0

    assert [i["invoiceNumber"] for i in data["b2bInvoices"]] == ["INV-001"]
    assert data["b2bInvoices"][0]["gstin"] == "27ABCDE1234F1Z5"
    assert data["b2bInvoices"][0]["invoiceValue"] == 1120.0
    # exactly 2.5 lakh stays B2C-Small; anything above is B2C-Large
    assert [i["invoiceNumber"] for i in data["b2cLargeInvoices"]] == ["INV-003"]
    assert data["b2cSmallSummary"]["taxableValue"] == float(B2CL_THRESHOLD)


def test_gstr1_sections(invoice_item):
    data = build_report("gstr1", _gstr1_invoices(invoice_item), START, END)
    assert set(data["gstRateTotals"]) == {"0", "12"}
    assert data["gstRateTotals"]["12"]["cgst"] == 60.0

    exempt = {row["description"]: row["nilRated"] for row in data["exemptSupplies"]}
    assert exempt["Intra-State supplies to unregistered persons"] == 500001.0
    assert exempt["Inter-State supplies to registered persons"] == 0.0

    assert len(data["hsnSummary"]["b2b"]) == 1
    assert sum(r["taxableValue"] for r in data["hsnSummary"]["b2c"]) == 500001.0

    docs = data["documentSummary"]
    assert docs["fromNumber"] == "INV-001"
    assert docs["toNumber"] == "INV-004"
    assert docs["totalNumber"] == 4
    assert docs["cancelled"] == 1
    assert docs["netIssued"] == 3


def _gstr3b_inputs(invoice_item):
    sale = _invoice("INV-10", "2025-04-02", [invoice_item(sellingPrice=1000, gstRate=18)], taxType="IGST")
    sale["id"] = "doc_sale"
    purchase = {
        "kind": "PURCHASE",
        "billNumber": "B-77",
        "purchaseDate": "2025-04-04",
        "taxType": "CGST_SGST",
        "items": [{"product": "p1", "batch": "b1", "quantity": 1, "purchasePrice": 1000, "gstRate": 12}],
    }
    note = compute_return(sale, [{"product": "prod_1", "batch": "batch_1", "quantity": 0.5}]).to_dict()
    note["returnDate"] = "2025-04-20"
    return [sale], [purchase], [note]


def test_gstr3b_nets_credit_notes_and_floors_each_head(invoice_item):
    invoices, purchases, credit_notes = _gstr3b_inputs(invoice_item)
    data = build_report("gstr3b", invoices, START, END, purchases=purchases, sales_returns=credit_notes)

    assert data["outwardSupplies"]["taxableValue"] == 500.0
    assert data["outwardSupplies"]["igst"] == 90.0
    assert data["itcAvailable"]["cgst"] == 60.0
    net = data["netTaxLiability"]
    # ITC on CGST/SGST does not offset IGST here
    assert (net["cgst"], net["sgst"], net["igst"], net["total"]) == (0.0, 0.0, 90.0, 90.0)
    assert data["summary"]["totalOutputTax"] == 90.0
    assert data["summary"]["totalInputTax"] == 120.0
    assert data["summary"]["netTaxPayable"] == 90.0


def test_tax_summary_is_not_floored(invoice_item):
    invoices, purchases, credit_notes = _gstr3b_inputs(invoice_item)
    data = build_report("tax-summary", invoices, START, END, purchases=purchases, sales_returns=credit_notes)
    assert data["salesTaxByRate"]["18"]["taxableValue"] == 500.0
    assert data["salesTaxByRate"]["18"]["count"] == 1
    assert data["purchaseTaxByRate"]["12"]["totalTax"] == 120.0
    assert data["summary"]["netTaxLiability"] == -30.0


def test_reports_are_pure_and_idempotent(invoice_item):
    invoices = _gstr1_invoices(invoice_item)
    before = copy.deepcopy(invoices)
    first = build_report("gstr1", invoices, START, END)
    second = build_report("gstr1", invoices, START, END)
    assert first == second
    assert invoices == before


def test_unknown_report_kind():
    with pytest.raises(ConfigurationError):
        build_report("gstr9", [], START, END)


@pytest.mark.parametrize("start,end", [("2025-04-30", "2025-04-01"), (None, END)])
def test_bad_date_range(start, end):
    with pytest.raises(ValidationError):
        build_report("gstr1", [], start, end)


def test_empty_period_yields_zero_report():
    data = build_report("gstr3b", [], START, END, purchases=[])
    assert data["netTaxLiability"]["total"] == 0.0
    assert data["summary"]["totalSales"] == 0.0


def test_document_summary_orders_serials_numerically(invoice_item):
    invoices = [
        _invoice("INV-10", "2025-04-03", [invoice_item()]),
        _invoice("INV-9", "2025-04-02", [invoice_item()]),
        _invoice("INV-2", "2025-04-01", [invoice_item()]),
    ]
    docs = build_report("gstr1", invoices, START, END)["documentSummary"]
    assert (docs["fromNumber"], docs["toNumber"]) == ("INV-2", "INV-10")


def test_creation_timestamp_is_not_a_report_date(invoice_item):
    doc = _invoice("INV-1", None, [invoice_item()], createdAt="2025-04-10")
    assert build_report("gstr1", [doc], START, END)["summary"]["totalInvoices"] == 0
