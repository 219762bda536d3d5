import copy
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gstbill.engine import compute_document, compute_document_payload, compute_expense, compute_line
from gstbill.engine.document import totals_for
from gstbill.errors import EmptyDocumentError, ValidationError
from gstbill.validators import assert_consistent


def test_intra_state_invoice_two_units():
    totals = compute_document([{"quantity": 2, "sellingPrice": 100, "gstRate": 12}], "CGST_SGST")
    assert totals.subtotal == 200
    assert totals.taxes.cgst == 12
    assert totals.taxes.sgst == 12
    assert totals.grand_total == 224
    assert totals.round_off == 0


def test_inter_state_invoice_rounds_down():
    totals = compute_document([{"quantity": 1, "sellingPrice": 999.50, "gstRate": 18}], "IGST")
    assert totals.taxes.igst == Decimal("179.91")
    assert totals.grand_total_raw == Decimal("1179.41")
    assert totals.grand_total == 1179
    assert totals.round_off == Decimal("-0.41")


def test_purchase_in_cess_mode():
    purchase = {
        "kind": "PURCHASE",
        "taxType": "CESS",
        "manualCessRate": 1,
        "items": [{"quantity": 10, "purchasePrice": 100, "gstRate": 12}],
    }
    totals = totals_for(purchase)
    assert totals.subtotal == 1000
    assert totals.taxes.cess == 10
    assert totals.taxes.gst == 0
    assert totals.grand_total == 1010


def test_cess_mode_requires_manual_rate():
    with pytest.raises(ValidationError):
        compute_document([{"quantity": 1, "unitPrice": 100, "gstRate": 12}], "CESS")


def test_empty_document_rejected():
    with pytest.raises(EmptyDocumentError):
        compute_document([], "CGST_SGST")


def test_zero_quantity_rejected():
    with pytest.raises(ValidationError):
        compute_line({"quantity": 0, "unitPrice": 100, "gstRate": 12}, "IGST")


def test_line_discount_reduces_taxable_value():
    line = compute_line({"quantity": 3, "sellingPrice": 50, "discount": 15, "gstRate": 5}, "CGST_SGST", "sellingPrice")
    assert line.taxable_value == 135
    assert line.tax_amount == Decimal("6.75")
    assert line.total_amount == Decimal("141.75")


def test_over_discount_is_clamped_with_warning():
    totals = compute_document(
        [
            {"quantity": 1, "unitPrice": 100, "discount": 150, "gstRate": 18},
            {"quantity": 1, "unitPrice": 100, "gstRate": 18},
        ],
        "IGST",
    )
    assert totals.lines[0].taxable_value == 0
    assert totals.lines[0].clamped
    assert totals.subtotal == 100
    assert [w["code"] for w in totals.warnings] == ["OVER_DISCOUNT"]


def test_document_discount_and_purchase_charges():
    purchase = {
        "kind": "PURCHASE",
        "taxType": "CGST_SGST",
        "discount": 20.5,
        "freightCharges": 50,
        "packagingCharges": 10,
        "otherCharges": 5,
        "items": [{"quantity": 4, "purchasePrice": 250, "gstRate": 5}],
    }
    totals = totals_for(purchase)
    assert totals.additional_charges == 65
    # 1000 + 50 + 65 - 20.5
    assert totals.grand_total_raw == Decimal("1094.5")
    assert totals.grand_total == 1095


def test_charges_ignored_on_invoices():
    invoice = {
        "taxType": "IGST",
        "freightCharges": 50,
        "items": [{"quantity": 1, "sellingPrice": 100, "gstRate": 0}],
    }
    assert totals_for(invoice, "INVOICE").grand_total == 100


def test_discount_larger_than_document_rejected():
    with pytest.raises(ValidationError):
        compute_document([{"quantity": 1, "unitPrice": 10, "gstRate": 0}], "IGST", discount=11)


def test_price_key_falls_back_to_generic_fields():
    line = compute_line({"quantity": 1, "price": 40, "gstRate": 0}, "IGST", price_key="sellingPrice")
    assert line.taxable_value == 40


def test_totals_are_always_consistent():
    totals = compute_document(
        [
            {"quantity": 3, "unitPrice": "33.33", "gstRate": 5, "cessRate": 1},
            {"quantity": 7, "unitPrice": "14.29", "gstRate": 28, "discount": "3.5"},
        ],
        "CGST_SGST",
        discount="1.25",
    )
    assert_consistent(totals)
    assert totals.grand_total == totals.grand_total_raw + totals.round_off


def test_payload_does_not_mutate_input(invoice_item):
    invoice = {"invoiceNumber": "INV-1", "taxType": "CGST_SGST", "items": [invoice_item(quantity=2)]}
    before = copy.deepcopy(invoice)
    payload = compute_document_payload(invoice)
    assert invoice == before
    assert payload["kind"] == "INVOICE"
    assert payload["grandTotal"] == 224.0
    assert payload["items"][0]["cgst"] == 12.0
    assert payload["items"][0]["returnedQuantity"] == 0
    assert payload["amountInWords"].startswith("Rupees Two Hundred")
    assert payload["amountInWords"].endswith("Only")


def test_expense_gst():
    assert compute_expense(1000, 18) == {"amount": 1000.0, "gstRate": 18.0, "gstAmount": 180.0, "totalAmount": 1180.0}


@pytest.mark.parametrize("amount", [0, -5])
def test_expense_requires_positive_amount(amount):
    with pytest.raises(ValidationError):
        compute_expense(amount, 18)
