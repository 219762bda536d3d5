import copy
import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gstbill.engine import PaymentStatus, apply_payment, compute_return, derive_payment_status, initial_payment_state
from gstbill.engine.enums import DocumentKind
from gstbill.errors import EmptyDocumentError, ExceedsReturnableQuantityError, InvalidPaymentError, ValidationError


# --- payments ---

def test_full_payment_settles_document():
    state = apply_payment({"grandTotal": 500, "paidAmount": 0}, 500)
    assert state.payment_status is PaymentStatus.PAID
    assert state.balance_amount == 0

    settled = {"grandTotal": 500, "paidAmount": float(state.paid_amount)}
    with pytest.raises(InvalidPaymentError):
        apply_payment(settled, 1)


def test_partial_payments_accumulate_monotonically():
    doc = {"grandTotal": 1180, "paidAmount": 0}
    paid = []
    for amount in (100, 80, 1000):
        state = apply_payment(doc, amount, "UPI", reference="txn")
        paid.append(state.paid_amount)
        doc = dict(doc, **{"paidAmount": float(state.paid_amount)})
    assert paid == sorted(paid)
    assert state.payment_status is PaymentStatus.PAID
    assert state.payment.to_dict() == {"amount": 1000.0, "method": "UPI", "reference": "txn"}


def test_overpayment_rejected():
    with pytest.raises(InvalidPaymentError):
        apply_payment({"grandTotal": 1000, "paidAmount": 600}, 400.01)


def test_negative_payment_rejected():
    with pytest.raises(InvalidPaymentError):
        apply_payment({"grandTotal": 1000, "paidAmount": 0}, -1)


def test_unknown_payment_method_rejected():
    with pytest.raises(ValidationError):
        apply_payment({"grandTotal": 1000, "paidAmount": 0}, 10, "BARTER")


@pytest.mark.parametrize("total,paid,expected", [
    (1000, 0, PaymentStatus.UNPAID),
    (1000, 1, PaymentStatus.PARTIAL),
    (1000, 1000, PaymentStatus.PAID),
    (0, 0, PaymentStatus.PAID),
])
def test_derive_payment_status(total, paid, expected):
    assert derive_payment_status(total, paid) is expected


def test_initial_state_for_each_status():
    assert initial_payment_state(1179, "PAID").paid_amount == 1179
    assert initial_payment_state(1179, "UNPAID").balance_amount == 1179
    partial = initial_payment_state(1179, "PARTIAL", 179)
    assert partial.payment_status is PaymentStatus.PARTIAL
    assert partial.balance_amount == 1000


@pytest.mark.parametrize("paid", [0, 1179, 2000])
def test_partial_status_needs_amount_strictly_inside_total(paid):
    with pytest.raises(InvalidPaymentError):
        initial_payment_state(1179, "PARTIAL", paid)


# --- returns ---

def _original_invoice():
    return {
        "id": "doc_inv1",
        "kind": "INVOICE",
        "taxType": "CGST_SGST",
        "items": [
            {"product": "p1", "batch": "b1", "quantity": 10, "sellingPrice": 100, "gstRate": 12, "discount": 50, "returnedQuantity": 3},
            {"product": "p2", "batchNo": "B-22", "quantity": 5, "sellingPrice": 40, "gstRate": 5},
        ],
    }


def test_return_cannot_exceed_remaining_quantity():
    original = _original_invoice()
    with pytest.raises(ExceedsReturnableQuantityError) as exc:
        compute_return(original, [{"product": "p1", "batch": "b1", "quantity": 8}])
    assert exc.value.details["returnable"] == "7"


def test_return_up_to_remaining_quantity_is_accepted():
    result = compute_return(_original_invoice(), [{"product": "p1", "batch": "b1", "quantity": 7}])
    assert result.kind is DocumentKind.SALES_RETURN
    assert result.lines[0].returned_after == 10


def test_return_is_priced_from_original_with_proportional_discount():
    result = compute_return(_original_invoice(), [{"product": "p1", "batch": "b1", "quantity": 4, "sellingPrice": 1}])
    line = result.totals.lines[0]
    assert line.discount == 20
    assert line.taxable_value == 380
    assert result.totals.taxes.cgst == Decimal("22.8")
    assert result.totals.grand_total == 426


def test_return_leaves_original_untouched():
    original = _original_invoice()
    before = copy.deepcopy(original)
    compute_return(original, [{"product": "p2", "batchNo": "B-22", "quantity": 2}])
    assert original == before


def test_batch_can_be_omitted_when_product_is_unambiguous():
    result = compute_return(_original_invoice(), [{"product": "p2", "quantity": 1}])
    assert result.lines[0].batch == "B-22"


def test_duplicate_and_unknown_return_lines_rejected():
    original = _original_invoice()
    with pytest.raises(ValidationError):
        compute_return(original, [{"product": "p2", "quantity": 1}, {"product": "p2", "batchNo": "B-22", "quantity": 1}])
    with pytest.raises(ValidationError):
        compute_return(original, [{"product": "nope", "quantity": 1}])
    with pytest.raises(EmptyDocumentError):
        compute_return(original, [])


def test_purchase_return_keeps_cess_mode_and_never_restocks():
    purchase = {
        "id": "doc_pur1",
        "kind": "PURCHASE",
        "taxType": "CESS",
        "manualCessRate": 1,
        "items": [{"product": "p9", "batch": "b9", "quantity": 10, "purchasePrice": 100, "gstRate": 12}],
    }
    result = compute_return(purchase, [{"product": "p9", "batch": "b9", "quantity": 5}])
    assert result.kind is DocumentKind.PURCHASE_RETURN
    assert result.totals.taxes.cess == 5
    assert result.totals.grand_total == 505
    note = result.to_dict()
    assert note["manualCessRate"] == 1
    assert note["originalKind"] == "PURCHASE"
    assert note["items"][0]["restock"] is False
