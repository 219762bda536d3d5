"""
Payment/balance tracker.

Computes payment state transitions for a document. The tracker is the
authority on payment limits; persisting the new state is the caller's job.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from ..errors import InvalidPaymentError, ValidationError
from .enums import PaymentMethod, PaymentStatus
from .rounding import ZERO, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentRecord:
    amount: Decimal
    method: PaymentMethod
    reference: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": float(self.amount), "method": self.method.value, "reference": self.reference}


@dataclass(frozen=True)
class PaymentState:
    grand_total: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    payment_status: PaymentStatus
    payment: Optional[PaymentRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "grandTotal": float(self.grand_total),
            "paidAmount": float(self.paid_amount),
            "balanceAmount": float(self.balance_amount),
            "paymentStatus": self.payment_status.value,
        }
        if self.payment is not None:
            out["payment"] = self.payment.to_dict()
        return out


def derive_payment_status(grand_total: Any, paid_amount: Any) -> PaymentStatus:
    total = to_decimal(grand_total, "grandTotal")
    paid = to_decimal(paid_amount, "paidAmount")
    if paid == total:
        return PaymentStatus.PAID
    if paid == 0:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


def initial_payment_state(grand_total: Any, status: Any = PaymentStatus.UNPAID, paid_amount: Any = 0) -> PaymentState:
    """
    Payment state at document creation for the status chosen on the form.

    PAID settles the full grand total, UNPAID records nothing, PARTIAL keeps
    the entered amount which must lie strictly between 0 and the grand total.
    """
    total = to_decimal(grand_total, "grandTotal")
    chosen = PaymentStatus.coerce(status)
    if total < 0:
        raise ValidationError("grandTotal cannot be negative", details={"grandTotal": str(total)})

    if chosen is PaymentStatus.PAID:
        paid = total
    elif chosen is PaymentStatus.UNPAID:
        paid = ZERO
    else:
        paid = to_decimal(paid_amount, "paidAmount")
        if paid <= 0 or paid >= total:
            raise InvalidPaymentError(
                "Partial payment must be greater than 0 and less than the grand total",
                details={"paidAmount": str(paid), "grandTotal": str(total)},
            )

    return PaymentState(
        grand_total=total,
        paid_amount=paid,
        balance_amount=total - paid,
        payment_status=derive_payment_status(total, paid),
    )


def apply_payment(
    document: Dict[str, Any],
    payment_amount: Any,
    method: Any = PaymentMethod.CASH,
    reference: Optional[str] = None,
) -> PaymentState:
    """
    Apply a payment to a document and return the new payment state.

    Raises InvalidPaymentError, leaving the document untouched, when the
    amount is negative, exceeds the outstanding balance, or the balance is
    already settled.
    """
    total = to_decimal(document.get("grandTotal"), "grandTotal")
    paid = to_decimal(document.get("paidAmount"), "paidAmount")
    balance = total - paid
    amount = to_decimal(payment_amount, "paymentAmount")
    pay_method = PaymentMethod.coerce(method)

    if amount < 0:
        raise InvalidPaymentError("Payment amount cannot be negative", details={"paymentAmount": str(amount)})
    if balance <= 0:
        raise InvalidPaymentError("Document is already fully paid", details={"balanceAmount": str(balance)})
    if amount > balance:
        raise InvalidPaymentError(
            f"Payment amount {amount} exceeds balance {balance}",
            details={"paymentAmount": str(amount), "balanceAmount": str(balance)},
        )

    new_paid = paid + amount
    state = PaymentState(
        grand_total=total,
        paid_amount=new_paid,
        balance_amount=total - new_paid,
        payment_status=derive_payment_status(total, new_paid),
        payment=PaymentRecord(amount=amount, method=pay_method, reference=reference),
    )
    logger.info(
        "Payment of %s via %s applied to %s: status %s, balance %s",
        amount, pay_method.value, document.get("invoiceNumber") or document.get("id"),
        state.payment_status.value, state.balance_amount,
    )
    return state
