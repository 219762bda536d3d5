"""
GST computation engine: tax splits, line and document totals, payments and
returns. Every function here is pure.
"""

from .enums import DocumentKind, PaymentMethod, PaymentStatus, ReportKind, TaxType, TransactionCategory
from .tax_split import TaxSplit, resolve_split
from .line_totals import LineTotals, compute_line
from .document import DocumentTotals, compute_document, compute_document_payload
from .payments import PaymentState, apply_payment, derive_payment_status, initial_payment_state
from .returns import ReturnTotals, compute_return
from .expenses import compute_expense

__all__ = [
    "DocumentKind",
    "PaymentMethod",
    "PaymentStatus",
    "ReportKind",
    "TaxType",
    "TransactionCategory",
    "TaxSplit",
    "resolve_split",
    "LineTotals",
    "compute_line",
    "DocumentTotals",
    "compute_document",
    "compute_document_payload",
    "PaymentState",
    "apply_payment",
    "derive_payment_status",
    "initial_payment_state",
    "ReturnTotals",
    "compute_return",
    "compute_expense",
]
