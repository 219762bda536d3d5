"""Closed enumerations used across the engine."""

from enum import Enum
from typing import Any

from ..errors import ConfigurationError, UnsupportedTaxTypeError, ValidationError


class TaxType(str, Enum):
    CGST_SGST = "CGST_SGST"
    IGST = "IGST"
    CESS = "CESS"

    @classmethod
    def coerce(cls, value: Any) -> "TaxType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnsupportedTaxTypeError(
                f"Unsupported tax type: {value!r}",
                details={"taxType": value, "allowed": [t.value for t in cls]},
            )


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"

    @classmethod
    def coerce(cls, value: Any) -> "PaymentStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown payment status: {value!r}",
                details={"paymentStatus": value},
            )


class PaymentMethod(str, Enum):
    CASH = "CASH"
    UPI = "UPI"
    CARD = "CARD"
    CHEQUE = "CHEQUE"
    BANK_TRANSFER = "BANK_TRANSFER"
    BANK = "BANK"
    CREDIT = "CREDIT"
    STORE_CREDIT = "STORE_CREDIT"

    @classmethod
    def coerce(cls, value: Any) -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown payment method: {value!r}",
                details={"paymentMethod": value},
            )


class DocumentKind(str, Enum):
    INVOICE = "INVOICE"
    PURCHASE = "PURCHASE"
    SALES_RETURN = "SALES_RETURN"
    PURCHASE_RETURN = "PURCHASE_RETURN"

    @classmethod
    def coerce(cls, value: Any) -> "DocumentKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper().replace("-", "_"))
        except ValueError:
            raise ValidationError(f"Unknown document kind: {value!r}", details={"kind": value})

    @property
    def return_kind(self) -> "DocumentKind":
        """Kind of note raised against this document."""
        if self is DocumentKind.INVOICE:
            return DocumentKind.SALES_RETURN
        if self is DocumentKind.PURCHASE:
            return DocumentKind.PURCHASE_RETURN
        raise ValidationError(f"Returns cannot be raised against a {self.value}")


class ReportKind(str, Enum):
    GSTR1 = "gstr1"
    GSTR3B = "gstr3b"
    TAX_SUMMARY = "tax-summary"
    HSN_SUMMARY = "hsn-summary"

    @classmethod
    def coerce(cls, value: Any) -> "ReportKind":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        aliases = {"taxsummary": "tax-summary", "hsnsummary": "hsn-summary"}
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigurationError(
                f"Unknown report kind: {value!r}",
                error_code="UNKNOWN_REPORT_KIND",
                details={"reportKind": value, "allowed": [k.value for k in cls]},
            )

    @property
    def title(self) -> str:
        return {
            ReportKind.GSTR1: "GSTR-1",
            ReportKind.GSTR3B: "GSTR-3B",
            ReportKind.TAX_SUMMARY: "Tax Summary",
            ReportKind.HSN_SUMMARY: "HSN Summary",
        }[self]


class TransactionCategory(str, Enum):
    B2B = "B2B"
    B2C_LARGE = "B2CL"
    B2C_SMALL = "B2CS"


class ReturnReason(str, Enum):
    DAMAGED = "DAMAGED"
    EXPIRED = "EXPIRED"
    WRONG_ITEM = "WRONG_ITEM"
    NOT_NEEDED = "NOT_NEEDED"
    SIDE_EFFECTS = "SIDE_EFFECTS"
    QUALITY_ISSUE = "QUALITY_ISSUE"
    EXCESS_STOCK = "EXCESS_STOCK"
    OTHER = "OTHER"
