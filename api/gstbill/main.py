import logging
import os
import time
from datetime import date
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import settings
from .db import SessionLocal, get_document, init_db, list_documents_in_range, record_return, save_document, update_payment
from .engine import DocumentKind, PaymentStatus, ReportKind, apply_payment, compute_document_payload, compute_expense, compute_return, initial_payment_state
from .engine.document import totals_for
from .engine.enums import ReturnReason
from .engine.returns import line_identity
from .errors import (
    ConcurrentUpdateError,
    ConfigurationError,
    ConsistencyError,
    DocumentNotFoundError,
    GSTEngineError,
    ValidationError,
)
from .exporters import export_json, export_report_csv, export_report_xlsx, report_envelope
from .logging_config import log_with_context, setup_structured_logging
from .reports import build_report
from .reports.common import DATE_KEYS, check_range, document_date
from .schemas import ExpenseRequest, ExpenseResponse, PaymentRequest, ReturnRequest
from .security import tenant_from_headers
from .validators import assert_consistent, validate_document_totals

setup_structured_logging(use_json=settings.log_json, log_level=settings.log_level)
logger = logging.getLogger(__name__)

init_db()

app = FastAPI(title="GST Billing API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", "x-api-key", "X-API-Key"],
)

# Most specific first: the ValidationError family is the catch-all
ERROR_STATUS = (
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT),
    (DocumentNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConsistencyError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ConfigurationError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)

SOURCE_KINDS = (DocumentKind.INVOICE, DocumentKind.PURCHASE)

EXPORT_MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@app.exception_handler(GSTEngineError)
async def engine_error_handler(request: Request, exc: GSTEngineError):
    code = status.HTTP_400_BAD_REQUEST
    for cls, mapped in ERROR_STATUS:
        if isinstance(exc, cls):
            code = mapped
            break
    level = logging.ERROR if code >= 500 else logging.WARNING
    log_with_context(logger, level, exc.message, error_code=exc.error_code, path=request.url.path)
    return JSONResponse(status_code=code, content=exc.to_dict())


@app.get("/health")
def health():
    """JSON health/info endpoint for monitoring and scripts."""
    return {"ok": True, "service": "GST Billing API", "version": "0.1.0"}


def _checked_payload(body: Dict[str, Any]) -> Dict[str, Any]:
    kind = DocumentKind.coerce(body.get("kind") or DocumentKind.INVOICE)
    if kind not in SOURCE_KINDS:
        raise ValidationError(
            "Credit and debit notes are created through the returns endpoint",
            details={"kind": kind.value},
        )
    assert_consistent(totals_for(body, kind))
    payload = compute_document_payload(body, kind)
    if document_date(payload, kind) is None:
        payload[DATE_KEYS[kind][0]] = date.today().isoformat()
    issues = validate_document_totals(payload, tolerance=0.01)
    errors = [i for i in issues if i["level"] == "error"]
    if errors:
        raise ConsistencyError("Computed document failed consistency checks", details={"issues": errors})
    warnings = [i for i in issues if i["level"] != "error"]
    if warnings:
        payload["warnings"] = list(payload.get("warnings") or []) + warnings
    return payload


@app.post("/v1/documents/compute")
def compute_document_endpoint(body: dict, tenant_id: str = Depends(tenant_from_headers)):
    """Preview totals for an invoice or purchase without saving it."""
    return _checked_payload(body)


@app.post("/v1/documents", status_code=status.HTTP_201_CREATED)
def create_document(body: dict, tenant_id: str = Depends(tenant_from_headers)):
    started = time.time()
    payload = _checked_payload(body)
    state = initial_payment_state(
        payload["grandTotal"],
        body.get("paymentStatus") or PaymentStatus.UNPAID,
        body.get("paidAmount"),
    )
    payload.update(state.to_dict())

    with SessionLocal() as dbs:
        doc = save_document(dbs, tenant_id=tenant_id, payload=payload)
        log_with_context(
            logger, logging.INFO, "Document created",
            tenant_id=tenant_id, document_id=doc.id, kind=doc.kind,
            grand_total=payload["grandTotal"], duration_ms=int((time.time() - started) * 1000),
        )
        return doc.as_dict()


@app.get("/v1/documents/{document_id}")
def read_document(document_id: str, tenant_id: str = Depends(tenant_from_headers)):
    with SessionLocal() as dbs:
        return get_document(dbs, tenant_id, document_id).as_dict()


@app.post("/v1/documents/{document_id}/payments")
def add_payment(document_id: str, body: PaymentRequest, tenant_id: str = Depends(tenant_from_headers)):
    with SessionLocal() as dbs:
        doc = get_document(dbs, tenant_id, document_id)
        state = apply_payment(doc.as_dict(), body.amount, body.method, body.reference)
        expected = body.version if body.version is not None else doc.version
        doc = update_payment(dbs, tenant_id, document_id, expected, state.to_dict())
        log_with_context(
            logger, logging.INFO, "Payment recorded",
            tenant_id=tenant_id, document_id=document_id, payment_status=state.payment_status.value,
        )
        return doc.as_dict()


def _return_reason(raw: Any) -> Any:
    if not raw:
        return None
    try:
        return ReturnReason(str(raw).strip().upper()).value
    except ValueError:
        raise ValidationError(f"Unknown return reason: {raw!r}", details={"reason": raw})


@app.post("/v1/documents/{document_id}/returns", status_code=status.HTTP_201_CREATED)
def create_return(document_id: str, body: ReturnRequest, tenant_id: str = Depends(tenant_from_headers)):
    """
    Raise a credit note (against an invoice) or debit note (against a
    purchase) and bump returned quantities on the original.
    """
    with SessionLocal() as dbs:
        original_doc = get_document(dbs, tenant_id, document_id)
        original = original_doc.as_dict()
        lines = [line.model_dump(exclude_none=True) for line in body.items]
        result = compute_return(original, lines, restock=body.restock)

        note = result.to_dict()
        note["returnDate"] = body.returnDate or date.today().isoformat()
        note["reason"] = _return_reason(body.reason)
        note["notes"] = body.notes or ""
        number_key = "creditNoteNumber" if result.kind is DocumentKind.SALES_RETURN else "debitNoteNumber"
        if body.noteNumber:
            note[number_key] = body.noteNumber
        for key in ("customerName", "customerGstin", "supplierName", "supplierGstin", "placeOfSupply"):
            if original.get(key):
                note[key] = original[key]
        note["originalNumber"] = original.get("invoiceNumber") or original.get("billNumber") or original.get("purchaseNumber")

        identities = [line_identity(item) for item in original.get("items") or []]
        returned = [(identities.index((line.product, line.batch)), line.returned_after) for line in result.lines]

        expected = body.version if body.version is not None else original_doc.version
        saved = record_return(
            dbs,
            tenant_id=tenant_id,
            original_id=document_id,
            expected_version=expected,
            returned_quantities=returned,
            note_payload=note,
        )
        log_with_context(
            logger, logging.INFO, "Return recorded",
            tenant_id=tenant_id, document_id=saved.id, original_id=document_id, kind=saved.kind,
        )
        return saved.as_dict()


def _report_data(tenant_id: str, kind: str, start_date: str, end_date: str) -> Dict[str, Any]:
    report_kind = ReportKind.coerce(kind)
    start, end = check_range(start_date, end_date)
    with SessionLocal() as dbs:
        by_kind = {k: list_documents_in_range(dbs, tenant_id, k, start, end) for k in DocumentKind}
    return build_report(
        report_kind,
        by_kind[DocumentKind.INVOICE],
        start,
        end,
        purchases=by_kind[DocumentKind.PURCHASE],
        sales_returns=by_kind[DocumentKind.SALES_RETURN],
        purchase_returns=by_kind[DocumentKind.PURCHASE_RETURN],
    )


@app.get("/v1/reports/{kind}")
def get_report(kind: str, startDate: str, endDate: str, tenant_id: str = Depends(tenant_from_headers)):
    return _report_data(tenant_id, kind, startDate, endDate)


@app.get("/v1/reports/{kind}/export/{fmt}")
def export_report(kind: str, fmt: str, startDate: str, endDate: str, tenant_id: str = Depends(tenant_from_headers)):
    fmt = fmt.lower()
    if fmt not in EXPORT_MEDIA_TYPES:
        raise ConfigurationError(
            f"Unsupported export format: {fmt}",
            error_code="UNKNOWN_EXPORT_FORMAT",
            details={"format": fmt, "allowed": sorted(EXPORT_MEDIA_TYPES)},
        )
    report_kind = ReportKind.coerce(kind)
    data = _report_data(tenant_id, kind, startDate, endDate)

    if fmt == "json":
        content: Any = export_json(report_envelope(report_kind, data, startDate, endDate))
    elif fmt == "csv":
        content = export_report_csv(report_kind, data)
    else:
        content = export_report_xlsx(report_kind, data, {"startDate": startDate, "endDate": endDate})

    filename = f"{report_kind.title.replace(' ', '_')}_{startDate}_to_{endDate}.{fmt}"
    return Response(
        content=content,
        media_type=EXPORT_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/v1/expenses/compute", response_model=ExpenseResponse)
def compute_expense_endpoint(body: ExpenseRequest, tenant_id: str = Depends(tenant_from_headers)):
    result = compute_expense(body.amount, body.gstRate)
    result.update(category=body.category, description=body.description)
    return result


def run():
    """Console entry point: ``gstbill-api``."""
    import uvicorn

    uvicorn.run("gstbill.main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
