import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import JSON, TIMESTAMP, Column, Date, Integer, String, create_engine, update
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.sql import func

from .config import settings
from .engine.enums import DocumentKind
from .errors import ConcurrentUpdateError, DocumentNotFoundError
from .reports.common import document_date, document_number

logger = logging.getLogger(__name__)

DB_URL = settings.database_url

_connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}
engine = create_engine(DB_URL, future=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
Base = declarative_base()


class Document(Base):
    """Invoice, purchase, credit note or debit note, stored as its computed payload."""
    __tablename__ = "documents"

    id = Column(String, primary_key=True, default=lambda: "doc_" + uuid.uuid4().hex[:12])
    tenant_id = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False, index=True)
    number = Column(String, default="")
    document_date = Column(Date, nullable=True, index=True)
    party_gstin = Column(String, nullable=True)
    status = Column(String, default="ACTIVE")
    original_id = Column(String, nullable=True)  # returns only
    payload = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    def as_dict(self) -> Dict[str, Any]:
        data = dict(self.payload or {})
        data["id"] = self.id
        data["version"] = self.version
        return data


def init_db():
    Base.metadata.create_all(bind=engine)


def _gstin_of(payload: Dict[str, Any]) -> Optional[str]:
    gstin = payload.get("customerGstin") or payload.get("supplierGstin") or payload.get("gstin")
    return str(gstin).strip().upper() if gstin else None


def save_document(db, *, tenant_id: str, payload: Dict[str, Any], original_id: Optional[str] = None) -> Document:
    kind = DocumentKind.coerce(payload.get("kind"))
    doc = Document(
        id="doc_" + uuid.uuid4().hex[:12],
        tenant_id=tenant_id,
        kind=kind.value,
        number=document_number(payload),
        document_date=document_date(payload, kind),
        party_gstin=_gstin_of(payload),
        status=str(payload.get("status") or "ACTIVE").upper(),
        original_id=original_id,
        payload=dict(payload),
        version=1,
    )
    doc.payload["id"] = doc.id
    db.add(doc)
    db.commit()
    db.refresh(doc)
    logger.info("Saved %s %s for tenant %s", doc.kind, doc.id, tenant_id)
    return doc


def get_document(db, tenant_id: str, document_id: str) -> Document:
    doc = db.get(Document, document_id)
    # Other tenants' documents are reported as missing, not forbidden
    if doc is None or doc.tenant_id != tenant_id:
        raise DocumentNotFoundError(f"Document not found: {document_id}", details={"id": document_id})
    return doc


def list_documents_in_range(db, tenant_id: str, kind: Any, start: date, end: date) -> List[Dict[str, Any]]:
    """Payloads of one kind dated within [start, end], cancelled ones included."""
    kind = DocumentKind.coerce(kind)
    rows = (
        db.query(Document)
        .filter(
            Document.tenant_id == tenant_id,
            Document.kind == kind.value,
            Document.document_date >= start,
            Document.document_date <= end,
        )
        .order_by(Document.document_date, Document.number)
        .all()
    )
    return [r.as_dict() for r in rows]


def _compare_and_set(db, doc: Document, expected_version: int, payload: Dict[str, Any]) -> Document:
    result = db.execute(
        update(Document)
        .where(Document.id == doc.id, Document.version == expected_version)
        .values(payload=payload, version=expected_version + 1)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConcurrentUpdateError(
            "Document was modified by another request; reload and retry",
            details={"id": doc.id, "expectedVersion": expected_version},
        )
    return doc


def update_payment(db, tenant_id: str, document_id: str, expected_version: int, payment_state: Dict[str, Any]) -> Document:
    doc = get_document(db, tenant_id, document_id)
    payload = dict(doc.payload)
    payment_state = dict(payment_state)
    payment = payment_state.pop("payment", None)
    payload.update(payment_state)
    if payment:
        payload["payments"] = list(payload.get("payments") or []) + [payment]
    _compare_and_set(db, doc, expected_version, payload)
    db.commit()
    db.refresh(doc)
    return doc


def record_return(
    db,
    *,
    tenant_id: str,
    original_id: str,
    expected_version: int,
    returned_quantities: Sequence[Any],
    note_payload: Dict[str, Any],
) -> Document:
    """
    Persist a credit/debit note and bump returned quantities on the original
    in one transaction.

    ``returned_quantities`` is one ``(line_index, returned_after)`` pair per
    returned line. The original is only updated if its version is still
    ``expected_version``; otherwise ConcurrentUpdateError is raised and
    nothing is written.
    """
    original = get_document(db, tenant_id, original_id)
    payload = dict(original.payload)
    items = [dict(i) for i in payload.get("items") or []]
    for index, returned_after in returned_quantities:
        items[index]["returnedQuantity"] = float(returned_after)
    payload["items"] = items
    _compare_and_set(db, original, expected_version, payload)

    kind = DocumentKind.coerce(note_payload.get("kind"))
    note = Document(
        id="doc_" + uuid.uuid4().hex[:12],
        tenant_id=tenant_id,
        kind=kind.value,
        number=document_number(note_payload),
        document_date=document_date(note_payload, kind),
        party_gstin=_gstin_of(note_payload),
        status="ACTIVE",
        original_id=original_id,
        payload=dict(note_payload),
        version=1,
    )
    note.payload["id"] = note.id
    db.add(note)
    db.commit()
    db.refresh(note)
    return note
