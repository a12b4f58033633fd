# Overview: Service-layer operations for document numbering (orders, invoices, shipments).

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import DocumentSequence


DOC_ORDER = "ORDER"
DOC_INVOICE = "INVOICE"
DOC_SHIPMENT = "SHIPMENT"

PREFIXES = {
    DOC_ORDER: "ORD",
    DOC_INVOICE: "INV",
    DOC_SHIPMENT: "SHP",
}


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _current_value(document_type: str) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )


def ensure_document_sequences() -> int:
    """Create missing sequence rows. Returns count created."""
    created = 0
    for document_type in PREFIXES:
        exists = db.session.query(DocumentSequence.id).filter_by(document_type=document_type).first()
        if not exists:
            db.session.add(DocumentSequence(document_type=document_type, next_number=1))
            created += 1
    db.session.commit()
    return created


def next_document_number(document_type: str, *, pad: int = 6) -> str:
    """
    Allocate the next number for a document type, e.g. "ORD-000042".

    Runs inside the caller's transaction (flush only, no commit): if the
    caller's unit of work rolls back, the number is released with it.
    """
    prefix = PREFIXES.get(document_type)
    if not prefix:
        raise DocumentSequenceError(f"Unknown document type: {document_type}")

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        db.session.flush()
        next_num = _current_value(document_type) - 1
    else:
        # First use on a database that skipped `flask system init`. A racing
        # first allocation fails on the unique constraint and the caller's
        # unit of work rolls back.
        db.session.add(DocumentSequence(document_type=document_type, next_number=2))
        db.session.flush()
        next_num = 1

    return f"{prefix}-{next_num:0{pad}d}"
