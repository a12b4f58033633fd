from __future__ import annotations

from ..extensions import db


class DocumentSequence(db.Model):
    """
    Monotonic counter per document type (ORDER, INVOICE, SHIPMENT).

    Incremented with a single UPDATE so concurrent allocations never reuse
    a number.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", name="uq_document_sequences_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
