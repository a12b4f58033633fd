# Overview: Service-layer operations for payments; encapsulates business logic and database work.

"""
Payments are append-only records of money received against an invoice.

Recording a payment never changes the invoice status; finance marks the
invoice paid explicitly (invoice status edit), which stamps paid_date.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Invoice, Payment
from ..statuses import InvoiceStatus, PaymentMethod, PaymentStatus
from ..validation import MAX_PRICE_CENTS
from ..time_utils import utcnow
from .concurrency import run_with_retry
from .lifecycle_service import validate_status


class PaymentError(Exception):
    """Raised for payment operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def record_payment(
    *,
    invoice_id: int,
    amount_cents: int,
    payment_method: str,
    user_id: int | None = None,
    payment_status: str | None = None,
    transaction_id: str | None = None,
    payment_date: datetime | None = None,
    notes: str | None = None,
) -> Payment:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise PaymentError("amount_cents must be an integer")
    if amount_cents <= 0:
        raise PaymentError("amount_cents must be > 0")
    if amount_cents > MAX_PRICE_CENTS:
        raise PaymentError(f"amount_cents cannot exceed {MAX_PRICE_CENTS}")

    methods = [m.value for m in PaymentMethod]
    if payment_method not in methods:
        raise PaymentError("Invalid payment_method", details={"allowed": methods})

    status = validate_status("payment", payment_status or PaymentStatus.COMPLETED.value)

    def _op() -> Payment:
        invoice = db.session.get(Invoice, invoice_id)
        if invoice is None:
            raise PaymentError("Invoice not found", details={"invoice_id": invoice_id})
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise PaymentError("Cannot record a payment against a cancelled invoice")

        payment = Payment(
            invoice_id=invoice.id,
            amount_cents=amount_cents,
            payment_method=payment_method,
            payment_status=status,
            transaction_id=(transaction_id or "").strip() or None,
            payment_date=payment_date or utcnow(),
            notes=notes,
            recorded_by=user_id,
        )
        db.session.add(payment)
        db.session.commit()
        return payment

    payment = run_with_retry(_op)
    current_app.logger.info(
        "Recorded payment %s of %s cents on invoice %s (%s, %s)",
        payment.id, amount_cents, invoice_id, payment_method, status,
    )
    return payment


def list_payments(*, customer_id: int | None = None, invoice_id: int | None = None) -> list[Payment]:
    query = db.session.query(Payment).options(
        joinedload(Payment.invoice).joinedload(Invoice.customer)
    )
    if customer_id is not None or invoice_id is not None:
        query = query.join(Invoice, Invoice.id == Payment.invoice_id)
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    if invoice_id is not None:
        query = query.filter(Payment.invoice_id == invoice_id)
    return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def paid_total_cents(invoice: Invoice) -> int:
    """Sum of completed payments on an invoice."""
    return sum(
        p.amount_cents for p in invoice.payments
        if p.payment_status == PaymentStatus.COMPLETED.value
    )
