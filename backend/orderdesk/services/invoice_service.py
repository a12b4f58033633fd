# Overview: Service-layer operations for invoices; encapsulates business logic and database work.

"""
Invoicing.

generate_invoice_from_order is the server-side procedure behind the invoice
form: it copies the order's amounts onto a new draft invoice. The form's
extra fields (payment term, issue date, notes, terms and conditions) are
applied in the same commit by create_invoice, so an invoice never exists
without its due date.

due_date = issue_date + term days (calendar arithmetic).

"overdue" is a stored status. It is set explicitly by mark_overdue_invoices
(CLI: `flask invoices mark-overdue`), never inferred while rendering.
"""

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Invoice, Order, PaymentTerm
from ..statuses import InvoiceStatus, OrderStatus
from ..time_utils import add_days, today
from .concurrency import run_with_retry
from .document_service import next_document_number, DOC_INVOICE
from .lifecycle_service import apply_status


INVOICEABLE_ORDER_STATUSES = (
    OrderStatus.CONFIRMED.value,
    OrderStatus.IN_PRODUCTION.value,
    OrderStatus.READY_TO_SHIP.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
)

# Invoices that are out with the customer and can fall overdue
OPEN_INVOICE_STATUSES = (InvoiceStatus.SENT.value, InvoiceStatus.VIEWED.value)


class InvoiceError(Exception):
    """Raised for invoice operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvoiceConflictError(InvoiceError):
    """The order already has an invoice."""


def due_date_for(issue_date: date, days: int) -> date:
    return add_days(issue_date, int(days or 0))


def list_payment_terms(*, include_inactive: bool = False) -> list[PaymentTerm]:
    query = db.session.query(PaymentTerm)
    if not include_inactive:
        query = query.filter(PaymentTerm.is_active.is_(True))
    return query.order_by(PaymentTerm.days.asc(), PaymentTerm.name.asc()).all()


def resolve_payment_term(name: str | None) -> PaymentTerm:
    term_name = name or current_app.config.get("DEFAULT_PAYMENT_TERM", "Net 30")
    term = db.session.query(PaymentTerm).filter_by(name=term_name).first()
    if term is None or not term.is_active:
        raise InvoiceError("Unknown payment term", details={"payment_terms": term_name})
    return term


def eligible_orders() -> list[Order]:
    """Orders in an invoiceable status that have no invoice yet."""
    return (
        db.session.query(Order)
        .options(joinedload(Order.customer))
        .outerjoin(Invoice, Invoice.order_id == Order.id)
        .filter(
            Order.status.in_(INVOICEABLE_ORDER_STATUSES),
            Invoice.id.is_(None),
        )
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def _stage_invoice(order_id: int, user_id: int | None) -> Invoice:
    order = db.session.get(Order, order_id)
    if order is None:
        raise InvoiceError("Order not found", details={"order_id": order_id})
    if order.status not in INVOICEABLE_ORDER_STATUSES:
        raise InvoiceError(
            f"Order in status '{order.status}' cannot be invoiced",
            details={"order_id": order_id, "allowed": list(INVOICEABLE_ORDER_STATUSES)},
        )
    existing = db.session.query(Invoice.id).filter_by(order_id=order_id).first()
    if existing:
        raise InvoiceConflictError(
            "Order already has an invoice",
            details={"order_id": order_id, "invoice_id": existing[0]},
        )

    subtotal = int(order.total_amount_cents or 0)
    tax = int(order.tax_amount_cents or 0)
    shipping = int(order.shipping_amount_cents or 0)
    discount = int(order.discount_amount_cents or 0)

    invoice = Invoice(
        invoice_number=next_document_number(DOC_INVOICE),
        order_id=order.id,
        customer_id=order.customer_id,
        status=InvoiceStatus.DRAFT.value,
        subtotal_cents=subtotal,
        tax_amount_cents=tax,
        shipping_amount_cents=shipping,
        discount_amount_cents=discount,
        total_amount_cents=subtotal + tax + shipping - discount,
        issue_date=today(),
        created_by=user_id,
    )
    db.session.add(invoice)
    db.session.flush()
    return invoice


def _apply_terms(invoice: Invoice, term: PaymentTerm, issue_date: date | None) -> None:
    invoice.payment_terms = term.name
    if issue_date is not None:
        invoice.issue_date = issue_date
    invoice.due_date = due_date_for(invoice.issue_date, term.days)


def _commit_new_invoice(order_id: int) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent generation for the same order
        db.session.rollback()
        raise InvoiceConflictError("Order already has an invoice", details={"order_id": order_id})


def generate_invoice_from_order(order_id: int, *, user_id: int | None = None) -> Invoice:
    """Draft invoice with the default payment term, issued today."""
    def _op() -> Invoice:
        term = resolve_payment_term(None)
        invoice = _stage_invoice(order_id, user_id)
        _apply_terms(invoice, term, None)
        _commit_new_invoice(order_id)
        return invoice

    invoice = run_with_retry(_op)
    current_app.logger.info("Generated invoice %s from order %s", invoice.invoice_number, order_id)
    return invoice


def create_invoice(
    *,
    order_id: int,
    user_id: int | None = None,
    payment_terms: str | None = None,
    issue_date: date | None = None,
    notes: str | None = None,
    terms_conditions: str | None = None,
) -> Invoice:
    """Invoice form: generate from the order and apply the form fields in one commit."""
    def _op() -> Invoice:
        term = resolve_payment_term(payment_terms)
        invoice = _stage_invoice(order_id, user_id)
        _apply_terms(invoice, term, issue_date)
        invoice.notes = notes
        invoice.terms_conditions = terms_conditions
        _commit_new_invoice(order_id)
        return invoice

    invoice = run_with_retry(_op)
    current_app.logger.info(
        "Created invoice %s for order %s (%s, due %s)",
        invoice.invoice_number, order_id, invoice.payment_terms, invoice.due_date,
    )
    return invoice


def scoped_invoice_query(customer_id: int | None = None):
    query = db.session.query(Invoice).options(joinedload(Invoice.customer), joinedload(Invoice.order))
    if customer_id is not None:
        query = query.filter(Invoice.customer_id == customer_id)
    return query


def list_invoices(*, customer_id: int | None = None, status: str | None = None) -> list[Invoice]:
    query = scoped_invoice_query(customer_id)
    if status:
        query = query.filter(Invoice.status == status)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def get_invoice(invoice_id: int, customer_id: int | None = None) -> Invoice | None:
    return scoped_invoice_query(customer_id).filter(Invoice.id == invoice_id).first()


def update_invoice(invoice_id: int, patch: dict, *, user_id: int | None = None) -> Invoice | None:
    """
    Edit status, term, dates, notes.

    Changing the term or issue date recomputes the due date unless an
    explicit due_date is part of the same patch.
    """
    def _op():
        invoice = db.session.get(Invoice, invoice_id)
        if invoice is None:
            return None

        if "status" in patch:
            apply_status("invoice", invoice, patch["status"], actor_id=user_id)

        if "payment_terms" in patch or "issue_date" in patch:
            term = resolve_payment_term(patch.get("payment_terms") or invoice.payment_terms)
            _apply_terms(invoice, term, patch.get("issue_date"))
        if "due_date" in patch:
            invoice.due_date = patch["due_date"]
        if invoice.due_date is not None and invoice.due_date < invoice.issue_date:
            raise InvoiceError("due_date cannot be before issue_date")

        if "notes" in patch:
            invoice.notes = patch["notes"]
        if "terms_conditions" in patch:
            invoice.terms_conditions = patch["terms_conditions"]

        db.session.commit()
        return invoice

    return run_with_retry(_op)


def mark_overdue_invoices(as_of: date | None = None) -> list[Invoice]:
    """Flip sent/viewed invoices whose due date is before ``as_of`` to overdue."""
    as_of = as_of or today()

    def _op():
        invoices = (
            db.session.query(Invoice)
            .filter(
                Invoice.status.in_(OPEN_INVOICE_STATUSES),
                Invoice.due_date.isnot(None),
                Invoice.due_date < as_of,
            )
            .all()
        )
        for invoice in invoices:
            apply_status("invoice", invoice, InvoiceStatus.OVERDUE.value)
        db.session.commit()
        return invoices

    return run_with_retry(_op)
