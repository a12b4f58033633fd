from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date
from ..statuses import badge_for


class PaymentTerm(db.Model):
    """Named credit term ("Net 30" -> due 30 days after issue)."""
    __tablename__ = "payment_terms"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_payment_terms_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    days = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "days": self.days,
            "is_active": self.is_active,
        }


class Invoice(db.Model):
    """
    Bill for exactly one order; amounts are copied from the order when the
    invoice is generated and do not follow later order edits.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        # One invoice per order
        db.UniqueConstraint("order_id", name="uq_invoices_order_id"),
        db.Index("ix_invoices_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=False)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    # See statuses.InvoiceStatus
    status = db.Column(db.String(16), nullable=False, default="draft")

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    shipping_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # Term name as shown on the document, e.g. "Net 30"
    payment_terms = db.Column(db.String(64), nullable=True)
    issue_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=True)
    paid_date = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    terms_conditions = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order = db.relationship("Order", backref=db.backref("invoice", uselist=False, lazy=True))
    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "order_id": self.order_id,
            "order_number": self.order.order_number if self.order else None,
            "customer_id": self.customer_id,
            "customer_name": self.customer.company_name if self.customer else None,
            "status": self.status,
            "status_badge": badge_for("invoice", self.status),
            "subtotal_cents": self.subtotal_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "shipping_amount_cents": self.shipping_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "total_amount_cents": self.total_amount_cents,
            "payment_terms": self.payment_terms,
            "issue_date": to_iso_date(self.issue_date),
            "due_date": to_iso_date(self.due_date),
            "paid_date": to_utc_z(self.paid_date),
            "notes": self.notes,
            "terms_conditions": self.terms_conditions,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Payment(db.Model):
    """
    Money received against an invoice. Append-only; recording a payment does
    not change the invoice status.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_invoice", "invoice_id"),
        db.Index("ix_payments_status", "payment_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    # See statuses.PaymentStatus
    payment_status = db.Column(db.String(16), nullable=False, default="completed")

    # Gateway / bank reference
    transaction_id = db.Column(db.String(128), nullable=True)

    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    notes = db.Column(db.Text, nullable=True)

    recorded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    invoice = db.relationship("Invoice", backref=db.backref("payments", lazy=True, order_by="Payment.id"))

    def to_dict(self) -> dict:
        invoice = self.invoice
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "invoice_number": invoice.invoice_number if invoice else None,
            "customer_name": invoice.customer.company_name if invoice and invoice.customer else None,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "status_badge": badge_for("payment", self.payment_status),
            "transaction_id": self.transaction_id,
            "payment_date": to_utc_z(self.payment_date),
            "notes": self.notes,
            "recorded_by": self.recorded_by,
            "created_at": to_utc_z(self.created_at),
        }
