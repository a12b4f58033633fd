from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date
from ..statuses import badge_for


class Order(db.Model):
    """
    Customer order header.

    Orders placed through the order form carry
    total_amount_cents == sum(items.total_price_cents).
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_customer_created", "customer_id", "created_at"),
        db.Index("ix_orders_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    # See statuses.OrderStatus
    status = db.Column(db.String(32), nullable=False, default="pending")

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    shipping_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    shipping_method = db.Column(db.String(16), nullable=True)
    payment_method = db.Column(db.String(16), nullable=True)

    required_date = db.Column(db.Date, nullable=True)
    shipped_date = db.Column(db.DateTime(timezone=True), nullable=True)
    delivered_date = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    creator = db.relationship("User")
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer.company_name if self.customer else None,
            "status": self.status,
            "status_badge": badge_for("order", self.status),
            "total_amount_cents": self.total_amount_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "shipping_amount_cents": self.shipping_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "shipping_method": self.shipping_method,
            "payment_method": self.payment_method,
            "required_date": to_iso_date(self.required_date),
            "shipped_date": to_utc_z(self.shipped_date),
            "delivered_date": to_utc_z(self.delivered_date),
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """One product line of an order; prices are captured at order time."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.Index("ix_order_items_order", "order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    # See statuses.OrderItemStatus
    status = db.Column(db.String(32), nullable=False, default="pending")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "is_customizable": bool(self.product.is_customizable) if self.product else False,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
            "status": self.status,
            "status_badge": badge_for("order_item", self.status),
        }
