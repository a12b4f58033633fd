from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..statuses import badge_for, stock_level_for


class Product(db.Model):
    """
    Catalog entry.

    There is no stock column: the level on hand is SUM(quantity_delta) over
    this product's InventoryTransaction rows (see inventory_service).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_category", "category"),
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(128), nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    base_price_cents = db.Column(db.Integer, nullable=False, default=0)

    # Alert threshold: at or below this level the product is "low stock"
    min_stock_level = db.Column(db.Integer, nullable=False, default=10)

    is_customizable = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self, on_hand: int | None = None) -> dict:
        data = {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "base_price_cents": self.base_price_cents,
            "min_stock_level": self.min_stock_level,
            "is_customizable": self.is_customizable,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if on_hand is not None:
            level = stock_level_for(on_hand, self.min_stock_level)
            data["stock_quantity"] = on_hand
            data["stock_level"] = level.value
            data["stock_badge"] = badge_for("stock_level", level)
        return data


class InventoryTransaction(db.Model):
    """
    Append-only stock movement.

    ``quantity`` is what the operator entered; ``quantity_delta`` is the signed
    effect on the level (for "adjustment" it is target - level at that time).
    """
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        db.Index("ix_invtx_product_created", "product_id", "created_at"),
        db.Index("ix_invtx_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # in, out, adjustment
    transaction_type = db.Column(db.String(16), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    quantity_delta = db.Column(db.Integer, nullable=False)

    # What caused the movement: "adjustment", "initial_stock", "order", ...
    reference_type = db.Column(db.String(32), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    product = db.relationship("Product", backref=db.backref("inventory_transactions", lazy=True))
    creator = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "product_sku": self.product.sku if self.product else None,
            "transaction_type": self.transaction_type,
            "type_badge": badge_for("inventory_transaction", self.transaction_type),
            "quantity": self.quantity,
            "quantity_delta": self.quantity_delta,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_by_name": self.creator.full_name if self.creator else None,
            "created_at": to_utc_z(self.created_at),
        }
