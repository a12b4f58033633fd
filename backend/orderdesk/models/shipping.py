from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date
from ..statuses import badge_for


class ShippingCarrier(db.Model):
    __tablename__ = "shipping_carriers"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_shipping_carriers_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    code = db.Column(db.String(32), nullable=False)

    # e.g. ["ground", "express", "overnight"]
    supported_services = db.Column(db.JSON, nullable=False, default=list)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "supported_services": list(self.supported_services or []),
            "is_active": self.is_active,
        }


class Shipment(db.Model):
    """
    Physical dispatch of (part of) one order.

    The ship-to block is copied from the customer at creation time; the
    ship-from block comes from configuration.
    """
    __tablename__ = "shipments"
    __table_args__ = (
        db.UniqueConstraint("shipment_number", name="uq_shipments_shipment_number"),
        db.Index("ix_shipments_order", "order_id"),
        db.Index("ix_shipments_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shipment_number = db.Column(db.String(32), nullable=False)

    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    carrier_id = db.Column(db.Integer, db.ForeignKey("shipping_carriers.id"), nullable=True)
    service_type = db.Column(db.String(64), nullable=True)

    # See statuses.ShipmentStatus
    status = db.Column(db.String(16), nullable=False, default="pending")
    tracking_number = db.Column(db.String(128), nullable=True)

    ship_to_name = db.Column(db.String(255), nullable=True)
    ship_to_company = db.Column(db.String(255), nullable=True)
    ship_to_address = db.Column(db.String(255), nullable=True)
    ship_to_city = db.Column(db.String(128), nullable=True)
    ship_to_state = db.Column(db.String(64), nullable=True)
    ship_to_zip = db.Column(db.String(32), nullable=True)
    ship_to_phone = db.Column(db.String(64), nullable=True)

    ship_from_name = db.Column(db.String(255), nullable=True)
    ship_from_company = db.Column(db.String(255), nullable=True)
    ship_from_address = db.Column(db.String(255), nullable=True)
    ship_from_city = db.Column(db.String(128), nullable=True)
    ship_from_state = db.Column(db.String(64), nullable=True)
    ship_from_zip = db.Column(db.String(32), nullable=True)

    weight_lbs = db.Column(db.Float, nullable=True)
    length_in = db.Column(db.Float, nullable=True)
    width_in = db.Column(db.Float, nullable=True)
    height_in = db.Column(db.Float, nullable=True)

    declared_value_cents = db.Column(db.Integer, nullable=True)
    shipping_cost_cents = db.Column(db.Integer, nullable=True)

    estimated_delivery_date = db.Column(db.Date, nullable=True)
    shipped_date = db.Column(db.DateTime(timezone=True), nullable=True)
    actual_delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)

    special_instructions = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order = db.relationship("Order", backref=db.backref("shipments", lazy=True))
    carrier = db.relationship("ShippingCarrier")
    items = db.relationship("ShipmentItem", backref="shipment", lazy=True, cascade="all, delete-orphan")

    def to_dict(self, include_items: bool = False) -> dict:
        order = self.order
        data = {
            "id": self.id,
            "shipment_number": self.shipment_number,
            "order_id": self.order_id,
            "order_number": order.order_number if order else None,
            "customer_name": order.customer.company_name if order and order.customer else None,
            "carrier_id": self.carrier_id,
            "carrier_name": self.carrier.name if self.carrier else None,
            "service_type": self.service_type,
            "status": self.status,
            "status_badge": badge_for("shipment", self.status),
            "tracking_number": self.tracking_number,
            "ship_to": {
                "name": self.ship_to_name,
                "company": self.ship_to_company,
                "address": self.ship_to_address,
                "city": self.ship_to_city,
                "state": self.ship_to_state,
                "zip_code": self.ship_to_zip,
                "phone": self.ship_to_phone,
            },
            "ship_from": {
                "name": self.ship_from_name,
                "company": self.ship_from_company,
                "address": self.ship_from_address,
                "city": self.ship_from_city,
                "state": self.ship_from_state,
                "zip_code": self.ship_from_zip,
            },
            "weight_lbs": self.weight_lbs,
            "dimensions_in": {
                "length": self.length_in,
                "width": self.width_in,
                "height": self.height_in,
            },
            "declared_value_cents": self.declared_value_cents,
            "shipping_cost_cents": self.shipping_cost_cents,
            "estimated_delivery_date": to_iso_date(self.estimated_delivery_date),
            "shipped_date": to_utc_z(self.shipped_date),
            "actual_delivery_date": to_utc_z(self.actual_delivery_date),
            "special_instructions": self.special_instructions,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ShipmentItem(db.Model):
    __tablename__ = "shipment_items"
    __table_args__ = (
        db.UniqueConstraint("shipment_id", "order_item_id", name="uq_shipment_items_line"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shipment_id = db.Column(db.Integer, db.ForeignKey("shipments.id"), nullable=False, index=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    order_item = db.relationship("OrderItem")

    def to_dict(self) -> dict:
        item = self.order_item
        return {
            "id": self.id,
            "shipment_id": self.shipment_id,
            "order_item_id": self.order_item_id,
            "product_name": item.product.name if item and item.product else None,
            "quantity": self.quantity,
        }


class FulfillmentTask(db.Model):
    """Warehouse work item (pick, pack, quality check, label, ship) for an order."""
    __tablename__ = "fulfillment_tasks"
    __table_args__ = (
        db.Index("ix_fulfillment_tasks_status", "status"),
        db.Index("ix_fulfillment_tasks_order", "order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)

    # See statuses.FulfillmentTaskType / StepStatus / Priority
    task_type = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    priority = db.Column(db.String(16), nullable=False, default="medium")

    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    order = db.relationship("Order", backref=db.backref("fulfillment_tasks", lazy=True))
    assignee = db.relationship("User", foreign_keys=[assigned_to])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "order_number": self.order.order_number if self.order else None,
            "task_type": self.task_type,
            "status": self.status,
            "status_badge": badge_for("fulfillment_task", self.status),
            "priority": self.priority,
            "priority_badge": badge_for("priority", self.priority),
            "assigned_to": self.assigned_to,
            "assigned_to_name": self.assignee.full_name if self.assignee else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at),
        }
