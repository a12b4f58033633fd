# Overview: Service-layer operations for shipments and carriers; encapsulates business logic and database work.

"""
Shipments.

A shipment belongs to one order and lists which order lines (and how many
units) it carries; with no explicit lines it carries every line in full.
Ship-to is copied from the customer, ship-from from configuration.

Tracking propagates to the order: a shipment created (or later given) a
tracking number is "shipped" and its order becomes "shipped" too, in the
same commit. A delivered shipment moves a shipped order to "delivered".
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Order, OrderItem, Shipment, ShipmentItem, ShippingCarrier
from ..statuses import OrderStatus, ShipmentStatus
from .concurrency import run_with_retry
from .document_service import next_document_number, DOC_SHIPMENT
from .lifecycle_service import apply_status


SHIPPABLE_ORDER_STATUSES = (
    OrderStatus.CONFIRMED.value,
    OrderStatus.IN_PRODUCTION.value,
    OrderStatus.READY_TO_SHIP.value,
)

# Shipment states before the parcel leaves the warehouse
UNSHIPPED_STATUSES = (ShipmentStatus.PENDING.value, ShipmentStatus.PROCESSING.value)


class ShipmentError(Exception):
    """Raised for shipment operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def list_carriers(*, include_inactive: bool = False) -> list[ShippingCarrier]:
    query = db.session.query(ShippingCarrier)
    if not include_inactive:
        query = query.filter(ShippingCarrier.is_active.is_(True))
    return query.order_by(ShippingCarrier.name.asc()).all()


def eligible_orders() -> list[Order]:
    return (
        db.session.query(Order)
        .options(joinedload(Order.customer))
        .filter(Order.status.in_(SHIPPABLE_ORDER_STATUSES))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def _resolve_carrier(carrier_id, service_type: str | None) -> ShippingCarrier | None:
    if carrier_id is None:
        return None
    carrier = db.session.get(ShippingCarrier, carrier_id)
    if carrier is None or not carrier.is_active:
        raise ShipmentError("Carrier not found", details={"carrier_id": carrier_id})
    services = list(carrier.supported_services or [])
    if service_type and services and service_type not in services:
        raise ShipmentError(
            f"{carrier.name} does not offer service '{service_type}'",
            details={"supported_services": services},
        )
    return carrier


def _stage_items(shipment: Shipment, order: Order, items: list | None) -> None:
    by_id = {item.id: item for item in order.items}

    if not items:
        for order_item in order.items:
            db.session.add(ShipmentItem(
                shipment_id=shipment.id,
                order_item_id=order_item.id,
                quantity=order_item.quantity,
            ))
        return

    seen: set[int] = set()
    for index, line in enumerate(items):
        if not isinstance(line, dict):
            raise ShipmentError("Each item must be an object", details={"line": index})
        order_item: OrderItem | None = by_id.get(line.get("order_item_id"))
        if order_item is None:
            raise ShipmentError(
                "Order item does not belong to this order",
                details={"line": index, "order_item_id": line.get("order_item_id")},
            )
        if order_item.id in seen:
            raise ShipmentError("Order item listed twice", details={"line": index})
        seen.add(order_item.id)

        quantity = line.get("quantity", order_item.quantity)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= order_item.quantity:
            raise ShipmentError(
                f"quantity must be between 1 and {order_item.quantity}",
                details={"line": index},
            )
        db.session.add(ShipmentItem(
            shipment_id=shipment.id,
            order_item_id=order_item.id,
            quantity=quantity,
        ))


def _mark_shipped(shipment: Shipment, order: Order, user_id: int | None) -> None:
    apply_status("shipment", shipment, ShipmentStatus.SHIPPED.value, actor_id=user_id)
    if order.status in SHIPPABLE_ORDER_STATUSES:
        apply_status("order", order, OrderStatus.SHIPPED.value, actor_id=user_id)


def create_shipment(
    *,
    order_id: int,
    user_id: int | None = None,
    carrier_id: int | None = None,
    service_type: str | None = None,
    tracking_number: str | None = None,
    weight_lbs: float | None = None,
    length_in: float | None = None,
    width_in: float | None = None,
    height_in: float | None = None,
    declared_value_cents: int | None = None,
    shipping_cost_cents: int | None = None,
    estimated_delivery_date=None,
    special_instructions: str | None = None,
    items: list | None = None,
) -> Shipment:
    """Create the shipment, its lines and (with tracking) the order status change atomically."""
    tracking_number = (tracking_number or "").strip() or None
    ship_from = current_app.config["SHIP_FROM"]

    def _op() -> Shipment:
        order = db.session.get(Order, order_id)
        if order is None:
            raise ShipmentError("Order not found", details={"order_id": order_id})
        if order.status not in SHIPPABLE_ORDER_STATUSES:
            raise ShipmentError(
                f"Order in status '{order.status}' cannot be shipped",
                details={"allowed": list(SHIPPABLE_ORDER_STATUSES)},
            )
        carrier = _resolve_carrier(carrier_id, service_type)
        customer = order.customer

        shipment = Shipment(
            shipment_number=next_document_number(DOC_SHIPMENT),
            order_id=order.id,
            carrier_id=carrier.id if carrier else None,
            service_type=service_type,
            status=ShipmentStatus.PENDING.value,
            tracking_number=tracking_number,
            ship_to_name=customer.contact_name,
            ship_to_company=customer.company_name,
            ship_to_address=customer.address,
            ship_to_city=customer.city,
            ship_to_state=customer.state,
            ship_to_zip=customer.zip_code,
            ship_to_phone=customer.phone,
            ship_from_name=ship_from["name"],
            ship_from_company=ship_from["company"],
            ship_from_address=ship_from["address"],
            ship_from_city=ship_from["city"],
            ship_from_state=ship_from["state"],
            ship_from_zip=ship_from["zip_code"],
            weight_lbs=weight_lbs,
            length_in=length_in,
            width_in=width_in,
            height_in=height_in,
            declared_value_cents=declared_value_cents,
            shipping_cost_cents=shipping_cost_cents,
            estimated_delivery_date=estimated_delivery_date,
            special_instructions=special_instructions,
            created_by=user_id,
        )
        db.session.add(shipment)
        db.session.flush()

        _stage_items(shipment, order, items)

        if tracking_number:
            _mark_shipped(shipment, order, user_id)

        db.session.commit()
        return shipment

    shipment = run_with_retry(_op)
    current_app.logger.info(
        "Created shipment %s for order %s (status %s)",
        shipment.shipment_number, order_id, shipment.status,
    )
    return shipment


SHIPMENT_EDITABLE_FIELDS = {
    "carrier_id",
    "service_type",
    "weight_lbs",
    "length_in",
    "width_in",
    "height_in",
    "declared_value_cents",
    "shipping_cost_cents",
    "estimated_delivery_date",
    "special_instructions",
}


def update_shipment(shipment_id: int, patch: dict, *, user_id: int | None = None) -> Shipment | None:
    def _op():
        shipment = db.session.get(Shipment, shipment_id)
        if shipment is None:
            return None
        order = shipment.order

        if "carrier_id" in patch or "service_type" in patch:
            _resolve_carrier(
                patch.get("carrier_id", shipment.carrier_id),
                patch.get("service_type", shipment.service_type),
            )
        for key, value in patch.items():
            if key in SHIPMENT_EDITABLE_FIELDS:
                setattr(shipment, key, value)

        if "tracking_number" in patch:
            shipment.tracking_number = (patch["tracking_number"] or "").strip() or None
            if shipment.tracking_number and shipment.status in UNSHIPPED_STATUSES and "status" not in patch:
                _mark_shipped(shipment, order, user_id)

        if "status" in patch:
            apply_status("shipment", shipment, patch["status"], actor_id=user_id)
            if shipment.status == ShipmentStatus.SHIPPED.value and order.status in SHIPPABLE_ORDER_STATUSES:
                apply_status("order", order, OrderStatus.SHIPPED.value, actor_id=user_id)
            if shipment.status == ShipmentStatus.DELIVERED.value and order.status == OrderStatus.SHIPPED.value:
                apply_status("order", order, OrderStatus.DELIVERED.value, actor_id=user_id)

        db.session.commit()
        return shipment

    return run_with_retry(_op)


def scoped_shipment_query(customer_id: int | None = None):
    query = db.session.query(Shipment).options(
        joinedload(Shipment.order).joinedload(Order.customer),
        joinedload(Shipment.carrier),
    )
    if customer_id is not None:
        query = query.join(Order, Order.id == Shipment.order_id).filter(Order.customer_id == customer_id)
    return query


def list_shipments(
    *,
    customer_id: int | None = None,
    status: str | None = None,
    limit: int | None = None,
) -> list[Shipment]:
    query = scoped_shipment_query(customer_id)
    if status:
        query = query.filter(Shipment.status == status)
    query = query.order_by(Shipment.created_at.desc(), Shipment.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_shipment(shipment_id: int, customer_id: int | None = None) -> Shipment | None:
    return scoped_shipment_query(customer_id).filter(Shipment.id == shipment_id).first()
