# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order entry.

One service backs both order forms: staff (pick any customer, may override
unit prices, may start an order as a draft) and clients in the portal
(always their own customer, catalog prices, status "pending").

create_order writes the order and all of its lines in one commit. The
header is flushed first so lines can reference it; any failing line rolls
the header back with it. Placing an order does not move stock.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Customer, Order, OrderItem, Product
from ..statuses import OrderStatus, ShippingMethod, PaymentMethod
from ..validation import MAX_QUANTITY, MAX_PRICE_CENTS
from .concurrency import run_with_retry
from .document_service import next_document_number, DOC_ORDER
from .lifecycle_service import apply_status


INITIAL_STATUSES = (OrderStatus.DRAFT.value, OrderStatus.PENDING.value)


class OrderError(Exception):
    """Raised for order operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _line_quantity(raw, index: int) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise OrderError("quantity must be a whole number", details={"line": index})
    try:
        quantity = int(raw)
    except ValueError:
        raise OrderError("quantity must be a whole number", details={"line": index})
    if quantity < 1:
        raise OrderError("quantity must be at least 1", details={"line": index})
    if quantity > MAX_QUANTITY:
        raise OrderError(f"quantity cannot exceed {MAX_QUANTITY}", details={"line": index})
    return quantity


def _line_price(line: dict, product: Product, index: int, allow_price_override: bool) -> int:
    raw = line.get("unit_price_cents")
    if raw is None or not allow_price_override:
        return int(product.base_price_cents or 0)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise OrderError("unit_price_cents must be an integer", details={"line": index})
    if raw < 0 or raw > MAX_PRICE_CENTS:
        raise OrderError("unit_price_cents out of range", details={"line": index})
    return raw


def _resolve_line(line, index: int, allow_price_override: bool) -> tuple[Product, int, int]:
    """Returns (product, quantity, unit_price_cents) or raises OrderError."""
    if not isinstance(line, dict):
        raise OrderError("Each item must be an object", details={"line": index})

    product_id = line.get("product_id")
    if isinstance(product_id, str) and product_id.strip().isdigit():
        product_id = int(product_id)
    valid_id = isinstance(product_id, int) and not isinstance(product_id, bool)
    product = db.session.get(Product, product_id) if valid_id else None
    if product is None or not product.is_active:
        raise OrderError("Product not found", details={"line": index, "product_id": product_id})

    quantity = _line_quantity(line.get("quantity"), index)
    unit_price = _line_price(line, product, index, allow_price_override)
    return product, quantity, unit_price


def _check_choice(value, enum_cls, field: str) -> str | None:
    if value in (None, ""):
        return None
    allowed = [m.value for m in enum_cls]
    if value not in allowed:
        raise OrderError(f"{field} must be one of: {', '.join(allowed)}")
    return value


def quote_order(items: list, shipping_method: str | None = None) -> dict:
    """
    Price an order form without writing anything (the review step).

    Lines use catalog prices. The shipping fee is a flat rate per method.
    """
    if not isinstance(items, list) or not items:
        raise OrderError("At least one item is required")
    method = _check_choice(shipping_method, ShippingMethod, "shipping_method") or ShippingMethod.STANDARD.value

    lines = []
    subtotal = 0
    for index, line in enumerate(items):
        product, quantity, unit_price = _resolve_line(line, index, allow_price_override=False)
        total = quantity * unit_price
        subtotal += total
        lines.append({
            "product_id": product.id,
            "product_name": product.name,
            "quantity": quantity,
            "unit_price_cents": unit_price,
            "total_price_cents": total,
        })

    shipping_fee = int(current_app.config["SHIPPING_FEES_CENTS"].get(method, 0))
    return {
        "items": lines,
        "subtotal_cents": subtotal,
        "shipping_method": method,
        "shipping_fee_cents": shipping_fee,
        "estimated_total_cents": subtotal + shipping_fee,
    }


def create_order(
    *,
    customer_id: int,
    items: list,
    user_id: int | None,
    allow_price_override: bool = False,
    status: str | None = None,
    required_date=None,
    notes: str | None = None,
    shipping_method: str | None = None,
    payment_method: str | None = None,
) -> Order:
    """
    Create an order header and its lines atomically.

    total_amount_cents is the sum of the line totals.
    """
    if not isinstance(items, list) or not items:
        raise OrderError("At least one item is required")

    initial_status = status or OrderStatus.PENDING.value
    if initial_status not in INITIAL_STATUSES:
        raise OrderError(
            "New orders must start as draft or pending",
            details={"allowed": list(INITIAL_STATUSES)},
        )
    shipping_method = _check_choice(shipping_method, ShippingMethod, "shipping_method")
    payment_method = _check_choice(payment_method, PaymentMethod, "payment_method")

    def _op() -> Order:
        customer = db.session.get(Customer, customer_id)
        if customer is None or not customer.is_active:
            raise OrderError("Customer not found", details={"customer_id": customer_id})

        order = Order(
            order_number=next_document_number(DOC_ORDER),
            customer_id=customer.id,
            status=initial_status,
            total_amount_cents=0,
            required_date=required_date,
            notes=notes,
            shipping_method=shipping_method,
            payment_method=payment_method,
            created_by=user_id,
        )
        db.session.add(order)
        db.session.flush()

        total = 0
        for index, line in enumerate(items):
            product, quantity, unit_price = _resolve_line(line, index, allow_price_override)
            line_total = quantity * unit_price
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=quantity,
                unit_price_cents=unit_price,
                total_price_cents=line_total,
                status="pending",
            ))
            total += line_total

        order.total_amount_cents = total
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Created order %s for customer %s (%s lines, total %s cents) by user %s",
        order.order_number, customer_id, len(items), order.total_amount_cents, user_id,
    )
    return order


def scoped_order_query(customer_id: int | None = None):
    query = db.session.query(Order).options(joinedload(Order.customer))
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    return query


def list_orders(
    *,
    customer_id: int | None = None,
    status: str | None = None,
    search: str | None = None,
    limit: int | None = None,
) -> list[Order]:
    """Newest first; ``customer_id`` restricts to one customer (client scope)."""
    query = scoped_order_query(customer_id)
    if status:
        query = query.filter(Order.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.join(Customer, Customer.id == Order.customer_id).filter(
            db.or_(Order.order_number.ilike(pattern), Customer.company_name.ilike(pattern))
        )
    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_order(order_id: int, customer_id: int | None = None) -> Order | None:
    """None when missing or outside the caller's customer scope."""
    return scoped_order_query(customer_id).filter(Order.id == order_id).first()


def update_order(order_id: int, patch: dict, *, user_id: int | None = None) -> Order | None:
    """
    Staff edit: status, required date, notes, shipping/payment method.

    Status changes go through the lifecycle service (any in-vocabulary value;
    shipped/delivered stamp their dates).
    """
    def _op():
        order = db.session.get(Order, order_id)
        if order is None:
            return None

        if "status" in patch:
            apply_status("order", order, patch["status"], actor_id=user_id)
        if "required_date" in patch:
            order.required_date = patch["required_date"]
        if "notes" in patch:
            order.notes = patch["notes"]
        if "shipping_method" in patch:
            order.shipping_method = _check_choice(patch["shipping_method"], ShippingMethod, "shipping_method")
        if "payment_method" in patch:
            order.payment_method = _check_choice(patch["payment_method"], PaymentMethod, "payment_method")

        db.session.commit()
        return order

    return run_with_retry(_op)


def update_order_item_status(order_id: int, item_id: int, status: str, *, user_id: int | None = None) -> OrderItem | None:
    def _op():
        item = db.session.query(OrderItem).filter_by(id=item_id, order_id=order_id).first()
        if item is None:
            return None
        apply_status("order_item", item, status, actor_id=user_id)
        db.session.commit()
        return item

    return run_with_retry(_op)
