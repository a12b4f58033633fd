# Overview: Flask API routes for orders; parses input and returns JSON responses.

"""
Order routes.

Staff and client order forms share POST /api/orders. For clients the
customer is always their own, catalog prices apply and the order starts
"pending"; staff pick the customer, may override unit prices and may save a
draft. Clients only ever see their own customer's orders.
"""

from flask import Blueprint, request, jsonify, current_app

from ..permissions import page_actions
from ..services import order_service
from ..services.order_service import OrderError
from ..services.lifecycle_service import LifecycleError
from ..validation import require_fields, parse_int, parse_optional_date, ValidationError
from ..decorators import require_auth, require_capability


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
@require_capability("orders.view")
def list_orders_route(ctx):
    """Query params: status, q (order number or company), limit."""
    orders = order_service.list_orders(
        customer_id=ctx.customer_id,
        status=request.args.get("status"),
        search=request.args.get("q"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify({
        "orders": [o.to_dict() for o in orders],
        "count": len(orders),
        "actions": page_actions(ctx.role, "orders"),
    }), 200


@orders_bp.post("/quote")
@require_auth
@require_capability("orders.create")
def quote_order_route(ctx):
    """Price the order form (review step) without saving anything."""
    data = request.get_json(silent=True) or {}
    try:
        quote = order_service.quote_order(data.get("items"), data.get("shipping_method"))
    except OrderError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    return jsonify({"quote": quote}), 200


@orders_bp.post("")
@require_auth
@require_capability("orders.create")
def create_order_route(ctx):
    """
    Body: items [{product_id, quantity[, unit_price_cents]}], plus
    customer_id and status (staff only), required_date, notes,
    shipping_method, payment_method.
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "items")
        if ctx.is_client:
            customer_id = ctx.customer_id
            status = None
        else:
            require_fields(data, "customer_id")
            customer_id = parse_int(data["customer_id"], "customer_id", minimum=1)
            status = data.get("status")
        required_date = parse_optional_date(data.get("required_date"), "required_date")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        order = order_service.create_order(
            customer_id=customer_id,
            items=data["items"],
            user_id=ctx.user_id,
            allow_price_override=not ctx.is_client,
            status=status,
            required_date=required_date,
            notes=data.get("notes"),
            shipping_method=data.get("shipping_method"),
            payment_method=data.get("payment_method"),
        )
    except OrderError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"order": order.to_dict(include_items=True)}), 201


@orders_bp.get("/<int:order_id>")
@require_auth
@require_capability("orders.view")
def get_order_route(order_id: int, ctx):
    order = order_service.get_order(order_id, customer_id=ctx.customer_id)
    if order is None:
        return jsonify({"error": "Order not found"}), 404

    data = order.to_dict(include_items=True)
    data["customer"] = order.customer.to_dict() if order.customer else None
    data["shipments"] = [s.to_dict() for s in order.shipments]
    data["invoice"] = order.invoice.to_dict() if order.invoice else None
    return jsonify({"order": data, "actions": page_actions(ctx.role, "orders")}), 200


@orders_bp.patch("/<int:order_id>")
@require_auth
@require_capability("orders.manage")
def update_order_route(order_id: int, ctx):
    """Editable: status, required_date, notes, shipping_method, payment_method."""
    data = request.get_json(silent=True) or {}
    allowed = {"status", "required_date", "notes", "shipping_method", "payment_method"}
    unknown = sorted(set(data) - allowed)
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400

    patch = dict(data)
    try:
        if "required_date" in patch:
            patch["required_date"] = parse_optional_date(patch["required_date"], "required_date")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        order = order_service.update_order(order_id, patch, user_id=ctx.user_id)
    except (OrderError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500

    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"order": order.to_dict(include_items=True)}), 200


@orders_bp.patch("/<int:order_id>/items/<int:item_id>")
@require_auth
@require_capability("orders.manage")
def update_order_item_route(order_id: int, item_id: int, ctx):
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return jsonify({"error": "status required"}), 400

    try:
        item = order_service.update_order_item_status(order_id, item_id, data["status"], user_id=ctx.user_id)
    except LifecycleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400

    if item is None:
        return jsonify({"error": "Order item not found"}), 404
    return jsonify({"item": item.to_dict()}), 200
