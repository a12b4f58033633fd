# Overview: Flask API routes for carriers and shipments; parses input and returns JSON responses.

"""
Shipping routes.

A shipment given a tracking number (on creation or later) is "shipped" and
moves its order to "shipped" in the same commit. Clients may track their
own customer's shipments.
"""

from flask import Blueprint, request, jsonify, current_app

from ..models import Shipment
from ..permissions import page_actions
from ..services import shipment_service
from ..services.shipment_service import ShipmentError
from ..services.lifecycle_service import LifecycleError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    check_price_cents,
    require_fields,
    parse_int,
    ValidationError,
)
from ..decorators import require_auth, require_capability


SHIPMENT_POLICY = ModelValidationPolicy(
    writable_fields={
        "carrier_id", "service_type", "tracking_number", "status",
        "weight_lbs", "length_in", "width_in", "height_in",
        "declared_value_cents", "shipping_cost_cents",
        "estimated_delivery_date", "special_instructions",
    },
)

shipping_bp = Blueprint("shipping", __name__, url_prefix="/api")


def _clean_shipment_fields(payload: dict) -> dict:
    patch = validate_payload(model=Shipment, payload=payload, policy=SHIPMENT_POLICY, partial=True)
    for key in ("declared_value_cents", "shipping_cost_cents"):
        check_price_cents(patch.get(key), key)
    for key in ("weight_lbs", "length_in", "width_in", "height_in"):
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")
    return patch


@shipping_bp.get("/carriers")
@require_auth
@require_capability("shipping.view")
def list_carriers_route(ctx):
    carriers = shipment_service.list_carriers()
    return jsonify({"carriers": [c.to_dict() for c in carriers]}), 200


@shipping_bp.get("/shipments")
@require_auth
@require_capability("shipping.view")
def list_shipments_route(ctx):
    shipments = shipment_service.list_shipments(
        customer_id=ctx.customer_id,
        status=request.args.get("status"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify({
        "shipments": [s.to_dict() for s in shipments],
        "count": len(shipments),
        "actions": page_actions(ctx.role, "shipping"),
    }), 200


@shipping_bp.get("/shipments/eligible-orders")
@require_auth
@require_capability("shipping.manage")
def shipment_eligible_orders_route(ctx):
    """Orders that are confirmed, in production or ready to ship."""
    orders = shipment_service.eligible_orders()
    return jsonify({"orders": [o.to_dict(include_items=True) for o in orders]}), 200


@shipping_bp.post("/shipments")
@require_auth
@require_capability("shipping.manage")
def create_shipment_route(ctx):
    """
    Body: order_id, optional carrier_id, service_type, tracking_number,
    package fields, and items [{order_item_id, quantity}] (default: all lines).
    """
    data = dict(request.get_json(silent=True) or {})

    try:
        require_fields(data, "order_id")
        order_id = parse_int(data.pop("order_id"), "order_id", minimum=1)
        items = data.pop("items", None)
        if items is not None and not isinstance(items, list):
            raise ValidationError("items must be a list")
        if "status" in data:
            raise ValidationError("Field not allowed: status")
        fields = _clean_shipment_fields(data)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        shipment = shipment_service.create_shipment(
            order_id=order_id,
            user_id=ctx.user_id,
            items=items,
            **fields,
        )
    except ShipmentError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create shipment")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"shipment": shipment.to_dict(include_items=True)}), 201


@shipping_bp.get("/shipments/<int:shipment_id>")
@require_auth
@require_capability("shipping.view")
def get_shipment_route(shipment_id: int, ctx):
    shipment = shipment_service.get_shipment(shipment_id, customer_id=ctx.customer_id)
    if shipment is None:
        return jsonify({"error": "Shipment not found"}), 404
    return jsonify({
        "shipment": shipment.to_dict(include_items=True),
        "actions": page_actions(ctx.role, "shipping"),
    }), 200


@shipping_bp.patch("/shipments/<int:shipment_id>")
@require_auth
@require_capability("shipping.manage")
def update_shipment_route(shipment_id: int, ctx):
    payload = request.get_json(silent=True) or {}

    try:
        patch = _clean_shipment_fields(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        shipment = shipment_service.update_shipment(shipment_id, patch, user_id=ctx.user_id)
    except (ShipmentError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update shipment")
        return jsonify({"error": "Internal server error"}), 500

    if shipment is None:
        return jsonify({"error": "Shipment not found"}), 404
    return jsonify({"shipment": shipment.to_dict(include_items=True)}), 200
