# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..models import Customer
from ..services import customer_service, order_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_customer,
    ValidationError,
)
from ..decorators import require_auth, require_capability

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "company_name", "contact_name", "email", "phone",
        "address", "city", "state", "zip_code", "notes", "is_active",
    },
    required_on_create={"company_name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_capability("customers.view")
def list_customers_route(ctx):
    """
    Query params:
    - q: matches company, contact or email
    - include_inactive: true to include deactivated customers
    """
    customers = customer_service.list_customers(
        search=request.args.get("q"),
        include_inactive=request.args.get("include_inactive", "").lower() == "true",
    )
    return jsonify({"customers": customers, "count": len(customers)}), 200


@customers_bp.post("")
@require_auth
@require_capability("customers.manage")
def create_customer_route(ctx):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        customer = customer_service.create_customer(patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"customer": customer_service.customer_with_stats(customer)}), 201


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_capability("customers.view")
def get_customer_route(customer_id: int, ctx):
    customer = customer_service.get_customer(customer_id)
    if customer is None:
        return jsonify({"error": "Customer not found"}), 404

    orders = order_service.list_orders(customer_id=customer.id, limit=20)
    return jsonify({
        "customer": customer_service.customer_with_stats(customer),
        "recent_orders": [o.to_dict() for o in orders],
    }), 200


@customers_bp.patch("/<int:customer_id>")
@require_auth
@require_capability("customers.manage")
def update_customer_route(customer_id: int, ctx):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    customer = customer_service.update_customer(customer_id=customer_id, patch=patch)
    if customer is None:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify({"customer": customer_service.customer_with_stats(customer)}), 200
