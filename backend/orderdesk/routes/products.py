# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Catalog routes.

Reads require products.view (clients browse the catalog to place orders);
writes require products.manage.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import products_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    parse_optional_int,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_capability

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "category", "base_price_cents",
        "min_stock_level", "is_customizable", "is_active",
    },
    required_on_create={"sku", "name", "base_price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_capability("products.view")
def list_products_route(ctx):
    """
    Query params:
    - q: search name or SKU
    - category: exact category
    - customizable: true for customizable products only
    - include_inactive: staff only
    - page, per_page: optional pagination
    """
    include_inactive = (
        request.args.get("include_inactive", "").lower() == "true"
        and ctx.can("products.manage")
    )
    result = products_service.list_products(
        search=request.args.get("q"),
        category=request.args.get("category"),
        include_inactive=include_inactive,
        customizable_only=request.args.get("customizable", "").lower() == "true",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    result["categories"] = products_service.list_categories()
    return jsonify(result), 200


@products_bp.post("")
@require_auth
@require_capability("products.manage")
def create_product_route(ctx):
    """
    Create a product; optional ``stock_quantity`` books the opening stock.
    """
    payload = dict(request.get_json(silent=True) or {})

    try:
        initial_stock = parse_optional_int(payload.pop("stock_quantity", None), "stock_quantity", minimum=0) or 0
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = products_service.create_product(patch=patch, initial_stock=initial_stock, user_id=ctx.user_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": created}), 201


@products_bp.get("/<int:product_id>")
@require_auth
@require_capability("products.view")
def get_product_route(product_id: int, ctx):
    product = products_service.get_product(product_id)
    if product is None or (not product.is_active and not ctx.can("products.manage")):
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": products_service.product_detail(product)}), 200


@products_bp.patch("/<int:product_id>")
@require_auth
@require_capability("products.manage")
def update_product_route(product_id: int, ctx):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if updated is None:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"product": updated}), 200
