# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

"""
Inventory routes.

Stock is read from the transaction ledger; every adjustment appends one
ledger row. GET requires inventory.view, POST requires inventory.adjust.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import inventory_service, products_service
from ..services.inventory_service import InventoryError
from ..statuses import InventoryTransactionType
from ..validation import require_fields, parse_int, parse_choice, ValidationError
from ..decorators import require_auth, require_capability
from ..services import reporting_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_capability("inventory.view")
def inventory_overview_route(ctx):
    """Stock table, low-stock alerts and the most recent movements."""
    rows = inventory_service.stock_rows()
    low = inventory_service.low_stock_rows(rows)
    recent = inventory_service.list_transactions()
    return jsonify({
        "products": [p.to_dict(on_hand=on_hand) for p, on_hand in rows],
        "summary": reporting_service.summarize_inventory(rows),
        "low_stock": [p.to_dict(on_hand=on_hand) for p, on_hand in low],
        "recent_transactions": [tx.to_dict() for tx in recent],
    }), 200


@inventory_bp.post("/adjust")
@require_auth
@require_capability("inventory.adjust")
def adjust_inventory_route(ctx):
    """
    Body: product_id, transaction_type (in/out/adjustment), quantity, notes.

    For "adjustment" the quantity is the new level on hand.
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "product_id", "transaction_type", "quantity")
        product_id = parse_int(data["product_id"], "product_id", minimum=1)
        transaction_type = parse_choice(data["transaction_type"], "transaction_type", InventoryTransactionType)
        quantity = parse_int(data["quantity"], "quantity", minimum=0)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if products_service.get_product(product_id) is None:
        return jsonify({"error": "Product not found"}), 404

    try:
        tx, level = inventory_service.adjust_inventory(
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            notes=data.get("notes"),
            user_id=ctx.user_id,
        )
    except InventoryError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to adjust inventory")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"transaction": tx.to_dict(), "quantity_on_hand": level}), 201


@inventory_bp.get("/products/<int:product_id>/transactions")
@require_auth
@require_capability("inventory.view")
def product_transactions_route(product_id: int, ctx):
    product = products_service.get_product(product_id)
    if product is None:
        return jsonify({"error": "Product not found"}), 404

    transactions = inventory_service.list_transactions(
        product_id=product_id,
        limit=request.args.get("limit", type=int),
    )
    return jsonify({
        "product": products_service.product_detail(product),
        "transactions": [tx.to_dict() for tx in transactions],
    }), 200
