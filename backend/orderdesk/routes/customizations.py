# Overview: Flask API routes for customization requests; parses input and returns JSON responses.

"""
Customization routes.

Clients create and follow requests on their own order lines and can only
see public comments. Review edits (status, priority, assignee, workflow
steps) require customizations.review.
"""

from flask import Blueprint, request, jsonify, current_app

from ..permissions import page_actions
from ..services import customization_service
from ..services.customization_service import CustomizationError
from ..services.lifecycle_service import LifecycleError
from ..validation import require_fields, parse_int, parse_optional_int, ValidationError
from ..decorators import require_auth, require_capability


customizations_bp = Blueprint("customizations", __name__, url_prefix="/api/customizations")

INTERNAL_COMMENTS = "customizations.comment_internal"


def _detail(request_row, ctx) -> dict:
    data = request_row.to_dict()
    data["steps"] = [s.to_dict() for s in request_row.steps]
    data["comments"] = [
        c.to_dict()
        for c in customization_service.visible_comments(request_row, include_internal=ctx.can(INTERNAL_COMMENTS))
    ]
    return data


@customizations_bp.get("")
@require_auth
@require_capability("customizations.view")
def list_requests_route(ctx):
    rows = customization_service.list_requests(
        customer_id=ctx.customer_id,
        status=request.args.get("status"),
        priority=request.args.get("priority"),
    )
    return jsonify({
        "requests": [r.to_dict() for r in rows],
        "count": len(rows),
        "actions": page_actions(ctx.role, "customizations"),
    }), 200


@customizations_bp.get("/eligible-items")
@require_auth
@require_capability("customizations.create")
def eligible_items_route(ctx):
    """Pending order lines of customizable products the caller may personalize."""
    items = customization_service.eligible_items(customer_id=ctx.customer_id)
    return jsonify({
        "items": [
            dict(item.to_dict(), order_number=item.order.order_number,
                 customer_name=item.order.customer.company_name if item.order.customer else None)
            for item in items
        ],
    }), 200


@customizations_bp.post("")
@require_auth
@require_capability("customizations.create")
def create_request_route(ctx):
    """
    Body: order_item_id, request_type, title, description, optional
    priority, specifications (object or text), estimated_cost_cents,
    estimated_days.
    """
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "order_item_id", "request_type", "title", "description")
        order_item_id = parse_int(data["order_item_id"], "order_item_id", minimum=1)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        row = customization_service.create_request(
            order_item_id=order_item_id,
            request_type=data["request_type"],
            title=data["title"],
            description=data["description"],
            user_id=ctx.user_id,
            customer_id=ctx.customer_id,
            priority=data.get("priority"),
            specifications=data.get("specifications"),
            estimated_cost_cents=data.get("estimated_cost_cents"),
            estimated_days=data.get("estimated_days"),
        )
    except (CustomizationError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create customization request")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"request": _detail(row, ctx)}), 201


@customizations_bp.get("/<int:request_id>")
@require_auth
@require_capability("customizations.view")
def get_request_route(request_id: int, ctx):
    row = customization_service.get_request(request_id, customer_id=ctx.customer_id)
    if row is None:
        return jsonify({"error": "Customization request not found"}), 404
    return jsonify({"request": _detail(row, ctx), "actions": page_actions(ctx.role, "customizations")}), 200


@customizations_bp.patch("/<int:request_id>")
@require_auth
@require_capability("customizations.review")
def update_request_route(request_id: int, ctx):
    """Editable: status, priority, assigned_to, review_notes, estimates."""
    data = request.get_json(silent=True) or {}
    allowed = {"status", "priority", "assigned_to", "review_notes", "estimated_cost_cents", "estimated_days"}
    unknown = sorted(set(data) - allowed)
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400

    patch = dict(data)
    try:
        if "assigned_to" in patch:
            patch["assigned_to"] = parse_optional_int(patch["assigned_to"], "assigned_to", minimum=1)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        row = customization_service.update_request(request_id, patch, user_id=ctx.user_id)
    except (CustomizationError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update customization request")
        return jsonify({"error": "Internal server error"}), 500

    if row is None:
        return jsonify({"error": "Customization request not found"}), 404
    return jsonify({"request": _detail(row, ctx)}), 200


@customizations_bp.patch("/<int:request_id>/steps/<int:step_id>")
@require_auth
@require_capability("customizations.review")
def update_step_route(request_id: int, step_id: int, ctx):
    """Editable: status, assigned_to, estimated_hours, actual_hours, notes."""
    data = request.get_json(silent=True) or {}
    allowed = {"status", "assigned_to", "estimated_hours", "actual_hours", "notes"}
    unknown = sorted(set(data) - allowed)
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400

    patch = dict(data)
    try:
        if "assigned_to" in patch:
            patch["assigned_to"] = parse_optional_int(patch["assigned_to"], "assigned_to", minimum=1)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        step = customization_service.update_step(request_id, step_id, patch, user_id=ctx.user_id)
    except (CustomizationError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update workflow step")
        return jsonify({"error": "Internal server error"}), 500

    if step is None:
        return jsonify({"error": "Workflow step not found"}), 404
    return jsonify({"step": step.to_dict()}), 200


@customizations_bp.post("/<int:request_id>/comments")
@require_auth
@require_capability("customizations.view")
def add_comment_route(request_id: int, ctx):
    """Body: content, is_internal (staff with comment_internal only)."""
    data = request.get_json(silent=True) or {}

    row = customization_service.get_request(request_id, customer_id=ctx.customer_id)
    if row is None:
        return jsonify({"error": "Customization request not found"}), 404

    try:
        comment = customization_service.add_comment(
            row.id,
            content=data.get("content"),
            user_id=ctx.user_id,
            is_internal=bool(data.get("is_internal")),
            can_comment_internal=ctx.can(INTERNAL_COMMENTS),
        )
    except CustomizationError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to add comment")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"comment": comment.to_dict()}), 201
