# Overview: Flask API routes for fulfillment tasks; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..permissions import page_actions
from ..services import fulfillment_service, shipment_service
from ..services.fulfillment_service import FulfillmentError
from ..services.lifecycle_service import LifecycleError
from ..validation import require_fields, parse_int, parse_optional_int, ValidationError
from ..decorators import require_auth, require_capability


fulfillment_bp = Blueprint("fulfillment", __name__, url_prefix="/api/fulfillment")


@fulfillment_bp.get("/tasks")
@require_auth
@require_capability("fulfillment.view")
def list_tasks_route(ctx):
    """Task board: urgent first, counts per status, latest shipments."""
    tasks = fulfillment_service.list_tasks(
        status=request.args.get("status"),
        order_id=request.args.get("order_id", type=int),
    )
    recent = shipment_service.list_shipments(limit=10)
    return jsonify({
        "tasks": [t.to_dict() for t in tasks],
        "counts": fulfillment_service.status_counts(tasks),
        "recent_shipments": [s.to_dict() for s in recent],
        "actions": page_actions(ctx.role, "fulfillment"),
    }), 200


@fulfillment_bp.post("/tasks")
@require_auth
@require_capability("fulfillment.manage")
def create_task_route(ctx):
    data = request.get_json(silent=True) or {}

    try:
        require_fields(data, "order_id", "task_type")
        order_id = parse_int(data["order_id"], "order_id", minimum=1)
        assigned_to = parse_optional_int(data.get("assigned_to"), "assigned_to", minimum=1)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        task = fulfillment_service.create_task(
            order_id=order_id,
            task_type=data["task_type"],
            priority=data.get("priority"),
            assigned_to=assigned_to,
            notes=data.get("notes"),
            user_id=ctx.user_id,
        )
    except (FulfillmentError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create fulfillment task")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"task": task.to_dict()}), 201


@fulfillment_bp.patch("/tasks/<int:task_id>")
@require_auth
@require_capability("fulfillment.manage")
def update_task_route(task_id: int, ctx):
    """Editable: status, priority, assigned_to, notes."""
    data = request.get_json(silent=True) or {}
    unknown = sorted(set(data) - {"status", "priority", "assigned_to", "notes"})
    if unknown:
        return jsonify({"error": f"Field not allowed: {', '.join(unknown)}"}), 400

    patch = dict(data)
    try:
        if "assigned_to" in patch:
            patch["assigned_to"] = parse_optional_int(patch["assigned_to"], "assigned_to", minimum=1)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        task = fulfillment_service.update_task(task_id, patch, user_id=ctx.user_id)
    except (FulfillmentError, LifecycleError) as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update fulfillment task")
        return jsonify({"error": "Internal server error"}), 500

    if task is None:
        return jsonify({"error": "Task not found"}), 404
    return jsonify({"task": task.to_dict()}), 200
