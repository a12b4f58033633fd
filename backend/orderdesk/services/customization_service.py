# Overview: Service-layer operations for customization requests; workflow steps, review and comments.

"""
Customization requests.

A request personalizes one order line whose product is customizable. It is
created together with the fixed review workflow (WORKFLOW_TEMPLATE) in a
single commit, whatever its type or priority.

Comments may be internal; internal comments are only written and read by
users holding ``customizations.comment_internal`` and never reach a client.
"""

from __future__ import annotations

import json

from flask import current_app
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import CustomizationComment, CustomizationRequest, Order, OrderItem, Product, User, WorkflowStep
from ..statuses import CustomizationStatus, CustomizationType, OrderItemStatus, Priority
from ..time_utils import utcnow
from ..validation import parse_optional_int
from .concurrency import run_with_retry
from .lifecycle_service import apply_status, validate_status


# (step_name, step_order)
WORKFLOW_TEMPLATE = (
    ("Initial Review", 1),
    ("Design Phase", 2),
    ("Approval", 3),
    ("Production Setup", 4),
)

# Reaching one of these records who reviewed the request and when
REVIEW_OUTCOMES = (
    CustomizationStatus.APPROVED.value,
    CustomizationStatus.REJECTED.value,
    CustomizationStatus.REVISION_NEEDED.value,
)


class CustomizationError(Exception):
    """Raised for customization workflow errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _text(value, field: str) -> str | None:
    """Stripped text, None for missing/blank; non-strings are rejected."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise CustomizationError(f"{field} must be text", details={"field": field})
    return value.strip() or None


def _scoped_items(customer_id: int | None):
    query = (
        db.session.query(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
    )
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)
    return query


def eligible_items(customer_id: int | None = None) -> list[OrderItem]:
    """Pending lines of customizable products, newest order first."""
    return (
        _scoped_items(customer_id)
        .options(joinedload(OrderItem.order).joinedload(Order.customer), joinedload(OrderItem.product))
        .filter(
            Product.is_customizable.is_(True),
            OrderItem.status == OrderItemStatus.PENDING.value,
        )
        .order_by(Order.created_at.desc(), OrderItem.id.asc())
        .all()
    )


def parse_specifications(raw) -> dict | None:
    """Dict as-is, JSON object text decoded, any other text kept as notes."""
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    text = str(raw).strip()
    if not text:
        return None
    try:
        decoded = json.loads(text)
    except ValueError:
        return {"notes": text}
    return decoded if isinstance(decoded, dict) else {"notes": text}


def create_request(
    *,
    order_item_id: int,
    request_type: str,
    title: str,
    description: str,
    user_id: int | None,
    customer_id: int | None = None,
    priority: str | None = None,
    specifications=None,
    estimated_cost_cents=None,
    estimated_days=None,
) -> CustomizationRequest:
    """
    Insert the request and its four workflow steps in one commit.

    ``customer_id`` scopes the order line lookup for client users.
    """
    types = [t.value for t in CustomizationType]
    if request_type not in types:
        raise CustomizationError("Invalid request_type", details={"allowed": types})
    title = _text(title, "title")
    description = _text(description, "description")
    if not title or not description:
        raise CustomizationError("title and description are required")
    priority = validate_status("priority", priority or Priority.MEDIUM.value)
    cost = parse_optional_int(estimated_cost_cents, "estimated_cost_cents", minimum=0)
    days = parse_optional_int(estimated_days, "estimated_days", minimum=0)
    specs = parse_specifications(specifications)

    def _op() -> CustomizationRequest:
        item = _scoped_items(customer_id).filter(OrderItem.id == order_item_id).first()
        if item is None:
            raise CustomizationError("Order item not found", details={"order_item_id": order_item_id})
        if not item.product.is_customizable:
            raise CustomizationError(
                "Product is not customizable",
                details={"product_id": item.product_id},
            )

        request = CustomizationRequest(
            order_item_id=item.id,
            request_type=request_type,
            title=title,
            description=description,
            specifications=specs,
            status=CustomizationStatus.PENDING.value,
            priority=priority,
            estimated_cost_cents=cost,
            estimated_days=days,
            requested_by=user_id,
        )
        db.session.add(request)
        db.session.flush()

        for step_name, step_order in WORKFLOW_TEMPLATE:
            db.session.add(WorkflowStep(
                customization_request_id=request.id,
                step_name=step_name,
                step_order=step_order,
                status="pending",
            ))

        db.session.commit()
        return request

    request = run_with_retry(_op)
    current_app.logger.info(
        "Created customization request %s on order item %s by user %s",
        request.id, order_item_id, user_id,
    )
    return request


def scoped_request_query(customer_id: int | None = None):
    query = db.session.query(CustomizationRequest).options(
        joinedload(CustomizationRequest.order_item).joinedload(OrderItem.order).joinedload(Order.customer),
        joinedload(CustomizationRequest.order_item).joinedload(OrderItem.product),
    )
    if customer_id is not None:
        query = (
            query.join(OrderItem, OrderItem.id == CustomizationRequest.order_item_id)
            .join(Order, Order.id == OrderItem.order_id)
            .filter(Order.customer_id == customer_id)
        )
    return query


def list_requests(
    *,
    customer_id: int | None = None,
    status: str | None = None,
    priority: str | None = None,
) -> list[CustomizationRequest]:
    query = scoped_request_query(customer_id)
    if status:
        query = query.filter(CustomizationRequest.status == status)
    if priority:
        query = query.filter(CustomizationRequest.priority == priority)
    return query.order_by(CustomizationRequest.created_at.desc(), CustomizationRequest.id.desc()).all()


def get_request(request_id: int, customer_id: int | None = None) -> CustomizationRequest | None:
    return scoped_request_query(customer_id).filter(CustomizationRequest.id == request_id).first()


def _check_assignee(user_id) -> None:
    if user_id is None:
        return
    user = db.session.get(User, user_id)
    if user is None or not user.is_active or user.role == "client":
        raise CustomizationError("Assignee must be an active staff user", details={"assigned_to": user_id})


def update_request(request_id: int, patch: dict, *, user_id: int | None = None) -> CustomizationRequest | None:
    """Review edit: status, priority, assignee, review notes, estimates."""
    def _op():
        request = db.session.get(CustomizationRequest, request_id)
        if request is None:
            return None

        if "status" in patch:
            old, new = apply_status("customization", request, patch["status"], actor_id=user_id)
            if new in REVIEW_OUTCOMES and old != new:
                request.reviewed_by = user_id
                request.reviewed_at = utcnow()
        if "priority" in patch:
            request.priority = validate_status("priority", patch["priority"])
        if "assigned_to" in patch:
            _check_assignee(patch["assigned_to"])
            request.assigned_to = patch["assigned_to"]
        if "review_notes" in patch:
            request.review_notes = _text(patch["review_notes"], "review_notes")
        if "estimated_cost_cents" in patch:
            request.estimated_cost_cents = parse_optional_int(
                patch["estimated_cost_cents"], "estimated_cost_cents", minimum=0
            )
        if "estimated_days" in patch:
            request.estimated_days = parse_optional_int(patch["estimated_days"], "estimated_days", minimum=0)

        db.session.commit()
        return request

    return run_with_retry(_op)


def update_step(request_id: int, step_id: int, patch: dict, *, user_id: int | None = None) -> WorkflowStep | None:
    def _op():
        step = (
            db.session.query(WorkflowStep)
            .filter_by(id=step_id, customization_request_id=request_id)
            .first()
        )
        if step is None:
            return None

        if "status" in patch:
            apply_status("workflow_step", step, patch["status"], actor_id=user_id)
        if "assigned_to" in patch:
            _check_assignee(patch["assigned_to"])
            step.assigned_to = patch["assigned_to"]
        for key in ("estimated_hours", "actual_hours"):
            if key in patch:
                value = patch[key]
                if value is not None:
                    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                        raise CustomizationError(f"{key} must be a non-negative number")
                    value = float(value)
                setattr(step, key, value)
        if "notes" in patch:
            step.notes = _text(patch["notes"], "notes")

        db.session.commit()
        return step

    return run_with_retry(_op)


def visible_comments(request: CustomizationRequest, *, include_internal: bool) -> list[CustomizationComment]:
    return [c for c in request.comments if include_internal or not c.is_internal]


def add_comment(
    request_id: int,
    *,
    content: str,
    user_id: int | None,
    is_internal: bool = False,
    can_comment_internal: bool = False,
) -> CustomizationComment:
    text = _text(content, "content")
    if not text:
        raise CustomizationError("content is required")
    if is_internal and not can_comment_internal:
        raise CustomizationError("Not allowed to post internal comments")

    def _op():
        comment = CustomizationComment(
            customization_request_id=request_id,
            author_id=user_id,
            content=text,
            is_internal=bool(is_internal),
        )
        db.session.add(comment)
        db.session.commit()
        return comment

    return run_with_retry(_op)
