# Overview: Service-layer operations for fulfillment tasks; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import case
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import FulfillmentTask, Order, User
from ..statuses import FulfillmentTaskType, Priority, StepStatus
from .concurrency import run_with_retry
from .lifecycle_service import apply_status, validate_status


class FulfillmentError(Exception):
    """Raised for fulfillment task errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# urgent first
_PRIORITY_RANK = case(
    (FulfillmentTask.priority == Priority.URGENT.value, 0),
    (FulfillmentTask.priority == Priority.HIGH.value, 1),
    (FulfillmentTask.priority == Priority.MEDIUM.value, 2),
    (FulfillmentTask.priority == Priority.LOW.value, 3),
    else_=4,
)


def _check_assignee(user_id) -> None:
    if user_id is None:
        return
    user = db.session.get(User, user_id)
    if user is None or not user.is_active or user.role == "client":
        raise FulfillmentError("Assignee must be an active staff user", details={"assigned_to": user_id})


def create_task(
    *,
    order_id: int,
    task_type: str,
    priority: str | None = None,
    assigned_to: int | None = None,
    notes: str | None = None,
    user_id: int | None = None,
) -> FulfillmentTask:
    types = [t.value for t in FulfillmentTaskType]
    if task_type not in types:
        raise FulfillmentError("Invalid task_type", details={"allowed": types})
    priority = validate_status("priority", priority or Priority.MEDIUM.value)

    def _op():
        if db.session.get(Order, order_id) is None:
            raise FulfillmentError("Order not found", details={"order_id": order_id})
        _check_assignee(assigned_to)
        task = FulfillmentTask(
            order_id=order_id,
            task_type=task_type,
            status=StepStatus.PENDING.value,
            priority=priority,
            assigned_to=assigned_to,
            notes=notes,
            created_by=user_id,
        )
        db.session.add(task)
        db.session.commit()
        return task

    return run_with_retry(_op)


def update_task(task_id: int, patch: dict, *, user_id: int | None = None) -> FulfillmentTask | None:
    def _op():
        task = db.session.get(FulfillmentTask, task_id)
        if task is None:
            return None
        if "status" in patch:
            apply_status("fulfillment_task", task, patch["status"], actor_id=user_id)
        if "priority" in patch:
            task.priority = validate_status("priority", patch["priority"])
        if "assigned_to" in patch:
            _check_assignee(patch["assigned_to"])
            task.assigned_to = patch["assigned_to"]
        if "notes" in patch:
            task.notes = patch["notes"]
        db.session.commit()
        return task

    return run_with_retry(_op)


def list_tasks(*, status: str | None = None, order_id: int | None = None) -> list[FulfillmentTask]:
    """Ordered by priority (urgent first), then oldest first."""
    query = db.session.query(FulfillmentTask).options(joinedload(FulfillmentTask.order))
    if status:
        query = query.filter(FulfillmentTask.status == status)
    if order_id is not None:
        query = query.filter(FulfillmentTask.order_id == order_id)
    return query.order_by(_PRIORITY_RANK, FulfillmentTask.created_at.asc(), FulfillmentTask.id.asc()).all()


def status_counts(tasks: list[FulfillmentTask]) -> dict[str, int]:
    counts = {s.value: 0 for s in StepStatus}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1
    return counts
