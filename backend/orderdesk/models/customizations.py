from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..statuses import badge_for


class CustomizationRequest(db.Model):
    """
    Personalization request against one order line of a customizable product.

    Every request is created together with the fixed four-step workflow
    (see customization_service.WORKFLOW_TEMPLATE).
    """
    __tablename__ = "customization_requests"
    __table_args__ = (
        db.Index("ix_customization_requests_status", "status"),
        db.Index("ix_customization_requests_order_item", "order_item_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False)

    # design, material, size, color, other
    request_type = db.Column(db.String(16), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    # Free-form structured details; plain text input is stored as {"notes": text}
    specifications = db.Column(db.JSON, nullable=True)

    # See statuses.CustomizationStatus / Priority
    status = db.Column(db.String(32), nullable=False, default="pending")
    priority = db.Column(db.String(16), nullable=False, default="medium")

    estimated_cost_cents = db.Column(db.Integer, nullable=True)
    estimated_days = db.Column(db.Integer, nullable=True)

    requested_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reviewed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    review_notes = db.Column(db.Text, nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order_item = db.relationship("OrderItem", backref=db.backref("customization_requests", lazy=True))
    requester = db.relationship("User", foreign_keys=[requested_by])
    assignee = db.relationship("User", foreign_keys=[assigned_to])
    reviewer = db.relationship("User", foreign_keys=[reviewed_by])
    steps = db.relationship(
        "WorkflowStep",
        backref="request",
        lazy=True,
        order_by="WorkflowStep.step_order",
        cascade="all, delete-orphan",
    )
    comments = db.relationship(
        "CustomizationComment",
        backref="request",
        lazy=True,
        order_by="CustomizationComment.created_at",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        item = self.order_item
        order = item.order if item else None
        return {
            "id": self.id,
            "order_item_id": self.order_item_id,
            "order_id": order.id if order else None,
            "order_number": order.order_number if order else None,
            "customer_name": order.customer.company_name if order and order.customer else None,
            "product_name": item.product.name if item and item.product else None,
            "request_type": self.request_type,
            "title": self.title,
            "description": self.description,
            "specifications": self.specifications,
            "status": self.status,
            "status_badge": badge_for("customization", self.status),
            "priority": self.priority,
            "priority_badge": badge_for("priority", self.priority),
            "estimated_cost_cents": self.estimated_cost_cents,
            "estimated_days": self.estimated_days,
            "requested_by": self.requested_by,
            "requested_by_name": self.requester.full_name if self.requester else None,
            "assigned_to": self.assigned_to,
            "assigned_to_name": self.assignee.full_name if self.assignee else None,
            "reviewed_by": self.reviewed_by,
            "reviewed_by_name": self.reviewer.full_name if self.reviewer else None,
            "review_notes": self.review_notes,
            "reviewed_at": to_utc_z(self.reviewed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class WorkflowStep(db.Model):
    __tablename__ = "workflow_steps"
    __table_args__ = (
        db.UniqueConstraint("customization_request_id", "step_order", name="uq_workflow_steps_request_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customization_request_id = db.Column(
        db.Integer, db.ForeignKey("customization_requests.id"), nullable=False, index=True
    )

    step_name = db.Column(db.String(128), nullable=False)
    step_order = db.Column(db.Integer, nullable=False)

    # See statuses.StepStatus
    status = db.Column(db.String(16), nullable=False, default="pending")

    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    estimated_hours = db.Column(db.Float, nullable=True)
    actual_hours = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    assignee = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customization_request_id": self.customization_request_id,
            "step_name": self.step_name,
            "step_order": self.step_order,
            "status": self.status,
            "status_badge": badge_for("workflow_step", self.status),
            "assigned_to": self.assigned_to,
            "assigned_to_name": self.assignee.full_name if self.assignee else None,
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "notes": self.notes,
            "completed_at": to_utc_z(self.completed_at),
        }


class CustomizationComment(db.Model):
    """Discussion thread entry; internal comments are hidden from clients."""
    __tablename__ = "customization_comments"
    __table_args__ = (
        db.Index("ix_customization_comments_request", "customization_request_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customization_request_id = db.Column(
        db.Integer, db.ForeignKey("customization_requests.id"), nullable=False
    )
    author_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    content = db.Column(db.Text, nullable=False)
    is_internal = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    author = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customization_request_id": self.customization_request_id,
            "author_id": self.author_id,
            "author_name": self.author.full_name if self.author else None,
            "content": self.content,
            "is_internal": self.is_internal,
            "created_at": to_utc_z(self.created_at),
        }
