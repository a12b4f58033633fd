# Overview: Service-layer operations for status lifecycles; validation, status writes and date stamps.

"""
Status lifecycle service.

Every status write goes through ``apply_status``:

- the value must belong to the entity's closed vocabulary (LifecycleError
  otherwise);
- transitions are NOT restricted: any in-vocabulary value may follow any
  other, as operators routinely correct statuses by hand;
- moves backwards along the main path, or out of a terminal state, are
  logged at WARNING so irregular edits stay visible;
- certain statuses stamp a date column the first time they are reached.

Writes are staged on the session only; the caller's unit of work commits.
"""

from __future__ import annotations

from flask import current_app

from ..statuses import STATUS_ENUMS, describe_status, values_of
from ..time_utils import utcnow


class LifecycleError(ValueError):
    """Raised when a status value is outside the entity's vocabulary."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


# (entity, status) -> datetime column stamped on first arrival
DATE_STAMPS: dict[tuple[str, str], str] = {
    ("order", "shipped"): "shipped_date",
    ("order", "delivered"): "delivered_date",
    ("invoice", "paid"): "paid_date",
    ("shipment", "shipped"): "shipped_date",
    ("shipment", "delivered"): "actual_delivery_date",
    ("workflow_step", "completed"): "completed_at",
    ("fulfillment_task", "completed"): "completed_at",
}


def allowed_values(entity: str) -> list[str]:
    enum_cls = STATUS_ENUMS.get(entity)
    if enum_cls is None:
        raise LifecycleError(f"Unknown status entity: {entity}")
    return values_of(enum_cls)


def validate_status(entity: str, value) -> str:
    """
    Return the canonical string for ``value`` or raise LifecycleError.
    """
    allowed = allowed_values(entity)
    text = getattr(value, "value", value)
    if text not in allowed:
        raise LifecycleError(
            f"Invalid {entity.replace('_', ' ')} status '{text}'. Must be one of: {', '.join(allowed)}",
            details={"allowed": allowed},
        )
    return text


def is_irregular_transition(entity: str, old: str | None, new: str) -> bool:
    """Backward along the main path, or leaving a terminal state."""
    if old is None or old == new:
        return False
    before = describe_status(entity, old)
    after = describe_status(entity, new)
    if before.is_terminal:
        return True
    if before.position is not None and after.position is not None:
        return after.position < before.position
    return False


def apply_status(entity: str, record, value, *, field: str = "status", actor_id: int | None = None) -> tuple[str | None, str]:
    """
    Validate and stage a status change on ``record``.

    Returns (old_value, new_value). Does not commit.
    """
    new = validate_status(entity, value)
    old = getattr(record, field)

    if old == new:
        return old, new

    if is_irregular_transition(entity, old, new):
        current_app.logger.warning(
            "Irregular %s status change on id=%s: %s -> %s (actor=%s)",
            entity, getattr(record, "id", None), old, new, actor_id,
        )
    else:
        current_app.logger.info(
            "%s id=%s status %s -> %s (actor=%s)",
            entity, getattr(record, "id", None), old, new, actor_id,
        )

    setattr(record, field, new)

    stamp_field = DATE_STAMPS.get((entity, new))
    if stamp_field and getattr(record, stamp_field, None) is None:
        setattr(record, stamp_field, utcnow())

    return old, new


def status_catalog() -> dict:
    """Every vocabulary with its display metadata, for front-end badge rendering."""
    return {
        entity: [describe_status(entity, v).to_dict() for v in values_of(enum_cls)]
        for entity, enum_cls in STATUS_ENUMS.items()
    }
