# Overview: Service-layer operations for capability checks and security event logging.

"""
Capability Checking and Security Event Logging

Fail closed: a role only holds what ROLE_CAPABILITIES grants it. Denials are
written to security_events; grants are not logged.
"""

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SecurityEvent
from ..permissions import capabilities_for
from ..time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when the caller's role lacks a required capability."""
    def __init__(self, message: str, capability: str | None = None):
        super().__init__(message)
        self.capability = capability


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Append to the security audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_SUCCESS / LOGIN_FAILED
    - LOGOUT
    - USER_CREATED / USER_UPDATED
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:512] or None,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def user_has_capability(role: str | None, capability: str) -> bool:
    return capability in capabilities_for(role)


def require_capability(
    user_id: int,
    role: str | None,
    capability: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Raise PermissionDeniedError (after logging the denial) unless the role
    holds ``capability``.
    """
    if user_has_capability(role, capability):
        return

    current_app.logger.warning(
        "Permission denied: user=%s role=%s capability=%s resource=%s",
        user_id, role, capability, resource,
    )
    log_security_event(
        user_id=user_id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=capability,
        reason=f"Role '{role}' lacks capability: {capability}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise PermissionDeniedError(f"Permission denied: {capability}", capability=capability)


def list_security_events(
    *,
    user_id: int | None = None,
    event_type: str | None = None,
    limit: int = 100,
) -> list[SecurityEvent]:
    query = db.session.query(SecurityEvent)
    if user_id is not None:
        query = query.filter(SecurityEvent.user_id == user_id)
    if event_type:
        query = query.filter(SecurityEvent.event_type == event_type)
    limit = max(1, min(limit, 500))
    return query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).limit(limit).all()


def cleanup_security_events(retention_days: int = 90) -> int:
    """Delete security events older than the retention window."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
