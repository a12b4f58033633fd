# Overview: Flask API routes for health and status metadata; returns JSON responses.

"""
System health and status vocabulary endpoints.

/health is unauthenticated so load balancers can probe it.
"""

import time
from flask import Blueprint, current_app

from ..extensions import db
from ..models import DocumentSequence, PaymentTerm, SessionToken, ShippingCarrier, User
from ..services.lifecycle_service import status_catalog
from ..decorators import require_auth
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Database connectivity and seed data presence."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        term_count = db.session.query(PaymentTerm).count()
        carrier_count = db.session.query(ShippingCarrier).count()
        sequence_count = db.session.query(DocumentSequence).count()

        elapsed_ms = (time.time() - start_time) * 1000

        details = {
            "users": user_count,
            "payment_terms": term_count,
            "carriers": carrier_count,
            "document_sequences": sequence_count,
        }
        if not term_count or not sequence_count:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": "Reference data missing; run `flask system init`",
                "details": details,
            }
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (still operational)
    - 503: a dependency is unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    session_health = check_session_service_health()

    all_checks = [database_health, session_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "session_service": session_health,
        }
    }, http_status


@system_bp.get("/api/statuses")
@require_auth
def statuses_route(ctx):
    """Label, tier, badge and terminal flag for every status vocabulary."""
    return {"statuses": status_catalog()}
