# Overview: Flask API routes for user administration; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import User
from ..permissions import ROLES
from ..services import auth_service, session_service, permission_service
from ..services.auth_service import PasswordValidationError, UserError
from ..decorators import require_auth, require_capability


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/users")
@require_auth
@require_capability("users.manage")
def list_users_route(ctx):
    query = db.session.query(User)
    role = request.args.get("role")
    if role:
        query = query.filter(User.role == role)
    users = query.order_by(User.email.asc()).all()
    return jsonify({"users": [u.to_dict() for u in users], "roles": list(ROLES)}), 200


@admin_bp.post("/users")
@require_auth
@require_capability("users.manage")
def create_user_route(ctx):
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        role = data.get("role")

        if not all([email, password, role]):
            return jsonify({"error": "email, password and role required"}), 400

        user = auth_service.create_user(
            email=email,
            password=password,
            role=role,
            full_name=data.get("full_name"),
            customer_id=data.get("customer_id"),
        )
        permission_service.log_security_event(
            user_id=ctx.user_id,
            event_type="USER_CREATED",
            success=True,
            resource=request.path,
            action=f"create:{user.id}",
            reason=f"role={user.role}",
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"user": user.to_dict()}), 201

    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except UserError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/users/<int:user_id>")
@require_auth
@require_capability("users.manage")
def update_user_route(user_id: int, ctx):
    """
    Change role, name, customer link, active flag or password.

    Deactivation and password resets revoke the user's sessions.
    """
    data = request.get_json(silent=True) or {}
    if db.session.get(User, user_id) is None:
        return jsonify({"error": "User not found"}), 404

    try:
        user = auth_service.update_user(
            user_id,
            role=data.get("role"),
            full_name=data.get("full_name"),
            customer_id=data.get("customer_id"),
            is_active=data.get("is_active"),
            password=data.get("password"),
        )
        if data.get("is_active") is False or data.get("password"):
            session_service.revoke_all_user_sessions(user.id, reason="Account updated by administrator")

        permission_service.log_security_event(
            user_id=ctx.user_id,
            event_type="USER_UPDATED",
            success=True,
            resource=request.path,
            action=f"update:{user.id}",
            reason=", ".join(sorted(k for k in data if k != "password")) or None,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"user": user.to_dict()}), 200

    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except UserError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/security-events")
@require_auth
@require_capability("users.manage")
def security_events_route(ctx):
    events = permission_service.list_security_events(
        user_id=request.args.get("user_id", type=int),
        event_type=request.args.get("event_type"),
        limit=request.args.get("limit", default=100, type=int),
    )
    return jsonify({"events": [e.to_dict() for e in events]}), 200
