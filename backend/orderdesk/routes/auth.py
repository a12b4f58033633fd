# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes.

Accounts are created by administrators (POST /api/admin/users or
`flask users create`); there is no self-registration.
"""

from flask import Blueprint, request, jsonify, current_app

from ..permissions import capabilities_for, describe_capabilities, navigation_for
from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def profile_payload(ctx) -> dict:
    """Who the caller is and what the front end should render for them."""
    user = ctx.user
    data = user.to_dict()
    data["customer"] = user.customer.to_dict() if ctx.is_client and user.customer else None
    return {
        "user": data,
        "role": ctx.role,
        "shell": ctx.shell,
        "capabilities": sorted(ctx.capabilities),
        "capability_groups": describe_capabilities(ctx.capabilities),
        "navigation": navigation_for(ctx.role),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token must be sent as ``Authorization: Bearer <token>``.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        user = auth_service.authenticate(email, password)

        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                action="login",
                reason=f"Invalid credentials for {str(email)[:255]}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        permission_service.log_security_event(
            user_id=user.id,
            event_type="LOGIN_SUCCESS",
            success=True,
            resource=request.path,
            action="login",
            ip_address=ip_address,
            user_agent=user_agent,
        )

        ctx = session_service.SessionContext(
            user=user,
            session=session,
            capabilities=capabilities_for(user.role),
        )
        payload = profile_payload(ctx)
        payload.update({
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        })
        return jsonify(payload), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route(ctx):
    session_service.revoke_session(bearer_token(), reason="User logout")
    permission_service.log_security_event(
        user_id=ctx.user_id,
        event_type="LOGOUT",
        success=True,
        resource=request.path,
        action="logout",
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return jsonify({"message": "Logged out", "redirect": "/auth/login"}), 200


@auth_bp.get("/me")
@require_auth
def me_route(ctx):
    return jsonify(profile_payload(ctx)), 200
