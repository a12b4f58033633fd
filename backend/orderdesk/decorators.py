# Overview: Request and capability decorators for API routes.

from functools import wraps
from flask import request, jsonify

from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


LOGIN_REDIRECT = "/auth/login"
DENIED_REDIRECT = "/dashboard"


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session and hand the view its SessionContext.

    The context is passed as the ``ctx`` keyword argument. The user row is
    reloaded on every request, so role changes apply immediately.

    Returns 401 (with a login redirect hint) if:
    - No Authorization header
    - Invalid, expired, revoked or idle token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "redirect": LOGIN_REDIRECT}), 401

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token", "redirect": LOGIN_REDIRECT}), 401

        kwargs["ctx"] = context
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require a capability of the caller's role; place below @require_auth.

    Denials are logged and answered with 403 before the view body runs.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            ctx = kwargs.get("ctx")
            if ctx is None:
                return jsonify({"error": "Authentication required", "redirect": LOGIN_REDIRECT}), 401

            try:
                permission_service.require_capability(
                    user_id=ctx.user_id,
                    role=ctx.role,
                    capability=capability,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_capability": capability,
                    "message": str(e),
                    "redirect": DENIED_REDIRECT,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_capability(*capabilities):
    """Require at least one of ``capabilities``."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            ctx = kwargs.get("ctx")
            if ctx is None:
                return jsonify({"error": "Authentication required", "redirect": LOGIN_REDIRECT}), 401

            if not any(ctx.can(code) for code in capabilities):
                permission_service.log_security_event(
                    user_id=ctx.user_id,
                    event_type="PERMISSION_DENIED",
                    success=False,
                    resource=request.path,
                    action=f"ANY_OF:{','.join(capabilities)}",
                    reason=f"Missing any of: {', '.join(capabilities)}",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_capabilities": list(capabilities),
                    "message": f"Requires any of: {', '.join(capabilities)}",
                    "redirect": DENIED_REDIRECT,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
