# Overview: Flask API routes for the dashboard and analytics views; returns JSON responses.

from flask import Blueprint, jsonify

from ..permissions import navigation_for
from ..services import reporting_service
from ..decorators import require_auth, require_capability


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


@dashboard_bp.get("/dashboard")
@require_auth
@require_capability("dashboard.view")
def dashboard_route(ctx):
    """Headline stats and recent orders; clients see their customer's figures only."""
    data = reporting_service.dashboard_view(customer_id=ctx.customer_id)
    data["user"] = {"full_name": ctx.user.full_name, "email": ctx.user.email, "role": ctx.role}
    data["shell"] = ctx.shell
    data["navigation"] = navigation_for(ctx.role)
    return jsonify(data), 200


@dashboard_bp.get("/analytics")
@require_auth
@require_capability("analytics.view")
def analytics_route(ctx):
    return jsonify(reporting_service.analytics_view()), 200


@dashboard_bp.get("/analytics/monthly-revenue")
@require_auth
@require_capability("analytics.view")
def monthly_revenue_route(ctx):
    """Revenue per YYYY-MM, oldest first; draft and cancelled orders excluded."""
    return jsonify({"months": reporting_service.monthly_revenue()}), 200
