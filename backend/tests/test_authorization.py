"""
Authorization tests for OrderDesk.

Verifies:
- Unauthenticated requests return 401 with a login redirect
- Roles are denied pages outside their capability set (403 + redirect)
- Client users only ever see their own customer's rows
- Role and deactivation changes apply on the next request
"""

import pytest

from orderdesk.extensions import db
from orderdesk.models import SecurityEvent
from orderdesk.services.auth_service import update_user

from conftest import PASSWORD, auth_headers, headers_for


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/dashboard"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/customers"),
            ("GET", "/api/products"),
            ("GET", "/api/inventory"),
            ("POST", "/api/inventory/adjust"),
            ("GET", "/api/invoices"),
            ("GET", "/api/payments"),
            ("GET", "/api/shipments"),
            ("GET", "/api/fulfillment/tasks"),
            ("GET", "/api/customizations"),
            ("GET", "/api/analytics"),
            ("GET", "/api/admin/users"),
            ("GET", "/api/statuses"),
        ],
    )
    def test_returns_401_with_login_redirect(self, client, method, path):
        resp = client.open(path, method=method)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["redirect"] == "/auth/login"

    def test_garbage_token_rejected(self, client):
        resp = client.get("/api/orders", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401

    def test_health_is_public(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "healthy"


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================


class TestLogin:

    def test_login_returns_token_and_profile(self, client, users):
        resp = client.post("/api/auth/login", json={"email": "ops@orderdesk.test", "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["token"]
        assert body["role"] == "ops"
        assert body["shell"] == "back_office"
        assert "inventory.adjust" in body["capabilities"]

    def test_login_email_is_case_insensitive(self, client, users):
        resp = client.post("/api/auth/login", json={"email": "OPS@OrderDesk.test", "password": PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password_is_logged(self, client, users):
        resp = client.post("/api/auth/login", json={"email": "ops@orderdesk.test", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"
        assert db.session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_missing_fields(self, client):
        resp = client.post("/api/auth/login", json={"email": "ops@orderdesk.test"})
        assert resp.status_code == 400

    def test_logout_revokes_token(self, client, ops_headers):
        assert client.post("/api/auth/logout", headers=ops_headers).status_code == 200
        assert client.get("/api/auth/me", headers=ops_headers).status_code == 401


# =============================================================================
# ROLE DENIALS (403)
# =============================================================================


class TestRoleDenials:
    """Pages outside a role's capability set are refused before the view runs."""

    @pytest.mark.parametrize(
        "role,method,path",
        [
            ("client", "GET", "/api/inventory"),
            ("client", "GET", "/api/customers"),
            ("client", "GET", "/api/analytics"),
            ("client", "GET", "/api/fulfillment/tasks"),
            ("client", "GET", "/api/billing"),
            ("client", "POST", "/api/inventory/adjust"),
            ("client", "POST", "/api/payments"),
            ("sales", "POST", "/api/inventory/adjust"),
            ("sales", "POST", "/api/invoices"),
            ("sales", "GET", "/api/analytics"),
            ("ops", "POST", "/api/orders"),
            ("ops", "GET", "/api/customers"),
            ("ops", "POST", "/api/payments"),
            ("finance", "POST", "/api/shipments"),
            ("finance", "POST", "/api/products"),
            ("finance", "GET", "/api/admin/users"),
        ],
    )
    def test_denied_with_dashboard_redirect(self, client, users, role, method, path):
        resp = client.open(path, method=method, headers=headers_for(users[role]), json={})
        assert resp.status_code == 403, f"{role} {method} {path} returned {resp.status_code}"
        body = resp.get_json()
        assert body["error"] == "Permission denied"
        assert body["redirect"] == "/dashboard"

    def test_denial_is_recorded(self, client, client_headers, users):
        client.get("/api/inventory", headers=client_headers)
        event = db.session.query(SecurityEvent).filter_by(event_type="PERMISSION_DENIED").one()
        assert event.user_id == users["client"].id
        assert event.action == "inventory.view"

    @pytest.mark.parametrize(
        "role,can_write",
        [("sales", False), ("ops", False), ("finance", True), ("admin", True)],
    )
    def test_billing_open_to_staff_with_gated_buttons(self, client, users, role, can_write):
        resp = client.get("/api/billing", headers=headers_for(users[role]))
        assert resp.status_code == 200
        assert resp.get_json()["actions"] == {"create_invoice": can_write, "record_payment": can_write}

    def test_admin_reaches_everything(self, client, admin_headers):
        for path in ("/api/inventory", "/api/customers", "/api/analytics", "/api/admin/users", "/api/billing"):
            assert client.get(path, headers=admin_headers).status_code == 200, path


# =============================================================================
# CLIENT ROW SCOPE
# =============================================================================


class TestClientScope:

    def test_client_lists_only_own_orders(self, client, client_headers, customer, other_customer, mug, make_order):
        mine = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 2}])

        resp = client.get("/api/orders", headers=client_headers)
        assert resp.status_code == 200
        ids = [o["id"] for o in resp.get_json()["orders"]]
        assert ids == [mine.id]

    def test_foreign_order_is_not_found(self, client, client_headers, other_customer, mug, make_order):
        theirs = make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 1}])
        resp = client.get(f"/api/orders/{theirs.id}", headers=client_headers)
        assert resp.status_code == 404

    def test_staff_see_all_orders(self, client, sales_headers, customer, other_customer, mug, make_order):
        make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 1}])
        resp = client.get("/api/orders", headers=sales_headers)
        assert resp.get_json()["count"] == 2


# =============================================================================
# PROFILE CHANGES TAKE EFFECT IMMEDIATELY
# =============================================================================


class TestFreshProfile:

    def test_role_change_applies_next_request(self, client, users, sales_headers):
        assert client.get("/api/inventory", headers=sales_headers).status_code == 403
        update_user(users["sales"].id, role="ops")
        assert client.get("/api/inventory", headers=sales_headers).status_code == 200

    def test_deactivated_user_is_signed_out(self, client, users, ops_headers):
        update_user(users["ops"].id, is_active=False)
        assert client.get("/api/auth/me", headers=ops_headers).status_code == 401


# =============================================================================
# SHELL AND NAVIGATION
# =============================================================================


class TestNavigation:

    def test_client_gets_portal_menu(self, client, client_headers):
        body = client.get("/api/auth/me", headers=client_headers).get_json()
        assert body["shell"] == "portal"
        keys = [item["key"] for item in body["navigation"]]
        assert "place_order" in keys
        assert "inventory" not in keys
        assert body["user"]["customer"]["company_name"] == "Acme Retail"

    def test_finance_menu_has_billing_not_fulfillment(self, client, finance_headers):
        body = client.get("/api/auth/me", headers=finance_headers).get_json()
        keys = [item["key"] for item in body["navigation"]]
        assert "billing" in keys
        assert "fulfillment" not in keys
        assert "users" not in keys
