"""
Products, customers and user administration.
"""

import pytest

from orderdesk.extensions import db
from orderdesk.models import InventoryTransaction, SessionToken


class TestProducts:

    def test_create_with_opening_stock(self, client, ops_headers):
        resp = client.post("/api/products", headers=ops_headers, json={
            "sku": "tee-blk-m",
            "name": "T-Shirt Black M",
            "category": "Apparel",
            "base_price_cents": "1599",
            "is_customizable": "true",
            "stock_quantity": 25,
        })
        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["sku"] == "TEE-BLK-M"
        assert product["base_price_cents"] == 1599
        assert product["is_customizable"] is True
        assert product["stock_quantity"] == 25
        assert product["min_stock_level"] == 10
        assert db.session.query(InventoryTransaction).filter_by(product_id=product["id"]).count() == 1

    def test_duplicate_sku_conflicts(self, client, ops_headers, mug):
        resp = client.post("/api/products", headers=ops_headers, json={
            "sku": "mug-001",
            "name": "Another mug",
            "base_price_cents": 100,
        })
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "No SKU", "base_price_cents": 100},
            {"sku": "X-1", "name": "Decimal", "base_price_cents": 10.5},
            {"sku": "X-2", "name": "Negative", "base_price_cents": -1},
            {"sku": "X-3", "name": "Huge", "base_price_cents": 1_000_000_000},
            {"sku": "X-4", "name": "Sneaky", "base_price_cents": 1, "id": 7},
        ],
    )
    def test_invalid_payloads(self, client, ops_headers, payload):
        resp = client.post("/api/products", headers=ops_headers, json=payload)
        assert resp.status_code == 400

    def test_catalog_search_and_filters(self, client, client_headers, mug, pen):
        body = client.get("/api/products?q=mug", headers=client_headers).get_json()
        assert [p["sku"] for p in body["items"]] == ["MUG-001"]
        assert body["categories"] == ["Drinkware", "Stationery"]

        custom = client.get("/api/products?customizable=true", headers=client_headers).get_json()
        assert [p["sku"] for p in custom["items"]] == ["MUG-001"]

    def test_pagination(self, client, client_headers, mug, pen):
        body = client.get("/api/products?page=2&per_page=1", headers=client_headers).get_json()
        assert body["count"] == 1
        assert body["pagination"]["total"] == 2
        assert body["pagination"]["has_prev"] is True
        assert body["pagination"]["has_next"] is False

    def test_inactive_product_hidden_from_clients(self, client, ops_headers, client_headers, pen):
        resp = client.patch(f"/api/products/{pen['id']}", headers=ops_headers, json={"is_active": False})
        assert resp.status_code == 200
        assert client.get(f"/api/products/{pen['id']}", headers=client_headers).status_code == 404
        assert client.get(f"/api/products/{pen['id']}", headers=ops_headers).status_code == 200


class TestCustomers:

    def test_create_and_stats(self, client, sales_headers, mug, make_order):
        resp = client.post("/api/customers", headers=sales_headers, json={
            "company_name": "Gamma Goods",
            "email": "buyer@gamma.test",
        })
        assert resp.status_code == 201
        created = resp.get_json()["customer"]
        assert created["order_count"] == 0

        make_order(created["id"], [{"product_id": mug["id"], "quantity": 2}])
        make_order(created["id"], [{"product_id": mug["id"], "quantity": 1}], status="cancelled")
        detail = client.get(f"/api/customers/{created['id']}", headers=sales_headers).get_json()
        assert detail["customer"]["order_count"] == 1
        assert detail["customer"]["total_spent_cents"] == 2500
        assert len(detail["recent_orders"]) == 2

    def test_company_required(self, client, sales_headers):
        resp = client.post("/api/customers", headers=sales_headers, json={"contact_name": "Nobody"})
        assert resp.status_code == 400

    def test_bad_email(self, client, sales_headers):
        resp = client.post("/api/customers", headers=sales_headers, json={"company_name": "X", "email": "nope"})
        assert resp.status_code == 400

    def test_search(self, client, sales_headers, customer, other_customer):
        body = client.get("/api/customers?q=beta", headers=sales_headers).get_json()
        assert [c["company_name"] for c in body["customers"]] == ["Beta Wholesale"]


class TestUserAdmin:

    def test_admin_creates_client_user(self, client, admin_headers, customer):
        resp = client.post("/api/admin/users", headers=admin_headers, json={
            "email": "new.client@acme.test",
            "password": "Password123!",
            "role": "client",
            "customer_id": customer.id,
        })
        assert resp.status_code == 201
        assert resp.get_json()["user"]["customer_id"] == customer.id

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "a@b.test", "password": "Password123!", "role": "wizard"},
            {"email": "a@b.test", "password": "Password123!", "role": "client"},
            {"email": "a@b.test", "password": "password", "role": "sales"},
            {"email": "sales@orderdesk.test", "password": "Password123!", "role": "sales"},
            {"email": "a@b.test", "role": "sales"},
        ],
    )
    def test_rejected_user_payloads(self, client, admin_headers, payload):
        resp = client.post("/api/admin/users", headers=admin_headers, json=payload)
        assert resp.status_code == 400

    def test_deactivation_revokes_sessions(self, client, admin_headers, users, sales_headers):
        resp = client.patch(f"/api/admin/users/{users['sales'].id}", headers=admin_headers, json={"is_active": False})
        assert resp.status_code == 200
        open_sessions = db.session.query(SessionToken).filter_by(user_id=users["sales"].id, is_revoked=False).count()
        assert open_sessions == 0
        assert client.get("/api/orders", headers=sales_headers).status_code == 401

    def test_unknown_user(self, client, admin_headers):
        resp = client.patch("/api/admin/users/999", headers=admin_headers, json={"full_name": "Ghost"})
        assert resp.status_code == 404

    def test_security_events_listed(self, client, admin_headers, client_headers):
        client.get("/api/inventory", headers=client_headers)
        events = client.get("/api/admin/security-events", headers=admin_headers).get_json()["events"]
        assert any(e["event_type"] == "PERMISSION_DENIED" for e in events)
