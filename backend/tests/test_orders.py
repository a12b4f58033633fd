"""
Order entry tests.

Covers the shared staff/client order form, quoting, line pricing and the
all-or-nothing write of an order with its lines.
"""

import pytest

from orderdesk.extensions import db
from orderdesk.models import Order, OrderItem
from orderdesk.services import order_service
from orderdesk.services.order_service import OrderError


class TestStaffOrderForm:

    def test_total_is_sum_of_lines(self, client, sales_headers, customer, mug, pen):
        resp = client.post("/api/orders", headers=sales_headers, json={
            "customer_id": customer.id,
            "items": [
                {"product_id": mug["id"], "quantity": 3},
                {"product_id": pen["id"], "quantity": 10, "unit_price_cents": 150},
            ],
        })
        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["status"] == "pending"
        assert order["order_number"].startswith("ORD-")
        assert [i["total_price_cents"] for i in order["items"]] == [3750, 1500]
        assert order["total_amount_cents"] == 5250

    def test_staff_may_save_draft(self, client, sales_headers, customer, mug):
        resp = client.post("/api/orders", headers=sales_headers, json={
            "customer_id": customer.id,
            "status": "draft",
            "items": [{"product_id": mug["id"], "quantity": 1}],
        })
        assert resp.status_code == 201
        assert resp.get_json()["order"]["status"] == "draft"

    def test_cannot_start_confirmed(self, client, sales_headers, customer, mug):
        resp = client.post("/api/orders", headers=sales_headers, json={
            "customer_id": customer.id,
            "status": "confirmed",
            "items": [{"product_id": mug["id"], "quantity": 1}],
        })
        assert resp.status_code == 400

    def test_customer_required_for_staff(self, client, sales_headers, mug):
        resp = client.post("/api/orders", headers=sales_headers, json={
            "items": [{"product_id": mug["id"], "quantity": 1}],
        })
        assert resp.status_code == 400
        assert "customer_id" in resp.get_json()["error"]

    def test_order_numbers_are_sequential(self, client, sales_headers, customer, mug):
        numbers = []
        for _ in range(3):
            resp = client.post("/api/orders", headers=sales_headers, json={
                "customer_id": customer.id,
                "items": [{"product_id": mug["id"], "quantity": 1}],
            })
            numbers.append(resp.get_json()["order"]["order_number"])
        assert len(set(numbers)) == 3
        assert numbers == sorted(numbers)

    def test_placing_order_does_not_move_stock(self, client, sales_headers, customer, mug):
        client.post("/api/orders", headers=sales_headers, json={
            "customer_id": customer.id,
            "items": [{"product_id": mug["id"], "quantity": 5}],
        })
        resp = client.get(f"/api/products/{mug['id']}", headers=sales_headers)
        assert resp.get_json()["product"]["stock_quantity"] == 50


class TestAtomicOrderWrite:

    @pytest.mark.parametrize(
        "bad_line",
        [
            {"product_id": 99999, "quantity": 1},
            {"product_id": "abc", "quantity": 1},
            {"quantity": 1},
            {"product_id": None, "quantity": 0},
            "not-an-object",
        ],
    )
    def test_bad_line_leaves_no_order(self, app, customer, users, mug, bad_line):
        with pytest.raises(OrderError):
            order_service.create_order(
                customer_id=customer.id,
                items=[{"product_id": mug["id"], "quantity": 2}, bad_line],
                user_id=users["sales"].id,
            )
        assert db.session.query(Order).count() == 0
        assert db.session.query(OrderItem).count() == 0

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5, 2_000_000])
    def test_rejects_bad_quantity(self, app, customer, users, mug, quantity):
        with pytest.raises(OrderError):
            order_service.create_order(
                customer_id=customer.id,
                items=[{"product_id": mug["id"], "quantity": quantity}],
                user_id=users["sales"].id,
            )

    def test_empty_items(self, app, customer, users):
        with pytest.raises(OrderError):
            order_service.create_order(customer_id=customer.id, items=[], user_id=users["sales"].id)

    def test_inactive_customer(self, app, customer, users, mug):
        customer.is_active = False
        db.session.commit()
        with pytest.raises(OrderError, match="Customer not found"):
            order_service.create_order(
                customer_id=customer.id,
                items=[{"product_id": mug["id"], "quantity": 1}],
                user_id=users["sales"].id,
            )


class TestClientOrderForm:

    def test_client_order_uses_own_customer_and_catalog_price(
        self, client, client_headers, customer, other_customer, mug
    ):
        resp = client.post("/api/orders", headers=client_headers, json={
            "customer_id": other_customer.id,
            "status": "draft",
            "items": [{"product_id": mug["id"], "quantity": 2, "unit_price_cents": 1}],
        })
        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["customer_id"] == customer.id
        assert order["status"] == "pending"
        assert order["items"][0]["unit_price_cents"] == 1250
        assert order["total_amount_cents"] == 2500

    def test_client_cannot_edit_order(self, client, client_headers, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}], status="pending")
        resp = client.patch(f"/api/orders/{order.id}", headers=client_headers, json={"status": "cancelled"})
        assert resp.status_code == 403


class TestQuote:

    @pytest.mark.parametrize("method,fee", [("standard", 800), ("express", 1500), (None, 800)])
    def test_shipping_fee_by_method(self, client, client_headers, mug, method, fee):
        resp = client.post("/api/orders/quote", headers=client_headers, json={
            "items": [{"product_id": mug["id"], "quantity": 4}],
            "shipping_method": method,
        })
        assert resp.status_code == 200
        quote = resp.get_json()["quote"]
        assert quote["subtotal_cents"] == 5000
        assert quote["shipping_fee_cents"] == fee
        assert quote["estimated_total_cents"] == 5000 + fee

    def test_quote_writes_nothing(self, client, client_headers, mug):
        client.post("/api/orders/quote", headers=client_headers, json={
            "items": [{"product_id": mug["id"], "quantity": 1}],
        })
        assert db.session.query(Order).count() == 0

    def test_unknown_shipping_method(self, client, client_headers, mug):
        resp = client.post("/api/orders/quote", headers=client_headers, json={
            "items": [{"product_id": mug["id"], "quantity": 1}],
            "shipping_method": "teleport",
        })
        assert resp.status_code == 400


class TestOrderEdits:

    def test_status_change_stamps_shipped_date(self, client, sales_headers, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        resp = client.patch(f"/api/orders/{order.id}", headers=sales_headers, json={"status": "shipped"})
        assert resp.status_code == 200
        body = resp.get_json()["order"]
        assert body["status"] == "shipped"
        assert body["shipped_date"] is not None

    def test_unknown_status_rejected(self, client, sales_headers, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        resp = client.patch(f"/api/orders/{order.id}", headers=sales_headers, json={"status": "teleported"})
        assert resp.status_code == 400
        assert "draft" in resp.get_json()["details"]["allowed"]

    def test_backward_transition_is_allowed(self, client, sales_headers, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}], status="delivered")
        resp = client.patch(f"/api/orders/{order.id}", headers=sales_headers, json={"status": "pending"})
        assert resp.status_code == 200
        assert resp.get_json()["order"]["status"] == "pending"

    def test_unknown_field_rejected(self, client, sales_headers, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        resp = client.patch(f"/api/orders/{order.id}", headers=sales_headers, json={"total_amount_cents": 1})
        assert resp.status_code == 400

    def test_item_status(self, client, sales_headers, customer, mug, make_order):
        order = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        item_id = order.items[0].id
        resp = client.patch(
            f"/api/orders/{order.id}/items/{item_id}",
            headers=sales_headers,
            json={"status": "in_production"},
        )
        assert resp.status_code == 200
        assert resp.get_json()["item"]["status"] == "in_production"

    def test_missing_order(self, client, sales_headers):
        resp = client.patch("/api/orders/999", headers=sales_headers, json={"notes": "x"})
        assert resp.status_code == 404
