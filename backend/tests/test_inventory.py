"""
Inventory ledger tests.

Stock on hand is the sum of ledger deltas; every movement appends a row and
a movement that would take stock below zero is refused.
"""

import pytest

from orderdesk.extensions import db
from orderdesk.models import InventoryTransaction
from orderdesk.services import inventory_service
from orderdesk.services.inventory_service import InventoryError


def adjust(client, headers, product_id, transaction_type, quantity, **extra):
    body = {"product_id": product_id, "transaction_type": transaction_type, "quantity": quantity}
    body.update(extra)
    return client.post("/api/inventory/adjust", headers=headers, json=body)


class TestMovements:

    def test_initial_stock_is_a_ledger_row(self, app, mug):
        rows = db.session.query(InventoryTransaction).filter_by(product_id=mug["id"]).all()
        assert len(rows) == 1
        assert rows[0].reference_type == "initial_stock"
        assert rows[0].quantity_delta == 50

    def test_in_out_adjustment(self, client, ops_headers, mug):
        resp = adjust(client, ops_headers, mug["id"], "in", 10)
        assert resp.status_code == 201
        assert resp.get_json()["quantity_on_hand"] == 60

        resp = adjust(client, ops_headers, mug["id"], "out", 15)
        assert resp.get_json()["quantity_on_hand"] == 45
        assert resp.get_json()["transaction"]["quantity_delta"] == -15

        # adjustment sets the level; the delta is what it took to get there
        resp = adjust(client, ops_headers, mug["id"], "adjustment", 40, notes="cycle count")
        body = resp.get_json()
        assert body["quantity_on_hand"] == 40
        assert body["transaction"]["quantity_delta"] == -5
        assert body["transaction"]["notes"] == "cycle count"

        assert inventory_service.get_quantity_on_hand(mug["id"]) == 40

    def test_out_beyond_stock_rejected(self, client, ops_headers, mug):
        resp = adjust(client, ops_headers, mug["id"], "out", 51)
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "Insufficient stock"
        assert body["details"]["on_hand"] == 50
        assert inventory_service.get_quantity_on_hand(mug["id"]) == 50

    def test_out_to_exactly_zero(self, client, ops_headers, mug):
        resp = adjust(client, ops_headers, mug["id"], "out", 50)
        assert resp.status_code == 201
        assert resp.get_json()["quantity_on_hand"] == 0

    @pytest.mark.parametrize(
        "transaction_type,quantity",
        [("in", 0), ("out", 0), ("adjustment", -1), ("transfer", 5)],
    )
    def test_invalid_movements(self, client, ops_headers, mug, transaction_type, quantity):
        resp = adjust(client, ops_headers, mug["id"], transaction_type, quantity)
        assert resp.status_code == 400

    def test_unknown_product(self, client, ops_headers, app):
        resp = adjust(client, ops_headers, 4242, "in", 1)
        assert resp.status_code == 404

    def test_service_rejects_negative_result(self, app, pen):
        with pytest.raises(InventoryError):
            inventory_service.adjust_inventory(product_id=pen["id"], transaction_type="out", quantity=1)
        assert db.session.query(InventoryTransaction).filter_by(product_id=pen["id"]).count() == 0


class TestOverview:

    def test_overview_flags_low_and_out_of_stock(self, client, finance_headers, mug, pen):
        inventory_service.adjust_inventory(product_id=mug["id"], transaction_type="adjustment", quantity=10)

        resp = client.get("/api/inventory", headers=finance_headers)
        assert resp.status_code == 200
        body = resp.get_json()

        levels = {p["sku"]: p["stock_level"] for p in body["products"]}
        assert levels == {"MUG-001": "low_stock", "PEN-001": "out_of_stock"}
        assert body["summary"]["total_products"] == 2
        assert body["summary"]["low_stock_count"] == 1
        assert body["summary"]["out_of_stock_count"] == 1
        assert {p["sku"] for p in body["low_stock"]} == {"MUG-001", "PEN-001"}

    def test_recent_transactions_newest_first(self, client, ops_headers, mug):
        adjust(client, ops_headers, mug["id"], "in", 1)
        adjust(client, ops_headers, mug["id"], "in", 2)
        body = client.get(f"/api/inventory/products/{mug['id']}/transactions", headers=ops_headers).get_json()
        quantities = [tx["quantity"] for tx in body["transactions"]]
        assert quantities == [2, 1, 50]
