"""
Reporting tests: pure summary helpers plus the dashboard and analytics
views built on them.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from orderdesk.extensions import db
from orderdesk.services import reporting_service
from orderdesk.services.reporting_service import (
    format_percentage,
    monthly_revenue,
    percentage,
    status_breakdown,
    summarize_orders,
)


def fake_order(status, total, created_at=None):
    return SimpleNamespace(status=status, total_amount_cents=total, created_at=created_at)


class TestPercentages:

    @pytest.mark.parametrize(
        "part,whole,expected",
        [(0, 0, 0.0), (5, 0, 0.0), (1, 4, 25.0), (1, 3, 100 / 3)],
    )
    def test_percentage(self, part, whole, expected):
        assert percentage(part, whole) == pytest.approx(expected)

    def test_format(self):
        assert format_percentage(0.0) == "0.0%"
        assert format_percentage(100 / 3) == "33.3%"


class TestOrderSummaries:

    def test_empty(self):
        assert summarize_orders([]) == {
            "total_orders": 0,
            "revenue_cents": 0,
            "pending_orders": 0,
            "average_order_value_cents": 0,
        }

    def test_revenue_is_plain_sum(self):
        rows = [fake_order("pending", 1000), fake_order("cancelled", 500), fake_order("shipped", 2)]
        summary = summarize_orders(rows)
        assert summary["revenue_cents"] == 1502
        assert summary["pending_orders"] == 1
        assert summary["average_order_value_cents"] == 500

    def test_breakdown_covers_every_status(self):
        rows = [fake_order("pending", 1), fake_order("pending", 1), fake_order("shipped", 1), fake_order("draft", 1)]
        by_status = {row["status"]: row for row in status_breakdown(rows)}
        assert len(by_status) == 8
        assert by_status["pending"]["count"] == 2
        assert by_status["pending"]["percentage_display"] == "50.0%"
        assert by_status["delivered"]["percentage_display"] == "0.0%"

    def test_breakdown_of_nothing(self):
        assert all(row["percentage"] == 0.0 for row in status_breakdown([]))


class TestMonthlyRevenue:

    def test_groups_by_month_oldest_first(self):
        rows = [
            fake_order("confirmed", 1000, datetime(2024, 3, 5, tzinfo=timezone.utc)),
            fake_order("shipped", 250, datetime(2024, 1, 31, tzinfo=timezone.utc)),
            fake_order("delivered", 750, datetime(2024, 3, 28, tzinfo=timezone.utc)),
            fake_order("draft", 9999, datetime(2024, 2, 1, tzinfo=timezone.utc)),
            fake_order("cancelled", 9999, datetime(2024, 1, 2, tzinfo=timezone.utc)),
        ]
        assert monthly_revenue(rows) == [
            {"month": "2024-01", "revenue_cents": 250, "order_count": 1},
            {"month": "2024-03", "revenue_cents": 1750, "order_count": 2},
        ]

    def test_endpoint_reads_stored_orders(self, client, finance_headers, customer, mug, make_order):
        january = make_order(customer.id, [{"product_id": mug["id"], "quantity": 2}])
        february = make_order(customer.id, [{"product_id": mug["id"], "quantity": 1}])
        january.created_at = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        february.created_at = datetime(2024, 2, 10, 12, 0, tzinfo=timezone.utc)
        db.session.commit()

        months = client.get("/api/analytics/monthly-revenue", headers=finance_headers).get_json()["months"]
        assert months == [
            {"month": "2024-01", "revenue_cents": 2500, "order_count": 1},
            {"month": "2024-02", "revenue_cents": 1250, "order_count": 1},
        ]


class TestViews:

    def test_client_dashboard_is_scoped(self, client, client_headers, customer, other_customer, mug, make_order):
        make_order(customer.id, [{"product_id": mug["id"], "quantity": 2}], status="pending")
        make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 8}])

        body = client.get("/api/dashboard", headers=client_headers).get_json()
        assert body["stats"]["total_orders"] == 1
        assert body["stats"]["revenue_cents"] == 2500
        assert body["stats"]["pending_orders"] == 1
        assert body["shell"] == "portal"
        assert "total_customers" not in body["stats"]
        assert "total_products" not in body["stats"]

    def test_staff_dashboard_sees_everything(self, client, sales_headers, customer, other_customer, mug, make_order):
        make_order(customer.id, [{"product_id": mug["id"], "quantity": 2}])
        make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 8}])
        stats = client.get("/api/dashboard", headers=sales_headers).get_json()["stats"]
        assert stats["total_orders"] == 2
        assert stats["revenue_cents"] == 12500
        assert stats["total_customers"] == 2
        assert stats["total_products"] == 1

    def test_analytics(self, client, ops_headers, customer, other_customer, mug, pen, make_order):
        make_order(customer.id, [{"product_id": mug["id"], "quantity": 2}])
        make_order(customer.id, [{"product_id": mug["id"], "quantity": 4}])
        make_order(other_customer.id, [{"product_id": pen["id"], "quantity": 1}], status="cancelled")

        body = client.get("/api/analytics", headers=ops_headers).get_json()
        assert body["orders"]["total_orders"] == 3
        assert body["customers"] == {"total_customers": 2, "active_customers": 1}
        top = body["top_customers"][0]
        assert top["company_name"] == "Acme Retail"
        assert top["total_spent_cents"] == 7500
        assert top["average_order_value_cents"] == 3750
        assert [p["sku"] for p in body["low_stock"]] == ["PEN-001"]

    def test_view_helpers_run_without_requests(self, app):
        assert reporting_service.billing_view()["summary"]["total_invoiced_cents"] == 0
        assert reporting_service.dashboard_view()["stats"]["total_orders"] == 0
