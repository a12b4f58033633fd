"""
Customization request tests: creation with its review workflow, review
outcomes, step updates and comment visibility.
"""

from itertools import product

import pytest

from orderdesk.extensions import db
from orderdesk.models import CustomizationRequest, WorkflowStep
from orderdesk.services import customization_service
from orderdesk.services.customization_service import CustomizationError
from orderdesk.statuses import CustomizationType, Priority

from conftest import headers_for


@pytest.fixture
def order(customer, mug, pen, make_order):
    # pending lines of a customizable (mug) and a plain (pen) product
    return make_order(customer.id, [
        {"product_id": mug["id"], "quantity": 2},
        {"product_id": pen["id"], "quantity": 5},
    ], status="pending")


def request_body(order_item_id, **extra):
    body = {
        "order_item_id": order_item_id,
        "request_type": "design",
        "title": "Company logo",
        "description": "Print our logo on both sides",
    }
    body.update(extra)
    return body


class TestCreateRequest:

    @pytest.mark.parametrize(
        "request_type,priority",
        [(t.value, p.value) for t, p in product(CustomizationType, Priority)],
    )
    def test_created_with_four_steps_in_order(self, client, client_headers, order, request_type, priority):
        mug_line = order.items[0]
        resp = client.post(
            "/api/customizations",
            headers=client_headers,
            json=request_body(mug_line.id, request_type=request_type, priority=priority),
        )
        assert resp.status_code == 201
        created = resp.get_json()["request"]
        assert created["status"] == "pending"
        assert created["request_type"] == request_type
        assert created["priority"] == priority
        assert [(s["step_order"], s["step_name"]) for s in created["steps"]] == [
            (1, "Initial Review"),
            (2, "Design Phase"),
            (3, "Approval"),
            (4, "Production Setup"),
        ]
        assert all(s["status"] == "pending" for s in created["steps"])

    def test_non_customizable_product_rejected(self, client, client_headers, order):
        pen_line = order.items[1]
        resp = client.post("/api/customizations", headers=client_headers, json=request_body(pen_line.id))
        assert resp.status_code == 400
        assert db.session.query(CustomizationRequest).count() == 0
        assert db.session.query(WorkflowStep).count() == 0

    def test_client_cannot_use_foreign_line(self, client, client_headers, other_customer, mug, make_order):
        theirs = make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 1}], status="pending")
        resp = client.post("/api/customizations", headers=client_headers, json=request_body(theirs.items[0].id))
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Order item not found"

    @pytest.mark.parametrize(
        "override",
        [
            {"request_type": "engraving"},
            {"title": "  "},
            {"title": 123},
            {"description": ["Print", "logo"]},
            {"priority": "asap"},
            {"estimated_days": -1},
        ],
    )
    def test_invalid_fields(self, client, sales_headers, order, override):
        resp = client.post("/api/customizations", headers=sales_headers, json=request_body(order.items[0].id, **override))
        assert resp.status_code == 400
        assert db.session.query(CustomizationRequest).count() == 0

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ({"font": "serif"}, {"font": "serif"}),
            ('{"color": "navy"}', {"color": "navy"}),
            ("navy blue please", {"notes": "navy blue please"}),
            ("[1, 2]", {"notes": "[1, 2]"}),
            ("", None),
            (None, None),
        ],
    )
    def test_specifications_parsing(self, raw, expected):
        assert customization_service.parse_specifications(raw) == expected

    def test_eligible_items(self, client, client_headers, order):
        items = client.get("/api/customizations/eligible-items", headers=client_headers).get_json()["items"]
        assert [i["id"] for i in items] == [order.items[0].id]
        assert items[0]["order_number"] == order.order_number


class TestReview:

    @pytest.fixture
    def created(self, app, users, order):
        return customization_service.create_request(
            order_item_id=order.items[0].id,
            request_type="color",
            title="Navy glaze",
            description="Navy instead of white",
            user_id=users["client"].id,
        )

    def test_approval_records_reviewer(self, client, ops_headers, users, created):
        resp = client.patch(f"/api/customizations/{created.id}", headers=ops_headers, json={
            "status": "approved",
            "review_notes": "Looks good",
        })
        assert resp.status_code == 200
        body = resp.get_json()["request"]
        assert body["status"] == "approved"
        assert body["reviewed_by"] == users["ops"].id
        assert body["reviewed_at"] is not None

    def test_under_review_is_not_an_outcome(self, client, ops_headers, created):
        body = client.patch(f"/api/customizations/{created.id}", headers=ops_headers, json={
            "status": "under_review",
        }).get_json()["request"]
        assert body["reviewed_by"] is None

    def test_sales_cannot_review(self, client, sales_headers, created):
        resp = client.patch(f"/api/customizations/{created.id}", headers=sales_headers, json={"status": "approved"})
        assert resp.status_code == 403

    def test_step_completion(self, client, ops_headers, users, created):
        step = created.steps[0]
        resp = client.patch(f"/api/customizations/{created.id}/steps/{step.id}", headers=ops_headers, json={
            "status": "completed",
            "actual_hours": 1.5,
            "assigned_to": users["ops"].id,
        })
        assert resp.status_code == 200
        body = resp.get_json()["step"]
        assert body["completed_at"] is not None
        assert body["actual_hours"] == 1.5

    def test_non_text_review_notes_rejected(self, client, ops_headers, created):
        resp = client.patch(f"/api/customizations/{created.id}", headers=ops_headers, json={
            "status": "approved",
            "review_notes": {"verdict": "ok"},
        })
        assert resp.status_code == 400
        db.session.expire_all()
        assert db.session.get(CustomizationRequest, created.id).status == "pending"

    def test_non_text_step_notes_rejected(self, client, ops_headers, created):
        step = created.steps[0]
        resp = client.patch(
            f"/api/customizations/{created.id}/steps/{step.id}",
            headers=ops_headers,
            json={"notes": 42},
        )
        assert resp.status_code == 400

    def test_non_text_comment_rejected(self, client, client_headers, created):
        resp = client.post(f"/api/customizations/{created.id}/comments", headers=client_headers, json={"content": 7})
        assert resp.status_code == 400

    def test_negative_hours_rejected(self, app, created):
        with pytest.raises(CustomizationError):
            customization_service.update_step(created.id, created.steps[0].id, {"estimated_hours": -2})

    def test_step_of_other_request_not_found(self, client, ops_headers, created, order, users):
        other = customization_service.create_request(
            order_item_id=order.items[0].id,
            request_type="size",
            title="Larger",
            description="16oz",
            user_id=users["sales"].id,
        )
        resp = client.patch(
            f"/api/customizations/{created.id}/steps/{other.steps[0].id}",
            headers=ops_headers,
            json={"notes": "x"},
        )
        assert resp.status_code == 404


class TestComments:

    @pytest.fixture
    def created(self, app, users, order):
        return customization_service.create_request(
            order_item_id=order.items[0].id,
            request_type="design",
            title="Logo",
            description="Logo on front",
            user_id=users["client"].id,
        )

    def test_internal_comments_hidden_from_client(self, client, ops_headers, client_headers, created):
        url = f"/api/customizations/{created.id}/comments"
        assert client.post(url, headers=client_headers, json={"content": "Can you use gold?"}).status_code == 201
        assert client.post(url, headers=ops_headers, json={"content": "Gold ink costs more", "is_internal": True}).status_code == 201

        staff_view = client.get(f"/api/customizations/{created.id}", headers=ops_headers).get_json()["request"]
        assert {c["content"] for c in staff_view["comments"]} == {"Can you use gold?", "Gold ink costs more"}

        client_view = client.get(f"/api/customizations/{created.id}", headers=client_headers).get_json()["request"]
        assert [c["content"] for c in client_view["comments"]] == ["Can you use gold?"]

    def test_client_cannot_post_internal(self, client, client_headers, created):
        resp = client.post(
            f"/api/customizations/{created.id}/comments",
            headers=client_headers,
            json={"content": "psst", "is_internal": True},
        )
        assert resp.status_code == 400

    def test_empty_comment(self, client, client_headers, created):
        resp = client.post(f"/api/customizations/{created.id}/comments", headers=client_headers, json={"content": " "})
        assert resp.status_code == 400

    def test_foreign_request_not_found(self, client, users, other_customer, mug, make_order):
        theirs = make_order(other_customer.id, [{"product_id": mug["id"], "quantity": 1}], status="pending")
        row = customization_service.create_request(
            order_item_id=theirs.items[0].id,
            request_type="other",
            title="Other",
            description="Other customer's request",
            user_id=users["sales"].id,
        )
        resp = client.get(f"/api/customizations/{row.id}", headers=headers_for(users["client"]))
        assert resp.status_code == 404
