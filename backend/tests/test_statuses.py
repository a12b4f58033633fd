"""
Status vocabulary tests: display metadata, unknown-value fallback, and
the validation every status write goes through.
"""

import pytest

from orderdesk.models import Order
from orderdesk.services.lifecycle_service import (
    LifecycleError,
    apply_status,
    is_irregular_transition,
    validate_status,
)
from orderdesk.statuses import (
    STATUS_ENUMS,
    OrderStatus,
    StockLevel,
    badge_for,
    describe_status,
    humanize,
    stock_level_for,
    values_of,
)


EVERY_STATUS = [
    (entity, value)
    for entity, enum_cls in STATUS_ENUMS.items()
    for value in values_of(enum_cls)
]


class TestDescribeStatus:

    def test_known_value(self):
        info = describe_status("order", "in_production")
        assert info.label == "In Production"
        assert info.is_known is True
        assert info.is_terminal is False

    @pytest.mark.parametrize("entity,value", EVERY_STATUS)
    def test_every_enum_value_has_a_badge(self, entity, value):
        info = describe_status(entity, value)
        assert info.is_known is True
        assert info.value == value
        assert info.label
        assert info.badge in ("default", "secondary", "destructive", "outline")
        assert info.tier in ("neutral", "info", "warning", "success", "danger")

    def test_enum_member_accepted(self):
        assert describe_status("order", OrderStatus.CANCELLED).badge == "destructive"

    @pytest.mark.parametrize("value", ["on_fire", "", None])
    def test_unknown_value_falls_back(self, value):
        info = describe_status("invoice", value)
        assert info.is_known is False
        assert info.badge == "secondary"
        assert info.tier == "neutral"

    def test_unknown_value_label_is_humanized(self):
        assert describe_status("shipment", "lost_at_sea").label == "Lost At Sea"

    def test_unknown_entity_is_an_error(self):
        with pytest.raises(KeyError):
            describe_status("spaceship", "pending")

    def test_badge_payload(self):
        assert badge_for("invoice", "overdue") == {"label": "Overdue", "tier": "danger", "variant": "destructive"}

    def test_humanize(self):
        assert humanize("ready_to_ship") == "Ready To Ship"


class TestStockLevel:

    @pytest.mark.parametrize(
        "on_hand,minimum,expected",
        [
            (0, 10, StockLevel.OUT_OF_STOCK),
            (-3, 10, StockLevel.OUT_OF_STOCK),
            (10, 10, StockLevel.LOW_STOCK),
            (11, 10, StockLevel.IN_STOCK),
            (1, 0, StockLevel.IN_STOCK),
        ],
    )
    def test_levels(self, on_hand, minimum, expected):
        assert stock_level_for(on_hand, minimum) == expected


class TestStatusWrites:

    def test_validate_rejects_outside_vocabulary(self):
        with pytest.raises(LifecycleError) as exc:
            validate_status("payment", "bounced")
        assert "completed" in exc.value.details["allowed"]

    def test_unknown_entity(self):
        with pytest.raises(LifecycleError):
            validate_status("spaceship", "pending")

    @pytest.mark.parametrize(
        "old,new,irregular",
        [
            ("pending", "confirmed", False),
            ("shipped", "confirmed", True),
            ("delivered", "pending", True),
            ("cancelled", "pending", True),
            ("pending", "cancelled", False),
            (None, "draft", False),
        ],
    )
    def test_irregular_transitions(self, old, new, irregular):
        assert is_irregular_transition("order", old, new) is irregular

    def test_apply_stamps_date_once(self, app):
        order = Order(status="confirmed")
        apply_status("order", order, "shipped")
        first = order.shipped_date
        assert first is not None

        apply_status("order", order, "confirmed")
        apply_status("order", order, "shipped")
        assert order.shipped_date == first

    def test_catalog_endpoint(self, client, client_headers):
        catalog = client.get("/api/statuses", headers=client_headers).get_json()["statuses"]
        assert [s["value"] for s in catalog["priority"]] == ["low", "medium", "high", "urgent"]
        assert catalog["order"][0]["label"] == "Draft"
