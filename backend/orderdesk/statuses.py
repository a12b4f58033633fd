# Overview: Closed status vocabularies for every entity plus their display metadata.

"""
Status lifecycle tables.

Each entity with a ``status`` (or status-like) column gets one ``str`` Enum
and one lookup table mapping every value to a ``StatusInfo``. Views never
branch on raw strings to pick a badge; they call ``describe_status`` which is
total: an unexpected stored value yields a neutral fallback instead of an
undefined badge.

``position`` orders the main path of a lifecycle. Side branches (cancelled,
overdue, exception, ...) have ``position=None`` and are reachable from
anywhere.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum


TIER_NEUTRAL = "neutral"
TIER_INFO = "info"
TIER_WARNING = "warning"
TIER_SUCCESS = "success"
TIER_DANGER = "danger"

BADGE_DEFAULT = "default"
BADGE_SECONDARY = "secondary"
BADGE_DESTRUCTIVE = "destructive"
BADGE_OUTLINE = "outline"


class OrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PRODUCTION = "in_production"
    READY_TO_SHIP = "ready_to_ship"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderItemStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PRODUCTION = "in_production"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class ShipmentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    EXCEPTION = "exception"
    RETURNED = "returned"


class CustomizationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_NEEDED = "revision_needed"


class StepStatus(str, Enum):
    """Shared by workflow steps and fulfillment tasks."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class StockLevel(str, Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class InventoryTransactionType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


# Non-status vocabularies used by the order, shipment and customization forms.

class ShippingMethod(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    UPI = "upi"
    NEFT = "neft"
    CHEQUE = "cheque"


class CustomizationType(str, Enum):
    DESIGN = "design"
    MATERIAL = "material"
    SIZE = "size"
    COLOR = "color"
    OTHER = "other"


class FulfillmentTaskType(str, Enum):
    PICK = "pick"
    PACK = "pack"
    QUALITY_CHECK = "quality_check"
    LABEL = "label"
    SHIP = "ship"


@dataclass(frozen=True)
class StatusInfo:
    value: str
    label: str
    tier: str
    badge: str
    is_terminal: bool = False
    position: int | None = None
    is_known: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


def humanize(value: str) -> str:
    """'in_production' -> 'In Production'."""
    return " ".join(part.capitalize() for part in str(value).replace("-", "_").split("_") if part)


def _row(value: Enum, tier: str, badge: str, *, terminal: bool = False, position: int | None = None,
         label: str | None = None) -> tuple[str, StatusInfo]:
    return value.value, StatusInfo(
        value=value.value,
        label=label or humanize(value.value),
        tier=tier,
        badge=badge,
        is_terminal=terminal,
        position=position,
    )


ORDER_STATUSES = dict([
    _row(OrderStatus.DRAFT, TIER_NEUTRAL, BADGE_SECONDARY, position=0),
    _row(OrderStatus.PENDING, TIER_WARNING, BADGE_DEFAULT, position=1),
    _row(OrderStatus.CONFIRMED, TIER_INFO, BADGE_DEFAULT, position=2),
    _row(OrderStatus.IN_PRODUCTION, TIER_INFO, BADGE_DEFAULT, position=3),
    _row(OrderStatus.READY_TO_SHIP, TIER_INFO, BADGE_DEFAULT, position=4),
    _row(OrderStatus.SHIPPED, TIER_SUCCESS, BADGE_DEFAULT, position=5),
    _row(OrderStatus.DELIVERED, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=6),
    _row(OrderStatus.CANCELLED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
])

ORDER_ITEM_STATUSES = dict([
    _row(OrderItemStatus.PENDING, TIER_WARNING, BADGE_SECONDARY, position=0),
    _row(OrderItemStatus.CONFIRMED, TIER_INFO, BADGE_DEFAULT, position=1),
    _row(OrderItemStatus.IN_PRODUCTION, TIER_INFO, BADGE_DEFAULT, position=2),
    _row(OrderItemStatus.COMPLETED, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=3),
    _row(OrderItemStatus.CANCELLED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
])

INVOICE_STATUSES = dict([
    _row(InvoiceStatus.DRAFT, TIER_NEUTRAL, BADGE_SECONDARY, position=0),
    _row(InvoiceStatus.SENT, TIER_INFO, BADGE_DEFAULT, position=1),
    _row(InvoiceStatus.VIEWED, TIER_INFO, BADGE_DEFAULT, position=2),
    _row(InvoiceStatus.PAID, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=3),
    _row(InvoiceStatus.OVERDUE, TIER_DANGER, BADGE_DESTRUCTIVE),
    _row(InvoiceStatus.CANCELLED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
])

PAYMENT_STATUSES = dict([
    _row(PaymentStatus.PENDING, TIER_WARNING, BADGE_SECONDARY, position=0),
    _row(PaymentStatus.PROCESSING, TIER_INFO, BADGE_DEFAULT, position=1),
    _row(PaymentStatus.COMPLETED, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=2),
    _row(PaymentStatus.FAILED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
    _row(PaymentStatus.REFUNDED, TIER_NEUTRAL, BADGE_OUTLINE, terminal=True),
    _row(PaymentStatus.CANCELLED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
])

SHIPMENT_STATUSES = dict([
    _row(ShipmentStatus.PENDING, TIER_WARNING, BADGE_SECONDARY, position=0),
    _row(ShipmentStatus.PROCESSING, TIER_INFO, BADGE_DEFAULT, position=1),
    _row(ShipmentStatus.SHIPPED, TIER_INFO, BADGE_DEFAULT, position=2),
    _row(ShipmentStatus.IN_TRANSIT, TIER_INFO, BADGE_DEFAULT, position=3),
    _row(ShipmentStatus.DELIVERED, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=4),
    _row(ShipmentStatus.EXCEPTION, TIER_DANGER, BADGE_DESTRUCTIVE),
    _row(ShipmentStatus.RETURNED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
])

CUSTOMIZATION_STATUSES = dict([
    _row(CustomizationStatus.PENDING, TIER_WARNING, BADGE_SECONDARY, position=0),
    _row(CustomizationStatus.UNDER_REVIEW, TIER_INFO, BADGE_DEFAULT, position=1),
    _row(CustomizationStatus.REVISION_NEEDED, TIER_WARNING, BADGE_OUTLINE),
    _row(CustomizationStatus.APPROVED, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=2),
    _row(CustomizationStatus.REJECTED, TIER_DANGER, BADGE_DESTRUCTIVE, terminal=True),
])

STEP_STATUSES = dict([
    _row(StepStatus.PENDING, TIER_NEUTRAL, BADGE_SECONDARY, position=0),
    _row(StepStatus.IN_PROGRESS, TIER_INFO, BADGE_DEFAULT, position=1),
    _row(StepStatus.COMPLETED, TIER_SUCCESS, BADGE_DEFAULT, terminal=True, position=2),
    _row(StepStatus.ON_HOLD, TIER_DANGER, BADGE_DESTRUCTIVE),
])

PRIORITIES = dict([
    _row(Priority.LOW, TIER_NEUTRAL, BADGE_OUTLINE, position=0),
    _row(Priority.MEDIUM, TIER_INFO, BADGE_SECONDARY, position=1),
    _row(Priority.HIGH, TIER_WARNING, BADGE_DEFAULT, position=2),
    _row(Priority.URGENT, TIER_DANGER, BADGE_DESTRUCTIVE, position=3),
])

STOCK_LEVELS = dict([
    _row(StockLevel.IN_STOCK, TIER_SUCCESS, BADGE_DEFAULT),
    _row(StockLevel.LOW_STOCK, TIER_WARNING, BADGE_SECONDARY),
    _row(StockLevel.OUT_OF_STOCK, TIER_DANGER, BADGE_DESTRUCTIVE),
])

INVENTORY_TRANSACTION_TYPES = dict([
    _row(InventoryTransactionType.IN, TIER_SUCCESS, BADGE_DEFAULT, label="Stock In"),
    _row(InventoryTransactionType.OUT, TIER_DANGER, BADGE_DESTRUCTIVE, label="Stock Out"),
    _row(InventoryTransactionType.ADJUSTMENT, TIER_INFO, BADGE_SECONDARY),
])


STATUS_ENUMS: dict[str, type[Enum]] = {
    "order": OrderStatus,
    "order_item": OrderItemStatus,
    "invoice": InvoiceStatus,
    "payment": PaymentStatus,
    "shipment": ShipmentStatus,
    "customization": CustomizationStatus,
    "workflow_step": StepStatus,
    "fulfillment_task": StepStatus,
    "priority": Priority,
    "stock_level": StockLevel,
    "inventory_transaction": InventoryTransactionType,
}

STATUS_TABLES: dict[str, dict[str, StatusInfo]] = {
    "order": ORDER_STATUSES,
    "order_item": ORDER_ITEM_STATUSES,
    "invoice": INVOICE_STATUSES,
    "payment": PAYMENT_STATUSES,
    "shipment": SHIPMENT_STATUSES,
    "customization": CUSTOMIZATION_STATUSES,
    "workflow_step": STEP_STATUSES,
    "fulfillment_task": STEP_STATUSES,
    "priority": PRIORITIES,
    "stock_level": STOCK_LEVELS,
    "inventory_transaction": INVENTORY_TRANSACTION_TYPES,
}


def values_of(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def describe_status(entity: str, value) -> StatusInfo:
    """
    Resolve display metadata for a stored status value.

    Unknown values (legacy rows, manual edits) map to a neutral fallback with
    ``is_known=False``. An unknown *entity* is a programming error.
    """
    table = STATUS_TABLES.get(entity)
    if table is None:
        raise KeyError(f"Unknown status entity: {entity}")

    raw = value.value if isinstance(value, Enum) else value
    info = table.get(raw)
    if info is not None:
        return info

    text = "" if raw is None else str(raw)
    return StatusInfo(
        value=text,
        label=humanize(text) if text else "Unknown",
        tier=TIER_NEUTRAL,
        badge=BADGE_SECONDARY,
        is_terminal=False,
        position=None,
        is_known=False,
    )


def badge_for(entity: str, value) -> dict:
    """Compact badge payload embedded next to a record in view responses."""
    info = describe_status(entity, value)
    return {"label": info.label, "tier": info.tier, "variant": info.badge}


def stock_level_for(on_hand: int, min_stock_level: int) -> StockLevel:
    """0 -> out of stock, at or under the minimum -> low, otherwise in stock."""
    if on_hand <= 0:
        return StockLevel.OUT_OF_STOCK
    if on_hand <= (min_stock_level or 0):
        return StockLevel.LOW_STOCK
    return StockLevel.IN_STOCK
