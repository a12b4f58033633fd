# Overview: Service-layer operations for reporting; dashboard, billing and analytics aggregates.

"""
Reporting.

The summarize_* helpers are pure functions over rows that were already
fetched; the *_view functions fetch those rows for one request and compose
the summaries. Nothing is materialized or cached.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import CustomizationRequest, Invoice, Order, Payment
from ..statuses import (
    CustomizationStatus,
    InvoiceStatus,
    OrderStatus,
    PaymentStatus,
    StockLevel,
    stock_level_for,
)
from . import customer_service, inventory_service, invoice_service, order_service, payment_service
from .customization_service import list_requests


# Orders that never count as revenue in the monthly series
NON_REVENUE_ORDER_STATUSES = (OrderStatus.DRAFT.value, OrderStatus.CANCELLED.value)


def percentage(part: int | float, whole: int | float) -> float:
    """part / whole * 100; 0.0 when whole is 0."""
    if not whole:
        return 0.0
    return part * 100.0 / whole


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"


def summarize_orders(orders: Iterable[Order]) -> dict:
    """Revenue is the plain sum over the rows given."""
    rows = list(orders)
    total = len(rows)
    revenue = sum(int(o.total_amount_cents or 0) for o in rows)
    return {
        "total_orders": total,
        "revenue_cents": revenue,
        "pending_orders": sum(1 for o in rows if o.status == OrderStatus.PENDING.value),
        "average_order_value_cents": revenue // total if total else 0,
    }


def status_breakdown(orders: Iterable[Order]) -> list[dict]:
    """Count and share of each order status, in lifecycle order."""
    rows = list(orders)
    total = len(rows)
    breakdown = []
    for status in OrderStatus:
        count = sum(1 for o in rows if o.status == status.value)
        share = percentage(count, total)
        breakdown.append({
            "status": status.value,
            "count": count,
            "percentage": round(share, 1),
            "percentage_display": format_percentage(share),
        })
    return breakdown


def summarize_invoices(invoices: Iterable[Invoice]) -> dict:
    rows = list(invoices)
    invoiced = sum(int(i.total_amount_cents or 0) for i in rows)
    paid = sum(int(i.total_amount_cents or 0) for i in rows if i.status == InvoiceStatus.PAID.value)
    return {
        "total_invoiced_cents": invoiced,
        "total_paid_cents": paid,
        "total_outstanding_cents": invoiced - paid,
        "overdue_count": sum(1 for i in rows if i.status == InvoiceStatus.OVERDUE.value),
    }


def summarize_inventory(stock_rows: Iterable[tuple]) -> dict:
    """``stock_rows`` are (product, on_hand) pairs."""
    levels = [stock_level_for(on_hand, product.min_stock_level) for product, on_hand in stock_rows]
    return {
        "total_products": len(levels),
        "low_stock_count": sum(1 for level in levels if level == StockLevel.LOW_STOCK),
        "out_of_stock_count": sum(1 for level in levels if level == StockLevel.OUT_OF_STOCK),
    }


def summarize_customers(customers: Iterable[dict]) -> dict:
    """``customers`` are customer dicts carrying ``order_count``."""
    rows = list(customers)
    return {
        "total_customers": len(rows),
        "active_customers": sum(1 for c in rows if c.get("order_count", 0) > 0),
    }


def summarize_customizations(requests: Iterable[CustomizationRequest]) -> dict:
    rows = list(requests)
    return {
        "total_requests": len(rows),
        "pending_customizations": sum(1 for r in rows if r.status == CustomizationStatus.PENDING.value),
    }


def summarize_payments(payments: Iterable[Payment]) -> dict:
    rows = list(payments)
    completed = [p for p in rows if p.payment_status == PaymentStatus.COMPLETED.value]
    by_method: dict[str, int] = {}
    for payment in completed:
        by_method[payment.payment_method] = by_method.get(payment.payment_method, 0) + int(payment.amount_cents)
    return {
        "payment_count": len(rows),
        "completed_count": len(completed),
        "collected_cents": sum(int(p.amount_cents) for p in completed),
        "collected_by_method_cents": by_method,
    }


def monthly_revenue(orders: Iterable[Order] | None = None) -> list[dict]:
    """
    Order revenue per calendar month (YYYY-MM of created_at), oldest first.

    Draft and cancelled orders are excluded.
    """
    if orders is None:
        orders = (
            db.session.query(Order)
            .filter(Order.status.notin_(NON_REVENUE_ORDER_STATUSES))
            .all()
        )
    buckets: dict[str, dict] = {}
    for order in orders:
        if order.status in NON_REVENUE_ORDER_STATUSES or order.created_at is None:
            continue
        month = order.created_at.strftime("%Y-%m")
        bucket = buckets.setdefault(month, {"month": month, "revenue_cents": 0, "order_count": 0})
        bucket["revenue_cents"] += int(order.total_amount_cents or 0)
        bucket["order_count"] += 1
    return [buckets[m] for m in sorted(buckets)]


def dashboard_view(customer_id: int | None = None) -> dict:
    """Headline figures; ``customer_id`` restricts everything to one customer."""
    orders = order_service.list_orders(customer_id=customer_id)
    requests = list_requests(customer_id=customer_id)
    summary = summarize_orders(orders)
    summary.update(summarize_customizations(requests))
    if customer_id is None:
        summary["total_customers"] = summarize_customers(customer_service.list_customers())["total_customers"]
        summary["total_products"] = len(inventory_service.stock_rows())
    return {
        "stats": summary,
        "recent_orders": [o.to_dict() for o in orders[:5]],
    }


def billing_view(customer_id: int | None = None) -> dict:
    invoices = invoice_service.list_invoices(customer_id=customer_id)
    payments = payment_service.list_payments(customer_id=customer_id)
    return {
        "summary": summarize_invoices(invoices),
        "invoices": [i.to_dict() for i in invoices],
        "payments": [p.to_dict() for p in payments],
    }


def analytics_view() -> dict:
    orders = (
        db.session.query(Order)
        .options(joinedload(Order.customer))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    stock = inventory_service.stock_rows()
    customers = customer_service.list_customers()
    payments = db.session.query(Payment).all()

    top_customers = sorted(customers, key=lambda c: c["total_spent_cents"], reverse=True)[:5]
    for customer in top_customers:
        count = customer["order_count"]
        customer["average_order_value_cents"] = customer["total_spent_cents"] // count if count else 0

    return {
        "orders": summarize_orders(orders),
        "status_breakdown": status_breakdown(orders),
        "inventory": summarize_inventory(stock),
        "customers": summarize_customers(customers),
        "payments": summarize_payments(payments),
        "monthly_revenue": monthly_revenue(orders),
        "recent_orders": [o.to_dict() for o in orders[:5]],
        "top_customers": top_customers,
        "low_stock": [
            product.to_dict(on_hand=on_hand)
            for product, on_hand in inventory_service.low_stock_rows(stock)[:10]
        ],
    }
