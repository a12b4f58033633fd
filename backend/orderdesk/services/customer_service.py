# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Order
from ..statuses import OrderStatus
from .concurrency import run_with_retry


CUSTOMER_MUTABLE_FIELDS = {
    "company_name",
    "contact_name",
    "email",
    "phone",
    "address",
    "city",
    "state",
    "zip_code",
    "notes",
    "is_active",
}

# Orders that never became real business do not count toward spend
_NON_REVENUE_STATUSES = (OrderStatus.DRAFT.value, OrderStatus.CANCELLED.value)


def _order_stats(customer_ids: list[int]) -> dict[int, dict]:
    if not customer_ids:
        return {}
    rows = (
        db.session.query(
            Order.customer_id,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount_cents), 0),
        )
        .filter(
            Order.customer_id.in_(customer_ids),
            Order.status.notin_(_NON_REVENUE_STATUSES),
        )
        .group_by(Order.customer_id)
        .all()
    )
    return {cid: {"order_count": int(count), "total_spent_cents": int(total)} for cid, count, total in rows}


def customer_with_stats(customer: Customer, stats: dict | None = None) -> dict:
    if stats is None:
        stats = _order_stats([customer.id]).get(customer.id)
    data = customer.to_dict()
    data.update(stats or {"order_count": 0, "total_spent_cents": 0})
    return data


def list_customers(*, search: str | None = None, include_inactive: bool = False) -> list[dict]:
    query = db.session.query(Customer)
    if not include_inactive:
        query = query.filter(Customer.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Customer.company_name.ilike(pattern),
            Customer.contact_name.ilike(pattern),
            Customer.email.ilike(pattern),
        ))
    customers = query.order_by(Customer.company_name.asc(), Customer.id.asc()).all()
    stats = _order_stats([c.id for c in customers])
    return [customer_with_stats(c, stats.get(c.id)) for c in customers]


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def create_customer(*, patch: dict) -> Customer:
    def _op():
        customer = Customer()
        for k, v in patch.items():
            if k in CUSTOMER_MUTABLE_FIELDS:
                setattr(customer, k, v)
        db.session.add(customer)
        db.session.commit()
        return customer

    return run_with_retry(_op)


def update_customer(*, customer_id: int, patch: dict) -> Customer | None:
    def _op():
        customer = db.session.get(Customer, customer_id)
        if customer is None:
            return None
        for k, v in patch.items():
            if k in CUSTOMER_MUTABLE_FIELDS:
                setattr(customer, k, v)
        db.session.commit()
        return customer

    return run_with_retry(_op)
