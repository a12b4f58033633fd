# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Inventory invariants (authoritative)

- Stock is ledger-derived: level on hand = SUM(quantity_delta) over the
  product's InventoryTransaction rows. There is no mutable stock column.
- Movement types:
    in          -> delta = +quantity            (quantity > 0)
    out         -> delta = -quantity            (quantity > 0)
    adjustment  -> delta = quantity - on_hand   ("set to"; quantity >= 0)
- The level on hand may never go negative.
- Writers lock the product row and read the level under that lock, so two
  concurrent adjustments serialize instead of both computing from the same
  stale level.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Product, InventoryTransaction
from ..statuses import InventoryTransactionType, StockLevel, stock_level_for
from ..validation import MAX_QUANTITY
from .concurrency import lock_for_update, run_with_retry


class InventoryError(Exception):
    """Raised for stock movement rule violations."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def get_quantity_on_hand(product_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(InventoryTransaction.quantity_delta), 0))
        .filter(InventoryTransaction.product_id == product_id)
        .scalar()
    )
    return int(total or 0)


def get_stock_levels(product_ids: list[int] | None = None) -> dict[int, int]:
    """product_id -> level on hand, one grouped query. Missing ids are 0."""
    query = db.session.query(
        InventoryTransaction.product_id,
        func.coalesce(func.sum(InventoryTransaction.quantity_delta), 0),
    ).group_by(InventoryTransaction.product_id)
    if product_ids is not None:
        if not product_ids:
            return {}
        query = query.filter(InventoryTransaction.product_id.in_(product_ids))

    levels = {product_id: int(total) for product_id, total in query.all()}
    if product_ids is not None:
        for product_id in product_ids:
            levels.setdefault(product_id, 0)
    return levels


def _compute_delta(transaction_type: str, quantity: int, on_hand: int) -> int:
    if transaction_type == InventoryTransactionType.IN.value:
        if quantity <= 0:
            raise InventoryError("quantity must be > 0 for stock in")
        return quantity
    if transaction_type == InventoryTransactionType.OUT.value:
        if quantity <= 0:
            raise InventoryError("quantity must be > 0 for stock out")
        return -quantity
    if transaction_type == InventoryTransactionType.ADJUSTMENT.value:
        if quantity < 0:
            raise InventoryError("quantity must be >= 0 for an adjustment (it is the new level)")
        return quantity - on_hand
    raise InventoryError(
        f"Invalid transaction_type '{transaction_type}'",
        details={"allowed": [t.value for t in InventoryTransactionType]},
    )


def stage_movement(
    *,
    product_id: int,
    transaction_type: str,
    quantity: int,
    notes: str | None = None,
    reference_type: str | None = "adjustment",
    reference_id: int | None = None,
    user_id: int | None = None,
) -> InventoryTransaction:
    """
    Lock the product, compute the signed delta and add the ledger row.

    Stages only; the caller's unit of work commits.
    """
    if quantity > MAX_QUANTITY:
        raise InventoryError(f"quantity cannot exceed {MAX_QUANTITY}")

    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise InventoryError("Product not found", details={"product_id": product_id})

    on_hand = get_quantity_on_hand(product_id)
    delta = _compute_delta(transaction_type, quantity, on_hand)

    if on_hand + delta < 0:
        current_app.logger.warning(
            "Rejected stock movement for product %s: on_hand=%s delta=%s",
            product_id, on_hand, delta,
        )
        raise InventoryError(
            "Insufficient stock",
            details={"product_id": product_id, "on_hand": on_hand, "requested": quantity},
        )

    tx = InventoryTransaction(
        product_id=product_id,
        transaction_type=transaction_type,
        quantity=quantity,
        quantity_delta=delta,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
        created_by=user_id,
    )
    db.session.add(tx)
    db.session.flush()
    return tx


def adjust_inventory(
    *,
    product_id: int,
    transaction_type: str,
    quantity: int,
    notes: str | None = None,
    user_id: int | None = None,
) -> tuple[InventoryTransaction, int]:
    """
    Record one stock movement from the inventory page.

    Returns (transaction, new_level_on_hand).
    """
    def _op():
        tx = stage_movement(
            product_id=product_id,
            transaction_type=transaction_type,
            quantity=quantity,
            notes=notes,
            reference_type="adjustment",
            user_id=user_id,
        )
        db.session.commit()
        return tx

    tx = run_with_retry(_op)
    current_app.logger.info(
        "Inventory %s of %s for product %s (delta %s) by user %s",
        transaction_type, quantity, product_id, tx.quantity_delta, user_id,
    )
    return tx, get_quantity_on_hand(product_id)


def list_transactions(*, product_id: int | None = None, limit: int | None = None) -> list[InventoryTransaction]:
    if limit is None:
        limit = current_app.config.get("RECENT_TRANSACTIONS_LIMIT", 20)
    limit = max(1, min(int(limit), 500))

    query = db.session.query(InventoryTransaction)
    if product_id is not None:
        query = query.filter(InventoryTransaction.product_id == product_id)
    return (
        query.order_by(InventoryTransaction.created_at.desc(), InventoryTransaction.id.desc())
        .limit(limit)
        .all()
    )


def stock_rows(*, active_only: bool = True) -> list[tuple[Product, int]]:
    """(product, level on hand) for the catalog, ordered by name."""
    query = db.session.query(Product)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    products = query.order_by(Product.name.asc(), Product.id.asc()).all()
    levels = get_stock_levels([p.id for p in products])
    return [(p, levels.get(p.id, 0)) for p in products]


def low_stock_rows(rows: list[tuple[Product, int]] | None = None) -> list[tuple[Product, int]]:
    """Products at or below their minimum level (out-of-stock included)."""
    if rows is None:
        rows = stock_rows()
    return [
        (product, on_hand)
        for product, on_hand in rows
        if stock_level_for(on_hand, product.min_stock_level) != StockLevel.IN_STOCK
    ]
