# backend/orderdesk/services/products_service.py
"""
Products Service

Catalog reads return each product with its ledger-derived stock level.
Creating a product with an initial stock quantity writes an "in" movement in
the same transaction as the product row.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product
from ..validation import ConflictError
from .concurrency import run_with_retry
from .inventory_service import get_stock_levels, get_quantity_on_hand, stage_movement


PRODUCT_MUTABLE_FIELDS = {
    "sku",
    "name",
    "description",
    "category",
    "base_price_cents",
    "min_stock_level",
    "is_customizable",
    "is_active",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_sku_free(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("SKU already exists.")


def list_products(
    *,
    search: str | None = None,
    category: str | None = None,
    include_inactive: bool = False,
    customizable_only: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Catalog listing with optional text search and pagination.

    Returns dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product)
    if not include_inactive:
        base_query = base_query.filter(Product.is_active.is_(True))
    if category:
        base_query = base_query.filter(Product.category == category)
    if customizable_only:
        base_query = base_query.filter(Product.is_customizable.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        base_query = base_query.filter(db.or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        levels = get_stock_levels([p.id for p in products])
        return {
            "items": [p.to_dict(on_hand=levels.get(p.id, 0)) for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    products = base_query.offset((page - 1) * per_page).limit(per_page).all()
    levels = get_stock_levels([p.id for p in products])

    return {
        "items": [p.to_dict(on_hand=levels.get(p.id, 0)) for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def list_categories() -> list[str]:
    rows = (
        db.session.query(Product.category)
        .filter(Product.category.isnot(None), Product.category != "")
        .distinct()
        .order_by(Product.category.asc())
        .all()
    )
    return [row[0] for row in rows]


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def product_detail(product: Product) -> dict:
    return product.to_dict(on_hand=get_quantity_on_hand(product.id))


def create_product(*, patch: dict, initial_stock: int = 0, user_id: int | None = None) -> dict:
    """
    Create a product from a validated patch dict.

    A positive ``initial_stock`` is booked as an "in" movement in the same
    commit, so the product never exists with an unexplained stock level.

    Raises:
        ConflictError: If SKU already exists
    """
    if not patch.get("sku"):
        raise ValueError("sku is required")
    if initial_stock < 0:
        raise ValueError("stock_quantity must be >= 0")

    patch.setdefault("min_stock_level", current_app.config.get("DEFAULT_MIN_STOCK_LEVEL", 10))

    def _op() -> Product:
        _check_sku_free(patch["sku"])

        p = Product()
        apply_product_patch(p, patch)
        db.session.add(p)
        db.session.flush()

        if initial_stock > 0:
            stage_movement(
                product_id=p.id,
                transaction_type="in",
                quantity=initial_stock,
                notes="Initial stock",
                reference_type="initial_stock",
                reference_id=p.id,
                user_id=user_id,
            )

        db.session.commit()
        return p

    product = run_with_retry(_op)
    current_app.logger.info("Created product %s (%s)", product.id, product.sku)
    return product_detail(product)


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """Returns None if product not found."""
    def _op():
        p = db.session.get(Product, product_id)
        if p is None:
            return None
        if "sku" in patch and patch["sku"] != p.sku:
            _check_sku_free(patch["sku"], exclude_id=p.id)
        apply_product_patch(p, patch)
        db.session.commit()
        return p

    product = run_with_retry(_op)
    if product is None:
        return None
    return product_detail(product)
