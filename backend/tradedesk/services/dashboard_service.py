# Overview: Aggregate counts and totals for the dashboard view.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Purchase, Sale, User
from .stock_service import get_low_stock_products


def _overview(model) -> dict:
    total, count = db.session.query(
        func.coalesce(func.sum(model.total_amount_cents), 0),
        func.count(model.id),
    ).one()
    return {"total_cents": int(total), "count": int(count)}


def get_dashboard() -> dict:
    """
    Snapshot of products, users and transaction totals.

    Low stock uses each product's own min_stock (no threshold).
    """
    total_products = db.session.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar()
    low_stock = len(get_low_stock_products())
    total_users = db.session.query(func.count(User.id)).scalar()

    return {
        "total_products": total_products,
        "low_stock_products": low_stock,
        "total_users": total_users,
        "sales_overview": _overview(Sale),
        "purchase_overview": _overview(Purchase),
        "inventory_summary": {
            "total": total_products,
            "low_stock": low_stock,
        },
    }
