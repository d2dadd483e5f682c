# Overview: Stock ledger; applies signed stock deltas for purchase and sale line items.

"""
Stock Ledger Invariants (authoritative)

- Product.stock == initial stock + SUM(purchase quantities) - SUM(sale quantities)
  over every purchase/sale row that currently exists.
- A delta is applied as one store-side statement:
      UPDATE products SET stock = stock + :delta WHERE id = :id
  never as read-then-write in Python, so concurrent deltas cannot lose updates.
- Purchases add quantity, sales subtract it; reversal applies the opposite sign.
- Line items are walked in order inside the caller's DB transaction. A bad
  product id raises ProductNotFoundError and the caller rolls the whole unit
  back, so earlier items in the same document do not stay applied.
- Negative stock is allowed unless ALLOW_NEGATIVE_STOCK is False; then the
  statement carries `stock + :delta >= 0` and a miss raises
  InsufficientStockError.

Nothing here commits.
"""

from __future__ import annotations

from enum import Enum

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Product
from ..time_utils import utcnow


class TransactionKind(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"


# Sign applied to a line quantity when the document is recorded
_RECORD_SIGN = {
    TransactionKind.PURCHASE: 1,
    TransactionKind.SALE: -1,
}


class StockError(Exception):
    """Base class for stock ledger failures."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFoundError(StockError):
    """A line item references a product id that does not exist."""


class InsufficientStockError(StockError):
    """A negative delta would take stock below zero while that is disallowed."""


def _negative_stock_allowed() -> bool:
    return bool(current_app.config.get("ALLOW_NEGATIVE_STOCK", True))


def apply_delta(product_id: int, signed_quantity: int) -> Product | None:
    """
    Add signed_quantity to the product's stock in the store.

    Returns the refreshed Product, or None if no product has that id.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + signed_quantity, updated_at=utcnow())
    )
    guarded = signed_quantity < 0 and not _negative_stock_allowed()
    if guarded:
        stmt = stmt.where(Product.stock + signed_quantity >= 0)

    result = db.session.execute(stmt.execution_options(synchronize_session=False))

    if result.rowcount == 0:
        product = db.session.get(Product, product_id)
        if product is None:
            current_app.logger.warning("Stock delta %+d skipped: product %s not found", signed_quantity, product_id)
            return None
        raise InsufficientStockError(
            f"Insufficient stock for product {product_id}",
            details={
                "product_id": product_id,
                "requested_delta": signed_quantity,
                "on_hand": product.stock,
            },
        )

    return db.session.get(Product, product_id, populate_existing=True)


def _apply_items(items: list[dict], sign: int) -> list[Product]:
    touched = []
    for item in items:
        product = apply_delta(item["product_id"], sign * item["quantity"])
        if product is None:
            raise ProductNotFoundError(
                f"Product {item['product_id']} not found",
                details={"product_id": item["product_id"]},
            )
        touched.append(product)
    return touched


def record_purchase(items: list[dict]) -> list[Product]:
    return _apply_items(items, _RECORD_SIGN[TransactionKind.PURCHASE])


def record_sale(items: list[dict]) -> list[Product]:
    return _apply_items(items, _RECORD_SIGN[TransactionKind.SALE])


def reverse_transaction(kind: TransactionKind, items: list[dict]) -> list[Product]:
    """Undo the stock effect of a recorded purchase or sale (used before delete)."""
    return _apply_items(items, -_RECORD_SIGN[TransactionKind(kind)])


def net_deltas(kind: TransactionKind, old_items: list[dict], new_items: list[dict]) -> dict[int, int]:
    """
    Per-product stock change needed to move from old_items to new_items.

    Zero entries are dropped. Keys come back sorted so concurrent updates
    lock product rows in the same order.
    """
    sign = _RECORD_SIGN[TransactionKind(kind)]
    totals: dict[int, int] = {}
    for item in old_items:
        totals[item["product_id"]] = totals.get(item["product_id"], 0) - sign * item["quantity"]
    for item in new_items:
        totals[item["product_id"]] = totals.get(item["product_id"], 0) + sign * item["quantity"]
    return {pid: totals[pid] for pid in sorted(totals) if totals[pid] != 0}


def apply_net_deltas(deltas: dict[int, int]) -> list[Product]:
    touched = []
    for product_id, delta in deltas.items():
        product = apply_delta(product_id, delta)
        if product is None:
            raise ProductNotFoundError(
                f"Product {product_id} not found",
                details={"product_id": product_id},
            )
        touched.append(product)
    return touched


def get_low_stock_products(threshold: int | None = None) -> list[Product]:
    """
    Active products that need restocking.

    - threshold given: stock <= threshold
    - threshold omitted: stock <= the product's own min_stock
    """
    query = db.session.query(Product).filter(Product.is_active.is_(True))
    if threshold is not None:
        query = query.filter(Product.stock <= threshold)
    else:
        query = query.filter(Product.stock <= Product.min_stock)
    return query.order_by(Product.stock.asc(), Product.id.asc()).all()
