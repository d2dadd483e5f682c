# backend/tradedesk/services/product_service.py
"""
Products Service

Stock is set once at creation. After that only the stock ledger
(purchases and sales) moves it, so update_product ignores stock and
is_active even if a caller passes them.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..validation import ConflictError, ValidationError
from . import repository, stock_service
from .concurrency import run_with_retry
from .notification_service import notify

PRODUCT_MUTABLE_FIELDS = {
    "sku",
    "name",
    "description",
    "category",
    "price_cents",
    "gst_rate_bps",
    "min_stock",
    "vendor_id",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_sku_unique(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"SKU '{sku}' already exists")


def _check_vendor(vendor_id) -> None:
    if vendor_id is not None and repository.vendors.get(vendor_id) is None:
        raise ValidationError(f"vendor_id {vendor_id} not found")


def list_products() -> list[Product]:
    return repository.products.get_all()


def get_product(product_id: int) -> Product | None:
    return repository.products.get(product_id)


def create_product(patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ConflictError: If SKU already exists
        ValidationError: If vendor_id does not resolve
    """
    def _op():
        _check_sku_unique(patch["sku"])
        _check_vendor(patch.get("vendor_id"))
        product = repository.products.create(patch)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    notify("product", "created", product.to_dict())
    return product


def update_product(product_id: int, patch: dict) -> Product | None:
    def _op():
        product = repository.products.get(product_id, for_update=True)
        if product is None:
            return None
        if "sku" in patch and patch["sku"] != product.sku:
            _check_sku_unique(patch["sku"], exclude_id=product_id)
        if "vendor_id" in patch:
            _check_vendor(patch["vendor_id"])
        apply_product_patch(product, patch)
        repository.products.update(product_id, {}, obj=product)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    if product is not None:
        notify("product", "updated", product.to_dict())
    return product


def delete_product(product_id: int) -> bool:
    """Soft delete: the row stays so existing purchases and sales still resolve."""
    def _op():
        deleted = repository.products.delete(product_id)
        if deleted:
            db.session.commit()
        return deleted

    deleted = run_with_retry(_op)
    if deleted:
        notify("product", "deleted", {"id": product_id})
    return deleted


def low_stock_products(threshold: int | None = None) -> list[Product]:
    return stock_service.get_low_stock_products(threshold)
