# Overview: Product catalog endpoints; CRUD plus the low-stock listing.

"""
Product management routes.

Every route requires a bearer session.

STOCK: stock may be set on create only. The update policy does not list it,
so a PUT carrying stock is rejected; purchases and sales move stock.
"""
from flask import Blueprint, request

from ..services import product_service
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "description", "category", "price_cents",
        "gst_rate_bps", "stock", "min_stock", "vendor_id",
    },
    required_on_create={"sku", "name", "category", "price_cents"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=product_service.PRODUCT_MUTABLE_FIELDS,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    products = product_service.list_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/low-stock")
@require_auth
def low_stock_products():
    """
    Products at or below their restock level.

    Query params:
    - threshold: int (optional) - compare against this instead of each product's min_stock
    """
    raw = request.args.get("threshold")
    threshold = None
    if raw not in (None, ""):
        try:
            threshold = int(raw)
        except ValueError:
            return {"error": "threshold must be an integer"}, 400

    products = product_service.low_stock_products(threshold)
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    product = product_service.get_product(product_id)
    if not product:
        return {"error": "Product not found"}, 404
    return product.to_dict()


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
        created = product_service.create_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = product_service.update_product(product_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    if not updated:
        return {"error": "Product not found"}, 404

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Soft delete; existing purchases and sales keep resolving the product."""
    if not product_service.delete_product(product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200
