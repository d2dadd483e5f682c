# Overview: Flask API routes for purchase orders; every write moves product stock.

from flask import Blueprint, request

from ..decorators import require_auth
from ..models import Purchase
from ..models.transactions import PURCHASE_STATUSES
from ..services import transaction_service
from ..services.stock_service import InsufficientStockError, StockError
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_transaction,
    validate_payload,
)

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={
        "purchase_order_number", "supplier_id", "order_date", "expected_delivery",
        "total_amount_cents", "total_tax_cents", "status", "items", "notes",
    },
    required_on_create={"purchase_order_number", "supplier_id", "items"},
)

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_POLICY, partial=partial)
    enforce_rules_transaction(patch, allowed_statuses=PURCHASE_STATUSES, status_field="status")
    return patch


def stock_error_response(e: StockError):
    """InsufficientStock is a state conflict; a bad product id is bad input."""
    status = 409 if isinstance(e, InsufficientStockError) else 400
    return {"error": str(e), "details": e.details}, status


@purchases_bp.get("")
@require_auth
def list_purchases_route():
    purchases = transaction_service.list_purchases()
    return {"items": [p.to_dict() for p in purchases], "count": len(purchases)}


@purchases_bp.get("/<int:purchase_id>")
@require_auth
def get_purchase_route(purchase_id: int):
    purchase = transaction_service.get_purchase(purchase_id)
    if not purchase:
        return {"error": "Purchase not found"}, 404
    return purchase.to_dict()


@purchases_bp.post("")
@require_auth
def create_purchase_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = _clean(payload, partial=False)
        purchase = transaction_service.create_purchase(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StockError as e:
        return stock_error_response(e)
    return purchase.to_dict(), 201


@purchases_bp.put("/<int:purchase_id>")
@require_auth
def update_purchase_route(purchase_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = _clean(payload, partial=True)
        purchase = transaction_service.update_purchase(purchase_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StockError as e:
        return stock_error_response(e)
    if not purchase:
        return {"error": "Purchase not found"}, 404
    return purchase.to_dict(), 200


@purchases_bp.delete("/<int:purchase_id>")
@require_auth
def delete_purchase_route(purchase_id: int):
    """Reverses the purchase's stock effect, then removes it."""
    try:
        deleted = transaction_service.delete_purchase(purchase_id)
    except StockError as e:
        return stock_error_response(e)
    if not deleted:
        return {"error": "Purchase not found"}, 404
    return {"ok": True}, 200
