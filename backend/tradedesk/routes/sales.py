# Overview: Flask API routes for sales invoices; every write moves product stock.

"""
Sales routes.

OWNERSHIP: admins see and change every sale. Everyone else only sees and
changes sales where they are the salesperson, and cannot book a sale for
somebody else. POST defaults salesperson_id to the caller.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..models import Sale
from ..models.transactions import PAYMENT_STATUSES
from ..services import transaction_service
from ..services.stock_service import StockError
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_transaction,
    validate_payload,
)
from .purchases import stock_error_response

SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "invoice_number", "salesperson_id", "retailer_id", "billed_entity_id", "sale_date",
        "total_amount_cents", "total_tax_cents", "items", "payment_status",
        "payment_terms", "notes", "signature",
    },
    required_on_create={"invoice_number", "salesperson_id", "retailer_id", "billed_entity_id", "items"},
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _clean(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=partial)
    enforce_rules_transaction(patch, allowed_statuses=PAYMENT_STATUSES, status_field="payment_status")
    return patch


def _can_access(salesperson_id: int) -> bool:
    user = g.current_user
    return user.is_admin or salesperson_id == user.id


@sales_bp.get("")
@require_auth
def list_sales_route():
    if g.current_user.is_admin:
        sales = transaction_service.list_sales()
    else:
        sales = transaction_service.list_sales_by_salesperson(g.current_user.id)
    return {"items": [s.to_dict() for s in sales], "count": len(sales)}


@sales_bp.get("/salesperson/<int:user_id>")
@require_auth
def list_salesperson_sales_route(user_id: int):
    if not _can_access(user_id):
        return {"error": "Forbidden: You can only view your own sales"}, 403
    sales = transaction_service.list_sales_by_salesperson(user_id)
    return {"items": [s.to_dict() for s in sales], "count": len(sales)}


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    sale = transaction_service.get_sale(sale_id)
    if not sale:
        return {"error": "Sale not found"}, 404
    if not _can_access(sale.salesperson_id):
        return {"error": "Forbidden: You can only view your own sales"}, 403
    return sale.to_dict()


@sales_bp.post("")
@require_auth
def create_sale_route():
    payload = dict(request.get_json(silent=True) or {})
    if payload.get("salesperson_id") is None:
        payload["salesperson_id"] = g.current_user.id

    try:
        patch = _clean(payload, partial=False)
        if not _can_access(patch["salesperson_id"]):
            return {"error": "Forbidden: You can only create your own sales"}, 403
        sale = transaction_service.create_sale(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StockError as e:
        return stock_error_response(e)
    return sale.to_dict(), 201


@sales_bp.put("/<int:sale_id>")
@require_auth
def update_sale_route(sale_id: int):
    sale = transaction_service.get_sale(sale_id)
    if not sale:
        return {"error": "Sale not found"}, 404
    if not _can_access(sale.salesperson_id):
        return {"error": "Forbidden: You can only update your own sales"}, 403

    payload = request.get_json(silent=True) or {}
    try:
        patch = _clean(payload, partial=True)
        if "salesperson_id" in patch and not _can_access(patch["salesperson_id"]):
            return {"error": "Forbidden: You can only update your own sales"}, 403
        updated = transaction_service.update_sale(sale_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StockError as e:
        return stock_error_response(e)
    if not updated:
        return {"error": "Sale not found"}, 404
    return updated.to_dict(), 200


@sales_bp.delete("/<int:sale_id>")
@require_auth
def delete_sale_route(sale_id: int):
    """Returns the sold quantities to stock, then removes the sale."""
    sale = transaction_service.get_sale(sale_id)
    if not sale:
        return {"error": "Sale not found"}, 404
    if not _can_access(sale.salesperson_id):
        return {"error": "Forbidden: You can only delete your own sales"}, 403

    try:
        deleted = transaction_service.delete_sale(sale_id)
    except StockError as e:
        return stock_error_response(e)
    if not deleted:
        return {"error": "Sale not found"}, 404
    return {"ok": True}, 200
