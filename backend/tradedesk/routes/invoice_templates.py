# Overview: Flask API routes for invoice templates; writes are admin only.

from flask import Blueprint, request

from ..decorators import require_auth, require_admin
from ..models import InvoiceTemplate
from ..services import template_service
from ..validation import ModelValidationPolicy, ValidationError, validate_payload

TEMPLATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "template", "is_default"},
    required_on_create={"name", "template"},
)

invoice_templates_bp = Blueprint("invoice_templates", __name__, url_prefix="/api/invoice-templates")


@invoice_templates_bp.get("")
@require_auth
def list_templates_route():
    templates = template_service.list_templates()
    return {"items": [t.to_dict() for t in templates], "count": len(templates)}


@invoice_templates_bp.get("/default")
@require_auth
def default_template_route():
    template = template_service.get_default_template()
    if not template:
        return {"error": "No default template found"}, 404
    return template.to_dict()


@invoice_templates_bp.get("/<int:template_id>")
@require_auth
def get_template_route(template_id: int):
    template = template_service.get_template(template_id)
    if not template:
        return {"error": "Template not found"}, 404
    return template.to_dict()


@invoice_templates_bp.post("")
@require_auth
@require_admin
def create_template_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=InvoiceTemplate, payload=payload, policy=TEMPLATE_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400
    template = template_service.create_template(patch)
    return template.to_dict(), 201


@invoice_templates_bp.put("/<int:template_id>")
@require_auth
@require_admin
def update_template_route(template_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=InvoiceTemplate, payload=payload, policy=TEMPLATE_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400
    template = template_service.update_template(template_id, patch)
    if not template:
        return {"error": "Template not found"}, 404
    return template.to_dict(), 200
