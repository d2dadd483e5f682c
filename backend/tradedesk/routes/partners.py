# Overview: Flask API routes for business partners; one blueprint per partner kind.

"""
Partner routes (vendors, suppliers, distributors, retailers, billed entities).

Every kind exposes the same surface, built by make_partner_blueprint():

    GET    /api/<kind>            active rows
    GET    /api/<kind>/approved   rows that passed the approval workflow
    GET    /api/<kind>/<id>
    POST   /api/<kind>            create unapproved + open approval request
    PUT    /api/<kind>/<id>       is_approved / is_active are not writable
    DELETE /api/<kind>/<id>       suppliers only, admin only (soft delete)
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_admin
from ..models import BilledEntity, Distributor, Retailer, Supplier, Vendor
from ..services import partner_service
from ..services.approval_service import EntityType
from ..validation import ModelValidationPolicy, ValidationError, validate_payload


CONTACT_FIELDS = {"contact_name", "email", "phone", "address", "gst_number"}
CONTACT_REQUIRED = {"contact_name", "email", "phone", "address"}


def make_partner_blueprint(
    *,
    name: str,
    url_segment: str,
    entity_type: EntityType,
    model,
    fields: set[str],
    required: set[str],
    label: str,
    deletable: bool = False,
) -> Blueprint:
    bp = Blueprint(name, __name__, url_prefix=f"/api/{url_segment}")

    create_policy = ModelValidationPolicy(
        writable_fields=fields | CONTACT_FIELDS,
        required_on_create=required | CONTACT_REQUIRED,
    )
    update_policy = ModelValidationPolicy(writable_fields=fields | CONTACT_FIELDS)

    @bp.get("")
    @require_auth
    def list_route():
        rows = partner_service.list_partners(entity_type)
        return {"items": [r.to_dict() for r in rows], "count": len(rows)}

    @bp.get("/approved")
    @require_auth
    def list_approved_route():
        rows = partner_service.list_approved_partners(entity_type)
        return {"items": [r.to_dict() for r in rows], "count": len(rows)}

    @bp.get("/<int:partner_id>")
    @require_auth
    def get_route(partner_id: int):
        row = partner_service.get_partner(entity_type, partner_id)
        if not row:
            return {"error": f"{label} not found"}, 404
        return row.to_dict()

    @bp.post("")
    @require_auth
    def create_route():
        payload = request.get_json(silent=True) or {}
        try:
            patch = validate_payload(model=model, payload=payload, policy=create_policy, partial=False)
            row = partner_service.create_partner(entity_type, patch, requested_by=g.current_user)
        except ValidationError as e:
            return {"error": str(e)}, 400
        return row.to_dict(), 201

    @bp.put("/<int:partner_id>")
    @require_auth
    def update_route(partner_id: int):
        payload = request.get_json(silent=True) or {}
        try:
            patch = validate_payload(model=model, payload=payload, policy=update_policy, partial=True)
            row = partner_service.update_partner(entity_type, partner_id, patch)
        except ValidationError as e:
            return {"error": str(e)}, 400
        if not row:
            return {"error": f"{label} not found"}, 404
        return row.to_dict(), 200

    if deletable:
        @bp.delete("/<int:partner_id>")
        @require_auth
        @require_admin
        def delete_route(partner_id: int):
            if not partner_service.deactivate_partner(entity_type, partner_id):
                return {"error": f"{label} not found"}, 404
            return {"ok": True}, 200

    return bp


vendors_bp = make_partner_blueprint(
    name="vendors",
    url_segment="vendors",
    entity_type=EntityType.VENDOR,
    model=Vendor,
    fields={"name"},
    required={"name"},
    label="Vendor",
)

suppliers_bp = make_partner_blueprint(
    name="suppliers",
    url_segment="suppliers",
    entity_type=EntityType.SUPPLIER,
    model=Supplier,
    fields={"company_name", "payment_terms", "pricing_info"},
    required={"company_name", "payment_terms", "pricing_info"},
    label="Supplier",
    deletable=True,
)

distributors_bp = make_partner_blueprint(
    name="distributors",
    url_segment="distributors",
    entity_type=EntityType.DISTRIBUTOR,
    model=Distributor,
    fields={"name", "region"},
    required={"name", "region"},
    label="Distributor",
)

retailers_bp = make_partner_blueprint(
    name="retailers",
    url_segment="retailers",
    entity_type=EntityType.RETAILER,
    model=Retailer,
    fields={"store_name", "distributor_id"},
    required={"store_name"},
    label="Retailer",
)

billed_entities_bp = make_partner_blueprint(
    name="billed_entities",
    url_segment="billed-entities",
    entity_type=EntityType.BILLED_ENTITY,
    model=BilledEntity,
    fields={"name", "type"},
    required={"name", "type"},
    label="Billed entity",
)

PARTNER_BLUEPRINTS = (vendors_bp, suppliers_bp, distributors_bp, retailers_bp, billed_entities_bp)
