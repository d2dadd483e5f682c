# Overview: Service-layer operations for business partners (vendors, suppliers, distributors, retailers, billed entities).

"""
Partner Service

WHY: Every partner enters the system unapproved and must pass the approval
workflow before the UI offers it for new documents. Creation writes the
partner row and its pending ApprovalRequest in one commit, so a partner can
never exist without a request to approve it.

RULES:
- is_approved and is_active are never taken from a client patch
- only suppliers can be deactivated (soft delete keeps purchase history intact)
"""

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..validation import ValidationError
from . import approval_service, repository
from .approval_service import EntityType
from .concurrency import run_with_retry
from .notification_service import notify


DEACTIVATABLE = {EntityType.SUPPLIER}

# Foreign keys a partner may carry: field -> repository of the referenced row
REFERENCES = {
    EntityType.RETAILER: (("distributor_id", repository.distributors),),
}


class PartnerOperationError(Exception):
    """Raised when an operation is not supported for a partner kind."""
    pass


def _strip_lifecycle(fields: dict) -> dict:
    return {k: v for k, v in fields.items() if k not in ("is_approved", "is_active")}


def _check_references(kind: EntityType, fields: dict) -> None:
    for field, repo in REFERENCES.get(kind, ()):
        if fields.get(field) is not None and repo.get(fields[field]) is None:
            raise ValidationError(f"{field} {fields[field]} not found")


def create_partner(entity_type, fields: dict, *, requested_by: User):
    """
    Create a partner and open its approval request.

    Args:
        entity_type: EntityType member or tag ("vendor", "billedEntity", ...)
        fields: validated column values for the partner table
        requested_by: user creating the partner (recorded on the request)

    Returns:
        The created partner (is_approved=False)
    """
    kind = approval_service.parse_entity_type(entity_type)
    repo = approval_service.resolve_entity_repository(kind)
    values = _strip_lifecycle(fields)

    def _op():
        _check_references(kind, values)
        partner = repo.create(values)
        request = approval_service.create_for(
            entity_type=kind,
            entity_id=partner.id,
            requested_by=requested_by.id,
            notes=f"New {kind.value} {partner.display_name} added by {requested_by.full_name}",
        )
        db.session.commit()
        return partner, request

    partner, request = run_with_retry(_op)
    notify(kind.value, "created", partner.to_dict())
    notify("approvalRequest", "created", request.to_dict())
    return partner


def update_partner(entity_type, partner_id: int, fields: dict):
    """Merge a patch into a partner. Returns None if the id does not exist."""
    kind = approval_service.parse_entity_type(entity_type)
    repo = approval_service.resolve_entity_repository(kind)
    values = _strip_lifecycle(fields)

    def _op():
        partner = repo.get(partner_id, for_update=True)
        if partner is None:
            return None
        _check_references(kind, values)
        repo.update(partner_id, values, obj=partner)
        db.session.commit()
        return partner

    partner = run_with_retry(_op)
    if partner is not None:
        notify(kind.value, "updated", partner.to_dict())
    return partner


def deactivate_partner(entity_type, partner_id: int) -> bool:
    kind = approval_service.parse_entity_type(entity_type)
    if kind not in DEACTIVATABLE:
        raise PartnerOperationError(f"{kind.value} records cannot be deleted")
    repo = approval_service.resolve_entity_repository(kind)

    def _op():
        deleted = repo.delete(partner_id)
        if deleted:
            db.session.commit()
        return deleted

    deleted = run_with_retry(_op)
    if deleted:
        notify(kind.value, "deleted", {"id": partner_id})
    return deleted


def get_partner(entity_type, partner_id: int):
    return approval_service.resolve_entity_repository(entity_type).get(partner_id)


def list_partners(entity_type) -> list:
    return approval_service.resolve_entity_repository(entity_type).get_all()


def list_approved_partners(entity_type) -> list:
    return approval_service.resolve_entity_repository(entity_type).get_approved()
