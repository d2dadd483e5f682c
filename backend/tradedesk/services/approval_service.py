# Overview: Approval workflow for partner entities; decision state machine plus tagged dispatch.

"""
Approval Workflow

================================================================================
PURPOSE: Gate new business partners behind an admin decision
================================================================================

STATE MACHINE:
    pending -> approved   (target entity is_approved := True)
    pending -> rejected   (no side effect)

RULES:
1. Requests are always opened as pending; a caller-supplied status is ignored
2. approved and rejected are terminal
3. Repeating the same decision on a terminal request is a no-op
4. A different decision on a terminal request is an ApprovalStateError
5. The status change and the target flag flip commit together

DISPATCH: EntityType names every approvable kind and APPROVAL_TARGETS maps
each one to its repository. Unknown tags are rejected at parse time.

CONCURRENCY: the transition is a compare-and-swap
    UPDATE approval_requests SET status = :new WHERE id = :id AND status = 'pending'
so two admins deciding at once cannot both win.
================================================================================
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import update

from ..extensions import db
from ..models import ApprovalRequest
from ..time_utils import utcnow
from ..validation import ValidationError
from . import repository
from .concurrency import run_with_retry
from .notification_service import notify


class EntityType(str, Enum):
    VENDOR = "vendor"
    SUPPLIER = "supplier"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"
    BILLED_ENTITY = "billedEntity"


APPROVAL_TARGETS: dict[EntityType, repository.EntityRepository] = {
    EntityType.VENDOR: repository.vendors,
    EntityType.SUPPLIER: repository.suppliers,
    EntityType.DISTRIBUTOR: repository.distributors,
    EntityType.RETAILER: repository.retailers,
    EntityType.BILLED_ENTITY: repository.billed_entities,
}

PENDING = "pending"
DECISIONS = {"approved", "rejected"}
APPROVAL_STATUSES = {PENDING} | DECISIONS


class ApprovalValidationError(ValidationError):
    """Bad input to the workflow (unknown status or entity type)."""


class UnknownEntityTypeError(ApprovalValidationError):
    pass


class ApprovalStateError(ValueError):
    """
    Raised when a terminal request is asked to move to a different status.

    Maps to 409: the request exists but its state forbids the transition.
    """
    pass


class ApprovalTargetMissingError(ApprovalStateError):
    """The request points at an entity row that no longer exists."""
    pass


def parse_entity_type(tag) -> EntityType:
    if isinstance(tag, EntityType):
        return tag
    try:
        return EntityType(tag)
    except ValueError:
        allowed = ", ".join(t.value for t in EntityType)
        raise UnknownEntityTypeError(f"Unknown entity type '{tag}'. Must be one of: {allowed}")


def resolve_entity_repository(entity_type) -> repository.EntityRepository:
    return APPROVAL_TARGETS[parse_entity_type(entity_type)]


def create_for(
    *,
    entity_type,
    entity_id: int,
    requested_by: int,
    notes: str | None = None,
) -> ApprovalRequest:
    """
    Open a pending request for a partner entity.

    Flushes only. The caller commits, normally in the same unit that created
    the entity, so neither row can exist without the other.
    """
    kind = parse_entity_type(entity_type)
    return repository.approval_requests.create({
        "entity_type": kind.value,
        "entity_id": entity_id,
        "requested_by": requested_by,
        "status": PENDING,
        "notes": notes,
    })


def decide(
    request_id: int,
    *,
    status: str,
    decided_by: int | None = None,
    notes: str | None = None,
) -> ApprovalRequest | None:
    """
    Apply an admin decision to a request.

    Returns the request (None if the id does not exist). Notifies
    subscribers only when the request actually transitioned.
    """
    if not isinstance(status, str) or status not in DECISIONS:
        raise ApprovalValidationError("Status must be 'approved' or 'rejected'")

    def _op():
        request = repository.approval_requests.get(request_id)
        if request is None:
            return None, False

        if request.status != PENDING:
            if request.status == status:
                return request, False
            raise ApprovalStateError(
                f"Approval request {request_id} is already {request.status}"
            )

        now = utcnow()
        values = {
            "status": status,
            "decided_by": decided_by,
            "decided_at": now,
            "updated_at": now,
        }
        if notes is not None:
            values["notes"] = notes

        result = db.session.execute(
            update(ApprovalRequest)
            .where(ApprovalRequest.id == request_id, ApprovalRequest.status == PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Lost the race; re-read and apply the terminal rules to the winner's status.
            db.session.rollback()
            request = db.session.get(ApprovalRequest, request_id, populate_existing=True)
            if request.status == status:
                return request, False
            raise ApprovalStateError(
                f"Approval request {request_id} is already {request.status}"
            )

        if status == "approved":
            target_repo = resolve_entity_repository(request.entity_type)
            if target_repo.mark_approved(request.entity_id) is None:
                raise ApprovalTargetMissingError(
                    f"{request.entity_type} {request.entity_id} not found"
                )

        db.session.commit()
        return db.session.get(ApprovalRequest, request_id, populate_existing=True), True

    request, transitioned = run_with_retry(_op)
    if transitioned:
        notify("approvalRequest", "updated", request.to_dict())
        if request.status == "approved":
            target = resolve_entity_repository(request.entity_type).get(request.entity_id)
            notify(request.entity_type, "updated", target.to_dict())
    return request


def get_request(request_id: int) -> ApprovalRequest | None:
    return repository.approval_requests.get(request_id)


def list_requests() -> list[ApprovalRequest]:
    return repository.approval_requests.get_all()


def list_pending_requests() -> list[ApprovalRequest]:
    return repository.approval_requests.filter_by(status=PENDING)


def find_requests_for(entity_type, entity_id: int) -> list[ApprovalRequest]:
    kind = parse_entity_type(entity_type)
    return repository.approval_requests.filter_by(entity_type=kind.value, entity_id=entity_id)
