# Overview: Flask API routes for approval requests; admin only.

"""
Approval request routes.

PUT /api/approval-requests/<id> with {"status": "approved"|"rejected", "notes": "..."}

- 400: status not approved/rejected
- 404: unknown request id
- 409: request already decided the other way (or its target is gone)
- repeating the decision that was already made returns 200 with no change
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_admin
from ..services import approval_service
from ..services.approval_service import ApprovalStateError, ApprovalValidationError

approvals_bp = Blueprint("approvals", __name__, url_prefix="/api/approval-requests")


@approvals_bp.get("")
@require_auth
@require_admin
def list_requests_route():
    requests = approval_service.list_requests()
    return {"items": [r.to_dict() for r in requests], "count": len(requests)}


@approvals_bp.get("/pending")
@require_auth
@require_admin
def list_pending_route():
    requests = approval_service.list_pending_requests()
    return {"items": [r.to_dict() for r in requests], "count": len(requests)}


@approvals_bp.get("/<int:request_id>")
@require_auth
@require_admin
def get_request_route(request_id: int):
    approval = approval_service.get_request(request_id)
    if not approval:
        return {"error": "Approval request not found"}, 404
    return approval.to_dict()


@approvals_bp.put("/<int:request_id>")
@require_auth
@require_admin
def decide_route(request_id: int):
    payload = request.get_json(silent=True) or {}
    status = payload.get("status")
    if not isinstance(status, str):
        return {"error": "status must be a string"}, 400
    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        return {"error": "notes must be a string"}, 400

    try:
        approval = approval_service.decide(
            request_id,
            status=status,
            decided_by=g.current_user.id,
            notes=notes,
        )
    except ApprovalValidationError as e:
        return {"error": str(e)}, 400
    except ApprovalStateError as e:
        return {"error": str(e)}, 409

    if not approval:
        return {"error": "Approval request not found"}, 404

    return approval.to_dict(), 200
