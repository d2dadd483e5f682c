# Overview: Flask API routes for user administration; admin only.

from flask import Blueprint, request

from ..decorators import require_auth, require_admin
from ..services import auth_service
from ..validation import ConflictError, ValidationError

users_bp = Blueprint("users", __name__, url_prefix="/api/users")

REQUIRED_USER_FIELDS = ("username", "email", "password", "full_name")


@users_bp.get("")
@require_auth
@require_admin
def list_users_route():
    users = auth_service.list_users()
    return {"items": [u.to_dict() for u in users], "count": len(users)}


@users_bp.post("")
@require_auth
@require_admin
def create_user_route():
    payload = request.get_json(silent=True) or {}

    missing = [f for f in REQUIRED_USER_FIELDS if not payload.get(f)]
    if missing:
        return {"error": f"Missing required fields: {', '.join(missing)}"}, 400

    try:
        user = auth_service.create_user(
            username=str(payload["username"]).strip(),
            email=str(payload["email"]).strip(),
            password=payload["password"],
            full_name=str(payload["full_name"]).strip(),
            role=payload.get("role", "salesperson"),
            avatar=payload.get("avatar"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return user.to_dict(), 201
