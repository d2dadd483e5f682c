# Overview: Login, logout and current-user endpoints.

"""
POST /api/auth/login    {username|email, password} -> {user, token, session}
POST /api/auth/logout   revokes the presented bearer token
GET  /api/auth/me       the caller

There is no self sign-up; admins add staff through POST /api/users or
`flask users create`.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    login = data.get("username") or data.get("email")
    password = data.get("password")
    if not login or not password:
        return jsonify({"error": "username/email and password required"}), 400

    try:
        user = auth_service.authenticate(login, password)
        if user is None:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except Exception:
        current_app.logger.exception("Login failed for %s", login)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "user": user.to_dict(),
        "token": token,
        "session": session.to_dict(),
        "message": "Login successful",
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token, reason="User logout")
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
