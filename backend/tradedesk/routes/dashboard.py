# Overview: Flask API route for dashboard aggregates.

from flask import Blueprint, current_app

from ..decorators import require_auth
from ..services.dashboard_service import get_dashboard

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
def dashboard_route():
    try:
        return get_dashboard()
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return {"error": "Failed to fetch dashboard data"}, 500
