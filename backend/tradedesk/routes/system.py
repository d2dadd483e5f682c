# Overview: Public liveness endpoint covering the database and the notification hub.

"""
GET /health

200 when every check passes, 503 otherwise. No authentication, so load
balancers can probe it.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, User
from ..services.notification_service import get_hub
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def check_database_health() -> dict:
    started = time.perf_counter()
    try:
        users = db.session.query(func.count(User.id)).scalar()
        products = db.session.query(func.count(Product.id)).scalar()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Health probe could not reach the database")
        return {"status": "unhealthy", "latency_ms": _elapsed_ms(started), "error": "Database error"}

    return {
        "status": "healthy",
        "latency_ms": _elapsed_ms(started),
        "details": {"users": users, "products": products},
    }


def check_notification_health() -> dict:
    hub = get_hub()
    if hub.closed:
        return {"status": "unhealthy", "error": "Notification hub is closed"}
    return {"status": "healthy", "details": {"subscribers": hub.subscriber_count}}


@system_bp.get("/health")
def health():
    started = time.perf_counter()
    checks = {
        "database": check_database_health(),
        "notifications": check_notification_health(),
    }
    healthy = all(c["status"] == "healthy" for c in checks.values())

    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": _elapsed_ms(started),
        "checks": checks,
    }
    return body, 200 if healthy else 503
