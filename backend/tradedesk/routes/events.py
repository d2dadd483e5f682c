# Overview: Server-Sent Events stream of entity change notifications.

"""
GET /api/events

Each committed mutation arrives as

    event: <entity type>
    data: {"type": "...", "action": "created|updated|deleted", "data": {...}}

A comment line is sent every EVENTS_HEARTBEAT_SECONDS so proxies keep the
connection open. The stream ends when the client disconnects or the hub
shuts down.
"""

import json

from flask import Blueprint, Response, current_app

from ..decorators import require_auth
from ..services.notification_service import HubClosedError, get_hub

events_bp = Blueprint("events", __name__, url_prefix="/api/events")


def format_sse(message: dict) -> str:
    return f"event: {message['type']}\ndata: {json.dumps(message, default=str)}\n\n"


def stream_subscription(subscription, heartbeat: float):
    try:
        yield ": connected\n\n"
        while True:
            message = subscription.next_event(timeout=heartbeat)
            if message is None:
                if subscription.closed:
                    break
                yield ": keepalive\n\n"
                continue
            yield format_sse(message)
    finally:
        subscription.close()


@events_bp.get("")
@require_auth
def events_route():
    try:
        subscription = get_hub().subscribe()
    except HubClosedError:
        return {"error": "Notifications unavailable"}, 503

    heartbeat = current_app.config.get("EVENTS_HEARTBEAT_SECONDS", 15)
    response = Response(
        stream_subscription(subscription, heartbeat),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
    # Covers clients that disconnect before the first chunk is pulled
    response.call_on_close(subscription.close)
    return response
