# Overview: In-process publish/subscribe hub for entity change notifications.

"""
Change Notification Hub

WHY: Clients keep their views live by subscribing to a stream of
{type, action, data} messages emitted after every committed mutation.

LIFECYCLE:
- one hub per Flask app, built in create_app() via init_app() and stored in
  app.extensions["notifications"]
- closed at interpreter shutdown (or explicitly in tests); closing wakes
  every subscriber with an end-of-stream marker and refuses new subscribers

DELIVERY: fire-and-forget. Each subscriber has a bounded queue; when it is
full the message is dropped for that subscriber only and the publisher
never blocks. Publishers do not learn how many subscribers exist.
"""

from __future__ import annotations

import atexit
import logging
import queue
import threading

from flask import Flask, current_app


ACTIONS = {"created", "updated", "deleted"}

_END_OF_STREAM = object()


class HubClosedError(RuntimeError):
    """Raised when subscribing to a hub that has been shut down."""


class Subscription:
    def __init__(self, hub: "NotificationHub", max_queue_size: int):
        self._hub = hub
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self.closed = False
        self.dropped = 0

    def _deliver(self, message: dict) -> bool:
        try:
            self._queue.put_nowait(message)
            return True
        except queue.Full:
            self.dropped += 1
            return False

    def _end(self) -> None:
        # The end marker must land even on a full queue; sacrifice the oldest message.
        while True:
            try:
                self._queue.put_nowait(_END_OF_STREAM)
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def next_event(self, timeout: float | None = None) -> dict | None:
        """
        Block for the next message.

        Returns None on timeout or once the stream has ended (check .closed).
        """
        if self.closed:
            return None
        try:
            message = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if message is _END_OF_STREAM:
            self.closed = True
            return None
        return message

    def close(self) -> None:
        self._hub.unsubscribe(self)


class NotificationHub:
    def __init__(self, *, max_queue_size: int = 256, logger: logging.Logger | None = None):
        self.max_queue_size = max_queue_size
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._subscribers: set[Subscription] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        with self._lock:
            if self._closed:
                raise HubClosedError("notification hub is closed")
            sub = Subscription(self, self.max_queue_size)
            self._subscribers.add(sub)
            return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            removed = sub in self._subscribers
            self._subscribers.discard(sub)
        if removed:
            sub._end()

    def publish(self, entity_type: str, action: str, payload) -> None:
        if action not in ACTIONS:
            raise ValueError(f"Unknown notification action '{action}'")
        if self._closed:
            return
        message = {"type": entity_type, "action": action, "data": payload}
        with self._lock:
            targets = list(self._subscribers)
        for sub in targets:
            if not sub._deliver(message):
                self.logger.warning("Dropped %s.%s notification for a slow subscriber", entity_type, action)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            targets = list(self._subscribers)
            self._subscribers.clear()
        for sub in targets:
            sub._end()


def init_app(app: Flask) -> NotificationHub:
    hub = NotificationHub(
        max_queue_size=app.config.get("NOTIFICATION_QUEUE_SIZE", 256),
        logger=app.logger,
    )
    app.extensions["notifications"] = hub
    atexit.register(hub.close)
    return hub


def get_hub() -> NotificationHub:
    return current_app.extensions["notifications"]


def notify(entity_type: str, action: str, payload) -> None:
    """Hand a committed mutation to the hub. Call only after commit."""
    get_hub().publish(entity_type, action, payload)
