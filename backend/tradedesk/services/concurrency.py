# Overview: Transaction helpers shared by every multi-step write in the service layer.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


TRANSIENT_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.05, retry_on=()):
    """
    Run func() as one atomic unit, retrying on concurrency failures.

    func is expected to do all its writes and commit once. Any exception
    rolls the session back so no partial step survives. OperationalError
    (locks, deadlocks) and StaleDataError are always retried; callers can
    add more via retry_on (e.g. IntegrityError for unique-index races).
    """
    if attempts is None:
        attempts = current_app.config.get("DB_RETRY_ATTEMPTS", 3)
    retryable = TRANSIENT_ERRORS + tuple(retry_on)

    for attempt in range(attempts):
        try:
            return func()
        except retryable:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
