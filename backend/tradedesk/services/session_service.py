# Overview: Bearer session tokens for staff logins; issue, check, revoke, purge.

"""
Session tokens.

The client holds a random 32-byte hex token; the sessions table keeps only
its SHA-256 digest. A token stops working when any of these hold:

- it was revoked (logout, idle expiry, account deactivated)
- expires_at has passed (SESSION_ABSOLUTE_TIMEOUT_HOURS after login)
- last_used_at is older than SESSION_IDLE_TIMEOUT_HOURS
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


PURGE_AFTER = timedelta(days=30)


def _hours(key: str, default: int) -> timedelta:
    return timedelta(hours=current_app.config.get(key, default))


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Tokens carry full entropy already, a fast digest is enough
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Persist a new session for user_id and return (row, plaintext token)."""
    if db.session.get(User, user_id) is None:
        raise ValueError(f"User {user_id} not found")

    token = generate_token()
    issued = utcnow()
    row = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=issued,
        last_used_at=issued,
        expires_at=issued + _hours("SESSION_ABSOLUTE_TIMEOUT_HOURS", 168),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(row)
    db.session.commit()
    return row, token


def _revoke(row: SessionToken, reason: str) -> None:
    row.is_revoked = True
    row.revoked_at = utcnow()
    row.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> User | None:
    """
    Resolve a bearer token to its active user, or None.

    Idle sessions and sessions of deactivated users are revoked as a side
    effect. A successful check slides last_used_at forward.
    """
    row = _live_session(token)
    if row is None:
        return None

    now = utcnow()
    if row.expires_at < now:
        return None
    if now - row.last_used_at > _hours("SESSION_IDLE_TIMEOUT_HOURS", 12):
        _revoke(row, "Idle timeout")
        return None

    user = row.user
    if user is None or not user.is_active:
        _revoke(row, "User account deactivated")
        return None

    row.last_used_at = now
    db.session.commit()
    return user


def revoke_session(token: str, reason: str = "User logout") -> bool:
    row = _live_session(token)
    if row is None:
        return False
    _revoke(row, reason)
    return True


def cleanup_expired_sessions() -> int:
    """Delete dead sessions created more than PURGE_AFTER ago; returns the count."""
    now = utcnow()
    dead = db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True))
    deleted = (
        db.session.query(SessionToken)
        .filter(dead, SessionToken.created_at < now - PURGE_AFTER)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
