# Overview: Staff accounts; bcrypt password hashing, user creation and credential checks.

"""
Staff accounts.

Sales are attributed to the salesperson who entered them and approval
decisions to the deciding admin, so every write is made by a logged-in user.

RULES:
- bcrypt with BCRYPT_ROUNDS cost (tests lower it)
- passwords: 8+ chars with upper, lower, digit and punctuation
- roles: salesperson (default), manager, admin
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..models.auth import USER_ROLES
from ..validation import ConflictError, ValidationError
from ..time_utils import utcnow


class PasswordValidationError(ValidationError):
    pass


MIN_PASSWORD_LENGTH = 8

PASSWORD_RULES = (
    (r"[A-Z]", "an uppercase letter"),
    (r"[a-z]", "a lowercase letter"),
    (r"\d", "a digit"),
    (r"[!@#$%^&*(),.'\":{}|<>?_\-]", "a special character"),
)


def validate_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    for pattern, label in PASSWORD_RULES:
        if not re.search(pattern, password):
            raise PasswordValidationError(f"Password must contain {label}")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def create_user(
    *,
    username: str,
    email: str,
    password: str,
    full_name: str,
    role: str = "salesperson",
    avatar: str | None = None,
) -> User:
    """
    Create and commit a user.

    Raises ValidationError for an unknown role or weak password and
    ConflictError when the username is taken.
    """
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(USER_ROLES))}")

    taken = db.session.query(User.id).filter(User.username == username).first()
    if taken:
        raise ConflictError(f"Username '{username}' already exists")

    now = utcnow()
    user = User(
        username=username,
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        role=role,
        avatar=avatar,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(login: str, password: str) -> User | None:
    """Match an active user by username or email and check the password."""
    user = (
        db.session.query(User)
        .filter(db.or_(User.username == login, User.email == login), User.is_active.is_(True))
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.id.asc()).all()
