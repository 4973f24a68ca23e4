# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Passwords are hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12).
Accounts are created by admins only; there is no self-registration. An
inactive account can neither log in nor keep an existing session (see
session_service).
"""

import bcrypt
import re
from flask import current_app
from ..extensions import db
from ..models import User, USER_ROLES
from ..validation import ConflictError, ValidationError
from . import session_service
from vendtrack.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet requirements."""


class AuthError(Exception):
    """Raised when credentials are rejected."""


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor from BCRYPT_ROUNDS).

    Password is validated before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_user(
    email: str,
    password: str,
    name: str,
    role: str = "routeman",
    is_active: bool = True,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: missing name, malformed email or unknown role
        PasswordValidationError: password too short
        ConflictError: email already registered
    """
    email = normalize_email(email)
    name = (name or "").strip()

    if not email or not EMAIL_RE.match(email):
        raise ValidationError("A valid email is required")
    if not name:
        raise ValidationError("name is required")
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already exists")

    now = utcnow()
    user = User(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(password),
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Check credentials. Returns the active User on success, None otherwise.
    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def login(
    email: str,
    password: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[User, str]:
    """
    Authenticate and open a session.

    Returns (user, plaintext_token). Raises AuthError on bad credentials.
    """
    if not email or not password:
        raise AuthError("email and password required")

    user = authenticate(email, password)
    if not user:
        raise AuthError("Invalid credentials")

    _, token = session_service.create_session(
        user_id=user.id,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return user, token


def logout(token: str) -> bool:
    return session_service.revoke_session(token, reason="User logout")
