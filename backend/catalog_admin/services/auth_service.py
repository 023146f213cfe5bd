# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Admin credential verification.

Login is a single stateless attempt: look up exactly one active admin by
username (case-sensitive exact match), then compare the submitted password
against the stored bcrypt hash. No rate limiting, no lockout.

AdminNotFoundError and InvalidCredentialError are both AuthenticationError;
callers show one generic message for either (LOGIN_FAILED_MESSAGE).

When no admin matches, a comparison against a throwaway hash still runs so a
missing / inactive username costs the same bcrypt work as a wrong password.
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Admin
from .catalog_backend import backend_call


LOGIN_FAILED_MESSAGE = "Invalid username or password"

_DUMMY_HASH: bytes | None = None


class AuthenticationError(Exception):
    """Base for login failures; str() is always the generic message."""

    def __init__(self, message: str = LOGIN_FAILED_MESSAGE):
        super().__init__(message)


class AdminNotFoundError(AuthenticationError):
    """No active admin with that username."""


class InvalidCredentialError(AuthenticationError):
    """Password does not match the stored hash."""


def _bcrypt_rounds() -> int:
    try:
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    except RuntimeError:
        return 12


def hash_password(password: str, rounds: int | None = None) -> str:
    """
    Hash password using bcrypt.

    The cost factor comes from BCRYPT_ROUNDS unless given explicitly.
    """
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=rounds or _bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    malformed stored hash). Accepts $2a$/$2b$/$2y$ hashes.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _burn_comparison(password: str) -> None:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = bcrypt.hashpw(b"catalog-admin-timing", bcrypt.gensalt(rounds=_bcrypt_rounds()))
    bcrypt.checkpw((password or "").encode('utf-8'), _DUMMY_HASH)


def find_active_admin(username: str) -> Admin | None:
    with backend_call("Admin lookup"):
        return (
            db.session.query(Admin)
            .filter(Admin.username == username, Admin.is_active.is_(True))
            .one_or_none()
        )


def authenticate(username: str, password: str) -> Admin:
    """
    Authenticate an admin with username and password.

    Returns the Admin on success.

    Raises:
        AdminNotFoundError: no active admin has that username
        InvalidCredentialError: password mismatch
        CatalogBackendError: the lookup itself failed
    """
    admin = find_active_admin(username)

    if admin is None:
        _burn_comparison(password)
        raise AdminNotFoundError()

    if not verify_password(password, admin.password_hash):
        raise InvalidCredentialError()

    return admin


def create_admin(username: str, password: str, email: str | None = None, is_active: bool = True) -> Admin:
    """
    Create an admin account.

    Raises ValueError if the username is blank or already taken.
    """
    username = (username or "").strip()
    if not username:
        raise ValueError("Username is required")

    existing = db.session.query(Admin).filter_by(username=username).first()
    if existing:
        raise ValueError("Username already exists")

    admin = Admin(
        username=username,
        password_hash=hash_password(password),
        email=(email or None),
        is_active=is_active,
    )
    db.session.add(admin)
    db.session.commit()
    return admin


def set_admin_active(username: str, is_active: bool) -> Admin | None:
    admin = db.session.query(Admin).filter_by(username=username).first()
    if admin is None:
        return None
    admin.is_active = is_active
    db.session.commit()
    return admin
