"""
Admin authentication service: password hashing and JWT session tokens.

There is a single admin account; its bcrypt hash lives in the
ADMIN_PASSWORD_HASH environment variable (generate one with
scripts/generate_admin_hash.py).
"""

import os
import logging
from datetime import timedelta
from typing import Optional, Dict
import bcrypt
import jwt
from dotenv import load_dotenv

from sessionbook.services.errors import AdminNotConfiguredError
from sessionbook.utils.datetime_utils import utcnow

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
SESSION_TIMEOUT_SECONDS = int(os.getenv("SESSION_TIMEOUT_SECONDS", "3600"))
BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a password against a bcrypt hash.

    Returns False (never raises) for malformed hashes.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Error verifying password: {e}")
        return False


def get_admin_password_hash() -> Optional[str]:
    """Read the admin hash at call time so tests can monkeypatch the environment."""
    return os.getenv("ADMIN_PASSWORD_HASH") or None


def authenticate_admin(password: str) -> bool:
    """
    Verify the admin password.

    Raises:
        AdminNotConfiguredError: If ADMIN_PASSWORD_HASH is not set
    """
    password_hash = get_admin_password_hash()
    if not password_hash:
        logger.error("ADMIN_PASSWORD_HASH environment variable not set")
        raise AdminNotConfiguredError()
    return verify_password(password, password_hash)


def create_admin_token(expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed admin session token.

    Args:
        expires_delta: Token lifetime (defaults to SESSION_TIMEOUT_SECONDS)
    """
    now = utcnow()
    expire = now + (expires_delta or timedelta(seconds=SESSION_TIMEOUT_SECONDS))
    payload = {"is_admin": True, "iat": now, "exp": expire}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict]:
    """
    Decode and validate a token.

    Returns:
        The payload, or None if the token is invalid, expired or not an admin token
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    if not payload.get("is_admin"):
        return None
    return payload
