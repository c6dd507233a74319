"""Password hashing for member and admin accounts (passlib + bcrypt).

Raw passwords are never stored or logged.
"""

from __future__ import annotations

from loguru import logger
from passlib.context import CryptContext

BCRYPT_MAX_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _bcrypt_input(password: str) -> str:
    # bcrypt only reads the first 72 bytes; cut on a character boundary
    encoded = password.encode("utf-8")
    if len(encoded) <= BCRYPT_MAX_BYTES:
        return password
    return encoded[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Raises:
        ValueError: empty password
    """
    if not password:
        raise ValueError("Password cannot be empty")
    return pwd_context.hash(_bcrypt_input(password))


def verify_password(plain: str, hashed: str) -> bool:
    """True when `plain` matches `hashed`; empty input or an unreadable hash never matches."""
    if not plain or not hashed:
        return False
    try:
        return pwd_context.verify(_bcrypt_input(plain), hashed)
    except ValueError as e:
        logger.warning(f"Stored password hash could not be verified: {e}")
        return False
