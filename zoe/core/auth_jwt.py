"""Member session tokens.

A session is a signed JWT naming the member in 'sub'. Login returns it in
the body for API clients and also sets it as the `session` cookie for the
web app; every authenticated route accepts either form.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response
from jose import JWTError, jwt
from loguru import logger

from zoe.config.settings import settings

TOKEN_ISSUER = "zoe-backend"
SESSION_COOKIE = "session"


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime


def _session_lifetime() -> timedelta:
    return timedelta(days=settings.auth_token_expire_days)


def create_access_token(user_id: str, now: datetime | None = None) -> str:
    """Sign a session token for a member.

    Raises:
        ValueError: If user_id is empty
    """
    user_id_str = str(user_id) if user_id is not None else ""
    if not user_id_str:
        raise ValueError("user_id cannot be None or empty")

    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": user_id_str,
        "iat": issued_at,
        "exp": issued_at + _session_lifetime(),
        "iss": TOKEN_ISSUER,
    }
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def decode_session_claims(token: str) -> SessionClaims:
    """Verify signature, issuer and expiry and return the session claims.

    Raises:
        ValueError: If the token is invalid, expired or names no member
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_algorithm],
            issuer=TOKEN_ISSUER,
        )
    except JWTError as e:
        logger.warning(f"Session token rejected: {e}")
        raise ValueError("Invalid or expired token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token missing user ID")
    return SessionClaims(
        user_id=str(user_id),
        issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def decode_access_token(token: str) -> str:
    """Return the member id of a valid session token."""
    return decode_session_claims(token).user_id


def session_token_from_cookie(request: Request) -> str | None:
    return request.cookies.get(SESSION_COOKIE) or None


def set_session_cookie(response: Response, token: str, request: Request) -> None:
    """Attach the session cookie; marked secure only when served over HTTPS."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=request.url.scheme == "https",
        samesite="lax",
        max_age=int(_session_lifetime().total_seconds()),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE)
