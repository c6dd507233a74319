"""FastAPI authentication dependencies for JWT-based auth.

Tokens are accepted from the Authorization header (Bearer) or the
`session` cookie set at login.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
from sqlalchemy import select

from zoe.core.auth_jwt import SESSION_COOKIE, decode_access_token, session_token_from_cookie
from zoe.db.models import User
from zoe.db.session import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def _get_auth_token(request: Request, token: str | None = Depends(oauth2_scheme)) -> str | None:
    """Extract auth token from either Authorization header or cookie."""
    if token:
        return token
    return session_token_from_cookie(request)


def get_current_user_id(request: Request, token: str | None = Depends(oauth2_scheme)) -> str:
    """FastAPI dependency to get current authenticated user ID from JWT token.

    Returns:
        User ID (string) from token

    Raises:
        HTTPException: 401 if token is missing, invalid, expired or the user is gone
        HTTPException: 403 if user account is inactive
    """
    auth_token = _get_auth_token(request, token)

    if not auth_token:
        logger.warning(
            f"Auth failed: Missing authentication token. "
            f"Cookie present: {SESSION_COOKIE in request.cookies}, "
            f"Path: {request.url.path}, Method: {request.method}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Please log in.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = decode_access_token(auth_token)
    except ValueError as e:
        logger.warning(f"Auth failed: {e}, Path: {request.url.path}, Method: {request.method}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    with get_session() as session:
        user_result = session.execute(select(User).where(User.id == user_id)).first()
        if not user_result:
            logger.warning(f"Auth failed: User not found user_id={user_id}, Path: {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user = user_result[0]
        if not user.is_active:
            logger.warning(f"Auth failed: Inactive user user_id={user_id}, Path: {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account inactive.",
            )

    return user_id


def get_optional_user_id(request: Request, token: str | None = Depends(oauth2_scheme)) -> str | None:
    """Like get_current_user_id, but returns None instead of raising."""
    auth_token = _get_auth_token(request, token)
    if not auth_token:
        return None

    try:
        user_id = decode_access_token(auth_token)
    except ValueError:
        logger.debug(f"Optional auth: Invalid token for path={request.url.path}")
        return None

    with get_session() as session:
        user = session.get(User, user_id)
        if user is None or not user.is_active:
            logger.debug(f"Optional auth: no active user user_id={user_id}, Path: {request.url.path}")
            return None

    return user_id


def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    """Dependency for admin console routes.

    Raises:
        HTTPException: 403 if the authenticated user is not an admin
    """
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None or not user.is_admin:
            logger.warning(f"Admin access denied for user_id={user_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required.",
            )
    return user_id
