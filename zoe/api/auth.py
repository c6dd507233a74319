"""Authentication endpoints: email/password login, session lookup, logout."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, EmailStr
from sqlalchemy import select

from zoe.api.dependencies.auth import get_current_user_id
from zoe.core.auth_jwt import clear_session_cookie, create_access_token, set_session_cookie
from zoe.core.password import verify_password
from zoe.db.models import User
from zoe.db.session import get_session

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def _normalize_email(email: str) -> str:
    return email.lower().strip()


def user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "is_admin": user.is_admin,
    }


@router.post("/login")
def login(request: LoginRequest, http_request: Request):
    """Login with email and password.

    Raises:
        HTTPException: 401 if the email is unknown or the password is wrong
        HTTPException: 403 if the account is inactive
    """
    normalized_email = _normalize_email(request.email)
    logger.info(f"[AUTH] Login requested for email={normalized_email}")

    with get_session() as session:
        user_result = session.execute(select(User).where(User.email == normalized_email)).first()
        if not user_result or not verify_password(request.password, user_result[0].password_hash):
            logger.warning(f"[AUTH] Login failed for email={normalized_email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        user = user_result[0]
        if not user.is_active:
            logger.warning(f"[AUTH] Login failed: inactive user for email={normalized_email}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account inactive.",
            )

        first_login = user.last_login_at is None
        user.last_login_at = datetime.now(timezone.utc)
        token = create_access_token(user.id)
        logger.info(f"[AUTH] Login successful for user_id={user.id}")

        response = JSONResponse(
            content={
                "access_token": token,
                "token_type": "bearer",
                "user": user_payload(user),
                "first_login": first_login,
            }
        )
        set_session_cookie(response, token, http_request)
        return response


@router.get("/session")
def current_session(user_id: str = Depends(get_current_user_id)):
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized. Please log in.")
        return {"user": user_payload(user)}


@router.post("/logout")
def logout():
    response = JSONResponse(content={"success": True})
    clear_session_cookie(response)
    return response
