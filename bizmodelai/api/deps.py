"""
Shared FastAPI dependencies: settings, app resources, auth cookies and the API key guard
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from bizmodelai.config import Settings
from bizmodelai.database import get_db
from bizmodelai.models import User
from bizmodelai.services.email_service import Mailer
from bizmodelai.services.insight_service import InsightService
from bizmodelai.utils.security import create_jwt_token, decode_jwt_token, verify_api_key

logger = logging.getLogger(__name__)

AUTH_COOKIE = "auth_token"
GUEST_COOKIE = "guest_session"
GUEST_COOKIE_MAX_AGE = 24 * 60 * 60


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_insight_service(request: Request) -> InsightService:
    return request.app.state.insights


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


# -----------------------------
# Cookie Helpers
# -----------------------------
def set_auth_cookie(response: Response, user: User, settings: Settings) -> None:
    """Issue a JWT for the user and store it in the auth cookie"""
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_jwt_token(
        {"sub": str(user.id)},
        settings.SECRET_KEY,
        settings.ALGORITHM,
        expires_delta=expires,
    )
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=int(expires.total_seconds()),
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=AUTH_COOKIE,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def ensure_guest_session(request: Request, response: Response, settings: Settings) -> str:
    """Reuse the guest session cookie, or start a new one"""
    session_id = request.cookies.get(GUEST_COOKIE)
    if session_id:
        return session_id

    session_id = secrets.token_urlsafe(24)
    response.set_cookie(
        key=GUEST_COOKIE,
        value=session_id,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
        max_age=GUEST_COOKIE_MAX_AGE,
    )
    return session_id


def get_guest_session(request: Request) -> Optional[str]:
    return request.cookies.get(GUEST_COOKIE)


# -----------------------------
# Current user
# -----------------------------
def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    """
    User from the auth cookie, or None for guests

    An invalid or expired token is treated like no token at all.
    """
    token = request.cookies.get(AUTH_COOKIE)
    if not token:
        return None

    try:
        payload = decode_jwt_token(token, settings.SECRET_KEY, settings.ALGORITHM)
        user_id = int(payload.get("sub"))
    except (jwt.InvalidTokenError, TypeError, ValueError) as e:
        logger.info(f"Ignoring invalid auth token: {str(e)}")
        return None

    return db.get(User, user_id)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Dependency to get current authenticated user from JWT cookie
    Raises 401 if not authenticated
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def require_api_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Guard for the admin and payment bridge routes"""
    if not verify_api_key(x_api_key, settings.HASHED_API_KEY):
        logger.warning("Rejected request with missing or invalid API key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
