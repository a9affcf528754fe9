"""
User and authentication API endpoints
"""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from typing import Optional
from datetime import timedelta
import logging

from bizmodelai.api.deps import (
    clear_auth_cookie,
    get_current_user,
    get_guest_session,
    get_settings,
    set_auth_cookie,
)
from bizmodelai.config import Settings
from bizmodelai.database import get_db
from bizmodelai.models import User
from bizmodelai.schemas.user import LoginRequest, SignupRequest, TemporaryUserCreate, UserResponse
from bizmodelai.services.user_service import user_service


router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/api/users/temporary", response_model=UserResponse, status_code=201)
async def create_temporary_user(
    body: TemporaryUserCreate,
    response: Response,
    db: Session = Depends(get_db),
    guest_session: Optional[str] = Depends(get_guest_session),
    settings: Settings = Depends(get_settings),
):
    """
    Capture an email after the quiz

    Creates a temporary account (kept 90 days unless upgraded), adopts the
    guest session's attempts and signs the user in.
    """
    user = user_service.create_temporary_user(
        db,
        body.email,
        session_id=guest_session,
        first_name=body.firstName,
        retention=timedelta(days=settings.TEMPORARY_USER_RETENTION_DAYS),
    )
    set_auth_cookie(response, user, settings)
    return user


@router.post("/api/auth/login", response_model=UserResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Password login, paid accounts only"""
    user = user_service.authenticate(db, body.email, body.password)
    set_auth_cookie(response, user, settings)
    logger.info(f"User {user.id} logged in")
    return user


@router.post("/api/auth/signup", response_model=UserResponse)
async def signup(
    body: SignupRequest,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Turn a temporary account into a paid one

    Requires a completed payment; sets the password and removes every expiry.
    """
    user = user_service.complete_signup(
        db,
        body.email,
        body.password,
        body.paymentReference,
        first_name=body.firstName,
        last_name=body.lastName,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    set_auth_cookie(response, user, settings)
    return user


@router.post("/api/auth/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_auth_cookie(response, settings)
    return {"success": True}


@router.get("/api/auth/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user
