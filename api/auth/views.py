# api/auth/views.py
"""
Authentication endpoints. Users themselves are managed outside this service.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db import get_session
from db_models.user import User
from core.security import (
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from core.deps import CurrentUser
from .models import Token, TokenRefresh, LoginRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _issue_tokens(user: User) -> Token:
    return Token(
        access_token=create_access_token(user.id, user.role, user.branch_id),
        refresh_token=create_refresh_token(user.id),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def _authenticate(db: AsyncSession, email: str, password: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for %s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )

    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return user


@router.post("/login", response_model=Token, summary="Login and get tokens")
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session),
) -> Token:
    """
    OAuth2 compatible login endpoint (username field carries the email).
    """
    user = await _authenticate(db, form_data.username, form_data.password)
    return _issue_tokens(user)


@router.post("/login/json", response_model=Token, summary="Login with JSON body")
async def login_json(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> Token:
    user = await _authenticate(db, credentials.email, credentials.password)
    return _issue_tokens(user)


@router.post("/refresh", response_model=Token, summary="Refresh access token")
async def refresh_token(
    request: TokenRefresh,
    db: AsyncSession = Depends(get_session),
) -> Token:
    """
    Exchange a refresh token for a new token pair. Role and branch are
    re-read from the database so changes take effect on refresh.
    """
    payload = decode_token(request.refresh_token, expected_type="refresh")
    if payload is None or payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    stmt = select(User).where(User.id == int(payload["sub"]), User.is_active.is_(True))
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse, summary="Get current user")
async def get_me(current_user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(current_user)
