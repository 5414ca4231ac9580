# core/security.py
"""
Password hashing and JWT helpers for the auth boundary.
"""
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from config import settings

ALGORITHM = "HS256"
_DEV_SECRET = "dev-secret-key-change-in-production"


def get_secret_key() -> str:
    """JWT secret from settings; a fixed key only outside production."""
    secret = getattr(settings, "SECRET_KEY", None)
    if secret:
        return secret
    if settings.APP_ENV == "production":
        raise RuntimeError("SECRET_KEY must be set in production")
    return _DEV_SECRET


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _encode(claims: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    payload = dict(claims)
    payload.update({
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": token_type,
    })
    return jwt.encode(payload, get_secret_key(), algorithm=ALGORITHM)


def create_access_token(user_id: int, role: str, branch_id: int | None = None) -> str:
    """Short-lived token carrying the user's role and home branch."""
    return _encode(
        {"sub": str(user_id), "role": role, "branch_id": branch_id},
        "access",
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(
        {"sub": str(user_id)},
        "refresh",
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def decode_token(token: str, expected_type: str | None = None) -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Returns the payload, or None if the token is invalid, expired, or not of
    ``expected_type``.
    """
    try:
        payload = jwt.decode(token, get_secret_key(), algorithms=[ALGORITHM])
    except JWTError:
        return None
    if expected_type is not None and payload.get("type") != expected_type:
        return None
    return payload
