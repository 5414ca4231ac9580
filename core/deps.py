# core/deps.py
"""
FastAPI dependencies for authentication, branch scoping and shared services.
"""
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session, get_store
from db_models.user import User
from core.cache import TimedCache
from core.security import decode_token
from core.store import LedgerStore

# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(HTTPException):
    """Raised when user lacks required permissions."""
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    Raises:
        AuthenticationError: If token is missing, invalid, or user not found
    """
    if token is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_token(token, expected_type="access")
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise AuthenticationError("Invalid user ID in token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is disabled")

    return user


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Dependency that requires ADMIN role."""
    if not current_user.is_admin():
        raise AuthorizationError("Admin access required")
    return current_user


def resolve_branch(user: User, requested: int | None) -> int | None:
    """Branch filter for ``user``; 403 when an operator asks for another branch."""
    try:
        return user.branch_scope(requested)
    except PermissionError as exc:
        raise AuthorizationError(str(exc)) from exc


def get_dashboard_cache(request: Request) -> TimedCache:
    """The dashboard cache created in the application lifespan."""
    return request.app.state.dashboard_cache


# Type aliases for cleaner endpoint signatures
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
Store = Annotated[LedgerStore, Depends(get_store)]
DashboardCache = Annotated[TimedCache, Depends(get_dashboard_cache)]
