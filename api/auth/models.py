# api/auth/models.py
"""
Pydantic models for authentication endpoints.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Token(BaseModel):
    """Access/refresh pair; ``expires_in`` is the access token lifetime in seconds."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenRefresh(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """The caller's profile and the branch their data access is pinned to."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    role: str
    branch_id: int | None = None
    is_active: bool
    last_login_at: datetime | None = None
