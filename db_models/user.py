# db_models/user.py
"""
User model with branch-scoped role-based access.

Roles:
- ADMIN: Full system access, registers assets, invalidates dashboard caches
- MANAGER: Sees every branch, can record maintenance anywhere
- OPERATOR: Records maintenance and reads data for their own branch only
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from db_base import Base


class UserRole(str, Enum):
    """User roles for authorization."""
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    OPERATOR = "OPERATOR"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Login credentials
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.OPERATOR.value,
    )

    # Home branch; required for OPERATOR, ignored for ADMIN/MANAGER
    branch_id: Mapped[int | None] = mapped_column(
        ForeignKey("branches.id"),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def sees_all_branches(self) -> bool:
        return self.role in (UserRole.ADMIN.value, UserRole.MANAGER.value)

    def branch_scope(self, requested: int | None) -> int | None:
        """
        Branch filter to apply for this user.

        Admins and managers get whatever they asked for (None = all branches).
        Operators are pinned to their own branch; asking for another one
        raises PermissionError.
        """
        if self.sees_all_branches():
            return requested
        if requested is not None and requested != self.branch_id:
            raise PermissionError(f"User {self.id} cannot access branch {requested}")
        return self.branch_id
