"""
UserRole ORM model.
"""

from __future__ import annotations

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class AppRole(str, enum.Enum):
    """Account role within an organization."""

    admin = "admin"
    manager = "manager"
    viewer = "viewer"


class UserRole(Base, UUIDMixin, TimestampMixin):
    """Links an account to an organization with a role."""

    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", name="uq_user_roles_user_org"),
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[AppRole] = mapped_column(
        Enum(AppRole, name="app_role"), nullable=False, default=AppRole.viewer
    )

    def __repr__(self) -> str:
        return f"<UserRole organization_id={self.organization_id} user_id={self.user_id} role={self.role}>"
