"""
OrganizationInvitation ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin
from utsav.models.user_role import AppRole


class InvitationStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"


class OrganizationInvitation(Base, UUIDMixin, TimestampMixin):
    """Invitation for an email address to join an organization with a role."""

    __tablename__ = "organization_invitations"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[AppRole] = mapped_column(Enum(AppRole, name="app_role"), nullable=False)
    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[InvitationStatus] = mapped_column(
        Enum(InvitationStatus, name="invitation_status"),
        nullable=False,
        default=InvitationStatus.pending,
    )
    invited_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<OrganizationInvitation id={self.id} email={self.email!r} "
            f"organization_id={self.organization_id} status={self.status}>"
        )
