"""
Organization ORM model.
"""

from __future__ import annotations

import enum

from sqlalchemy import JSON, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class OrganizationPlan(str, enum.Enum):
    free = "free"
    pro = "pro"
    enterprise = "enterprise"


class Organization(Base, UUIDMixin, TimestampMixin):
    """Represents a tenant organization (a festival committee)."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    theme: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    plan: Mapped[OrganizationPlan] = mapped_column(
        Enum(OrganizationPlan, name="organization_plan"),
        nullable=False,
        default=OrganizationPlan.free,
    )
    subscription_status: Mapped[str] = mapped_column(String(30), nullable=False, default="active")
    enabled_pages: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    # Write-only secret: bcrypt hash, never serialized
    passcode_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} slug={self.slug!r}>"
