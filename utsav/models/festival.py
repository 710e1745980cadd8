"""
Festival ORM model.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class Festival(Base, UUIDMixin, TimestampMixin):
    """
    One festival edition run by an organization.

    (organization_id, name, year) is the human key used when a cached
    selection lacks its id.
    """

    __tablename__ = "festivals"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    background_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    theme: Mapped[str | None] = mapped_column(String(30), nullable=True)
    enabled_pages: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Festival id={self.id} name={self.name!r} year={self.year}>"
