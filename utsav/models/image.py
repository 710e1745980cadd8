"""
Image ORM model.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class Image(Base, UUIDMixin, TimestampMixin):
    """Gallery image whose file lives in the storage bucket."""

    __tablename__ = "images"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    festival_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("festivals.id", ondelete="SET NULL"), nullable=True, index=True
    )
    festival_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    festival_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    # Object path inside the bucket, e.g. public/1700000000000.jpg
    image_path: Mapped[str] = mapped_column(String(500), nullable=False)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Image id={self.id} title={self.title!r}>"
