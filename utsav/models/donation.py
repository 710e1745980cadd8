"""
Donation ORM model.
"""

from __future__ import annotations

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class DonationCategory(str, enum.Enum):
    chanda = "chanda"
    sponsorship = "sponsorship"


class Donation(Base, UUIDMixin, TimestampMixin):
    """A chanda or sponsorship pledged to an organization's festival."""

    __tablename__ = "donations"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    festival_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("festivals.id", ondelete="SET NULL"), nullable=True, index=True
    )
    festival_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    festival_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    name_telugu: Mapped[str | None] = mapped_column(String(200), nullable=True)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    received_amount: Mapped[float] = mapped_column(
        Numeric(12, 2, asdecimal=False), nullable=False, default=0
    )
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    category: Mapped[DonationCategory] = mapped_column(
        Enum(DonationCategory, name="donation_category"),
        nullable=False,
        default=DonationCategory.chanda,
    )

    def __repr__(self) -> str:
        return f"<Donation id={self.id} name={self.name!r} amount={self.amount}>"
