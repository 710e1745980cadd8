"""
Expense ORM model.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class Expense(Base, UUIDMixin, TimestampMixin):
    """Money spent by an organization on a festival."""

    __tablename__ = "expenses"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    festival_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("festivals.id", ondelete="SET NULL"), nullable=True, index=True
    )
    festival_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    festival_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Expense id={self.id} type={self.type!r} amount={self.amount}>"
