"""
Voting ORM models: competitions, participants and device votes.
"""

from __future__ import annotations

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from utsav.models.base import Base, TimestampMixin, UUIDMixin


class CompetitionStatus(str, enum.Enum):
    open = "open"
    closed = "closed"


class Competition(Base, UUIDMixin, TimestampMixin):
    """A public vote held during a festival."""

    __tablename__ = "competitions"

    organization_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    festival_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("festivals.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[CompetitionStatus] = mapped_column(
        Enum(CompetitionStatus, name="competition_status"),
        nullable=False,
        default=CompetitionStatus.open,
    )
    # None means a device may vote for every participant
    vote_limit_per_user: Mapped[int | None] = mapped_column(Integer, nullable=True, default=5)

    def __repr__(self) -> str:
        return f"<Competition id={self.id} name={self.name!r} status={self.status}>"


class Participant(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "participants"

    competition_id: Mapped[UUID] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    votes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Participant id={self.id} name={self.name!r} votes={self.votes_count}>"


class Vote(Base, UUIDMixin, TimestampMixin):
    """One anonymous vote, identified by the voting device."""

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint(
            "competition_id", "participant_id", "device_id", name="uq_votes_device"
        ),
    )

    competition_id: Mapped[UUID] = mapped_column(
        ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    participant_id: Mapped[UUID] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    device_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
