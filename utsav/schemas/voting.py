"""
Voting schemas: competitions, participants and votes.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from utsav.models.competition import CompetitionStatus


# ---------------------------------------------------------------------------
# Competitions
# ---------------------------------------------------------------------------

class CompetitionCreateRequest(BaseModel):
    """Request body for POST /organizations/{slug}/competitions."""

    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    festival_id: UUID | None = None
    status: CompetitionStatus = CompetitionStatus.open
    vote_limit_per_user: int | None = Field(default=5, ge=1)


class CompetitionUpdateRequest(BaseModel):
    """
    Request body for PATCH /organizations/{slug}/competitions/{competition_id}.

    `vote_limit_per_user` is only touched when present in the body, so an
    explicit null lifts the limit.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: CompetitionStatus | None = None
    vote_limit_per_user: int | None = Field(default=None, ge=1)


class CompetitionResponse(BaseModel):
    id: UUID
    organization_id: UUID
    festival_id: UUID | None
    name: str
    description: str | None
    status: CompetitionStatus
    vote_limit_per_user: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

class ParticipantCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    image_url: str | None = Field(default=None, max_length=1000)


class ParticipantUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    image_url: str | None = Field(default=None, max_length=1000)


class ParticipantResponse(BaseModel):
    id: UUID
    competition_id: UUID
    name: str
    image_url: str | None
    votes_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------

class CastVoteRequest(BaseModel):
    """Request body for POST /organizations/{slug}/competitions/{competition_id}/votes."""

    participant_id: UUID
    device_id: str = Field(min_length=1, max_length=100)


class CastVoteResponse(BaseModel):
    success: bool
    message: str


class DeviceVotesResponse(BaseModel):
    """Participants the device already voted for in one competition."""

    participant_ids: list[UUID]
    votes_used: int
    vote_limit_per_user: int | None
