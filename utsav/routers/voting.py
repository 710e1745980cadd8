"""
Voting endpoints.

Competitions, participants and anonymous device votes.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_organization
from utsav.models.organization import Organization
from utsav.schemas.voting import (
    CastVoteRequest,
    CastVoteResponse,
    CompetitionCreateRequest,
    CompetitionResponse,
    CompetitionUpdateRequest,
    DeviceVotesResponse,
    ParticipantCreateRequest,
    ParticipantResponse,
    ParticipantUpdateRequest,
)
from utsav.services.voting_service import VotingService

router = APIRouter()


def get_voting_service(db: AsyncSession = Depends(get_db)) -> VotingService:
    return VotingService(db=db)


# ---------------------------------------------------------------------------
# Competitions
# ---------------------------------------------------------------------------

@router.get(
    "/organizations/{slug}/competitions",
    response_model=list[CompetitionResponse],
    summary="List competitions",
)
async def list_competitions(
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> list[CompetitionResponse]:
    return await service.list_competitions(org.id, festival_id=festival_id)


@router.post(
    "/organizations/{slug}/competitions",
    response_model=CompetitionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a competition",
)
async def create_competition(
    data: CompetitionCreateRequest,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> CompetitionResponse:
    return await service.create_competition(org.id, data)


@router.get(
    "/organizations/{slug}/competitions/{competition_id}",
    response_model=CompetitionResponse,
    summary="Get a competition",
)
async def get_competition(
    competition_id: UUID,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> CompetitionResponse:
    return await service.get_competition(org.id, competition_id)


@router.patch(
    "/organizations/{slug}/competitions/{competition_id}",
    response_model=CompetitionResponse,
    summary="Update a competition",
)
async def update_competition(
    competition_id: UUID,
    data: CompetitionUpdateRequest,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> CompetitionResponse:
    """Send `"vote_limit_per_user": null` to allow unlimited votes per device."""
    return await service.update_competition(org.id, competition_id, data)


@router.delete(
    "/organizations/{slug}/competitions/{competition_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a competition",
)
async def delete_competition(
    competition_id: UUID,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> dict:
    await service.delete_competition(org.id, competition_id)
    return {}


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

@router.get(
    "/organizations/{slug}/competitions/{competition_id}/participants",
    response_model=list[ParticipantResponse],
    summary="List participants",
)
async def list_participants(
    competition_id: UUID,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> list[ParticipantResponse]:
    return await service.list_participants(org.id, competition_id)


@router.post(
    "/organizations/{slug}/competitions/{competition_id}/participants",
    response_model=ParticipantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a participant",
)
async def add_participant(
    competition_id: UUID,
    data: ParticipantCreateRequest,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> ParticipantResponse:
    return await service.add_participant(org.id, competition_id, data)


@router.patch(
    "/organizations/{slug}/competitions/{competition_id}/participants/{participant_id}",
    response_model=ParticipantResponse,
    summary="Update a participant",
)
async def update_participant(
    competition_id: UUID,
    participant_id: UUID,
    data: ParticipantUpdateRequest,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> ParticipantResponse:
    return await service.update_participant(org.id, competition_id, participant_id, data)


@router.delete(
    "/organizations/{slug}/competitions/{competition_id}/participants/{participant_id}",
    status_code=status.HTTP_200_OK,
    summary="Remove a participant",
)
async def delete_participant(
    competition_id: UUID,
    participant_id: UUID,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> dict:
    await service.delete_participant(org.id, competition_id, participant_id)
    return {}


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------

@router.post(
    "/organizations/{slug}/competitions/{competition_id}/votes",
    response_model=CastVoteResponse,
    summary="Cast a vote",
)
async def cast_vote(
    competition_id: UUID,
    data: CastVoteRequest,
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> CastVoteResponse:
    """Always 200; a refused vote has `success: false` and a message."""
    return await service.cast_vote(org.id, competition_id, data.participant_id, data.device_id)


@router.get(
    "/organizations/{slug}/competitions/{competition_id}/votes",
    response_model=DeviceVotesResponse,
    summary="Votes cast by one device",
)
async def get_device_votes(
    competition_id: UUID,
    device_id: str = Query(..., min_length=1, max_length=100),
    org: Organization = Depends(get_organization),
    service: VotingService = Depends(get_voting_service),
) -> DeviceVotesResponse:
    return await service.get_device_votes(org.id, competition_id, device_id)
