"""
Voting business logic.

Competitions belong to an organization, participants to a competition.
Votes are anonymous and keyed by the voting device's id: one vote per
(competition, participant, device), and at most `vote_limit_per_user`
votes per device in a competition unless the limit is None.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.models.competition import Competition, CompetitionStatus, Participant, Vote
from utsav.schemas.voting import (
    CastVoteResponse,
    CompetitionCreateRequest,
    CompetitionResponse,
    CompetitionUpdateRequest,
    DeviceVotesResponse,
    ParticipantCreateRequest,
    ParticipantResponse,
    ParticipantUpdateRequest,
)

logger = structlog.get_logger(__name__)


class VotingService:
    """Handles competitions, participants and vote casting."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Competitions
    # -----------------------------------------------------------------------

    async def list_competitions(
        self, organization_id: UUID, festival_id: UUID | None = None
    ) -> list[CompetitionResponse]:
        query = select(Competition).where(Competition.organization_id == organization_id)
        if festival_id is not None:
            query = query.where(Competition.festival_id == festival_id)

        result = await self.db.execute(query.order_by(Competition.created_at.desc()))
        return [CompetitionResponse.model_validate(c) for c in result.scalars().all()]

    async def get_competition(self, organization_id: UUID, competition_id: UUID) -> CompetitionResponse:
        competition = await self._get_competition(organization_id, competition_id)
        return CompetitionResponse.model_validate(competition)

    async def create_competition(
        self, organization_id: UUID, data: CompetitionCreateRequest
    ) -> CompetitionResponse:
        competition = Competition(organization_id=organization_id, **data.model_dump())
        self.db.add(competition)
        await self.db.flush()
        await self.db.refresh(competition)
        return CompetitionResponse.model_validate(competition)

    async def update_competition(
        self,
        organization_id: UUID,
        competition_id: UUID,
        data: CompetitionUpdateRequest,
    ) -> CompetitionResponse:
        competition = await self._get_competition(organization_id, competition_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("name", "status") and value is None:
                continue
            setattr(competition, field, value)

        await self.db.flush()
        await self.db.refresh(competition)
        return CompetitionResponse.model_validate(competition)

    async def delete_competition(self, organization_id: UUID, competition_id: UUID) -> None:
        """Delete a competition with its participants and votes."""
        competition = await self._get_competition(organization_id, competition_id)
        await self.db.delete(competition)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Participants
    # -----------------------------------------------------------------------

    async def list_participants(
        self, organization_id: UUID, competition_id: UUID
    ) -> list[ParticipantResponse]:
        """Participants in entry order."""
        await self._get_competition(organization_id, competition_id)
        result = await self.db.execute(
            select(Participant)
            .where(Participant.competition_id == competition_id)
            .order_by(Participant.created_at.asc())
        )
        return [ParticipantResponse.model_validate(p) for p in result.scalars().all()]

    async def add_participant(
        self,
        organization_id: UUID,
        competition_id: UUID,
        data: ParticipantCreateRequest,
    ) -> ParticipantResponse:
        await self._get_competition(organization_id, competition_id)
        participant = Participant(competition_id=competition_id, **data.model_dump())
        self.db.add(participant)
        await self.db.flush()
        await self.db.refresh(participant)
        return ParticipantResponse.model_validate(participant)

    async def update_participant(
        self,
        organization_id: UUID,
        competition_id: UUID,
        participant_id: UUID,
        data: ParticipantUpdateRequest,
    ) -> ParticipantResponse:
        participant = await self._get_participant(organization_id, competition_id, participant_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue
            setattr(participant, field, value)

        await self.db.flush()
        await self.db.refresh(participant)
        return ParticipantResponse.model_validate(participant)

    async def delete_participant(
        self, organization_id: UUID, competition_id: UUID, participant_id: UUID
    ) -> None:
        participant = await self._get_participant(organization_id, competition_id, participant_id)
        await self.db.delete(participant)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Votes
    # -----------------------------------------------------------------------

    async def cast_vote(
        self,
        organization_id: UUID,
        competition_id: UUID,
        participant_id: UUID,
        device_id: str,
    ) -> CastVoteResponse:
        """
        Record one vote for a participant from a device.

        Refusals come back as `success=False` with a message rather than an
        HTTP error, so the voting page can show them directly.
        """
        result = await self.db.execute(
            select(Competition).where(
                Competition.id == competition_id,
                Competition.organization_id == organization_id,
            )
        )
        competition = result.scalar_one_or_none()
        if competition is None:
            return CastVoteResponse(success=False, message="Competition not found")
        if competition.status == CompetitionStatus.closed:
            return CastVoteResponse(success=False, message="Voting is closed for this competition")

        participant_result = await self.db.execute(
            select(Participant.id).where(
                Participant.id == participant_id,
                Participant.competition_id == competition_id,
            )
        )
        if participant_result.first() is None:
            return CastVoteResponse(success=False, message="Participant not found")

        voted_for = await self._device_participant_ids(competition_id, device_id)
        if participant_id in voted_for:
            return CastVoteResponse(success=False, message="You have already voted for this entry")
        if (
            competition.vote_limit_per_user is not None
            and len(voted_for) >= competition.vote_limit_per_user
        ):
            return CastVoteResponse(success=False, message="You have used all your votes")

        self.db.add(
            Vote(
                competition_id=competition_id,
                participant_id=participant_id,
                device_id=device_id,
            )
        )
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with the same device voting concurrently
            await self.db.rollback()
            return CastVoteResponse(success=False, message="You have already voted for this entry")

        await self.db.execute(
            update(Participant)
            .where(Participant.id == participant_id)
            .values(votes_count=Participant.votes_count + 1)
        )
        await self.db.flush()

        logger.info("vote_cast", competition_id=str(competition_id), participant_id=str(participant_id))
        return CastVoteResponse(success=True, message="Your vote has been counted")

    async def get_device_votes(
        self, organization_id: UUID, competition_id: UUID, device_id: str
    ) -> DeviceVotesResponse:
        competition = await self._get_competition(organization_id, competition_id)
        voted_for = await self._device_participant_ids(competition_id, device_id)
        return DeviceVotesResponse(
            participant_ids=list(voted_for),
            votes_used=len(voted_for),
            vote_limit_per_user=competition.vote_limit_per_user,
        )

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _device_participant_ids(self, competition_id: UUID, device_id: str) -> list[UUID]:
        result = await self.db.execute(
            select(Vote.participant_id)
            .where(Vote.competition_id == competition_id, Vote.device_id == device_id)
            .order_by(Vote.created_at)
        )
        return list(result.scalars().all())

    async def _get_competition(self, organization_id: UUID, competition_id: UUID) -> Competition:
        result = await self.db.execute(
            select(Competition).where(
                Competition.id == competition_id,
                Competition.organization_id == organization_id,
            )
        )
        competition = result.scalar_one_or_none()
        if competition is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "COMPETITION_NOT_FOUND", "message": "Competition not found"},
            )
        return competition

    async def _get_participant(
        self, organization_id: UUID, competition_id: UUID, participant_id: UUID
    ) -> Participant:
        await self._get_competition(organization_id, competition_id)
        result = await self.db.execute(
            select(Participant).where(
                Participant.id == participant_id,
                Participant.competition_id == competition_id,
            )
        )
        participant = result.scalar_one_or_none()
        if participant is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PARTICIPANT_NOT_FOUND", "message": "Participant not found"},
            )
        return participant

