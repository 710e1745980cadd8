"""
Donation business logic.

Chandas and sponsorships, their search and the aggregate totals.
Every write is mirrored into the audit trail.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.models.donation import Donation, DonationCategory
from utsav.schemas.donation import (
    DonationCreateRequest,
    DonationResponse,
    DonationUpdateRequest,
)
from utsav.services.audit_service import record_audit, snapshot
from utsav.services.festival_service import resolve_festival_scope


class DonationService:
    """Handles donation CRUD, search and totals within one organization."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_donations(
        self,
        organization_id: UUID,
        category: DonationCategory | None = None,
        festival_id: UUID | None = None,
    ) -> list[DonationResponse]:
        """Donations newest first."""
        query = select(Donation).where(Donation.organization_id == organization_id)
        if category is not None:
            query = query.where(Donation.category == category)
        if festival_id is not None:
            query = query.where(Donation.festival_id == festival_id)

        result = await self.db.execute(query.order_by(Donation.created_at.desc()))
        return [DonationResponse.model_validate(d) for d in result.scalars().all()]

    async def search_donations(
        self,
        organization_id: UUID,
        terms: list[str],
        festival_id: UUID | None = None,
    ) -> list[DonationResponse]:
        """
        Case-insensitive substring match of any term against the name
        or the Telugu name, newest first.
        """
        clauses = []
        for term in terms:
            pattern = f"%{term}%"
            clauses.append(Donation.name.ilike(pattern))
            clauses.append(Donation.name_telugu.ilike(pattern))

        query = select(Donation).where(Donation.organization_id == organization_id)
        if clauses:
            query = query.where(or_(*clauses))
        if festival_id is not None:
            query = query.where(Donation.festival_id == festival_id)

        result = await self.db.execute(query.order_by(Donation.created_at.desc()))
        return [DonationResponse.model_validate(d) for d in result.scalars().all()]

    async def get_total(
        self,
        organization_id: UUID,
        category: DonationCategory | None = None,
        festival_id: UUID | None = None,
    ) -> float:
        """Sum of pledged amounts; 0 when there are no donations."""
        query = select(func.coalesce(func.sum(Donation.amount), 0)).where(
            Donation.organization_id == organization_id
        )
        if category is not None:
            query = query.where(Donation.category == category)
        if festival_id is not None:
            query = query.where(Donation.festival_id == festival_id)

        result = await self.db.execute(query)
        return float(result.scalar_one() or 0)

    # -----------------------------------------------------------------------
    # Write
    # -----------------------------------------------------------------------

    async def create_donation(
        self,
        organization_id: UUID,
        data: DonationCreateRequest,
        actor_id: UUID | None = None,
    ) -> DonationResponse:
        festival_values = await resolve_festival_scope(self.db, organization_id, data)
        donation = Donation(
            organization_id=organization_id,
            name=data.name,
            name_telugu=data.name_telugu,
            amount=data.amount,
            received_amount=data.received_amount,
            type=data.type,
            category=data.category,
            **festival_values,
        )
        self.db.add(donation)
        await self.db.flush()
        await self.db.refresh(donation)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="donations",
            record_id=donation.id,
            action="INSERT",
            new_data=snapshot(donation),
            changed_by=actor_id,
        )
        return DonationResponse.model_validate(donation)

    async def update_donation(
        self,
        organization_id: UUID,
        donation_id: UUID,
        data: DonationUpdateRequest,
        actor_id: UUID | None = None,
    ) -> DonationResponse:
        donation = await self._get(organization_id, donation_id)
        old_data = snapshot(donation)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(donation, field, value)
        return await self._flush_update(donation, old_data, actor_id)

    async def update_received_amount(
        self,
        organization_id: UUID,
        donation_id: UUID,
        received_amount: float,
        actor_id: UUID | None = None,
    ) -> DonationResponse:
        """Record how much of a pledge has actually been collected."""
        donation = await self._get(organization_id, donation_id)
        old_data = snapshot(donation)

        donation.received_amount = received_amount
        return await self._flush_update(donation, old_data, actor_id)

    async def delete_donation(
        self,
        organization_id: UUID,
        donation_id: UUID,
        actor_id: UUID | None = None,
    ) -> None:
        donation = await self._get(organization_id, donation_id)
        old_data = snapshot(donation)

        await self.db.delete(donation)
        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="donations",
            record_id=donation_id,
            action="DELETE",
            old_data=old_data,
            changed_by=actor_id,
        )
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _get(self, organization_id: UUID, donation_id: UUID) -> Donation:
        result = await self.db.execute(
            select(Donation).where(
                Donation.id == donation_id,
                Donation.organization_id == organization_id,
            )
        )
        donation = result.scalar_one_or_none()
        if donation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "DONATION_NOT_FOUND", "message": "Donation not found"},
            )
        return donation

    async def _flush_update(
        self, donation: Donation, old_data: dict, actor_id: UUID | None
    ) -> DonationResponse:
        await self.db.flush()
        await self.db.refresh(donation)

        await record_audit(
            self.db,
            organization_id=donation.organization_id,
            table_name="donations",
            record_id=donation.id,
            action="UPDATE",
            old_data=old_data,
            new_data=snapshot(donation),
            changed_by=actor_id,
        )
        return DonationResponse.model_validate(donation)
