"""
Festival business logic.

Festivals are scoped by organization. Donations, expenses and images
copy the festival's name and year when they reference it by id.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.models.festival import Festival
from utsav.schemas.donation import FestivalScope
from utsav.schemas.festival import (
    FestivalCreateRequest,
    FestivalResponse,
    FestivalUpdateRequest,
)
from utsav.services.audit_service import record_audit, snapshot


async def resolve_festival_scope(
    db: AsyncSession, organization_id: UUID, scope: FestivalScope
) -> dict[str, Any]:
    """
    Festival columns for a new row.

    When only `festival_id` is given, name and year are filled in from the
    festival. An id from another organization is rejected. A (name, year)
    pair without an id is linked to the matching festival when one exists,
    so filters by `festival_id` find the row.
    """
    values = {
        "festival_id": scope.festival_id,
        "festival_name": scope.festival_name,
        "festival_year": scope.festival_year,
    }
    if scope.festival_id is None:
        if scope.festival_name and scope.festival_year is not None:
            result = await db.execute(
                select(Festival.id).where(
                    Festival.organization_id == organization_id,
                    Festival.name == scope.festival_name,
                    Festival.year == scope.festival_year,
                )
            )
            values["festival_id"] = result.scalar_one_or_none()
        return values

    result = await db.execute(
        select(Festival).where(
            Festival.id == scope.festival_id,
            Festival.organization_id == organization_id,
        )
    )
    festival = result.scalar_one_or_none()
    if festival is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "FESTIVAL_NOT_FOUND", "message": "Festival not found"},
        )
    values["festival_name"] = values["festival_name"] or festival.name
    values["festival_year"] = values["festival_year"] or festival.year
    return values


class FestivalService:
    """Handles festival CRUD within one organization."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_festivals(
        self,
        organization_id: UUID,
        active_only: bool = False,
        name: str | None = None,
        year: int | None = None,
    ) -> list[FestivalResponse]:
        """Festivals newest first, optionally filtered to active ones or by (name, year)."""
        query = select(Festival).where(Festival.organization_id == organization_id)
        if active_only:
            query = query.where(Festival.is_active.is_(True))
        if name is not None:
            query = query.where(Festival.name == name)
        if year is not None:
            query = query.where(Festival.year == year)

        result = await self.db.execute(
            query.order_by(Festival.year.desc(), Festival.created_at.desc())
        )
        return [FestivalResponse.model_validate(f) for f in result.scalars().all()]

    async def get_festival(self, organization_id: UUID, festival_id: UUID) -> FestivalResponse:
        festival = await self._get(organization_id, festival_id)
        return FestivalResponse.model_validate(festival)

    # -----------------------------------------------------------------------
    # Write
    # -----------------------------------------------------------------------

    async def create_festival(
        self,
        organization_id: UUID,
        data: FestivalCreateRequest,
        actor_id: UUID | None = None,
    ) -> FestivalResponse:
        """Create a festival. (name, year) must be unique within the organization."""
        await self._ensure_unique(organization_id, data.name, data.year)

        festival = Festival(organization_id=organization_id, **data.model_dump())
        self.db.add(festival)
        await self.db.flush()
        await self.db.refresh(festival)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="festivals",
            record_id=festival.id,
            action="INSERT",
            new_data=snapshot(festival),
            changed_by=actor_id,
        )
        return FestivalResponse.model_validate(festival)

    async def update_festival(
        self,
        organization_id: UUID,
        festival_id: UUID,
        data: FestivalUpdateRequest,
        actor_id: UUID | None = None,
    ) -> FestivalResponse:
        festival = await self._get(organization_id, festival_id)
        old_data = snapshot(festival)
        changes = data.model_dump(exclude_unset=True)

        new_name = changes.get("name", festival.name)
        new_year = changes.get("year", festival.year)
        if (new_name, new_year) != (festival.name, festival.year):
            await self._ensure_unique(organization_id, new_name, new_year)

        for field, value in changes.items():
            setattr(festival, field, value)
        await self.db.flush()
        await self.db.refresh(festival)

        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="festivals",
            record_id=festival.id,
            action="UPDATE",
            old_data=old_data,
            new_data=snapshot(festival),
            changed_by=actor_id,
        )
        return FestivalResponse.model_validate(festival)

    async def delete_festival(
        self,
        organization_id: UUID,
        festival_id: UUID,
        actor_id: UUID | None = None,
    ) -> None:
        festival = await self._get(organization_id, festival_id)
        old_data = snapshot(festival)

        await self.db.delete(festival)
        await record_audit(
            self.db,
            organization_id=organization_id,
            table_name="festivals",
            record_id=festival_id,
            action="DELETE",
            old_data=old_data,
            changed_by=actor_id,
        )
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _get(self, organization_id: UUID, festival_id: UUID) -> Festival:
        result = await self.db.execute(
            select(Festival).where(
                Festival.id == festival_id,
                Festival.organization_id == organization_id,
            )
        )
        festival = result.scalar_one_or_none()
        if festival is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "FESTIVAL_NOT_FOUND", "message": "Festival not found"},
            )
        return festival

    async def _ensure_unique(self, organization_id: UUID, name: str, year: int) -> None:
        result = await self.db.execute(
            select(Festival.id).where(
                Festival.organization_id == organization_id,
                Festival.name == name,
                Festival.year == year,
            )
        )
        if result.first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "FESTIVAL_EXISTS", "message": f"{name} {year} already exists"},
            )
