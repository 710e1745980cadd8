"""
Festival endpoints.

Open to anyone holding the organization's shared link; the client gates
writes behind the organization passcode.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_optional_user, get_organization
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.schemas.festival import (
    FestivalCreateRequest,
    FestivalResponse,
    FestivalUpdateRequest,
)
from utsav.services.festival_service import FestivalService

router = APIRouter()


def get_festival_service(db: AsyncSession = Depends(get_db)) -> FestivalService:
    return FestivalService(db=db)


@router.get(
    "/organizations/{slug}/festivals",
    response_model=list[FestivalResponse],
    summary="List festivals",
)
async def list_festivals(
    active: bool = Query(default=False, description="Only active festivals"),
    name: str | None = Query(default=None),
    year: int | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: FestivalService = Depends(get_festival_service),
) -> list[FestivalResponse]:
    """Newest first. `name` + `year` together look up a festival by its human key."""
    return await service.list_festivals(org.id, active_only=active, name=name, year=year)


@router.post(
    "/organizations/{slug}/festivals",
    response_model=FestivalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a festival",
)
async def create_festival(
    data: FestivalCreateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: FestivalService = Depends(get_festival_service),
) -> FestivalResponse:
    return await service.create_festival(org.id, data, user.id if user else None)


@router.get(
    "/organizations/{slug}/festivals/{festival_id}",
    response_model=FestivalResponse,
    summary="Get a festival",
)
async def get_festival(
    festival_id: UUID,
    org: Organization = Depends(get_organization),
    service: FestivalService = Depends(get_festival_service),
) -> FestivalResponse:
    return await service.get_festival(org.id, festival_id)


@router.patch(
    "/organizations/{slug}/festivals/{festival_id}",
    response_model=FestivalResponse,
    summary="Update a festival",
)
async def update_festival(
    festival_id: UUID,
    data: FestivalUpdateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: FestivalService = Depends(get_festival_service),
) -> FestivalResponse:
    return await service.update_festival(org.id, festival_id, data, user.id if user else None)


@router.delete(
    "/organizations/{slug}/festivals/{festival_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a festival",
)
async def delete_festival(
    festival_id: UUID,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: FestivalService = Depends(get_festival_service),
) -> dict:
    await service.delete_festival(org.id, festival_id, user.id if user else None)
    return {}
