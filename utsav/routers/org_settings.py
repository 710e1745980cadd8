"""
Organization settings endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_optional_user, get_organization
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.schemas.setting import (
    PreviousAmountRequest,
    PreviousAmountResponse,
    SettingResponse,
    SettingUpdateRequest,
)
from utsav.services.setting_service import SettingService

router = APIRouter()

SETTING_KEY = Path(..., pattern=r"^[a-z0-9_]{1,100}$")


def get_setting_service(db: AsyncSession = Depends(get_db)) -> SettingService:
    return SettingService(db=db)


# ---------------------------------------------------------------------------
# Previous amount
# ---------------------------------------------------------------------------

@router.get(
    "/organizations/{slug}/settings/previous-amount",
    response_model=PreviousAmountResponse,
    summary="Balance carried over from the previous festival",
)
async def get_previous_amount(
    org: Organization = Depends(get_organization),
    service: SettingService = Depends(get_setting_service),
) -> PreviousAmountResponse:
    return PreviousAmountResponse(amount=await service.get_previous_amount(org.id))


@router.put(
    "/organizations/{slug}/settings/previous-amount",
    response_model=PreviousAmountResponse,
    summary="Set the carried-over balance",
)
async def set_previous_amount(
    data: PreviousAmountRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: SettingService = Depends(get_setting_service),
) -> PreviousAmountResponse:
    amount = await service.set_previous_amount(org.id, data.amount, user.id if user else None)
    return PreviousAmountResponse(amount=amount)


# ---------------------------------------------------------------------------
# Generic key/value
# ---------------------------------------------------------------------------

@router.get(
    "/organizations/{slug}/settings/{key}",
    response_model=SettingResponse,
    summary="Read a setting",
)
async def get_setting(
    key: str = SETTING_KEY,
    org: Organization = Depends(get_organization),
    service: SettingService = Depends(get_setting_service),
) -> SettingResponse:
    return await service.get_setting(org.id, key)


@router.put(
    "/organizations/{slug}/settings/{key}",
    response_model=SettingResponse,
    summary="Insert or update a setting",
)
async def put_setting(
    data: SettingUpdateRequest,
    key: str = SETTING_KEY,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: SettingService = Depends(get_setting_service),
) -> SettingResponse:
    return await service.set_setting(org.id, key, data.value, user.id if user else None)
