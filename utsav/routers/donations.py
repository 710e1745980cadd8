"""
Donation and expense endpoints.

CRUD, search and totals for chandas, sponsorships and expenses.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_optional_user, get_organization
from utsav.models.donation import DonationCategory
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.schemas.donation import (
    DonationCreateRequest,
    DonationResponse,
    DonationUpdateRequest,
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpenseUpdateRequest,
    ReceivedAmountUpdateRequest,
    TotalResponse,
)
from utsav.services.donation_service import DonationService
from utsav.services.expense_service import ExpenseService

router = APIRouter()


def get_donation_service(db: AsyncSession = Depends(get_db)) -> DonationService:
    return DonationService(db=db)


def get_expense_service(db: AsyncSession = Depends(get_db)) -> ExpenseService:
    return ExpenseService(db=db)


# ---------------------------------------------------------------------------
# Donations
# ---------------------------------------------------------------------------

@router.get(
    "/organizations/{slug}/donations",
    response_model=list[DonationResponse],
    summary="List donations",
)
async def list_donations(
    category: DonationCategory | None = Query(default=None),
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: DonationService = Depends(get_donation_service),
) -> list[DonationResponse]:
    """Newest first, optionally filtered by category and festival."""
    return await service.list_donations(org.id, category=category, festival_id=festival_id)


@router.get(
    "/organizations/{slug}/donations/search",
    response_model=list[DonationResponse],
    summary="Search donations by name",
)
async def search_donations(
    q: list[str] = Query(..., min_length=1, description="Search terms; any may match"),
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: DonationService = Depends(get_donation_service),
) -> list[DonationResponse]:
    """Each term is matched case-insensitively against both name and Telugu name."""
    return await service.search_donations(org.id, q, festival_id=festival_id)


@router.get(
    "/organizations/{slug}/donations/total",
    response_model=TotalResponse,
    summary="Total pledged amount",
)
async def donations_total(
    category: DonationCategory | None = Query(default=None),
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: DonationService = Depends(get_donation_service),
) -> TotalResponse:
    total = await service.get_total(org.id, category=category, festival_id=festival_id)
    return TotalResponse(total=total)


@router.post(
    "/organizations/{slug}/donations",
    response_model=DonationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a donation",
)
async def create_donation(
    data: DonationCreateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    return await service.create_donation(org.id, data, user.id if user else None)


@router.patch(
    "/organizations/{slug}/donations/{donation_id}",
    response_model=DonationResponse,
    summary="Update a donation",
)
async def update_donation(
    donation_id: UUID,
    data: DonationUpdateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    return await service.update_donation(org.id, donation_id, data, user.id if user else None)


@router.patch(
    "/organizations/{slug}/donations/{donation_id}/received",
    response_model=DonationResponse,
    summary="Update the received amount",
)
async def update_received_amount(
    donation_id: UUID,
    data: ReceivedAmountUpdateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: DonationService = Depends(get_donation_service),
) -> DonationResponse:
    return await service.update_received_amount(
        org.id, donation_id, data.received_amount, user.id if user else None
    )


@router.delete(
    "/organizations/{slug}/donations/{donation_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a donation",
)
async def delete_donation(
    donation_id: UUID,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: DonationService = Depends(get_donation_service),
) -> dict:
    await service.delete_donation(org.id, donation_id, user.id if user else None)
    return {}


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

@router.get(
    "/organizations/{slug}/expenses",
    response_model=list[ExpenseResponse],
    summary="List expenses",
)
async def list_expenses(
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: ExpenseService = Depends(get_expense_service),
) -> list[ExpenseResponse]:
    return await service.list_expenses(org.id, festival_id=festival_id)


@router.get(
    "/organizations/{slug}/expenses/total",
    response_model=TotalResponse,
    summary="Total expenses",
)
async def expenses_total(
    festival_id: UUID | None = Query(default=None),
    org: Organization = Depends(get_organization),
    service: ExpenseService = Depends(get_expense_service),
) -> TotalResponse:
    return TotalResponse(total=await service.get_total(org.id, festival_id=festival_id))


@router.post(
    "/organizations/{slug}/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an expense",
)
async def create_expense(
    data: ExpenseCreateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: ExpenseService = Depends(get_expense_service),
) -> ExpenseResponse:
    return await service.create_expense(org.id, data, user.id if user else None)


@router.patch(
    "/organizations/{slug}/expenses/{expense_id}",
    response_model=ExpenseResponse,
    summary="Update an expense",
)
async def update_expense(
    expense_id: UUID,
    data: ExpenseUpdateRequest,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: ExpenseService = Depends(get_expense_service),
) -> ExpenseResponse:
    return await service.update_expense(org.id, expense_id, data, user.id if user else None)


@router.delete(
    "/organizations/{slug}/expenses/{expense_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete an expense",
)
async def delete_expense(
    expense_id: UUID,
    org: Organization = Depends(get_organization),
    user: User | None = Depends(get_optional_user),
    service: ExpenseService = Depends(get_expense_service),
) -> dict:
    await service.delete_expense(org.id, expense_id, user.id if user else None)
    return {}
