"""
Donation and expense schemas.

Amounts are validated non-negative here, before any row is written.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from utsav.models.donation import DonationCategory
from utsav.schemas.organization import _reject_null


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------

class FestivalScope(BaseModel):
    """Festival a donation, expense or image belongs to."""

    festival_id: UUID | None = None
    festival_name: str | None = Field(default=None, max_length=200)
    festival_year: int | None = Field(default=None, ge=1900, le=2200)


class TotalResponse(BaseModel):
    total: float


# ---------------------------------------------------------------------------
# Donations
# ---------------------------------------------------------------------------

class DonationCreateRequest(FestivalScope):
    """Request body for POST /organizations/{slug}/donations."""

    name: str = Field(min_length=1, max_length=200)
    name_telugu: str | None = Field(default=None, max_length=200)
    amount: float = Field(ge=0)
    received_amount: float = Field(default=0, ge=0)
    type: str | None = Field(default=None, max_length=50)
    category: DonationCategory = DonationCategory.chanda


class DonationUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}/donations/{donation_id}."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    name_telugu: str | None = Field(default=None, max_length=200)
    amount: float | None = Field(default=None, ge=0)
    received_amount: float | None = Field(default=None, ge=0)
    type: str | None = Field(default=None, max_length=50)
    category: DonationCategory | None = None

    @field_validator("name", "amount", "received_amount", "category")
    @classmethod
    def required_not_null(cls, v):
        return _reject_null(v)


class ReceivedAmountUpdateRequest(BaseModel):
    received_amount: float = Field(ge=0)


class DonationResponse(BaseModel):
    id: UUID
    organization_id: UUID
    festival_id: UUID | None
    festival_name: str | None
    festival_year: int | None
    name: str
    name_telugu: str | None
    amount: float
    received_amount: float
    type: str | None
    category: DonationCategory
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

class ExpenseCreateRequest(FestivalScope):
    """Request body for POST /organizations/{slug}/expenses."""

    type: str = Field(min_length=1, max_length=100)
    amount: float = Field(ge=0)
    description: str | None = None


class ExpenseUpdateRequest(BaseModel):
    type: str | None = Field(default=None, min_length=1, max_length=100)
    amount: float | None = Field(default=None, ge=0)
    description: str | None = None

    @field_validator("type", "amount")
    @classmethod
    def required_not_null(cls, v):
        return _reject_null(v)


class ExpenseResponse(BaseModel):
    id: UUID
    organization_id: UUID
    festival_id: UUID | None
    festival_name: str | None
    festival_year: int | None
    type: str
    amount: float
    description: str | None
    user_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
