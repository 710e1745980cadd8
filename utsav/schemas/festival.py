"""
Festival schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from utsav.schemas.organization import _reject_null, _validate_pages


class FestivalCreateRequest(BaseModel):
    """Request body for POST /organizations/{slug}/festivals."""

    name: str = Field(min_length=1, max_length=200)
    year: int = Field(ge=1900, le=2200)
    description: str | None = None
    background_color: str | None = Field(default=None, max_length=30)
    background_image: str | None = Field(default=None, max_length=500)
    theme: str | None = Field(default=None, max_length=30)
    enabled_pages: list[str] | None = None
    is_active: bool = True
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("enabled_pages")
    @classmethod
    def pages_must_be_known(cls, v: list[str] | None) -> list[str] | None:
        return _validate_pages(v)


class FestivalUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}/festivals/{festival_id}."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    year: int | None = Field(default=None, ge=1900, le=2200)
    description: str | None = None
    background_color: str | None = Field(default=None, max_length=30)
    background_image: str | None = Field(default=None, max_length=500)
    theme: str | None = Field(default=None, max_length=30)
    enabled_pages: list[str] | None = None
    is_active: bool | None = None
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("enabled_pages")
    @classmethod
    def pages_must_be_known(cls, v: list[str] | None) -> list[str] | None:
        return _validate_pages(v)

    @field_validator("name", "year", "is_active")
    @classmethod
    def required_not_null(cls, v):
        return _reject_null(v)


class FestivalResponse(BaseModel):
    id: UUID
    organization_id: UUID
    name: str
    year: int
    description: str | None
    background_color: str | None
    background_image: str | None
    theme: str | None
    enabled_pages: list[str] | None
    is_active: bool
    start_date: date | None
    end_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
