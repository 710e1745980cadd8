"""
Organization schemas.

Request/response models for organization, passcode, member and invitation
endpoints. No response model carries the passcode.
"""

from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from utsav.models.organization import OrganizationPlan

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$")
PAGE_NAMES = {"dashboard", "chandas", "expenses", "images", "voting"}


def _validate_pages(pages: list[str] | None) -> list[str] | None:
    if pages is None:
        return pages
    unknown = set(pages) - PAGE_NAMES
    if unknown:
        raise ValueError(f"Unknown pages: {sorted(unknown)}")
    return pages


def _reject_null(value: object) -> object:
    """Omitting a field leaves it unchanged; null is not a value for it."""
    if value is None:
        raise ValueError("May be omitted but not null")
    return value


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------

class OrganizationCreateRequest(BaseModel):
    """Request body for POST /organizations."""

    name: str = Field(min_length=2, max_length=100)
    slug: str = Field(min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=2000)
    email: EmailStr | None = None
    theme: str | None = Field(default=None, max_length=30)
    passcode: str = Field(min_length=4, max_length=64)

    @field_validator("slug")
    @classmethod
    def slug_must_be_valid(cls, v: str) -> str:
        if not SLUG_PATTERN.match(v):
            raise ValueError(
                "Slug must be lowercase alphanumeric and hyphens only, "
                "and cannot start or end with a hyphen"
            )
        return v


class OrganizationUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    logo_url: str | None = Field(default=None, max_length=500)
    email: EmailStr | None = None
    theme: str | None = Field(default=None, max_length=30)
    enabled_pages: list[str] | None = None
    # Replaces the stored hash when given
    passcode: str | None = Field(default=None, min_length=4, max_length=64)

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: str | None) -> str | None:
        return _reject_null(v)

    @field_validator("enabled_pages")
    @classmethod
    def pages_must_be_known(cls, v: list[str] | None) -> list[str] | None:
        return _validate_pages(v)


class OrganizationPublicResponse(BaseModel):
    """Fields anyone holding the shared link may read."""

    id: UUID
    name: str
    slug: str
    description: str | None
    logo_url: str | None
    theme: str | None
    enabled_pages: list[str] | None

    model_config = {"from_attributes": True}


class OrganizationResponse(OrganizationPublicResponse):
    """Organization detail response."""

    email: str | None
    plan: OrganizationPlan
    subscription_status: str
    created_at: datetime
    updated_at: datetime


class MyOrganizationResponse(OrganizationResponse):
    """An organization in the current user's list, with their role."""

    role: str


# ---------------------------------------------------------------------------
# Passcode
# ---------------------------------------------------------------------------

class VerifyPasscodeRequest(BaseModel):
    """Request body for POST /organizations/verify-passcode."""

    organization_id: UUID
    passcode: str = Field(min_length=1, max_length=64)


class VerifyPasscodeResponse(BaseModel):
    valid: bool


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class MemberResponse(BaseModel):
    """Single organization member with user info and role."""

    id: UUID
    user_id: UUID
    email: str
    display_name: str | None
    role: str
    created_at: datetime


class MembersListResponse(BaseModel):
    """Response for GET /organizations/{slug}/members."""

    members: list[MemberResponse]
    total: int


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class InviteRequest(BaseModel):
    """Request body for POST /organizations/{slug}/invitations."""

    email: EmailStr
    role: str = Field(default="viewer", pattern="^(admin|manager|viewer)$")


class InvitationResponse(BaseModel):
    """Invitation detail response, including the shareable link."""

    id: UUID
    organization_id: UUID
    email: str
    role: str
    token: str
    status: str
    expires_at: datetime
    created_at: datetime
    invite_link: str
    is_expired: bool


class InvitationsListResponse(BaseModel):
    """Response for GET /organizations/{slug}/invitations."""

    invitations: list[InvitationResponse]
    total: int


class InvitationAcceptRequest(BaseModel):
    """Request body for POST /organizations/invitations/accept."""

    token: str = Field(min_length=1)


class InvitationAcceptResponse(BaseModel):
    """Result of accepting an invitation."""

    status: str = "success"
    already_member: bool
    organization: OrganizationPublicResponse
