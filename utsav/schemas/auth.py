"""
Authentication schemas.

Request/response models for magic link sign-in and token management.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


# ---------------------------------------------------------------------------
# Magic link
# ---------------------------------------------------------------------------

class MagicLinkRequest(BaseModel):
    """Request body for POST /auth/magic-link."""

    email: EmailStr
    redirect_to: str | None = Field(
        default=None,
        max_length=500,
        description="Path to return to once the link is opened",
    )


class MagicLinkResponse(BaseModel):
    message: str = "Check your email for the sign-in link"


class VerifyMagicLinkRequest(BaseModel):
    """Request body for POST /auth/verify."""

    token: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Response for magic link verification and token refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token TTL in seconds")
    redirect_to: str | None = None


# ---------------------------------------------------------------------------
# Refresh / Logout
# ---------------------------------------------------------------------------

class RefreshRequest(BaseModel):
    """Request body for POST /auth/refresh."""

    refresh_token: str


class LogoutRequest(BaseModel):
    """Request body for POST /auth/logout."""

    refresh_token: str


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

class MembershipResponse(BaseModel):
    """One organization role held by the current user."""

    organization_id: UUID
    organization_slug: str
    organization_name: str
    role: str


class MeResponse(BaseModel):
    """Response for GET /auth/me: the current user with their roles."""

    id: UUID
    email: str
    display_name: str | None
    avatar_url: str | None
    created_at: datetime
    memberships: list[MembershipResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}
