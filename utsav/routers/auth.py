"""
Authentication endpoints.

Magic link sign-in, token refresh, logout, me.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_current_user, get_redis
from utsav.core.security import decode_access_token
from utsav.models.user import User
from utsav.schemas.auth import (
    LogoutRequest,
    MagicLinkRequest,
    MagicLinkResponse,
    MeResponse,
    RefreshRequest,
    TokenResponse,
    VerifyMagicLinkRequest,
)
from utsav.services.auth_service import AuthService

router = APIRouter()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    """Dependency that constructs AuthService."""
    return AuthService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Magic link
# ---------------------------------------------------------------------------

@router.post(
    "/magic-link",
    response_model=MagicLinkResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Email a one-time sign-in link",
)
async def request_magic_link(
    data: MagicLinkRequest,
    service: AuthService = Depends(get_auth_service),
) -> MagicLinkResponse:
    """
    Send a sign-in link to the given address.

    `redirect_to` is handed back when the link is verified, so the caller
    can return to the page that required sign-in.
    """
    await service.request_magic_link(data)
    return MagicLinkResponse()


@router.post(
    "/verify",
    response_model=TokenResponse,
    summary="Exchange a magic link token for a session",
)
async def verify_magic_link(
    data: VerifyMagicLinkRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Complete sign-in.

    - Token is single use
    - Creates the account on first sign-in
    - Returns JWT access + refresh tokens and the preserved redirect target
    """
    return await service.verify_magic_link(data.token)


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------

@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
)
async def refresh(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Exchange a valid refresh token for a new access + refresh token pair.

    Refresh tokens are rotated on every use.
    """
    return await service.refresh(data.refresh_token)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Logout and revoke tokens",
)
async def logout(
    data: LogoutRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """
    Logout the current user.

    - Blacklists the current access token JTI in Redis
    - Deletes the refresh token from Redis
    """
    auth_header = request.headers.get("Authorization", "")
    access_token = auth_header.replace("Bearer ", "")

    try:
        jti: str = decode_access_token(access_token).get("jti", "")
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Could not decode access token"},
        )

    await service.logout(access_token_jti=jti, refresh_token=data.refresh_token)
    return {}


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------

@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user profile",
)
async def get_me(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    """Return the authenticated user's profile and organization roles."""
    return await service.get_me(current_user)
