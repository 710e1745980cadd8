"""
Authentication business logic.

Handles magic link sign-in, token refresh, logout and the current user.
All business logic lives here; routers only handle HTTP concerns.
"""

from __future__ import annotations

import json
from uuid import UUID

import redis.asyncio as aioredis
import structlog
from fastapi import HTTPException, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.config import settings
from utsav.core.security import (
    blacklist_redis_key,
    create_access_token,
    create_magic_link_token,
    create_refresh_token,
    decode_refresh_token,
    magic_link_redis_key,
    refresh_token_redis_key,
)
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.models.user_role import UserRole
from utsav.schemas.auth import (
    MagicLinkRequest,
    MembershipResponse,
    MeResponse,
    TokenResponse,
)

logger = structlog.get_logger(__name__)


class AuthService:
    """Handles all authentication operations."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Magic link
    # -----------------------------------------------------------------------

    async def request_magic_link(self, data: MagicLinkRequest) -> None:
        """
        Start a passwordless sign-in.

        - Stores a one-time token in Redis with the redirect target
        - Queues the sign-in email via Celery
        Accounts are created on first verification, so unknown emails are fine.
        """
        email = data.email.lower()
        token = create_magic_link_token()

        await self.redis.setex(
            magic_link_redis_key(token),
            settings.MAGIC_LINK_EXPIRE_MINUTES * 60,
            json.dumps({"email": email, "redirect_to": data.redirect_to}),
        )

        from utsav.workers.email_tasks import send_magic_link_email
        send_magic_link_email.delay(
            to_email=email,
            magic_link_token=token,
            frontend_url=settings.FRONTEND_URL,
        )
        logger.info("magic_link_requested", email=email)

    async def verify_magic_link(self, token: str) -> TokenResponse:
        """
        Exchange a magic link token for a session.

        The token is single use. The account is created on first sign-in.
        Returns the token pair plus the redirect target preserved at request time.
        """
        redis_key = magic_link_redis_key(token)
        raw = await self.redis.get(redis_key)

        if raw is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_LINK", "message": "Sign-in link is invalid or expired"},
            )

        await self.redis.delete(redis_key)
        pending = json.loads(raw)
        email: str = pending["email"]

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            user = User(email=email, display_name=email.split("@")[0])
            self.db.add(user)
            await self.db.flush()
            logger.info("user_created", user_id=str(user.id))
        elif not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "USER_INACTIVE", "message": "This account has been deactivated"},
            )

        tokens = await self._issue_tokens(user)
        tokens.redirect_to = pending.get("redirect_to")
        return tokens

    # -----------------------------------------------------------------------
    # Refresh
    # -----------------------------------------------------------------------

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a valid refresh token for a new token pair.

        - Validates refresh token JWT
        - Checks token exists in Redis
        - Rotates: deletes old refresh token, issues new pair
        """
        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_TOKEN", "message": "Refresh token is invalid or expired"},
            )

        user_id: str = payload.get("sub", "")
        jti: str = payload.get("jti", "")

        redis_key = refresh_token_redis_key(user_id, jti)
        if not await self.redis.exists(redis_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "TOKEN_REVOKED", "message": "Refresh token has been revoked"},
            )

        result = await self.db.execute(select(User).where(User.id == UUID(user_id)))
        user = result.scalar_one_or_none()

        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            )

        await self.redis.delete(redis_key)
        return await self._issue_tokens(user)

    # -----------------------------------------------------------------------
    # Logout
    # -----------------------------------------------------------------------

    async def logout(self, access_token_jti: str, refresh_token: str) -> None:
        """
        Logout user by:
        - Blacklisting the access token JTI
        - Deleting the refresh token from Redis
        """
        await self.redis.setex(
            blacklist_redis_key(access_token_jti),
            settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "1",
        )

        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            # Already expired refresh tokens need no cleanup
            return
        await self.redis.delete(
            refresh_token_redis_key(payload.get("sub", ""), payload.get("jti", ""))
        )

    # -----------------------------------------------------------------------
    # Current user
    # -----------------------------------------------------------------------

    async def get_me(self, user: User) -> MeResponse:
        """Return the current user with every organization role they hold."""
        result = await self.db.execute(
            select(UserRole, Organization)
            .join(Organization, UserRole.organization_id == Organization.id)
            .where(UserRole.user_id == user.id)
            .order_by(Organization.name)
        )
        memberships = [
            MembershipResponse(
                organization_id=org.id,
                organization_slug=org.slug,
                organization_name=org.name,
                role=role.role.value,
            )
            for role, org in result.all()
        ]
        return MeResponse(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            created_at=user.created_at,
            memberships=memberships,
        )

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _issue_tokens(self, user: User) -> TokenResponse:
        """
        Create and store access + refresh token pair for a user.

        Stores refresh token JTI in Redis with TTL.
        """
        user_id = str(user.id)

        refresh_token, refresh_jti = create_refresh_token(user_id)
        access_token = create_access_token(user_id)

        ttl_seconds = settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
        await self.redis.setex(
            refresh_token_redis_key(user_id, refresh_jti),
            ttl_seconds,
            "1",
        )

        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
