"""
FastAPI dependency injection functions.

Provides Redis connections, current user, organization lookup by slug
and role enforcement.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.config import settings
from utsav.core.database import get_db
from utsav.core.security import blacklist_redis_key, decode_access_token
from utsav.core.storage import StorageBucket, get_image_bucket
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.models.user_role import AppRole, UserRole

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


def get_storage_bucket() -> StorageBucket:
    return get_image_bucket()


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

async def _user_from_credentials(
    credentials: HTTPAuthorizationCredentials,
    db: AsyncSession,
    redis: aioredis.Redis,
) -> User:
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload.get("sub", "")
    jti: str = payload.get("jti", "")

    if await redis.exists(blacklist_redis_key(jti)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "TOKEN_REVOKED", "message": "Token has been revoked"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == UUID(user_id)))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User:
    """
    Validate Bearer JWT and return the authenticated User.

    Raises 401 if:
    - No token provided
    - Token is invalid or expired
    - JTI is blacklisted
    - User does not exist or is inactive
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Authorization header required"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await _user_from_credentials(credentials, db, redis)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User | None:
    """
    Current user when a Bearer token is sent, None otherwise.

    Used by the organization data endpoints, which are open to anyone holding
    the shared link but still record who made a change when they can.
    """
    if credentials is None:
        return None
    return await _user_from_credentials(credentials, db, redis)


# ---------------------------------------------------------------------------
# Organization lookup + role enforcement
# ---------------------------------------------------------------------------

async def get_organization(
    slug: str,
    db: AsyncSession = Depends(get_db),
) -> Organization:
    """Resolve an organization by slug. Raises 404 if it does not exist."""
    result = await db.execute(select(Organization).where(Organization.slug == slug))
    org = result.scalar_one_or_none()

    if org is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "ORG_NOT_FOUND", "message": "Organization not found"},
        )
    return org


async def get_org_member(
    org: Organization = Depends(get_organization),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Organization, UserRole]:
    """
    Verify the current user holds a role in the organization.

    Returns (organization, user_role) tuple.
    Raises 404 if org not found, 403 if user has no role.
    """
    result = await db.execute(
        select(UserRole).where(
            UserRole.organization_id == org.id,
            UserRole.user_id == current_user.id,
        )
    )
    role = result.scalar_one_or_none()

    if role is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "NOT_A_MEMBER", "message": "You are not a member of this organization"},
        )

    return org, role


def require_role(*roles: AppRole):
    """
    Dependency factory that enforces one of the given roles.

    Usage:
        @router.patch("/{slug}")
        async def endpoint(
            org_and_role: tuple = Depends(require_role(AppRole.admin)),
        ):
            org, role = org_and_role
    """
    async def role_checker(
        org_and_role: tuple[Organization, UserRole] = Depends(get_org_member),
    ) -> tuple[Organization, UserRole]:
        _, role = org_and_role
        if role.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "INSUFFICIENT_ROLE",
                    "message": f"Required role: {[r.value for r in roles]}",
                },
            )
        return org_and_role

    return role_checker
