"""
Organization endpoints.

Create, public lookup, passcode verification, member management,
invitations and the audit log.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.database import get_db
from utsav.core.dependencies import get_current_user, get_redis, require_role
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.models.user_role import AppRole, UserRole
from utsav.schemas.audit import AuditLogListResponse
from utsav.schemas.organization import (
    InvitationAcceptRequest,
    InvitationAcceptResponse,
    InvitationResponse,
    InvitationsListResponse,
    InviteRequest,
    MemberResponse,
    MembersListResponse,
    MyOrganizationResponse,
    OrganizationCreateRequest,
    OrganizationPublicResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
    VerifyPasscodeRequest,
    VerifyPasscodeResponse,
)
from utsav.services.audit_service import AuditService
from utsav.services.organization_service import OrganizationService

router = APIRouter()

admin_only = require_role(AppRole.admin)
any_member = require_role(AppRole.admin, AppRole.manager, AppRole.viewer)


def get_org_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> OrganizationService:
    """Dependency that constructs OrganizationService."""
    return OrganizationService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Create / list
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new organization",
)
async def create_organization(
    data: OrganizationCreateRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """
    Create a new organization.

    - Slug must be globally unique
    - Passcode is stored as a bcrypt hash only
    - Creator is automatically assigned the admin role
    """
    return await service.create_organization(data, current_user)


@router.get(
    "/mine",
    response_model=list[MyOrganizationResponse],
    summary="Organizations the current user belongs to",
)
async def list_my_organizations(
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> list[MyOrganizationResponse]:
    return await service.list_my_organizations(current_user)


# ---------------------------------------------------------------------------
# Passcode
# ---------------------------------------------------------------------------

@router.post(
    "/verify-passcode",
    response_model=VerifyPasscodeResponse,
    summary="Check an organization passcode",
)
async def verify_passcode(
    data: VerifyPasscodeRequest,
    service: OrganizationService = Depends(get_org_service),
) -> VerifyPasscodeResponse:
    """
    Verify a passcode server-side.

    Open to anyone; only `{"valid": bool}` is returned.
    """
    return await service.verify_passcode(data.organization_id, data.passcode)


# ---------------------------------------------------------------------------
# Accept Invitation
# ---------------------------------------------------------------------------

@router.post(
    "/invitations/accept",
    response_model=InvitationAcceptResponse,
    summary="Accept an invitation",
)
async def accept_invitation(
    data: InvitationAcceptRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationAcceptResponse:
    """
    Accept an organization invitation.

    - 410 when the invitation is pending and past its expiry
    - 403 when the signed-in email differs from the invited email
    - Accepting again as an existing member succeeds without a new role
    """
    return await service.accept_invitation(data.token, current_user)


# ---------------------------------------------------------------------------
# Get / Update / Delete Organization
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}",
    response_model=OrganizationPublicResponse,
    summary="Public organization lookup by slug",
)
async def get_organization(
    slug: str,
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationPublicResponse:
    """Resolve a shared link. No sign-in required."""
    return await service.get_public_organization(slug)


@router.patch(
    "/{slug}",
    response_model=OrganizationResponse,
    summary="Update organization details or passcode",
)
async def update_organization(
    data: OrganizationUpdateRequest,
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Update organization fields. Requires admin role."""
    org, _ = org_and_role
    return await service.update_organization(org, data)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_200_OK,
    summary="Delete an organization",
)
async def delete_organization(
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Delete the organization and all its data. Requires admin role."""
    org, _ = org_and_role
    await service.delete_organization(org)
    return {}


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/members",
    response_model=MembersListResponse,
    summary="List organization members",
)
async def list_members(
    org_and_role: tuple[Organization, UserRole] = Depends(any_member),
    service: OrganizationService = Depends(get_org_service),
) -> MembersListResponse:
    org, _ = org_and_role
    return await service.list_members(org.id)


@router.patch(
    "/{slug}/members/{user_id}",
    response_model=MemberResponse,
    summary="Change a member's role",
)
async def update_member_role(
    user_id: UUID,
    role: AppRole = Query(..., description="New role"),
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    service: OrganizationService = Depends(get_org_service),
) -> MemberResponse:
    """Requires admin role. The last admin cannot be demoted."""
    org, _ = org_and_role
    return await service.update_member_role(org.id, user_id, role.value)


@router.delete(
    "/{slug}/members/{user_id}",
    status_code=status.HTTP_200_OK,
    summary="Remove a member",
)
async def remove_member(
    user_id: UUID,
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Requires admin role. The last admin cannot be removed."""
    org, _ = org_and_role
    await service.remove_member(org.id, user_id)
    return {}


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@router.post(
    "/{slug}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a new member",
)
async def invite_member(
    data: InviteRequest,
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationResponse:
    """
    Invite someone to the organization by email.

    - Requires admin role
    - Sends invitation email via Celery
    - Link expires in 7 days
    """
    org, _ = org_and_role
    return await service.invite_member(org, data, current_user)


@router.get(
    "/{slug}/invitations",
    response_model=InvitationsListResponse,
    summary="List pending invitations",
)
async def list_invitations(
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationsListResponse:
    org, _ = org_and_role
    return await service.list_invitations(org.id)


@router.delete(
    "/{slug}/invitations/{invitation_id}",
    status_code=status.HTTP_200_OK,
    summary="Revoke an invitation",
)
async def revoke_invitation(
    invitation_id: UUID,
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Revoke an invitation. Requires admin role."""
    org, _ = org_and_role
    await service.revoke_invitation(org.id, invitation_id)
    return {}


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/audit-logs",
    response_model=AuditLogListResponse,
    summary="Recent changes to organization data",
)
async def list_audit_logs(
    limit: int = Query(default=50, ge=1, le=500),
    table_name: str | None = Query(default=None),
    org_and_role: tuple[Organization, UserRole] = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> AuditLogListResponse:
    """Audit entries newest first. Requires admin role."""
    org, _ = org_and_role
    return await AuditService(db).list_logs(org.id, limit=limit, table_name=table_name)
