"""
Organization business logic.

Handles organization creation, the shared passcode, member management
and invitations. All queries scoped by organization_id.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID

import redis.asyncio as aioredis
import structlog
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from utsav.core.config import settings
from utsav.core.security import create_invitation_token, hash_passcode, verify_passcode
from utsav.models.base import as_utc, utcnow
from utsav.models.invitation import InvitationStatus, OrganizationInvitation
from utsav.models.organization import Organization
from utsav.models.user import User
from utsav.models.user_role import AppRole, UserRole
from utsav.schemas.organization import (
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
    VerifyPasscodeResponse,
)

logger = structlog.get_logger(__name__)


def invite_link(token: str) -> str:
    """Shareable acceptance URL for an invitation token."""
    return f"{settings.FRONTEND_URL}/invite/accept?token={token}"


class OrganizationService:
    """Handles all organization operations."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Create Organization
    # -----------------------------------------------------------------------

    async def create_organization(
        self, data: OrganizationCreateRequest, owner: User
    ) -> OrganizationResponse:
        """
        Create a new organization.

        - Validates slug uniqueness
        - Stores only the bcrypt hash of the passcode
        - Assigns creator as admin
        """
        existing = await self.db.execute(
            select(Organization).where(Organization.slug == data.slug)
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "SLUG_TAKEN", "message": "Organization slug is already taken"},
            )

        org = Organization(
            name=data.name,
            slug=data.slug,
            description=data.description,
            email=data.email,
            theme=data.theme,
            passcode_hash=hash_passcode(data.passcode),
        )
        self.db.add(org)
        await self.db.flush()

        self.db.add(UserRole(user_id=owner.id, organization_id=org.id, role=AppRole.admin))
        await self.db.flush()
        await self.db.refresh(org)

        logger.info("organization_created", organization_id=str(org.id), slug=org.slug)
        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_my_organizations(self, user: User) -> list[MyOrganizationResponse]:
        """Organizations the user holds a role in, alphabetically."""
        result = await self.db.execute(
            select(Organization, UserRole.role)
            .join(UserRole, UserRole.organization_id == Organization.id)
            .where(UserRole.user_id == user.id)
            .order_by(Organization.name)
        )
        return [
            MyOrganizationResponse(
                **OrganizationResponse.model_validate(org).model_dump(),
                role=role.value,
            )
            for org, role in result.all()
        ]

    async def get_public_organization(self, slug: str) -> OrganizationPublicResponse:
        """Public lookup used by shared links. Never exposes the passcode."""
        result = await self.db.execute(
            select(Organization).where(Organization.slug == slug)
        )
        org = result.scalar_one_or_none()

        if org is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "ORG_NOT_FOUND", "message": "Organization not found"},
            )

        return OrganizationPublicResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Update / Delete
    # -----------------------------------------------------------------------

    async def update_organization(
        self, org: Organization, data: OrganizationUpdateRequest
    ) -> OrganizationResponse:
        """Apply the fields present in the request. A new passcode is re-hashed."""
        changes = data.model_dump(exclude_unset=True)
        passcode = changes.pop("passcode", None)

        for field, value in changes.items():
            setattr(org, field, value)
        if passcode is not None:
            org.passcode_hash = hash_passcode(passcode)
            logger.info("organization_passcode_changed", organization_id=str(org.id))

        await self.db.flush()
        await self.db.refresh(org)
        return OrganizationResponse.model_validate(org)

    async def delete_organization(self, org: Organization) -> None:
        """Delete the organization; its data goes with it via ON DELETE CASCADE."""
        await self.db.delete(org)
        await self.db.flush()
        logger.info("organization_deleted", organization_id=str(org.id), slug=org.slug)

    # -----------------------------------------------------------------------
    # Passcode
    # -----------------------------------------------------------------------

    async def verify_passcode(self, organization_id: UUID, passcode: str) -> VerifyPasscodeResponse:
        """
        Check a passcode against the stored hash.

        Only a boolean leaves this method. Unknown organizations and
        organizations without a passcode both verify as false.
        """
        result = await self.db.execute(
            select(Organization.passcode_hash).where(Organization.id == organization_id)
        )
        passcode_hash = result.scalar_one_or_none()

        valid = passcode_hash is not None and verify_passcode(passcode, passcode_hash)
        if not valid:
            logger.info("passcode_rejected", organization_id=str(organization_id))
        return VerifyPasscodeResponse(valid=valid)

    # -----------------------------------------------------------------------
    # Members
    # -----------------------------------------------------------------------

    async def list_members(self, organization_id: UUID) -> MembersListResponse:
        """List all members of an organization with user details."""
        result = await self.db.execute(
            select(UserRole, User)
            .join(User, UserRole.user_id == User.id)
            .where(UserRole.organization_id == organization_id)
            .order_by(UserRole.created_at)
        )
        members = [self._member_response(role, user) for role, user in result.all()]
        return MembersListResponse(members=members, total=len(members))

    async def update_member_role(
        self, organization_id: UUID, target_user_id: UUID, new_role: str
    ) -> MemberResponse:
        """Change a member's role. The last admin cannot be demoted."""
        role, user = await self._get_member(organization_id, target_user_id)

        if role.role == AppRole.admin and new_role != AppRole.admin.value:
            await self._ensure_not_last_admin(organization_id)

        role.role = AppRole(new_role)
        await self.db.flush()
        return self._member_response(role, user)

    async def remove_member(self, organization_id: UUID, target_user_id: UUID) -> None:
        """Remove a member. The last admin cannot be removed."""
        role, _ = await self._get_member(organization_id, target_user_id)

        if role.role == AppRole.admin:
            await self._ensure_not_last_admin(organization_id)

        await self.db.delete(role)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Invitations
    # -----------------------------------------------------------------------

    async def invite_member(
        self, org: Organization, data: InviteRequest, inviter: User
    ) -> InvitationResponse:
        """
        Create an invitation for a new member.

        - Rejects emails that already belong to a member
        - Rejects duplicate pending, unexpired invitations
        - Creates the invitation with a random token valid for 7 days
        - Queues invitation email via Celery
        """
        email = data.email.lower()

        member_result = await self.db.execute(
            select(UserRole)
            .join(User, UserRole.user_id == User.id)
            .where(UserRole.organization_id == org.id, User.email == email)
        )
        if member_result.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "User is already a member of this organization"},
            )

        pending_result = await self.db.execute(
            select(OrganizationInvitation).where(
                OrganizationInvitation.organization_id == org.id,
                OrganizationInvitation.email == email,
                OrganizationInvitation.status == InvitationStatus.pending,
            )
        )
        for pending in pending_result.scalars().all():
            if as_utc(pending.expires_at) > utcnow():
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail={"code": "INVITE_EXISTS", "message": "A pending invitation already exists for this email"},
                )

        invitation = OrganizationInvitation(
            organization_id=org.id,
            email=email,
            role=AppRole(data.role),
            token=create_invitation_token(),
            expires_at=utcnow() + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
            status=InvitationStatus.pending,
            invited_by=inviter.id,
        )
        self.db.add(invitation)
        await self.db.flush()
        await self.db.refresh(invitation)

        from utsav.workers.email_tasks import send_invitation_email
        send_invitation_email.delay(
            to_email=email,
            org_name=org.name,
            inviter_name=inviter.display_name or inviter.email,
            role=data.role,
            invite_url=invite_link(invitation.token),
        )

        logger.info("invitation_created", organization_id=str(org.id), role=data.role)
        return self._invitation_response(invitation)

    async def list_invitations(self, organization_id: UUID) -> InvitationsListResponse:
        """Pending invitations, newest first. Expired ones are flagged, not hidden."""
        result = await self.db.execute(
            select(OrganizationInvitation)
            .where(
                OrganizationInvitation.organization_id == organization_id,
                OrganizationInvitation.status == InvitationStatus.pending,
            )
            .order_by(OrganizationInvitation.created_at.desc())
        )
        invitations = [self._invitation_response(inv) for inv in result.scalars().all()]
        return InvitationsListResponse(invitations=invitations, total=len(invitations))

    async def revoke_invitation(self, organization_id: UUID, invitation_id: UUID) -> None:
        """Delete an invitation."""
        result = await self.db.execute(
            select(OrganizationInvitation).where(
                OrganizationInvitation.id == invitation_id,
                OrganizationInvitation.organization_id == organization_id,
            )
        )
        invitation = result.scalar_one_or_none()

        if invitation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )

        await self.db.delete(invitation)
        await self.db.flush()

    async def accept_invitation(self, token: str, current_user: User) -> InvitationAcceptResponse:
        """
        Accept an invitation for the signed-in user.

        Checks run in this order:
        - unknown token: 404
        - pending and past expiry: 410, whatever else holds
        - invitation email differs from the account email: 403
        - account already holds a role here: success, no new role
        - otherwise create the role and mark the invitation accepted

        Accepting the same token twice therefore ends on the
        already-a-member path instead of creating a second role.
        """
        result = await self.db.execute(
            select(OrganizationInvitation).where(OrganizationInvitation.token == token)
        )
        invitation = result.scalar_one_or_none()

        if invitation is None or invitation.status not in (
            InvitationStatus.pending,
            InvitationStatus.accepted,
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )

        if invitation.status == InvitationStatus.pending and as_utc(invitation.expires_at) < utcnow():
            raise HTTPException(
                status_code=status.HTTP_410_GONE,
                detail={"code": "INVITE_EXPIRED", "message": "Invitation has expired"},
            )

        if invitation.email.lower() != current_user.email.lower():
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "EMAIL_MISMATCH", "message": "Invitation was sent to a different email address"},
            )

        role_result = await self.db.execute(
            select(UserRole).where(
                UserRole.user_id == current_user.id,
                UserRole.organization_id == invitation.organization_id,
            )
        )
        already_member = role_result.scalar_one_or_none() is not None

        if not already_member:
            if invitation.status == InvitationStatus.accepted:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail={"code": "INVITE_USED", "message": "Invitation has already been accepted"},
                )
            self.db.add(
                UserRole(
                    user_id=current_user.id,
                    organization_id=invitation.organization_id,
                    role=invitation.role,
                )
            )

        invitation.status = InvitationStatus.accepted
        await self.db.flush()

        org_result = await self.db.execute(
            select(Organization).where(Organization.id == invitation.organization_id)
        )
        org = org_result.scalar_one()

        logger.info(
            "invitation_accepted",
            organization_id=str(org.id),
            user_id=str(current_user.id),
            already_member=already_member,
        )
        return InvitationAcceptResponse(
            already_member=already_member,
            organization=OrganizationPublicResponse.model_validate(org),
        )

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _get_member(self, organization_id: UUID, user_id: UUID) -> tuple[UserRole, User]:
        result = await self.db.execute(
            select(UserRole, User)
            .join(User, UserRole.user_id == User.id)
            .where(
                UserRole.organization_id == organization_id,
                UserRole.user_id == user_id,
            )
        )
        row = result.one_or_none()

        if row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )
        return row[0], row[1]

    async def _ensure_not_last_admin(self, organization_id: UUID) -> None:
        result = await self.db.execute(
            select(func.count())
            .select_from(UserRole)
            .where(
                UserRole.organization_id == organization_id,
                UserRole.role == AppRole.admin,
            )
        )
        if result.scalar_one() <= 1:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "LAST_ADMIN", "message": "An organization needs at least one admin"},
            )

    @staticmethod
    def _member_response(role: UserRole, user: User) -> MemberResponse:
        return MemberResponse(
            id=role.id,
            user_id=user.id,
            email=user.email,
            display_name=user.display_name,
            role=role.role.value,
            created_at=role.created_at,
        )

    @staticmethod
    def _invitation_response(invitation: OrganizationInvitation) -> InvitationResponse:
        return InvitationResponse(
            id=invitation.id,
            organization_id=invitation.organization_id,
            email=invitation.email,
            role=invitation.role.value,
            token=invitation.token,
            status=invitation.status.value,
            expires_at=invitation.expires_at,
            created_at=invitation.created_at,
            invite_link=invite_link(invitation.token),
            is_expired=as_utc(invitation.expires_at) < utcnow(),
        )
