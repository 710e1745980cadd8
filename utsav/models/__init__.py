"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from utsav.models.base import Base, TimestampMixin, UUIDMixin
from utsav.models.organization import Organization, OrganizationPlan
from utsav.models.user import User
from utsav.models.user_role import AppRole, UserRole
from utsav.models.invitation import InvitationStatus, OrganizationInvitation
from utsav.models.festival import Festival
from utsav.models.donation import Donation, DonationCategory
from utsav.models.expense import Expense
from utsav.models.image import Image
from utsav.models.competition import Competition, CompetitionStatus, Participant, Vote
from utsav.models.setting import Setting
from utsav.models.audit_log import AuditLog

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "Organization",
    "OrganizationPlan",
    "User",
    "UserRole",
    "AppRole",
    "OrganizationInvitation",
    "InvitationStatus",
    "Festival",
    "Donation",
    "DonationCategory",
    "Expense",
    "Image",
    "Competition",
    "CompetitionStatus",
    "Participant",
    "Vote",
    "Setting",
    "AuditLog",
]
