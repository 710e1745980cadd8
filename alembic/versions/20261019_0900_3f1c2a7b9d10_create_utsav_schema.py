"""create_utsav_schema

Revision ID: 3f1c2a7b9d10
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = "3f1c2a7b9d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

organization_plan = postgresql.ENUM("free", "pro", "enterprise", name="organization_plan", create_type=False)
app_role = postgresql.ENUM("admin", "manager", "viewer", name="app_role", create_type=False)
invitation_status = postgresql.ENUM("pending", "accepted", name="invitation_status", create_type=False)
donation_category = postgresql.ENUM("chanda", "sponsorship", name="donation_category", create_type=False)
competition_status = postgresql.ENUM("open", "closed", name="competition_status", create_type=False)

ENUMS = (organization_plan, app_role, invitation_status, donation_category, competition_status)


def _id() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _org_fk() -> sa.Column:
    return sa.Column(
        "organization_id",
        UUID(as_uuid=True),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )


def _festival_columns() -> list[sa.Column]:
    return [
        sa.Column("festival_id", UUID(as_uuid=True), sa.ForeignKey("festivals.id", ondelete="SET NULL"), nullable=True),
        sa.Column("festival_name", sa.String(length=200), nullable=True),
        sa.Column("festival_year", sa.Integer(), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # Accounts and tenants
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("theme", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("plan", organization_plan, nullable=False, server_default="free"),
        sa.Column("subscription_status", sa.String(length=30), nullable=False, server_default="active"),
        sa.Column("enabled_pages", sa.JSON(), nullable=True),
        sa.Column("passcode_hash", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"], unique=True)

    op.create_table(
        "user_roles",
        _id(),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _org_fk(),
        sa.Column("role", app_role, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_user_roles_user_org"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_organization_id", "user_roles", ["organization_id"])

    op.create_table(
        "organization_invitations",
        _id(),
        _org_fk(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", app_role, nullable=False),
        sa.Column("token", sa.String(length=255), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", invitation_status, nullable=False, server_default="pending"),
        sa.Column("invited_by", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_organization_invitations_organization_id", "organization_invitations", ["organization_id"])
    op.create_index("ix_organization_invitations_email", "organization_invitations", ["email"])
    op.create_index("ix_organization_invitations_token", "organization_invitations", ["token"], unique=True)

    # Festival data
    op.create_table(
        "festivals",
        _id(),
        _org_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("background_color", sa.String(length=30), nullable=True),
        sa.Column("background_image", sa.String(length=500), nullable=True),
        sa.Column("theme", sa.String(length=30), nullable=True),
        sa.Column("enabled_pages", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_festivals_organization_id", "festivals", ["organization_id"])

    op.create_table(
        "donations",
        _id(),
        _org_fk(),
        *_festival_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("name_telugu", sa.String(length=200), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("received_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("category", donation_category, nullable=False, server_default="chanda"),
        *_timestamps(),
    )
    op.create_index("ix_donations_organization_id", "donations", ["organization_id"])
    op.create_index("ix_donations_festival_id", "donations", ["festival_id"])

    op.create_table(
        "expenses",
        _id(),
        _org_fk(),
        *_festival_columns(),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_expenses_organization_id", "expenses", ["organization_id"])
    op.create_index("ix_expenses_festival_id", "expenses", ["festival_id"])

    op.create_table(
        "images",
        _id(),
        _org_fk(),
        *_festival_columns(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=1000), nullable=False),
        sa.Column("image_path", sa.String(length=500), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_images_organization_id", "images", ["organization_id"])
    op.create_index("ix_images_festival_id", "images", ["festival_id"])

    # Voting
    op.create_table(
        "competitions",
        _id(),
        _org_fk(),
        sa.Column("festival_id", UUID(as_uuid=True), sa.ForeignKey("festivals.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", competition_status, nullable=False, server_default="open"),
        sa.Column("vote_limit_per_user", sa.Integer(), nullable=True, server_default="5"),
        *_timestamps(),
    )
    op.create_index("ix_competitions_organization_id", "competitions", ["organization_id"])
    op.create_index("ix_competitions_festival_id", "competitions", ["festival_id"])

    op.create_table(
        "participants",
        _id(),
        sa.Column(
            "competition_id",
            UUID(as_uuid=True),
            sa.ForeignKey("competitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("image_url", sa.String(length=1000), nullable=True),
        sa.Column("votes_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_participants_competition_id", "participants", ["competition_id"])

    op.create_table(
        "votes",
        _id(),
        sa.Column(
            "competition_id",
            UUID(as_uuid=True),
            sa.ForeignKey("competitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "participant_id",
            UUID(as_uuid=True),
            sa.ForeignKey("participants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("device_id", sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("competition_id", "participant_id", "device_id", name="uq_votes_device"),
    )
    op.create_index("ix_votes_competition_id", "votes", ["competition_id"])
    op.create_index("ix_votes_participant_id", "votes", ["participant_id"])
    op.create_index("ix_votes_device_id", "votes", ["device_id"])

    # Settings and audit trail
    op.create_table(
        "settings",
        _id(),
        _org_fk(),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("organization_id", "key", name="uq_settings_org_key"),
    )
    op.create_index("ix_settings_organization_id", "settings", ["organization_id"])

    op.create_table(
        "audit_logs",
        _id(),
        _org_fk(),
        sa.Column("table_name", sa.String(length=50), nullable=False),
        sa.Column("record_id", UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=10), nullable=False),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("changed_by", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_organization_id", "audit_logs", ["organization_id"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "settings",
        "votes",
        "participants",
        "competitions",
        "images",
        "expenses",
        "donations",
        "festivals",
        "organization_invitations",
        "user_roles",
        "organizations",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
