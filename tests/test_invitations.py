"""
Invitation lifecycle tests.

Verifies that:
- Invitations carry a random token, a 7 day expiry and a share link
- Only admins invite, and duplicates are refused
- Acceptance checks expiry before email, and email before membership
- Accepting twice never creates a second role
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select, update

from conftest import API, invite, sign_in
from utsav.models.base import as_utc, utcnow
from utsav.models.invitation import OrganizationInvitation
from utsav.models.user_role import UserRole

SLUG = "ganesh-utsav"


async def accept(client, headers, token):
    return await client.post(
        f"{API}/organizations/invitations/accept", json={"token": token}, headers=headers
    )


async def expire(db_session, token):
    await db_session.execute(
        update(OrganizationInvitation)
        .where(OrganizationInvitation.token == token)
        .values(expires_at=utcnow() - timedelta(minutes=1))
    )
    await db_session.commit()


# ---------------------------------------------------------------------------
# 1. Creating invitations
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_invite_creates_pending_invitation(client, mail, admin, db_session):
    invitation = await invite(client, admin, SLUG, "Priya@Example.com", role="manager")

    assert invitation["email"] == "priya@example.com"
    assert invitation["role"] == "manager"
    assert invitation["status"] == "pending"
    assert invitation["is_expired"] is False
    assert invitation["invite_link"].endswith(f"/invite/accept?token={invitation['token']}")

    row = (
        await db_session.execute(
            select(OrganizationInvitation).where(OrganizationInvitation.token == invitation["token"])
        )
    ).scalar_one()
    lifetime = as_utc(row.expires_at) - utcnow()
    assert timedelta(days=6, hours=23) < lifetime <= timedelta(days=7)

    sent = mail["invitation"].last
    assert sent["to_email"] == "priya@example.com"
    assert sent["org_name"] == "Ganesh Utsav Committee"
    assert sent["invite_url"] == invitation["invite_link"]


@pytest.mark.asyncio
async def test_duplicate_pending_invitation_refused(client, admin):
    await invite(client, admin, SLUG, "dup@example.com")
    resp = await client.post(
        f"{API}/organizations/{SLUG}/invitations",
        json={"email": "dup@example.com", "role": "viewer"},
        headers=admin,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "INVITE_EXISTS"


@pytest.mark.asyncio
async def test_cannot_invite_existing_member(client, admin):
    resp = await client.post(
        f"{API}/organizations/{SLUG}/invitations",
        json={"email": "admin@example.com", "role": "viewer"},
        headers=admin,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "ALREADY_MEMBER"


@pytest.mark.asyncio
async def test_list_and_revoke(client, admin):
    invitation = await invite(client, admin, SLUG, "later@example.com")

    listed = (await client.get(f"{API}/organizations/{SLUG}/invitations", headers=admin)).json()
    assert [i["id"] for i in listed["invitations"]] == [invitation["id"]]

    resp = await client.delete(
        f"{API}/organizations/{SLUG}/invitations/{invitation['id']}", headers=admin
    )
    assert resp.status_code == 200
    listed = (await client.get(f"{API}/organizations/{SLUG}/invitations", headers=admin)).json()
    assert listed["total"] == 0


@pytest.mark.asyncio
async def test_non_admin_cannot_invite(client, mail, admin):
    outsider = await sign_in(client, mail, "nosy@example.com")
    resp = await client.post(
        f"{API}/organizations/{SLUG}/invitations",
        json={"email": "friend@example.com", "role": "admin"},
        headers=outsider,
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# 2. Accepting
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_accept_creates_role(client, mail, admin):
    invitation = await invite(client, admin, SLUG, "joiner@example.com", role="manager")
    joiner = await sign_in(client, mail, "joiner@example.com")

    resp = await accept(client, joiner, invitation["token"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["already_member"] is False
    assert body["organization"]["slug"] == SLUG

    me = (await client.get(f"{API}/auth/me", headers=joiner)).json()
    assert [(m["organization_slug"], m["role"]) for m in me["memberships"]] == [(SLUG, "manager")]


@pytest.mark.asyncio
async def test_accept_twice_is_idempotent(client, mail, admin, db_session):
    invitation = await invite(client, admin, SLUG, "twice@example.com")
    member = await sign_in(client, mail, "twice@example.com")

    first = await accept(client, member, invitation["token"])
    second = await accept(client, member, invitation["token"])

    assert first.json()["already_member"] is False
    assert second.status_code == 200
    assert second.json()["already_member"] is True

    org_id = first.json()["organization"]["id"]
    count = (
        await db_session.execute(
            select(func.count()).select_from(UserRole).where(UserRole.organization_id == org_id)
        )
    ).scalar_one()
    assert count == 2


@pytest.mark.asyncio
async def test_accept_unknown_token(client, mail):
    headers = await sign_in(client, mail, "random@example.com")
    resp = await accept(client, headers, "not-a-real-token")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "INVITE_NOT_FOUND"


@pytest.mark.asyncio
async def test_accept_expired(client, mail, admin, db_session):
    invitation = await invite(client, admin, SLUG, "late@example.com")
    await expire(db_session, invitation["token"])
    late = await sign_in(client, mail, "late@example.com")

    resp = await accept(client, late, invitation["token"])
    assert resp.status_code == 410
    assert resp.json()["detail"]["code"] == "INVITE_EXPIRED"


@pytest.mark.asyncio
async def test_expiry_checked_before_email(client, mail, admin, db_session):
    invitation = await invite(client, admin, SLUG, "someone@example.com")
    await expire(db_session, invitation["token"])
    stranger = await sign_in(client, mail, "stranger@example.com")

    resp = await accept(client, stranger, invitation["token"])
    assert resp.status_code == 410


@pytest.mark.asyncio
async def test_accept_email_mismatch(client, mail, admin):
    invitation = await invite(client, admin, SLUG, "intended@example.com")
    thief = await sign_in(client, mail, "thief@example.com")

    resp = await accept(client, thief, invitation["token"])
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "EMAIL_MISMATCH"


@pytest.mark.asyncio
async def test_accept_requires_sign_in(client, admin):
    invitation = await invite(client, admin, SLUG, "anon@example.com")
    resp = await client.post(
        f"{API}/organizations/invitations/accept", json={"token": invitation["token"]}
    )
    assert resp.status_code == 401
