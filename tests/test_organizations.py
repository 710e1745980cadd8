"""
Organization, passcode and member tests.

Verifies that:
- Creating an organization makes the creator admin and never returns the passcode
- The public lookup resolves a slug without sign-in
- Passcode verification only ever answers a boolean
- Administration is limited to admins
- Deleting an organization takes its data with it
"""

import uuid

import pytest

from conftest import API, create_org, invite, sign_in


# ---------------------------------------------------------------------------
# 1. Create and read
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_makes_creator_admin(client, mail):
    headers = await sign_in(client, mail, "founder@example.com")
    org = await create_org(client, headers, slug="durga-puja")

    assert org["slug"] == "durga-puja"
    assert org["plan"] == "free"
    assert "passcode" not in org
    assert "passcode_hash" not in org

    mine = (await client.get(f"{API}/organizations/mine", headers=headers)).json()
    assert [(o["slug"], o["role"]) for o in mine] == [("durga-puja", "admin")]


@pytest.mark.asyncio
async def test_slug_is_unique(client, mail, admin):
    resp = await client.post(
        f"{API}/organizations",
        json={"name": "Another", "slug": "ganesh-utsav", "passcode": "9999"},
        headers=admin,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "SLUG_TAKEN"


@pytest.mark.asyncio
async def test_invalid_slug_rejected(client, mail):
    headers = await sign_in(client, mail, "slugs@example.com")
    resp = await client.post(
        f"{API}/organizations",
        json={"name": "Bad Slug", "slug": "-Bad_Slug", "passcode": "1234"},
        headers=headers,
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_public_lookup_needs_no_sign_in(client, admin):
    resp = await client.get(f"{API}/organizations/ganesh-utsav")
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Ganesh Utsav Committee"
    assert set(body) == {"id", "name", "slug", "description", "logo_url", "theme", "enabled_pages"}


@pytest.mark.asyncio
async def test_public_lookup_unknown_slug(client):
    resp = await client.get(f"{API}/organizations/no-such-org")
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "ORG_NOT_FOUND"


# ---------------------------------------------------------------------------
# 2. Passcode verification
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_verify_passcode(client, admin):
    org = (await client.get(f"{API}/organizations/ganesh-utsav")).json()

    right = await client.post(
        f"{API}/organizations/verify-passcode",
        json={"organization_id": org["id"], "passcode": "1234"},
    )
    wrong = await client.post(
        f"{API}/organizations/verify-passcode",
        json={"organization_id": org["id"], "passcode": "0000"},
    )
    assert right.json() == {"valid": True}
    assert wrong.json() == {"valid": False}


@pytest.mark.asyncio
async def test_verify_passcode_unknown_org_is_false(client):
    resp = await client.post(
        f"{API}/organizations/verify-passcode",
        json={"organization_id": str(uuid.uuid4()), "passcode": "1234"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"valid": False}


@pytest.mark.asyncio
async def test_changing_passcode_rehashes(client, admin):
    resp = await client.patch(
        f"{API}/organizations/ganesh-utsav", json={"passcode": "5678"}, headers=admin
    )
    assert resp.status_code == 200
    org_id = resp.json()["id"]

    old = await client.post(
        f"{API}/organizations/verify-passcode", json={"organization_id": org_id, "passcode": "1234"}
    )
    new = await client.post(
        f"{API}/organizations/verify-passcode", json={"organization_id": org_id, "passcode": "5678"}
    )
    assert old.json()["valid"] is False
    assert new.json()["valid"] is True


# ---------------------------------------------------------------------------
# 3. Role enforcement
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_requires_admin(client, mail, admin):
    outsider = await sign_in(client, mail, "outsider@example.com")
    resp = await client.patch(
        f"{API}/organizations/ganesh-utsav", json={"name": "Hijacked"}, headers=outsider
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_A_MEMBER"


@pytest.mark.asyncio
async def test_viewer_cannot_update(client, mail, admin):
    invitation = await invite(client, admin, "ganesh-utsav", "viewer@example.com")
    viewer = await sign_in(client, mail, "viewer@example.com")
    await client.post(
        f"{API}/organizations/invitations/accept", json={"token": invitation["token"]}, headers=viewer
    )

    resp = await client.patch(
        f"{API}/organizations/ganesh-utsav", json={"name": "Renamed"}, headers=viewer
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_ROLE"

    members = await client.get(f"{API}/organizations/ganesh-utsav/members", headers=viewer)
    assert members.status_code == 200
    assert members.json()["total"] == 2


@pytest.mark.asyncio
async def test_enabled_pages_validated(client, admin):
    ok = await client.patch(
        f"{API}/organizations/ganesh-utsav",
        json={"enabled_pages": ["dashboard", "chandas"]},
        headers=admin,
    )
    assert ok.json()["enabled_pages"] == ["dashboard", "chandas"]

    bad = await client.patch(
        f"{API}/organizations/ganesh-utsav", json={"enabled_pages": ["casino"]}, headers=admin
    )
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_null_name_rejected(client, admin):
    resp = await client.patch(f"{API}/organizations/ganesh-utsav", json={"name": None}, headers=admin)
    assert resp.status_code == 422

    org = (await client.get(f"{API}/organizations/ganesh-utsav")).json()
    assert org["name"] == "Ganesh Utsav Committee"


@pytest.mark.asyncio
async def test_last_admin_cannot_be_removed(client, admin):
    me = (await client.get(f"{API}/auth/me", headers=admin)).json()
    resp = await client.delete(f"{API}/organizations/ganesh-utsav/members/{me['id']}", headers=admin)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "LAST_ADMIN"


@pytest.mark.asyncio
async def test_promote_then_remove_member(client, mail, admin):
    invitation = await invite(client, admin, "ganesh-utsav", "helper@example.com")
    helper = await sign_in(client, mail, "helper@example.com")
    await client.post(
        f"{API}/organizations/invitations/accept", json={"token": invitation["token"]}, headers=helper
    )
    helper_id = (await client.get(f"{API}/auth/me", headers=helper)).json()["id"]

    promoted = await client.patch(
        f"{API}/organizations/ganesh-utsav/members/{helper_id}",
        params={"role": "manager"},
        headers=admin,
    )
    assert promoted.json()["role"] == "manager"

    removed = await client.delete(
        f"{API}/organizations/ganesh-utsav/members/{helper_id}", headers=admin
    )
    assert removed.status_code == 200
    mine = (await client.get(f"{API}/organizations/mine", headers=helper)).json()
    assert mine == []


# ---------------------------------------------------------------------------
# 4. Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_cascades(client, admin):
    await client.post(
        f"{API}/organizations/ganesh-utsav/donations",
        json={"name": "Ramesh", "amount": 500},
    )

    resp = await client.delete(f"{API}/organizations/ganesh-utsav", headers=admin)
    assert resp.status_code == 200

    assert (await client.get(f"{API}/organizations/ganesh-utsav")).status_code == 404
    assert (await client.get(f"{API}/organizations/mine", headers=admin)).json() == []
