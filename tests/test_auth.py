"""
Magic link sign-in and token lifecycle tests.

Verifies that:
- A sign-in link is queued and its token is single use
- The account is created on first sign-in and reused afterwards
- The redirect target survives the round trip
- Refresh rotates tokens and logout revokes them
"""

import pytest

from conftest import API, sign_in


# ---------------------------------------------------------------------------
# 1. Magic link
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_magic_link_queues_email(client, mail):
    resp = await client.post(f"{API}/auth/magic-link", json={"email": "Ravi@Example.com"})
    assert resp.status_code == 202

    sent = mail["magic_link"].last
    assert sent["to_email"] == "ravi@example.com"
    assert sent["magic_link_token"]


@pytest.mark.asyncio
async def test_magic_link_rejects_malformed_email(client, mail):
    resp = await client.post(f"{API}/auth/magic-link", json={"email": "not-an-email"})
    assert resp.status_code == 422
    assert mail["magic_link"].calls == []


@pytest.mark.asyncio
async def test_magic_link_token_is_single_use(client, mail):
    await client.post(f"{API}/auth/magic-link", json={"email": "once@example.com"})
    token = mail["magic_link"].last["magic_link_token"]

    first = await client.post(f"{API}/auth/verify", json={"token": token})
    assert first.status_code == 200

    second = await client.post(f"{API}/auth/verify", json={"token": token})
    assert second.status_code == 400
    assert second.json()["detail"]["code"] == "INVALID_LINK"


@pytest.mark.asyncio
async def test_verify_returns_redirect_target(client, mail):
    await client.post(
        f"{API}/auth/magic-link",
        json={"email": "guest@example.com", "redirect_to": "/invite/accept?token=abc"},
    )
    token = mail["magic_link"].last["magic_link_token"]

    resp = await client.post(f"{API}/auth/verify", json={"token": token})
    body = resp.json()
    assert body["redirect_to"] == "/invite/accept?token=abc"
    assert body["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_first_sign_in_creates_account_once(client, mail):
    headers = await sign_in(client, mail, "new@example.com")
    me = (await client.get(f"{API}/auth/me", headers=headers)).json()
    assert me["email"] == "new@example.com"
    assert me["display_name"] == "new"
    assert me["memberships"] == []

    again = await sign_in(client, mail, "new@example.com")
    me_again = (await client.get(f"{API}/auth/me", headers=again)).json()
    assert me_again["id"] == me["id"]


# ---------------------------------------------------------------------------
# 2. Token security
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get(f"{API}/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "MISSING_TOKEN"


@pytest.mark.asyncio
async def test_garbage_token_rejected(client):
    resp = await client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_refresh_rotates_tokens(client, mail):
    await client.post(f"{API}/auth/magic-link", json={"email": "rot@example.com"})
    token = mail["magic_link"].last["magic_link_token"]
    tokens = (await client.post(f"{API}/auth/verify", json={"token": token})).json()

    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.json()
    assert rotated["refresh_token"] != tokens["refresh_token"]

    reused = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert reused.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_access_token(client, mail):
    await client.post(f"{API}/auth/magic-link", json={"email": "bye@example.com"})
    token = mail["magic_link"].last["magic_link_token"]
    tokens = (await client.post(f"{API}/auth/verify", json={"token": token})).json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    resp = await client.post(
        f"{API}/auth/logout", json={"refresh_token": tokens["refresh_token"]}, headers=headers
    )
    assert resp.status_code == 200

    me = await client.get(f"{API}/auth/me", headers=headers)
    assert me.status_code == 401
    assert me.json()["detail"]["code"] == "TOKEN_REVOKED"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Request-Id"]
