"""
Client context tests, run against the in-process API.

Verifies that:
- The current organization is persisted without its passcode
- Switching organizations never carries an unlock across
- Passcode verification fails closed and survives a reload when it succeeds
- A cached festival without an id is completed from the backend
- Invitation acceptance reaches a terminal state and is idempotent
"""

import json
from urllib.parse import quote

import pytest

from conftest import API, create_org, invite, sign_in
from utsav.client.api import BackendClient, BackendError
from utsav.client.config import ClientSettings
from utsav.client.festival import SELECTED_FESTIVAL_KEY, FestivalContext
from utsav.client.invitations import InvitationAcceptance, InvitationState, accept_path
from utsav.client.organization import (
    AUTHENTICATED_ID_KEY,
    AUTHENTICATED_KEY,
    CURRENT_ORGANIZATION_KEY,
    OrganizationAccessContext,
    OrganizationContext,
    PasscodeRequired,
)
from utsav.client.session import SESSION_KEY, SessionProvider
from utsav.client.store import LocalStore

SLUG = "ganesh-utsav"


async def public_org(client, slug=SLUG):
    return (await client.get(f"{API}/organizations/{slug}")).json()


# ---------------------------------------------------------------------------
# 1. Organization context
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_passcode_never_persisted(client, admin, backend, store):
    org = await public_org(client)
    ctx = OrganizationContext(backend, store)

    ctx.set_current_organization({**org, "passcode": "1234", "passcode_hash": "$2b$..."})

    saved = store.get_json(CURRENT_ORGANIZATION_KEY)
    assert "passcode" not in saved
    assert "passcode_hash" not in saved
    assert "passcode" not in ctx.current_organization
    assert "$2b$" not in store._path.read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_wrong_passcode_stays_locked(client, admin, backend, store):
    ctx = OrganizationContext(backend, store)
    ctx.set_current_organization(await public_org(client))

    assert await ctx.authenticate("0000") is False
    assert ctx.is_authenticated is False
    assert store.get(AUTHENTICATED_KEY) is None


@pytest.mark.asyncio
async def test_right_passcode_survives_reload(client, admin, backend, store):
    org = await public_org(client)
    ctx = OrganizationContext(backend, store)
    ctx.set_current_organization(org)

    assert await ctx.authenticate("1234") is True
    assert store.get(AUTHENTICATED_KEY) == "true"
    assert store.get(AUTHENTICATED_ID_KEY) == org["id"]

    reloaded = OrganizationContext(backend, LocalStore(store._path))
    reloaded.load()
    assert reloaded.current_organization["id"] == org["id"]
    assert reloaded.is_authenticated is True


@pytest.mark.asyncio
async def test_switching_organization_locks(client, mail, admin, backend, store):
    other_admin = await sign_in(client, mail, "second@example.com")
    await create_org(client, other_admin, slug="durga-puja", passcode="4321")
    first, second = await public_org(client), await public_org(client, "durga-puja")

    ctx = OrganizationContext(backend, store)
    ctx.set_current_organization(first)
    await ctx.authenticate("1234")

    ctx.set_current_organization(second)
    assert ctx.is_authenticated is False

    ctx.set_current_organization(first)
    assert ctx.is_authenticated is True


@pytest.mark.asyncio
async def test_network_failure_fails_closed(client, admin, store):
    org = await public_org(client)
    unreachable = BackendClient(ClientSettings(API_URL="http://127.0.0.1:9/api/v1"))
    ctx = OrganizationContext(unreachable, store)
    ctx.set_current_organization(org)

    assert await ctx.authenticate("1234") is False
    assert ctx.is_authenticated is False
    await unreachable.aclose()


@pytest.mark.asyncio
async def test_authenticate_without_organization(backend, store):
    ctx = OrganizationContext(backend, store)
    assert await ctx.authenticate("1234") is False


@pytest.mark.asyncio
async def test_logout_keeps_organization(client, admin, backend, store):
    ctx = OrganizationContext(backend, store)
    ctx.set_current_organization(await public_org(client))
    await ctx.authenticate("1234")

    ctx.logout()
    assert ctx.is_authenticated is False
    assert ctx.current_organization is not None
    assert store.get(AUTHENTICATED_KEY) is None
    assert store.get(AUTHENTICATED_ID_KEY) is None


@pytest.mark.asyncio
async def test_corrupt_snapshot_is_dropped(backend, store):
    store.set(CURRENT_ORGANIZATION_KEY, "{not json")
    ctx = OrganizationContext(backend, store)
    ctx.load()

    assert ctx.current_organization is None
    assert store.get(CURRENT_ORGANIZATION_KEY) is None


@pytest.mark.asyncio
async def test_run_unlocked_prompts_once(client, admin, backend, store):
    ctx = OrganizationContext(backend, store)
    ctx.set_current_organization(await public_org(client))
    prompts = []

    async def prompt():
        prompts.append(1)
        return "1234"

    async def action():
        return "saved"

    assert await ctx.run_unlocked(action, prompt) == "saved"
    assert await ctx.run_unlocked(action, prompt) == "saved"
    assert len(prompts) == 1


@pytest.mark.asyncio
async def test_run_unlocked_refuses(client, admin, backend, store):
    ctx = OrganizationContext(backend, store)
    ctx.set_current_organization(await public_org(client))
    ran = []

    async def action():
        ran.append(1)

    async def wrong():
        return "9999"

    async def cancelled():
        return None

    with pytest.raises(PasscodeRequired):
        await ctx.run_unlocked(action, wrong)
    with pytest.raises(PasscodeRequired):
        await ctx.run_unlocked(action, cancelled)
    assert ran == []


# ---------------------------------------------------------------------------
# 2. Shared-link access context
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_access_context_resolves_slug(client, admin, backend, store):
    await client.patch(
        f"{API}/organizations/{SLUG}", json={"enabled_pages": ["chandas"]}, headers=admin
    )
    ctx = OrganizationAccessContext(backend, store, SLUG)
    assert ctx.loading is True

    await ctx.load()
    assert ctx.loading is False
    assert ctx.organization["slug"] == SLUG
    assert ctx.allowed_pages == ["chandas"]


@pytest.mark.asyncio
async def test_access_context_not_found_is_terminal(backend, store):
    ctx = OrganizationAccessContext(backend, store, "missing-org")
    await ctx.load()

    assert ctx.loading is False
    assert ctx.organization is None
    assert await ctx.authenticate("1234") is False


@pytest.mark.asyncio
async def test_access_unlock_is_per_slug(client, mail, admin, backend, store):
    other_admin = await sign_in(client, mail, "third@example.com")
    await create_org(client, other_admin, slug="bonalu-fest", passcode="5555")

    first = OrganizationAccessContext(backend, store, SLUG)
    await first.load()

    assert await first.authenticate("1234") is True
    assert store.get("org_auth_ganesh-utsav") == "true"

    reloaded_second = OrganizationAccessContext(backend, store, "bonalu-fest")
    await reloaded_second.load()
    assert reloaded_second.is_authenticated is False

    first.logout()
    assert store.get("org_auth_ganesh-utsav") is None


# ---------------------------------------------------------------------------
# 3. Festival context
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_festival_backfilled_by_name_and_year(client, admin, backend, store):
    festival = (
        await client.post(
            f"{API}/organizations/{SLUG}/festivals", json={"name": "Vinayaka Chavithi", "year": 2026}
        )
    ).json()
    store.set_json(SELECTED_FESTIVAL_KEY, {"name": "Vinayaka Chavithi", "year": 2026})

    ctx = FestivalContext(backend, store, SLUG)
    await ctx.load()

    assert ctx.selected_festival["id"] == festival["id"]
    assert store.get_json(SELECTED_FESTIVAL_KEY)["id"] == festival["id"]


@pytest.mark.asyncio
async def test_festival_without_match_kept_as_is(client, admin, backend, store):
    incomplete = {"name": "Unknown Jatara", "year": 2024}
    store.set_json(SELECTED_FESTIVAL_KEY, incomplete)

    ctx = FestivalContext(backend, store, SLUG)
    await ctx.load()

    assert ctx.selected_festival == incomplete
    assert store.get_json(SELECTED_FESTIVAL_KEY) == incomplete


@pytest.mark.asyncio
async def test_festival_selection_writes_through(backend, store):
    ctx = FestivalContext(backend, store)
    ctx.set_selected_festival({"id": "f-1", "name": "Ugadi", "year": 2026})
    assert store.get_json(SELECTED_FESTIVAL_KEY)["id"] == "f-1"

    ctx.set_year(2025)
    assert ctx.selected_year == 2025
    assert ctx.selected_festival["year"] == 2026

    ctx.clear_selection()
    assert ctx.selected_festival is None
    assert store.get(SELECTED_FESTIVAL_KEY) is None


@pytest.mark.asyncio
async def test_festival_with_bad_cached_year_kept(backend, store):
    cached = {"name": "Ugadi", "year": "next year"}
    store.set_json(SELECTED_FESTIVAL_KEY, cached)

    ctx = FestivalContext(backend, store, SLUG)
    await ctx.load()

    assert ctx.selected_festival == cached
    assert store.get_json(SELECTED_FESTIVAL_KEY) == cached


@pytest.mark.asyncio
async def test_festival_lookup_follows_current_organization(client, mail, admin, backend, store):
    other_admin = await sign_in(client, mail, "durga@example.com")
    await create_org(client, other_admin, slug="durga-puja", passcode="4321")
    durga = (
        await client.post(
            f"{API}/organizations/durga-puja/festivals", json={"name": "Navaratri", "year": 2026}
        )
    ).json()

    organizations = OrganizationContext(backend, store)
    organizations.set_current_organization(await public_org(client))
    ctx = FestivalContext(backend, store, organization=organizations)
    assert ctx.slug == SLUG

    organizations.set_current_organization(await public_org(client, "durga-puja"))
    store.set_json(SELECTED_FESTIVAL_KEY, {"name": "Navaratri", "year": 2026})
    await ctx.load()

    assert ctx.slug == "durga-puja"
    assert ctx.selected_festival["id"] == durga["id"]

# ---------------------------------------------------------------------------
# 4. Session provider
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_session_round_trip(client, mail, backend, store):
    session = SessionProvider(backend, store)
    await session.sign_in_with_magic_link("devi@example.com", redirect_to="/org/ganesh-utsav")
    token = mail["magic_link"].last["magic_link_token"]

    target = await session.complete_sign_in(token)
    assert target == "/org/ganesh-utsav"
    assert session.email == "devi@example.com"
    assert json.loads(store.get(SESSION_KEY))["access_token"]

    restored = SessionProvider(backend, LocalStore(store._path))
    await restored.load()
    assert restored.loading is False
    assert restored.email == "devi@example.com"

    await restored.refresh()
    await restored.sign_out()
    assert restored.user is None
    assert store.get(SESSION_KEY) is None


@pytest.mark.asyncio
async def test_session_load_with_bad_token(backend, store):
    store.set_json(SESSION_KEY, {"access_token": "junk", "refresh_token": "junk"})
    session = SessionProvider(backend, store)
    await session.load()

    assert session.is_signed_in is False
    assert session.loading is False
    assert store.get(SESSION_KEY) is None


# ---------------------------------------------------------------------------
# 5. Invitation acceptance
# ---------------------------------------------------------------------------

async def signed_in_session(backend, store, mail, email):
    session = SessionProvider(backend, store)
    await session.sign_in_with_magic_link(email)
    await session.complete_sign_in(mail["magic_link"].last["magic_link_token"])
    return session


@pytest.mark.asyncio
async def test_signed_out_redirects_to_sign_in(backend, store):
    session = SessionProvider(backend, store)
    await session.load()
    visited = []

    flow = InvitationAcceptance(backend, session, visited.append, redirect_delay=0)
    state = await flow.run("tok123")

    assert state is InvitationState.loading
    assert visited == ["/auth?from=%2Finvite%2Faccept%3Ftoken%3Dtok123"]


@pytest.mark.asyncio
async def test_acceptance_is_idempotent(client, mail, admin, backend, store):
    invitation = await invite(client, admin, SLUG, "member@example.com")
    session = await signed_in_session(backend, store, mail, "member@example.com")
    visited = []

    first = InvitationAcceptance(backend, session, visited.append, redirect_delay=0)
    second = InvitationAcceptance(backend, session, visited.append, redirect_delay=0)

    assert await first.run(invitation["token"]) is InvitationState.success
    assert await second.run(invitation["token"]) is InvitationState.success
    assert first.already_member is False
    assert second.already_member is True
    assert visited == ["/organizations", "/organizations"]

    members = (await client.get(f"{API}/organizations/{SLUG}/members", headers=admin)).json()
    assert [m["email"] for m in members["members"]].count("member@example.com") == 1


@pytest.mark.asyncio
async def test_acceptance_email_mismatch(client, mail, admin, backend, store):
    invitation = await invite(client, admin, SLUG, "right@example.com")
    session = await signed_in_session(backend, store, mail, "wrong@example.com")

    flow = InvitationAcceptance(backend, session, lambda path: None, redirect_delay=0)
    assert await flow.run(invitation["token"]) is InvitationState.error


@pytest.mark.asyncio
async def test_acceptance_missing_token(mail, backend, store, client):
    session = await signed_in_session(backend, store, mail, "notoken@example.com")
    flow = InvitationAcceptance(backend, session, lambda path: None, redirect_delay=0)
    assert await flow.run(None) is InvitationState.error


@pytest.mark.asyncio
async def test_acceptance_expired(client, mail, admin, backend, store, db_session):
    from test_invitations import expire

    invitation = await invite(client, admin, SLUG, "slow@example.com")
    await expire(db_session, invitation["token"])
    session = await signed_in_session(backend, store, mail, "slow@example.com")

    flow = InvitationAcceptance(backend, session, lambda path: None, redirect_delay=0)
    assert await flow.run(invitation["token"]) is InvitationState.expired


@pytest.mark.asyncio
async def test_invitation_link_opened_while_signed_out(client, mail, admin, backend, store):
    invitation = await invite(client, admin, SLUG, "newcomer@example.com")
    token = invitation["token"]
    session = SessionProvider(backend, store)
    await session.load()
    visited = []

    first_visit = InvitationAcceptance(backend, session, visited.append, redirect_delay=0)
    assert await first_visit.run(token) is InvitationState.loading
    assert visited == [f"/auth?from={quote(accept_path(token), safe='')}"]

    await session.sign_in_with_magic_link("newcomer@example.com", redirect_to=accept_path(token))
    target = await session.complete_sign_in(mail["magic_link"].last["magic_link_token"])
    assert target == accept_path(token)

    returned = InvitationAcceptance(backend, session, visited.append, redirect_delay=0)
    assert await returned.run(token) is InvitationState.success
    assert returned.already_member is False
    assert returned.organization["slug"] == SLUG
    assert visited[-1] == "/organizations"

    mine = await backend.get("/organizations/mine")
    assert SLUG in [org["slug"] for org in mine]


# ---------------------------------------------------------------------------
# 6. Backend errors
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_backend_error_carries_code(backend):
    with pytest.raises(BackendError) as exc_info:
        await backend.get("/organizations/missing-org")
    assert exc_info.value.status_code == 404
    assert exc_info.value.code == "ORG_NOT_FOUND"
    assert exc_info.value.is_not_found
