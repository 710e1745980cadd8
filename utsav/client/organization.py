"""
Organization contexts.

OrganizationContext holds the organization the whole app works on and
whether this installation is unlocked for editing it. The unlock is
established by server-side passcode verification; the client never
sees or compares the passcode.

OrganizationAccessContext is the variant used by shared links: the
organization is resolved from a URL slug and the unlock is remembered
per slug.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog

from utsav.client.api import BackendClient, BackendError
from utsav.client.store import LocalStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CURRENT_ORGANIZATION_KEY = "currentOrganization"
AUTHENTICATED_KEY = "orgAuthenticated"
AUTHENTICATED_ID_KEY = "orgAuthId"


def slug_auth_key(slug: str) -> str:
    return f"org_auth_{slug}"


class PasscodeRequired(Exception):
    """A write was attempted while the organization is locked."""


def _sanitize(org: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in org.items() if k not in ("passcode", "passcode_hash")}


async def verify_passcode(api: BackendClient, organization_id: str, passcode: str) -> bool:
    """
    Ask the backend whether `passcode` unlocks the organization.

    Any error counts as a wrong passcode.
    """
    try:
        result = await api.post(
            "/organizations/verify-passcode",
            {"organization_id": organization_id, "passcode": passcode},
        )
    except BackendError as exc:
        logger.warning(
            "passcode_verification_failed",
            organization_id=organization_id,
            status_code=exc.status_code,
            code=exc.code,
        )
        return False
    return bool(result and result.get("valid"))


class OrganizationContext:
    """Current organization plus the unlocked flag."""

    def __init__(self, api: BackendClient, store: LocalStore) -> None:
        self.api = api
        self.store = store
        self.current_organization: dict[str, Any] | None = None
        self.is_authenticated = False

    def load(self) -> None:
        """Initialize from the persisted snapshot."""
        saved = self.store.get_json(CURRENT_ORGANIZATION_KEY)
        if not isinstance(saved, dict):
            return
        self.current_organization = saved
        self.is_authenticated = self._unlocked_for(saved)

    @property
    def allowed_pages(self) -> list[str] | None:
        if self.current_organization is None:
            return None
        return self.current_organization.get("enabled_pages")

    def set_current_organization(self, org: dict[str, Any]) -> None:
        """
        Switch organization.

        The unlocked flag carries over only when the persisted unlock
        belongs to the new organization.
        """
        clean = _sanitize(org)
        self.current_organization = clean
        self.store.set_json(CURRENT_ORGANIZATION_KEY, clean)
        self.is_authenticated = self._unlocked_for(clean)

    async def authenticate(self, passcode: str) -> bool:
        """Single verification attempt; locked on failure or error."""
        if self.current_organization is None:
            return False

        org_id = str(self.current_organization["id"])
        if not await verify_passcode(self.api, org_id, passcode):
            return False

        self.is_authenticated = True
        self.store.set(AUTHENTICATED_KEY, "true")
        self.store.set(AUTHENTICATED_ID_KEY, org_id)
        logger.info("organization_unlocked", organization_id=org_id)
        return True

    def logout(self) -> None:
        """Lock again. The current organization stays selected."""
        self.is_authenticated = False
        self.store.remove(AUTHENTICATED_KEY)
        self.store.remove(AUTHENTICATED_ID_KEY)

    async def run_unlocked(
        self,
        action: Callable[[], Awaitable[T]],
        prompt: Callable[[], Awaitable[str | None]],
    ) -> T:
        """
        Run a write behind the passcode gate.

        When locked, `prompt` is asked for a passcode once. A cancelled
        prompt or a rejected passcode raises PasscodeRequired and the
        action is not run.
        """
        if not self.is_authenticated:
            passcode = await prompt()
            if passcode is None:
                raise PasscodeRequired("Passcode entry cancelled")
            if not await self.authenticate(passcode):
                raise PasscodeRequired("Incorrect passcode")
        return await action()

    def _unlocked_for(self, org: dict[str, Any]) -> bool:
        return (
            self.store.get(AUTHENTICATED_KEY) == "true"
            and self.store.get(AUTHENTICATED_ID_KEY) == str(org.get("id"))
        )


class OrganizationAccessContext:
    """Organization resolved from a shared-link slug."""

    def __init__(self, api: BackendClient, store: LocalStore, slug: str) -> None:
        self.api = api
        self.store = store
        self.slug = slug
        self.organization: dict[str, Any] | None = None
        self.is_authenticated = False
        self.loading = True

    @property
    def allowed_pages(self) -> list[str] | None:
        if self.organization is None:
            return None
        return self.organization.get("enabled_pages")

    async def load(self) -> None:
        """
        Resolve the slug.

        Not found leaves `organization` as None; so does any other error,
        after logging it.
        """
        self.loading = True
        self.is_authenticated = self.store.get(slug_auth_key(self.slug)) is not None
        try:
            self.organization = await self.api.get(f"/organizations/{self.slug}")
        except BackendError as exc:
            if not exc.is_not_found:
                logger.error("organization_fetch_failed", slug=self.slug, code=exc.code)
            self.organization = None
        finally:
            self.loading = False

    async def authenticate(self, passcode: str) -> bool:
        if self.organization is None:
            return False
        if not await verify_passcode(self.api, str(self.organization["id"]), passcode):
            return False
        self.is_authenticated = True
        self.store.set(slug_auth_key(self.slug), "true")
        return True

    def logout(self) -> None:
        self.is_authenticated = False
        self.store.remove(slug_auth_key(self.slug))
