"""
Invitation acceptance flow.

States: loading -> success | error | expired. A single pass; the backend
decides every branch and the client maps its answer to a terminal state.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import structlog

from utsav.client.api import BackendClient, BackendError
from utsav.client.session import SessionProvider

logger = structlog.get_logger(__name__)

SIGN_IN_PATH = "/auth"
ORGANIZATIONS_PATH = "/organizations"
SUCCESS_REDIRECT_DELAY = 2.0

Navigate = Callable[[str], Awaitable[None] | None]


class InvitationState(str, enum.Enum):
    loading = "loading"
    success = "success"
    error = "error"
    expired = "expired"


def accept_path(token: str | None) -> str:
    return f"/invite/accept?token={quote(token or '', safe='')}"


class InvitationAcceptance:
    """
    Drives one invitation link to a terminal state.

    `navigate` receives in-app paths: the sign-in page (with `from` set to
    this invitation) when nobody is signed in, and the organization list
    two seconds after success.
    """

    def __init__(
        self,
        api: BackendClient,
        session: SessionProvider,
        navigate: Navigate,
        redirect_delay: float = SUCCESS_REDIRECT_DELAY,
    ) -> None:
        self.api = api
        self.session = session
        self.navigate = navigate
        self.redirect_delay = redirect_delay
        self.state = InvitationState.loading
        self.message: str | None = None
        self.organization: dict[str, Any] | None = None
        self.already_member = False

    async def run(self, token: str | None) -> InvitationState:
        if self.session.loading:
            return self.state

        if not self.session.is_signed_in:
            await self._go(f"{SIGN_IN_PATH}?from={quote(accept_path(token), safe='')}")
            return self.state

        if not token:
            self.state = InvitationState.error
            self.message = "Invitation link is missing its token"
            return self.state

        try:
            result = await self.api.post("/organizations/invitations/accept", {"token": token})
        except BackendError as exc:
            self.message = exc.message
            if exc.status_code == 410:
                self.state = InvitationState.expired
            else:
                logger.info("invitation_rejected", code=exc.code, status_code=exc.status_code)
                self.state = InvitationState.error
            return self.state

        self.state = InvitationState.success
        self.organization = result.get("organization")
        self.already_member = bool(result.get("already_member"))
        if self.already_member:
            self.message = "You are already a member of this organization"
        else:
            name = self.organization.get("name") if self.organization else "the organization"
            self.message = f"You've joined {name}"

        await asyncio.sleep(self.redirect_delay)
        await self._go(ORGANIZATIONS_PATH)
        return self.state

    async def _go(self, path: str) -> None:
        outcome = self.navigate(path)
        if outcome is not None:
            await outcome
