"""
Account session provider.

Wraps magic link sign-in and keeps the token pair in the persisted store
under `session`.
"""

from __future__ import annotations

from typing import Any

import structlog

from utsav.client.api import BackendClient, BackendError
from utsav.client.store import LocalStore

logger = structlog.get_logger(__name__)

SESSION_KEY = "session"


class SessionProvider:
    """Current account and loading state for the rest of the client."""

    def __init__(self, api: BackendClient, store: LocalStore) -> None:
        self.api = api
        self.store = store
        self.user: dict[str, Any] | None = None
        self.session: dict[str, Any] | None = None
        self.loading = True

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    @property
    def email(self) -> str | None:
        return self.user["email"] if self.user else None

    async def load(self) -> None:
        """Restore a persisted session and fetch the account behind it."""
        self.loading = True
        try:
            saved = self.store.get_json(SESSION_KEY)
            if not isinstance(saved, dict) or "access_token" not in saved:
                self._clear()
                return
            self._apply(saved)
            try:
                self.user = await self.api.get("/auth/me")
            except BackendError as exc:
                logger.info("session_restore_failed", status_code=exc.status_code, code=exc.code)
                self._clear()
        finally:
            self.loading = False

    async def sign_in_with_magic_link(self, email: str, redirect_to: str | None = None) -> None:
        """Ask the backend to email a one-time sign-in link."""
        await self.api.post("/auth/magic-link", {"email": email, "redirect_to": redirect_to})

    async def complete_sign_in(self, token: str) -> str | None:
        """
        Exchange the emailed token for a session.

        Returns:
            The redirect target preserved when the link was requested.
        """
        tokens = await self.api.post("/auth/verify", {"token": token})
        self._apply(tokens)
        self.store.set_json(SESSION_KEY, self.session)
        self.user = await self.api.get("/auth/me")
        self.loading = False
        logger.info("signed_in", user_id=self.user["id"])
        return tokens.get("redirect_to")

    async def refresh(self) -> None:
        """Rotate the token pair."""
        if not self.session:
            raise BackendError(401, "NOT_SIGNED_IN", "No session to refresh")
        tokens = await self.api.post("/auth/refresh", {"refresh_token": self.session["refresh_token"]})
        self._apply(tokens)
        self.store.set_json(SESSION_KEY, self.session)

    async def sign_out(self) -> None:
        """Revoke the session server-side, then forget it locally."""
        if self.session:
            try:
                await self.api.post("/auth/logout", {"refresh_token": self.session["refresh_token"]})
            except BackendError as exc:
                logger.warning("sign_out_failed", status_code=exc.status_code, code=exc.code)
        self._clear()

    def _apply(self, tokens: dict[str, Any]) -> None:
        self.session = {
            "access_token": tokens["access_token"],
            "refresh_token": tokens.get("refresh_token"),
        }
        self.api.access_token = tokens["access_token"]

    def _clear(self) -> None:
        self.user = None
        self.session = None
        self.api.access_token = None
        self.store.remove(SESSION_KEY)
