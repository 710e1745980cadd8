"""
Festival and year selection.

The selected festival is persisted under `selectedFestival`. Downstream
queries filter by the festival's generated id, so a cached festival
without one is looked up again by its (name, year) pair on load.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog

from utsav.client.api import BackendClient, BackendError
from utsav.client.data.festivals import find_festival
from utsav.client.organization import OrganizationContext
from utsav.client.store import LocalStore

logger = structlog.get_logger(__name__)

SELECTED_FESTIVAL_KEY = "selectedFestival"


class FestivalContext:
    """
    Selected festival and selected year, held independently.

    Lookups go to the organization given by `slug`, or, when built with an
    `organization` context, to whichever organization that context holds
    at the time.
    """

    def __init__(
        self,
        api: BackendClient,
        store: LocalStore,
        slug: str | None = None,
        organization: OrganizationContext | None = None,
    ) -> None:
        self.api = api
        self.store = store
        self.organization = organization
        self._slug = slug
        self.selected_festival: dict[str, Any] | None = None
        self.selected_year: int = date.today().year

    @property
    def slug(self) -> str | None:
        if self.organization is not None and self.organization.current_organization:
            return self.organization.current_organization.get("slug")
        return self._slug

    @slug.setter
    def slug(self, slug: str | None) -> None:
        self._slug = slug

    async def load(self) -> None:
        saved = self.store.get_json(SELECTED_FESTIVAL_KEY)
        if not isinstance(saved, dict):
            return
        self.selected_festival = saved
        if not saved.get("id"):
            await self._backfill_id(saved)

    async def _backfill_id(self, festival: dict[str, Any]) -> None:
        slug = self.slug
        if slug is None or not festival.get("name") or festival.get("year") is None:
            return
        try:
            matches = await find_festival(self.api, slug, festival["name"], int(festival["year"]))
        except (TypeError, ValueError):
            logger.warning("festival_cache_bad_year", name=festival["name"], year=festival["year"])
            return
        except BackendError as exc:
            logger.warning("festival_lookup_failed", name=festival["name"], code=exc.code)
            return
        if len(matches) == 1:
            self.set_selected_festival(matches[0])
            logger.info("festival_backfilled", festival_id=matches[0]["id"])
        else:
            logger.info("festival_backfill_skipped", name=festival["name"], matches=len(matches))

    def set_selected_festival(self, festival: dict[str, Any]) -> None:
        self.selected_festival = festival
        self.store.set_json(SELECTED_FESTIVAL_KEY, festival)

    def clear_selection(self) -> None:
        self.selected_festival = None
        self.store.remove(SELECTED_FESTIVAL_KEY)

    def set_year(self, year: int) -> None:
        self.selected_year = year

    @property
    def festival_id(self) -> str | None:
        if self.selected_festival is None:
            return None
        return self.selected_festival.get("id")
