"""Festival data access."""

from __future__ import annotations

from typing import Any

from utsav.client.api import BackendClient


def _base(slug: str) -> str:
    return f"/organizations/{slug}/festivals"


async def get_all_festivals(api: BackendClient, slug: str) -> list[dict[str, Any]]:
    return await api.get(_base(slug))


async def get_active_festivals(api: BackendClient, slug: str) -> list[dict[str, Any]]:
    return await api.get(_base(slug), active="true")


async def find_festival(api: BackendClient, slug: str, name: str, year: int) -> list[dict[str, Any]]:
    """All festivals matching the (name, year) pair."""
    return await api.get(_base(slug), name=name, year=year)


async def add_festival(api: BackendClient, slug: str, festival: dict[str, Any]) -> dict[str, Any]:
    return await api.post(_base(slug), festival)


async def update_festival(
    api: BackendClient, slug: str, festival_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    return await api.patch(f"{_base(slug)}/{festival_id}", changes)


async def delete_festival(api: BackendClient, slug: str, festival_id: str) -> None:
    await api.delete(f"{_base(slug)}/{festival_id}")
