"""Expense data access."""

from __future__ import annotations

from typing import Any

from utsav.client.api import BackendClient


def _base(slug: str) -> str:
    return f"/organizations/{slug}/expenses"


async def add_expense(api: BackendClient, slug: str, expense: dict[str, Any]) -> dict[str, Any]:
    return await api.post(_base(slug), expense)


async def update_expense(
    api: BackendClient, slug: str, expense_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    return await api.patch(f"{_base(slug)}/{expense_id}", changes)


async def get_expenses(
    api: BackendClient, slug: str, festival_id: str | None = None
) -> list[dict[str, Any]]:
    return await api.get(_base(slug), festival_id=festival_id)


async def get_total_expenses(api: BackendClient, slug: str, festival_id: str | None = None) -> float:
    result = await api.get(f"{_base(slug)}/total", festival_id=festival_id)
    return float(result["total"])


async def delete_expense(api: BackendClient, slug: str, expense_id: str) -> None:
    await api.delete(f"{_base(slug)}/{expense_id}")
