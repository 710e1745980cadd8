"""Audit trail access for the activity feed."""

from __future__ import annotations

from typing import Any

from utsav.client.api import BackendClient


async def get_activity_log(api: BackendClient, slug: str, limit: int = 50) -> list[dict[str, Any]]:
    """Most recent changes first. Needs an admin account session."""
    result = await api.get(f"/organizations/{slug}/audit-logs", limit=limit)
    return result["logs"]
