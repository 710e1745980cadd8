"""Organization settings data access."""

from __future__ import annotations

from utsav.client.api import BackendClient


async def get_previous_amount(api: BackendClient, slug: str) -> float:
    """Balance carried over from the previous festival; 0 when never set."""
    result = await api.get(f"/organizations/{slug}/settings/previous-amount")
    return float(result["amount"])


async def set_previous_amount(api: BackendClient, slug: str, amount: float) -> float:
    result = await api.put(f"/organizations/{slug}/settings/previous-amount", {"amount": amount})
    return float(result["amount"])
