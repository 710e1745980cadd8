"""
Donation data access: chandas and sponsorships.

Rows come back newest first.
"""

from __future__ import annotations

from typing import Any

import structlog

from utsav.client.api import BackendClient, BackendError

logger = structlog.get_logger(__name__)


def _base(slug: str) -> str:
    return f"/organizations/{slug}/donations"


async def add_donation(api: BackendClient, slug: str, donation: dict[str, Any]) -> dict[str, Any]:
    return await api.post(_base(slug), donation)


async def update_donation(
    api: BackendClient, slug: str, donation_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    return await api.patch(f"{_base(slug)}/{donation_id}", changes)


async def delete_donation(api: BackendClient, slug: str, donation_id: str) -> None:
    await api.delete(f"{_base(slug)}/{donation_id}")


async def get_donations(
    api: BackendClient,
    slug: str,
    category: str | None = None,
    festival_id: str | None = None,
) -> list[dict[str, Any]]:
    return await api.get(_base(slug), category=category, festival_id=festival_id)


async def search_donations(
    api: BackendClient,
    slug: str,
    terms: str | list[str],
    festival_id: str | None = None,
) -> list[dict[str, Any]]:
    """Match any of `terms` against the donor name or its Telugu spelling."""
    if isinstance(terms, str):
        terms = [terms]
    terms = [t.strip() for t in terms if t and t.strip()]
    if not terms:
        return []
    return await api.get(f"{_base(slug)}/search", q=terms, festival_id=festival_id)


async def search_donations_with_translation(
    api: BackendClient,
    slug: str,
    term: str,
    festival_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    Search with the term and its Telugu translation.

    Falls back to a plain search when the translation call fails.
    """
    try:
        translation = await api.invoke("translate-search", {"searchTerm": term})
    except BackendError as exc:
        logger.warning("search_translation_failed", term=term, code=exc.code)
        return await search_donations(api, slug, term, festival_id=festival_id)

    terms = [term]
    translated = translation.get("translatedTerm") if translation else None
    if translation and translation.get("isTranslated") and translated and translated != term:
        terms.append(translated)
    return await search_donations(api, slug, terms, festival_id=festival_id)


async def get_total_amount(api: BackendClient, slug: str, festival_id: str | None = None) -> float:
    result = await api.get(f"{_base(slug)}/total", festival_id=festival_id)
    return float(result["total"])


async def get_total_by_category(
    api: BackendClient, slug: str, category: str, festival_id: str | None = None
) -> float:
    result = await api.get(f"{_base(slug)}/total", category=category, festival_id=festival_id)
    return float(result["total"])


async def update_received_amount(
    api: BackendClient, slug: str, donation_id: str, received_amount: float
) -> dict[str, Any]:
    return await api.patch(
        f"{_base(slug)}/{donation_id}/received", {"received_amount": received_amount}
    )
