"""
Voting data access: competitions, participants and anonymous votes.

Votes are keyed by the per-installation device id.
"""

from __future__ import annotations

from typing import Any

from utsav.client.api import BackendClient


def _competitions(slug: str) -> str:
    return f"/organizations/{slug}/competitions"


def _participants(slug: str, competition_id: str) -> str:
    return f"{_competitions(slug)}/{competition_id}/participants"


# ---------------------------------------------------------------------------
# Competitions
# ---------------------------------------------------------------------------

async def get_competitions(
    api: BackendClient, slug: str, festival_id: str | None = None
) -> list[dict[str, Any]]:
    return await api.get(_competitions(slug), festival_id=festival_id)


async def get_competition(api: BackendClient, slug: str, competition_id: str) -> dict[str, Any]:
    return await api.get(f"{_competitions(slug)}/{competition_id}")


async def add_competition(api: BackendClient, slug: str, competition: dict[str, Any]) -> dict[str, Any]:
    return await api.post(_competitions(slug), competition)


async def update_competition(
    api: BackendClient, slug: str, competition_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    return await api.patch(f"{_competitions(slug)}/{competition_id}", changes)


async def delete_competition(api: BackendClient, slug: str, competition_id: str) -> None:
    await api.delete(f"{_competitions(slug)}/{competition_id}")


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

async def get_participants(api: BackendClient, slug: str, competition_id: str) -> list[dict[str, Any]]:
    return await api.get(_participants(slug, competition_id))


async def add_participant(
    api: BackendClient, slug: str, competition_id: str, participant: dict[str, Any]
) -> dict[str, Any]:
    return await api.post(_participants(slug, competition_id), participant)


async def update_participant(
    api: BackendClient, slug: str, competition_id: str, participant_id: str, changes: dict[str, Any]
) -> dict[str, Any]:
    return await api.patch(f"{_participants(slug, competition_id)}/{participant_id}", changes)


async def delete_participant(
    api: BackendClient, slug: str, competition_id: str, participant_id: str
) -> None:
    await api.delete(f"{_participants(slug, competition_id)}/{participant_id}")


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------

async def cast_vote(
    api: BackendClient, slug: str, competition_id: str, participant_id: str, device_id: str
) -> dict[str, Any]:
    """Returns {"success": bool, "message": str}; refusals are not errors."""
    return await api.post(
        f"{_competitions(slug)}/{competition_id}/votes",
        {"participant_id": participant_id, "device_id": device_id},
    )


async def get_device_votes(
    api: BackendClient, slug: str, competition_id: str, device_id: str
) -> dict[str, Any]:
    return await api.get(f"{_competitions(slug)}/{competition_id}/votes", device_id=device_id)
