"""
Gallery data access.

Uploads go as multipart; the backend stores the file and the row.
"""

from __future__ import annotations

from typing import Any

from utsav.client.api import BackendClient


def _base(slug: str) -> str:
    return f"/organizations/{slug}/images"


async def upload_image(
    api: BackendClient,
    slug: str,
    *,
    filename: str,
    content: bytes,
    content_type: str,
    title: str,
    description: str | None = None,
    festival: dict[str, Any] | None = None,
) -> dict[str, Any]:
    form: dict[str, Any] = {"title": title}
    if description:
        form["description"] = description
    if festival:
        for field, key in (("festival_id", "id"), ("festival_name", "name"), ("festival_year", "year")):
            if festival.get(key) is not None:
                form[field] = str(festival[key])
    return await api.request(
        "POST",
        _base(slug),
        data=form,
        files={"file": (filename, content, content_type)},
    )


async def get_images(
    api: BackendClient, slug: str, festival_id: str | None = None
) -> list[dict[str, Any]]:
    return await api.get(_base(slug), festival_id=festival_id)


async def delete_image(api: BackendClient, slug: str, image_id: str) -> None:
    await api.delete(f"{_base(slug)}/{image_id}")
