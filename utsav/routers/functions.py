"""
Translation functions.

Served from a separate sub-application mounted at /functions with open
CORS and no authentication, mirroring hosted edge functions.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx
from fastapi import APIRouter, Depends

from utsav.schemas.translation import (
    TranslateNameRequest,
    TranslateNameResponse,
    TranslateSearchRequest,
    TranslateSearchResponse,
)
from utsav.services.translation_service import TranslationService

router = APIRouter()


async def get_translation_service() -> AsyncGenerator[TranslationService, None]:
    async with httpx.AsyncClient(timeout=15.0) as client:
        yield TranslationService(client)


@router.post(
    "/translate-name",
    response_model=TranslateNameResponse,
    summary="Translate a donor name to Telugu",
)
async def translate_name(
    data: TranslateNameRequest,
    service: TranslationService = Depends(get_translation_service),
) -> TranslateNameResponse:
    """Falls back to the given name when translation fails."""
    return await service.translate_name(data.name)


@router.post(
    "/translate-search",
    response_model=TranslateSearchResponse,
    summary="Translate a search term to Telugu",
)
async def translate_search(
    data: TranslateSearchRequest,
    service: TranslationService = Depends(get_translation_service),
) -> TranslateSearchResponse:
    """Telugu terms are returned as-is with `isTranslated: false`."""
    return await service.translate_search(data.search_term)
