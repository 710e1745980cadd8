"""
English to Telugu translation through the Gemini generateContent API.

Translation is best effort: any failure (no API key, HTTP error, odd
payload) falls back to the input string.
"""

from __future__ import annotations

import re

import httpx
import structlog

from utsav.core.config import settings
from utsav.schemas.translation import TranslateNameResponse, TranslateSearchResponse

logger = structlog.get_logger(__name__)

TELUGU_PATTERN = re.compile(r"[\u0C00-\u0C7F]")

NAME_PROMPT = (
    "Translate the following name to Telugu script. Only return the Telugu "
    "translation, nothing else. If it's already in Telugu, return it as is. "
    "If it cannot be translated meaningfully, return the original name. Name: {text}"
)
SEARCH_PROMPT = (
    "Translate the following English name to Telugu script only. "
    'Return only the Telugu translation, nothing else: "{text}"'
)


def is_telugu(text: str) -> bool:
    return TELUGU_PATTERN.search(text) is not None


class TranslationError(Exception):
    """The model call failed or returned nothing usable."""


class TranslationService:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def translate_name(self, name: str) -> TranslateNameResponse:
        if is_telugu(name):
            return TranslateNameResponse(telugu_name=name)
        try:
            telugu_name = await self._generate(NAME_PROMPT.format(text=name))
        except TranslationError as exc:
            logger.warning("translate_name_failed", error=str(exc))
            telugu_name = name
        return TranslateNameResponse(telugu_name=telugu_name)

    async def translate_search(self, term: str) -> TranslateSearchResponse:
        """Telugu input comes back untranslated with is_translated=False."""
        if is_telugu(term):
            return TranslateSearchResponse(
                original_term=term, translated_term=term, is_translated=False
            )
        try:
            translated = await self._generate(SEARCH_PROMPT.format(text=term))
        except TranslationError as exc:
            logger.warning("translate_search_failed", error=str(exc))
            return TranslateSearchResponse(
                original_term=term, translated_term=term, is_translated=False
            )

        logger.info("search_term_translated", original=term, translated=translated)
        return TranslateSearchResponse(
            original_term=term, translated_term=translated, is_translated=True
        )

    async def _generate(self, prompt: str) -> str:
        """Return the first candidate's text, stripped."""
        if not settings.GEMINI_API_KEY:
            raise TranslationError("GEMINI_API_KEY is not set")

        url = f"{settings.GEMINI_API_URL.rstrip('/')}/{settings.GEMINI_MODEL}:generateContent"
        try:
            response = await self.client.post(
                url,
                params={"key": settings.GEMINI_API_KEY},
                json={"contents": [{"parts": [{"text": prompt}]}]},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TranslationError(f"Gemini API error: {exc}") from exc

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise TranslationError("Gemini response had no candidate text") from exc
        if not text:
            raise TranslationError("Gemini returned an empty translation")
        return text
