"""
Translation function tests.

The Gemini API is replaced with an httpx MockTransport; without an API
key or on any failure the original text comes back.
"""

import httpx
import pytest

from utsav.core.config import settings
from utsav.main import functions_app
from utsav.routers.functions import get_translation_service
from utsav.services.translation_service import TranslationService, is_telugu


def gemini_reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def gemini(monkeypatch):
    """Route translation calls to a handler the test controls."""
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    calls = []
    state = {"handler": lambda request: httpx.Response(200, json=gemini_reply(" రమేష్ \n"))}

    def handler(request):
        calls.append(request)
        return state["handler"](request)

    async def _service():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            yield TranslationService(http)

    functions_app.dependency_overrides[get_translation_service] = _service
    yield state, calls
    functions_app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_translate_name(client, gemini):
    _, calls = gemini
    resp = await client.post("/functions/translate-name", json={"name": "Ramesh"})

    assert resp.status_code == 200
    assert resp.json() == {"teluguName": "రమేష్"}
    assert calls[0].url.params["key"] == "test-key"
    assert calls[0].url.path.endswith(":generateContent")


@pytest.mark.asyncio
async def test_translate_name_falls_back_on_error(client, gemini):
    state, _ = gemini
    state["handler"] = lambda request: httpx.Response(500, json={"error": "boom"})

    resp = await client.post("/functions/translate-name", json={"name": "Ramesh"})
    assert resp.json() == {"teluguName": "Ramesh"}


@pytest.mark.asyncio
async def test_translate_search(client, gemini):
    resp = await client.post("/functions/translate-search", json={"searchTerm": "Ramesh"})
    assert resp.json() == {
        "originalTerm": "Ramesh",
        "translatedTerm": "రమేష్",
        "isTranslated": True,
    }


@pytest.mark.asyncio
async def test_translate_search_leaves_telugu_alone(client, gemini):
    _, calls = gemini
    resp = await client.post("/functions/translate-search", json={"searchTerm": "రమేష్"})
    assert resp.json()["isTranslated"] is False
    assert resp.json()["translatedTerm"] == "రమేష్"
    assert calls == []


@pytest.mark.asyncio
async def test_empty_candidate_falls_back(client, gemini):
    state, _ = gemini
    state["handler"] = lambda request: httpx.Response(200, json={"candidates": []})

    resp = await client.post("/functions/translate-search", json={"searchTerm": "Suresh"})
    assert resp.json() == {"originalTerm": "Suresh", "translatedTerm": "Suresh", "isTranslated": False}


@pytest.mark.asyncio
async def test_missing_api_key_falls_back(client, monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    resp = await client.post("/functions/translate-name", json={"name": "Lakshmi"})
    assert resp.json() == {"teluguName": "Lakshmi"}


@pytest.mark.asyncio
async def test_open_cors(client):
    resp = await client.options(
        "/functions/translate-name",
        headers={
            "Origin": "https://anywhere.example",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


def test_is_telugu():
    assert is_telugu("సురేష్")
    assert not is_telugu("Suresh")
