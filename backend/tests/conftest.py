import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_ENV = {
    "GEMINI_API_KEY": "test_gemini_key",
    "GOOGLE_API_KEY": "test_google_key",
    "GOOGLE_SEARCH_ENGINE": "test_cx",
    "GOOGLE_CLOUD_API_KEY": "test_cloud_key",
    "GEMINI_MODEL": "gemini-2.5-flash",
}
for _key, _value in TEST_ENV.items():
    os.environ.setdefault(_key, _value)


@pytest.fixture(autouse=True)
def configured_settings(monkeypatch):
    """Known credentials on the shared settings object for every test."""
    from config import settings
    for key, value in TEST_ENV.items():
        monkeypatch.setattr(settings, key, value)
    return settings


@pytest.fixture(autouse=True)
def no_rate_limit_delay():
    from utils.rate_limiter import _rate_limiters
    saved = {name: limiter.min_interval for name, limiter in _rate_limiters.items()}
    for limiter in _rate_limiters.values():
        limiter.min_interval = 0.0
    yield
    for name, interval in saved.items():
        _rate_limiters[name].min_interval = interval


@pytest.fixture(autouse=True)
def reset_gemini_circuit():
    from services.llm import call_gemini
    call_gemini._circuit_breaker.reset()
    yield
    call_gemini._circuit_breaker.reset()


def make_response(
    status_code: int = 200,
    json_body: Any = None,
    text: Optional[str] = None,
    content_type: Optional[str] = None,
    url: str = "https://example.com/",
) -> httpx.Response:
    request = httpx.Request("GET", url)
    headers = {"content-type": content_type} if content_type else None
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=request)
    return httpx.Response(status_code, content=(text or "").encode("utf-8"), headers=headers, request=request)


def make_async_client(method: str = "get", response: Any = None, side_effect: Any = None) -> MagicMock:
    """A stand-in for httpx.AsyncClient used as an async context manager."""
    mock_client = MagicMock()
    call = AsyncMock(return_value=response, side_effect=side_effect)
    setattr(mock_client, method, call)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class ScriptedEngine:
    """Replays canned reasoning-engine turns and records what it was sent."""

    def __init__(self, turns: List[Dict[str, Any]]):
        self.turns = list(turns)
        self.calls: List[Dict[str, Any]] = []

    async def __call__(self, contents, system_instruction=None, tools=None):
        self.calls.append({
            "contents": json.loads(json.dumps(contents)),
            "system_instruction": system_instruction,
            "tools": tools,
        })
        if not self.turns:
            raise AssertionError("engine called more often than scripted")
        turn = self.turns.pop(0)
        if isinstance(turn, Exception):
            raise turn
        return turn

    @property
    def call_count(self) -> int:
        return len(self.calls)


def final_answer(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"raw": {}, "text": json.dumps(payload), "tool_calls": [], "content": None}


def tool_turn(*calls: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "raw": {},
        "text": "",
        "tool_calls": list(calls),
        "content": {"role": "model", "parts": [{"functionCall": c} for c in calls]},
    }


@pytest.fixture
def fake_verdict_payload():
    """Engine answer for 'The sky is green and grass is purple.'"""
    return {
        "user_instruction_result": None,
        "analysis": "The input makes two claims about the colors of the sky and grass.",
        "summary": "Both claims contradict well-established observations.",
        "claims": [
            {"claim": "The sky is green.", "label": "FALSE", "rationale": "Rayleigh scattering makes the daytime sky blue."},
            {"claim": "Grass is purple.", "label": "FALSE", "rationale": "Chlorophyll makes grass green."},
        ],
        "classification": "Fake",
        "confidence_percent": 95,
        "sources": [
            {"name": "NASA Space Place", "url": "https://spaceplace.nasa.gov/blue-sky/", "publication_date": None},
            {"name": "Britannica: Chlorophyll", "url": "https://www.britannica.com/science/chlorophyll"},
        ],
        "cybersecurity_tips": [
            "Cybersecurity Tip: Check claims against more than one reputable source before sharing.",
        ],
    }


@pytest.fixture
def real_verdict_payload():
    return {
        "analysis": "Reuters report on a central bank rate decision.",
        "summary": "The article reports the decision accurately.",
        "claims": [
            {"claim": "The central bank held rates steady.", "label": "TRUE", "rationale": "Confirmed by the bank's statement."},
        ],
        "classification": "real",
        "confidence_percent": 96,
        "sources": [
            {"name": "Reuters", "url": "https://www.reuters.com/markets/rates-held/", "publication_date": "2026-10-16"},
            {"name": "Central bank press release", "url": "https://www.centralbank.example.org/press/2026-10-16"},
        ],
        "cybersecurity_tips": ["Bookmark official sites instead of following shared links."],
    }


@pytest.fixture
def unverified_verdict_payload():
    return {
        "analysis": "No reliable reporting could be located.",
        "summary": "The claim could not be verified.",
        "claims": [{"claim": "A local bakery sold a 2 ton cake.", "label": "UNVERIFIED", "rationale": "No coverage found."}],
        "classification": "unverified",
        "confidence_percent": 0,
        "sources": [],
        "cybersecurity_tips": [],
    }


@pytest.fixture
def sample_gemini_response():
    """Sample Gemini generateContent response with a final text answer."""
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [{"text": '{"classification": "fake", "confidence_percent": 90}'}]
                },
                "finishReason": "STOP"
            }
        ]
    }


@pytest.fixture
def sample_gemini_tool_call_response():
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [
                        {"functionCall": {"name": "search_web", "args": {"query": "sky color"}}},
                        {"functionCall": {"name": "get_current_date_time", "args": {}}},
                    ]
                },
                "finishReason": "STOP"
            }
        ]
    }


@pytest.fixture
def sample_search_response():
    return {
        "items": [
            {"title": "Why is the sky blue?", "link": "https://spaceplace.nasa.gov/blue-sky/", "snippet": "Sunlight is scattered by gases in the atmosphere."},
            {"title": "Grass", "link": "https://en.wikipedia.org/wiki/Grass", "snippet": "Grasses are green due to chlorophyll."},
        ]
    }


@pytest.fixture
def test_client():
    """TestClient whose verification service uses an injected engine and fetcher."""
    import main
    client = TestClient(main.app)
    yield client
    main.app.dependency_overrides.clear()
