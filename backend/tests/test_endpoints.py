import pytest
from unittest.mock import AsyncMock, patch

from conftest import ScriptedEngine, final_answer
from exceptions import UpstreamUnavailableException
from services import CapabilitySet, InputNormalizer, ReasoningOrchestrator, SessionRegistry, VerificationService


@pytest.fixture
def engine():
    return ScriptedEngine([])


@pytest.fixture
def api_client(test_client, engine):
    """TestClient backed by a scripted engine instead of Gemini."""
    import main

    fetcher = AsyncMock(return_value={
        "url": "https://www.bbc.com/news/science-123",
        "title": "Sky colour explained - BBC News",
        "body_text": "Scientists explain why the sky appears blue.",
    })
    capabilities = CapabilitySet(search=AsyncMock(return_value=[]), clock=AsyncMock(return_value={}), fetcher=fetcher)
    service = VerificationService(
        normalizer=InputNormalizer(fetcher=fetcher, url_autodetect=True),
        orchestrator=ReasoningOrchestrator(capabilities, engine, trusted_domains=[]),
        sessions=SessionRegistry(),
    )
    main.app.dependency_overrides[main.get_verification_service] = lambda: service
    return test_client


class TestHealthCheckEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "Verifact API" in data["message"]


class TestAnalyzeEndpoint:
    """Tests for POST /api/v1/analyze."""

    def test_successful_analysis(self, api_client, engine, fake_verdict_payload):
        engine.turns.append(final_answer(fake_verdict_payload))

        response = api_client.post("/api/v1/analyze", json={
            "payload": "The sky is green and grass is purple.",
            "modality": "text",
            "session_id": "conversation-42",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == "conversation-42"
        assert data["cached"] is False
        assert data["verdict"]["classification"] == "fake"
        assert data["verdict"]["confidence_percent"] == 95
        assert data["verdict"]["claims"][0]["label"] == "FALSE"
        assert "### Claim Evaluations" in data["rendered"]
        assert "X-Request-ID" in response.headers

    def test_session_header_enables_cache(self, api_client, engine, fake_verdict_payload):
        engine.turns.append(final_answer(fake_verdict_payload))
        headers = {"X-Session-ID": "chat-7"}
        body = {"payload": "The sky is green and grass is purple."}

        first = api_client.post("/api/v1/analyze", json=body, headers=headers)
        second = api_client.post("/api/v1/analyze", json=body, headers=headers)

        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert engine.call_count == 1

    def test_uppercase_modality_is_accepted(self, api_client, engine, fake_verdict_payload):
        engine.turns.append(final_answer(fake_verdict_payload))

        response = api_client.post("/api/v1/analyze", json={"payload": "The sky is green.", "modality": "TEXT"})

        assert response.status_code == 200

    def test_empty_payload(self, api_client, engine):
        response = api_client.post("/api/v1/analyze", json={"payload": "   "})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "EmptyInputException"
        assert data["details"]["modality"] == "text"
        assert engine.call_count == 0

    def test_missing_payload(self, api_client):
        response = api_client.post("/api/v1/analyze", json={})
        assert response.status_code == 422

    def test_unknown_modality(self, api_client):
        response = api_client.post("/api/v1/analyze", json={"payload": "x", "modality": "video"})
        assert response.status_code == 422

    def test_schema_violation(self, api_client, engine):
        engine.turns.extend([
            {"raw": {}, "text": "It is fake.", "tool_calls": [], "content": None},
            {"raw": {}, "text": "Definitely fake.", "tool_calls": [], "content": None},
        ])

        response = api_client.post("/api/v1/analyze", json={"payload": "The sky is green."})

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "SchemaViolationException"
        assert data["message"] == (
            "The analysis could not be completed because the reasoning engine returned an invalid verdict. "
            "Please try again."
        )

    def test_upstream_unavailable(self, api_client, engine):
        engine.turns.append(UpstreamUnavailableException("HTTP 503"))

        response = api_client.post("/api/v1/analyze", json={"payload": "The sky is green."})

        assert response.status_code == 503
        assert response.json()["details"]["retryable"] is True


class TestIsFakeNewsEndpoint:
    def test_text_query(self, api_client, engine, fake_verdict_payload):
        engine.turns.append(final_answer(fake_verdict_payload))

        response = api_client.get("/api/v1/isFakeNews", params={"news": "The sky is green and grass is purple."})

        assert response.status_code == 200
        assert response.json()["verdict"]["classification"] == "fake"

    def test_bare_url_is_fetched(self, api_client, engine, real_verdict_payload):
        engine.turns.append(final_answer(real_verdict_payload))

        response = api_client.get("/api/v1/isFakeNews", params={"news": "https://www.bbc.com/news/science-123"})

        data = response.json()
        assert data["resolved_from_url"] is True
        assert data["modality"] == "url"
        assert "Sky colour explained" in engine.calls[0]["contents"][0]["parts"][0]["text"]

    def test_missing_news(self, api_client):
        assert api_client.get("/api/v1/isFakeNews").status_code == 422


class TestMediaEndpoints:
    @patch("main.extract_text_from_image", new_callable=AsyncMock)
    def test_image(self, mock_ocr, api_client, engine, fake_verdict_payload):
        mock_ocr.return_value = "BREAKING: The sky is green"
        engine.turns.append(final_answer(fake_verdict_payload))

        response = api_client.post("/api/v1/analyzeImage", files={"file": ("post.png", b"\x89PNG data", "image/png")})

        assert response.status_code == 200
        assert response.json()["modality"] == "image_text"
        mock_ocr.assert_awaited_once_with(b"\x89PNG data")
        assert "IMAGE INPUT" in engine.calls[0]["system_instruction"]

    @patch("main.extract_text_from_image", new_callable=AsyncMock)
    def test_image_without_text(self, mock_ocr, api_client, engine):
        mock_ocr.return_value = ""

        response = api_client.post("/api/v1/analyzeImage", files={"file": ("blank.png", b"\x89PNG", "image/png")})

        assert response.status_code == 400
        assert response.json()["details"]["modality"] == "image_text"
        assert engine.call_count == 0

    @patch("main.transcribe", new_callable=AsyncMock)
    def test_audio(self, mock_transcribe, api_client, engine, fake_verdict_payload):
        mock_transcribe.return_value = "the sky turned green this morning"
        engine.turns.append(final_answer(fake_verdict_payload))

        response = api_client.post("/api/v1/analyzeAudio", files={"file": ("clip.wav", b"RIFF....WAVE", "audio/wav")})

        assert response.status_code == 200
        assert response.json()["modality"] == "audio_text"

    @patch("main.transcribe", new_callable=AsyncMock)
    def test_audio_without_speech(self, mock_transcribe, api_client, engine):
        mock_transcribe.return_value = None

        response = api_client.post("/api/v1/analyzeAudio", files={"file": ("silence.wav", b"RIFF", "audio/wav")})

        assert response.status_code == 400
        assert engine.call_count == 0


class TestSessionEndpoint:
    def test_end_session(self, api_client, engine, fake_verdict_payload):
        engine.turns.extend([final_answer(fake_verdict_payload), final_answer(fake_verdict_payload)])
        body = {"payload": "The sky is green.", "session_id": "chat-9"}
        api_client.post("/api/v1/analyze", json=body)

        response = api_client.delete("/api/v1/sessions/chat-9")
        again = api_client.post("/api/v1/analyze", json=body)

        assert response.json() == {"session_id": "chat-9", "ended": True}
        assert again.json()["cached"] is False
        assert engine.call_count == 2

    def test_end_unknown_session(self, api_client):
        response = api_client.delete("/api/v1/sessions/never-opened")
        assert response.json() == {"session_id": "never-opened", "ended": False}


class TestRequestContext:
    def test_request_id_is_echoed(self, test_client):
        response = test_client.get("/", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"
        assert "X-Response-Time-Ms" in response.headers

    def test_unsafe_request_id_is_replaced(self, test_client):
        response = test_client.get("/", headers={"X-Request-ID": "x" * 300})
        assert response.headers["X-Request-ID"] != "x" * 300
        assert len(response.headers["X-Request-ID"]) == 32

    def test_session_header_is_echoed(self, test_client):
        response = test_client.get("/", headers={"X-Session-ID": "chat-7"})
        assert response.headers["X-Session-ID"] == "chat-7"

    def test_no_session_header_when_absent(self, test_client):
        assert "X-Session-ID" not in test_client.get("/").headers
