import pytest
from unittest.mock import AsyncMock

from api.url_content import fetch_url_content
from exceptions import ContentFetchException, EmptyInputException, UrlUnreachableException
from models.inputs import Modality
from services.normalizer import InputNormalizer

REUTERS_PAGE = {
    "url": "https://www.reuters.com/markets/rates-held/",
    "title": "Central bank holds rates | Reuters",
    "body_text": "The central bank kept its policy rate unchanged on Thursday.",
}


@pytest.mark.asyncio
class TestInputNormalizer:
    """Tests for turning payloads into canonical text."""

    async def test_plain_text_passes_through(self):
        fetcher = AsyncMock()
        normalized = await InputNormalizer(fetcher=fetcher).normalize("  The sky is green.  ")

        assert normalized.canonical_text == "The sky is green."
        assert normalized.source_modality == Modality.TEXT
        assert normalized.resolved_from_url is False
        fetcher.assert_not_called()

    @pytest.mark.parametrize("payload", ["", "   ", "\n\t", "\x00\x01"])
    async def test_empty_payload_is_rejected(self, payload):
        with pytest.raises(EmptyInputException) as exc_info:
            await InputNormalizer(fetcher=AsyncMock()).normalize(payload, Modality.IMAGE_TEXT)

        assert exc_info.value.details["modality"] == "image_text"
        assert exc_info.value.status_code == 400

    async def test_url_is_fetched(self):
        fetcher = AsyncMock(return_value=REUTERS_PAGE)
        normalized = await InputNormalizer(fetcher=fetcher).normalize(
            "https://www.reuters.com/markets/rates-held/", Modality.URL
        )

        fetcher.assert_awaited_once_with("https://www.reuters.com/markets/rates-held/")
        assert normalized.resolved_from_url is True
        assert normalized.source_modality == Modality.URL
        assert normalized.source_url == REUTERS_PAGE["url"]
        assert normalized.page_title == "Central bank holds rates | Reuters"
        assert normalized.canonical_text.startswith("Central bank holds rates | Reuters\n\n")
        assert "policy rate unchanged" in normalized.canonical_text

    async def test_bare_url_in_text_is_fetched(self):
        fetcher = AsyncMock(return_value=REUTERS_PAGE)
        normalized = await InputNormalizer(fetcher=fetcher, url_autodetect=True).normalize(
            "https://www.reuters.com/markets/rates-held/"
        )

        assert normalized.resolved_from_url is True
        assert normalized.source_modality == Modality.URL

    async def test_autodetect_can_be_disabled(self):
        fetcher = AsyncMock()
        normalized = await InputNormalizer(fetcher=fetcher, url_autodetect=False).normalize(
            "https://www.reuters.com/markets/rates-held/"
        )

        fetcher.assert_not_called()
        assert normalized.source_modality == Modality.TEXT

    async def test_text_mentioning_url_is_not_fetched(self):
        fetcher = AsyncMock()
        normalized = await InputNormalizer(fetcher=fetcher).normalize(
            "Read https://example.com/story before it gets deleted!"
        )

        fetcher.assert_not_called()
        assert normalized.resolved_from_url is False

    async def test_invalid_url_modality_falls_back_to_text(self):
        fetcher = AsyncMock()
        normalized = await InputNormalizer(fetcher=fetcher).normalize("not really a link", "url")

        fetcher.assert_not_called()
        assert normalized.source_modality == Modality.TEXT
        assert normalized.canonical_text == "not really a link"

    async def test_unreachable_url(self):
        fetcher = AsyncMock(side_effect=ContentFetchException("https://slow.example.com", "request timed out"))

        with pytest.raises(UrlUnreachableException) as exc_info:
            await InputNormalizer(fetcher=fetcher).normalize("https://slow.example.com", Modality.URL)

        assert exc_info.value.details["reason"] == "request timed out"
        assert exc_info.value.details["restricted"] is False
        assert exc_info.value.status_code == 422

    async def test_restricted_url(self):
        fetcher = AsyncMock(side_effect=ContentFetchException(
            "https://docs.google.com/document/d/abc", "page requires login", restricted=True
        ))

        with pytest.raises(UrlUnreachableException) as exc_info:
            await InputNormalizer(fetcher=fetcher).normalize("https://docs.google.com/document/d/abc", Modality.URL)

        assert exc_info.value.details["restricted"] is True

    async def test_malformed_punycode_host(self):
        normalizer = InputNormalizer(fetcher=fetch_url_content)

        with pytest.raises(UrlUnreachableException) as exc_info:
            await normalizer.normalize("http://xn--a.com/", Modality.URL)

        assert exc_info.value.details["reason"] == "invalid URL"
        assert exc_info.value.details["url"] == "http://xn--a.com/"

    async def test_page_without_text(self):
        fetcher = AsyncMock(return_value={"url": "https://example.com", "title": "Empty", "body_text": "   "})

        with pytest.raises(UrlUnreachableException):
            await InputNormalizer(fetcher=fetcher).normalize("https://example.com", Modality.URL)

    async def test_image_and_audio_text_keep_modality(self):
        normalizer = InputNormalizer(fetcher=AsyncMock())

        image = await normalizer.normalize("BREAKING: Moon made of cheese", Modality.IMAGE_TEXT)
        audio = await normalizer.normalize("the president resigned today", "audio_text")

        assert image.source_modality == Modality.IMAGE_TEXT
        assert audio.source_modality == Modality.AUDIO_TEXT

    async def test_long_payload_is_capped(self):
        normalized = await InputNormalizer(fetcher=AsyncMock()).normalize("a" * 25000)
        assert len(normalized.canonical_text) == 20000
