from typing import Awaitable, Callable, Optional, Union

from api.url_content import fetch_url_content, is_url
from config import settings, logger, TEXT_LIMITS
from exceptions import EmptyInputException, UrlUnreachableException, ContentFetchException
from models.api_responses import FetchedPage
from models.inputs import Modality, NormalizedInput
from utils.validation import InputValidator

Fetcher = Callable[[str], Awaitable[FetchedPage]]


class InputNormalizer:
    """Turns a payload of any modality into the single text blob the engine analyzes."""

    def __init__(self, fetcher: Optional[Fetcher] = None, url_autodetect: Optional[bool] = None):
        self.fetcher = fetcher or fetch_url_content
        self.url_autodetect = settings.URL_AUTODETECT if url_autodetect is None else url_autodetect

    async def normalize(self, payload: str, modality: Union[Modality, str] = Modality.TEXT) -> NormalizedInput:
        modality = Modality(modality)
        text = InputValidator.sanitize_payload(payload)

        if not text:
            logger.info("Rejected empty payload.", extra={"modality": modality.value})
            raise EmptyInputException(modality.value)

        if modality == Modality.URL or (modality == Modality.TEXT and self.url_autodetect and is_url(text)):
            if is_url(text):
                return await self._resolve_url(text)
            logger.info("Payload tagged as URL is not a valid absolute URL, analyzing it as text.")
            modality = Modality.TEXT

        return NormalizedInput(canonical_text=text, source_modality=modality)

    async def _resolve_url(self, url: str) -> NormalizedInput:
        try:
            page = await self.fetcher(url)
        except ContentFetchException as e:
            raise UrlUnreachableException(url, e.details.get("reason", e.message), restricted=e.restricted)

        title = InputValidator.collapse_whitespace(page.get("title", ""))
        body = InputValidator.sanitize_payload(page.get("body_text", ""), max_length=TEXT_LIMITS.MAX_PAGE_CHARS)
        if not body:
            raise UrlUnreachableException(url, "page contains no readable text")

        canonical_text = f"{title}\n\n{body}" if title else body
        logger.info("Resolved URL input %s to %d characters.", url, len(canonical_text))
        return NormalizedInput(
            canonical_text=canonical_text,
            source_modality=Modality.URL,
            resolved_from_url=True,
            source_url=page.get("url") or url,
            page_title=title or None,
        )
