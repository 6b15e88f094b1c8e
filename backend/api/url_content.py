from typing import Tuple
from urllib.parse import urlparse
import httpx
from bs4 import BeautifulSoup
from config import logger, API_TIMEOUTS, TEXT_LIMITS
from exceptions import ContentFetchException
from models.api_responses import FetchedPage

USER_AGENT = "Mozilla/5.0 (compatible; VerifactBot/1.0)"
LOGIN_MARKERS = ("sign in", "login", "log in")
READABLE_CONTENT_TYPES = ("text/html", "application/xhtml+xml", "text/plain")
RESTRICTED_STATUS_CODES = frozenset({401, 403, 407, 451})

def is_url(value: str) -> bool:
    """True when value is a single absolute http(s) URL."""
    if not value or any(ch.isspace() for ch in value.strip()):
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and "." in (parsed.hostname or "")

def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""

def extract_page_text(html: str) -> Tuple[str, str]:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    title = soup.title.get_text(" ", strip=True) if soup.title else ""
    root = soup.body or soup
    body_text = " ".join(root.get_text(" ", strip=True).split())
    return title, body_text

def is_access_restricted(title: str, body_text: str) -> bool:
    """Detect login walls such as a Google sign-in page served instead of content."""
    title_lower = (title or "").lower()
    body_lower = (body_text or "").lower()
    if not any(marker in body_lower for marker in LOGIN_MARKERS):
        return False
    return "google" in title_lower or any(marker in title_lower for marker in LOGIN_MARKERS)

async def fetch_url_content(url: str, timeout: float = API_TIMEOUTS.FETCH_URL) -> FetchedPage:
    """Fetch a page and extract its title and readable body text."""
    if not is_url(url):
        raise ContentFetchException(url, "not a valid absolute http(s) URL")

    headers = {"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9"}
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True, headers=headers) as client:
            r = await client.get(url)
            r.raise_for_status()
            content_type = r.headers.get("content-type", "").lower()
            text = r.text
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error("URL fetch HTTP error %s for %s", status, url)
        raise ContentFetchException(url, f"HTTP {status}", restricted=status in RESTRICTED_STATUS_CODES)
    except httpx.TimeoutException:
        logger.error("URL fetch timed out for %s", url)
        raise ContentFetchException(url, "request timed out")
    except httpx.RequestError as e:
        logger.error("URL fetch request error for %s: %s", url, str(e))
        raise ContentFetchException(url, f"request failed: {type(e).__name__}")
    except (httpx.InvalidURL, ValueError) as e:
        # idna rejects some hosts that urlparse accepts, e.g. malformed punycode labels
        logger.error("URL rejected by the HTTP client for %s: %s", url, str(e))
        raise ContentFetchException(url, "invalid URL")

    if content_type and not content_type.startswith(READABLE_CONTENT_TYPES):
        raise ContentFetchException(url, f"unsupported content type {content_type.split(';')[0]}")

    if content_type.startswith("text/plain"):
        title, body_text = "", " ".join(text.split())
    else:
        title, body_text = extract_page_text(text)

    if is_access_restricted(title, body_text):
        logger.warning("Blocked content, login required: %s", url)
        raise ContentFetchException(url, "page requires login; cannot analyze private content", restricted=True)

    if not body_text.strip():
        raise ContentFetchException(url, "page contains no readable text")

    logger.info("Fetched content from URL: %s (%d chars)", url, len(body_text))
    return {
        "url": str(r.url),
        "title": title,
        "body_text": body_text[:TEXT_LIMITS.MAX_PAGE_CHARS],
    }
