from typing import List
import httpx
from config import settings, logger, API_TIMEOUTS, RATE_LIMITS_PER_SECOND, SEARCH_CONFIG, TEXT_LIMITS
from exceptions import SearchUnavailableException
from models.api_responses import SearchSnippet
from utils.rate_limiter import get_rate_limiter
from utils.validation import InputValidator

_search_limiter = get_rate_limiter("GOOGLE_SEARCH", RATE_LIMITS_PER_SECOND.GOOGLE_SEARCH)

async def search_web(query: str, num_results: int = TEXT_LIMITS.MAX_SEARCH_RESULTS) -> List[SearchSnippet]:
    """
    Search the web using the Google Custom Search API.

    Returns an empty list when the search ran but found nothing. Raises
    SearchUnavailableException when the service itself cannot be used
    (credentials, quota, network), so callers can tell the two apart.
    """
    if not settings.GOOGLE_API_KEY or not settings.GOOGLE_SEARCH_ENGINE:
        logger.error("Google Custom Search credentials are not configured.")
        raise SearchUnavailableException("search credentials are not configured")

    query = InputValidator.sanitize_tool_argument(query)
    if not query:
        return []

    await _search_limiter.acquire()

    params = {
        "key": settings.GOOGLE_API_KEY,
        "cx": settings.GOOGLE_SEARCH_ENGINE,
        "q": query,
        "num": max(1, min(num_results, 10)),
    }
    logger.info("Google Search query: %s", query)

    try:
        async with httpx.AsyncClient(timeout=API_TIMEOUTS.SEARCH) as client:
            r = await client.get(SEARCH_CONFIG.ENDPOINT, params=params)
            r.raise_for_status()
            data = r.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status in SEARCH_CONFIG.UNAVAILABLE_STATUS_CODES:
            logger.error(
                "Web Search is not available: HTTP %s. Check that the Custom Search API is enabled and the API key is valid.",
                status
            )
            raise SearchUnavailableException(f"HTTP {status} (authorization or quota failure)", status)
        logger.error("Google Search HTTP error %s: %s", status, e.response.text)
        raise SearchUnavailableException(f"HTTP {status}", status)
    except httpx.TimeoutException:
        logger.error("Google Search timed out for query: %s", query)
        raise SearchUnavailableException("request timed out")
    except httpx.RequestError as e:
        logger.error("Google Search request error: %s", str(e))
        raise SearchUnavailableException(f"request failed: {type(e).__name__}")
    except ValueError:
        logger.error("Google Search returned a non-JSON body.")
        raise SearchUnavailableException("malformed response")

    if isinstance(data, dict) and data.get("error"):
        error = data["error"]
        status = error.get("code") if isinstance(error, dict) else None
        raise SearchUnavailableException(f"API error {status}", status)

    results: List[SearchSnippet] = []
    for item in data.get("items", []) or []:
        snippet = (item.get("snippet") or "").strip()
        if not snippet:
            continue
        results.append({
            "title": (item.get("title") or "").strip(),
            "url": item.get("link") or "",
            "snippet": snippet,
        })

    logger.info("Google Search returned %d results for: %s", len(results), query)
    return results

def format_snippets(results: List[SearchSnippet]) -> str:
    if not results:
        return "No results found."
    lines = []
    for item in results:
        lines.append(f"- {item['title']} ({item['url']}): {item['snippet']}")
    return "\n".join(lines)
