import base64
import httpx
from config import settings, logger, API_TIMEOUTS, RATE_LIMITS_PER_SECOND, CLOUD_CONFIG
from exceptions import MediaConversionException
from utils.rate_limiter import get_rate_limiter

_vision_limiter = get_rate_limiter("CLOUD_VISION", RATE_LIMITS_PER_SECOND.CLOUD_VISION)

async def extract_text_from_image(image_bytes: bytes) -> str:
    """Run Cloud Vision text detection. Returns "" when the image has no text."""
    if not settings.CLOUD_API_KEY:
        raise MediaConversionException("OCR", "Google Cloud API key not configured")
    if not image_bytes:
        return ""

    await _vision_limiter.acquire()

    body = {
        "requests": [{
            "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
            "features": [{"type": "TEXT_DETECTION"}],
        }]
    }
    try:
        async with httpx.AsyncClient(timeout=API_TIMEOUTS.OCR) as client:
            r = await client.post(CLOUD_CONFIG.VISION_ENDPOINT, params={"key": settings.CLOUD_API_KEY}, json=body)
            r.raise_for_status()
            data = r.json()
    except httpx.HTTPStatusError as e:
        logger.error("Cloud Vision HTTP error %s: %s", e.response.status_code, e.response.text)
        raise MediaConversionException("OCR", f"HTTP {e.response.status_code}")
    except httpx.RequestError as e:
        logger.error("Cloud Vision request error: %s", str(e))
        raise MediaConversionException("OCR", f"request failed: {type(e).__name__}")

    responses = data.get("responses") or [{}]
    first = responses[0] or {}
    if error := first.get("error"):
        raise MediaConversionException("OCR", error.get("message", "unknown error"))

    text = (first.get("fullTextAnnotation") or {}).get("text")
    if not text:
        annotations = first.get("textAnnotations") or []
        text = annotations[0].get("description", "") if annotations else ""

    logger.info("OCR extracted %d characters.", len(text or ""))
    return text or ""
