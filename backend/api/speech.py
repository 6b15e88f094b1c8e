import base64
from typing import Optional
import httpx
from config import settings, logger, API_TIMEOUTS, RATE_LIMITS_PER_SECOND, CLOUD_CONFIG
from exceptions import MediaConversionException
from utils.rate_limiter import get_rate_limiter

_speech_limiter = get_rate_limiter("CLOUD_SPEECH", RATE_LIMITS_PER_SECOND.CLOUD_SPEECH)

async def transcribe(audio_bytes: bytes) -> Optional[str]:
    """
    Transcribe WAV (LINEAR16) audio with Cloud Speech-to-Text.

    Returns None when no speech was detected.
    """
    if not settings.CLOUD_API_KEY:
        raise MediaConversionException("Speech recognition", "Google Cloud API key not configured")
    if not audio_bytes:
        return None

    await _speech_limiter.acquire()

    body = {
        "config": {
            "encoding": CLOUD_CONFIG.SPEECH_ENCODING,
            "languageCode": CLOUD_CONFIG.SPEECH_LANGUAGE,
            "enableAutomaticPunctuation": True,
        },
        "audio": {"content": base64.b64encode(audio_bytes).decode("ascii")},
    }
    try:
        async with httpx.AsyncClient(timeout=API_TIMEOUTS.SPEECH) as client:
            r = await client.post(CLOUD_CONFIG.SPEECH_ENDPOINT, params={"key": settings.CLOUD_API_KEY}, json=body)
            r.raise_for_status()
            data = r.json()
    except httpx.HTTPStatusError as e:
        logger.error("Cloud Speech HTTP error %s: %s", e.response.status_code, e.response.text)
        raise MediaConversionException("Speech recognition", f"HTTP {e.response.status_code}")
    except httpx.RequestError as e:
        logger.error("Cloud Speech request error: %s", str(e))
        raise MediaConversionException("Speech recognition", f"request failed: {type(e).__name__}")

    transcripts = []
    for result in data.get("results", []) or []:
        alternatives = result.get("alternatives") or []
        if alternatives and alternatives[0].get("transcript"):
            transcripts.append(alternatives[0]["transcript"].strip())

    if not transcripts:
        logger.info("No speech detected.")
        return None
    return " ".join(transcripts)
