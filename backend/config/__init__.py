import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("verifact")

from .settings import settings
from .constants import (
    LLM_CONFIG,
    API_TIMEOUTS,
    RATE_LIMITS_PER_SECOND,
    TEXT_LIMITS,
    CONFIDENCE_POLICY,
    SEARCH_CONFIG,
    CLOUD_CONFIG,
)

REQUIRED_KEYS = [
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GOOGLE_SEARCH_ENGINE",
]

def check_api_keys_on_startup():
    """Check for required API keys on startup."""
    missing_keys = [key_name for key_name in REQUIRED_KEYS if not getattr(settings, key_name, None)]

    if missing_keys:
        logger.warning(f"Missing API keys: {', '.join(missing_keys)}. Corresponding calls will fail.")
    else:
        logger.info("All required API keys are configured.")

    if not settings.CLOUD_API_KEY:
        logger.warning("No Google Cloud API key configured. Image and audio analysis are disabled.")

__all__ = [
    "logger",
    "settings",
    "check_api_keys_on_startup",
    "LLM_CONFIG",
    "API_TIMEOUTS",
    "RATE_LIMITS_PER_SECOND",
    "TEXT_LIMITS",
    "CONFIDENCE_POLICY",
    "SEARCH_CONFIG",
    "CLOUD_CONFIG",
]
