from dataclasses import dataclass

@dataclass(frozen=True)
class LLMConfig:
    REQUEST_TIMEOUT: float = 60.0
    TEMPERATURE: float = 0.0
    MAX_TOOL_RESULT_CHARS: int = 8000

@dataclass(frozen=True)
class APITimeouts:
    """Timeout configurations for external API calls."""
    SEARCH: float = 15.0
    FETCH_URL: float = 10.0
    OCR: float = 30.0
    SPEECH: float = 60.0
    TOOL_CALL: float = 20.0

@dataclass(frozen=True)
class RateLimits:
    GEMINI: float = 5.0
    GOOGLE_SEARCH: float = 2.0
    CLOUD_VISION: float = 5.0
    CLOUD_SPEECH: float = 5.0

@dataclass(frozen=True)
class TextLimits:
    MAX_PAYLOAD_CHARS: int = 20000
    MAX_PAGE_CHARS: int = 15000
    MAX_SEARCH_RESULTS: int = 5

@dataclass(frozen=True)
class ConfidencePolicy:
    MIXED: int = 50
    UNVERIFIED: int = 0
    DECISIVE_MIN: int = 70
    DECISIVE_MAX: int = 100
    TRUSTED_MIN: int = 90
    MIN_SOURCES: int = 2

@dataclass(frozen=True)
class SearchConfig:
    ENDPOINT: str = "https://www.googleapis.com/customsearch/v1"
    UNAVAILABLE_STATUS_CODES: frozenset = frozenset({401, 403, 429})

@dataclass(frozen=True)
class CloudConfig:
    VISION_ENDPOINT: str = "https://vision.googleapis.com/v1/images:annotate"
    SPEECH_ENDPOINT: str = "https://speech.googleapis.com/v1/speech:recognize"
    SPEECH_LANGUAGE: str = "en-US"
    SPEECH_ENCODING: str = "LINEAR16"

LLM_CONFIG = LLMConfig()
API_TIMEOUTS = APITimeouts()
RATE_LIMITS_PER_SECOND = RateLimits()
TEXT_LIMITS = TextLimits()
CONFIDENCE_POLICY = ConfidencePolicy()
SEARCH_CONFIG = SearchConfig()
CLOUD_CONFIG = CloudConfig()
