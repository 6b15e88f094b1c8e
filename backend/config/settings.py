from typing import Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TRUSTED_DOMAINS = [
    "gmanetwork.com",
    "abs-cbn.com",
    "bbc.com",
    "bbc.co.uk",
    "cnn.com",
    "reuters.com",
    "theguardian.com",
    "nytimes.com",
]

class Settings(BaseSettings):
    """Loads all environment variables into a single, accessible object."""
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    GEMINI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    GOOGLE_SEARCH_ENGINE: Optional[str] = None
    GOOGLE_CLOUD_API_KEY: Optional[str] = None

    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"

    TRUSTED_DOMAINS: List[str] = DEFAULT_TRUSTED_DOMAINS
    MAX_CONCURRENT_ANALYSES: int = 8
    ANALYSIS_TIMEOUT: float = 180.0
    MAX_TOOL_TURNS: int = 6
    URL_AUTODETECT: bool = True
    # Per-upstream calls per second, e.g. {"GOOGLE_SEARCH": 1}
    RATE_LIMIT_OVERRIDES: Dict[str, float] = {}

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    @property
    def GEMINI_ENDPOINT(self) -> str:
        return f"{self.GEMINI_BASE_URL}/v1beta/models/{self.GEMINI_MODEL}:generateContent"

    @property
    def CLOUD_API_KEY(self) -> Optional[str]:
        return self.GOOGLE_CLOUD_API_KEY or self.GOOGLE_API_KEY

settings = Settings()
