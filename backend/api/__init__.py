from .google_search import search_web, format_snippets
from .url_content import fetch_url_content, is_url, host_of
from .date_time import get_current_date_time
from .vision_ocr import extract_text_from_image
from .speech import transcribe

__all__ = [
    "search_web",
    "format_snippets",
    "fetch_url_content",
    "is_url",
    "host_of",
    "get_current_date_time",
    "extract_text_from_image",
    "transcribe",
]
