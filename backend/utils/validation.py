import re
import unicodedata

from config import TEXT_LIMITS

class InputValidator:

    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')
    WHITESPACE_PATTERN = re.compile(r'\s+')

    @staticmethod
    def sanitize_payload(payload: str, max_length: int = TEXT_LIMITS.MAX_PAYLOAD_CHARS) -> str:
        """Strip control characters and surrounding whitespace, cap the length.

        Returns an empty string for blank input; callers decide whether that is an error.
        """
        if not payload:
            return ""

        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")

        payload = unicodedata.normalize("NFC", payload)
        payload = InputValidator.CONTROL_CHARS_PATTERN.sub('', payload)
        payload = payload.strip()

        if len(payload) > max_length:
            payload = payload[:max_length].rstrip()

        return payload

    @staticmethod
    def collapse_whitespace(text: str) -> str:
        return InputValidator.WHITESPACE_PATTERN.sub(' ', text or '').strip()

    @staticmethod
    def sanitize_tool_argument(param: str, max_length: int = 500) -> str:
        if not param:
            return ""

        param = str(param).strip()

        if len(param) > max_length:
            param = param[:max_length]

        param = InputValidator.CONTROL_CHARS_PATTERN.sub('', param)

        return param
