import hashlib
import re

_WHITESPACE = re.compile(r"\s+")

def fingerprint(canonical_text: str) -> str:
    """Content identity of a canonical text, used only as a verdict cache key."""
    folded = _WHITESPACE.sub(" ", (canonical_text or "").lower()).strip()
    return hashlib.sha256(folded.encode("utf-8")).hexdigest()
