from .llm import call_gemini
from .fingerprint import fingerprint
from .normalizer import InputNormalizer
from .cache import SessionRegistry, SessionVerdictCache
from .orchestration import CapabilitySet, ReasoningOrchestrator
from .validator import VerdictValidator
from .rendering import render_verdict_markdown
from .verification_service import VerificationService

__all__ = [
    "call_gemini",
    "fingerprint",
    "InputNormalizer",
    "SessionRegistry",
    "SessionVerdictCache",
    "CapabilitySet",
    "ReasoningOrchestrator",
    "VerdictValidator",
    "render_verdict_markdown",
    "VerificationService",
]
