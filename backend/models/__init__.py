from .inputs import Modality, AnalysisRequest, NormalizedInput
from .verdicts import (
    Classification,
    ClaimLabel,
    ClaimEvaluation,
    SourceCitation,
    Verdict,
    VerificationResponse,
    CacheEntry,
)
from .api_responses import (
    CapabilityName,
    SearchSnippet,
    FetchedPage,
    ToolCallRecord,
    OrchestrationResult,
)

__all__ = [
    "Modality",
    "AnalysisRequest",
    "NormalizedInput",

    "Classification",
    "ClaimLabel",
    "ClaimEvaluation",
    "SourceCitation",
    "Verdict",
    "VerificationResponse",
    "CacheEntry",

    "CapabilityName",
    "SearchSnippet",
    "FetchedPage",
    "ToolCallRecord",
    "OrchestrationResult",
]
