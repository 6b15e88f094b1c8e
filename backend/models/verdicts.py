from datetime import datetime, timezone
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

class Classification(str, Enum):
    REAL = "real"
    FAKE = "fake"
    MIXED = "mixed"
    UNVERIFIED = "unverified"

class ClaimLabel(str, Enum):
    TRUE = "TRUE"
    FALSE = "FALSE"
    UNVERIFIED = "UNVERIFIED"

class ClaimEvaluation(BaseModel):
    claim_text: str
    label: ClaimLabel
    rationale: str = ""

class SourceCitation(BaseModel):
    name: str
    url: str
    publication_date: Optional[str] = None

class Verdict(BaseModel):
    """Validated verdict for one canonical text."""
    classification: Classification
    confidence_percent: int = Field(..., ge=0, le=100)
    claims: List[ClaimEvaluation]
    sources: List[SourceCitation] = []
    cybersecurity_tips: List[str] = []
    user_instruction_result: Optional[str] = None
    summary: str = ""
    analysis: str = ""
    capability_notices: List[str] = []

class VerificationResponse(BaseModel):
    """Complete response from the analysis endpoints."""
    session_id: Optional[str] = None
    fingerprint: str
    cached: bool
    modality: str
    resolved_from_url: bool
    source_url: Optional[str] = None
    verdict: Verdict
    rendered: str

@dataclass
class CacheEntry:
    fingerprint: str
    verdict: Verdict
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
