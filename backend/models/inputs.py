from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

class Modality(str, Enum):
    TEXT = "text"
    URL = "url"
    IMAGE_TEXT = "image_text"
    AUDIO_TEXT = "audio_text"

class AnalysisRequest(BaseModel):
    """Request body for /api/v1/analyze."""
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "payload": "The sky is green and grass is purple.",
                "modality": "text",
                "session_id": "conversation-42"
            }
        },
    )

    payload: str = Field(..., max_length=20000)
    modality: Modality = Modality.TEXT
    session_id: Optional[str] = Field(default=None, max_length=128)

    @field_validator("modality", mode="before")
    @classmethod
    def lowercase_modality(cls, v):
        return v.lower() if isinstance(v, str) else v

class NormalizedInput(BaseModel):
    """The single text blob handed to the reasoning engine, plus its provenance."""
    model_config = ConfigDict(frozen=True)

    canonical_text: str = Field(..., min_length=1)
    source_modality: Modality
    resolved_from_url: bool = False
    source_url: Optional[str] = None
    page_title: Optional[str] = None
