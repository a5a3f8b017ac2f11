"""
Response models.

Provider reply shapes for the keyed REST endpoint, plus the normalized
results the gateway hands back to callers.
"""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from ..core.interface import BackendKind
from .request import Content


class APIError(BaseModel):
    """Top-level error object. May accompany an HTTP 200."""
    code: Optional[int] = None
    message: str = ""
    status: Optional[str] = None


class Candidate(BaseModel):
    """A single generated candidate."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")

    def first_text(self) -> Optional[str]:
        """First text fragment of this candidate, if any."""
        if self.content is None:
            return None
        for part in self.content.parts:
            if part.text:
                return part.text
        return None


class PromptFeedback(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block_reason: Optional[str] = Field(default=None, alias="blockReason")


class GenerateContentResponse(BaseModel):
    """generateContent response body."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    candidates: List[Candidate] = Field(default_factory=list)
    prompt_feedback: Optional[PromptFeedback] = Field(default=None, alias="promptFeedback")
    error: Optional[APIError] = None


class TextResult(BaseModel):
    """Successful text answer."""
    text: str
    backend: BackendKind


class ImageResult(BaseModel):
    """Successful image generation."""
    data: bytes
    mime_type: str = "image/png"
    backend: BackendKind

    @property
    def size(self) -> int:
        return len(self.data)
