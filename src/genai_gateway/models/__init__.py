"""
Gateway data models.
"""

from .request import (
    Content,
    GenerateContentRequest,
    GenerationConfig,
    ImagenParameters,
    ImagenRequest,
    InlineData,
    Part,
    SafetySetting,
)
from .response import (
    APIError,
    Candidate,
    GenerateContentResponse,
    ImageResult,
    PromptFeedback,
    TextResult,
)

__all__ = [
    "Content",
    "GenerateContentRequest",
    "GenerationConfig",
    "ImagenParameters",
    "ImagenRequest",
    "InlineData",
    "Part",
    "SafetySetting",
    "APIError",
    "Candidate",
    "GenerateContentResponse",
    "ImageResult",
    "PromptFeedback",
    "TextResult",
]
