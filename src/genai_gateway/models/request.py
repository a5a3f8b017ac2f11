"""
Request models for the Gemini generateContent and Imagen predict endpoints.
"""

import base64
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class InlineData(BaseModel):
    """Binary payload attached to a part, base64 encoded on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(..., alias="mimeType")
    data: str

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "InlineData":
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))


class Part(BaseModel):
    """A text fragment or an inline binary attachment."""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    inline_data: Optional[InlineData] = Field(default=None, alias="inlineData")


class Content(BaseModel):
    """One conversational turn."""
    role: str = "user"
    parts: List[Part] = Field(default_factory=list)


class GenerationConfig(BaseModel):
    """Sampling parameters."""
    model_config = ConfigDict(populate_by_name=True)

    temperature: float
    top_k: int = Field(..., alias="topK")
    top_p: float = Field(..., alias="topP")
    max_output_tokens: int = Field(..., alias="maxOutputTokens")


class SafetySetting(BaseModel):
    """Block threshold for one harm category."""
    category: str
    threshold: str


class GenerateContentRequest(BaseModel):
    """
    generateContent request body.

    Shared by the keyed REST endpoint and the predict endpoint, which
    accepts the same structure as a single instance.
    """
    model_config = ConfigDict(populate_by_name=True)

    contents: List[Content]
    generation_config: Optional[GenerationConfig] = Field(default=None, alias="generationConfig")
    safety_settings: Optional[List[SafetySetting]] = Field(default=None, alias="safetySettings")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ImagenParameters(BaseModel):
    """Imagen predict parameters."""
    model_config = ConfigDict(populate_by_name=True)

    sample_count: int = Field(default=1, alias="sampleCount")
    aspect_ratio: str = Field(default="1:1", alias="aspectRatio")
    safety_filter_level: str = Field(default="block_some", alias="safetyFilterLevel")
    person_generation: str = Field(default="allow_adult", alias="personGeneration")
    add_watermark: bool = Field(default=False, alias="addWatermark")
    language: str = "ja"


class ImagenRequest(BaseModel):
    """Imagen predict request body."""
    prompt: str
    parameters: ImagenParameters = Field(default_factory=ImagenParameters)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "instances": [{"prompt": self.prompt}],
            "parameters": self.parameters.model_dump(by_alias=True),
        }
