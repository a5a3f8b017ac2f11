"""
Vertex AI Gemini adapter using the google-genai SDK.

The preferred text backend. Supports plain questions, questions about an
attached image, and text extraction from images.
"""

import logging
from typing import Any, List, Optional, Union

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..core.config import GatewayConfig
from ..core.errors import (
    GatewayError,
    GatewayNoAnswerError,
    GatewayTransportError,
    GatewayUpstreamRejectedError,
)
from ..core.interface import AbstractBackend, BackendKind, ExtractMode
from ..models.request import GenerationConfig
from .. import prompts
from .http_utils import error_for_status

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

# Finish reasons that mean the provider withheld the answer
BLOCKED_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "RECITATION"}


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


class ChatSDKAdapter(AbstractBackend):
    """
    Gemini on Vertex AI via ``google.genai.Client(vertexai=True)``.

    The reply is a list of candidates, each holding an ordered list of
    parts; all text parts of the first candidate are concatenated.
    """

    def __init__(
        self,
        config: GatewayConfig,
        name: str = "vertex-gemini",
        client: Optional[Any] = None,
    ):
        """
        Initialize the SDK adapter.

        Args:
            config: Gateway configuration (project, location, credentials, text_model)
            name: Unique name for this adapter instance
            client: Pre-built genai client (optional)
        """
        self._name = name
        self._config = config
        self._model = config.text_model
        self._client = client

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> BackendKind:
        return BackendKind.CHAT_SDK

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the genai client."""
        if self._client is not None:
            return

        credentials = None
        if self._config.credentials_path:
            from google.oauth2 import service_account
            credentials = service_account.Credentials.from_service_account_file(
                self._config.credentials_path, scopes=SCOPES
            )

        self._client = genai.Client(
            vertexai=True,
            project=self._config.project_id,
            location=self._config.location,
            credentials=credentials,
        )
        logger.info(
            f"Connected to Vertex AI Gemini ({self._config.project_id}/"
            f"{self._config.location}, model: {self._model})"
        )

    async def close(self) -> None:
        """Close the SDK's HTTP clients."""
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.close()
        finally:
            await client.aio.aclose()
        logger.info("Disconnected from Vertex AI Gemini")

    def _config_for(self, generation: GenerationConfig) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=generation.temperature,
            top_p=generation.top_p,
            top_k=generation.top_k,
            max_output_tokens=generation.max_output_tokens,
            safety_settings=[
                types.SafetySetting(category=s.category, threshold=s.threshold)
                for s in prompts.SAFETY_SETTINGS
            ],
        )

    def _translate_api_error(self, error: genai_errors.APIError) -> GatewayError:
        message = getattr(error, "message", None) or str(error)
        code = getattr(error, "code", None) or 500
        return error_for_status(int(code), message, self._name, status=getattr(error, "status", None))

    async def _generate(self, parts: List[types.Part], generation: GenerationConfig) -> str:
        if self._client is None:
            raise GatewayTransportError("Adapter is not connected", gateway=self._name)

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=[types.Content(role="user", parts=parts)],
                config=self._config_for(generation),
            )
        except genai_errors.APIError as e:
            logger.warning(f"Vertex AI Gemini error: {e}")
            raise self._translate_api_error(e) from e

        return self._collect_text(response)

    def _collect_text(self, response: Any) -> str:
        """Concatenate every text part of the first candidate."""
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = _enum_name(getattr(feedback, "block_reason", None))
        if block_reason:
            raise GatewayUpstreamRejectedError(
                f"Prompt blocked: {block_reason}", gateway=self._name, status=block_reason
            )

        candidates = getattr(response, "candidates", None)
        if not candidates:
            raise GatewayNoAnswerError("No candidates in response", gateway=self._name, stage="candidates")

        candidate = candidates[0]
        finish_reason = _enum_name(getattr(candidate, "finish_reason", None))
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) if content is not None else None

        result = "".join(part.text for part in parts or [] if getattr(part, "text", None))

        if not result:
            if finish_reason in BLOCKED_FINISH_REASONS:
                raise GatewayUpstreamRejectedError(
                    f"Response blocked: {finish_reason}", gateway=self._name, status=finish_reason
                )
            stage = "parts" if not parts else "text"
            raise GatewayNoAnswerError("Candidate has no text", gateway=self._name, stage=stage)

        return result

    async def ask(self, question: str, user_id: str) -> str:
        prompt = prompts.ask_prompt(self._config, question, user_id)
        return await self._generate([types.Part.from_text(text=prompt)], prompts.TEXT_GENERATION)

    async def ask_about_image(
        self,
        question: str,
        image: bytes,
        mime_type: str,
        user_id: str,
    ) -> str:
        prompt = prompts.image_question_prompt(self._config, question)
        return await self._generate(
            [
                types.Part.from_text(text=prompt),
                types.Part.from_bytes(data=image, mime_type=mime_type),
            ],
            prompts.TEXT_GENERATION,
        )

    async def extract(
        self,
        image: bytes,
        mime_type: str,
        mode: Union[ExtractMode, str],
        user_id: str,
    ) -> str:
        prompt = prompts.extract_prompt(self._config, mode, user_id)
        text = await self._generate(
            [
                types.Part.from_text(text=prompt),
                types.Part.from_bytes(data=image, mime_type=mime_type),
            ],
            prompts.EXTRACT_GENERATION,
        )
        return text.strip()
