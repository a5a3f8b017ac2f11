"""
Google AI Studio (Gemini API) adapter.

Talks to the key-authenticated generativelanguage REST endpoint. The adapter
is stateless: each call opens a short-lived HTTP client, so there is nothing
to close.
"""

import logging
from typing import Optional, Union

import httpx

from ..core.config import GatewayConfig
from ..core.errors import (
    GatewayAuthenticationError,
    GatewayNoAnswerError,
    GatewayTransportError,
    GatewayUpstreamRejectedError,
)
from ..core.interface import AbstractBackend, BackendKind, ExtractMode
from ..models.request import GenerateContentRequest
from ..models.response import GenerateContentResponse
from .. import prompts
from .http_utils import decode_json, error_for_status, post_json

logger = logging.getLogger(__name__)


class KeyedRESTAdapter(AbstractBackend):
    """
    Gemini API adapter authenticated by API key.

    The provider reports logical failures as a top-level "error" object,
    sometimes with HTTP 200, so the body is always inspected for an error
    before candidates are read.
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-2.5-pro"

    def __init__(
        self,
        config: GatewayConfig,
        name: str = "studio-rest",
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the keyed REST adapter.

        Args:
            config: Gateway configuration (api_key and text_model are used)
            name: Unique name for this adapter instance
            base_url: API URL (defaults to the public Gemini API)
            transport: Optional httpx transport, used by tests
        """
        self._name = name
        self._config = config
        self._api_key = config.api_key
        self._model = config.text_model or self.DEFAULT_MODEL
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._transport = transport

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> BackendKind:
        return BackendKind.KEYED_REST

    @property
    def model(self) -> str:
        return self._model

    async def connect(self) -> None:
        """Validate credentials; no connection is held."""
        if not self._api_key:
            raise GatewayAuthenticationError("API key required", gateway=self._name)
        logger.info(f"Gemini API adapter ready (model: {self._model})")

    def _endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    async def _generate(self, request: GenerateContentRequest, timeout: float) -> str:
        """Send one generateContent request and return the first text fragment."""
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key or "",
        }

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=self._transport,
        ) as client:
            response = await post_json(
                client,
                self._endpoint(),
                request.to_wire(),
                self._name,
                headers=headers,
            )

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> str:
        try:
            data = decode_json(response, self._name)
        except GatewayTransportError:
            if response.status_code == 200:
                raise
            # Non-JSON error page: the status alone decides
            raise error_for_status(
                response.status_code,
                response.text,
                self._name,
                retry_after=response.headers.get("Retry-After"),
            ) from None

        reply = GenerateContentResponse.model_validate(data)

        # Error object first: HTTP 200 does not mean success here
        if reply.error is not None:
            message = reply.error.message or "unknown API error"
            logger.warning(
                f"Gemini API error (HTTP {response.status_code}, "
                f"code {reply.error.code}): {message}"
            )
            if response.status_code == 200:
                raise GatewayUpstreamRejectedError(
                    message, gateway=self._name, status=reply.error.status
                )
            raise error_for_status(
                response.status_code,
                message,
                self._name,
                retry_after=response.headers.get("Retry-After"),
                status=reply.error.status,
            )

        if response.status_code != 200:
            raise error_for_status(response.status_code, response.text, self._name)

        if reply.prompt_feedback and reply.prompt_feedback.block_reason:
            raise GatewayUpstreamRejectedError(
                f"Prompt blocked: {reply.prompt_feedback.block_reason}",
                gateway=self._name,
                status=reply.prompt_feedback.block_reason,
            )

        if not reply.candidates:
            raise GatewayNoAnswerError("No candidates in response", gateway=self._name, stage="candidates")

        candidate = reply.candidates[0]
        if candidate.content is None or not candidate.content.parts:
            if candidate.finish_reason == "SAFETY":
                raise GatewayUpstreamRejectedError(
                    "Response blocked by safety filters",
                    gateway=self._name,
                    status=candidate.finish_reason,
                )
            raise GatewayNoAnswerError("Candidate has no content", gateway=self._name, stage="parts")

        text = candidate.first_text()
        if text is None:
            raise GatewayNoAnswerError("Candidate has no text part", gateway=self._name, stage="text")
        return text

    async def ask(self, question: str, user_id: str) -> str:
        request = prompts.text_request(prompts.ask_prompt(self._config, question, user_id))
        return await self._generate(request, self._config.timeouts.ask)

    async def extract(
        self,
        image: bytes,
        mime_type: str,
        mode: Union[ExtractMode, str],
        user_id: str,
    ) -> str:
        request = prompts.image_request(
            prompts.extract_prompt(self._config, mode, user_id), image, mime_type
        )
        text = await self._generate(request, self._config.timeouts.extract)
        return text.strip()

    async def ask_about_image(
        self,
        question: str,
        image: bytes,
        mime_type: str,
        user_id: str,
    ) -> str:
        request = prompts.image_request(
            prompts.image_question_prompt(self._config, question),
            image,
            mime_type,
            generation=prompts.TEXT_GENERATION,
        )
        return await self._generate(request, self._config.timeouts.ask)
