"""
Google Vertex AI predict adapter.

Provides text generation and Imagen image generation through the generic
Vertex AI ``:predict`` endpoint. It is the only backend that can generate
images.
"""

import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import GatewayConfig
from ..core.errors import (
    GatewayAuthenticationError,
    GatewayNoAnswerError,
    GatewayTransportError,
    GatewayUpstreamRejectedError,
)
from ..core.interface import AbstractBackend, BackendKind, ImageStyle
from ..models.request import ImagenRequest
from .. import prompts
from .http_utils import check_response_errors, decode_json, post_json

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

# Field path walked to find the answer in a text prediction
TEXT_PATH = ("candidates", "content", "parts", "text")


class LegacyPredictAdapter(AbstractBackend):
    """
    Vertex AI predict adapter.

    Authentication via Google Cloud credentials or service account. The
    predictions come back as generic structured values, so the answer is
    found by walking a fixed field path; every missing level is reported
    under its own name.
    """

    def __init__(
        self,
        config: GatewayConfig,
        name: str = "vertex-predict",
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Vertex AI predict adapter.

        Args:
            config: Gateway configuration (project, location, credentials, models)
            name: Unique identifier for this backend instance
            access_token: Pre-obtained access token (optional)
            transport: Optional httpx transport, used by tests
        """
        self._name = name
        self._config = config
        self._project_id = config.project_id
        self._location = config.location
        self._credentials_path = config.credentials_path
        self._access_token = access_token
        self._transport = transport
        self._credentials: Any = None
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> BackendKind:
        return BackendKind.LEGACY_PREDICT

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def _load_credentials(self) -> Any:
        """Resolve service account or application default credentials."""
        from google.auth import default
        from google.auth.transport.requests import Request

        if self._credentials_path:
            from google.oauth2 import service_account
            credentials = service_account.Credentials.from_service_account_file(
                self._credentials_path, scopes=SCOPES
            )
        else:
            credentials, project = default(scopes=SCOPES)
            if not self._project_id:
                self._project_id = project

        credentials.refresh(Request())
        return credentials

    async def _get_access_token(self) -> str:
        """Get access token from credentials or use provided token."""
        if self._access_token:
            return self._access_token

        if self._credentials is None:
            raise GatewayAuthenticationError("Adapter is not connected", gateway=self._name)

        if not self._credentials.valid:
            from google.auth.transport.requests import Request
            from google.auth.exceptions import GoogleAuthError

            try:
                await asyncio.to_thread(self._credentials.refresh, Request())
            except GoogleAuthError as e:
                raise GatewayAuthenticationError(f"Token refresh failed: {e}", gateway=self._name) from e

        return self._credentials.token

    def _get_base_url(self) -> str:
        """Get Vertex AI API base URL."""
        return f"https://{self._location}-aiplatform.googleapis.com/v1"

    def _get_model_endpoint(self, model_id: str) -> str:
        """Get full model endpoint URL."""
        return (
            f"{self._get_base_url()}/projects/{self._project_id}/"
            f"locations/{self._location}/publishers/google/models/{model_id}"
        )

    async def connect(self) -> None:
        """Resolve credentials and open the HTTP client."""
        if self._client is not None:
            return

        if not self._access_token:
            self._credentials = await asyncio.to_thread(self._load_credentials)

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeouts.generate_image),
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )
        logger.info(
            f"Connected to Vertex AI predict ({self._project_id}/{self._location})"
        )

    async def close(self) -> None:
        """Close connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Vertex AI predict")

    async def _predict(self, model_id: str, body: Dict[str, Any]) -> List[Any]:
        """Call :predict and return the predictions list."""
        if self._client is None:
            raise GatewayTransportError("Adapter is not connected", gateway=self._name)

        token = await self._get_access_token()
        response = await post_json(
            self._client,
            f"{self._get_model_endpoint(model_id)}:predict",
            body,
            self._name,
            headers={"Authorization": f"Bearer {token}"},
        )
        check_response_errors(response, self._name)

        data = decode_json(response, self._name)
        predictions = data.get("predictions")
        if not predictions:
            raise GatewayNoAnswerError("No predictions in response", gateway=self._name, stage="predictions")
        return predictions

    def _extract_text(self, prediction: Any) -> str:
        """Walk candidates[0].content.parts[0].text."""
        node = prediction
        for stage in TEXT_PATH:
            if not isinstance(node, dict) or stage not in node:
                raise GatewayNoAnswerError(
                    f"Response is missing '{stage}'", gateway=self._name, stage=stage
                )
            node = node[stage]
            if isinstance(node, list):
                if not node:
                    raise GatewayNoAnswerError(
                        f"Response has empty '{stage}'", gateway=self._name, stage=stage
                    )
                node = node[0]

        if not isinstance(node, str):
            raise GatewayNoAnswerError("Response text is not a string", gateway=self._name, stage="text")
        return node.strip()

    async def ask(self, question: str, user_id: str) -> str:
        request = prompts.text_request(prompts.ask_prompt(self._config, question, user_id))
        predictions = await self._predict(
            self._config.text_model, {"instances": [request.to_wire()]}
        )
        return self._extract_text(predictions[0])

    async def generate_image(
        self,
        prompt: str,
        user_id: str,
        style: Optional[ImageStyle] = None,
    ) -> bytes:
        request = ImagenRequest(prompt=prompts.image_prompt(prompt, style))
        logger.debug(f"Generating image for user {user_id}")
        predictions = await self._predict(self._config.image_model, request.to_wire())

        prediction = predictions[0]
        if not isinstance(prediction, dict):
            raise GatewayNoAnswerError("Malformed prediction", gateway=self._name, stage="predictions")

        if prediction.get("raiFilteredReason"):
            raise GatewayUpstreamRejectedError(
                f"Image blocked: {prediction['raiFilteredReason']}",
                gateway=self._name,
            )

        encoded = prediction.get("bytesBase64Encoded")
        if not encoded:
            raise GatewayNoAnswerError(
                "Response is missing 'bytesBase64Encoded'",
                gateway=self._name,
                stage="bytesBase64Encoded",
            )

        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise GatewayTransportError(f"Invalid image data: {e}", gateway=self._name) from e
