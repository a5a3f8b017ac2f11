"""
Gateway facade.

The single entry point callers use. Picks a backend per operation at call
time, bounds every call by its timeout budget, and normalizes failures into
the closed GatewayError set.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional, Union

from .bundle import ServiceBundle
from .core.config import GatewayConfig
from .core.errors import (
    GatewayCapabilityUnavailableError,
    GatewayError,
    GatewayTimeoutError,
    GatewayTransportError,
)
from .core.interface import (
    AbstractBackend,
    BackendKind,
    Capability,
    ExtractMode,
    ImageStyle,
)
from .core.registry import supports
from .factory import AdapterBuilder, GatewayFactory
from .models.response import ImageResult, TextResult

logger = logging.getLogger(__name__)


class Gateway:
    """
    Routes ask / extract / generate_image calls to the bundled backends.

    Routing policy:
        ask             CHAT_SDK, else KEYED_REST, else LEGACY_PREDICT
        extract         CHAT_SDK or KEYED_REST, chosen by the caller; when the
                        caller does not choose, prefer_rest decides
        generate_image  LEGACY_PREDICT only, never falls back
    """

    def __init__(self, services: ServiceBundle, config: Optional[GatewayConfig] = None):
        self._services = services
        self._config = config or GatewayConfig()

    @classmethod
    async def create(
        cls,
        config: GatewayConfig,
        builders: Optional[Dict[BackendKind, AdapterBuilder]] = None,
    ) -> "Gateway":
        """Build the service bundle and wrap it in a gateway."""
        services = await GatewayFactory(config, builders).create_services()
        return cls(services, config)

    @property
    def services(self) -> ServiceBundle:
        return self._services

    def primary_backend(self) -> Optional[BackendKind]:
        """Backend advertised as primary (display only)."""
        return self._services.primary_backend()

    def select_backend(
        self,
        capability: Capability,
        backend: Optional[Union[BackendKind, str]] = None,
    ) -> AbstractBackend:
        """
        Pick the adapter that serves a capability.

        Args:
            capability: Operation being requested
            backend: Explicit backend choice (optional)

        Raises:
            GatewayCapabilityUnavailableError: If no bundled backend can serve it
        """
        if backend is not None:
            try:
                kind = BackendKind(backend)
            except ValueError:
                raise GatewayCapabilityUnavailableError(f"Unknown backend: {backend}") from None
            if not supports(kind, capability):
                raise GatewayCapabilityUnavailableError(
                    f"{kind.value} does not support {capability.value}", gateway=kind.value
                )
            adapter = self._services.get(kind)
            if adapter is None:
                raise GatewayCapabilityUnavailableError(
                    f"{kind.value} is not configured", gateway=kind.value
                )
            return adapter

        if capability is Capability.TEXT_ASK:
            order = (BackendKind.CHAT_SDK, BackendKind.KEYED_REST, BackendKind.LEGACY_PREDICT)
        elif capability is Capability.IMAGE_EXTRACT:
            if self._config.prefer_rest:
                order = (BackendKind.KEYED_REST, BackendKind.CHAT_SDK)
            else:
                order = (BackendKind.CHAT_SDK, BackendKind.KEYED_REST)
        elif capability is Capability.IMAGE_GENERATE:
            order = (BackendKind.LEGACY_PREDICT,)
        else:
            order = ()

        for kind in order:
            adapter = self._services.get(kind)
            if adapter is not None:
                return adapter

        raise GatewayCapabilityUnavailableError(
            f"No configured backend supports {capability.value}"
        )

    async def _invoke(
        self,
        adapter: AbstractBackend,
        operation: str,
        call: Awaitable[Any],
        budget: float,
        timeout: Optional[float],
    ) -> Any:
        """Run one adapter call within its budget and normalize failures."""
        limit = budget if timeout is None else min(budget, timeout)
        try:
            return await asyncio.wait_for(call, timeout=limit)
        except asyncio.TimeoutError as e:
            logger.warning(f"{operation} on {adapter.name} exceeded {limit:g}s")
            raise GatewayTimeoutError(
                f"{operation} exceeded its {limit:g}s budget",
                gateway=adapter.name,
                budget=limit,
            ) from e
        except GatewayError as e:
            if e.gateway is None:
                e.gateway = adapter.name
            logger.warning(f"{operation} on {adapter.name} failed ({e.kind.value}): {e.message}")
            raise
        except Exception as e:
            logger.error(f"{operation} on {adapter.name} failed unexpectedly: {e!r}")
            raise GatewayTransportError(
                f"{operation} failed: {e}", gateway=adapter.name
            ) from e

    async def ask(
        self,
        question: str,
        user_id: str,
        timeout: Optional[float] = None,
    ) -> TextResult:
        """
        Answer a text question.

        Args:
            question: User question
            user_id: Caller's user id, included in the prompt
            timeout: Caller deadline in seconds (optional). It can only shorten
                the ask budget. Pass the time left on an enclosing deadline here
                rather than wrapping the call in asyncio.wait_for, so that
                expiry is reported as GatewayTimeoutError.

        Returns:
            Answer text and the backend that produced it
        """
        adapter = self.select_backend(Capability.TEXT_ASK)
        text = await self._invoke(
            adapter,
            "ask",
            adapter.ask(question, user_id),
            self._config.timeouts.ask,
            timeout,
        )
        return TextResult(text=text, backend=adapter.kind)

    async def extract(
        self,
        image: bytes,
        mime_type: str,
        mode: Union[ExtractMode, str],
        user_id: str,
        backend: Optional[Union[BackendKind, str]] = None,
        timeout: Optional[float] = None,
    ) -> TextResult:
        """
        Extract, translate, summarize or analyze the text in an image.

        The image is trusted to be pre-validated (size and MIME type).

        Args:
            image: Raw image bytes
            mime_type: Declared MIME type of the image
            mode: Extraction mode
            user_id: Caller's user id
            backend: CHAT_SDK or KEYED_REST to force a backend (optional)
            timeout: Caller deadline in seconds (optional), as for ask()
        """
        adapter = self.select_backend(Capability.IMAGE_EXTRACT, backend)
        text = await self._invoke(
            adapter,
            "extract",
            adapter.extract(image, mime_type, mode, user_id),
            self._config.timeouts.extract,
            timeout,
        )
        return TextResult(text=text, backend=adapter.kind)

    async def ask_about_image(
        self,
        question: str,
        image: bytes,
        mime_type: str,
        user_id: str,
        backend: Optional[Union[BackendKind, str]] = None,
        timeout: Optional[float] = None,
    ) -> TextResult:
        """
        Answer a question about an attached image.

        Bounded by the ask budget, like a plain question.
        """
        adapter = self.select_backend(Capability.IMAGE_EXTRACT, backend)
        text = await self._invoke(
            adapter,
            "ask_about_image",
            adapter.ask_about_image(question, image, mime_type, user_id),
            self._config.timeouts.ask,
            timeout,
        )
        return TextResult(text=text, backend=adapter.kind)

    async def generate_image(
        self,
        prompt: str,
        user_id: str,
        style: Optional[Union[ImageStyle, str]] = None,
        timeout: Optional[float] = None,
    ) -> ImageResult:
        """
        Generate an image from a text prompt.

        Raises:
            GatewayCapabilityUnavailableError: If the predict backend is absent
        """
        adapter = self.select_backend(Capability.IMAGE_GENERATE)
        data = await self._invoke(
            adapter,
            "generate_image",
            adapter.generate_image(prompt, user_id, style),
            self._config.timeouts.generate_image,
            timeout,
        )
        return ImageResult(data=data, backend=adapter.kind)

    async def close(self) -> None:
        """Release backend resources. Call once, after in-flight calls finish."""
        await self._services.close()

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
