"""
Abstract backend interface definition.

Defines the contract that all backend adapters must implement. Every adapter
exposes the same coroutine signatures; operations an adapter does not
support raise GatewayCapabilityUnavailableError from this base class.
"""

from abc import ABC, abstractmethod
from typing import FrozenSet, Optional, Union
from enum import Enum

from .errors import GatewayCapabilityUnavailableError


class BackendKind(str, Enum):
    """Wire protocol spoken by an adapter."""
    LEGACY_PREDICT = "legacy_predict"
    CHAT_SDK = "chat_sdk"
    KEYED_REST = "keyed_rest"


class Capability(str, Enum):
    """Operations a backend may support."""
    TEXT_ASK = "text_ask"
    IMAGE_EXTRACT = "image_extract"
    IMAGE_GENERATE = "image_generate"


class ExtractMode(str, Enum):
    """What to do with the text found in an image."""
    TEXT = "text"
    TRANSLATE = "translate"
    SUMMARIZE = "summarize"
    ANALYZE = "analyze"

    @classmethod
    def parse(cls, value: Union["ExtractMode", str, None]) -> Optional["ExtractMode"]:
        """Return the matching mode, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


class ImageStyle(str, Enum):
    """Optional style applied to an image generation prompt."""
    ARTISTIC = "artistic"
    PHOTOREALISTIC = "photorealistic"
    ANIME = "anime"
    GAME = "game"
    SKETCH = "sketch"


class AbstractBackend(ABC):
    """
    Abstract base class for generative AI backend adapters.

    An adapter owns its connection handle exclusively, from a successful
    connect() until close().
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique name of this backend instance.

        Returns:
            Backend name (e.g., "vertex-gemini", "studio-rest")
        """
        pass

    @property
    @abstractmethod
    def kind(self) -> BackendKind:
        """
        Protocol this adapter speaks.

        Returns:
            BackendKind value
        """
        pass

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        """
        Set of capabilities this backend supports, as recorded in the
        capability table.
        """
        from .registry import capabilities_of
        return capabilities_of(self.kind)

    @property
    def owns_resources(self) -> bool:
        """True if close() releases a network handle."""
        from .registry import owns_resources
        return owns_resources(self.kind)

    @property
    def is_connected(self) -> bool:
        return True

    @abstractmethod
    async def connect(self) -> None:
        """
        Acquire the backend handle.

        Called once by the factory. Failures propagate so the factory can
        record them.
        """
        pass

    async def close(self) -> None:
        """
        Release the backend handle.

        Stateless adapters have nothing to release.
        """
        return None

    async def ask(self, question: str, user_id: str) -> str:
        """Answer a single-turn text question."""
        raise self._unsupported(Capability.TEXT_ASK)

    async def extract(
        self,
        image: bytes,
        mime_type: str,
        mode: Union[ExtractMode, str],
        user_id: str,
    ) -> str:
        """Read, translate, summarize or analyze the text in an image."""
        raise self._unsupported(Capability.IMAGE_EXTRACT)

    async def ask_about_image(
        self,
        question: str,
        image: bytes,
        mime_type: str,
        user_id: str,
    ) -> str:
        """Answer a question about an attached image."""
        raise self._unsupported(Capability.IMAGE_EXTRACT)

    async def generate_image(
        self,
        prompt: str,
        user_id: str,
        style: Optional[ImageStyle] = None,
    ) -> bytes:
        """Generate an image and return its raw bytes."""
        raise self._unsupported(Capability.IMAGE_GENERATE)

    def supports(self, capability: Capability) -> bool:
        """
        Check if backend supports a capability.

        Args:
            capability: Capability to check

        Returns:
            True if supported
        """
        return capability in self.capabilities

    def _unsupported(self, capability: Capability) -> GatewayCapabilityUnavailableError:
        return GatewayCapabilityUnavailableError(
            f"{self.kind.value} does not support {capability.value}",
            gateway=self.name,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, kind={self.kind.value!r})"
