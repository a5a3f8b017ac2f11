"""
Generative AI Gateway

One contract over several Google generative AI backends:
- Text questions, image text extraction ("OCR") and image generation
- Capability-based backend selection with graceful degradation
- Per-call timeout budgets and a closed set of normalized errors
- Explicit shutdown of backends that hold network resources
"""

from .core.interface import AbstractBackend, BackendKind, Capability, ExtractMode, ImageStyle
from .core.config import GatewayConfig, TimeoutBudgets, load_config
from .core.errors import (
    ErrorKind,
    GatewayError,
    GatewayConstructionError,
    GatewayCapabilityUnavailableError,
    GatewayTimeoutError,
    GatewayUpstreamRejectedError,
    GatewayNoAnswerError,
    GatewayTransportError,
)
from .bundle import ServiceBundle
from .factory import GatewayFactory, create_services, eligible_backends
from .gateway import Gateway
from .models.response import TextResult, ImageResult

__all__ = [
    "AbstractBackend",
    "BackendKind",
    "Capability",
    "ExtractMode",
    "ImageStyle",
    "GatewayConfig",
    "TimeoutBudgets",
    "load_config",
    "ErrorKind",
    "GatewayError",
    "GatewayConstructionError",
    "GatewayCapabilityUnavailableError",
    "GatewayTimeoutError",
    "GatewayUpstreamRejectedError",
    "GatewayNoAnswerError",
    "GatewayTransportError",
    "ServiceBundle",
    "GatewayFactory",
    "create_services",
    "eligible_backends",
    "Gateway",
    "TextResult",
    "ImageResult",
]
