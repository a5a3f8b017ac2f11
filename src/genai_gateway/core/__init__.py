"""
Core gateway abstraction components.
"""

from .interface import AbstractBackend, BackendKind, Capability, ExtractMode, ImageStyle
from .registry import CAPABILITY_TABLE, backends_for, capabilities_of, supports
from .config import GatewayConfig, TimeoutBudgets, load_config
from .errors import (
    ErrorKind,
    GatewayError,
    GatewayConstructionError,
    GatewayCapabilityUnavailableError,
    GatewayTimeoutError,
    GatewayUpstreamRejectedError,
    GatewayNoAnswerError,
    GatewayTransportError,
    GatewayAuthenticationError,
    GatewayRateLimitError,
)

__all__ = [
    "AbstractBackend",
    "BackendKind",
    "Capability",
    "ExtractMode",
    "ImageStyle",
    "CAPABILITY_TABLE",
    "backends_for",
    "capabilities_of",
    "supports",
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
    "GatewayAuthenticationError",
    "GatewayRateLimitError",
]
