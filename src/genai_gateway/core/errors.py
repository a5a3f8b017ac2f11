"""
Gateway error types.

Every failure that leaves the gateway is one of a small closed set, so
callers can branch on the exception class regardless of which backend
served the request.
"""

from enum import Enum
from typing import Dict, Optional


class ErrorKind(str, Enum):
    """Tag carried by every gateway error."""
    CONSTRUCTION_FAILURE = "construction_failure"
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    TIMEOUT = "timeout"
    UPSTREAM_REJECTED = "upstream_rejected"
    NO_ANSWER = "no_answer"
    TRANSPORT_FAILURE = "transport_failure"


class GatewayError(Exception):
    """Base exception for gateway errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str, gateway: str = None):
        self.message = message
        self.gateway = gateway
        super().__init__(message)

    def __str__(self) -> str:
        if self.gateway:
            return f"[{self.gateway}] {self.message}"
        return self.message

    @property
    def retryable(self) -> bool:
        """Whether the caller may safely retry the same call."""
        return self.kind in (
            ErrorKind.TIMEOUT,
            ErrorKind.NO_ANSWER,
            ErrorKind.TRANSPORT_FAILURE,
        )


class GatewayConstructionError(GatewayError):
    """Raised when no backend could be initialized."""

    kind = ErrorKind.CONSTRUCTION_FAILURE

    def __init__(
        self,
        message: str,
        gateway: str = None,
        failures: Optional[Dict[str, Exception]] = None,
    ):
        super().__init__(message, gateway)
        self.failures = failures or {}


class GatewayCapabilityUnavailableError(GatewayError):
    """Raised when no configured backend supports the requested operation."""

    kind = ErrorKind.CAPABILITY_UNAVAILABLE


class GatewayTimeoutError(GatewayError):
    """Raised when a call exceeds its timeout budget."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, gateway: str = None, budget: float = None):
        super().__init__(message, gateway)
        self.budget = budget


class GatewayUpstreamRejectedError(GatewayError):
    """Raised when the provider refuses the request (safety filter, bad prompt)."""

    kind = ErrorKind.UPSTREAM_REJECTED

    def __init__(self, message: str, gateway: str = None, status: str = None):
        super().__init__(message, gateway)
        self.status = status


class GatewayNoAnswerError(GatewayError):
    """Raised when a well-formed response carries no usable content."""

    kind = ErrorKind.NO_ANSWER

    def __init__(self, message: str, gateway: str = None, stage: str = None):
        super().__init__(message, gateway)
        # Name of the response field that was missing, if known
        self.stage = stage


class GatewayTransportError(GatewayError):
    """Raised on network, serialization or authentication failures."""

    kind = ErrorKind.TRANSPORT_FAILURE


class GatewayAuthenticationError(GatewayTransportError):
    """Raised when authentication fails."""
    pass


class GatewayRateLimitError(GatewayTransportError):
    """Raised when rate limit is exceeded."""

    def __init__(self, message: str, gateway: str = None, retry_after: float = None):
        super().__init__(message, gateway)
        self.retry_after = retry_after
