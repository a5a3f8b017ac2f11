"""
HTTP helpers shared by the httpx-based adapters.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import (
    GatewayAuthenticationError,
    GatewayError,
    GatewayRateLimitError,
    GatewayTimeoutError,
    GatewayTransportError,
    GatewayUpstreamRejectedError,
)

logger = logging.getLogger(__name__)


def decode_json(response: httpx.Response, gateway: str) -> Dict[str, Any]:
    """Decode a JSON object body or raise a transport error."""
    try:
        data = response.json()
    except ValueError as e:
        raise GatewayTransportError(
            f"Invalid JSON in response (HTTP {response.status_code}): {e}",
            gateway=gateway,
        ) from e
    if not isinstance(data, dict):
        raise GatewayTransportError(
            f"Expected a JSON object, got {type(data).__name__}",
            gateway=gateway,
        )
    return data


def error_for_status(
    status_code: int,
    message: str,
    gateway: str,
    retry_after: Optional[str] = None,
    status: Optional[str] = None,
) -> GatewayError:
    """Map an HTTP status to the matching gateway error."""
    if status_code in (401, 403):
        return GatewayAuthenticationError(
            f"Authentication failed: {message}",
            gateway=gateway,
        )

    if status_code == 429:
        return GatewayRateLimitError(
            f"Rate limit exceeded: {message}",
            gateway=gateway,
            retry_after=float(retry_after) if retry_after else None,
        )

    if 400 <= status_code < 500:
        return GatewayUpstreamRejectedError(message, gateway=gateway, status=status)

    return GatewayTransportError(
        f"Request failed: {status_code} - {message}",
        gateway=gateway,
    )


def check_response_errors(response: httpx.Response, gateway: str) -> None:
    """Check response for errors and raise appropriate exceptions."""
    if response.status_code == 200:
        return

    message = response.text
    status = None
    try:
        error_data = response.json().get("error") or {}
        message = error_data.get("message", message)
        status = error_data.get("status")
    except (ValueError, AttributeError):
        pass

    logger.warning(f"{gateway} returned HTTP {response.status_code}: {message}")
    raise error_for_status(
        response.status_code,
        message,
        gateway,
        retry_after=response.headers.get("Retry-After"),
        status=status,
    )


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: Dict[str, Any],
    gateway: str,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """POST a JSON body, translating httpx failures into gateway errors."""
    try:
        return await client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException as e:
        raise GatewayTimeoutError(f"Request timed out: {e}", gateway=gateway) from e
    except httpx.HTTPError as e:
        raise GatewayTransportError(str(e) or e.__class__.__name__, gateway=gateway) from e
