"""
Image download and validation for callers feeding extract().

The gateway trusts its inputs; this is the caller-side check that enforces
the size cap and the MIME allow-list before an image reaches it.
"""

import logging
from typing import Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 20 * 1024 * 1024

SUPPORTED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/svg+xml",
)

USER_AGENT = "genai-gateway/1.0"


class ImageValidationError(ValueError):
    """Raised when a downloaded image is unusable."""
    pass


def supported_image_types() -> Tuple[str, ...]:
    """Human-readable list of accepted formats."""
    return ("JPEG", "JPG", "PNG", "GIF", "WebP", "BMP", "SVG")


def normalize_mime_type(content_type: Optional[str]) -> Optional[str]:
    """
    Return the allow-listed MIME type contained in a Content-Type header.

    Parameters such as ``; charset=...`` are ignored.
    """
    if not content_type:
        return None
    base = content_type.split(";", 1)[0].strip().lower()
    if base in SUPPORTED_MIME_TYPES:
        return base
    return None


def validate_image(data: bytes, content_type: Optional[str]) -> str:
    """
    Check size and type of an image.

    Returns:
        The normalized MIME type

    Raises:
        ImageValidationError: If the image is too large or of an unsupported type
    """
    mime_type = normalize_mime_type(content_type)
    if mime_type is None:
        raise ImageValidationError(f"Unsupported image type: {content_type or 'unknown'}")
    if len(data) > MAX_IMAGE_BYTES:
        raise ImageValidationError(
            f"Image is too large ({len(data)} bytes, max {MAX_IMAGE_BYTES})"
        )
    return mime_type


async def download_image(
    url: str,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[bytes, str]:
    """
    Download an image and validate it.

    Args:
        url: Image URL
        timeout: Request timeout in seconds
        transport: Optional httpx transport, used by tests

    Returns:
        (image bytes, MIME type)
    """
    async with httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    ) as client:
        async with client.stream("GET", url) as response:
            if response.status_code != 200:
                raise ImageValidationError(
                    f"Image download failed: HTTP {response.status_code}"
                )

            content_type = response.headers.get("Content-Type")
            if normalize_mime_type(content_type) is None:
                raise ImageValidationError(f"Unsupported image type: {content_type or 'unknown'}")

            declared = response.headers.get("Content-Length")
            if declared and declared.isdigit() and int(declared) > MAX_IMAGE_BYTES:
                raise ImageValidationError(
                    f"Image is too large ({declared} bytes, max {MAX_IMAGE_BYTES})"
                )

            chunks = bytearray()
            async for chunk in response.aiter_bytes():
                chunks.extend(chunk)
                if len(chunks) > MAX_IMAGE_BYTES:
                    raise ImageValidationError(
                        f"Image is too large (over {MAX_IMAGE_BYTES} bytes)"
                    )

    data = bytes(chunks)
    mime_type = validate_image(data, content_type)
    logger.debug(f"Downloaded {len(data)} bytes ({mime_type}) from {url}")
    return data, mime_type
