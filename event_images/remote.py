"""Fetch an already-hosted event image so it can be re-processed.

Used when an organizer edits or duplicates an event whose cover image
lives on the API server rather than on local disk.
"""

import logging
from urllib.parse import unquote, urlparse

import requests

from event_images.source_image import (
    ImageFetchError,
    ImageFetchTimeoutError,
    ImageFile,
    ImageNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 30


def _name_from_url(url: str) -> str:
    """Last path segment of the URL, or 'image' when there is none."""
    segment = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]
    return unquote(segment) or "image"


def _check_status(response: requests.Response, url: str) -> None:
    """Map HTTP status codes to typed exceptions."""
    code = response.status_code
    if code == 404:
        raise ImageNotFoundError(f"Image not found (HTTP 404): {url}")
    if code >= 500:
        raise ImageFetchError(f"Server error (HTTP {code}): {response.text[:200]}")
    if code >= 400:
        raise ImageFetchError(f"Client error (HTTP {code}): {response.text[:200]}")


def fetch_image_file(url: str, timeout: int = DEFAULT_FETCH_TIMEOUT) -> ImageFile:
    """Download url and wrap the body as an ImageFile.

    The MIME type comes from Content-Type with parameters stripped. The
    result is not validated; run validate_image_file on it as for any upload.

    Raises:
        ImageNotFoundError: On 404.
        ImageFetchTimeoutError: If the request times out.
        ImageFetchError: On connection failures and other HTTP errors.
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise ImageFetchTimeoutError(f"Request timed out after {timeout}s: {url}") from exc
    except requests.exceptions.RequestException as exc:
        raise ImageFetchError(f"Connection failed: {exc}") from exc

    _check_status(response, url)

    content_type = response.headers.get("Content-Type", "")
    mime_type = content_type.split(";", 1)[0].strip()
    image_file = ImageFile(
        name=_name_from_url(url), mime_type=mime_type, data=response.content
    )
    logger.info(
        "Fetched %s (%s, %d bytes)", url, mime_type or "unknown type", image_file.size
    )
    return image_file
