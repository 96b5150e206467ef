"""Asynchronous resize/compress entry points.

Validate first (see validation.py); these coroutines assume a supported file.
Decode and encode run in worker threads so the caller's event loop stays
responsive. The decode is bounded by a timeout and the decoded bitmap is
released on every exit path.
"""

import asyncio
import logging
from typing import Optional

from event_images.image_utils import (
    EncodedImage,
    calculate_target_dimensions,
    render_to_size,
    search_quality,
)
from event_images.source_image import (
    DecodedImage,
    ImageDecodeTimeoutError,
    ImageFile,
    decode_image,
)

logger = logging.getLogger(__name__)

DEFAULT_DECODE_TIMEOUT = 30.0


async def _decode(image_file: ImageFile, timeout: Optional[float]) -> DecodedImage:
    """Decode in a worker thread; the single decode suspension point."""
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(decode_image, image_file), timeout=timeout
        )
    except asyncio.TimeoutError as exc:
        raise ImageDecodeTimeoutError(
            f"Decoding {image_file.name or 'image'} exceeded {timeout}s"
        ) from exc


def _render_and_encode(
    decoded: DecodedImage,
    max_width: float,
    max_height: float,
    quality: float,
    max_size_kb: Optional[float],
) -> EncodedImage:
    dimensions = calculate_target_dimensions(
        decoded.natural_width, decoded.natural_height, max_width, max_height
    )
    canvas = render_to_size(decoded.image, dimensions)
    try:
        return search_quality(canvas, quality=quality, max_size_kb=max_size_kb)
    finally:
        if canvas is not decoded.image:
            canvas.close()


async def _process(
    image_file: ImageFile,
    max_width: float,
    max_height: float,
    quality: float,
    max_size_kb: Optional[float],
    decode_timeout: Optional[float],
) -> EncodedImage:
    decoded = await _decode(image_file, decode_timeout)
    try:
        encoded = await asyncio.to_thread(
            _render_and_encode, decoded, max_width, max_height, quality, max_size_kb
        )
    finally:
        decoded.close()

    logger.info(
        "Processed %s: %dx%d -> %dx%d at quality %.1f (%d bytes)",
        image_file.name,
        decoded.natural_width,
        decoded.natural_height,
        encoded.width,
        encoded.height,
        encoded.quality,
        encoded.size_bytes,
    )
    return encoded


async def resize_image(
    image_file: ImageFile,
    max_width: float = 800,
    max_height: float = 600,
    quality: float = 0.8,
    *,
    decode_timeout: Optional[float] = DEFAULT_DECODE_TIMEOUT,
) -> str:
    """Fit into the bounding box and encode once. Returns a JPEG data URI.

    Raises:
        ImageDecodeError: if the bytes cannot be decoded.
        ImageDecodeTimeoutError: if decoding exceeds decode_timeout.
    """
    encoded = await _process(
        image_file, max_width, max_height, quality, None, decode_timeout
    )
    return encoded.data_uri


async def compress_encoded(
    image_file: ImageFile,
    max_width: float = 1200,
    max_height: float = 800,
    quality: float = 0.8,
    max_size_kb: Optional[float] = 500,
    *,
    decode_timeout: Optional[float] = DEFAULT_DECODE_TIMEOUT,
) -> EncodedImage:
    """Resize, then step quality down until the data URI fits max_size_kb."""
    return await _process(
        image_file, max_width, max_height, quality, max_size_kb, decode_timeout
    )


async def compress_image(
    image_file: ImageFile,
    max_width: float = 1200,
    max_height: float = 800,
    quality: float = 0.8,
    max_size_kb: Optional[float] = 500,
    *,
    decode_timeout: Optional[float] = DEFAULT_DECODE_TIMEOUT,
) -> str:
    """Same as compress_encoded but returns only the data URI."""
    encoded = await compress_encoded(
        image_file,
        max_width,
        max_height,
        quality,
        max_size_kb,
        decode_timeout=decode_timeout,
    )
    return encoded.data_uri
