"""Pure image transformation functions for event image uploads."""

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

logger = logging.getLogger(__name__)

JPEG_DATA_URI_PREFIX = "data:image/jpeg;base64,"

# Rough base64 text expansion over raw bytes, header included.
BASE64_OVERHEAD = 1.37

QUALITY_FLOOR = 0.1
QUALITY_STEP = 0.1

# Steps are rounded so 0.8 - 0.1 lands on 0.7, not 0.7000000000000001.
_EPSILON = 1e-9


@dataclass(frozen=True)
class TargetDimensions:
    """Output size after fitting into a bounding box. May be fractional."""

    width: float
    height: float

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Integer canvas size, truncated toward zero and at least 1px."""
        return max(1, int(self.width)), max(1, int(self.height))


@dataclass(frozen=True)
class EncodedImage:
    """Final JPEG encoding returned by the quality search."""

    data_uri: str
    quality: float
    size_bytes: int
    width: int
    height: int


def calculate_target_dimensions(
    width: float, height: float, max_width: float, max_height: float
) -> TargetDimensions:
    """Fit width x height into max_width x max_height. Never upscales.

    Landscape sources clamp the width, portrait and square sources clamp
    the height; the other side follows from the aspect ratio.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    aspect_ratio = width / height
    if width <= max_width and height <= max_height:
        return TargetDimensions(width, height)

    if aspect_ratio > 1:
        new_width = min(max_width, width)
        new_height = new_width / aspect_ratio
    else:
        new_height = min(max_height, height)
        new_width = new_height * aspect_ratio
    return TargetDimensions(new_width, new_height)


def convert_rgba_to_rgb(image: Image.Image) -> Image.Image:
    """Composite any transparency onto white background, returning RGB."""
    if image.mode in ("LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        image = image.convert("RGBA")

    if image.mode != "RGBA":
        return image.convert("RGB") if image.mode != "RGB" else image

    background = Image.new("RGB", image.size, (255, 255, 255))
    background.paste(image, mask=image.split()[3])
    return background


def render_to_size(image: Image.Image, dimensions: TargetDimensions) -> Image.Image:
    """Draw the bitmap into an RGB buffer of the target size using Lanczos."""
    rgb_image = convert_rgba_to_rgb(image)
    size = dimensions.pixel_size
    if rgb_image.size == size:
        return rgb_image
    return rgb_image.resize(size, Image.LANCZOS)


def _pil_quality(quality: float) -> int:
    """Map a 0-1 quality factor onto Pillow's 1-100 JPEG scale."""
    return max(1, min(100, int(round(quality * 100))))


def encode_to_jpeg(image: Image.Image, quality: float = 0.8) -> bytes:
    """Encode PIL Image to JPEG bytes. Handles RGBA → RGB conversion."""
    rgb_image = convert_rgba_to_rgb(image)
    buffer = io.BytesIO()
    rgb_image.save(buffer, format="JPEG", quality=_pil_quality(quality))
    return buffer.getvalue()


def to_base64_data_uri(jpeg_bytes: bytes) -> str:
    """Wrap JPEG bytes as a base64 data URI for form payloads."""
    encoded = base64.b64encode(jpeg_bytes).decode("ascii")
    return f"{JPEG_DATA_URI_PREFIX}{encoded}"


def data_uri_to_bytes(data_uri: str) -> bytes:
    """Decode a base64 data URI back into raw bytes."""
    header, sep, payload = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc


def size_budget_chars(max_size_kb: float) -> float:
    """Maximum data URI length allowed for a budget in KB."""
    return max_size_kb * 1024 * BASE64_OVERHEAD


def _next_quality(quality: float) -> float:
    """One step down, clamped to the floor."""
    return max(QUALITY_FLOOR, round(quality - QUALITY_STEP, 10))


def search_quality(
    image: Image.Image,
    quality: float = 0.8,
    max_size_kb: Optional[float] = None,
) -> EncodedImage:
    """Encode as JPEG, lowering quality by 0.1 until under budget or at 0.1.

    Without a budget this is a single encode. Missing the budget at the
    floor is not an error: the floor encoding is returned.
    """
    current_quality = quality
    jpeg_bytes = encode_to_jpeg(image, current_quality)
    data_uri = to_base64_data_uri(jpeg_bytes)

    if max_size_kb:
        budget = size_budget_chars(max_size_kb)
        while len(data_uri) > budget and current_quality > QUALITY_FLOOR + _EPSILON:
            current_quality = _next_quality(current_quality)
            jpeg_bytes = encode_to_jpeg(image, current_quality)
            data_uri = to_base64_data_uri(jpeg_bytes)
            logger.debug(
                "Quality %.2f -> %d chars (budget %.0f)",
                current_quality, len(data_uri), budget,
            )

        if len(data_uri) > budget:
            logger.warning(
                "Could not reach %s KB budget at quality floor; returning %d bytes",
                max_size_kb, len(jpeg_bytes),
            )

    width, height = image.size
    return EncodedImage(
        data_uri=data_uri,
        quality=current_quality,
        size_bytes=len(jpeg_bytes),
        width=width,
        height=height,
    )
