"""Selected-file value object and Pillow decoding for event image uploads."""

import base64
import io
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

# Missing from the stdlib table before Python 3.11.
mimetypes.add_type("image/webp", ".webp")


# --- Exceptions ---


class ImageProcessingError(Exception):
    """Base exception for image pipeline errors."""


class ImageDecodeError(ImageProcessingError):
    """Raised when image bytes cannot be decoded into a bitmap."""


class ImageDecodeTimeoutError(ImageDecodeError):
    """Raised when decoding does not finish within the allowed time."""


class ImageFetchError(ImageProcessingError):
    """Base exception for remote image retrieval failures."""


class ImageNotFoundError(ImageFetchError):
    """Raised on 404 for a hosted event image."""


class ImageFetchTimeoutError(ImageFetchError):
    """Raised when fetching a hosted image times out."""


# --- Source file ---


@dataclass(frozen=True)
class ImageFile:
    """An image the user selected: raw bytes plus the declared MIME type."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        """Byte length of the payload."""
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "ImageFile":
        """Read a file from disk, guessing the MIME type from its extension."""
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")

        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, mime_type=mime_type or "", data=path.read_bytes())


def file_to_data_uri(image_file: ImageFile) -> str:
    """Wrap the original bytes as a data URI, keeping the declared MIME type."""
    encoded = base64.b64encode(image_file.data).decode("ascii")
    return f"data:{image_file.mime_type};base64,{encoded}"


# --- Decoding ---


class DecodedImage:
    """Decoded bitmap with its natural dimensions.

    Owns the pixel buffer until close() is called. Usable as a context manager.
    """

    def __init__(self, image: Image.Image) -> None:
        self._image: Optional[Image.Image] = image
        self.natural_width, self.natural_height = image.size

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise ValueError("Decoded image has been released")
        return self._image

    @property
    def closed(self) -> bool:
        return self._image is None

    def close(self) -> None:
        """Release the pixel buffer. Safe to call more than once."""
        if self._image is not None:
            self._image.close()
            self._image = None

    def __enter__(self) -> "DecodedImage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def decode_image(image_file: ImageFile) -> DecodedImage:
    """Decode the file's bytes into a fully loaded Pillow image.

    Raises:
        ImageDecodeError: on corrupt, truncated or oversized data.
    """
    buffer = io.BytesIO(image_file.data)
    try:
        image = Image.open(buffer)
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as exc:
        raise ImageDecodeError(
            f"Could not decode {image_file.name or 'image'} ({image_file.mime_type}): {exc}"
        ) from exc

    logger.debug(
        "Decoded %s: %dx%d %s", image_file.name, image.width, image.height, image.mode,
    )
    return DecodedImage(image)
