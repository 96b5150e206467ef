"""Upload validation: MIME allowlist and size ceiling.

Pure functions. Results are returned, never raised, so the caller can
show the message next to the upload control.
"""

from dataclasses import dataclass
from typing import Optional

from event_images.source_image import ImageFile

SUPPORTED_MIME_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
)

DEFAULT_MAX_SIZE_MB = 10
LARGE_FILE_THRESHOLD_MB = 2.0

_BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for a candidate upload."""

    is_valid: bool
    message: str


def _format_limit(value: float) -> str:
    """Render a size limit in full, without a trailing .0 (10 -> '10', 2.5 -> '2.5')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def is_valid_image_type(image_file: ImageFile) -> bool:
    """Return True iff the declared MIME type is in the allowlist (case-sensitive)."""
    return image_file.mime_type in SUPPORTED_MIME_TYPES


def get_file_size_mb(image_file: ImageFile) -> float:
    """Return the file size in MB rounded to 2 decimals."""
    return round(image_file.size / _BYTES_PER_MB, 2)


def validate_image_file(
    image_file: Optional[ImageFile], max_size_mb: float = DEFAULT_MAX_SIZE_MB
) -> ValidationResult:
    """Check presence, type and size in that order; first failure wins."""
    if image_file is None:
        return ValidationResult(False, "No file selected.")

    limit = _format_limit(max_size_mb)
    if not is_valid_image_type(image_file):
        return ValidationResult(
            False,
            "File format not supported. Only supports JPEG, PNG, GIF, "
            f"and WebP images up to {limit}MB.",
        )

    size_mb = get_file_size_mb(image_file)
    if size_mb > max_size_mb:
        return ValidationResult(
            False,
            f"File too large ({size_mb:.2f}MB). Only supports files up to {limit}MB.",
        )

    return ValidationResult(True, "Valid image file.")


def is_large_file(image_file: ImageFile, threshold_mb: float = LARGE_FILE_THRESHOLD_MB) -> bool:
    """Whether processing is slow enough to warrant a wait notice."""
    return get_file_size_mb(image_file) > threshold_mb


def large_file_notice(
    image_file: ImageFile, threshold_mb: float = LARGE_FILE_THRESHOLD_MB
) -> Optional[str]:
    """Wait notice for files above threshold_mb, or None for small files."""
    if not is_large_file(image_file, threshold_mb):
        return None
    return f"Processing large image ({get_file_size_mb(image_file):.2f}MB)... Please wait."
