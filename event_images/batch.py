"""Server-side batch compression of a directory of event images.

Each file runs through the same validate → decode → resize → quality
search pipeline as an interactive upload. Files are processed one at a
time; a failure is recorded and the batch moves on.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from event_images.config import Config
from event_images.image_utils import data_uri_to_bytes
from event_images.pipeline import compress_encoded
from event_images.source_image import ImageFile, ImageProcessingError
from event_images.validation import validate_image_file

logger = logging.getLogger(__name__)

_IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


@dataclass(frozen=True)
class BatchResult:
    """Outcome for one source file."""

    source: Path
    output: Optional[Path] = None
    quality: Optional[float] = None
    size_bytes: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def list_source_images(input_dir: Path) -> List[Path]:
    """Return supported image files in input_dir, sorted by name."""
    if not input_dir.is_dir():
        logger.warning("Batch input directory does not exist: %s", input_dir)
        return []

    return sorted(
        p for p in input_dir.iterdir()
        if p.is_file() and p.suffix.lower() in _IMAGE_SUFFIXES
    )


class BatchCompressor:
    """Compress every supported image in a directory to <stem>.jpg.

    Cancellation is cooperative: the file in flight finishes first.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._cancelled = False

    def cancel(self) -> None:
        """Request cooperative cancellation."""
        self._cancelled = True

    async def run(self, input_dir: Path, output_dir: Path) -> List[BatchResult]:
        """Process input_dir, writing results to output_dir."""
        sources = list_source_images(input_dir)
        results: List[BatchResult] = []
        if not sources:
            return results

        output_dir.mkdir(parents=True, exist_ok=True)
        total = len(sources)
        for idx, source in enumerate(sources, start=1):
            if self._cancelled:
                logger.info("Batch cancelled at file %d/%d", idx, total)
                break

            logger.info("Compressing %d/%d: %s", idx, total, source.name)
            results.append(await self._process_one(source, output_dir))

        failed = sum(1 for r in results if not r.ok)
        logger.info(
            "Batch finished: %d processed, %d failed", len(results), failed,
        )
        return results

    async def _process_one(self, source: Path, output_dir: Path) -> BatchResult:
        try:
            image_file = ImageFile.from_path(source)
        except OSError as exc:
            logger.error("Could not read %s: %s", source.name, exc)
            return BatchResult(source=source, error=str(exc))

        validation = validate_image_file(image_file, self._config.max_upload_mb)
        if not validation.is_valid:
            logger.warning("Skipping %s: %s", source.name, validation.message)
            return BatchResult(source=source, error=validation.message)

        try:
            encoded = await compress_encoded(image_file, **self._config.compress_params())
        except ImageProcessingError as exc:
            logger.error("Compression failed for %s: %s", source.name, exc)
            return BatchResult(source=source, error=str(exc))

        output = output_dir / f"{source.stem}.jpg"
        try:
            output.write_bytes(data_uri_to_bytes(encoded.data_uri))
        except OSError as exc:
            logger.error("Could not write %s: %s", output, exc)
            return BatchResult(source=source, error=str(exc))
        return BatchResult(
            source=source,
            output=output,
            quality=encoded.quality,
            size_bytes=encoded.size_bytes,
        )
