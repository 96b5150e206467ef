"""QThread worker that runs the compression pipeline off the UI thread."""

import asyncio
import logging
from typing import Optional

from PySide6.QtCore import QThread, Signal

from event_images.image_utils import EncodedImage
from event_images.pipeline import DEFAULT_DECODE_TIMEOUT, compress_encoded
from event_images.source_image import ImageFile

logger = logging.getLogger(__name__)


class CompressionWorker(QThread):
    """Compress one selected image and report the result.

    Emits exactly one of compression_finished / compression_failed unless
    cancelled, in which case the result is dropped.
    """

    compression_finished = Signal(object)  # EncodedImage
    compression_failed = Signal(str)       # error message

    def __init__(
        self,
        image_file: ImageFile,
        max_width: int = 1200,
        max_height: int = 800,
        quality: float = 0.8,
        max_size_kb: Optional[float] = 500,
        decode_timeout: Optional[float] = DEFAULT_DECODE_TIMEOUT,
    ) -> None:
        super().__init__()
        self._image_file = image_file
        self._max_width = max_width
        self._max_height = max_height
        self._quality = quality
        self._max_size_kb = max_size_kb
        self._decode_timeout = decode_timeout
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation. The running encode finishes; its result is dropped."""
        self._cancelled = True

    def run(self) -> None:
        """Run the pipeline on a private event loop."""
        try:
            encoded = self._run_pipeline()
        except Exception as exc:
            logger.error("Compression of %s failed: %s", self._image_file.name, exc)
            if not self._cancelled:
                self.compression_failed.emit(str(exc))
            return

        if self._cancelled:
            logger.info("Compression of %s cancelled, result dropped", self._image_file.name)
            return
        self.compression_finished.emit(encoded)

    def _run_pipeline(self) -> EncodedImage:
        """Drive compress_encoded to completion.

        The loop is closed without waiting on its default executor; a
        timed-out decode thread is left to finish on its own.
        """
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(
                compress_encoded(
                    self._image_file,
                    self._max_width,
                    self._max_height,
                    self._quality,
                    self._max_size_kb,
                    decode_timeout=self._decode_timeout,
                )
            )
        finally:
            loop.close()
