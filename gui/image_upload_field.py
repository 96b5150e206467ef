"""Event cover image upload control: choose, validate, preview, compress."""

import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from event_images.config import Config
from event_images.image_utils import EncodedImage
from event_images.source_image import ImageFile
from event_images.validation import large_file_notice, validate_image_file
from gui.workers import CompressionWorker

logger = logging.getLogger(__name__)

_FILE_FILTER = "Images (*.jpg *.jpeg *.png *.gif *.webp);;All Files (*)"
_PREVIEW_SIZE = 320

PROCESSING_FAILED_MESSAGE = (
    "Error processing image. Please try a smaller image or different format."
)
UPLOAD_SUCCESS_MESSAGE = "Image uploaded successfully!"


class ImageUploadField(QWidget):
    """Lets an organizer pick a cover image and yields a compressed data URI.

    Only one upload runs at a time; selecting another file while the
    worker is busy is refused.
    """

    image_ready = Signal(str)  # JPEG data URI
    image_cleared = Signal()

    def __init__(self, config: Config, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._config = config
        self._worker: Optional[CompressionWorker] = None
        self._retired_workers: List[CompressionWorker] = []  # cancelled, still running
        self._current_file: Optional[ImageFile] = None
        self._data_uri: Optional[str] = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        """Build preview, status line and button row."""
        layout = QVBoxLayout(self)

        self._preview_label = QLabel("No image selected")
        self._preview_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._preview_label.setFixedSize(_PREVIEW_SIZE, _PREVIEW_SIZE * 2 // 3)
        self._preview_label.setStyleSheet("border: 1px dashed #94a3b8; color: #64748b;")
        layout.addWidget(self._preview_label)

        self._status_label = QLabel("")
        self._status_label.setWordWrap(True)
        layout.addWidget(self._status_label)

        row = QHBoxLayout()
        self._choose_btn = QPushButton("Choose Image")
        self._choose_btn.clicked.connect(self._on_choose)
        row.addWidget(self._choose_btn)

        self._clear_btn = QPushButton("Remove")
        self._clear_btn.clicked.connect(self.clear)
        self._clear_btn.setEnabled(False)
        row.addWidget(self._clear_btn)
        row.addStretch()
        layout.addLayout(row)

    # ── Public API ──────────────────────────────────────────────────

    @property
    def is_busy(self) -> bool:
        """Whether a compression is in flight."""
        return self._worker is not None

    @property
    def data_uri(self) -> Optional[str]:
        """Compressed result for the form payload, or None."""
        return self._data_uri

    @property
    def status_text(self) -> str:
        return self._status_label.text()

    def load_file(self, image_file: Optional[ImageFile]) -> bool:
        """Validate and start compressing image_file. Returns False if refused."""
        if self.is_busy:
            logger.info("Upload already in progress, ignoring new file")
            return False

        validation = validate_image_file(image_file, self._config.max_upload_mb)
        if not validation.is_valid:
            self._set_status(validation.message, error=True)
            return False

        self._current_file = image_file
        self._data_uri = None
        self._show_preview(image_file)

        notice = large_file_notice(image_file, self._config.large_file_notice_mb)
        self._set_status(notice or "Processing image...")

        self._start_compression(image_file)
        return True

    def clear(self) -> None:
        """Drop the current image and its preview."""
        self._retire_worker()
        self._current_file = None
        self._data_uri = None
        self._release_preview()
        self._set_status("")
        self._update_buttons()
        self.image_cleared.emit()

    # ── Internal ─────────────────────────────────────────────────────

    def _on_choose(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Select event image", "", _FILE_FILTER
        )
        if not path:
            return
        try:
            image_file = ImageFile.from_path(Path(path))
        except OSError as exc:
            logger.error("Could not read %s: %s", path, exc)
            self._set_status(PROCESSING_FAILED_MESSAGE, error=True)
            return
        self.load_file(image_file)

    def _start_compression(self, image_file: ImageFile) -> None:
        self._retired_workers = [w for w in self._retired_workers if w.isRunning()]
        params = self._config.compress_params()
        self._worker = CompressionWorker(image_file, **params)
        self._worker.compression_finished.connect(self._on_compression_finished)
        self._worker.compression_failed.connect(self._on_compression_failed)
        self._update_buttons()
        self._worker.start()

    def _retire_worker(self) -> None:
        """Cancel the in-flight worker, keeping a reference until it exits."""
        if self._worker is None:
            return
        self._worker.cancel()
        if self._worker.isRunning():
            self._retired_workers.append(self._worker)
        self._worker = None

    def _is_stale(self) -> bool:
        """True when a signal comes from a worker that is no longer current."""
        sender = self.sender()
        return sender is not None and sender is not self._worker

    def _on_compression_finished(self, encoded: EncodedImage) -> None:
        if self._is_stale():
            return
        self._worker = None
        self._data_uri = encoded.data_uri
        self._set_status(UPLOAD_SUCCESS_MESSAGE)
        self._update_buttons()
        self.image_ready.emit(encoded.data_uri)

    def _on_compression_failed(self, message: str) -> None:
        if self._is_stale():
            return
        logger.warning("Upload processing failed: %s", message)
        self._worker = None
        self._current_file = None
        self._release_preview()
        self._set_status(PROCESSING_FAILED_MESSAGE, error=True)
        self._update_buttons()

    def _show_preview(self, image_file: ImageFile) -> None:
        """Replace the preview, releasing the previous pixmap first."""
        self._release_preview()
        pixmap = QPixmap()
        if not pixmap.loadFromData(image_file.data):
            self._preview_label.setText(image_file.name)
            return
        self._preview_label.setPixmap(
            pixmap.scaled(
                self._preview_label.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    def _release_preview(self) -> None:
        self._preview_label.clear()
        self._preview_label.setText("No image selected")

    def _set_status(self, text: str, error: bool = False) -> None:
        color = "#dc2626" if error else "#334155"
        self._status_label.setStyleSheet(f"color: {color};")
        self._status_label.setText(text)

    def _update_buttons(self) -> None:
        self._choose_btn.setEnabled(not self.is_busy)
        self._clear_btn.setEnabled(self._current_file is not None)

    def closeEvent(self, event) -> None:
        self._retire_worker()
        for worker in self._retired_workers:
            worker.wait()
        self._retired_workers = []
        self._release_preview()
        super().closeEvent(event)
