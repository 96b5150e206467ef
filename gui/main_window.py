"""Main application window hosting the event image upload field."""

import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget

from event_images.config import Config
from event_images.image_utils import data_uri_to_bytes
from gui.image_upload_field import ImageUploadField

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Top-level window: upload field plus a status bar with the result size."""

    def __init__(self, config: Config) -> None:
        super().__init__()
        self._config = config

        self.setWindowTitle("Event Tribe - Event Image")
        self.resize(config.window_width, config.window_height)

        self._setup_central_widget()
        self.statusBar().showMessage("Choose a cover image for your event")

    def _setup_central_widget(self) -> None:
        central = QWidget()
        layout = QVBoxLayout(central)

        title = QLabel("Event cover image")
        title.setStyleSheet("font-weight: bold; font-size: 16px; color: #334155;")
        layout.addWidget(title)

        hint = QLabel(
            f"JPEG, PNG, GIF or WebP up to {self._config.max_upload_mb:g}MB. "
            f"Images are resized to fit {self._config.compress_max_width}x"
            f"{self._config.compress_max_height}."
        )
        hint.setStyleSheet("color: #64748b;")
        layout.addWidget(hint)

        self._upload_field = ImageUploadField(self._config)
        self._upload_field.image_ready.connect(self._on_image_ready)
        self._upload_field.image_cleared.connect(self._on_image_cleared)
        layout.addWidget(self._upload_field, alignment=Qt.AlignmentFlag.AlignLeft)
        layout.addStretch()

        self.setCentralWidget(central)

    def _on_image_ready(self, data_uri: str) -> None:
        size_kb = len(data_uri_to_bytes(data_uri)) / 1024
        self.statusBar().showMessage(f"Compressed image ready ({size_kb:.1f} KB)")
        logger.info("Image ready for form payload: %.1f KB", size_kb)

    def _on_image_cleared(self) -> None:
        self.statusBar().showMessage("Image removed")

    def closeEvent(self, event) -> None:
        self._upload_field.close()
        super().closeEvent(event)
