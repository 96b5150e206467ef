"""Event Tribe image tool entry point — composition root, no business logic."""

import logging
import sys

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication, QMessageBox

from event_images.config import load_config
from event_images.config_validator import ConfigValidator
from gui.main_window import MainWindow


def main() -> None:
    """Launch the Event Tribe image upload window."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Event Tribe Images")
    app.setOrganizationName("Event Tribe")
    app.setApplicationVersion("0.1.0")

    config = load_config()
    is_valid, error = ConfigValidator.validate(config)
    if not is_valid:
        QMessageBox.critical(None, "Invalid settings", error)
        sys.exit(1)

    window = MainWindow(config)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
