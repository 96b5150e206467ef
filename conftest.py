"""
Root conftest.py — headless Qt and shared image fixtures.
"""
import io
import os

import pytest

# Must be set before any QApplication is created.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PIL import Image  # noqa: E402

from event_images.source_image import ImageFile  # noqa: E402


def make_image_bytes(width, height, fmt="JPEG", mode="RGB", color=(120, 130, 140)):
    """Encode a solid image of the given size in memory."""
    img = Image.new(mode, (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_noise_bytes(width, height, fmt="PNG"):
    """Random pixels: hard to compress, so quality steps actually matter."""
    img = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def noise_bytes():
    return make_noise_bytes


@pytest.fixture
def jpeg_file():
    def _make(width, height, name="cover.jpg"):
        return ImageFile(name=name, mime_type="image/jpeg", data=make_image_bytes(width, height))
    return _make


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app
