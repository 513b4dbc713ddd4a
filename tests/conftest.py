"""Shared fixtures: synthetic screenshots built in memory."""

from io import BytesIO

import pytest
from PIL import Image


@pytest.fixture
def solid():
    """Factory for single-color RGB images."""

    def _make(size, color):
        return Image.new("RGB", size, color=color)

    return _make


@pytest.fixture
def png_bytes():
    """Encode a PIL image to PNG bytes."""

    def _encode(image):
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()

    return _encode


@pytest.fixture
def split_image():
    """Factory for an image whose left and right halves differ in color."""

    def _make(size, left, right):
        width, height = size
        image = Image.new("RGB", size, color=left)
        image.paste(Image.new("RGB", (width - width // 2, height), color=right), (width // 2, 0))
        return image

    return _make
