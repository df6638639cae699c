"""
Pytest configuration and shared fixtures for Open Retouch tests.

This module provides shared test images and helpers used across
multiple test modules.
"""

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from RT_Libs.ImageEditingLib.raster_image import RasterImage


def make_gradient(width: int = 6, height: int = 5) -> RasterImage:
    """Opaque image where pixel (x, y) = (x * 40, y * 50, (x + y) * 10, 255)."""
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            arr[y, x] = (x * 40 % 256, y * 50 % 256, (x + y) * 10 % 256, 255)
    return RasterImage.from_array(arr)


@pytest.fixture
def gradient_image():
    """
    Provide a small opaque gradient image.

    Returns:
        6x5 RasterImage with distinct values per pixel
    """
    return make_gradient()


@pytest.fixture
def large_gradient():
    """Provide a 20x20 gradient where pixel (x, y) = (x * 10, y * 10, 7, 255)."""
    arr = np.zeros((20, 20, 4), dtype=np.uint8)
    ys, xs = np.mgrid[0:20, 0:20]
    arr[:, :, 0] = xs * 10
    arr[:, :, 1] = ys * 10
    arr[:, :, 2] = 7
    arr[:, :, 3] = 255
    return RasterImage.from_array(arr)


@pytest.fixture
def png_bytes():
    """Provide PNG-encoded bytes of a 4x3 RGBA image with mixed alpha."""
    img = Image.new("RGBA", (4, 3), (10, 20, 30, 255))
    img.putpixel((1, 1), (200, 100, 50, 128))
    img.putpixel((3, 2), (1, 2, 3, 0))
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 255),  # Gray
    ]
