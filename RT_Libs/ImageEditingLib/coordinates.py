"""
Conversion between normalized UI coordinates and pixel space.

UI clicks and drags arrive normalized to [0, 1] relative to the displayed
image; region operations work in the image's intrinsic pixel space.
"""

import math
from typing import Tuple

from RT_Libs.ImageEditingLib.image_models import CropRect


def _check_dimensions(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")


def clamp_unit(value: float) -> float:
    """Clamp a normalized coordinate to [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def normalized_to_pixel(nx: float, ny: float, width: int, height: int) -> Tuple[float, float]:
    """
    Map a normalized point to pixel space.

    Args:
        nx: Horizontal position, 0.0 = left edge, 1.0 = right edge
        ny: Vertical position, 0.0 = top edge, 1.0 = bottom edge
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        (x, y) in pixels as floats

    Raises:
        ValueError: If dimensions are not positive or coordinates are not finite
    """
    _check_dimensions(width, height)
    if not (math.isfinite(nx) and math.isfinite(ny)):
        raise ValueError(f"Coordinates must be finite, got ({nx}, {ny})")
    return nx * width, ny * height


def pixel_to_normalized(x: float, y: float, width: int, height: int) -> Tuple[float, float]:
    """Inverse of normalized_to_pixel."""
    _check_dimensions(width, height)
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Coordinates must be finite, got ({x}, {y})")
    return x / width, y / height


def normalized_rect_to_pixel(
    nx: float,
    ny: float,
    n_width: float,
    n_height: float,
    width: int,
    height: int,
) -> CropRect:
    """Map a normalized rectangle (origin + size) to a pixel-space CropRect."""
    x, y = normalized_to_pixel(nx, ny, width, height)
    rect_width, rect_height = normalized_to_pixel(n_width, n_height, width, height)
    return CropRect(x=x, y=y, width=rect_width, height=rect_height)
