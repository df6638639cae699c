"""
Immutable RGBA8 raster image.

RasterImage is the unit every editing operation consumes and produces.
Pixels are stored row-major, four bytes per pixel (R, G, B, A), with no
row padding. Instances never change after construction; operations build
new buffers and wrap them in a new RasterImage.

Example:
    >>> img = RasterImage.blank(4, 2, (255, 0, 0, 255))
    >>> img.pixel(3, 1)
    (255, 0, 0, 255)
    >>> arr = img.to_array()   # read-only (H, W, 4) uint8 view
"""

from dataclasses import dataclass
from typing import Any, Tuple

import numpy as np

from RT_Libs.ImageEditingLib.image_models import RgbaColor
from RT_Libs.constants import CHANNELS, PIXEL_MODE
from RT_Libs.pillow_compat import Image, ImageClass


@dataclass(frozen=True)
class RasterImage:
    """Width x height grid of RGBA8 pixels.

    Attributes:
        width: Image width in pixels (> 0)
        height: Image height in pixels (> 0)
        pixels: Byte buffer of length width * height * 4
    """
    width: int
    height: int
    pixels: bytes

    def __post_init__(self):
        """Validate dimensions and buffer length."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"RasterImage dimensions must be positive, got {self.width}x{self.height}"
            )

        if not isinstance(self.pixels, bytes):
            object.__setattr__(self, "pixels", bytes(self.pixels))

        expected = self.width * self.height * CHANNELS
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel buffer length {len(self.pixels)} does not match "
                f"{self.width}x{self.height}x{CHANNELS} = {expected}"
            )

    def __repr__(self) -> str:
        return f"RasterImage(width={self.width}, height={self.height})"

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) tuple."""
        return self.width, self.height

    @classmethod
    def blank(cls, width: int, height: int, color: RgbaColor = (0, 0, 0, 0)) -> "RasterImage":
        """Create an image filled with a single RGBA colour."""
        if width <= 0 or height <= 0:
            raise ValueError(f"RasterImage dimensions must be positive, got {width}x{height}")
        return cls(width, height, bytes(color) * (width * height))

    @classmethod
    def from_array(cls, array: Any) -> "RasterImage":
        """
        Build a RasterImage from an (H, W, 4) array.

        Values are clipped to 0-255 and converted to uint8; the array is
        copied, so later changes to it do not reach the image.

        Raises:
            ValueError: If the array is not (H, W, 4)
        """
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise ValueError(f"Expected (H, W, {CHANNELS}) array, got shape {arr.shape}")

        if arr.dtype != np.uint8:
            arr = np.clip(arr, 0, 255).astype(np.uint8)

        height, width = arr.shape[:2]
        return cls(width, height, np.ascontiguousarray(arr).tobytes())

    @classmethod
    def from_pil(cls, image: ImageClass) -> "RasterImage":
        """Build a RasterImage from a PIL Image (converted to RGBA)."""
        if image.mode != PIXEL_MODE:
            image = image.convert(PIXEL_MODE)
        width, height = image.size
        return cls(width, height, image.tobytes())

    def to_array(self) -> np.ndarray:
        """Return a read-only (H, W, 4) uint8 view of the pixel buffer."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, CHANNELS
        )

    def to_pil(self) -> ImageClass:
        """Return a new RGBA PIL Image holding a copy of the pixels."""
        return Image.frombytes(PIXEL_MODE, (self.width, self.height), self.pixels)

    def pixel(self, x: int, y: int) -> RgbaColor:
        """
        Get the RGBA value at (x, y).

        Raises:
            IndexError: If (x, y) lies outside the image
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        offset = (y * self.width + x) * CHANNELS
        r, g, b, a = self.pixels[offset:offset + CHANNELS]
        return r, g, b, a
