"""
Kernel convolution over RGBA rasters.

Provides the generic NxN convolution used by sharpening and by the
built-in quality improvement pass.

Semantics:
    - out[y][x] = sum(kernel[ky][kx] * src[y + ky - c][x + kx - c]) per R, G, B
    - Samples outside the image are absent (contribute nothing), so strong
      kernels darken the border rows and columns
    - Alpha passes through unchanged
    - Results are rounded and saturated to 0-255

Example:
    >>> sharpened = apply_sharpen(image, amount=40)
    >>> kernel = sharpen_kernel(40)   # [[0, -0.4, 0], [-0.4, 2.6, -0.4], [0, -0.4, 0]]
    >>> same = convolve(image, kernel)
"""

import logging
from typing import Sequence

import numpy as np
from scipy import ndimage

from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.constants import QUALITY_KERNEL, SHARPEN_MAX, SHARPEN_MIN

logger = logging.getLogger(__name__)

Kernel = Sequence[Sequence[float]]


def _validate_kernel(kernel: Kernel) -> np.ndarray:
    weights = np.asarray(kernel, dtype=np.float64)
    if weights.ndim != 2 or weights.shape[0] != weights.shape[1]:
        raise ValueError(f"kernel must be a square matrix, got shape {weights.shape}")

    if weights.shape[0] % 2 == 0:
        raise ValueError(f"kernel size must be odd, got {weights.shape[0]}")

    if not np.all(np.isfinite(weights)):
        raise ValueError("kernel weights must be finite")

    return weights


def convolve(image: RasterImage, kernel: Kernel) -> RasterImage:
    """
    Convolve the colour channels of an image with a square kernel.

    Args:
        image: Source RasterImage (not modified)
        kernel: Square matrix of weights with odd size (3x3, 5x5, ...)

    Returns:
        New RasterImage with convolved R, G, B and the original alpha

    Raises:
        ValueError: If kernel is not square, has even size, or non-finite weights
    """
    weights = _validate_kernel(kernel)

    source = image.to_array()
    result = np.empty_like(source)

    for channel_idx in range(3):
        channel = source[:, :, channel_idx].astype(np.float64)
        # zero padding == out-of-bounds samples contribute nothing
        filtered = ndimage.correlate(channel, weights, mode="constant", cval=0.0)
        result[:, :, channel_idx] = np.clip(np.rint(filtered), 0, 255).astype(np.uint8)

    result[:, :, 3] = source[:, :, 3]

    logger.debug(f"Convolved {image.width}x{image.height} image with {weights.shape[0]}x{weights.shape[0]} kernel")
    return RasterImage.from_array(result)


def sharpen_kernel(amount: float) -> np.ndarray:
    """
    Build the 3x3 unsharp kernel for a sharpen amount.

    Args:
        amount: Sharpen amount 0-100 (k = amount / 100)

    Returns:
        [[0, -k, 0], [-k, 1 + 4k, -k], [0, -k, 0]] as a float array

    Raises:
        ValueError: If amount is outside 0-100
    """
    if not (SHARPEN_MIN <= amount <= SHARPEN_MAX):
        raise ValueError(f"amount must be {SHARPEN_MIN:g}-{SHARPEN_MAX:g}, got {amount}")

    k = amount / 100.0
    return np.array([
        [0.0, -k, 0.0],
        [-k, 1.0 + 4.0 * k, -k],
        [0.0, -k, 0.0],
    ])


def apply_sharpen(image: RasterImage, amount: float) -> RasterImage:
    """
    Sharpen an image with the unsharp kernel.

    An amount of 0 returns the input unchanged without convolving.

    Args:
        image: Source RasterImage
        amount: Sharpen amount 0-100

    Returns:
        Sharpened RasterImage (or the input itself when amount is 0)
    """
    kernel = sharpen_kernel(amount)
    if amount == 0:
        return image
    return convolve(image, kernel)


def apply_quality_sharpen(image: RasterImage) -> RasterImage:
    """Apply the fixed [[0,-1,0],[-1,5,-1],[0,-1,0]] quality improvement kernel."""
    return convolve(image, QUALITY_KERNEL)
