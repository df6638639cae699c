"""
Adapters for external image transforms.

Background removal and quality improvement are black boxes that take
encoded image bytes and return encoded image bytes. The core hands them
the current image as PNG, decodes whatever comes back, and wraps every
failure in ExternalOperationFailed so callers can leave history untouched.

Functions:
    run_collaborator: Run an external transform on a RasterImage
    builtin_quality_improver: Local quality improvement (fixed sharpen kernel)
"""

import logging
from typing import Callable

from RT_Libs.ImageEditingLib.convolution import apply_quality_sharpen
from RT_Libs.ImageEditingLib.image_codec import decode_image, encode_image
from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.errors import DecodeError, ExternalOperationFailed

logger = logging.getLogger(__name__)

# (image bytes) -> image bytes
ImageTransform = Callable[[bytes], bytes]


def run_collaborator(operation: str, transform: ImageTransform, image: RasterImage) -> RasterImage:
    """
    Run an external transform on an image.

    Args:
        operation: Human-readable operation name used in errors and logs
        transform: Callable taking and returning encoded image bytes
        image: Input RasterImage (sent PNG-encoded)

    Returns:
        The decoded result as a new RasterImage

    Raises:
        ExternalOperationFailed: If the transform raises, returns no bytes,
                                 or returns bytes that cannot be decoded
    """
    if not callable(transform):
        raise TypeError(f"transform must be callable, got {type(transform)}")

    payload = encode_image(image, "PNG")
    try:
        output = transform(payload)
    except Exception as e:
        raise ExternalOperationFailed(operation, str(e) or type(e).__name__) from e

    if not isinstance(output, (bytes, bytearray)) or not output:
        raise ExternalOperationFailed(operation, f"expected image bytes, got {type(output).__name__}")

    try:
        result = decode_image(bytes(output))
    except DecodeError as e:
        raise ExternalOperationFailed(operation, f"returned undecodable image: {e}") from e

    logger.debug(f"{operation}: {image.width}x{image.height} -> {result.width}x{result.height}")
    return result


def builtin_quality_improver(data: bytes) -> bytes:
    """Decode, sharpen with the fixed quality kernel, and re-encode as PNG."""
    image = decode_image(data, "PNG")
    return encode_image(apply_quality_sharpen(image), "PNG")
