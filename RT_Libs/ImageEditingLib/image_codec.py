"""
Decode/encode boundary between raw image bytes and RasterImage.

PNG is the canonical lossless format: decode(encode(img)) reproduces
img byte for byte for any RGBA8 content.

Functions:
    normalize_format: Resolve a MIME type, extension or format name to a Pillow format
    decode_image: Decode bytes into a RasterImage
    encode_image: Encode a RasterImage into bytes
    to_data_uri: Encode a RasterImage as a base64 data URI
"""

import base64
import logging
from io import BytesIO
from typing import Optional

from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.constants import (
    DEFAULT_JPEG_QUALITY,
    DEFAULT_OUTPUT_FORMAT,
    FORMAT_ALIASES,
    OPAQUE_FORMATS,
    SUPPORTED_FORMATS,
)
from RT_Libs.errors import DecodeError
from RT_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)


def normalize_format(hint: str) -> str:
    """
    Resolve a format hint to a Pillow format name.

    Accepts MIME types ("image/png"), file names or extensions ("photo.jpg",
    ".jpg", "jpg") and Pillow format names ("JPEG").

    Args:
        hint: Format hint supplied by the caller

    Returns:
        Pillow format name (e.g. "PNG", "JPEG")

    Raises:
        ValueError: If the hint does not name a supported format
    """
    token = str(hint).strip().lower()
    if "/" in token:
        token = token.split("/", 1)[1]
    token = token.split(";", 1)[0]
    if "." in token:
        token = token.rsplit(".", 1)[1]

    resolved = FORMAT_ALIASES.get(token.upper())
    if resolved is None:
        raise ValueError(
            f"Unsupported image format: {hint!r}. "
            f"Valid formats: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )
    return resolved


def decode_image(data: bytes, format_hint: Optional[str] = None) -> RasterImage:
    """
    Decode raw image bytes into a RasterImage.

    Args:
        data: Encoded image bytes
        format_hint: Declared format (MIME type, extension or format name).
                     When given, the bytes must actually be in that format.

    Returns:
        RasterImage holding the first frame converted to RGBA

    Raises:
        DecodeError: If the data is empty, corrupt, in an unsupported or
                     mismatching format, or has zero dimensions
    """
    if not data:
        raise DecodeError("No image data")

    if format_hint is not None:
        try:
            formats = [normalize_format(format_hint)]
        except ValueError as e:
            raise DecodeError(str(e)) from e
    else:
        formats = sorted(SUPPORTED_FORMATS)

    try:
        with Image.open(BytesIO(data), formats=formats) as img:
            img.load()
            if img.width == 0 or img.height == 0:
                raise DecodeError(f"Image has zero dimensions: {img.width}x{img.height}")
            image = RasterImage.from_pil(img)
    except DecodeError:
        raise
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Failed to decode image: {e}") from e

    logger.debug(f"Decoded {image.width}x{image.height} image ({formats[0] if format_hint else 'auto'})")
    return image


def encode_image(
    image: RasterImage,
    fmt: str = DEFAULT_OUTPUT_FORMAT,
    quality: int = DEFAULT_JPEG_QUALITY,
) -> bytes:
    """
    Encode a RasterImage.

    Formats without an alpha channel (JPEG, BMP) receive the RGB channels
    only.

    Args:
        image: Image to encode
        fmt: Target format hint (default PNG)
        quality: JPEG quality 1-100 (only for JPEG)

    Returns:
        Encoded bytes

    Raises:
        ValueError: If fmt is not a supported format
    """
    save_format = normalize_format(fmt)
    pil_image = image.to_pil()
    if save_format in OPAQUE_FORMATS:
        pil_image = pil_image.convert("RGB")

    kwargs = {"format": save_format}
    if save_format == "JPEG":
        kwargs["quality"] = max(1, min(100, int(quality)))
    elif save_format == "WEBP":
        kwargs["lossless"] = True

    buffer = BytesIO()
    pil_image.save(buffer, **kwargs)
    return buffer.getvalue()


def to_data_uri(image: RasterImage, fmt: str = DEFAULT_OUTPUT_FORMAT) -> str:
    """Encode an image as a "data:<mime>;base64,..." string."""
    save_format = normalize_format(fmt)
    payload = base64.b64encode(encode_image(image, save_format)).decode("ascii")
    return f"data:{SUPPORTED_FORMATS[save_format]};base64,{payload}"

