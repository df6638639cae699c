"""
Destructive region operations.

Every function takes pixel-space coordinates and returns a brand-new
RasterImage; the input image is never modified. Arguments are validated
before any output buffer is allocated.

Functions:
    apply_clone_stamp: Copy a disk of pixels from a source point onto a target point
    apply_red_eye_correction: Desaturate red-dominant pixels inside a disk
    crop_image: Extract a sub-rectangle (out-of-bounds parts become transparent)
    composite_stickers: Draw sticker glyphs onto the image in list order
    resize_to_width: Resample the image to a target width, keeping aspect ratio

Out-of-bounds policy:
    Clone stamp target pixels whose source sample falls outside the image are
    left unchanged. Disk pixels outside the image are skipped; a disk with no
    pixel inside the image raises InvalidRegion.

Example:
    >>> img = decode_image(data, "image/png")
    >>> img = apply_red_eye_correction(img, x=120, y=88)
    >>> img = apply_clone_stamp(img, 40, 40, 90, 40, radius=12)
    >>> img = crop_image(img, CropRect(10, 10, 200, 150))
"""

import logging
import math
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from RT_Libs.ImageEditingLib.image_models import CropRect, RgbaColor, Sticker
from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.constants import (
    DEFAULT_CLONE_RADIUS,
    DEFAULT_RED_EYE_RADIUS,
    STICKER_ANCHOR,
    STICKER_FILL_COLOR,
    STICKER_FONT_RATIO,
)
from RT_Libs.errors import InvalidRegion
from RT_Libs.pillow_compat import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)


def _check_point(name: str, x: float, y: float) -> None:
    if not (math.isfinite(x) and math.isfinite(y)):
        raise InvalidRegion(f"{name} must be finite, got ({x}, {y})")


def _check_radius(radius: float) -> None:
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidRegion(f"radius must be > 0, got {radius}")


def _disk_mask(
    cx: float,
    cy: float,
    radius: float,
    width: int,
    height: int,
) -> Tuple[Tuple[int, int, int, int], np.ndarray, np.ndarray, np.ndarray]:
    """
    Disk membership over its bounding box clipped to the image.

    Returns:
        ((x0, y0, x1, y1), ys, xs, in_disk) where ys/xs are the pixel
        coordinate grids of the window

    Raises:
        InvalidRegion: If no pixel of the disk lies inside the image
    """
    x0 = max(0, math.floor(cx - radius))
    y0 = max(0, math.floor(cy - radius))
    x1 = min(width, math.floor(cx + radius) + 1)
    y1 = min(height, math.floor(cy + radius) + 1)
    if x0 < x1 and y0 < y1:
        ys, xs = np.mgrid[y0:y1, x0:x1]
        in_disk = (xs - cx) ** 2 + (ys - cy) ** 2 <= radius * radius
        if in_disk.any():
            return (x0, y0, x1, y1), ys, xs, in_disk

    raise InvalidRegion(
        f"Disk at ({cx:.1f}, {cy:.1f}) with r={radius} lies outside the {width}x{height} image"
    )


# ============================================================================
# Clone Stamp
# ============================================================================

def apply_clone_stamp(
    image: RasterImage,
    target_x: float,
    target_y: float,
    source_x: float,
    source_y: float,
    radius: float = DEFAULT_CLONE_RADIUS,
) -> RasterImage:
    """
    Clone a disk of pixels from a source point onto a target point.

    Every pixel (x, y) with distance((x, y), (target_x, target_y)) <= radius
    takes the value of the source image at (x - dx, y - dy), where
    (dx, dy) = (target - source) rounded to whole pixels. Sampling reads
    the unmodified input, so overlapping source and target disks are safe.

    Args:
        image: Source RasterImage
        target_x, target_y: Centre of the disk to paint (pixels)
        source_x, source_y: Centre of the disk to copy from (pixels)
        radius: Disk radius in pixels (> 0)

    Returns:
        New RasterImage with the target disk replaced

    Raises:
        InvalidRegion: If radius <= 0, a coordinate is not finite, or the
                       target disk lies entirely outside the image
    """
    _check_point("target", target_x, target_y)
    _check_point("source", source_x, source_y)
    _check_radius(radius)
    _, ys, xs, in_disk = _disk_mask(target_x, target_y, radius, image.width, image.height)

    source = image.to_array()
    result = source.copy()

    offset_x = int(np.rint(target_x - source_x))
    offset_y = int(np.rint(target_y - source_y))

    sample_x = xs - offset_x
    sample_y = ys - offset_y
    in_bounds = (
        (sample_x >= 0) & (sample_x < image.width)
        & (sample_y >= 0) & (sample_y < image.height)
    )
    selected = in_disk & in_bounds

    result[ys[selected], xs[selected]] = source[sample_y[selected], sample_x[selected]]

    logger.debug(
        f"Clone stamp ({source_x:.1f}, {source_y:.1f}) -> ({target_x:.1f}, {target_y:.1f}), r={radius}"
    )
    return RasterImage.from_array(result)


# ============================================================================
# Red Eye Correction
# ============================================================================

def apply_red_eye_correction(
    image: RasterImage,
    x: float,
    y: float,
    radius: float = DEFAULT_RED_EYE_RADIUS,
) -> RasterImage:
    """
    Desaturate red-dominant pixels inside a disk.

    A pixel qualifies when red > green + blue (integer channel values).
    Qualifying pixels get R = G = B = (green + blue) // 2 with alpha kept;
    all other pixels are untouched.

    Args:
        image: Source RasterImage
        x, y: Disk centre in pixels
        radius: Disk radius in pixels (> 0)

    Returns:
        New RasterImage with red-eye pixels corrected

    Raises:
        InvalidRegion: If radius <= 0, the centre is not finite, or the disk
                       lies entirely outside the image
    """
    _check_point("center", x, y)
    _check_radius(radius)
    (x0, y0, x1, y1), _, _, in_disk = _disk_mask(x, y, radius, image.width, image.height)

    result = image.to_array().copy()

    region = result[y0:y1, x0:x1]
    red = region[:, :, 0].astype(np.int32)
    green = region[:, :, 1].astype(np.int32)
    blue = region[:, :, 2].astype(np.int32)

    is_red = in_disk & (red > green + blue)
    gray = ((green + blue) // 2).astype(np.uint8)
    for channel_idx in range(3):
        region[:, :, channel_idx][is_red] = gray[is_red]

    logger.debug(f"Red eye correction at ({x:.1f}, {y:.1f}), r={radius}: {int(is_red.sum())} pixels")
    return RasterImage.from_array(result)


# ============================================================================
# Crop
# ============================================================================

CropLike = Union[CropRect, Dict[str, Any], Tuple[float, float, float, float]]


def _as_crop_rect(rect: CropLike) -> CropRect:
    if isinstance(rect, CropRect):
        return rect
    if isinstance(rect, dict):
        return CropRect.from_dict(rect)
    try:
        x, y, width, height = rect
    except (TypeError, ValueError) as e:
        raise InvalidRegion(f"Crop rectangle must be (x, y, width, height), got {rect!r}") from e
    return CropRect(float(x), float(y), float(width), float(height))


def crop_image(image: RasterImage, rect: CropLike) -> RasterImage:
    """
    Extract a sub-rectangle of the image.

    The output is exactly int(width) x int(height). Parts of the rectangle
    outside the source render as fully transparent pixels.

    Args:
        image: Source RasterImage
        rect: CropRect, {"x", "y", "width", "height"} dict, or 4-tuple in pixels

    Returns:
        New RasterImage of the rectangle's size

    Raises:
        InvalidRegion: If the rectangle is empty, not finite, or lies entirely
                       outside the image
    """
    crop = _as_crop_rect(rect)
    values = (crop.x, crop.y, crop.width, crop.height)
    if not all(math.isfinite(v) for v in values):
        raise InvalidRegion(f"Crop rectangle must be finite, got {crop}")

    out_width = int(crop.width)
    out_height = int(crop.height)
    if out_width <= 0 or out_height <= 0:
        raise InvalidRegion(f"Crop rectangle is empty: {out_width}x{out_height}")

    left = math.floor(crop.x)
    top = math.floor(crop.y)
    src_x0 = max(0, left)
    src_y0 = max(0, top)
    src_x1 = min(image.width, left + out_width)
    src_y1 = min(image.height, top + out_height)
    if src_x0 >= src_x1 or src_y0 >= src_y1:
        raise InvalidRegion(
            f"Crop rectangle {crop} lies outside the {image.width}x{image.height} image"
        )

    result = np.zeros((out_height, out_width, 4), dtype=np.uint8)
    result[src_y0 - top:src_y1 - top, src_x0 - left:src_x1 - left] = (
        image.to_array()[src_y0:src_y1, src_x0:src_x1]
    )

    logger.debug(f"Cropped {image.width}x{image.height} -> {out_width}x{out_height} at ({left}, {top})")
    return RasterImage.from_array(result)


# ============================================================================
# Sticker Compositing
# ============================================================================

@lru_cache(maxsize=32)
def _load_font(font_path: Optional[str], size: int) -> Any:
    if font_path:
        return ImageFont.truetype(font_path, size)
    return ImageFont.load_default(size=size)


def sticker_font_size(image_width: int, scale: float) -> int:
    """Font size for a sticker: 10% of the image width times the sticker scale."""
    return max(1, math.floor(image_width * STICKER_FONT_RATIO * scale))


def _as_stickers(stickers: Iterable[Union[Sticker, Dict[str, Any]]]) -> List[Sticker]:
    result = []
    for index, item in enumerate(stickers):
        if isinstance(item, Sticker):
            result.append(item)
        elif isinstance(item, dict):
            data = {"id": index, **item}
            result.append(Sticker.from_dict(data))
        else:
            raise TypeError(f"Invalid sticker data: {type(item)}")
    return result


def composite_stickers(
    image: RasterImage,
    stickers: Iterable[Union[Sticker, Dict[str, Any]]],
    font_path: Optional[str] = None,
    fill: RgbaColor = STICKER_FILL_COLOR,
) -> RasterImage:
    """
    Draw sticker glyphs onto an image.

    Each glyph is centred at (x * width, y * height) with a font size of
    floor(0.1 * width * scale). Stickers are drawn in list order, so later
    stickers cover earlier ones where they overlap.

    Args:
        image: Base RasterImage
        stickers: Sticker objects or dicts with content, x, y, scale, fill
        font_path: Optional TrueType/OpenType font (default: Pillow's bundled font)
        fill: Default RGBA ink colour (a sticker's own fill overrides it)

    Returns:
        New RasterImage with the stickers baked in

    Raises:
        ValueError: If a sticker has invalid coordinates or scale
        OSError: If font_path cannot be loaded
    """
    sticker_list = _as_stickers(stickers)

    canvas = image.to_pil()
    if not sticker_list:
        return RasterImage.from_pil(canvas)

    draw = ImageDraw.Draw(canvas)
    for sticker in sticker_list:
        font = _load_font(font_path, sticker_font_size(image.width, sticker.scale))
        position = (sticker.x * image.width, sticker.y * image.height)
        draw.text(
            position,
            sticker.content,
            font=font,
            fill=tuple(sticker.fill or fill),
            anchor=STICKER_ANCHOR,
            embedded_color=True,
        )

    logger.debug(f"Composited {len(sticker_list)} stickers")
    return RasterImage.from_pil(canvas)


# ============================================================================
# Resize
# ============================================================================

def resize_to_width(image: RasterImage, target_width: int) -> RasterImage:
    """
    Resample an image to a new width, keeping the aspect ratio (Lanczos).

    Raises:
        ValueError: If target_width <= 0
    """
    target_width = int(target_width)
    if target_width <= 0:
        raise ValueError(f"target_width must be > 0, got {target_width}")

    target_height = max(1, round(image.height * target_width / image.width))
    if (target_width, target_height) == image.size:
        return RasterImage(image.width, image.height, image.pixels)

    resized = image.to_pil().resize((target_width, target_height), Image.Resampling.LANCZOS)
    return RasterImage.from_pil(resized)
