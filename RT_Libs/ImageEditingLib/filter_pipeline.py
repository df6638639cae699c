"""
Non-destructive filter pipeline.

Renders a RasterImage through the adjustment stack described by a
FilterSettings object. The same function backs the live preview and the
export bake; it never touches the edit history.

Stages (fixed order):
    1. Colour filters, CSS filter-function semantics, applied in sequence:
       brightness, contrast, saturate, grayscale, sepia, blur, hue-rotate
    2. Geometry: rotate + scale about the image centre onto a canvas of
       (width * scale, height * scale)
    3. Sharpen: unsharp convolution, only when sharpen > 0

Colour math works on unpremultiplied RGB in [0, 1] and clamps after each
function. Blur is a Gaussian with standard deviation `blur` pixels over
premultiplied RGBA, with transparent black outside the image.

Example:
    >>> settings = FilterSettings(brightness=120, sepia=30, rotate=90)
    >>> preview = render(image, settings)
"""

import logging
import math
from typing import Callable, List

import numpy as np
from scipy import ndimage

from RT_Libs.ImageEditingLib.convolution import apply_sharpen
from RT_Libs.ImageEditingLib.image_models import FilterSettings
from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.pillow_compat import Image

logger = logging.getLogger(__name__)

ColorStep = Callable[[np.ndarray], np.ndarray]


# ============================================================================
# Colour matrices (W3C Filter Effects)
# ============================================================================

def saturate_matrix(amount: float) -> np.ndarray:
    """3x3 matrix for saturate(amount), amount 1.0 = unchanged."""
    s = amount
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ])


def grayscale_matrix(amount: float) -> np.ndarray:
    """3x3 matrix for grayscale(amount), amount 0.0-1.0."""
    a = 1.0 - min(amount, 1.0)
    return np.array([
        [0.2126 + 0.7874 * a, 0.7152 - 0.7152 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 + 0.2848 * a, 0.0722 - 0.0722 * a],
        [0.2126 - 0.2126 * a, 0.7152 - 0.7152 * a, 0.0722 + 0.9278 * a],
    ])


def sepia_matrix(amount: float) -> np.ndarray:
    """3x3 matrix for sepia(amount), amount 0.0-1.0."""
    a = 1.0 - min(amount, 1.0)
    return np.array([
        [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
        [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
        [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
    ])


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    """3x3 matrix for hue-rotate(degrees)."""
    theta = math.radians(degrees)
    c = math.cos(theta)
    s = math.sin(theta)
    return np.array([
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ])


def _matrix_step(matrix: np.ndarray) -> ColorStep:
    def step(rgb: np.ndarray) -> np.ndarray:
        return np.clip(rgb @ matrix.T, 0.0, 1.0)
    return step


def _linear_step(slope: float, intercept: float) -> ColorStep:
    def step(rgb: np.ndarray) -> np.ndarray:
        return np.clip(rgb * slope + intercept, 0.0, 1.0)
    return step


def _pre_blur_steps(settings: FilterSettings) -> List[ColorStep]:
    steps = []
    if settings.brightness != 100:
        steps.append(_linear_step(settings.brightness / 100.0, 0.0))
    if settings.contrast != 100:
        c = settings.contrast / 100.0
        steps.append(_linear_step(c, 0.5 - 0.5 * c))
    if settings.saturation != 100:
        steps.append(_matrix_step(saturate_matrix(settings.saturation / 100.0)))
    if settings.grayscale != 0:
        steps.append(_matrix_step(grayscale_matrix(settings.grayscale / 100.0)))
    if settings.sepia != 0:
        steps.append(_matrix_step(sepia_matrix(settings.sepia / 100.0)))
    return steps


def _gaussian_blur_rgba(rgb: np.ndarray, alpha: np.ndarray, sigma: float):
    """Blur premultiplied RGBA; returns unpremultiplied (rgb, alpha)."""
    premultiplied = rgb * alpha[:, :, None]
    blurred = np.empty_like(premultiplied)
    for channel_idx in range(3):
        blurred[:, :, channel_idx] = ndimage.gaussian_filter(
            premultiplied[:, :, channel_idx], sigma=sigma, mode="constant", cval=0.0
        )
    new_alpha = ndimage.gaussian_filter(alpha, sigma=sigma, mode="constant", cval=0.0)

    safe_alpha = np.where(new_alpha > 0, new_alpha, 1.0)
    new_rgb = np.where(new_alpha[:, :, None] > 0, blurred / safe_alpha[:, :, None], 0.0)
    return np.clip(new_rgb, 0.0, 1.0), np.clip(new_alpha, 0.0, 1.0)


def apply_color_filters(image: RasterImage, settings: FilterSettings) -> RasterImage:
    """
    Apply the colour/blur part of the stack.

    Functions at their neutral value are skipped, so neutral settings return
    the input image itself.

    Args:
        image: Source RasterImage
        settings: Adjustment parameters

    Returns:
        Filtered RasterImage
    """
    if not settings.has_color_adjustments:
        return image

    source = image.to_array().astype(np.float64) / 255.0
    rgb = source[:, :, :3]
    alpha = source[:, :, 3]

    for step in _pre_blur_steps(settings):
        rgb = step(rgb)

    if settings.blur > 0:
        rgb, alpha = _gaussian_blur_rgba(rgb, alpha, settings.blur)

    if settings.hue_rotate % 360 != 0:
        rgb = _matrix_step(hue_rotate_matrix(settings.hue_rotate))(rgb)

    result = np.empty(source.shape, dtype=np.uint8)
    result[:, :, :3] = np.rint(rgb * 255.0)
    if settings.blur > 0:
        result[:, :, 3] = np.rint(alpha * 255.0)
    else:
        result[:, :, 3] = image.to_array()[:, :, 3]
    return RasterImage.from_array(result)


# ============================================================================
# Geometry
# ============================================================================

def output_size(image: RasterImage, scale: float):
    """Canvas size after scaling: (int(width * scale), int(height * scale)), at least 1x1."""
    return max(1, int(image.width * scale)), max(1, int(image.height * scale))


def apply_geometry(image: RasterImage, settings: FilterSettings) -> RasterImage:
    """
    Rotate (clockwise, degrees) and scale the image about its centre.

    The canvas is (width * scale, height * scale); the image is centred on
    it and regions it does not cover are transparent. Resampling is bilinear
    on premultiplied pixels.

    Args:
        image: Source RasterImage
        settings: Uses settings.rotate and settings.scale

    Returns:
        Transformed RasterImage (the input itself for identity geometry)
    """
    if not settings.has_geometry:
        return image

    out_width, out_height = output_size(image, settings.scale)
    theta = math.radians(settings.rotate)
    cos_t = math.cos(theta) / settings.scale
    sin_t = math.sin(theta) / settings.scale

    out_cx, out_cy = out_width / 2.0, out_height / 2.0
    in_cx, in_cy = image.width / 2.0, image.height / 2.0

    # Inverse mapping output -> input for Image.transform
    a, b = cos_t, sin_t
    d, e = -sin_t, cos_t
    c = in_cx - a * out_cx - b * out_cy
    f = in_cy - d * out_cx - e * out_cy

    premultiplied = image.to_pil().convert("RGBa")
    transformed = premultiplied.transform(
        (out_width, out_height),
        Image.Transform.AFFINE,
        (a, b, c, d, e, f),
        resample=Image.Resampling.BILINEAR,
        fillcolor=(0, 0, 0, 0),
    )
    return RasterImage.from_pil(transformed.convert("RGBA"))


# ============================================================================
# Pipeline
# ============================================================================

def render(image: RasterImage, settings: FilterSettings) -> RasterImage:
    """
    Render an image through the full adjustment stack.

    Order is fixed: colour filters, then rotate/scale, then sharpen (only
    when settings.sharpen > 0).

    Args:
        image: Base RasterImage (not modified)
        settings: Adjustment parameters

    Returns:
        Rendered RasterImage; neutral settings return the input unchanged
    """
    result = apply_color_filters(image, settings)
    result = apply_geometry(result, settings)
    if settings.sharpen > 0:
        result = apply_sharpen(result, settings.sharpen)

    logger.debug(f"Rendered {image.width}x{image.height} -> {result.width}x{result.height}")
    return result
