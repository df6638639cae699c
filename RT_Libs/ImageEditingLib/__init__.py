"""
ImageEditingLib - Core raster editing functionality

This module provides the immutable raster image type, the decode/encode
boundary, kernel convolution, destructive region operations, the
non-destructive filter pipeline and coordinate mapping for Open Retouch.
"""

from RT_Libs.ImageEditingLib.image_models import (
    CropRect,
    FilterSettings,
    RgbaColor,
    Sticker,
)
from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.ImageEditingLib.image_codec import (
    decode_image,
    encode_image,
    normalize_format,
    to_data_uri,
)
from RT_Libs.ImageEditingLib.convolution import (
    apply_quality_sharpen,
    apply_sharpen,
    convolve,
    sharpen_kernel,
)
from RT_Libs.ImageEditingLib.region_ops import (
    apply_clone_stamp,
    apply_red_eye_correction,
    composite_stickers,
    crop_image,
    resize_to_width,
)
from RT_Libs.ImageEditingLib.filter_pipeline import (
    apply_color_filters,
    apply_geometry,
    render,
)
from RT_Libs.ImageEditingLib.coordinates import (
    clamp_unit,
    normalized_rect_to_pixel,
    normalized_to_pixel,
    pixel_to_normalized,
)

__all__ = [
    "CropRect",
    "FilterSettings",
    "RgbaColor",
    "Sticker",
    "RasterImage",
    "decode_image",
    "encode_image",
    "normalize_format",
    "to_data_uri",
    "apply_quality_sharpen",
    "apply_sharpen",
    "convolve",
    "sharpen_kernel",
    "apply_clone_stamp",
    "apply_red_eye_correction",
    "composite_stickers",
    "crop_image",
    "resize_to_width",
    "apply_color_filters",
    "apply_geometry",
    "render",
    "clamp_unit",
    "normalized_rect_to_pixel",
    "normalized_to_pixel",
    "pixel_to_normalized",
]
