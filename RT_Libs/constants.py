"""
Constants and configuration values for Open Retouch.

This module centralizes all constant values, magic numbers, and
default settings used throughout the editing core.
"""

# Pixel layout
CHANNELS = 4
PIXEL_MODE = "RGBA"

# Retouch tool defaults (pixel-space radii)
DEFAULT_CLONE_RADIUS = 20
DEFAULT_RED_EYE_RADIUS = 15

# Sticker rendering
STICKER_FONT_RATIO = 0.1
STICKER_DEFAULT_POSITION = 0.5
STICKER_DEFAULT_SCALE = 1.0
STICKER_FILL_COLOR = (0, 0, 0, 255)
STICKER_ANCHOR = "mm"

# Filter setting domains
SCALE_MIN = 0.5
SCALE_MAX = 2.0
SHARPEN_MIN = 0.0
SHARPEN_MAX = 100.0
ROTATE_PERIOD = 360.0

# Quality improvement kernel
QUALITY_KERNEL = (
    (0.0, -1.0, 0.0),
    (-1.0, 5.0, -1.0),
    (0.0, -1.0, 0.0),
)

# File naming
DEFAULT_FILENAME = "image.png"
EXPORT_FILE_PREFIX = "edited-"
DEFAULT_OUTPUT_FORMAT = "PNG"
DEFAULT_JPEG_QUALITY = 95

# Supported formats: Pillow format name -> MIME type
SUPPORTED_FORMATS = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "BMP": "image/bmp",
    "GIF": "image/gif",
    "TIFF": "image/tiff",
    "WEBP": "image/webp",
}

# Aliases accepted as format hints (extensions and nonstandard MIME types)
FORMAT_ALIASES = {
    "PNG": "PNG",
    "JPG": "JPEG",
    "JPEG": "JPEG",
    "JPE": "JPEG",
    "PJPEG": "JPEG",
    "BMP": "BMP",
    "X-MS-BMP": "BMP",
    "GIF": "GIF",
    "TIF": "TIFF",
    "TIFF": "TIFF",
    "WEBP": "WEBP",
}

# Formats that cannot store an alpha channel
OPAQUE_FORMATS = {"JPEG", "BMP"}

# Background work
DEFAULT_MAX_WORKERS = 2
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
