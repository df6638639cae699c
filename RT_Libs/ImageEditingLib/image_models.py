"""
Image editing data models for Open Retouch.

This module defines the value types shared by the editing core.

Classes:
    FilterSettings: Non-destructive adjustment parameters (live, never historized)
    Sticker: Transient glyph overlay positioned in normalized coordinates
    CropRect: Pixel-space crop rectangle

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple

from RT_Libs.constants import (
    ROTATE_PERIOD,
    SCALE_MAX,
    SCALE_MIN,
    SHARPEN_MAX,
    SHARPEN_MIN,
    STICKER_DEFAULT_POSITION,
    STICKER_DEFAULT_SCALE,
)

RgbaColor = Tuple[int, int, int, int]

# UI-side spellings accepted by FilterSettings.from_dict / update
_SETTING_ALIASES = {"hueRotate": "hue_rotate"}


@dataclass
class FilterSettings:
    """Adjustment parameters for the filter pipeline.

    Percentages follow the CSS filter conventions: brightness, contrast and
    saturation are neutral at 100; grayscale, sepia, blur (px) and
    hue_rotate (deg) are neutral at 0.

    Attributes:
        brightness: Brightness percentage (>= 0, 100 = unchanged)
        contrast: Contrast percentage (>= 0, 100 = unchanged)
        saturation: Saturation percentage (>= 0, 100 = unchanged)
        grayscale: Grayscale amount percentage (>= 0)
        sepia: Sepia amount percentage (>= 0)
        blur: Gaussian blur standard deviation in pixels (>= 0)
        hue_rotate: Hue rotation in degrees
        rotate: Rotation in degrees, normalized to [0, 360)
        scale: Uniform scale factor (0.5-2.0)
        sharpen: Unsharp amount (0-100)
    """
    brightness: float = 100.0
    contrast: float = 100.0
    saturation: float = 100.0
    grayscale: float = 0.0
    sepia: float = 0.0
    blur: float = 0.0
    hue_rotate: float = 0.0
    rotate: float = 0.0
    scale: float = 1.0
    sharpen: float = 0.0

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"{item.name} must be a number, got {type(value).__name__}")
            if not math.isfinite(value):
                raise ValueError(f"{item.name} must be finite, got {value}")

        for name in ("brightness", "contrast", "saturation", "grayscale", "sepia", "blur"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

        if not (SCALE_MIN <= self.scale <= SCALE_MAX):
            raise ValueError(f"scale must be {SCALE_MIN}-{SCALE_MAX}, got {self.scale}")

        if not (SHARPEN_MIN <= self.sharpen <= SHARPEN_MAX):
            raise ValueError(f"sharpen must be {SHARPEN_MIN:g}-{SHARPEN_MAX:g}, got {self.sharpen}")

        self.rotate = self.rotate % ROTATE_PERIOD
        # tiny negatives round up to the period under float modulo
        if self.rotate >= ROTATE_PERIOD:
            self.rotate = 0.0

    def update(self, **changes: Any) -> "FilterSettings":
        """
        Apply partial changes in place.

        The changes are validated together; on error no field is modified.

        Raises:
            KeyError: If a field name is unknown
            ValueError: If a value is out of its domain
        """
        normalized = {}
        for key, value in changes.items():
            name = _SETTING_ALIASES.get(key, key)
            if name not in self.__dataclass_fields__:
                raise KeyError(f"Unknown filter setting: {key}")
            normalized[name] = value

        candidate = FilterSettings(**{**self.to_dict(), **normalized})
        for name, value in candidate.to_dict().items():
            setattr(self, name, value)
        return self

    def reset(self) -> None:
        """Restore every field to its neutral default in place."""
        for item in fields(self):
            setattr(self, item.name, item.default)

    def copy(self) -> "FilterSettings":
        return FilterSettings(**self.to_dict())

    @property
    def has_color_adjustments(self) -> bool:
        """True if any colour/blur field differs from its neutral value."""
        return (
            self.brightness != 100 or self.contrast != 100 or self.saturation != 100
            or self.grayscale != 0 or self.sepia != 0 or self.blur != 0
            or self.hue_rotate % ROTATE_PERIOD != 0
        )

    @property
    def has_geometry(self) -> bool:
        """True if rotate or scale differ from identity."""
        return self.rotate != 0 or self.scale != 1

    def is_neutral(self) -> bool:
        return not (self.has_color_adjustments or self.has_geometry or self.sharpen > 0)

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterSettings":
        """Create from dictionary, accepting UI spellings and ignoring unknown keys."""
        filtered = {}
        for key, value in data.items():
            name = _SETTING_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                filtered[name] = value
        return cls(**filtered)


@dataclass
class Sticker:
    """A glyph overlay waiting to be baked into the image.

    Attributes:
        id: Identifier unique within an editor session
        content: Glyph or string to draw (usually a single emoji)
        x: Horizontal centre, normalized 0.0-1.0
        y: Vertical centre, normalized 0.0-1.0
        scale: Size multiplier relative to 10% of the image width
        fill: RGBA ink colour for this sticker (None = the compositing default)
    """
    id: int
    content: str
    x: float = STICKER_DEFAULT_POSITION
    y: float = STICKER_DEFAULT_POSITION
    scale: float = STICKER_DEFAULT_SCALE
    fill: Optional[RgbaColor] = None

    def __post_init__(self):
        """Validate sticker parameters."""
        if not (0.0 <= self.x <= 1.0):
            raise ValueError(f"x must be 0.0-1.0, got {self.x}")

        if not (0.0 <= self.y <= 1.0):
            raise ValueError(f"y must be 0.0-1.0, got {self.y}")

        if self.scale <= 0:
            raise ValueError(f"scale must be > 0, got {self.scale}")

        if self.fill is not None:
            fill = tuple(int(v) for v in self.fill)
            if len(fill) != 4 or any(not (0 <= v <= 255) for v in fill):
                raise ValueError(f"fill must be an RGBA tuple, got {self.fill}")
            self.fill = fill

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sticker":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__}
        return cls(**filtered)


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in pixel space (origin top-left)."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CropRect":
        return cls(
            x=float(data.get("x", 0)),
            y=float(data.get("y", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
        )
