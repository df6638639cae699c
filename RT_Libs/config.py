"""
Editor configuration for Open Retouch.

Holds the tunable knobs of the editing core (tool radii, sticker font,
export format, worker pool size, log level) and persists them as JSON.

Classes:
    EditorConfig: Tunable settings with dictionary round-tripping

Functions:
    load_config: Load an EditorConfig from a JSON file (defaults if missing)
    save_config: Write an EditorConfig to a JSON file
    configure_logging: Attach a stream handler to the RT_Libs logger
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from RT_Libs.constants import (
    DEFAULT_CLONE_RADIUS,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_WORKERS,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_RED_EYE_RADIUS,
    EXPORT_FILE_PREFIX,
    LOG_FORMAT,
    STICKER_FILL_COLOR,
)

logger = logging.getLogger(__name__)


@dataclass
class EditorConfig:
    """Configuration for an editor session.

    Attributes:
        clone_radius: Default clone stamp radius in pixels
        red_eye_radius: Red-eye correction radius in pixels
        sticker_font_path: TrueType/OpenType font for sticker glyphs
                           (None = Pillow's bundled default font)
        sticker_fill: RGBA colour used to draw sticker glyphs
        export_format: Format used by EditorSession.export (PNG, JPEG, ...)
        jpeg_quality: JPEG quality 1-100 (only for JPEG exports)
        export_prefix: Prefix prepended to the filename on export
        max_workers: Thread pool size for background operations
        log_level: Level applied by configure_logging
    """
    clone_radius: float = DEFAULT_CLONE_RADIUS
    red_eye_radius: float = DEFAULT_RED_EYE_RADIUS
    sticker_font_path: Optional[str] = None
    sticker_fill: Tuple[int, int, int, int] = field(default=STICKER_FILL_COLOR)
    export_format: str = DEFAULT_OUTPUT_FORMAT
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    export_prefix: str = EXPORT_FILE_PREFIX
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        """Validate configuration values."""
        if self.clone_radius <= 0:
            raise ValueError(f"clone_radius must be > 0, got {self.clone_radius}")

        if self.red_eye_radius <= 0:
            raise ValueError(f"red_eye_radius must be > 0, got {self.red_eye_radius}")

        if not (1 <= self.jpeg_quality <= 100):
            raise ValueError(f"jpeg_quality must be 1-100, got {self.jpeg_quality}")

        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

        fill = tuple(int(v) for v in self.sticker_fill)
        if len(fill) != 4 or any(not (0 <= v <= 255) for v in fill):
            raise ValueError(f"sticker_fill must be an RGBA tuple, got {self.sticker_fill}")
        self.sticker_fill = fill

        self.export_format = str(self.export_format).upper()
        self.log_level = str(self.log_level).upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["sticker_fill"] = list(self.sticker_fill)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """Create from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__}
        return cls(**filtered)


def load_config(path: Path) -> EditorConfig:
    """
    Load editor configuration from a JSON file.

    Args:
        path: Path to the JSON config file

    Returns:
        EditorConfig built from the file, or defaults if the file is missing

    Raises:
        ValueError: If the file is not valid JSON or not a JSON object
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"Config file not found, using defaults: {path}")
        return EditorConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")

    return EditorConfig.from_dict(data)


def save_config(config: EditorConfig, path: Path) -> None:
    """Write configuration to a JSON file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")


def configure_logging(config: Optional[EditorConfig] = None) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    The library never installs handlers on its own; applications call this
    once at start-up if they want the core's log output.

    Returns:
        The configured "RT_Libs" logger
    """
    config = config or EditorConfig()
    root = logging.getLogger("RT_Libs")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, config.log_level, logging.WARNING))
    return root
