"""
Editor session: the composition root of the editing core.

An EditorSession owns the live FilterSettings, the transient sticker list,
the EditHistory and the filename metadata of one open image. It converts
normalized UI coordinates to pixel space, runs region operations and
external transforms against the current image, and commits their results.

Concurrency:
    Destructive operations are serialized by a session lock: a second
    request waits until the first has committed or failed. Settings updates
    use a separate lock and never wait on destructive work. A failed
    operation never commits, so history stays exactly as it was.

Example:
    >>> session = EditorSession()
    >>> session.load_bytes(data, "image/png", filename="cat.png")
    >>> session.red_eye(0.42, 0.37)
    >>> session.update_settings(brightness=120, sharpen=30)
    >>> png = session.export()
    >>> session.export_filename
    'edited-cat.png'
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from RT_Libs.ImageEditingLib.coordinates import clamp_unit, normalized_to_pixel
from RT_Libs.ImageEditingLib.filter_pipeline import render
from RT_Libs.ImageEditingLib.image_codec import decode_image, encode_image, to_data_uri
from RT_Libs.ImageEditingLib.image_models import FilterSettings, RgbaColor, Sticker
from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.ImageEditingLib.region_ops import (
    CropLike,
    apply_clone_stamp,
    apply_red_eye_correction,
    composite_stickers,
    crop_image,
    resize_to_width,
)
from RT_Libs.PresetLib.prompt_heuristic import resolve_prompt
from RT_Libs.SessionLib.collaborators import (
    ImageTransform,
    builtin_quality_improver,
    run_collaborator,
)
from RT_Libs.SessionLib.edit_history import EditHistory
from RT_Libs.config import EditorConfig
from RT_Libs.constants import DEFAULT_FILENAME
from RT_Libs.errors import ExternalOperationFailed, RetouchError

logger = logging.getLogger(__name__)

# Session methods that may be run through submit()
BACKGROUND_OPERATIONS = {
    "load_bytes",
    "load_file",
    "clone_stamp",
    "red_eye",
    "crop",
    "apply_stickers",
    "remove_background",
    "improve_quality",
    "upscale",
    "render_preview",
    "export",
}


class EditorSession:
    """Editing state for a single image."""

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        background_remover: Optional[ImageTransform] = None,
        quality_improver: Optional[ImageTransform] = builtin_quality_improver,
    ):
        """
        Create an empty session.

        Args:
            config: Editor configuration (defaults if None)
            background_remover: External (bytes -> bytes) background removal
            quality_improver: External (bytes -> bytes) quality improvement;
                              defaults to the built-in sharpen pass
        """
        self.config = config or EditorConfig()
        self.background_remover = background_remover
        self.quality_improver = quality_improver

        self.history = EditHistory()
        self.settings = FilterSettings()
        self.stickers: List[Sticker] = []
        self.filename = DEFAULT_FILENAME

        self._next_sticker_id = 1
        self._edit_lock = threading.Lock()
        self._settings_lock = threading.Lock()
        self._processing = False
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def __enter__(self) -> "EditorSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return not self.history.is_empty

    @property
    def is_processing(self) -> bool:
        """True while a destructive operation is running."""
        return self._processing

    @property
    def current(self) -> RasterImage:
        """Current image (raises EmptyHistory when nothing is loaded)."""
        return self.history.current()

    @property
    def original(self) -> RasterImage:
        """The image as it was loaded."""
        return self.history.original()

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(width, height) of the current image, (0, 0) when empty."""
        image = self.history.peek()
        return image.size if image is not None else (0, 0)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    @property
    def export_filename(self) -> str:
        return f"{self.config.export_prefix}{self.filename}"

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_image(self, image: RasterImage, filename: Optional[str] = None) -> RasterImage:
        """
        Make image the new base: history, settings and stickers are reset.
        """
        with self._edit_lock:
            self.history.load(image)
            self.filename = filename or DEFAULT_FILENAME
            with self._settings_lock:
                self.settings.reset()
            self.stickers = []
        return image

    def load_bytes(
        self,
        data: bytes,
        format_hint: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> RasterImage:
        """
        Decode uploaded bytes and load them.

        Decoding completes before any session state changes, so a DecodeError
        leaves the previous image, history and settings untouched.

        Raises:
            DecodeError: If the data cannot be decoded
        """
        image = decode_image(data, format_hint)
        return self.load_image(image, filename)

    def load_file(self, path: Path) -> RasterImage:
        """Read and load an image file, using its suffix as the format hint."""
        path = Path(path)
        return self.load_bytes(path.read_bytes(), path.suffix or None, filename=path.name)

    # ------------------------------------------------------------------
    # Non-destructive adjustments
    # ------------------------------------------------------------------

    def update_settings(self, **changes: Any) -> FilterSettings:
        """Apply partial setting changes (validated; all-or-nothing)."""
        with self._settings_lock:
            self.settings.update(**changes)
            return self.settings.copy()

    def reset_settings(self) -> None:
        with self._settings_lock:
            self.settings.reset()

    def apply_prompt(self, prompt: str) -> FilterSettings:
        """Replace the settings wholesale with the preset resolved from prompt."""
        resolved = resolve_prompt(prompt)
        with self._settings_lock:
            self.settings.update(**resolved.to_dict())
            return self.settings.copy()

    def settings_snapshot(self) -> FilterSettings:
        with self._settings_lock:
            return self.settings.copy()

    def render_preview(self) -> RasterImage:
        """Render the current image with the live settings."""
        return render(self.current, self.settings_snapshot())

    # ------------------------------------------------------------------
    # Stickers (transient overlay state)
    # ------------------------------------------------------------------

    def add_sticker(self, content: str, fill: Optional[RgbaColor] = None) -> Sticker:
        """Add a sticker at the image centre with scale 1 (fill None = config.sticker_fill)."""
        sticker = Sticker(id=self._next_sticker_id, content=content, fill=fill)
        self._next_sticker_id += 1
        self.stickers.append(sticker)
        return sticker

    def _find_sticker(self, sticker_id: int) -> Sticker:
        for sticker in self.stickers:
            if sticker.id == sticker_id:
                return sticker
        raise KeyError(f"No sticker with id {sticker_id}")

    def update_sticker(
        self,
        sticker_id: int,
        x: Optional[float] = None,
        y: Optional[float] = None,
        scale: Optional[float] = None,
    ) -> Sticker:
        """
        Move or resize a sticker. Positions are clamped to [0, 1].

        Raises:
            KeyError: If no sticker has sticker_id
            ValueError: If scale <= 0
        """
        sticker = self._find_sticker(sticker_id)
        if scale is not None and scale <= 0:
            raise ValueError(f"scale must be > 0, got {scale}")

        if x is not None:
            sticker.x = clamp_unit(x)
        if y is not None:
            sticker.y = clamp_unit(y)
        if scale is not None:
            sticker.scale = float(scale)
        return sticker

    def remove_sticker(self, sticker_id: int) -> bool:
        """Remove a sticker. Returns False if it did not exist."""
        before = len(self.stickers)
        self.stickers = [s for s in self.stickers if s.id != sticker_id]
        return len(self.stickers) != before

    def clear_stickers(self) -> None:
        self.stickers = []

    # ------------------------------------------------------------------
    # Destructive operations
    # ------------------------------------------------------------------

    def _run_destructive(self, operation: str, edit: Callable[[RasterImage], RasterImage]) -> RasterImage:
        """Run edit against the current image and commit its result, or commit nothing."""
        with self._edit_lock:
            self._processing = True
            try:
                base = self.history.current()
                result = edit(base)
                self.history.commit(result)
            except (RetouchError, ValueError, TypeError, OSError) as e:
                logger.warning(f"{operation} aborted: {e}")
                raise
            finally:
                self._processing = False
        return result

    def clone_stamp(
        self,
        target_x: float,
        target_y: float,
        source_x: float,
        source_y: float,
        radius: Optional[float] = None,
    ) -> RasterImage:
        """
        Clone stamp using normalized [0, 1] click coordinates.

        Args:
            target_x, target_y: Normalized point to paint
            source_x, source_y: Normalized point to copy from
            radius: Radius in image pixels (default: config.clone_radius)
        """
        radius = self.config.clone_radius if radius is None else radius

        def edit(image: RasterImage) -> RasterImage:
            tx, ty = normalized_to_pixel(target_x, target_y, image.width, image.height)
            sx, sy = normalized_to_pixel(source_x, source_y, image.width, image.height)
            return apply_clone_stamp(image, tx, ty, sx, sy, radius)

        return self._run_destructive("Clone stamp", edit)

    def red_eye(self, x: float, y: float) -> RasterImage:
        """Red-eye correction at a normalized [0, 1] click position."""
        def edit(image: RasterImage) -> RasterImage:
            px, py = normalized_to_pixel(x, y, image.width, image.height)
            return apply_red_eye_correction(image, px, py, self.config.red_eye_radius)

        return self._run_destructive("Red eye correction", edit)

    def crop(self, rect: CropLike) -> RasterImage:
        """Crop to a pixel-space rectangle."""
        return self._run_destructive("Crop", lambda image: crop_image(image, rect))

    def apply_stickers(self) -> RasterImage:
        """
        Bake the sticker list into a new image and clear it.

        With no stickers this is a no-op returning the current image.
        """
        stickers = [Sticker(**s.to_dict()) for s in self.stickers]
        if not stickers:
            return self.current

        result = self._run_destructive(
            "Sticker bake",
            lambda image: composite_stickers(
                image,
                stickers,
                font_path=self.config.sticker_font_path,
                fill=self.config.sticker_fill,
            ),
        )
        baked_ids = {s.id for s in stickers}
        self.stickers = [s for s in self.stickers if s.id not in baked_ids]
        return result

    def remove_background(self) -> RasterImage:
        """
        Replace the current image with the background-removal result.

        Raises:
            ExternalOperationFailed: If no remover is configured or it fails
        """
        remover = self.background_remover
        if remover is None:
            raise ExternalOperationFailed("Background removal", "no background remover configured")
        return self._run_destructive(
            "Background removal",
            lambda image: run_collaborator("Background removal", remover, image),
        )

    def improve_quality(self) -> RasterImage:
        """
        Replace the current image with the quality-improvement result.

        Raises:
            ExternalOperationFailed: If the improver is missing or fails
        """
        improver = self.quality_improver
        if improver is None:
            raise ExternalOperationFailed("Quality improvement", "no quality improver configured")
        return self._run_destructive(
            "Quality improvement",
            lambda image: run_collaborator("Quality improvement", improver, image),
        )

    def upscale(self, target_width: int) -> RasterImage:
        """Resize the current image to target_width, keeping the aspect ratio."""
        return self._run_destructive("Upscale", lambda image: resize_to_width(image, target_width))

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def bake(self) -> RasterImage:
        """Render the current image with the live settings into a concrete image."""
        return self.render_preview()

    def export(self, fmt: Optional[str] = None) -> bytes:
        """
        Encode the rendered current image for download.

        History is not modified.

        Args:
            fmt: Output format hint (default: config.export_format)
        """
        baked = self.bake()
        return encode_image(baked, fmt or self.config.export_format, self.config.jpeg_quality)

    def export_data_uri(self, fmt: Optional[str] = None) -> str:
        return to_data_uri(self.bake(), fmt or self.config.export_format)

    # ------------------------------------------------------------------
    # Background execution
    # ------------------------------------------------------------------

    def submit(self, operation: str, *args: Any, **kwargs: Any) -> Future:
        """
        Run a session operation on the worker pool.

        Args:
            operation: Name of a session method (see BACKGROUND_OPERATIONS)

        Returns:
            Future resolving to the method's return value

        Raises:
            ValueError: If operation is not allowed in the background
        """
        if operation not in BACKGROUND_OPERATIONS:
            raise ValueError(
                f"Unknown background operation: {operation}. "
                f"Valid operations: {', '.join(sorted(BACKGROUND_OPERATIONS))}"
            )

        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.max_workers,
                    thread_name_prefix="retouch",
                )
            return self._executor.submit(getattr(self, operation), *args, **kwargs)

    def close(self) -> None:
        """Shut down the worker pool and drop the history."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
        self.history.clear()
        self.stickers = []
