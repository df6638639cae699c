"""
Linear undo/redo history of RasterImage snapshots.

States:
    empty   - no image loaded; current() raises EmptyHistory
    loaded  - one or more entries, 0 <= cursor < len(entries)

Transitions:
    load(image)   -> single-entry history at cursor 0
    commit(image) -> drop entries after the cursor, append, move cursor to the end
    undo()/redo() -> move the cursor by one when possible, otherwise no-op

Entries are only ever removed by load() and by the redo-tail truncation in
commit(). RasterImage is immutable, so entries never alias mutable state.
"""

import logging
import threading
from typing import List, Optional

from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.errors import EmptyHistory

logger = logging.getLogger(__name__)


class EditHistory:
    """
    Append-only edit history with a cursor.

    Example:
        >>> history = EditHistory()
        >>> history.load(original)
        >>> history.commit(cropped)
        >>> history.undo()
        True
        >>> history.current() is original
        True
    """

    def __init__(self):
        """Initialize an empty history."""
        self._entries: List[RasterImage] = []
        self._cursor: int = -1
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def cursor(self) -> int:
        """Index of the current entry (-1 when empty)."""
        return self._cursor

    @property
    def entries(self) -> List[RasterImage]:
        """Snapshot copy of the entry list."""
        with self._lock:
            return list(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def load(self, image: RasterImage) -> None:
        """Reset the history to a single entry holding image."""
        self._check_image(image)
        with self._lock:
            discarded = len(self._entries)
            self._entries = [image]
            self._cursor = 0
        logger.info(f"History loaded {image.width}x{image.height} image (discarded {discarded} entries)")

    def commit(self, image: RasterImage) -> None:
        """
        Append the result of a destructive edit and make it current.

        Any redo tail beyond the cursor is discarded first.

        Raises:
            EmptyHistory: If no image has been loaded
        """
        self._check_image(image)
        with self._lock:
            if not self._entries:
                raise EmptyHistory("Cannot commit an edit before an image is loaded")

            dropped = len(self._entries) - (self._cursor + 1)
            del self._entries[self._cursor + 1:]
            self._entries.append(image)
            self._cursor = len(self._entries) - 1

        if dropped:
            logger.debug(f"Discarded {dropped} redo entries")
        logger.info(f"Committed edit #{self._cursor} ({image.width}x{image.height})")

    def undo(self) -> bool:
        """Step back one entry. Returns True if the cursor moved."""
        with self._lock:
            if self._cursor <= 0:
                return False
            self._cursor -= 1
        logger.debug(f"Undo -> entry {self._cursor}")
        return True

    def redo(self) -> bool:
        """Step forward one entry. Returns True if the cursor moved."""
        with self._lock:
            if not self.can_redo:
                return False
            self._cursor += 1
        logger.debug(f"Redo -> entry {self._cursor}")
        return True

    def current(self) -> RasterImage:
        """
        Get the image at the cursor.

        Raises:
            EmptyHistory: If no image has been loaded
        """
        with self._lock:
            if not self._entries:
                raise EmptyHistory("No image loaded")
            return self._entries[self._cursor]

    def peek(self) -> Optional[RasterImage]:
        """Like current(), but returns None when empty."""
        with self._lock:
            return self._entries[self._cursor] if self._entries else None

    def original(self) -> RasterImage:
        """
        Get the first entry (the image as loaded).

        Raises:
            EmptyHistory: If no image has been loaded
        """
        with self._lock:
            if not self._entries:
                raise EmptyHistory("No image loaded")
            return self._entries[0]

    def clear(self) -> None:
        """Drop every entry (session teardown)."""
        with self._lock:
            self._entries = []
            self._cursor = -1

    @staticmethod
    def _check_image(image: RasterImage) -> None:
        if not isinstance(image, RasterImage):
            raise TypeError(f"Expected RasterImage, got {type(image)}")
