"""
Error taxonomy for the editing core.

Every failure leaves the current image and edit history exactly as they were
before the attempted operation.

Classes:
    RetouchError: Base class for all editing-core errors
    DecodeError: Input bytes are corrupt, unsupported, or have zero dimensions
    InvalidRegion: Crop, clone or red-eye coordinates outside the valid domain
    EmptyHistory: Current image requested while no image is loaded
    ExternalOperationFailed: A background-removal or quality collaborator failed
"""


class RetouchError(Exception):
    """Base class for editing-core errors."""


class DecodeError(RetouchError):
    """Raised when image bytes cannot be decoded into a RasterImage."""


class InvalidRegion(RetouchError):
    """Raised when a region operation is given an unusable region."""


class EmptyHistory(RetouchError):
    """Raised when the edit history holds no image."""


class ExternalOperationFailed(RetouchError):
    """Raised when an external image transform fails or returns garbage."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
