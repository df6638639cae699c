"""
SessionLib - Editing session state for Open Retouch

This module provides the linear edit history, adapters for external image
transforms, and the EditorSession composition root.
"""

from RT_Libs.SessionLib.edit_history import EditHistory
from RT_Libs.SessionLib.collaborators import (
    ImageTransform,
    builtin_quality_improver,
    run_collaborator,
)
from RT_Libs.SessionLib.editor_session import BACKGROUND_OPERATIONS, EditorSession

__all__ = [
    "EditHistory",
    "ImageTransform",
    "builtin_quality_improver",
    "run_collaborator",
    "BACKGROUND_OPERATIONS",
    "EditorSession",
]
