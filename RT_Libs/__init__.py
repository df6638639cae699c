"""
RT_Libs - Open Retouch Library Modules

This package contains the raster editing core of Open Retouch,
organized into specialized sub-packages:

- ImageEditingLib: Raster image type, codec, convolution, region ops and filter pipeline
- PresetLib: Text prompt to filter preset heuristics
- SessionLib: Edit history and the editor session composition root
"""

__version__ = "0.1.0"
