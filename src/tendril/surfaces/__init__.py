"""
Host drawing surfaces.

DearPyGuiSurface lives in tendril.surfaces.dearpygui_surface and is not
imported here, so headless use never needs a display.
"""

from .base import DrawSurface
from .raster import RasterSurface

__all__ = ["DrawSurface", "RasterSurface"]
