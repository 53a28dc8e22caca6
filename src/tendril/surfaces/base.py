"""
Drawing surface interface.

A surface is the host-side sink for FrameDrawing commands. The core never
draws directly; it hands commands to whatever surface the host supplies.
"""

from typing import Tuple


class DrawSurface:
    """
    Base class for drawing surfaces.

    Subclasses implement every method below. Coordinates are surface
    pixels with the origin at the top-left and y growing downward.
    """

    REQUIRED_METHODS = ("clear", "stroke_path", "fill_circle", "present")

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) in pixels."""
        raise NotImplementedError("Subclasses must implement size")

    def clear(self, color) -> None:
        """Fill the surface with an (r, g, b, alpha) colour."""
        raise NotImplementedError("Subclasses must implement clear")

    def stroke_path(self, path) -> None:
        """Stroke a StrokedPath."""
        raise NotImplementedError("Subclasses must implement stroke_path")

    def fill_circle(self, circle) -> None:
        """Fill a FilledCircle with its radial gradient."""
        raise NotImplementedError("Subclasses must implement fill_circle")

    def present(self) -> None:
        """Make the frame visible."""
        raise NotImplementedError("Subclasses must implement present")
