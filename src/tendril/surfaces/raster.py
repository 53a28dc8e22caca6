"""
Headless Pillow surface.

Every command is drawn on a transparent overlay and alpha-composited
onto the frame, so translucent clears leave a fading trail exactly like
a canvas would.
"""

import io
from PIL import Image, ImageDraw

from ..curves import cubic_bezier
from ..exceptions import SurfaceUnavailableError
from .base import DrawSurface


def _rgba(rgb, alpha: float):
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), int(round(max(0.0, min(alpha, 1.0)) * 255)))


class RasterSurface(DrawSurface):
    """
    RGBA image surface.

    Args:
        width: Image width in pixels (> 0).
        height: Image height in pixels (> 0).
        curve_samples: Points per flattened Bezier segment.
        gradient_rings: Concentric rings used to approximate radial gradients.
    """

    def __init__(self, width: int, height: int, curve_samples: int = 12, gradient_rings: int = 16):
        if width <= 0 or height <= 0:
            raise SurfaceUnavailableError(f"Raster surface needs a positive size, got {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        self.curve_samples = max(2, int(curve_samples))
        self.gradient_rings = max(1, int(gradient_rings))
        self.image = Image.new("RGBA", (self._width, self._height), (0, 0, 0, 255))
        self.frames_presented = 0

    @property
    def size(self):
        return (self._width, self._height)

    def _overlay(self):
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        return layer, ImageDraw.Draw(layer)

    def _composite(self, layer) -> None:
        self.image = Image.alpha_composite(self.image, layer)

    def clear(self, color) -> None:
        r, g, b, alpha = color
        layer = Image.new("RGBA", self.image.size, _rgba((r, g, b), alpha))
        self._composite(layer)

    def stroke_path(self, path) -> None:
        layer, draw = self._overlay()
        gradient = path.gradient

        for (p0, cp1, cp2, p3), segment in zip(path.control_polygon(), path.segments):
            curve = cubic_bezier(p0, cp1, cp2, p3, self.curve_samples)
            mid = curve[len(curve) // 2]
            alpha = gradient.alpha_at(gradient.project(mid[0], mid[1]))
            width = max(1, int(round(segment.width)))
            draw.line(
                [(float(x), float(y)) for x, y in curve],
                fill=_rgba(gradient.rgb, alpha),
                width=width,
                joint="curve"
            )

        self._composite(layer)

    def fill_circle(self, circle) -> None:
        layer, draw = self._overlay()
        cx, cy = circle.center
        gradient = circle.gradient

        # outermost ring first; inner rings overwrite
        for k in range(self.gradient_rings, 0, -1):
            offset = k / self.gradient_rings
            r = circle.radius * offset
            draw.ellipse(
                [cx - r, cy - r, cx + r, cy + r],
                fill=_rgba(gradient.rgb, gradient.alpha_at(offset))
            )

        self._composite(layer)

    def present(self) -> None:
        self.frames_presented += 1

    def save(self, path) -> None:
        """Write the current frame as PNG."""
        self.image.save(path, format="PNG")

    def to_png_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()
