"""
DearPyGui drawlist surface.

Maps draw commands onto drawlist primitives. A drawlist is retained
geometry, so clear() deletes the previous frame's items and the fading
trail of the raster surface is not reproduced here.
"""

import dearpygui.dearpygui as dpg

from ..exceptions import SurfaceUnavailableError
from .base import DrawSurface


def _color(rgb, alpha: float):
    return [int(rgb[0]), int(rgb[1]), int(rgb[2]), int(round(max(0.0, min(alpha, 1.0)) * 255))]


class DearPyGuiSurface(DrawSurface):
    """
    Surface backed by an existing DearPyGui drawlist.

    Args:
        drawlist_tag: Tag of a drawlist created by the host.
        width, height: Drawlist size in pixels.
        gradient_rings: Concentric circles used for radial gradients.
    """

    def __init__(self, drawlist_tag, width: int, height: int, gradient_rings: int = 8):
        if drawlist_tag is None or not dpg.does_item_exist(drawlist_tag):
            raise SurfaceUnavailableError(f"Drawlist {drawlist_tag!r} does not exist")
        self.drawlist_tag = drawlist_tag
        self._width = int(width)
        self._height = int(height)
        self.gradient_rings = max(1, int(gradient_rings))

    @property
    def size(self):
        return (self._width, self._height)

    def resize(self, width: int, height: int) -> None:
        self._width = int(width)
        self._height = int(height)
        dpg.configure_item(self.drawlist_tag, width=self._width, height=self._height)

    def clear(self, color) -> None:
        dpg.delete_item(self.drawlist_tag, children_only=True)
        r, g, b, alpha = color
        fill = _color((r, g, b), alpha)
        dpg.draw_rectangle(
            (0, 0), (self._width, self._height),
            color=fill, fill=fill,
            parent=self.drawlist_tag
        )

    def stroke_path(self, path) -> None:
        gradient = path.gradient
        for (p0, cp1, cp2, p3), segment in zip(path.control_polygon(), path.segments):
            mid_x = (p0[0] + p3[0]) / 2
            mid_y = (p0[1] + p3[1]) / 2
            alpha = gradient.alpha_at(gradient.project(mid_x, mid_y))
            dpg.draw_bezier_cubic(
                p0, cp1, cp2, p3,
                color=_color(gradient.rgb, alpha),
                thickness=segment.width,
                parent=self.drawlist_tag
            )

    def fill_circle(self, circle) -> None:
        gradient = circle.gradient
        for k in range(self.gradient_rings, 0, -1):
            offset = k / self.gradient_rings
            color = _color(gradient.rgb, gradient.alpha_at(offset))
            dpg.draw_circle(
                circle.center,
                circle.radius * offset,
                color=color,
                fill=color,
                parent=self.drawlist_tag
            )

    def present(self) -> None:
        # DearPyGui renders the drawlist in its own frame loop.
        pass
