"""
Interactive DearPyGui window for the tendril.

The window holds a drawlist the size of the viewport plus a small status
bar. DearPyGui's render loop drives a FrameLoop once per frame; mouse
handlers forward pointer events to the engine in drawlist coordinates.
"""

import dearpygui.dearpygui as dpg
from pathlib import Path
from typing import Optional

from .config import TendrilConfig, config_from_dict, load_config
from .engine import TendrilEngine
from .frame_loop import FrameLoop, TendrilAnimator
from .logger import Logger
from .presets import get_preset, list_presets
from .surfaces.dearpygui_surface import DearPyGuiSurface


STATUS_BAR_HEIGHT = 40


class TendrilApp:
    """
    Main application window.

    Usage:
        app = TendrilApp(config, width=800, height=600)
        app.run()
    """

    def __init__(
        self,
        config: TendrilConfig,
        width: int = 800,
        height: int = 600,
        title: str = "Tendril",
        preset_name: Optional[str] = None
    ):
        self.config = config
        self.width = width
        self.height = height
        self.title = title
        self.preset_name = preset_name

        self.engine: Optional[TendrilEngine] = None
        self.animator: Optional[TendrilAnimator] = None
        self.loop = FrameLoop()

        self._drawlist_tag = "tendril_drawlist"
        self._status_tag = "tendril_status"
        self._is_running = False
        self._hovered = False

    def run(self) -> None:
        """Run the application (blocking)."""
        dpg.create_context()
        dpg.create_viewport(title=self.title, width=self.width, height=self.height + STATUS_BAR_HEIGHT)

        self._create_ui()
        dpg.set_viewport_resize_callback(self._on_viewport_resize)

        dpg.setup_dearpygui()
        dpg.show_viewport()

        self._start_animator()

        self._is_running = True
        while dpg.is_dearpygui_running() and self._is_running:
            self._frame_update()
            dpg.render_dearpygui_frame()

        if self.animator is not None:
            self.animator.dispose()
        dpg.destroy_context()

    def stop(self) -> None:
        self._is_running = False

    def _create_ui(self) -> None:
        with dpg.window(tag="tendril_window", no_scrollbar=True, no_scroll_with_mouse=True):
            with dpg.group(horizontal=True):
                dpg.add_combo(
                    list_presets(),
                    default_value=self.preset_name or "",
                    width=140,
                    callback=lambda s, a: self._on_preset_change(a)
                )
                dpg.add_text("", tag=self._status_tag)
            dpg.add_drawlist(width=self.width, height=self.height, tag=self._drawlist_tag)

        with dpg.handler_registry():
            dpg.add_mouse_move_handler(callback=self._on_mouse_move)
            dpg.add_mouse_click_handler(callback=self._on_mouse_click)
            dpg.add_mouse_release_handler(callback=self._on_mouse_release)

        dpg.set_primary_window("tendril_window", True)

    def _start_animator(self) -> None:
        self.engine = TendrilEngine(self.config)
        surface = DearPyGuiSurface(self._drawlist_tag, self.width, self.height)
        self.animator = TendrilAnimator(self.engine, surface, self.loop)
        self.animator.start()

    def _frame_update(self) -> None:
        self.loop.run_frame(dpg.get_total_time() * 1000.0)

        if self._hovered and not dpg.is_item_hovered(self._drawlist_tag):
            self._hovered = False
            self.engine.pointer_leave()

        state = self.engine.get_state()
        dpg.set_value(
            self._status_tag,
            f"{state.lifecycle.name}  epoch {state.epoch}  "
            f"t={state.time_ms / 1000.0:.1f}s  drag={state.drag_state.name}"
        )

    def _pointer_position(self):
        x, y = dpg.get_drawing_mouse_pos()
        return float(x), float(y)

    def _on_mouse_move(self, sender, app_data) -> None:
        if not dpg.is_item_hovered(self._drawlist_tag):
            return
        self._hovered = True
        self.engine.pointer_move(*self._pointer_position())

    def _on_mouse_click(self, sender, app_data) -> None:
        if app_data != 0:  # Left click only
            return
        if not dpg.is_item_hovered(self._drawlist_tag):
            return
        self.engine.pointer_down(*self._pointer_position())

    def _on_mouse_release(self, sender, app_data) -> None:
        self.engine.pointer_up()

    def _on_viewport_resize(self, sender, app_data) -> None:
        width = dpg.get_viewport_client_width()
        height = dpg.get_viewport_client_height() - STATUS_BAR_HEIGHT
        self.width, self.height = width, height
        self.animator.surface.resize(max(width, 1), max(height, 1))
        self.animator.resize(width, height)

    def _on_preset_change(self, preset_name: str) -> None:
        """Rebuild everything from a preset."""
        try:
            preset = get_preset(preset_name)
        except KeyError as e:
            Logger.log(f"Error loading preset: {e}", Logger.LogPriority.ERROR)
            return

        self.preset_name = preset.name
        self.config = config_from_dict({"preset": preset.name})
        self.animator.dispose()
        self._start_animator()
        Logger.log(f"Switched to preset '{preset.name}'", Logger.LogPriority.INFO)


def run_gui(
    config_path: Optional[str] = None,
    preset_name: Optional[str] = None,
    width: int = 800,
    height: int = 600
) -> None:
    """
    Launch GUI from a config file, a preset, or defaults.

    Args:
        config_path: Path to YAML config file (optional, wins over preset).
        preset_name: Registered preset name (optional).
        width, height: Initial drawing area size.
    """
    if config_path:
        config = load_config(Path(config_path))
    else:
        preset_name = preset_name or "vertical"
        config = config_from_dict({"preset": preset_name})

    app = TendrilApp(config, width=width, height=height, preset_name=preset_name)
    app.run()
