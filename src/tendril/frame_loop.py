"""
Frame scheduling between a host and the engine.

FrameLoop models a browser-style animation frame queue: callbacks are
requested one frame at a time and can be cancelled before they run.
TendrilAnimator owns the request/tick/render/present cycle and makes sure
nothing ticks after it is disposed.
"""

from typing import Callable, Dict, Optional

from .engine import TendrilEngine
from .exceptions import LifecycleError, SurfaceUnavailableError
from .logger import Logger
from .surfaces.base import DrawSurface


class FrameLoop:
    """
    Manually driven frame queue.

    Usage:
        loop = FrameLoop()
        handle = loop.request_frame(callback)
        loop.run_frame(timestamp_ms)   # calls callback(timestamp_ms)
    """

    def __init__(self):
        self._pending: Dict[int, Callable[[float], None]] = {}
        self._next_handle = 1

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: Callable[[float], None]) -> int:
        """Schedule callback for the next frame. Returns a handle for cancel()."""
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> bool:
        """Cancel a pending callback. Returns False if it already ran or was unknown."""
        return self._pending.pop(handle, None) is not None

    def run_frame(self, timestamp_ms: float) -> int:
        """
        Run every callback pending at the start of this frame.

        Callbacks requested while the frame runs wait for the next frame.

        Returns:
            Number of callbacks executed.
        """
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(timestamp_ms)
        return len(callbacks)


def validate_surface(surface) -> None:
    """
    Check that surface can take draw commands.

    Raises:
        SurfaceUnavailableError: If surface is missing, lacks a drawing
            method or cannot report its size.
    """
    if surface is None:
        raise SurfaceUnavailableError("No drawing surface supplied")
    for method in DrawSurface.REQUIRED_METHODS:
        if not callable(getattr(surface, method, None)):
            raise SurfaceUnavailableError(f"Surface has no usable '{method}' method")
    try:
        width, height = surface.size
    except (AttributeError, NotImplementedError, TypeError, ValueError) as e:
        raise SurfaceUnavailableError(f"Surface size unavailable: {e}") from e


class TendrilAnimator:
    """
    Drives an engine from a frame loop and draws onto a surface.

    Each frame: dt from consecutive timestamps, engine.tick(dt, epoch),
    engine.render(), replay onto the surface, present, request next frame.
    """

    def __init__(self, engine: TendrilEngine, surface, loop: Optional[FrameLoop] = None):
        """
        Raises:
            SurfaceUnavailableError: If the surface is not usable.
        """
        validate_surface(surface)
        self.engine = engine
        self.surface = surface
        self.loop = loop or FrameLoop()

        self._handle: Optional[int] = None
        self._last_timestamp: Optional[float] = None
        self._started = False
        self._disposed = False

        self.frames_rendered = 0
        self.dropped_frames = 0

    @property
    def is_running(self) -> bool:
        return self._started and not self._disposed

    def start(self) -> None:
        """
        Build the chain for the surface size and schedule the first frame.

        Raises:
            LifecycleError: If the animator was disposed.
        """
        if self._disposed:
            raise LifecycleError("Cannot start a disposed animator")
        if self._started:
            return
        self._started = True
        width, height = self.surface.size
        self.engine.resize(width, height)
        Logger.log(f"Animator started on {width}x{height} surface", Logger.LogPriority.INFO)
        self._schedule()

    def resize(self, width: float, height: float) -> None:
        """Rebuild for a new size; the frame already scheduled becomes stale."""
        if self._disposed:
            return
        self.engine.resize(width, height)

    def _schedule(self) -> None:
        epoch = self.engine.epoch
        self._handle = self.loop.request_frame(lambda ts: self._on_frame(ts, epoch))

    def _on_frame(self, timestamp_ms: float, epoch: int) -> None:
        self._handle = None
        if self._disposed:
            return

        if epoch != self.engine.epoch:
            self.dropped_frames += 1
            Logger.log(f"Dropped stale frame for epoch {epoch}", Logger.LogPriority.DEBUG)
            self._last_timestamp = timestamp_ms
            self._schedule()
            return

        dt_ms = 0.0 if self._last_timestamp is None else timestamp_ms - self._last_timestamp
        self._last_timestamp = timestamp_ms

        self.engine.tick(dt_ms, epoch=epoch)
        self.engine.render().replay(self.surface)
        self.surface.present()
        self.frames_rendered += 1

        self._schedule()

    def dispose(self) -> None:
        """Cancel the pending frame and suspend the engine."""
        if self._disposed:
            return
        self._disposed = True
        if self._handle is not None:
            self.loop.cancel(self._handle)
            self._handle = None
        self.engine.dispose()
        Logger.log(f"Animator disposed after {self.frames_rendered} frames", Logger.LogPriority.INFO)
