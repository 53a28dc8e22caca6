"""
Pointer interaction state.

The host forwards raw pointer events (surface coordinates plus a
timestamp on the simulation clock); the tracker turns them into an
immutable PointerSnapshot once per tick. The integrator only ever sees
snapshots, so every point of a tick reacts to the same pointer state.

Velocity is a scaled finite difference between consecutive samples,
exponentially smoothed, and reads as zero once the last sample is older
than velocity_stale_ms.
"""

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

from .config import PointerConfig, DragConfig
from .curves import is_finite_point
from .logger import Logger


class DragState(Enum):
    """Drag sub-state of the tip."""
    IDLE = auto()
    CAPTURED = auto()


@dataclass(frozen=True)
class PointerSnapshot:
    """
    Pointer state frozen at the start of a tick.

    Attributes:
        position: Pointer position, or None if no pointer is over the surface.
        velocity: Scaled, smoothed pointer velocity.
        last_interaction_ms: Time of the last pointer event, or None.
        drag_state: IDLE or CAPTURED.
        captured_index: Index of the captured point while CAPTURED.
    """
    position: Optional[Tuple[float, float]] = None
    velocity: Tuple[float, float] = (0.0, 0.0)
    last_interaction_ms: Optional[float] = None
    drag_state: DragState = DragState.IDLE
    captured_index: Optional[int] = None

    @property
    def has_pointer(self) -> bool:
        return self.position is not None

    @property
    def is_dragging(self) -> bool:
        return self.drag_state == DragState.CAPTURED and self.position is not None


IDLE_SNAPSHOT = PointerSnapshot()


class PointerTracker:
    """
    Tracks pointer samples and the drag sub-state.

    Transitions:
        IDLE -> CAPTURED on press within capture_radius of the tip.
        CAPTURED -> IDLE on release or leave.
    """

    def __init__(self, pointer_config: PointerConfig, drag_config: DragConfig):
        self.pointer_config = pointer_config
        self.drag_config = drag_config
        self.reset()

    def reset(self) -> None:
        """Forget all pointer history."""
        self._position: Optional[Tuple[float, float]] = None
        self._velocity: Tuple[float, float] = (0.0, 0.0)
        self._last_sample_ms: Optional[float] = None
        self._last_interaction_ms: Optional[float] = None
        self._drag_state = DragState.IDLE
        self._captured_index: Optional[int] = None
        self.dropped_samples = 0

    @property
    def drag_state(self) -> DragState:
        return self._drag_state

    @property
    def last_interaction_ms(self) -> Optional[float]:
        return self._last_interaction_ms

    def _drop(self, message: str) -> bool:
        self.dropped_samples += 1
        if self.dropped_samples == 1:
            Logger.log(f"Dropped pointer sample: {message}", Logger.LogPriority.WARNING)
        return False

    def _accept(self, x: float, y: float, timestamp_ms: float) -> bool:
        if is_finite_point(x, y) and math.isfinite(timestamp_ms):
            return True
        return self._drop(f"non-finite ({x}, {y}) at {timestamp_ms}")

    def move(self, x: float, y: float, timestamp_ms: float) -> bool:
        """
        Record a pointer move.

        Returns:
            True if the sample was used, False if it was dropped or too small.
        """
        if not self._accept(x, y, timestamp_ms):
            return False

        cfg = self.pointer_config
        if self._position is None:
            self._position = (float(x), float(y))
            self._velocity = (0.0, 0.0)
        else:
            last_x, last_y = self._position
            if abs(x - last_x) < cfg.min_move and abs(y - last_y) < cfg.min_move:
                return False
            # extreme but finite samples can overflow the difference
            dx = min(max(x - last_x, -cfg.max_move), cfg.max_move)
            dy = min(max(y - last_y, -cfg.max_move), cfg.max_move)
            a = cfg.velocity_smoothing
            vx = self._velocity[0] * (1.0 - a) + dx * cfg.velocity_scale * a
            vy = self._velocity[1] * (1.0 - a) + dy * cfg.velocity_scale * a
            if not is_finite_point(vx, vy):
                return self._drop(f"non-finite velocity from ({x}, {y})")
            self._velocity = (vx, vy)
            self._position = (float(x), float(y))

        self._last_sample_ms = timestamp_ms
        self._last_interaction_ms = timestamp_ms
        return True

    def press(
        self,
        x: float,
        y: float,
        timestamp_ms: float,
        tip_position,
        tip_index: int
    ) -> bool:
        """
        Pointer button down. Captures the tip if the press lands within reach.

        Returns:
            True if the tip was captured.
        """
        if not self._accept(x, y, timestamp_ms):
            return False

        self._position = (float(x), float(y))
        self._last_interaction_ms = timestamp_ms

        if not self.drag_config.enabled or tip_position is None:
            return False

        distance = math.hypot(x - tip_position[0], y - tip_position[1])
        if distance < self.drag_config.capture_radius:
            self._drag_state = DragState.CAPTURED
            self._captured_index = tip_index
            Logger.log(f"Tip captured at ({x:.1f}, {y:.1f})", Logger.LogPriority.DEBUG)
            return True
        return False

    def release(self, timestamp_ms: Optional[float] = None) -> None:
        """Pointer button up."""
        if self._drag_state == DragState.CAPTURED:
            Logger.log("Tip released", Logger.LogPriority.DEBUG)
        self._drag_state = DragState.IDLE
        self._captured_index = None
        if timestamp_ms is not None and math.isfinite(timestamp_ms):
            self._last_interaction_ms = timestamp_ms

    def leave(self, timestamp_ms: Optional[float] = None) -> None:
        """Pointer left the surface: end any drag and stop influencing points."""
        self.release(timestamp_ms)
        self._position = None
        self._velocity = (0.0, 0.0)
        self._last_sample_ms = None

    def snapshot(self, now_ms: float) -> PointerSnapshot:
        """Immutable view of the pointer state at now_ms."""
        velocity = self._velocity
        if self._last_sample_ms is None or now_ms - self._last_sample_ms > self.pointer_config.velocity_stale_ms:
            velocity = (0.0, 0.0)

        return PointerSnapshot(
            position=self._position,
            velocity=velocity,
            last_interaction_ms=self._last_interaction_ms,
            drag_state=self._drag_state,
            captured_index=self._captured_index
        )
