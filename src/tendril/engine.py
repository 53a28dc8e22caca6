"""
Tendril engine - owns the chain and drives it frame by frame.

Provides:
    - Lifecycle (build on first resize, suspend, rebuild, dispose)
    - Tick routing through the integrator with epoch checks
    - Pointer event routing into the interaction tracker
    - Rendering of the current chain into draw commands

SIMULATION-HOST SEPARATION:
    1. The host never touches the chain directly; get_chain() returns a copy
    2. Pointer events are stamped with the simulation clock, not wall time
    3. Every rebuild bumps the epoch; ticks carrying an older epoch are dropped
    4. A disposed engine rejects every further tick
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, List, Optional

from .chain import PointChain
from .config import TendrilConfig
from .integrator import SimulationContext, StepReport, TendrilIntegrator
from .interaction import DragState, PointerTracker
from .logger import Logger
from .renderer import ClearSurface, CurveRenderer, FrameDrawing


class LifecycleState(Enum):
    """Engine lifecycle."""
    UNINITIALIZED = auto()
    ACTIVE = auto()
    SUSPENDED = auto()
    REBUILDING = auto()


@dataclass
class EngineState:
    """Engine state for host display (read-only snapshot)."""
    lifecycle: LifecycleState
    time_ms: float
    epoch: int
    frame_count: int
    n_points: int
    drag_state: DragState
    disposed: bool
    warnings: List[str] = field(default_factory=list)


class TendrilEngine:
    """
    Simulation engine for a single tendril.

    Usage:
        engine = TendrilEngine(config)
        engine.resize(800, 600)
        engine.pointer_move(400, 300)
        engine.tick(16.7)
        drawing = engine.render()
    """

    def __init__(
        self,
        config: Optional[TendrilConfig] = None,
        on_state_changed: Optional[Callable[[], None]] = None
    ):
        """
        Initialize engine. No chain exists until the first successful resize().

        Args:
            config: Tendril configuration (defaults if None).
            on_state_changed: Called after lifecycle transitions.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or TendrilConfig()
        is_valid, error = self.config.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {error}")

        self._on_state_changed = on_state_changed

        self.integrator = TendrilIntegrator(self.config)
        self.renderer = CurveRenderer(self.config.render, self.config.wave)
        self.tracker = PointerTracker(self.config.pointer, self.config.drag)
        self.context = SimulationContext()

        self.chain: Optional[PointChain] = None
        self.viewport = (0.0, 0.0)
        self._lifecycle = LifecycleState.UNINITIALIZED
        self._disposed = False

        self._reported_rejections = set()
        self._last_warnings: List[str] = []

    @property
    def lifecycle(self) -> LifecycleState:
        return self._lifecycle

    @property
    def epoch(self) -> int:
        return self.context.epoch

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _transition(self, new_state: LifecycleState) -> None:
        if new_state == self._lifecycle:
            return
        Logger.log(
            f"Engine {self._lifecycle.name} -> {new_state.name} (epoch {self.context.epoch})",
            Logger.LogPriority.DEBUG
        )
        self._lifecycle = new_state
        if self._on_state_changed:
            self._on_state_changed()

    def get_state(self) -> EngineState:
        """Current engine state (read-only snapshot)."""
        return EngineState(
            lifecycle=self._lifecycle,
            time_ms=self.context.time_ms,
            epoch=self.context.epoch,
            frame_count=self.context.frame_count,
            n_points=self.chain.n_points if self.chain is not None else 0,
            drag_state=self.tracker.drag_state,
            disposed=self._disposed,
            warnings=self._last_warnings.copy()
        )

    def get_chain(self) -> Optional[PointChain]:
        """
        Current chain for inspection.

        IMPORTANT: Returns a COPY so callers cannot modify simulation state.
        """
        return self.chain.copy() if self.chain is not None else None

    # --- lifecycle -------------------------------------------------------

    def suspend(self) -> None:
        """Stop ticking until the next successful resize()."""
        if self._lifecycle == LifecycleState.ACTIVE:
            self._transition(LifecycleState.SUSPENDED)

    def resize(self, width: float, height: float) -> bool:
        """
        Rebuild the chain for a new viewport.

        The epoch is bumped before the rebuild so frames scheduled for the
        old geometry are dropped. A degenerate viewport leaves the engine
        SUSPENDED with no chain; a later valid resize recovers.

        Returns:
            True if a chain was built.
        """
        if self._disposed:
            Logger.log("Resize ignored: engine disposed", Logger.LogPriority.WARNING)
            return False

        self.suspend()
        self.context.epoch += 1
        self.context.frame_count = 0
        self.viewport = (width, height)
        # the first build goes straight to ACTIVE
        if self._lifecycle != LifecycleState.UNINITIALIZED:
            self._transition(LifecycleState.REBUILDING)

        try:
            chain = PointChain.build(width, height, self.config.geometry, now_ms=self.context.time_ms)
        except ValueError as e:
            self.chain = None
            self._last_warnings = [str(e)]
            Logger.log(f"Chain rebuild skipped: {e}", Logger.LogPriority.WARNING)
            self._transition(LifecycleState.SUSPENDED)
            return False

        self.chain = chain
        self.tracker.release()
        self._reported_rejections.clear()
        self._last_warnings = []
        Logger.log(
            f"Chain built: {chain.n_points} points for {width}x{height} (epoch {self.context.epoch})",
            Logger.LogPriority.INFO
        )
        self._transition(LifecycleState.ACTIVE)
        return True

    def dispose(self) -> None:
        """Tear down. Every later tick is rejected."""
        if self._disposed:
            return
        self._disposed = True
        self.tracker.reset()
        self._transition(LifecycleState.SUSPENDED)
        self.chain = None
        Logger.log("Engine disposed", Logger.LogPriority.INFO)

    # --- simulation ------------------------------------------------------

    def _reject(self, reason: str) -> StepReport:
        if reason not in self._reported_rejections:
            self._reported_rejections.add(reason)
            Logger.log(f"Tick rejected: {reason}", Logger.LogPriority.WARNING)
        return StepReport(applied=False, rejected_reason=reason)

    def tick(self, dt_ms: float, epoch: Optional[int] = None) -> StepReport:
        """
        Advance the simulation by dt_ms.

        Args:
            dt_ms: Elapsed time in ms. 0 is a no-op; negative or non-finite
                values are rejected.
            epoch: Epoch the caller scheduled this tick for; a mismatch
                means the geometry changed in between and the tick is dropped.

        Returns:
            StepReport from the integrator, or a rejection report.
        """
        if self._disposed:
            return self._reject("disposed")
        if epoch is not None and epoch != self.context.epoch:
            return self._reject("stale_epoch")
        if self._lifecycle != LifecycleState.ACTIVE or self.chain is None:
            return self._reject("inactive")

        snapshot = self.tracker.snapshot(self.context.time_ms)
        report = self.integrator.step(self.chain, self.context, snapshot, dt_ms)

        if report.rejected_reason is not None:
            return self._reject(report.rejected_reason)

        if report.applied:
            self._reported_rejections.clear()
        if report.sanitized_points:
            message = f"Reset non-finite points {report.sanitized_points}"
            self._last_warnings = [message]
            Logger.log(message, Logger.LogPriority.WARNING)
        return report

    # --- pointer ---------------------------------------------------------

    def pointer_move(self, x: float, y: float) -> bool:
        """Pointer moved to (x, y) in surface coordinates."""
        if self._disposed:
            return False
        return self.tracker.move(x, y, self.context.time_ms)

    def pointer_down(self, x: float, y: float) -> bool:
        """
        Pointer pressed at (x, y).

        Returns:
            True if the tip was captured for dragging.
        """
        if self._disposed:
            return False
        if self.chain is None:
            return self.tracker.press(x, y, self.context.time_ms, None, 0)
        return self.tracker.press(
            x, y, self.context.time_ms, self.chain.positions[-1], self.chain.n_points - 1
        )

    def pointer_up(self) -> None:
        self.tracker.release(self.context.time_ms)

    def pointer_leave(self) -> None:
        self.tracker.leave(self.context.time_ms)

    # --- rendering -------------------------------------------------------

    def render(self) -> FrameDrawing:
        """
        Draw commands for the current chain.

        Without a chain (suspended or disposed) only the background clear
        is produced.
        """
        if self.chain is None:
            return FrameDrawing(
                commands=[ClearSurface(self.config.render.background)],
                time_ms=self.context.time_ms
            )
        return self.renderer.render(self.chain, self.context.time_ms)
