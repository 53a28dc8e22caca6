"""
Point chain state for the tendril.

Chain = N control points hanging off a fixed anchor.
Point 0 sits at the anchor end, point N-1 is the free tip.

Per-point data is stored as flat numpy arrays indexed by point, because
the chain never reorders or resizes during its lifetime; a rebuild
replaces the whole object.

Units:
    - Positions: surface pixels (y grows downward)
    - Time: ms
"""

import math
import numpy as np
from dataclasses import dataclass

from .config import GeometryConfig
from .curves import ease_in_out_sine
from .wave import point_phase


@dataclass(frozen=True)
class ControlPoint:
    """
    Read-only snapshot of one chain point.

    Attributes:
        x, y: Live position.
        vx, vy: Velocity in pixels per frame.
        base_x, base_y: Rest position, fixed for the chain's lifetime.
        distance_from_start: Rest distance from the anchor along the chain.
        phase: Wave phase offset, fixed at build time.
        freedom: Compliance in [0, 1].
        last_influence_ms: Last time the pointer was within reach.
        influence: Decaying pointer proximity memory in [0, 1].
        thickness: Render hint from chain position.
    """
    x: float
    y: float
    vx: float
    vy: float
    base_x: float
    base_y: float
    distance_from_start: float
    phase: float
    freedom: float
    last_influence_ms: float
    influence: float
    thickness: float


def freedom_profile(t: np.ndarray, profile: str) -> np.ndarray:
    """
    Per-point compliance from eased chain position t.

    root_free: 1.0 at the root falling to 0.3 at the tip.
    tip_free: 0.3 at the root rising to 1.0 at the tip.
    """
    if profile == "root_free":
        return np.power(1.0 - t, 0.8) * 0.7 + 0.3
    if profile == "tip_free":
        return np.power(t, 0.8) * 0.7 + 0.3
    raise ValueError(f"Unknown freedom profile: {profile}")


@dataclass
class PointChain:
    """
    State of an N-point tendril chain.

    Attributes:
        anchor: Fixed root position, shape (2,).
        length: Nominal rest length from anchor to tip.
        positions: Live positions, shape (N, 2).
        velocities: Velocities in pixels per frame, shape (N, 2).
        base_positions: Rest shape, shape (N, 2).
        distance_from_start: Rest distance from anchor, shape (N,).
        phase: Per-point wave phase, shape (N,).
        freedom: Per-point compliance, shape (N,).
        last_influence_ms: Shape (N,).
        influence: Shape (N,).
        thickness: Shape (N,).
        lateral_axis: Coordinate index displaced by the wave.
    """
    anchor: np.ndarray
    length: float
    positions: np.ndarray
    velocities: np.ndarray
    base_positions: np.ndarray
    distance_from_start: np.ndarray
    phase: np.ndarray
    freedom: np.ndarray
    last_influence_ms: np.ndarray
    influence: np.ndarray
    thickness: np.ndarray
    lateral_axis: int = 0

    def __post_init__(self):
        self.anchor = np.asarray(self.anchor, dtype=np.float64)
        self.positions = np.asarray(self.positions, dtype=np.float64)
        self.velocities = np.asarray(self.velocities, dtype=np.float64)
        self.base_positions = np.asarray(self.base_positions, dtype=np.float64)

        n = len(self.positions)
        if n < 1:
            raise ValueError("Chain must have at least 1 point")
        for name in ("velocities", "base_positions"):
            if getattr(self, name).shape != (n, 2):
                raise ValueError(f"{name} must have shape ({n}, 2)")
        for name in ("distance_from_start", "phase", "freedom",
                     "last_influence_ms", "influence", "thickness"):
            arr = np.asarray(getattr(self, name), dtype=np.float64)
            if arr.shape != (n,):
                raise ValueError(f"{name} must have shape ({n},)")
            setattr(self, name, arr)

        self.rest_spacing = np.linalg.norm(np.diff(self.base_positions, axis=0), axis=1)

    @property
    def n_points(self) -> int:
        return len(self.positions)

    @property
    def axial_axis(self) -> int:
        return 1 - self.lateral_axis

    @property
    def tip(self) -> np.ndarray:
        """Current tip position (copy)."""
        return self.positions[-1].copy()

    def point(self, i: int) -> ControlPoint:
        """Snapshot of point i."""
        return ControlPoint(
            x=float(self.positions[i, 0]),
            y=float(self.positions[i, 1]),
            vx=float(self.velocities[i, 0]),
            vy=float(self.velocities[i, 1]),
            base_x=float(self.base_positions[i, 0]),
            base_y=float(self.base_positions[i, 1]),
            distance_from_start=float(self.distance_from_start[i]),
            phase=float(self.phase[i]),
            freedom=float(self.freedom[i]),
            last_influence_ms=float(self.last_influence_ms[i]),
            influence=float(self.influence[i]),
            thickness=float(self.thickness[i])
        )

    def points(self) -> list:
        return [self.point(i) for i in range(self.n_points)]

    def is_finite(self) -> bool:
        """True if no live value is NaN or infinite."""
        return bool(
            np.isfinite(self.positions).all()
            and np.isfinite(self.velocities).all()
            and np.isfinite(self.influence).all()
        )

    def is_degenerate(self) -> bool:
        """True if the anchor/length cannot support a simulation step."""
        return (
            self.n_points < 1
            or not np.isfinite(self.anchor).all()
            or not math.isfinite(self.length)
            or self.length <= 0
        )

    def displacement_from_base(self) -> np.ndarray:
        """Distance of each point from its rest position, shape (N,)."""
        return np.linalg.norm(self.positions - self.base_positions, axis=1)

    def copy(self) -> "PointChain":
        """Deep copy of this chain."""
        return PointChain(
            anchor=self.anchor.copy(),
            length=self.length,
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            base_positions=self.base_positions.copy(),
            distance_from_start=self.distance_from_start.copy(),
            phase=self.phase.copy(),
            freedom=self.freedom.copy(),
            last_influence_ms=self.last_influence_ms.copy(),
            influence=self.influence.copy(),
            thickness=self.thickness.copy(),
            lateral_axis=self.lateral_axis
        )

    @classmethod
    def build(
        cls,
        width: float,
        height: float,
        geometry: GeometryConfig,
        now_ms: float = 0.0
    ) -> "PointChain":
        """
        Build a resting chain for a viewport.

        Args:
            width: Viewport width in pixels.
            height: Viewport height in pixels.
            geometry: Layout and profile configuration.
            now_ms: Simulation time used to stamp last_influence_ms.

        Returns:
            PointChain with every live position on its rest position.

        Raises:
            ValueError: If the viewport is degenerate or n_points < 2.
        """
        if not (math.isfinite(width) and math.isfinite(height)):
            raise ValueError(f"Viewport size must be finite, got {width}x{height}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Viewport size must be positive, got {width}x{height}")
        n = geometry.n_points
        if n < 2:
            raise ValueError("Chain must have at least 2 points")

        anchor = np.array([width * geometry.anchor_x, height * geometry.anchor_y])
        extent = height if geometry.orientation == "vertical" else width
        length = extent * geometry.length_fraction

        linear_t = np.arange(n, dtype=np.float64) / (n - 1)
        t = ease_in_out_sine(linear_t)
        position_t = np.power(t, geometry.spacing_exponent)

        base = anchor[None, :] + geometry.growth_vector[None, :] * (length * position_t)[:, None]

        return cls(
            anchor=anchor,
            length=float(length),
            positions=base.copy(),
            velocities=np.zeros((n, 2)),
            base_positions=base,
            distance_from_start=length * position_t,
            phase=point_phase(linear_t),
            freedom=freedom_profile(t, geometry.freedom_profile),
            last_influence_ms=np.full(n, now_ms),
            influence=np.zeros(n),
            thickness=np.power(t, 0.85) * 4.5,
            lateral_axis=geometry.lateral_axis
        )
