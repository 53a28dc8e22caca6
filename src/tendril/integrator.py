"""
Force-accumulation integrator for the tendril chain.

One call to step() advances the chain by one frame:

    drag pre-pass (while the tip is captured)
    per point, vectorised over the chain:
        1. homing toward anchor + wave offset (lateral axis)
        2. pointer influence (push, pointer velocity, influence memory)
        3. return-to-rest spring, ramped in after interaction stops
        4. speed-aware damping
        5. position integration scaled by freedom
        6. lateral rigidity toward the rest shape
        7. axial drift toward the anchor
    root settling (after a drag has moved it)
    spacing pass over adjacent pairs

Every force in a tick reads the pointer snapshot and positions captured
at the start of that tick, so results do not depend on point order.

NUMERICAL NOTES:
    Constants are per-frame values at 60 fps. A tick of dt_ms counts as
    frames = dt_ms / frame_ms: velocity increments are multiplied by
    frames and damping is raised to the power frames, which makes a
    zero-length tick an exact no-op. dt is clamped to max_dt_ms so a
    stalled host cannot take one huge explicit step.

Units:
    - Position: pixels
    - Velocity: pixels per frame
    - Time: ms
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

from .config import TendrilConfig
from .chain import PointChain
from .interaction import PointerSnapshot
from .wave import WaveField


@dataclass
class SimulationContext:
    """
    Per-chain clock and interaction bookkeeping passed into every tick.

    Attributes:
        time_ms: Simulation time.
        last_interaction_ms: Time of the last pointer event, or None.
        epoch: Incremented on every rebuild; frames from older epochs are stale.
        frame_count: Number of applied ticks in this epoch.
    """
    time_ms: float = 0.0
    last_interaction_ms: Optional[float] = None
    epoch: int = 0
    frame_count: int = 0


@dataclass
class StepReport:
    """
    Outcome of one integrator step.

    Attributes:
        applied: Whether the chain was advanced.
        dt_ms: Effective time step after clamping.
        frames: dt_ms expressed in 60 fps frames.
        rejected_reason: Why the tick was rejected, if it was.
        sanitized_points: Indices reset after producing non-finite values.
        influenced_points: Number of points within pointer reach.
        max_speed: Largest point speed after the step.
    """
    applied: bool
    dt_ms: float = 0.0
    frames: float = 0.0
    rejected_reason: Optional[str] = None
    sanitized_points: List[int] = field(default_factory=list)
    influenced_points: int = 0
    max_speed: float = 0.0


class TendrilIntegrator:
    """
    Advances a PointChain one tick at a time.

    The integrator is stateless apart from its configuration; all
    time-dependent state lives on the chain and the SimulationContext.
    """

    MIN_POINTER_DISTANCE = 1e-9

    def __init__(self, config: TendrilConfig):
        self.config = config
        self.forces = config.forces
        self.pointer = config.pointer
        self.drag = config.drag
        self.wave = WaveField(config.wave)

    def frames_for(self, dt_ms: float) -> float:
        """Clamped dt expressed in 60 fps frames."""
        return min(dt_ms, self.forces.max_dt_ms) / self.forces.frame_ms

    def return_ramp(self, context: SimulationContext) -> float:
        """Return-to-rest strength in [0, return_cap], growing with idle time."""
        cfg = self.forces
        if context.last_interaction_ms is None:
            return cfg.return_cap
        idle_ms = max(context.time_ms - context.last_interaction_ms, 0.0)
        return min(idle_ms / cfg.return_ramp_ms, cfg.return_cap)

    def step(
        self,
        chain: PointChain,
        context: SimulationContext,
        snapshot: PointerSnapshot,
        dt_ms: float
    ) -> StepReport:
        """
        Advance the chain and the context clock by dt_ms.

        Args:
            chain: Chain to mutate in place.
            context: Simulation clock; time_ms advances by the clamped dt.
            snapshot: Pointer state frozen for this tick.
            dt_ms: Elapsed time since the previous tick.

        Returns:
            StepReport describing what happened. Rejected ticks leave the
            chain and the context untouched.
        """
        if dt_ms is None or not math.isfinite(dt_ms) or dt_ms < 0:
            return StepReport(applied=False, rejected_reason="invalid_dt")
        if chain.is_degenerate():
            return StepReport(applied=False, rejected_reason="degenerate_geometry")
        if dt_ms == 0:
            return StepReport(applied=False)

        cfg = self.forces
        dt_eff = min(dt_ms, cfg.max_dt_ms)
        frames = dt_eff / cfg.frame_ms

        context.time_ms += dt_eff
        context.frame_count += 1
        if snapshot.last_interaction_ms is not None:
            context.last_interaction_ms = snapshot.last_interaction_ms
        now = context.time_ms

        n = chain.n_points
        lat = chain.lateral_axis
        ax = chain.axial_axis
        pos = chain.positions
        vel = chain.velocities
        freedom = chain.freedom

        start_pos = pos.copy()

        t = np.arange(n, dtype=np.float64) / (n - 1) if n > 1 else np.zeros(1)
        natural = self.wave.offsets(n, now) if n > 1 else np.zeros(n)
        wave_time = self.wave.wave_time(now)
        ramp = self.return_ramp(context)

        dragging = snapshot.is_dragging and self.drag.enabled
        if dragging:
            self._apply_drag(chain, snapshot, now, frames, t)

        # 1. homing toward the wave-driven ideal position
        home_lateral = chain.anchor[lat] + natural
        to_home = home_lateral - start_pos[:, lat]
        vel[:, lat] += to_home * cfg.homing * (1.0 + freedom * cfg.homing_freedom_gain) * frames

        # 2. pointer influence
        influenced = self._apply_pointer(chain, snapshot, start_pos, now, frames)

        # 3. return-to-rest, weak near the anchor
        return_weight = 1.0 - np.power(1.0 - t, 2.0)
        return_strength = cfg.return_strength * ramp * return_weight * frames
        vel[:, lat] += to_home * return_strength
        vel[:, ax] += (chain.base_positions[:, ax] - start_pos[:, ax]) * return_strength * cfg.return_axial_gain

        # 4. damping
        speed = np.hypot(vel[:, 0], vel[:, 1])
        damping = np.clip(
            cfg.damping_base - freedom * cfg.damping_freedom_relax - speed * cfg.damping_speed_gain,
            cfg.damping_min,
            1.0
        )
        vel *= np.power(damping, frames)[:, None]

        # 5. integration
        pos += vel * (frames * (1.0 + freedom * cfg.mobility_gain))[:, None]

        # 6. lateral rigidity with a slow wobble
        rigidity = cfg.rigidity * (1.0 - freedom * cfg.rigidity_freedom_relief) * (1.0 - ramp * 0.7)
        wobble = 1.0 + math.sin(wave_time * 0.6) * cfg.rigidity_wobble
        pos[:, lat] += (chain.base_positions[:, lat] - pos[:, lat]) * rigidity * wobble * frames

        # 7. axial drift toward the anchor
        toward_anchor = -1.0 if chain.base_positions[-1, ax] >= chain.anchor[ax] else 1.0
        vel[:, ax] += toward_anchor * cfg.axial_drift * freedom * return_weight * frames

        if not dragging:
            self._settle_root(chain, frames)

        if n > 1:
            self._apply_spacing(chain, wave_time, frames)

        sanitized = self._sanitize(chain, start_pos)

        return StepReport(
            applied=True,
            dt_ms=dt_eff,
            frames=frames,
            sanitized_points=sanitized,
            influenced_points=influenced,
            max_speed=float(np.max(np.hypot(vel[:, 0], vel[:, 1])))
        )

    def _apply_drag(
        self,
        chain: PointChain,
        snapshot: PointerSnapshot,
        now: float,
        frames: float,
        t: np.ndarray
    ) -> None:
        """
        Compliant pull of the captured point toward the pointer.

        The rest of the body follows with a reach of t**follow_exponent.
        Points near the captured one are drawn along; further down they
        sway on their own and are held near the rest shape.
        The root sways around its base position.
        """
        drag = self.drag
        pos = chain.positions
        vel = chain.velocities

        idx = snapshot.captured_index
        if idx is None or not (0 <= idx < chain.n_points):
            idx = chain.n_points - 1

        sway = np.array([
            math.sin(now * drag.sway_frequency_x) * drag.sway_x,
            math.cos(now * drag.sway_frequency_y) * drag.sway_y
        ])
        target = np.asarray(snapshot.position, dtype=np.float64) + sway

        vel[idx] += (target - pos[idx]) * drag.ease * frames
        vel[idx] *= drag.damping ** frames

        body = np.ones(chain.n_points, dtype=bool)
        body[idx] = False
        body[0] = False

        reach = np.power(t[body], drag.follow_exponent)
        slack = 1.0 - reach
        phase = t[body] * np.pi

        vel[body] += (pos[idx] - pos[body]) * (reach * drag.follow_strength * frames)[:, None]

        sway_gain = drag.body_sway * drag.body_sway_spread * slack * frames
        vel[body, 0] += np.sin(now * drag.body_sway_frequency_x + phase) * sway_gain
        vel[body, 1] += np.cos(now * drag.body_sway_frequency_y + phase) * sway_gain

        vel[body] *= np.power(drag.body_damping + reach * drag.body_damping_reach_gain, frames)[:, None]
        vel[body] += (chain.base_positions[body] - pos[body]) * (drag.body_spring * slack * frames)[:, None]

        if idx != 0:
            pos[0] = chain.base_positions[0] + np.array([
                math.sin(now * drag.body_sway_frequency_x) * drag.root_sway_x,
                math.cos(now * drag.body_sway_frequency_y) * drag.root_sway_y
            ])

    def _settle_root(self, chain: PointChain, frames: float) -> None:
        """Ease the root back onto its base once a drag has moved it."""
        offset = chain.base_positions[0] - chain.positions[0]
        if not offset.any():
            return
        chain.positions[0] += offset * (1.0 - (1.0 - self.drag.root_settle) ** frames)

    def _apply_pointer(
        self,
        chain: PointChain,
        snapshot: PointerSnapshot,
        start_pos: np.ndarray,
        now: float,
        frames: float
    ) -> int:
        """Pointer proximity forces and influence memory. Returns points in reach."""
        pcfg = self.pointer
        freedom = chain.freedom

        if snapshot.has_pointer:
            pointer = np.asarray(snapshot.position, dtype=np.float64)
            delta = start_pos - pointer
            dist = np.hypot(delta[:, 0], delta[:, 1])
            radius = pcfg.touch_radius * (pcfg.radius_base_factor + freedom * pcfg.radius_freedom_factor)
            inside = dist < radius
        else:
            inside = np.zeros(chain.n_points, dtype=bool)

        if inside.any():
            f = freedom[inside]
            dist_in = dist[inside]
            dist_factor = dist_in / radius[inside]
            influence = np.maximum(
                0.0, (1.0 - np.power(dist_factor, pcfg.falloff_exponent)) * f * pcfg.influence_scale
            )

            chain.last_influence_ms[inside] = now
            chain.influence[inside] = influence

            safe_dist = np.maximum(dist_in, self.MIN_POINTER_DISTANCE)
            direction = np.where(
                (dist_in > self.MIN_POINTER_DISTANCE)[:, None],
                delta[inside] / safe_dist[:, None],
                0.0
            )
            push = pcfg.push_strength * influence * np.power(1.0 - dist_factor, pcfg.push_exponent)
            velocity_gain = influence * (pcfg.velocity_gain_base + f * pcfg.velocity_gain_freedom)
            pointer_velocity = np.asarray(snapshot.velocity, dtype=np.float64)

            chain.velocities[inside] += (
                direction * push[:, None] + pointer_velocity[None, :] * velocity_gain[:, None]
            ) * frames

        outside = ~inside
        if outside.any():
            elapsed = np.maximum(now - chain.last_influence_ms[outside], 0.0)
            decayed = chain.influence[outside] * np.power(
                pcfg.decay_rate, elapsed / pcfg.decay_interval_ms * frames
            )
            if pcfg.decay_mode == "timeout":
                decayed[elapsed >= pcfg.influence_timeout_ms] = 0.0
            else:
                decayed[decayed < 1e-9] = 0.0
            chain.influence[outside] = decayed

        return int(inside.sum())

    def _apply_spacing(self, chain: PointChain, wave_time: float, frames: float) -> None:
        """Equal and opposite springs on adjacent pairs, softened toward the tip."""
        cfg = self.forces
        pos = chain.positions
        n = chain.n_points

        seg = pos[1:] - pos[:-1]
        current = np.hypot(seg[:, 0], seg[:, 1])
        deviation = current - chain.rest_spacing

        i = np.arange(n - 1, dtype=np.float64)
        ti = i / n

        trailing_start = n - cfg.trailing_count
        trailing = i >= trailing_start
        trail_t = np.clip((i - trailing_start) / (cfg.trailing_count - 1), 0.0, 1.0)
        softening = np.where(trailing, 1.0 - np.power(trail_t, 2.2), 1.0)
        spring_scale = np.where(trailing, softening * 0.3, 1.0)
        tension_scale = np.where(trailing, softening * 0.2, 1.0)

        spring = deviation * cfg.spacing_stiffness * (1.0 - np.power(ti, 1.4)) * spring_scale
        tension = np.abs(deviation) * cfg.spacing_tension_gain * tension_scale
        magnitude = spring * tension * spring_scale * frames

        rotation = np.sin(wave_time * 0.3 + ti * np.pi) * cfg.spacing_rotation * softening
        angle = np.arctan2(seg[:, 1], seg[:, 0]) + rotation
        force = np.stack([np.cos(angle), np.sin(angle)], axis=1) * magnitude[:, None]

        chain.velocities[:-1] += force
        chain.velocities[1:] -= force

    def _sanitize(self, chain: PointChain, start_pos: np.ndarray) -> List[int]:
        """Restore points that went non-finite to their start-of-tick position at rest."""
        bad = ~(
            np.isfinite(chain.positions).all(axis=1)
            & np.isfinite(chain.velocities).all(axis=1)
            & np.isfinite(chain.influence)
        )
        if not bad.any():
            return []
        chain.positions[bad] = start_pos[bad]
        chain.velocities[bad] = 0.0
        chain.influence[bad] = 0.0
        return [int(i) for i in np.flatnonzero(bad)]
