"""
Tests for TendrilIntegrator - one force-accumulation tick.

Tests:
    - dt guards (zero, negative, non-finite, clamping)
    - Pointer push, pointer velocity and influence memory
    - Influence decay modes
    - Drag pre-pass
    - Spacing pass symmetry
    - Non-finite restoration
"""

import math

import pytest
import numpy as np

from tendril.chain import PointChain
from tendril.config import TendrilConfig, PointerConfig
from tendril.integrator import TendrilIntegrator, SimulationContext
from tendril.interaction import PointerSnapshot, DragState, IDLE_SNAPSHOT


FRAME_MS = 1000.0 / 60.0


def make_chain(config=None, width=800, height=600):
    """Resting chain for the given config."""
    config = config or TendrilConfig()
    return PointChain.build(width, height, config.geometry)


class TestTimeStepGuards:
    """dt handling."""

    def setup_method(self):
        self.integrator = TendrilIntegrator(TendrilConfig())
        self.chain = make_chain()
        self.context = SimulationContext()

    def test_zero_dt_is_noop(self):
        before = self.chain.copy()
        report = self.integrator.step(self.chain, self.context, IDLE_SNAPSHOT, 0.0)

        assert not report.applied
        assert report.rejected_reason is None
        np.testing.assert_array_equal(self.chain.positions, before.positions)
        np.testing.assert_array_equal(self.chain.velocities, before.velocities)
        assert self.context.time_ms == 0.0

    @pytest.mark.parametrize("dt", [-1.0, float("nan"), float("inf"), None])
    def test_invalid_dt_rejected(self, dt):
        before = self.chain.copy()
        report = self.integrator.step(self.chain, self.context, IDLE_SNAPSHOT, dt)

        assert not report.applied
        assert report.rejected_reason == "invalid_dt"
        np.testing.assert_array_equal(self.chain.positions, before.positions)
        assert self.context.frame_count == 0

    def test_large_dt_clamped(self):
        report = self.integrator.step(self.chain, self.context, IDLE_SNAPSHOT, 1000.0)

        assert report.applied
        assert report.dt_ms == pytest.approx(64.0)
        assert report.frames == pytest.approx(64.0 / FRAME_MS)
        assert self.context.time_ms == pytest.approx(64.0)
        assert self.context.frame_count == 1

    def test_frames_for(self):
        assert self.integrator.frames_for(FRAME_MS) == pytest.approx(1.0)
        assert self.integrator.frames_for(500.0) == pytest.approx(64.0 / FRAME_MS)

    def test_degenerate_chain_rejected(self):
        self.chain.length = 0.0
        report = self.integrator.step(self.chain, self.context, IDLE_SNAPSHOT, FRAME_MS)
        assert report.rejected_reason == "degenerate_geometry"

    def test_tick_moves_chain_finitely(self):
        for _ in range(10):
            report = self.integrator.step(self.chain, self.context, IDLE_SNAPSHOT, FRAME_MS)
            assert report.applied
        assert self.chain.is_finite()
        assert self.chain.displacement_from_base().max() > 0.0


class TestPointerInfluence:
    """Proximity push, pointer velocity and influence memory."""

    def setup_method(self):
        self.integrator = TendrilIntegrator(TendrilConfig())
        self.index = 22

    def _step(self, snapshot):
        chain = make_chain()
        context = SimulationContext()
        self.integrator.step(chain, context, snapshot, FRAME_MS)
        return chain, context

    def _pointer_beside_midpoint(self, dx=30.0, velocity=(0.0, 0.0)):
        chain = make_chain()
        x, y = chain.positions[self.index]
        return PointerSnapshot(position=(x + dx, y), velocity=velocity, last_interaction_ms=0.0)

    def test_push_is_repulsive(self):
        control, _ = self._step(PointerSnapshot(last_interaction_ms=0.0))
        pushed, _ = self._step(self._pointer_beside_midpoint(dx=30.0))

        assert pushed.velocities[self.index, 0] < control.velocities[self.index, 0]

    def test_pointer_velocity_carries_points(self):
        still, _ = self._step(self._pointer_beside_midpoint(velocity=(0.0, 0.0)))
        moving, _ = self._step(self._pointer_beside_midpoint(velocity=(0.01, 0.0)))

        assert moving.velocities[self.index, 0] > still.velocities[self.index, 0]

    def test_influence_recorded(self):
        chain, context = self._step(self._pointer_beside_midpoint())

        assert 0.0 < chain.influence[self.index] <= 1.0
        assert chain.last_influence_ms[self.index] == pytest.approx(context.time_ms)

    def test_far_pointer_has_no_effect(self):
        chain, _ = self._step(PointerSnapshot(position=(5000.0, 5000.0), last_interaction_ms=0.0))
        assert not chain.influence.any()


class TestInfluenceDecay:
    """Timeout mode snaps to zero, continuous mode only decays."""

    def _decayed(self, decay_mode):
        config = TendrilConfig(pointer=PointerConfig(decay_mode=decay_mode))
        integrator = TendrilIntegrator(config)
        chain = make_chain(config)
        chain.influence[:] = 0.5
        chain.last_influence_ms[:] = 0.0
        context = SimulationContext(time_ms=6100.0)
        integrator.step(chain, context, IDLE_SNAPSHOT, FRAME_MS)
        return chain

    def test_timeout_mode_resets(self):
        chain = self._decayed("timeout")
        assert np.all(chain.influence == 0.0)

    def test_continuous_mode_keeps_decaying(self):
        chain = self._decayed("continuous")
        assert np.all(chain.influence > 0.0)
        assert np.all(chain.influence < 0.5)

    def test_decay_is_monotonic(self):
        integrator = TendrilIntegrator(TendrilConfig())
        chain = make_chain()
        chain.influence[:] = 0.2
        chain.last_influence_ms[:] = 0.0
        context = SimulationContext()

        previous = chain.influence.copy()
        for _ in range(400):
            integrator.step(chain, context, IDLE_SNAPSHOT, FRAME_MS)
            assert np.all(chain.influence <= previous)
            previous = chain.influence.copy()

        assert context.time_ms > 6000.0
        assert np.all(chain.influence == 0.0)


class TestDrag:
    """Compliant pull of the captured tip."""

    def setup_method(self):
        self.integrator = TendrilIntegrator(TendrilConfig())

    def test_tip_pulled_toward_pointer(self):
        chain = make_chain()
        tip = chain.tip
        snapshot = PointerSnapshot(
            position=(tip[0] + 50.0, tip[1]),
            last_interaction_ms=0.0,
            drag_state=DragState.CAPTURED,
            captured_index=chain.n_points - 1
        )
        self.integrator.step(chain, SimulationContext(), snapshot, FRAME_MS)

        assert chain.velocities[-1, 0] > 0.5
        assert chain.tip[0] > tip[0]

    def test_neighbours_follow_tip(self):
        chain = make_chain()
        chain.positions[-1, 0] += 40.0
        snapshot = PointerSnapshot(
            position=tuple(chain.positions[-1]),
            last_interaction_ms=0.0,
            drag_state=DragState.CAPTURED,
            captured_index=chain.n_points - 1
        )
        self.integrator.step(chain, SimulationContext(), snapshot, FRAME_MS)

        assert chain.velocities[-2, 0] > 0.0

    def test_body_sways_while_captured(self):
        config = TendrilConfig()
        config.drag.follow_strength = 0.0
        integrator = TendrilIntegrator(config)
        held, control = make_chain(config), make_chain(config)
        tip = tuple(held.tip)
        captured = PointerSnapshot(
            position=tip,
            last_interaction_ms=0.0,
            drag_state=DragState.CAPTURED,
            captured_index=held.n_points - 1
        )
        hovering = PointerSnapshot(position=tip, last_interaction_ms=0.0)

        integrator.step(held, SimulationContext(), captured, FRAME_MS)
        integrator.step(control, SimulationContext(), hovering, FRAME_MS)

        middle = slice(1, held.n_points - 1)
        sway = held.velocities[middle] - control.velocities[middle]
        assert np.abs(sway[:, 0]).max() > 1e-3
        assert np.abs(sway[:, 1]).max() > 1e-3

        # the root is moved around its base position
        expected_y = math.cos(FRAME_MS * config.drag.body_sway_frequency_y) * config.drag.root_sway_y
        assert held.positions[0, 1] - control.positions[0, 1] == pytest.approx(expected_y, abs=0.05)

    def test_body_held_near_rest_shape(self):
        def pulled(body_spring):
            config = TendrilConfig()
            config.drag.follow_strength = 0.0
            config.drag.body_sway = 0.0
            config.drag.body_spring = body_spring
            chain = make_chain(config)
            chain.positions[10, 0] += 30.0
            snapshot = PointerSnapshot(
                position=tuple(chain.tip),
                last_interaction_ms=0.0,
                drag_state=DragState.CAPTURED,
                captured_index=chain.n_points - 1
            )
            TendrilIntegrator(config).step(chain, SimulationContext(), snapshot, FRAME_MS)
            return chain.velocities[10, 0]

        assert pulled(0.01) < pulled(0.0) - 0.1

    def test_root_settles_after_release(self):
        chain = make_chain()
        chain.positions[0, 1] += 2.0
        context = SimulationContext()
        for _ in range(120):
            self.integrator.step(chain, context, IDLE_SNAPSHOT, FRAME_MS)

        assert np.linalg.norm(chain.positions[0] - chain.base_positions[0]) < 0.5


class TestSpacingPass:
    """Adjacent-pair springs are equal and opposite."""

    def test_momentum_conserved(self):
        integrator = TendrilIntegrator(TendrilConfig())
        chain = make_chain()
        # stretch the chain away from the anchor
        chain.positions = chain.anchor + (chain.base_positions - chain.anchor) * 1.5
        chain.velocities[:] = 0.0

        integrator._apply_spacing(chain, wave_time=0.0, frames=1.0)

        assert np.abs(chain.velocities).max() > 0.0
        np.testing.assert_array_almost_equal(chain.velocities.sum(axis=0), [0.0, 0.0], decimal=12)

    def test_rest_shape_has_no_spacing_force(self):
        integrator = TendrilIntegrator(TendrilConfig())
        chain = make_chain()
        integrator._apply_spacing(chain, wave_time=3.0, frames=1.0)
        np.testing.assert_array_almost_equal(chain.velocities, np.zeros_like(chain.velocities))


class TestSanitize:
    """Non-finite values never survive a tick."""

    def test_infinite_velocity_restored(self):
        integrator = TendrilIntegrator(TendrilConfig())
        chain = make_chain()
        start = chain.positions[10].copy()
        chain.velocities[10] = [np.inf, 0.0]

        report = integrator.step(chain, SimulationContext(), IDLE_SNAPSHOT, FRAME_MS)

        assert report.applied
        assert 10 in report.sanitized_points
        assert chain.is_finite()
        np.testing.assert_array_equal(chain.positions[10], start)
        np.testing.assert_array_equal(chain.velocities[10], [0.0, 0.0])
        assert np.isfinite(report.max_speed)
