"""
Tests for TendrilEngine - lifecycle, ticking and pointer routing.

Tests:
    - Idle stability over 1000 ticks
    - Tip drag convergence
    - Degenerate viewport recovery
    - Rebuild, epochs and disposal
"""

import pytest
import numpy as np

from tendril.chain import PointChain
from tendril.config import TendrilConfig
from tendril.engine import TendrilEngine, LifecycleState
from tendril.interaction import DragState
from tendril.presets import get_preset
from tendril.renderer import ClearSurface, StrokedPath


FRAME_MS = 1000.0 / 60.0


@pytest.fixture
def engine():
    eng = TendrilEngine(TendrilConfig())
    eng.resize(800, 600)
    return eng


class TestIdleStability:
    """No pointer: the chain sways but stays near its rest shape."""

    def test_thousand_ticks_stay_near_base(self, engine):
        anchor = engine.chain.anchor.copy()
        np.testing.assert_array_almost_equal(anchor, [400.0, 510.0])

        for _ in range(1000):
            report = engine.tick(FRAME_MS)
            assert report.applied

        chain = engine.get_chain()
        assert chain.is_finite()
        assert np.all(np.abs(chain.positions - chain.base_positions) <= 100.0)
        np.testing.assert_array_equal(chain.anchor, anchor)

    def test_horizontal_preset_stable(self):
        eng = TendrilEngine(get_preset("horizontal").config)
        eng.resize(1000, 500)
        for _ in range(600):
            eng.tick(FRAME_MS)

        chain = eng.get_chain()
        assert chain.is_finite()
        assert np.all(np.abs(chain.positions - chain.base_positions) <= 100.0)

    def test_irregular_frame_times(self, engine):
        rng = np.random.default_rng(7)
        for dt in rng.uniform(0.0, 120.0, size=300):
            engine.tick(float(dt))
        assert engine.get_chain().is_finite()


class TestTipDrag:
    """Capture the tip and pull it toward the pointer."""

    def test_capture_then_converge(self, engine):
        tip = engine.chain.tip
        assert engine.pointer_down(tip[0], tip[1])
        assert engine.get_state().drag_state == DragState.CAPTURED

        pointer = np.array([tip[0] + 60.0, tip[1] + 40.0])
        engine.pointer_move(pointer[0], pointer[1])

        distances = []
        for _ in range(120):
            engine.tick(FRAME_MS)
            distances.append(np.linalg.norm(engine.chain.tip - pointer))

        for previous, current in zip(distances, distances[1:]):
            assert current <= previous + 0.25
        assert distances[-1] < 5.0
        assert distances[-1] < distances[0]

    @staticmethod
    def _follow_then_hold(eng, step, moves=90, hold=180):
        """Drag the tip along a straight line, then keep the pointer still."""
        tip = eng.chain.tip
        assert eng.pointer_down(tip[0], tip[1])

        pointer = tip.copy()
        lags = []
        for _ in range(moves):
            pointer += step
            eng.pointer_move(pointer[0], pointer[1])
            eng.tick(FRAME_MS)
            lags.append(np.linalg.norm(eng.chain.tip - pointer))

        settling = []
        for _ in range(hold):
            eng.tick(FRAME_MS)
            settling.append(np.linalg.norm(eng.chain.tip - pointer))
        return lags, settling

    def test_moving_pointer_is_followed(self, engine):
        lags, settling = self._follow_then_hold(engine, np.array([1.0, 0.0]))

        assert max(lags) < 30.0
        assert settling[-1] < 5.0
        assert settling[-1] < lags[-1]
        tail = settling[-60:]
        for previous, current in zip(tail, tail[1:]):
            assert current <= previous + 0.25

    def test_horizontal_drag_converges(self):
        eng = TendrilEngine(get_preset("horizontal").config)
        eng.resize(1000, 500)
        for _ in range(10):
            eng.tick(FRAME_MS)

        lags, settling = self._follow_then_hold(eng, np.array([-0.5, 0.6]))

        assert eng.get_state().drag_state == DragState.CAPTURED
        assert max(lags) < 30.0
        assert settling[-1] < 5.0
        tail = settling[-60:]
        for previous, current in zip(tail, tail[1:]):
            assert current <= previous + 0.25
        assert eng.get_chain().is_finite()

    def test_press_away_from_tip_does_not_capture(self, engine):
        assert not engine.pointer_down(10.0, 10.0)
        assert engine.get_state().drag_state == DragState.IDLE

    def test_release_and_leave(self, engine):
        tip = engine.chain.tip
        engine.pointer_down(tip[0], tip[1])
        engine.pointer_up()
        assert engine.get_state().drag_state == DragState.IDLE

        engine.pointer_down(tip[0], tip[1])
        engine.pointer_leave()
        assert engine.get_state().drag_state == DragState.IDLE
        assert not engine.tracker.snapshot(engine.context.time_ms).has_pointer


class TestPointerInfluenceLifetime:
    """Influence memory fades to exactly zero after the pointer leaves."""

    def test_influence_cleared_after_timeout(self, engine):
        engine.pointer_move(420.0, 300.0)
        for _ in range(30):
            engine.tick(FRAME_MS)
        assert engine.chain.influence.max() > 0.0

        engine.pointer_leave()
        previous = engine.chain.influence.copy()
        for _ in range(380):
            engine.tick(FRAME_MS)
            assert np.all(engine.chain.influence <= previous)
            previous = engine.chain.influence.copy()

        assert np.all(engine.chain.influence == 0.0)


class TestDegenerateViewport:
    """A zero-size viewport suspends the engine instead of failing."""

    def test_zero_viewport_then_recover(self):
        eng = TendrilEngine()
        assert not eng.resize(0, 0)
        assert eng.lifecycle == LifecycleState.SUSPENDED
        assert eng.chain is None

        report = eng.tick(FRAME_MS)
        assert not report.applied
        assert report.rejected_reason == "inactive"

        drawing = eng.render()
        assert len(drawing.commands) == 1
        assert isinstance(drawing.commands[0], ClearSurface)

        assert eng.resize(800, 600)
        assert eng.lifecycle == LifecycleState.ACTIVE
        assert eng.tick(FRAME_MS).applied
        assert eng.get_chain().is_finite()

    def test_first_build_goes_active(self):
        eng = TendrilEngine()
        assert eng.lifecycle == LifecycleState.UNINITIALIZED
        eng.resize(640, 480)
        assert eng.lifecycle == LifecycleState.ACTIVE

    def test_first_build_skips_rebuilding(self):
        seen = []
        eng = TendrilEngine(on_state_changed=lambda: seen.append(eng.lifecycle))

        eng.resize(640, 480)
        assert seen == [LifecycleState.ACTIVE]

        eng.resize(800, 600)
        assert seen[1:] == [
            LifecycleState.SUSPENDED, LifecycleState.REBUILDING, LifecycleState.ACTIVE
        ]


class TestRebuild:
    """Resize rebuilds the chain and bumps the epoch."""

    def test_rebuild_preserves_point_count(self, engine):
        for _ in range(20):
            engine.tick(FRAME_MS)
        epoch = engine.epoch

        assert engine.resize(1024, 400)

        expected = PointChain.build(1024, 400, engine.config.geometry)
        assert engine.chain.n_points == 45
        assert engine.epoch == epoch + 1
        np.testing.assert_array_almost_equal(engine.chain.base_positions, expected.base_positions)
        np.testing.assert_array_almost_equal(engine.chain.positions, expected.base_positions)

    def test_stale_epoch_rejected(self, engine):
        old_epoch = engine.epoch
        engine.resize(900, 700)

        report = engine.tick(FRAME_MS, epoch=old_epoch)
        assert report.rejected_reason == "stale_epoch"
        assert engine.tick(FRAME_MS, epoch=engine.epoch).applied

    def test_rebuild_releases_drag(self, engine):
        tip = engine.chain.tip
        engine.pointer_down(tip[0], tip[1])
        engine.resize(900, 700)
        assert engine.get_state().drag_state == DragState.IDLE


class TestTickGuards:
    """dt guards seen through the engine."""

    def test_zero_dt_changes_nothing(self, engine):
        for _ in range(5):
            engine.tick(FRAME_MS)
        before = engine.get_chain()

        report = engine.tick(0.0)

        assert not report.applied
        np.testing.assert_array_equal(engine.chain.positions, before.positions)
        np.testing.assert_array_equal(engine.chain.velocities, before.velocities)
        assert engine.chain.is_finite()

    def test_rejection_logged_once(self, engine, memory_log):
        engine.tick(-5.0)
        engine.tick(-5.0)
        rejected = [m for m in memory_log.messages("WARNING") if "invalid_dt" in m]
        assert len(rejected) == 1

        engine.tick(FRAME_MS)
        engine.tick(-5.0)
        rejected = [m for m in memory_log.messages("WARNING") if "invalid_dt" in m]
        assert len(rejected) == 2

    def test_extreme_pointer_samples_do_not_freeze_chain(self, engine):
        engine.pointer_move(-1e308, 300.0)
        engine.pointer_move(1e308, 300.0)
        for _ in range(30):
            assert engine.tick(FRAME_MS).sanitized_points == []

        for i in range(20):
            engine.pointer_move(425.0 + i, 300.0)
            report = engine.tick(FRAME_MS)
            assert report.sanitized_points == []
            assert report.influenced_points > 0

        snapshot = engine.tracker.snapshot(engine.context.time_ms)
        assert np.all(np.isfinite(snapshot.velocity))
        assert engine.get_chain().is_finite()

    def test_invalid_config_rejected(self):
        config = TendrilConfig()
        config.geometry.n_points = 1
        with pytest.raises(ValueError, match="Invalid configuration"):
            TendrilEngine(config)


class TestDispose:
    """Nothing ticks after dispose."""

    def test_tick_after_dispose_rejected(self, engine):
        engine.dispose()

        assert engine.is_disposed
        assert engine.lifecycle == LifecycleState.SUSPENDED
        assert engine.tick(FRAME_MS).rejected_reason == "disposed"
        assert not engine.resize(800, 600)
        assert not engine.pointer_move(1.0, 1.0)

    def test_dispose_twice_is_harmless(self, engine):
        engine.dispose()
        engine.dispose()
        assert engine.get_state().disposed


class TestRender:
    """Engine rendering wraps the curve renderer."""

    def test_render_has_path(self, engine):
        engine.tick(FRAME_MS)
        drawing = engine.render()
        assert len(drawing.paths) == 1
        assert isinstance(drawing.commands[1], StrokedPath)
        assert drawing.time_ms == pytest.approx(engine.context.time_ms)

    def test_get_chain_is_copy(self, engine):
        chain = engine.get_chain()
        chain.positions[:] = 0.0
        assert engine.chain.positions.any()
