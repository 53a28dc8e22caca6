"""
Tests for the procedural wave field.
"""

import pytest
import numpy as np

from tendril.config import WaveConfig
from tendril.curves import smoothstep, ease_in_out_sine, cubic_bezier, spline_handles, sample_stops
from tendril.wave import WaveField, smooth_wave


class TestWaveField:
    """WaveField is a pure function of (index, N, time)."""

    def setup_method(self):
        self.field = WaveField(WaveConfig())

    @pytest.mark.parametrize("time_ms", [0.0, 1234.5, 60000.0, 1e7])
    def test_zero_at_both_ends(self, time_ms):
        assert self.field.offset(0, 45, time_ms) == 0.0
        assert self.field.offset(44, 45, time_ms) == 0.0

    def test_repeatable(self):
        first = self.field.offsets(45, 4321.0)
        second = self.field.offsets(45, 4321.0)
        np.testing.assert_array_equal(first, second)
        assert self.field.offset(20, 45, 4321.0) == self.field.offset(20, 45, 4321.0)

    def test_scalar_matches_vector(self):
        offsets = self.field.offsets(45, 2500.0)
        for i in (1, 10, 22, 40):
            assert self.field.offset(i, 45, 2500.0) == pytest.approx(offsets[i])

    def test_moves_over_time(self):
        assert not np.allclose(self.field.offsets(45, 0.0), self.field.offsets(45, 5000.0))

    def test_bounded_by_amplitudes(self):
        cfg = WaveConfig()
        # each enveloped sinusoid peaks at 1.25 including micro-variation
        bound = 1.25 * (cfg.primary_amplitude + cfg.secondary_amplitude + cfg.detail_amplitude * 1.3)
        for time_ms in np.linspace(0.0, 120000.0, 25):
            assert np.max(np.abs(self.field.offsets(45, time_ms))) <= bound

    def test_zero_amplitude_is_flat(self):
        flat = WaveField(WaveConfig(primary_amplitude=0.0, secondary_amplitude=0.0, detail_amplitude=0.0))
        assert not flat.offsets(45, 999.0).any()

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            self.field.offset(45, 45, 0.0)
        with pytest.raises(IndexError):
            self.field.offset(-1, 45, 0.0)

    def test_single_point_chain(self):
        assert self.field.offset(0, 1, 100.0) == 0.0
        assert self.field.offsets(1, 100.0).shape == (1,)


class TestSmoothWave:
    """The envelope pins both chain ends."""

    def test_envelope_zero_at_ends(self):
        t = np.array([0.0, 1.0])
        np.testing.assert_array_equal(smooth_wave(t, np.array([3.0, 3.0]), 0.07), [0.0, 0.0])


class TestCurveHelpers:
    """Curve math shared with the renderer."""

    def test_smoothstep_edges(self):
        assert smoothstep(0.0, 1.0, -1.0) == 0.0
        assert smoothstep(0.0, 1.0, 0.5) == pytest.approx(0.5)
        assert smoothstep(0.0, 1.0, 2.0) == 1.0

    def test_smoothstep_reversed_edges_fall(self):
        assert smoothstep(1.0, 0.9, 1.0) == 0.0
        assert smoothstep(1.0, 0.9, 0.5) == 1.0

    def test_ease_endpoints(self):
        assert ease_in_out_sine(0.0) == pytest.approx(0.0)
        assert ease_in_out_sine(1.0) == pytest.approx(1.0)
        assert ease_in_out_sine(0.5) == pytest.approx(0.5)

    def test_bezier_endpoints(self):
        curve = cubic_bezier((0, 0), (1, 2), (3, 2), (4, 0), 9)
        assert curve.shape == (9, 2)
        np.testing.assert_array_almost_equal(curve[0], [0, 0])
        np.testing.assert_array_almost_equal(curve[-1], [4, 0])

    def test_handles_on_straight_line(self):
        cp1, cp2 = spline_handles((0, 0), (0, 10), (0, 20), (0, 30), 8.0)
        np.testing.assert_array_almost_equal(cp1, [0, 12.5])
        np.testing.assert_array_almost_equal(cp2, [0, 17.5])

    def test_sample_stops(self):
        stops = [(0.0, 1.0), (0.5, 0.5), (1.0, 0.0)]
        assert sample_stops(stops, -0.5) == 1.0
        assert sample_stops(stops, 0.25) == pytest.approx(0.75)
        assert sample_stops(stops, 2.0) == 0.0
