"""
Procedural idle motion for the tendril.

The wave field maps (point index, chain length, time) to a lateral offset.
It is a pure function of its arguments: no state is kept between calls,
so a run can be replayed exactly and every value can be unit tested.

Shape:
    offset(t) = (primary + secondary + detail) * stable_fade(t)

    with t = index / (N - 1). Each term is a sinusoid of the point phase
    plus time, scaled by a (1 - t)^p amplitude curve, a smoothstep ramp
    in from the root and a root fade, so the motion is largest over the
    middle of the chain. smooth_wave() multiplies every sinusoid by an
    envelope that is exactly zero at t = 0 and t = 1.
"""

import numpy as np

from .config import WaveConfig
from .curves import smoothstep, ease_in_out_sine


TWO_PI = 2.0 * np.pi


def point_phase(t_linear):
    """Build-time phase for a point at normalised chain position t_linear."""
    return ease_in_out_sine(t_linear) * TWO_PI


def smooth_wave(t, phase, frequency):
    """
    Enveloped sinusoid with a small non-periodic micro-variation.

    The micro-variation multiplies sines of the phase at incommensurate
    rates so the result never repeats exactly.
    """
    raw = np.sin(phase * frequency)
    envelope = smoothstep(0.0, 0.2, t) * smoothstep(1.0, 0.8, t)

    micro_variation = (
        np.sin(phase * 3.7) * 0.12 * np.sin(phase * 0.3)
        + np.sin(phase * 2.4) * 0.08 * np.sin(phase * 0.5)
        + np.sin(phase * 5.2) * 0.05 * np.sin(phase * 0.7)
    )

    return (raw + micro_variation * envelope) * envelope


class WaveField:
    """
    Layered sinusoidal offsets along the chain.

    Usage:
        field = WaveField(WaveConfig())
        dx = field.offset(10, 45, time_ms=1500.0)
        all_dx = field.offsets(45, time_ms=1500.0)
    """

    def __init__(self, config: WaveConfig):
        self.config = config

    def wave_time(self, time_ms: float) -> float:
        """Global wave clock derived from simulation time."""
        return time_ms * self.config.time_scale

    def _evaluate(self, t: np.ndarray, time_ms: float) -> np.ndarray:
        cfg = self.config
        phase = point_phase(t)
        base_phase = self.wave_time(time_ms) * 0.5 + phase * 0.6

        root_fade = np.power(smoothstep(0.0, cfg.root_fade_end, t), 1.3)
        adjusted_phase = base_phase + (1.0 - t) * 2.2

        primary_amplitude = cfg.primary_amplitude * np.power(1.0 - t, 0.2) * smoothstep(0.0, 0.3, t)
        primary = smooth_wave(t, adjusted_phase, cfg.primary_frequency) * primary_amplitude * root_fade

        secondary_amplitude = cfg.secondary_amplitude * np.power(1.0 - t, 0.3) * smoothstep(0.0, 0.32, t)
        secondary = (
            smooth_wave(t, adjusted_phase + np.pi * 0.5, cfg.secondary_frequency)
            * secondary_amplitude * root_fade
        )

        detail_amplitude = cfg.detail_amplitude * np.power(1.0 - t, 0.4) * smoothstep(0.0, 0.35, t)
        detail = (
            smooth_wave(t, adjusted_phase - np.pi * 0.3, cfg.detail_frequency) * detail_amplitude
            + smooth_wave(t, adjusted_phase + np.pi * 0.7, cfg.fine_frequency) * detail_amplitude * 0.3
        ) * root_fade

        stable_fade = smoothstep(1.0, cfg.stable_fade_start, t)

        return (primary + secondary + detail) * stable_fade

    def offsets(self, n_points: int, time_ms: float) -> np.ndarray:
        """Offsets for every point of an n_points chain, shape (n_points,)."""
        if n_points < 2:
            return np.zeros(max(n_points, 0), dtype=np.float64)
        t = np.arange(n_points, dtype=np.float64) / (n_points - 1)
        return self._evaluate(t, time_ms)

    def offset(self, index: int, n_points: int, time_ms: float) -> float:
        """
        Offset of a single point.

        Raises:
            IndexError: If index is outside [0, n_points).
        """
        if not (0 <= index < n_points):
            raise IndexError(f"point index {index} out of range for {n_points} points")
        if n_points < 2:
            return 0.0
        t = np.array([index / (n_points - 1)], dtype=np.float64)
        return float(self._evaluate(t, time_ms)[0])
