"""
Curve helpers shared by the wave field, the integrator and the renderer.

Mathematical Foundation:
- Smoothstep: s(x) = x²(3 - 2x), x = clamp((v - e0) / (e1 - e0), 0, 1).
  Swapping the edges gives a falling ramp.
- Cubic Bezier: B(t) = (1-t)³P₀ + 3(1-t)²t C₁ + 3(1-t)t² C₂ + t³ P₃
- Local 4-point handles: C₁ = P₁ + (P₂ - P₀)/k, C₂ = P₂ - (P₃ - P₁)/k
  (Catmull-Rom style; k = 6 reproduces a uniform Catmull-Rom spline,
  larger k gives tighter curves).

All functions accept scalars or numpy arrays.
"""

import math
import numpy as np


def smoothstep(edge0, edge1, value):
    """Hermite ramp from 0 at edge0 to 1 at edge1."""
    x = np.clip((np.asarray(value, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    result = x * x * (3.0 - 2.0 * x)
    if result.ndim == 0:
        return float(result)
    return result


def ease_in_out_sine(x):
    """Sine ease, 0 -> 0 and 1 -> 1 with zero slope at both ends."""
    result = -(np.cos(np.pi * np.asarray(x, dtype=np.float64)) - 1.0) / 2.0
    if result.ndim == 0:
        return float(result)
    return result


def spline_handles(p0, p1, p2, p3, divisor: float):
    """
    Control handles for the cubic segment from p1 to p2.

    Args:
        p0, p1, p2, p3: Consecutive points, shape (2,).
        divisor: Tension divisor k; must be positive.

    Returns:
        (cp1, cp2) as numpy arrays.
    """
    p0, p1, p2, p3 = (np.asarray(p, dtype=np.float64) for p in (p0, p1, p2, p3))
    cp1 = p1 + (p2 - p0) / divisor
    cp2 = p2 - (p3 - p1) / divisor
    return cp1, cp2


def cubic_bezier(p0, c1, c2, p3, samples: int) -> np.ndarray:
    """
    Sample a cubic Bezier curve.

    Args:
        p0, c1, c2, p3: Start, handles and end, shape (2,).
        samples: Number of points, including both ends (>= 2).

    Returns:
        Array of shape (samples, 2).
    """
    t = np.linspace(0.0, 1.0, samples)[:, None]
    u = 1.0 - t
    return (
        u ** 3 * np.asarray(p0, dtype=np.float64)
        + 3.0 * u ** 2 * t * np.asarray(c1, dtype=np.float64)
        + 3.0 * u * t ** 2 * np.asarray(c2, dtype=np.float64)
        + t ** 3 * np.asarray(p3, dtype=np.float64)
    )


def sample_stops(stops, offset: float) -> float:
    """
    Linearly interpolate an alpha value from sorted (offset, alpha) stops.

    Offsets outside the stop range clamp to the first/last alpha.
    """
    if offset <= stops[0][0]:
        return stops[0][1]
    for (o0, a0), (o1, a1) in zip(stops, stops[1:]):
        if offset <= o1:
            if o1 == o0:
                return a1
            f = (offset - o0) / (o1 - o0)
            return a0 + (a1 - a0) * f
    return stops[-1][1]


def is_finite_point(x, y) -> bool:
    return math.isfinite(x) and math.isfinite(y)
