"""
Curve renderer: post-tick chain -> draw commands.

The renderer reads a PointChain and produces a FrameDrawing, a flat list
of immutable commands that any DrawSurface can replay. It performs no
physics and never mutates the chain.

Draw sequence:
    [anchor] + live positions

Each consecutive pair (p1, p2) of the sequence becomes one cubic segment
whose handles come from the neighbours p0 and p3 (clamped at the ends):

    cp1 = p1 + (p2 - p0) / div
    cp2 = p2 - (p3 - p1) / div
    div = tension_base + (i / L) * tension_growth + (1 - i / (L - 1))^2 * end_softening
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import List, Tuple

from .chain import PointChain
from .config import RenderConfig, WaveConfig
from .curves import spline_handles, sample_stops


Point = Tuple[float, float]
Stops = Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class LinearGradient:
    """Alpha ramp from start to end in a single RGB colour."""
    start: Point
    end: Point
    rgb: Tuple[int, int, int]
    stops: Stops

    def alpha_at(self, offset: float) -> float:
        return sample_stops(self.stops, offset)

    def project(self, x: float, y: float) -> float:
        """Offset in [0, 1] of (x, y) projected onto the gradient axis."""
        dx = self.end[0] - self.start[0]
        dy = self.end[1] - self.start[1]
        length_sq = dx * dx + dy * dy
        if length_sq <= 0:
            return 0.0
        offset = ((x - self.start[0]) * dx + (y - self.start[1]) * dy) / length_sq
        return min(max(offset, 0.0), 1.0)


@dataclass(frozen=True)
class RadialGradient:
    """Alpha ramp from the centre (offset 0) to the rim (offset 1)."""
    center: Point
    radius: float
    rgb: Tuple[int, int, int]
    stops: Stops

    def alpha_at(self, offset: float) -> float:
        return sample_stops(self.stops, offset)


@dataclass(frozen=True)
class CurveSegment:
    """Cubic Bezier from the previous segment's end to `end`."""
    cp1: Point
    cp2: Point
    end: Point
    width: float


@dataclass(frozen=True)
class ClearSurface:
    """Fill the whole surface; alpha < 1 leaves a fading trail."""
    color: Tuple[int, int, int, float]


@dataclass(frozen=True)
class StrokedPath:
    """Chain of cubic segments starting at `start`, stroked with a gradient."""
    start: Point
    segments: Tuple[CurveSegment, ...]
    gradient: LinearGradient

    def control_polygon(self) -> List[Tuple[Point, Point, Point, Point]]:
        """(p0, cp1, cp2, p3) per segment."""
        result = []
        previous = self.start
        for segment in self.segments:
            result.append((previous, segment.cp1, segment.cp2, segment.end))
            previous = segment.end
        return result


@dataclass(frozen=True)
class FilledCircle:
    center: Point
    radius: float
    gradient: RadialGradient


@dataclass
class FrameDrawing:
    """Ordered draw commands for one frame."""
    commands: list = field(default_factory=list)
    time_ms: float = 0.0

    @property
    def paths(self) -> List[StrokedPath]:
        return [c for c in self.commands if isinstance(c, StrokedPath)]

    @property
    def circles(self) -> List[FilledCircle]:
        return [c for c in self.commands if isinstance(c, FilledCircle)]

    def replay(self, surface) -> None:
        """Issue every command to a DrawSurface, in order."""
        for command in self.commands:
            if isinstance(command, ClearSurface):
                surface.clear(command.color)
            elif isinstance(command, StrokedPath):
                surface.stroke_path(command)
            elif isinstance(command, FilledCircle):
                surface.fill_circle(command)
            else:
                raise TypeError(f"Unknown draw command: {type(command).__name__}")


def _as_point(p) -> Point:
    return (float(p[0]), float(p[1]))


class CurveRenderer:
    """
    Builds a FrameDrawing from a chain.

    Usage:
        renderer = CurveRenderer(config.render, config.wave)
        drawing = renderer.render(chain, time_ms)
        drawing.replay(surface)
    """

    def __init__(self, config: RenderConfig, wave_config: WaveConfig):
        self.config = config
        self.wave_config = wave_config

    def segment_width(self, index: int, sequence_length: int, wave_time: float) -> float:
        """
        Base stroke width for the segment ending at draw-sequence index `index`.

        Thin at the anchor, ramping up to a peak and tapering toward the tip,
        with a small time-based wobble.
        """
        cfg = self.config
        progress = index / sequence_length
        if progress < cfg.ramp_end:
            width = cfg.start_width + progress * cfg.ramp_slope
        else:
            width = cfg.peak_width * (1.0 - progress * cfg.taper)
        variation = 1.0 + math.sin(wave_time * 2.0 + index * 0.2) * cfg.width_wobble
        return width * variation

    def handle_divisor(self, index: int, sequence_length: int) -> float:
        cfg = self.config
        end_factor = (1.0 - index / (sequence_length - 1)) ** 2
        return (
            cfg.tension_base
            + (index / sequence_length) * cfg.tension_growth
            + end_factor * cfg.end_softening
        )

    def render(self, chain: PointChain, time_ms: float) -> FrameDrawing:
        """
        Draw commands for the chain's current state.

        Returns:
            FrameDrawing with a clear, the stroked tendril and the tip glow.
            A chain containing non-finite positions yields only the clear.
        """
        cfg = self.config
        drawing = FrameDrawing(time_ms=time_ms)
        drawing.commands.append(ClearSurface(cfg.background))

        if not chain.is_finite():
            return drawing

        wave_time = time_ms * self.wave_config.time_scale
        sequence = np.vstack([chain.anchor[None, :], chain.positions])
        thickness_hint = np.concatenate([[cfg.anchor_thickness], chain.thickness])
        influence = np.concatenate([[0.0], chain.influence])
        length = len(sequence)

        segments = []
        for i in range(length - 1):
            p0 = sequence[max(0, i - 1)]
            p1 = sequence[i]
            p2 = sequence[i + 1]
            p3 = sequence[min(length - 1, i + 2)]
            cp1, cp2 = spline_handles(p0, p1, p2, p3, self.handle_divisor(i, length))

            width = self.segment_width(i + 1, length, wave_time)
            width += influence[i + 1] * thickness_hint[i + 1] * cfg.influence_gain

            segments.append(CurveSegment(
                cp1=_as_point(cp1),
                cp2=_as_point(cp2),
                end=_as_point(p2),
                width=float(width)
            ))

        start = _as_point(sequence[0])
        tip = _as_point(sequence[-1])
        gradient = LinearGradient(start=start, end=tip, rgb=cfg.stroke_rgb, stops=tuple(cfg.gradient_stops))
        drawing.commands.append(StrokedPath(start=start, segments=tuple(segments), gradient=gradient))

        glow_radius = cfg.dot_radius * 2.0
        drawing.commands.append(FilledCircle(
            center=tip,
            radius=glow_radius,
            gradient=RadialGradient(center=tip, radius=glow_radius, rgb=cfg.stroke_rgb, stops=tuple(cfg.glow_stops))
        ))
        drawing.commands.append(FilledCircle(
            center=tip,
            radius=cfg.dot_radius,
            gradient=RadialGradient(center=tip, radius=cfg.dot_radius, rgb=cfg.stroke_rgb, stops=tuple(cfg.core_stops))
        ))
        return drawing
