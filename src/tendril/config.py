"""
Configuration loading and validation for the tendril simulation.

Loads YAML config and validates every tuning constant before an engine
is built. All tunables are per-frame constants at 60 fps; the integrator
rescales them by the actual frame time.

Units:
    - Length: surface pixels
    - Time: ms
"""

import math
import yaml
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Literal
from pathlib import Path
import numpy as np


ColorStop = tuple[float, float]  # (offset in [0, 1], alpha in [0, 1])


def _validate_stops(stops, name: str) -> tuple[bool, Optional[str]]:
    if len(stops) < 2:
        return False, f"{name} needs at least 2 stops"
    offsets = [s[0] for s in stops]
    if any(o < 0.0 or o > 1.0 for o in offsets):
        return False, f"{name} offsets must be in [0, 1]"
    if any(b < a for a, b in zip(offsets, offsets[1:])):
        return False, f"{name} offsets must be sorted"
    if any(s[1] < 0.0 or s[1] > 1.0 for s in stops):
        return False, f"{name} alphas must be in [0, 1]"
    return True, None


@dataclass
class GeometryConfig:
    """Chain layout relative to the viewport."""
    n_points: int = 45
    orientation: Literal["vertical", "horizontal"] = "vertical"
    anchor_x: float = 0.5  # fraction of viewport width
    anchor_y: float = 0.85  # fraction of viewport height
    length_fraction: float = 0.65  # of height (vertical) or width (horizontal)
    spacing_exponent: float = 1.2  # >1 packs points toward the root
    freedom_profile: Literal["root_free", "tip_free"] = "root_free"

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.n_points < 2:
            return False, "n_points must be >= 2"
        if self.orientation not in ("vertical", "horizontal"):
            return False, f"Unknown orientation: {self.orientation}"
        if self.freedom_profile not in ("root_free", "tip_free"):
            return False, f"Unknown freedom_profile: {self.freedom_profile}"
        if not (0.0 <= self.anchor_x <= 1.0) or not (0.0 <= self.anchor_y <= 1.0):
            return False, "anchor_x and anchor_y must be in [0, 1]"
        if self.length_fraction <= 0:
            return False, "length_fraction must be positive"
        if self.spacing_exponent <= 0:
            return False, "spacing_exponent must be positive"
        return True, None

    @property
    def growth_vector(self) -> np.ndarray:
        """Unit vector from the anchor toward the tip in surface coordinates (y down)."""
        if self.orientation == "vertical":
            return np.array([0.0, -1.0])
        return np.array([1.0, 0.0])

    @property
    def lateral_axis(self) -> int:
        """Index of the coordinate the wave displaces (x for vertical chains)."""
        return 0 if self.orientation == "vertical" else 1

    @property
    def axial_axis(self) -> int:
        return 1 - self.lateral_axis


@dataclass
class WaveConfig:
    """Procedural idle motion."""
    time_scale: float = 0.0006  # wave time units per ms
    primary_amplitude: float = 45.0
    primary_frequency: float = 0.07
    secondary_amplitude: float = 20.0
    secondary_frequency: float = 0.025
    detail_amplitude: float = 2.5
    detail_frequency: float = 0.006
    fine_frequency: float = 0.004
    root_fade_end: float = 0.45
    stable_fade_start: float = 0.9

    def validate(self) -> tuple[bool, Optional[str]]:
        for name in ("primary_amplitude", "secondary_amplitude", "detail_amplitude"):
            if getattr(self, name) < 0:
                return False, f"{name} must be non-negative"
        if self.time_scale < 0:
            return False, "time_scale must be non-negative"
        if not (0.0 < self.root_fade_end <= 1.0):
            return False, "root_fade_end must be in (0, 1]"
        if not (0.0 <= self.stable_fade_start < 1.0):
            return False, "stable_fade_start must be in [0, 1)"
        return True, None


@dataclass
class ForcesConfig:
    """Per-frame force constants for the integrator."""
    frame_ms: float = 1000.0 / 60.0
    max_dt_ms: float = 64.0
    homing: float = 0.00025
    homing_freedom_gain: float = 1.3
    return_strength: float = 0.00004
    return_axial_gain: float = 1.2
    return_ramp_ms: float = 12000.0
    return_cap: float = 0.7
    damping_base: float = 0.972
    damping_freedom_relax: float = 0.0006
    damping_speed_gain: float = 0.008
    damping_min: float = 0.5
    mobility_gain: float = 0.5
    rigidity: float = 0.0003
    rigidity_freedom_relief: float = 0.92
    rigidity_wobble: float = 0.08
    axial_drift: float = 0.00001
    spacing_stiffness: float = 0.00008
    spacing_tension_gain: float = 0.002
    spacing_rotation: float = 0.001
    trailing_count: int = 3

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.frame_ms <= 0:
            return False, "frame_ms must be positive"
        if self.max_dt_ms < self.frame_ms:
            return False, "max_dt_ms must be >= frame_ms"
        if not (0.0 < self.damping_base <= 1.0):
            return False, "damping_base must be in (0, 1]"
        if not (0.0 < self.damping_min <= self.damping_base):
            return False, "damping_min must be in (0, damping_base]"
        if self.return_ramp_ms <= 0:
            return False, "return_ramp_ms must be positive"
        if not (0.0 <= self.return_cap <= 1.0):
            return False, "return_cap must be in [0, 1]"
        for name in ("homing", "return_strength", "rigidity", "spacing_stiffness",
                     "spacing_tension_gain", "damping_speed_gain", "mobility_gain"):
            if getattr(self, name) < 0:
                return False, f"{name} must be non-negative"
        if self.trailing_count < 2:
            return False, "trailing_count must be >= 2"
        return True, None


@dataclass
class PointerConfig:
    """Pointer proximity influence and velocity estimation."""
    touch_radius: float = 85.0
    radius_base_factor: float = 3.2
    radius_freedom_factor: float = 0.5
    falloff_exponent: float = 2.8
    influence_scale: float = 0.18
    push_strength: float = 0.00012  # positive pushes points away from the pointer
    push_exponent: float = 1.6
    velocity_gain_base: float = 0.18
    velocity_gain_freedom: float = 0.2
    velocity_scale: float = 0.00035
    velocity_smoothing: float = 0.6  # weight of the newest sample
    velocity_stale_ms: float = 120.0
    min_move: float = 0.1
    max_move: float = 400.0  # per-sample delta clamp, px
    decay_mode: Literal["timeout", "continuous"] = "timeout"
    decay_rate: float = 0.9994
    decay_interval_ms: float = 20.0
    influence_timeout_ms: float = 6000.0

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.touch_radius <= 0:
            return False, "touch_radius must be positive"
        if self.radius_base_factor <= 0:
            return False, "radius_base_factor must be positive"
        if self.falloff_exponent <= 1.0:
            return False, "falloff_exponent must be > 1"
        if not (0.0 < self.velocity_smoothing <= 1.0):
            return False, "velocity_smoothing must be in (0, 1]"
        if not (self.max_move > self.min_move):
            return False, "max_move must be greater than min_move"
        if self.decay_mode not in ("timeout", "continuous"):
            return False, f"Unknown decay_mode: {self.decay_mode}"
        if not (0.0 < self.decay_rate < 1.0):
            return False, "decay_rate must be in (0, 1)"
        if self.decay_interval_ms <= 0:
            return False, "decay_interval_ms must be positive"
        if self.influence_timeout_ms <= 0:
            return False, "influence_timeout_ms must be positive"
        return True, None


@dataclass
class DragConfig:
    """Tip capture and compliant drag."""
    enabled: bool = True
    capture_radius: float = 20.0
    ease: float = 0.045
    damping: float = 0.62
    follow_strength: float = 0.015
    follow_exponent: float = 2.2
    sway_x: float = 1.2
    sway_y: float = 1.0
    sway_frequency_x: float = 0.0008  # rad per ms
    sway_frequency_y: float = 0.0012
    # rest of the body while the tip is held
    root_sway_x: float = 3.0
    root_sway_y: float = 2.0
    root_settle: float = 0.05  # per frame, once released
    body_sway_frequency_x: float = 0.001
    body_sway_frequency_y: float = 0.0015
    body_sway: float = 0.02
    body_sway_spread: float = 2.0
    body_damping: float = 0.95
    body_damping_reach_gain: float = 0.03
    body_spring: float = 0.01

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.capture_radius <= 0:
            return False, "capture_radius must be positive"
        if not (0.0 < self.ease < 1.0):
            return False, "ease must be in (0, 1)"
        if not (0.0 < self.damping <= 1.0):
            return False, "damping must be in (0, 1]"
        if self.follow_strength < 0:
            return False, "follow_strength must be non-negative"
        if self.body_damping_reach_gain < 0:
            return False, "body_damping_reach_gain must be non-negative"
        if not (0.0 < self.body_damping and self.body_damping + self.body_damping_reach_gain <= 1.0):
            return False, "body_damping + body_damping_reach_gain must be in (0, 1]"
        if self.body_spring < 0 or self.body_sway < 0:
            return False, "body_spring and body_sway must be non-negative"
        if not (0.0 <= self.root_settle <= 1.0):
            return False, "root_settle must be in [0, 1]"
        return True, None


@dataclass
class RenderConfig:
    """Stroke, gradient and glow styling."""
    background: tuple[int, int, int, float] = (0, 0, 0, 0.95)
    stroke_rgb: tuple[int, int, int] = (255, 255, 255)
    gradient_stops: list[ColorStop] = field(default_factory=lambda: [
        (0.0, 0.95), (0.3, 0.85), (0.6, 0.65), (0.8, 0.45), (1.0, 0.25)
    ])
    tension_base: float = 8.0
    tension_growth: float = 4.0
    end_softening: float = 4.0
    ramp_end: float = 0.3
    start_width: float = 0.8
    ramp_slope: float = 14.0
    peak_width: float = 5.5
    taper: float = 0.65
    width_wobble: float = 0.03
    influence_gain: float = 0.5
    anchor_thickness: float = 1.5
    dot_radius: float = 6.0
    glow_stops: list[ColorStop] = field(default_factory=lambda: [(0.0, 0.2), (0.5, 0.1), (1.0, 0.0)])
    core_stops: list[ColorStop] = field(default_factory=lambda: [(0.0, 0.95), (0.7, 0.3), (1.0, 0.0)])
    curve_samples: int = 12

    def __post_init__(self):
        self.background = tuple(self.background)
        self.stroke_rgb = tuple(self.stroke_rgb)
        self.gradient_stops = [tuple(s) for s in self.gradient_stops]
        self.glow_stops = [tuple(s) for s in self.glow_stops]
        self.core_stops = [tuple(s) for s in self.core_stops]

    def validate(self) -> tuple[bool, Optional[str]]:
        if len(self.background) != 4:
            return False, "background must be (r, g, b, alpha)"
        if len(self.stroke_rgb) != 3:
            return False, "stroke_rgb must be (r, g, b)"
        for name in ("gradient_stops", "glow_stops", "core_stops"):
            ok, err = _validate_stops(getattr(self, name), name)
            if not ok:
                return False, err
        if self.tension_base <= 0:
            return False, "tension_base must be positive"
        if not (0.0 < self.ramp_end < 1.0):
            return False, "ramp_end must be in (0, 1)"
        if self.dot_radius <= 0:
            return False, "dot_radius must be positive"
        if self.curve_samples < 2:
            return False, "curve_samples must be >= 2"
        return True, None


@dataclass
class TendrilConfig:
    """Complete tendril configuration."""
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    wave: WaveConfig = field(default_factory=WaveConfig)
    forces: ForcesConfig = field(default_factory=ForcesConfig)
    pointer: PointerConfig = field(default_factory=PointerConfig)
    drag: DragConfig = field(default_factory=DragConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    SECTIONS = ("geometry", "wave", "forces", "pointer", "drag", "render")

    def validate(self) -> tuple[bool, Optional[str]]:
        for section_name in self.SECTIONS:
            section = getattr(self, section_name)
            is_valid, error = section.validate()
            if not is_valid:
                return False, f"{section_name}: {error}"
        return True, None


def _override_section(section, raw: dict, section_name: str):
    """Return a copy of a section dataclass with YAML values applied."""
    if raw is None:
        return replace(section)
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid configuration: {section_name} must be a mapping")
    known = {f.name for f in fields(section)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Invalid configuration: {section_name}: unknown keys {unknown}")
    for key, value in raw.items():
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"Invalid configuration: {section_name}.{key} must be finite")
    return replace(section, **raw)


def config_from_dict(raw: Optional[dict]) -> TendrilConfig:
    """
    Build and validate a config from a plain mapping.

    A top-level ``preset`` key selects the base configuration; every other
    top-level key overrides fields of the matching section.

    Raises:
        ValueError: If the mapping or resulting config is invalid.
        UnknownPresetError: If the preset name is not registered.
    """
    raw = dict(raw or {})

    preset_name = raw.pop("preset", None)
    if preset_name is not None:
        from .presets import get_preset
        base = get_preset(preset_name).config
    else:
        base = TendrilConfig()

    unknown = sorted(set(raw) - set(TendrilConfig.SECTIONS))
    if unknown:
        raise ValueError(f"Invalid configuration: unknown sections {unknown}")

    sections = {
        name: _override_section(getattr(base, name), raw.get(name), name)
        for name in TendrilConfig.SECTIONS
    }
    config = TendrilConfig(**sections)

    is_valid, error = config.validate()
    if not is_valid:
        raise ValueError(f"Invalid configuration: {error}")

    return config


def load_config(path: Path) -> TendrilConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Validated TendrilConfig.

    Raises:
        ValueError: If config is invalid.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f)

    if raw is not None and not isinstance(raw, dict):
        raise ValueError("Invalid configuration: top level must be a mapping")

    return config_from_dict(raw)
