"""
Preset configurations for the tendril.

The two tuned variants share one engine and differ only in orientation,
anchor placement and a handful of constants:

- vertical: rooted near the bottom centre, grows upward, the root region
  is the most compliant and the tip is steadier.
- horizontal: rooted at the left edge mid-frame, grows to the right, the
  tip is the most compliant.
"""

from dataclasses import dataclass
from typing import Dict, List

from .config import (
    TendrilConfig, GeometryConfig, WaveConfig, ForcesConfig,
    PointerConfig, DragConfig, RenderConfig
)
from .exceptions import UnknownPresetError


@dataclass(frozen=True)
class Preset:
    """
    A named tendril setup.

    Attributes:
        name: Short identifier used on the command line and in YAML.
        display_name: Human-readable name for the GUI.
        description: What the preset looks like.
        config: The configuration itself.
    """
    name: str
    display_name: str
    description: str
    config: TendrilConfig


PRESETS: Dict[str, Preset] = {}


def _register_preset(preset: Preset) -> None:
    PRESETS[preset.name] = preset


_register_preset(Preset(
    name="vertical",
    display_name="Vertical Tendril",
    description=(
        "Rises from the bottom centre. Sways side to side with the "
        "strongest motion in the lower half; the glowing tip can be grabbed."
    ),
    config=TendrilConfig(
        geometry=GeometryConfig(
            n_points=45,
            orientation="vertical",
            anchor_x=0.5,
            anchor_y=0.85,
            length_fraction=0.65,
            freedom_profile="root_free"
        ),
    )
))


_register_preset(Preset(
    name="horizontal",
    display_name="Horizontal Tendril",
    description=(
        "Reaches in from the left edge. Undulates up and down with the "
        "free end reacting most to the pointer."
    ),
    config=TendrilConfig(
        geometry=GeometryConfig(
            n_points=40,
            orientation="horizontal",
            anchor_x=0.12,
            anchor_y=0.5,
            length_fraction=0.7,
            freedom_profile="tip_free"
        ),
        wave=WaveConfig(
            primary_amplitude=38.0,
            secondary_amplitude=16.0,
            detail_amplitude=2.0
        ),
        forces=ForcesConfig(
            homing=0.0003,
            damping_base=0.968,
            mobility_gain=0.4
        ),
        pointer=PointerConfig(
            touch_radius=70.0,
            decay_mode="continuous"
        ),
        drag=DragConfig(
            ease=0.04,
            damping=0.6
        ),
        render=RenderConfig(
            gradient_stops=[(0.0, 0.25), (0.2, 0.45), (0.4, 0.65), (0.7, 0.85), (1.0, 0.95)]
        )
    )
))


def get_preset(name: str) -> Preset:
    """Look up a preset by name, raising UnknownPresetError if missing."""
    try:
        return PRESETS[name]
    except KeyError:
        raise UnknownPresetError(name, PRESETS.keys()) from None


def list_presets() -> List[str]:
    return sorted(PRESETS)
