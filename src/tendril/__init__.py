"""
Tendril - animated, pointer-reactive curved tendril.

A chain of points anchored at one end sways under layered procedural
motion and responds elastically to pointer proximity and drag. The
simulation core is headless; drawing goes through replaceable surfaces.

Units:
    - Position: surface pixels (y grows downward)
    - Velocity: pixels per 60 fps frame
    - Time: ms
"""

__version__ = "0.1.0"

# Simulation core
from .chain import ControlPoint, PointChain, freedom_profile
from .wave import WaveField
from .integrator import TendrilIntegrator, SimulationContext, StepReport
from .interaction import PointerTracker, PointerSnapshot, DragState
from .renderer import CurveRenderer, FrameDrawing
from .engine import TendrilEngine, EngineState, LifecycleState
from .frame_loop import FrameLoop, TendrilAnimator

# Config exports
from .config import (
    TendrilConfig,
    GeometryConfig,
    WaveConfig,
    ForcesConfig,
    PointerConfig,
    DragConfig,
    RenderConfig,
    config_from_dict,
    load_config
)
from .presets import Preset, get_preset, list_presets
from .exceptions import SurfaceUnavailableError, LifecycleError, UnknownPresetError
