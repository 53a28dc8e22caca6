"""
Command-line interface for the tendril.

Usage:
    tendril render --preset vertical --frames 120 --out frames/
    tendril render -c examples/horizontal.yaml --pointer-sweep -q
    tendril gui --preset horizontal
"""

import argparse
import math
import sys
from pathlib import Path
from typing import List, Optional

from .config import TendrilConfig, config_from_dict, load_config
from .engine import TendrilEngine
from .exceptions import SurfaceUnavailableError
from .frame_loop import FrameLoop, TendrilAnimator
from .logger import Logger
from .presets import list_presets
from .surfaces import RasterSurface


DEFAULT_FRAME_MS = 1000.0 / 60.0


def resolve_config(config_path: Optional[Path], preset_name: Optional[str]) -> TendrilConfig:
    """Config from a YAML file, else a private copy of the named preset."""
    if config_path is not None:
        return load_config(config_path)
    return config_from_dict({"preset": preset_name or "vertical"})


def pointer_sweep_position(frame: int, n_frames: int, width: float, height: float):
    """
    Scripted pointer path for headless renders: one slow pass across the
    middle of the surface and back, with a gentle vertical bob.
    """
    phase = frame / max(n_frames - 1, 1)
    x = width * (0.5 - 0.35 * math.cos(phase * 2.0 * math.pi))
    y = height * (0.5 + 0.05 * math.sin(phase * 6.0 * math.pi))
    return x, y


def render_frames(
    config: TendrilConfig,
    width: int,
    height: int,
    n_frames: int,
    dt_ms: float = DEFAULT_FRAME_MS,
    out_dir: Optional[Path] = None,
    pointer_sweep: bool = False
) -> List[Path]:
    """
    Run the animation headlessly and optionally write every frame as PNG.

    Returns:
        Paths of written frames (empty if out_dir is None).
    """
    engine = TendrilEngine(config)
    surface = RasterSurface(width, height, curve_samples=config.render.curve_samples)
    loop = FrameLoop()
    animator = TendrilAnimator(engine, surface, loop)
    animator.start()

    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for i in range(n_frames):
        if pointer_sweep:
            engine.pointer_move(*pointer_sweep_position(i, n_frames, width, height))
        loop.run_frame(i * dt_ms)
        if out_dir is not None:
            path = out_dir / f"frame_{i:04d}.png"
            surface.save(path)
            written.append(path)

    animator.dispose()
    return written


def _cmd_render(args) -> int:
    try:
        config = resolve_config(args.config, args.preset)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1

    if args.frames < 1:
        print("Error: --frames must be >= 1", file=sys.stderr)
        return 1
    if not (math.isfinite(args.dt) and args.dt > 0):
        print("Error: --dt must be a positive number of milliseconds", file=sys.stderr)
        return 1

    if not args.quiet:
        print("Rendering tendril...")
        print(f"  Orientation: {config.geometry.orientation}")
        print(f"  Points: {config.geometry.n_points}")
        print(f"  Surface: {args.width}x{args.height}")
        print(f"  Frames: {args.frames} @ {args.dt:.2f} ms")

    Logger.log(f"Render started: {args.frames} frames {args.width}x{args.height}", Logger.LogPriority.INFO)
    try:
        written = render_frames(
            config,
            args.width,
            args.height,
            args.frames,
            dt_ms=args.dt,
            out_dir=args.out,
            pointer_sweep=args.pointer_sweep
        )
    except SurfaceUnavailableError as e:
        Logger.log(f"Render failed: {e}", Logger.LogPriority.CRITICAL)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    Logger.log(f"Render finished: {len(written)} frames written", Logger.LogPriority.INFO)
    if not args.quiet:
        print()
        print(f"Wrote {len(written)} frames to {args.out}")
    return 0


def _cmd_gui(args) -> int:
    # Import here to avoid DearPyGui import for headless commands
    from .gui import run_gui

    try:
        run_gui(
            str(args.config) if args.config else None,
            preset_name=args.preset,
            width=args.width,
            height=args.height
        )
    except KeyboardInterrupt:
        print("\nGUI closed.")
        return 0
    except Exception as e:
        Logger.log(f"GUI failed: {e}", Logger.LogPriority.CRITICAL)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tendril",
        description="Animated pointer-reactive tendril",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Render 120 frames of the default tendril
    tendril render -o frames/

    # Horizontal preset with a scripted pointer pass
    tendril render -p horizontal --pointer-sweep -o frames/

    # Interactive window
    tendril gui -p vertical
"""
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML config file (overrides --preset)"
    )
    common.add_argument(
        "-p", "--preset",
        choices=list_presets(),
        default=None,
        help="Named preset (default: vertical)"
    )
    common.add_argument("--width", type=int, default=800, help="Surface width in pixels")
    common.add_argument("--height", type=int, default=600, help="Surface height in pixels")

    render = subparsers.add_parser("render", parents=[common], help="Render PNG frames headlessly")
    render.add_argument("--frames", type=int, default=120, help="Number of frames (default: 120)")
    render.add_argument("--dt", type=float, default=DEFAULT_FRAME_MS, help="Frame time in ms")
    render.add_argument("--pointer-sweep", action="store_true", help="Move a scripted pointer across the surface")
    render.add_argument("--out", "-o", type=Path, default=Path("frames"), help="Output directory")
    render.add_argument("--quiet", "-q", action="store_true", help="Suppress output except errors")
    render.set_defaults(handler=_cmd_render)

    gui = subparsers.add_parser("gui", parents=[common], help="Open the interactive window")
    gui.set_defaults(handler=_cmd_gui)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    Logger.initialize()
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
