"""Command line entry point.

Usage:
    phoebe [CONFIG] [options]
    python -m phoebe [CONFIG] [options]

Options:
    --scene FILE          JSON scene description (default: built-in preset)
    --preset NAME         Built-in scene when no --scene is given
    --output FILE         Output PNG path (default: fileName from the config)
    --width N             Image width in pixels
    --height N            Image height in pixels
    --samples N           Pixel sample size
    --seed N              Random seed
    --workers N           Number of CPU threads
    --tone-map METHOD     none, reinhard or exposure (default: none)
    --gamma G             Gamma used for the PNG (default: 2.2)
    --exposure E          Scale used by the exposure tone curve (default: 1.0)
    --rows-per-batch N    Rows rendered between progress updates
    -v, --verbose         Debug logging

When the config file cannot be loaded, the default configuration is used.

Example:
    phoebe config.json --width 320 --height 240 --samples 4 --output preview.png
"""

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from phoebe.config import RenderConfig
from phoebe.core.errors import ConfigError, PhoebeError, ValidationError
from phoebe.output.tonemap import TONE_MAP_METHODS, DisplayTransform
from phoebe.runtime import init_runtime

logger = logging.getLogger(__name__)

BANNER = "\x1b[38;5;82mPhoebe\x1b[0m Path Tracer"

PRESETS = ("default", "lit-room")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="phoebe",
        description="Render a scene with the Phoebe path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "config",
        nargs="?",
        help="JSON configuration file (default: built-in configuration)",
    )
    parser.add_argument("--scene", type=Path, help="JSON scene description")
    parser.add_argument(
        "--preset",
        choices=PRESETS,
        default="default",
        help="Built-in scene used when no --scene is given (default: default)",
    )
    parser.add_argument("--output", type=Path, help="Output PNG path (default: fileName)")
    parser.add_argument("--width", type=int, help="Image width in pixels")
    parser.add_argument("--height", type=int, help="Image height in pixels")
    parser.add_argument("--samples", type=int, help="Pixel sample size")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--workers", type=int, help="Number of CPU threads")
    parser.add_argument(
        "--tone-map",
        choices=TONE_MAP_METHODS,
        default="none",
        help="Tone mapping applied before export (default: none)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=2.2,
        help="Gamma correction applied before export (default: 2.2)",
    )
    parser.add_argument(
        "--exposure",
        type=float,
        default=1.0,
        help="Scale used by the exposure tone curve (default: 1.0)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=32,
        help="Rows rendered between progress updates (default: 32)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def load_config(path: str | None) -> RenderConfig:
    """Load the configuration, falling back to the defaults on failure."""
    if path is not None:
        try:
            return RenderConfig.from_json(path)
        except (OSError, ConfigError) as exc:
            print(f"\x1b[93m{exc}\x1b[0m")
            logger.warning("could not load configuration %s: %s", path, exc)
    print("Rendering with default configuration...")
    return RenderConfig.default()


def apply_overrides(config: RenderConfig, args: argparse.Namespace) -> RenderConfig:
    overrides = {
        "width": args.width,
        "height": args.height,
        "pixel_sample_size": args.samples,
        "seed": args.seed,
        "num_workers": args.workers,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)
    if args.output is not None:
        config.file_name = str(args.output)
    return config


def render(config: RenderConfig, args: argparse.Namespace, transform: DisplayTransform) -> Path:
    """Build the scene, render it and save the PNG.

    Returns:
        Path of the written image.
    """
    # Lazy imports to allow Taichi initialization first
    from phoebe.core.tracer import PathTracer
    from phoebe.output.buffer import ImageBuffer
    from phoebe.scene.presets import create_default_scene, create_lit_room_scene
    from phoebe.scene.scene import load_scene

    if args.scene is not None:
        scene = load_scene(args.scene)
    elif args.preset == "lit-room":
        scene = create_lit_room_scene(config.scene_bound())
    else:
        scene = create_default_scene(config.scene_bound())

    tracer = PathTracer(config, scene=scene)
    buffer = ImageBuffer(config.width, config.height)

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        elapsed = time.time() - start_time
        progress_pct = (rows_done / total_rows) * 100 if total_rows > 0 else 0
        print(
            f"\r  Progress: {rows_done}/{total_rows} rows ({progress_pct:.1f}%) - {elapsed:.1f}s",
            end="",
            flush=True,
        )

    tracer.render(buffer, rows_per_batch=args.rows_per_batch, callback=progress_callback)
    print()

    output_file = Path(config.file_name)
    buffer.save_png(
        output_file,
        tone_map=transform.tone_map,
        gamma=transform.gamma,
        exposure=transform.exposure,
    )
    print(f"Saved to: {output_file.absolute()}")
    print(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(BANNER)

    config = apply_overrides(load_config(args.config), args)
    try:
        config.validate()
    except ConfigError as exc:
        print(f"\x1b[91mInvalid configuration: {exc}\x1b[0m", file=sys.stderr)
        return 1
    try:
        transform = DisplayTransform(args.tone_map, args.gamma, args.exposure)
    except ValidationError as exc:
        print(f"\x1b[91mInvalid display settings: {exc}\x1b[0m", file=sys.stderr)
        return 1

    print(config.summary())

    init_runtime(config.num_workers)

    try:
        render(config, args, transform)
    except PhoebeError as exc:
        print(f"\x1b[91mError: {exc}\x1b[0m", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"\x1b[91m{exc}\x1b[0m", file=sys.stderr)
        print("Rendering failed, exiting...", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
