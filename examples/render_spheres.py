#!/usr/bin/env python3
"""Render the reference four-sphere scene.

This script renders the ivory, glass, red rubber and mirror spheres over a
checkerboard floor, lit by three point lights, and saves the result.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 1024)
    --height HEIGHT       Image height in pixels (default: 768)
    --fov DEGREES         Vertical field of view (default: 60)
    --max-depth DEPTH     Maximum reflection/refraction depth (default: 4)
    --rows-per-batch N    Rows per progress update (default: 64)
    --output OUTPUT       Output file path, .ppm or .png (default: out.ppm)
    --no-floor            Leave out the checkerboard floor
    --show                Open a Matplotlib preview after rendering
    --quiet               Only log warnings and errors

Example:
    python -m examples.render_spheres --width 640 --height 480 --output spheres.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the reference four-sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=1024, help="Image width (default: 1024)")
    parser.add_argument("--height", type=int, default=768, help="Image height (default: 768)")
    parser.add_argument(
        "--fov",
        type=float,
        default=60.0,
        help="Vertical field of view in degrees (default: 60)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=4,
        help="Maximum reflection/refraction depth (default: 4)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=64,
        help="Rows rendered between progress updates (default: 64)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="out.ppm",
        help="Output file path; the extension selects the format (default: out.ppm)",
    )
    parser.add_argument("--no-floor", action="store_true", help="Leave out the floor")
    parser.add_argument("--show", action="store_true", help="Preview with Matplotlib")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args()


def render_spheres(
    width: int = 1024,
    height: int = 768,
    vfov: float = 60.0,
    max_depth: int = 4,
    rows_per_batch: int = 64,
    output_path: str = "out.ppm",
    with_floor: bool = True,
    show: bool = False,
) -> Path:
    """Render the reference scene and save to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from tinyray.core.renderer import RenderConfig, Renderer
    from tinyray.preview.export import save_image
    from tinyray.scene.tutorial import create_tutorial_scene

    config = RenderConfig(
        width=width,
        height=height,
        vfov=vfov,
        max_depth=max_depth,
        rows_per_batch=rows_per_batch,
    )
    renderer = Renderer(config)
    renderer.load_scene(create_tutorial_scene(with_floor=with_floor))

    def progress_callback(rows_done: int, total_rows: int) -> None:
        percent = 100.0 * rows_done / total_rows
        logger.info("Progress: %d/%d rows (%.1f%%)", rows_done, total_rows, percent)

    renderer.render(callback=progress_callback)

    output_file = Path(output_path)
    save_image(renderer, output_file)
    logger.info("Saved to: %s", output_file.absolute())

    if show:
        from tinyray.preview.display import show_preview

        show_preview(renderer)

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        logger.info("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        logger.info("Using CPU backend")

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            vfov=args.fov,
            max_depth=args.max_depth,
            rows_per_batch=args.rows_per_batch,
            output_path=args.output,
            with_floor=not args.no_floor,
            show=args.show,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
