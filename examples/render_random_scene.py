#!/usr/bin/env python3
"""Render the random sphere field scene.

This script demonstrates end-to-end rendering of the reference scene: a grey
ground, a grid of small random spheres and three large feature spheres, seen
through a thin-lens camera. Rows are rendered in batches so progress can be
reported while the image fills in.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 640)
    --height HEIGHT         Image height in pixels (default: 320)
    --samples SAMPLES       Number of samples per pixel (default: 100)
    --seed SEED             Seed for the scene and the render (default: 0)
    --grid-range RANGE      Half extent of the small sphere grid (default: 11)
    --output OUTPUT         Output file path (default: random_scene.png)
    --rows-per-batch ROWS   Rows per progress update (default: 16)
    --quiet                 Suppress progress output

Example:
    python -m examples.render_random_scene --width 320 --height 160 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere field scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=320,
        help="Image height in pixels (default: 320)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the scene and the render (default: 0)",
    )
    parser.add_argument(
        "--grid-range",
        type=int,
        default=11,
        help="Half extent of the small sphere grid (default: 11)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.png",
        help="Output file path (default: random_scene.png)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows per progress update (default: 16)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_random_scene(
    width: int = 640,
    height: int = 320,
    num_samples: int = 100,
    seed: int = 0,
    grid_range: int = 11,
    output_path: str = "random_scene.png",
    rows_per_batch: int = 16,
    quiet: bool = False,
) -> Path:
    """Render the random sphere field scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        seed: Seed for the scene generator and the render.
        grid_range: Half extent of the small sphere grid.
        output_path: Output file path (PNG).
        rows_per_batch: Number of rows to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.core.renderer import Renderer
    from src.pathtracer.core.settings import RenderSettings
    from src.pathtracer.scene.random_scene import (
        RandomSceneParams,
        create_random_scene,
        create_random_scene_camera,
    )

    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        seed=seed,
    )

    scene = create_random_scene(seed, RandomSceneParams(grid_range=grid_range))
    camera = create_random_scene_camera(settings.aspect_ratio)
    if not quiet:
        print(f"Created random scene with {len(scene)} spheres ({width}x{height})")
        print(f"Rendering {num_samples} samples per pixel...")

    renderer = Renderer(settings)
    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (rows_done / total_rows) * 100
            print(
                f"\r  Progress: {rows_done}/{total_rows} rows "
                f"({progress_pct:.1f}%) - {elapsed:.1f}s",
                end="",
                flush=True,
            )

    renderer.render(scene, camera, rows_per_batch=rows_per_batch, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    renderer.save_image(str(output_file))

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_random_scene(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            seed=args.seed,
            grid_range=args.grid_range,
            output_path=args.output,
            rows_per_batch=args.rows_per_batch,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
