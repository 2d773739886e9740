#!/usr/bin/env python3
"""Render the demo scene.

This script demonstrates end-to-end rendering with the reflection tracer. It
creates the demo scene (mirror spheres over a checkered floor), applies the
command-line render parameters, renders in batches with a progress line and
saves the result as a PNG.

Usage:
    python -m examples.render_scene [options]

Options:
    --width WIDTH           Image width in pixels (default: 512)
    --height HEIGHT         Image height in pixels (default: 512)
    --fov FOV               Vertical field of view in degrees (default: 60)
    --max-depth DEPTH       Maximum reflection bounces (default: 5)
    --samples SAMPLES       Jittered sample rays per pixel (default: 4)
    --seed SEED             Seed of the per-pixel random streams (default: 0)
    --output OUTPUT         Output file path (default: reflections.png)
    --batch-size SIZE       Pixels per progress update (default: one pass)
    --quiet                 Suppress progress output

Example:
    python -m examples.render_scene --width 256 --height 256 --samples 16
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
        description="Render the reflection tracer demo scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=512,
        help="Image width in pixels (default: 512)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=512,
        help="Image height in pixels (default: 512)",
    )
    parser.add_argument(
        "--fov",
        type=float,
        default=60.0,
        help="Vertical field of view in degrees (default: 60)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=5,
        help="Maximum reflection bounces (default: 5)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=4,
        help="Jittered sample rays per pixel (default: 4)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed of the per-pixel random streams (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="reflections.png",
        help="Output file path (default: reflections.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Pixels per progress update (default: one pass)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_scene(
    width: int = 512,
    height: int = 512,
    fov: float = 60.0,
    max_depth: int = 5,
    sample_count: int = 4,
    seed: int = 0,
    output_path: str = "reflections.png",
    batch_size: int | None = None,
    quiet: bool = False,
) -> Path:
    """Render the demo scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        fov: Vertical field of view in degrees.
        max_depth: Maximum reflection bounces.
        sample_count: Jittered sample rays per pixel.
        seed: Seed of the per-pixel random streams.
        output_path: Output file path (PNG).
        batch_size: Number of pixels to render between progress updates.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.reflectrace.core.renderer import RayTracer
    from src.reflectrace.scene.demo import create_demo_scene

    if not quiet:
        print(f"Creating demo scene ({width}x{height})...")

    scene, params = create_demo_scene(width=width, height=height)
    tracer = RayTracer(
        scene,
        params,
        fov=fov,
        max_depth=max_depth,
        sample_count=sample_count,
        seed=seed,
    )

    if not quiet:
        print(f"Rendering {sample_count + 1} rays per pixel, depth {max_depth}...")

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (done / total) * 100 if total > 0 else 0
            pixels_per_sec = done / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {done}/{total} pixels "
                f"({progress_pct:.1f}%) - {pixels_per_sec:.0f} px/s",
                end="",
                flush=True,
            )

    tracer.render(callback=progress_callback, batch_size=batch_size)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    tracer.save_image(str(output_file), gamma=2.2)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

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

    from src.reflectrace.errors import ConfigurationError, RenderCancelled

    try:
        render_scene(
            width=args.width,
            height=args.height,
            fov=args.fov,
            max_depth=args.max_depth,
            sample_count=args.samples,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
        return 0
    except (ConfigurationError, RenderCancelled, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
