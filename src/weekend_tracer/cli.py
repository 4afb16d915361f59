"""Command-line driver: render a scene to an image file.

Usage:
    weekend-tracer [options]
    python -m weekend_tracer [options]

Options:
    --width WIDTH         Image width in pixels (default: 256)
    --height HEIGHT       Image height in pixels (default: 256)
    --samples SAMPLES     Samples per pixel (default: 100)
    --max-depth DEPTH     Maximum bounces per path (default: 50)
    --scene SCENE         "test", "cover" or a path to a JSON scene (default: test)
    --seed SEED           Seed for the renderer and random scenes
    --output OUTPUT       Output file; .ppm writes ASCII P3 (default: image.ppm)
    --batch-size SIZE     Samples per progress update (default: 10)
    --arch ARCH           auto, cpu or gpu (default: auto)
    --quiet               Suppress progress output
    --verbose             Enable informational logging

Example:
    weekend-tracer --scene cover --width 600 --height 400 --samples 50 --output cover.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path

import taichi as ti

logger = logging.getLogger(__name__)

ARCH_CHOICES = ("auto", "cpu", "gpu")


@dataclass
class RenderSettings:
    """Everything needed to render one image.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum bounces per path.
        scene: Built-in scene name or path to a JSON scene file.
        seed: Seed for random scene content, or None for fresh entropy.
        output: Output file path.
        batch_size: Samples rendered between progress updates.
        quiet: Suppress progress output.
    """

    width: int = 256
    height: int = 256
    samples: int = 100
    max_depth: int = 50
    scene: str = "test"
    seed: int | None = None
    output: str = "image.ppm"
    batch_size: int = 10
    quiet: bool = False

    def __post_init__(self) -> None:
        if self.width < 2 or self.height < 2:
            raise ValueError(f"Image must be at least 2x2 pixels, got {self.width}x{self.height}")
        if self.samples < 1:
            raise ValueError(f"samples must be at least 1, got {self.samples}")
        if self.max_depth < 0:
            raise ValueError(f"max-depth must be non-negative, got {self.max_depth}")
        if self.batch_size < 1:
            raise ValueError(f"batch-size must be at least 1, got {self.batch_size}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="weekend-tracer",
        description="Render a sphere scene with Monte Carlo path tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=256, help="Image width in pixels (default: 256)")
    parser.add_argument("--height", type=int, default=256, help="Image height in pixels (default: 256)")
    parser.add_argument("--samples", type=int, default=100, help="Samples per pixel (default: 100)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default="test",
        help='Scene to render: "test", "cover" or a path to a JSON scene file (default: test)',
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the renderer and for random scene content",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path; .ppm writes ASCII P3, other extensions use Pillow (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=ARCH_CHOICES,
        default="auto",
        help="Taichi backend; auto tries the GPU and falls back to the CPU (default: auto)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--verbose", action="store_true", help="Enable informational logging")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    """Convert parsed arguments into validated render settings.

    Raises:
        ValueError: If any setting is out of range.
    """
    return RenderSettings(
        width=args.width,
        height=args.height,
        samples=args.samples,
        max_depth=args.max_depth,
        scene=args.scene,
        seed=args.seed,
        output=args.output,
        batch_size=args.batch_size,
        quiet=args.quiet,
    )


def init_taichi(arch: str = "auto", seed: int | None = None, quiet: bool = False) -> None:
    """Initialize the Taichi runtime.

    Under "auto" the GPU is tried first, falling back to the CPU. The seed
    feeds Taichi's per-thread random number generators.
    """
    kwargs = {} if seed is None else {"random_seed": seed}

    if arch == "cpu":
        ti.init(arch=ti.cpu, **kwargs)
        backend = "CPU"
    elif arch == "gpu":
        ti.init(arch=ti.gpu, **kwargs)
        backend = "GPU"
    else:
        try:
            ti.init(arch=ti.gpu, **kwargs)
            backend = "GPU"
        except Exception:
            logger.info("GPU initialization failed, falling back to CPU", exc_info=True)
            ti.init(arch=ti.cpu, **kwargs)
            backend = "CPU"

    if not quiet:
        print(f"Using {backend} backend")


def render_scene(settings: RenderSettings) -> Path:
    """Build the scene, render it and write the image.

    Taichi must already be initialized.

    Args:
        settings: The render settings.

    Returns:
        Path to the saved image file.

    Raises:
        ValueError: If the scene is unknown or invalid.
        OSError: If a scene file cannot be read or the image cannot be written.
    """
    # Lazy imports to allow Taichi initialization first
    from weekend_tracer.camera.thin_lens import setup_camera
    from weekend_tracer.core.progressive import ProgressiveRenderer
    from weekend_tracer.scene.manager import SceneManager
    from weekend_tracer.scene.presets import SCENES, build_scene, load_scene_file

    quiet = settings.quiet
    scene = SceneManager()

    if settings.scene in SCENES:
        camera = build_scene(settings.scene, scene, settings.aspect_ratio, seed=settings.seed)
    elif Path(settings.scene).is_file():
        camera = load_scene_file(settings.scene, scene, settings.aspect_ratio)
    else:
        raise ValueError(
            f"Unknown scene {settings.scene!r}: expected one of "
            f"{', '.join(sorted(SCENES))} or a path to a JSON scene file"
        )

    if not quiet:
        print(
            f"Scene {settings.scene!r}: {scene.get_sphere_count()} spheres, "
            f"{scene.get_material_count()} materials ({settings.width}x{settings.height})"
        )

    setup_camera(camera)
    renderer = ProgressiveRenderer(settings.width, settings.height, max_depth=settings.max_depth)

    if not quiet:
        print(f"Rendering {settings.samples} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=settings.samples,
        batch_size=settings.batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()  # Newline after progress

    output_file = Path(settings.output)
    renderer.save_image(output_file)

    total_time = time.time() - start_time
    if not quiet:
        print("Render finished!")
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        0 on success, 1 on error. Invalid command-line syntax exits with
        status 2 from argparse.
    """
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = settings_from_args(args)
        init_taichi(args.arch, seed=args.seed, quiet=args.quiet)
        render_scene(settings)
        return 0
    except Exception as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
