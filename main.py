"""GlobeMesh — CLI entry point.

Triangulates geographic polygons on the unit sphere for globe rendering.

Usage
-----
    python main.py                                   # mesh polygons from config
    python main.py --ring "0,0;10,10;20,0" --name tri
    python main.py --points 1000 --plot --workers 4

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging."""
    fmt = "%(name)s [%(levelname)s] %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        stream=sys.stdout,
    )


def parse_ring(text: str) -> list[tuple[float, float]]:
    """Parse ``"lon,lat;lon,lat;..."`` into a list of (lon, lat) pairs."""
    ring: list[tuple[float, float]] = []
    for chunk in text.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        parts = chunk.split(",")
        if len(parts) != 2:
            raise argparse.ArgumentTypeError(
                f"Expected 'lon,lat', got '{chunk}'"
            )
        try:
            ring.append((float(parts[0]), float(parts[1])))
        except ValueError as err:
            raise argparse.ArgumentTypeError(f"Invalid number in '{chunk}'") from err
    return ring


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="globemesh",
        description="GlobeMesh — spherical triangulation of geographic polygons",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python main.py\n"
            '  python main.py --ring "-10,-10;-10,10;10,10;10,-10" --name box\n'
            "  python main.py --points 1000 --plot --output output\n"
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_config.yaml",
        help="Path to config YAML (default: config/default_config.yaml)",
    )
    parser.add_argument(
        "--ring",
        type=parse_ring,
        default=None,
        help='Boundary ring as "lon,lat;lon,lat;..." (overrides config polygons)',
    )
    parser.add_argument(
        "--name",
        type=str,
        default="polygon",
        help="Name for the --ring polygon (default: polygon)",
    )
    parser.add_argument(
        "--points",
        type=int,
        default=None,
        help="Override Fibonacci sample count (default: from config, typically 3000)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Mesh polygons on N threads (default: sequential)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output",
        help="Output directory for meshes and plots (default: output/)",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        default=False,
        help="Do not write mesh arrays to the output directory",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        default=False,
        help="Render projection and globe plots for every mesh",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    logger = logging.getLogger("globemesh")
    logger.info("=" * 60)
    logger.info("  GlobeMesh — Polygon Triangulation on the Sphere")
    logger.info("=" * 60)

    from dataclasses import replace

    from core_engine.constants import AppConfig, load_config, log_platform_info
    from simulation.runner import MeshBatchRunner

    if args.log_level == "DEBUG":
        log_platform_info()

    config_path = Path(args.config)
    if config_path.exists():
        logger.info("Loading config: %s", config_path)
        config = load_config(config_path)
    elif args.ring is not None:
        logger.info("No config at %s; using defaults", config_path)
        config = AppConfig()
    else:
        logger.error("Configuration file not found: %s", config_path)
        return 1

    mesh_config = config.mesh
    if args.points is not None:
        if args.points < 1:
            logger.error("--points must be >= 1, got %d", args.points)
            return 1
        mesh_config = replace(mesh_config, fibonacci_point_count=args.points)

    polygons = {args.name: args.ring} if args.ring is not None else config.polygons
    if not polygons:
        logger.error("Nothing to mesh: no --ring given and no polygons in config")
        return 1

    output_dir = Path(args.output)
    runner = MeshBatchRunner(config=mesh_config)
    results = runner.run(
        polygons,
        max_workers=args.workers,
        save_data=not args.no_save,
        output_dir=output_dir,
    )

    saved: list[Path] = []
    if args.plot and results.meshes:
        from visualization.plotter import generate_all_plots

        logger.info("Generating plots → %s/", output_dir)
        saved = generate_all_plots(results, output_dir=output_dir)

    # Summary
    logger.info("=" * 60)
    logger.info("  MESHING COMPLETE")
    logger.info("=" * 60)
    for name, mesh in results.meshes.items():
        logger.info(
            "  %-20s %6d vertices, %6d triangles",
            name, mesh.num_vertices, mesh.num_triangles,
        )
    for name, err in results.failures.items():
        logger.info("  %-20s FAILED: %s", name, err)
    if saved:
        logger.info("  Plot files (%d):", len(saved))
        for p in saved:
            logger.info("    → %s", p)
    logger.info("=" * 60)

    return 0 if results.ok else 1


if __name__ == "__main__":
    sys.exit(main())
