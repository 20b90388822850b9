"""Mesh pipeline configuration and loader.

Tunable values (Fibonacci sample count, triangulation switches, demo
polygons) are loaded from YAML configuration files into frozen
dataclasses. Every value has a documented default so the pipeline can run
without a file, e.g. in tests with a reduced sample count.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Example YAML
------------
.. code-block:: yaml

    mesh:
      fibonacci_point_count: 3000
      triangulator:
        switches: "p"
    polygons:
      equator_box: [[-10, -10], [-10, 10], [10, 10], [10, -10]]
"""

from __future__ import annotations

import logging
import platform
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_FIBONACCI_POINT_COUNT: int = 3000

# Triangle switches: p = planar straight line graph (constraint segments).
# Refinement switches (q, a) add Steiner vertices.
DEFAULT_TRIANGULATOR_SWITCHES: str = "p"

# Float64 machine epsilon, used for singularity and zero-centroid tests
MACHINE_EPSILON: float = float(np.finfo(np.float64).eps)


# ---------------------------------------------------------------------------
# Configuration Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TriangulatorConfig:
    """Constrained triangulation settings.

    Attributes
    ----------
    switches : str
        Switch string passed to the Triangle engine. Must contain ``p`` so
        boundary edges are honoured as constraints.
    """

    switches: str = DEFAULT_TRIANGULATOR_SWITCHES


@dataclass(frozen=True)
class MeshConfig:
    """Mesh generation settings.

    Attributes
    ----------
    fibonacci_point_count : int
        Number of Fibonacci sphere samples tested for containment.
    triangulator : TriangulatorConfig
        Triangulation engine settings.
    """

    fibonacci_point_count: int = DEFAULT_FIBONACCI_POINT_COUNT
    triangulator: TriangulatorConfig = field(default_factory=TriangulatorConfig)


@dataclass
class AppConfig:
    """Top-level configuration loaded from YAML.

    Attributes
    ----------
    mesh : MeshConfig
        Mesh generation settings.
    polygons : dict[str, list[tuple[float, float]]]
        Named boundary rings, (lon, lat) degrees.
    """

    mesh: MeshConfig = field(default_factory=MeshConfig)
    polygons: dict[str, list[tuple[float, float]]] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Configuration Loader
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path) -> AppConfig:
    """Load and validate a configuration from a YAML file.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    AppConfig
        Fully populated, typed configuration object.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If values are malformed or invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    logger.info("Loading configuration from: %s", config_path)

    # --- Parse mesh settings ---
    mesh_raw = raw.get("mesh", {}) or {}
    tri_raw = mesh_raw.get("triangulator", {}) or {}
    mesh = MeshConfig(
        fibonacci_point_count=int(
            mesh_raw.get("fibonacci_point_count", DEFAULT_FIBONACCI_POINT_COUNT)
        ),
        triangulator=TriangulatorConfig(
            switches=str(tri_raw.get("switches", DEFAULT_TRIANGULATOR_SWITCHES)),
        ),
    )

    # --- Parse named polygons ---
    polygons: dict[str, list[tuple[float, float]]] = {}
    for name, ring in (raw.get("polygons", {}) or {}).items():
        try:
            polygons[str(name)] = [(float(p[0]), float(p[1])) for p in ring]
        except (TypeError, IndexError) as err:
            raise ValueError(
                f"Polygon '{name}' must be a list of [lon, lat] pairs"
            ) from err

    config = AppConfig(mesh=mesh, polygons=polygons)

    _validate_config(config)
    logger.info(
        "Configuration loaded successfully. %d polygons registered.", len(polygons)
    )

    return config


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values.

    Parameters
    ----------
    config : AppConfig
        Configuration to validate.

    Raises
    ------
    ValueError
        If any value is invalid.
    """
    if config.mesh.fibonacci_point_count < 1:
        raise ValueError(
            "Fibonacci point count must be >= 1, "
            f"got {config.mesh.fibonacci_point_count}"
        )
    if "p" not in config.mesh.triangulator.switches:
        raise ValueError(
            "Triangulator switches must contain 'p' to honour boundary edges, "
            f"got '{config.mesh.triangulator.switches}'"
        )
    for name, ring in config.polygons.items():
        if len(ring) < 3:
            raise ValueError(f"Polygon '{name}' needs at least 3 vertices.")

    logger.debug("Configuration validation passed.")


def log_platform_info() -> None:
    """Log platform and library version information for reproducibility."""
    logger.info("=" * 70)
    logger.info("PLATFORM INFORMATION (for reproducibility)")
    logger.info("=" * 70)
    logger.info("  Python:    %s", sys.version)
    logger.info("  Platform:  %s", platform.platform())
    logger.info("  NumPy:     %s", np.__version__)
    logger.info("  Float64 eps: %e", MACHINE_EPSILON)
    logger.info("=" * 70)
