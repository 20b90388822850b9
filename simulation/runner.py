"""Batch runner — mesh many polygons, isolating failures per polygon.

Orchestrates the mesh pipeline over a set of named boundary rings:
1. Resolve engines from configuration
2. Mesh each polygon (optionally on a thread pool)
3. Collect meshes and per-polygon errors
4. Optionally persist results for re-rendering

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Notes
-----
Each polygon is an independent, pure computation: no state is shared
between requests, so a failure in one polygon never affects another and
work can be partitioned across threads without locking.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from core_engine.constants import MeshConfig
from core_engine.containment import ContainmentFactory, ShapelyContainment
from core_engine.errors import GlobeMeshError
from core_engine.mesh import MeshResult, generate_polygon_mesh
from core_engine.triangulation import TriangleTriangulator, Triangulator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result Container
# ---------------------------------------------------------------------------


@dataclass
class BatchResults:
    """Container for batch meshing output.

    Attributes
    ----------
    meshes : dict[str, MeshResult]
        Successful meshes by polygon name, in input order.
    failures : dict[str, GlobeMeshError]
        Errors by polygon name, in input order.
    metadata : dict
        Run statistics (counts, timing).
    """

    meshes: dict[str, MeshResult] = field(default_factory=dict)
    failures: dict[str, GlobeMeshError] = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Batch Runner
# ---------------------------------------------------------------------------


class MeshBatchRunner:
    """Mesh a collection of named polygons.

    Parameters
    ----------
    config : MeshConfig, optional
        Mesh configuration shared by every polygon.
    containment_factory : callable
        Point-in-polygon engine factory.
    triangulator : Triangulator, optional
        Triangulation engine. Default: Triangle with configured switches.
    """

    def __init__(
        self,
        config: MeshConfig | None = None,
        containment_factory: ContainmentFactory = ShapelyContainment,
        triangulator: Triangulator | None = None,
    ) -> None:
        self._config = config if config is not None else MeshConfig()
        self._containment_factory = containment_factory
        self._triangulator = (
            triangulator
            if triangulator is not None
            else TriangleTriangulator(self._config.triangulator.switches)
        )

        logger.info(
            "MeshBatchRunner initialized: %d Fibonacci samples, triangulator=%s",
            self._config.fibonacci_point_count,
            type(self._triangulator).__name__,
        )

    def mesh_one(self, name: str, ring: Sequence[tuple[float, float]]) -> MeshResult:
        """Mesh a single polygon. Errors propagate to the caller."""
        logger.debug("Meshing polygon '%s' (%d vertices)", name, len(ring))
        return generate_polygon_mesh(
            ring,
            config=self._config,
            containment_factory=self._containment_factory,
            triangulator=self._triangulator,
        )

    def _mesh_isolated(
        self,
        name: str,
        ring: Sequence[tuple[float, float]],
    ) -> MeshResult | GlobeMeshError:
        try:
            return self.mesh_one(name, ring)
        except GlobeMeshError as err:
            logger.error("Polygon '%s' failed: %s", name, err)
            return err

    def run(
        self,
        polygons: Mapping[str, Sequence[tuple[float, float]]],
        max_workers: int | None = None,
        save_data: bool = False,
        output_dir: Path | str = "output",
    ) -> BatchResults:
        """Mesh every polygon in ``polygons``.

        Parameters
        ----------
        polygons : mapping of str to ring
            Boundary rings, (lon, lat) degrees, by name.
        max_workers : int, optional
            Thread pool size. ``None`` or 1 runs sequentially.
        save_data : bool
            If True, persist each successful mesh under ``output_dir``.
        output_dir : Path or str
            Output directory for saved meshes.

        Returns
        -------
        BatchResults
            Meshes and failures by name.
        """
        names = list(polygons.keys())
        logger.info("Meshing %d polygons (workers=%s)...", len(names), max_workers or 1)

        wall_start = time.perf_counter()
        if max_workers is not None and max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes = list(
                    pool.map(self._mesh_isolated, names, [polygons[n] for n in names])
                )
        else:
            outcomes = [self._mesh_isolated(n, polygons[n]) for n in names]
        wall_elapsed = time.perf_counter() - wall_start

        results = BatchResults()
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, GlobeMeshError):
                results.failures[name] = outcome
            else:
                results.meshes[name] = outcome

        results.metadata = {
            "num_polygons": len(names),
            "num_succeeded": len(results.meshes),
            "num_failed": len(results.failures),
            "fibonacci_point_count": self._config.fibonacci_point_count,
            "wall_time_s": wall_elapsed,
        }

        logger.info(
            "Batch complete: %d succeeded, %d failed, %.2f s wall time",
            len(results.meshes),
            len(results.failures),
            wall_elapsed,
        )

        if save_data and results.meshes:
            from simulation.io_manager import save_mesh

            for name, mesh in results.meshes.items():
                save_mesh(output_dir, name, mesh)

        return results
