"""Constrained Delaunay triangulation capability.

The mesh pipeline hands projected 2-D points plus directed boundary edges
to a :class:`Triangulator` and gets back index triples. The default
engine wraps Shewchuk's Triangle (``triangle`` package) in PSLG mode.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Notes
-----
Contract for every engine:

- constraint edges appear as edges of the output triangulation;
- the first N output vertices are the N input points, unchanged and in
  order. Engines may append refinement (Steiner) vertices after them;
- duplicate or degenerate input raises :class:`MeshGenerationError`
  instead of being dropped silently.

Triangle itself ignores duplicate vertices with a console warning, so
duplicates are rejected before the call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import triangle

from core_engine.constants import DEFAULT_TRIANGULATOR_SWITCHES
from core_engine.errors import MeshGenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Triangulation:
    """Output of a triangulation engine.

    Attributes
    ----------
    vertices : np.ndarray
        Plane vertices. Shape: (M, 2). The first N rows are the input points.
    triangles : np.ndarray
        Vertex indices. Shape: (T, 3), dtype: int64.
    """

    vertices: np.ndarray
    triangles: np.ndarray


class Triangulator(Protocol):
    """Interface for constrained triangulation engines."""

    def triangulate(self, points_2d: np.ndarray, edges: np.ndarray) -> Triangulation:
        """Triangulate ``points_2d`` honouring ``edges`` as required boundaries.

        Parameters
        ----------
        points_2d : np.ndarray
            Plane points. Shape: (N, 2).
        edges : np.ndarray
            Directed constraint edges as index pairs. Shape: (E, 2).
        """
        ...


def find_duplicate_points(points_2d: np.ndarray) -> np.ndarray:
    """Indices of rows that repeat an earlier row exactly.

    Parameters
    ----------
    points_2d : np.ndarray
        Shape: (N, 2).

    Returns
    -------
    np.ndarray
        Sorted indices of the later copies. Empty if all rows are unique.
    """
    _, first_idx = np.unique(points_2d, axis=0, return_index=True)
    duplicate_mask = np.ones(points_2d.shape[0], dtype=bool)
    duplicate_mask[first_idx] = False
    return np.flatnonzero(duplicate_mask)


class TriangleTriangulator:
    """Constrained Delaunay triangulation through Shewchuk's Triangle.

    Parameters
    ----------
    switches : str
        Triangle switch string. ``p`` (PSLG) is required for constraint
        edges; it also removes triangles outside the boundary. ``q`` /
        ``a`` enable quality refinement, which appends Steiner vertices.
    """

    def __init__(self, switches: str = DEFAULT_TRIANGULATOR_SWITCHES) -> None:
        if "p" not in switches:
            raise ValueError(
                f"Triangle switches must include 'p' for constraint edges, got '{switches}'"
            )
        self.switches = switches

    def triangulate(self, points_2d: np.ndarray, edges: np.ndarray) -> Triangulation:
        points_2d = np.ascontiguousarray(points_2d, dtype=np.float64).reshape(-1, 2)
        edges = np.ascontiguousarray(edges, dtype=np.int32).reshape(-1, 2)
        num_points = points_2d.shape[0]

        if num_points < 3:
            raise MeshGenerationError(
                f"Triangulation needs at least 3 points, got {num_points}"
            )
        if not np.all(np.isfinite(points_2d)):
            raise MeshGenerationError("Triangulation input contains non-finite coordinates")
        if edges.size and (edges.min() < 0 or edges.max() >= num_points):
            raise MeshGenerationError("Constraint edge refers to a point that does not exist")

        duplicates = find_duplicate_points(points_2d)
        if duplicates.size:
            raise MeshGenerationError(
                f"Triangulation input contains {duplicates.size} duplicate point(s), "
                f"first at index {int(duplicates[0])}"
            )

        tri_input = {"vertices": points_2d}
        if edges.size:
            tri_input["segments"] = edges

        try:
            result = triangle.triangulate(tri_input, self.switches)
        except (RuntimeError, ValueError) as err:
            raise MeshGenerationError(f"Triangle engine failed: {err}") from err

        triangles = np.asarray(result.get("triangles", np.empty((0, 3))), dtype=np.int64)
        vertices = np.asarray(result.get("vertices", points_2d), dtype=np.float64)

        if triangles.size == 0:
            raise MeshGenerationError(
                "Triangulation produced no triangles (degenerate or collinear input)"
            )
        if vertices.shape[0] < num_points:
            raise MeshGenerationError(
                f"Triangle engine dropped input points ({vertices.shape[0]} < {num_points})"
            )

        logger.debug(
            "Triangle (%s): %d points, %d constraint edges → %d triangles, %d Steiner points",
            self.switches,
            num_points,
            edges.shape[0],
            triangles.shape[0],
            vertices.shape[0] - num_points,
        )

        return Triangulation(vertices=vertices, triangles=triangles.reshape(-1, 3))
