"""Polygon boundary to spherical triangle mesh.

Turns a geographic boundary ring into a triangulated mesh of unit-sphere
points for rendering a feature on a 3-D globe.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Pipeline
--------
1. Fibonacci sphere samples, filtered by containment in the ring.
2. Vertex list = boundary vertices, then interior samples.
3. (lon, lat) → unit-sphere Cartesian.
4. Rigid rotation of the centroid direction to the south pole.
5. Stereographic projection from the north pole.
6. Constrained Delaunay triangulation with the boundary edges
   (i, (i+1) mod n) as constraints.
7. Index triples flattened; vertices reported in their original
   (pre-rotation) position.

Notes
-----
Boundary vertices always occupy indices [0, n) so constraint edges can
address them positionally; interior samples are unconstrained points.
Interior samples that land outside the straight-edged projected ring are
discarded before triangulation, and every remaining input vertex must
appear in at least one triangle. Refinement vertices added by the triangulator (quality switches) are
mapped back through the inverse projection and inverse rotation and
appended after the input vertices.

Triangles are wound counter-clockwise when seen from outside the sphere,
so right-hand face normals point away from the origin.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence

import numpy as np
import shapely
from shapely import Polygon

from core_engine.constants import DEFAULT_FIBONACCI_POINT_COUNT, MeshConfig
from core_engine.containment import ContainmentFactory, ShapelyContainment
from core_engine.errors import (
    EmptyPointSetError,
    GlobeMeshError,
    MeshGenerationError,
)
from core_engine.fibonacci import fibonacci_sphere
from core_engine.projection import (
    inverse_stereographic_projection_batch,
    ll_to_cartesian_batch,
    stereographic_projection_batch,
)
from core_engine.rotation import south_pole_rotation
from core_engine.triangulation import TriangleTriangulator, Triangulator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeshResult:
    """Triangle mesh of a polygon on the unit sphere.

    Attributes
    ----------
    vertices : np.ndarray
        Vertex positions on the unit sphere. Shape: (N, 3), dtype: float64.
        Rows [0, num_boundary_vertices) are the boundary ring.
    triangles : np.ndarray
        Flat vertex indices, three consecutive entries per triangle.
        Shape: (3 * T,), dtype: uint32. Every index is < N.
    num_boundary_vertices : int
        Length of the (opened) boundary ring.
    metadata : Mapping[str, Any]
        Mesh statistics (read-only view).
    """

    vertices: np.ndarray
    triangles: np.ndarray
    num_boundary_vertices: int
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Own read-only copies; the caller's arrays stay writable
        for name in ("vertices", "triangles"):
            arr = np.array(getattr(self, name))
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def num_triangles(self) -> int:
        return int(self.triangles.shape[0] // 3)

    @property
    def faces(self) -> np.ndarray:
        """Triangle indices as an (T, 3) view."""
        return self.triangles.reshape(-1, 3)

    @property
    def flat_vertices(self) -> np.ndarray:
        """Vertex coordinates as a flat (3 * N,) float64 array."""
        return self.vertices.ravel()


# ---------------------------------------------------------------------------
# Mesh points
# ---------------------------------------------------------------------------


def get_mesh_points(
    outer_ring: Sequence[tuple[float, float]],
    fibonacci_point_count: int = DEFAULT_FIBONACCI_POINT_COUNT,
    containment_factory: ContainmentFactory = ShapelyContainment,
) -> np.ndarray:
    """Boundary vertices plus interior Fibonacci samples, as unit vectors.

    Parameters
    ----------
    outer_ring : sequence of (float, float)
        Boundary ring, (lon, lat) in degrees, implicitly closed.
    fibonacci_point_count : int
        Number of Fibonacci sphere samples tested for containment.
    containment_factory : callable
        Builds a :class:`PolygonContainment` from the ring in radians.

    Returns
    -------
    np.ndarray
        Shape: (n + k, 3). The first n rows are the boundary vertices in
        ring order, followed by the k samples found inside the ring.

    Raises
    ------
    EmptyPointSetError
        If the ring is empty.
    MeshGenerationError
        If the ring has fewer than 3 vertices.
    CoordinateRangeError
        If any ring vertex is outside the valid lon/lat range.
    FibonacciError
        If ``fibonacci_point_count`` is not positive.
    """
    if len(outer_ring) == 0:
        raise EmptyPointSetError("Outer ring cannot be empty")
    if len(outer_ring) < 3:
        raise MeshGenerationError(
            "Outer ring must have at least 3 points to form a valid polygon"
        )

    ring = np.asarray(outer_ring, dtype=np.float64).reshape(-1, 2)

    # Validates the ring before anything is built from it
    boundary_xyz = ll_to_cartesian_batch(ring)

    containment = containment_factory(np.radians(ring))

    samples = fibonacci_sphere(fibonacci_point_count)
    inside = containment.contains_many(
        np.radians(samples[:, 0]), np.radians(samples[:, 1])
    )
    interior_xyz = ll_to_cartesian_batch(samples[inside])

    logger.debug(
        "Mesh points: %d boundary + %d interior (of %d samples)",
        boundary_xyz.shape[0],
        interior_xyz.shape[0],
        fibonacci_point_count,
    )

    return np.vstack([boundary_xyz, interior_xyz])


def boundary_edges(ring_length: int) -> np.ndarray:
    """Directed constraint edges (i, (i + 1) mod n) around the ring.

    Parameters
    ----------
    ring_length : int
        Number of boundary vertices n.

    Returns
    -------
    np.ndarray
        Shape: (n, 2), dtype: int64. All indices lie in [0, n).
    """
    start = np.arange(ring_length, dtype=np.int64)
    return np.column_stack([start, (start + 1) % ring_length])


def _open_ring(outer_ring: Sequence[tuple[float, float]]) -> list[tuple[float, float]]:
    """Drop an explicit closing vertex equal to the first one."""
    ring = [(float(p[0]), float(p[1])) for p in outer_ring]
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring


def _inside_projected_boundary(projected: np.ndarray, num_boundary: int) -> np.ndarray:
    """Mask of vertices usable by the triangulator.

    Boundary vertices are always kept. Interior samples must lie strictly
    inside the straight-edged ring in the plane; samples that sit inside
    the curved spherical edge but outside its chord would be cut away.
    """
    keep = np.ones(projected.shape[0], dtype=bool)
    if projected.shape[0] > num_boundary:
        ring = Polygon(projected[:num_boundary])
        interior = projected[num_boundary:]
        keep[num_boundary:] = shapely.contains_xy(ring, interior[:, 0], interior[:, 1])
    return keep


@contextmanager
def _stage(name: str) -> Iterator[None]:
    """Attach pipeline stage context to errors raised inside the block."""
    try:
        yield
    except GlobeMeshError as err:
        if err.stage is None:
            err.stage = name
        logger.debug("Mesh pipeline aborted: %s", err)
        raise


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


def generate_polygon_mesh(
    outer_ring: Sequence[tuple[float, float]],
    config: MeshConfig | None = None,
    containment_factory: ContainmentFactory = ShapelyContainment,
    triangulator: Triangulator | None = None,
) -> MeshResult:
    """Triangulate a geographic polygon on the unit sphere.

    Parameters
    ----------
    outer_ring : sequence of (float, float)
        Boundary ring, (lon, lat) in degrees. A closing vertex equal to
        the first vertex is accepted and dropped.
    config : MeshConfig, optional
        Sample count and triangulator settings. Defaults to ``MeshConfig()``.
    containment_factory : callable
        Point-in-polygon engine factory.
    triangulator : Triangulator, optional
        Constrained triangulation engine. Defaults to Triangle with the
        configured switches.

    Returns
    -------
    MeshResult
        Original (pre-rotation) vertices and flat triangle indices.

    Raises
    ------
    GlobeMeshError
        Any taxonomy error, with ``stage`` set to the failing step.
    """
    config = config if config is not None else MeshConfig()
    if triangulator is None:
        triangulator = TriangleTriangulator(config.triangulator.switches)

    ring = _open_ring(outer_ring)
    num_boundary = len(ring)

    with _stage("generate mesh points"):
        vertices = get_mesh_points(
            ring, config.fibonacci_point_count, containment_factory
        )
    num_input = vertices.shape[0]

    edges = boundary_edges(num_boundary)

    with _stage("rotate points to south pole"):
        R = south_pole_rotation(vertices)
        rotated = vertices @ R.T

    with _stage("project points to plane"):
        projected = stereographic_projection_batch(rotated)
        keep = _inside_projected_boundary(projected, num_boundary)
        num_discarded = int(np.sum(~keep))
        if num_discarded:
            logger.debug(
                "Dropped %d interior samples outside the projected boundary",
                num_discarded,
            )
            vertices = vertices[keep]
            projected = projected[keep]
            num_input = vertices.shape[0]

    with _stage("triangulate projected points"):
        tri = triangulator.triangulate(projected, edges)
        faces = np.asarray(tri.triangles, dtype=np.int64).reshape(-1, 3)
        num_output = tri.vertices.shape[0]
        if faces.size == 0:
            raise MeshGenerationError("Triangulation produced no triangles")
        if faces.min() < 0 or faces.max() >= num_output:
            raise MeshGenerationError(
                f"Triangle index out of range for {num_output} vertices"
            )
        unused = np.setdiff1d(np.arange(num_input), faces)
        if unused.size:
            raise MeshGenerationError(
                f"Triangulation left {unused.size} input vertices unused, "
                f"first at index {int(unused[0])}"
            )

    with _stage("map refinement points back to sphere"):
        if num_output > num_input:
            steiner = inverse_stereographic_projection_batch(tri.vertices[num_input:])
            # Inverse rotation: R is orthogonal, so R⁻¹ = Rᵀ
            vertices = np.vstack([vertices, steiner @ R])

    faces, flipped = _orient_outward(vertices, faces)
    normals, areas, _ = _compute_face_properties(vertices, faces)

    degenerate_count = int(np.sum(areas < 1e-20))
    if degenerate_count > 0:
        logger.warning(
            "  %d degenerate triangles detected (area < 1e-20)", degenerate_count
        )

    metadata = {
        "num_vertices": int(vertices.shape[0]),
        "num_boundary_vertices": num_boundary,
        "num_interior_vertices": num_input - num_boundary,
        "num_discarded_samples": num_discarded,
        "num_steiner_vertices": int(vertices.shape[0] - num_input),
        "num_triangles": int(faces.shape[0]),
        "fibonacci_point_count": config.fibonacci_point_count,
        "triangulator_switches": getattr(triangulator, "switches", None),
        "flipped_triangles": flipped,
        "degenerate_triangles": degenerate_count,
        "total_chord_area": float(areas.sum()),
    }

    logger.info(
        "Mesh created: %d vertices (%d boundary), %d triangles",
        metadata["num_vertices"],
        num_boundary,
        metadata["num_triangles"],
    )

    return MeshResult(
        vertices=np.ascontiguousarray(vertices, dtype=np.float64),
        triangles=faces.astype(np.uint32).ravel(),
        num_boundary_vertices=num_boundary,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Face properties
# ---------------------------------------------------------------------------


def _orient_outward(
    vertices: np.ndarray,
    faces: np.ndarray,
) -> tuple[np.ndarray, int]:
    """Reorder triangles whose normal points toward the sphere centre.

    Returns
    -------
    faces : np.ndarray
        Re-wound triangles, shape (T, 3).
    flipped : int
        Number of triangles that were re-wound.
    """
    normals, _, centroids = _compute_face_properties(vertices, faces)
    flip_mask = np.einsum("ij,ij->i", normals, centroids) < 0.0

    faces = faces.copy()
    faces[flip_mask] = faces[flip_mask][:, [0, 2, 1]]

    return faces, int(flip_mask.sum())


def _compute_face_properties(
    vertices: np.ndarray,
    triangles: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute face normals, areas, and centroids of the chord triangles.

    Parameters
    ----------
    vertices : np.ndarray
        Vertex positions, shape (num_vertices, 3).
    triangles : np.ndarray
        Triangle vertex indices, shape (num_triangles, 3).

    Returns
    -------
    normals : np.ndarray
        Unit normals (right-hand rule), shape (num_triangles, 3).
    areas : np.ndarray
        Planar triangle areas, shape (num_triangles,).
    centroids : np.ndarray
        Triangle centroids, shape (num_triangles, 3).
    """
    v0 = vertices[triangles[:, 0]]  # (N, 3)
    v1 = vertices[triangles[:, 1]]  # (N, 3)
    v2 = vertices[triangles[:, 2]]  # (N, 3)

    # Cross product gives normal direction with magnitude = 2 * area
    cross = np.cross(v1 - v0, v2 - v0)
    norms = np.linalg.norm(cross, axis=1, keepdims=True)

    # Avoid division by zero for degenerate triangles
    safe_norms = np.where(norms > 1e-30, norms, 1.0)
    normals = cross / safe_norms

    areas = 0.5 * norms.ravel()
    centroids = (v0 + v1 + v2) / 3.0

    return normals, areas, centroids
