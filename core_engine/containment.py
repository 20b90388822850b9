"""Point-in-polygon capability used to keep interior Fibonacci samples.

The mesh assembler only depends on the :class:`PolygonContainment`
protocol; :class:`ShapelyContainment` is the default engine.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Notes
-----
``ShapelyContainment`` answers on the sphere, not in raw (lon, lat):
rings crossing the antimeridian select the region they enclose. The
inside is the side of the ring around its own centroid direction, so
the ring may be wound either way. Edges are the straight segments of
the stereographic view, matching the boundary the triangulator sees.
Points exactly on the boundary are reported as outside; boundary
vertices enter the mesh directly, not through this predicate.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import numpy as np
import shapely
from shapely import Polygon

from core_engine.constants import MACHINE_EPSILON
from core_engine.projection import stereographic_projection_batch
from core_engine.rotation import south_pole_rotation

logger = logging.getLogger(__name__)


class PolygonContainment(Protocol):
    """Interface for "is this point inside the ring" engines.

    Implementations are constructed from a closed ring of (lon, lat)
    radian pairs; the last vertex implicitly connects to the first.
    """

    def contains(self, lon_rad: float, lat_rad: float) -> bool:
        """Return True if the point lies strictly inside the ring."""
        ...

    def contains_many(self, lon_rad: np.ndarray, lat_rad: np.ndarray) -> np.ndarray:
        """Vectorized :meth:`contains`. Returns a boolean array."""
        ...


class ContainmentFactory(Protocol):
    def __call__(self, ring_rad: Sequence[tuple[float, float]]) -> PolygonContainment: ...


def _unit_vectors(lon_rad: np.ndarray, lat_rad: np.ndarray) -> np.ndarray:
    cos_lat = np.cos(lat_rad)
    return np.column_stack(
        [cos_lat * np.cos(lon_rad), cos_lat * np.sin(lon_rad), np.sin(lat_rad)]
    )


class ShapelyContainment:
    """Spherical containment via a stereographic view of the ring.

    The ring is rotated so its own centroid sits at the south pole and
    projected onto the plane, where the region around the centroid is a
    bounded polygon. Query points go through the same rotation and
    projection and are tested with shapely.

    Parameters
    ----------
    ring_rad : sequence of (float, float)
        Ring vertices (lon, lat) in radians. At least 3.

    Raises
    ------
    RotationError
        If the ring has no well-defined centroid direction.
    ProjectionError
        If a ring vertex is antipodal to the ring centroid.
    """

    def __init__(self, ring_rad: Sequence[tuple[float, float]]) -> None:
        ring_rad = np.asarray(ring_rad, dtype=np.float64).reshape(-1, 2)
        ring_xyz = _unit_vectors(ring_rad[:, 0], ring_rad[:, 1])

        self._rotation = south_pole_rotation(ring_xyz)
        plane = stereographic_projection_batch(ring_xyz @ self._rotation.T)

        self._polygon = Polygon(plane)
        shapely.prepare(self._polygon)

        if not self._polygon.is_valid:
            logger.warning(
                "Boundary ring is not a valid simple polygon (%s); "
                "containment results may be unreliable",
                shapely.is_valid_reason(self._polygon),
            )

    def contains(self, lon_rad: float, lat_rad: float) -> bool:
        return bool(self.contains_many(np.array([lon_rad]), np.array([lat_rad]))[0])

    def contains_many(self, lon_rad: np.ndarray, lat_rad: np.ndarray) -> np.ndarray:
        lon_rad = np.asarray(lon_rad, dtype=np.float64).ravel()
        lat_rad = np.asarray(lat_rad, dtype=np.float64).ravel()
        rotated = _unit_vectors(lon_rad, lat_rad) @ self._rotation.T

        inside = np.zeros(rotated.shape[0], dtype=bool)
        # The projection point itself maps to infinity, never inside
        finite = rotated[:, 2] < 1.0 - MACHINE_EPSILON
        plane = rotated[finite, :2] / (1.0 - rotated[finite, 2:3])
        inside[finite] = shapely.contains_xy(self._polygon, plane[:, 0], plane[:, 1])
        return inside
