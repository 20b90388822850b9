"""Coordinate conversions on the unit sphere.

Geographic (lon, lat) degrees → Cartesian (x, y, z), and stereographic
projection from the north pole onto the equatorial plane (and back).

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Notes
-----
Convention: the projection point is the **north pole** N = (0, 0, 1) and
the image plane is z = 0.

- Forward: (x, y, z) → (x / (1 − z), y / (1 − z))
- Inverse: (X, Y) → (2X, 2Y, X² + Y² − 1) / (1 + X² + Y²)

The forward map is singular at N; points near N map to arbitrarily large
plane coordinates. The pipeline rotates its point set toward the south
pole (which maps to the origin) before projecting.
"""

from __future__ import annotations

import logging

import numpy as np

from core_engine.constants import MACHINE_EPSILON
from core_engine.errors import (
    CoordinateRangeError,
    InverseProjectionError,
    ProjectionError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Geographic → Cartesian
# ---------------------------------------------------------------------------


def _in_range(lon: float, lat: float) -> bool:
    # NaN fails both comparisons
    return abs(lon) <= 180.0 and abs(lat) <= 90.0


def ll_to_cartesian(lon: float, lat: float) -> tuple[float, float, float]:
    """Convert (lon, lat) in degrees to a point on the unit sphere.

    Parameters
    ----------
    lon : float
        Longitude in degrees [-180, 180].
    lat : float
        Latitude in degrees [-90, 90].

    Returns
    -------
    x, y, z : tuple[float, float, float]
        Cartesian coordinates, unit norm.

    Raises
    ------
    CoordinateRangeError
        If either coordinate is out of range.
    """
    if not _in_range(lon, lat):
        raise CoordinateRangeError(lon, lat)

    lon_rad = np.radians(lon)
    lat_rad = np.radians(lat)

    x = float(np.cos(lat_rad) * np.cos(lon_rad))
    y = float(np.cos(lat_rad) * np.sin(lon_rad))
    z = float(np.sin(lat_rad))

    return x, y, z


def ll_to_cartesian_batch(lonlat: np.ndarray) -> np.ndarray:
    """Vectorized :func:`ll_to_cartesian`.

    Parameters
    ----------
    lonlat : np.ndarray
        (lon, lat) pairs in degrees. Shape: (N, 2).

    Returns
    -------
    np.ndarray
        Unit vectors. Shape: (N, 3), dtype: float64.

    Raises
    ------
    CoordinateRangeError
        Carrying the first out-of-range pair.
    """
    lonlat = np.asarray(lonlat, dtype=np.float64).reshape(-1, 2)
    lon = lonlat[:, 0]
    lat = lonlat[:, 1]

    valid = (np.abs(lon) <= 180.0) & (np.abs(lat) <= 90.0)
    if not np.all(valid):
        bad = int(np.argmin(valid))
        raise CoordinateRangeError(float(lon[bad]), float(lat[bad]))

    lon_rad = np.radians(lon)
    lat_rad = np.radians(lat)
    cos_lat = np.cos(lat_rad)

    return np.column_stack(
        [cos_lat * np.cos(lon_rad), cos_lat * np.sin(lon_rad), np.sin(lat_rad)]
    )


# ---------------------------------------------------------------------------
# Forward Projection: sphere → plane
# ---------------------------------------------------------------------------


def stereographic_projection(x: float, y: float, z: float) -> tuple[float, float]:
    """Project a unit-sphere point onto the plane z = 0 from the north pole.

    Parameters
    ----------
    x, y, z : float
        Point on (or near) the unit sphere.

    Returns
    -------
    x_2d, y_2d : tuple[float, float]
        Plane coordinates.

    Raises
    ------
    ProjectionError
        If the point is within machine epsilon of the north pole.
    """
    if abs(z - 1.0) < MACHINE_EPSILON:
        raise ProjectionError("Cannot project from the north pole (0, 0, 1)")

    denom = 1.0 - z
    return x / denom, y / denom


def stereographic_projection_batch(points: np.ndarray) -> np.ndarray:
    """Vectorized :func:`stereographic_projection`.

    Parameters
    ----------
    points : np.ndarray
        Unit-sphere points. Shape: (N, 3).

    Returns
    -------
    np.ndarray
        Plane coordinates. Shape: (N, 2).

    Raises
    ------
    ProjectionError
        If any point is within machine epsilon of the north pole.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)

    at_pole = np.abs(points[:, 2] - 1.0) < MACHINE_EPSILON
    if np.any(at_pole):
        bad = int(np.argmax(at_pole))
        raise ProjectionError(
            f"Cannot project from the north pole (0, 0, 1) (point index {bad})"
        )

    denom = 1.0 - points[:, 2]
    return points[:, :2] / denom[:, None]


# ---------------------------------------------------------------------------
# Inverse Projection: plane → sphere
# ---------------------------------------------------------------------------


def inverse_stereographic_projection(x: float, y: float) -> tuple[float, float, float]:
    """Map a plane point back onto the unit sphere.

    Parameters
    ----------
    x, y : float
        Plane coordinates. Must be finite.

    Returns
    -------
    x_3d, y_3d, z_3d : tuple[float, float, float]
        Point on the unit sphere. Large |(x, y)| approach the north pole.

    Raises
    ------
    InverseProjectionError
        If either input is NaN or infinite.
    """
    if not (np.isfinite(x) and np.isfinite(y)):
        raise InverseProjectionError("Input coordinates must be finite numbers")

    # Overflow to inf is fine here: the result tends to (0, 0, 1)
    denom = 1.0 + x * x + y * y

    scale = 2.0 / denom
    return scale * x, scale * y, 1.0 - scale


def inverse_stereographic_projection_batch(points: np.ndarray) -> np.ndarray:
    """Vectorized :func:`inverse_stereographic_projection`.

    Parameters
    ----------
    points : np.ndarray
        Plane coordinates. Shape: (N, 2).

    Returns
    -------
    np.ndarray
        Unit-sphere points. Shape: (N, 3).
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if not np.all(np.isfinite(points)):
        raise InverseProjectionError("Input coordinates must be finite numbers")

    x = points[:, 0]
    y = points[:, 1]
    with np.errstate(over="ignore"):
        scale = 2.0 / (1.0 + x * x + y * y)

    return np.column_stack([scale * x, scale * y, 1.0 - scale])
