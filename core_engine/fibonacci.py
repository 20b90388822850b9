"""Fibonacci sphere sampling.

Generates N deterministic, near-uniform points on the unit sphere using
the golden-angle spiral. Points are returned as geographic (lon, lat)
degree pairs so they can be tested directly against a boundary ring.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

References
----------
- González, Á. (2010). "Measurement of areas on a sphere using
  Fibonacci and latitude–longitude lattices." Math. Geosci., 42, 49–64.

Algorithm
---------
    φ = π(√5 − 1)

    For i ∈ [0, N−1]:
        y_i = 1 − 2i / d         d = N − 1  (N > 1),  d = 1  (N = 1)
        θ_i = φ · i
        lon_i = deg(θ_i mod 2π),  shifted into [-180, 180]
        lat_i = deg(asin(y_i))

With N = 1 the single sample sits on the north pole (y = 1).
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit

from core_engine.errors import FibonacciError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PHI: float = np.pi * (np.sqrt(5.0) - 1.0)  # ≈ 3.88322 rad


# ---------------------------------------------------------------------------
# Kernel — Numba JIT
# ---------------------------------------------------------------------------


@njit(cache=True, fastmath=False)
def _fibonacci_kernel(n: int, phi: float) -> np.ndarray:
    """Fill an (n, 2) array of (lon, lat) degrees. Assumes n >= 1."""
    out = np.empty((n, 2), dtype=np.float64)
    denominator = float(n - 1) if n > 1 else 1.0
    two_pi = 2.0 * np.pi

    for i in range(n):
        y = 1.0 - (i / denominator) * 2.0
        # Guard asin against y drifting past ±1
        if y > 1.0:
            y = 1.0
        elif y < -1.0:
            y = -1.0
        theta = phi * i

        lon = (theta % two_pi) * 180.0 / np.pi
        if lon > 180.0:
            lon -= 360.0

        out[i, 0] = lon
        out[i, 1] = np.arcsin(y) * 180.0 / np.pi

    return out


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fibonacci_sphere(n: int) -> np.ndarray:
    """Generate ``n`` evenly distributed points on the unit sphere.

    Parameters
    ----------
    n : int
        Number of points. Must be >= 1.

    Returns
    -------
    np.ndarray
        (lon, lat) pairs in degrees. Shape: (n, 2), dtype: float64.
        Longitudes lie in [-180, 180], latitudes in [-90, 90].

    Raises
    ------
    FibonacciError
        If ``n`` is not a whole number, or is zero or negative.
    """
    if isinstance(n, (bool, np.bool_)) or not float(n).is_integer():
        raise FibonacciError(f"Point count must be an integer, got {n!r}")
    n = int(n)
    if n == 0:
        raise FibonacciError("Cannot generate zero points in fibonacci sphere")
    if n < 0:
        raise FibonacciError(f"Point count must be positive, got {n}")

    points = _fibonacci_kernel(n, _PHI)

    logger.debug("Generated %d Fibonacci sphere points", n)

    return points


def min_angular_separation(points_xyz: np.ndarray) -> float:
    """Smallest great-circle angle between any two points, in radians.

    Parameters
    ----------
    points_xyz : np.ndarray
        Unit vectors. Shape: (N, 3), N >= 2.

    Returns
    -------
    float
        Minimum pairwise angular separation [rad].

    Notes
    -----
    O(N²) memory; intended for diagnostics on a few thousand points.
    """
    points_xyz = np.asarray(points_xyz, dtype=np.float64)
    if points_xyz.shape[0] < 2:
        raise ValueError("Need at least two points to measure a separation.")

    dots = np.clip(points_xyz @ points_xyz.T, -1.0, 1.0)
    np.fill_diagonal(dots, -1.0)

    return float(np.arccos(dots.max()))
