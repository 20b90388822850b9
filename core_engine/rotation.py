"""Rigid rotation of a point set so its centroid sits at the south pole.

Stereographic projection from the north pole is singular at N and badly
conditioned near it. Rotating the region of interest so its centroid
direction points at S = (0, 0, −1) places it around the plane origin,
where projected coordinates are small.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Algorithm
---------
1. c = Σ p_i                       (unnormalized centroid)
2. Fail if ‖c‖ < ε                 (points symmetric about the origin)
3. ĉ = c / ‖c‖
4. R = rotation taking ĉ → S       (Rodrigues' formula)
5. p_i' = R p_i

Rodrigues, with k = ĉ × S / ‖ĉ × S‖, sin θ = ‖ĉ × S‖, cos θ = ĉ · S:

    R = I + sin θ · K + (1 − cos θ) · K²

When ĉ is antiparallel to S the rotation axis is undetermined and the
rotation is rejected.
"""

from __future__ import annotations

import logging

import numpy as np

from core_engine.constants import MACHINE_EPSILON
from core_engine.errors import EmptyPointSetError, RotationError

logger = logging.getLogger(__name__)

_SOUTH_POLE = np.array([0.0, 0.0, -1.0], dtype=np.float64)


# ---------------------------------------------------------------------------
# Rotation: align a direction with another
# ---------------------------------------------------------------------------


def _rotation_between(source_dir: np.ndarray, target_dir: np.ndarray) -> np.ndarray | None:
    """Rotation matrix mapping unit ``source_dir`` onto unit ``target_dir``.

    Parameters
    ----------
    source_dir, target_dir : np.ndarray
        Unit vectors. Shape: (3,) each.

    Returns
    -------
    R : np.ndarray or None
        3×3 rotation matrix, or None when the two directions are
        antiparallel (no unique rotation axis).
    """
    k = np.cross(source_dir, target_dir)
    sin_theta = float(np.linalg.norm(k))  # |a × b| = sin(angle)
    cos_theta = float(np.dot(source_dir, target_dir))

    if sin_theta < MACHINE_EPSILON:
        if cos_theta > 0.0:
            return np.eye(3, dtype=np.float64)
        return None

    k /= sin_theta

    # Skew-symmetric matrix K for cross product k ×
    K = np.array([
        [0.0, -k[2], k[1]],
        [k[2], 0.0, -k[0]],
        [-k[1], k[0], 0.0],
    ], dtype=np.float64)

    return np.eye(3) + sin_theta * K + (1.0 - cos_theta) * (K @ K)


def south_pole_rotation(points: np.ndarray) -> np.ndarray:
    """Compute the rotation that moves the centroid direction to the south pole.

    Parameters
    ----------
    points : np.ndarray
        Points on the unit sphere. Shape: (N, 3).

    Returns
    -------
    R : np.ndarray
        3×3 rotation matrix. Shape: (3, 3).

    Raises
    ------
    EmptyPointSetError
        If ``points`` is empty.
    RotationError
        If the centroid is effectively zero, or is antiparallel to the
        south pole.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if points.shape[0] == 0:
        raise EmptyPointSetError("Cannot rotate an empty set of points")

    centroid = points.sum(axis=0)
    centroid_norm = float(np.linalg.norm(centroid))
    if centroid_norm < MACHINE_EPSILON:
        raise RotationError(
            "Points centroid is effectively zero; cannot determine rotation direction"
        )

    centroid_dir = centroid / centroid_norm
    R = _rotation_between(centroid_dir, _SOUTH_POLE)
    if R is None:
        raise RotationError(
            "Failed to compute rotation between points centroid and south pole"
        )

    logger.debug(
        "South-pole rotation: centroid dir=(%.4f, %.4f, %.4f), angle=%.3f°",
        centroid_dir[0],
        centroid_dir[1],
        centroid_dir[2],
        np.degrees(np.arccos(np.clip(np.dot(centroid_dir, _SOUTH_POLE), -1.0, 1.0))),
    )

    return R


def rotate_points_to_south_pole(points: np.ndarray) -> np.ndarray:
    """Rigidly rotate ``points`` so their centroid direction is (0, 0, −1).

    Parameters
    ----------
    points : np.ndarray
        Points on the unit sphere. Shape: (N, 3).

    Returns
    -------
    np.ndarray
        Rotated points, same order. Shape: (N, 3).

    Raises
    ------
    EmptyPointSetError
        If ``points`` is empty.
    RotationError
        If no well-defined rotation exists.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    R = south_pole_rotation(points)
    return points @ R.T
