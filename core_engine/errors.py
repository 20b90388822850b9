"""Error taxonomy for the globe mesh pipeline.

Every fallible operation in ``core_engine`` raises exactly one of the
classes below. All of them derive from :class:`GlobeMeshError`, which is a
``ValueError`` so callers that only care about "bad input" can catch that.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Notes
-----
Stage context is attached by the pipeline (``generate_polygon_mesh``)
without changing the error type:

    >>> err = MeshGenerationError("Outer ring cannot be empty")
    >>> err.stage = "generate mesh points"
    >>> str(err)
    'Failed to generate mesh points: Mesh generation error: Outer ring cannot be empty'
"""

from __future__ import annotations


class GlobeMeshError(ValueError):
    """Base class for all pipeline errors.

    Attributes
    ----------
    reason : str
        Human-readable description of the failing condition.
    stage : str or None
        Pipeline stage in which the error surfaced, if known.
    """

    prefix = "Globe mesh error"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.stage: str | None = None

    def __str__(self) -> str:
        message = f"{self.prefix}: {self.reason}"
        if self.stage:
            return f"Failed to {self.stage}: {message}"
        return message


class CoordinateRangeError(GlobeMeshError):
    """Geographic coordinates fall outside lon ∈ [-180, 180], lat ∈ [-90, 90]."""

    prefix = "Coordinate range error"

    def __init__(self, longitude: float, latitude: float) -> None:
        super().__init__(
            f"Input values outside of expected range. Longitude: {longitude} "
            f"(must be between -180 and 180), Latitude: {latitude} "
            f"(must be between -90 and 90)"
        )
        self.longitude = longitude
        self.latitude = latitude


class ProjectionError(GlobeMeshError):
    """Stereographic projection hit the north-pole singularity."""

    prefix = "Stereographic projection error"


class InverseProjectionError(GlobeMeshError):
    """Inverse stereographic projection received non-finite input."""

    prefix = "Inverse stereographic projection error"


class FibonacciError(GlobeMeshError):
    """Invalid Fibonacci sphere request."""

    prefix = "Fibonacci sphere error"


class MeshGenerationError(GlobeMeshError):
    """Mesh assembly or triangulation failed."""

    prefix = "Mesh generation error"


class RotationError(GlobeMeshError):
    """No well-defined rotation to the south pole exists."""

    prefix = "Rotation error"


class EmptyPointSetError(GlobeMeshError):
    """An operation received an empty point set or ring."""

    prefix = "Empty point set error"
