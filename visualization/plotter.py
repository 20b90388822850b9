"""Visualization module for polygon meshes.

Generates quick-look figures using matplotlib:
- Mesh in the stereographic plane (after south-pole rotation)
- Mesh on the globe (3-D surface)

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for headless rendering

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.tri import Triangulation

from core_engine.mesh import MeshResult
from core_engine.projection import stereographic_projection_batch
from core_engine.rotation import rotate_points_to_south_pole

if TYPE_CHECKING:
    from simulation.runner import BatchResults

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Color Configuration
# ---------------------------------------------------------------------------

_BACKGROUND = "#1a1a2e"
_EDGE_COLOR = "#69db7c"
_BOUNDARY_COLOR = "#ffd43b"
_SURFACE_CMAP = "viridis"
_DPI = 150


def _style_axes(ax: plt.Axes, title: str) -> None:
    ax.set_facecolor(_BACKGROUND)
    ax.set_title(title, fontsize=14, fontweight="bold", color="white")
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444")


def _save(fig: plt.Figure, output_path: Path | str | None, dpi: int, label: str) -> None:
    fig.tight_layout()
    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("%s saved: %s", label, output_path)
    plt.close(fig)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def plot_mesh_projection(
    mesh: MeshResult,
    title: str = "Mesh (stereographic plane)",
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Plot the mesh edges in the plane it was triangulated in.

    Parameters
    ----------
    mesh : MeshResult
        Mesh to draw.
    title : str
        Figure title.
    output_path : Path or str, optional
        If provided, save figure to this path.
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    plane = stereographic_projection_batch(rotate_points_to_south_pole(mesh.vertices))

    fig, ax = plt.subplots(1, 1, figsize=(8, 8), facecolor=_BACKGROUND)
    _style_axes(ax, title)

    tri = Triangulation(plane[:, 0], plane[:, 1], triangles=mesh.faces.astype(np.int64))
    ax.triplot(tri, color=_EDGE_COLOR, linewidth=0.4)

    nb = mesh.num_boundary_vertices
    if nb > 0:
        ring = np.vstack([plane[:nb], plane[:1]])
        ax.plot(ring[:, 0], ring[:, 1], color=_BOUNDARY_COLOR, linewidth=1.5)

    ax.set_xlabel("X", color="white")
    ax.set_ylabel("Y", color="white")
    ax.set_aspect("equal")

    _save(fig, output_path, dpi, "Mesh projection")
    return fig


def plot_mesh_globe(
    mesh: MeshResult,
    title: str = "Mesh on the unit sphere",
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Plot the mesh as a shaded 3-D surface.

    Parameters
    ----------
    mesh : MeshResult
        Mesh to draw.
    title : str
        Figure title.
    output_path : Path or str, optional
        If provided, save figure to this path.
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    fig = plt.figure(figsize=(8, 8), facecolor=_BACKGROUND)
    ax = fig.add_subplot(111, projection="3d")
    _style_axes(ax, title)

    v = mesh.vertices
    ax.plot_trisurf(
        v[:, 0], v[:, 1], v[:, 2],
        triangles=mesh.faces.astype(np.int64),
        cmap=_SURFACE_CMAP,
        edgecolor=_EDGE_COLOR,
        linewidth=0.1,
        alpha=0.9,
    )

    ax.set_xlabel("X", color="white")
    ax.set_ylabel("Y", color="white")
    ax.set_zlabel("Z", color="white")
    ax.set_box_aspect((1, 1, 1))

    _save(fig, output_path, dpi, "Mesh globe view")
    return fig


def generate_all_plots(
    results: "BatchResults",
    output_dir: Path | str = "output",
    dpi: int = _DPI,
) -> list[Path]:
    """Generate the standard plots for every mesh in a batch.

    Parameters
    ----------
    results : BatchResults
        Batch meshing results.
    output_dir : Path or str
        Directory for output plots.
    dpi : int
        Figure resolution.

    Returns
    -------
    list[Path]
        Paths to all generated plot files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: list[Path] = []

    for name, mesh in results.meshes.items():
        p = output_dir / f"{name}_projection.png"
        plot_mesh_projection(mesh, title=f"{name} (stereographic plane)", output_path=p, dpi=dpi)
        saved.append(p)

        p = output_dir / f"{name}_globe.png"
        plot_mesh_globe(mesh, title=name, output_path=p, dpi=dpi)
        saved.append(p)

    logger.info("Generated %d plots in %s", len(saved), output_dir)
    return saved
