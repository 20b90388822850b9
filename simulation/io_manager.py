"""Data I/O manager — persist meshes as NumPy arrays.

Saves and loads mesh results so they can be rendered or inspected
without re-running the pipeline.

File layout under output_dir/ (one set per polygon name):
    <name>_vertices.npy    — Unit-sphere vertices, shape (N, 3), float64
    <name>_triangles.npy   — Flat triangle indices, shape (3T,), uint32
    <name>_metadata.json   — Mesh metadata + boundary vertex count (JSON)

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from core_engine.mesh import MeshResult

logger = logging.getLogger(__name__)


def save_mesh(
    output_dir: Path | str,
    name: str,
    mesh: MeshResult,
) -> list[Path]:
    """Save a mesh to disk as NumPy arrays + JSON.

    Parameters
    ----------
    output_dir : Path or str
        Output directory (created if needed).
    name : str
        File name prefix, usually the polygon name.
    mesh : MeshResult
        Mesh to save.

    Returns
    -------
    list[Path]
        Paths to all saved files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved: list[Path] = []

    for suffix, arr in [
        ("vertices.npy", mesh.vertices),
        ("triangles.npy", mesh.triangles),
    ]:
        path = output_dir / f"{name}_{suffix}"
        np.save(path, arr)
        saved.append(path)
        logger.debug("Saved %s: shape=%s, dtype=%s", path.name, arr.shape, arr.dtype)

    meta_path = output_dir / f"{name}_metadata.json"
    safe_meta = _sanitize_for_json(
        {**mesh.metadata, "num_boundary_vertices": mesh.num_boundary_vertices}
    )
    with open(meta_path, "w", encoding="utf-8") as f:
        json.dump(safe_meta, f, indent=2, ensure_ascii=False)
    saved.append(meta_path)

    logger.info(
        "Saved mesh '%s' to %s (%d vertices, %d triangles)",
        name, output_dir, mesh.num_vertices, mesh.num_triangles,
    )

    return saved


def load_mesh(
    output_dir: Path | str,
    name: str,
) -> MeshResult:
    """Load a previously saved mesh.

    Parameters
    ----------
    output_dir : Path or str
        Directory containing saved meshes.
    name : str
        File name prefix used when saving.

    Returns
    -------
    MeshResult
        The reconstructed mesh.

    Raises
    ------
    FileNotFoundError
        If the vertex or triangle file is missing.
    """
    output_dir = Path(output_dir)

    vertices_path = output_dir / f"{name}_vertices.npy"
    triangles_path = output_dir / f"{name}_triangles.npy"
    for path in (vertices_path, triangles_path):
        if not path.exists():
            raise FileNotFoundError(f"Mesh file not found: {path}")

    vertices = np.load(vertices_path)
    triangles = np.load(triangles_path)

    meta_path = output_dir / f"{name}_metadata.json"
    if meta_path.exists():
        with open(meta_path, "r", encoding="utf-8") as f:
            metadata = json.load(f)
    else:
        logger.warning("Missing file: %s", meta_path)
        metadata = {}

    num_boundary = int(metadata.pop("num_boundary_vertices", 0))

    logger.info("Loaded mesh '%s' from %s", name, output_dir)

    return MeshResult(
        vertices=vertices,
        triangles=triangles,
        num_boundary_vertices=num_boundary,
        metadata=metadata,
    )


def _sanitize_for_json(obj: object) -> object:
    """Recursively convert NumPy types and other non-JSON types to Python natives."""
    if isinstance(obj, dict):
        return {k: _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj
