"""Tests for configuration, persistence, batch running, plotting and the CLI.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)

Test Strategy
-------------
1. Config: defaults, YAML loading, validation failures
2. I/O: save → load preserves arrays, metadata and boundary count
3. Batch runner: failure isolation, thread pool parity, persistence
4. Plotting: files are produced for every mesh
5. CLI: ring parsing, exit codes, output files
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np
import pytest

from core_engine.constants import AppConfig, MeshConfig, load_config
from core_engine.errors import CoordinateRangeError, EmptyPointSetError
from core_engine.mesh import generate_polygon_mesh
from main import main, parse_ring
from simulation.io_manager import load_mesh, save_mesh
from simulation.runner import MeshBatchRunner

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG = PROJECT_ROOT / "config" / "default_config.yaml"

_FAST = MeshConfig(fibonacci_point_count=500)


def _write_yaml(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# ===========================================================================
# Configuration Tests
# ===========================================================================


class TestConfig:
    """Test YAML configuration loading and validation."""

    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.mesh.fibonacci_point_count == 3000
        assert config.mesh.triangulator.switches == "p"
        assert config.polygons == {}

    def test_load_default_config(self) -> None:
        config = load_config(DEFAULT_CONFIG)
        assert config.mesh.fibonacci_point_count == 3000
        assert "equator_box" in config.polygons
        assert config.polygons["equator_box"][0] == (-10.0, -10.0)
        for ring in config.polygons.values():
            assert len(ring) >= 3

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write_yaml(tmp_path / "empty.yaml", ""))
        assert config.mesh == MeshConfig()
        assert config.polygons == {}

    def test_overrides(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path / "c.yaml",
            "mesh:\n"
            "  fibonacci_point_count: 750\n"
            "  triangulator:\n"
            "    switches: pq20\n"
            "polygons:\n"
            "  tri: [[0, 0], [10, 10], [20, 0]]\n",
        )
        config = load_config(path)
        assert config.mesh.fibonacci_point_count == 750
        assert config.mesh.triangulator.switches == "pq20"
        assert config.polygons["tri"] == [(0.0, 0.0), (10.0, 10.0), (20.0, 0.0)]

    @pytest.mark.parametrize(
        "text",
        [
            "mesh:\n  fibonacci_point_count: 0\n",
            "mesh:\n  triangulator:\n    switches: q\n",
            "polygons:\n  line: [[0, 0], [1, 1]]\n",
            "polygons:\n  bad: [3, 4, 5]\n",
        ],
    )
    def test_invalid_values(self, tmp_path: Path, text: str) -> None:
        with pytest.raises(ValueError):
            load_config(_write_yaml(tmp_path / "bad.yaml", text))


# ===========================================================================
# I/O Tests
# ===========================================================================


class TestIOManager:
    """Test mesh persistence."""

    def test_save_load(self, tmp_path: Path, triangle_ring) -> None:
        mesh = generate_polygon_mesh(triangle_ring, _FAST)
        saved = save_mesh(tmp_path, "tri", mesh)

        assert len(saved) == 3
        assert all(p.exists() for p in saved)

        loaded = load_mesh(tmp_path, "tri")
        assert np.array_equal(loaded.vertices, mesh.vertices)
        assert np.array_equal(loaded.triangles, mesh.triangles)
        assert loaded.triangles.dtype == np.uint32
        assert loaded.num_boundary_vertices == 3
        assert loaded.metadata["num_triangles"] == mesh.num_triangles

    def test_metadata_is_plain_json(self, tmp_path: Path, triangle_ring) -> None:
        mesh = generate_polygon_mesh(triangle_ring, _FAST)
        save_mesh(tmp_path, "tri", mesh)
        with open(tmp_path / "tri_metadata.json", encoding="utf-8") as f:
            meta = json.load(f)
        assert meta["num_boundary_vertices"] == 3
        assert meta["triangulator_switches"] == "p"

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_mesh(tmp_path, "ghost")

    def test_load_without_metadata(self, tmp_path: Path, triangle_ring) -> None:
        mesh = generate_polygon_mesh(triangle_ring, _FAST)
        save_mesh(tmp_path, "tri", mesh)
        (tmp_path / "tri_metadata.json").unlink()

        loaded = load_mesh(tmp_path, "tri")
        assert loaded.metadata == {}
        assert loaded.num_boundary_vertices == 0


# ===========================================================================
# Batch Runner Tests
# ===========================================================================


@pytest.fixture
def batch_polygons(triangle_ring, rectangle_ring) -> dict:
    return {
        "tri": triangle_ring,
        "broken": [(0.0, 0.0), (200.0, 10.0), (20.0, 0.0)],
        "box": rectangle_ring,
        "empty": [],
    }


class TestMeshBatchRunner:
    """Test batch meshing with per-polygon failure isolation."""

    def test_failures_isolated(self, batch_polygons) -> None:
        results = MeshBatchRunner(config=_FAST).run(batch_polygons)

        assert list(results.meshes) == ["tri", "box"]
        assert list(results.failures) == ["broken", "empty"]
        assert isinstance(results.failures["broken"], CoordinateRangeError)
        assert isinstance(results.failures["empty"], EmptyPointSetError)
        assert not results.ok

        meta = results.metadata
        assert meta["num_polygons"] == 4
        assert meta["num_succeeded"] == 2
        assert meta["num_failed"] == 2
        assert meta["wall_time_s"] >= 0.0

    def test_all_succeed(self, triangle_ring) -> None:
        results = MeshBatchRunner(config=_FAST).run({"tri": triangle_ring})
        assert results.ok

    def test_threaded_matches_sequential(self, batch_polygons) -> None:
        runner = MeshBatchRunner(config=_FAST)
        sequential = runner.run(batch_polygons)
        threaded = runner.run(batch_polygons, max_workers=4)

        assert list(threaded.meshes) == list(sequential.meshes)
        assert list(threaded.failures) == list(sequential.failures)
        for name, mesh in sequential.meshes.items():
            assert np.array_equal(threaded.meshes[name].vertices, mesh.vertices)
            assert np.array_equal(threaded.meshes[name].triangles, mesh.triangles)

    def test_mesh_one_propagates(self) -> None:
        with pytest.raises(EmptyPointSetError):
            MeshBatchRunner(config=_FAST).mesh_one("empty", [])

    def test_save_data(self, tmp_path: Path, batch_polygons) -> None:
        MeshBatchRunner(config=_FAST).run(
            batch_polygons, save_data=True, output_dir=tmp_path
        )
        assert (tmp_path / "tri_vertices.npy").exists()
        assert (tmp_path / "box_triangles.npy").exists()
        assert not (tmp_path / "broken_vertices.npy").exists()


# ===========================================================================
# Plotting Tests
# ===========================================================================


class TestPlotter:
    """Test figure generation (Agg backend)."""

    def test_generate_all_plots(self, tmp_path: Path, triangle_ring, rectangle_ring) -> None:
        from visualization.plotter import generate_all_plots

        results = MeshBatchRunner(config=_FAST).run(
            {"tri": triangle_ring, "box": rectangle_ring}
        )
        saved = generate_all_plots(results, output_dir=tmp_path, dpi=50)

        assert len(saved) == 4
        for path in saved:
            assert path.exists()
            assert path.stat().st_size > 0

    def test_plot_without_saving(self, rectangle_ring) -> None:
        from visualization.plotter import plot_mesh_projection

        mesh = generate_polygon_mesh(rectangle_ring, _FAST)
        fig = plot_mesh_projection(mesh)
        assert fig is not None


# ===========================================================================
# CLI Tests
# ===========================================================================


class TestCLI:
    """Test the command-line entry point."""

    def test_parse_ring(self) -> None:
        assert parse_ring("0,0; 10,10; 20,0;") == [(0.0, 0.0), (10.0, 10.0), (20.0, 0.0)]

    @pytest.mark.parametrize("text", ["0,0;10", "0,0;a,b", "1,2,3"])
    def test_parse_ring_invalid(self, text: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            parse_ring(text)

    def test_ring_without_config(self, tmp_path: Path) -> None:
        code = main([
            "--config", str(tmp_path / "missing.yaml"),
            "--ring", "0,0;10,10;20,0",
            "--name", "tri",
            "--points", "500",
            "--output", str(tmp_path),
        ])
        assert code == 0
        assert (tmp_path / "tri_vertices.npy").exists()
        assert (tmp_path / "tri_metadata.json").exists()

    def test_failing_ring_exit_code(self, tmp_path: Path) -> None:
        code = main([
            "--config", str(tmp_path / "missing.yaml"),
            "--ring", "0,0;200,10;20,0",
            "--no-save",
            "--output", str(tmp_path),
        ])
        assert code == 1

    def test_missing_config_without_ring(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1

    def test_invalid_point_override(self, tmp_path: Path) -> None:
        code = main([
            "--config", str(DEFAULT_CONFIG),
            "--points", "0",
            "--output", str(tmp_path),
        ])
        assert code == 1

    def test_config_with_plots(self, tmp_path: Path) -> None:
        code = main([
            "--config", str(DEFAULT_CONFIG),
            "--points", "500",
            "--workers", "2",
            "--plot",
            "--output", str(tmp_path),
        ])
        assert code == 0
        for name in ("equator_box", "sahara_triangle", "arctic_l_shape"):
            assert (tmp_path / f"{name}_vertices.npy").exists()
            assert (tmp_path / f"{name}_projection.png").exists()
            assert (tmp_path / f"{name}_globe.png").exists()

    def test_debug_logging_reports_platform(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("DEBUG"):
            code = main([
                "--config", str(tmp_path / "missing.yaml"),
                "--ring", "0,0;10,10;20,0",
                "--points", "200",
                "--no-save",
                "--log-level", "DEBUG",
                "--output", str(tmp_path),
            ])
        assert code == 0
        assert "PLATFORM INFORMATION" in caplog.text
