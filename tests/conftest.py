"""Pytest configuration and shared fixtures for GlobeMesh tests.

Author: Mehmet Gümüş (github.com/SpaceEngineerSS)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest


# Add project root to path so imports work
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config: pytest.Config) -> None:
    """Configure logging for tests."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s [%(levelname)s] %(message)s",
    )


@pytest.fixture
def triangle_ring() -> list[tuple[float, float]]:
    """A triangle near the equator, (lon, lat) degrees."""
    return [(0.0, 0.0), (10.0, 10.0), (20.0, 0.0)]


@pytest.fixture
def rectangle_ring() -> list[tuple[float, float]]:
    """A 20° × 20° box centred on (0°, 0°)."""
    return [(-10.0, -10.0), (-10.0, 10.0), (10.0, 10.0), (10.0, -10.0)]
