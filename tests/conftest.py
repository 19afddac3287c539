"""Pytest configuration and fixtures for slope analysis tests."""

import sys
from pathlib import Path

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from dem.mosaic import Mosaic  # noqa: E402


@pytest.fixture
def make_mosaic():
    """Build a synthetic single-cell Mosaic from an elevation array."""

    def _make(elevation, *, west=10.0, north=50.0, deg_per_px=0.001):
        elevation = np.asarray(elevation, dtype=np.float32)
        h, w = elevation.shape
        return Mosaic(
            elevation=elevation,
            north=north,
            south=north - h * deg_per_px,
            east=west + w * deg_per_px,
            west=west,
            zoom=12,
            x_min=0,
            y_min=0,
            x_max=0,
            y_max=0,
            tile_size=w,
        )

    return _make
