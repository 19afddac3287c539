"""Terrain analysis - slope computation and classification."""

from terrain.classes import (
    CLASS_RGB_LUT,
    SLOPE_CLASSES,
    SlopeClass,
    class_indices,
    classify_slope,
    legend,
)
from terrain.slope import (
    SlopeRaster,
    cell_size_m,
    class_histogram,
    classify,
    compute_slope,
    slope_from_elevation,
)

__all__ = [
    'CLASS_RGB_LUT',
    'SLOPE_CLASSES',
    'SlopeClass',
    'SlopeRaster',
    'cell_size_m',
    'class_histogram',
    'class_indices',
    'classify',
    'classify_slope',
    'compute_slope',
    'legend',
    'slope_from_elevation',
]
