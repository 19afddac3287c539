"""Static slope class table: breakpoints, labels and precomputed colors."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from shared.constants import SLOPE_CLASS_TABLE


@dataclass(frozen=True)
class SlopeClass:
    index: int
    max_deg: float
    label: str
    hex_color: str
    rgb: tuple[int, int, int]


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    v = value.lstrip('#')
    return int(v[0:2], 16), int(v[2:4], 16), int(v[4:6], 16)


SLOPE_CLASSES: tuple[SlopeClass, ...] = tuple(
    SlopeClass(i, max_deg, label, color, hex_to_rgb(color))
    for i, (max_deg, label, color) in enumerate(SLOPE_CLASS_TABLE)
)

# Finite upper bounds; values above the last one go to the open-ended class
_BREAKPOINTS = np.array(
    [c.max_deg for c in SLOPE_CLASSES if math.isfinite(c.max_deg)],
    dtype=np.float64,
)

# class index -> RGB
CLASS_RGB_LUT = np.array([c.rgb for c in SLOPE_CLASSES], dtype=np.uint8)


def class_indices(slope_deg: np.ndarray) -> np.ndarray:
    """
    Class index per pixel.

    First class whose upper bound is >= slope, i.e. bounds are inclusive:
    2.0 falls in '0° - 2°', 2.0001 in '2° - 5°'.
    """
    return np.searchsorted(_BREAKPOINTS, slope_deg, side='left')


def classify_slope(slope_deg: float) -> SlopeClass:
    idx = int(np.searchsorted(_BREAKPOINTS, slope_deg, side='left'))
    return SLOPE_CLASSES[idx]


def legend() -> list[tuple[str, str]]:
    """(label, hex color) per class, ascending."""
    return [(c.label, c.hex_color) for c in SLOPE_CLASSES]
