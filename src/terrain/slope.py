"""
Per-pixel slope of an elevation mosaic.

Central differences over the 4-neighbourhood, with the angular pixel size
converted to meters at the mosaic's center latitude. The outer one-pixel
border has no complete stencil and stays zero/transparent.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from shared.constants import (
    METERS_PER_DEG_LAT,
    NODATA_THRESHOLD_M,
    SLOPE_OVERLAY_ALPHA,
)
from shared.diagnostics import log_buffer
from terrain.classes import CLASS_RGB_LUT, SLOPE_CLASSES, class_indices

if TYPE_CHECKING:
    from dem.mosaic import Mosaic

logger = logging.getLogger(__name__)

_MIN_STENCIL_EXTENT = 3


@dataclass
class SlopeRaster:
    """Slope in degrees, classified RGBA, class index and validity, all (h, w)."""

    slope_deg: np.ndarray
    rgba: np.ndarray
    valid: np.ndarray
    class_index: np.ndarray

    @property
    def width(self) -> int:
        return int(self.slope_deg.shape[1])

    @property
    def height(self) -> int:
        return int(self.slope_deg.shape[0])


def cell_size_m(mosaic: Mosaic) -> tuple[float, float]:
    """Pixel size in meters (x, y) at the mosaic's center latitude."""
    meters_per_deg_lon = METERS_PER_DEG_LAT * math.cos(math.radians(mosaic.center_lat))
    return (
        mosaic.deg_per_pixel_x * meters_per_deg_lon,
        mosaic.deg_per_pixel_y * METERS_PER_DEG_LAT,
    )


def slope_from_elevation(
    z: np.ndarray,
    cell_x: float,
    cell_y: float,
    *,
    nodata_threshold: float = NODATA_THRESHOLD_M,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Slope (degrees) and validity for a (h, w) elevation array.

    A pixel is invalid when any of its N/S/E/W neighbours is below
    nodata_threshold or not finite; invalid and border pixels get 0.
    The result is float64; narrowing happens after classification.
    """
    h, w = z.shape
    slope = np.zeros((h, w), dtype=np.float64)
    valid = np.zeros((h, w), dtype=bool)
    if h < _MIN_STENCIL_EXTENT or w < _MIN_STENCIL_EXTENT:
        return slope, valid

    zf = z.astype(np.float64, copy=False)
    zn = zf[:-2, 1:-1]
    zs = zf[2:, 1:-1]
    ze = zf[1:-1, 2:]
    zw = zf[1:-1, :-2]

    nodata = np.zeros(zn.shape, dtype=bool)
    for nb in (zn, zs, ze, zw):
        nodata |= ~np.isfinite(nb)
        nodata |= nb < nodata_threshold

    with np.errstate(invalid='ignore', over='ignore'):
        dzdx = (ze - zw) / (2.0 * cell_x)
        dzdy = (zn - zs) / (2.0 * cell_y)
        deg = np.degrees(np.arctan(np.hypot(dzdx, dzdy)))
    deg[nodata] = 0.0

    slope[1:-1, 1:-1] = deg
    valid[1:-1, 1:-1] = ~nodata
    return slope, valid


def classify(
    slope_deg: np.ndarray,
    valid: np.ndarray,
    *,
    alpha: int = SLOPE_OVERLAY_ALPHA,
) -> np.ndarray:
    """RGBA (h, w, 4) from the class table; invalid pixels are transparent."""
    return _paint(class_indices(slope_deg), valid, alpha)


def _paint(idx: np.ndarray, valid: np.ndarray, alpha: int) -> np.ndarray:
    rgba = np.zeros((*idx.shape, 4), dtype=np.uint8)
    rgba[valid, :3] = CLASS_RGB_LUT[idx[valid]]
    rgba[valid, 3] = alpha
    return rgba


def compute_slope(
    mosaic: Mosaic,
    *,
    nodata_threshold: float = NODATA_THRESHOLD_M,
    alpha: int = SLOPE_OVERLAY_ALPHA,
) -> SlopeRaster:
    cell_x, cell_y = cell_size_m(mosaic)
    logger.info(
        'Slope: %dx%d px, cell %.2fm x %.2fm at lat %.4f',
        mosaic.width,
        mosaic.height,
        cell_x,
        cell_y,
        mosaic.center_lat,
    )
    slope, valid = slope_from_elevation(
        mosaic.elevation,
        cell_x,
        cell_y,
        nodata_threshold=nodata_threshold,
    )
    # Classify at full precision, store degrees as float32
    idx = class_indices(slope).astype(np.uint8)
    rgba = _paint(idx, valid, alpha)
    log_buffer('slope rgba', rgba)
    return SlopeRaster(
        slope_deg=slope.astype(np.float32),
        rgba=rgba,
        valid=valid,
        class_index=idx,
    )


def class_histogram(
    raster: SlopeRaster,
    mask: np.ndarray | None = None,
) -> list[tuple[str, int]]:
    """Pixel count per class label over valid (and optionally masked) pixels."""
    sel = raster.valid if mask is None else raster.valid & mask
    counts = np.bincount(
        raster.class_index[sel],
        minlength=len(SLOPE_CLASSES),
    )
    return [(c.label, int(counts[c.index])) for c in SLOPE_CLASSES]
