"""
Polygon coverage mask by scanline fill, and clipping of RGBA rasters.

Rings are projected to mosaic pixel space and converted into an edge list.
Each row is sampled at pixel-center height (row + 0.5); a pixel is inside
when its center lies inside according to the selected fill rule:

- EVEN_ODD: inside when crossed an odd number of times; inner rings punch
  holes whatever their orientation.
- NONZERO: inside when the signed winding count is non-zero; inner rings
  only punch holes when wound opposite to their outer ring.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from shared.constants import FillRule

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dem.mosaic import Mosaic
    from domain.geometry import FeatureCollection, Ring
    from terrain.slope import SlopeRaster

logger = logging.getLogger(__name__)


def geo_to_pixel(
    lon: np.ndarray | float,
    lat: np.ndarray | float,
    mosaic: Mosaic,
) -> tuple[np.ndarray, np.ndarray]:
    """Geographic degrees -> fractional pixel coordinates of the mosaic."""
    lon_a = np.asarray(lon, dtype=np.float64)
    lat_a = np.asarray(lat, dtype=np.float64)
    x = (lon_a - mosaic.west) / (mosaic.east - mosaic.west) * mosaic.width
    y = (mosaic.north - lat_a) / (mosaic.north - mosaic.south) * mosaic.height
    return x, y


def rings_to_pixel_space(
    rings: Sequence[Ring],
    mosaic: Mosaic,
) -> list[np.ndarray]:
    """Each ring as an (n, 2) array of pixel (x, y)."""
    out: list[np.ndarray] = []
    for ring in rings:
        if not ring:
            continue
        pts = np.asarray(ring, dtype=np.float64)
        x, y = geo_to_pixel(pts[:, 0], pts[:, 1], mosaic)
        out.append(np.column_stack((x, y)))
    return out


def build_edges(rings: Sequence[np.ndarray]) -> np.ndarray:
    """
    Non-horizontal edges as rows (x0, y0, x1, y1, direction).

    Every ring is treated as closed; direction is +1 for downward edges
    (y growing) and -1 for upward ones.
    """
    parts: list[np.ndarray] = []
    for pts in rings:
        if len(pts) < 2:  # noqa: PLR2004
            continue
        start = pts
        end = np.roll(pts, -1, axis=0)
        seg = np.hstack((start, end))
        seg = seg[np.all(np.isfinite(seg), axis=1)]
        seg = seg[seg[:, 1] != seg[:, 3]]
        if len(seg):
            direction = np.where(seg[:, 3] > seg[:, 1], 1.0, -1.0)
            parts.append(np.column_stack((seg, direction)))
    if not parts:
        return np.empty((0, 5), dtype=np.float64)
    return np.vstack(parts)


def rasterize_rings(
    rings: Sequence[np.ndarray],
    width: int,
    height: int,
    fill_rule: FillRule = FillRule.EVEN_ODD,
) -> np.ndarray:
    """Boolean (height, width) coverage of pixel-space rings."""
    mask = np.zeros((height, width), dtype=bool)
    edges = build_edges(rings)
    if not len(edges) or width <= 0 or height <= 0:
        return mask

    x0, y0, x1, y1, direction = edges.T
    y_lo = np.minimum(y0, y1)
    y_hi = np.maximum(y0, y1)
    slope = (x1 - x0) / (y1 - y0)

    row_first = max(0, int(np.floor(y_lo.min())))
    row_last = min(height - 1, int(np.ceil(y_hi.max())))
    acc = np.zeros(width + 1, dtype=np.int32)

    for row in range(row_first, row_last + 1):
        yc = row + 0.5
        # Half-open span so a shared vertex is counted once
        active = (y_lo <= yc) & (yc < y_hi)
        if not active.any():
            continue
        xs = x0[active] + (yc - y0[active]) * slope[active]
        dirs = direction[active]
        order = np.argsort(xs, kind='stable')
        xs = xs[order]
        dirs = dirs[order]

        if fill_rule == FillRule.NONZERO:
            inside = np.cumsum(dirs)[:-1] != 0
        else:
            inside = (np.arange(1, len(xs)) % 2) == 1
        if not inside.any():
            continue

        # Pixel c is covered when xa <= c + 0.5 < xb
        starts = np.ceil(xs[:-1][inside] - 0.5).astype(np.int64)
        ends = np.ceil(xs[1:][inside] - 0.5).astype(np.int64)
        starts = np.clip(starts, 0, width)
        ends = np.clip(ends, 0, width)
        keep = ends > starts
        if not keep.any():
            continue
        acc[:] = 0
        np.add.at(acc, starts[keep], 1)
        np.add.at(acc, ends[keep], -1)
        mask[row] = np.cumsum(acc[:-1]) > 0
    return mask


def geometry_mask(
    fc: FeatureCollection,
    mosaic: Mosaic,
    fill_rule: FillRule = FillRule.EVEN_ODD,
) -> np.ndarray:
    """Coverage of all Polygon/MultiPolygon rings of fc on the mosaic grid."""
    rings = rings_to_pixel_space(fc.polygon_rings(), mosaic)
    mask = rasterize_rings(rings, mosaic.width, mosaic.height, fill_rule)
    logger.info(
        'Clip mask: %d rings, %d of %d px inside (%s)',
        len(rings),
        int(mask.sum()),
        mask.size,
        fill_rule.value,
    )
    return mask


def clip_raster(rgba: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Zero every channel outside mask; inside pixels are unchanged."""
    return rgba * mask[..., np.newaxis].astype(rgba.dtype)


def clip_to_geometry(
    raster: SlopeRaster,
    mosaic: Mosaic,
    fc: FeatureCollection,
    fill_rule: FillRule = FillRule.EVEN_ODD,
) -> tuple[np.ndarray, np.ndarray]:
    """Clipped RGBA and the coverage mask used for it."""
    mask = geometry_mask(fc, mosaic, fill_rule)
    return clip_raster(raster.rgba, mask), mask
