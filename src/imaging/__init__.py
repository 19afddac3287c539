"""Imaging package - polygon coverage masks and raster clipping."""

from imaging.mask import (
    build_edges,
    clip_raster,
    clip_to_geometry,
    geo_to_pixel,
    geometry_mask,
    rasterize_rings,
    rings_to_pixel_space,
)

__all__ = [
    'build_edges',
    'clip_raster',
    'clip_to_geometry',
    'geo_to_pixel',
    'geometry_mask',
    'rasterize_rings',
    'rings_to_pixel_space',
]
