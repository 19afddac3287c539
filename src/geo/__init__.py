"""Geo module - slippy tile coordinate math."""

from .tiles import (
    TileCoordinate,
    lat_to_tile_y,
    lon_to_tile_x,
    tile_bounds,
    tile_range,
    tile_x_to_lon,
    tile_y_to_lat,
    tiles_for_bbox,
)

__all__ = [
    'TileCoordinate',
    'lat_to_tile_y',
    'lon_to_tile_x',
    'tile_bounds',
    'tile_range',
    'tile_x_to_lon',
    'tile_y_to_lat',
    'tiles_for_bbox',
]
