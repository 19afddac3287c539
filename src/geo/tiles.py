"""
Slippy-map tile math (Web Mercator tile grid, WGS84 degrees).

Forward functions truncate with floor, so a point inside tile T maps back
to T; the inverse functions return the north-west corner of a tile.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models import GeoBoundingBox


@dataclass(frozen=True)
class TileCoordinate:
    x: int
    y: int
    zoom: int


def lon_to_tile_x(lon: float, zoom: int) -> int:
    return math.floor((lon + 180.0) / 360.0 * 2**zoom)


def lat_to_tile_y(lat: float, zoom: int) -> int:
    lat_rad = math.radians(lat)
    merc = math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad))
    return math.floor((1.0 - merc / math.pi) / 2.0 * 2**zoom)


def tile_x_to_lon(x: float, zoom: int) -> float:
    return x / 2**zoom * 360.0 - 180.0


def tile_y_to_lat(y: float, zoom: int) -> float:
    n = math.pi - 2.0 * math.pi * y / 2**zoom
    return math.degrees(math.atan(math.sinh(n)))


def tile_range(bbox: GeoBoundingBox, zoom: int) -> tuple[int, int, int, int]:
    """
    Tile index range (x_min, x_max, y_min, y_max) covering bbox.

    Y grows southward, so the northern edge gives y_min.
    """
    x_min = lon_to_tile_x(bbox.west, zoom)
    x_max = lon_to_tile_x(bbox.east, zoom)
    y_min = lat_to_tile_y(bbox.north, zoom)
    y_max = lat_to_tile_y(bbox.south, zoom)
    return x_min, x_max, y_min, y_max


def tiles_for_bbox(bbox: GeoBoundingBox, zoom: int) -> list[TileCoordinate]:
    """Full Cartesian set of tiles covering bbox, row by row."""
    x_min, x_max, y_min, y_max = tile_range(bbox, zoom)
    return [
        TileCoordinate(x, y, zoom)
        for y in range(y_min, y_max + 1)
        for x in range(x_min, x_max + 1)
    ]


def tile_bounds(x: int, y: int, zoom: int) -> tuple[float, float, float, float]:
    """(north, south, east, west) of one tile."""
    return (
        tile_y_to_lat(y, zoom),
        tile_y_to_lat(y + 1, zoom),
        tile_x_to_lon(x + 1, zoom),
        tile_x_to_lon(x, zoom),
    )
