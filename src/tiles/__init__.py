"""Elevation tile fetching and decoding.

This module provides:
- TileFetcher: HTTP fetcher with per-tile timeout and retry/backoff
- ElevationTile: decoded samples of one tile
- decode_elevation_tile: GeoTIFF body -> float32 array
"""

from tiles.codec import TileDecodeError, decode_elevation_tile
from tiles.fetcher import ElevationTile, TileFetcher, TileFetchError

__all__ = [
    'ElevationTile',
    'TileDecodeError',
    'TileFetchError',
    'TileFetcher',
    'decode_elevation_tile',
]
