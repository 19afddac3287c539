"""
Elevation mosaic assembly from slippy tiles.

The mosaic covers the whole tile grid intersecting the query bounding box.
Its geographic bounds are derived from tile indices, not from the query
bbox, so pixel spacing stays exact across tile seams.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from domain.errors import NoElevationDataError
from geo.tiles import TileCoordinate, tile_range, tile_x_to_lon, tile_y_to_lat
from shared.constants import (
    ASYNC_MAX_CONCURRENCY,
    LOG_MEMORY_EVERY_TILES,
    TILE_SIZE,
)
from shared.diagnostics import log_buffer, log_memory_usage
from tiles.fetcher import TileFetchError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from domain.models import GeoBoundingBox
    from tiles.fetcher import ElevationTile

logger = logging.getLogger(__name__)


@dataclass
class Mosaic:
    """Contiguous float32 elevation buffer plus georeferencing."""

    elevation: np.ndarray
    north: float
    south: float
    east: float
    west: float
    zoom: int
    x_min: int
    y_min: int
    x_max: int
    y_max: int
    tile_size: int = TILE_SIZE
    failed_tiles: list[TileCoordinate] = field(default_factory=list)

    @property
    def width(self) -> int:
        return int(self.elevation.shape[1])

    @property
    def height(self) -> int:
        return int(self.elevation.shape[0])

    @property
    def deg_per_pixel_x(self) -> float:
        return (self.east - self.west) / self.width

    @property
    def deg_per_pixel_y(self) -> float:
        return (self.north - self.south) / self.height

    @property
    def center_lat(self) -> float:
        return (self.north + self.south) / 2.0


def mosaic_bounds(
    x_min: int,
    x_max: int,
    y_min: int,
    y_max: int,
    zoom: int,
) -> tuple[float, float, float, float]:
    """(north, south, east, west) of the tile grid extent."""
    north = tile_y_to_lat(y_min, zoom)
    south = tile_y_to_lat(y_max + 1, zoom)
    east = tile_x_to_lon(x_max + 1, zoom)
    west = tile_x_to_lon(x_min, zoom)
    return north, south, east, west


def stitch_tiles(
    tiles: Iterable[ElevationTile],
    *,
    x_min: int,
    x_max: int,
    y_min: int,
    y_max: int,
    tile_size: int = TILE_SIZE,
) -> np.ndarray:
    """
    Copy each tile into its cell of a zero-initialized float32 canvas.

    Cells of missing tiles stay at zero. A tile larger than tile_size is
    clipped to its cell.
    """
    full_w = (x_max - x_min + 1) * tile_size
    full_h = (y_max - y_min + 1) * tile_size
    canvas = np.zeros((full_h, full_w), dtype=np.float32)

    for tile in tiles:
        c = tile.coordinate
        if not (x_min <= c.x <= x_max and y_min <= c.y <= y_max):
            logger.warning('Tile %s outside mosaic extent, skipped', c)
            continue
        base_x = (c.x - x_min) * tile_size
        base_y = (c.y - y_min) * tile_size
        copy_h = min(tile_size, tile.height)
        copy_w = min(tile_size, tile.width)
        canvas[base_y : base_y + copy_h, base_x : base_x + copy_w] = tile.samples[
            :copy_h, :copy_w
        ]
    return canvas


class MosaicAssembler:
    """
    Fetch every tile covering a bbox concurrently and stitch them.

    Failed tiles are logged and left at zero; the batch only fails when no
    tile at all could be fetched.
    """

    def __init__(
        self,
        fetch_tile: Callable[[TileCoordinate], Awaitable[ElevationTile]],
        *,
        concurrency: int = ASYNC_MAX_CONCURRENCY,
        tile_size: int = TILE_SIZE,
    ) -> None:
        self._fetch = fetch_tile
        self._concurrency = max(1, int(concurrency))
        self.tile_size = tile_size

    async def assemble(
        self,
        bbox: GeoBoundingBox,
        zoom: int,
        *,
        on_progress: Callable[[int, int], Awaitable[None]] | None = None,
    ) -> Mosaic:
        x_min, x_max, y_min, y_max = tile_range(bbox, zoom)
        coords = [
            TileCoordinate(x, y, zoom)
            for y in range(y_min, y_max + 1)
            for x in range(x_min, x_max + 1)
        ]
        total = len(coords)
        logger.info(
            'Fetching %d elevation tiles z=%d x=%d..%d y=%d..%d',
            total,
            zoom,
            x_min,
            x_max,
            y_min,
            y_max,
        )

        sem = asyncio.Semaphore(self._concurrency)
        done = 0
        started = time.monotonic()

        async def _worker(coord: TileCoordinate) -> ElevationTile | None:
            nonlocal done
            try:
                async with sem:
                    tile = await self._fetch(coord)
            except (TileFetchError, TimeoutError) as e:
                logger.warning('Tile fetch failed: %s', e)
                tile = None
            done += 1
            if done % LOG_MEMORY_EVERY_TILES == 0:
                log_memory_usage(f'after {done} tiles')
            if on_progress is not None:
                await on_progress(done, total)
            return tile

        results = await asyncio.gather(*(_worker(c) for c in coords))
        succeeded = [t for t in results if t is not None]
        failed = [c for c, t in zip(coords, results, strict=True) if t is None]
        logger.info(
            'Tiles fetched: %d ok, %d failed (%.2fs)',
            len(succeeded),
            len(failed),
            time.monotonic() - started,
        )
        if not succeeded:
            raise NoElevationDataError

        elevation = stitch_tiles(
            succeeded,
            x_min=x_min,
            x_max=x_max,
            y_min=y_min,
            y_max=y_max,
            tile_size=self.tile_size,
        )
        del succeeded
        log_buffer('mosaic', elevation)

        north, south, east, west = mosaic_bounds(x_min, x_max, y_min, y_max, zoom)
        return Mosaic(
            elevation=elevation,
            north=north,
            south=south,
            east=east,
            west=west,
            zoom=zoom,
            x_min=x_min,
            y_min=y_min,
            x_max=x_max,
            y_max=y_max,
            tile_size=self.tile_size,
            failed_tiles=failed,
        )
