from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING

import aiohttp

from shared.constants import HTTP_5XX_MAX, HTTP_5XX_MIN
from tiles.codec import TileDecodeError, decode_elevation_tile

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from domain.models import AnalysisSettings
    from geo.tiles import TileCoordinate

logger = logging.getLogger(__name__)


@dataclass
class ElevationTile:
    """Decoded elevation samples of one tile, row-major (height, width)."""

    coordinate: TileCoordinate
    samples: np.ndarray

    @property
    def width(self) -> int:
        return int(self.samples.shape[1])

    @property
    def height(self) -> int:
        return int(self.samples.shape[0])


class TileFetchError(RuntimeError):
    """Per-tile failure: HTTP error, timeout or undecodable body."""

    def __init__(self, coordinate: TileCoordinate, msg: str) -> None:
        super().__init__(
            f'tile z/x/y={coordinate.zoom}/{coordinate.x}/{coordinate.y}: {msg}',
        )
        self.coordinate = coordinate


class TileFetcher:
    """
    HTTP fetcher for elevation GeoTIFF tiles.

    Each request has its own total timeout. Timeouts, connection errors,
    429 and 5xx responses are retried with exponential backoff
    (backoff_factor ** attempt seconds); other statuses fail at once.

    Usage:
        async with make_http_session(cache_dir) as client:
            fetcher = TileFetcher(client, settings)
            tile = await fetcher.fetch_tile(TileCoordinate(x, y, 12))
    """

    def __init__(
        self,
        client: aiohttp.ClientSession,
        settings: AnalysisSettings,
        *,
        decode: Callable[[bytes], np.ndarray] = decode_elevation_tile,
    ) -> None:
        self.client = client
        self.settings = settings
        self._decode = decode
        self._stats_downloads = 0
        self._stats_retries = 0
        self._stats_errors = 0

    @property
    def stats(self) -> dict[str, int]:
        return {
            'downloads': self._stats_downloads,
            'retries': self._stats_retries,
            'errors': self._stats_errors,
        }

    def url_for(self, coord: TileCoordinate) -> str:
        return self.settings.tile_url(coord.zoom, coord.x, coord.y)

    async def fetch_raw(self, coord: TileCoordinate) -> bytes:
        """Download the raw tile body, retrying transient failures."""
        url = self.url_for(coord)
        retries = self.settings.retries
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_s)

        last_exc: Exception | None = None
        for attempt in range(retries):
            if attempt:
                self._stats_retries += 1
                await asyncio.sleep(self.settings.backoff_factor**attempt)
            try:
                resp = await self.client.get(url, timeout=timeout)
            except (TimeoutError, aiohttp.ClientError) as e:
                last_exc = e
                logger.debug('Tile %s attempt %d failed: %r', url, attempt + 1, e)
                continue
            try:
                sc = resp.status
                if sc == HTTPStatus.OK:
                    data = await resp.read()
                    self._stats_downloads += 1
                    return data
                if sc == HTTPStatus.TOO_MANY_REQUESTS or (
                    HTTP_5XX_MIN <= sc < HTTP_5XX_MAX
                ):
                    last_exc = RuntimeError(f'HTTP {sc}')
                    continue
                self._stats_errors += 1
                raise TileFetchError(coord, f'HTTP {sc} for {url}')
            except (TimeoutError, aiohttp.ClientError) as e:
                # Body read failed
                last_exc = e
            finally:
                resp.release()

        self._stats_errors += 1
        msg = f'failed after {retries} attempts: {last_exc!r}'
        raise TileFetchError(coord, msg)

    async def fetch_tile(self, coord: TileCoordinate) -> ElevationTile:
        data = await self.fetch_raw(coord)
        try:
            samples = self._decode(data)
        except TileDecodeError as e:
            self._stats_errors += 1
            raise TileFetchError(coord, str(e)) from e
        return ElevationTile(coordinate=coord, samples=samples)
