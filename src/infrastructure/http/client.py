from __future__ import annotations

import contextlib
import os
import sqlite3
import ssl
import time
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

import aiohttp
import certifi
from aiohttp_client_cache import CachedSession, SQLiteBackend

from shared.constants import (
    HTTP_CACHE_DIR,
    HTTP_CACHE_EXPIRE_HOURS,
    HTTP_CACHE_RESPECT_HEADERS,
    HTTP_CACHE_STALE_IF_ERROR_HOURS,
    HTTP_OK,
)

if TYPE_CHECKING:
    from domain.models import AnalysisSettings

CACHE_FILE_NAME = 'http_cache.sqlite'


def resolve_cache_dir() -> Path:
    raw_dir = Path(HTTP_CACHE_DIR)
    if raw_dir.is_absolute():
        return raw_dir

    home = os.getenv('SLOPE_ANALYSIS_HOME')
    if home:
        return (Path(home) / raw_dir).resolve()
    return (Path.home() / '.slope_analysis' / raw_dir).resolve()


def cleanup_sqlite_cache(cache_dir: Path) -> None:
    """Force a WAL checkpoint so the cache file can be moved or deleted."""
    cache_file = cache_dir / CACHE_FILE_NAME
    if cache_file.exists():
        conn = sqlite3.connect(cache_file)
        conn.execute('PRAGMA wal_checkpoint(TRUNCATE);')
        conn.close()

        time.sleep(0.1)


def make_http_session(
    cache_dir: Path | None,
    *,
    use_cache: bool = True,
) -> aiohttp.ClientSession:
    """aiohttp session with certifi SSL context and optional SQLite cache."""
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)

    if use_cache and cache_dir is not None:
        cache_dir.mkdir(parents=True, exist_ok=True)
        cache_path = cache_dir / CACHE_FILE_NAME
        if not cache_path.exists():
            with contextlib.closing(sqlite3.connect(cache_path)) as _conn:
                _conn.execute('PRAGMA journal_mode=WAL;')
        expire_td = timedelta(hours=max(0, int(HTTP_CACHE_EXPIRE_HOURS)))
        stale_hours = int(HTTP_CACHE_STALE_IF_ERROR_HOURS)
        stale_param: bool | timedelta
        stale_param = timedelta(hours=stale_hours) if stale_hours > 0 else False
        backend = SQLiteBackend(str(cache_path), expire_after=expire_td)
        return CachedSession(
            cache=backend,
            connector=connector,
            expire_after=expire_td,
            cache_control=bool(HTTP_CACHE_RESPECT_HEADERS),
            stale_if_error=stale_param,
        )
    return aiohttp.ClientSession(connector=connector)


async def validate_tile_source(settings: AnalysisSettings) -> None:
    """Quick reachability check of the elevation tile source (tile 0/0/0)."""
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    connector = aiohttp.TCPConnector(ssl=ssl_context)

    test_url = settings.tile_url(0, 0, 0)
    timeout = aiohttp.ClientTimeout(total=10, connect=10, sock_connect=10, sock_read=10)
    try:
        async with (
            aiohttp.ClientSession(connector=connector) as client,
            client.get(test_url, timeout=timeout) as resp,
        ):
            sc = resp.status
            if sc == HTTP_OK:
                await resp.read()
                return
            msg = f'Elevation tile source returned HTTP {sc} for {test_url}'
            raise RuntimeError(msg)
    except (TimeoutError, aiohttp.ClientConnectorError, aiohttp.ClientOSError):
        msg = (
            'No connection to the elevation tile source. '
            'Check the network connection.'
        )
        raise RuntimeError(msg) from None
