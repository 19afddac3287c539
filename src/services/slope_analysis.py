"""Slope analysis service - orchestrates the tile-to-export pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from dem.mosaic import MosaicAssembler
from domain.errors import StaleRequestError
from domain.geometry import polygon_features
from domain.models import AnalysisSettings
from export.bundle import write_bundle, write_files
from export.encoder import encode
from imaging.mask import clip_to_geometry
from infrastructure.http.client import (
    cleanup_sqlite_cache,
    make_http_session,
    resolve_cache_dir,
)
from services.analysis_context import AnalysisContext, AnalysisResult
from shared.constants import EXPORT_ARCHIVE_NAME, AnalysisStatus
from shared.diagnostics import log_memory_usage
from terrain.slope import class_histogram, compute_slope
from tiles.fetcher import TileFetcher
from vector.loader import load_features

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dem.mosaic import Mosaic
    from domain.geometry import FeatureCollection

    StatusCallback = Callable[[AnalysisStatus, str], None]
    ProgressCallback = Callable[[int, int], None]

logger = logging.getLogger(__name__)


class SlopeAnalysisService:
    """
    Runs slope analyses for polygonal areas of interest.

    Every call to analyze() is tagged with a new generation number. Starting
    a new analysis cancels the one in flight; a superseded call raises
    StaleRequestError and never publishes status or progress.

    Usage:
        service = SlopeAnalysisService(settings, on_status=print)
        result = await service.analyze(features)
        service.export('out/slope_analysis_output.zip')
    """

    def __init__(
        self,
        settings: AnalysisSettings | None = None,
        *,
        on_status: StatusCallback | None = None,
        on_progress: ProgressCallback | None = None,
        cache_dir: Path | None = None,
    ) -> None:
        self.settings = settings or AnalysisSettings()
        self._on_status = on_status
        self._on_progress = on_progress
        self._cache_dir = cache_dir
        self._generation = 0
        self._task: asyncio.Task[AnalysisResult] | None = None
        self.status = AnalysisStatus.IDLE
        self.result: AnalysisResult | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _publish(self, generation: int, status: AnalysisStatus, message: str) -> None:
        if not self.is_current(generation):
            return
        self.status = status
        logger.info('Analysis #%d %s: %s', generation, status.value, message)
        if self._on_status is not None:
            self._on_status(status, message)

    def _ensure_current(self, generation: int) -> None:
        if not self.is_current(generation):
            raise StaleRequestError(generation, self._generation)

    async def analyze(self, features: FeatureCollection) -> AnalysisResult:
        """
        Run the full pipeline for the polygonal features of a collection.

        Raises:
            StaleRequestError: a newer analyze() call superseded this one.
            SlopeAnalysisError: no polygons or no elevation data.

        """
        self._generation += 1
        generation = self._generation
        previous = self._task
        if previous is not None and not previous.done():
            logger.info('Cancelling analysis #%d', generation - 1)
            previous.cancel()

        self._publish(generation, AnalysisStatus.PROCESSING, 'Analyzing terrain')
        task = asyncio.create_task(self._run(generation, features))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if not self.is_current(generation):
                raise StaleRequestError(generation, self._generation) from None
            raise
        except Exception as e:
            self._ensure_current(generation)
            self.result = None
            self._publish(generation, AnalysisStatus.ERROR, str(e))
            raise
        finally:
            if self._task is task:
                self._task = None

        self._ensure_current(generation)
        self.result = result
        self._publish(
            generation,
            AnalysisStatus.DONE,
            f'{result.mosaic.width}x{result.mosaic.height} px in {result.elapsed_s:.2f}s',
        )
        return result

    async def analyze_file(self, path: str | Path) -> AnalysisResult:
        """Load a KML/KMZ/GeoJSON file and analyze its polygons."""
        return await self.analyze(load_features(path))

    async def _fetch_mosaic(
        self,
        ctx: AnalysisContext,
        on_progress: Callable[[int, int], Awaitable[None]],
    ) -> Mosaic:
        settings = ctx.settings
        cache_dir = self._cache_dir or resolve_cache_dir()
        async with make_http_session(
            cache_dir,
            use_cache=settings.use_http_cache,
        ) as client:
            fetcher = TileFetcher(client, settings)
            assembler = MosaicAssembler(
                fetcher.fetch_tile,
                concurrency=settings.concurrency,
                tile_size=settings.tile_size,
            )
            mosaic = await assembler.assemble(
                ctx.bbox,
                settings.zoom,
                on_progress=on_progress,
            )
            logger.info('Tile fetcher stats: %s', fetcher.stats)
        if settings.use_http_cache:
            cleanup_sqlite_cache(cache_dir)
        return mosaic

    async def _run(
        self,
        generation: int,
        features: FeatureCollection,
    ) -> AnalysisResult:
        started = time.monotonic()
        settings = self.settings
        polygons = polygon_features(features)
        ctx = AnalysisContext(
            generation=generation,
            settings=settings,
            features=polygons,
            bbox=polygons.bounds(),
        )
        logger.info(
            'Analysis #%d: %d polygon features, bbox N%.5f S%.5f E%.5f W%.5f',
            generation,
            len(polygons.features),
            ctx.bbox.north,
            ctx.bbox.south,
            ctx.bbox.east,
            ctx.bbox.west,
        )
        log_memory_usage('before tile fetch')

        async def _progress(done: int, total: int) -> None:
            if self._on_progress is not None and self.is_current(generation):
                self._on_progress(done, total)

        ctx = ctx.advance(mosaic=await self._fetch_mosaic(ctx, _progress))
        self._ensure_current(generation)
        log_memory_usage('after mosaic')

        ctx = ctx.advance(
            raster=compute_slope(
                ctx.mosaic,
                nodata_threshold=settings.nodata_threshold,
                alpha=settings.overlay_alpha,
            ),
        )
        clipped, mask = clip_to_geometry(
            ctx.raster,
            ctx.mosaic,
            ctx.features,
            settings.fill_rule,
        )
        ctx = ctx.advance(clipped=clipped, mask=mask)
        ctx = ctx.advance(artifact=encode(ctx.clipped, ctx.mosaic))
        histogram = class_histogram(ctx.raster, ctx.mask)
        log_memory_usage('after export encoding')

        elapsed = time.monotonic() - started
        logger.info('Analysis #%d finished in %.2fs', generation, elapsed)
        return AnalysisResult.from_context(ctx, histogram, elapsed)

    def export(self, path: str | Path, *, as_zip: bool = True) -> Path:
        """
        Write the last result as a zip archive (or as loose files when
        as_zip is False, path then being a directory).
        """
        if self.result is None:
            msg = 'No analysis result to export'
            raise RuntimeError(msg)
        out = Path(path)
        if not as_zip:
            write_files(self.result.artifact, out)
            return out
        if out.is_dir() or not out.suffix:
            out = out / EXPORT_ARCHIVE_NAME
        return write_bundle(self.result.artifact, out)
