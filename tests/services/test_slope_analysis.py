"""Tests for the slope analysis service."""

import asyncio
import dataclasses
import zipfile
from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

from domain.errors import (
    GeometryValidationError,
    NoElevationDataError,
    NoPolygonGeometryError,
    StaleRequestError,
)
from domain.geometry import FeatureCollection, make_point, make_polygon
from domain.models import AnalysisSettings
from services.analysis_context import AnalysisContext, AnalysisResult
from services.slope_analysis import SlopeAnalysisService
from shared.constants import EXPORT_ARCHIVE_NAME, AnalysisStatus
from vector.kml import generate_kml

# Inside the synthetic 10x10 mosaic (west 10.0, north 50.0, 0.001 deg/px)
AOI = FeatureCollection.of(
    make_polygon([(10.002, 49.998), (10.008, 49.998), (10.008, 49.992), (10.002, 49.992)]),
)


@pytest.fixture
def ramp_mosaic(make_mosaic):
    return make_mosaic(np.tile(np.arange(10, dtype=np.float32) * 20.0, (10, 1)))


@pytest.fixture
def recorder():
    events = []

    def on_status(status, message):
        events.append((status, message))

    return events, on_status


def _fake_fetch(mosaic, gate=None):
    async def fetch(self, ctx, on_progress):
        if gate is not None and ctx.generation == 1:
            await gate.wait()
        await on_progress(1, 1)
        return mosaic

    return fetch


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_pipeline_produces_result(self, ramp_mosaic, recorder):
        events, on_status = recorder
        progress = MagicMock()
        service = SlopeAnalysisService(on_status=on_status, on_progress=progress)

        with patch.object(SlopeAnalysisService, '_fetch_mosaic', new=_fake_fetch(ramp_mosaic)):
            result = await service.analyze(AOI)

        assert [s for s, _ in events] == [AnalysisStatus.PROCESSING, AnalysisStatus.DONE]
        assert service.status == AnalysisStatus.DONE
        assert service.result is result
        assert result.generation == 1
        assert result.clipped.shape == (10, 10, 4)
        assert result.mask.sum() == 36
        assert not result.clipped[~result.mask].any()
        assert sum(n for _, n in result.histogram) == int(
            (result.mask & result.raster.valid).sum(),
        )
        assert result.artifact.affine[4] == pytest.approx(10.0005)
        progress.assert_called_once_with(1, 1)

    @pytest.mark.asyncio
    async def test_no_polygon_publishes_error(self, recorder):
        events, on_status = recorder
        service = SlopeAnalysisService(on_status=on_status)

        with pytest.raises(NoPolygonGeometryError):
            await service.analyze(FeatureCollection.of(make_point(10.0, 50.0)))

        assert events[-1] == (AnalysisStatus.ERROR, 'No Polygon layer detected')
        assert service.result is None

    @pytest.mark.asyncio
    async def test_flat_polygon_publishes_error(self, recorder):
        events, on_status = recorder
        service = SlopeAnalysisService(on_status=on_status)
        flat = make_polygon([(10.002, 49.995), (10.004, 49.995), (10.006, 49.995)])
        fetch = AsyncMock()

        with (
            patch.object(SlopeAnalysisService, '_fetch_mosaic', new=fetch),
            pytest.raises(GeometryValidationError, match='zero area'),
        ):
            await service.analyze(FeatureCollection.of(flat))

        fetch.assert_not_called()
        assert service.status == AnalysisStatus.ERROR
        assert events[-1] == (AnalysisStatus.ERROR, 'Polygon has zero area')
        assert service.result is None

    @pytest.mark.asyncio
    async def test_no_data_clears_previous_result(self, ramp_mosaic, recorder):
        events, on_status = recorder
        service = SlopeAnalysisService(on_status=on_status)
        with patch.object(SlopeAnalysisService, '_fetch_mosaic', new=_fake_fetch(ramp_mosaic)):
            await service.analyze(AOI)
        assert service.result is not None

        failing = AsyncMock(side_effect=NoElevationDataError())
        with (
            patch.object(SlopeAnalysisService, '_fetch_mosaic', new=failing),
            pytest.raises(NoElevationDataError),
        ):
            await service.analyze(AOI)

        assert service.result is None
        assert service.status == AnalysisStatus.ERROR
        assert events[-1] == (AnalysisStatus.ERROR, 'no elevation data available')

    @pytest.mark.asyncio
    async def test_superseded_request_is_dropped(self, ramp_mosaic, recorder):
        events, on_status = recorder
        progress = MagicMock()
        service = SlopeAnalysisService(on_status=on_status, on_progress=progress)
        gate = asyncio.Event()

        with patch.object(
            SlopeAnalysisService,
            '_fetch_mosaic',
            new=_fake_fetch(ramp_mosaic, gate),
        ):
            first = asyncio.create_task(service.analyze(AOI))
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            second = await service.analyze(AOI)
            gate.set()
            with pytest.raises(StaleRequestError) as exc_info:
                await first

        assert exc_info.value.generation == 1
        assert exc_info.value.current == 2
        assert second.generation == 2
        assert service.result is second
        assert [s for s, _ in events].count(AnalysisStatus.DONE) == 1
        progress.assert_called_once_with(1, 1)

    @pytest.mark.asyncio
    async def test_analyze_file(self, ramp_mosaic, tmp_path):
        path = tmp_path / 'aoi.kml'
        path.write_text(generate_kml(AOI.features), encoding='utf-8')
        service = SlopeAnalysisService()

        with patch.object(SlopeAnalysisService, '_fetch_mosaic', new=_fake_fetch(ramp_mosaic)):
            result = await service.analyze_file(path)

        assert result.mask.sum() == 36


class TestFetchMosaicWiring:
    @pytest.mark.asyncio
    async def test_uses_session_fetcher_and_assembler(self, ramp_mosaic, tmp_path):
        session = MagicMock()
        session_cm = MagicMock()
        session_cm.__aenter__ = AsyncMock(return_value=session)
        session_cm.__aexit__ = AsyncMock(return_value=False)
        assembler = MagicMock()
        assembler.assemble = AsyncMock(return_value=ramp_mosaic)
        settings = AnalysisSettings(concurrency=3, use_http_cache=False)
        service = SlopeAnalysisService(settings, cache_dir=tmp_path)

        with (
            patch(
                'services.slope_analysis.make_http_session',
                return_value=session_cm,
            ) as make_session,
            patch(
                'services.slope_analysis.MosaicAssembler',
                return_value=assembler,
            ) as assembler_cls,
        ):
            result = await service.analyze(AOI)

        make_session.assert_called_once_with(tmp_path, use_cache=False)
        assert assembler_cls.call_args.kwargs['concurrency'] == 3
        assembler.assemble.assert_awaited_once()
        assert assembler.assemble.call_args.args[1] == settings.zoom
        assert result.mosaic is ramp_mosaic


class TestExport:
    @pytest.mark.asyncio
    async def test_export_zip_into_directory(self, ramp_mosaic, tmp_path):
        service = SlopeAnalysisService()
        with patch.object(SlopeAnalysisService, '_fetch_mosaic', new=_fake_fetch(ramp_mosaic)):
            await service.analyze(AOI)

        out = service.export(tmp_path)
        assert out == tmp_path / EXPORT_ARCHIVE_NAME
        with zipfile.ZipFile(out) as zf:
            assert 'slope_analysis_clipped.tif' in zf.namelist()

    @pytest.mark.asyncio
    async def test_export_unzipped(self, ramp_mosaic, tmp_path):
        service = SlopeAnalysisService()
        with patch.object(SlopeAnalysisService, '_fetch_mosaic', new=_fake_fetch(ramp_mosaic)):
            await service.analyze(AOI)

        service.export(tmp_path / 'files', as_zip=False)
        assert (tmp_path / 'files' / 'slope_analysis_clipped.tfw').exists()

    def test_export_without_result(self, tmp_path):
        with pytest.raises(RuntimeError, match='No analysis result'):
            SlopeAnalysisService().export(tmp_path)


class TestAnalysisContext:
    def test_advance_returns_new_context(self, ramp_mosaic):
        ctx = AnalysisContext(
            generation=1,
            settings=AnalysisSettings(),
            features=AOI,
            bbox=AOI.bounds(),
        )
        advanced = ctx.advance(mosaic=ramp_mosaic)

        assert ctx.mosaic is None
        assert advanced.mosaic is ramp_mosaic
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.mosaic = ramp_mosaic

    def test_incomplete_context_rejected(self):
        ctx = AnalysisContext(
            generation=4,
            settings=AnalysisSettings(),
            features=AOI,
            bbox=AOI.bounds(),
        )
        with pytest.raises(ValueError, match='incomplete'):
            AnalysisResult.from_context(ctx, [], 0.0)
