"""Tests for the command-line entry point."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from domain.errors import NoElevationDataError
from main import build_parser, main, print_report, resolve_settings, setup_logging
from shared.constants import FillRule
from terrain.classes import legend


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    saved = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved:
            root.removeHandler(handler)
            handler.close()
    root.handlers[:] = saved
    root.setLevel(level)


class TestSetupLogging:
    def test_file_handler(self, tmp_path):
        log_file = tmp_path / 'log' / 'slope.log'
        setup_logging(log_file)
        logging.getLogger('test').info('hello')
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert log_file.exists()
        assert 'hello' in log_file.read_text(encoding='utf-8')


class TestResolveSettings:
    def test_overrides(self, tmp_path):
        profile = tmp_path / 'p.toml'
        profile.write_text('[tiles]\nzoom = 10\n')
        args = build_parser().parse_args(
            ['aoi.kml', '--profile', str(profile), '--fill-rule', 'nonzero', '--no-cache'],
        )
        settings = resolve_settings(args)
        assert settings.zoom == 10
        assert settings.fill_rule == FillRule.NONZERO
        assert settings.use_http_cache is False

    def test_zoom_override_validated(self):
        args = build_parser().parse_args(['aoi.kml', '--zoom', '20'])
        with pytest.raises(ValueError):
            resolve_settings(args)


class TestMain:
    def test_runs_analysis_and_exports(self, tmp_path, capsys):
        result = MagicMock()
        result.histogram = [(label, 1) for label, _ in legend()]
        result.failed_tiles = 0
        service = MagicMock()
        service.analyze_file = AsyncMock(return_value=result)
        service.export = MagicMock(return_value=tmp_path / 'out.zip')

        with patch('main.SlopeAnalysisService', return_value=service):
            code = main([str(tmp_path / 'aoi.kml'), '-o', str(tmp_path / 'out.zip')])

        assert code == 0
        service.export.assert_called_once_with(tmp_path / 'out.zip', as_zip=True)
        out = capsys.readouterr().out
        assert '> 45°' in out
        assert 'Saved:' in out

    def test_analysis_error_exit_code(self, tmp_path, capsys):
        service = MagicMock()
        service.analyze_file = AsyncMock(side_effect=NoElevationDataError())

        with patch('main.SlopeAnalysisService', return_value=service):
            code = main([str(tmp_path / 'aoi.kml')])

        assert code == 1
        assert 'no elevation data available' in capsys.readouterr().err

    def test_check_mode(self):
        with patch('main.validate_tile_source', new=AsyncMock()) as check:
            assert main(['--check']) == 0
        check.assert_awaited_once()

    def test_missing_input(self):
        with pytest.raises(SystemExit):
            main([])


class TestPrintReport:
    def test_shares(self, capsys):
        histogram = [(label, 0) for label, _ in legend()]
        histogram[0] = (histogram[0][0], 3)
        histogram[1] = (histogram[1][0], 1)
        print_report(histogram)
        out = capsys.readouterr().out
        assert '75.00%' in out
        assert '25.00%' in out
