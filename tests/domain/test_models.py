"""Tests for analysis settings and bounding box models."""

import pytest

from domain.models import AnalysisSettings, GeoBoundingBox
from shared.constants import TILE_SIZE, TILE_ZOOM, FillRule


class TestAnalysisSettingsValidators:
    """Tests for AnalysisSettings validators."""

    def test_defaults_from_constants(self):
        settings = AnalysisSettings()
        assert settings.zoom == TILE_ZOOM
        assert settings.tile_size == TILE_SIZE
        assert settings.fill_rule == FillRule.EVEN_ODD
        assert settings.overlay_alpha == 210

    def test_zoom_out_of_range(self):
        with pytest.raises(ValueError):
            AnalysisSettings(zoom=16)
        with pytest.raises(ValueError):
            AnalysisSettings(zoom=-1)

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            AnalysisSettings(concurrency=0)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            AnalysisSettings(timeout_s=0)

    def test_alpha_clamped_to_byte(self):
        assert AnalysisSettings(overlay_alpha=400).overlay_alpha == 255
        assert AnalysisSettings(overlay_alpha=-3).overlay_alpha == 0

    def test_template_requires_placeholders(self):
        with pytest.raises(ValueError):
            AnalysisSettings(tile_url_template='https://example.com/{z}/{x}.tif')

    def test_fill_rule_from_string(self):
        assert AnalysisSettings(fill_rule='nonzero').fill_rule == FillRule.NONZERO

    def test_unknown_keys_ignored(self):
        settings = AnalysisSettings.model_validate({'zoom': 11, 'legacy': True})
        assert settings.zoom == 11

    def test_tile_url(self):
        settings = AnalysisSettings(tile_url_template='http://t/{z}/{x}/{y}.tif')
        assert settings.tile_url(12, 3, 4) == 'http://t/12/3/4.tif'


class TestGeoBoundingBox:
    def test_from_coordinates(self):
        bbox = GeoBoundingBox.from_coordinates([(10.0, 50.0), (10.5, 49.5), (9.5, 50.2)])
        assert (bbox.north, bbox.south, bbox.east, bbox.west) == (50.2, 49.5, 10.5, 9.5)
        assert bbox.center == pytest.approx((10.0, 49.85))

    def test_inverted_extent_rejected(self):
        with pytest.raises(ValueError):
            GeoBoundingBox(north=1.0, south=2.0, east=1.0, west=0.0)
        with pytest.raises(ValueError):
            GeoBoundingBox(north=2.0, south=1.0, east=0.0, west=0.0)

    def test_empty_coordinates(self):
        with pytest.raises(ValueError):
            GeoBoundingBox.from_coordinates([])
