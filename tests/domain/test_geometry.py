"""Tests for geometry records and drawn-geometry constructors."""

import pytest

from domain.errors import (
    GeometryValidationError,
    NoPolygonGeometryError,
    SlopeAnalysisError,
)
from domain.geometry import (
    Feature,
    FeatureCollection,
    Geometry,
    make_line,
    make_point,
    make_polygon,
    polygon_features,
)
from shared.constants import GeometryType


class TestDrawnGeometry:
    def test_polygon_ring_auto_closed(self):
        feature = make_polygon([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)])
        ring = feature.geometry.coordinates[0]
        assert len(ring) == 4
        assert ring[0] == ring[-1]

    def test_closed_polygon_not_closed_twice(self):
        feature = make_polygon([(0, 0), (1, 0), (1, 1), (0, 0)])
        assert len(feature.geometry.coordinates[0]) == 4

    def test_polygon_needs_three_points(self):
        with pytest.raises(GeometryValidationError, match='at least 3 points'):
            make_polygon([(0.0, 0.0), (1.0, 1.0)])

    def test_line_needs_two_points(self):
        with pytest.raises(GeometryValidationError, match='at least 2 points'):
            make_line([(0.0, 0.0)])

    def test_validation_error_is_value_error(self):
        assert issubclass(GeometryValidationError, ValueError)
        assert issubclass(GeometryValidationError, SlopeAnalysisError)

    def test_point(self):
        assert make_point(1, 2).geometry.coordinates == (1.0, 2.0)


class TestGeometryModel:
    def test_altitude_dropped(self):
        geom = Geometry(type='LineString', coordinates=[[0, 0, 100], [1, 1, 200]])
        assert geom.coordinates == ((0.0, 0.0), (1.0, 1.0))

    def test_short_ring_rejected(self):
        with pytest.raises(ValueError):
            Geometry(type='Polygon', coordinates=[[[0, 0], [1, 1]]])

    def test_multipolygon_rings(self):
        geom = Geometry(
            type=GeometryType.MULTI_POLYGON,
            coordinates=[
                [[[0, 0], [1, 0], [1, 1], [0, 0]]],
                [[[2, 2], [3, 2], [3, 3], [2, 2]], [[2.1, 2.1], [2.5, 2.1], [2.5, 2.5]]],
            ],
        )
        assert geom.is_polygonal
        assert len(geom.polygon_rings()) == 3

    def test_geojson_roundtrip(self):
        fc = FeatureCollection.of(make_polygon([(0, 0), (1, 0), (1, 1)]))
        again = FeatureCollection.model_validate(fc.to_geojson())
        assert again == fc


class TestPolygonFeatures:
    def test_filters_non_polygons(self):
        fc = FeatureCollection.of(
            make_point(0, 0),
            make_polygon([(0, 0), (1, 0), (1, 1)]),
            Feature(geometry=None),
        )
        kept = polygon_features(fc)
        assert len(kept.features) == 1
        assert kept.features[0].geometry.type == GeometryType.POLYGON

    def test_no_polygon(self):
        fc = FeatureCollection.of(make_line([(0, 0), (1, 1)]))
        with pytest.raises(NoPolygonGeometryError):
            polygon_features(fc)

    @pytest.mark.parametrize(
        'points',
        [
            [(10.002, 49.995), (10.004, 49.995), (10.006, 49.995)],
            [(10.0, 49.0), (10.0, 49.5), (10.0, 50.0)],
        ],
    )
    def test_zero_extent_polygon(self, points):
        fc = FeatureCollection.of(make_polygon(points))
        with pytest.raises(GeometryValidationError, match='zero area'):
            polygon_features(fc)

    def test_flat_polygon_next_to_real_one_is_kept(self):
        fc = FeatureCollection.of(
            make_polygon([(0, 0), (1, 0), (2, 0)]),
            make_polygon([(0, 0), (1, 0), (1, 1)]),
        )
        assert len(polygon_features(fc).features) == 2
