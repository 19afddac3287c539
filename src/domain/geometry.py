"""
Vector geometry records (GeoJSON-shaped) and drawn-geometry constructors.

Coordinates are [longitude, latitude] in WGS84 degrees. Only Polygon and
MultiPolygon features drive terrain analysis; Point and LineString are kept
for display and KML export.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any, Literal

from pydantic import BaseModel, ValidationInfo, field_validator

from domain.errors import GeometryValidationError, NoPolygonGeometryError
from domain.models import GeoBoundingBox
from shared.constants import (
    MIN_POINTS_FOR_LINE,
    MIN_POINTS_FOR_POLYGON,
    GeometryType,
)

Position = tuple[float, float]
Ring = tuple[Position, ...]

_POLYGONAL = (GeometryType.POLYGON, GeometryType.MULTI_POLYGON)


def _position(value: Sequence[float]) -> Position:
    # Altitude (third value) is dropped
    if len(value) < 2:  # noqa: PLR2004
        msg = f'position needs longitude and latitude, got {value!r}'
        raise ValueError(msg)
    return float(value[0]), float(value[1])


def _ring(value: Sequence[Sequence[float]]) -> Ring:
    ring = tuple(_position(p) for p in value)
    if len(ring) < MIN_POINTS_FOR_POLYGON:
        msg = f'linear ring needs at least {MIN_POINTS_FOR_POLYGON} positions'
        raise ValueError(msg)
    return ring


class Geometry(BaseModel):
    model_config = {'frozen': True}

    type: GeometryType
    coordinates: Any

    @field_validator('coordinates')
    @classmethod
    def normalize_coordinates(cls, c: Any, info: ValidationInfo) -> Any:
        kind = info.data.get('type')
        if kind is None:
            # type failed validation, reported separately
            return c
        if kind == GeometryType.POINT:
            norm: Any = _position(c)
        elif kind == GeometryType.LINE_STRING:
            norm = tuple(_position(p) for p in c)
            if len(norm) < MIN_POINTS_FOR_LINE:
                msg = f'LineString needs at least {MIN_POINTS_FOR_LINE} positions'
                raise ValueError(msg)
        elif kind == GeometryType.POLYGON:
            norm = tuple(_ring(r) for r in c)
            if not norm:
                msg = 'Polygon needs an outer ring'
                raise ValueError(msg)
        else:
            norm = tuple(tuple(_ring(r) for r in poly) for poly in c)
            if not norm or any(not poly for poly in norm):
                msg = 'MultiPolygon needs at least one polygon with an outer ring'
                raise ValueError(msg)
        return norm

    @property
    def is_polygonal(self) -> bool:
        return self.type in _POLYGONAL

    def polygon_rings(self) -> list[Ring]:
        """Every ring of a Polygon or of each polygon of a MultiPolygon."""
        if self.type == GeometryType.POLYGON:
            return list(self.coordinates)
        if self.type == GeometryType.MULTI_POLYGON:
            return [ring for poly in self.coordinates for ring in poly]
        return []

    def iter_positions(self) -> Iterator[Position]:
        if self.type == GeometryType.POINT:
            yield self.coordinates
        elif self.type == GeometryType.LINE_STRING:
            yield from self.coordinates
        else:
            for ring in self.polygon_rings():
                yield from ring


class Feature(BaseModel):
    model_config = {'frozen': True}

    type: Literal['Feature'] = 'Feature'
    geometry: Geometry | None = None
    properties: dict[str, Any] = {}


class FeatureCollection(BaseModel):
    model_config = {'frozen': True}

    type: Literal['FeatureCollection'] = 'FeatureCollection'
    features: tuple[Feature, ...] = ()

    @field_validator('features', mode='before')
    @classmethod
    def coerce_features(cls, v: Any) -> Any:
        return tuple(v) if isinstance(v, list) else v

    @classmethod
    def of(cls, *features: Feature) -> FeatureCollection:
        return cls(features=features)

    def iter_positions(self) -> Iterator[Position]:
        for f in self.features:
            if f.geometry is not None:
                yield from f.geometry.iter_positions()

    def polygon_rings(self) -> list[Ring]:
        rings: list[Ring] = []
        for f in self.features:
            if f.geometry is not None:
                rings.extend(f.geometry.polygon_rings())
        return rings

    def bounds(self) -> GeoBoundingBox:
        return GeoBoundingBox.from_coordinates(self.iter_positions())

    def to_geojson(self) -> dict[str, Any]:
        return self.model_dump(mode='json')


def polygon_features(fc: FeatureCollection) -> FeatureCollection:
    """
    Keep only Polygon/MultiPolygon features; fail if none remain.

    Raises:
        NoPolygonGeometryError: no polygonal feature in the collection.
        GeometryValidationError: the polygons span no area (all vertices
            on one parallel or one meridian).

    """
    kept = tuple(
        f for f in fc.features if f.geometry is not None and f.geometry.is_polygonal
    )
    if not kept:
        raise NoPolygonGeometryError
    polygons = FeatureCollection(features=kept)
    lons, lats = zip(*polygons.iter_positions(), strict=True)
    if max(lons) <= min(lons) or max(lats) <= min(lats):
        msg = 'Polygon has zero area'
        raise GeometryValidationError(msg)
    return polygons


def make_point(lon: float, lat: float) -> Feature:
    return Feature(geometry=Geometry(type=GeometryType.POINT, coordinates=(lon, lat)))


def make_line(points: Sequence[Position]) -> Feature:
    """LineString from captured vertices, at least two required."""
    if len(points) < MIN_POINTS_FOR_LINE:
        msg = f'Line needs at least {MIN_POINTS_FOR_LINE} points.'
        raise GeometryValidationError(msg)
    return Feature(
        geometry=Geometry(type=GeometryType.LINE_STRING, coordinates=list(points)),
    )


def make_polygon(points: Sequence[Position]) -> Feature:
    """
    Polygon from captured vertices.

    At least three vertices are required. The ring is closed by repeating
    the first vertex.
    """
    if len(points) < MIN_POINTS_FOR_POLYGON:
        msg = f'Polygon needs at least {MIN_POINTS_FOR_POLYGON} points.'
        raise GeometryValidationError(msg)
    ring = [tuple(p) for p in points]
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    return Feature(geometry=Geometry(type=GeometryType.POLYGON, coordinates=[ring]))
