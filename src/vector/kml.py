"""
KML/KMZ reading and minimal KML writing.

Reading converts Placemarks into a FeatureCollection: Point, LineString,
Polygon (outer and inner rings) and MultiGeometry. A MultiGeometry made only
of polygons becomes one MultiPolygon feature; a mixed one is split into one
feature per member. Altitudes are dropped.

Writing produces one Placemark per drawn feature with no style, altitude or
inner rings; features without geometry are skipped.
"""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Any
from xml.etree import ElementTree as ET

from pydantic import ValidationError

from domain.errors import InvalidVectorFileError
from domain.geometry import Feature, FeatureCollection, Geometry
from shared.constants import (
    DRAWN_SHAPES_DOCUMENT_NAME,
    KML_NAMESPACE,
    GeometryType,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

_GEOMETRY_TAGS = ('Point', 'LineString', 'Polygon', 'MultiGeometry')


def _local(tag: Any) -> str:
    # '{namespace}Tag' -> 'Tag'
    return tag.rsplit('}', 1)[-1] if isinstance(tag, str) else ''


def _children(el: ET.Element, name: str) -> Iterator[ET.Element]:
    return (c for c in el if _local(c.tag) == name)


def _child(el: ET.Element, name: str) -> ET.Element | None:
    return next(_children(el, name), None)


def _descendants(el: ET.Element, name: str) -> Iterator[ET.Element]:
    return (c for c in el.iter() if _local(c.tag) == name)


def parse_coordinates(text: str | None) -> list[tuple[float, float]]:
    """'lon,lat[,alt] lon,lat[,alt] ...' -> [(lon, lat), ...]"""
    coords: list[tuple[float, float]] = []
    for token in (text or '').split():
        parts = token.split(',')
        if len(parts) < 2:  # noqa: PLR2004
            msg = f'Invalid KML coordinate: {token!r}'
            raise InvalidVectorFileError(msg)
        try:
            coords.append((float(parts[0]), float(parts[1])))
        except ValueError:
            msg = f'Invalid KML coordinate: {token!r}'
            raise InvalidVectorFileError(msg) from None
    return coords


def _ring_coords(boundary: ET.Element) -> list[tuple[float, float]]:
    ring = _child(boundary, 'LinearRing')
    if ring is None:
        return []
    return parse_coordinates(getattr(_child(ring, 'coordinates'), 'text', None))


def _geometry_parts(el: ET.Element) -> list[tuple[GeometryType, Any]]:
    """(type, coordinates) for a KML geometry element, MultiGeometry flattened."""
    name = _local(el.tag)
    if name == 'Point':
        coords = parse_coordinates(getattr(_child(el, 'coordinates'), 'text', None))
        return [(GeometryType.POINT, coords[0])] if coords else []
    if name == 'LineString':
        coords = parse_coordinates(getattr(_child(el, 'coordinates'), 'text', None))
        return [(GeometryType.LINE_STRING, coords)] if coords else []
    if name == 'Polygon':
        outer = _child(el, 'outerBoundaryIs')
        if outer is None:
            return []
        rings = [_ring_coords(outer)]
        rings.extend(_ring_coords(b) for b in _children(el, 'innerBoundaryIs'))
        rings = [r for r in rings if r]
        return [(GeometryType.POLYGON, rings)] if rings else []
    if name == 'MultiGeometry':
        parts: list[tuple[GeometryType, Any]] = []
        for child in el:
            if _local(child.tag) in _GEOMETRY_TAGS:
                parts.extend(_geometry_parts(child))
        return parts
    return []


def _placemark_features(pm: ET.Element) -> list[Feature]:
    props: dict[str, Any] = {}
    for key in ('name', 'description'):
        node = _child(pm, key)
        if node is not None and node.text:
            props[key] = node.text.strip()

    parts: list[tuple[GeometryType, Any]] = []
    for child in pm:
        if _local(child.tag) in _GEOMETRY_TAGS:
            parts.extend(_geometry_parts(child))
    if not parts:
        return []

    is_multi = len(parts) > 1
    if is_multi and all(kind == GeometryType.POLYGON for kind, _ in parts):
        parts = [(GeometryType.MULTI_POLYGON, [coords for _, coords in parts])]

    try:
        return [
            Feature(geometry=Geometry(type=kind, coordinates=coords), properties=props)
            for kind, coords in parts
        ]
    except ValidationError as e:
        msg = f'Invalid geometry in placemark {props.get("name", "")!r}: {e}'
        raise InvalidVectorFileError(msg) from e


def parse_kml(text: str) -> FeatureCollection:
    """KML document text -> FeatureCollection."""
    try:
        root = ET.fromstring(text)  # noqa: S314
    except ET.ParseError as e:
        msg = f'Invalid KML data structure: {e}'
        raise InvalidVectorFileError(msg) from e
    if _local(root.tag) != 'kml':
        msg = f'Invalid KML data structure: root element is <{_local(root.tag)}>'
        raise InvalidVectorFileError(msg)

    features: list[Feature] = []
    for pm in _descendants(root, 'Placemark'):
        features.extend(_placemark_features(pm))
    logger.info('KML parsed: %d features', len(features))
    return FeatureCollection(features=features)


def extract_kml_from_kmz(data: bytes) -> str:
    """Text of the first .kml member of a KMZ archive."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            name = next(
                (n for n in zf.namelist() if n.lower().endswith('.kml')),
                None,
            )
            if name is None:
                msg = 'Invalid KMZ: No KML file found inside.'
                raise InvalidVectorFileError(msg)
            raw = zf.read(name)
    except zipfile.BadZipFile as e:
        msg = f'Invalid KMZ archive: {e}'
        raise InvalidVectorFileError(msg) from e
    return raw.decode('utf-8-sig')


def read_vector_file(source: str | Path | bytes) -> str:
    """
    KML text from a .kml/.kmz path or from raw file bytes.

    Zip content is detected by its signature, not by the file name.
    """
    data = source if isinstance(source, bytes) else Path(source).read_bytes()
    if zipfile.is_zipfile(io.BytesIO(data)):
        return extract_kml_from_kmz(data)
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        msg = f'KML file is not valid UTF-8: {e}'
        raise InvalidVectorFileError(msg) from e


def _num(value: float) -> str:
    s = repr(float(value))
    return s[:-2] if s.endswith('.0') else s


def _pair(pos: tuple[float, float]) -> str:
    return f'{_num(pos[0])},{_num(pos[1])}'


def _polygon_lines(ring: Iterable[tuple[float, float]], indent: str) -> list[str]:
    lines = [
        f'{indent}<Polygon>',
        f'{indent}  <outerBoundaryIs>',
        f'{indent}    <LinearRing>',
        f'{indent}      <coordinates>',
    ]
    lines.extend(f'{indent}        {_pair(p)}' for p in ring)
    lines.extend(
        [
            f'{indent}      </coordinates>',
            f'{indent}    </LinearRing>',
            f'{indent}  </outerBoundaryIs>',
            f'{indent}</Polygon>',
        ],
    )
    return lines


def _geometry_lines(geom: Geometry) -> list[str]:
    if geom.type == GeometryType.POINT:
        return [
            f'      <Point><coordinates>{_pair(geom.coordinates)}</coordinates></Point>',
        ]
    if geom.type == GeometryType.LINE_STRING:
        coords = ' '.join(_pair(p) for p in geom.coordinates)
        return [f'      <LineString><coordinates>{coords}</coordinates></LineString>']
    if geom.type == GeometryType.POLYGON:
        return _polygon_lines(geom.coordinates[0], '      ')
    lines = ['      <MultiGeometry>']
    for poly in geom.coordinates:
        lines.extend(_polygon_lines(poly[0], '        '))
    lines.append('      </MultiGeometry>')
    return lines


def generate_kml(features: Iterable[Feature]) -> str:
    """
    Placemark KML for drawn shapes.

    Points, lines and polygon outer rings are written; a MultiPolygon becomes
    a MultiGeometry of its outer rings. Features without geometry are skipped
    and do not take a shape number.
    """
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<kml xmlns="{KML_NAMESPACE}">',
        '  <Document>',
        f'    <name>{DRAWN_SHAPES_DOCUMENT_NAME}</name>',
    ]
    shapes = [f.geometry for f in features if f.geometry is not None]
    for i, geom in enumerate(shapes, start=1):
        lines.append('    <Placemark>')
        lines.append(f'      <name>Shape {i}</name>')
        lines.extend(_geometry_lines(geom))
        lines.append('    </Placemark>')
    lines.extend(['  </Document>', '</kml>'])
    return '\n'.join(lines)
