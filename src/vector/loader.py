"""Vector file loading by extension, and drawn-shape KML saving."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from domain.errors import InvalidVectorFileError
from domain.geometry import FeatureCollection
from shared.constants import DRAWN_SHAPES_KML_NAME
from vector.kml import generate_kml, parse_kml, read_vector_file

if TYPE_CHECKING:
    from collections.abc import Iterable

    from domain.geometry import Feature

logger = logging.getLogger(__name__)

GEOJSON_SUFFIXES = ('.geojson', '.json')
KML_SUFFIXES = ('.kml', '.kmz')


def load_features(path: str | Path) -> FeatureCollection:
    """
    Read .kml, .kmz or .geojson into a FeatureCollection.

    Raises:
        InvalidVectorFileError: unknown extension or malformed content.

    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix in GEOJSON_SUFFIXES:
        try:
            fc = FeatureCollection.model_validate_json(p.read_bytes())
        except ValidationError as e:
            msg = f'Invalid GeoJSON FeatureCollection: {e}'
            raise InvalidVectorFileError(msg) from e
    elif suffix in KML_SUFFIXES:
        fc = parse_kml(read_vector_file(p))
    else:
        msg = f'Unsupported vector file type: {p.name}'
        raise InvalidVectorFileError(msg)
    logger.info('Loaded %d features from %s', len(fc.features), p.name)
    return fc


def save_drawn_shapes(
    features: Iterable[Feature],
    directory: str | Path,
    name: str = DRAWN_SHAPES_KML_NAME,
) -> Path:
    out = Path(directory) / name
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(generate_kml(features), encoding='utf-8')
    logger.info('Drawn shapes saved: %s', out)
    return out
