"""Domain layer - analysis settings, geometry records, typed errors, profiles."""
from domain.errors import (
    GeometryValidationError,
    InvalidVectorFileError,
    NoElevationDataError,
    NoPolygonGeometryError,
    SlopeAnalysisError,
    StaleRequestError,
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
from domain.models import AnalysisSettings, GeoBoundingBox
from domain.profiles import (
    delete_profile,
    ensure_profiles_dir,
    list_profiles,
    load_profile,
    save_profile,
)

__all__ = [
    'AnalysisSettings',
    'Feature',
    'FeatureCollection',
    'GeoBoundingBox',
    'Geometry',
    'GeometryValidationError',
    'InvalidVectorFileError',
    'NoElevationDataError',
    'NoPolygonGeometryError',
    'SlopeAnalysisError',
    'StaleRequestError',
    'delete_profile',
    'ensure_profiles_dir',
    'list_profiles',
    'load_profile',
    'save_profile',
    'make_line',
    'make_point',
    'make_polygon',
    'polygon_features',
]
