"""Vector I/O - KML/KMZ/GeoJSON reading and drawn-shape KML writing."""

from vector.kml import (
    extract_kml_from_kmz,
    generate_kml,
    parse_coordinates,
    parse_kml,
    read_vector_file,
)
from vector.loader import load_features, save_drawn_shapes

__all__ = [
    'extract_kml_from_kmz',
    'generate_kml',
    'load_features',
    'parse_coordinates',
    'parse_kml',
    'read_vector_file',
    'save_drawn_shapes',
]
