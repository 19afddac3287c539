from enum import Enum

# Elevation tile source (Terrarium GeoTIFF tiles on AWS open data)
ELEVATION_TILES_BASE = 'https://s3.amazonaws.com/elevation-tiles-prod'
ELEVATION_TILE_URL_TEMPLATE = ELEVATION_TILES_BASE + '/geotiff/{z}/{x}/{y}.tif'

# Fixed zoom level for elevation tiles
TILE_ZOOM = 12

# Elevation tile size along one side (samples)
TILE_SIZE = 512

# Maximum zoom level accepted in settings
MAX_ZOOM = 15

# Maximum number of parallel HTTP requests
ASYNC_MAX_CONCURRENCY = 10

# HTTP timeouts and retries for a single tile
HTTP_TIMEOUT_DEFAULT = 20.0
HTTP_RETRIES_DEFAULT = 3
HTTP_BACKOFF_FACTOR = 1.6

HTTP_OK = 200
HTTP_5XX_MIN = 500
HTTP_5XX_MAX = 600

# On-disk HTTP cache for downloaded tiles
HTTP_CACHE_ENABLED = True
HTTP_CACHE_DIR = '.cache/tiles'
HTTP_CACHE_EXPIRE_HOURS = 168
HTTP_CACHE_RESPECT_HEADERS = True
HTTP_CACHE_STALE_IF_ERROR_HOURS = 72

# Elevation samples below this value are treated as nodata (meters)
NODATA_THRESHOLD_M = -10000.0

# Approximate length of one degree of latitude (meters)
METERS_PER_DEG_LAT = 111320.0

# Alpha of classified pixels (0..255), keeps the base map partially visible
SLOPE_OVERLAY_ALPHA = 210

# Log memory usage every N fetched tiles
LOG_MEMORY_EVERY_TILES = 50

# ESRI WKT for geographic WGS84, written to the .prj sidecar
WGS84_PRJ = (
    'GEOGCS["GCS_WGS_1984",DATUM["D_WGS_1984",'
    'SPHEROID["WGS_1984",6378137,298.257223563]],'
    'PRIMEM["Greenwich",0],UNIT["Degree",0.017453292519943295]]'
)

# Decimal places of world file values
WORLD_FILE_PRECISION = 12

# Names of the exported files
EXPORT_STEM = 'slope_analysis_clipped'
EXPORT_ARCHIVE_NAME = 'slope_analysis_output.zip'
DRAWN_SHAPES_KML_NAME = 'user_drawn_shapes.kml'
DRAWN_SHAPES_DOCUMENT_NAME = 'User Drawn Shapes'

# KML 2.2 namespace
KML_NAMESPACE = 'http://www.opengis.net/kml/2.2'

# Minimum vertices for drawn geometry
MIN_POINTS_FOR_LINE = 2
MIN_POINTS_FOR_POLYGON = 3

PROFILES_DIR = 'configs/profiles'
DEFAULT_PROFILE_NAME = 'default'


class FillRule(str, Enum):
    """Rule deciding which regions of overlapping rings are inside."""

    EVEN_ODD = 'evenodd'
    NONZERO = 'nonzero'


class GeometryType(str, Enum):
    POINT = 'Point'
    LINE_STRING = 'LineString'
    POLYGON = 'Polygon'
    MULTI_POLYGON = 'MultiPolygon'


class AnalysisStatus(str, Enum):
    IDLE = 'idle'
    PROCESSING = 'processing'
    DONE = 'done'
    ERROR = 'error'


# Slope classes: (upper bound in degrees, inclusive; label; color)
# The last class is open-ended.
SLOPE_CLASS_TABLE: tuple[tuple[float, str, str], ...] = (
    (2.0, '0° - 2°', '#2ecc71'),
    (5.0, '2° - 5°', '#58d68d'),
    (9.0, '5° - 9°', '#82e0aa'),
    (15.0, '9° - 15°', '#f7dc6f'),
    (20.0, '15° - 20°', '#f1c40f'),
    (25.0, '20° - 25°', '#f39c12'),
    (30.0, '25° - 30°', '#e67e22'),
    (35.0, '30° - 35°', '#d35400'),
    (45.0, '35° - 45°', '#c0392b'),
    (float('inf'), '> 45°', '#922b21'),
)
