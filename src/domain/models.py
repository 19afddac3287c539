from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, field_validator, model_validator

from shared.constants import (
    ASYNC_MAX_CONCURRENCY,
    ELEVATION_TILE_URL_TEMPLATE,
    HTTP_BACKOFF_FACTOR,
    HTTP_CACHE_ENABLED,
    HTTP_RETRIES_DEFAULT,
    HTTP_TIMEOUT_DEFAULT,
    MAX_ZOOM,
    NODATA_THRESHOLD_M,
    SLOPE_OVERLAY_ALPHA,
    TILE_SIZE,
    TILE_ZOOM,
    FillRule,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


class GeoBoundingBox(BaseModel):
    """Area of interest in WGS84 degrees (no antimeridian wraparound)."""

    model_config = {'frozen': True}

    north: float
    south: float
    east: float
    west: float

    @model_validator(mode='after')
    def validate_extent(self) -> GeoBoundingBox:
        if not self.north > self.south:
            msg = f'north ({self.north}) must be greater than south ({self.south})'
            raise ValueError(msg)
        if not self.east > self.west:
            msg = f'east ({self.east}) must be greater than west ({self.west})'
            raise ValueError(msg)
        return self

    @classmethod
    def from_coordinates(
        cls,
        coords: Iterable[tuple[float, float]],
    ) -> GeoBoundingBox:
        """Bounds of (lon, lat) pairs."""
        lons: list[float] = []
        lats: list[float] = []
        for lon, lat in coords:
            lons.append(float(lon))
            lats.append(float(lat))
        if not lons:
            msg = 'cannot compute bounds of an empty coordinate set'
            raise ValueError(msg)
        return cls(north=max(lats), south=min(lats), east=max(lons), west=min(lons))

    @property
    def center(self) -> tuple[float, float]:
        return (self.west + self.east) / 2.0, (self.north + self.south) / 2.0


class AnalysisSettings(BaseModel):
    """
    Settings of one slope analysis.

    Defaults come from shared.constants; profiles in configs/profiles
    override them.
    """

    model_config = {
        'extra': 'ignore',  # ignore unknown keys from profiles
    }

    zoom: int = TILE_ZOOM
    tile_size: int = TILE_SIZE
    tile_url_template: str = ELEVATION_TILE_URL_TEMPLATE

    # HTTP
    concurrency: int = ASYNC_MAX_CONCURRENCY
    timeout_s: float = HTTP_TIMEOUT_DEFAULT
    retries: int = HTTP_RETRIES_DEFAULT
    backoff_factor: float = HTTP_BACKOFF_FACTOR
    use_http_cache: bool = HTTP_CACHE_ENABLED

    # Slope raster
    nodata_threshold: float = NODATA_THRESHOLD_M
    overlay_alpha: int = SLOPE_OVERLAY_ALPHA

    # Clipping
    fill_rule: FillRule = FillRule.EVEN_ODD

    @field_validator('zoom')
    @classmethod
    def validate_zoom(cls, v: int) -> int:
        if not (0 <= v <= MAX_ZOOM):
            msg = f'zoom must be in [0, {MAX_ZOOM}]'
            raise ValueError(msg)
        return v

    @field_validator('tile_size', 'concurrency', 'retries')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            msg = 'value must be >= 1'
            raise ValueError(msg)
        return v

    @field_validator('timeout_s')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            msg = 'timeout must be positive'
            raise ValueError(msg)
        return v

    @field_validator('overlay_alpha')
    @classmethod
    def validate_alpha(cls, v: int) -> int:
        # Clamp into byte range
        return max(0, min(255, int(v)))

    @field_validator('tile_url_template')
    @classmethod
    def validate_template(cls, v: str) -> str:
        for key in ('{z}', '{x}', '{y}'):
            if key not in v:
                msg = f'tile_url_template must contain {key}'
                raise ValueError(msg)
        return v

    def tile_url(self, z: int, x: int, y: int) -> str:
        return self.tile_url_template.format(z=z, x=x, y=y)
