"""GeoTIFF elevation tile decoding."""

from __future__ import annotations

import numpy as np
from rasterio.errors import RasterioError
from rasterio.io import MemoryFile


class TileDecodeError(ValueError):
    pass


def decode_elevation_tile(data: bytes) -> np.ndarray:
    """
    Decode a single-band GeoTIFF into a float32 (height, width) array.

    Samples equal to the dataset nodata value are replaced by -inf, so they
    fall below any nodata threshold.
    """
    if not data:
        msg = 'empty tile body'
        raise TileDecodeError(msg)
    try:
        with MemoryFile(data) as memfile, memfile.open() as src:
            if src.count < 1:
                msg = 'tile has no raster bands'
                raise TileDecodeError(msg)
            samples = src.read(1).astype(np.float32)
            nodata = src.nodata
    except RasterioError as e:
        msg = f'cannot decode GeoTIFF tile: {e}'
        raise TileDecodeError(msg) from e

    if nodata is not None and not np.isnan(nodata):
        samples[samples == np.float32(nodata)] = -np.inf
    samples[np.isnan(samples)] = -np.inf
    return samples
