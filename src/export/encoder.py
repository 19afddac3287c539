"""
Georeferenced export of a clipped slope raster.

The image is written as an RGBA TIFF; georeferencing travels in sidecars:
a six-line world file (pixel-center origin) and a WGS84 .prj.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from shared.constants import WGS84_PRJ, WORLD_FILE_PRECISION

if TYPE_CHECKING:
    from dem.mosaic import Mosaic

Affine = tuple[float, float, float, float, float, float]


@dataclass
class ExportArtifact:
    pixels: np.ndarray
    image_bytes: bytes
    affine: Affine
    projection: str

    @property
    def world_file(self) -> str:
        return world_file_text(self.affine)


def world_file_affine(
    west: float,
    north: float,
    pixel_w: float,
    pixel_h: float,
) -> Affine:
    """[pixelW, 0, 0, -pixelH, originX, originY] with the origin at the
    center of the upper-left pixel."""
    return (
        pixel_w,
        0.0,
        0.0,
        -pixel_h,
        west + pixel_w / 2.0,
        north - pixel_h / 2.0,
    )


def _fmt(value: float) -> str:
    if value == 0:
        return '0'
    return f'{value:.{WORLD_FILE_PRECISION}f}'


def world_file_text(affine: Affine) -> str:
    return '\n'.join(_fmt(v) for v in affine)


def encode_image(rgba: np.ndarray, fmt: str = 'TIFF') -> bytes:
    img = Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))
    if img.mode != 'RGBA':
        img = img.convert('RGBA')
    buf = io.BytesIO()
    if fmt.upper() == 'TIFF':
        img.save(buf, format='TIFF', compression='tiff_adobe_deflate')
    else:
        img.save(buf, format=fmt)
    return buf.getvalue()


def encode(clipped_rgba: np.ndarray, mosaic: Mosaic) -> ExportArtifact:
    affine = world_file_affine(
        mosaic.west,
        mosaic.north,
        mosaic.deg_per_pixel_x,
        mosaic.deg_per_pixel_y,
    )
    return ExportArtifact(
        pixels=clipped_rgba,
        image_bytes=encode_image(clipped_rgba),
        affine=affine,
        projection=WGS84_PRJ,
    )
