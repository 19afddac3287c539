"""Tests for georeferenced export encoding."""

import io

import numpy as np
import pytest
from PIL import Image

from export.encoder import encode, encode_image, world_file_affine, world_file_text
from shared.constants import WGS84_PRJ


class TestWorldFile:
    def test_pixel_center_origin(self):
        affine = world_file_affine(10.0, 50.0, 0.001, 0.001)
        assert affine[0] == pytest.approx(0.001)
        assert affine[1] == 0.0
        assert affine[2] == 0.0
        assert affine[3] == pytest.approx(-0.001)
        assert affine[4] == pytest.approx(10.0005)
        assert affine[5] == pytest.approx(49.9995)

    def test_text_format(self):
        text = world_file_text(world_file_affine(10.0, 50.0, 0.001, 0.001))
        assert text.splitlines() == [
            '0.001000000000',
            '0',
            '0',
            '-0.001000000000',
            '10.000500000000',
            '49.999500000000',
        ]


class TestEncode:
    def test_encode_image_roundtrips_rgba(self):
        rgba = np.zeros((3, 4, 4), dtype=np.uint8)
        rgba[1, 2] = (46, 204, 113, 210)
        img = Image.open(io.BytesIO(encode_image(rgba)))
        assert img.format == 'TIFF'
        assert img.mode == 'RGBA'
        assert img.size == (4, 3)
        assert img.getpixel((2, 1)) == (46, 204, 113, 210)

    def test_encode_png(self):
        data = encode_image(np.zeros((2, 2, 4), dtype=np.uint8), fmt='PNG')
        assert data.startswith(b'\x89PNG')

    def test_encode_from_mosaic(self, make_mosaic):
        mosaic = make_mosaic(np.zeros((10, 20)))
        rgba = np.zeros((10, 20, 4), dtype=np.uint8)
        artifact = encode(rgba, mosaic)

        assert artifact.projection == WGS84_PRJ
        assert artifact.affine[4] == pytest.approx(10.0005)
        assert artifact.affine[5] == pytest.approx(49.9995)
        assert artifact.world_file.splitlines()[4] == '10.000500000000'
        assert artifact.pixels is rgba
        assert Image.open(io.BytesIO(artifact.image_bytes)).size == (20, 10)
