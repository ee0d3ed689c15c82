"""Tests for the Pillow image adapter."""

import io

import numpy as np
import pytest
from PIL import Image

from RSCE.SIO.image_io import ImageFormatError, encode_gray, load_rgb

from conftest import png_bytes


class TestLoadRgb:
    def test_resizes_to_frame(self):
        rgb = load_rgb(png_bytes(np.full((50, 80, 3), 200, dtype=np.uint8)))
        assert rgb.shape == (240, 320, 3)
        assert rgb.dtype == np.uint8
        assert (rgb == 200).all()

    def test_ignores_aspect_ratio(self):
        """A tall image is stretched, not letterboxed."""
        rgb = load_rgb(png_bytes(np.full((400, 100, 3), 30, dtype=np.uint8)))
        assert rgb.shape == (240, 320, 3)
        assert (rgb == 30).all()

    def test_drops_alpha(self):
        rgba = np.zeros((10, 10, 4), dtype=np.uint8)
        rgba[..., 0] = 255
        rgba[..., 3] = 128
        rgb = load_rgb(png_bytes(rgba, mode="RGBA"))
        assert rgb.shape == (240, 320, 3)

    def test_grayscale_input(self):
        rgb = load_rgb(png_bytes(np.full((10, 10, 3), 90, dtype=np.uint8), mode="L"))
        assert rgb.shape == (240, 320, 3)
        assert (rgb == 90).all()

    def test_jpeg_input(self):
        buf = io.BytesIO()
        Image.new("RGB", (64, 48), (10, 200, 10)).save(buf, format="JPEG")
        assert load_rgb(buf.getvalue()).shape == (240, 320, 3)

    def test_garbage_rejected(self):
        with pytest.raises(ImageFormatError):
            load_rgb(b"definitely not an image")

    def test_error_is_value_error(self):
        assert issubclass(ImageFormatError, ValueError)


class TestEncodeGray:
    def test_png_round_trip(self):
        raster = np.arange(240 * 320, dtype=np.uint32).reshape(240, 320) % 256
        data = encode_gray(raster.astype(np.uint8))
        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        with Image.open(io.BytesIO(data)) as img:
            assert img.mode == "L"
            assert img.size == (320, 240)
            np.testing.assert_array_equal(np.asarray(img), raster)

    def test_other_format(self):
        data = encode_gray(np.zeros((240, 320), dtype=np.uint8), fmt="BMP")
        assert data[:2] == b"BM"

    def test_rejects_colour_raster(self):
        with pytest.raises(ValueError):
            encode_gray(np.zeros((240, 320, 3), dtype=np.uint8))
