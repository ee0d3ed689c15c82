import io

import numpy as np
import pytest
from PIL import Image

from RSCE.SMM.constants import SAMPLE_RATE, WIDTH, HEIGHT
from RSCE.SGM.frame_builder import encode_rgb
from RSCE.SIO.wav_container import serialize_wav
from RSCE.SVM.scan_decoder import decode_signal, normalize_pcm

# Grey levels of the three horizontal bands in band_raster()
BAND_LEVELS = (0, 255, 128)


def generate_tone(freq, duration_s, sample_rate=SAMPLE_RATE, amplitude=0.8):
    """Pure sine tone as float64 samples."""
    t = np.arange(int(duration_s * sample_rate)) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def band_raster():
    """320x240 RGB raster made of three equal horizontal grey bands."""
    rgb = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
    rows = HEIGHT // len(BAND_LEVELS)
    for i, level in enumerate(BAND_LEVELS):
        rgb[i * rows:(i + 1) * rows] = level
    return rgb


def png_bytes(rgb, mode="RGB"):
    buf = io.BytesIO()
    Image.fromarray(np.asarray(rgb, dtype=np.uint8)).convert(mode).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(scope="session")
def band_rgb():
    return band_raster()


@pytest.fixture(scope="session")
def encoded_pcm(band_rgb):
    return encode_rgb(band_rgb)


@pytest.fixture(scope="session")
def encoded_signal(encoded_pcm):
    return normalize_pcm(encoded_pcm)


@pytest.fixture(scope="session")
def encoded_wav(encoded_pcm):
    return serialize_wav(encoded_pcm)


@pytest.fixture(scope="session")
def decoded(encoded_signal):
    return decode_signal(encoded_signal)
