# =============================================================================
# frame_builder.py — Robot36 Frame Builder
# =============================================================================
#
# Turns a 320×240 RGB raster into one complete Robot36 transmission.
#
# TRANSMISSION LAYOUT:
#
#   Header   1900 Hz 300 ms | 1200 Hz 10 ms | 1900 Hz 300 ms | VIS (10 × 30 ms)
#   VIS      start 1200 | 7 data bits LSB first | even parity | stop 1200
#            bit 1 = 1100 Hz, bit 0 = 1300 Hz
#
#   Each of the 240 lines:
#     sync 1200 Hz 9 ms | porch 1500 Hz 3 ms | Y 88.064 ms
#     | sep 1500 Hz 4.5 ms | porch 1900 Hz 1.5 ms | chroma 44.032 ms
#
#   Chroma alternates: V (R-Y) on even lines, U (B-Y) on odd lines, each
#   decimated to 160 samples by keeping every second pixel.
#
# SAMPLE COUNT:
#   header  = 13230 + 441 + 13230 + 10 * 1323           = 40131
#   line    = 396 + 132 + 3883 + 198 + 66 + 1941         = 6616
#   total   = 40131 + 240 * 6616                          = 1,627,971
# =============================================================================

from __future__ import annotations
from typing import NamedTuple

import numpy as np

from RSCE.SMM.constants import (
    SAMPLE_RATE, WIDTH, HEIGHT,
    FREQ_SYNC, FREQ_PORCH, FREQ_LEADER,
    FREQ_SEP_LOW, FREQ_SEP_HIGH,
    FREQ_VIS_ONE, FREQ_VIS_ZERO,
    LEADER_MS, BREAK_MS, VIS_BIT_MS,
    HSYNC_MS, PORCH_MS, Y_SCAN_MS, SEP_LOW_MS, SEP_HIGH_MS, UV_SCAN_MS,
    VIS_CODE_ROBOT36, VIS_DATA_BITS,
)
from RSCE.SIO.wav_container import serialize_wav
from .tone_encoder import ToneEncoder


class YuvPlanes(NamedTuple):
    y: np.ndarray   # (height, width) float32, [0, 255]
    u: np.ndarray
    v: np.ndarray


def rgb_to_yuv(rgb: np.ndarray) -> YuvPlanes:
    """
    Fixed-coefficient BT.601-style conversion of an (H, W, 3) RGB raster.

        Y = 0.299 R + 0.587 G + 0.114 B
        U = 0.492 (B - Y) + 128
        V = 0.877 (R - Y) + 128

    Each plane is clamped to [0, 255].
    """
    rgb = np.asarray(rgb, dtype=np.float32)
    if rgb.ndim != 3 or rgb.shape[2] < 3:
        raise ValueError(f"expected an (H, W, 3) RGB raster, got shape {rgb.shape}")
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    y = 0.299 * r + 0.587 * g + 0.114 * b
    u = (b - y) * 0.492 + 128
    v = (r - y) * 0.877 + 128

    return YuvPlanes(
        y=np.clip(y, 0, 255),
        u=np.clip(u, 0, 255),
        v=np.clip(v, 0, 255),
    )


def decimate_chroma(row: np.ndarray) -> np.ndarray:
    """Keep every second chroma sample (no averaging): 320 → 160."""
    return np.asarray(row)[::2]


def vis_tones(code: int = VIS_CODE_ROBOT36) -> list[tuple[int, float]]:
    """
    The VIS block as (frequency, ms) pairs: start bit, 7 data bits LSB
    first, even-parity bit, stop bit.
    """
    tones  = [(FREQ_SYNC, VIS_BIT_MS)]
    parity = 0
    for i in range(VIS_DATA_BITS):
        bit = (code >> i) & 1
        parity ^= bit
        tones.append((FREQ_VIS_ONE if bit else FREQ_VIS_ZERO, VIS_BIT_MS))
    tones.append((FREQ_VIS_ONE if parity else FREQ_VIS_ZERO, VIS_BIT_MS))
    tones.append((FREQ_SYNC, VIS_BIT_MS))
    return tones


def header_tones(code: int = VIS_CODE_ROBOT36) -> list[tuple[int, float]]:
    """Calibration leader, break, leader, then the VIS block."""
    return [
        (FREQ_LEADER, LEADER_MS),
        (FREQ_SYNC,   BREAK_MS),
        (FREQ_LEADER, LEADER_MS),
    ] + vis_tones(code)


class Robot36FrameBuilder:
    """
    Builds the complete PCM stream for one image.

    Example:
        planes  = rgb_to_yuv(rgb)
        builder = Robot36FrameBuilder(planes)
        pcm     = builder.build()          # int16 ndarray, mono, 44.1 kHz
    """

    def __init__(self, planes: YuvPlanes, vis_code: int = VIS_CODE_ROBOT36) -> None:
        if planes.y.shape != (HEIGHT, WIDTH):
            raise ValueError(
                f"planes must be {HEIGHT}x{WIDTH}, got {planes.y.shape[0]}x{planes.y.shape[1]}"
            )
        self.planes   = planes
        self.vis_code = vis_code

    # ── Segments ─────────────────────────────────────────────────────────────

    def _header(self, enc: ToneEncoder) -> None:
        for freq, ms in header_tones(self.vis_code):
            enc.tone(freq, ms)

    def _line(self, enc: ToneEncoder, line: int) -> None:
        enc.tone(FREQ_SYNC,  HSYNC_MS)
        enc.tone(FREQ_PORCH, PORCH_MS)
        enc.scanline(self.planes.y[line], Y_SCAN_MS)
        enc.tone(FREQ_SEP_LOW,  SEP_LOW_MS)
        enc.tone(FREQ_SEP_HIGH, SEP_HIGH_MS)

        chroma = self.planes.v if line % 2 == 0 else self.planes.u
        enc.scanline(decimate_chroma(chroma[line]), UV_SCAN_MS)

    # ── PCM stream builder ───────────────────────────────────────────────────

    def build(self) -> np.ndarray:
        """Header plus all 240 lines as one phase-continuous int16 array."""
        enc = ToneEncoder()
        self._header(enc)
        for line in range(HEIGHT):
            self._line(enc, line)
        return enc.samples()


def encode_rgb(rgb: np.ndarray) -> np.ndarray:
    """320×240 RGB raster → Robot36 int16 PCM samples."""
    return Robot36FrameBuilder(rgb_to_yuv(rgb)).build()


def encode_rgb_to_wav(rgb: np.ndarray) -> bytes:
    """320×240 RGB raster → mono 16-bit 44.1 kHz WAV container bytes."""
    return serialize_wav(encode_rgb(rgb), SAMPLE_RATE, 1)
