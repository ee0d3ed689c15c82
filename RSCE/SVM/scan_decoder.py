# =============================================================================
# scan_decoder.py — Robot36 Receive Pipeline
# =============================================================================
#
# PCM samples → 320×240 grayscale raster.
#
#   header  ── detect_vis_header()   (optional; tells the sync scan where
#                                      the first real scan line can begin)
#   grid    ── find_sync_pulses()     refined sync positions, or a fixed
#                                      1.2 s + n·LINE_SAMPLES grid when fewer
#                                      than 10 pulses are found
#   pixels  ── detect_frequencies()   one autocorrelation window per pixel
#                                      across the 88.064 ms luma segment
#
# Only luma is reconstructed.  The chroma half of each line is skipped.
#
# All diagnostics (missing header, fallback timing, per-line sync
# substitutions) come back in a DecodeReport instead of being raised: a
# damaged capture still produces the best raster it can.
# =============================================================================

from __future__ import annotations
import logging
from typing import NamedTuple

import numpy as np

from RSCE.SMM.constants import (
    SAMPLE_RATE, PCM_FULL_SCALE, WIDTH, HEIGHT,
    HSYNC_SAMPLES, PORCH_SAMPLES, Y_SCAN_SAMPLES, LINE_SAMPLES,
    VIS_CODE_ROBOT36, MIN_SYNC_PULSES, FALLBACK_START_S,
)
from RSCE.SIO.wav_container import parse_wav, UnsupportedFormat
from .estimators import detect_frequencies, frequencies_to_pixels
from .sync_locator import SyncDeviation, find_sync_pulses
from .vis_detector import VisHeader, detect_vis_header

log = logging.getLogger(__name__)


class DecodeReport(NamedTuple):
    sample_count:  int
    vis:           VisHeader | None        # header found before the first line
    sync_count:    int                     # raw sync pulses detected
    fallback:      bool                    # fixed-timing grid was used
    line_spacing:  float | None            # average sync spacing (samples)
    deviations:    list[SyncDeviation]     # lines whose sync was substituted
    lines_decoded: int                     # rows filled in the raster


class DecodeResult(NamedTuple):
    image:  np.ndarray      # (240, 320) uint8
    report: DecodeReport


def fallback_grid(count: int = HEIGHT) -> list[float]:
    """Fixed-timing line starts used when sync detection fails."""
    origin = int(SAMPLE_RATE * FALLBACK_START_S)
    return [float(origin + n * LINE_SAMPLES) for n in range(count)]


def decode_line(signal: np.ndarray, sync_pos: float) -> np.ndarray | None:
    """
    Luma pixels of the line whose sync pulse starts at `sync_pos`.
    Returns None if the luma segment runs past the end of the signal.
    """
    start = sync_pos + HSYNC_SAMPLES + PORCH_SAMPLES
    if start + Y_SCAN_SAMPLES >= len(signal):
        return None

    spp     = Y_SCAN_SAMPLES / WIDTH
    centers = np.floor(start + (np.arange(WIDTH) + 0.5) * spp).astype(np.int64)
    freqs   = detect_frequencies(signal, centers, int(spp))
    return frequencies_to_pixels(freqs)


def decode_signal(signal: np.ndarray, use_vis: bool = True) -> DecodeResult:
    """
    Decode a normalized mono Robot36 capture.

    Parameters
    ----------
    signal  : float samples in [-1, 1), 44.1 kHz
    use_vis : look for the calibration header first and start the sync
              scan right after it

    Returns
    -------
    DecodeResult(image, report)
    """
    signal = np.asarray(signal, dtype=np.float64)
    log.info("decoding %d samples (%.2f s)", len(signal), len(signal) / SAMPLE_RATE)

    header = detect_vis_header(signal) if use_vis else None
    search_start = None
    if header is not None:
        search_start = header.end
        if header.code != VIS_CODE_ROBOT36:
            log.warning("VIS code 0x%02X is not Robot36 (0x%02X), decoding anyway",
                        header.code, VIS_CODE_ROBOT36)
        if not header.parity_ok:
            log.warning("VIS parity check failed")

    sync = find_sync_pulses(signal, search_start)

    fallback = len(sync.raw_positions) < MIN_SYNC_PULSES
    if fallback:
        log.warning(
            "only %d sync pulses found (need %d), using fixed timing from %.1f s",
            len(sync.raw_positions), MIN_SYNC_PULSES, FALLBACK_START_S,
        )
        grid = fallback_grid()
    else:
        grid = sync.positions[:HEIGHT]

    image = np.zeros((HEIGHT, WIDTH), dtype=np.uint8)
    lines = 0
    for row, pos in enumerate(grid):
        pixels = decode_line(signal, pos)
        if pixels is None:
            log.info("signal ends inside line %d", row)
            break
        image[row] = pixels
        lines += 1

    log.info("decoded %d/%d lines", lines, HEIGHT)

    report = DecodeReport(
        sample_count=len(signal),
        vis=header,
        sync_count=len(sync.raw_positions),
        fallback=fallback,
        line_spacing=sync.line_spacing,
        deviations=sync.deviations,
        lines_decoded=lines,
    )
    return DecodeResult(image=image, report=report)


def normalize_pcm(samples: np.ndarray) -> np.ndarray:
    """int16 PCM → float64 in [-1, 1)."""
    return np.asarray(samples, dtype=np.float64) / PCM_FULL_SCALE


def decode_wav_bytes(data: bytes, use_vis: bool = True) -> DecodeResult:
    """
    WAV container bytes → DecodeResult.

    Raises
    ------
    WavFormatError      the container cannot be parsed
    UnsupportedFormat   sample rate is not 44100 Hz
    """
    audio = parse_wav(data)
    if audio.sample_rate != SAMPLE_RATE:
        raise UnsupportedFormat(
            f"sample rate {audio.sample_rate} Hz is not supported (need {SAMPLE_RATE} Hz)"
        )
    return decode_signal(normalize_pcm(audio.samples), use_vis=use_vis)
