# =============================================================================
# tone_encoder.py — Phase-Continuous FSK Tone Encoder
# =============================================================================
#
# Converts (frequency, duration) segments into raw 16-bit signed PCM samples.
#
# PHASE RULES:
#   - Every sample is sin(phase) * 32767, truncated toward zero.
#   - After each sample, phase += 2*pi*f / SAMPLE_RATE.
#   - The phase accumulator is NEVER reset between segments, so a 1200 Hz
#     sync running into a 1500 Hz porch has no step in the waveform.
#   - Phase is wrapped modulo 2*pi once per segment (not per sample) to keep
#     the float from growing without bound over a 37 s frame.
#
# Segment length is int(ms * SAMPLE_RATE / 1000): lengths are floored, the
# fractional remainder of each segment is dropped, not carried over.
# =============================================================================

from __future__ import annotations
import math
from typing import Sequence

import numpy as np

from RSCE.SMM.constants import (
    SAMPLE_RATE, PCM_AMPLITUDE,
    FREQ_BLACK, FREQ_RANGE,
)

TWO_PI = 2.0 * math.pi


def samples_for(ms: float) -> int:
    """Number of samples in a segment of `ms` milliseconds."""
    return int(ms * SAMPLE_RATE / 1000)


def value_to_frequency(values: np.ndarray) -> np.ndarray:
    """Linear map of [0, 255] intensities onto [1500, 2300] Hz."""
    return FREQ_BLACK + (np.asarray(values, dtype=np.float64) / 255.0) * FREQ_RANGE


class ToneEncoder:
    """
    Stateful tone encoder. Keeps the oscillator phase between calls so that
    consecutive segments form one continuous waveform.

    Usage:
        enc = ToneEncoder()
        enc.tone(1200, 9.0)               # sync
        enc.scanline(luma_row, 88.064)    # pixel data
        pcm = enc.samples()               # int16 ndarray
    """

    def __init__(self, initial_phase: float = 0.0) -> None:
        self._phase = initial_phase
        self._chunks: list[np.ndarray] = []
        self._count = 0

    def reset(self, phase: float = 0.0) -> None:
        """Drop everything appended so far (use only between frames)."""
        self._phase = phase
        self._chunks = []
        self._count = 0

    @property
    def phase(self) -> float:
        return self._phase

    def __len__(self) -> int:
        return self._count

    # ── Core oscillator ─────────────────────────────────────────────────────

    def _append(self, freqs: np.ndarray) -> np.ndarray:
        if len(freqs) == 0:
            return np.zeros(0, dtype=np.int16)

        steps  = TWO_PI * freqs / SAMPLE_RATE
        # phase seen by sample i is the sum of the steps before it
        phases = np.empty(len(steps), dtype=np.float64)
        phases[0] = self._phase
        np.cumsum(steps[:-1], out=phases[1:])
        phases[1:] += self._phase

        pcm = (np.sin(phases) * PCM_AMPLITUDE).astype(np.int16)

        self._phase = (phases[-1] + steps[-1]) % TWO_PI
        self._chunks.append(pcm)
        self._count += len(pcm)
        return pcm

    def tone(self, freq: float, ms: float) -> np.ndarray:
        """Append a constant tone. Returns the samples just generated."""
        return self._append(np.full(samples_for(ms), float(freq)))

    def scanline(self, values: Sequence[float] | np.ndarray, ms: float) -> np.ndarray:
        """
        Append one line of pixel values stretched over `ms` milliseconds.

        Each output sample picks its source pixel by proportional position
        (nearest neighbour, no interpolation): index = i * n // count.
        """
        values = np.asarray(values, dtype=np.float64)
        count  = samples_for(ms)
        n      = len(values)
        if n == 0:
            raise ValueError("scanline needs at least one pixel value")
        idx = np.minimum(np.arange(count, dtype=np.int64) * n // count, n - 1)
        return self._append(value_to_frequency(values[idx]))

    # ── Output helpers ──────────────────────────────────────────────────────

    def samples(self) -> np.ndarray:
        """All samples appended so far as one int16 array."""
        if not self._chunks:
            return np.zeros(0, dtype=np.int16)
        return np.concatenate(self._chunks)
