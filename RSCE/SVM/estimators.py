# =============================================================================
# estimators.py — Tone Power and Pitch Estimators
# =============================================================================
#
# Two pure functions over read-only sample windows.  Neither keeps state, so
# any number of lines / pixels can be evaluated independently.
#
# goertzel_power()     single-bin power at one target frequency.  Used by the
#                      sync locator and the VIS header detector, where only
#                      "is 1200 Hz here?" matters.  O(window) per call.
#
# detect_frequency()   dominant period by normalized autocorrelation, limited
#                      to the 1500–2300 Hz pixel band.  Used once per output
#                      pixel, so this is where decode time goes.
#                      detect_frequencies() is the same computation for many
#                      windows at once and is what the decoder actually calls.
#
# Out-of-range windows are not errors: power reads as 0.0 and pitch reads as
# black (1500 Hz), so a short or damaged capture decodes towards black
# instead of aborting.
# =============================================================================

from __future__ import annotations
import math
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from RSCE.SMM.constants import (
    SAMPLE_RATE,
    FREQ_BLACK, FREQ_WHITE, FREQ_RANGE,
    PITCH_MIN_WINDOW, PITCH_MAX_WINDOW, PITCH_LAG_SLACK,
)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ── Goertzel ─────────────────────────────────────────────────────────────────

def goertzel_power(
    signal: Sequence[float] | np.ndarray,
    start: int,
    window_size: int,
    target_frequency: float,
    sample_rate: int = SAMPLE_RATE,
) -> float:
    """
    Power of `signal[start:start + window_size]` in the DFT bin nearest to
    `target_frequency`, normalized by window_size².

    A full-scale sine exactly on the bin reads 0.25.
    Returns 0.0 if the window does not fit inside the signal.
    """
    if window_size <= 0 or start < 0 or start + window_size > len(signal):
        return 0.0
    start = int(start)

    k      = _round_half_up(window_size * target_frequency / sample_rate)
    omega  = (2.0 * math.pi * k) / window_size
    cosine = math.cos(omega)
    sine   = math.sin(omega)
    coeff  = 2.0 * cosine

    q1 = 0.0
    q2 = 0.0
    window = np.asarray(signal[start:start + window_size], dtype=np.float64).tolist()
    for sample in window:
        q0 = coeff * q1 - q2 + sample
        q2 = q1
        q1 = q0

    real = q1 - q2 * cosine
    imag = q2 * sine
    return (real * real + imag * imag) / (window_size * window_size)


def dominant_tone(
    signal: Sequence[float] | np.ndarray,
    start: int,
    window_size: int,
    candidates: Sequence[float],
    min_power: float = 0.0,
) -> float | None:
    """
    The candidate frequency with the highest Goertzel power, or None if the
    strongest one does not exceed `min_power`.
    """
    best_freq  = None
    best_power = min_power
    for freq in candidates:
        p = goertzel_power(signal, start, window_size, freq)
        if p > best_power:
            best_power = p
            best_freq  = freq
    return best_freq


# ── Autocorrelation pitch ────────────────────────────────────────────────────

def _lag_range(size: int, sample_rate: int) -> np.ndarray:
    min_lag = sample_rate // FREQ_WHITE - PITCH_LAG_SLACK
    max_lag = sample_rate // FREQ_BLACK + PITCH_LAG_SLACK
    lags = np.arange(min_lag, max_lag + 1)
    return lags[lags < size / 2]


def detect_frequencies(
    signal: np.ndarray,
    centers: Sequence[int] | np.ndarray,
    window_size_hint: int,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """
    Dominant frequency of one window per entry of `centers`.

    The window size is `window_size_hint` clamped to [60, 200] samples and
    is centred on each position.  For every lag between the periods of
    2300 Hz and 1500 Hz (with 2 samples of slack each side) the overlap of
    the window with itself shifted by `lag` is correlated and normalized by
    the energy of both halves.  The first lag with the strictly highest
    score wins; frequency = sample_rate / lag, clamped to [1500, 2300] Hz.

    Windows falling outside the signal yield 1500 Hz.
    """
    signal  = np.asarray(signal, dtype=np.float64)
    centers = np.asarray(centers, dtype=np.int64)
    size    = max(PITCH_MIN_WINDOW, min(int(window_size_hint), PITCH_MAX_WINDOW))
    starts  = centers - size // 2

    out   = np.full(len(centers), float(FREQ_BLACK))
    valid = (starts >= 0) & (starts + size < len(signal))
    if not valid.any():
        return out

    windows = sliding_window_view(signal, size)[starts[valid]]
    lags    = _lag_range(size, sample_rate)

    best_corr = np.full(len(windows), -np.inf)
    best_lag  = np.full(len(windows), lags[0], dtype=np.int64)

    for lag in lags:
        a = windows[:, : size - lag]
        b = windows[:, lag:]
        corr   = np.einsum("ij,ij->i", a, b)
        norm_a = np.einsum("ij,ij->i", a, a)
        norm_b = np.einsum("ij,ij->i", b, b)

        both = (norm_a > 0) & (norm_b > 0)
        denom = np.sqrt(np.where(both, norm_a * norm_b, 1.0))
        corr  = np.where(both, corr / denom, corr)

        better = corr > best_corr
        best_corr[better] = corr[better]
        best_lag[better]  = lag

    freqs = sample_rate / best_lag
    out[valid] = np.clip(freqs, FREQ_BLACK, FREQ_WHITE)
    return out


def detect_frequency(
    signal: np.ndarray,
    center: int,
    window_size_hint: int,
    sample_rate: int = SAMPLE_RATE,
) -> float:
    """Single-window form of detect_frequencies()."""
    return float(detect_frequencies(signal, [center], window_size_hint, sample_rate)[0])


# ── Frequency → intensity ────────────────────────────────────────────────────

def freq_to_pixel(freq: float) -> int:
    """1500 Hz → 0, 2300 Hz → 255, linear in between (rounded half up)."""
    if freq <= FREQ_BLACK:
        return 0
    if freq >= FREQ_WHITE:
        return 255
    return _round_half_up((freq - FREQ_BLACK) / FREQ_RANGE * 255)


def frequencies_to_pixels(freqs: np.ndarray) -> np.ndarray:
    """Vector form of freq_to_pixel(); returns uint8."""
    scaled = (np.asarray(freqs, dtype=np.float64) - FREQ_BLACK) / FREQ_RANGE * 255
    return np.clip(np.floor(scaled + 0.5), 0, 255).astype(np.uint8)
