# =============================================================================
# sync_locator.py — Robot36 Horizontal Sync Locator
# =============================================================================
#
# Finds the start of every 9 ms 1200 Hz sync burst and turns the raw hits
# into a consistent per-line timing grid.
#
# Detection
# ---------
#   1. Step a 256-sample window through the signal, 100 samples at a time,
#      from the search start (default 0.3 s, past the first leader tone).
#   2. A hit needs 1200 Hz power above 0.08 AND above the 1500 Hz (porch /
#      black) and 1900 Hz (separator) power at the same spot.
#   3. The hit is moved to the strongest 1200 Hz position within ±50 samples.
#   4. After a hit, jump 0.7 line periods ahead; any position closer than 0.8
#      line periods to the previous hit is ignored.
#
# Refinement
# ----------
#   A left fold over the hits.  The expected position of line n is the
#   REFINED position of line n-1 plus the average spacing of the first ten
#   hits, so one bad line cannot drag the lines after it.
#
#     |detected - expected| <  5 % spacing  →  keep detected
#     |detected - expected| < 15 % spacing  →  0.9 detected + 0.1 expected
#     otherwise                             →  expected  (SyncDeviation logged)
#
# =============================================================================

from __future__ import annotations
import logging
from typing import NamedTuple, Sequence

import numpy as np

from RSCE.SMM.constants import (
    SAMPLE_RATE, LINE_SAMPLES,
    FREQ_SYNC, FREQ_BLACK, FREQ_SEP_HIGH,
    SYNC_WINDOW, SYNC_STRIDE, SYNC_SEARCH_START_S, SYNC_POWER_THRESHOLD,
    SYNC_PEAK_RADIUS, SYNC_PEAK_STEP, SYNC_SKIP_FACTOR, SYNC_MIN_SPACING,
    REFINE_SPACING_POSITIONS, REFINE_KEEP_RATIO, REFINE_BLEND_RATIO,
    REFINE_BLEND_WEIGHT,
)
from .estimators import goertzel_power

log = logging.getLogger(__name__)


class SyncDeviation(NamedTuple):
    line:      int      # index into the hit list
    detected:  float    # raw hit position (samples)
    expected:  float    # position predicted from the previous line
    deviation: float    # |detected - expected|


class SyncResult(NamedTuple):
    positions:     list[float]          # refined timing grid
    raw_positions: list[int]            # hits before refinement
    line_spacing:  float | None         # average spacing used for refinement
    deviations:    list[SyncDeviation]  # lines replaced by their expected position


# ---------------------------------------------------------------------------

def find_peak_sync(
    signal: np.ndarray,
    start_search: int,
    end_search: int,
    window_size: int = SYNC_WINDOW,
) -> int:
    """
    Position in [start_search, end_search] (10-sample steps) with the highest
    1200 Hz power.  Ties keep the earliest position.
    """
    best_pos   = start_search
    best_power = 0.0

    pos = start_search
    while pos <= end_search and pos + window_size < len(signal):
        power = goertzel_power(signal, pos, window_size, FREQ_SYNC)
        if power > best_power:
            best_power = power
            best_pos   = pos
        pos += SYNC_PEAK_STEP

    return best_pos


def scan_sync_pulses(
    signal: np.ndarray,
    search_start: int | None = None,
) -> list[int]:
    """Raw sync hits, in order, before refinement."""
    if search_start is None:
        search_start = int(SAMPLE_RATE * SYNC_SEARCH_START_S)

    positions: list[int] = []
    last_sync  = -LINE_SAMPLES
    min_gap    = LINE_SAMPLES * SYNC_MIN_SPACING
    skip       = int(LINE_SAMPLES * SYNC_SKIP_FACTOR)
    end        = len(signal) - SYNC_WINDOW

    i = int(search_start)
    while i < end:
        if i - last_sync < min_gap:
            i += SYNC_STRIDE
            continue

        p_sync = goertzel_power(signal, i, SYNC_WINDOW, FREQ_SYNC)
        if p_sync > SYNC_POWER_THRESHOLD:
            p_black = goertzel_power(signal, i, SYNC_WINDOW, FREQ_BLACK)
            p_sep   = goertzel_power(signal, i, SYNC_WINDOW, FREQ_SEP_HIGH)

            if p_sync > p_black and p_sync > p_sep:
                fine = find_peak_sync(signal, i - SYNC_PEAK_RADIUS, i + SYNC_PEAK_RADIUS)
                positions.append(fine)
                last_sync = fine
                i += skip

        i += SYNC_STRIDE

    return positions


def refine_sync_positions(
    positions: Sequence[float],
) -> tuple[list[float], float | None, list[SyncDeviation]]:
    """
    Fold raw hits into a self-correcting timing grid.

    Returns
    -------
    (refined, line_spacing, deviations)
        refined      : new list, same length as `positions`
        line_spacing : average spacing of the first ten hits, or None when
                       fewer than three hits were given (returned unchanged)
        deviations   : one SyncDeviation per substituted line
    """
    if len(positions) < 3:
        return list(positions), None, []

    head = positions[:REFINE_SPACING_POSITIONS]
    spacing = (head[-1] - head[0]) / (len(head) - 1)

    log.debug(
        "average line spacing: %.1f samples (%.2f ms)",
        spacing, spacing / SAMPLE_RATE * 1000,
    )

    refined: list[float] = [positions[0]]
    deviations: list[SyncDeviation] = []

    for line in range(1, len(positions)):
        detected = positions[line]
        expected = refined[-1] + spacing
        diff     = abs(detected - expected)

        if diff < spacing * REFINE_KEEP_RATIO:
            refined.append(detected)
        elif diff < spacing * REFINE_BLEND_RATIO:
            refined.append(
                detected * REFINE_BLEND_WEIGHT + expected * (1 - REFINE_BLEND_WEIGHT)
            )
        else:
            log.warning(
                "line %d: large sync error (%.0f samples), using expected position",
                line, diff,
            )
            deviations.append(SyncDeviation(
                line=line,
                detected=float(detected),
                expected=float(expected),
                deviation=float(diff),
            ))
            refined.append(expected)

    return refined, spacing, deviations


def find_sync_pulses(
    signal: np.ndarray,
    search_start: int | None = None,
) -> SyncResult:
    """
    Locate and refine every horizontal sync pulse.

    Parameters
    ----------
    signal       : normalized float samples
    search_start : first sample to scan; default 0.3 s

    Returns
    -------
    SyncResult
    """
    raw = scan_sync_pulses(signal, search_start)
    log.info("found %d sync pulses", len(raw))

    refined, spacing, deviations = refine_sync_positions(raw)
    return SyncResult(
        positions=refined,
        raw_positions=raw,
        line_spacing=spacing,
        deviations=deviations,
    )
