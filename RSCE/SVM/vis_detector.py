# =============================================================================
# vis_detector.py — Calibration Header / VIS Code Detector
# =============================================================================
#
# Finds the Robot36 calibration header so that the sync scan can start right
# after it.  Without this the scan would meet the 10 ms 1200 Hz break and
# the 1200 Hz VIS start/stop bits first and record them as scan lines.
#
# Header on the air:
#
#   1900 Hz 300 ms | 1200 Hz 10 ms | 1900 Hz 300 ms | VIS 10 × 30 ms
#                                                     start  b0..b6  P  stop
#
# Strategy
# --------
#   1. Step a 256-sample Goertzel window through the capture, 32 samples at a
#      time, comparing 1900 Hz (leader) with 1200 Hz (start bit / break).
#   2. After at least 100 ms of leader, the first window dominated by 1200 Hz
#      marks a candidate start bit.  The onset sits half a window later.
#   3. Read the ten 30 ms slots from that onset, ignoring 12.5 % at each slot
#      edge.  Start and stop slots must be 1200 Hz; the eight bit slots must
#      be 1100 Hz (1) or 1300 Hz (0).
#   4. The 10 ms break fails step 3 (its "start slot" is mostly leader), so
#      the scan simply carries on to the real start bit.
#
# =============================================================================

from __future__ import annotations
import logging
from typing import NamedTuple

import numpy as np

from RSCE.SMM.constants import (
    SAMPLE_RATE,
    FREQ_SYNC, FREQ_LEADER, FREQ_VIS_ONE, FREQ_VIS_ZERO,
    VIS_BIT_SAMPLES, VIS_DATA_BITS,
    SYNC_WINDOW,
    HEADER_SEARCH_SECONDS, HEADER_SCAN_STEP, HEADER_MIN_POWER,
    HEADER_MIN_LEADER_MS, HEADER_GUARD_FRACTION,
)
from .estimators import goertzel_power, dominant_tone

log = logging.getLogger(__name__)

SLOT_TONES  = (FREQ_VIS_ONE, FREQ_SYNC, FREQ_VIS_ZERO, FREQ_LEADER)
VIS_SLOTS   = VIS_DATA_BITS + 3          # start + data + parity + stop


class VisHeader(NamedTuple):
    code:      int      # 7-bit mode identifier
    parity_ok: bool     # parity slot matched the XOR of the data bits
    start:     int      # sample index of the start-bit onset
    end:       int      # first sample after the stop bit


def read_vis_block(signal: np.ndarray, onset: int) -> VisHeader | None:
    """
    Decode the ten VIS slots beginning at `onset`.
    Returns None if any slot carries the wrong kind of tone.
    """
    bit_len = VIS_BIT_SAMPLES
    guard   = int(bit_len * HEADER_GUARD_FRACTION)
    size    = bit_len - 2 * guard

    if onset < 0 or onset + VIS_SLOTS * bit_len > len(signal):
        return None

    def slot_tone(n: int) -> float | None:
        return dominant_tone(
            signal, onset + n * bit_len + guard, size, SLOT_TONES, HEADER_MIN_POWER,
        )

    if slot_tone(0) != FREQ_SYNC:
        return None

    bits: list[int] = []
    for n in range(1, VIS_DATA_BITS + 2):
        tone = slot_tone(n)
        if tone == FREQ_VIS_ONE:
            bits.append(1)
        elif tone == FREQ_VIS_ZERO:
            bits.append(0)
        else:
            return None

    if slot_tone(VIS_SLOTS - 1) != FREQ_SYNC:
        return None

    data, parity_bit = bits[:VIS_DATA_BITS], bits[VIS_DATA_BITS]
    code   = sum(bit << i for i, bit in enumerate(data))
    parity = 0
    for bit in data:
        parity ^= bit

    return VisHeader(
        code=code,
        parity_ok=(parity == parity_bit),
        start=onset,
        end=onset + VIS_SLOTS * bit_len,
    )


def detect_vis_header(
    signal: np.ndarray,
    search_limit: int | None = None,
) -> VisHeader | None:
    """
    Scan the start of a capture for the calibration header.

    Parameters
    ----------
    signal       : normalized float samples
    search_limit : last sample index at which a header may begin;
                   default HEADER_SEARCH_SECONDS of audio

    Returns
    -------
    VisHeader, or None if no complete header was found
    """
    if search_limit is None:
        search_limit = int(HEADER_SEARCH_SECONDS * SAMPLE_RATE)
    limit         = min(len(signal) - SYNC_WINDOW, search_limit)
    leader_needed = int(HEADER_MIN_LEADER_MS * SAMPLE_RATE / 1000)

    leader_run = 0
    pos = 0
    while pos < limit:
        p_sync   = goertzel_power(signal, pos, SYNC_WINDOW, FREQ_SYNC)
        p_leader = goertzel_power(signal, pos, SYNC_WINDOW, FREQ_LEADER)

        if p_leader > HEADER_MIN_POWER and p_leader > p_sync:
            leader_run += HEADER_SCAN_STEP
        elif p_sync > HEADER_MIN_POWER and p_sync > p_leader and leader_run >= leader_needed:
            onset  = pos + SYNC_WINDOW // 2
            header = read_vis_block(signal, onset)
            if header is not None:
                log.info(
                    "VIS header at %.3f s: code 0x%02X, parity %s",
                    onset / SAMPLE_RATE, header.code,
                    "ok" if header.parity_ok else "FAILED",
                )
                return header
            log.debug("1200 Hz after leader at %.3f s is not a VIS start bit",
                      onset / SAMPLE_RATE)
            leader_run = 0
        else:
            leader_run = 0

        pos += HEADER_SCAN_STEP

    log.info("no VIS header found in the first %.1f s", max(limit, 0) / SAMPLE_RATE)
    return None
