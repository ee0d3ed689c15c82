#!/usr/bin/env python3
# =============================================================================
# validate.py — RSCE Self-Validation Suite
# =============================================================================
#
# Run directly:  python -m RSCE.SVM.validate
#             or rsce validate
#
# Tests:
#   1. Constants integrity   — segment lengths add up, decoder counts rounded
#   2. Tone encoder          — segment lengths, amplitude, phase continuity
#   3. Estimators            — Goertzel selectivity, pitch over the pixel band
#   4. Frame builder         — VIS tones, total sample count, WAV container
#   5. Round trip            — encode a band raster, decode, compare pixels
# =============================================================================

from __future__ import annotations
import sys

import numpy as np

from RSCE.SMM.constants import (
    SAMPLE_RATE, WIDTH, HEIGHT, CHROMA_WIDTH,
    FREQ_BLACK, FREQ_WHITE, FREQ_SYNC, FREQ_LEADER, FREQ_VIS_ONE, FREQ_VIS_ZERO,
    HSYNC_MS, PORCH_MS, Y_SCAN_MS, SEP_LOW_MS, SEP_HIGH_MS, UV_SCAN_MS, LINE_MS,
    HSYNC_SAMPLES, PORCH_SAMPLES, Y_SCAN_SAMPLES, LINE_SAMPLES, VIS_BIT_SAMPLES,
    PCM_AMPLITUDE, VIS_CODE_ROBOT36, PITCH_MIN_LAG, PITCH_MAX_LAG,
)
from RSCE.SGM.tone_encoder import ToneEncoder, samples_for
from RSCE.SGM.frame_builder import vis_tones, decimate_chroma, encode_rgb
from RSCE.SIO.wav_container import parse_wav, serialize_wav
from RSCE.SVM.estimators import goertzel_power, detect_frequency, freq_to_pixel
from RSCE.SVM.vis_detector import detect_vis_header
from RSCE.SVM.scan_decoder import decode_signal, normalize_pcm

PASS = "[PASS]"
FAIL = "[FAIL]"
INFO = "[INFO]"

EXPECTED_TOTAL_SAMPLES = 1_627_971

failures = 0


def check(label: str, condition: bool, detail: str = "") -> bool:
    global failures
    if condition:
        print(f"  {PASS} {label}")
    else:
        print(f"  {FAIL} {label}{(' -- ' + detail) if detail else ''}")
        failures += 1
    return condition


def section(title: str) -> None:
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def _sine(freq: float, n: int, amplitude: float = 1.0) -> np.ndarray:
    t = np.arange(n) / SAMPLE_RATE
    return amplitude * np.sin(2 * np.pi * freq * t)


def band_raster() -> np.ndarray:
    """Three horizontal bands: black, white, mid-grey."""
    rgb = np.zeros((HEIGHT, WIDTH, 3), dtype=np.uint8)
    rgb[80:160] = 255
    rgb[160:]   = 128
    return rgb


# =============================================================================
# TEST 1 — Constants Integrity
# =============================================================================
def test_constants() -> None:
    section("TEST 1 — Constants Integrity")

    parts = HSYNC_MS + PORCH_MS + Y_SCAN_MS + SEP_LOW_MS + SEP_HIGH_MS + UV_SCAN_MS
    check("segment durations sum to LINE_MS", abs(parts - LINE_MS) < 1e-9,
          f"{parts} != {LINE_MS}")
    check("HSYNC_SAMPLES = 397",   HSYNC_SAMPLES == 397, f"got {HSYNC_SAMPLES}")
    check("PORCH_SAMPLES = 132",   PORCH_SAMPLES == 132, f"got {PORCH_SAMPLES}")
    check("Y_SCAN_SAMPLES = 3884", Y_SCAN_SAMPLES == 3884, f"got {Y_SCAN_SAMPLES}")
    check("LINE_SAMPLES = 6619",   LINE_SAMPLES == 6619, f"got {LINE_SAMPLES}")
    check("VIS_BIT_SAMPLES = 1323", VIS_BIT_SAMPLES == 1323, f"got {VIS_BIT_SAMPLES}")
    check("CHROMA_WIDTH = WIDTH / 2", CHROMA_WIDTH * 2 == WIDTH)
    check("pitch lags span 17..31", (PITCH_MIN_LAG, PITCH_MAX_LAG) == (17, 31),
          f"got {PITCH_MIN_LAG}..{PITCH_MAX_LAG}")


# =============================================================================
# TEST 2 — Tone Encoder
# =============================================================================
def test_tone_encoder() -> None:
    section("TEST 2 — Tone Encoder")

    enc = ToneEncoder()
    enc.tone(FREQ_SYNC, HSYNC_MS)
    check("9 ms tone = 396 samples", len(enc) == 396, f"got {len(enc)}")
    check("samples_for(88.064) = 3883", samples_for(Y_SCAN_MS) == 3883)

    pcm = enc.samples()
    check("first sample is 0 (phase starts at 0)", int(pcm[0]) == 0)
    check("peak within int16 amplitude",
          int(np.abs(pcm.astype(np.int32)).max()) <= PCM_AMPLITUDE)

    # Switching tone must not jump: the step between adjacent samples never
    # exceeds what the higher frequency produces on its own.
    enc.reset()
    enc.tone(FREQ_BLACK, 5)
    enc.tone(FREQ_WHITE, 5)
    steps = np.abs(np.diff(enc.samples().astype(np.int32)))
    max_step = 2 * np.pi * FREQ_WHITE / SAMPLE_RATE * PCM_AMPLITUDE + 2
    check("phase continuous across a tone change", steps.max() <= max_step,
          f"max step {steps.max()} > {max_step:.0f}")

    enc.reset()
    enc.scanline(np.arange(WIDTH) % 256, Y_SCAN_MS)
    check("scanline length follows duration, not pixel count", len(enc) == 3883)


# =============================================================================
# TEST 3 — Estimators
# =============================================================================
def test_estimators() -> None:
    section("TEST 3 — Estimators")

    sig = _sine(FREQ_SYNC, 2048)
    on  = goertzel_power(sig, 0, 256, FREQ_SYNC)
    off = goertzel_power(sig, 0, 256, FREQ_LEADER)
    check("Goertzel on-frequency ≈ 0.25", 0.2 < on < 0.26, f"got {on:.4f}")
    check("Goertzel off-frequency small", off < 0.02, f"got {off:.4f}")
    check("Goertzel out of range = 0.0", goertzel_power(sig, 2000, 256, FREQ_SYNC) == 0.0)

    for freq, lo, hi in ((1500, 0, 15), (1900, 115, 140), (2300, 240, 255)):
        value = freq_to_pixel(detect_frequency(_sine(freq, 400), 200, 60))
        check(f"{freq} Hz tone → pixel in [{lo}, {hi}]", lo <= value <= hi,
              f"got {value}")

    check("window outside signal → 1500 Hz",
          detect_frequency(np.zeros(10), 5, 60) == FREQ_BLACK)


# =============================================================================
# TEST 4 — Frame Builder
# =============================================================================
def test_frame_builder() -> np.ndarray:
    section("TEST 4 — Frame Builder")

    tones = vis_tones(VIS_CODE_ROBOT36)
    check("VIS block has 10 tones", len(tones) == 10, f"got {len(tones)}")
    check("VIS start/stop are 1200 Hz",
          tones[0][0] == FREQ_SYNC and tones[-1][0] == FREQ_SYNC)
    data_bits = [1 if f == FREQ_VIS_ONE else 0 for f, _ in tones[1:8]]
    check("VIS 0x08 bits LSB first", data_bits == [0, 0, 0, 1, 0, 0, 0],
          f"got {data_bits}")
    check("VIS parity tone 1100 Hz (one bit set)", tones[8][0] == FREQ_VIS_ONE)
    check("VIS slots use only 1100/1200/1300 Hz",
          {f for f, _ in tones} <= {FREQ_VIS_ONE, FREQ_SYNC, FREQ_VIS_ZERO})

    check("chroma decimated 320 → 160",
          len(decimate_chroma(np.arange(WIDTH))) == CHROMA_WIDTH)

    pcm = encode_rgb(band_raster())
    check(f"total samples = {EXPECTED_TOTAL_SAMPLES:,}",
          len(pcm) == EXPECTED_TOTAL_SAMPLES, f"got {len(pcm):,}")
    check("output dtype int16", pcm.dtype == np.int16)

    wav   = serialize_wav(pcm)
    audio = parse_wav(wav)
    check("WAV header is 44 bytes", len(wav) == 44 + 2 * len(pcm))
    check("WAV container preserves samples", np.array_equal(audio.samples, pcm))
    check("WAV container preserves rate", audio.sample_rate == SAMPLE_RATE)
    return pcm


# =============================================================================
# TEST 5 — Round Trip
# =============================================================================
def test_round_trip(pcm: np.ndarray) -> None:
    section("TEST 5 — Round Trip (encode → decode)")

    signal = normalize_pcm(pcm)
    header = detect_vis_header(signal)
    check("VIS header found", header is not None)
    if header is not None:
        check("VIS code = 0x08", header.code == VIS_CODE_ROBOT36, f"got 0x{header.code:02X}")
        check("VIS parity OK", header.parity_ok)

    result = decode_signal(signal)
    report = result.report
    print(f"  {INFO} sync pulses: {report.sync_count}, "
          f"spacing: {report.line_spacing or 0:.1f}, "
          f"deviations: {len(report.deviations)}")

    check("sync path used (no fallback)", not report.fallback)
    check("all 240 lines decoded", report.lines_decoded == HEIGHT,
          f"got {report.lines_decoded}")

    expected = np.round(band_raster()[..., 0] * 0.299
                        + band_raster()[..., 1] * 0.587
                        + band_raster()[..., 2] * 0.114)
    err   = np.abs(result.image.astype(np.int32) - expected.astype(np.int32))
    ratio = float((err <= 10).mean())
    check("≥ 95 % of pixels within 10 levels", ratio >= 0.95,
          f"{ratio * 100:.1f}%")


# =============================================================================
# Summary
# =============================================================================
def main() -> int:
    test_constants()
    test_tone_encoder()
    test_estimators()
    pcm = test_frame_builder()
    test_round_trip(pcm)

    print("\n" + "=" * 60)
    if failures == 0:
        print("  ALL TESTS PASSED")
    else:
        print(f"  {failures} TEST(S) FAILED")
    print("=" * 60 + "\n")
    return 0 if failures == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
