"""Tests for the Goertzel and autocorrelation estimators."""

import numpy as np
import pytest

from RSCE.SMM.constants import FREQ_BLACK, FREQ_WHITE, FREQ_SYNC, FREQ_LEADER
from RSCE.SVM.estimators import (
    detect_frequencies,
    detect_frequency,
    dominant_tone,
    freq_to_pixel,
    frequencies_to_pixels,
    goertzel_power,
)

from conftest import generate_tone


class TestGoertzel:
    def test_full_scale_on_bin(self):
        """A unit sine on the target bin reads close to 0.25."""
        tone = generate_tone(FREQ_SYNC, 0.05, amplitude=1.0)
        assert goertzel_power(tone, 0, 256, FREQ_SYNC) == pytest.approx(0.25, abs=0.03)

    def test_off_frequency_is_small(self):
        tone = generate_tone(FREQ_SYNC, 0.05, amplitude=1.0)
        assert goertzel_power(tone, 0, 256, FREQ_LEADER) < 0.01

    def test_selects_between_sstv_tones(self):
        tone = generate_tone(1500.0, 0.05)
        p1500 = goertzel_power(tone, 100, 256, 1500)
        assert p1500 > 5 * goertzel_power(tone, 100, 256, 1200)
        assert p1500 > 5 * goertzel_power(tone, 100, 256, 1900)

    def test_window_out_of_range(self):
        tone = generate_tone(FREQ_SYNC, 0.01)
        assert goertzel_power(tone, len(tone) - 100, 256, FREQ_SYNC) == 0.0
        assert goertzel_power(tone, -1, 256, FREQ_SYNC) == 0.0
        assert goertzel_power(tone, 0, 0, FREQ_SYNC) == 0.0

    def test_silence(self):
        assert goertzel_power(np.zeros(512), 0, 256, FREQ_SYNC) == 0.0


class TestDominantTone:
    def test_picks_strongest(self):
        tone = generate_tone(1100.0, 0.03)
        assert dominant_tone(tone, 0, 1000, (1100, 1200, 1300, 1900)) == 1100

    def test_none_below_floor(self):
        assert dominant_tone(np.zeros(2000), 0, 1000, (1100, 1300), 0.02) is None


class TestDetectFrequency:
    @pytest.mark.parametrize("freq", [1500, 1700, 1900, 2100, 2300])
    def test_pixel_band_within_quantization(self, freq):
        """Integer lags quantize the estimate; stay within one lag step."""
        tone = generate_tone(freq, 0.02)
        estimate = detect_frequency(tone, 400, 60)
        lag = 44100 / freq
        step = 44100 / np.floor(lag) - 44100 / np.ceil(lag)
        assert abs(estimate - freq) <= step + 1

    def test_estimate_is_clamped_to_band(self):
        tone = generate_tone(3000.0, 0.02)
        assert FREQ_BLACK <= detect_frequency(tone, 400, 60) <= FREQ_WHITE

    def test_window_outside_signal_reads_black(self):
        tone = generate_tone(1900.0, 0.001)
        assert detect_frequency(tone, 5, 60) == FREQ_BLACK
        assert detect_frequency(tone, len(tone) - 5, 60) == FREQ_BLACK

    def test_silence_reads_white(self):
        """With no energy every lag scores 0; the shortest lag wins."""
        assert detect_frequency(np.zeros(400), 200, 60) == FREQ_WHITE

    def test_batch_matches_single(self):
        signal = np.concatenate([
            generate_tone(1500.0, 0.01),
            generate_tone(2300.0, 0.01),
        ])
        centers = [100, 300, 541, 700]
        batch = detect_frequencies(signal, centers, 12)
        single = [detect_frequency(signal, c, 12) for c in centers]
        np.testing.assert_allclose(batch, single)

    def test_hint_is_clamped(self):
        """Hints below 60 behave like 60; hints above 200 like 200."""
        tone = generate_tone(1900.0, 0.05)
        assert detect_frequency(tone, 1000, 5) == detect_frequency(tone, 1000, 60)
        assert detect_frequency(tone, 1000, 1000) == detect_frequency(tone, 1000, 200)


class TestFreqToPixel:
    def test_black(self):
        assert freq_to_pixel(1500) == 0

    def test_white(self):
        assert freq_to_pixel(2300) == 255

    def test_midpoint_rounds_half_up(self):
        assert freq_to_pixel(1900) == 128

    def test_clamps(self):
        assert freq_to_pixel(1000) == 0
        assert freq_to_pixel(3000) == 255

    def test_vector_form_agrees(self):
        freqs = np.array([1000, 1500, 1700, 1900, 2100, 2300, 2600], dtype=float)
        expected = [freq_to_pixel(f) for f in freqs]
        out = frequencies_to_pixels(freqs)
        assert out.dtype == np.uint8
        assert out.tolist() == expected
