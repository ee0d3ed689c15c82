"""Tests for the calibration header / VIS code detector."""

import numpy as np

from RSCE.SMM.constants import PCM_FULL_SCALE, VIS_BIT_SAMPLES
from RSCE.SGM.frame_builder import header_tones
from RSCE.SGM.tone_encoder import ToneEncoder
from RSCE.SVM.vis_detector import VIS_SLOTS, detect_vis_header, read_vis_block

from conftest import generate_tone

# leader 300 ms + break 10 ms + leader 300 ms at 44.1 kHz
START_BIT_AT = 13230 + 441 + 13230


def header_signal(code, tail_ms=200.0):
    enc = ToneEncoder()
    for freq, ms in header_tones(code):
        enc.tone(freq, ms)
    enc.tone(1500, tail_ms)
    return enc.samples() / PCM_FULL_SCALE


class TestDetectVisHeader:
    def test_robot36_header(self):
        header = detect_vis_header(header_signal(0x08))
        assert header is not None
        assert header.code == 0x08
        assert header.parity_ok
        assert abs(header.start - START_BIT_AT) <= 64
        assert header.end == header.start + VIS_SLOTS * VIS_BIT_SAMPLES

    def test_other_mode_code(self):
        """Martin M1 (0x2C) has three bits set, so odd parity tone 1100 Hz."""
        header = detect_vis_header(header_signal(0x2C))
        assert header is not None
        assert header.code == 0x2C
        assert header.parity_ok

    def test_break_is_not_mistaken_for_start_bit(self):
        header = detect_vis_header(header_signal(0x08))
        assert header.start > 13230 + 441 + 4410

    def test_no_header_in_plain_tone(self):
        assert detect_vis_header(generate_tone(1500.0, 1.0)) is None

    def test_no_header_in_silence(self):
        assert detect_vis_header(np.zeros(20000)) is None

    def test_search_limit(self):
        """A header that starts after the search limit is not reported."""
        assert detect_vis_header(header_signal(0x08), search_limit=10000) is None

    def test_short_signal(self):
        assert detect_vis_header(np.zeros(100)) is None


class TestReadVisBlock:
    def test_reads_block_at_exact_onset(self):
        header = read_vis_block(header_signal(0x08), START_BIT_AT)
        assert header is not None
        assert header.code == 0x08
        assert header.start == START_BIT_AT

    def test_rejects_misaligned_onset(self):
        """Onset inside the second leader: slot 0 is 1900 Hz."""
        assert read_vis_block(header_signal(0x08), START_BIT_AT - 3000) is None

    def test_rejects_block_past_end(self):
        signal = header_signal(0x08, tail_ms=0)
        assert read_vis_block(signal, len(signal) - 100) is None

    def test_bad_parity_is_reported_not_rejected(self):
        signal = header_signal(0x08).copy()
        parity_slot = START_BIT_AT + 8 * VIS_BIT_SAMPLES
        # replace the 1100 Hz parity tone with 1300 Hz
        t = np.arange(VIS_BIT_SAMPLES) / 44100
        signal[parity_slot:parity_slot + VIS_BIT_SAMPLES] = np.sin(2 * np.pi * 1300 * t)
        header = read_vis_block(signal, START_BIT_AT)
        assert header is not None
        assert header.code == 0x08
        assert not header.parity_ok
