"""Tests for the RIFF/WAVE PCM16 container codec."""

import io
import struct

import numpy as np
import pytest
import soundfile as sf

from RSCE.SIO.wav_container import (
    HEADER_SIZE,
    MalformedContainer,
    PcmAudio,
    UnsupportedFormat,
    WavFormatError,
    parse_wav,
    serialize_wav,
)


def _chunk(chunk_id: bytes, body: bytes) -> bytes:
    out = struct.pack("<4sI", chunk_id, len(body)) + body
    if len(body) & 1:
        out += b"\x00"
    return out


def _fmt(channels=1, rate=44100, bits=16, tag=1) -> bytes:
    align = channels * bits // 8
    return _chunk(b"fmt ", struct.pack("<HHIIHH", tag, channels, rate, rate * align, align, bits))


def _riff(*chunks: bytes) -> bytes:
    body = b"WAVE" + b"".join(chunks)
    return struct.pack("<4sI", b"RIFF", len(body)) + body


class TestSerialize:
    def test_canonical_header(self):
        """The 44-byte header carries the exact field values."""
        wav = serialize_wav(np.array([1, -1, 1000], dtype=np.int16), 44100, 1)
        assert len(wav) == HEADER_SIZE + 6
        fields = struct.unpack("<4sI4s4sIHHIIHH4sI", wav[:HEADER_SIZE])
        assert fields == (
            b"RIFF", 36 + 6, b"WAVE",
            b"fmt ", 16, 1, 1, 44100, 88200, 2, 16,
            b"data", 6,
        )

    def test_samples_little_endian(self):
        wav = serialize_wav(np.array([0x0102, -2], dtype=np.int16))
        assert wav[HEADER_SIZE:] == b"\x02\x01\xfe\xff"

    def test_out_of_range_values_are_clipped(self):
        wav = serialize_wav(np.array([40000, -40000]))
        assert parse_wav(wav).samples.tolist() == [32767, -32768]

    def test_empty_payload(self):
        wav = serialize_wav(np.zeros(0, dtype=np.int16))
        assert len(wav) == HEADER_SIZE
        assert len(parse_wav(wav).samples) == 0


class TestParse:
    def test_round_trip(self):
        samples = np.array([0, 1, -1, 32767, -32768, 1234], dtype=np.int16)
        audio = parse_wav(serialize_wav(samples, 22050))
        assert isinstance(audio, PcmAudio)
        assert audio.sample_rate == 22050
        assert audio.samples.dtype == np.int16
        np.testing.assert_array_equal(audio.samples, samples)

    def test_stereo_keeps_first_channel(self):
        interleaved = np.array([10, -10, 20, -20, 30, -30], dtype=np.int16)
        audio = parse_wav(serialize_wav(interleaved, 44100, channels=2))
        assert audio.samples.tolist() == [10, 20, 30]

    def test_skips_unknown_chunks_with_pad_byte(self):
        """An odd-sized LIST chunk is followed by one pad byte."""
        data = np.array([5, 6, 7], dtype="<i2").tobytes()
        wav = _riff(_fmt(), _chunk(b"LIST", b"abc"), _chunk(b"data", data))
        assert parse_wav(wav).samples.tolist() == [5, 6, 7]

    def test_missing_fmt_uses_defaults(self):
        data = np.array([1, 2], dtype="<i2").tobytes()
        audio = parse_wav(_riff(_chunk(b"data", data)))
        assert audio.sample_rate == 44100
        assert audio.samples.tolist() == [1, 2]

    def test_truncated_data_reads_what_is_present(self):
        wav = serialize_wav(np.arange(10, dtype=np.int16))[:-6]
        assert parse_wav(wav).samples.tolist() == list(range(7))

    def test_missing_data_chunk(self):
        with pytest.raises(MalformedContainer, match="data chunk not found"):
            parse_wav(_riff(_fmt()))

    def test_bad_preamble(self):
        with pytest.raises(MalformedContainer):
            parse_wav(b"RIFX" + b"\x00" * 40)

    def test_too_short(self):
        with pytest.raises(MalformedContainer):
            parse_wav(b"RIFF")

    def test_eight_bit_rejected(self):
        wav = _riff(_fmt(bits=8), _chunk(b"data", b"\x80\x80"))
        with pytest.raises(UnsupportedFormat, match="16-bit PCM"):
            parse_wav(wav)

    def test_float_format_rejected(self):
        wav = _riff(_fmt(bits=16, tag=3), _chunk(b"data", b"\x00\x00"))
        with pytest.raises(UnsupportedFormat):
            parse_wav(wav)

    def test_errors_are_value_errors(self):
        assert issubclass(WavFormatError, ValueError)
        assert issubclass(UnsupportedFormat, WavFormatError)
        assert issubclass(MalformedContainer, WavFormatError)


class TestLibsndfileInterop:
    """Cross-check against libsndfile through soundfile."""

    def test_soundfile_reads_our_output(self):
        samples = (np.sin(np.arange(500) * 0.1) * 20000).astype(np.int16)
        data, sr = sf.read(io.BytesIO(serialize_wav(samples)), dtype="int16")
        assert sr == 44100
        np.testing.assert_array_equal(data, samples)

    def test_we_read_soundfile_output(self):
        stereo = np.stack([
            np.arange(-100, 100, dtype=np.int16),
            np.zeros(200, dtype=np.int16),
        ], axis=1)
        buf = io.BytesIO()
        sf.write(buf, stereo, 44100, format="WAV", subtype="PCM_16")
        audio = parse_wav(buf.getvalue())
        assert audio.sample_rate == 44100
        np.testing.assert_array_equal(audio.samples, stereo[:, 0])
