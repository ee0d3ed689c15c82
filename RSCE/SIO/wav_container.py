# =============================================================================
# wav_container.py — RIFF/WAVE PCM16 Container Codec
# =============================================================================
#
# Bit-exact 44-byte canonical header written by serialize_wav():
#
#   0   "RIFF"            20  1 (PCM)            36  "data"
#   4   total size - 8    22  channels           40  data byte count
#   8   "WAVE"            24  sample rate        44  int16 LE samples ...
#   12  "fmt "            28  byte rate
#   16  16 (fmt size)     32  block align
#                         34  16 (bits/sample)
#
# parse_wav() walks the chunk list instead of assuming that layout, so files
# carrying LIST / fact / cue chunks from other tools are accepted.
#
# Multi-channel input is reduced to the FIRST channel only.  This is a lossy
# selection, not an average: decoding only needs one clean copy of the tone.
# =============================================================================

from __future__ import annotations
import logging
import struct
from typing import NamedTuple, Sequence

import numpy as np

from RSCE.SMM.constants import SAMPLE_RATE, BITS_PER_SAMPLE

log = logging.getLogger(__name__)

WAVE_FORMAT_PCM = 1
HEADER_SIZE     = 44
_PREAMBLE_SIZE  = 12
_CHUNK_HEADER   = struct.Struct("<4sI")
_FMT_BODY       = struct.Struct("<HHIIHH")
_CANONICAL      = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WavFormatError(ValueError):
    """Base class for containers this codec refuses to read."""


class UnsupportedFormat(WavFormatError):
    """The fmt chunk declares something other than 16-bit linear PCM."""


class MalformedContainer(WavFormatError):
    """The byte stream is not a readable RIFF/WAVE container."""


class PcmAudio(NamedTuple):
    samples:     np.ndarray     # int16, first channel only
    sample_rate: int


def parse_wav(data: bytes) -> PcmAudio:
    """
    Parse a RIFF/WAVE PCM16 container.

    Returns
    -------
    PcmAudio(samples, sample_rate) — samples is a mono int16 array.

    Raises
    ------
    MalformedContainer : truncated preamble / fmt chunk, or no data chunk
    UnsupportedFormat  : format tag is not PCM or bit depth is not 16
    """
    view = memoryview(data)
    total = len(view)

    if total < _PREAMBLE_SIZE:
        raise MalformedContainer(f"container too short ({total} bytes)")
    if bytes(view[0:4]) != b"RIFF" or bytes(view[8:12]) != b"WAVE":
        raise MalformedContainer("missing RIFF/WAVE preamble")

    channels    = 1
    sample_rate = SAMPLE_RATE
    pos         = _PREAMBLE_SIZE

    while pos + _CHUNK_HEADER.size <= total:
        chunk_id, size = _CHUNK_HEADER.unpack_from(view, pos)
        body = pos + _CHUNK_HEADER.size

        if chunk_id == b"fmt ":
            if size < _FMT_BODY.size or body + _FMT_BODY.size > total:
                raise MalformedContainer(f"fmt chunk too short ({size} bytes)")
            fmt_tag, channels, sample_rate, _byte_rate, _align, bits = (
                _FMT_BODY.unpack_from(view, body)
            )
            if fmt_tag != WAVE_FORMAT_PCM or bits != BITS_PER_SAMPLE:
                raise UnsupportedFormat(
                    f"only 16-bit PCM WAV is supported "
                    f"(format tag {fmt_tag}, {bits} bits/sample)"
                )
            if channels < 1:
                raise MalformedContainer("fmt chunk declares zero channels")

        elif chunk_id == b"data":
            available = total - body
            if size > available:
                log.warning(
                    "data chunk declares %d bytes but only %d remain; "
                    "reading what is present", size, available,
                )
                size = available
            count   = size // 2
            samples = np.frombuffer(view, dtype="<i2", count=count, offset=body)
            samples = samples.astype(np.int16)
            if channels > 1:
                frames  = len(samples) // channels
                samples = samples[: frames * channels : channels].copy()
            log.debug(
                "parsed WAV: %d samples @ %d Hz (%d source channel(s))",
                len(samples), sample_rate, channels,
            )
            return PcmAudio(samples=samples, sample_rate=sample_rate)

        # RIFF chunk bodies are word aligned
        pos = body + size + (size & 1)

    raise MalformedContainer("WAV data chunk not found")


def serialize_wav(
    samples: Sequence[int] | np.ndarray,
    sample_rate: int = SAMPLE_RATE,
    channels: int = 1,
) -> bytes:
    """
    Build a canonical 44-byte-header PCM16 container.

    Args:
        samples:     Interleaved sample values already scaled to the int16
                     range.  Out-of-range values are clipped.
        sample_rate: Hz written into the fmt chunk.
        channels:    Channel count written into the fmt chunk.

    Returns:
        bytes — header followed by little-endian int16 samples.
    """
    pcm = np.clip(np.asarray(samples), -32768, 32767).astype("<i2")
    payload = pcm.tobytes()

    block_align = channels * 2
    byte_rate   = sample_rate * block_align
    data_size   = len(payload)

    header = _CANONICAL.pack(
        b"RIFF", HEADER_SIZE + data_size - 8, b"WAVE",
        b"fmt ", 16, WAVE_FORMAT_PCM, channels, sample_rate,
        byte_rate, block_align, BITS_PER_SAMPLE,
        b"data", data_size,
    )
    return header + payload
