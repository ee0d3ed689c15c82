"""
Quick numeric checker for a Robot36 SSTV WAV.
Usage: python tools/quick_check_wav.py path/to/robot36.wav

Reads the file with libsndfile (independently of RSCE's own container
parser) and reports per-channel levels plus where the sync and pixel tones
sit, so a capture can be sanity-checked before decoding.
"""
import os
import sys

import numpy as np
import soundfile as sf

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from RSCE.SMM.constants import (
    SAMPLE_RATE, LINE_SAMPLES, FREQ_SYNC, FREQ_BLACK, FREQ_WHITE, FREQ_LEADER,
)
from RSCE.SVM.vis_detector import detect_vis_header
from RSCE.SVM.sync_locator import find_sync_pulses

if len(sys.argv) < 2:
    print("Usage: python tools/quick_check_wav.py file.wav")
    raise SystemExit

f = sys.argv[1]
data, sr = sf.read(f, dtype="float64", always_2d=True)
n_ch = data.shape[1]
duration = data.shape[0] / sr

print("=" * 60)
print(f"File        : {f}")
print(f"Sample rate : {sr} Hz")
print(f"Channels    : {n_ch}")
print(f"Duration    : {duration:.2f} s")
print("=" * 60)

for i in range(n_ch):
    ch = data[:, i]
    peak = np.max(np.abs(ch)) if len(ch) else 0.0
    rms  = np.sqrt(np.mean(ch ** 2)) if len(ch) else 0.0
    print(f"  Ch{i}: peak={peak:.3f}  rms={rms:.3f}")


def tone_share(ch, sr):
    """Fraction of spectral energy in the sync, pixel and leader bands."""
    power = np.abs(np.fft.rfft(ch)) ** 2
    freqs = np.fft.rfftfreq(len(ch), 1.0 / sr)
    total = power.sum() or 1.0

    def band(lo, hi):
        return power[(freqs >= lo) & (freqs < hi)].sum() / total

    return {
        "sync 1150-1250":   band(FREQ_SYNC - 50, FREQ_SYNC + 50),
        "pixel 1500-2300":  band(FREQ_BLACK, FREQ_WHITE),
        "leader 1850-1950": band(FREQ_LEADER - 50, FREQ_LEADER + 50),
    }


print()
print("Energy by tone band (Ch0):")
for name, share in tone_share(data[:, 0], sr).items():
    print(f"  {name:<18}: {share * 100:5.1f}%")

if sr != SAMPLE_RATE:
    print()
    print(f"[!!] {sr} Hz capture: RSCE only decodes {SAMPLE_RATE} Hz. Skipping sync check.")
    raise SystemExit(1)

signal = data[:, 0]
header = detect_vis_header(signal)
sync   = find_sync_pulses(signal, header.end if header else None)

print()
if header:
    print(f"VIS header  : code 0x{header.code:02X} at {header.start / sr:.3f} s "
          f"(parity {'ok' if header.parity_ok else 'FAILED'})")
else:
    print("VIS header  : not found")
print(f"Sync pulses : {len(sync.raw_positions)}")
if sync.line_spacing:
    print(f"Line period : {sync.line_spacing:.1f} samples  (nominal {LINE_SAMPLES})")

print("=" * 60)
print("EXPECTED: one VIS header 0x08 | 240 sync pulses | line period ~6616-6619")
