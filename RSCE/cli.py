#!/usr/bin/env python3
# =============================================================================
# cli.py — RSCE Command Line
# =============================================================================
#
# Usage:
#   rsce encode picture.jpg out.wav
#   rsce decode capture.wav out.png
#   rsce decode capture.wav out.png --no-vis --report
#   rsce validate
#   python -m RSCE.cli ...            (same thing without the entry point)
#
# Decode report sections (--report):
#   [1] File info          — sample rate, samples, duration
#   [2] VIS header         — code, parity, position
#   [3] Sync report        — pulses found, line spacing, fallback
#   [4] Deviations         — lines whose sync was substituted
#   [5] VERDICT            — PASS / FAIL with reason
#
# Exit status: 0 on success, 1 on a FAIL verdict or unreadable input.
# =============================================================================

from __future__ import annotations
import argparse
import logging
import os
import sys

from RSCE.SMM.constants import SAMPLE_RATE, HEIGHT, VIS_CODE_ROBOT36
from RSCE.SGM.frame_builder import encode_rgb_to_wav
from RSCE.SIO.image_io import ImageFormatError, encode_gray, load_rgb
from RSCE.SIO.wav_container import WavFormatError, parse_wav
from RSCE.SVM.scan_decoder import DecodeReport, decode_wav_bytes

DIVIDER = "=" * 68
MAX_DEVIATIONS_SHOWN = 10


def _read(path: str) -> bytes:
    with open(path, "rb") as fh:
        return fh.read()


def _write(path: str, data: bytes) -> None:
    with open(path, "wb") as fh:
        fh.write(data)


# ---------------------------------------------------------------------------
# encode
# ---------------------------------------------------------------------------

def run_encode(image_path: str, wav_path: str) -> bool:
    try:
        rgb = load_rgb(_read(image_path))
    except (OSError, ImageFormatError) as e:
        print(f"  [!!] {e}")
        return False

    wav = encode_rgb_to_wav(rgb)
    _write(wav_path, wav)

    samples = (len(wav) - 44) // 2
    print(f"  Encoded  : {os.path.basename(image_path)} → {wav_path}")
    print(f"  Samples  : {samples:,}  ({samples / SAMPLE_RATE:.2f} s @ {SAMPLE_RATE} Hz)")
    return True


# ---------------------------------------------------------------------------
# decode
# ---------------------------------------------------------------------------

def print_report(wav_path: str, sample_rate: int, report: DecodeReport) -> bool:
    """Print the sectioned decode report. Returns the verdict."""
    verdict_pass = True
    reasons: list[str] = []

    # [1] File info
    print(f"\n{DIVIDER}")
    print(f"  Robot36 Decode Report")
    print(DIVIDER)
    print(f"  File     : {os.path.basename(wav_path)}")
    print(f"  Rate     : {sample_rate} Hz")
    print(f"  Samples  : {report.sample_count:,}")
    print(f"  Duration : {report.sample_count / sample_rate:.2f} s")

    # [2] VIS header
    print(f"\n  -- VIS Header --")
    if report.vis is None:
        print(f"  [INFO] No header found — sync scan started at 0.3 s")
    else:
        vis = report.vis
        print(f"  Code     : 0x{vis.code:02X}"
              f"{'  (Robot36)' if vis.code == VIS_CODE_ROBOT36 else '  (NOT Robot36)'}")
        print(f"  Parity   : {'OK' if vis.parity_ok else 'FAILED'}")
        print(f"  Position : {vis.start / sample_rate:.3f} s – {vis.end / sample_rate:.3f} s")

    # [3] Sync report
    print(f"\n  -- Sync Report --")
    print(f"  Pulses found      : {report.sync_count}")
    if report.line_spacing is not None:
        print(f"  Line spacing      : {report.line_spacing:.1f} samples "
              f"({report.line_spacing / sample_rate * 1000:.3f} ms)")
    print(f"  Lines decoded     : {report.lines_decoded} / {HEIGHT}")

    if report.fallback:
        verdict_pass = False
        reasons.append(f"only {report.sync_count} sync pulses; fixed timing used")
        print(f"  [FAIL] Too few sync pulses — image decoded on fixed timing")
    else:
        print(f"  [PASS] Sync lock acquired")

    if report.lines_decoded < HEIGHT:
        verdict_pass = False
        reasons.append(f"signal ended after {report.lines_decoded} lines")
        print(f"  [FAIL] Incomplete frame")

    # [4] Deviations
    print(f"\n  -- Sync Deviations --")
    if not report.deviations:
        print(f"  (none)")
    else:
        print(f"  {'Line':>5}  {'Detected':>10}  {'Expected':>10}  {'Error':>7}")
        print(f"  {'-'*5}  {'-'*10}  {'-'*10}  {'-'*7}")
        for d in report.deviations[:MAX_DEVIATIONS_SHOWN]:
            print(f"  {d.line:>5}  {d.detected:>10.0f}  {d.expected:>10.0f}  {d.deviation:>7.0f}")
        if len(report.deviations) > MAX_DEVIATIONS_SHOWN:
            print(f"  ... {len(report.deviations) - MAX_DEVIATIONS_SHOWN} more")

    # [5] Verdict
    print(f"\n{DIVIDER}")
    if verdict_pass:
        print(f"  VERDICT: PASS — clean Robot36 frame")
    else:
        print(f"  VERDICT: FAIL — image may be misaligned or incomplete")
        for r in reasons:
            print(f"    - {r}")
    print(f"{DIVIDER}\n")

    return verdict_pass


def run_decode(wav_path: str, png_path: str, use_vis: bool, report: bool) -> bool:
    try:
        data = _read(wav_path)
        result = decode_wav_bytes(data, use_vis=use_vis)
    except (OSError, WavFormatError) as e:
        print(f"  [!!] {e}")
        return False

    _write(png_path, encode_gray(result.image))
    print(f"  Decoded  : {wav_path} → {png_path}")

    if report:
        return print_report(wav_path, parse_wav(data).sample_rate, result.report)
    return True


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsce",
        description="Robot36 SSTV encoder / decoder",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encode", help="Image → Robot36 WAV")
    enc.add_argument("image", help="Any image Pillow can read")
    enc.add_argument("wav", help="Output WAV path")

    dec = sub.add_parser("decode", help="Robot36 WAV → grayscale PNG")
    dec.add_argument("wav", help="Mono or multi-channel 16-bit 44.1 kHz WAV")
    dec.add_argument("png", help="Output image path")
    dec.add_argument("--no-vis", action="store_true",
                     help="Skip header detection; start the sync scan at 0.3 s")
    dec.add_argument("--report", action="store_true",
                     help="Print the full decode report and verdict")

    sub.add_parser("validate", help="Run the built-in self-validation suite")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)-7s %(name)s: %(message)s",
    )

    if args.command == "encode":
        ok = run_encode(args.image, args.wav)
    elif args.command == "decode":
        ok = run_decode(args.wav, args.png, use_vis=not args.no_vis, report=args.report)
    else:
        from RSCE.SVM import validate
        return validate.main()

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
