"""Tests for the rsce command line."""

import numpy as np
import pytest
from PIL import Image

from RSCE.cli import build_parser, main
from RSCE.SIO.wav_container import serialize_wav

from conftest import png_bytes


def test_encode_then_decode_with_report(tmp_path, band_rgb, capsys):
    image = tmp_path / "bands.png"
    image.write_bytes(png_bytes(band_rgb))
    wav = tmp_path / "out.wav"
    png = tmp_path / "out.png"

    assert main(["encode", str(image), str(wav)]) == 0
    assert wav.stat().st_size == 44 + 2 * 1_627_971

    assert main(["decode", str(wav), str(png), "--report"]) == 0
    out = capsys.readouterr().out
    assert "Code     : 0x08" in out
    assert "Pulses found      : 240" in out
    assert "VERDICT: PASS" in out
    with Image.open(png) as img:
        assert img.size == (320, 240)


def test_decode_silence_fails_verdict(tmp_path, capsys):
    wav = tmp_path / "quiet.wav"
    wav.write_bytes(serialize_wav(np.zeros(44100, dtype=np.int16)))
    assert main(["decode", str(wav), str(tmp_path / "q.png"), "--report", "--no-vis"]) == 1
    out = capsys.readouterr().out
    assert "VERDICT: FAIL" in out
    assert "fixed timing" in out


def test_missing_input(tmp_path, capsys):
    assert main(["decode", str(tmp_path / "nope.wav"), str(tmp_path / "x.png")]) == 1
    assert "[!!]" in capsys.readouterr().out


def test_bad_image(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    assert main(["encode", str(bad), str(tmp_path / "x.wav")]) == 1


def test_command_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
