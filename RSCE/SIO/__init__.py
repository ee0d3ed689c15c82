# =============================================================================
# RSCE/SIO/__init__.py — Signal I/O Module
# =============================================================================
#
# Everything that touches bytes from the outside world lives here.  The rest
# of RSCE only sees numpy sample arrays and rasters.
#
# Sub-modules:
#   wav_container.py — RIFF/WAVE PCM16 parse + canonical serialize
#   image_io.py      — Pillow adapter: image bytes ↔ 320×240 rasters
# =============================================================================
