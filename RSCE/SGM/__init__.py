# =============================================================================
# SGM — Signal Generation Module
# Subfolder of RSCE (Robot36 Signal Codec Engine)
# =============================================================================
#
# Generates deterministic, phase-continuous Robot36 PCM streams from RGB
# rasters.
#
# Modules:
#   tone_encoder.py  — stateful oscillator: (frequency, ms) segments → int16 PCM
#   frame_builder.py — YUV conversion, VIS header, per-line segment layout
#
# Constants live in RSCE/SMM/constants.py
# Decoding and verification live in RSCE/SVM/
# =============================================================================
