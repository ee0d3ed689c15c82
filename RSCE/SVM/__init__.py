# =============================================================================
# RSCE/SVM/__init__.py — Signal Verification Module
# =============================================================================
#
# The SVM contains everything needed to turn a received Robot36 capture
# back into a picture, and to check that the encoder's output decodes.
#
# Sub-modules:
#   estimators.py    — Goertzel tone power and autocorrelation pitch
#   vis_detector.py  — calibration header / VIS code detector
#   sync_locator.py  — horizontal sync detection and timing refinement
#   scan_decoder.py  — full receive pipeline (samples → grayscale raster)
#   validate.py      — automated PASS/FAIL check of the whole RSCE stack
# =============================================================================
