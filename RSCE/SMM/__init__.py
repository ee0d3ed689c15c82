# =============================================================================
# RSCE/SMM/__init__.py — Signal Mapping Module
# =============================================================================
#
# The SMM is the single source of truth for the Robot36 protocol: sample
# rate, frame geometry, tone frequencies, segment durations and the tuning
# constants of the sync locator, pitch estimator and VIS header detector.
#
# All other RSCE sub-modules import exclusively from here.
# Never define protocol constants outside this module.
#
# Sub-modules:
#   constants.py  — all timing constants and tone bands
# =============================================================================
