# =============================================================================
# Robot36 Signal Codec Engine (RSCE)
# =============================================================================
#
# ── PYTHON OWNS BOTH ENDS OF THE AUDIO LINK ──────────────────────────────────
#
# RESPONSIBLE for:
#   - Transmit
#       RGB raster → YUV planes → calibration header + VIS code + 240 scan
#       lines of phase-continuous FM tones → mono 16-bit 44.1 kHz WAV.
#       Every segment length is an integer sample count derived from the
#       protocol durations; the oscillator phase never jumps between tones.
#   - Receive
#       WAV → normalized samples → header detection → horizontal sync
#       detection and refinement → per-pixel pitch → 320×240 grayscale.
#   - Diagnostics
#       Missing header, too few sync pulses (fixed-timing fallback) and
#       lines whose sync was substituted are reported, never raised.
#   - Container and picture formats at the boundary (SIO)
#
# NOT responsible for:
#   - Live audio capture or playback
#   - Colour reconstruction on receive (only luma is decoded)
#   - SSTV modes other than Robot36
#
# ── DATA FLOW ─────────────────────────────────────────────────────────────────
#   encode:  image bytes ─SIO.image_io→ RGB ─SGM.frame_builder→ int16 PCM
#            ─SIO.wav_container→ WAV bytes
#   decode:  WAV bytes ─SIO.wav_container→ int16 PCM ─SVM.scan_decoder→
#            uint8 raster ─SIO.image_io→ PNG bytes
#
# ── ROBOT36 LINE  (150.096 ms) ───────────────────────────────────────────────
#
#   ┌──────┬───────┬──────────────────────┬───────┬─────┬──────────────┐
#   │ sync │ porch │          Y           │  sep  │porch│    V or U    │
#   │ 1200 │ 1500  │     1500 – 2300      │ 1500  │1900 │ 1500 – 2300  │
#   │ 9 ms │ 3 ms  │      88.064 ms       │4.5 ms │1.5ms│  44.032 ms   │
#   └──────┴───────┴──────────────────────┴───────┴─────┴──────────────┘
#      V (R-Y) on even lines, U (B-Y) on odd lines, 160 samples each.
#
# ── Module layout ─────────────────────────────────────────────────────────────
#   SMM/   — protocol constants (single source of truth)
#   SIO/   — WAV container codec, Pillow image adapter
#   SGM/   — tone encoder + frame builder (transmit)
#   SVM/   — estimators, header detector, sync locator, decoder, validate
#   bridge.py — Flask HTTP service (encode / decode endpoints)
#   cli.py    — `rsce` command line
# =============================================================================
