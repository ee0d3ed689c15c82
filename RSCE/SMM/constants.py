# =============================================================================
# constants.py — SMM Robot36 Protocol Constants
# =============================================================================
#
# Every timing and tone value below must match real Robot36 transmitters and
# receivers exactly.  DO NOT change these without checking against a
# reference decoder (MMSSTV / QSSTV / Robot36 Android).
#
# Two sample-count conventions exist on purpose:
#   *_MS values are fed to the encoder, which floors each segment length
#   (int(ms * SAMPLE_RATE / 1000)).  The decoder works from the rounded
#   *_SAMPLES values below.  The one-sample difference is below pixel width.

# -----------------------------------------------------------------------------
# AUDIO FORMAT
# -----------------------------------------------------------------------------

SAMPLE_RATE     = 44_100        # Hz — the only rate accepted for decode
PCM_FULL_SCALE  = 32_768        # int16 → float normalization divisor
PCM_AMPLITUDE   = 32_767        # sin() → int16 peak used by the encoder
BITS_PER_SAMPLE = 16

# -----------------------------------------------------------------------------
# FRAME GEOMETRY
# -----------------------------------------------------------------------------

WIDTH        = 320
HEIGHT       = 240
CHROMA_WIDTH = WIDTH // 2       # chroma is decimated 2:1 horizontally

# -----------------------------------------------------------------------------
# TONE BANDS  (Hz)
# -----------------------------------------------------------------------------

FREQ_BLACK   = 1500             # pixel value 0
FREQ_WHITE   = 2300             # pixel value 255
FREQ_RANGE   = FREQ_WHITE - FREQ_BLACK

FREQ_SYNC    = 1200             # horizontal sync, VIS start/stop, header break
FREQ_PORCH   = 1500
FREQ_SEP_LOW = 1500             # separator after luma
FREQ_SEP_HIGH = 1900            # porch before chroma
FREQ_LEADER  = 1900             # calibration leader tone

FREQ_VIS_ONE  = 1100            # VIS data/parity bit = 1
FREQ_VIS_ZERO = 1300            # VIS data/parity bit = 0

# -----------------------------------------------------------------------------
# SEGMENT DURATIONS  (ms)
# -----------------------------------------------------------------------------

LEADER_MS     = 300.0
BREAK_MS      = 10.0
VIS_BIT_MS    = 30.0

HSYNC_MS      = 9.0
PORCH_MS      = 3.0
Y_SCAN_MS     = 88.064
SEP_LOW_MS    = 4.5
SEP_HIGH_MS   = 1.5
UV_SCAN_MS    = 44.032

# 9 + 3 + 88.064 + 4.5 + 1.5 + 44.032
LINE_MS       = 150.096

VIS_CODE_ROBOT36 = 0x08
VIS_DATA_BITS    = 7

# -----------------------------------------------------------------------------
# DECODER SAMPLE COUNTS  (rounded, see note at top)
# -----------------------------------------------------------------------------

HSYNC_SAMPLES   = round(SAMPLE_RATE * HSYNC_MS / 1000)     # = 397
PORCH_SAMPLES   = round(SAMPLE_RATE * PORCH_MS / 1000)     # = 132
Y_SCAN_SAMPLES  = round(SAMPLE_RATE * Y_SCAN_MS / 1000)    # = 3884
LINE_SAMPLES    = round(SAMPLE_RATE * LINE_MS / 1000)      # = 6619
VIS_BIT_SAMPLES = int(SAMPLE_RATE * VIS_BIT_MS / 1000)     # = 1323

# -----------------------------------------------------------------------------
# SYNC LOCATOR
# -----------------------------------------------------------------------------

SYNC_WINDOW          = 256      # Goertzel window (samples)
SYNC_STRIDE          = 100      # coarse scan stride (samples)
SYNC_SEARCH_START_S  = 0.3      # default scan start, skips the first leader
SYNC_POWER_THRESHOLD = 0.08     # absolute 1200 Hz power floor
SYNC_PEAK_RADIUS     = 50       # ± samples searched around a hit
SYNC_PEAK_STEP       = 10
SYNC_SKIP_FACTOR     = 0.7      # jump after a hit, in line periods
SYNC_MIN_SPACING     = 0.8      # minimum gap between hits, in line periods

REFINE_SPACING_POSITIONS = 10   # positions used for the average spacing
REFINE_KEEP_RATIO        = 0.05 # deviation below this: keep detection
REFINE_BLEND_RATIO       = 0.15 # below this: blend 90/10, above: substitute
REFINE_BLEND_WEIGHT      = 0.9  # weight of the detected position when blending

MIN_SYNC_PULSES      = 10       # fewer than this → fixed-timing fallback
FALLBACK_START_S     = 1.2      # fixed-timing grid origin

# -----------------------------------------------------------------------------
# PITCH ESTIMATOR
# -----------------------------------------------------------------------------

PITCH_MIN_WINDOW = 60
PITCH_MAX_WINDOW = 200
PITCH_LAG_SLACK  = 2
PITCH_MIN_LAG    = SAMPLE_RATE // FREQ_WHITE - PITCH_LAG_SLACK   # = 17
PITCH_MAX_LAG    = SAMPLE_RATE // FREQ_BLACK + PITCH_LAG_SLACK   # = 31

# -----------------------------------------------------------------------------
# VIS HEADER DETECTOR
# -----------------------------------------------------------------------------

HEADER_SEARCH_SECONDS = 10.0    # how far into a capture to look for a header
HEADER_SCAN_STEP      = 32
HEADER_MIN_POWER      = 0.02    # Goertzel power floor for a "present" tone
HEADER_MIN_LEADER_MS  = 100.0   # leader run required before a start bit
HEADER_GUARD_FRACTION = 0.125   # slot margin excluded at each edge
