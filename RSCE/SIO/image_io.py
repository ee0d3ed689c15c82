# =============================================================================
# image_io.py — Picture-format boundary adapter (Pillow)
# =============================================================================
#
# The codec core never sees a picture format.  This module converts between
# encoded image bytes and the fixed raster shapes the core works on:
#
#   load_rgb()    any Pillow-readable image  → (240, 320, 3) uint8 RGB
#   encode_gray() (240, 320) uint8 raster    → PNG / JPEG / BMP ... bytes
#
# Resizing ignores aspect ratio: Robot36 frames are always 320×240 and a
# letterboxed image would waste scan lines on padding.
# =============================================================================

from __future__ import annotations
import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from RSCE.SMM.constants import WIDTH, HEIGHT


class ImageFormatError(ValueError):
    """Raised when the supplied bytes are not a readable image."""


def load_rgb(data: bytes) -> np.ndarray:
    """Decode an image, drop any alpha channel and resize to 320×240."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            rgb = img.convert("RGB").resize(
                (WIDTH, HEIGHT), Image.Resampling.LANCZOS,
            )
    except (UnidentifiedImageError, OSError) as e:
        raise ImageFormatError(f"cannot read image: {e}") from e
    return np.asarray(rgb, dtype=np.uint8)


def encode_gray(image: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode a single-channel uint8 raster into a picture format."""
    buf = io.BytesIO()
    raster = np.ascontiguousarray(image, dtype=np.uint8)
    if raster.ndim != 2:
        raise ValueError(f"expected a single-channel raster, got shape {raster.shape}")
    Image.fromarray(raster).save(buf, format=fmt)
    return buf.getvalue()
