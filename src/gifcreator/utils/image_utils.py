"""Shared image conversion utilities."""
from __future__ import annotations

import numpy as np
from PIL import Image


def numpy_to_pil(arr: np.ndarray) -> Image.Image:
    """Convert a NumPy array to a Pillow image.

    Supports:
    - 2-D arrays (grayscale)
    - 3-D arrays with 3 channels (RGB) or 4 channels (RGBA)

    Data that is not uint8 (e.g. uint16, float32) is scaled from its own
    min/max range to 0-255, since GIF frames only hold 8-bit samples.
    """
    if arr.ndim not in (2, 3):
        raise ValueError("Unsupported image shape")
    if arr.ndim == 3 and arr.shape[2] not in (3, 4):
        raise ValueError("Unsupported image shape")

    if arr.dtype != np.uint8:
        arr_f = arr.astype(np.float64)
        lo, hi = float(arr_f.min()), float(arr_f.max())
        if hi - lo > 0:
            arr = ((arr_f - lo) / (hi - lo) * 255.0).astype(np.uint8)
        else:
            arr = np.clip(arr_f, 0, 255).astype(np.uint8)

    # uint8 arrays map to L, RGB or RGBA by shape
    return Image.fromarray(np.ascontiguousarray(arr))
