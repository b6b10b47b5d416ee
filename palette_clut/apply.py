# palette_clut/apply.py
from __future__ import annotations

"""
Cube applier.

Maps every pixel through a lookup cube with trilinear interpolation. Pixel
values are scaled to continuous grid coordinates p = v * (L-1) / 255, the 8
surrounding nodes are blended by the fractional offsets, and the result is
rounded back to uint8. Alpha (4th channel) is copied unchanged.

Row bands are independent, so workers > 1 splits the image across a
ThreadPoolExecutor. Output does not depend on the worker count.
"""

from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .core_types import Cube, U8Image, assert_u8_image_rgb
from .cube import validate_cube, validate_level
from .utils import split_rows_into_parts

# Below this many rows threading costs more than it saves.
_MIN_ROWS_PER_BAND = 64


def trilinear_lookup(rgb: np.ndarray, cube: Cube, level: int) -> np.ndarray:
    """
    Trilinear cube lookup for any [...,3] block of 8-bit colours.

    Returns:
      uint8 [...,3]
    """
    table = cube.astype(np.float64, copy=False)
    scale = (level - 1) / 255.0
    p = rgb[..., :3].astype(np.float64) * scale
    i0 = np.floor(p).astype(np.int32)
    i0 = np.clip(i0, 0, level - 1)
    i1 = np.minimum(i0 + 1, level - 1)
    d = p - i0

    r0, g0, b0 = i0[..., 0], i0[..., 1], i0[..., 2]
    r1, g1, b1 = i1[..., 0], i1[..., 1], i1[..., 2]
    dr, dg, db = d[..., 0:1], d[..., 1:2], d[..., 2:3]

    c000 = table[r0, g0, b0]
    c100 = table[r1, g0, b0]
    c010 = table[r0, g1, b0]
    c110 = table[r1, g1, b0]
    c001 = table[r0, g0, b1]
    c101 = table[r1, g0, b1]
    c011 = table[r0, g1, b1]
    c111 = table[r1, g1, b1]

    c00 = c000 * (1 - dr) + c100 * dr
    c10 = c010 * (1 - dr) + c110 * dr
    c01 = c001 * (1 - dr) + c101 * dr
    c11 = c011 * (1 - dr) + c111 * dr
    c0 = c00 * (1 - dg) + c10 * dg
    c1 = c01 * (1 - dg) + c11 * dg
    out = c0 * (1 - db) + c1 * db
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def apply_cube(image: U8Image, cube: Cube, level: int, *, workers: int = 1) -> U8Image:
    """
    Recolour an image through a lookup cube.

    Args:
      image  : uint8 [H,W,3] or [H,W,4]
      cube   : uint8 [L,L,L,3]
      level  : quantization level L
      workers: row-band threads
    Returns:
      uint8 array with the same shape as image
    """
    img = assert_u8_image_rgb(image)
    level = validate_level(level)
    validate_cube(cube, level)

    out = img.copy()
    height = img.shape[0]
    bands = split_rows_into_parts(height, workers)

    def run_band(band):
        start, end = band
        out[start:end, :, :3] = trilinear_lookup(img[start:end], cube, level)

    if workers <= 1 or len(bands) <= 1 or height < 2 * _MIN_ROWS_PER_BAND:
        if height:
            run_band((0, height))
        return out

    with ThreadPoolExecutor(max_workers=workers) as ex:
        list(ex.map(run_band, bands))
    return out


__all__ = ["trilinear_lookup", "apply_cube"]
