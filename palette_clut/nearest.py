# palette_clut/nearest.py
from __future__ import annotations

"""
Nearest-neighbour palette transform.

Every pixel becomes the palette colour at the smallest luma-weighted
distance. No cube and no cache are involved. Ties go to the earliest palette
entry (np.argmin returns the first minimum). Alpha passes through.
"""

from typing import Tuple

import numpy as np

from .colour_metric import weighted_distance_sq
from .constants import NEAREST_CHUNK
from .core_types import Palette, U8Image, assert_u8_image_rgb


def nearest_palette_indices(
    src_rgb: np.ndarray, pal_rgb: np.ndarray, chunk: int = NEAREST_CHUNK
) -> np.ndarray:
    """For each source row [N,3], index of the nearest palette row [P,3]. int64 [N]."""
    src = np.asarray(src_rgb).reshape(-1, 3)
    out = np.empty((src.shape[0],), dtype=np.int64)
    step = max(1, int(chunk))
    for i in range(0, src.shape[0], step):
        dist_sq = weighted_distance_sq(src[i : i + step], pal_rgb)
        out[i : i + step] = np.argmin(dist_sq, axis=1)
    return out


def _unique_colours_with_inverse(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Unique RGB rows of an [H,W,3] block and the inverse index over flattened pixels."""
    flat = rgb.reshape(-1, 3)
    if flat.shape[0] == 0:
        return np.zeros((0, 3), dtype=np.uint8), np.zeros((0,), dtype=np.int64)
    uniques, inverse = np.unique(flat, axis=0, return_inverse=True)
    return uniques.astype(np.uint8, copy=False), inverse.reshape(-1).astype(np.int64)


def nearest_neighbour_transform(image: U8Image, palette: Palette) -> U8Image:
    """
    Replace every pixel by its nearest palette colour.

    Args:
      image  : uint8 [H,W,3] or [H,W,4]
      palette: Palette (non-empty by construction)
    Returns:
      uint8 array with the same shape as image; RGB values drawn from palette
    """
    img = assert_u8_image_rgb(image)
    pal_rgb = palette.as_array()
    out = img.copy()

    uniques, inverse = _unique_colours_with_inverse(img[..., :3])
    if uniques.shape[0] == 0:
        return out
    idx = nearest_palette_indices(uniques, pal_rgb)
    mapped = pal_rgb[idx][inverse]
    out[..., :3] = mapped.reshape(img.shape[0], img.shape[1], 3)
    return out


nearest_neighbor_transform = nearest_neighbour_transform

__all__ = [
    "nearest_palette_indices",
    "nearest_neighbour_transform",
    "nearest_neighbor_transform",
]
