# palette_clut/colour_metric.py
from __future__ import annotations

"""
Luma-weighted RGB distance.

Exports:
  colour_distance(c1, c2)          -> float
  weighted_distance_sq(src, pal)   -> float64 [N,P]

The weights are the Rec. 601 luma coefficients used as a cheap perceptual
proxy. This is not a perceptual colour space (no CIELAB / OKLab).

Compat alias:
  distance === colour_distance
"""

import math

import numpy as np

from .constants import LUMA_WEIGHTS, W_BLUE, W_GREEN, W_RED
from .core_types import RGBTuple

_WEIGHTS = np.array(LUMA_WEIGHTS, dtype=np.float64)


def colour_distance(c1: RGBTuple, c2: RGBTuple) -> float:
    """sqrt(0.299*dr^2 + 0.587*dg^2 + 0.114*db^2) between two RGB colours."""
    dr = float(c1[0]) - float(c2[0])
    dg = float(c1[1]) - float(c2[1])
    db = float(c1[2]) - float(c2[2])
    return math.sqrt(dr * dr * W_RED + dg * dg * W_GREEN + db * db * W_BLUE)


def weighted_distance_sq(src_rgb: np.ndarray, pal_rgb: np.ndarray) -> np.ndarray:
    """
    Squared luma-weighted distance between every source row and every palette row.

    Args:
      src_rgb: [N,3] (any numeric dtype)
      pal_rgb: [P,3]
    Returns:
      float64 [N,P]
    """
    src = np.asarray(src_rgb, dtype=np.float64).reshape(-1, 3)
    pal = np.asarray(pal_rgb, dtype=np.float64).reshape(-1, 3)
    diff = src[:, None, :] - pal[None, :, :]
    return np.sum(diff * diff * _WEIGHTS, axis=2)


distance = colour_distance

__all__ = ["colour_distance", "weighted_distance_sq", "distance"]
