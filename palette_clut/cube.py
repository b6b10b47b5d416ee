# palette_clut/cube.py
from __future__ import annotations

"""
Identity lookup cube generation and validation.

A cube of level L holds L nodes per channel, indexed [r, g, b]. Node i on
each axis stands for the 8-bit value round(i * 255 / (L - 1)), so the first
and last nodes sit exactly on 0 and 255. A level-1 cube has a single node
standing for 0.
"""

import numpy as np

from .core_types import Cube
from .errors import GenerationError, InvalidParameter


def validate_level(level: int) -> int:
    """Return level as int, or raise InvalidParameter if it is not a positive int."""
    if isinstance(level, (bool, np.bool_)) or not isinstance(level, (int, np.integer)):
        raise InvalidParameter(f"quantization level must be an int, got {level!r}")
    if int(level) <= 0:
        raise InvalidParameter(f"quantization level must be positive, got {level}")
    return int(level)


def cube_node_values(level: int) -> np.ndarray:
    """8-bit value represented by each node along one axis. uint8 [L]."""
    level = validate_level(level)
    if level == 1:
        return np.zeros((1,), dtype=np.uint8)
    steps = np.arange(level, dtype=np.float64) * (255.0 / (level - 1))
    return np.rint(steps).astype(np.uint8)


def generate_identity_cube(level: int = 8) -> Cube:
    """
    Build the identity cube for a quantization level.

    Returns:
      uint8 [L,L,L,3] where cube[i,j,k] == (v[i], v[j], v[k]).
    """
    values = cube_node_values(level)
    rr, gg, bb = np.meshgrid(values, values, values, indexing="ij")
    return np.stack([rr, gg, bb], axis=-1).astype(np.uint8, copy=False)


def validate_cube(cube: np.ndarray, level: int) -> Cube:
    """Raise GenerationError unless cube is uint8 of shape (L,L,L,3)."""
    level = validate_level(level)
    expected = (level, level, level, 3)
    if not isinstance(cube, np.ndarray):
        raise GenerationError(f"cube must be an ndarray, got {type(cube).__name__}")
    if cube.shape != expected:
        raise GenerationError(f"cube shape {cube.shape} != expected {expected}")
    if cube.dtype != np.uint8:
        raise GenerationError(f"cube dtype {cube.dtype} != uint8")
    return cube


__all__ = [
    "validate_level",
    "cube_node_values",
    "generate_identity_cube",
    "validate_cube",
]
