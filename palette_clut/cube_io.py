# palette_clut/cube_io.py
from __future__ import annotations

"""
Cube persistence as an inspectable PNG.

Layout (level L):
  image height L, width L*L, RGB
  pixel (x = g*L + r, y = b) holds cube[r, g, b]

Red varies fastest along a row, green steps every L pixels, and each row is
one blue slice. Two PNG text chunks record the level and the layout name; load
checks both against the pixel dimensions before trusting the data.
"""

from pathlib import Path
from typing import BinaryIO, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError
from PIL.PngImagePlugin import PngInfo

from .constants import CUBE_LAYOUT, PNG_KEY_LAYOUT, PNG_KEY_LEVEL
from .core_types import Cube
from .cube import validate_cube, validate_level
from .errors import CubeIOError, GenerationError


def cube_to_image_array(cube: Cube, level: int) -> np.ndarray:
    """Flatten [r,g,b,3] into the (L, L*L, 3) persisted layout."""
    validate_cube(cube, level)
    # [r,g,b] -> [b,g,r] so a row is a blue slice and r runs fastest
    return np.ascontiguousarray(cube.transpose(2, 1, 0, 3).reshape(level, level * level, 3))


def image_array_to_cube(arr: np.ndarray, level: int) -> Cube:
    """Inverse of cube_to_image_array."""
    expected = (level, level * level, 3)
    if arr.shape != expected:
        raise GenerationError(f"cube image shape {arr.shape} != expected {expected}")
    cube = arr.reshape(level, level, level, 3).transpose(2, 1, 0, 3)
    return validate_cube(np.ascontiguousarray(cube, dtype=np.uint8), level)


def save_cube_png(dst: Union[Path, BinaryIO], cube: Cube, level: int) -> None:
    """Encode cube as PNG into a path or an open binary file."""
    level = validate_level(level)
    info = PngInfo()
    info.add_text(PNG_KEY_LEVEL, str(level))
    info.add_text(PNG_KEY_LAYOUT, CUBE_LAYOUT)
    arr = cube_to_image_array(cube, level)
    try:
        Image.fromarray(arr).save(dst, format="PNG", pnginfo=info)
    except OSError as exc:
        raise CubeIOError(f"writing cube to {dst}: {exc}") from exc


def load_cube_png(path: Path, level: Optional[int] = None) -> Cube:
    """
    Decode a cube written by save_cube_png.

    Raises:
      CubeIOError     : file missing or not a readable image
      GenerationError : metadata missing/inconsistent, or level mismatch
    """
    try:
        with Image.open(path) as im:
            im.load()
            text = dict(getattr(im, "text", {}) or {})
            mode = im.mode
            arr = np.array(im, dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as exc:
        raise CubeIOError(f"reading cube {path}: {exc}") from exc

    if text.get(PNG_KEY_LAYOUT) != CUBE_LAYOUT:
        raise GenerationError(f"{path}: unknown cube layout {text.get(PNG_KEY_LAYOUT)!r}")
    try:
        stored_level = int(text.get(PNG_KEY_LEVEL, ""))
    except ValueError as exc:
        raise GenerationError(f"{path}: missing or invalid cube level") from exc
    if stored_level <= 0:
        raise GenerationError(f"{path}: invalid cube level {stored_level}")
    if level is not None and validate_level(level) != stored_level:
        raise GenerationError(
            f"{path}: cube level {stored_level} != requested level {level}"
        )
    if mode != "RGB":
        raise GenerationError(f"{path}: cube image mode {mode!r} != 'RGB'")

    return image_array_to_cube(arr, stored_level)


__all__ = [
    "cube_to_image_array",
    "image_array_to_cube",
    "save_cube_png",
    "load_cube_png",
]
