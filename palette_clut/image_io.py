# palette_clut/image_io.py
from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, ImageCms, ImageOps

from .core_types import U8Image, assert_u8_image_rgb

"""
Image I/O helpers (RGBA in sRGB). Alpha is kept as-is, never binarised.
"""


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im.convert("RGBA"),
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is None:
                return im.convert("RGBA")
            return im2
        except (ImageCms.PyCMSError, OSError, ValueError):
            return im.convert("RGBA")

    return im.convert("RGBA")


def load_image_rgba(path: Path) -> U8Image:
    """Load any Pillow-readable image as uint8 [H,W,4] sRGB + alpha."""
    with Image.open(path) as im0:
        im = _convert_to_srgb_rgba(im0)
    return np.array(im, dtype=np.uint8)


def save_image_rgba(path: Path, image: U8Image) -> Path:
    """Save a uint8 [H,W,3|4] array as PNG. Returns the path written."""
    arr = assert_u8_image_rgb(image)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    Image.fromarray(np.ascontiguousarray(arr)).save(path, format="PNG")
    return path


__all__ = [
    "load_image_rgba",
    "save_image_rgba",
]
