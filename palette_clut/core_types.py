# palette_clut/core_types.py
from __future__ import annotations

"""
Core type aliases, the Palette value object, and lightweight helpers.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidPalette

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 3) or (H, W, 4)
Cube = NDArray[np.uint8]  # (L, L, L, 3) indexed [r, g, b]


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to canonical uppercase hex string '#RRGGBB'."""
    return f"#{rgb[0]:02X}{rgb[1]:02X}{rgb[2]:02X}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


def coerce_to_rgb_tuple(value: Union[Sequence[int], NDArray[np.generic]]) -> RGBTuple:
    """
    Coerce a 3-length sequence or array to an (int, int, int) RGB tuple.
    Raises InvalidPalette when the value is not a valid 8-bit colour.
    """
    if isinstance(value, (str, bytes)) or len(value) != 3:  # type: ignore[arg-type]
        raise InvalidPalette(f"expected an (r, g, b) triple, got {value!r}")
    out = []
    for channel in value:  # type: ignore[union-attr]
        if isinstance(channel, (bool, np.bool_)) or not isinstance(
            channel, (int, np.integer)
        ):
            raise InvalidPalette(f"colour channels must be ints, got {value!r}")
        if not 0 <= int(channel) <= 255:
            raise InvalidPalette(f"colour channel out of range 0..255 in {value!r}")
        out.append(int(channel))
    return (out[0], out[1], out[2])


# Value objects


@dataclass(frozen=True)
class Palette:
    """Ordered, non-empty sequence of RGB colours resolved from a theme."""

    name: str
    colours: Tuple[RGBTuple, ...]

    def __post_init__(self) -> None:
        colours = tuple(coerce_to_rgb_tuple(c) for c in self.colours)
        if not colours:
            raise InvalidPalette(f"palette {self.name!r} has no colours")
        object.__setattr__(self, "colours", colours)

    @classmethod
    def from_hexes(cls, name: str, hexes: Iterable[str]) -> "Palette":
        """Build a palette from hex strings ('#rrggbb', '#rgb' or 'rrggbb')."""
        colours = []
        for hx in hexes:
            if not isinstance(hx, str):
                raise InvalidPalette(f"colour {hx!r} in {name!r} is not a hex string")
            try:
                colours.append(hex_to_rgb(hx if hx.startswith("#") else f"#{hx}"))
            except ValueError as exc:
                raise InvalidPalette(f"invalid colour {hx!r} in {name!r}: {exc}") from exc
        return cls(name, tuple(colours))

    def __len__(self) -> int:
        return len(self.colours)

    def hexes(self) -> Tuple[HexStr, ...]:
        """Canonical '#RRGGBB' strings in palette order."""
        return tuple(rgb_to_hex(c) for c in self.colours)

    def as_array(self) -> NDArray[np.uint8]:
        """Palette rows as uint8 [P,3]."""
        return np.array(self.colours, dtype=np.uint8).reshape(-1, 3)


def assert_u8_image_rgb(image: np.ndarray) -> U8Image:
    """Validate a uint8 (H,W,3 or 4) image and return it typed as U8Image."""
    if (
        not isinstance(image, np.ndarray)
        or image.dtype != np.uint8
        or image.ndim != 3
        or image.shape[-1] not in (3, 4)
    ):
        raise TypeError("expected uint8 (H,W,3/4) image")
    return image  # type: ignore[return-value]


__all__ = [
    # aliases / types
    "RGBTuple",
    "HexStr",
    "U8Image",
    "Cube",
    # value objects
    "Palette",
    # helpers
    "rgb_to_hex",
    "hex_to_rgb",
    "coerce_to_rgb_tuple",
    "assert_u8_image_rgb",
]
