# palette_clut/errors.py
"""
Exception hierarchy.

  PaletteClutError   : base class for everything raised by this package
  ThemeNotFound      : theme identifier could not be resolved
  InvalidPalette     : empty palette or malformed colour
  InvalidParameter   : bad quantization level, kernel, sigma or mode
  CubeIOError        : cache directory or cube file could not be created/read/written
  GenerationError    : a generated or loaded cube is inconsistent (shape, level)
"""


class PaletteClutError(Exception):
    """Base class for palette_clut errors."""


class ThemeNotFound(PaletteClutError, LookupError):
    """Unresolvable theme identifier."""


class InvalidPalette(PaletteClutError, ValueError):
    """Empty palette or malformed colour."""


class InvalidParameter(PaletteClutError, ValueError):
    """Non-positive level or otherwise invalid tunable."""


class CubeIOError(PaletteClutError, OSError):
    """Filesystem failure while creating, reading or writing a cube."""


class GenerationError(PaletteClutError):
    """Cube generation or decoding produced an inconsistent cube."""


__all__ = [
    "PaletteClutError",
    "ThemeNotFound",
    "InvalidPalette",
    "InvalidParameter",
    "CubeIOError",
    "GenerationError",
]
