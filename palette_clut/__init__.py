# palette_clut/__init__.py
"""
palette_clut package.

Purpose:
  Recolour images to a colour theme through a cached RBF lookup cube, or by
  plain nearest-neighbour snapping. See palette_clut.cli for the CLI.

Public API:
  recolour / recolor      : image + theme identifier -> recoloured image
  recolour_palette        : image + resolved Palette (+ mode) -> recoloured image
  Recolourer              : engine bound to a config, theme registry and cube store
  CubeStore               : content-addressed cube cache with a creation lock
  generate_identity_cube  : identity lookup cube for a level
  interpolate_cube        : RBF warp of a cube toward a palette
  apply_cube              : trilinear cube lookup over an image
  nearest_neighbour_transform : palette snap without a cube
  colour_distance         : luma-weighted RGB distance
  Palette                 : ordered, validated colour list

Quick start:
  from palette_clut import recolour
  out = recolour(rgba_array, "nord")
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import constants
from . import core_types
from . import errors
from . import themes
from . import utils

from .apply import apply_cube
from .cache import CubeStore, cache_key, safe_clut_filename
from .colour_metric import colour_distance, distance
from .config import EngineConfig, load_config
from .core_types import Palette
from .cube import generate_identity_cube
from .cube_io import load_cube_png, save_cube_png
from .engine import (
    Recolourer,
    recolor,
    recolor_palette,
    recolour,
    recolour_palette,
)
from .errors import (
    CubeIOError,
    GenerationError,
    InvalidPalette,
    InvalidParameter,
    PaletteClutError,
    ThemeNotFound,
)
from .nearest import nearest_neighbor_transform, nearest_neighbour_transform
from .rbf import interpolate, interpolate_cube
from .themes import ThemeRegistry, resolve_palette

__all__ = [
    "__version__",
    "constants",
    "core_types",
    "errors",
    "themes",
    "utils",
    "apply_cube",
    "CubeStore",
    "cache_key",
    "safe_clut_filename",
    "colour_distance",
    "distance",
    "EngineConfig",
    "load_config",
    "Palette",
    "generate_identity_cube",
    "load_cube_png",
    "save_cube_png",
    "Recolourer",
    "recolor",
    "recolor_palette",
    "recolour",
    "recolour_palette",
    "CubeIOError",
    "GenerationError",
    "InvalidPalette",
    "InvalidParameter",
    "PaletteClutError",
    "ThemeNotFound",
    "nearest_neighbor_transform",
    "nearest_neighbour_transform",
    "interpolate",
    "interpolate_cube",
    "ThemeRegistry",
    "resolve_palette",
]
