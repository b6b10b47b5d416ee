# palette_clut/engine.py
from __future__ import annotations

"""
Recolouring entry points.

Recolourer binds one config, one theme registry and one CubeStore. Stores share
the process-wide creation lock unless given their own, so concurrent first
uses of a palette generate its cube once. The module-level helpers keep one
Recolourer per distinct config.

  clut mode: palette -> cached RBF cube -> trilinear apply
  nn mode  : palette -> nearest-neighbour snap

Compat aliases:
  recolor         === recolour
  recolor_palette === recolour_palette
"""

import threading
from typing import Dict, Optional

from .apply import apply_cube
from .cache import CubeStore
from .config import EngineConfig, default_config
from .core_types import Palette, U8Image, assert_u8_image_rgb
from .mode import resolve_mode
from .nearest import nearest_neighbour_transform
from .themes import ThemeRegistry
from .utils import debug_log


class Recolourer:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        registry: Optional[ThemeRegistry] = None,
        store: Optional[CubeStore] = None,
    ) -> None:
        self.config = config or default_config()
        if registry is None:
            registry = ThemeRegistry()
            registry.load_directories(self.config.theme_dirs, debug=self.config.debug)
        self.registry = registry
        self.store = store or CubeStore(
            self.config.cache_root,
            self.config.level,
            kernel=self.config.rbf_kernel,
            sigma=self.config.rbf_sigma,
            debug=self.config.debug,
        )

    def resolve(self, theme: str) -> Palette:
        return self.registry.resolve(theme)

    def recolour(self, image: U8Image, theme: str, mode: Optional[str] = None) -> U8Image:
        """Resolve theme to a palette and recolour image with it."""
        palette = self.resolve(theme)
        return self.recolour_palette(image, palette, mode=mode, theme=theme)

    def recolour_palette(
        self,
        image: U8Image,
        palette: Palette,
        mode: Optional[str] = None,
        theme: Optional[str] = None,
    ) -> U8Image:
        """
        Recolour image with an already resolved palette.

        Args:
          image  : uint8 [H,W,3|4]; alpha is preserved
          palette: target colours
          mode   : "clut" or "nn"; defaults to the configured mode
          theme  : label used for the cache file name (defaults to palette.name)
        """
        img = assert_u8_image_rgb(image)
        effective = resolve_mode(mode if mode is not None else self.config.mode)
        if self.config.debug:
            debug_log(f"mode: {effective}  theme: {theme or palette.name}  colours: {len(palette)}")

        if effective == "nn":
            return nearest_neighbour_transform(img, palette)

        cube = self.store.cube_for(theme or palette.name, palette)
        return apply_cube(img, cube, self.store.level, workers=self.config.workers)

    recolor = recolour
    recolor_palette = recolour_palette


_default_recolourer: Optional[Recolourer] = None
_recolourers: Dict[EngineConfig, Recolourer] = {}
_default_lock = threading.Lock()


def default_recolourer() -> Recolourer:
    """Process-wide Recolourer on the default config, so one-shot calls share a CubeStore."""
    global _default_recolourer
    with _default_lock:
        if _default_recolourer is None:
            _default_recolourer = Recolourer()
        return _default_recolourer


def _recolourer_for(config: Optional[EngineConfig]) -> Recolourer:
    """Shared default, or the Recolourer built for this config on first use."""
    if config is None:
        return default_recolourer()
    with _default_lock:
        recolourer = _recolourers.get(config)
        if recolourer is None:
            recolourer = _recolourers[config] = Recolourer(config)
        return recolourer


def recolour(
    image: U8Image,
    theme: str,
    config: Optional[EngineConfig] = None,
    mode: Optional[str] = None,
) -> U8Image:
    """One-shot convenience; without a config the shared default Recolourer is used."""
    return _recolourer_for(config).recolour(image, theme, mode=mode)


def recolour_palette(
    image: U8Image,
    palette: Palette,
    mode: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> U8Image:
    return _recolourer_for(config).recolour_palette(image, palette, mode=mode)


recolor = recolour
recolor_palette = recolour_palette

__all__ = [
    "Recolourer",
    "default_recolourer",
    "recolour",
    "recolour_palette",
    "recolor",
    "recolor_palette",
]
