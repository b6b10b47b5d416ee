# palette_clut/themes.py
from __future__ import annotations

"""
Theme definitions and resolution.

Exports:
  BUILTIN_THEMES: dict[str, list[str]]   # lower-case name -> hex colours
  ThemeRegistry                           # named palettes + file loading
  load_theme_file(path) -> Palette        # JSON / YAML {name, colors}
  resolve_palette(identifier) -> Palette  # default registry lookup

An identifier is either a registered theme name (case-insensitive) or a path
to a JSON/YAML theme file. Anything else raises ThemeNotFound.
"""

import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import yaml

from .core_types import Palette
from .errors import InvalidPalette, ThemeNotFound
from .utils import debug_log, warn

THEME_FILE_SUFFIXES = (".json", ".yaml", ".yml")

BUILTIN_THEMES: Dict[str, List[str]] = {
    "default": ["#000000", "#FFFFFF", "#FF0000", "#00FF00", "#0000FF"],
    "nord": [
        "#2E3440", "#3B4252", "#434C5E", "#4C566A",
        "#D8DEE9", "#E5E9F0", "#ECEFF4",
        "#8FBCBB", "#88C0D0", "#81A1C1", "#5E81AC",
        "#BF616A", "#D08770", "#EBCB8B", "#A3BE8C", "#B48EAD",
    ],
    "dracula": [
        "#282A36", "#44475A", "#F8F8F2", "#6272A4", "#8BE9FD", "#50FA7B",
        "#FFB86C", "#FF79C6", "#BD93F9", "#FF5555", "#F1FA8C",
    ],
    "gruvbox": [
        "#282828", "#CC241D", "#98971A", "#D79921", "#458588", "#B16286",
        "#689D6A", "#A89984", "#928374", "#FB4934", "#B8BB26", "#FABD2F",
        "#83A598", "#D3869B", "#8EC07C", "#EBDBB2",
    ],
    "catppuccin-mocha": [
        "#1E1E2E", "#181825", "#313244", "#45475A", "#585B70", "#CDD6F4",
        "#F5E0DC", "#F2CDCD", "#F5C2E7", "#CBA6F7", "#F38BA8", "#EBA0AC",
        "#FAB387", "#F9E2AF", "#A6E3A1", "#94E2D5", "#89DCEB", "#74C7EC",
        "#89B4FA", "#B4BEFE",
    ],
    "monokai": [
        "#272822", "#F8F8F2", "#75715E", "#F92672", "#FD971F", "#E6DB74",
        "#A6E22E", "#66D9EF", "#AE81FF",
    ],
    "solarized": [
        "#002B36", "#073642", "#586E75", "#657B83", "#839496", "#93A1A1",
        "#EEE8D5", "#FDF6E3", "#B58900", "#CB4B16", "#DC322F", "#D33682",
        "#6C71C4", "#268BD2", "#2AA198", "#859900",
    ],
}


def _parse_theme_text(text: str, suffix: str, source: str) -> Palette:
    try:
        if suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidPalette(f"cannot parse theme file {source}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidPalette(f"theme file {source} must hold a mapping with 'colors'")
    colours = data.get("colors", data.get("colours"))
    if not isinstance(colours, list):
        raise InvalidPalette(f"theme file {source} has no 'colors' list")
    name = data.get("name") or Path(source).stem
    return Palette.from_hexes(str(name), colours)


def load_theme_file(path: Union[str, Path]) -> Palette:
    """Load a {name, colors} theme from a JSON or YAML file."""
    p = Path(path).expanduser()
    suffix = p.suffix.lower()
    if suffix not in THEME_FILE_SUFFIXES:
        raise InvalidPalette(f"unsupported theme file type: {p.name}")
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ThemeNotFound(f"cannot read theme file {p}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise InvalidPalette(f"theme file {p} is not UTF-8 text: {exc}") from exc
    return _parse_theme_text(text, suffix, str(p))


class ThemeRegistry:
    """Named palettes, seeded with the built-in themes."""

    def __init__(self, include_builtins: bool = True) -> None:
        self._themes: Dict[str, Palette] = {}
        if include_builtins:
            for name, hexes in BUILTIN_THEMES.items():
                self.register(Palette.from_hexes(name, hexes))

    def register(self, palette: Palette, name: Optional[str] = None) -> None:
        self._themes[(name or palette.name).lower()] = palette

    def names(self) -> List[str]:
        return sorted(self._themes)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._themes

    def get(self, name: str) -> Palette:
        try:
            return self._themes[name.lower()]
        except KeyError:
            raise ThemeNotFound(f"unknown theme: {name}") from None

    def load_directory(self, directory: Union[str, Path], debug: bool = False) -> int:
        """
        Register every JSON/YAML theme in a directory.
        Unreadable or malformed files are reported and skipped. Returns the count loaded.
        """
        root = Path(directory).expanduser()
        if not root.is_dir():
            if debug:
                debug_log(f"theme directory not found: {root}")
            return 0
        loaded = 0
        for entry in sorted(root.iterdir(), key=lambda p: p.name.lower()):
            if not entry.is_file() or entry.suffix.lower() not in THEME_FILE_SUFFIXES:
                continue
            try:
                palette = load_theme_file(entry)
            except (InvalidPalette, ThemeNotFound) as exc:
                warn(f"skipping theme file {entry.name}: {exc}")
                continue
            self.register(palette)
            loaded += 1
            if debug:
                debug_log(f"loaded theme {palette.name!r} ({len(palette)} colours) from {entry.name}")
        return loaded

    def load_directories(self, directories: Iterable[Union[str, Path]], debug: bool = False) -> int:
        return sum(self.load_directory(d, debug=debug) for d in directories)

    def resolve(self, identifier: str) -> Palette:
        """
        Resolve a theme name or theme file path to a Palette.

        Raises:
          ThemeNotFound  : neither a registered name nor an existing theme file
          InvalidPalette : the theme file exists but is malformed
        """
        if identifier in self:
            return self.get(identifier)
        candidate = Path(os.path.expanduser(identifier))
        if candidate.suffix.lower() in THEME_FILE_SUFFIXES and candidate.is_file():
            return load_theme_file(candidate)
        raise ThemeNotFound(f"unknown theme: {identifier}")


_default_registry: Optional[ThemeRegistry] = None


def default_registry() -> ThemeRegistry:
    """Lazily built registry holding only the built-in themes."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ThemeRegistry()
    return _default_registry


def resolve_palette(identifier: str) -> Palette:
    return default_registry().resolve(identifier)


def list_themes() -> List[str]:
    return default_registry().names()


__all__ = [
    "BUILTIN_THEMES",
    "THEME_FILE_SUFFIXES",
    "ThemeRegistry",
    "load_theme_file",
    "default_registry",
    "resolve_palette",
    "list_themes",
]
