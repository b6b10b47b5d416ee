# palette_clut/cache.py
from __future__ import annotations

"""
Content-addressed cube cache.

Layout:
  <cache_root>/cluts/<theme>_<key>.png

  key   : first 16 hex chars of md5 over the palette's '#RRGGBB' strings in
          order (plus a settings tag when level/kernel/sigma differ from the
          defaults)
  theme : identifier collapsed to a safe base name

CubeStore is the context object for cube creation: it carries the cache root
and the lock that serialises every cube creation, whatever the palette. By
default every store shares one process-wide lock, so separate stores (even on
different roots) never generate concurrently. Entries
are created once, never overwritten, and never evicted. A new file is
written to a temporary name in the same directory and published with
os.replace, so other callers see either nothing or a complete cube.
"""

import hashlib
import os
import re
import tempfile
import threading
import time
from pathlib import Path
from typing import Optional, Union

from .constants import (
    CLUT_SUBDIR,
    CLUT_SUFFIX,
    DEFAULT_LEVEL,
    DIR_PERMISSIONS,
    FILE_PERMISSIONS,
    HASH_LENGTH,
    RBF_KERNEL,
    RBF_SIGMA,
)
from .core_types import Cube, Palette
from .cube import generate_identity_cube, validate_cube, validate_level
from .cube_io import load_cube_png, save_cube_png
from .errors import CubeIOError, GenerationError
from .rbf import check_rbf_params, interpolate_cube
from .utils import debug_log, format_seconds_compact, log

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Shared by every CubeStore unless one is given its own lock.
_CREATION_LOCK = threading.Lock()


def cache_key(palette: Palette, settings_tag: str = "") -> str:
    """Order-sensitive content hash of a palette, HASH_LENGTH hex chars."""
    hasher = hashlib.md5()
    for hex_code in palette.hexes():
        hasher.update(hex_code.encode("ascii"))
    if settings_tag:
        hasher.update(b"|")
        hasher.update(settings_tag.encode("utf-8"))
    return hasher.hexdigest()[:HASH_LENGTH]


def settings_tag(level: int, kernel: str, sigma: float) -> str:
    """Empty for default generation settings, else a stable description of them."""
    if level == DEFAULT_LEVEL and kernel == RBF_KERNEL and float(sigma) == RBF_SIGMA:
        return ""
    return f"L{level}:{kernel}:{float(sigma)!r}"


def is_likely_path(theme: str) -> bool:
    """True if the identifier looks like a filesystem path."""
    return (
        os.path.isabs(theme)
        or theme.startswith("~")
        or "/" in theme
        or "\\" in theme
    )


def safe_clut_filename(theme: str, key: str) -> str:
    """
    '<theme>_<key>.png' with the theme reduced to a safe file stem.
    Path-like identifiers keep only their base name without extension.
    """
    name = theme
    if is_likely_path(theme):
        base = re.split(r"[\\/]", theme.rstrip("/\\"))[-1]
        name = os.path.splitext(base)[0]
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    if not name:
        name = "theme"
    return f"{name}_{key}{CLUT_SUFFIX}"


class CubeStore:
    """
    Shared cube cache for a process.

    Args:
      cache_root: directory holding the 'cluts' folder
      level     : quantization level of generated cubes
      kernel    : RBF kernel name
      sigma     : RBF kernel width
      debug     : emit [debug] lines for cache hits and timings
      lock      : creation lock; defaults to the process-wide one
    """

    def __init__(
        self,
        cache_root: Union[str, Path],
        level: int = DEFAULT_LEVEL,
        *,
        kernel: str = RBF_KERNEL,
        sigma: float = RBF_SIGMA,
        debug: bool = False,
        lock: Optional[threading.Lock] = None,
    ) -> None:
        self.cache_root = Path(cache_root).expanduser()
        self.level = validate_level(level)
        check_rbf_params(kernel, sigma)
        self.kernel = kernel
        self.sigma = float(sigma)
        self.debug = debug
        self.generation_count = 0
        self._lock = lock if lock is not None else _CREATION_LOCK

    @property
    def clut_dir(self) -> Path:
        return self.cache_root / CLUT_SUBDIR

    def key_for(self, palette: Palette) -> str:
        return cache_key(palette, settings_tag(self.level, self.kernel, self.sigma))

    def clut_path(self, theme: str, palette: Palette) -> Path:
        return self.clut_dir / safe_clut_filename(theme, self.key_for(palette))

    def ensure_cube(self, theme: str, palette: Palette) -> Path:
        """
        Return the cube path for (theme, palette), generating it on first use.

        Raises:
          CubeIOError     : directory or file could not be created/written
          GenerationError : the generated cube is inconsistent
        """
        path = self.clut_path(theme, palette)
        with self._lock:
            if path.exists():
                if self.debug:
                    debug_log(f"clut cache hit: {path.name}")
                return path
            self._create_dir()
            t0 = time.perf_counter()
            cube = self._generate(palette)
            self._publish(path, cube)
            self.generation_count += 1
            log(
                f"Generated CLUT {path.name} | level={self.level} colours={len(palette)} "
                f"in {format_seconds_compact(time.perf_counter() - t0)}"
            )
        return path

    def load_cube(self, path: Path) -> Cube:
        return load_cube_png(path, self.level)

    def cube_for(self, theme: str, palette: Palette) -> Cube:
        """ensure_cube + load_cube."""
        return self.load_cube(self.ensure_cube(theme, palette))

    # Internals (called with the lock held)

    def _create_dir(self) -> None:
        try:
            self.clut_dir.mkdir(mode=DIR_PERMISSIONS, parents=True, exist_ok=True)
        except OSError as exc:
            raise CubeIOError(f"creating CLUT directory {self.clut_dir}: {exc}") from exc

    def _generate(self, palette: Palette) -> Cube:
        try:
            identity = generate_identity_cube(self.level)
            cube = interpolate_cube(
                identity, palette, self.level, kernel=self.kernel, sigma=self.sigma
            )
        except (FloatingPointError, MemoryError) as exc:
            raise GenerationError(f"interpolating CLUT: {exc}") from exc
        return validate_cube(cube, self.level)

    def _publish(self, path: Path, cube: Cube) -> None:
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=str(path.parent)
            )
        except OSError as exc:
            raise CubeIOError(f"creating temporary file in {path.parent}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                save_cube_png(fh, cube, self.level)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_path, FILE_PERMISSIONS)
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            if isinstance(exc, CubeIOError):
                raise
            raise CubeIOError(f"saving CLUT {path}: {exc}") from exc
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


__all__ = [
    "cache_key",
    "settings_tag",
    "is_likely_path",
    "safe_clut_filename",
    "CubeStore",
]
