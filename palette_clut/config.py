"""
Load and expose engine config (YAML). Used by the engine and CLI to get the
mode, cache root, cube level and RBF settings.

Example file:

  mode: clut            # clut | nn
  cache_root: ~/.cache/palette_clut
  level: 8
  rbf:
    kernel: gaussian    # gaussian | inverse_quadratic
    sigma: 40
  workers: 4
  theme_dirs:
    - ~/.config/palette_clut/themes
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import yaml

from .constants import (
    CACHE_ENV_VAR,
    DEFAULT_CACHE_ROOT,
    DEFAULT_LEVEL,
    DEFAULT_MODE,
    RBF_KERNEL,
    RBF_SIGMA,
)
from .cube import validate_level
from .errors import InvalidParameter
from .mode import Mode, resolve_mode
from .rbf import check_rbf_params


def resolve_cache_root(cache_root: Optional[Union[str, Path]] = None) -> Path:
    """Explicit value > $PALETTE_CLUT_CACHE > DEFAULT_CACHE_ROOT."""
    if cache_root is None:
        cache_root = os.environ.get(CACHE_ENV_VAR) or DEFAULT_CACHE_ROOT
    return Path(cache_root).expanduser()


@dataclass(frozen=True)
class EngineConfig:
    mode: Mode = DEFAULT_MODE  # type: ignore[assignment]
    cache_root: Path = field(default_factory=resolve_cache_root)
    level: int = DEFAULT_LEVEL
    rbf_kernel: str = RBF_KERNEL
    rbf_sigma: float = RBF_SIGMA
    workers: int = 1
    theme_dirs: Tuple[Path, ...] = ()
    debug: bool = False

    def with_overrides(self, **changes: Any) -> "EngineConfig":
        """Copy with the given non-None fields replaced and re-validated."""
        clean = {k: v for k, v in changes.items() if v is not None}
        return _validated(replace(self, **clean))


def _validated(cfg: EngineConfig) -> EngineConfig:
    check_rbf_params(cfg.rbf_kernel, cfg.rbf_sigma)
    if isinstance(cfg.workers, bool) or not isinstance(cfg.workers, int) or cfg.workers < 1:
        raise InvalidParameter(f"workers must be a positive int, got {cfg.workers!r}")
    return replace(
        cfg,
        mode=resolve_mode(cfg.mode),
        cache_root=Path(cfg.cache_root).expanduser(),
        level=validate_level(cfg.level),
        rbf_sigma=float(cfg.rbf_sigma),
        theme_dirs=tuple(Path(p).expanduser() for p in cfg.theme_dirs),
        debug=bool(cfg.debug),
    )


def _from_mapping(data: dict[str, Any]) -> EngineConfig:
    rbf = data.get("rbf") or {}
    if not isinstance(rbf, dict):
        raise InvalidParameter("config 'rbf' must be a mapping")
    theme_dirs = data.get("theme_dirs") or []
    if isinstance(theme_dirs, (str, Path)):
        theme_dirs = [theme_dirs]
    return _validated(
        EngineConfig(
            mode=data.get("mode", DEFAULT_MODE),
            cache_root=resolve_cache_root(data.get("cache_root")),
            level=data.get("level", DEFAULT_LEVEL),
            rbf_kernel=rbf.get("kernel", RBF_KERNEL),
            rbf_sigma=rbf.get("sigma", RBF_SIGMA),
            workers=data.get("workers", 1),
            theme_dirs=list(theme_dirs),
            debug=data.get("debug", False),
        )
    )


def default_config() -> EngineConfig:
    return _from_mapping({})


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load config from YAML. A missing path or file gives the defaults."""
    if config_path is None:
        return default_config()
    path = Path(config_path).expanduser()
    if not path.exists():
        return default_config()
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidParameter(f"config file {path} must hold a mapping")
    return _from_mapping(data)


__all__ = [
    "EngineConfig",
    "resolve_cache_root",
    "default_config",
    "load_config",
]
