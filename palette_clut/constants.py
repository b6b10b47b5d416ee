# palette_clut/constants.py
"""
Tunables shared across the project.

- Cube resolution and cache layout (DEFAULT_LEVEL, HASH_LENGTH, CLUT_SUBDIR)
- Distance metric weights (W_RED, W_GREEN, W_BLUE)
- RBF mapper defaults (RBF_*)
- Engine defaults (DEFAULT_MODE, DEFAULT_CACHE_ROOT)
"""
from __future__ import annotations

from typing import Tuple

# =====================
# Cube and cache layout
# =====================
DEFAULT_LEVEL: int = 8
HASH_LENGTH: int = 16
CLUT_SUBDIR: str = "cluts"
CLUT_SUFFIX: str = ".png"
DIR_PERMISSIONS: int = 0o755
FILE_PERMISSIONS: int = 0o644

# PNG text chunks written alongside a persisted cube
PNG_KEY_LEVEL: str = "palette_clut.level"
PNG_KEY_LAYOUT: str = "palette_clut.layout"
CUBE_LAYOUT: str = "rgb-rows-b"

# ==============================
# Luma-weighted distance metric
# ==============================
W_RED: float = 0.299
W_GREEN: float = 0.587
W_BLUE: float = 0.114
LUMA_WEIGHTS: Tuple[float, float, float] = (W_RED, W_GREEN, W_BLUE)

# ==========
# RBF mapper
# ==========
RBF_KERNELS: Tuple[str, ...] = ("gaussian", "inverse_quadratic")
RBF_KERNEL: str = "gaussian"
RBF_SIGMA: float = 40.0
RBF_CHUNK_NODES: int = 32_768

# ========
# Engine
# ========
DEFAULT_MODE: str = "clut"
DEFAULT_CACHE_ROOT: str = "~/.cache/palette_clut"
CACHE_ENV_VAR: str = "PALETTE_CLUT_CACHE"
NEAREST_CHUNK: int = 200_000
