# palette_clut/rbf.py
from __future__ import annotations

"""
RBF palette mapper.

Warps an identity cube toward a palette. Every node colour c becomes

    sum_k phi(d(c, p_k)) * p_k / sum_k phi(d(c, p_k))

where d is the luma-weighted distance and phi a radial basis kernel. One
weight vector per node is shared by R, G and B so hues bend together.

Kernels:
  gaussian          : exp(-d^2 / (2 sigma^2)), computed in the log domain with
                      the per-node max subtracted (nearest colour weighs 1) and
                      floored at the smallest positive float
  inverse_quadratic : 1 / (1 + (d / sigma)^2)
"""

from typing import Callable, Dict

import numpy as np

from .colour_metric import weighted_distance_sq
from .constants import RBF_CHUNK_NODES, RBF_KERNEL, RBF_KERNELS, RBF_SIGMA
from .core_types import Cube, Palette
from .cube import validate_cube, validate_level
from .errors import GenerationError, InvalidParameter

_TINY = np.finfo(np.float64).tiny


def _gaussian_weights(dist_sq: np.ndarray, sigma: float) -> np.ndarray:
    log_w = -dist_sq / (2.0 * sigma * sigma)
    log_w -= np.max(log_w, axis=1, keepdims=True)
    # floored so distant colours keep a nonzero share at any sigma
    return np.maximum(np.exp(log_w), _TINY)


def _inverse_quadratic_weights(dist_sq: np.ndarray, sigma: float) -> np.ndarray:
    return 1.0 / (1.0 + dist_sq / (sigma * sigma))


_KERNELS: Dict[str, Callable[[np.ndarray, float], np.ndarray]] = {
    "gaussian": _gaussian_weights,
    "inverse_quadratic": _inverse_quadratic_weights,
}


def kernel_weights(
    dist_sq: np.ndarray, kernel: str = RBF_KERNEL, sigma: float = RBF_SIGMA
) -> np.ndarray:
    """
    Unnormalised RBF weights for squared distances.

    Args:
      dist_sq: float64 [N,P] squared distances
      kernel : one of RBF_KERNELS
      sigma  : kernel width (> 0)
    Returns:
      float64 [N,P]; rows are scaled per kernel but not normalised
    """
    check_rbf_params(kernel, sigma)
    return _KERNELS[kernel](np.asarray(dist_sq, dtype=np.float64), float(sigma))


def check_rbf_params(kernel: str, sigma: float) -> None:
    if kernel not in RBF_KERNELS:
        raise InvalidParameter(
            f"unknown RBF kernel {kernel!r}; expected one of {', '.join(RBF_KERNELS)}"
        )
    if (
        isinstance(sigma, bool)
        or not isinstance(sigma, (int, float, np.number))
        or not np.isfinite(sigma)
        or sigma <= 0
    ):
        raise InvalidParameter(f"RBF sigma must be a positive number, got {sigma!r}")


def interpolate_cube(
    cube: Cube,
    palette: Palette,
    level: int,
    *,
    kernel: str = RBF_KERNEL,
    sigma: float = RBF_SIGMA,
    chunk_nodes: int = RBF_CHUNK_NODES,
) -> Cube:
    """
    Blend every cube node toward the palette with RBF weights.

    Pure and deterministic. Output is uint8 [L,L,L,3], rounded and clamped.
    """
    level = validate_level(level)
    check_rbf_params(kernel, sigma)
    validate_cube(cube, level)

    pal = palette.as_array().astype(np.float64)
    nodes = cube.reshape(-1, 3)
    out = np.empty(nodes.shape, dtype=np.uint8)
    step = max(1, int(chunk_nodes))

    for start in range(0, nodes.shape[0], step):
        block = nodes[start : start + step]
        weights = kernel_weights(weighted_distance_sq(block, pal), kernel, sigma)
        total = np.sum(weights, axis=1, keepdims=True)
        if not np.all(total > 0.0):
            raise GenerationError("RBF weights vanished for some cube nodes")
        mixed = (weights @ pal) / total
        out[start : start + step] = np.clip(np.rint(mixed), 0, 255).astype(np.uint8)

    result = out.reshape(cube.shape)
    return validate_cube(result, level)


interpolate = interpolate_cube

__all__ = [
    "kernel_weights",
    "check_rbf_params",
    "interpolate_cube",
    "interpolate",
]
