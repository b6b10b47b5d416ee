# palette_clut/mode.py
from __future__ import annotations

from typing import Dict, Literal, Optional

from .constants import DEFAULT_MODE
from .errors import InvalidParameter

"""
Mode selection helpers.

Exports:
- Mode: Literal["clut", "nn"]
- resolve_mode(requested) -> Mode

Notes:
- "clut" recolours through the cached RBF lookup cube (smooth gradients).
- "nn" snaps every pixel to its nearest palette colour (no cube, no cache).
- The choice is always explicit; nothing picks a mode from image content.
"""


Mode = Literal["clut", "nn"]

_ALIASES: Dict[str, Mode] = {
    "clut": "clut",
    "cube": "clut",
    "rbf": "clut",
    "nn": "nn",
    "nearest": "nn",
}


def resolve_mode(requested: Optional[str]) -> Mode:
    """
    Resolve a user-facing mode name into a concrete one.
    - None -> DEFAULT_MODE
    - "clut" / "cube" / "rbf" -> "clut"
    - "nn" / "nearest" -> "nn"
    """
    name = DEFAULT_MODE if requested is None else str(requested).strip().lower()
    try:
        return _ALIASES[name]
    except KeyError:
        raise InvalidParameter(
            f"unknown mode {requested!r}; expected one of {', '.join(sorted(_ALIASES))}"
        ) from None


__all__ = ["Mode", "resolve_mode"]
