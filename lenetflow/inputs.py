"""Built-in input grids and loading of grids from a capture component."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Dict, MutableMapping

import numpy as np

from .core.errors import InputError
from .core.ops import as_matrix
from .core.types import Array

GridFactory = Callable[[int], Array]

_REGISTRY: MutableMapping[str, GridFactory] = {}


def register_grid(name: str) -> Callable[[GridFactory], GridFactory]:
    """Register a factory producing a square grid of a given size::

        @register_grid("blank")
        def blank(size):
            ...
    """

    def _decorator(func: GridFactory) -> GridFactory:
        _REGISTRY[name] = func
        return func

    return _decorator


def grid_names() -> list:
    return sorted(_REGISTRY)


def make_grid(name: str, size: int) -> Array:
    if name not in _REGISTRY:
        raise KeyError(f"Unknown input grid {name!r}. Available grids: {', '.join(grid_names())}")
    if size < 1:
        raise InputError(f"Grid size must be positive, got {size}")
    return _REGISTRY[name](size)


@register_grid("blank")
def blank(size: int) -> Array:
    return np.zeros((size, size), dtype=np.float64)


@register_grid("cross")
def cross(size: int) -> Array:
    """Bright centre row and column with dimmer accents near the corners."""

    grid = np.zeros((size, size), dtype=np.float64)
    mid = size // 2
    grid[mid, :] = 1.0
    grid[:, mid] = 1.0
    if size >= 4:
        for r, c in ((1, 1), (1, size - 2), (size - 2, 1), (size - 2, size - 2)):
            grid[r, c] = 0.5
    return grid


@register_grid("wave")
def wave(size: int) -> Array:
    """Smooth ``(sin(r) * cos(c) + 1) / 2`` pattern used in the flatten lesson."""

    r, c = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
    return (np.sin(r) * np.cos(c) + 1.0) / 2.0


def load_grid(path: str | Path) -> Array:
    """Load a square intensity grid from ``.npy`` or ``.json``.

    Values are expected in ``[0, 1]``; grids stored as 0-255 bytes are
    rescaled.
    """

    path = Path(path)
    if path.suffix == ".npy":
        data = np.load(path, allow_pickle=False)
    elif path.suffix == ".json":
        data = json.loads(path.read_text())
    else:
        raise InputError(f"Unsupported grid file {path.name}; expected .npy or .json")
    try:
        grid = as_matrix(data)
    except ValueError as exc:
        raise InputError(f"{path.name}: {exc}") from exc
    if grid.size and grid.max() > 1.0:
        grid = grid / 255.0
    return grid


def describe_grids() -> Dict[str, str]:
    return {name: (func.__doc__ or name).strip().splitlines()[0] for name, func in _REGISTRY.items()}


__all__ = [
    "blank",
    "cross",
    "describe_grids",
    "grid_names",
    "load_grid",
    "make_grid",
    "register_grid",
    "wave",
]
