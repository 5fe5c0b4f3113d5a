"""Activation utilities for lenetflow."""

from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from .types import Array


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def tanh(x: Array) -> Array:
    """Return the hyperbolic tangent activation."""

    return np.tanh(x)


ACTIVATIONS: Dict[str, Callable[[Array], Array]] = {
    "relu": relu,
    "tanh": tanh,
}


def get_activation(kind: str) -> Callable[[Array], Array]:
    try:
        return ACTIVATIONS[kind]
    except KeyError:
        available = ", ".join(sorted(ACTIVATIONS))
        raise ValueError(
            f"Unknown activation {kind!r}. Available activations: {available}"
        ) from None
