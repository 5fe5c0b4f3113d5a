"""Matrix and tensor primitives used by the activation engine.

Every function returns a fresh ``float64`` array and leaves its arguments
untouched, so callers can hold on to earlier results safely.
"""

from __future__ import annotations

from typing import List, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .activations import get_activation
from .errors import ShapeError
from .types import Array, MatrixLike, TensorLike


def as_matrix(data: MatrixLike) -> Array:
    """Return ``data`` as a non-empty 2-D float array."""

    matrix = np.array(data, dtype=np.float64)
    if matrix.ndim != 2:
        raise ShapeError(f"Expected a 2-D matrix, got {matrix.ndim} dimension(s)")
    if matrix.size == 0:
        raise ShapeError("Matrix must be non-empty")
    return matrix


def as_tensor(data: TensorLike) -> Array:
    """Return ``data`` as a ``(maps, rows, cols)`` float array."""

    if isinstance(data, np.ndarray):
        tensor = data.astype(np.float64, copy=True)
    else:
        maps = [as_matrix(m) for m in data]
        if not maps:
            raise ShapeError("Tensor must contain at least one feature map")
        shapes = {m.shape for m in maps}
        if len(shapes) != 1:
            raise ShapeError(f"Feature maps differ in shape: {sorted(shapes)}")
        tensor = np.stack(maps)
    if tensor.ndim != 3 or tensor.size == 0:
        raise ShapeError(f"Expected a non-empty 3-D tensor, got shape {tensor.shape}")
    return tensor


def create_matrix(rows: int, cols: int, value: float = 0.0) -> Array:
    return np.full((rows, cols), value, dtype=np.float64)


def pad(matrix: MatrixLike, padding: int) -> Array:
    """Surround ``matrix`` with a zero border ``padding`` cells wide."""

    if padding < 0:
        raise ValueError(f"padding must be >= 0, got {padding}")
    matrix = as_matrix(matrix)
    if padding == 0:
        return matrix
    return np.pad(matrix, padding, mode="constant", constant_values=0.0)


def output_size(size: int, window: int, stride: int, padding: int = 0) -> int:
    """Number of window positions along one axis."""

    if stride < 1:
        raise ValueError(f"stride must be >= 1, got {stride}")
    padded = size + 2 * padding
    if window > padded:
        raise ShapeError(
            f"Window of size {window} does not fit an input of size {padded}"
        )
    return (padded - window) // stride + 1


def convolve(
    matrix: MatrixLike, kernel: MatrixLike, stride: int = 1, padding: int = 0
) -> Array:
    """2-D cross-correlation of ``matrix`` with ``kernel``.

    The input is zero padded first; output cell ``(i, j)`` is the sum of
    ``padded[i*stride + ki][j*stride + kj] * kernel[ki][kj]`` over the kernel.
    """

    padded = pad(matrix, padding)
    kernel = as_matrix(kernel)
    # Validates the geometry; the strided window view has exactly this shape.
    output_size(padded.shape[0], kernel.shape[0], stride)
    output_size(padded.shape[1], kernel.shape[1], stride)
    windows = sliding_window_view(padded, kernel.shape)[::stride, ::stride]
    return np.einsum("ijkl,kl->ij", windows, kernel)


def max_pool(matrix: MatrixLike, window: int = 2, stride: int = 2) -> Array:
    """Max pooling with ``window x window`` windows.

    Only in-bounds cells contribute to a window's maximum; a window that would
    read past the edge is clamped rather than rejected.
    """

    matrix = as_matrix(matrix)
    rows = output_size(matrix.shape[0], window, stride)
    cols = output_size(matrix.shape[1], window, stride)
    out = np.empty((rows, cols), dtype=np.float64)
    for i in range(rows):
        for j in range(cols):
            r0, c0 = i * stride, j * stride
            out[i, j] = matrix[r0 : r0 + window, c0 : c0 + window].max()
    return out


def normalize(matrix: MatrixLike) -> Array:
    """Rescale ``matrix`` to ``[0, 1]``; a constant matrix maps to zeros."""

    matrix = as_matrix(matrix)
    low = matrix.min()
    span = matrix.max() - low
    if span == 0:
        return np.zeros_like(matrix)
    return (matrix - low) / span


def activation(matrix: MatrixLike, kind: str) -> Array:
    """Apply the ``"tanh"`` or ``"relu"`` activation element-wise."""

    return get_activation(kind)(as_matrix(matrix))


def flatten(tensor: TensorLike) -> Array:
    """Concatenate the maps of ``tensor`` in stack order, each read row-major."""

    return as_tensor(tensor).reshape(-1)


def flatten_positions(rows: int, cols: int) -> List[Tuple[int, int, int]]:
    """Return ``(index, row, col)`` for each element of a flattened map."""

    return [(idx, idx // cols, idx % cols) for idx in range(rows * cols)]


__all__ = [
    "activation",
    "as_matrix",
    "as_tensor",
    "convolve",
    "create_matrix",
    "flatten",
    "flatten_positions",
    "max_pool",
    "normalize",
    "output_size",
    "pad",
]
