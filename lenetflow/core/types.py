"""Core typing contracts for lenetflow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple, Union

import numpy as np

Array = np.ndarray

# A matrix is any 2-D array-like; a tensor is a stack of equally shaped matrices.
MatrixLike = Union[Array, Sequence[Sequence[float]]]
TensorLike = Union[Array, Sequence[MatrixLike]]

Cell = Tuple[int, int]


class LayerKind(str, Enum):
    """Kinds of layer understood by the activation engine."""

    INPUT = "Input"
    CONV = "Convolution"
    POOL = "Pooling"
    FLATTEN = "Flatten"
    LINEAR = "Linear (Fully Connected)"
    OUTPUT = "Output"

    @property
    def is_spatial(self) -> bool:
        return self in {LayerKind.INPUT, LayerKind.CONV, LayerKind.POOL}


@dataclass(frozen=True)
class ReceptiveField:
    """Rectangle of input coordinates that influenced one output cell.

    ``row`` and ``col`` may be negative, and the rectangle may extend past the
    input, when the convolution is padded. Cells outside the input are padding
    and carry no pixel.
    """

    row: int
    col: int
    height: int
    width: int

    def contains(self, row: int, col: int) -> bool:
        return (
            self.row <= row < self.row + self.height
            and self.col <= col < self.col + self.width
        )

    def clip(self, rows: int, cols: int) -> "ReceptiveField | None":
        """Return the part of the field inside a ``rows x cols`` grid."""

        top = max(self.row, 0)
        left = max(self.col, 0)
        bottom = min(self.row + self.height, rows)
        right = min(self.col + self.width, cols)
        if bottom <= top or right <= left:
            return None
        return ReceptiveField(top, left, bottom - top, right - left)

    def as_dict(self) -> dict:
        return {"row": self.row, "col": self.col, "height": self.height, "width": self.width}


__all__ = [
    "Array",
    "Cell",
    "LayerKind",
    "MatrixLike",
    "ReceptiveField",
    "TensorLike",
]
