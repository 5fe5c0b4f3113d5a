"""Map an output cell of a convolution back to its input window."""

from __future__ import annotations

from ..core.types import ReceptiveField


def locate(
    output_row: int, output_col: int, kernel_size: int, stride: int, padding: int
) -> ReceptiveField:
    """Return the input region read by output cell ``(output_row, output_col)``.

    Coordinates are in the unpadded input, so with ``padding > 0`` the field
    can start at a negative index.
    """

    return ReceptiveField(
        row=output_row * stride - padding,
        col=output_col * stride - padding,
        height=kernel_size,
        width=kernel_size,
    )
