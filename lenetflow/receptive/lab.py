"""Single-convolution lab: one input, one kernel, one animated walk."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..config import LabConfig
from ..core.errors import InputError
from ..core.kernels import KERNEL_LABELS, get_kernel
from ..core.ops import as_matrix, convolve, normalize, pad
from ..core.types import Array, Cell, MatrixLike, ReceptiveField
from ..inputs import cross
from .locator import locate
from .walk import ConvolutionWalk


@dataclass(frozen=True, eq=False)
class StepDetails:
    """The arithmetic behind one highlighted output cell."""

    cell: Cell
    field: ReceptiveField
    window: Array
    kernel: Array
    raw: float
    value: float

    @property
    def products(self) -> Array:
        return self.window * self.kernel


class ConvolutionLab:
    """Convolve a small grid and expose the walk over its output cells."""

    def __init__(self, config: LabConfig | None = None, grid: MatrixLike | None = None) -> None:
        config = config or LabConfig()
        if grid is None:
            self._grid = cross(config.input_size)
        else:
            self._grid = as_matrix(grid)
            if self._grid.shape[0] != self._grid.shape[1]:
                raise InputError(f"Lab grid must be square, got {self._grid.shape}")
            config = replace(config, input_size=self._grid.shape[0])
        self.config = config
        self._recompute()
        rows, cols = self._output.shape
        self.walk = ConvolutionWalk(
            rows,
            cols,
            self.kernel.shape[0],
            self.config.stride,
            self.config.padding,
            interval_ms=self.config.interval_ms,
        )

    @property
    def grid(self) -> Array:
        return self._grid.copy()

    @property
    def kernel(self) -> Array:
        return get_kernel(self.config.kernel)

    @property
    def kernel_label(self) -> str:
        return KERNEL_LABELS.get(self.config.kernel, self.config.kernel)

    @property
    def raw_output(self) -> Array:
        return self._raw.copy()

    @property
    def output(self) -> Array:
        return self._output.copy()

    def _recompute(self) -> None:
        self._raw = convolve(self._grid, self.kernel, self.config.stride, self.config.padding)
        self._output = normalize(self._raw)

    def configure(self, **changes) -> LabConfig:
        """Change ``input_size``, ``kernel``, ``stride`` or ``padding``.

        A new input size redraws the default grid and stops the walk; stride
        and padding changes rewind it to the first cell.
        """

        config = replace(self.config, **changes)
        resized = config.input_size != self.config.input_size
        regeometry = resized or (config.stride, config.padding) != (
            self.config.stride,
            self.config.padding,
        )
        self.config = config
        if resized:
            self._grid = cross(config.input_size)
            self.walk.pause()
        self._recompute()
        if regeometry:
            rows, cols = self._output.shape
            self.walk.reshape(rows, cols, self.kernel.shape[0], config.stride, config.padding)
        return config

    def step_details(self, cell: Cell | None = None) -> StepDetails | None:
        """Describe the dot product at ``cell`` (default: the active cell)."""

        cell = self.walk.active_cell if cell is None else cell
        if cell is None:
            return None
        row, col = cell
        rows, cols = self._output.shape
        if not (0 <= row < rows and 0 <= col < cols):
            raise IndexError(f"Cell {cell} is outside the {rows}x{cols} output")
        k = self.kernel.shape[0]
        padded = pad(self._grid, self.config.padding)
        r0, c0 = row * self.config.stride, col * self.config.stride
        window = padded[r0 : r0 + k, c0 : c0 + k]
        field = locate(row, col, k, self.config.stride, self.config.padding)
        return StepDetails(
            cell=(row, col),
            field=field,
            window=window,
            kernel=self.kernel,
            raw=float(self._raw[row, col]),
            value=float(self._output[row, col]),
        )

    def explanation_context(self) -> str:
        size = self.config.input_size
        k = self.kernel.shape[0]
        return (
            f"User is exploring convolution. Input Size: {size}x{size}. "
            f"Kernel: {k}x{k}. Stride: {self.config.stride}. Padding: {self.config.padding}."
        )


__all__ = ["ConvolutionLab", "StepDetails"]
