"""Micro-sequencer that walks every output cell of a single convolution."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..core.types import Cell, ReceptiveField
from ..playback.sequencer import StateMachine, check_interval
from .locator import locate

DEFAULT_INTERVAL_MS = 400


@dataclass(frozen=True)
class WalkState:
    step: int = 0
    is_running: bool = False
    hovered: Cell | None = None
    interval_ms: int = DEFAULT_INTERVAL_MS


class ConvolutionWalk(StateMachine[WalkState]):
    """Highlight output cells ``(0, 0), (0, 1), ...`` one tick at a time.

    The latest hovered cell is always recorded, but it only takes over the
    highlight while the walk is stopped.
    """

    def __init__(
        self,
        rows: int,
        cols: int,
        kernel_size: int,
        stride: int = 1,
        padding: int = 0,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        super().__init__()
        self._state = WalkState(interval_ms=check_interval(interval_ms))
        self._set_geometry(rows, cols, kernel_size, stride, padding)

    def _set_geometry(
        self, rows: int, cols: int, kernel_size: int, stride: int, padding: int
    ) -> None:
        if rows < 1 or cols < 1:
            raise ValueError(f"Output grid must be at least 1x1, got {rows}x{cols}")
        self.rows, self.cols = rows, cols
        self.kernel_size, self.stride, self.padding = kernel_size, stride, padding

    @property
    def state(self) -> WalkState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def interval_ms(self) -> int:
        return self._state.interval_ms

    @property
    def step(self) -> int:
        return self._state.step

    @property
    def last_step(self) -> int:
        return self.rows * self.cols - 1

    def start(self) -> WalkState:
        if self._state.is_running:
            return self._state
        step = 0 if self._state.step >= self.last_step else self._state.step
        return self._set(step=step, is_running=True)

    def pause(self) -> WalkState:
        return self._set(is_running=False)

    def toggle(self) -> WalkState:
        return self.pause() if self._state.is_running else self.start()

    def reset(self) -> WalkState:
        return self._set(step=0, is_running=False)

    def tick(self) -> bool:
        if not self._state.is_running:
            return False
        if self._state.step >= self.last_step:
            self._set(is_running=False)
            return False
        step = self._state.step + 1
        self._set(step=step, is_running=step < self.last_step)
        return True

    def hover(self, cell: Cell | None) -> WalkState:
        """Record the pointer at ``cell``, or clear it with ``None``."""

        return self._set(hovered=None if cell is None else (int(cell[0]), int(cell[1])))

    def reshape(
        self, rows: int, cols: int, kernel_size: int, stride: int, padding: int
    ) -> WalkState:
        """Adopt a new convolution geometry and rewind to the first cell."""

        self._set_geometry(rows, cols, kernel_size, stride, padding)
        self._state = replace(self._state, hovered=None)
        return self._set(step=0, is_running=self._state.is_running, force=True)

    @property
    def active_cell(self) -> Cell | None:
        state = self._state
        target: Cell | None = None
        if state.is_running or state.step > 0:
            target = divmod(state.step, self.cols)
        if not state.is_running and state.hovered is not None:
            target = state.hovered
        if target is None:
            return None
        row, col = target
        if 0 <= row < self.rows and 0 <= col < self.cols:
            return (row, col)
        return None

    @property
    def receptive_field(self) -> ReceptiveField | None:
        cell = self.active_cell
        if cell is None:
            return None
        return locate(cell[0], cell[1], self.kernel_size, self.stride, self.padding)

    def _set(self, force: bool = False, **changes) -> WalkState:
        new_state = replace(self._state, **changes)
        if force or new_state != self._state:
            self._state = new_state
            self._emit()
        return self._state


__all__ = ["ConvolutionWalk", "DEFAULT_INTERVAL_MS", "WalkState"]
