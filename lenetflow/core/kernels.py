"""Hand-picked convolution kernels and the banks that assign them to filters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError
from .types import Array


def _frozen(rows: Sequence[Sequence[float]]) -> Array:
    arr = np.array(rows, dtype=np.float64)
    arr.flags.writeable = False
    return arr


SOBEL_X = _frozen([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]])
SOBEL_Y = _frozen([[-1, -2, -1], [0, 0, 0], [1, 2, 1]])
EDGE_DETECT = _frozen([[-1, -1, -1], [-1, 8, -1], [-1, -1, -1]])
BLUR = _frozen([[0.11, 0.11, 0.11], [0.11, 0.11, 0.11], [0.11, 0.11, 0.11]])

KERNELS: Dict[str, Array] = {
    "sobel_x": SOBEL_X,
    "sobel_y": SOBEL_Y,
    "edge_detect": EDGE_DETECT,
    "blur": BLUR,
}

KERNEL_LABELS: Dict[str, str] = {
    "sobel_x": "Vert. Edge",
    "sobel_y": "Horiz. Edge",
    "edge_detect": "Outline",
    "blur": "Blur",
}


def get_kernel(name: str) -> Array:
    try:
        return KERNELS[name]
    except KeyError:
        available = ", ".join(sorted(KERNELS))
        raise ConfigurationError(
            f"Unknown kernel {name!r}. Available kernels: {available}"
        ) from None


@dataclass(frozen=True)
class KernelBank:
    """Fixed kernels for each convolution stage of the network.

    ``stages[s]`` lists the kernels cycled through by the filters of the
    ``s``-th convolution layer; stages past the end reuse the last entry.
    """

    name: str
    stages: Tuple[Tuple[str, ...], ...]

    def __post_init__(self) -> None:
        if not self.stages or any(not stage for stage in self.stages):
            raise ConfigurationError(f"Kernel bank {self.name!r} has an empty stage")
        for stage in self.stages:
            for kernel_name in stage:
                get_kernel(kernel_name)

    def stage(self, index: int) -> Tuple[str, ...]:
        return self.stages[min(index, len(self.stages) - 1)]

    def kernel_for(self, stage_index: int, filter_index: int) -> Array:
        names = self.stage(stage_index)
        return KERNELS[names[filter_index % len(names)]]

    def kernel_shapes(self, stage_index: int) -> set:
        return {KERNELS[name].shape for name in self.stage(stage_index)}


class KernelBankRegistry:
    """Central registry for kernel banks."""

    def __init__(self) -> None:
        self._registry: Dict[str, KernelBank] = {}

    def register(self, name: str, stages: Iterable[Iterable[str]]) -> KernelBank:
        bank = KernelBank(name, tuple(tuple(stage) for stage in stages))
        self._registry[name] = bank
        return bank

    def get(self, name: str) -> KernelBank:
        if name not in self._registry:
            available = ", ".join(self.names())
            raise ConfigurationError(
                f"Unknown kernel bank {name!r}. Available kernel banks: {available}"
            )
        return self._registry[name]

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


BANKS = KernelBankRegistry()

BANKS.register(
    "lenet",
    [
        ("sobel_x", "sobel_y", "edge_detect", "blur", "sobel_x", "edge_detect"),
        ("edge_detect",),
    ],
)
BANKS.register("edges", [("sobel_x", "sobel_y", "edge_detect"), ("edge_detect",)])
BANKS.register("sobel", [("sobel_x", "sobel_y")])


__all__ = [
    "BANKS",
    "BLUR",
    "EDGE_DETECT",
    "KERNELS",
    "KERNEL_LABELS",
    "KernelBank",
    "KernelBankRegistry",
    "SOBEL_X",
    "SOBEL_Y",
    "get_kernel",
]
