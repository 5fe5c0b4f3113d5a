"""Activation cache: every layer's output for one input grid, built at once."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Tuple

import numpy as np

from ..core.errors import ConfigurationError, InputError, LayerNotFound
from ..core.kernels import KernelBank
from ..core.ops import as_matrix, convolve, max_pool, normalize, output_size
from ..core.sources import DenseGenerator, RandomDenseGenerator
from ..core.types import Array, LayerKind, MatrixLike
from ..graph.layers import (
    ConvLayer,
    FlattenLayer,
    InputLayer,
    LayerGraph,
    LayerSpec,
    LinearLayer,
    OutputLayer,
    PoolLayer,
)

logger = logging.getLogger(__name__)


def _readonly(arr: Array) -> Array:
    arr = np.ascontiguousarray(arr, dtype=np.float64)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class ActivationRecord:
    """Output of a single layer.

    Input, convolution and pooling layers carry ``tensor`` shaped
    ``(maps, rows, cols)``; linear and output layers carry ``vector``. The
    flatten layer only records ``length`` since nothing displays its values.
    """

    layer_id: str
    kind: LayerKind
    length: int
    tensor: Array | None = None
    vector: Array | None = None

    @classmethod
    def from_tensor(cls, layer: LayerSpec, maps) -> "ActivationRecord":
        tensor = _readonly(np.stack(list(maps)))
        return cls(layer.id, layer.kind, int(tensor.size), tensor=tensor)

    @classmethod
    def from_vector(cls, layer: LayerSpec, values: Array) -> "ActivationRecord":
        vector = _readonly(np.asarray(values).reshape(-1))
        return cls(layer.id, layer.kind, int(vector.size), vector=vector)

    @property
    def shape(self) -> Tuple[int, ...]:
        if self.tensor is not None:
            return tuple(self.tensor.shape)
        return (self.length,)

    @property
    def maps(self) -> int:
        return 0 if self.tensor is None else int(self.tensor.shape[0])


class ActivationCache(Mapping):
    """Read-only mapping ``layer id -> ActivationRecord`` for one input."""

    def __init__(self, graph: LayerGraph, records: Dict[str, ActivationRecord]) -> None:
        self.graph = graph
        self._records = MappingProxyType(dict(records))

    def __getitem__(self, layer_id: str) -> ActivationRecord:
        try:
            return self._records[layer_id]
        except KeyError:
            raise LayerNotFound(layer_id, self.graph.ids) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def tensor(self, layer_id: str) -> Array:
        record = self[layer_id]
        if record.tensor is None:
            raise TypeError(f"Layer {layer_id!r} does not produce feature maps")
        return record.tensor

    def vector(self, layer_id: str) -> Array:
        record = self[layer_id]
        if record.vector is None:
            raise TypeError(f"Layer {layer_id!r} does not produce a vector")
        return record.vector

    @property
    def input(self) -> Array:
        return self.tensor(self.graph.first.id)[0]

    def prediction(self) -> int:
        """Index of the most probable class in the output distribution."""

        return int(np.argmax(self.vector(self.graph.last.id)))


class ActivationCacheBuilder:
    """Compute the activation cache for an input grid in graph order."""

    def __init__(
        self,
        graph: LayerGraph,
        bank: KernelBank,
        dense: DenseGenerator | None = None,
        *,
        input_size: int | None = None,
    ) -> None:
        self.graph = graph
        self.bank = bank
        self.dense = dense or RandomDenseGenerator()
        self.input_size = input_size
        self._stage: Dict[str, int] = {
            layer.id: idx for idx, layer in enumerate(graph.conv_layers())
        }
        self._check_kernels()
        self.shapes = self.plan(input_size) if input_size is not None else None

    def _check_kernels(self) -> None:
        for layer in self.graph.conv_layers():
            stage = self._stage[layer.id]
            expected = (layer.kernel_size, layer.kernel_size)
            shapes = self.bank.kernel_shapes(stage)
            if shapes != {expected}:
                raise ConfigurationError(
                    f"Kernel bank {self.bank.name!r} provides kernels of shape "
                    f"{sorted(shapes)} for {layer.id!r}, which declares "
                    f"kernel_size={layer.kernel_size}"
                )

    def plan(self, input_size: int) -> Dict[str, Tuple[int, ...]]:
        """Return the output shape of every layer for a square input."""

        shapes: Dict[str, Tuple[int, ...]] = {}
        maps, rows, cols = 1, input_size, input_size
        try:
            for layer in self.graph:
                if isinstance(layer, InputLayer):
                    shapes[layer.id] = (maps, rows, cols)
                elif isinstance(layer, ConvLayer):
                    k, s, p = layer.kernel_size, layer.stride, layer.padding
                    maps = layer.filters
                    rows, cols = output_size(rows, k, s, p), output_size(cols, k, s, p)
                    shapes[layer.id] = (maps, rows, cols)
                elif isinstance(layer, PoolLayer):
                    k, s = layer.kernel_size, layer.stride
                    rows, cols = output_size(rows, k, s), output_size(cols, k, s)
                    shapes[layer.id] = (maps, rows, cols)
                elif isinstance(layer, FlattenLayer):
                    shapes[layer.id] = (maps * rows * cols,)
                elif isinstance(layer, (LinearLayer, OutputLayer)):
                    shapes[layer.id] = (layer.units,)
                else:  # pragma: no cover - guardrail
                    raise ConfigurationError(f"Unsupported layer type: {type(layer).__name__}")
        except ValueError as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(
                f"Layer graph cannot process a {input_size}x{input_size} input: {exc}"
            ) from exc
        return shapes

    def validate_input(self, matrix: MatrixLike) -> Array:
        try:
            grid = as_matrix(matrix)
        except ValueError as exc:
            raise InputError(str(exc)) from exc
        rows, cols = grid.shape
        if rows != cols:
            raise InputError(f"Input grid must be square, got {rows}x{cols}")
        if self.input_size is not None and rows != self.input_size:
            raise InputError(
                f"Input grid must be {self.input_size}x{self.input_size}, got {rows}x{cols}"
            )
        if not np.all(np.isfinite(grid)) or grid.min() < 0.0 or grid.max() > 1.0:
            raise InputError("Input intensities must lie in [0, 1]")
        return grid

    def build(self, matrix: MatrixLike) -> ActivationCache:
        """Return a complete :class:`ActivationCache` for ``matrix``."""

        grid = self.validate_input(matrix)
        records: Dict[str, ActivationRecord] = {}
        previous: ActivationRecord | None = None
        for layer in self.graph:
            record = self._compute(layer, grid, previous)
            records[layer.id] = record
            previous = record
        logger.debug(
            "Built activation cache for %dx%d input across %d layers",
            grid.shape[0],
            grid.shape[1],
            len(records),
        )
        return ActivationCache(self.graph, records)

    def _compute(
        self, layer: LayerSpec, grid: Array, previous: ActivationRecord | None
    ) -> ActivationRecord:
        if isinstance(layer, InputLayer):
            return ActivationRecord.from_tensor(layer, [grid])
        if previous is None:
            raise ConfigurationError(f"Layer {layer.id!r} has no predecessor")
        if isinstance(layer, ConvLayer):
            sources = previous.tensor
            stage = self._stage[layer.id]
            maps = []
            for k in range(layer.filters):
                source = sources[k % sources.shape[0]]
                kernel = self.bank.kernel_for(stage, k)
                out = convolve(source, kernel, layer.stride, layer.padding)
                maps.append(normalize(out))
            return ActivationRecord.from_tensor(layer, maps)
        if isinstance(layer, PoolLayer):
            return ActivationRecord.from_tensor(
                layer,
                [max_pool(m, layer.kernel_size, layer.stride) for m in previous.tensor],
            )
        if isinstance(layer, FlattenLayer):
            return ActivationRecord(layer.id, layer.kind, previous.length)
        if isinstance(layer, LinearLayer):
            return ActivationRecord.from_vector(layer, self.dense.hidden(layer.units))
        if isinstance(layer, OutputLayer):
            return ActivationRecord.from_vector(layer, self.dense.output(layer.units))
        raise ConfigurationError(f"Unsupported layer type: {type(layer).__name__}")


__all__ = ["ActivationCache", "ActivationCacheBuilder", "ActivationRecord"]
