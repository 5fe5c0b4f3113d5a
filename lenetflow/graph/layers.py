"""Layer graph model: the fixed, ordered description of the network."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import ClassVar, Iterator, Sequence, Tuple, Union

from ..core.errors import ConfigurationError, LayerNotFound
from ..core.ops import output_size
from ..core.types import LayerKind


@dataclass(frozen=True)
class _Layer:
    """Fields shared by every layer variant.

    Attributes
    ----------
    id:
        Stable identifier, unique within a graph.
    source:
        Id of the layer this one reads from. ``None`` means the previous
        layer in graph order, which is the only predecessor allowed.
    input_shape, output_shape:
        Human-readable shape strings. They are never used in computation.
    """

    kind: ClassVar[LayerKind]

    id: str
    name: str
    description: str = ""
    input_shape: str = ""
    output_shape: str = ""
    source: str | None = None


@dataclass(frozen=True)
class InputLayer(_Layer):
    kind: ClassVar[LayerKind] = LayerKind.INPUT


@dataclass(frozen=True)
class ConvLayer(_Layer):
    kind: ClassVar[LayerKind] = LayerKind.CONV

    filters: int = 1
    kernel_size: int = 3
    stride: int = 1
    padding: int = 0
    activation: str = "tanh"


@dataclass(frozen=True)
class PoolLayer(_Layer):
    kind: ClassVar[LayerKind] = LayerKind.POOL

    kernel_size: int = 2
    stride: int = 2


@dataclass(frozen=True)
class FlattenLayer(_Layer):
    kind: ClassVar[LayerKind] = LayerKind.FLATTEN


@dataclass(frozen=True)
class LinearLayer(_Layer):
    kind: ClassVar[LayerKind] = LayerKind.LINEAR

    units: int = 1
    activation: str = "tanh"


@dataclass(frozen=True)
class OutputLayer(_Layer):
    kind: ClassVar[LayerKind] = LayerKind.OUTPUT

    units: int = 10
    activation: str = "softmax"


LayerSpec = Union[InputLayer, ConvLayer, PoolLayer, FlattenLayer, LinearLayer, OutputLayer]


class LayerGraph:
    """Immutable, validated sequence of layers in forward-pass order."""

    def __init__(self, layers: Sequence[LayerSpec]) -> None:
        self._layers: Tuple[LayerSpec, ...] = tuple(layers)
        self._index = {layer.id: idx for idx, layer in enumerate(self._layers)}
        self._validate()

    def _validate(self) -> None:
        if not self._layers:
            raise ConfigurationError("Layer graph must contain at least one layer")
        if len(self._index) != len(self._layers):
            counts = Counter(layer.id for layer in self._layers)
            dupes = sorted(name for name, count in counts.items() if count > 1)
            raise ConfigurationError(f"Duplicate layer ids: {', '.join(dupes)}")
        if self._layers[0].kind is not LayerKind.INPUT:
            raise ConfigurationError(
                f"First layer {self._layers[0].id!r} must be an Input layer"
            )
        for idx, layer in enumerate(self._layers):
            if idx == 0:
                if layer.source is not None:
                    raise ConfigurationError(
                        f"Input layer {layer.id!r} cannot read from {layer.source!r}"
                    )
                continue
            prev = self._layers[idx - 1]
            if layer.kind is LayerKind.INPUT:
                raise ConfigurationError(f"Input layer {layer.id!r} must come first")
            if layer.source is not None and layer.source != prev.id:
                if layer.source not in self._index:
                    raise ConfigurationError(
                        f"Layer {layer.id!r} references unknown predecessor {layer.source!r}"
                    )
                raise ConfigurationError(
                    f"Layer {layer.id!r} references non-adjacent predecessor "
                    f"{layer.source!r}; expected {prev.id!r}"
                )
            needs_spatial = layer.kind in {LayerKind.CONV, LayerKind.POOL, LayerKind.FLATTEN}
            if needs_spatial != prev.kind.is_spatial:
                raise ConfigurationError(
                    f"{layer.kind.value} layer {layer.id!r} cannot follow "
                    f"{prev.kind.value} layer {prev.id!r}"
                )
            if prev.kind is LayerKind.OUTPUT:
                raise ConfigurationError(
                    f"Output layer {prev.id!r} must be the last layer"
                )
            _check_params(layer)

    # ------------------------------------------------------------------
    # Lookup

    def get(self, layer_id: str) -> LayerSpec:
        return self._layers[self.index_of(layer_id)]

    def index_of(self, layer_id: str) -> int:
        try:
            return self._index[layer_id]
        except KeyError:
            raise LayerNotFound(layer_id, self.ids) from None

    def __contains__(self, layer_id: object) -> bool:
        return layer_id in self._index

    def __iter__(self) -> Iterator[LayerSpec]:
        return iter(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(layer.id for layer in self._layers)

    @property
    def layers(self) -> Tuple[LayerSpec, ...]:
        return self._layers

    @property
    def first(self) -> LayerSpec:
        return self._layers[0]

    @property
    def last(self) -> LayerSpec:
        return self._layers[-1]

    def next_id(self, layer_id: str) -> str | None:
        idx = self.index_of(layer_id)
        if idx + 1 >= len(self._layers):
            return None
        return self._layers[idx + 1].id

    def conv_layers(self) -> Tuple[ConvLayer, ...]:
        return tuple(l for l in self._layers if isinstance(l, ConvLayer))


def _check_params(layer: LayerSpec) -> None:
    if isinstance(layer, ConvLayer):
        if layer.filters < 1 or layer.kernel_size < 1 or layer.stride < 1 or layer.padding < 0:
            raise ConfigurationError(f"Invalid convolution parameters on {layer.id!r}")
    elif isinstance(layer, PoolLayer):
        if layer.kernel_size < 1 or layer.stride < 1:
            raise ConfigurationError(f"Invalid pooling parameters on {layer.id!r}")
    elif isinstance(layer, (LinearLayer, OutputLayer)):
        if layer.units < 1:
            raise ConfigurationError(f"Layer {layer.id!r} needs at least one unit")


def lenet5(input_size: int = 28) -> LayerGraph:
    """Build the reference LeNet-style graph for a square ``input_size`` grid.

    Shape strings follow the arithmetic the engine actually performs with the
    3x3 kernel bank, so a 28x28 input flattens to 400 values.
    """

    def conv_out(size: int, kernel: int, stride: int = 1, padding: int = 0) -> int:
        try:
            return output_size(size, kernel, stride, padding)
        except ValueError as exc:
            raise ConfigurationError(
                f"Input size {input_size} is too small for the LeNet graph"
            ) from exc

    c1 = conv_out(input_size, 3)
    p1 = conv_out(c1, 2, 2)
    c2 = conv_out(p1, 3)
    p2 = conv_out(c2, 2, 2)
    flat = p2 * p2 * 16

    def shape(size: int, maps: int) -> str:
        return f"{size}x{size}x{maps}"

    return LayerGraph(
        [
            InputLayer(
                "input",
                "Input Image",
                "The raw input image (an MNIST-style digit) as a grid of intensities.",
                input_shape=shape(input_size, 1),
                output_shape=shape(input_size, 1),
            ),
            ConvLayer(
                "conv1",
                "C1: Convolution",
                "First convolutional layer. Extracts low-level features like edges and curves.",
                input_shape=shape(input_size, 1),
                output_shape=shape(c1, 6),
                filters=6,
                kernel_size=3,
            ),
            PoolLayer(
                "pool1",
                "S2: Max Pooling",
                "Subsampling layer to reduce spatial dimensions and sensitivity to shifts.",
                input_shape=shape(c1, 6),
                output_shape=shape(p1, 6),
            ),
            ConvLayer(
                "conv2",
                "C3: Convolution",
                "Second convolutional layer. Combines lower-level features into complex patterns.",
                input_shape=shape(p1, 6),
                output_shape=shape(c2, 16),
                filters=16,
                kernel_size=3,
            ),
            PoolLayer(
                "pool2",
                "S4: Max Pooling",
                "Further dimensionality reduction.",
                input_shape=shape(c2, 16),
                output_shape=shape(p2, 16),
            ),
            FlattenLayer(
                "flatten",
                "Flatten",
                "Converts 2D feature maps into a 1D vector for the fully connected layers.",
                input_shape=shape(p2, 16),
                output_shape=str(flat),
            ),
            LinearLayer(
                "fc1",
                "C5: Fully Connected",
                "Dense layer processing global information.",
                input_shape=str(flat),
                output_shape="120",
                units=120,
            ),
            LinearLayer(
                "fc2",
                "F6: Fully Connected",
                "Second dense layer.",
                input_shape="120",
                output_shape="84",
                units=84,
            ),
            OutputLayer(
                "output",
                "Output",
                "Final classification layer with 10 units (digits 0-9).",
                input_shape="84",
                output_shape="10",
                units=10,
            ),
        ]
    )


__all__ = [
    "ConvLayer",
    "FlattenLayer",
    "InputLayer",
    "LayerGraph",
    "LayerSpec",
    "LinearLayer",
    "OutputLayer",
    "PoolLayer",
    "lenet5",
]
