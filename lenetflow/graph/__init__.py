"""Layer graph model for lenetflow."""

from .layers import (
    ConvLayer,
    FlattenLayer,
    InputLayer,
    LayerGraph,
    LayerSpec,
    LinearLayer,
    OutputLayer,
    PoolLayer,
    lenet5,
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
