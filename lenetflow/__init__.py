"""lenetflow public API."""

from .config import SimulationConfig, load_preset, presets, resolve_config
from .core import activations, kernels, ops, sources, types  # noqa: F401
from .core.errors import (
    ConfigurationError,
    ExternalLookupFailure,
    InputError,
    InvalidLayer,
    LayerNotFound,
    ShapeError,
)
from .engine.cache import ActivationCache, ActivationCacheBuilder, ActivationRecord
from .graph.layers import LayerGraph, lenet5
from .playback.sequencer import PlaybackSequencer, SequencerState
from .playback.timer import RepeatingTimer, TimedRunner
from .receptive import ConvolutionLab, ConvolutionWalk, locate
from .simulation import Simulation, Stage

__all__ = [
    "ActivationCache",
    "ActivationCacheBuilder",
    "ActivationRecord",
    "ConfigurationError",
    "ConvolutionLab",
    "ConvolutionWalk",
    "ExternalLookupFailure",
    "InputError",
    "InvalidLayer",
    "LayerGraph",
    "LayerNotFound",
    "PlaybackSequencer",
    "RepeatingTimer",
    "SequencerState",
    "ShapeError",
    "Simulation",
    "SimulationConfig",
    "Stage",
    "TimedRunner",
    "activations",
    "kernels",
    "lenet5",
    "load_preset",
    "locate",
    "ops",
    "presets",
    "resolve_config",
    "sources",
    "types",
]
