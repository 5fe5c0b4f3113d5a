"""Simulation facade joining the activation cache and the playback cursor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from .config import SPEEDS, NetworkConfig
from .core.errors import ConfigurationError
from .core.kernels import BANKS
from .core.sources import DenseGenerator, RandomDenseGenerator, UniformSource
from .core.types import MatrixLike
from .engine.cache import ActivationCache, ActivationCacheBuilder, ActivationRecord
from .graph.layers import LayerGraph, LayerSpec, OutputLayer, lenet5
from .inputs import blank
from .playback.sequencer import PlaybackSequencer, SequencerState
from .playback.timer import TimedRunner
from .reporting.trace import summarize

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Stage:
    """Everything a renderer needs to draw the active layer."""

    layer: LayerSpec
    record: ActivationRecord
    state: SequencerState
    prediction: int | None = None

    def summary(self) -> Dict[str, object]:
        summary = summarize(self.record)
        summary.update({"name": self.layer.name, "output_shape": self.layer.output_shape})
        if self.prediction is not None:
            summary["prediction"] = self.prediction
        return summary


class Simulation:
    """Hold the current input, its activation cache and the playback sequencer.

    The cache is rebuilt in full whenever the input changes and swapped in as
    one object, so a reader never sees layers from two different inputs.
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        *,
        graph: LayerGraph | None = None,
        dense: DenseGenerator | None = None,
        grid: MatrixLike | None = None,
    ) -> None:
        self.config = config or NetworkConfig()
        self.graph = graph or lenet5(self.config.input_size)
        if dense is None:
            dense = RandomDenseGenerator(UniformSource.seeded(self.config.seed))
        self.builder = ActivationCacheBuilder(
            self.graph,
            BANKS.get(self.config.kernel_bank),
            dense,
            input_size=self.config.input_size,
        )
        self.sequencer = PlaybackSequencer(self.graph, self.config.interval_ms)
        self._cache = self.set_input(blank(self.config.input_size) if grid is None else grid)

    @property
    def cache(self) -> ActivationCache:
        return self._cache

    def set_input(self, grid: MatrixLike) -> ActivationCache:
        cache = self.builder.build(grid)
        self._cache = cache
        logger.info("Activation cache rebuilt; predicted class %d", cache.prediction())
        return cache

    def set_speed(self, speed: str) -> SequencerState:
        if speed not in SPEEDS:
            raise ConfigurationError(
                f"Unknown speed {speed!r}. Available speeds: {', '.join(SPEEDS)}"
            )
        return self.sequencer.set_interval(SPEEDS[speed])

    def stage(self, layer_id: str | None = None) -> Stage:
        """Return the stage for ``layer_id`` (default: the active layer)."""

        cache = self.cache
        layer = self.graph.get(layer_id or self.sequencer.active_layer_id)
        prediction = cache.prediction() if isinstance(layer, OutputLayer) else None
        return Stage(layer, cache[layer.id], self.sequencer.state, prediction)

    def runner(self) -> TimedRunner:
        """Bind the sequencer to a timer; call from inside a running event loop."""

        return TimedRunner(self.sequencer, name="playback")


__all__ = ["Simulation", "Stage"]
