"""Substitutable sources for the synthetic dense-layer activations.

The network has no trained weights, so the fully connected layers are
illustrated with generated values. All randomness flows through a
:class:`NumberSource`, and all dense synthesis through a
:class:`DenseGenerator`, so either can be swapped out in one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import cycle
from typing import Iterator, Protocol, Sequence

import numpy as np

from .types import Array


class NumberSource(Protocol):
    """Protocol implemented by value sources."""

    def next(self) -> float:
        """Return the next value in ``[0, 1)``."""


class DenseGenerator(Protocol):
    """Protocol producing activations for layers without real weights."""

    def hidden(self, units: int) -> Array:
        """Return ``units`` activations in ``[0, 1)`` for a hidden layer."""

    def output(self, units: int) -> Array:
        """Return a ``units``-long distribution summing to one."""


@dataclass
class UniformSource:
    """Uniform ``[0, 1)`` values from a numpy generator."""

    rng: np.random.Generator = field(default_factory=np.random.default_rng)

    @classmethod
    def seeded(cls, seed: int | None = None) -> "UniformSource":
        return cls(np.random.default_rng(seed))

    def next(self) -> float:
        return float(self.rng.random())


class SequenceSource:
    """Replay a fixed sequence of values, cycling when exhausted."""

    def __init__(self, values: Sequence[float]) -> None:
        if not values:
            raise ValueError("SequenceSource needs at least one value")
        for value in values:
            if not 0.0 <= value < 1.0:
                raise ValueError(f"SequenceSource values must lie in [0, 1), got {value}")
        self._values: Iterator[float] = cycle([float(v) for v in values])

    def next(self) -> float:
        return next(self._values)


def draw(source: NumberSource, count: int) -> Array:
    return np.array([source.next() for _ in range(count)], dtype=np.float64)


@dataclass
class RandomDenseGenerator:
    """Illustrative dense activations drawn from a :class:`NumberSource`."""

    source: NumberSource = field(default_factory=UniformSource)

    def hidden(self, units: int) -> Array:
        return draw(self.source, units)

    def output(self, units: int) -> Array:
        raw = draw(self.source, units)
        total = raw.sum()
        if total == 0:
            return np.full(units, 1.0 / units)
        return raw / total


__all__ = [
    "DenseGenerator",
    "NumberSource",
    "RandomDenseGenerator",
    "SequenceSource",
    "UniformSource",
    "draw",
]
