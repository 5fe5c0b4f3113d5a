"""Playback sequencer: the "current layer" cursor of the forward pass."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Generic, List, Sequence, Tuple, TypeVar

from ..core.errors import ConfigurationError, InvalidLayer

S = TypeVar("S")


class StateMachine(Generic[S]):
    """Base class for the timer-driven state machines.

    Subclasses expose ``state``, ``is_running``, ``interval_ms``, ``start`` and
    ``tick``; every state change is pushed to subscribed listeners.
    """

    def __init__(self) -> None:
        self._listeners: List[Callable[[S], None]] = []

    @property
    def state(self) -> S:  # pragma: no cover - abstract
        raise NotImplementedError

    @property
    def is_running(self) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    @property
    def interval_ms(self) -> int:  # pragma: no cover - abstract
        raise NotImplementedError

    def start(self) -> S:  # pragma: no cover - abstract
        raise NotImplementedError

    def tick(self) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)


def check_interval(interval_ms: int) -> int:
    if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
        raise ValueError(f"interval must be a positive integer of milliseconds, got {interval_ms!r}")
    return interval_ms


@dataclass(frozen=True)
class SequencerState:
    """Snapshot of the playback cursor."""

    active_layer_id: str
    is_running: bool = False
    step_interval_ms: int = 1000


class PlaybackSequencer(StateMachine[SequencerState]):
    """Advance through the layer order manually or on a timer.

    Automatic ticks only move forward and stop on the last layer; explicit
    commands (``step_forward``, ``jump_to``, ``reset``) always pause playback.
    """

    def __init__(self, layers, step_interval_ms: int = 1000) -> None:
        super().__init__()
        ids: Tuple[str, ...] = tuple(getattr(layers, "ids", layers))
        if not ids:
            raise ConfigurationError("Playback needs at least one layer")
        if len(set(ids)) != len(ids):
            raise ConfigurationError("Playback layer ids must be unique")
        self._ids = ids
        self._state = SequencerState(ids[0], False, check_interval(step_interval_ms))

    # ------------------------------------------------------------------
    # Read-only view

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def layer_ids(self) -> Tuple[str, ...]:
        return self._ids

    @property
    def active_layer_id(self) -> str:
        return self._state.active_layer_id

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def interval_ms(self) -> int:
        return self._state.step_interval_ms

    @property
    def max_steps(self) -> int:
        return len(self._ids) - 1

    @property
    def at_end(self) -> bool:
        return self._state.active_layer_id == self._ids[-1]

    # ------------------------------------------------------------------
    # Transitions

    def start(self) -> SequencerState:
        if self._state.is_running:
            return self._state
        active = self._ids[0] if self.at_end else self._state.active_layer_id
        return self._set(active_layer_id=active, is_running=True)

    def pause(self) -> SequencerState:
        return self._set(is_running=False)

    def toggle(self) -> SequencerState:
        return self.pause() if self._state.is_running else self.start()

    def step_forward(self) -> SequencerState:
        return self._set(active_layer_id=self._following(), is_running=False)

    def reset(self) -> SequencerState:
        return self._set(active_layer_id=self._ids[0], is_running=False)

    def jump_to(self, layer_id: str) -> SequencerState:
        if layer_id not in self._ids:
            raise InvalidLayer(layer_id, self._ids)
        return self._set(active_layer_id=layer_id, is_running=False)

    def tick(self) -> bool:
        """Advance one layer while running; return whether the cursor moved."""

        if not self._state.is_running:
            return False
        if self.at_end:
            self._set(is_running=False)
            return False
        following = self._following()
        self._set(active_layer_id=following, is_running=following != self._ids[-1])
        return True

    def set_interval(self, interval_ms: int) -> SequencerState:
        return self._set(step_interval_ms=check_interval(interval_ms))

    # ------------------------------------------------------------------
    # Helpers

    def _following(self) -> str:
        idx = self._ids.index(self._state.active_layer_id)
        return self._ids[min(idx + 1, len(self._ids) - 1)]

    def _set(self, **changes) -> SequencerState:
        new_state = replace(self._state, **changes)
        if new_state != self._state:
            self._state = new_state
            self._emit()
        return self._state


__all__ = ["PlaybackSequencer", "SequencerState", "StateMachine", "check_interval"]
