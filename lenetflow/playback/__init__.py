"""Playback state machines and their timers."""

from .sequencer import PlaybackSequencer, SequencerState, StateMachine
from .timer import RepeatingTimer, TimedRunner

__all__ = [
    "PlaybackSequencer",
    "RepeatingTimer",
    "SequencerState",
    "StateMachine",
    "TimedRunner",
]
