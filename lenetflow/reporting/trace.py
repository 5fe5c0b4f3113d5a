"""Playback trace sinks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

import numpy as np

from ..engine.cache import ActivationRecord


def summarize(record: ActivationRecord) -> Dict[str, object]:
    """Return JSON-friendly statistics for one layer's activations."""

    summary: Dict[str, object] = {
        "layer": record.layer_id,
        "kind": record.kind.value,
        "shape": list(record.shape),
        "length": record.length,
    }
    values = record.tensor if record.tensor is not None else record.vector
    if values is not None:
        summary.update(
            {
                "min": float(np.min(values)),
                "max": float(np.max(values)),
                "mean": float(np.mean(values)),
            }
        )
    return summary


class TraceSink:
    """Append-only JSONL writer for sequencer state changes."""

    def __init__(self, path: str | Path, simulation, *, run_id: str | None = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.simulation = simulation
        self.run_id = run_id
        self.events = 0

    def on_state(self, state) -> None:
        stage = self.simulation.stage(state.active_layer_id)
        record = {
            "event": self.events,
            "running": state.is_running,
            "interval_ms": state.step_interval_ms,
            "run_id": self.run_id,
        }
        record.update(stage.summary())
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")
        self.events += 1

    __call__ = on_state

    def attach(self):
        """Subscribe to the simulation's sequencer; returns the unsubscribe hook."""

        return self.simulation.sequencer.subscribe(self)
