"""Exception hierarchy shared across lenetflow."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid layer graph, kernel bank or configuration value."""


class LayerNotFound(KeyError):
    """A layer id that is not part of the layer graph."""

    def __init__(self, layer_id: str, known=()) -> None:
        self.layer_id = layer_id
        self.known = tuple(known)
        message = f"Unknown layer {layer_id!r}"
        if self.known:
            message += f". Known layers: {', '.join(self.known)}"
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidLayer(LayerNotFound):
    """Raised by the playback sequencer when asked to jump to an unknown layer."""


class ShapeError(ValueError):
    """A kernel or pooling window that does not fit the input."""


class InputError(ValueError):
    """An input grid that violates the capture contract."""


class ExternalLookupFailure(RuntimeError):
    """The explanation service could not produce text."""


__all__ = [
    "ConfigurationError",
    "ExternalLookupFailure",
    "InputError",
    "InvalidLayer",
    "LayerNotFound",
    "ShapeError",
]
