"""Core numerical primitives for lenetflow."""

from . import activations, errors, kernels, ops, sources, types

__all__ = ["activations", "errors", "kernels", "ops", "sources", "types"]
