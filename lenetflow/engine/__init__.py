"""Activation engine for lenetflow."""

from .cache import ActivationCache, ActivationCacheBuilder, ActivationRecord

__all__ = ["ActivationCache", "ActivationCacheBuilder", "ActivationRecord"]
