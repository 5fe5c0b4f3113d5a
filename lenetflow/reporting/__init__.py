"""Reporting utilities for lenetflow."""

from .trace import TraceSink, summarize

__all__ = ["TraceSink", "summarize"]
