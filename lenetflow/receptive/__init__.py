"""Receptive-field location and the convolution micro-sequencer."""

from .lab import ConvolutionLab, StepDetails
from .locator import locate
from .walk import ConvolutionWalk, WalkState

__all__ = ["ConvolutionLab", "ConvolutionWalk", "StepDetails", "WalkState", "locate"]
