"""Explanation lookups for lenetflow."""

from .service import ExplanationService, concept_prompt, feature_map_prompt

__all__ = ["ExplanationService", "concept_prompt", "feature_map_prompt"]
