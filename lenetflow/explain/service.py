"""Plain-language explanations from a hosted text-generation model.

Lookups are purely additive: every failure mode (no credential, network
error, timeout, empty reply) resolves to a fixed message instead of raising,
so a slow or broken lookup never disturbs the simulation.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Sequence

from google import genai

from ..config import ExplainConfig
from ..core.errors import ExternalLookupFailure

logger = logging.getLogger(__name__)

API_KEY_ENV: Sequence[str] = ("GEMINI_API_KEY", "API_KEY")

CONCEPT_NO_KEY = "API Key not configured. Please check environment."
CONCEPT_EMPTY = "Could not generate explanation."
CONCEPT_ERROR = "Error retrieving explanation."
ANALYSIS_NO_KEY = "API Key not configured."
ANALYSIS_EMPTY = "No analysis available."
ANALYSIS_ERROR = "Error analyzing features."


def concept_prompt(concept: str, context: str) -> str:
    return (
        f'Explain the concept of "{concept}" in the context of a CNN (LeNet-5). '
        f"Context provided: {context}. "
        "Keep the explanation concise, under 80 words, and suitable for a beginner student."
    )


def feature_map_prompt(layer_name: str, description: str) -> str:
    return (
        f"I am looking at the output of layer {layer_name} in a CNN. "
        f"The visual features look like: {description}. "
        "Briefly explain what this layer might be detecting (e.g., edges, textures, "
        "object parts). Keep it under 50 words."
    )


class ExplanationService:
    """Asynchronous explanation lookups with a bounded wait."""

    def __init__(
        self,
        config: ExplainConfig | None = None,
        *,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.config = config or ExplainConfig()
        self._api_key = api_key
        self._client = client

    def _resolve_key(self) -> str | None:
        if self._api_key:
            return self._api_key
        for name in API_KEY_ENV:
            value = os.environ.get(name)
            if value:
                return value
        return None

    def _get_client(self) -> Any | None:
        if self._client is None:
            key = self._resolve_key()
            if key is None:
                logger.warning("No API key found in %s; explanations are disabled", "/".join(API_KEY_ENV))
                return None
            self._client = genai.Client(api_key=key)
        return self._client

    async def _generate(self, client: Any, prompt: str) -> str:
        try:
            response = await client.aio.models.generate_content(
                model=self.config.model, contents=prompt
            )
        except Exception as exc:
            raise ExternalLookupFailure(f"{type(exc).__name__}: {exc}") from exc
        return (getattr(response, "text", None) or "").strip()

    async def _lookup(self, prompt: str, *, no_key: str, empty: str, error: str) -> str:
        try:
            client = self._get_client()
        except Exception as exc:
            logger.error("Could not create explanation client: %s", exc)
            return error
        if client is None:
            return no_key
        try:
            text = await asyncio.wait_for(self._generate(client, prompt), self.config.timeout_s)
        except asyncio.TimeoutError:
            logger.error("Explanation request timed out after %.1fs", self.config.timeout_s)
            return error
        except ExternalLookupFailure as exc:
            logger.error("Explanation request failed: %s", exc)
            return error
        return text or empty

    async def explain_concept(self, concept: str, context: str) -> str:
        return await self._lookup(
            concept_prompt(concept, context),
            no_key=CONCEPT_NO_KEY,
            empty=CONCEPT_EMPTY,
            error=CONCEPT_ERROR,
        )

    async def analyze_feature_map(self, layer_name: str, description: str) -> str:
        return await self._lookup(
            feature_map_prompt(layer_name, description),
            no_key=ANALYSIS_NO_KEY,
            empty=ANALYSIS_EMPTY,
            error=ANALYSIS_ERROR,
        )


__all__ = [
    "ANALYSIS_EMPTY",
    "ANALYSIS_ERROR",
    "ANALYSIS_NO_KEY",
    "CONCEPT_EMPTY",
    "CONCEPT_ERROR",
    "CONCEPT_NO_KEY",
    "ExplanationService",
    "concept_prompt",
    "feature_map_prompt",
]
