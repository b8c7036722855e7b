"""Routes a bucket to the providers to query and picks the primary."""
from __future__ import annotations

import logging
from typing import Dict, List

from cr0n.errors import ConfigurationError
from cr0n.federation.registry import ProviderRegistry
from cr0n.federation.types import RouteDecision

logger = logging.getLogger(__name__)


class Router:
    def __init__(self, registry: ProviderRegistry, model_weights: Dict[str, Dict[str, float]]) -> None:
        self.registry = registry
        self.model_weights = model_weights

    def _ranked(self, bucket: str, provider_ids: List[str]) -> List[tuple[str, float]]:
        row = self.model_weights.get(bucket) or {}
        # sorted() is stable, so equal weights keep registry order.
        return sorted(((pid, row.get(pid, 0.0)) for pid in provider_ids), key=lambda item: item[1], reverse=True)

    def route(self, bucket: str) -> RouteDecision:
        available = self.registry.available_ids()
        if not available:
            raise ConfigurationError("No models available. Provide at least one API key.")

        if len(available) == 1:
            return RouteDecision(
                models=available,
                primary=available[0],
                strategy="primary_only",
                reason=f"Only 1 model available ({available[0]})",
            )

        primary, weight = self._ranked(bucket, available)[0]
        if len(available) == 2:
            return RouteDecision(
                models=available,
                primary=primary,
                strategy="top2",
                reason=f"2 models available, using both. Primary: {primary} ({weight * 100:.0f}%)",
            )
        return RouteDecision(
            models=available,
            primary=primary,
            strategy="all",
            reason=f"{len(available)} models available. Primary: {primary} ({weight * 100:.0f}%)",
        )

    def primary_model(self, bucket: str) -> str:
        available = self.registry.available_ids()
        if not available:
            raise ConfigurationError("No models available. Provide at least one API key.")
        return self._ranked(bucket, available)[0][0]

    def set_model_weights(self, weights: Dict[str, Dict[str, float]]) -> None:
        self.model_weights = weights
