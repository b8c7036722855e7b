"""Registry of provider adapters that can take part in federation."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from cr0n.federation.types import ProviderAdapter

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Adapters keyed by provider id, in registration order."""

    def __init__(self) -> None:
        self._adapters: Dict[str, ProviderAdapter] = {}

    @classmethod
    def from_config(
        cls,
        models: Dict[str, Dict[str, Any]],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ProviderRegistry":
        """Register an adapter for every provider with an API key configured."""
        from cr0n.models import ADAPTERS

        registry = cls()
        for provider_id, adapter_cls in ADAPTERS.items():
            entry = models.get(provider_id) or {}
            api_key = entry.get("api_key")
            if not api_key:
                continue
            kwargs: Dict[str, Any] = {"api_key": api_key, "transport": transport}
            if entry.get("model"):
                kwargs["model"] = entry["model"]
            if entry.get("base_url"):
                kwargs["base_url"] = entry["base_url"]
            if entry.get("timeout"):
                kwargs["timeout"] = float(entry["timeout"])
            registry.register(adapter_cls(**kwargs))
        logger.info("Provider registry: %s", registry.available_ids() or "no providers configured")
        return registry

    def register(self, adapter: ProviderAdapter) -> None:
        self._adapters[adapter.id] = adapter

    def unregister(self, provider_id: str) -> None:
        self._adapters.pop(provider_id, None)

    def get(self, provider_id: str) -> Optional[ProviderAdapter]:
        return self._adapters.get(provider_id)

    def available(self) -> List[ProviderAdapter]:
        return [adapter for adapter in self._adapters.values() if adapter.available]

    def available_ids(self) -> List[str]:
        return [adapter.id for adapter in self.available()]

    def all(self) -> List[ProviderAdapter]:
        return list(self._adapters.values())

    def has(self, provider_id: str) -> bool:
        adapter = self._adapters.get(provider_id)
        return bool(adapter and adapter.available)

    def count(self) -> int:
        return len(self.available())
