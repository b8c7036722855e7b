"""Bucket x provider weight table."""
from __future__ import annotations

import copy
import logging
from typing import Dict, Iterable, List, Optional

from cr0n.constants import (
    DEFAULT_MODEL_MAX_WEIGHT,
    DEFAULT_MODEL_MIN_WEIGHT,
    PROVIDER_IDS,
    default_model_weights,
)
from cr0n.types import ModelStats
from cr0n.weights import clamp, renormalize

logger = logging.getLogger(__name__)

ModelWeights = Dict[str, Dict[str, float]]


class ModelWeightStore:
    """Holds ``{bucket: {provider: weight}}`` and applies bounded row updates."""

    def __init__(self, weights: Optional[ModelWeights] = None) -> None:
        self.weights = default_model_weights()
        for bucket, row in (weights or {}).items():
            self.weights.setdefault(bucket, {}).update(row or {})

    def get_weights(self) -> ModelWeights:
        return copy.deepcopy(self.weights)

    def get_row(self, bucket: str) -> Dict[str, float]:
        return dict(self.weights.get(bucket, {}))

    def get_weight(self, bucket: str, provider_id: str) -> float:
        return self.weights.get(bucket, {}).get(provider_id, 0.0)

    def get_top_model(self, bucket: str) -> str:
        row = self.weights.get(bucket) or {}
        best = PROVIDER_IDS[0]
        best_weight = -1.0
        for provider_id, weight in row.items():
            if weight > best_weight:
                best, best_weight = provider_id, weight
        return best

    def set_weights(self, weights: ModelWeights) -> None:
        self.weights = copy.deepcopy(weights)

    def adjust_weight(
        self,
        bucket: str,
        provider_id: str,
        delta: float,
        min_weight: float = DEFAULT_MODEL_MIN_WEIGHT,
        max_weight: float = DEFAULT_MODEL_MAX_WEIGHT,
    ) -> None:
        """Move one cell by ``delta``, clamp it, then renormalize that bucket's row.

        The row is not re-clamped after renormalizing, so a cell can drift
        slightly outside the bounds when most of the row is already pinned.
        """
        row = self.weights.setdefault(bucket, {})
        current = row.get(provider_id, round(1.0 / len(PROVIDER_IDS), 4))
        row[provider_id] = clamp(current + delta, min_weight, max_weight)
        self.weights[bucket] = renormalize(row)

    def reset(self) -> None:
        self.weights = default_model_weights()

    def generate_stats(self, tracking: Iterable[Dict[str, object]]) -> List[ModelStats]:
        """Summarize ``{provider_id, bucket, success, confidence}`` entries per provider."""
        totals: Dict[str, Dict[str, float]] = {}
        for entry in tracking:
            provider_id = str(entry["provider_id"])
            stats = totals.setdefault(provider_id, {"total": 0, "successes": 0, "failures": 0, "confidence": 0.0})
            stats["total"] += 1
            if entry.get("success"):
                stats["successes"] += 1
            else:
                stats["failures"] += 1
            stats["confidence"] += float(entry.get("confidence") or 0.0)

        result: List[ModelStats] = []
        for provider_id, stats in totals.items():
            total = int(stats["total"])
            result.append(
                ModelStats(
                    provider_id=provider_id,
                    total_tasks=total,
                    successful_tasks=int(stats["successes"]),
                    failed_tasks=int(stats["failures"]),
                    success_rate=stats["successes"] / total if total else 0.0,
                    avg_confidence=stats["confidence"] / total if total else 0.0,
                    weights_by_bucket={
                        bucket: row.get(provider_id, 0.0) for bucket, row in self.weights.items()
                    },
                )
            )
        return result
