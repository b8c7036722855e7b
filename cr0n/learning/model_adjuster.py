"""Provider weight learning: reinforces the provider that produced a successful brief."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from cr0n.constants import (
    ACTION_BUCKETS,
    DEFAULT_MODEL_LEARNING_RATE,
    DEFAULT_MODEL_MAX_WEIGHT,
    DEFAULT_MODEL_MIN_WEIGHT,
)
from cr0n.federation.model_weights import ModelWeights, ModelWeightStore
from cr0n.types import EvaluationResult, LearningLog, ModelStats

logger = logging.getLogger(__name__)


@dataclass
class ModelWeightAdjustment:
    bucket: str
    provider_id: str
    old_weight: float
    new_weight: float
    reason: str


@dataclass
class ModelLearningResult:
    new_model_weights: ModelWeights
    adjustments: List[ModelWeightAdjustment] = field(default_factory=list)
    performance: Dict[str, Dict[str, int]] = field(default_factory=dict)


class ModelAdjuster:
    """Fixed-step reinforcement of the bucket x provider table.

    A success moves the provider up by ``learning_rate * max(score, 0.5)``;
    a failure moves it down by ``learning_rate * 0.5``. Only the provider
    recorded as ``model_used`` is adjusted.
    """

    def __init__(
        self,
        weights: Optional[ModelWeights] = None,
        learning_rate: float = DEFAULT_MODEL_LEARNING_RATE,
        min_weight: float = DEFAULT_MODEL_MIN_WEIGHT,
        max_weight: float = DEFAULT_MODEL_MAX_WEIGHT,
        store: Optional[ModelWeightStore] = None,
    ) -> None:
        self.store = store or ModelWeightStore(weights)
        self.learning_rate = learning_rate
        self.min_weight = min_weight
        self.max_weight = max_weight
        self.tracking: List[Dict[str, object]] = []

    def run_learning_cycle(self, evaluations: Iterable[EvaluationResult]) -> ModelLearningResult:
        """Apply one cycle of outcomes. ``tracking`` holds this cycle's outcomes only."""
        self.tracking = []
        adjustments: List[ModelWeightAdjustment] = []
        performance: Dict[str, Dict[str, int]] = {}

        for evaluation in evaluations:
            action = evaluation.action
            provider_id = action.model_used
            if not provider_id:
                continue
            if action.action_type not in ACTION_BUCKETS:
                logger.debug("Skipping model learning for unknown bucket %r", action.action_type)
                continue

            perf = performance.setdefault(provider_id, {"successes": 0, "failures": 0})
            perf["successes" if evaluation.success else "failures"] += 1
            confidence = (
                action.consensus_confidence
                if action.consensus_confidence is not None
                else evaluation.success_score
            )
            self.tracking.append(
                {
                    "provider_id": provider_id,
                    "bucket": action.action_type,
                    "success": evaluation.success,
                    "confidence": confidence,
                }
            )

            if evaluation.success:
                delta = self.learning_rate * max(evaluation.success_score, 0.5)
            else:
                delta = -self.learning_rate * 0.5

            bucket = action.action_type
            old = self.store.get_weight(bucket, provider_id)
            self.store.adjust_weight(bucket, provider_id, delta, self.min_weight, self.max_weight)
            new = self.store.get_weight(bucket, provider_id)
            if abs(new - old) > 0.0001:
                reason = (
                    f"{provider_id} succeeded on {bucket} (score: {evaluation.success_score:.2f})"
                    if evaluation.success
                    else f"{provider_id} failed on {bucket}"
                )
                logger.debug("Model weight %s/%s: %.4f -> %.4f", bucket, provider_id, old, new)
                adjustments.append(
                    ModelWeightAdjustment(
                        bucket=bucket,
                        provider_id=provider_id,
                        old_weight=round(old, 4),
                        new_weight=round(new, 4),
                        reason=reason,
                    )
                )

        return ModelLearningResult(
            new_model_weights=self.store.get_weights(),
            adjustments=adjustments,
            performance=performance,
        )

    def to_learning_logs(self, result: ModelLearningResult, today: Optional[date] = None) -> List[LearningLog]:
        day = (today or date.today()).isoformat()
        return [
            LearningLog(
                date=day,
                action=f"Model weight: {adj.provider_id} on {adj.bucket}",
                result=f"{adj.old_weight:.4f} -> {adj.new_weight:.4f}",
                weight_adj=adj.reason,
            )
            for adj in result.adjustments
        ]

    def stats(self) -> List[ModelStats]:
        return self.store.generate_stats(self.tracking)

    def get_weights(self) -> ModelWeights:
        return self.store.get_weights()

    def set_weights(self, weights: ModelWeights) -> None:
        self.store.set_weights(weights)
