"""Content weight learning: nudges one scoring dimension per evaluated outcome."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from cr0n.constants import BUCKET_TO_WEIGHT, DEFAULT_LEARNING_CONFIG, DEFAULT_WEIGHTS
from cr0n.learning.outcome_evaluator import measure_outcome, url_slug
from cr0n.types import ActionRecord, WeightAdjustment
from cr0n.weights import clamp, renormalize_bounded

logger = logging.getLogger(__name__)

SUCCESS_STEP = 1.0
FAILURE_STEP = -0.5


def action_key(action: ActionRecord) -> str:
    return action.id or f"{action.url}@{action.action_date}"


@dataclass
class LearningResult:
    new_weights: Dict[str, float]
    adjustments: List[WeightAdjustment] = field(default_factory=list)
    total_learning_cycles: int = 0
    applied: List[str] = field(default_factory=list)
    # positions of the applied actions in the input sequence
    applied_indexes: List[int] = field(default_factory=list)


class WeightAdjuster:
    """Holds the content weight vector and applies one learning cycle at a time.

    Every processed outcome moves its bucket's weight by a fixed step times the
    learning rate, clamped to the bounds. The vector is renormalized once per
    cycle and stays inside ``[min_weight, max_weight]``.
    """

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        config: Optional[Dict[str, float]] = None,
        learning_cycles: int = 0,
    ) -> None:
        self.weights = {**DEFAULT_WEIGHTS, **(weights or {})}
        self.config = {**DEFAULT_LEARNING_CONFIG, **(config or {})}
        self.learning_cycles = learning_cycles

    def _apply(self, key: str, step: float, reason: str) -> Optional[WeightAdjustment]:
        old = self.weights[key]
        new = clamp(
            old + step * self.config["learning_rate"],
            self.config["min_weight"],
            self.config["max_weight"],
        )
        if abs(new - old) < 0.0001:
            return None
        self.weights[key] = new
        logger.debug("Content weight %s: %.4f -> %.4f (%s)", key, old, new, reason)
        return WeightAdjustment(weight=key, old_value=round(old, 4), new_value=round(new, 4), reason=reason)

    def run_learning_cycle(self, actions: Iterable[ActionRecord]) -> LearningResult:
        adjustments: List[WeightAdjustment] = []
        applied: List[str] = []
        applied_indexes: List[int] = []
        for index, action in enumerate(actions):
            if action.learning_applied:
                continue
            key = BUCKET_TO_WEIGHT.get(action.action_type)
            if key is None:
                logger.warning("Unknown action type %r on %s", action.action_type, action.url)
                continue
            measured = measure_outcome(action)
            slug = url_slug(action.url)
            reason = (
                f"{action.action_type} success on {slug}"
                if measured.success
                else f"{action.action_type} did not meet criteria on {slug}"
            )
            adjustment = self._apply(key, SUCCESS_STEP if measured.success else FAILURE_STEP, reason)
            if adjustment:
                adjustments.append(adjustment)
            applied.append(action_key(action))
            applied_indexes.append(index)

        if applied:
            self.weights = renormalize_bounded(
                self.weights, self.config["min_weight"], self.config["max_weight"]
            )
            self.learning_cycles += 1

        return LearningResult(
            new_weights=dict(self.weights),
            adjustments=adjustments,
            total_learning_cycles=self.learning_cycles,
            applied=applied,
            applied_indexes=applied_indexes,
        )

    def get_weights(self) -> Dict[str, float]:
        return dict(self.weights)

    def reset(self) -> None:
        self.weights = dict(DEFAULT_WEIGHTS)
