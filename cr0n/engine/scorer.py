"""Opportunity scorer: page metrics to a weighted score in [0, 1]."""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from cr0n.constants import DEFAULT_CTR_CURVE, DEFAULT_WEIGHTS, get_expected_ctr
from cr0n.types import NormalizedScores, PageData
from cr0n.weights import clamp


class Scorer:
    """Normalizes each metric independently and combines them with the content weights."""

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        ctr_curve: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.weights = {**DEFAULT_WEIGHTS, **(weights or {})}
        self.ctr_curve = {**DEFAULT_CTR_CURVE, **(ctr_curve or {})}

    @staticmethod
    def normalize_impressions(impressions: float) -> float:
        return clamp(math.log10(max(impressions, 0) + 1) / 5.0, 0.0, 1.0)

    @staticmethod
    def normalize_position(position: float) -> float:
        return clamp((50 - position) / 50.0, 0.0, 1.0)

    def normalize_ctr_gap(self, position: float, actual_ctr: float) -> float:
        expected = get_expected_ctr(position, self.ctr_curve)
        if expected <= 0:
            return 0.0
        return clamp((expected - actual_ctr) / expected, 0.0, 1.0)

    @staticmethod
    def normalize_conversions(conversions: float) -> float:
        return clamp(math.log10(max(conversions, 0) + 1) / 2.0, 0.0, 1.0)

    @staticmethod
    def normalize_freshness(freshness: float) -> float:
        return clamp(freshness, 0.0, 1.0)

    def normalized_scores(self, page: PageData) -> NormalizedScores:
        return NormalizedScores(
            impressions=self.normalize_impressions(page.impressions),
            position=self.normalize_position(page.position),
            ctr_gap=self.normalize_ctr_gap(page.position, page.ctr),
            conversions=self.normalize_conversions(page.conversions),
            freshness=self.normalize_freshness(page.freshness_score),
        )

    def score(self, page: PageData) -> float:
        normalized = self.normalized_scores(page).to_dict()
        total = sum(self.weights.get(key, 0.0) * value for key, value in normalized.items())
        return round(clamp(total, 0.0, 1.0), 4)

    def sort_by_opportunity(self, pages: Iterable[PageData]) -> List[Tuple[PageData, float]]:
        scored = [(page, self.score(page)) for page in pages]
        return sorted(scored, key=lambda item: item[1], reverse=True)

    def get_weights(self) -> Dict[str, float]:
        return dict(self.weights)

    def set_weights(self, weights: Dict[str, float]) -> None:
        self.weights = {**self.weights, **weights}

    def set_ctr_curve(self, curve: Dict[str, Any]) -> None:
        self.ctr_curve = {**self.ctr_curve, **curve}


def score_page(
    page: PageData,
    weights: Optional[Dict[str, float]] = None,
    ctr_curve: Optional[Dict[str, Any]] = None,
) -> float:
    return Scorer(weights, ctr_curve).score(page)
