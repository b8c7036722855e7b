"""Normalization helpers shared by the content and provider weight learners."""
from __future__ import annotations

from typing import Dict, Iterable


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _settle_rounding(values: Dict[str, float], precision: int, candidates: Iterable[str]) -> Dict[str, float]:
    rounded = {key: round(value, precision) for key, value in values.items()}
    residual = round(1.0 - sum(rounded.values()), precision)
    if residual:
        pool = [key for key in candidates if key in rounded] or list(rounded)
        target = max(pool, key=lambda key: rounded[key])
        rounded[target] = round(rounded[target] + residual, precision)
    return rounded


def renormalize(weights: Dict[str, float], precision: int = 4) -> Dict[str, float]:
    """Scale weights so they sum to 1.0, rounded to ``precision`` places.

    Values are not re-clamped after scaling. The rounding residual is folded
    into the largest weight so the rounded vector still sums to 1.0.
    """
    total = sum(weights.values())
    if total <= 0:
        return dict(weights)
    scaled = {key: value / total for key, value in weights.items()}
    return _settle_rounding(scaled, precision, scaled.keys())


def renormalize_bounded(
    weights: Dict[str, float],
    min_weight: float,
    max_weight: float,
    precision: int = 4,
) -> Dict[str, float]:
    """Scale weights to sum to 1.0 while keeping every weight inside bounds.

    Weights that would leave the bounds are pinned at the bound and the
    remaining mass is spread proportionally over the rest.
    """
    if not weights:
        return {}
    values = {key: clamp(value, min_weight, max_weight) for key, value in weights.items()}
    pinned: Dict[str, float] = {}
    for _ in range(len(values) + 1):
        free = [key for key in values if key not in pinned]
        if not free:
            break
        budget = 1.0 - sum(pinned.values())
        free_total = sum(values[key] for key in free)
        if free_total <= 0:
            scaled = {key: budget / len(free) for key in free}
        else:
            scaled = {key: values[key] * budget / free_total for key in free}
        over = [key for key, value in scaled.items() if value > max_weight]
        under = [key for key, value in scaled.items() if value < min_weight]
        if over:
            pinned.update({key: max_weight for key in over})
            continue
        if under:
            pinned.update({key: min_weight for key in under})
            continue
        values.update(scaled)
        break
    values.update(pinned)
    free = [key for key in values if key not in pinned]
    return _settle_rounding(values, precision, free)
