"""Decides which past actions are due for evaluation and measures their outcome."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, List, Optional

from cr0n.constants import (
    CTR_FIX,
    EVALUATION_CONFIG,
    LOCAL_BOOST,
    MONITOR,
    RELEVANCE_REBUILD,
    STRIKING_DISTANCE,
    SUCCESS_CRITERIA,
)
from cr0n.types import ActionRecord, BatchEvaluation, EvaluationResult, LearningLog, PageData

logger = logging.getLogger(__name__)


@dataclass
class Measurement:
    success: bool
    score: float
    delta: float
    metric: str
    criteria: str


def _relative(base: float, result: Optional[float]) -> float:
    if result is None or base <= 0:
        return 0.0
    return (result - base) / base


def measure_outcome(action: ActionRecord) -> Measurement:
    """Compare an action's observed metric against its bucket's success threshold.

    Missing observations and zero baselines yield a delta of 0. The MONITOR
    threshold is 0, so its score is 1 on success and 0 otherwise.
    """
    criteria = SUCCESS_CRITERIA.get(action.action_type)
    if not criteria:
        return Measurement(False, 0.0, 0.0, "", "Unknown action type")

    metric = criteria["metric"]
    improvement = float(criteria["improvement"])
    if metric == "ctr":
        delta = _relative(action.original_ctr, action.result_ctr)
    elif metric == "impressions":
        delta = _relative(action.original_impressions, action.result_impressions)
    elif metric == "clicks":
        delta = _relative(action.original_clicks, action.result_clicks)
    else:
        observed = action.original_position if action.result_position is None else action.result_position
        delta = action.original_position - observed

    success = delta >= improvement
    if improvement > 0:
        score = min(max(delta / improvement, 0.0), 1.0)
    else:
        score = 1.0 if success else 0.0
    return Measurement(success, score, delta, metric, criteria["description"])


def url_slug(url: str) -> str:
    return url.rstrip("/").split("/")[-1] or url


def _percent(value: float) -> int:
    return int(round(value * 100))


class OutcomeEvaluator:
    def __init__(
        self,
        evaluation_delay_days: int = EVALUATION_CONFIG["evaluation_delay_days"],
        max_action_age_days: int = EVALUATION_CONFIG["max_action_age_days"],
    ) -> None:
        self.evaluation_delay_days = evaluation_delay_days
        self.max_action_age_days = max_action_age_days

    def is_ready(self, action: ActionRecord, today: Optional[date] = None) -> bool:
        if action.learning_applied or action.action_status != "completed":
            return False
        try:
            acted_on = date.fromisoformat(action.action_date[:10])
        except ValueError:
            logger.warning("Skipping action on %s: bad action_date %r", action.url, action.action_date)
            return False
        age = ((today or date.today()) - acted_on).days
        return self.evaluation_delay_days <= age <= self.max_action_age_days

    def evaluate(self, action: ActionRecord, page: PageData, today: Optional[date] = None) -> EvaluationResult:
        day = (today or date.today()).isoformat()
        observed = action.with_observed(page)
        measured = measure_outcome(observed)
        observed = replace(observed, success_score=round(measured.score, 4), evaluated_at=day)

        log = LearningLog(
            date=day,
            action=f"{action.action_type} on {url_slug(action.url)}",
            result=self._describe(observed, measured) if measured.success else "No significant improvement",
            weight_adj=f"+{action.action_type}" if measured.success else "None",
            details={
                "url": action.url,
                "action_type": action.action_type,
                "delta_metric": self._primary_delta(observed),
                "metric_type": measured.metric,
            },
        )
        return EvaluationResult(
            action=observed,
            success=measured.success,
            success_score=measured.score,
            criteria=measured.criteria,
            delta_traffic=page.clicks - action.original_clicks,
            delta_position=action.original_position - page.position,
            delta_ctr=page.ctr - action.original_ctr,
            delta_impressions=page.impressions - action.original_impressions,
            learning_log=log,
        )

    @staticmethod
    def _primary_delta(action: ActionRecord) -> float:
        kind = action.action_type
        if kind == CTR_FIX:
            return (action.result_ctr or 0.0) - action.original_ctr
        if kind in (STRIKING_DISTANCE, MONITOR):
            return action.original_position - (action.result_position or 0.0)
        if kind == RELEVANCE_REBUILD:
            return (action.result_impressions or 0) - action.original_impressions
        if kind == LOCAL_BOOST:
            return (action.result_clicks or 0) - action.original_clicks
        return 0.0

    @staticmethod
    def _describe(action: ActionRecord, measured: Measurement) -> str:
        kind = action.action_type
        if kind == CTR_FIX:
            return f"+{_percent(measured.delta)}% CTR"
        if kind == STRIKING_DISTANCE:
            return f"+{measured.delta:.1f} positions"
        if kind == RELEVANCE_REBUILD:
            return f"+{_percent(measured.delta)}% impressions"
        if kind == LOCAL_BOOST:
            return f"+{_percent(measured.delta)}% clicks"
        if kind == MONITOR:
            return "Position maintained"
        return "Improved"

    def batch_evaluate(
        self,
        actions: Iterable[ActionRecord],
        pages_by_url: Dict[str, PageData],
        today: Optional[date] = None,
    ) -> BatchEvaluation:
        evaluated: List[EvaluationResult] = []
        skipped: List[ActionRecord] = []
        positions: List[int] = []
        for index, action in enumerate(actions):
            page = pages_by_url.get(action.url)
            if page is None or not self.is_ready(action, today):
                skipped.append(action)
                continue
            evaluated.append(self.evaluate(action, page, today))
            positions.append(index)

        successful = sum(1 for item in evaluated if item.success)
        total = len(evaluated)
        logger.info("Evaluated %d actions (%d successful, %d skipped)", total, successful, len(skipped))
        return BatchEvaluation(
            evaluated=evaluated,
            skipped=skipped,
            stats={
                "total": total,
                "successful": successful,
                "failed": total - successful,
                "success_rate": successful / total if total else 0.0,
            },
            learning_logs=[item.learning_log for item in evaluated],
            positions=positions,
        )
