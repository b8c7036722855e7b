"""Per-cycle orchestration: evaluate, learn, analyze, federate."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from cr0n.briefs import BriefGenerator
from cr0n.config import Config, EngineSettings, resolve_settings
from cr0n.engine.analyzer import Analyzer
from cr0n.errors import ConsensusError
from cr0n.federation.consensus import ConsensusEngine
from cr0n.federation.registry import ProviderRegistry
from cr0n.federation.router import Router
from cr0n.federation.types import BusinessContext, ConsensusResult
from cr0n.learning.model_adjuster import ModelAdjuster
from cr0n.learning.outcome_evaluator import OutcomeEvaluator
from cr0n.learning.weight_adjuster import WeightAdjuster
from cr0n.types import (
    ActionRecord,
    BatchEvaluation,
    CycleResult,
    DailyPlan,
    LearningLog,
    ModelStats,
    PageData,
)

logger = logging.getLogger(__name__)


class Cr0nEngine:
    """Owns both weight learners for the lifetime of one caller session.

    The engine keeps no durable state: the caller supplies weights through
    ``EngineSettings`` and persists what ``run_cycle`` returns.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        registry: ProviderRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or resolve_settings()
        if registry is None:
            registry = ProviderRegistry.from_config(self.settings.models, transport=transport)
        self.registry = registry
        self.weight_adjuster = WeightAdjuster(
            self.settings.weights,
            self.settings.learning_config,
            self.settings.learning_cycles,
        )
        self.model_adjuster = ModelAdjuster(
            self.settings.model_weights,
            learning_rate=self.settings.model_learning_rate,
            min_weight=self.settings.model_min_weight,
            max_weight=self.settings.model_max_weight,
        )
        self.evaluator = OutcomeEvaluator(
            evaluation_delay_days=self.settings.evaluation_delay_days,
            max_action_age_days=self.settings.max_action_age_days,
        )
        self.router = Router(self.registry, self.model_adjuster.get_weights())
        self.consensus = ConsensusEngine(self.settings.consensus_threshold)
        self.briefs = BriefGenerator()

    @classmethod
    def from_config(
        cls,
        config: Config,
        weights: Optional[Dict[str, float]] = None,
        model_weights: Optional[Dict[str, Dict[str, float]]] = None,
        learning_cycles: int = 0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "Cr0nEngine":
        settings = resolve_settings(config, weights, model_weights, learning_cycles)
        return cls(settings, transport=transport)

    def _analyzer(self) -> Analyzer:
        return Analyzer(
            weights=self.weight_adjuster.get_weights(),
            ctr_curve=self.settings.ctr_curve,
            criteria=self.settings.bucket_criteria,
            max_tasks_per_run=self.settings.max_tasks_per_run,
            include_monitor_bucket=self.settings.include_monitor_bucket,
            brief_generator=self.briefs,
        )

    def analyze(
        self,
        pages: List[PageData],
        site_id: Optional[str] = None,
        learning_log: Optional[List[LearningLog]] = None,
        today: Optional[date] = None,
    ) -> DailyPlan:
        return self._analyzer().daily_plan(site_id or self.settings.site_id, pages, learning_log, today)

    async def federate_brief(
        self,
        page: PageData,
        bucket: str,
        context: Optional[BusinessContext] = None,
    ) -> ConsensusResult:
        decision = self.router.route(bucket)
        logger.debug("Route for %s (%s): %s", page.url, bucket, decision.reason)
        adapters = [self.registry.get(pid) for pid in decision.models]
        return await self.consensus.generate_consensus(
            [adapter for adapter in adapters if adapter is not None],
            page,
            bucket,
            self.model_adjuster.get_weights(),
            context,
        )

    async def run_cycle(
        self,
        pages: List[PageData],
        actions: Sequence[ActionRecord] = (),
        context: Optional[BusinessContext] = None,
        site_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> CycleResult:
        pages_by_url = {page.url: page for page in pages}
        evaluations = self.evaluator.batch_evaluate(actions, pages_by_url, today)
        learning_log: List[LearningLog] = list(evaluations.learning_logs)

        content = self.weight_adjuster.run_learning_cycle(item.action for item in evaluations.evaluated)
        models = self.model_adjuster.run_learning_cycle(evaluations.evaluated)
        learning_log.extend(self.model_adjuster.to_learning_logs(models, today))
        self.router.set_model_weights(self.model_adjuster.get_weights())
        if content.applied:
            logger.info(
                "Learning cycle %d: %d outcomes, %d content adjustments, %d model adjustments",
                content.total_learning_cycles,
                len(content.applied),
                len(content.adjustments),
                len(models.adjustments),
            )

        plan = self.analyze(pages, site_id, learning_log, today)
        await self._federate_tasks(plan, context)

        return CycleResult(
            plan=plan,
            evaluations=evaluations,
            weights=self.weight_adjuster.get_weights(),
            model_weights=self.model_adjuster.get_weights(),
            model_stats=self.model_adjuster.stats(),
            learning_log=learning_log,
            actions=self._mark_applied(actions, evaluations, content.applied_indexes),
        )

    async def _federate_tasks(self, plan: DailyPlan, context: Optional[BusinessContext]) -> None:
        if not plan.tasks:
            return
        if self.registry.count() == 0:
            logger.warning("No providers configured; keeping local briefs for %d tasks", len(plan.tasks))
            return
        for task in plan.tasks:
            try:
                result = await self.federate_brief(task.metrics, task.bucket, context)
            except ConsensusError as exc:
                logger.warning("Federation failed for %s, keeping local brief: %s", task.url, exc)
                continue
            task.brief = result.brief

    @staticmethod
    def _mark_applied(
        actions: Sequence[ActionRecord],
        evaluations: BatchEvaluation,
        applied_indexes: Iterable[int],
    ) -> List[ActionRecord]:
        updated = list(actions)
        for index in applied_indexes:
            observed = evaluations.evaluated[index].action
            updated[evaluations.positions[index]] = replace(observed, learning_applied=True)
        return updated

    def get_weights(self) -> Dict[str, float]:
        return self.weight_adjuster.get_weights()

    def get_model_weights(self) -> Dict[str, Dict[str, float]]:
        return self.model_adjuster.get_weights()

    def get_model_stats(self) -> List[ModelStats]:
        return self.model_adjuster.stats()

    def model_count(self) -> int:
        return self.registry.count()
