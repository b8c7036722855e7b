"""Builds ranked daily plans from scored, bucketed pages."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from cr0n.briefs import BriefGenerator
from cr0n.constants import ACTION_BUCKETS, DEFAULT_MAX_TASKS_PER_RUN, MONITOR
from cr0n.engine.bucketer import Bucketer
from cr0n.engine.scorer import Scorer
from cr0n.types import DailyPlan, LearningLog, PageData, SEOTask

logger = logging.getLogger(__name__)


class Analyzer:
    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        ctr_curve: Optional[Dict[str, Any]] = None,
        criteria: Optional[Dict[str, Dict[str, Any]]] = None,
        max_tasks_per_run: int = DEFAULT_MAX_TASKS_PER_RUN,
        include_monitor_bucket: bool = False,
        brief_generator: Optional[BriefGenerator] = None,
    ) -> None:
        self.scorer = Scorer(weights, ctr_curve)
        self.bucketer = Bucketer(criteria, ctr_curve)
        self.briefs = brief_generator or BriefGenerator()
        self.max_tasks_per_run = max_tasks_per_run
        self.include_monitor_bucket = include_monitor_bucket

    def analyze_page(self, page: PageData) -> SEOTask:
        bucket = self.bucketer.classify(page)
        return self._task(page, bucket)

    def _task(self, page: PageData, bucket: str) -> SEOTask:
        return SEOTask(
            url=page.url,
            score=self.scorer.score(page),
            bucket=bucket,
            metrics=page,
            brief=self.briefs.generate(page, bucket),
        )

    def analyze_pages(self, pages: Iterable[PageData]) -> List[SEOTask]:
        tasks: List[SEOTask] = []
        for page in pages:
            bucket = self.bucketer.classify(page)
            if bucket == MONITOR and not self.include_monitor_bucket:
                continue
            tasks.append(self._task(page, bucket))
        tasks.sort(key=lambda task: task.score, reverse=True)
        return tasks[: self.max_tasks_per_run]

    def top_by_bucket(self, pages: Iterable[PageData], limit: int = 5) -> Dict[str, List[SEOTask]]:
        groups = self.bucketer.group_by_bucket(pages)
        result: Dict[str, List[SEOTask]] = {}
        for bucket in ACTION_BUCKETS:
            tasks = [self._task(page, bucket) for page in groups[bucket]]
            tasks.sort(key=lambda task: task.score, reverse=True)
            result[bucket] = tasks[:limit]
        return result

    def daily_plan(
        self,
        site_id: str,
        pages: List[PageData],
        learning_log: Optional[List[LearningLog]] = None,
        today: Optional[date] = None,
    ) -> DailyPlan:
        tasks = self.analyze_pages(pages)
        distribution = self.bucketer.distribution(pages)
        logger.info(
            "Plan for %s: %d pages analyzed, %d tasks, distribution=%s",
            site_id,
            len(pages),
            len(tasks),
            distribution,
        )
        return DailyPlan(
            date=(today or date.today()).isoformat(),
            site_id=site_id,
            active_weights=self.scorer.get_weights(),
            tasks=tasks,
            learning_log=list(learning_log or []),
            stats={
                "total_pages_analyzed": len(pages),
                "pages_with_opportunities": len(tasks),
                "bucket_distribution": distribution,
            },
        )

    def get_weights(self) -> Dict[str, float]:
        return self.scorer.get_weights()

    def set_weights(self, weights: Dict[str, float]) -> None:
        self.scorer.set_weights(weights)
