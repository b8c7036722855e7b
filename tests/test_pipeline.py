"""Tests for cr0n.pipeline module."""
import asyncio
import json
import unittest
from dataclasses import replace
from datetime import date

from cr0n.config import resolve_settings
from cr0n.constants import CTR_FIX, DEFAULT_WEIGHTS, LOCAL_BOOST, STRIKING_DISTANCE
from cr0n.errors import ConfigurationError, ProviderError
from cr0n.federation.registry import ProviderRegistry
from cr0n.federation.types import ProviderAdapter
from cr0n.pipeline import Cr0nEngine
from cr0n.types import ActionRecord, ContentBrief, PageData

TODAY = date(2026, 3, 1)

PAGES = [
    PageData(url="https://example.com/widgets", primary_keyword="widgets", impressions=2000, ctr=0.01, position=6),
    PageData(url="https://example.com/gadgets", primary_keyword="gadgets", impressions=300, ctr=0.05, position=8),
    PageData(url="https://example.com/home", primary_keyword="home", impressions=9000, ctr=0.3, position=1),
]


class FakeAdapter(ProviderAdapter):
    def __init__(self, provider_id, fail=False, fail_urls=()):
        self.id = provider_id
        self.name = provider_id
        self.fail = fail
        self.fail_urls = set(fail_urls)

    @property
    def available(self):
        return True

    async def analyze_opportunity(self, page, bucket):
        raise NotImplementedError

    async def generate_brief(self, page, bucket, context=None):
        if self.fail or page.url in self.fail_urls:
            raise ProviderError(self.id, "HTTP 503")
        return ContentBrief(
            url=page.url,
            target_keyword=page.primary_keyword,
            bucket=bucket,
            title_recommendations=[f"{page.primary_keyword} by {self.id}"],
            h1_recommendation=page.primary_keyword,
            target_word_count=1500,
            h2_additions=["Overview", "Pricing"],
            priority_tasks=["Rewrite the title"],
            schema_stack=["Article"],
            generated_by=self.id,
        )

    async def score_content(self, content, brief):
        raise NotImplementedError

    async def generate_content(self, brief):
        raise NotImplementedError


def _engine(*adapters, **settings):
    registry = ProviderRegistry()
    for adapter in adapters:
        registry.register(adapter)
    return Cr0nEngine(resolve_settings(**settings), registry=registry)


def _action(**kwargs):
    defaults = {
        "url": "https://example.com/widgets",
        "action_type": CTR_FIX,
        "action_date": "2026-02-01",
        "id": "act-1",
        "original_ctr": 0.005,
        "original_clicks": 10,
        "original_impressions": 2000,
        "original_position": 7,
    }
    defaults.update(kwargs)
    return ActionRecord(**defaults)


class TestAnalyze(unittest.TestCase):
    def test_plan_excludes_monitor_and_ranks_by_score(self):
        plan = _engine().analyze(PAGES, today=TODAY)

        self.assertEqual(plan.date, "2026-03-01")
        self.assertEqual(plan.site_id, "default")
        self.assertEqual([task.url for task in plan.tasks], ["https://example.com/widgets", "https://example.com/gadgets"])
        self.assertEqual(plan.tasks[0].bucket, CTR_FIX)
        self.assertEqual(plan.tasks[1].bucket, STRIKING_DISTANCE)
        self.assertEqual(plan.stats["total_pages_analyzed"], 3)
        self.assertEqual(plan.stats["pages_with_opportunities"], 2)
        self.assertEqual(plan.stats["bucket_distribution"]["MONITOR"], 1)
        self.assertEqual(plan.active_weights, DEFAULT_WEIGHTS)

    def test_max_tasks_cap(self):
        engine = _engine()
        engine.settings.max_tasks_per_run = 1
        plan = engine.analyze(PAGES, today=TODAY)
        self.assertEqual(len(plan.tasks), 1)


class TestRunCycle(unittest.TestCase):
    def test_cycle_without_providers_keeps_local_briefs(self):
        engine = _engine()
        with self.assertLogs("cr0n.pipeline", level="WARNING"):
            result = asyncio.run(engine.run_cycle(PAGES, [_action()], today=TODAY))

        self.assertEqual(len(result.plan.tasks), 2)
        for task in result.plan.tasks:
            self.assertIsNone(task.brief.generated_by)
            self.assertTrue(task.brief.h2_additions)
        self.assertEqual(result.evaluations.stats["successful"], 1)
        self.assertGreater(result.weights["ctr_gap"], result.weights["position"])
        self.assertEqual(result.plan.active_weights, result.weights)

    def test_cycle_marks_actions_applied_with_observed_metrics(self):
        engine = _engine()
        pending = _action(id="act-2", action_date="2026-02-25")
        result = asyncio.run(engine.run_cycle(PAGES, [_action(), pending], today=TODAY))

        applied, untouched = result.actions
        self.assertTrue(applied.learning_applied)
        self.assertEqual(applied.result_ctr, 0.01)
        self.assertEqual(applied.success_score, 1.0)
        self.assertFalse(untouched.learning_applied)
        self.assertIsNone(untouched.result_ctr)

    def test_actions_sharing_url_and_date_stay_distinct(self):
        engine = _engine()
        actions = [
            _action(id=None, action_type=CTR_FIX),
            _action(id=None, action_type=LOCAL_BOOST, original_clicks=5),
        ]
        result = asyncio.run(engine.run_cycle(PAGES, actions, today=TODAY))

        self.assertEqual([action.action_type for action in result.actions], [CTR_FIX, LOCAL_BOOST])
        self.assertEqual([action.original_clicks for action in result.actions], [10, 5])
        self.assertTrue(all(action.learning_applied for action in result.actions))
        self.assertEqual(result.evaluations.stats["total"], 2)

    def test_second_cycle_is_a_no_op_for_weights(self):
        first = _engine()
        result = asyncio.run(first.run_cycle(PAGES, [_action(model_used="grok")], today=TODAY))
        self.assertNotEqual(result.model_weights[CTR_FIX]["grok"], 0.25)

        second = _engine(
            weights=result.weights,
            model_weights=result.model_weights,
            learning_cycles=first.weight_adjuster.learning_cycles,
        )
        again = asyncio.run(second.run_cycle(PAGES, result.actions, today=TODAY))

        self.assertEqual(again.weights, result.weights)
        self.assertEqual(again.model_weights, result.model_weights)
        self.assertEqual(second.weight_adjuster.learning_cycles, 1)
        self.assertEqual(again.evaluations.stats["total"], 0)

    def test_federation_replaces_briefs(self):
        engine = _engine(FakeAdapter("claude"), FakeAdapter("openai"))
        result = asyncio.run(engine.run_cycle(PAGES, today=TODAY))

        for task in result.plan.tasks:
            self.assertEqual(task.brief.generated_by, "claude")
            self.assertEqual(task.brief.contributing_models, ["claude", "openai"])
            self.assertEqual(task.brief.consensus_confidence, 1.0)
            self.assertEqual(task.brief.target_word_count, 1500)

    def test_federation_failure_keeps_local_brief(self):
        engine = _engine(FakeAdapter("claude", fail=True), FakeAdapter("gemini", fail=True))
        with self.assertLogs("cr0n.pipeline", level="WARNING"):
            result = asyncio.run(engine.run_cycle(PAGES, today=TODAY))
        for task in result.plan.tasks:
            self.assertIsNone(task.brief.generated_by)

    def test_one_failed_consensus_does_not_block_other_tasks(self):
        broken = {"https://example.com/gadgets"}
        engine = _engine(FakeAdapter("claude", fail_urls=broken), FakeAdapter("openai", fail_urls=broken))
        with self.assertLogs("cr0n.pipeline", level="WARNING") as logs:
            result = asyncio.run(engine.run_cycle(PAGES, today=TODAY))

        by_url = {task.url: task.brief for task in result.plan.tasks}
        self.assertEqual(by_url["https://example.com/widgets"].generated_by, "claude")
        self.assertEqual(by_url["https://example.com/widgets"].contributing_models, ["claude", "openai"])
        self.assertIsNone(by_url["https://example.com/gadgets"].generated_by)
        self.assertTrue(by_url["https://example.com/gadgets"].h2_additions)
        self.assertEqual(len(logs.records), 1)
        self.assertIn("https://example.com/gadgets", logs.output[0])

    def test_model_learning_from_model_used(self):
        engine = _engine()
        result = asyncio.run(engine.run_cycle(PAGES, [_action(model_used="grok")], today=TODAY))

        self.assertGreater(result.model_weights[CTR_FIX]["grok"], 0.25)
        self.assertEqual([stats.provider_id for stats in result.model_stats], ["grok"])
        self.assertTrue(any(entry.action == "Model weight: grok on CTR_FIX" for entry in result.learning_log))

    def test_model_weights_feed_routing(self):
        weights = {CTR_FIX: {"claude": 0.2, "openai": 0.2, "gemini": 0.2, "grok": 0.4}}
        engine = _engine(FakeAdapter("claude"), FakeAdapter("grok"), model_weights=weights)
        result = asyncio.run(engine.federate_brief(PAGES[0], CTR_FIX))
        self.assertEqual(result.primary_model, "grok")

    def test_federate_brief_without_providers(self):
        with self.assertRaises(ConfigurationError):
            asyncio.run(_engine().federate_brief(PAGES[0], CTR_FIX))

    def test_to_dict_is_serializable(self):
        engine = _engine(FakeAdapter("claude"))
        action = replace(_action(), model_used="claude")
        result = asyncio.run(engine.run_cycle(PAGES, [action], today=TODAY))
        payload = json.loads(json.dumps(result.to_dict()))
        self.assertEqual(payload["actions"][0]["learning_applied"], True)
        self.assertIn("claude", payload["model_weights"][CTR_FIX])


if __name__ == "__main__":
    unittest.main()
