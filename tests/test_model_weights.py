"""Tests for provider weight storage and learning."""
import unittest
from datetime import date

from cr0n.constants import CTR_FIX, LOCAL_BOOST, PROVIDER_IDS, STRIKING_DISTANCE
from cr0n.federation.model_weights import ModelWeightStore
from cr0n.learning.model_adjuster import ModelAdjuster
from cr0n.learning.outcome_evaluator import OutcomeEvaluator
from cr0n.types import ActionRecord, EvaluationResult, LearningLog, PageData


def _evaluation(bucket, provider_id, success, score, confidence=None):
    action = ActionRecord(
        url="https://example.com/widgets",
        action_type=bucket,
        action_date="2026-01-01",
        model_used=provider_id,
        consensus_confidence=confidence,
    )
    return EvaluationResult(
        action=action,
        success=success,
        success_score=score,
        criteria="",
        delta_traffic=0,
        delta_position=0,
        delta_ctr=0,
        delta_impressions=0,
        learning_log=LearningLog(date="2026-01-15", action="", result="", weight_adj=""),
    )


class TestModelWeightStore(unittest.TestCase):
    def test_defaults_are_uniform(self):
        store = ModelWeightStore()
        for provider_id in PROVIDER_IDS:
            self.assertEqual(store.get_weight(CTR_FIX, provider_id), 0.25)

    def test_adjust_renormalizes_row(self):
        store = ModelWeightStore()
        store.adjust_weight(CTR_FIX, "claude", 0.1)
        row = store.get_row(CTR_FIX)
        self.assertAlmostEqual(sum(row.values()), 1.0, places=4)
        self.assertGreater(row["claude"], 0.3)
        self.assertAlmostEqual(row["openai"], 0.2273, places=4)
        # other buckets untouched
        self.assertEqual(store.get_row(STRIKING_DISTANCE), {pid: 0.25 for pid in PROVIDER_IDS})

    def test_missing_weight_reads_as_zero(self):
        store = ModelWeightStore()
        self.assertEqual(store.get_weight(CTR_FIX, "mistral"), 0.0)
        self.assertEqual(store.get_weight("NOT_A_BUCKET", "claude"), 0.0)

    def test_adjust_missing_cell_starts_from_uniform_share(self):
        store = ModelWeightStore()
        store.set_weights({CTR_FIX: {"claude": 0.5, "openai": 0.5}})
        store.adjust_weight(CTR_FIX, "grok", 0.0)
        self.assertEqual(store.get_row(CTR_FIX), {"claude": 0.4, "openai": 0.4, "grok": 0.2})

    def test_renormalize_does_not_reclamp(self):
        store = ModelWeightStore()
        store.set_weights({CTR_FIX: {"claude": 0.6, "openai": 0.6, "gemini": 0.6, "grok": 0.05}})
        store.adjust_weight(CTR_FIX, "grok", -0.1, 0.05, 0.6)
        row = store.get_row(CTR_FIX)
        self.assertAlmostEqual(sum(row.values()), 1.0, places=4)
        self.assertLess(row["grok"], 0.05)

    def test_get_weights_is_a_copy(self):
        store = ModelWeightStore()
        snapshot = store.get_weights()
        snapshot[CTR_FIX]["claude"] = 0.9
        self.assertEqual(store.get_weight(CTR_FIX, "claude"), 0.25)

    def test_top_model(self):
        store = ModelWeightStore({LOCAL_BOOST: {"gemini": 0.4}})
        self.assertEqual(store.get_top_model(LOCAL_BOOST), "gemini")
        # ties keep row order
        self.assertEqual(store.get_top_model(CTR_FIX), "claude")
        self.assertEqual(store.get_top_model("NOT_A_BUCKET"), "claude")

    def test_reset(self):
        store = ModelWeightStore({CTR_FIX: {"claude": 0.6}})
        store.reset()
        self.assertEqual(store.get_weight(CTR_FIX, "claude"), 0.25)


class TestModelAdjuster(unittest.TestCase):
    def test_success_reinforces_model_used(self):
        adjuster = ModelAdjuster()
        result = adjuster.run_learning_cycle([_evaluation(STRIKING_DISTANCE, "claude", True, 1.0)])

        row = result.new_model_weights[STRIKING_DISTANCE]
        self.assertGreater(row["claude"], 0.25)
        self.assertAlmostEqual(sum(row.values()), 1.0, places=4)
        self.assertEqual(len(result.adjustments), 1)
        self.assertEqual(result.adjustments[0].old_weight, 0.25)
        self.assertEqual(result.performance, {"claude": {"successes": 1, "failures": 0}})

    def test_low_success_score_uses_half_step_floor(self):
        adjuster = ModelAdjuster()
        result = adjuster.run_learning_cycle([_evaluation(CTR_FIX, "openai", True, 0.3)])
        self.assertAlmostEqual(result.new_model_weights[CTR_FIX]["openai"], 0.2575, places=4)

    def test_failure_lowers_model_used(self):
        adjuster = ModelAdjuster()
        result = adjuster.run_learning_cycle([_evaluation(CTR_FIX, "gemini", False, 0.0)])
        row = result.new_model_weights[CTR_FIX]
        self.assertLess(row["gemini"], 0.25)
        self.assertGreater(row["claude"], row["gemini"])

    def test_evaluations_without_model_are_skipped(self):
        adjuster = ModelAdjuster()
        result = adjuster.run_learning_cycle([_evaluation(CTR_FIX, None, True, 1.0)])
        self.assertEqual(result.adjustments, [])
        self.assertEqual(adjuster.stats(), [])

    def test_stats_prefer_consensus_confidence(self):
        adjuster = ModelAdjuster()
        adjuster.run_learning_cycle(
            [
                _evaluation(CTR_FIX, "claude", True, 1.0, confidence=0.8),
                _evaluation(CTR_FIX, "claude", False, 0.0),
            ]
        )
        stats = {item.provider_id: item for item in adjuster.stats()}
        claude = stats["claude"]
        self.assertEqual(claude.total_tasks, 2)
        self.assertEqual(claude.successful_tasks, 1)
        self.assertEqual(claude.failed_tasks, 1)
        self.assertEqual(claude.success_rate, 0.5)
        self.assertAlmostEqual(claude.avg_confidence, 0.4)
        self.assertIn(CTR_FIX, claude.weights_by_bucket)

    def test_unknown_bucket_leaves_table_alone(self):
        adjuster = ModelAdjuster()
        before = adjuster.get_weights()
        result = adjuster.run_learning_cycle([_evaluation("NOT_A_BUCKET", "claude", True, 1.0)])
        self.assertEqual(result.adjustments, [])
        self.assertNotIn("NOT_A_BUCKET", result.new_model_weights)
        self.assertEqual(adjuster.get_weights(), before)
        self.assertEqual(adjuster.stats(), [])

    def test_stats_cover_latest_cycle_only(self):
        adjuster = ModelAdjuster()
        adjuster.run_learning_cycle([_evaluation(CTR_FIX, "claude", True, 1.0)])
        adjuster.run_learning_cycle([_evaluation(CTR_FIX, "grok", False, 0.0)])
        self.assertEqual([item.provider_id for item in adjuster.stats()], ["grok"])
        self.assertEqual(len(adjuster.tracking), 1)

    def test_learning_logs(self):
        adjuster = ModelAdjuster()
        result = adjuster.run_learning_cycle([_evaluation(CTR_FIX, "grok", True, 1.0)])
        logs = adjuster.to_learning_logs(result)
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0].action, "Model weight: grok on CTR_FIX")
        self.assertIn("grok succeeded on CTR_FIX", logs[0].weight_adj)

    def test_uses_evaluator_output(self):
        action = ActionRecord(
            url="https://example.com/widgets",
            action_type=CTR_FIX,
            action_date="2026-01-01",
            original_ctr=0.02,
            model_used="claude",
        )
        page = PageData(url=action.url, ctr=0.04, position=6)
        evaluation = OutcomeEvaluator().evaluate(action, page, date(2026, 1, 20))
        result = ModelAdjuster().run_learning_cycle([evaluation])
        self.assertGreater(result.new_model_weights[CTR_FIX]["claude"], 0.25)


if __name__ == "__main__":
    unittest.main()
