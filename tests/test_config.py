"""Tests for cr0n.config module."""
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from cr0n.config import Config, get_config, load_config, normalize_weights, resolve_settings
from cr0n.constants import CTR_FIX, DEFAULT_WEIGHTS


class TestLoadConfig(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.missing = Path(self.tmp.name) / "missing.yaml"

    def tearDown(self):
        self.tmp.cleanup()

    @patch.dict(os.environ, {}, clear=True)
    def test_packaged_defaults(self):
        config = get_config(self.missing)
        self.assertEqual(config.server["port"], 8099)
        self.assertEqual(config.consensus_threshold, 0.7)
        self.assertEqual(config.credentialed_providers, [])
        self.assertEqual(config.models["grok"]["base_url"], "https://api.x.ai/v1")

    @patch.dict(os.environ, {}, clear=True)
    def test_user_file_is_deep_merged(self):
        path = Path(self.tmp.name) / "config.yaml"
        path.write_text("server:\n  port: 9000\nlearning:\n  learning_rate: 0.03\n")
        config = get_config(path)
        self.assertEqual(config.server["port"], 9000)
        self.assertEqual(config.server["host"], "127.0.0.1")
        self.assertEqual(config.learning["learning_rate"], 0.03)
        self.assertEqual(config.learning["min_weight"], 0.05)

    @patch.dict(
        os.environ,
        {
            "ANTHROPIC_API_KEY": "sk-ant",
            "XAI_API_KEY": "xai-key",
            "CR0N_PORT": "9100",
            "CR0N_CONSENSUS_THRESHOLD": "0.8",
            "CR0N_MAX_TASKS": "10",
        },
        clear=True,
    )
    def test_environment_overrides(self):
        config = get_config(self.missing)
        self.assertEqual(config.credentialed_providers, ["claude", "grok"])
        self.assertEqual(config.models["claude"]["model"], "claude-sonnet-4-20250514")
        self.assertEqual(config.server["port"], 9100)
        self.assertEqual(config.consensus_threshold, 0.8)
        self.assertEqual(config.analysis["max_tasks_per_run"], 10)

    @patch.dict(os.environ, {"CR0N_PORT": "not-a-port"}, clear=True)
    def test_bad_environment_values_are_ignored(self):
        with self.assertLogs("cr0n.config", level="WARNING"):
            data = load_config(self.missing)
        self.assertEqual(data["server"]["port"], 8099)


class TestResolveSettings(unittest.TestCase):
    def test_defaults_without_config(self):
        settings = resolve_settings()
        self.assertEqual(settings.weights, DEFAULT_WEIGHTS)
        self.assertEqual(settings.model_weights[CTR_FIX]["claude"], 0.25)
        self.assertEqual(settings.learning_config, {"learning_rate": 0.015, "min_weight": 0.05, "max_weight": 0.5})
        self.assertEqual(settings.evaluation_delay_days, 14)
        self.assertEqual(settings.ctr_curve["position1"], 0.32)

    def test_caller_state_is_merged(self):
        settings = resolve_settings(
            Config({"learning": {"learning_rate": 0.03}, "ctr_curve": {"position1": 0.4}}),
            weights={"ctrGap": 0.3, "bogus": 1.0},
            model_weights={CTR_FIX: {"grok": 0.4}},
            learning_cycles=7,
        )
        self.assertEqual(settings.weights["ctr_gap"], 0.3)
        self.assertNotIn("bogus", settings.weights)
        self.assertEqual(settings.model_weights[CTR_FIX]["grok"], 0.4)
        self.assertEqual(settings.model_weights[CTR_FIX]["claude"], 0.25)
        self.assertEqual(settings.learning_cycles, 7)
        self.assertEqual(settings.learning_rate, 0.03)
        self.assertEqual(settings.ctr_curve["position1"], 0.4)
        self.assertEqual(settings.ctr_curve["position2"], 0.20)

    def test_normalize_weights_fills_gaps(self):
        weights = normalize_weights({"impressions": "0.35"})
        self.assertEqual(weights["impressions"], 0.35)
        self.assertEqual(weights["freshness"], 0.2)


if __name__ == "__main__":
    unittest.main()
